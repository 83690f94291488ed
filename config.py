import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Settings:
    # Catalog API settings
    api_url: str = os.getenv("LIBRARY_API_URL", "http://127.0.0.1:8000")
    api_timeout: float = float(os.getenv("LIBRARY_API_TIMEOUT", "10"))
    api_connect_timeout: float = float(os.getenv("LIBRARY_API_CONNECT_TIMEOUT", "5"))
    max_connections: int = int(os.getenv("LIBRARY_API_MAX_CONNECTIONS", "20"))
    # Path segment of the enabled-only list endpoint, e.g. GET /Author/getAllEnabled
    enabled_list_path: str = os.getenv("LIBRARY_ENABLED_LIST_PATH", "getAllEnabled")

    # Demo API server settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8000"))

    # Form settings
    books_url: str = os.getenv("BOOKS_URL", "/books")

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Library Admin")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    log_level: str = os.getenv("LOG_LEVEL", "WARNING").upper()
    debug: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")


settings = Settings()
