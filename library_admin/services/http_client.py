import logging
from typing import Any, Optional

import httpx

from config import settings

logger = logging.getLogger(__name__)


class CatalogAPIError(Exception):
    """Custom exception for catalog API errors"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotFoundError(CatalogAPIError):
    """Exception raised when the requested record does not exist"""
    pass


class ApiValidationError(CatalogAPIError):
    """Exception raised when the API rejects a payload"""
    pass


def _error_message(response: httpx.Response) -> str:
    """Pull a human readable message out of an error response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            detail = body.get(key)
            if isinstance(detail, str) and detail:
                return detail
            if isinstance(detail, list) and detail:
                # FastAPI style validation detail
                first = detail[0]
                if isinstance(first, dict) and first.get("msg"):
                    return str(first["msg"])
    text = response.text.strip()
    return text or f"{response.status_code} {response.reason_phrase}"


class ApiClient:
    """Async HTTP client for the catalog REST API with connection pooling"""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = (base_url or settings.api_url).rstrip("/")

        # Connection limits for better performance
        limits = httpx.Limits(
            max_keepalive_connections=settings.max_connections,
            max_connections=settings.max_connections * 5,
            keepalive_expiry=30.0
        )

        # Timeout configuration
        read_timeout = timeout or settings.api_timeout
        timeout_config = httpx.Timeout(
            timeout=read_timeout,
            connect=settings.api_connect_timeout,
        )

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            limits=limits,
            timeout=timeout_config,
            follow_redirects=True,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and return the decoded JSON body.

        Transport failures and non-2xx responses are raised as CatalogAPIError
        subclasses. Nothing is retried.
        """
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"{method} {path} timed out: {e}")
            raise CatalogAPIError("The catalog server did not respond in time.") from e
        except httpx.RequestError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise CatalogAPIError(f"Could not reach the catalog server: {e}") from e

        if response.status_code == 404:
            raise NotFoundError(_error_message(response), status_code=404)
        if response.status_code in (400, 422):
            raise ApiValidationError(_error_message(response), status_code=response.status_code)
        if response.status_code >= 400:
            logger.error(f"{method} {path} returned {response.status_code}")
            raise CatalogAPIError(_error_message(response), status_code=response.status_code)

        logger.debug(f"{method} {path} -> {response.status_code}")
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise CatalogAPIError(f"Invalid JSON from {method} {path}", status_code=response.status_code) from e

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def close(self):
        """Close the underlying HTTP client"""
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
