import httpx
import pytest

from api import CatalogStore, create_app, seed_store
from library_admin.services.http_client import ApiClient
from library_admin.ui_helpers import OUTPUT_MODE_ENV


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    # CLI output mode is process-wide; keep every test on plain text
    monkeypatch.delenv(OUTPUT_MODE_ENV, raising=False)


@pytest.fixture
def demo_store():
    return seed_store(CatalogStore())


@pytest.fixture
def demo_app(demo_store):
    return create_app(demo_store)


@pytest.fixture
def make_api_client(demo_app):
    """Factory for ApiClients wired to the in-process demo API."""
    def factory() -> ApiClient:
        return ApiClient(base_url="http://testserver", transport=httpx.ASGITransport(app=demo_app))
    return factory
