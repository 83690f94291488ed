import asyncio
import json

import httpx
import pytest

from library_admin.models import Book, ReferenceEntity, Status
from library_admin.services.catalog_service import (
    AuthorService, BookService, BorrowRecordService, PublisherService,
)
from library_admin.services.http_client import (
    ApiClient, ApiValidationError, CatalogAPIError, NotFoundError,
)


def make_client(handler):
    return ApiClient(base_url="http://catalog.test", transport=httpx.MockTransport(handler))


def test_get_all_enabled_hits_enabled_endpoint():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=[
            {"id": 1, "name": "Tolkien", "status": "enabled"},
            {"id": 2, "name": "Tolstoy"},
        ])

    async def run():
        async with make_client(handler) as client:
            return await AuthorService(client).get_all_enabled()

    authors = asyncio.run(run())
    assert requests[0].method == "GET"
    assert requests[0].url.path == "/Author/getAllEnabled"
    assert authors == [ReferenceEntity("1", "Tolkien"), ReferenceEntity("2", "Tolstoy", Status.ENABLED)]


def test_book_get_by_id_parses_nested_entities():
    def handler(request):
        assert request.url.path == "/Book/b1"
        return httpx.Response(200, json={
            "id": "b1",
            "name": "The Hobbit",
            "author": {"id": "a2", "name": "Tolkien", "status": "enabled"},
            "category": {"id": "c1", "name": "Fantasy"},
            "publisher": None,
            "access_book_num": 3,
            "status": "enabled",
        })

    async def run():
        async with make_client(handler) as client:
            return await BookService(client).get_by_id("b1")

    book = asyncio.run(run())
    assert isinstance(book, Book)
    assert book.author == ReferenceEntity("a2", "Tolkien")
    assert book.category.name == "Fantasy"
    assert book.publisher is None
    assert book.description == ""


def test_create_and_update_send_json_payloads():
    seen = []

    def handler(request):
        seen.append((request.method, request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"id": "r1", **json.loads(request.content)})

    async def run():
        async with make_client(handler) as client:
            service = BorrowRecordService(client)
            created = await service.create({"borrower": "Ada"})
            updated = await service.update("r1", {"borrower": "Grace"})
            return created, updated

    created, updated = asyncio.run(run())
    assert seen == [
        ("POST", "/BorrowRecord", {"borrower": "Ada"}),
        ("PUT", "/BorrowRecord/r1", {"borrower": "Grace"}),
    ]
    assert created == {"id": "r1", "borrower": "Ada"}
    assert updated["borrower"] == "Grace"


@pytest.mark.parametrize("status,body,error", [
    (404, {"detail": "Book b9 not found"}, NotFoundError),
    (422, {"detail": [{"msg": "field required"}]}, ApiValidationError),
    (400, {"message": "Unknown Author a9"}, ApiValidationError),
    (500, {"error": "database offline"}, CatalogAPIError),
])
def test_error_statuses_map_to_exceptions(status, body, error):
    def handler(request):
        return httpx.Response(status, json=body)

    async def run():
        async with make_client(handler) as client:
            await BookService(client).get_by_id("b9")

    with pytest.raises(error) as exc_info:
        asyncio.run(run())
    assert exc_info.value.status_code == status
    assert exc_info.value.message in ("Book b9 not found", "field required", "Unknown Author a9", "database offline")


def test_transport_failure_becomes_catalog_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async def run():
        async with make_client(handler) as client:
            await PublisherService(client).get_all_enabled()

    with pytest.raises(CatalogAPIError) as exc_info:
        asyncio.run(run())
    assert exc_info.value.status_code is None
    assert "connection refused" in str(exc_info.value)


def test_empty_record_body_is_a_catalog_error():
    def handler(request):
        return httpx.Response(200)

    async def run():
        async with make_client(handler) as client:
            await BookService(client).get_by_id("b1")

    with pytest.raises(CatalogAPIError, match="Empty Book response"):
        asyncio.run(run())


@pytest.mark.parametrize("body", [
    [{"id": 1, "name": "Asimov", "status": "ENABLED"}],
    [{"name": "no id"}],
    {"id": 1, "name": "not a list"},
])
def test_undecodable_enabled_list_is_a_catalog_error(body):
    def handler(request):
        return httpx.Response(200, json=body)

    async def run():
        async with make_client(handler) as client:
            await AuthorService(client).get_all_enabled()

    with pytest.raises(CatalogAPIError):
        asyncio.run(run())
