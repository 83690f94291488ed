from datetime import datetime

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client(demo_app):
    return TestClient(demo_app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert datetime.fromisoformat(response.json()["timestamp"]).tzinfo is not None


def test_enabled_list_excludes_disabled_authors(client):
    all_names = [a["name"] for a in client.get("/Author").json()]
    enabled_names = [a["name"] for a in client.get("/Author/getAllEnabled").json()]
    assert "Anonymous" in all_names
    assert "Anonymous" not in enabled_names
    assert enabled_names == ["Isaac Asimov", "J.R.R. Tolkien", "Leo Tolstoy"]


def test_books_have_no_enabled_list(client):
    assert client.get("/Book/getAllEnabled").status_code == 404


def test_get_unknown_record_is_404(client):
    response = client.get("/Book/nope")
    assert response.status_code == 404
    assert "not found" in response.json()["detail"]


def test_create_book_stores_nested_reference_rows(client):
    author = client.get("/Author/getAllEnabled").json()[0]
    category = client.get("/Category/getAllEnabled").json()[0]
    publisher = client.get("/Publisher/getAllEnabled").json()[0]

    response = client.post("/Book", json={
        "name": "Foundation",
        # Clients may send only the id; the stored row is the full entity
        "author": {"id": author["id"]},
        "category": category,
        "publisher": publisher,
    })
    assert response.status_code == 200
    book = response.json()
    assert book["author"] == {"id": author["id"], "name": "Isaac Asimov", "status": "enabled"}
    assert book["status"] == "enabled"
    assert client.get(f"/Book/{book['id']}").json()["name"] == "Foundation"


def test_create_book_rejects_missing_fields_and_unknown_refs(client):
    response = client.post("/Book", json={"name": "No author"})
    assert response.status_code == 422
    assert "author" in response.json()["detail"]

    category = client.get("/Category").json()[0]
    publisher = client.get("/Publisher").json()[0]
    response = client.post("/Book", json={
        "name": "Ghost", "author": {"id": "a999"}, "category": category, "publisher": publisher,
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Unknown Author a999"


def test_update_is_partial(client):
    book = client.get("/Book").json()[0]
    response = client.put(f"/Book/{book['id']}", json={"description": "Revised"})
    assert response.status_code == 200
    updated = response.json()
    assert updated["description"] == "Revised"
    assert updated["name"] == book["name"]
    assert updated["author"] == book["author"]


def test_update_unknown_record_is_404(client):
    assert client.put("/Author/zzz", json={"name": "X"}).status_code == 404
