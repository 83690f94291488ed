import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

import main
from main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def demo_backend(monkeypatch, make_api_client):
    monkeypatch.setattr(main, "_make_client", make_api_client)


def test_suggest_lists_matching_authors():
    result = runner.invoke(app, ["suggest", "author", "tol"])
    assert result.exit_code == 0
    lines = result.stdout.strip().splitlines()
    assert [line.split(" - ", 1)[1] for line in lines] == ["J.R.R. Tolkien", "Leo Tolstoy"]


def test_suggest_without_query_lists_every_enabled_entry():
    result = runner.invoke(app, ["suggest", "Publisher"])
    assert result.exit_code == 0
    assert "Allen & Unwin" in result.stdout
    assert "Doubleday" in result.stdout


def test_suggest_json_output():
    result = runner.invoke(app, ["--output", "json", "suggest", "category", "fic"])
    assert result.exit_code == 0
    assert [c["name"] for c in json.loads(result.stdout)] == ["Science Fiction"]


def test_suggest_no_match():
    result = runner.invoke(app, ["suggest", "author", "zzz"])
    assert result.exit_code == 0
    assert "No matching Author entries." in result.stdout


def test_suggest_unknown_kind():
    result = runner.invoke(app, ["suggest", "book", "x"])
    assert result.exit_code != 0


def test_book_add_resolves_typed_names(demo_store):
    result = runner.invoke(app, [
        "book-add", "--name", "Foundation",
        "--author", "asimov", "--category", "science", "--publisher", "doubleday",
    ])
    assert result.exit_code == 0, result.stdout
    assert "Success: Book saved" in result.stdout
    assert "author: Isaac Asimov" in result.stdout

    from library_admin.models import EntityKind
    names = [b["name"] for b in demo_store.list(EntityKind.BOOK)]
    assert "Foundation" in names


def test_book_add_with_ambiguous_author_is_blocked():
    result = runner.invoke(app, [
        "book-add", "--name", "War and Peace",
        "--author", "tol", "--category", "classics", "--publisher", "penguin",
    ])
    assert result.exit_code == 1
    assert "No single author matches 'tol'" in result.stdout
    assert "author: unresolved" in result.stdout


def test_book_edit_keeps_existing_entities(demo_store):
    from library_admin.models import EntityKind
    book_id = demo_store.list(EntityKind.BOOK)[0]["id"]

    result = runner.invoke(app, ["book-edit", book_id, "--description", "Revised edition"])
    assert result.exit_code == 0, result.stdout
    assert "Edit Book" in result.stdout
    assert "author: J.R.R. Tolkien" in result.stdout
    assert demo_store.get(EntityKind.BOOK, book_id)["description"] == "Revised edition"


def test_book_edit_unknown_id_reports_error():
    result = runner.invoke(app, ["book-edit", "missing"])
    assert result.exit_code == 1
    assert "Error: Could not load book missing" in result.stdout


@patch("subprocess.run")
def test_serve_command(mock_subprocess_run):
    result = runner.invoke(app, ["serve"])
    assert result.exit_code == 0
    assert "Starting demo API on" in result.stdout
    mock_subprocess_run.assert_called_once()
    args = mock_subprocess_run.call_args[0][0]
    assert "uvicorn" in args
    assert "api:app" in args
    assert "--host" in args
    assert "--port" in args
