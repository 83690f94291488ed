import asyncio
import logging
import subprocess
import sys
from typing import Any, Dict, Optional

import typer
from rich.console import Console

from config import settings
from library_admin.models import EntityKind, REFERENCE_KINDS, Status
from library_admin.forms.book_form import BookFormController
from library_admin.forms.controls import TypeaheadControl
from library_admin.forms.typeahead import ReferenceListLoader, ReferenceListLoadError, TypeaheadFilterPipeline
from library_admin.services.alert_service import AlertService
from library_admin.services.catalog_service import AuthorService, CategoryService, PublisherService
from library_admin.services.http_client import ApiClient
from library_admin.services.navigation import Navigator
from library_admin.ui_helpers import set_output_mode, print_candidates, print_form_values, print_alerts

console = Console()

REFERENCE_SERVICES = {
    EntityKind.AUTHOR: AuthorService,
    EntityKind.CATEGORY: CategoryService,
    EntityKind.PUBLISHER: PublisherService,
}

SCALAR_FIELDS = ("name", "description", "access_book_num", "status")

app = typer.Typer(help=f"{settings.app_name} CLI")

def _make_client() -> ApiClient:
    return ApiClient()

@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    )
):
    """Global CLI options (e.g. output mode)."""
    logging.basicConfig(level=settings.log_level)
    if output:
        set_output_mode(output)

def _parse_kind(kind: str) -> EntityKind:
    for candidate in REFERENCE_KINDS:
        if candidate.value.lower() == kind.strip().lower():
            return candidate
    names = ", ".join(k.value.lower() for k in REFERENCE_KINDS)
    raise typer.BadParameter(f"Unknown kind '{kind}'. Use one of: {names}")

# --- Typeahead lookup ---
async def _suggest(kind: EntityKind, query: str) -> int:
    async with _make_client() as client:
        control = TypeaheadControl(kind.value.lower())
        pipeline = TypeaheadFilterPipeline(control, ReferenceListLoader(REFERENCE_SERVICES[kind](client)))
        pipeline.start()
        try:
            try:
                await pipeline.load()
            except ReferenceListLoadError as e:
                print(f"Error: {e}")
                return 1
            pipeline.type_text(query)
            print_candidates(kind.value, pipeline.candidates)
        finally:
            pipeline.stop()
            control.close()
    return 0

@app.command("suggest")
def cli_suggest(kind: str, query: str = typer.Argument("")):
    """List enabled authors, categories or publishers whose name contains QUERY."""
    code = asyncio.run(_suggest(_parse_kind(kind), query))
    if code:
        raise typer.Exit(code=code)

# --- Book form ---
async def _run_book_form(id: Optional[str], values: Dict[str, Any]) -> int:
    alert_service = AlertService()
    navigator = Navigator(alert_service)
    async with _make_client() as client:
        async with BookFormController.from_client(client, alert_service, navigator, id=id) as form:
            if form.record_error:
                print_alerts(alert_service.active)
                return 1

            for field in SCALAR_FIELDS:
                if values.get(field) is not None:
                    form.form[field].set_value(values[field])

            # Type the text, then pick the matching candidate like a user would
            for field, pipeline in form.pipelines.items():
                text = values.get(field)
                if text is None:
                    continue
                pipeline.type_text(text)
                entity = pipeline.resolve(text)
                if entity is not None:
                    pipeline.select(entity)
                else:
                    names = ", ".join(c.name for c in pipeline.candidates) or "none"
                    print(f"No single {field} matches '{text}' (candidates: {names})")

            saved = await form.on_submit()
            if not saved and form.form.invalid:
                for field, errors in form.form.errors.items():
                    print(f"{field}: {', '.join(errors)}")
            print_alerts(alert_service.active)
            if saved:
                print_form_values(form.title, form.form.value)
            return 0 if saved else 1

@app.command("book-add")
def cli_book_add(
    name: str = typer.Option(..., "--name", help="Book title"),
    author: str = typer.Option(..., "--author", help="Author name (or part of it)"),
    category: str = typer.Option(..., "--category", help="Category name (or part of it)"),
    publisher: str = typer.Option(..., "--publisher", help="Publisher name (or part of it)"),
    description: str = typer.Option("", "--description"),
    access_book_num: str = typer.Option("", "--access-book-num"),
    status: Status = typer.Option(Status.ENABLED, "--status"),
):
    """Create a book through the book form."""
    values = {
        "name": name, "author": author, "category": category, "publisher": publisher,
        "description": description, "access_book_num": access_book_num, "status": status,
    }
    code = asyncio.run(_run_book_form(None, values))
    if code:
        raise typer.Exit(code=code)

@app.command("book-edit")
def cli_book_edit(
    id: str,
    name: Optional[str] = typer.Option(None, "--name"),
    author: Optional[str] = typer.Option(None, "--author"),
    category: Optional[str] = typer.Option(None, "--category"),
    publisher: Optional[str] = typer.Option(None, "--publisher"),
    description: Optional[str] = typer.Option(None, "--description"),
    access_book_num: Optional[str] = typer.Option(None, "--access-book-num"),
    status: Optional[Status] = typer.Option(None, "--status"),
):
    """Edit an existing book; fields left out keep their current values."""
    values = {
        "name": name, "author": author, "category": category, "publisher": publisher,
        "description": description, "access_book_num": access_book_num, "status": status,
    }
    code = asyncio.run(_run_book_form(id, values))
    if code:
        raise typer.Exit(code=code)

# --- Demo API ---
@app.command("serve")
def serve(host: Optional[str] = None, port: Optional[int] = None):
    """Start the demo catalog API under Uvicorn."""
    host = host or settings.api_host
    port = int(port or settings.api_port)
    url = f"http://{host}:{port}/"
    console.print(f"[green]Starting demo API on [link={url}]{url}[/link][/]")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "api:app",
        "--host", host,
        "--port", str(port),
    ]
    try:
        subprocess.run(args)
    except KeyboardInterrupt:
        console.print("[yellow]Server stopped.[/]")


if __name__ == "__main__":
    app()
