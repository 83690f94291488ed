import os
import json
from enum import Enum
from typing import Any, Dict, List, Sequence

from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from library_admin.models import ReferenceEntity
from library_admin.forms.typeahead import display_name
from library_admin.services.alert_service import Alert, AlertType

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()

_ALERT_STYLES = {
    AlertType.SUCCESS: "green",
    AlertType.ERROR: "red",
    AlertType.INFO: "cyan",
    AlertType.WARNING: "yellow",
}

def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode

def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()

def print_candidates(kind: str, candidates: Sequence[ReferenceEntity]) -> None:
    """Print a candidate list in the current output mode.
    - plain: 'id - name' lines, or 'No matching <kind> entries.'
    - json: JSON array of id, name
    - rich: Rich table
    """
    mode = get_output_mode()

    if not candidates:
        print(f"No matching {kind} entries.")
        return

    if mode == "json":
        print(json.dumps([{"id": c.id, "name": c.name} for c in candidates], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title=kind, show_lines=False, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Name", style="white")
        for c in candidates:
            table.add_row(c.id, c.name)
        _console.print(table)
    else:
        for c in candidates:
            print(f"{c.id} - {c.name}")

def print_form_values(title: str, values: Dict[str, Any]) -> None:
    """Print form values; entity fields are shown by display name."""
    mode = get_output_mode()
    rows = {name: _format_value(value) for name, value in values.items()}

    if mode == "json":
        print(json.dumps({"title": title, "values": rows}, ensure_ascii=False))
    elif mode == "rich":
        content = "\n".join(f"[bold]{name}:[/] {value}" for name, value in rows.items())
        _console.print(Panel.fit(content, title=title, border_style="blue"))
    else:
        print(title)
        for name, value in rows.items():
            print(f"{name}: {value}")

def print_alerts(alerts: List[Alert]) -> None:
    mode = get_output_mode()
    for alert in alerts:
        if mode == "json":
            print(json.dumps({"type": alert.type.value, "message": alert.message}, ensure_ascii=False))
        elif mode == "rich":
            style = _ALERT_STYLES.get(alert.type, "white")
            _console.print(f"[{style}]{alert.type.value.title()}: {alert.message}[/]")
        else:
            print(f"{alert.type.value.title()}: {alert.message}")

def _format_value(value: Any) -> str:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (str, int)):
        return str(value)
    return display_name(value)
