"""Textual panel for browsing and exporting recently emitted events.

The panel only reads the persisted state through read_latest, the same
contract the `latest` command prints.
"""

from __future__ import annotations

import csv
import json
from datetime import datetime
from typing import Any

from rich.text import Text
from textual import on
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, DataTable, Footer, Static

from core.ports import StateStorePort
from core.state import read_latest

from .constants import ACCENT_BLUE, EXPORTS_DIR

EXPORT_FIELDS = ["id", "pubDate", "severity", "sector", "sources", "title", "link", "snippet", "fetchedAt"]


def event_row(event: dict[str, Any]) -> dict[str, str]:
    """Flatten a stored event for table display and CSV export."""

    sector = event.get("sector") or {}
    return {
        "id": str(event.get("id", "")),
        "pubDate": str(event.get("pubDate") or event.get("publishedAt") or ""),
        "severity": str(event.get("severity", "")),
        "sector": str(sector.get("name", "")) if isinstance(sector, dict) else "",
        "sources": ", ".join(event.get("sources") or []),
        "title": str(event.get("title", "")),
        "link": str(event.get("link", "")),
        "snippet": str(event.get("snippet", "")),
        "fetchedAt": str(event.get("fetchedAt", "")),
    }


class EventsPanelApp(App):
    """Recent events table with JSON/CSV export."""

    BINDINGS = [
        ("r", "reload", "Reload"),
        ("q", "quit", "Quit"),
    ]

    CSS = """
    Screen {
        background: #0f1a21;
        color: #e8eef5;
    }

    #header {
        height: 4;
        padding: 1 4;
        border-bottom: solid #2a3a46;
    }

    #title {
        text-style: bold;
    }

    #events-table {
        height: 1fr;
    }

    #events-actions {
        height: 3;
    }

    #events-output {
        color: #c6d2dd;
    }
    """

    def __init__(self, store: StateStorePort, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._store = store
        self._events: list[dict[str, Any]] = []

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            yield Static(self._title_text(), id="title")
        with Vertical(id="events-panel"):
            yield DataTable(id="events-table", cursor_type="row", zebra_stripes=True)
            with Horizontal(id="events-actions"):
                yield Button("Reload", id="reload")
                yield Button("Export JSON", id="export-json", variant="success")
                yield Button("Export CSV", id="export-csv")
            yield Static("", id="events-output")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#events-table", DataTable)
        table.add_column("published", key="pubDate", width=20)
        table.add_column("sev", key="severity", width=4)
        table.add_column("sector", key="sector", width=24)
        table.add_column("sources", key="sources", width=22)
        table.add_column("title", key="title", width=48)
        self._load_events()

    def action_reload(self) -> None:
        self._load_events()

    @on(Button.Pressed, "#reload")
    def _on_reload(self) -> None:
        self._load_events()

    @on(Button.Pressed, "#export-json")
    def _on_export_json(self) -> None:
        self._export_events("json")

    @on(Button.Pressed, "#export-csv")
    def _on_export_csv(self) -> None:
        self._export_events("csv")

    def _load_events(self) -> None:
        table = self.query_one("#events-table", DataTable)
        table.clear()
        self._events = read_latest(self._store)["events"]
        for index, event in enumerate(self._events):
            row = event_row(event)
            table.add_row(
                row["pubDate"].replace("T", " ")[:19],
                row["severity"],
                row["sector"],
                self._clip_text(row["sources"], 22),
                self._clip_text(row["title"], 48),
                key=f"{index}:{row['id']}",
            )
        self._set_output(f"loaded {len(self._events)} events")

    def _export_events(self, fmt: str) -> None:
        if not self._events:
            self._set_output("No events to export.")
            return
        EXPORTS_DIR.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        path = EXPORTS_DIR / f"events-{timestamp}.{fmt}"
        try:
            if fmt == "json":
                path.write_text(json.dumps({"events": self._events}, indent=2, ensure_ascii=False), encoding="utf-8")
            else:
                with path.open("w", encoding="utf-8", newline="") as handle:
                    writer = csv.DictWriter(handle, fieldnames=EXPORT_FIELDS)
                    writer.writeheader()
                    writer.writerows(event_row(event) for event in self._events)
            self._set_output(f"exported {len(self._events)} events to {path}")
        except OSError as exc:
            self._set_output(f"export failed: {exc.strerror or exc}")

    def _set_output(self, message: str) -> None:
        self.query_one("#events-output", Static).update(message)

    @staticmethod
    def _clip_text(value: str, limit: int) -> str:
        if len(value) <= limit:
            return value
        return value[: limit - 3] + "..."

    @staticmethod
    def _title_text() -> Text:
        return Text.assemble(
            ("BORDER", ACCENT_BLUE),
            ("ADAR > Recent Events", "bold"),
        )
