"""Shared Typer app object, shared option types, and store utility."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.engine.config_loader import Settings, load_settings
from ..io.history_store import HistoryStore, get_default_history_path
from . import views

HistoryPathOption = Annotated[
    Optional[Path],
    typer.Option("--history-path", "-p", help="Path to history JSONL file"),
]

JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="fit-metrics",
    help="fit-metrics: workout history, 1RM estimates and body metrics in the terminal.",
    no_args_is_help=True,
)

_state: dict[str, Settings] = {}


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log debug output to stderr"),
    ] = False,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", help="Extra YAML config merged over ~/.fit-metrics/config.yaml"),
    ] = None,
) -> None:
    """
    fit-metrics: workout history, 1RM estimates and body metrics in the terminal.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        force=True,
    )
    _state["settings"] = load_settings(config)


def get_settings() -> Settings:
    """Settings loaded by the root callback (or defaults when called directly)."""
    if "settings" not in _state:
        _state["settings"] = load_settings()
    return _state["settings"]


def get_store(history_path: Path | None) -> HistoryStore:
    """Get history store from path or the default location."""
    if history_path is None:
        history_path = get_default_history_path()
    return HistoryStore(history_path, get_settings().calendar)


def open_store(history_path: Path | None) -> HistoryStore:
    """Like get_store, but exits with an error when the history file is missing."""
    store = get_store(history_path)
    if not store.exists():
        views.print_error(f"History file not found: {store.history_path}")
        views.print_info("Run 'init' first to create the history file.")
        raise typer.Exit(1)
    return store
