"""
CLI entry point using Typer.

Provides commands for workout and body tracking:
- init: Create (or with --reset, empty) the history file
- log-workout / log-weight / log-measurement: Record data
- show-history / delete-workout: Inspect and edit history
- summary / chart: Dashboard cards and trailing-window charts
- one-rm / top: Estimated 1RM progression, per-set estimates and rankings
- body-fat: U.S. Navy body-fat estimate
"""

from .app import app
from .commands import body, dashboard, workouts  # noqa: F401  (registers commands)

if __name__ == "__main__":
    app()
