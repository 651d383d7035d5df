"""Workout commands: init, log-workout, show-history, delete-workout."""

import json
from datetime import datetime, timedelta
from typing import Annotated, Optional

import typer
from rich.markup import escape

from ...core.models import WEIGHT_UNITS, ExerciseEntry, SetRecord, WeightValue, WorkoutRecord
from ...io.serializers import (
    ValidationError,
    bodyweight_to_dict,
    measurement_to_dict,
    parse_decimal,
    parse_sets_string,
    parse_timestamp,
    workout_to_dict,
)
from .. import views
from ..app import HistoryPathOption, JsonOption, app, get_settings, get_store, open_store


def _interactive_entries() -> list[tuple[str, str]]:
    """
    Prompt for exercises and their sets until an empty exercise name.

    Returns:
        List of (exercise name, sets string)
    """
    views.console.print()
    views.console.print("[bold]Enter exercises one at a time.[/bold]")
    views.console.print(
        "  Sets: [cyan]reps@weight[/cyan], [cyan]repsxsets @weight[/cyan] or bare reps"
        "  e.g. [green]5@100, 5@105[/green]  [green]5x3 @100[/green]  [green]10x3[/green]"
    )
    views.console.print("  Press [bold]Enter[/bold] on an empty exercise name when done.\n")

    pairs: list[tuple[str, str]] = []
    while True:
        name = views.console.input(f"  Exercise {len(pairs) + 1}: ").strip()
        if not name:
            if pairs:
                break
            views.print_warning("Enter at least one exercise.")
            continue

        while True:
            raw = views.console.input("    Sets: ").strip()
            try:
                parse_sets_string(raw)
            except ValidationError as e:
                views.print_error(str(e))
                continue
            break
        pairs.append((name, raw))

    return pairs


def _parse_time_option(value: str | None, label: str) -> datetime | None:
    if value is None:
        return None
    try:
        return parse_timestamp(value, get_settings().calendar.tzinfo)
    except ValidationError as e:
        views.print_error(f"Invalid {label}: {e}")
        raise typer.Exit(1)


@app.command()
def init(
    history_path: HistoryPathOption = None,
    reset: Annotated[
        bool,
        typer.Option("--reset", help="Empty an existing history file"),
    ] = False,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
) -> None:
    """
    Create an empty history file (default: ~/.fit-metrics/history.jsonl).

    With --reset, an existing file is emptied: workouts, body weights and
    measurements are all removed.
    """
    store = get_store(history_path)

    if store.exists():
        if not reset:
            views.print_info(f"History file already exists: {store.history_path}")
            return
        if not force and not views.confirm_action(f"Erase all records in {store.history_path}?"):
            views.print_info("Cancelled.")
            return
        store.clear_history()
        views.print_success(f"Cleared history file: {store.history_path}")
        return

    store.init()
    views.print_success(f"Created history file: {store.history_path}")


@app.command("log-workout")
def log_workout(
    exercise: Annotated[
        Optional[list[str]],
        typer.Option("--exercise", "-e", help="Exercise name (repeat, paired with --sets)"),
    ] = None,
    sets: Annotated[
        Optional[list[str]],
        typer.Option("--sets", "-s", help='Sets for the matching --exercise, e.g. "5x3 @100"'),
    ] = None,
    completed: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Completion time (ISO-8601 or YYYY-MM-DD, default: now)"),
    ] = None,
    started: Annotated[
        Optional[str],
        typer.Option("--started", help="Start time (ISO-8601); duration is derived from it"),
    ] = None,
    duration_minutes: Annotated[
        Optional[str],
        typer.Option("--duration-minutes", "-m", help="Workout length in minutes"),
    ] = None,
    unit: Annotated[
        Optional[str],
        typer.Option("--unit", "-u", help="Weight unit for the sets: kg | lbs"),
    ] = None,
    template: Annotated[
        Optional[str],
        typer.Option("--template", "-t", help="Template / routine name"),
    ] = None,
    notes: Annotated[
        Optional[str],
        typer.Option("--notes", "-n", help="Workout notes"),
    ] = None,
    history_path: HistoryPathOption = None,
) -> None:
    """
    Log a completed workout.

    Run without --exercise for interactive entry, or pair each --exercise
    with a --sets value:

      fit-metrics log-workout -e "Back Squat" -s "5x3 @100" \\
        -e "Bench Press" -s "8@60, 8@62.5" --duration-minutes 55
    """
    store = open_store(history_path)
    settings = get_settings()
    calendar = settings.calendar

    weight_unit = unit or settings.weight_unit
    if weight_unit not in WEIGHT_UNITS:
        views.print_error(f"Unit must be one of: {', '.join(WEIGHT_UNITS)}")
        raise typer.Exit(1)

    if exercise:
        if not sets or len(sets) != len(exercise):
            views.print_error("Give exactly one --sets value per --exercise")
            raise typer.Exit(1)
        pairs = list(zip(exercise, sets))
    else:
        pairs = _interactive_entries()

    completed_at = _parse_time_option(completed, "--date") or calendar.now()
    started_at = _parse_time_option(started, "--started")

    duration_seconds: int | None = None
    if duration_minutes is not None:
        try:
            minutes = parse_decimal(duration_minutes)
        except ValidationError as e:
            views.print_error(str(e))
            raise typer.Exit(1)
        if minutes < 0:
            views.print_error("Duration must be non-negative")
            raise typer.Exit(1)
        duration_seconds = int(round(minutes * 60))

    if started_at is None:
        started_at = completed_at - timedelta(seconds=duration_seconds or 0)
    elif duration_seconds is None:
        duration_seconds = int((completed_at - started_at).total_seconds())

    entries: list[ExerciseEntry] = []
    try:
        for order, (name, sets_str) in enumerate(pairs):
            parsed = parse_sets_string(sets_str)
            records = [
                SetRecord(
                    set_number=i,
                    reps=reps,
                    weight=WeightValue(weight, weight_unit) if weight is not None else None,
                    completed_at=completed_at,
                )
                for i, (reps, weight) in enumerate(parsed, 1)
            ]
            entries.append(ExerciseEntry(exercise_name=name.strip(), sets=records, order=order))

        workout = WorkoutRecord(
            started_at=started_at,
            completed_at=completed_at,
            entries=entries,
            duration_seconds=duration_seconds,
            template_name=template,
            notes=notes,
        )
    except (ValidationError, ValueError) as e:
        views.print_error(f"Invalid workout: {e}")
        raise typer.Exit(1)

    store.append_workout(workout)

    n_sets = sum(len(e.sets) for e in entries)
    views.print_success(
        f"Logged workout {completed_at.strftime('%Y-%m-%d %H:%M')}: "
        f"{len(entries)} exercise(s), {n_sets} set(s)"
    )


@app.command("show-history")
def show_history(
    history_path: HistoryPathOption = None,
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-l", help="Limit number of workouts to show"),
    ] = None,
    body: Annotated[
        bool,
        typer.Option("--body", "-b", help="Also show body weight and measurement logs"),
    ] = False,
    json_out: JsonOption = False,
) -> None:
    """
    Display workout history as a table.
    """
    store = open_store(history_path)

    try:
        workouts = store.load_workouts()
        weights = store.load_bodyweights() if body else []
        measurements = store.load_measurements() if body else []
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if limit is not None:
        workouts = workouts[-limit:]

    if json_out:
        output: dict = {"workouts": [workout_to_dict(w) for w in workouts]}
        if body:
            output["bodyweights"] = [bodyweight_to_dict(e) for e in weights]
            output["measurements"] = [measurement_to_dict(s) for s in measurements]
        print(json.dumps(output, indent=2))
        return

    views.print_history(workouts)
    if body:
        views.print_body_log(weights, measurements)


@app.command("delete-workout")
def delete_workout(
    record_id: Annotated[
        int,
        typer.Argument(help="Workout ID to delete (see # column in show-history)"),
    ],
    history_path: HistoryPathOption = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
) -> None:
    """
    Remove a workout by its ID.

    Use 'show-history' to see workout IDs in the # column.
    """
    store = open_store(history_path)

    try:
        workouts = store.load_workouts()
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if not workouts:
        views.print_error("No workouts in history.")
        raise typer.Exit(1)

    if record_id < 1 or record_id > len(workouts):
        views.print_error(f"Workout ID must be between 1 and {len(workouts)}")
        raise typer.Exit(1)

    target = workouts[record_id - 1]
    label = target.completed_at.strftime("%Y-%m-%d %H:%M")
    if target.template_name:
        label = f"{label} {target.template_name}"
    views.console.print(
        f"Workout to delete: [bold]{escape(label)}[/bold] ({len(target.entries)} exercises)"
    )

    if not force and not views.confirm_action("Delete this workout?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    store.delete_workout_at(record_id - 1)
    views.print_success(f"Deleted workout #{record_id}: {label}")
