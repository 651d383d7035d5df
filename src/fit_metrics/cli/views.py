"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of workout and body data.
"""

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.ascii_plot import create_progression_plot, create_series_bar_chart
from ..core.metrics import format_average_duration, format_duration, workout_volume
from ..core.models import (
    BodyMeasurementSample,
    BodyWeightEntry,
    ChartDataPoint,
    MetricTrend,
    OneRepMaxPoint,
    SetEstimate,
    TopExercise,
    WorkoutRecord,
)
from ..core.periods import TimePeriod

console = Console()


def _fmt_trend(trend: MetricTrend | None) -> str:
    if trend is None:
        return "-"
    color = {"up": "green", "down": "red", "neutral": "dim"}[trend.direction]
    return f"[{color}]{trend.arrow} {trend.percentage:.1f}%[/{color}]"


def format_workout_table(workouts: list[WorkoutRecord]) -> Table:
    """
    Create a Rich table displaying workout history.

    Args:
        workouts: Workouts sorted by completed_at

    Returns:
        Rich Table object
    """
    table = Table(title="Workout History")

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Completed", style="cyan")
    table.add_column("Template", style="magenta")
    table.add_column("Exercises", style="green")
    table.add_column("Sets", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Volume(kg)", justify="right", style="bold")

    for i, workout in enumerate(workouts, 1):
        n_sets = sum(len(e.sets) for e in workout.entries)
        volume = workout_volume(workout)
        table.add_row(
            str(i),
            workout.completed_at.strftime("%Y-%m-%d %H:%M"),
            escape(workout.template_name or "-"),
            escape(", ".join(dict.fromkeys(workout.exercise_names())) or "-"),
            str(n_sets),
            format_duration(workout.derived_duration_seconds),
            f"{volume:.0f}" if volume is not None else "-",
        )

    return table


def print_history(workouts: list[WorkoutRecord]) -> None:
    """
    Print workout history to console.

    Args:
        workouts: Workouts to display
    """
    if not workouts:
        console.print("[yellow]No workouts recorded yet.[/yellow]")
        return

    console.print(format_workout_table(workouts))


def print_body_log(
    weights: list[BodyWeightEntry],
    measurements: list[BodyMeasurementSample],
) -> None:
    """Print body-weight and measurement logs, if any."""
    if weights:
        table = Table(title="Body Weight")
        table.add_column("Recorded", style="cyan")
        table.add_column("Weight", justify="right", style="bold")
        for entry in weights:
            table.add_row(entry.recorded_at.strftime("%Y-%m-%d %H:%M"), str(entry.weight))
        console.print(table)

    if measurements:
        table = Table(title="Measurements")
        table.add_column("Recorded", style="cyan")
        table.add_column("Kind", style="magenta")
        table.add_column("Value", justify="right")
        for sample in measurements:
            table.add_row(
                sample.recorded_at.strftime("%Y-%m-%d %H:%M"),
                escape(sample.kind),
                str(sample.value),
            )
        console.print(table)


def print_summary(
    summary: dict[str, Any],
    weight_trend: MetricTrend | None,
    one_rm_trend: MetricTrend | None,
) -> None:
    """
    Print dashboard summary cards.

    Args:
        summary: Values built by the summary command (same dict as --json)
        weight_trend: Latest vs. previous body weight
        one_rm_trend: Average 1RM of the recent window vs. older history
    """
    unit = summary["weight_unit"]
    table = Table(title="Dashboard", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="bold")
    table.add_column("Trend", justify="right")

    table.add_row("Total workouts", str(summary["total_workouts"]), "")
    table.add_row("Total exercise time", format_duration(summary["total_exercise_seconds"]), "")
    table.add_row(
        "Average duration",
        format_average_duration(summary["average_duration_seconds"]),
        "",
    )
    table.add_row(
        f"Workouts (last {summary['trailing_window_days']} days)",
        str(summary["workouts_this_week"]),
        "",
    )
    table.add_row("Most frequent exercise", escape(summary["most_frequent_exercise"] or "-"), "")

    latest = summary["latest_body_weight"]
    table.add_row(
        "Body weight",
        f"{latest:.1f} {unit}" if latest is not None else "-",
        _fmt_trend(weight_trend),
    )
    avg_rm = summary["average_one_rep_max"]
    table.add_row(
        "Average 1RM",
        f"{avg_rm:.1f} {unit}" if avg_rm is not None else "-",
        _fmt_trend(one_rm_trend),
    )

    console.print(table)


def format_progression_table(
    exercise_name: str,
    progression: list[OneRepMaxPoint],
) -> Table:
    """Rich table of daily estimated 1RM values."""
    table = Table(title=f"Estimated 1RM: {escape(exercise_name)}")
    table.add_column("Date", style="cyan")
    table.add_column("Est. 1RM", justify="right", style="bold")
    table.add_column("Change", justify="right")

    previous: float | None = None
    for point in progression:
        value = point.estimated_max.magnitude
        change = "" if previous is None else f"{value - previous:+.1f}"
        table.add_row(point.date.strftime("%Y-%m-%d"), str(point.estimated_max), change)
        previous = value

    return table


def print_progression(exercise_name: str, progression: list[OneRepMaxPoint]) -> None:
    """
    Print a 1RM progression table followed by its ASCII chart.

    Args:
        exercise_name: Exercise shown in titles
        progression: Output of compute_progression
    """
    if not progression:
        console.print(f"[yellow]No weighted sets recorded for {escape(exercise_name)}.[/yellow]")
        return

    console.print(format_progression_table(exercise_name, progression))
    if len(progression) > 1:
        console.print()
        console.print(escape(create_progression_plot(progression, exercise_name)))


def format_set_history_table(exercise_name: str, rows: list[SetEstimate]) -> Table:
    """
    Rich table of every logged set with its estimated 1RM.

    The best set of each workout is starred.

    Args:
        exercise_name: Exercise shown in the title
        rows: Output of set_history

    Returns:
        Rich Table object
    """
    table = Table(title=f"Sets: {escape(exercise_name)}")
    table.add_column("Workout", style="cyan")
    table.add_column("Set", justify="right", style="dim")
    table.add_column("Weight", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("Est. 1RM", justify="right", style="bold")
    table.add_column("", width=2)

    for row in rows:
        set_label = f"{row.set_number}w" if row.is_warmup else str(row.set_number)
        table.add_row(
            row.workout_completed_at.strftime("%Y-%m-%d %H:%M"),
            set_label,
            str(row.weight) if row.weight is not None else "-",
            str(row.reps) if row.reps is not None else "-",
            f"{row.estimated_max:.1f}" if row.estimated_max is not None else "-",
            "★" if row.is_best else "",
        )

    return table


def print_set_history(exercise_name: str, rows: list[SetEstimate]) -> None:
    if not rows:
        console.print(f"[yellow]No sets recorded for {escape(exercise_name)}.[/yellow]")
        return
    console.print(format_set_history_table(exercise_name, rows))


def print_top_exercises(top: list[TopExercise], unit: str) -> None:
    """Print favourite exercises ranked by estimated 1RM."""
    if not top:
        console.print("[yellow]No favourite exercises with weighted sets yet.[/yellow]")
        return

    table = Table(title="Top Exercises")
    table.add_column("Rank", justify="right", style="dim")
    table.add_column("Exercise", style="green")
    table.add_column("Est. 1RM", justify="right", style="bold")
    for item in top:
        table.add_row(str(item.rank), escape(item.name), f"{item.estimated_max:.1f} {unit}")
    console.print(table)


def print_body_fat(percent: float | None) -> None:
    if percent is None:
        print_warning("Could not estimate body fat from these measurements.")
        return
    console.print(f"Estimated body fat: [bold]{percent:.1f}%[/bold]")


def print_chart(points: list[ChartDataPoint], period: TimePeriod, title: str) -> None:
    """
    Print a bucketed series as a horizontal bar chart.

    Args:
        points: Bucketed series
        period: Period the series was built for
        title: Chart title
    """
    chart = create_series_bar_chart(points, period.trailing_resolution, title=title)
    console.print(escape(chart))


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{escape(message)}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {escape(message)}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {escape(message)}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{escape(message)}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{escape(message)} \\[y/N]: ")
    return response.lower() in ("y", "yes")
