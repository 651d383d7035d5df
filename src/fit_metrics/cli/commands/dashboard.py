"""Dashboard commands: summary, one-rm, top, chart."""

import json
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Optional, cast

import typer

from ...core import metrics
from ...core.models import WEIGHT_UNITS, ChartDataPoint, MetricTrend, WeightUnit
from ...core.one_rep_max import (
    compute_progression,
    estimate_one_rep_max,
    exercise_names_in_order,
    progression_in_period,
    set_history,
    top_exercises,
)
from ...core.periods import TimePeriod
from ...core.units import weight_in
from ...io.serializers import ValidationError, parse_decimal, parse_timestamp
from .. import views
from ..app import HistoryPathOption, JsonOption, app, get_settings, open_store

AsOfOption = Annotated[
    Optional[str],
    typer.Option("--as-of", help="Evaluate trailing windows at this time (default: now)"),
]

UnitOption = Annotated[
    Optional[str],
    typer.Option("--unit", "-u", help="Weight unit for output: kg | lbs (default from config)"),
]


class ChartMetric(str, Enum):
    WORKOUTS = "workouts"
    EXERCISE_TIME = "exercise-time"
    BODY_WEIGHT = "body-weight"
    AVERAGE_1RM = "average-1rm"


def _resolve_now(as_of: str | None) -> datetime:
    calendar = get_settings().calendar
    if as_of is None:
        return calendar.now()
    try:
        return parse_timestamp(as_of, calendar.tzinfo)
    except ValidationError as e:
        views.print_error(f"Invalid --as-of: {e}")
        raise typer.Exit(1)


def _resolve_unit(unit: str | None) -> WeightUnit:
    resolved = unit or get_settings().weight_unit
    if resolved not in WEIGHT_UNITS:
        views.print_error(f"Unit must be one of: {', '.join(WEIGHT_UNITS)}")
        raise typer.Exit(1)
    return cast(WeightUnit, resolved)


def _trend_to_dict(trend: MetricTrend | None) -> dict[str, Any] | None:
    if trend is None:
        return None
    return {"direction": trend.direction, "percentage": round(trend.percentage, 2)}


def _points_to_json(points: list[ChartDataPoint]) -> list[dict[str, Any]]:
    return [{"date": p.date.isoformat(), "value": round(p.value, 2)} for p in points]


@app.command()
def summary(
    history_path: HistoryPathOption = None,
    unit: UnitOption = None,
    as_of: AsOfOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show dashboard cards: totals, this week, weight and average-1RM trends.
    """
    settings = get_settings()
    calendar = settings.calendar
    weight_unit = _resolve_unit(unit)
    now = _resolve_now(as_of)
    store = open_store(history_path)

    try:
        workouts = store.load_workouts()
        weights = store.load_bodyweights()
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    latest = weights[-1].weight if weights else None
    previous = weights[-2].weight if len(weights) > 1 else None
    weight_trend = metrics.weight_trend(latest, previous)

    window = settings.one_rep_max_window_days
    one_rm_change = metrics.average_one_rep_max_increase(
        workouts, now, window, calendar, weight_unit
    )
    one_rm_trend = metrics.average_one_rep_max_trend(
        workouts, now, window, calendar, weight_unit
    )

    result: dict[str, Any] = {
        "as_of": now.isoformat(),
        "weight_unit": weight_unit,
        "total_workouts": metrics.total_workouts(workouts),
        "total_exercise_seconds": metrics.total_exercise_time(workouts),
        "average_duration_seconds": metrics.average_workout_duration(workouts),
        "trailing_window_days": settings.trailing_window_days,
        "workouts_this_week": metrics.workouts_in_trailing_window(
            workouts, settings.trailing_window_days, now, calendar
        ),
        "weekly_average_workouts": round(
            metrics.weekly_average_workouts(
                workouts, now, settings.trailing_window_days, calendar
            ),
            3,
        ),
        "most_frequent_exercise": metrics.most_frequent_exercise(workouts),
        "latest_body_weight": weight_in(latest, weight_unit) if latest is not None else None,
        "weekly_average_body_weight": metrics.weekly_average_body_weight(
            weights, now, weight_unit, settings.trailing_window_days, calendar
        ),
        "weight_trend": _trend_to_dict(weight_trend),
        "average_one_rep_max": metrics.average_one_rep_max(workouts, calendar, weight_unit),
        "average_one_rep_max_change": (
            {
                "current": round(one_rm_change.current, 2),
                "previous": round(one_rm_change.previous, 2),
                "increase": round(one_rm_change.increase, 2),
                "percentage": round(one_rm_change.percentage, 2),
            }
            if one_rm_change is not None
            else None
        ),
        "average_one_rep_max_trend": _trend_to_dict(one_rm_trend),
    }

    if json_out:
        print(json.dumps(result, indent=2))
        return

    views.print_summary(result, weight_trend, one_rm_trend)


@app.command("one-rm")
def one_rm(
    exercise: Annotated[
        Optional[str],
        typer.Argument(help="Exercise name as logged (case-sensitive)"),
    ] = None,
    weight: Annotated[
        Optional[str],
        typer.Option("--weight", "-w", help="One-off estimate: load lifted"),
    ] = None,
    reps: Annotated[
        Optional[int],
        typer.Option("--reps", "-r", help="One-off estimate: reps performed"),
    ] = None,
    exclude_warmups: Annotated[
        bool,
        typer.Option("--exclude-warmups", help="Ignore warm-up entries"),
    ] = False,
    period: Annotated[
        Optional[TimePeriod],
        typer.Option("--period", "-P", help="Limit to this trailing period"),
    ] = None,
    sets: Annotated[
        bool,
        typer.Option("--sets", help="List every set with its estimated 1RM"),
    ] = False,
    unit: UnitOption = None,
    as_of: AsOfOption = None,
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Estimated 1RM (Epley) progression for an exercise.

    With --weight and --reps, estimate a single set instead:

      fit-metrics one-rm --weight 100 --reps 5

    --period keeps the days inside the trailing window ending on --as-of,
    today included. --sets lists every set and stars each workout's best.
    """
    weight_unit = _resolve_unit(unit)

    if weight is not None or reps is not None:
        if weight is None or reps is None:
            views.print_error("Give both --weight and --reps")
            raise typer.Exit(1)
        try:
            load = parse_decimal(weight)
        except ValidationError as e:
            views.print_error(str(e))
            raise typer.Exit(1)
        estimate = estimate_one_rep_max(load, reps)
        if json_out:
            print(json.dumps({"weight": load, "reps": reps, "estimated_max": round(estimate, 2),
                              "unit": weight_unit}, indent=2))
            return
        views.console.print(
            f"{reps} reps @ {load:g} {weight_unit} → estimated 1RM "
            f"[bold]{estimate:.1f} {weight_unit}[/bold]"
        )
        return

    if exercise is None:
        views.print_error("Give an EXERCISE name, or --weight and --reps")
        raise typer.Exit(1)

    calendar = get_settings().calendar
    now = _resolve_now(as_of)
    store = open_store(history_path)
    try:
        workouts = store.load_workouts()
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if sets:
        rows = set_history(
            exercise, workouts, calendar, weight_unit, include_warmups=not exclude_warmups
        )
        if json_out:
            print(json.dumps({
                "exercise": exercise,
                "unit": weight_unit,
                "sets": [
                    {
                        "workout": r.workout_completed_at.isoformat(),
                        "set": r.set_number,
                        "reps": r.reps,
                        "weight": r.weight.magnitude if r.weight is not None else None,
                        "estimated_max": (
                            round(r.estimated_max, 2) if r.estimated_max is not None else None
                        ),
                        "warmup": r.is_warmup,
                        "best": r.is_best,
                    }
                    for r in rows
                ],
            }, indent=2))
            return
        views.print_set_history(exercise, rows)
        return

    progression = compute_progression(
        exercise,
        workouts,
        calendar,
        weight_unit,
        include_warmups=not exclude_warmups,
    )
    if period is not None:
        progression = progression_in_period(progression, period, now, calendar)

    if json_out:
        print(json.dumps({
            "exercise": exercise,
            "unit": weight_unit,
            "period": period.value if period is not None else None,
            "progression": [
                {"date": p.date.isoformat(), "estimated_max": round(p.estimated_max.magnitude, 2)}
                for p in progression
            ],
        }, indent=2))
        return

    views.print_progression(exercise, progression)


@app.command()
def top(
    favorite: Annotated[
        Optional[list[str]],
        typer.Option("--favorite", "-f", help="Exercise to rank (repeat; default from config)"),
    ] = None,
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-l", help="Show at most this many"),
    ] = None,
    unit: UnitOption = None,
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Rank favourite exercises by current estimated 1RM.

    With no favourites configured, every logged exercise is ranked.
    """
    settings = get_settings()
    weight_unit = _resolve_unit(unit)
    store = open_store(history_path)

    try:
        workouts = store.load_workouts()
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    names = favorite or settings.favorites or exercise_names_in_order(workouts)
    ranked = top_exercises(workouts, names, limit, settings.calendar, weight_unit)

    if json_out:
        print(json.dumps({
            "unit": weight_unit,
            "top": [
                {"rank": t.rank, "name": t.name, "estimated_max": round(t.estimated_max, 2)}
                for t in ranked
            ],
        }, indent=2))
        return

    views.print_top_exercises(ranked, weight_unit)


@app.command()
def chart(
    metric: Annotated[
        ChartMetric,
        typer.Argument(help="workouts | exercise-time | body-weight | average-1rm"),
    ],
    period: Annotated[
        TimePeriod,
        typer.Option("--period", "-P", help="day | week | month | six_months | year"),
    ] = TimePeriod.WEEK,
    unit: UnitOption = None,
    as_of: AsOfOption = None,
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Bar chart of a metric over the trailing window for a period.

    week and month are drawn per day; six_months and year per month.
    """
    calendar = get_settings().calendar
    weight_unit = _resolve_unit(unit)
    now = _resolve_now(as_of)
    store = open_store(history_path)

    try:
        if metric == ChartMetric.BODY_WEIGHT:
            points = metrics.aggregate_body_weight(
                store.load_bodyweights(), period, calendar, now, weight_unit
            )
            title = f"Body Weight ({weight_unit})"
        else:
            workouts = store.load_workouts()
            if metric == ChartMetric.WORKOUTS:
                points = metrics.aggregate_workout_counts(workouts, period, calendar, now)
                title = "Workouts"
            elif metric == ChartMetric.EXERCISE_TIME:
                points = metrics.aggregate_exercise_time(workouts, period, calendar, now)
                title = "Exercise Time (min)"
            else:
                points = metrics.aggregate_average_one_rep_max(
                    workouts, period, calendar, now, weight_unit
                )
                title = f"Average 1RM ({weight_unit})"
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({
            "metric": metric.value,
            "period": period.value,
            "points": _points_to_json(points),
        }, indent=2))
        return

    views.print_chart(points, period, f"{title}, {period.display_name}")
