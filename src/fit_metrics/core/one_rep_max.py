"""
One-rep-max estimation and per-exercise progression.

Uses the Epley formula:

    1RM = weight × (1 + reps / 30)

Progression points are the best estimated 1RM per workout, collapsed to one
point per calendar day (see periods.CalendarPolicy for the day boundary).
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Sequence

from .config import EPLEY_REPS_DIVISOR
from .models import (
    OneRepMaxPoint,
    SetEstimate,
    SetRecord,
    TopExercise,
    WeightUnit,
    WeightValue,
    WorkoutRecord,
)
from .periods import (
    DEFAULT_CALENDAR,
    CalendarPolicy,
    TimePeriod,
    bucket_start,
    date_range,
    start_of_day,
)
from .units import weight_in


def estimate_one_rep_max(weight: float, reps: int) -> float:
    """
    Estimate 1RM using the Epley formula.

    Args:
        weight: Load lifted (any unit; the result is in the same unit)
        reps: Reps performed

    Returns:
        Estimated 1RM, or 0.0 when reps <= 0 or weight <= 0
    """
    if reps <= 0 or weight <= 0:
        return 0.0
    return weight * (1 + reps / EPLEY_REPS_DIVISOR)


def best_set(
    sets: Iterable[SetRecord],
    unit: WeightUnit = "kg",
) -> tuple[float, datetime] | None:
    """
    Find the completed set with the highest estimated 1RM.

    Sets missing reps, weight or completed_at are skipped. Ties keep the
    earlier set.

    Returns:
        (estimate in *unit*, completed_at of that set), or None
    """
    best: tuple[float, datetime] | None = None
    for s in sets:
        if s.reps is None or s.weight is None or s.completed_at is None:
            continue
        est = estimate_one_rep_max(weight_in(s.weight, unit), s.reps)
        if est > 0 and (best is None or est > best[0]):
            best = (est, s.completed_at)
    return best


def compute_progression(
    exercise_name: str,
    workouts: Sequence[WorkoutRecord],
    calendar: CalendarPolicy | None = None,
    unit: WeightUnit = "kg",
    include_warmups: bool = True,
) -> list[OneRepMaxPoint]:
    """
    Estimated 1RM history for one exercise.

    1. Entries are matched on exact (case-sensitive) exercise name.
    2. Each workout contributes its best set across all matching entries.
    3. Points on the same calendar day collapse to the highest estimate.
    4. Result is sorted ascending by date.

    Args:
        exercise_name: Exercise to track
        workouts: Completed workouts, any order
        calendar: Day-boundary policy (default UTC)
        unit: Unit of the returned estimates
        include_warmups: Whether warm-up entries count

    Returns:
        One OneRepMaxPoint per day with a usable set
    """
    cal = calendar or DEFAULT_CALENDAR
    per_workout: list[tuple[float, datetime]] = []

    for workout in sorted(workouts, key=lambda w: cal.localize(w.completed_at)):
        sets = [
            s
            for entry in workout.entries
            if entry.exercise_name == exercise_name and (include_warmups or not entry.is_warmup)
            for s in entry.sets
        ]
        best = best_set(sets, unit)
        if best is not None:
            per_workout.append(best)

    by_day: dict[datetime, tuple[float, datetime]] = {}
    for est, when in per_workout:
        day = bucket_start(when, TimePeriod.DAY, calendar)
        existing = by_day.get(day)
        if existing is None or est > existing[0]:
            by_day[day] = (est, when)

    ordered = sorted(by_day.items(), key=lambda kv: kv[0])
    return [
        OneRepMaxPoint(date=when, estimated_max=WeightValue(est, unit))
        for _, (est, when) in ordered
    ]


def progression_in_period(
    progression: Sequence[OneRepMaxPoint],
    period: TimePeriod,
    now: datetime | None = None,
    calendar: CalendarPolicy | None = None,
) -> list[OneRepMaxPoint]:
    """
    Keep the progression points that fall inside date_range(period, now).

    Points are compared by calendar day, so both boundary days count,
    including the day of *now*.
    """
    cal = calendar or DEFAULT_CALENDAR
    start, end = date_range(period, now, cal)
    return [p for p in progression if start <= start_of_day(p.date, cal) <= end]


def set_history(
    exercise_name: str,
    workouts: Sequence[WorkoutRecord],
    calendar: CalendarPolicy | None = None,
    unit: WeightUnit = "kg",
    include_warmups: bool = True,
) -> list[SetEstimate]:
    """
    Every logged set of one exercise with its estimated 1RM.

    Workouts are listed oldest first. Within each workout the set chosen by
    best_set() is flagged, so the listing shows which set produced that
    workout's progression value.

    Args:
        exercise_name: Exercise to list (exact name)
        workouts: Completed workouts, any order
        calendar: Zone used to order naive timestamps
        unit: Unit of weights and estimates
        include_warmups: Whether warm-up entries are listed

    Returns:
        SetEstimate rows in workout order, then set order
    """
    cal = calendar or DEFAULT_CALENDAR
    rows: list[SetEstimate] = []

    for workout in sorted(workouts, key=lambda w: cal.localize(w.completed_at)):
        entries = [
            e
            for e in workout.entries
            if e.exercise_name == exercise_name and (include_warmups or not e.is_warmup)
        ]
        best = best_set([s for e in entries for s in e.sets], unit)
        best_marked = False

        for entry in entries:
            for s in entry.sets:
                estimate = None
                weight = None
                if s.weight is not None:
                    weight = WeightValue(weight_in(s.weight, unit), unit)
                    if s.reps is not None:
                        estimate = estimate_one_rep_max(weight.magnitude, s.reps)

                is_best = (
                    not best_marked
                    and best is not None
                    and estimate == best[0]
                    and s.completed_at == best[1]
                )
                best_marked = best_marked or is_best
                rows.append(
                    SetEstimate(
                        workout_completed_at=workout.completed_at,
                        set_number=s.set_number,
                        reps=s.reps,
                        weight=weight,
                        estimated_max=estimate,
                        is_warmup=entry.is_warmup,
                        is_best=is_best,
                    )
                )

    return rows


def current_one_rep_max(
    exercise_name: str,
    workouts: Sequence[WorkoutRecord],
    calendar: CalendarPolicy | None = None,
    unit: WeightUnit = "kg",
) -> float | None:
    """Most recent progression value, or None when there is no usable set."""
    progression = compute_progression(exercise_name, workouts, calendar, unit)
    if not progression:
        return None
    return progression[-1].estimated_max.magnitude


def exercise_names_in_order(workouts: Sequence[WorkoutRecord]) -> list[str]:
    """Distinct exercise names in order of first appearance."""
    seen: dict[str, None] = {}
    for workout in workouts:
        for entry in workout.entries:
            seen.setdefault(entry.exercise_name, None)
    return list(seen)


def top_exercises(
    workouts: Sequence[WorkoutRecord],
    favorite_exercise_names: Iterable[str],
    limit: int | None = None,
    calendar: CalendarPolicy | None = None,
    unit: WeightUnit = "kg",
) -> list[TopExercise]:
    """
    Rank favourite exercises by current estimated 1RM.

    Only favourites that appear in *workouts* and have a computable 1RM are
    ranked. Equal estimates keep the order in which the exercises first
    appear in the history.

    Args:
        workouts: Completed workouts
        favorite_exercise_names: Names to consider
        limit: Keep at most this many (None = all)

    Returns:
        TopExercise list with ranks 1..N
    """
    favorites = set(favorite_exercise_names)
    if not favorites:
        return []

    scored: list[tuple[str, float]] = []
    for name in exercise_names_in_order(workouts):
        if name not in favorites:
            continue
        current = current_one_rep_max(name, workouts, calendar, unit)
        if current is not None:
            scored.append((name, current))

    scored.sort(key=lambda pair: pair[1], reverse=True)
    if limit is not None:
        scored = scored[: max(0, limit)]

    return [
        TopExercise(name=name, estimated_max=value, rank=i)
        for i, (name, value) in enumerate(scored, 1)
    ]
