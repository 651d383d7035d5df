"""
Pure dashboard metric functions.

Summary statistics and time-bucketed chart series over workout history and
body-weight logs. All functions are pure and never raise on insufficient
data: they return None, 0 or an empty list instead.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Callable, Iterable, Sequence, TypeVar

from .config import ONE_RM_COMPARISON_DAYS, TRAILING_WINDOW_DAYS, TREND_NEUTRAL_THRESHOLD
from .models import (
    BodyWeightEntry,
    ChartDataPoint,
    MetricTrend,
    OneRepMaxChange,
    WeightUnit,
    WeightValue,
    WorkoutRecord,
)
from .one_rep_max import current_one_rep_max, exercise_names_in_order
from .periods import DEFAULT_CALENDAR, CalendarPolicy, TimePeriod, bucket_start, trailing_buckets
from .units import to_kilograms, weight_in

T = TypeVar("T")


# =============================================================================
# Summary statistics
# =============================================================================


def total_workouts(workouts: Sequence[WorkoutRecord]) -> int:
    """Number of completed workouts."""
    return len(workouts)


def total_exercise_time(workouts: Sequence[WorkoutRecord]) -> int:
    """
    Sum of stored workout durations in seconds.

    Workouts without a stored duration contribute nothing.
    """
    return sum(w.duration_seconds for w in workouts if w.duration_seconds is not None)


def average_workout_duration(workouts: Sequence[WorkoutRecord]) -> int | None:
    """
    Integer mean of stored durations in seconds.

    Returns:
        Truncated mean, or None when no workout has a duration
    """
    durations = [w.duration_seconds for w in workouts if w.duration_seconds is not None]
    if not durations:
        return None
    return sum(durations) // len(durations)


def _within_window(
    when: datetime,
    now: datetime,
    window_days: int,
    calendar: CalendarPolicy | None,
) -> bool:
    cal = calendar or DEFAULT_CALENDAR
    return cal.localize(when) >= cal.localize(now) - timedelta(days=window_days)


def workouts_in_trailing_window(
    workouts: Sequence[WorkoutRecord],
    window_days: int,
    now: datetime,
    calendar: CalendarPolicy | None = None,
) -> int:
    """
    Count workouts completed within the last *window_days* days.

    Args:
        workouts: Completed workouts
        window_days: Window length in days
        now: End of the window
        calendar: Zone used to read naive timestamps

    Returns:
        Number of workouts with completed_at >= now - window_days
    """
    return sum(1 for w in workouts if _within_window(w.completed_at, now, window_days, calendar))


def most_frequent_exercise(workouts: Sequence[WorkoutRecord]) -> str | None:
    """
    Exercise name with the most entries across all workouts.

    Ties go to the name that first appeared in the history.
    """
    counts: dict[str, int] = {}
    for workout in workouts:
        for entry in workout.entries:
            counts[entry.exercise_name] = counts.get(entry.exercise_name, 0) + 1

    if not counts:
        return None
    return max(counts, key=lambda name: counts[name])


def _trend(change: float, base: float) -> MetricTrend:
    if abs(change) < TREND_NEUTRAL_THRESHOLD:
        direction = "neutral"
    elif change > 0:
        direction = "up"
    else:
        direction = "down"
    percentage = abs(change / base) * 100 if base != 0 else 0.0
    return MetricTrend(direction=direction, percentage=percentage)


def weight_trend(
    current: WeightValue | None,
    previous: WeightValue | None,
) -> MetricTrend | None:
    """
    Compare two weight readings.

    The previous reading is converted into the current reading's unit, so
    the neutral threshold (0.1) is in that unit.

    Args:
        current: Latest reading
        previous: Reading to compare against

    Returns:
        MetricTrend, or None if either reading is missing
    """
    if current is None or previous is None:
        return None

    previous_in_current = weight_in(previous, current.unit)
    change = current.magnitude - previous_in_current
    return _trend(change, previous_in_current)


def average_one_rep_max(
    workouts: Sequence[WorkoutRecord],
    calendar: CalendarPolicy | None = None,
    unit: WeightUnit = "kg",
) -> float | None:
    """
    Mean of the current estimated 1RM of every exercise in *workouts*.

    Each distinct exercise contributes one value (its latest progression
    point); exercises without a usable weighted set are left out.

    Returns:
        Average 1RM, or None when no exercise has an estimate
    """
    values = []
    for name in exercise_names_in_order(workouts):
        current = current_one_rep_max(name, workouts, calendar, unit)
        if current is not None:
            values.append(current)

    if not values:
        return None
    return sum(values) / len(values)


def average_one_rep_max_increase(
    workouts: Sequence[WorkoutRecord],
    now: datetime,
    window_days: int = ONE_RM_COMPARISON_DAYS,
    calendar: CalendarPolicy | None = None,
    unit: WeightUnit = "kg",
) -> OneRepMaxChange | None:
    """
    Average 1RM of the recent window vs. everything before it.

    Workouts completed on or after now - window_days form the current
    period; older workouts form the previous one.

    Returns:
        OneRepMaxChange, or None if either period has no estimate
    """
    recent: list[WorkoutRecord] = []
    older: list[WorkoutRecord] = []
    for w in workouts:
        if _within_window(w.completed_at, now, window_days, calendar):
            recent.append(w)
        else:
            older.append(w)

    current_avg = average_one_rep_max(recent, calendar, unit)
    previous_avg = average_one_rep_max(older, calendar, unit)
    if current_avg is None or previous_avg is None:
        return None

    increase = current_avg - previous_avg
    return OneRepMaxChange(
        current=current_avg,
        previous=previous_avg,
        increase=increase,
        percentage=(increase / previous_avg) * 100,
    )


def average_one_rep_max_trend(
    workouts: Sequence[WorkoutRecord],
    now: datetime,
    window_days: int = ONE_RM_COMPARISON_DAYS,
    calendar: CalendarPolicy | None = None,
    unit: WeightUnit = "kg",
) -> MetricTrend | None:
    """Trend arrow for the average 1RM card."""
    change = average_one_rep_max_increase(workouts, now, window_days, calendar, unit)
    if change is None:
        return None
    return _trend(change.increase, change.previous)


def weekly_average_body_weight(
    entries: Sequence[BodyWeightEntry],
    now: datetime,
    unit: WeightUnit = "kg",
    window_days: int = TRAILING_WINDOW_DAYS,
    calendar: CalendarPolicy | None = None,
) -> float | None:
    """Mean body weight over the trailing window, in *unit*."""
    recent = [
        weight_in(e.weight, unit)
        for e in entries
        if _within_window(e.recorded_at, now, window_days, calendar)
    ]
    if not recent:
        return None
    return sum(recent) / len(recent)


def weekly_average_workouts(
    workouts: Sequence[WorkoutRecord],
    now: datetime,
    window_days: int = TRAILING_WINDOW_DAYS,
    calendar: CalendarPolicy | None = None,
) -> float:
    """Workouts per day over the trailing window."""
    if window_days <= 0:
        return 0.0
    return workouts_in_trailing_window(workouts, window_days, now, calendar) / window_days


def workout_volume(workout: WorkoutRecord) -> float | None:
    """
    Total lifted volume: sum of reps × weight (kg) over all sets.

    Returns:
        Volume in kg, or None when the workout has no weighted sets
    """
    total = 0.0
    for entry in workout.entries:
        for s in entry.sets:
            if s.reps is not None and s.weight is not None:
                total += s.reps * to_kilograms(s.weight)
    return total if total > 0 else None


def format_duration(seconds: int) -> str:
    """Render seconds as "1h 5m" or "42m"."""
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_average_duration(seconds: int | None) -> str:
    if seconds is None:
        return "N/A"
    return f"{seconds // 60}m"


# =============================================================================
# Bucketed chart series
# =============================================================================


def _aggregate(
    samples: Iterable[tuple[datetime, T]],
    period: TimePeriod,
    reduce: Callable[[list[T]], float | None],
    calendar: CalendarPolicy | None,
    now: datetime | None,
) -> list[ChartDataPoint]:
    """
    Group (timestamp, value) samples into buckets and reduce each bucket.

    Without *now*: sparse series, one point per non-empty bucket of *period*.
    With *now*: exactly one point per bucket of trailing_buckets(period, now),
    zero-filled; samples outside the grid are dropped.
    """
    if now is None:
        grouped: dict[datetime, list[T]] = defaultdict(list)
        for when, value in samples:
            grouped[bucket_start(when, period, calendar)].append(value)

        points = []
        for key in sorted(grouped):
            reduced = reduce(grouped[key])
            if reduced is not None:
                points.append(ChartDataPoint(date=key, value=reduced))
        return points

    grid = trailing_buckets(period, now, calendar)
    resolution = period.trailing_resolution
    slots: dict[datetime, list[T]] = {b: [] for b in grid}
    for when, value in samples:
        key = bucket_start(when, resolution, calendar)
        if key in slots:
            slots[key].append(value)

    result = []
    for b in grid:
        reduced = reduce(slots[b]) if slots[b] else None
        result.append(ChartDataPoint(date=b, value=reduced if reduced is not None else 0.0))
    return result


def _mean(values: list[float]) -> float | None:
    return sum(values) / len(values) if values else None


def aggregate_workout_counts(
    workouts: Sequence[WorkoutRecord],
    period: TimePeriod,
    calendar: CalendarPolicy | None = None,
    now: datetime | None = None,
) -> list[ChartDataPoint]:
    """
    Number of workouts per bucket, keyed on completed_at.

    Args:
        workouts: Completed workouts
        period: Chart period
        calendar: Bucketing policy
        now: When given, emit the fixed trailing grid ending at now

    Returns:
        Ascending ChartDataPoint series
    """
    return _aggregate(
        ((w.completed_at, 1.0) for w in workouts),
        period,
        lambda vals: float(sum(vals)),
        calendar,
        now,
    )


def aggregate_exercise_time(
    workouts: Sequence[WorkoutRecord],
    period: TimePeriod,
    calendar: CalendarPolicy | None = None,
    now: datetime | None = None,
) -> list[ChartDataPoint]:
    """Exercise minutes per bucket; workouts without a duration are skipped."""
    return _aggregate(
        (
            (w.completed_at, w.duration_seconds / 60.0)
            for w in workouts
            if w.duration_seconds is not None
        ),
        period,
        lambda vals: float(sum(vals)),
        calendar,
        now,
    )


def aggregate_body_weight(
    entries: Sequence[BodyWeightEntry],
    period: TimePeriod,
    calendar: CalendarPolicy | None = None,
    now: datetime | None = None,
    unit: WeightUnit = "kg",
) -> list[ChartDataPoint]:
    """Mean body weight per bucket, in *unit*."""
    return _aggregate(
        ((e.recorded_at, weight_in(e.weight, unit)) for e in entries),
        period,
        _mean,
        calendar,
        now,
    )


def aggregate_average_one_rep_max(
    workouts: Sequence[WorkoutRecord],
    period: TimePeriod,
    calendar: CalendarPolicy | None = None,
    now: datetime | None = None,
    unit: WeightUnit = "kg",
) -> list[ChartDataPoint]:
    """
    Average 1RM (see average_one_rep_max) of the workouts in each bucket.

    In sparse mode buckets without any estimate are omitted.
    """
    return _aggregate(
        ((w.completed_at, w) for w in workouts),
        period,
        lambda group: average_one_rep_max(group, calendar, unit),
        calendar,
        now,
    )


def points_from_samples(
    samples: Iterable[tuple[datetime, float]],
    calendar: CalendarPolicy | None = None,
) -> list[ChartDataPoint]:
    """
    Turn caller-supplied (timestamp, value) pairs into a sorted series.

    Used for heart-rate and step data that the caller fetched elsewhere.
    """
    return sorted(
        (ChartDataPoint(date=when, value=float(value)) for when, value in samples),
        key=lambda p: (calendar or DEFAULT_CALENDAR).localize(p.date),
    )
