"""
Tests for time-period bucketing and dashboard aggregation.

All timestamps are UTC unless a test sets a different calendar. The
reference "now" is Friday 2024-03-15 12:00 UTC.
"""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from fit_metrics.core import metrics
from fit_metrics.core.models import (
    BodyWeightEntry,
    ExerciseEntry,
    SetRecord,
    WeightValue,
    WorkoutRecord,
)
from fit_metrics.core.periods import (
    CalendarPolicy,
    TimePeriod,
    add_months,
    bucket_start,
    date_range,
    parse_week_start,
    trailing_buckets,
)

UTC = timezone.utc
NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


def _dt(month: int, day: int, hour: int = 10, year: int = 2024) -> datetime:
    return datetime(year, month, day, hour, tzinfo=UTC)


def _workout(
    when: datetime,
    exercises: list[tuple[str, int, float]] = (),  # type: ignore[assignment]
    duration: int | None = 3600,
) -> WorkoutRecord:
    entries = [
        ExerciseEntry(name, [SetRecord(1, reps=reps, weight=WeightValue(kg), completed_at=when)])
        for name, reps, kg in exercises
    ]
    return WorkoutRecord(
        started_at=when - timedelta(seconds=duration or 0),
        completed_at=when,
        entries=entries,
        duration_seconds=duration,
    )


def _weight(when: datetime, kg: float) -> BodyWeightEntry:
    return BodyWeightEntry(WeightValue(kg), when)


# ===========================================================================
# periods.py
# ===========================================================================


class TestBucketStart:
    def test_day(self):
        assert bucket_start(_dt(3, 15, 17), TimePeriod.DAY) == datetime(2024, 3, 15, tzinfo=UTC)

    def test_week_starts_monday_by_default(self):
        assert bucket_start(NOW, TimePeriod.WEEK) == datetime(2024, 3, 11, tzinfo=UTC)

    def test_week_start_sunday(self):
        cal = CalendarPolicy(week_start=6)
        assert bucket_start(NOW, TimePeriod.WEEK, cal) == datetime(2024, 3, 10, tzinfo=UTC)

    def test_week_on_its_first_day(self):
        monday = _dt(3, 11, 0)
        assert bucket_start(monday, TimePeriod.WEEK) == datetime(2024, 3, 11, tzinfo=UTC)

    def test_month_and_six_months_share_keys(self):
        expected = datetime(2024, 3, 1, tzinfo=UTC)
        assert bucket_start(NOW, TimePeriod.MONTH) == expected
        assert bucket_start(NOW, TimePeriod.SIX_MONTHS) == expected

    def test_year(self):
        assert bucket_start(NOW, TimePeriod.YEAR) == datetime(2024, 1, 1, tzinfo=UTC)

    def test_aware_input_converted_to_calendar_zone(self):
        ny = CalendarPolicy(timezone="America/New_York")
        # 02:00 UTC on the 15th is 22:00 EDT on the 14th
        result = bucket_start(_dt(3, 15, 2), TimePeriod.DAY, ny)
        assert result == datetime(2024, 3, 14, tzinfo=ZoneInfo("America/New_York"))

    def test_naive_input_is_calendar_wall_time(self):
        ny = CalendarPolicy(timezone="America/New_York")
        result = bucket_start(datetime(2024, 3, 15, 2, 0), TimePeriod.DAY, ny)
        assert result.date().isoformat() == "2024-03-15"
        assert result.tzinfo == ZoneInfo("America/New_York")

    def test_bucket_start_is_idempotent(self):
        for period in TimePeriod:
            start = bucket_start(NOW, period)
            assert bucket_start(start, period) == start


class TestCalendarPolicy:
    def test_invalid_week_start(self):
        with pytest.raises(ValueError):
            CalendarPolicy(week_start=7)

    def test_unknown_timezone(self):
        with pytest.raises(Exception):
            CalendarPolicy(timezone="Mars/Olympus_Mons")

    def test_parse_week_start_names(self):
        assert parse_week_start("monday") == 0
        assert parse_week_start("Sun") == 6
        assert parse_week_start("3") == 3
        with pytest.raises(ValueError):
            parse_week_start("someday")


class TestDateRange:
    def test_day_is_same_day(self):
        start, end = date_range(TimePeriod.DAY, NOW)
        assert start == end == datetime(2024, 3, 15, tzinfo=UTC)

    def test_week_is_seven_days(self):
        start, end = date_range(TimePeriod.WEEK, NOW)
        assert end - start == timedelta(days=7)

    def test_month_back_one_calendar_month(self):
        start, _ = date_range(TimePeriod.MONTH, NOW)
        assert start == datetime(2024, 2, 15, tzinfo=UTC)

    def test_six_months_and_year(self):
        assert date_range(TimePeriod.SIX_MONTHS, NOW)[0] == datetime(2023, 9, 15, tzinfo=UTC)
        assert date_range(TimePeriod.YEAR, NOW)[0] == datetime(2023, 3, 15, tzinfo=UTC)

    def test_add_months_clamps_day(self):
        assert add_months(datetime(2024, 3, 31), -1) == datetime(2024, 2, 29)
        assert add_months(datetime(2023, 12, 31), 2) == datetime(2024, 2, 29)


class TestTrailingBuckets:
    def test_day(self):
        assert trailing_buckets(TimePeriod.DAY, NOW) == [datetime(2024, 3, 15, tzinfo=UTC)]

    def test_week_is_seven_daily_buckets(self):
        grid = trailing_buckets(TimePeriod.WEEK, NOW)
        assert len(grid) == 7
        assert grid[0] == datetime(2024, 3, 9, tzinfo=UTC)
        assert grid[-1] == datetime(2024, 3, 15, tzinfo=UTC)

    def test_month_is_daily_over_previous_month(self):
        grid = trailing_buckets(TimePeriod.MONTH, NOW)
        # Feb 15 → Mar 15 in a leap year: 29 days
        assert len(grid) == 29
        assert grid[0] == datetime(2024, 2, 16, tzinfo=UTC)
        assert grid[-1] == datetime(2024, 3, 15, tzinfo=UTC)

    def test_six_months(self):
        grid = trailing_buckets(TimePeriod.SIX_MONTHS, NOW)
        assert len(grid) == 6
        assert grid[0] == datetime(2023, 10, 1, tzinfo=UTC)
        assert grid[-1] == datetime(2024, 3, 1, tzinfo=UTC)

    def test_year(self):
        grid = trailing_buckets(TimePeriod.YEAR, NOW)
        assert len(grid) == 12
        assert grid[0] == datetime(2023, 4, 1, tzinfo=UTC)

    def test_ascending(self):
        for period in TimePeriod:
            grid = trailing_buckets(period, NOW)
            assert grid == sorted(grid)


# ===========================================================================
# metrics.py  summary statistics
# ===========================================================================


class TestSummaryStatistics:
    def test_totals(self):
        workouts = [_workout(_dt(3, 1), duration=1800), _workout(_dt(3, 2), duration=None),
                    _workout(_dt(3, 3), duration=3601)]
        assert metrics.total_workouts(workouts) == 3
        assert metrics.total_exercise_time(workouts) == 5401

    def test_average_duration_truncates(self):
        workouts = [_workout(_dt(3, 1), duration=1800), _workout(_dt(3, 3), duration=3601)]
        # (1800 + 3601) // 2 = 2700
        assert metrics.average_workout_duration(workouts) == 2700

    def test_average_duration_absent_without_durations(self):
        assert metrics.average_workout_duration([_workout(_dt(3, 1), duration=None)]) is None
        assert metrics.average_workout_duration([]) is None

    def test_zero_duration_counts(self):
        assert metrics.average_workout_duration([_workout(_dt(3, 1), duration=0)]) == 0

    def test_trailing_window_boundary_inclusive(self):
        workouts = [
            _workout(NOW - timedelta(days=7)),
            _workout(NOW - timedelta(days=7, seconds=1)),
            _workout(NOW - timedelta(days=1)),
        ]
        assert metrics.workouts_in_trailing_window(workouts, 7, NOW) == 2

    def test_weekly_average_workouts(self):
        workouts = [_workout(NOW - timedelta(days=d)) for d in range(7)]
        assert metrics.weekly_average_workouts(workouts, NOW) == pytest.approx(1.0)


class TestMostFrequentExercise:
    def test_empty(self):
        assert metrics.most_frequent_exercise([]) is None

    def test_single_exercise(self):
        workouts = [_workout(_dt(3, d), [("Squat", 5, 100)]) for d in (1, 2)]
        assert metrics.most_frequent_exercise(workouts) == "Squat"

    def test_highest_count_wins(self):
        workouts = [
            _workout(_dt(3, 1), [("Bench", 5, 80), ("Squat", 5, 100)]),
            _workout(_dt(3, 2), [("Squat", 5, 100)]),
        ]
        assert metrics.most_frequent_exercise(workouts) == "Squat"

    def test_tie_goes_to_first_seen(self):
        workouts = [_workout(_dt(3, 1), [("Bench", 5, 80), ("Squat", 5, 100)])]
        assert metrics.most_frequent_exercise(workouts) == "Bench"


class TestWeightTrend:
    def test_equal_is_neutral(self):
        trend = metrics.weight_trend(WeightValue(70), WeightValue(70))
        assert trend.direction == "neutral"
        assert trend.percentage == 0.0

    def test_down(self):
        trend = metrics.weight_trend(WeightValue(69), WeightValue(70))
        assert trend.direction == "down"
        assert trend.percentage == pytest.approx(100 / 70)
        assert trend.arrow == "↓"

    def test_up(self):
        assert metrics.weight_trend(WeightValue(71), WeightValue(70)).direction == "up"

    def test_small_change_is_neutral(self):
        assert metrics.weight_trend(WeightValue(70.05), WeightValue(70)).direction == "neutral"

    def test_previous_converted_to_current_unit(self):
        # 70 kg ≈ 154.32 lbs
        trend = metrics.weight_trend(WeightValue(154.3, "lbs"), WeightValue(70, "kg"))
        assert trend.direction == "neutral"

    def test_missing_reading(self):
        assert metrics.weight_trend(None, WeightValue(70)) is None
        assert metrics.weight_trend(WeightValue(70), None) is None

    def test_zero_previous(self):
        trend = metrics.weight_trend(WeightValue(70), WeightValue(0))
        assert trend.direction == "up"
        assert trend.percentage == 0.0


class TestAverageOneRepMax:
    def test_mean_of_current_maxes(self):
        workouts = [
            _workout(_dt(3, 1), [("Squat", 5, 100), ("Bench", 5, 80)]),
        ]
        # (116.667 + 93.333) / 2
        assert metrics.average_one_rep_max(workouts) == pytest.approx(105.0)

    def test_uses_latest_point_per_exercise(self):
        workouts = [
            _workout(_dt(3, 1), [("Squat", 5, 120)]),
            _workout(_dt(3, 2), [("Squat", 5, 100)]),
        ]
        assert metrics.average_one_rep_max(workouts) == pytest.approx(100 * (1 + 5 / 30))

    def test_absent_without_weighted_sets(self):
        assert metrics.average_one_rep_max([_workout(_dt(3, 1))]) is None

    def test_increase_recent_vs_older(self):
        workouts = [
            _workout(_dt(1, 10), [("Squat", 5, 100)]),
            _workout(_dt(3, 10), [("Squat", 5, 110)]),
        ]
        change = metrics.average_one_rep_max_increase(workouts, NOW)
        assert change.previous == pytest.approx(116.6667, abs=1e-3)
        assert change.current == pytest.approx(128.3333, abs=1e-3)
        assert change.percentage == pytest.approx(10.0)

        trend = metrics.average_one_rep_max_trend(workouts, NOW)
        assert trend.direction == "up"
        assert trend.percentage == pytest.approx(10.0)

    def test_increase_absent_without_older_history(self):
        workouts = [_workout(_dt(3, 10), [("Squat", 5, 110)])]
        assert metrics.average_one_rep_max_increase(workouts, NOW) is None
        assert metrics.average_one_rep_max_trend(workouts, NOW) is None


class TestBodyAndVolumeHelpers:
    def test_weekly_average_body_weight(self):
        entries = [_weight(NOW - timedelta(days=10), 90), _weight(NOW - timedelta(days=2), 80),
                   _weight(NOW - timedelta(days=1), 81)]
        assert metrics.weekly_average_body_weight(entries, NOW) == pytest.approx(80.5)

    def test_weekly_average_body_weight_empty(self):
        assert metrics.weekly_average_body_weight([], NOW) is None

    def test_workout_volume(self):
        w = _workout(_dt(3, 1), [("Squat", 5, 100), ("Bench", 8, 60)])
        assert metrics.workout_volume(w) == pytest.approx(5 * 100 + 8 * 60)

    def test_workout_volume_absent(self):
        assert metrics.workout_volume(_workout(_dt(3, 1))) is None

    def test_format_duration(self):
        assert metrics.format_duration(3900) == "1h 5m"
        assert metrics.format_duration(2520) == "42m"
        assert metrics.format_average_duration(None) == "N/A"
        assert metrics.format_average_duration(1799) == "29m"


# ===========================================================================
# metrics.py  bucketed series
# ===========================================================================


class TestAggregateSeries:
    def test_week_grid_has_seven_points(self):
        same_day = _dt(3, 13)
        workouts = [_workout(same_day + timedelta(minutes=i)) for i in range(3)]
        points = metrics.aggregate_workout_counts(workouts, TimePeriod.WEEK, now=NOW)

        assert len(points) == 7
        assert [p.value for p in points] == [0, 0, 0, 0, 3, 0, 0]
        assert points[4].date == datetime(2024, 3, 13, tzinfo=UTC)

    def test_empty_history_still_fills_grid(self):
        for period, n in ((TimePeriod.DAY, 1), (TimePeriod.WEEK, 7),
                          (TimePeriod.SIX_MONTHS, 6), (TimePeriod.YEAR, 12)):
            points = metrics.aggregate_workout_counts([], period, now=NOW)
            assert len(points) == n
            assert all(p.value == 0 for p in points)

    def test_samples_outside_grid_dropped(self):
        workouts = [_workout(_dt(1, 1)), _workout(_dt(3, 15, 9))]
        points = metrics.aggregate_workout_counts(workouts, TimePeriod.WEEK, now=NOW)
        assert sum(p.value for p in points) == 1

    def test_sparse_without_now(self):
        workouts = [_workout(_dt(3, 1)), _workout(_dt(3, 1, 18)), _workout(_dt(3, 20))]
        points = metrics.aggregate_workout_counts(workouts, TimePeriod.DAY)
        assert [(p.date.day, p.value) for p in points] == [(1, 2.0), (20, 1.0)]

    def test_sparse_week_buckets(self):
        workouts = [_workout(_dt(3, 11)), _workout(_dt(3, 17)), _workout(_dt(3, 18))]
        points = metrics.aggregate_workout_counts(workouts, TimePeriod.WEEK)
        assert [(p.date.day, p.value) for p in points] == [(11, 2.0), (18, 1.0)]

    def test_six_months_groups_by_month(self):
        workouts = [_workout(_dt(1, 5)), _workout(_dt(1, 25)), _workout(_dt(3, 2))]
        points = metrics.aggregate_workout_counts(workouts, TimePeriod.SIX_MONTHS, now=NOW)
        assert len(points) == 6
        by_month = {p.date.month: p.value for p in points}
        assert by_month[1] == 2
        assert by_month[2] == 0
        assert by_month[3] == 1

    def test_exercise_time_in_minutes_skips_missing(self):
        workouts = [
            _workout(_dt(3, 14), duration=1800),
            _workout(_dt(3, 14, 18), duration=None),
            _workout(_dt(3, 15, 8), duration=2700),
        ]
        points = metrics.aggregate_exercise_time(workouts, TimePeriod.WEEK, now=NOW)
        assert points[-2].value == pytest.approx(30.0)
        assert points[-1].value == pytest.approx(45.0)

    def test_body_weight_mean_per_bucket(self):
        entries = [_weight(_dt(3, 14, 7), 80), _weight(_dt(3, 14, 20), 81)]
        points = metrics.aggregate_body_weight(entries, TimePeriod.WEEK, now=NOW)
        assert len(points) == 7
        assert points[-2].value == pytest.approx(80.5)
        assert points[-1].value == 0.0

    def test_body_weight_in_pounds(self):
        entries = [_weight(_dt(3, 1), 100)]
        points = metrics.aggregate_body_weight(entries, TimePeriod.MONTH, unit="lbs")
        assert points[0].value == pytest.approx(220.462, abs=1e-3)

    def test_average_one_rep_max_series(self):
        workouts = [_workout(_dt(3, 14), [("Squat", 5, 100)])]
        points = metrics.aggregate_average_one_rep_max(workouts, TimePeriod.WEEK, now=NOW)
        assert len(points) == 7
        assert points[-2].value == pytest.approx(116.6667, abs=1e-3)
        assert points[-1].value == 0.0

    def test_average_one_rep_max_sparse_skips_unweighted(self):
        workouts = [_workout(_dt(3, 1)), _workout(_dt(3, 2), [("Squat", 5, 100)])]
        points = metrics.aggregate_average_one_rep_max(workouts, TimePeriod.DAY)
        assert len(points) == 1
        assert points[0].date.day == 2

    def test_bucketing_follows_calendar_timezone(self):
        ny = CalendarPolicy(timezone="America/New_York")
        workouts = [_workout(datetime(2024, 3, 15, 2, 0, tzinfo=UTC))]
        utc_points = metrics.aggregate_workout_counts(workouts, TimePeriod.DAY)
        ny_points = metrics.aggregate_workout_counts(workouts, TimePeriod.DAY, calendar=ny)
        assert utc_points[0].date.day == 15
        assert ny_points[0].date.day == 14

    def test_points_from_samples_sorted(self):
        points = metrics.points_from_samples([(_dt(3, 2), 70), (_dt(3, 1), 65)])
        assert [p.value for p in points] == [65.0, 70.0]


# ===========================================================================
# Naive and aware timestamps together
# ===========================================================================


class TestMixedTimestamps:
    """Naive values are wall-clock time in the calendar zone, never compared raw."""

    def test_trailing_window_counts_naive_and_aware(self):
        workouts = [
            _workout(datetime(2024, 3, 14, 10)),
            _workout(_dt(3, 13)),
            _workout(datetime(2024, 3, 1, 10)),
        ]
        assert metrics.workouts_in_trailing_window(workouts, 7, NOW) == 2

    def test_naive_now_with_aware_workouts(self):
        workouts = [_workout(_dt(3, 14)), _workout(_dt(3, 1))]
        naive_now = datetime(2024, 3, 15, 12)
        assert metrics.workouts_in_trailing_window(workouts, 7, naive_now) == 1
        assert metrics.weekly_average_workouts(workouts, naive_now) == pytest.approx(1 / 7)

    def test_naive_read_in_calendar_zone(self):
        # 11:00 wall clock on Mar 8 is 16:00 UTC in New York (EST)
        workouts = [_workout(datetime(2024, 3, 8, 11))]
        ny = CalendarPolicy(timezone="America/New_York")
        assert metrics.workouts_in_trailing_window(workouts, 7, NOW) == 0
        assert metrics.workouts_in_trailing_window(workouts, 7, NOW, ny) == 1

    def test_one_rep_max_increase_with_mixed_history(self):
        workouts = [
            _workout(datetime(2024, 1, 1, 10), [("Bench", 5, 100)]),
            _workout(_dt(3, 10), [("Bench", 5, 110)]),
        ]
        change = metrics.average_one_rep_max_increase(workouts, NOW)
        assert change is not None
        assert change.previous == pytest.approx(100 * (1 + 5 / 30))
        assert change.current == pytest.approx(110 * (1 + 5 / 30))
        assert metrics.average_one_rep_max_trend(workouts, NOW).direction == "up"

    def test_weekly_average_body_weight_mixed(self):
        entries = [_weight(datetime(2024, 3, 14, 7), 80.0), _weight(_dt(3, 12), 81.0)]
        assert metrics.weekly_average_body_weight(entries, NOW) == pytest.approx(80.5)

    def test_average_one_rep_max_mixed(self):
        workouts = [
            _workout(_dt(3, 2), [("Bench", 5, 100)]),
            _workout(datetime(2024, 3, 1, 10), [("Squat", 5, 140)]),
        ]
        value = metrics.average_one_rep_max(workouts)
        assert value == pytest.approx((100 + 140) * (1 + 5 / 30) / 2)

    def test_points_from_samples_mixed(self):
        points = metrics.points_from_samples([(_dt(3, 2), 70), (datetime(2024, 3, 1, 9), 65)])
        assert [p.value for p in points] == [65.0, 70.0]

    def test_series_with_mixed_input(self):
        workouts = [_workout(datetime(2024, 3, 14, 10)), _workout(_dt(3, 14, 18))]
        points = metrics.aggregate_workout_counts(workouts, TimePeriod.WEEK, now=NOW)
        assert len(points) == 7
        assert points[-2].value == 2.0
