"""
Tests for JSON serializers, command-line parsers, the JSONL history store
and YAML settings.
"""

import json
import logging
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from fit_metrics.core.models import (
    BodyMeasurementSample,
    BodyWeightEntry,
    ExerciseEntry,
    LengthValue,
    SetRecord,
    WeightValue,
    WorkoutRecord,
)
from fit_metrics.core.engine.config_loader import load_settings, settings_from_dict
from fit_metrics.core.periods import CalendarPolicy
from fit_metrics.io.history_store import HistoryStore, get_default_history_path
from fit_metrics.io.serializers import (
    ValidationError,
    dict_to_workout,
    json_line_to_record,
    parse_decimal,
    parse_sets_string,
    parse_timestamp,
    record_to_json_line,
    workout_to_dict,
)

UTC = timezone.utc


@pytest.fixture
def temp_history_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def _workout(day: int, weight: float = 100.0, name: str = "Squat") -> WorkoutRecord:
    done = datetime(2024, 3, day, 18, 0, tzinfo=UTC)
    return WorkoutRecord(
        started_at=done - timedelta(minutes=50),
        completed_at=done,
        entries=[
            ExerciseEntry(
                name,
                [
                    SetRecord(1, reps=5, weight=WeightValue(weight), completed_at=done,
                              rest_seconds=180),
                    SetRecord(2, reps=5, weight=WeightValue(weight), completed_at=done),
                ],
            )
        ],
        duration_seconds=3000,
        template_name="Leg day",
    )


# ===========================================================================
# serializers.py
# ===========================================================================


class TestParseTimestamp:
    def test_offset_preserved(self):
        ts = parse_timestamp("2024-03-15T10:00:00+02:00")
        assert ts.utcoffset() == timedelta(hours=2)

    def test_trailing_z(self):
        assert parse_timestamp("2024-03-15T10:00:00Z") == datetime(2024, 3, 15, 10, tzinfo=UTC)

    def test_bare_date_is_midnight(self):
        assert parse_timestamp("2024-03-15", UTC) == datetime(2024, 3, 15, tzinfo=UTC)

    def test_naive_gets_zone(self):
        ny = CalendarPolicy(timezone="America/New_York").tzinfo
        assert parse_timestamp("2024-03-15T10:00:00", ny).tzinfo is ny

    def test_naive_stays_naive_without_zone(self):
        assert parse_timestamp("2024-03-15T10:00:00").tzinfo is None

    def test_invalid(self):
        with pytest.raises(ValidationError):
            parse_timestamp("15/03/2024")
        with pytest.raises(ValidationError):
            parse_timestamp("")


class TestParseDecimal:
    def test_dot_and_comma(self):
        assert parse_decimal("82.5") == 82.5
        assert parse_decimal(" 82,5 ") == 82.5

    def test_invalid(self):
        with pytest.raises(ValidationError):
            parse_decimal("eighty")


class TestParseSetsString:
    def test_reps_at_weight(self):
        assert parse_sets_string("5@100, 5@102.5") == [(5, 100.0), (5, 102.5)]

    def test_grouped_with_weight(self):
        assert parse_sets_string("5x3 @100") == [(5, 100.0)] * 3

    def test_grouped_bodyweight(self):
        assert parse_sets_string("10x2") == [(10, None), (10, None)]

    def test_bare_reps(self):
        assert parse_sets_string("8") == [(8, None)]

    def test_mixed(self):
        assert parse_sets_string("5x2 @60, 3@80, 12") == [(5, 60.0), (5, 60.0), (3, 80.0), (12, None)]

    def test_invalid(self):
        with pytest.raises(ValidationError):
            parse_sets_string("five@100")
        with pytest.raises(ValidationError):
            parse_sets_string("")
        with pytest.raises(ValidationError):
            parse_sets_string("5x0 @100")


class TestWorkoutSerialization:
    def test_round_trip(self):
        workout = _workout(1)
        assert dict_to_workout(workout_to_dict(workout)) == workout

    def test_compact_sets_omit_absent_fields(self):
        data = workout_to_dict(_workout(1))
        second = data["entries"][0]["sets"][1]
        assert "rest_seconds" not in second
        assert data["type"] == "workout"

    def test_bare_number_weight_is_kg(self):
        data = workout_to_dict(_workout(1))
        data["entries"][0]["sets"][0]["weight"] = 90
        workout = dict_to_workout(data)
        assert workout.entries[0].sets[0].weight == WeightValue(90, "kg")

    def test_negative_reps_rejected(self):
        data = workout_to_dict(_workout(1))
        data["entries"][0]["sets"][0]["reps"] = -1
        with pytest.raises(ValidationError):
            dict_to_workout(data)

    def test_completed_before_started_rejected(self):
        data = workout_to_dict(_workout(1))
        data["started_at"], data["completed_at"] = data["completed_at"], data["started_at"]
        with pytest.raises(ValidationError):
            dict_to_workout(data)

    def test_bad_weight_unit_rejected(self):
        data = workout_to_dict(_workout(1))
        data["entries"][0]["sets"][0]["weight"] = {"value": 100, "unit": "stone"}
        with pytest.raises(ValidationError):
            dict_to_workout(data)

    def test_json_line_dispatch(self):
        entry = BodyWeightEntry(WeightValue(180, "lbs"), datetime(2024, 3, 1, tzinfo=UTC))
        line = record_to_json_line(entry)
        assert "\n" not in line
        assert json_line_to_record(line) == entry

        sample = BodyMeasurementSample("waist", LengthValue(33, "inches"),
                                       datetime(2024, 3, 1, tzinfo=UTC))
        assert json_line_to_record(record_to_json_line(sample)) == sample

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            json_line_to_record('{"type": "profile"}')

    def test_invalid_json_rejected(self):
        with pytest.raises(ValidationError):
            json_line_to_record("{not json")


# ===========================================================================
# history_store.py
# ===========================================================================


class TestHistoryStore:
    def test_init_creates_file(self, temp_history_dir):
        store = HistoryStore(temp_history_dir / "nested" / "history.jsonl")
        assert not store.exists()
        store.init()
        assert store.exists()
        assert store.load_workouts() == []

    def test_missing_file_raises(self, temp_history_dir):
        store = HistoryStore(temp_history_dir / "history.jsonl")
        with pytest.raises(FileNotFoundError):
            store.load_workouts()
        with pytest.raises(FileNotFoundError):
            store.append_workout(_workout(1))

    def test_append_and_load_sorted(self, temp_history_dir):
        store = HistoryStore(temp_history_dir / "history.jsonl")
        store.init()
        store.append_workout(_workout(5))
        store.append_workout(_workout(2))
        store.append_bodyweight(BodyWeightEntry(WeightValue(80), datetime(2024, 3, 3, tzinfo=UTC)))
        store.append_measurement(
            BodyMeasurementSample("neck", LengthValue(38), datetime(2024, 3, 3, tzinfo=UTC))
        )

        workouts = store.load_workouts()
        assert [w.completed_at.day for w in workouts] == [2, 5]
        assert len(store.load_bodyweights()) == 1
        assert store.load_measurements()[0].kind == "neck"
        assert workouts[-1].completed_at.day == 5

    def test_one_record_per_line(self, temp_history_dir):
        store = HistoryStore(temp_history_dir / "history.jsonl")
        store.init()
        store.append_workout(_workout(1))
        store.append_workout(_workout(2))
        lines = store.history_path.read_text().splitlines()
        assert len(lines) == 2
        assert all(json.loads(line)["type"] == "workout" for line in lines)

    def test_naive_timestamps_use_store_calendar(self, temp_history_dir):
        path = temp_history_dir / "history.jsonl"
        path.write_text(json.dumps({
            "type": "bodyweight",
            "recorded_at": "2024-03-01T07:30:00",
            "weight": {"value": 80, "unit": "kg"},
        }) + "\n")
        ny = CalendarPolicy(timezone="America/New_York")
        entry = HistoryStore(path, ny).load_bodyweights()[0]
        assert entry.recorded_at.tzinfo == ny.tzinfo
        assert entry.recorded_at.hour == 7

    def test_bad_line_reports_line_number(self, temp_history_dir):
        path = temp_history_dir / "history.jsonl"
        good = record_to_json_line(_workout(1))
        path.write_text(good + "\n\n{broken\n")
        with pytest.raises(ValidationError, match="line 3"):
            HistoryStore(path).load_workouts()

    def test_delete_workout_keeps_body_logs(self, temp_history_dir):
        store = HistoryStore(temp_history_dir / "history.jsonl")
        store.init()
        store.append_workout(_workout(1))
        store.append_bodyweight(BodyWeightEntry(WeightValue(80), datetime(2024, 3, 1, tzinfo=UTC)))
        store.append_workout(_workout(2, weight=110))

        deleted = store.delete_workout_at(0)
        assert deleted.completed_at.day == 1
        remaining = store.load_workouts()
        assert [w.completed_at.day for w in remaining] == [2]
        assert len(store.load_bodyweights()) == 1

    def test_delete_out_of_range(self, temp_history_dir):
        store = HistoryStore(temp_history_dir / "history.jsonl")
        store.init()
        with pytest.raises(IndexError):
            store.delete_workout_at(0)

    def test_clear_history(self, temp_history_dir):
        store = HistoryStore(temp_history_dir / "history.jsonl")
        store.init()
        store.append_workout(_workout(1))
        store.clear_history()
        assert store.load_workouts() == []

    def test_default_path(self):
        path = get_default_history_path()
        assert path.name == "history.jsonl"
        assert path.parent.name == ".fit-metrics"


# ===========================================================================
# config_loader.py
# ===========================================================================


class TestSettings:
    def test_defaults(self):
        settings = settings_from_dict({})
        assert settings.trailing_window_days == 7
        assert settings.one_rep_max_window_days == 30
        assert settings.weight_unit == "kg"
        assert settings.calendar == CalendarPolicy()

    def test_values_applied(self):
        settings = settings_from_dict({
            "calendar": {"timezone": "Europe/Berlin", "week_start": "sunday"},
            "dashboard": {"trailing_window_days": 14, "one_rep_max_window_days": "60"},
            "units": {"weight": "lbs"},
            "favorites": ["Squat", "Bench Press"],
        })
        assert settings.calendar.timezone == "Europe/Berlin"
        assert settings.calendar.week_start == 6
        assert settings.trailing_window_days == 14
        assert settings.one_rep_max_window_days == 60
        assert settings.weight_unit == "lbs"
        assert settings.favorites == ["Squat", "Bench Press"]

    def test_non_numeric_window_falls_back(self, caplog):
        with caplog.at_level(logging.WARNING):
            settings = settings_from_dict({"dashboard": {"trailing_window_days": "a week"}})
        assert settings.trailing_window_days == 7
        assert "trailing_window_days" in caplog.text

    def test_non_positive_windows_fall_back(self):
        settings = settings_from_dict({
            "dashboard": {"trailing_window_days": 0, "one_rep_max_window_days": -5},
        })
        assert settings.trailing_window_days == 7
        assert settings.one_rep_max_window_days == 30

    def test_null_window_falls_back(self):
        settings = settings_from_dict({"dashboard": {"trailing_window_days": None}})
        assert settings.trailing_window_days == 7

    def test_bad_timezone_falls_back(self):
        settings = settings_from_dict({"calendar": {"timezone": "Mars/Olympus"}})
        assert settings.calendar.timezone == "UTC"

    def test_extra_file_overrides_user_file(self, temp_history_dir, monkeypatch):
        monkeypatch.setenv("HOME", str(temp_history_dir))
        user_dir = temp_history_dir / ".fit-metrics"
        user_dir.mkdir()
        (user_dir / "config.yaml").write_text(
            "dashboard:\n  trailing_window_days: 10\nunits:\n  weight: lbs\n"
        )
        extra = temp_history_dir / "extra.yaml"
        extra.write_text("dashboard:\n  trailing_window_days: 21\n")

        settings = load_settings(extra)
        assert settings.trailing_window_days == 21
        assert settings.weight_unit == "lbs"

    def test_unreadable_yaml_ignored(self, temp_history_dir, monkeypatch):
        monkeypatch.setenv("HOME", str(temp_history_dir))
        broken = temp_history_dir / "broken.yaml"
        broken.write_text("dashboard: [unclosed\n")
        assert load_settings(broken).trailing_window_days == 7
