"""
JSON serialization for workout history models.

Handles conversion between dataclasses and JSON-compatible dicts, plus the
small text formats accepted on the command line.
"""

import json
import re
from datetime import date, datetime, time, tzinfo
from typing import Any

from ..core.models import (
    LENGTH_UNITS,
    WEIGHT_UNITS,
    BodyMeasurementSample,
    BodyWeightEntry,
    ExerciseEntry,
    LengthValue,
    SetRecord,
    WeightValue,
    WorkoutRecord,
)

Record = WorkoutRecord | BodyWeightEntry | BodyMeasurementSample

RECORD_TYPES = ("workout", "bodyweight", "measurement")


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def parse_timestamp(value: str, tz: tzinfo | None = None) -> datetime:
    """
    Parse an ISO-8601 timestamp or a bare YYYY-MM-DD date.

    A trailing "Z" is accepted. Naive values get *tz* attached when given.

    Args:
        value: Timestamp string
        tz: Timezone for naive values

    Returns:
        datetime

    Raises:
        ValidationError: If the string is not ISO-8601
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid timestamp: {value!r}")

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        if re.match(r"^\d{4}-\d{2}-\d{2}$", text):
            parsed = datetime.combine(date.fromisoformat(text), time())
        else:
            parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ValidationError(f"Invalid timestamp: {value!r}. Expected ISO-8601") from e

    if parsed.tzinfo is None and tz is not None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def format_timestamp(value: datetime) -> str:
    return value.isoformat()


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is non-negative.

    Raises:
        ValidationError: If value is negative
    """
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def validate_positive(value: int | float, name: str) -> int | float:
    """
    Validate that a value is positive.

    Raises:
        ValidationError: If value is not positive
    """
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")
    return value


def parse_decimal(text: str) -> float:
    """
    Parse a user-typed decimal, accepting "," as the decimal separator.

    Raises:
        ValidationError: If the text is not a number
    """
    normalized = text.strip().replace(",", ".")
    try:
        return float(normalized)
    except ValueError as e:
        raise ValidationError(f"Not a number: {text!r}") from e


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------


def weight_to_dict(weight: WeightValue) -> dict[str, Any]:
    return {"value": weight.magnitude, "unit": weight.unit}


def dict_to_weight(data: Any) -> WeightValue:
    """
    Convert {"value": .., "unit": ..} (or a bare number in kg) to WeightValue.

    Raises:
        ValidationError: If data is invalid
    """
    if isinstance(data, (int, float)):
        data = {"value": data, "unit": "kg"}
    if not isinstance(data, dict) or "value" not in data:
        raise ValidationError(f"Invalid weight: {data!r}")

    unit = data.get("unit", "kg")
    if unit not in WEIGHT_UNITS:
        raise ValidationError(f"Invalid weight unit: {unit!r}. Must be one of {WEIGHT_UNITS}")
    validate_non_negative(data["value"], "weight")
    return WeightValue(float(data["value"]), unit)


def length_to_dict(length: LengthValue) -> dict[str, Any]:
    return {"value": length.magnitude, "unit": length.unit}


def dict_to_length(data: Any) -> LengthValue:
    """
    Convert {"value": .., "unit": ..} (or a bare number in cm) to LengthValue.

    Raises:
        ValidationError: If data is invalid
    """
    if isinstance(data, (int, float)):
        data = {"value": data, "unit": "cm"}
    if not isinstance(data, dict) or "value" not in data:
        raise ValidationError(f"Invalid length: {data!r}")

    unit = data.get("unit", "cm")
    if unit not in LENGTH_UNITS:
        raise ValidationError(f"Invalid length unit: {unit!r}. Must be one of {LENGTH_UNITS}")
    validate_non_negative(data["value"], "length")
    return LengthValue(float(data["value"]), unit)


# ---------------------------------------------------------------------------
# Workouts
# ---------------------------------------------------------------------------


def set_record_to_dict(s: SetRecord) -> dict[str, Any]:
    """Compact serializer: absent optional fields are omitted."""
    d: dict[str, Any] = {"set": s.set_number}
    if s.reps is not None:
        d["reps"] = s.reps
    if s.weight is not None:
        d["weight"] = weight_to_dict(s.weight)
    if s.completed_at is not None:
        d["completed_at"] = format_timestamp(s.completed_at)
    if s.rest_seconds is not None:
        d["rest_seconds"] = s.rest_seconds
    return d


def dict_to_set_record(data: dict[str, Any], tz: tzinfo | None = None) -> SetRecord:
    """
    Convert dict to SetRecord.

    Raises:
        ValidationError: If data is invalid
    """
    set_number = data.get("set", 1)
    validate_positive(set_number, "set")
    reps = data.get("reps")
    if reps is not None:
        validate_non_negative(reps, "reps")
    rest = data.get("rest_seconds")
    if rest is not None:
        validate_non_negative(rest, "rest_seconds")

    return SetRecord(
        set_number=int(set_number),
        reps=int(reps) if reps is not None else None,
        weight=dict_to_weight(data["weight"]) if data.get("weight") is not None else None,
        completed_at=(
            parse_timestamp(data["completed_at"], tz) if data.get("completed_at") else None
        ),
        rest_seconds=int(rest) if rest is not None else None,
    )


def exercise_entry_to_dict(entry: ExerciseEntry) -> dict[str, Any]:
    d: dict[str, Any] = {
        "exercise": entry.exercise_name,
        "sets": [set_record_to_dict(s) for s in entry.sets],
    }
    if entry.is_warmup:
        d["warmup"] = True
    if entry.order:
        d["order"] = entry.order
    return d


def dict_to_exercise_entry(data: dict[str, Any], tz: tzinfo | None = None) -> ExerciseEntry:
    """
    Convert dict to ExerciseEntry.

    Raises:
        ValidationError: If data is invalid
    """
    name = data.get("exercise")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f"Invalid exercise name: {name!r}. Must be a non-empty string.")

    return ExerciseEntry(
        exercise_name=name,
        sets=[dict_to_set_record(s, tz) for s in data.get("sets", [])],
        is_warmup=bool(data.get("warmup", False)),
        order=int(data.get("order", 0)),
    )


def workout_to_dict(workout: WorkoutRecord) -> dict[str, Any]:
    """
    Convert WorkoutRecord to JSON-compatible dict.

    Args:
        workout: WorkoutRecord to convert

    Returns:
        Dict representation (with "type": "workout")
    """
    d: dict[str, Any] = {
        "type": "workout",
        "started_at": format_timestamp(workout.started_at),
        "completed_at": format_timestamp(workout.completed_at),
        "duration_seconds": workout.duration_seconds,
        "entries": [exercise_entry_to_dict(e) for e in workout.entries],
    }
    if workout.template_name:
        d["template"] = workout.template_name
    if workout.notes:
        d["notes"] = workout.notes
    return d


def dict_to_workout(data: dict[str, Any], tz: tzinfo | None = None) -> WorkoutRecord:
    """
    Convert dict to WorkoutRecord.

    Args:
        data: Dict representation
        tz: Timezone attached to naive timestamps

    Returns:
        WorkoutRecord instance

    Raises:
        ValidationError: If data is invalid
    """
    if "started_at" not in data or "completed_at" not in data:
        raise ValidationError("Workout requires started_at and completed_at")

    started = parse_timestamp(data["started_at"], tz)
    completed = parse_timestamp(data["completed_at"], tz)
    if completed < started:
        raise ValidationError(
            f"completed_at {data['completed_at']} is earlier than started_at {data['started_at']}"
        )

    duration = data.get("duration_seconds")
    if duration is not None:
        validate_non_negative(duration, "duration_seconds")

    return WorkoutRecord(
        started_at=started,
        completed_at=completed,
        entries=[dict_to_exercise_entry(e, tz) for e in data.get("entries", [])],
        duration_seconds=int(duration) if duration is not None else None,
        template_name=data.get("template"),
        notes=data.get("notes"),
    )


# ---------------------------------------------------------------------------
# Body logs
# ---------------------------------------------------------------------------


def bodyweight_to_dict(entry: BodyWeightEntry) -> dict[str, Any]:
    d: dict[str, Any] = {
        "type": "bodyweight",
        "recorded_at": format_timestamp(entry.recorded_at),
        "weight": weight_to_dict(entry.weight),
    }
    if entry.notes:
        d["notes"] = entry.notes
    return d


def dict_to_bodyweight(data: dict[str, Any], tz: tzinfo | None = None) -> BodyWeightEntry:
    """
    Convert dict to BodyWeightEntry.

    Raises:
        ValidationError: If data is invalid
    """
    if "weight" not in data or "recorded_at" not in data:
        raise ValidationError("Body weight entry requires weight and recorded_at")
    weight = dict_to_weight(data["weight"])
    validate_positive(weight.magnitude, "weight")
    return BodyWeightEntry(
        weight=weight,
        recorded_at=parse_timestamp(data["recorded_at"], tz),
        notes=data.get("notes"),
    )


def measurement_to_dict(sample: BodyMeasurementSample) -> dict[str, Any]:
    d: dict[str, Any] = {
        "type": "measurement",
        "kind": sample.kind,
        "recorded_at": format_timestamp(sample.recorded_at),
        "value": length_to_dict(sample.value),
    }
    if sample.notes:
        d["notes"] = sample.notes
    return d


def dict_to_measurement(data: dict[str, Any], tz: tzinfo | None = None) -> BodyMeasurementSample:
    """
    Convert dict to BodyMeasurementSample.

    Raises:
        ValidationError: If data is invalid
    """
    kind = data.get("kind")
    if not isinstance(kind, str) or not kind.strip():
        raise ValidationError(f"Invalid measurement kind: {kind!r}")
    if "value" not in data or "recorded_at" not in data:
        raise ValidationError("Measurement requires value and recorded_at")
    return BodyMeasurementSample(
        kind=kind.strip().lower(),
        value=dict_to_length(data["value"]),
        recorded_at=parse_timestamp(data["recorded_at"], tz),
        notes=data.get("notes"),
    )


def record_to_dict(record: Record) -> dict[str, Any]:
    if isinstance(record, WorkoutRecord):
        return workout_to_dict(record)
    if isinstance(record, BodyWeightEntry):
        return bodyweight_to_dict(record)
    return measurement_to_dict(record)


def dict_to_record(data: dict[str, Any], tz: tzinfo | None = None) -> Record:
    """
    Dispatch on the "type" field.

    Raises:
        ValidationError: If the type is unknown or the payload is invalid
    """
    record_type = data.get("type")
    if record_type == "workout":
        return dict_to_workout(data, tz)
    if record_type == "bodyweight":
        return dict_to_bodyweight(data, tz)
    if record_type == "measurement":
        return dict_to_measurement(data, tz)
    raise ValidationError(f"Unknown record type: {record_type!r}. Must be one of {RECORD_TYPES}")


def record_to_json_line(record: Record) -> str:
    """
    Serialize a record to a single JSON line.

    Returns:
        JSON string (single line, no trailing newline)
    """
    return json.dumps(record_to_dict(record), separators=(",", ":"))


def json_line_to_record(line: str, tz: tzinfo | None = None) -> Record:
    """
    Deserialize a JSON line.

    Raises:
        ValidationError: If JSON is invalid or data validation fails
    """
    try:
        data = json.loads(line.strip())
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("Each line must be a JSON object")
    return dict_to_record(data, tz)


# ---------------------------------------------------------------------------
# Command-line sets format
# ---------------------------------------------------------------------------

_NUMBER = r"\d+(?:\.\d+)?"


def parse_sets_string(sets_str: str) -> list[tuple[int, float | None]]:
    """
    Parse a comma-separated sets string.

    Formats (weight unit is given separately on the command line):
        reps@weight     e.g. "5@100"        one set of 5 reps at 100
        reps x sets @w  e.g. "5x3 @102.5"   three sets of 5 reps at 102.5
        reps x sets     e.g. "10x3"         three unweighted sets of 10
        reps            e.g. "8"            one unweighted set

    Decimals use "." because "," separates sets.

    Args:
        sets_str: Sets string to parse

    Returns:
        List of (reps, weight or None) tuples, one per set

    Raises:
        ValidationError: If format is invalid
    """
    if not sets_str or not sets_str.strip():
        raise ValidationError("Sets string cannot be empty")

    sets: list[tuple[int, float | None]] = []
    parts = [p.strip() for p in sets_str.split(",") if p.strip()]

    for part in parts:
        match_single = re.fullmatch(rf"(\d+)\s*@\s*({_NUMBER})", part)
        match_grouped = re.fullmatch(rf"(\d+)\s*[xX×]\s*(\d+)(?:\s*@\s*({_NUMBER}))?", part)
        match_bare = re.fullmatch(r"(\d+)", part)

        if match_single:
            sets.append((int(match_single.group(1)), float(match_single.group(2))))
        elif match_grouped:
            reps = int(match_grouped.group(1))
            n_sets = int(match_grouped.group(2))
            if n_sets < 1:
                raise ValidationError(f"Set count must be at least 1: '{part}'")
            weight = float(match_grouped.group(3)) if match_grouped.group(3) else None
            sets.extend([(reps, weight)] * n_sets)
        elif match_bare:
            sets.append((int(match_bare.group(1)), None))
        else:
            raise ValidationError(
                f"Invalid set format: '{part}'.\n"
                f"Use: reps@weight (e.g. 5@100), repsxsets @weight (e.g. 5x3 @100),\n"
                f"     or bare reps (e.g. 8)."
            )

    if not sets:
        raise ValidationError("No valid sets found in sets string")

    return sets
