"""
Data models for fit-metrics.

Plain dataclasses describing workout history, body measurements and the
values returned by the calculation layer. Records are built by the caller
(the history store or the CLI) and treated as read-only snapshots by every
calculation function.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

WeightUnit = Literal["kg", "lbs"]
LengthUnit = Literal["cm", "inches"]
TrendDirection = Literal["up", "down", "neutral"]
Gender = Literal["male", "female"]

WEIGHT_UNITS: tuple[str, ...] = ("kg", "lbs")
LENGTH_UNITS: tuple[str, ...] = ("cm", "inches")


@dataclass(frozen=True)
class WeightValue:
    """A weight magnitude tagged with its unit."""

    magnitude: float
    unit: WeightUnit = "kg"

    def __post_init__(self) -> None:
        if self.magnitude < 0:
            raise ValueError("weight magnitude must be non-negative")
        if self.unit not in WEIGHT_UNITS:
            raise ValueError(f"Invalid weight unit: {self.unit!r}. Must be 'kg' or 'lbs'")

    def __str__(self) -> str:
        return f"{self.magnitude:.1f} {self.unit}"


@dataclass(frozen=True)
class LengthValue:
    """A length magnitude tagged with its unit."""

    magnitude: float
    unit: LengthUnit = "cm"

    def __post_init__(self) -> None:
        if self.magnitude < 0:
            raise ValueError("length magnitude must be non-negative")
        if self.unit not in LENGTH_UNITS:
            raise ValueError(f"Invalid length unit: {self.unit!r}. Must be 'cm' or 'inches'")

    def __str__(self) -> str:
        return f"{self.magnitude:.1f} {self.unit}"


@dataclass
class SetRecord:
    """
    One set of an exercise.

    Planned sets carry no reps/completed_at; a set only contributes to
    1RM estimates once reps, weight and completed_at are all present.
    """

    set_number: int
    reps: int | None = None
    weight: WeightValue | None = None
    completed_at: datetime | None = None
    rest_seconds: int | None = None

    def __post_init__(self) -> None:
        """Validate set data."""
        if self.set_number < 1:
            raise ValueError("set_number must be >= 1")
        if self.reps is not None and self.reps < 0:
            raise ValueError("reps must be non-negative")
        if self.rest_seconds is not None and self.rest_seconds < 0:
            raise ValueError("rest_seconds must be non-negative")


@dataclass
class ExerciseEntry:
    """An exercise performed within a workout, with its sets in order."""

    exercise_name: str
    sets: list[SetRecord] = field(default_factory=list)
    is_warmup: bool = False
    order: int = 0

    def __post_init__(self) -> None:
        if not self.exercise_name or not self.exercise_name.strip():
            raise ValueError("exercise_name must be a non-empty string")


@dataclass
class WorkoutRecord:
    """
    A completed workout.

    duration_seconds is the stored value and may be absent; aggregations
    treat "no duration" differently from a zero-length workout.
    """

    started_at: datetime
    completed_at: datetime
    entries: list[ExerciseEntry] = field(default_factory=list)
    duration_seconds: int | None = None
    template_name: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        """Validate workout data."""
        if self.completed_at < self.started_at:
            raise ValueError("completed_at must not be earlier than started_at")
        if self.duration_seconds is not None and self.duration_seconds < 0:
            raise ValueError("duration_seconds must be non-negative")

    @property
    def derived_duration_seconds(self) -> int:
        """Stored duration, or completed_at - started_at when none was stored."""
        if self.duration_seconds is not None:
            return self.duration_seconds
        return int((self.completed_at - self.started_at).total_seconds())

    def exercise_names(self) -> list[str]:
        """Names of all entries in workout order."""
        return [e.exercise_name for e in self.entries]


@dataclass
class BodyMeasurementSample:
    """A circumference or height sample, e.g. kind="waist"."""

    kind: str
    value: LengthValue
    recorded_at: datetime
    notes: str | None = None

    def __post_init__(self) -> None:
        if not self.kind or not self.kind.strip():
            raise ValueError("measurement kind must be a non-empty string")


@dataclass
class BodyWeightEntry:
    """A logged body weight."""

    weight: WeightValue
    recorded_at: datetime
    notes: str | None = None


@dataclass(frozen=True)
class ChartDataPoint:
    """One bucket of a chart series."""

    date: datetime
    value: float


@dataclass(frozen=True)
class OneRepMaxPoint:
    """Best estimated 1RM for one calendar day."""

    date: datetime
    estimated_max: WeightValue


@dataclass(frozen=True)
class SetEstimate:
    """A logged set of one exercise with its Epley estimate.

    estimated_max is None for sets without both reps and weight; is_best
    marks the set that scored highest within its workout.
    """

    workout_completed_at: datetime
    set_number: int
    reps: int | None
    weight: WeightValue | None
    estimated_max: float | None
    is_warmup: bool = False
    is_best: bool = False


@dataclass(frozen=True)
class TopExercise:
    """A favourite exercise ranked by its current estimated 1RM."""

    name: str
    estimated_max: float
    rank: int


@dataclass(frozen=True)
class MetricTrend:
    """Direction and relative size of a change between two readings."""

    direction: TrendDirection
    percentage: float

    @property
    def arrow(self) -> str:
        return {"up": "↑", "down": "↓", "neutral": "→"}[self.direction]


@dataclass(frozen=True)
class OneRepMaxChange:
    """Average 1RM now vs. before the comparison window."""

    current: float
    previous: float
    increase: float
    percentage: float
