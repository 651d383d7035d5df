"""
JSONL-based history storage for workouts and body logs.

Handles reading, writing, and managing the history file.
"""

import json
import logging
from pathlib import Path

from ..core.models import BodyMeasurementSample, BodyWeightEntry, WorkoutRecord
from ..core.periods import DEFAULT_CALENDAR, CalendarPolicy
from .serializers import Record, ValidationError, dict_to_record, record_to_json_line

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = ".fit-metrics"
DEFAULT_HISTORY_FILE = "history.jsonl"


class HistoryStore:
    """
    Manages history stored in JSONL format.

    The history file contains one JSON object per line, tagged by "type":
    - "workout": a completed workout with its exercise entries and sets
    - "bodyweight": a logged body weight
    - "measurement": a height or circumference sample

    Timestamps written without an offset are read as wall-clock time in the
    store's calendar timezone.
    """

    def __init__(self, history_path: str | Path, calendar: CalendarPolicy | None = None):
        """
        Initialize the history store.

        Args:
            history_path: Path to the JSONL history file
            calendar: Policy whose timezone is attached to naive timestamps
        """
        self.history_path = Path(history_path)
        self.calendar = calendar or DEFAULT_CALENDAR

    def exists(self) -> bool:
        """Check if the history file exists."""
        return self.history_path.exists()

    def init(self) -> None:
        """
        Initialize empty history file if it doesn't exist.

        Creates parent directories if needed.
        """
        self.history_path.parent.mkdir(parents=True, exist_ok=True)

        if not self.history_path.exists():
            self.history_path.touch()
            logger.info("Created history file %s", self.history_path)

    def _require_file(self) -> None:
        if not self.history_path.exists():
            raise FileNotFoundError(
                f"History file not found: {self.history_path}. Run 'init' first."
            )

    def load_records(self) -> list[Record]:
        """
        Load every record in file order.

        Returns:
            List of WorkoutRecord, BodyWeightEntry and BodyMeasurementSample

        Raises:
            FileNotFoundError: If history file doesn't exist
            ValidationError: If a line cannot be parsed
        """
        self._require_file()

        records: list[Record] = []
        tz = self.calendar.tzinfo

        with open(self.history_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue

                try:
                    data = json.loads(line)
                    if not isinstance(data, dict):
                        raise ValidationError("Each line must be a JSON object")
                    records.append(dict_to_record(data, tz))
                except (json.JSONDecodeError, ValidationError, ValueError) as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.history_path}: {e}"
                    ) from e

        logger.debug("Loaded %d records from %s", len(records), self.history_path)
        return records

    def load_workouts(self) -> list[WorkoutRecord]:
        """
        Load all workouts.

        Returns:
            List of WorkoutRecord, sorted by completed_at
        """
        workouts = [r for r in self.load_records() if isinstance(r, WorkoutRecord)]
        workouts.sort(key=lambda w: w.completed_at)
        return workouts

    def load_bodyweights(self) -> list[BodyWeightEntry]:
        """Load body-weight entries sorted by recorded_at."""
        entries = [r for r in self.load_records() if isinstance(r, BodyWeightEntry)]
        entries.sort(key=lambda e: e.recorded_at)
        return entries

    def load_measurements(self) -> list[BodyMeasurementSample]:
        """Load measurement samples sorted by recorded_at."""
        samples = [r for r in self.load_records() if isinstance(r, BodyMeasurementSample)]
        samples.sort(key=lambda s: s.recorded_at)
        return samples

    def _append(self, record: Record) -> None:
        self._require_file()
        with open(self.history_path, "a", encoding="utf-8") as f:
            f.write(record_to_json_line(record) + "\n")

    def append_workout(self, workout: WorkoutRecord) -> None:
        """
        Append a workout to the history file.

        Args:
            workout: Workout to append
        """
        self._append(workout)
        logger.info(
            "Logged workout completed %s (%d exercises)",
            workout.completed_at.isoformat(),
            len(workout.entries),
        )

    def append_bodyweight(self, entry: BodyWeightEntry) -> None:
        """Append a body-weight entry to the history file."""
        self._append(entry)
        logger.info("Logged body weight %s", entry.weight)

    def append_measurement(self, sample: BodyMeasurementSample) -> None:
        """Append a measurement sample to the history file."""
        self._append(sample)
        logger.info("Logged %s measurement %s", sample.kind, sample.value)

    def _write_records(self, records: list[Record]) -> None:
        """
        Write all records to the history file.

        Args:
            records: Records to write
        """
        with open(self.history_path, "w", encoding="utf-8") as f:
            for record in records:
                f.write(record_to_json_line(record) + "\n")

    def delete_workout_at(self, index: int) -> WorkoutRecord:
        """
        Delete the workout at the given 0-based index in sorted workout history.

        Body logs are preserved.

        Args:
            index: 0-based index into load_workouts()

        Returns:
            The deleted workout

        Raises:
            IndexError: If index is out of range
        """
        workouts = self.load_workouts()
        if index < 0 or index >= len(workouts):
            raise IndexError(f"Workout index {index} out of range (0-{len(workouts) - 1})")
        target = workouts[index]

        records = self.load_records()
        for i, record in enumerate(records):
            if record == target:
                del records[i]
                break
        self._write_records(records)
        logger.info("Deleted workout completed %s", target.completed_at.isoformat())
        return target

    def clear_history(self) -> None:
        """Truncate the history file, dropping workouts and body logs alike."""
        if self.history_path.exists():
            self.history_path.write_text("")
            logger.warning("Cleared history file %s", self.history_path)


def get_default_history_path() -> Path:
    """
    Get the default history file path.

    Returns:
        ~/.fit-metrics/history.jsonl
    """
    return Path.home() / DEFAULT_DATA_DIR / DEFAULT_HISTORY_FILE

