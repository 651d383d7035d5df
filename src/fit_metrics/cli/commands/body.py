"""Body commands: log-weight, log-measurement, body-fat."""

import json
from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.body_fat import body_fat_from_measurements, estimate_body_fat_percent
from ...core.models import (
    LENGTH_UNITS,
    WEIGHT_UNITS,
    BodyMeasurementSample,
    BodyWeightEntry,
    LengthValue,
    WeightValue,
)
from ...io.serializers import ValidationError, parse_decimal, parse_timestamp
from .. import views
from ..app import HistoryPathOption, JsonOption, app, get_settings, open_store

MEASUREMENT_KINDS = ("height", "neck", "waist", "hip", "chest", "arm", "thigh")


def _parse_positive(text: str, label: str) -> float:
    try:
        value = parse_decimal(text)
    except ValidationError as e:
        views.print_error(f"Invalid {label}: {e}")
        raise typer.Exit(1)
    if value <= 0:
        views.print_error(f"{label} must be positive")
        raise typer.Exit(1)
    return value


def _recorded_at(date: str | None) -> datetime:
    calendar = get_settings().calendar
    if date is None:
        return calendar.now()
    try:
        return parse_timestamp(date, calendar.tzinfo)
    except ValidationError as e:
        views.print_error(f"Invalid --date: {e}")
        raise typer.Exit(1)


@app.command("log-weight")
def log_weight(
    weight: Annotated[
        str,
        typer.Argument(help="Body weight, e.g. 82.5 or 82,5"),
    ],
    unit: Annotated[
        Optional[str],
        typer.Option("--unit", "-u", help="kg | lbs (default from config)"),
    ] = None,
    date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Recorded at (ISO-8601 or YYYY-MM-DD, default: now)"),
    ] = None,
    notes: Annotated[
        Optional[str],
        typer.Option("--notes", "-n", help="Notes"),
    ] = None,
    history_path: HistoryPathOption = None,
) -> None:
    """
    Log a body weight reading.
    """
    store = open_store(history_path)
    weight_unit = unit or get_settings().weight_unit
    if weight_unit not in WEIGHT_UNITS:
        views.print_error(f"Unit must be one of: {', '.join(WEIGHT_UNITS)}")
        raise typer.Exit(1)

    entry = BodyWeightEntry(
        weight=WeightValue(_parse_positive(weight, "weight"), weight_unit),
        recorded_at=_recorded_at(date),
        notes=notes,
    )
    store.append_bodyweight(entry)
    views.print_success(f"Logged body weight {entry.weight}")


@app.command("log-measurement")
def log_measurement(
    kind: Annotated[
        str,
        typer.Argument(help=f"What was measured: {', '.join(MEASUREMENT_KINDS)}"),
    ],
    value: Annotated[
        str,
        typer.Argument(help="Measured length, e.g. 81.5"),
    ],
    unit: Annotated[
        Optional[str],
        typer.Option("--unit", "-u", help="cm | inches (default from config)"),
    ] = None,
    date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Recorded at (ISO-8601 or YYYY-MM-DD, default: now)"),
    ] = None,
    notes: Annotated[
        Optional[str],
        typer.Option("--notes", "-n", help="Notes"),
    ] = None,
    history_path: HistoryPathOption = None,
) -> None:
    """
    Log a height or circumference measurement.
    """
    store = open_store(history_path)
    kind = kind.strip().lower()
    if kind not in MEASUREMENT_KINDS:
        views.print_error(f"Kind must be one of: {', '.join(MEASUREMENT_KINDS)}")
        raise typer.Exit(1)

    length_unit = unit or get_settings().length_unit
    if length_unit not in LENGTH_UNITS:
        views.print_error(f"Unit must be one of: {', '.join(LENGTH_UNITS)}")
        raise typer.Exit(1)

    sample = BodyMeasurementSample(
        kind=kind,
        value=LengthValue(_parse_positive(value, kind), length_unit),
        recorded_at=_recorded_at(date),
        notes=notes,
    )
    store.append_measurement(sample)
    views.print_success(f"Logged {kind} {sample.value}")


@app.command("body-fat")
def body_fat(
    gender: Annotated[
        str,
        typer.Option("--gender", "-g", help="male | female"),
    ],
    height: Annotated[
        Optional[str],
        typer.Option("--height", help="Height"),
    ] = None,
    neck: Annotated[
        Optional[str],
        typer.Option("--neck", help="Neck circumference"),
    ] = None,
    waist: Annotated[
        Optional[str],
        typer.Option("--waist", help="Waist circumference"),
    ] = None,
    hip: Annotated[
        Optional[str],
        typer.Option("--hip", help="Hip circumference (required for female)"),
    ] = None,
    unit: Annotated[
        Optional[str],
        typer.Option("--unit", "-u", help="Unit for all lengths: cm | inches"),
    ] = None,
    from_history: Annotated[
        bool,
        typer.Option("--from-history", help="Use the latest logged measurements"),
    ] = False,
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Estimate body-fat percentage with the U.S. Navy circumference method.

      fit-metrics body-fat -g male --height 180 --neck 38 --waist 85
      fit-metrics body-fat -g female --from-history
    """
    if from_history:
        store = open_store(history_path)
        try:
            samples = store.load_measurements()
        except (FileNotFoundError, ValidationError) as e:
            views.print_error(str(e))
            raise typer.Exit(1)
        percent = body_fat_from_measurements(gender, samples)
    else:
        if height is None or neck is None or waist is None:
            views.print_error("Give --height, --neck and --waist, or use --from-history")
            raise typer.Exit(1)
        length_unit = unit or get_settings().length_unit
        if length_unit not in LENGTH_UNITS:
            views.print_error(f"Unit must be one of: {', '.join(LENGTH_UNITS)}")
            raise typer.Exit(1)
        percent = estimate_body_fat_percent(
            gender,
            height=_parse_positive(height, "height"),
            neck=_parse_positive(neck, "neck"),
            waist=_parse_positive(waist, "waist"),
            hip=_parse_positive(hip, "hip") if hip is not None else None,
            height_unit=length_unit,
            circumference_unit=length_unit,
        )

    if json_out:
        print(json.dumps({"gender": gender, "body_fat_percent": percent}, indent=2))
        return

    views.print_body_fat(percent)
