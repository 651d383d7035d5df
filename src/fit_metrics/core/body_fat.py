"""
Body-fat percentage via the U.S. Navy circumference method.

    male:   BF% = 495 / (1.0324  − 0.19077·log10(waist − neck)
                         + 0.15456·log10(height)) − 450
    female: BF% = 495 / (1.29579 − 0.35004·log10(waist + hip − neck)
                         + 0.22100·log10(height)) − 450

All circumferences and height are in centimeters. Invalid input yields
None instead of an exception; the reason is logged at DEBUG level.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from .config import (
    BODY_FAT_MAX_PERCENT,
    BODY_FAT_MIN_PERCENT,
    NAVY_FEMALE_ABDOMEN_COEF,
    NAVY_FEMALE_CONSTANT,
    NAVY_FEMALE_HEIGHT_COEF,
    NAVY_MALE_ABDOMEN_COEF,
    NAVY_MALE_CONSTANT,
    NAVY_MALE_HEIGHT_COEF,
    NAVY_NUMERATOR,
    NAVY_OFFSET,
)
from .models import BodyMeasurementSample, LengthUnit, LengthValue
from .units import to_centimeters

logger = logging.getLogger(__name__)

_CM_NAMES = ("cm", "centimeter", "centimeters", "centimetre", "centimetres")
_INCH_NAMES = ("in", "inch", "inches")


def _length_unit(unit: str) -> LengthUnit | None:
    u = unit.strip().lower()
    if u in _CM_NAMES:
        return "cm"
    if u in _INCH_NAMES:
        return "inches"
    return None


def _to_cm(value: float, unit: str) -> float | None:
    """Convert to cm; negative values map to 0 and are rejected by the caller."""
    length_unit = _length_unit(unit)
    if length_unit is None:
        return None
    return to_centimeters(LengthValue(max(value, 0.0), length_unit))


def _navy(constant: float, abdomen_coef: float, height_coef: float,
          abdomen_cm: float, height_cm: float) -> float | None:
    if abdomen_cm <= 0 or height_cm <= 0:
        return None
    denom = constant - abdomen_coef * math.log10(abdomen_cm) + height_coef * math.log10(height_cm)
    if denom <= 0:
        logger.debug("Navy denominator %.4f <= 0; rejecting", denom)
        return None
    body_fat = NAVY_NUMERATOR / denom - NAVY_OFFSET
    return max(BODY_FAT_MIN_PERCENT, min(BODY_FAT_MAX_PERCENT, body_fat))


def estimate_body_fat_percent(
    gender: str,
    height: float,
    neck: float,
    waist: float,
    hip: float | None = None,
    height_unit: str = "cm",
    circumference_unit: str = "cm",
) -> float | None:
    """
    Estimate body-fat percentage from circumference measurements.

    Args:
        gender: "male" or "female" (case-insensitive)
        height: Standing height
        neck: Neck circumference
        waist: Waist circumference
        hip: Hip circumference (required for females)
        height_unit: "cm" or "inches" for height
        circumference_unit: "cm" or "inches" for neck/waist/hip

    Returns:
        Body-fat percentage clamped to [0, 100], or None if inputs are invalid
    """
    height_cm = _to_cm(height, height_unit)
    neck_cm = _to_cm(neck, circumference_unit)
    waist_cm = _to_cm(waist, circumference_unit)
    if height_cm is None or neck_cm is None or waist_cm is None:
        logger.debug("Unknown unit (height=%r, circumference=%r)", height_unit, circumference_unit)
        return None

    if height_cm <= 0 or neck_cm <= 0 or waist_cm <= 0:
        return None
    if height_cm <= neck_cm or waist_cm <= neck_cm:
        logger.debug("Rejecting measurements: height/waist must exceed neck")
        return None

    g = gender.strip().lower()

    if g == "male":
        return _navy(
            NAVY_MALE_CONSTANT, NAVY_MALE_ABDOMEN_COEF, NAVY_MALE_HEIGHT_COEF,
            waist_cm - neck_cm, height_cm,
        )

    if g == "female":
        if hip is None:
            return None
        hip_cm = _to_cm(hip, circumference_unit)
        if hip_cm is None or hip_cm <= 0:
            return None
        return _navy(
            NAVY_FEMALE_CONSTANT, NAVY_FEMALE_ABDOMEN_COEF, NAVY_FEMALE_HEIGHT_COEF,
            waist_cm + hip_cm - neck_cm, height_cm,
        )

    logger.debug("Unsupported gender %r", gender)
    return None


def latest_measurement(
    samples: Sequence[BodyMeasurementSample],
    kind: str,
) -> BodyMeasurementSample | None:
    """Most recently recorded sample of the given kind (case-insensitive)."""
    matching = [s for s in samples if s.kind.lower() == kind.lower()]
    if not matching:
        return None
    return max(matching, key=lambda s: s.recorded_at)


def body_fat_from_measurements(
    gender: str,
    samples: Sequence[BodyMeasurementSample],
) -> float | None:
    """
    Estimate body fat from the latest height, neck, waist and hip samples.

    Each sample is converted to centimeters individually, so a history that
    mixes units is handled.
    """
    height = latest_measurement(samples, "height")
    neck = latest_measurement(samples, "neck")
    waist = latest_measurement(samples, "waist")
    hip = latest_measurement(samples, "hip")

    if height is None or neck is None or waist is None:
        return None

    return estimate_body_fat_percent(
        gender,
        height=to_centimeters(height.value),
        neck=to_centimeters(neck.value),
        waist=to_centimeters(waist.value),
        hip=to_centimeters(hip.value) if hip is not None else None,
    )
