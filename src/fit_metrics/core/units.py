"""Weight and length conversions between metric and imperial units."""

from .config import CM_PER_INCH, KG_PER_LB
from .models import LengthUnit, LengthValue, WeightUnit, WeightValue


def to_kilograms(weight: WeightValue) -> float:
    """Return the weight in kilograms."""
    if weight.unit == "lbs":
        return weight.magnitude * KG_PER_LB
    return weight.magnitude


def to_pounds(weight: WeightValue) -> float:
    """Return the weight in pounds."""
    if weight.unit == "kg":
        return weight.magnitude / KG_PER_LB
    return weight.magnitude


def to_centimeters(length: LengthValue) -> float:
    """Return the length in centimeters."""
    if length.unit == "inches":
        return length.magnitude * CM_PER_INCH
    return length.magnitude


def to_inches(length: LengthValue) -> float:
    """Return the length in inches."""
    if length.unit == "cm":
        return length.magnitude / CM_PER_INCH
    return length.magnitude


def weight_in(weight: WeightValue, unit: WeightUnit) -> float:
    """Magnitude of *weight* expressed in *unit*."""
    return to_kilograms(weight) if unit == "kg" else to_pounds(weight)


def convert_weight(weight: WeightValue, unit: WeightUnit) -> WeightValue:
    if weight.unit == unit:
        return weight
    return WeightValue(weight_in(weight, unit), unit)


def length_in(length: LengthValue, unit: LengthUnit) -> float:
    """Magnitude of *length* expressed in *unit*."""
    return to_centimeters(length) if unit == "cm" else to_inches(length)


def convert_length(length: LengthValue, unit: LengthUnit) -> LengthValue:
    if length.unit == unit:
        return length
    return LengthValue(length_in(length, unit), unit)
