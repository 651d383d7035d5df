"""
Configuration constants for the fitness metrics model.

All formula coefficients and dashboard defaults are centralized here.
Runtime settings (timezone, favourites, display units) live in the YAML
layer, see engine/config_loader.py.
"""

from typing import Final

# =============================================================================
# UNIT CONVERSION
# =============================================================================

KG_PER_LB: Final[float] = 0.453592
CM_PER_INCH: Final[float] = 2.54

# =============================================================================
# ONE-REP-MAX (Epley)
# =============================================================================

EPLEY_REPS_DIVISOR: Final[float] = 30.0  # 1RM = w * (1 + reps / 30)

# =============================================================================
# U.S. NAVY BODY-FAT METHOD
# =============================================================================

NAVY_NUMERATOR: Final[float] = 495.0
NAVY_OFFSET: Final[float] = 450.0

# Male: 1.0324 - 0.19077*log10(waist - neck) + 0.15456*log10(height)
NAVY_MALE_CONSTANT: Final[float] = 1.0324
NAVY_MALE_ABDOMEN_COEF: Final[float] = 0.19077
NAVY_MALE_HEIGHT_COEF: Final[float] = 0.15456

# Female: 1.29579 - 0.35004*log10(waist + hip - neck) + 0.22100*log10(height)
NAVY_FEMALE_CONSTANT: Final[float] = 1.29579
NAVY_FEMALE_ABDOMEN_COEF: Final[float] = 0.35004
NAVY_FEMALE_HEIGHT_COEF: Final[float] = 0.22100

BODY_FAT_MIN_PERCENT: Final[float] = 0.0
BODY_FAT_MAX_PERCENT: Final[float] = 100.0

# =============================================================================
# DASHBOARD TRENDS
# =============================================================================

TREND_NEUTRAL_THRESHOLD: Final[float] = 0.1  # |change| below this is "neutral"
TRAILING_WINDOW_DAYS: Final[int] = 7  # "this week" card
ONE_RM_COMPARISON_DAYS: Final[int] = 30  # average 1RM: current vs. previous split

# =============================================================================
# CALENDAR
# =============================================================================

DEFAULT_TIMEZONE: Final[str] = "UTC"
DEFAULT_WEEK_START: Final[int] = 0  # Monday (ISO 8601)

WEEKDAY_NAMES: Final[tuple[str, ...]] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

# Trailing chart grids: number of monthly buckets for the long periods
SIX_MONTH_BUCKETS: Final[int] = 6
YEAR_BUCKETS: Final[int] = 12
WEEK_DAILY_BUCKETS: Final[int] = 7
