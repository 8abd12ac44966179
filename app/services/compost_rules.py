"""
Deterministic composting rules and thresholds.

Shared by the balance, harvest ETA and task engines and by their tests.
"""

# Brown:Green balance
IDEAL_BROWN_GREEN = 2.5
ACCEPTABLE_BROWN_GREEN = (2.0, 3.0)
IDEAL_NUDGE_TOLERANCE = 0.01

# Harvest ETA
BASE_DURATION_DAYS = 90
MIN_EFFECTIVE_DAYS = 7
MIN_MULTIPLIER_PRODUCT = 0.1

TEMPERATURE_CAP_C = 70.0
TEMPERATURE_PIVOT_C = 35.0
TEMPERATURE_MULTIPLIER_RANGE = (0.6, 3.5)

MOISTURE_IDEAL_PCT = 55.0
MOISTURE_PENALTY_PER_PCT = 0.012
MOISTURE_MULTIPLIER_RANGE = (0.5, 1.2)

BROWN_GREEN_PENALTY = 0.07
BROWN_GREEN_MULTIPLIER_RANGE = (0.6, 1.2)

SHREDDED_FACTOR = 0.8

TURN_BASE_MULTIPLIER = 0.75
TURN_SLOPE_PER_MONTH = 0.04
TURN_MULTIPLIER_RANGE = (0.75, 1.25)
MIN_TURN_SPAN_MONTHS = 1.0 / 3.0
DAYS_PER_MONTH = 30.0

# Nominal numeric proxies for categorical vitals
TEMPERATURE_NOMINAL_C = {
    "cold": 30.0,
    "warm": 55.0,
    "hot": 70.0,
}

MOISTURE_NOMINAL_PCT = {
    "dry": 40.0,
    "humid": 55.0,
    "wet": 70.0,
}

HEALTHY_TEMPERATURES = ("warm", "hot")
HEALTHY_MOISTURES = ("humid",)

# Task derivation
TURN_EVERY_DAYS = (5, 7)
NO_LOG_DAYS_THRESHOLD = 5
MISSING_LOG_SENTINEL_DAYS = 999
DEFAULT_HARVEST_TARGET_DAYS = 90
MILESTONE_THRESHOLDS = (0.25, 0.50, 0.75)

# Insights
WASTE_KG_PER_UNIT = 0.5
STREAK_WINDOW_DAYS = 30

# Built-in method catalog
DEFAULT_METHODS = [
    {
        "name": "Hot Composting",
        "description": "A fast composting method.",
        "duration_low_days": 30,
        "duration_high_days": 180,
        "space_low": 1,
        "space_high": 4,
    },
]
