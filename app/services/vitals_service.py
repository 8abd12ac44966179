"""
Vitals normalization.

Raw temperature/moisture labels coming from clients are matched here, once,
against the closed categories. Everything downstream works with the enums.
"""
import logging
from typing import Optional

from app.schemas.compost_schemas import MoistureCategory, PileStatus, TemperatureCategory
from app.services.compost_rules import HEALTHY_MOISTURES, HEALTHY_TEMPERATURES

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = TemperatureCategory.WARM
DEFAULT_MOISTURE = MoistureCategory.HUMID

# Labels used by earlier clients
MOISTURE_ALIASES = {
    "moist": MoistureCategory.HUMID,
}


class InvalidCategoryError(ValueError):
    """Raised when a vitals label does not match any known category."""
    pass


def _clean(raw: Optional[str]) -> str:
    return (raw or "").strip().lower()


def normalize_temperature(raw: Optional[str], strict: bool = False) -> TemperatureCategory:
    """
    Map a raw temperature label to TemperatureCategory (case-insensitive).

    Unknown labels raise InvalidCategoryError when strict, otherwise fall back
    to warm.
    """
    value = _clean(raw)
    for category in TemperatureCategory:
        if category.value == value:
            return category

    if strict:
        raise InvalidCategoryError(f"Unknown temperature category: {raw!r}")
    logger.warning(f"Unknown temperature category {raw!r}, defaulting to {DEFAULT_TEMPERATURE.value}")
    return DEFAULT_TEMPERATURE


def normalize_moisture(raw: Optional[str], strict: bool = False) -> MoistureCategory:
    """
    Map a raw moisture label to MoistureCategory (case-insensitive).

    Accepts "moist" as an alias of humid. Unknown labels raise
    InvalidCategoryError when strict, otherwise fall back to humid.
    """
    value = _clean(raw)
    for category in MoistureCategory:
        if category.value == value:
            return category
    if value in MOISTURE_ALIASES:
        return MOISTURE_ALIASES[value]

    if strict:
        raise InvalidCategoryError(f"Unknown moisture category: {raw!r}")
    logger.warning(f"Unknown moisture category {raw!r}, defaulting to {DEFAULT_MOISTURE.value}")
    return DEFAULT_MOISTURE


def is_healthy_vitals(temperature: TemperatureCategory, moisture: MoistureCategory) -> bool:
    """Warm or hot, and humid."""
    return temperature.value in HEALTHY_TEMPERATURES and moisture.value in HEALTHY_MOISTURES


def pile_status(is_harvested: bool, is_healthy: bool) -> PileStatus:
    if is_harvested:
        return PileStatus.HARVESTED
    return PileStatus.HEALTHY if is_healthy else PileStatus.NEED_ACTION
