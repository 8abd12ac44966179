"""
Harvest ETA Service.

Estimates days-to-harvest for a compost pile from:
- Core temperature (nominal value of the temperature category)
- Moisture (nominal value of the moisture category)
- Brown:Green ratio of all material additions
- Shredding (any shredded addition)
- Turning frequency (turns per month since the first turn)

Each input becomes a unitless multiplier (higher = faster decomposition).
The fixed base duration is reduced by shredding and divided by the product
of the multipliers; the result never drops below one week.

The method duration envelope is carried on the snapshot but does not feed
the base duration; method_midpoint_days() exposes it for display only.
"""
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy.exc import SQLAlchemyError

from app.schemas.compost_schemas import MoistureCategory, TemperatureCategory
from app.services.compost_math import add_days, clamp, months_between, round_half_away, safe_div
from app.services.compost_rules import (
    BASE_DURATION_DAYS,
    BROWN_GREEN_MULTIPLIER_RANGE,
    BROWN_GREEN_PENALTY,
    IDEAL_BROWN_GREEN,
    MIN_EFFECTIVE_DAYS,
    MIN_MULTIPLIER_PRODUCT,
    MIN_TURN_SPAN_MONTHS,
    MOISTURE_IDEAL_PCT,
    MOISTURE_MULTIPLIER_RANGE,
    MOISTURE_NOMINAL_PCT,
    MOISTURE_PENALTY_PER_PCT,
    SHREDDED_FACTOR,
    TEMPERATURE_CAP_C,
    TEMPERATURE_MULTIPLIER_RANGE,
    TEMPERATURE_NOMINAL_C,
    TEMPERATURE_PIVOT_C,
    TURN_BASE_MULTIPLIER,
    TURN_MULTIPLIER_RANGE,
    TURN_SLOPE_PER_MONTH,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaterialSnapshot:
    """One material addition as seen by the engines."""
    brown_amount: int = 0
    green_amount: int = 0
    is_shredded: bool = False
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class PileSnapshot:
    """Read-only view of a pile and its children, consumed by every engine."""
    id: int
    name: str
    created_at: datetime
    temperature: TemperatureCategory = TemperatureCategory.WARM
    moisture: MoistureCategory = MoistureCategory.HUMID
    last_logged: Optional[datetime] = None
    harvested_at: Optional[datetime] = None
    estimated_harvest_at: Optional[datetime] = None
    method_envelope: Optional[Tuple[int, int]] = None
    materials: Tuple[MaterialSnapshot, ...] = field(default_factory=tuple)
    turns: Tuple[datetime, ...] = field(default_factory=tuple)

    @property
    def total_brown(self) -> int:
        return sum(m.brown_amount for m in self.materials)

    @property
    def total_green(self) -> int:
        return sum(m.green_amount for m in self.materials)

    @property
    def is_shredded_any(self) -> bool:
        return any(m.is_shredded for m in self.materials)

    @property
    def turn_count(self) -> int:
        return len(self.turns)

    @property
    def first_turned_at(self) -> Optional[datetime]:
        return min(self.turns) if self.turns else None

    @property
    def last_turned_at(self) -> Optional[datetime]:
        return max(self.turns) if self.turns else None

    @property
    def is_harvested(self) -> bool:
        return self.harvested_at is not None


@dataclass(frozen=True)
class ETAResult:
    """Multipliers, durations and the resulting estimated harvest date."""
    m_temperature: float
    m_moisture: float
    m_brown_green: float
    f_shredded: float
    m_turn: float
    base_days: int
    effective_days: int
    estimated_date: datetime
    temperature_c: float
    moisture_pct: float
    brown_green_ratio: float
    turns_per_month: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ==================== NOMINAL INPUTS ====================

def nominal_temperature_c(category: TemperatureCategory) -> float:
    return TEMPERATURE_NOMINAL_C[category.value]


def nominal_moisture_pct(category: MoistureCategory) -> float:
    return MOISTURE_NOMINAL_PCT[category.value]


def brown_green_ratio(total_brown: int, total_green: int) -> float:
    """Browns per green; the ideal 2.5 when nothing has been added yet."""
    if total_brown == 0 and total_green == 0:
        return IDEAL_BROWN_GREEN
    return safe_div(float(total_brown), float(max(total_green, 1)))


def turns_per_month(turns: List[datetime], now: datetime) -> float:
    """Turn count over the months since the first turn, with a 1/3-month floor on the span."""
    if not turns:
        return 0.0
    span_months = max(months_between(min(turns), now), MIN_TURN_SPAN_MONTHS)
    return safe_div(float(len(turns)), span_months)


def method_midpoint_days(envelope: Optional[Tuple[int, int]]) -> float:
    """Midpoint of a method's duration envelope, or the base duration without one."""
    if envelope is None:
        return float(BASE_DURATION_DAYS)
    low, high = envelope
    return (low + high) / 2.0


# ==================== MULTIPLIERS ====================

def temperature_multiplier(temperature_c: float) -> float:
    t = min(temperature_c, TEMPERATURE_CAP_C)
    lo, hi = TEMPERATURE_MULTIPLIER_RANGE
    return clamp(2.0 ** ((t - TEMPERATURE_PIVOT_C) / 10.0), lo, hi)


def moisture_multiplier(moisture_pct: float) -> float:
    lo, hi = MOISTURE_MULTIPLIER_RANGE
    return clamp(1.0 - MOISTURE_PENALTY_PER_PCT * abs(moisture_pct - MOISTURE_IDEAL_PCT), lo, hi)


def brown_green_multiplier(ratio: float) -> float:
    lo, hi = BROWN_GREEN_MULTIPLIER_RANGE
    return clamp(1.0 - BROWN_GREEN_PENALTY * abs(ratio - IDEAL_BROWN_GREEN), lo, hi)


def shredded_factor(is_shredded_any: bool) -> float:
    return SHREDDED_FACTOR if is_shredded_any else 1.0


def turn_multiplier(turns_pm: float) -> float:
    lo, hi = TURN_MULTIPLIER_RANGE
    return clamp(TURN_BASE_MULTIPLIER + TURN_SLOPE_PER_MONTH * turns_pm, lo, hi)


def effective_days(
    base_days: float,
    f_s: float,
    m_t: float,
    m_m: float,
    m_bg: float,
    m_turn: float,
) -> int:
    """Shredding-reduced base over the multiplier product, floored at one week."""
    denominator = max(m_t * m_m * m_bg * m_turn, MIN_MULTIPLIER_PRODUCT)
    return max(round_half_away(base_days * f_s / denominator), MIN_EFFECTIVE_DAYS)


# ==================== ENGINE ====================

def compute_eta(pile: PileSnapshot, now: datetime) -> ETAResult:
    """
    Compute the harvest ETA for a pile snapshot.

    Deterministic for a given snapshot and ``now``; ``now`` only affects the
    turns-per-month input, the date itself is anchored on the creation date.
    """
    temperature_c = min(nominal_temperature_c(pile.temperature), TEMPERATURE_CAP_C)
    moisture_pct = nominal_moisture_pct(pile.moisture)
    ratio = brown_green_ratio(pile.total_brown, pile.total_green)
    turns_pm = turns_per_month(list(pile.turns), now)

    m_t = temperature_multiplier(temperature_c)
    m_m = moisture_multiplier(moisture_pct)
    m_bg = brown_green_multiplier(ratio)
    f_s = shredded_factor(pile.is_shredded_any)
    m_turn = turn_multiplier(turns_pm)

    base = BASE_DURATION_DAYS
    days = effective_days(base, f_s, m_t, m_m, m_bg, m_turn)

    logger.debug(
        f"ETA pile={pile.id}: m_T={m_t:.3f} m_M={m_m:.3f} m_BG={m_bg:.3f} "
        f"f_S={f_s:.2f} m_Turn={m_turn:.3f} -> {days} days"
    )

    return ETAResult(
        m_temperature=m_t,
        m_moisture=m_m,
        m_brown_green=m_bg,
        f_shredded=f_s,
        m_turn=m_turn,
        base_days=base,
        effective_days=days,
        estimated_date=add_days(pile.created_at, days),
        temperature_c=temperature_c,
        moisture_pct=moisture_pct,
        brown_green_ratio=ratio,
        turns_per_month=turns_pm,
    )


def recompute_and_store(store, pile_id: int, now: datetime) -> Tuple[ETAResult, bool]:
    """
    Recompute a pile's ETA and persist only its estimated harvest date.

    A failed write is not fatal: the previous estimate stays in place until
    the next successful recompute.

    Args:
        store: CompostStore bound to the current session
        pile_id: Pile identifier
        now: Evaluation time

    Returns:
        (ETAResult, stored) where stored tells whether the write succeeded.
    """
    snapshot = store.snapshot(pile_id)
    result = compute_eta(snapshot, now)

    try:
        store.set_estimated_harvest(pile_id, result.estimated_date)
    except SQLAlchemyError as e:
        store.rollback()
        logger.error(f"Failed to store ETA for pile {pile_id}: {e}")
        return result, False

    logger.info(f"Stored ETA for pile {pile_id}: {result.effective_days} days -> {result.estimated_date:%Y-%m-%d}")
    return result, True
