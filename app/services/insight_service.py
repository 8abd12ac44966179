"""
Insight Service - aggregate composting statistics across all piles.
"""
from collections import Counter
from dataclasses import dataclass, asdict, field
from datetime import datetime, timedelta
from typing import Any, Dict, List

from app.services.compost_math import days_between
from app.services.compost_rules import STREAK_WINDOW_DAYS, WASTE_KG_PER_UNIT
from app.services.harvest_eta_service import PileSnapshot
from app.services.vitals_service import is_healthy_vitals, pile_status


@dataclass
class CompostInsights:
    total_piles: int = 0
    active_piles: int = 0
    harvested_piles: int = 0
    total_turns: int = 0
    total_browns: int = 0
    total_greens: int = 0
    total_materials: int = 0
    waste_rescued_kg: float = 0.0
    waste_rescued_text: str = "0 g"
    average_active_age_days: int = 0
    composting_streak_days: int = 0
    share_text: str = ""
    status_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def formatted_weight(kg: float) -> str:
    """Human-readable weight: tons from 1000 kg, kg from 1 kg, grams below."""
    if kg >= 1000:
        return f"{kg / 1000:.1f} tons"
    if kg >= 1:
        return f"{kg:.1f} kg"
    return f"{kg * 1000:.0f} g"


def composting_streak(piles: List[PileSnapshot], now: datetime) -> int:
    """Distinct calendar days with at least one turn in the last 30 days."""
    window_start = now - timedelta(days=STREAK_WINDOW_DAYS)
    days = {
        turned_at.date()
        for pile in piles
        for turned_at in pile.turns
        if turned_at >= window_start
    }
    return len(days)


def share_text(insights: CompostInsights) -> str:
    return (
        "My Composting Stats:\n"
        f"- Total Composts: {insights.total_piles}\n"
        f"- Materials Added: {insights.total_materials}\n"
        f"- Waste Rescued: {insights.waste_rescued_text}\n"
        f"- Total Turns: {insights.total_turns}\n"
        "\n"
        "Start composting today!"
    )


def compute_insights(piles: List[PileSnapshot], now: datetime) -> CompostInsights:
    """
    Aggregate statistics for a list of pile snapshots.

    Average age covers active piles only (integer days, truncated); waste
    rescued is a rough 0.5 kg per material unit.
    """
    active = [p for p in piles if not p.is_harvested]

    insights = CompostInsights()
    insights.total_piles = len(piles)
    insights.active_piles = len(active)
    insights.harvested_piles = len(piles) - len(active)
    insights.total_turns = sum(p.turn_count for p in piles)
    insights.total_browns = sum(p.total_brown for p in piles)
    insights.total_greens = sum(p.total_green for p in piles)
    insights.total_materials = insights.total_browns + insights.total_greens
    insights.waste_rescued_kg = insights.total_materials * WASTE_KG_PER_UNIT
    insights.waste_rescued_text = formatted_weight(insights.waste_rescued_kg)

    if active:
        total_days = sum(days_between(p.created_at, now) for p in active)
        insights.average_active_age_days = total_days // len(active)

    insights.composting_streak_days = composting_streak(piles, now)

    counts = Counter(
        pile_status(p.is_harvested, is_healthy_vitals(p.temperature, p.moisture)).value
        for p in piles
    )
    insights.status_counts = dict(counts)
    insights.share_text = share_text(insights)
    return insights
