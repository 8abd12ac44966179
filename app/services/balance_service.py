"""
Brown:Green Balance Recommendation Service.

Classifies a pile's material mix into a severity band and computes the
minimal whole number of browns or greens to add to reach the acceptable
band (2.0-3.0) or, when already inside it, the exact ideal of 2.5.

Pure and total over non-negative integer counts.
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Tuple
import logging

from app.schemas.compost_schemas import BalanceSeverity
from app.services.compost_math import ceil_int, safe_div, simplify_ratio
from app.services.compost_rules import (
    ACCEPTABLE_BROWN_GREEN,
    IDEAL_BROWN_GREEN,
    IDEAL_NUDGE_TOLERANCE,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceRecommendation:
    """Advice for one brown/green mix."""
    severity: BalanceSeverity
    title: str
    message: str
    tip: Optional[str]
    needed_text: Optional[str]
    required_browns: int
    required_greens: int
    ratio: float
    progress: float
    brown_share: float
    simplified_ratio: Tuple[int, int]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


def balance_progress(ratio: float) -> float:
    """Position of ratio inside the acceptable band, 0 at the low edge and 1 at the high edge."""
    lo, hi = ACCEPTABLE_BROWN_GREEN
    if ratio <= lo:
        return 0.0
    if ratio >= hi:
        return 1.0
    return (ratio - lo) / (hi - lo)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


def browns_to_reach(ratio_target: float, browns: int, greens: int) -> int:
    """Smallest extra browns so that (browns + d) / greens >= ratio_target."""
    return max(0, ceil_int(ratio_target * float(greens)) - browns)


def greens_to_reach(ratio_target: float, browns: int, greens: int) -> int:
    """Smallest extra greens so that browns / (greens + d) <= ratio_target."""
    return max(0, ceil_int(float(browns) / ratio_target) - greens)


def recommend(browns: int, greens: int) -> BalanceRecommendation:
    """
    Build the balance recommendation for the given material counts.

    Args:
        browns: Total brown (carbon) units, >= 0
        greens: Total green (nitrogen) units, >= 0

    Returns:
        BalanceRecommendation with severity, guidance text, the required unit
        delta (0 means no action) and a progress score in [0, 1].
    """
    brown_share = safe_div(float(browns), float(max(browns + greens, 1)))
    simplified = simplify_ratio(browns, greens)

    if browns == 0 and greens == 0:
        return BalanceRecommendation(
            severity=BalanceSeverity.EMPTY,
            title="Let's Start Your Pile",
            message=(
                "Begin with a brown base (dry leaves/cardboard), then add a green layer "
                "(kitchen scraps). Aim for Brown:Green ≈ 2.5."
            ),
            tip="Rule of thumb: 2-3 parts brown for every 1 part green.",
            needed_text="Add your first pile (brown or green).",
            required_browns=0,
            required_greens=0,
            ratio=0.0,
            progress=0.0,
            brown_share=0.0,
            simplified_ratio=simplified,
        )

    if greens == 0:
        # Only browns: the reported ratio is the brown count itself, not a true ratio.
        needed_greens = max(1, ceil_int(float(browns) / IDEAL_BROWN_GREEN))
        return BalanceRecommendation(
            severity=BalanceSeverity.WARN_BROWNS,
            title="Too Many Browns",
            message="You have only browns. Add green piles to balance your compost.",
            tip=None,
            needed_text=f"Add {_plural(needed_greens, 'green pile')}",
            required_browns=0,
            required_greens=needed_greens,
            ratio=float(browns),
            progress=0.0,
            brown_share=brown_share,
            simplified_ratio=simplified,
        )

    ratio = float(browns) / float(greens)
    progress = balance_progress(ratio)
    lo, hi = ACCEPTABLE_BROWN_GREEN

    if ratio < lo:
        needed_browns = browns_to_reach(lo, browns, greens)
        return BalanceRecommendation(
            severity=BalanceSeverity.WARN_GREENS,
            title="Too Many Greens",
            message=(
                "Your pile is nitrogen-heavy. Mix in more browns (dry leaves, paper, "
                "cardboard) to balance."
            ),
            tip="Odor usually means excess nitrogen. Add browns and turn.",
            needed_text=f"Add {_plural(needed_browns, 'brown')}" if needed_browns > 0 else None,
            required_browns=needed_browns,
            required_greens=0,
            ratio=ratio,
            progress=progress,
            brown_share=brown_share,
            simplified_ratio=simplified,
        )

    if ratio > hi:
        needed_greens = greens_to_reach(hi, browns, greens)
        return BalanceRecommendation(
            severity=BalanceSeverity.WARN_BROWNS,
            title="Too Many Browns",
            message=(
                "Carbon-heavy pile. Add fresh greens (food scraps, grass) and a splash "
                "of water if dry."
            ),
            tip="Smaller pieces = faster compost. Chop big bits and mix.",
            needed_text=f"Add {_plural(needed_greens, 'green')}" if needed_greens > 0 else None,
            required_browns=0,
            required_greens=needed_greens,
            ratio=ratio,
            progress=progress,
            brown_share=brown_share,
            simplified_ratio=simplified,
        )

    # Inside the acceptable band: optional nudge toward the exact ideal
    nudge = None
    nudge_browns = 0
    nudge_greens = 0
    if abs(ratio - IDEAL_BROWN_GREEN) >= IDEAL_NUDGE_TOLERANCE:
        if ratio < IDEAL_BROWN_GREEN:
            nudge_browns = browns_to_reach(IDEAL_BROWN_GREEN, browns, greens)
            if nudge_browns > 0:
                nudge = f"For ideal 2.5:1, add {_plural(nudge_browns, 'brown')}"
        else:
            nudge_greens = greens_to_reach(IDEAL_BROWN_GREEN, browns, greens)
            if nudge_greens > 0:
                nudge = f"For ideal 2.5:1, add {_plural(nudge_greens, 'green')}"

    logger.debug(f"Balance ok: ratio={ratio:.2f}, nudge_browns={nudge_browns}, nudge_greens={nudge_greens}")

    return BalanceRecommendation(
        severity=BalanceSeverity.OK,
        title="Good Balance",
        message="You're within the ideal band (2.0-3.0). Keep layering browns and greens.",
        tip="Aim near 2.5 browns for each 1 green for fastest results.",
        needed_text=nudge,
        required_browns=nudge_browns,
        required_greens=nudge_greens,
        ratio=ratio,
        progress=progress,
        brown_share=brown_share,
        simplified_ratio=simplified,
    )
