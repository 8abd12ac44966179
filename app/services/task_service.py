"""
Compost Task Derivation Service.

Derives the due actions for each pile from elapsed-time thresholds:
1. Turn the pile when the last turn is 5+ days old (or it was never turned)
2. Update the log when vitals were not logged for 5+ days
3. Check for harvest once the pile reaches its estimated harvest age

Harvested piles produce no tasks. Results are sorted by due date; ties keep
the per-pile emission order (turn, log, harvest).

Balance-ratio and milestone advisories are opt-in and appended after the
core tasks of each pile.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
import logging

from app.schemas.compost_schemas import TaskKind
from app.services.balance_service import browns_to_reach, greens_to_reach
from app.services.compost_math import add_days, days_between
from app.services.compost_rules import (
    ACCEPTABLE_BROWN_GREEN,
    DEFAULT_HARVEST_TARGET_DAYS,
    IDEAL_BROWN_GREEN,
    MILESTONE_THRESHOLDS,
    MISSING_LOG_SENTINEL_DAYS,
    NO_LOG_DAYS_THRESHOLD,
    TURN_EVERY_DAYS,
)
from app.services.harvest_eta_service import PileSnapshot

logger = logging.getLogger(__name__)


@dataclass
class CompostTask:
    """A derived action for one pile (not persisted)."""
    pile_id: int
    pile_name: str
    kind: TaskKind
    due_date: datetime
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    note: Optional[str] = None

    def is_overdue(self, now: datetime) -> bool:
        return self.due_date < now and not self.is_completed

    def mark_completed(self, now: datetime) -> None:
        self.is_completed = True
        self.completed_at = now


def days_since_last_turn(pile: PileSnapshot, now: datetime) -> Optional[int]:
    last = pile.last_turned_at
    if last is None:
        return None
    return days_between(last, now)


def harvest_target_days(pile: PileSnapshot) -> int:
    """Days from creation to the stored estimate, or the 90-day fallback."""
    if pile.estimated_harvest_at is None:
        return DEFAULT_HARVEST_TARGET_DAYS
    return days_between(pile.created_at, pile.estimated_harvest_at)


def build_pile_tasks(pile: PileSnapshot, now: datetime) -> List[CompostTask]:
    """Core tasks for a single pile, in emission order turn -> log -> harvest."""
    out: List[CompostTask] = []

    if pile.is_harvested:
        return out

    turn_lower_bound = TURN_EVERY_DAYS[0]
    since_turn = days_since_last_turn(pile, now)
    if since_turn is None:
        out.append(CompostTask(pile.id, pile.name, TaskKind.TURN_PILE, now))
    elif since_turn >= turn_lower_bound:
        due = add_days(now, turn_lower_bound - since_turn)
        out.append(CompostTask(pile.id, pile.name, TaskKind.TURN_PILE, due))

    if pile.last_logged is None:
        since_log = MISSING_LOG_SENTINEL_DAYS
    else:
        since_log = days_between(pile.last_logged, now)
    if since_log >= NO_LOG_DAYS_THRESHOLD:
        out.append(CompostTask(pile.id, pile.name, TaskKind.UPDATE_LOG, now))

    age_days = days_between(pile.created_at, now)
    if age_days >= harvest_target_days(pile) and pile.harvested_at is None:
        out.append(CompostTask(pile.id, pile.name, TaskKind.CHECK_HARVEST, now))

    return out


def _milestone_message(percent: int, pile_name: str, days_remaining: int) -> str:
    if percent == 25:
        return f"{pile_name} is 25% done! The microbes are hard at work breaking things down."
    if percent == 50:
        return f"{pile_name} is halfway there! About {days_remaining} days to go."
    if percent == 75:
        return f"{pile_name} is 75% done! Almost ready, keep up the great composting!"
    return f"{pile_name} has reached {percent}% completion!"


def build_advisory_tasks(pile: PileSnapshot, now: datetime) -> List[CompostTask]:
    """
    Balance-ratio and milestone advisories for a single pile.

    Balance: fires when materials exist and Brown:Green is outside 2.0-3.0;
    the note asks for enough browns/greens to reach 2.5 (at least one).
    Milestone: fires within one day after 25/50/75% of the harvest target.
    """
    out: List[CompostTask] = []
    if pile.is_harvested:
        return out

    browns = pile.total_brown
    greens = pile.total_green
    if browns > 0 or greens > 0:
        # browns only always reads as too many browns, even for 1-3 units
        ratio = browns / greens if greens else float("inf")
        lo, hi = ACCEPTABLE_BROWN_GREEN
        if ratio < lo:
            needed = max(browns_to_reach(IDEAL_BROWN_GREEN, browns, max(greens, 1)), 1)
            note = (
                f"Too many greens: add {needed} more brown material{'s' if needed > 1 else ''} "
                f"like dry leaves or cardboard"
            )
            out.append(CompostTask(pile.id, pile.name, TaskKind.BALANCE_RATIO, now, note=note))
        elif ratio > hi:
            needed = max(greens_to_reach(IDEAL_BROWN_GREEN, browns, greens), 1)
            note = (
                f"Too many browns: add {needed} more green material{'s' if needed > 1 else ''} "
                f"like food scraps or grass"
            )
            out.append(CompostTask(pile.id, pile.name, TaskKind.BALANCE_RATIO, now, note=note))

    target_days = harvest_target_days(pile)
    if target_days > 0:
        age_days = days_between(pile.created_at, now)
        for threshold in MILESTONE_THRESHOLDS:
            threshold_day = int(target_days * threshold)
            if threshold_day <= age_days <= threshold_day + 1:
                percent = int(threshold * 100)
                note = _milestone_message(percent, pile.name, target_days - age_days)
                out.append(CompostTask(pile.id, pile.name, TaskKind.COMPOST_MILESTONE, now, note=note))
                break

    return out


def build_tasks(
    piles: List[PileSnapshot],
    now: datetime,
    include_advisories: bool = False,
) -> List[CompostTask]:
    """
    Build the prioritized task list across piles.

    Args:
        piles: Pile snapshots (harvested ones are skipped)
        now: Evaluation time
        include_advisories: Append balance/milestone advisories per pile

    Returns:
        Tasks sorted ascending by due date (stable).
    """
    tasks: List[CompostTask] = []
    for pile in piles:
        tasks.extend(build_pile_tasks(pile, now))
        if include_advisories:
            tasks.extend(build_advisory_tasks(pile, now))

    tasks.sort(key=lambda t: t.due_date)
    logger.debug(f"Derived {len(tasks)} task(s) for {len(piles)} pile(s)")
    return tasks
