"""
Reminder mapping for derived tasks.

Turns open tasks into reminder payloads for the device scheduler: a stable
identifier per (kind, pile), a fixed per-kind title/body and a trigger time
that is never in the past. Delivery is handled by the client.
"""
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, List

from app.schemas.compost_schemas import TaskKind
from app.services.task_service import CompostTask

REMINDER_TITLES = {
    TaskKind.TURN_PILE: "Time to Turn Your Compost",
    TaskKind.UPDATE_LOG: "Update Your Compost Log",
    TaskKind.CHECK_HARVEST: "Check for Harvest Readiness",
    TaskKind.BALANCE_RATIO: "Your Compost Ratio Needs Attention",
    TaskKind.COMPOST_MILESTONE: "Compost Milestone Reached!",
}

REMINDER_BODIES = {
    TaskKind.TURN_PILE: 'Keep it breathing: give "{name}" a stir.',
    TaskKind.UPDATE_LOG: "It's been a while! Log today's temperature & moisture.",
    TaskKind.CHECK_HARVEST: '"{name}" may be finished. Look for rich, crumbly compost.',
    TaskKind.BALANCE_RATIO: '"{name}" brown/green ratio is off. Check what to add.',
    TaskKind.COMPOST_MILESTONE: 'Your compost "{name}" hit a new milestone!',
}


@dataclass(frozen=True)
class Reminder:
    identifier: str
    pile_id: int
    kind: TaskKind
    title: str
    body: str
    trigger_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def reminder_identifier(task: CompostTask) -> str:
    return f"compost.task.{task.kind.value}.{task.pile_id}"


def reminder_for(task: CompostTask, now: datetime) -> Reminder:
    return Reminder(
        identifier=reminder_identifier(task),
        pile_id=task.pile_id,
        kind=task.kind,
        title=REMINDER_TITLES[task.kind],
        body=REMINDER_BODIES[task.kind].format(name=task.pile_name),
        trigger_at=max(task.due_date, now),
    )


def reminders_for(tasks: List[CompostTask], now: datetime) -> List[Reminder]:
    """Reminders for every open task; later tasks with the same identifier replace earlier ones."""
    by_identifier: Dict[str, Reminder] = {}
    for task in tasks:
        if task.is_completed:
            continue
        reminder = reminder_for(task, now)
        by_identifier[reminder.identifier] = reminder
    return list(by_identifier.values())
