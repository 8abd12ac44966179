"""
Compost Tasks Router.
Derived tasks across active piles and their reminder payloads.
"""
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Query

from app.core.deps import get_now, get_store
from app.schemas.compost_schemas import ReminderResponse, TaskListResponse, TaskResponse
from app.services.compost_store import CompostStore
from app.services.reminder_service import reminders_for
from app.services.task_service import build_tasks

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    include_advisories: bool = Query(False, description="Add balance-ratio and milestone advisories"),
    store: CompostStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """Tasks for all active piles, earliest due first."""
    tasks = build_tasks(store.snapshots(active_only=True), now, include_advisories=include_advisories)
    items = [
        TaskResponse(
            pile_id=t.pile_id,
            pile_name=t.pile_name,
            kind=t.kind,
            due_date=t.due_date,
            is_completed=t.is_completed,
            is_overdue=t.is_overdue(now),
            note=t.note,
        )
        for t in tasks
    ]
    return TaskListResponse(items=items, total=len(items))


@router.get("/reminders", response_model=List[ReminderResponse])
async def list_reminders(
    include_advisories: bool = Query(False),
    store: CompostStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """Reminder payloads for the client scheduler, one per task kind and pile."""
    tasks = build_tasks(store.snapshots(active_only=True), now, include_advisories=include_advisories)
    return [ReminderResponse(**r.to_dict()) for r in reminders_for(tasks, now)]
