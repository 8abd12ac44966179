"""
Request-scoped dependencies shared by the routers.
"""
from datetime import datetime, timezone

from fastapi import Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.compost_store import CompostStore


def get_store(db: Session = Depends(get_db)) -> CompostStore:
    """A CompostStore bound to this request's session."""
    return CompostStore(db)


def get_now() -> datetime:
    """Current time as naive UTC. Overridden in tests to pin the clock."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
