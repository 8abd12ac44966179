"""
Balance & Methods Router.
Stateless Brown:Green advice and the compost method catalog.
"""
from typing import List

from fastapi import APIRouter, Depends, Query

from app.core.deps import get_store
from app.schemas.compost_schemas import BalanceResponse, CompostMethodResponse
from app.services.balance_service import recommend
from app.services.compost_store import CompostStore
from app.services.harvest_eta_service import method_midpoint_days

router = APIRouter(prefix="/api", tags=["balance"])


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(
    browns: int = Query(0, ge=0, description="Brown (carbon) units"),
    greens: int = Query(0, ge=0, description="Green (nitrogen) units"),
):
    """Balance advice for an arbitrary brown/green mix."""
    return BalanceResponse(**recommend(browns, greens).to_dict())


@router.get("/methods", response_model=List[CompostMethodResponse])
async def list_methods(store: CompostStore = Depends(get_store)):
    """Available compost methods with their duration envelope."""
    return [
        CompostMethodResponse(
            id=m.id,
            name=m.name,
            description=m.description or "",
            duration_low_days=m.duration_low_days,
            duration_high_days=m.duration_high_days,
            space_low=m.space_low,
            space_high=m.space_high,
            midpoint_days=method_midpoint_days((m.duration_low_days, m.duration_high_days)),
        )
        for m in store.list_methods()
    ]
