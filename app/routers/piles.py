"""
Compost Piles Router.
Pile lifecycle, material additions, turns, vitals and per-pile engine output.
"""
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
import io
import logging

from app.core.deps import get_now, get_store
from app.models.database_models import CompostPile
from app.schemas.compost_schemas import (
    BalanceResponse,
    ETAResponse,
    MaterialCreate,
    MaterialResponse,
    MaterialUpdate,
    PileCreate,
    PileDetail,
    PileListResponse,
    PileRename,
    PileSummary,
    TurnResponse,
    VitalsUpdate,
)
from app.services.balance_service import recommend
from app.services.compost_pdf_service import create_compost_pdf_report
from app.services.compost_store import (
    CompostStore,
    AlreadyTurnedTodayError,
    EmptyPileError,
    MaterialNotFoundError,
    PileHarvestedError,
    PileNotFoundError,
)
from app.services.harvest_eta_service import compute_eta, recompute_and_store
from app.services.task_service import build_tasks
from app.services.vitals_service import InvalidCategoryError, pile_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/piles", tags=["piles"])


def _http_error(exc: Exception) -> HTTPException:
    """Map store exceptions to HTTP errors."""
    if isinstance(exc, (PileNotFoundError, MaterialNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (PileHarvestedError, EmptyPileError, AlreadyTurnedTodayError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    # InvalidCategoryError, bad amounts, unknown method
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))


def build_pile_summary(store: CompostStore, pile: CompostPile) -> PileSummary:
    snapshot = store.snapshot(pile.id)
    return PileSummary(
        id=pile.id,
        name=pile.name,
        temperature_category=snapshot.temperature,
        moisture_category=snapshot.moisture,
        created_at=pile.created_at,
        last_logged=pile.last_logged,
        harvested_at=pile.harvested_at,
        estimated_harvest_at=pile.estimated_harvest_at,
        is_healthy=pile.is_healthy,
        status=pile_status(snapshot.is_harvested, pile.is_healthy),
        method_id=pile.method_id,
        total_brown=snapshot.total_brown,
        total_green=snapshot.total_green,
        turn_count=snapshot.turn_count,
        last_turned_at=snapshot.last_turned_at,
    )


def build_pile_detail(store: CompostStore, pile: CompostPile) -> PileDetail:
    summary = build_pile_summary(store, pile)
    return PileDetail(
        **summary.model_dump(),
        materials=[MaterialResponse.model_validate(m) for m in store.list_materials(pile.id)],
        turns=[TurnResponse.model_validate(t) for t in store.list_turns(pile.id)],
    )


def _refresh_eta(store: CompostStore, pile_id: int, now: datetime) -> None:
    """Recompute the stored estimate after a change that feeds the ETA."""
    recompute_and_store(store, pile_id, now)


# ==================== PILES ====================

@router.get("", response_model=PileListResponse)
async def list_piles(
    active_only: bool = Query(False, description="Only piles that are not harvested"),
    store: CompostStore = Depends(get_store),
):
    """List piles, newest first."""
    piles = store.list_active_piles() if active_only else store.list_piles()
    items = [build_pile_summary(store, p) for p in piles]
    return PileListResponse(items=items, total=len(items))


@router.post("", response_model=PileDetail, status_code=status.HTTP_201_CREATED)
async def create_pile(
    request: PileCreate,
    store: CompostStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """Create a pile with default vitals and an initial harvest estimate."""
    if not request.name.strip():
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Pile name cannot be blank")
    try:
        pile = store.create_pile(request.name, now, method_id=request.method_id)
    except LookupError as e:
        raise _http_error(e)

    _refresh_eta(store, pile.id, now)
    return build_pile_detail(store, store.get_pile(pile.id))


@router.get("/{pile_id}", response_model=PileDetail)
async def get_pile(pile_id: int, store: CompostStore = Depends(get_store)):
    try:
        pile = store.get_pile(pile_id)
    except PileNotFoundError as e:
        raise _http_error(e)
    return build_pile_detail(store, pile)


@router.patch("/{pile_id}", response_model=PileDetail)
async def rename_pile(
    pile_id: int,
    request: PileRename,
    store: CompostStore = Depends(get_store),
):
    """Rename a pile. Blank names leave the current name unchanged."""
    try:
        pile = store.rename_pile(pile_id, request.name)
    except PileNotFoundError as e:
        raise _http_error(e)
    return build_pile_detail(store, pile)


@router.delete("/{pile_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pile(pile_id: int, store: CompostStore = Depends(get_store)):
    """Delete a pile with all its materials and turns."""
    try:
        store.delete_pile(pile_id)
    except PileNotFoundError as e:
        raise _http_error(e)


@router.post("/{pile_id}/harvest", response_model=PileDetail)
async def harvest_pile(
    pile_id: int,
    store: CompostStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    try:
        pile = store.harvest_pile(pile_id, now)
    except PileNotFoundError as e:
        raise _http_error(e)
    return build_pile_detail(store, pile)


# ==================== MATERIALS & TURNS ====================

@router.post("/{pile_id}/materials", response_model=MaterialResponse, status_code=status.HTTP_201_CREATED)
async def add_material(
    pile_id: int,
    request: MaterialCreate,
    store: CompostStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """Add browns/greens to a pile and refresh its harvest estimate."""
    try:
        material = store.add_material(
            pile_id,
            request.brown_amount,
            request.green_amount,
            request.is_shredded,
            now,
        )
    except (PileNotFoundError, PileHarvestedError, ValueError) as e:
        raise _http_error(e)

    _refresh_eta(store, pile_id, now)
    return material


@router.delete("/{pile_id}/materials/last", response_model=PileDetail)
async def remove_last_material(
    pile_id: int,
    store: CompostStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """Undo the most recent material addition. No-op on an empty pile."""
    try:
        removed = store.remove_last_material(pile_id)
    except (PileNotFoundError, PileHarvestedError) as e:
        raise _http_error(e)

    if removed is not None:
        _refresh_eta(store, pile_id, now)
    return build_pile_detail(store, store.get_pile(pile_id))


@router.patch("/{pile_id}/materials/{material_id}", response_model=MaterialResponse)
async def update_material(
    pile_id: int,
    material_id: int,
    request: MaterialUpdate,
    store: CompostStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    try:
        material = store.set_material_shredded(pile_id, material_id, request.is_shredded)
    except (PileNotFoundError, MaterialNotFoundError, PileHarvestedError) as e:
        raise _http_error(e)

    _refresh_eta(store, pile_id, now)
    return material


@router.post("/{pile_id}/turns", response_model=TurnResponse, status_code=status.HTTP_201_CREATED)
async def record_turn(
    pile_id: int,
    store: CompostStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """Record that the pile was turned (mixed)."""
    try:
        event = store.record_turn(pile_id, now)
    except (PileNotFoundError, PileHarvestedError, EmptyPileError, AlreadyTurnedTodayError) as e:
        raise _http_error(e)

    _refresh_eta(store, pile_id, now)
    return event


@router.put("/{pile_id}/vitals", response_model=PileDetail)
async def update_vitals(
    pile_id: int,
    request: VitalsUpdate,
    store: CompostStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """Log temperature and moisture. Unknown labels are rejected."""
    try:
        pile = store.update_vitals(pile_id, request.temperature, request.moisture, now)
    except (PileNotFoundError, PileHarvestedError, InvalidCategoryError) as e:
        raise _http_error(e)

    _refresh_eta(store, pile_id, now)
    return build_pile_detail(store, store.get_pile(pile.id))


# ==================== ENGINE OUTPUT ====================

@router.get("/{pile_id}/eta", response_model=ETAResponse)
async def get_pile_eta(
    pile_id: int,
    store: CompostStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """Recompute, store and return the harvest ETA with its multipliers."""
    try:
        result, stored = recompute_and_store(store, pile_id, now)
    except PileNotFoundError as e:
        raise _http_error(e)
    return ETAResponse(pile_id=pile_id, stored=stored, **result.to_dict())


@router.get("/{pile_id}/balance", response_model=BalanceResponse)
async def get_pile_balance(pile_id: int, store: CompostStore = Depends(get_store)):
    try:
        snapshot = store.snapshot(pile_id)
    except PileNotFoundError as e:
        raise _http_error(e)
    return BalanceResponse(**recommend(snapshot.total_brown, snapshot.total_green).to_dict())


@router.get("/{pile_id}/pdf")
async def generate_pile_pdf(
    pile_id: int,
    store: CompostStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """Generate a PDF report for one pile."""
    try:
        snapshot = store.snapshot(pile_id)
    except PileNotFoundError as e:
        raise _http_error(e)

    eta = compute_eta(snapshot, now)
    balance = recommend(snapshot.total_brown, snapshot.total_green)
    tasks = build_tasks([snapshot], now, include_advisories=True)
    pdf_bytes = create_compost_pdf_report(snapshot, eta, balance, tasks, now)

    filename = f"compost_{snapshot.name.replace(' ', '_')}_{snapshot.id}.pdf"
    return StreamingResponse(
        io.BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"'
        }
    )
