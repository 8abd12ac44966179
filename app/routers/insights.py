"""
Insights Router.
Aggregate statistics and the Excel workbook export.
"""
from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.core.deps import get_now, get_store
from app.schemas.compost_schemas import InsightResponse
from app.services.compost_excel_service import compost_excel_service
from app.services.compost_store import CompostStore
from app.services.harvest_eta_service import compute_eta
from app.services.insight_service import compute_insights
from app.services.task_service import build_tasks

router = APIRouter(prefix="/api/insights", tags=["insights"])


@router.get("", response_model=InsightResponse)
async def get_insights(
    store: CompostStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    return InsightResponse(**compute_insights(store.snapshots(), now).to_dict())


@router.get("/excel")
async def export_insights_excel(
    store: CompostStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    """
    Generate an Excel workbook with statistics, every pile and the open tasks.

    Returns the Excel file as a downloadable response.
    """
    piles = store.snapshots()
    etas = [compute_eta(p, now) for p in piles]
    tasks = build_tasks(piles, now, include_advisories=True)
    insights = compute_insights(piles, now)

    excel_buffer = compost_excel_service.generate_compost_excel(insights, piles, etas, tasks, now)
    filename = f"compost_report_{now.strftime('%Y%m%d')}.xlsx"
    return StreamingResponse(
        excel_buffer,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"'
        }
    )
