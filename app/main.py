"""
Compost Assistant API - FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.config import APP_TITLE, LOG_LEVEL, SEED_DEFAULT_METHODS
from app.database import SessionLocal, init_db
from app.routers import balance, insights, piles, tasks
from app.services.compost_store import CompostStore

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    if SEED_DEFAULT_METHODS:
        db = SessionLocal()
        try:
            CompostStore(db).ensure_default_methods()
        finally:
            db.close()
    logger.info(f"{APP_TITLE} started")
    yield


app = FastAPI(title=APP_TITLE, lifespan=lifespan)
app.include_router(piles.router)
app.include_router(tasks.router)
app.include_router(balance.router)
app.include_router(insights.router)


@app.get("/health")
def health():
    return {"status": "healthy"}
