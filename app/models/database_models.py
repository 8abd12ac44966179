"""
SQLAlchemy tables for compost tracking.

Children (material additions, turn events) point at their pile through
``pile_id`` only. There are no ORM relationships between these tables;
cascades are performed explicitly by ``CompostStore``.
"""
from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class CompostMethod(Base):
    __tablename__ = "compost_methods"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=False, default="")
    duration_low_days = Column(Integer, nullable=False)
    duration_high_days = Column(Integer, nullable=False)
    space_low = Column(Integer, nullable=False, default=1)
    space_high = Column(Integer, nullable=False, default=1)


class CompostPile(Base):
    __tablename__ = "compost_piles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    temperature_category = Column(String(10), nullable=False, default="warm")
    moisture_category = Column(String(10), nullable=False, default="humid")
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    last_logged = Column(DateTime, nullable=False, default=_utcnow)
    harvested_at = Column(DateTime, nullable=True)
    estimated_harvest_at = Column(DateTime, nullable=True)
    is_healthy = Column(Boolean, nullable=False, default=True)
    method_id = Column(Integer, ForeignKey("compost_methods.id"), nullable=True, index=True)


class MaterialAddition(Base):
    __tablename__ = "material_additions"
    __table_args__ = (
        CheckConstraint("brown_amount >= 0", name="ck_material_brown_non_negative"),
        CheckConstraint("green_amount >= 0", name="ck_material_green_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    pile_id = Column(Integer, ForeignKey("compost_piles.id"), nullable=False, index=True)
    brown_amount = Column(Integer, nullable=False, default=0)
    green_amount = Column(Integer, nullable=False, default=0)
    is_shredded = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=_utcnow)


class TurnEvent(Base):
    __tablename__ = "turn_events"

    id = Column(Integer, primary_key=True, index=True)
    pile_id = Column(Integer, ForeignKey("compost_piles.id"), nullable=False, index=True)
    turned_at = Column(DateTime, nullable=False, default=_utcnow)
