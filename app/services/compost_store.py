"""
Compost Store.

Persistence collaborator for piles and their children. Constructed with a
SQLAlchemy Session by the caller; there is no module-level instance.

Piles own their material additions and turn events through ``pile_id``.
Deleting a pile deletes its children explicitly in the same transaction.
"""
from datetime import datetime, timezone
from typing import List, Optional, Tuple
import logging

from sqlalchemy import asc, desc
from sqlalchemy.orm import Session

from app.models.database_models import CompostMethod, CompostPile, MaterialAddition, TurnEvent
from app.schemas.compost_schemas import MoistureCategory, TemperatureCategory
from app.services.compost_rules import DEFAULT_METHODS
from app.services.harvest_eta_service import MaterialSnapshot, PileSnapshot
from app.services.vitals_service import (
    is_healthy_vitals,
    normalize_moisture,
    normalize_temperature,
)

logger = logging.getLogger(__name__)


class PileNotFoundError(LookupError):
    """Raised when a pile identifier does not exist."""
    pass


class PileHarvestedError(Exception):
    """Raised when mutating a pile that has already been harvested."""
    pass


class EmptyPileError(Exception):
    """Raised when turning a pile that has no materials yet."""
    pass


class MaterialNotFoundError(LookupError):
    """Raised when a material addition does not exist on the given pile."""
    pass


class AlreadyTurnedTodayError(Exception):
    """Raised when a pile was already turned on the same calendar day."""
    pass


def _naive(moment: datetime) -> datetime:
    """Stored datetimes are naive UTC."""
    if moment.tzinfo is not None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


class CompostStore:
    """Repository over one SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    # ==================== METHODS ====================

    def list_methods(self) -> List[CompostMethod]:
        return self.db.query(CompostMethod).order_by(asc(CompostMethod.id)).all()

    def get_method(self, method_id: int) -> Optional[CompostMethod]:
        return self.db.query(CompostMethod).filter(CompostMethod.id == method_id).first()

    def ensure_default_methods(self) -> int:
        """Insert the built-in methods when the table is empty. Returns how many were added."""
        if self.db.query(CompostMethod).count() > 0:
            return 0
        for data in DEFAULT_METHODS:
            self.db.add(CompostMethod(**data))
        self.db.commit()
        logger.info(f"Seeded {len(DEFAULT_METHODS)} default compost method(s)")
        return len(DEFAULT_METHODS)

    # ==================== PILES ====================

    def list_piles(self) -> List[CompostPile]:
        return self.db.query(CompostPile).order_by(desc(CompostPile.created_at), desc(CompostPile.id)).all()

    def list_active_piles(self) -> List[CompostPile]:
        return self.db.query(CompostPile).filter(
            CompostPile.harvested_at.is_(None)
        ).order_by(desc(CompostPile.created_at), desc(CompostPile.id)).all()

    def list_harvested_piles(self) -> List[CompostPile]:
        return self.db.query(CompostPile).filter(
            CompostPile.harvested_at.isnot(None)
        ).order_by(desc(CompostPile.harvested_at)).all()

    def get_pile(self, pile_id: int) -> CompostPile:
        pile = self.db.query(CompostPile).filter(CompostPile.id == pile_id).first()
        if not pile:
            raise PileNotFoundError(f"Pile {pile_id} not found")
        return pile

    def _get_active_pile(self, pile_id: int) -> CompostPile:
        pile = self.get_pile(pile_id)
        if pile.harvested_at is not None:
            raise PileHarvestedError(f"Pile {pile_id} has already been harvested")
        return pile

    def create_pile(self, name: str, now: datetime, method_id: Optional[int] = None) -> CompostPile:
        """Create a pile with default vitals (warm, humid)."""
        if method_id is not None and self.get_method(method_id) is None:
            raise LookupError(f"Compost method {method_id} not found")

        now = _naive(now)
        pile = CompostPile(
            name=name.strip(),
            temperature_category=TemperatureCategory.WARM.value,
            moisture_category=MoistureCategory.HUMID.value,
            created_at=now,
            last_logged=now,
            is_healthy=True,
            method_id=method_id,
        )
        self.db.add(pile)
        self.db.commit()
        self.db.refresh(pile)
        logger.info(f"Created pile {pile.id} ({pile.name!r})")
        return pile

    def rename_pile(self, pile_id: int, new_name: str) -> CompostPile:
        """Rename a pile; blank names are ignored."""
        pile = self.get_pile(pile_id)
        trimmed = new_name.strip()
        if not trimmed:
            return pile
        pile.name = trimmed
        self.db.commit()
        return pile

    def harvest_pile(self, pile_id: int, now: datetime) -> CompostPile:
        """Mark a pile harvested. Harvest is terminal; repeating it keeps the first timestamp."""
        pile = self.get_pile(pile_id)
        if pile.harvested_at is None:
            pile.harvested_at = _naive(now)
            self.db.commit()
            logger.info(f"Harvested pile {pile_id}")
        return pile

    def delete_pile(self, pile_id: int) -> None:
        """Delete a pile together with its material additions and turn events."""
        pile = self.get_pile(pile_id)
        materials = self.db.query(MaterialAddition).filter(MaterialAddition.pile_id == pile_id).delete()
        turns = self.db.query(TurnEvent).filter(TurnEvent.pile_id == pile_id).delete()
        self.db.delete(pile)
        self.db.commit()
        logger.info(f"Deleted pile {pile_id} ({materials} material(s), {turns} turn(s))")

    # ==================== CHILDREN ====================

    def list_materials(self, pile_id: int) -> List[MaterialAddition]:
        return self.db.query(MaterialAddition).filter(
            MaterialAddition.pile_id == pile_id
        ).order_by(asc(MaterialAddition.created_at), asc(MaterialAddition.id)).all()

    def list_turns(self, pile_id: int) -> List[TurnEvent]:
        return self.db.query(TurnEvent).filter(
            TurnEvent.pile_id == pile_id
        ).order_by(asc(TurnEvent.turned_at), asc(TurnEvent.id)).all()

    def add_material(
        self,
        pile_id: int,
        brown_amount: int,
        green_amount: int,
        is_shredded: bool,
        now: datetime,
    ) -> MaterialAddition:
        if brown_amount < 0 or green_amount < 0:
            raise ValueError("Material amounts must be non-negative")
        if brown_amount + green_amount == 0:
            raise ValueError("A material addition needs at least one brown or green unit")
        self._get_active_pile(pile_id)

        material = MaterialAddition(
            pile_id=pile_id,
            brown_amount=brown_amount,
            green_amount=green_amount,
            is_shredded=is_shredded,
            created_at=_naive(now),
        )
        self.db.add(material)
        self.db.commit()
        self.db.refresh(material)
        return material

    def remove_last_material(self, pile_id: int) -> Optional[MaterialAddition]:
        """Remove the most recent material addition; returns it, or None when the pile is empty."""
        self._get_active_pile(pile_id)
        last = self.db.query(MaterialAddition).filter(
            MaterialAddition.pile_id == pile_id
        ).order_by(desc(MaterialAddition.created_at), desc(MaterialAddition.id)).first()
        if last is None:
            return None
        self.db.delete(last)
        self.db.commit()
        return last

    def set_material_shredded(self, pile_id: int, material_id: int, is_shredded: bool) -> MaterialAddition:
        self._get_active_pile(pile_id)
        material = self.db.query(MaterialAddition).filter(
            MaterialAddition.id == material_id,
            MaterialAddition.pile_id == pile_id,
        ).first()
        if not material:
            raise MaterialNotFoundError(f"Material {material_id} not found on pile {pile_id}")
        material.is_shredded = is_shredded
        self.db.commit()
        return material

    def record_turn(self, pile_id: int, now: datetime) -> TurnEvent:
        """Append a turn event. The pile must hold materials and may be turned once per calendar day."""
        self._get_active_pile(pile_id)
        has_material = self.db.query(MaterialAddition.id).filter(
            MaterialAddition.pile_id == pile_id
        ).first() is not None
        if not has_material:
            raise EmptyPileError("Fill your pile first before you can start mixing it.")

        turned_at = _naive(now)
        last_turn = self.db.query(TurnEvent).filter(
            TurnEvent.pile_id == pile_id
        ).order_by(desc(TurnEvent.turned_at)).first()
        if last_turn and last_turn.turned_at.date() == turned_at.date():
            raise AlreadyTurnedTodayError("You just need to mix the pile once a day.")

        event = TurnEvent(pile_id=pile_id, turned_at=turned_at)
        self.db.add(event)
        self.db.commit()
        self.db.refresh(event)
        return event

    def update_vitals(self, pile_id: int, temperature: str, moisture: str, now: datetime) -> CompostPile:
        """Normalize raw vitals labels, store them and refresh health and last_logged."""
        pile = self._get_active_pile(pile_id)
        temp = normalize_temperature(temperature, strict=True)
        moist = normalize_moisture(moisture, strict=True)

        pile.temperature_category = temp.value
        pile.moisture_category = moist.value
        pile.last_logged = _naive(now)
        pile.is_healthy = is_healthy_vitals(temp, moist)
        self.db.commit()
        return pile

    def set_estimated_harvest(self, pile_id: int, when: datetime) -> None:
        """The only write path for estimated_harvest_at."""
        pile = self.get_pile(pile_id)
        pile.estimated_harvest_at = _naive(when)
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    # ==================== SNAPSHOTS ====================

    def snapshot(self, pile_id: int) -> PileSnapshot:
        return self._to_snapshot(self.get_pile(pile_id))

    def snapshots(self, active_only: bool = False) -> List[PileSnapshot]:
        piles = self.list_active_piles() if active_only else self.list_piles()
        return [self._to_snapshot(p) for p in piles]

    def _method_envelope(self, method_id: Optional[int]) -> Optional[Tuple[int, int]]:
        if method_id is None:
            return None
        method = self.get_method(method_id)
        if method is None:
            return None
        return method.duration_low_days, method.duration_high_days

    def _to_snapshot(self, pile: CompostPile) -> PileSnapshot:
        materials = tuple(
            MaterialSnapshot(
                brown_amount=m.brown_amount,
                green_amount=m.green_amount,
                is_shredded=m.is_shredded,
                created_at=m.created_at,
            )
            for m in self.list_materials(pile.id)
        )
        turns = tuple(t.turned_at for t in self.list_turns(pile.id))

        return PileSnapshot(
            id=pile.id,
            name=pile.name,
            created_at=pile.created_at,
            temperature=normalize_temperature(pile.temperature_category),
            moisture=normalize_moisture(pile.moisture_category),
            last_logged=pile.last_logged,
            harvested_at=pile.harvested_at,
            estimated_harvest_at=pile.estimated_harvest_at,
            method_envelope=self._method_envelope(pile.method_id),
            materials=materials,
            turns=turns,
        )
