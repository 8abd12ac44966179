"""
Tests for the CompostStore persistence collaborator (in-memory SQLite).
"""
import pytest
from datetime import timedelta

from app.models.database_models import MaterialAddition, TurnEvent
from app.schemas.compost_schemas import MoistureCategory, TemperatureCategory
from app.services.compost_store import (
    AlreadyTurnedTodayError,
    EmptyPileError,
    MaterialNotFoundError,
    PileHarvestedError,
    PileNotFoundError,
)
from app.services.harvest_eta_service import recompute_and_store
from app.services.vitals_service import InvalidCategoryError


class TestPiles:

    def test_create_with_defaults(self, store, now):
        pile = store.create_pile("  Kitchen Bin ", now)
        assert pile.id is not None
        assert pile.name == "Kitchen Bin"
        assert pile.temperature_category == "warm"
        assert pile.moisture_category == "humid"
        assert pile.is_healthy is True
        assert pile.created_at == now
        assert pile.harvested_at is None

    def test_create_with_unknown_method(self, store, now):
        with pytest.raises(LookupError):
            store.create_pile("Bin", now, method_id=99)

    def test_get_missing_pile(self, store):
        with pytest.raises(PileNotFoundError):
            store.get_pile(123)

    def test_rename_ignores_blank(self, store, now):
        pile = store.create_pile("Bin", now)
        assert store.rename_pile(pile.id, "   ").name == "Bin"
        assert store.rename_pile(pile.id, " Tumbler ").name == "Tumbler"

    def test_harvest_is_terminal(self, store, now):
        """A second harvest keeps the first timestamp."""
        pile = store.create_pile("Bin", now)
        store.harvest_pile(pile.id, now)
        store.harvest_pile(pile.id, now + timedelta(days=3))
        assert store.get_pile(pile.id).harvested_at == now

    def test_active_and_harvested_lists(self, store, now):
        a = store.create_pile("A", now)
        b = store.create_pile("B", now + timedelta(minutes=1))
        store.harvest_pile(a.id, now)
        assert [p.id for p in store.list_active_piles()] == [b.id]
        assert [p.id for p in store.list_harvested_piles()] == [a.id]
        assert [p.id for p in store.list_piles()] == [b.id, a.id]

    def test_delete_cascades_children(self, store, db_session, now):
        pile = store.create_pile("Bin", now)
        store.add_material(pile.id, 2, 1, False, now)
        store.record_turn(pile.id, now)
        store.delete_pile(pile.id)

        with pytest.raises(PileNotFoundError):
            store.get_pile(pile.id)
        assert db_session.query(MaterialAddition).count() == 0
        assert db_session.query(TurnEvent).count() == 0


class TestMaterialsAndTurns:

    def test_add_and_remove_last(self, store, now):
        pile = store.create_pile("Bin", now)
        store.add_material(pile.id, 2, 1, False, now)
        second = store.add_material(pile.id, 0, 3, False, now + timedelta(hours=1))

        removed = store.remove_last_material(pile.id)
        assert removed.id == second.id
        assert [m.green_amount for m in store.list_materials(pile.id)] == [1]

    def test_remove_last_on_empty_pile(self, store, now):
        pile = store.create_pile("Bin", now)
        assert store.remove_last_material(pile.id) is None

    def test_negative_amounts_rejected(self, store, now):
        pile = store.create_pile("Bin", now)
        with pytest.raises(ValueError):
            store.add_material(pile.id, -1, 0, False, now)

    def test_empty_addition_rejected(self, store, now):
        """A 0/0 addition would let an empty pile pass the turn guard."""
        pile = store.create_pile("Bin", now)
        with pytest.raises(ValueError):
            store.add_material(pile.id, 0, 0, False, now)
        assert store.list_materials(pile.id) == []
        with pytest.raises(EmptyPileError):
            store.record_turn(pile.id, now)

    def test_toggle_shredded(self, store, now):
        pile = store.create_pile("Bin", now)
        material = store.add_material(pile.id, 1, 1, False, now)
        assert store.set_material_shredded(pile.id, material.id, True).is_shredded is True
        with pytest.raises(MaterialNotFoundError):
            store.set_material_shredded(pile.id, 999, True)

    def test_turn_requires_materials(self, store, now):
        pile = store.create_pile("Bin", now)
        with pytest.raises(EmptyPileError):
            store.record_turn(pile.id, now)

    def test_one_turn_per_calendar_day(self, store, now):
        pile = store.create_pile("Bin", now - timedelta(days=2))
        store.add_material(pile.id, 1, 0, False, now - timedelta(days=2))
        store.record_turn(pile.id, now - timedelta(days=1))
        store.record_turn(pile.id, now)

        with pytest.raises(AlreadyTurnedTodayError):
            store.record_turn(pile.id, now + timedelta(hours=2))
        assert len(store.list_turns(pile.id)) == 2

        store.record_turn(pile.id, now + timedelta(hours=13))
        assert len(store.list_turns(pile.id)) == 3

    def test_harvested_pile_rejects_mutations(self, store, now):
        pile = store.create_pile("Bin", now)
        store.add_material(pile.id, 1, 1, False, now)
        store.harvest_pile(pile.id, now)

        with pytest.raises(PileHarvestedError):
            store.add_material(pile.id, 1, 0, False, now)
        with pytest.raises(PileHarvestedError):
            store.record_turn(pile.id, now)
        with pytest.raises(PileHarvestedError):
            store.update_vitals(pile.id, "hot", "humid", now)


class TestVitals:

    def test_update_normalizes_and_sets_health(self, store, now):
        pile = store.create_pile("Bin", now - timedelta(days=3))
        updated = store.update_vitals(pile.id, "Cold", "Moist", now)
        assert updated.temperature_category == "cold"
        assert updated.moisture_category == "humid"
        assert updated.is_healthy is False
        assert updated.last_logged == now

    def test_unknown_label_rejected(self, store, now):
        pile = store.create_pile("Bin", now)
        with pytest.raises(InvalidCategoryError):
            store.update_vitals(pile.id, "boiling", "humid", now)


class TestSnapshotsAndMethods:

    def test_snapshot_reflects_children(self, store, now):
        store.ensure_default_methods()
        method = store.list_methods()[0]
        pile = store.create_pile("Bin", now - timedelta(days=10), method_id=method.id)
        store.add_material(pile.id, 4, 2, True, now - timedelta(days=9))
        store.record_turn(pile.id, now - timedelta(days=2))
        store.update_vitals(pile.id, "hot", "wet", now)

        snap = store.snapshot(pile.id)
        assert snap.total_brown == 4
        assert snap.total_green == 2
        assert snap.is_shredded_any is True
        assert snap.turn_count == 1
        assert snap.temperature == TemperatureCategory.HOT
        assert snap.moisture == MoistureCategory.WET
        assert snap.method_envelope == (30, 180)

    def test_snapshots_active_only(self, store, now):
        a = store.create_pile("A", now)
        store.create_pile("B", now)
        store.harvest_pile(a.id, now)
        assert [s.name for s in store.snapshots(active_only=True)] == ["B"]
        assert len(store.snapshots()) == 2

    def test_default_methods_seeded_once(self, store):
        assert store.ensure_default_methods() == 1
        assert store.ensure_default_methods() == 0
        method = store.list_methods()[0]
        assert method.name == "Hot Composting"
        assert (method.duration_low_days, method.duration_high_days) == (30, 180)

    def test_recompute_persists_only_estimate(self, store, now):
        pile = store.create_pile("Bin", now)
        result, stored = recompute_and_store(store, pile.id, now)
        assert stored is True
        reloaded = store.get_pile(pile.id)
        assert reloaded.estimated_harvest_at == result.estimated_date
        assert reloaded.estimated_harvest_at == now + timedelta(days=34)
        assert reloaded.name == "Bin"
