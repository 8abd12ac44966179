"""
Tests for the Harvest ETA engine.

Reference values (fixed 90-day base):
  warm/humid, no materials, no turns -> m_T = 3.5 (capped), m_Turn = 0.75
  90 / (3.5 * 0.75) = 34.29 -> 34 days
"""
import pytest
from datetime import timedelta

from sqlalchemy.exc import OperationalError

from app.schemas.compost_schemas import MoistureCategory, TemperatureCategory
from app.services.compost_rules import MIN_EFFECTIVE_DAYS
from app.services.harvest_eta_service import (
    brown_green_multiplier,
    brown_green_ratio,
    compute_eta,
    effective_days,
    method_midpoint_days,
    moisture_multiplier,
    recompute_and_store,
    temperature_multiplier,
    turn_multiplier,
    turns_per_month,
)


class TestMultipliers:

    def test_temperature_capped_and_clamped(self):
        assert temperature_multiplier(35) == pytest.approx(1.0)
        assert temperature_multiplier(45) == pytest.approx(2.0)
        assert temperature_multiplier(55) == pytest.approx(3.5)
        assert temperature_multiplier(120) == pytest.approx(3.5)
        assert temperature_multiplier(-20) == pytest.approx(0.6)

    def test_temperature_cold_nominal(self):
        """30 °C -> 2^(-0.5)."""
        assert temperature_multiplier(30) == pytest.approx(0.7071, rel=1e-3)

    def test_moisture_penalty(self):
        assert moisture_multiplier(55) == pytest.approx(1.0)
        assert moisture_multiplier(40) == pytest.approx(0.82)
        assert moisture_multiplier(70) == pytest.approx(0.82)
        assert moisture_multiplier(0) == pytest.approx(0.5)

    def test_brown_green_penalty(self):
        assert brown_green_multiplier(2.5) == pytest.approx(1.0)
        assert brown_green_multiplier(0.5) == pytest.approx(0.86)
        assert brown_green_multiplier(50.0) == pytest.approx(0.6)

    def test_turn_multiplier_range(self):
        assert turn_multiplier(0) == pytest.approx(0.75)
        assert turn_multiplier(5) == pytest.approx(0.95)
        assert turn_multiplier(100) == pytest.approx(1.25)


class TestInputs:

    def test_brown_green_ratio_defaults_to_ideal(self):
        assert brown_green_ratio(0, 0) == pytest.approx(2.5)

    def test_brown_green_ratio_guards_zero_greens(self):
        assert brown_green_ratio(6, 0) == pytest.approx(6.0)
        assert brown_green_ratio(6, 4) == pytest.approx(1.5)

    def test_turns_per_month_no_turns(self, now):
        assert turns_per_month([], now) == 0.0

    def test_turns_per_month_minimum_span(self, now):
        """Two turns within a few days use the 1/3-month span floor."""
        turns = [now - timedelta(days=5), now - timedelta(days=1)]
        assert turns_per_month(turns, now) == pytest.approx(6.0)

    def test_turns_per_month_long_span(self, now):
        turns = [now - timedelta(days=60), now - timedelta(days=30), now]
        assert turns_per_month(turns, now) == pytest.approx(1.5, rel=0.05)

    def test_method_midpoint(self):
        assert method_midpoint_days((30, 180)) == pytest.approx(105.0)
        assert method_midpoint_days(None) == pytest.approx(90.0)


class TestComputeEta:

    def test_reference_pile(self, make_pile, now):
        pile = make_pile(age_days=10)
        eta = compute_eta(pile, now)
        assert eta.base_days == 90
        assert eta.m_temperature == pytest.approx(3.5)
        assert eta.m_turn == pytest.approx(0.75)
        assert eta.effective_days == 34
        assert eta.estimated_date == pile.created_at + timedelta(days=34)

    def test_cold_pile_is_slower(self, make_pile, now):
        """Cold: 90 / (0.7071 * 0.75) = 169.7 -> 170 days."""
        eta = compute_eta(make_pile(temperature=TemperatureCategory.COLD), now)
        assert eta.effective_days == 170

    def test_dry_pile(self, make_pile, now):
        """Dry: 90 / (3.5 * 0.82 * 0.75) = 41.8 -> 42 days."""
        eta = compute_eta(make_pile(moisture=MoistureCategory.DRY), now)
        assert eta.effective_days == 42

    def test_shredding_speeds_up(self, make_pile, now):
        """Shredded: 90 * 0.8 / 2.625 = 27.4 -> 27 days."""
        pile = make_pile(materials=[(5, 2, True)])
        eta = compute_eta(pile, now)
        assert eta.f_shredded == pytest.approx(0.8)
        assert eta.effective_days == 27

    def test_method_envelope_does_not_change_base(self, make_pile, now):
        with_method = compute_eta(make_pile(method_envelope=(30, 180)), now)
        without_method = compute_eta(make_pile(), now)
        assert with_method.base_days == without_method.base_days == 90
        assert with_method.effective_days == without_method.effective_days

    def test_deterministic(self, make_pile, now):
        """Same snapshot and time give identical results."""
        pile = make_pile(
            temperature=TemperatureCategory.HOT,
            moisture=MoistureCategory.WET,
            materials=[(3, 4, False), (2, 0, True)],
            turn_days_ago=[20, 12, 3],
        )
        assert compute_eta(pile, now) == compute_eta(pile, now)

    @pytest.mark.parametrize("temperature", list(TemperatureCategory))
    @pytest.mark.parametrize("moisture", list(MoistureCategory))
    @pytest.mark.parametrize("materials", [[], [(1, 9, False)], [(30, 1, True)]])
    def test_floor_holds(self, make_pile, now, temperature, moisture, materials):
        eta = compute_eta(make_pile(temperature=temperature, moisture=moisture, materials=materials), now)
        assert eta.effective_days >= MIN_EFFECTIVE_DAYS


class TestEffectiveDays:

    def test_floor_at_one_week(self):
        assert effective_days(10, 1.0, 3.5, 1.0, 1.0, 1.25) == MIN_EFFECTIVE_DAYS

    def test_denominator_floor(self):
        """The multiplier product never drops below 0.1."""
        assert effective_days(90, 1.0, 0.01, 0.01, 0.01, 0.01) == 900

    def test_monotone_in_turns_per_month(self):
        """More turns per month never lengthens the estimate."""
        previous = None
        for tpm in [0, 0.5, 1, 2, 3, 5, 8, 13, 20]:
            days = effective_days(90, 1.0, 0.7071, 0.82, 1.0, turn_multiplier(tpm))
            if previous is not None:
                assert days <= previous
            previous = days


class FakeStore:
    def __init__(self, snapshot, fail=False):
        self._snapshot = snapshot
        self.fail = fail
        self.stored = None
        self.rolled_back = False

    def snapshot(self, pile_id):
        return self._snapshot

    def set_estimated_harvest(self, pile_id, when):
        if self.fail:
            raise OperationalError("UPDATE", {}, Exception("database is locked"))
        self.stored = when

    def rollback(self):
        self.rolled_back = True


class TestRecomputeAndStore:

    def test_stores_estimated_date(self, make_pile, now):
        pile = make_pile()
        store = FakeStore(pile)
        result, stored = recompute_and_store(store, pile.id, now)
        assert stored is True
        assert store.stored == result.estimated_date

    def test_write_failure_is_not_fatal(self, make_pile, now):
        """A failed write rolls back and still returns the computed result."""
        pile = make_pile()
        store = FakeStore(pile, fail=True)
        result, stored = recompute_and_store(store, pile.id, now)
        assert stored is False
        assert store.rolled_back is True
        assert result.effective_days == 34
