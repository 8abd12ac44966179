"""
Tests for the Brown:Green balance recommendation engine.
"""
import pytest

from app.schemas.compost_schemas import BalanceSeverity
from app.services.balance_service import (
    balance_progress,
    browns_to_reach,
    greens_to_reach,
    recommend,
)


class TestRecommendBands:

    def test_empty_pile(self):
        """No materials: empty severity, ratio 0, nothing required."""
        rec = recommend(0, 0)
        assert rec.severity == BalanceSeverity.EMPTY
        assert rec.ratio == 0.0
        assert rec.progress == 0.0
        assert rec.required_browns == 0
        assert rec.required_greens == 0
        assert rec.simplified_ratio == (0, 0)

    def test_only_browns(self):
        """10 browns, 0 greens: warn browns, ceil(10 / 2.5) = 4 greens."""
        rec = recommend(10, 0)
        assert rec.severity == BalanceSeverity.WARN_BROWNS
        assert rec.required_greens == 4
        assert rec.required_browns == 0
        assert rec.progress == 0.0
        assert rec.needed_text == "Add 4 green piles"

    def test_single_brown_requires_at_least_one_green(self):
        rec = recommend(1, 0)
        assert rec.severity == BalanceSeverity.WARN_BROWNS
        assert rec.required_greens == 1
        assert rec.needed_text == "Add 1 green pile"

    def test_too_many_greens(self):
        """4:10 = 0.4 < 2.0 -> warn greens, ceil(2.0 * 10) - 4 = 16 browns."""
        rec = recommend(4, 10)
        assert rec.severity == BalanceSeverity.WARN_GREENS
        assert rec.ratio == pytest.approx(0.4)
        assert rec.required_browns == 16
        assert rec.required_greens == 0
        assert rec.progress == 0.0

    def test_only_greens(self):
        rec = recommend(0, 3)
        assert rec.severity == BalanceSeverity.WARN_GREENS
        assert rec.required_browns == 6

    def test_ideal_ratio_has_no_nudge(self):
        """25:10 is exactly 2.5: ok and no delta."""
        rec = recommend(25, 10)
        assert rec.severity == BalanceSeverity.OK
        assert rec.required_browns == 0
        assert rec.required_greens == 0
        assert rec.needed_text is None
        assert rec.progress == pytest.approx(0.5)
        assert rec.simplified_ratio == (5, 2)

    def test_too_many_browns(self):
        """31:10 = 3.1 > 3.0 -> warn browns, ceil(31 / 3.0) - 10 = 1 green."""
        rec = recommend(31, 10)
        assert rec.severity == BalanceSeverity.WARN_BROWNS
        assert rec.required_greens == 1
        assert rec.required_browns == 0
        assert rec.progress == 1.0

    def test_band_edges_are_ok(self):
        assert recommend(20, 10).severity == BalanceSeverity.OK
        assert recommend(30, 10).severity == BalanceSeverity.OK


class TestIdealNudge:

    def test_nudge_browns_below_ideal(self):
        """21:10 is in band but below 2.5: suggest ceil(25) - 21 = 4 browns."""
        rec = recommend(21, 10)
        assert rec.severity == BalanceSeverity.OK
        assert rec.required_browns == 4
        assert rec.required_greens == 0
        assert rec.needed_text == "For ideal 2.5:1, add 4 browns"

    def test_nudge_greens_above_ideal(self):
        """29:10 is in band but above 2.5: suggest ceil(29 / 2.5) - 10 = 2 greens."""
        rec = recommend(29, 10)
        assert rec.severity == BalanceSeverity.OK
        assert rec.required_greens == 2
        assert rec.required_browns == 0

    def test_exact_ideal_with_small_counts(self):
        """5:2 is 2.5 exactly with small counts."""
        rec = recommend(5, 2)
        assert rec.needed_text is None


class TestInvariants:

    @pytest.mark.parametrize("browns", range(0, 41, 3))
    @pytest.mark.parametrize("greens", range(0, 21, 2))
    def test_progress_in_unit_interval(self, browns, greens):
        rec = recommend(browns, greens)
        assert 0.0 <= rec.progress <= 1.0
        assert 0.0 <= rec.brown_share <= 1.0
        assert rec.required_browns >= 0
        assert rec.required_greens >= 0

    @pytest.mark.parametrize("browns,greens", [(4, 10), (1, 7), (13, 9), (0, 1)])
    def test_required_browns_is_minimal(self, browns, greens):
        """Adding the required browns reaches 2.0; one fewer does not."""
        rec = recommend(browns, greens)
        assert rec.severity == BalanceSeverity.WARN_GREENS
        assert (browns + rec.required_browns) / greens >= 2.0
        assert (browns + rec.required_browns - 1) / greens < 2.0

    @pytest.mark.parametrize("browns,greens", [(31, 10), (50, 3), (7, 2)])
    def test_required_greens_is_minimal(self, browns, greens):
        rec = recommend(browns, greens)
        assert rec.severity == BalanceSeverity.WARN_BROWNS
        assert browns / (greens + rec.required_greens) <= 3.0
        assert browns / (greens + rec.required_greens - 1) > 3.0

    def test_to_dict_serializes_severity(self):
        data = recommend(4, 10).to_dict()
        assert data["severity"] == "warn_greens"
        assert data["required_browns"] == 16


class TestHelpers:

    def test_balance_progress_edges(self):
        assert balance_progress(1.0) == 0.0
        assert balance_progress(2.0) == 0.0
        assert balance_progress(2.5) == pytest.approx(0.5)
        assert balance_progress(3.0) == 1.0
        assert balance_progress(9.0) == 1.0

    def test_reach_helpers_never_negative(self):
        assert browns_to_reach(2.0, 50, 10) == 0
        assert greens_to_reach(3.0, 10, 50) == 0
