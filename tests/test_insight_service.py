"""
Tests for aggregate insights.
"""
import pytest

from app.schemas.compost_schemas import TemperatureCategory
from app.services.insight_service import compute_insights, formatted_weight


class TestFormattedWeight:

    def test_units(self):
        assert formatted_weight(0.5) == "500 g"
        assert formatted_weight(12.5) == "12.5 kg"
        assert formatted_weight(2500) == "2.5 tons"


class TestComputeInsights:

    def test_empty(self, now):
        insights = compute_insights([], now)
        assert insights.total_piles == 0
        assert insights.average_active_age_days == 0
        assert insights.composting_streak_days == 0
        assert insights.waste_rescued_text == "0 g"

    def test_totals(self, make_pile, now):
        piles = [
            make_pile(pile_id=1, age_days=10, materials=[(4, 2, False)], turn_days_ago=[1, 3]),
            make_pile(pile_id=2, age_days=21, materials=[(3, 1, False)], turn_days_ago=[2]),
            make_pile(pile_id=3, age_days=200, materials=[(1, 1, False)], harvested=True),
        ]
        insights = compute_insights(piles, now)
        assert insights.total_piles == 3
        assert insights.active_piles == 2
        assert insights.harvested_piles == 1
        assert insights.total_turns == 3
        assert insights.total_browns == 8
        assert insights.total_greens == 4
        assert insights.total_materials == 12
        assert insights.waste_rescued_kg == pytest.approx(6.0)
        assert insights.waste_rescued_text == "6.0 kg"
        assert insights.average_active_age_days == 15
        assert "Total Composts: 3" in insights.share_text

    def test_streak_counts_distinct_days_in_window(self, make_pile, now):
        piles = [
            make_pile(pile_id=1, turn_days_ago=[1, 1, 5, 40]),
            make_pile(pile_id=2, turn_days_ago=[5, 10]),
        ]
        assert compute_insights(piles, now).composting_streak_days == 3

    def test_status_counts(self, make_pile, now):
        piles = [
            make_pile(pile_id=1),
            make_pile(pile_id=2, temperature=TemperatureCategory.COLD),
            make_pile(pile_id=3, harvested=True),
        ]
        counts = compute_insights(piles, now).status_counts
        assert counts == {"healthy": 1, "need_action": 1, "harvested": 1}
