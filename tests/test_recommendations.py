"""Tests for scoring recommendations."""

from datetime import timedelta

from lead_engine.scoring.recommendations import recommend, total_potential_increase
from lead_engine.scoring.weights import WeightTable

from conftest import FIXED_NOW, make_lead


def actions(recommendations):
    return [r.action for r in recommendations]


class TestRecommend:

    def test_scenario_c_new_bare_lead(self, weights, now):
        recs = recommend(make_lead(), weights, now)

        assert actions(recs) == [
            "Schedule follow-up",
            "Add sales notes",
            "Update status to Contacted",
        ]
        assert [r.potential_score_increase for r in recs] == [10, 10, 15]
        assert [r.priority for r in recs] == ["high", "medium", "high"]

    def test_stale_lead_gets_update_recommendation(self, weights, now):
        recs = recommend(make_lead(days_since_update=45), weights, now)

        assert actions(recs)[-1] == "Update lead information"
        assert recs[-1].potential_score_increase == 10
        assert recs[-1].priority == "high"
        assert len(recs) == 4

    def test_fully_engaged_lead_has_no_recommendations(self, weights, now):
        lead = make_lead(
            notes="Budget approved",
            next_follow_up=FIXED_NOW + timedelta(days=2),
            status="Contacted",
        )
        assert recommend(lead, weights, now) == []

    def test_rules_are_independent(self, weights, now):
        lead = make_lead(notes="ok", status="Qualified", days_since_update=40)
        assert actions(recommend(lead, weights, now)) == [
            "Schedule follow-up",
            "Update lead information",
        ]

    def test_missing_updated_at_does_not_fail(self, weights, now):
        recs = recommend(make_lead(days_since_update=None), weights, now)
        assert "Update lead information" not in actions(recs)

    def test_impacts_follow_weight_table(self, now):
        weights = WeightTable.from_mapping({"weights": {
            "follow_up_scheduled": 25,
            "notes_added": 4,
            "status_contacted": 1,
            "no_update_30_days": -17,
        }})
        recs = recommend(make_lead(days_since_update=31), weights, now)
        assert [r.potential_score_increase for r in recs] == [25, 4, 1, 17]

    def test_impacts_are_not_capped_by_clamp(self, now):
        weights = WeightTable.from_mapping({"weights": {"follow_up_scheduled": 90, "notes_added": 90}})
        recs = recommend(make_lead(), weights, now)
        assert total_potential_increase(recs) == 90 + 90 + 15

    def test_to_dict(self, weights, now):
        rec = recommend(make_lead(), weights, now)[0]
        assert rec.to_dict() == {
            "action": "Schedule follow-up",
            "potential_score_increase": 10,
            "priority": "high",
        }
