"""
Tests for the score calculator.

These tests verify:
1. Each sub-score rule in isolation
2. The documented end-to-end scenarios
3. Clamping of the total only
4. Determinism against a fixed instant
5. Missing updated_at is reported as an incomplete record
"""

from datetime import datetime, timedelta, timezone

import pytest

from lead_engine.scoring.classifier import CLASSIFICATIONS
from lead_engine.scoring.errors import IncompleteLeadError
from lead_engine.scoring.models import Location
from lead_engine.scoring.scorer import (
    age_in_days,
    company_size_tier,
    compute,
    is_stale,
    score_decay,
    score_demographics,
    score_engagement,
    score_source_quality,
)
from lead_engine.scoring.weights import WeightTable

from conftest import FIXED_NOW, make_lead, make_scenario_a


# =============================================================================
# DEMOGRAPHICS
# =============================================================================

class TestDemographics:
    """Role, company size, industry and location rules."""

    def test_empty_lead_scores_zero(self, weights):
        assert score_demographics(make_lead(), weights) == 0

    def test_role_weight(self, weights):
        assert score_demographics(make_lead(role_in_decision="Champion"), weights) == 20

    def test_unknown_role_contributes_zero(self, weights):
        assert score_demographics(make_lead(role_in_decision="Janitor"), weights) == 0

    @pytest.mark.parametrize("size,tier", [
        (None, None),
        (1, "small"),
        (49, "small"),
        (50, "medium"),
        (500, "medium"),
        (501, "large"),
        (10000, "large"),
    ])
    def test_company_size_tiers(self, size, tier):
        assert company_size_tier(size) == tier

    def test_absent_size_is_not_small(self):
        weights = WeightTable.from_mapping({"weights": {"company_size": {"small": 7}}})
        assert score_demographics(make_lead(), weights) == 0
        assert score_demographics(make_lead(company_size=10), weights) == 7

    def test_industry_exact_match_only(self, weights):
        assert score_demographics(make_lead(industry="Retail"), weights) == 8
        assert score_demographics(make_lead(industry="retail"), weights) == 0

    def test_target_region_bonus_case_insensitive(self, weights):
        lead = make_lead(location=Location(city="san francisco", state="california"))
        assert score_demographics(lead, weights) == 10

    def test_target_region_substring_match(self, weights):
        lead = make_lead(location=Location(city="New York City"))
        assert score_demographics(lead, weights) == 10

    def test_non_target_region_uses_non_target_weight(self):
        weights = WeightTable.from_mapping({"weights": {"location": {"non_target": 3}}})
        lead = make_lead(location=Location(city="Paris", country="France"))
        assert score_demographics(lead, weights) == 3

    def test_missing_location_adds_nothing(self):
        weights = WeightTable.from_mapping({"weights": {"location": {"non_target": 3}}})
        assert score_demographics(make_lead(), weights) == 0

    def test_target_regions_come_from_config(self):
        weights = WeightTable.from_mapping({"target_regions": ["Bavaria"]})
        assert score_demographics(make_lead(location=Location(state="Bavaria")), weights) == 10
        assert score_demographics(make_lead(location=Location(state="California")), weights) == 0


# =============================================================================
# SOURCE QUALITY / ENGAGEMENT
# =============================================================================

class TestSourceQuality:

    def test_known_source(self, weights):
        assert score_source_quality(make_lead(lead_source="Website demo request"), weights) == 40

    def test_unknown_or_absent_source(self, weights):
        assert score_source_quality(make_lead(lead_source="Carrier pigeon"), weights) == 0
        assert score_source_quality(make_lead(), weights) == 0


class TestEngagement:

    def test_base_score_always_applied(self, weights):
        assert score_engagement(make_lead(), weights) == 5

    def test_whitespace_notes_do_not_count(self, weights):
        assert score_engagement(make_lead(notes="   \n"), weights) == 5

    def test_all_engagement_bonuses(self, weights):
        lead = make_lead(
            notes="Called, interested in Q3 rollout",
            next_follow_up=FIXED_NOW + timedelta(days=3),
            status="Contacted",
        )
        assert score_engagement(lead, weights) == 5 + 10 + 10 + 15


# =============================================================================
# DECAY
# =============================================================================

class TestDecay:

    def test_fresh_lead_has_no_decay(self, weights, now):
        assert score_decay(make_lead(), weights, now) == 0

    def test_thirty_days_is_not_stale(self, weights, now):
        assert score_decay(make_lead(days_since_update=30), weights, now) == 0

    def test_thirty_one_days_is_stale(self, weights, now):
        assert score_decay(make_lead(days_since_update=31), weights, now) == -10

    def test_partial_days_are_floored(self, now):
        updated = now - timedelta(days=30, hours=23)
        assert age_in_days(updated, now) == 30
        assert not is_stale(updated, now)

    @pytest.mark.parametrize("status", ["Cold", "Lost", "Rejected"])
    def test_cold_statuses(self, weights, now, status):
        assert score_decay(make_lead(status=status), weights, now) == -30

    def test_stale_and_cold_penalties_compound(self, weights, now):
        lead = make_lead(status="Rejected", days_since_update=90)
        assert score_decay(lead, weights, now) == -40

    def test_missing_updated_at_is_incomplete(self, weights, now):
        with pytest.raises(IncompleteLeadError) as exc_info:
            score_decay(make_lead(days_since_update=None), weights, now)
        assert exc_info.value.field == "updated_at"

    def test_aware_timestamp_against_naive_clock(self, weights, now):
        updated = datetime(2024, 4, 1, 12, 0, tzinfo=timezone.utc)
        assert age_in_days(updated, now) == 61
        assert score_decay(make_lead(updated_at=updated), weights, now) == -10


# =============================================================================
# FULL COMPUTATION
# =============================================================================

class TestCompute:

    def test_scenario_a_hot_lead(self, weights, now):
        result = compute(make_scenario_a(), weights, now)

        assert result.demographics == 65
        assert result.source_quality == 30
        assert result.engagement == 5
        assert result.decay == 0
        assert result.total == 100
        assert result.classification == "Hot"

    def test_scenario_b_decay_shifts_tier(self, weights, now):
        result = compute(make_scenario_a(status="Lost", days_since_update=45), weights, now)

        assert result.decay == -40
        assert result.total == 60
        assert result.classification == "Warm"

    def test_total_is_sum_of_components(self, weights, now):
        lead = make_lead(
            role_in_decision="Influencer",
            company_size=120,
            industry="Healthcare",
            lead_source="LinkedIn",
            notes="met at booth",
            status="Contacted",
        )
        result = compute(lead, weights, now)
        assert result.total == result.demographics + result.source_quality + result.engagement + result.decay
        assert result.total == 15 + 10 + 15 + 15 + 5 + 10 + 15

    def test_total_clamped_at_upper_bound(self, now):
        weights = WeightTable.from_mapping({"weights": {"base_score": 250}})
        result = compute(make_lead(), weights, now)

        assert result.engagement == 250
        assert result.raw_total == 250
        assert result.total == 100
        assert result.classification == "Hot"

    def test_total_clamped_at_lower_bound(self, now):
        weights = WeightTable.from_mapping({"weights": {"status_cold": -500}})
        result = compute(make_lead(status="Lost"), weights, now)

        assert result.decay == -500
        assert result.total == -100
        assert result.classification == "Disqualified"

    def test_cold_lead_is_disqualified(self, weights, now):
        result = compute(make_lead(status="Cold", days_since_update=60), weights, now)
        assert result.total == 5 - 40
        assert result.classification == "Disqualified"

    def test_repeated_calls_are_identical(self, weights, now):
        lead = make_scenario_a(notes="x", days_since_update=12)
        assert compute(lead, weights, now) == compute(lead, weights, now)

    def test_classification_always_named(self, weights, now):
        leads = [
            make_lead(),
            make_scenario_a(),
            make_scenario_a(status="Rejected", days_since_update=400),
            make_lead(status="Cold", days_since_update=100),
        ]
        for lead in leads:
            result = compute(lead, weights, now)
            assert -100 <= result.total <= 100
            assert result.classification in CLASSIFICATIONS

    def test_missing_updated_at_raises(self, weights, now):
        with pytest.raises(IncompleteLeadError):
            compute(make_scenario_a(days_since_update=None), weights, now)

    def test_breakdown_dict_shape(self, weights, now):
        data = compute(make_scenario_a(), weights, now).to_dict()
        assert data == {
            "demographics": 65,
            "sourceQuality": 30,
            "engagement": 5,
            "decay": 0,
            "total": 100,
            "classification": "Hot",
        }
