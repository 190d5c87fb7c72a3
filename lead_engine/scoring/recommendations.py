"""
Scoring Recommendations

Suggests actions that would raise a lead's score. Rules are independent
and evaluated in a fixed order; any subset may fire. Impacts are reported
per rule and are not adjusted for the [-100, 100] clamp.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List

from .models import STATUS_NEW, LeadSnapshot, Recommendation
from .scorer import is_stale
from .weights import WeightTable


@dataclass(frozen=True)
class RecommendationRule:
    action: str
    priority: str
    applies: Callable[[LeadSnapshot, WeightTable, datetime], bool]
    impact: Callable[[WeightTable], int]


RULES: List[RecommendationRule] = [
    RecommendationRule(
        action='Schedule follow-up',
        priority='high',
        applies=lambda lead, weights, now: lead.next_follow_up is None,
        impact=lambda weights: weights.follow_up_scheduled,
    ),
    RecommendationRule(
        action='Add sales notes',
        priority='medium',
        applies=lambda lead, weights, now: not lead.has_notes(),
        impact=lambda weights: weights.notes_added,
    ),
    RecommendationRule(
        action='Update status to Contacted',
        priority='high',
        applies=lambda lead, weights, now: lead.status == STATUS_NEW,
        impact=lambda weights: weights.status_contacted,
    ),
    RecommendationRule(
        action='Update lead information',
        priority='high',
        applies=lambda lead, weights, now: is_stale(lead.updated_at, now, weights.stale_after_days),
        impact=lambda weights: abs(weights.no_update_30_days),
    ),
]


def recommend(lead: LeadSnapshot, weights: WeightTable, now: datetime) -> List[Recommendation]:
    """Ordered recommendations for ``lead``; empty when nothing is missing."""
    return [
        Recommendation(
            action=rule.action,
            potential_score_increase=rule.impact(weights),
            priority=rule.priority,
        )
        for rule in RULES
        if rule.applies(lead, weights, now)
    ]


def total_potential_increase(recommendations: List[Recommendation]) -> int:
    return sum(r.potential_score_increase for r in recommendations)
