"""
Lead Score Calculator

Scores a lead snapshot with four independent rule categories:
- Demographics (role, company size, industry, location)
- Source quality (lead source)
- Engagement (base score, notes, follow-up, contacted status)
- Decay (stale record, cold status)

Scoring Formula:

    TOTAL = clamp(DEMOGRAPHICS + SOURCE_QUALITY + ENGAGEMENT + DECAY, -100, 100)

Only the total is clamped. Components are reported as computed.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from .classifier import SCORE_MAX, SCORE_MIN, classify
from .errors import IncompleteLeadError
from .models import COLD_STATUSES, STATUS_CONTACTED, LeadSnapshot, ScoringResult
from .weights import WeightTable


logger = logging.getLogger(__name__)

LARGE_COMPANY_MIN = 501
MEDIUM_COMPANY_MIN = 50


# =============================================================================
# TIME HELPERS
# =============================================================================

def age_in_days(timestamp: datetime, now: datetime) -> int:
    """
    Whole days elapsed between ``timestamp`` and ``now`` (floored).

    Naive and aware datetimes are compared in UTC when either side is aware;
    naive values are assumed to already be UTC in that case.
    """
    if (timestamp.tzinfo is None) != (now.tzinfo is None):
        timestamp = _as_utc(timestamp)
        now = _as_utc(now)
    return (now - timestamp).days


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_stale(updated_at: Optional[datetime], now: datetime, stale_after_days: int = 30) -> bool:
    """True when the record has gone more than ``stale_after_days`` without an update."""
    if updated_at is None:
        return False
    return age_in_days(updated_at, now) > stale_after_days


# =============================================================================
# SUB-SCORES
# =============================================================================

def company_size_tier(company_size: Optional[int]) -> Optional[str]:
    """large (> 500), medium (50-500), small (< 50); None when unknown."""
    if not company_size:
        return None
    if company_size >= LARGE_COMPANY_MIN:
        return 'large'
    if company_size >= MEDIUM_COMPANY_MIN:
        return 'medium'
    return 'small'


def is_target_region(lead: LeadSnapshot, weights: WeightTable) -> bool:
    """Case-insensitive substring match of any location part against the target regions."""
    if lead.location is None:
        return False
    parts = [p.lower() for p in lead.location.parts()]
    for region in weights.target_regions:
        region_lower = region.lower()
        if any(region_lower in part for part in parts):
            return True
    return False


def score_demographics(lead: LeadSnapshot, weights: WeightTable) -> int:
    """
    Role + company size tier + industry + location bonus.

    Logic:
    - Unknown role/industry labels contribute 0
    - Absent company size contributes 0 (not the 'small' weight)
    - Location only counts when at least one of city/state/country is set
    """
    score = weights.weight('role_in_decision', lead.role_in_decision)
    score += weights.weight('company_size', company_size_tier(lead.company_size))
    score += weights.weight('industry', lead.industry)

    if lead.location is not None and not lead.location.is_empty():
        label = 'target_region' if is_target_region(lead, weights) else 'non_target'
        score += weights.weight('location', label)

    return score


def score_source_quality(lead: LeadSnapshot, weights: WeightTable) -> int:
    """Exact-match weight of the lead source."""
    return weights.weight('lead_source', lead.lead_source)


def score_engagement(lead: LeadSnapshot, weights: WeightTable) -> int:
    """Base score plus activity bonuses."""
    score = weights.base_score

    if lead.has_notes():
        score += weights.notes_added
    if lead.next_follow_up is not None:
        score += weights.follow_up_scheduled
    if lead.status == STATUS_CONTACTED:
        score += weights.status_contacted

    return score


def score_decay(lead: LeadSnapshot, weights: WeightTable, now: datetime) -> int:
    """
    Staleness and cold-status penalties.

    Both penalties apply together when a stale lead also has a cold status.
    """
    if lead.updated_at is None:
        raise IncompleteLeadError(lead.lead_id, 'updated_at')

    score = 0
    if is_stale(lead.updated_at, now, weights.stale_after_days):
        score += weights.no_update_30_days
    if lead.status in COLD_STATUSES:
        score += weights.status_cold
    return score


def clamp_score(total: int) -> int:
    return max(SCORE_MIN, min(SCORE_MAX, total))


# =============================================================================
# CALCULATOR
# =============================================================================

def compute(lead: LeadSnapshot, weights: WeightTable, now: datetime) -> ScoringResult:
    """
    Compute the full breakdown for ``lead`` at instant ``now``.

    Raises:
        IncompleteLeadError: if ``updated_at`` is missing
    """
    if lead.updated_at is None:
        raise IncompleteLeadError(lead.lead_id, 'updated_at')

    demographics = score_demographics(lead, weights)
    source_quality = score_source_quality(lead, weights)
    engagement = score_engagement(lead, weights)
    decay = score_decay(lead, weights, now)

    total = clamp_score(demographics + source_quality + engagement + decay)

    result = ScoringResult(
        demographics=demographics,
        source_quality=source_quality,
        engagement=engagement,
        decay=decay,
        total=total,
        classification=classify(total),
    )
    logger.debug("Scored lead %s: %s", lead.lead_id, result.to_dict())
    return result
