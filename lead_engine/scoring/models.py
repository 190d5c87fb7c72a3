"""
Data Structures for the Lead Scoring Engine

Defines the read-only lead snapshot handed to the engine and the plain
result objects it produces:
- LeadSnapshot / Location: scoring input
- ScoringResult: sub-score breakdown + clamped total + classification
- Recommendation: suggested action with its point impact
- ScoredLead: per-lead batch output (score metadata or per-item failure)
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional
from dataclasses import dataclass, field

from .errors import InvalidLeadError


# =============================================================================
# LEAD VOCABULARY
# =============================================================================

STATUS_NEW = 'New'
STATUS_CONTACTED = 'Contacted'
STATUS_QUALIFIED = 'Qualified'
STATUS_COLD = 'Cold'
STATUS_LOST = 'Lost'
STATUS_REJECTED = 'Rejected'
STATUS_CONVERTED = 'Converted'
STATUS_NURTURING = 'Nurturing'

VALID_STATUSES = (
    STATUS_NEW, STATUS_CONTACTED, STATUS_QUALIFIED, STATUS_COLD,
    STATUS_LOST, STATUS_REJECTED, STATUS_CONVERTED, STATUS_NURTURING,
)

# Statuses that trigger the cold-status decay penalty
COLD_STATUSES = frozenset({STATUS_COLD, STATUS_LOST, STATUS_REJECTED})

DECISION_ROLES = (
    'Decision Maker', 'Influencer', 'End User', 'Champion', 'Gatekeeper',
    'Technical Evaluator', 'Intern',
)


# =============================================================================
# SCORING INPUT
# =============================================================================

@dataclass(frozen=True)
class Location:
    """Optional city/state/country of a lead."""
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None

    def parts(self) -> List[str]:
        return [p for p in (self.city, self.state, self.country) if p]

    def is_empty(self) -> bool:
        return not self.parts()


@dataclass(frozen=True)
class LeadSnapshot:
    """Read-only view of a lead as seen by the scoring engine."""
    lead_id: str
    role_in_decision: Optional[str] = None
    company_size: Optional[int] = None
    industry: Optional[str] = None
    location: Optional[Location] = None
    lead_source: Optional[str] = None
    status: str = STATUS_NEW
    notes: str = ""
    next_follow_up: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Last persisted score, used only for reporting
    lead_score: Optional[int] = None

    def has_notes(self) -> bool:
        return bool(self.notes and self.notes.strip())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'LeadSnapshot':
        """
        Build a snapshot from a stored record or decoded JSON payload.

        Accepts either a nested ``location`` mapping or flat
        ``city``/``state``/``country`` columns. Timestamps may be datetimes
        or ISO-8601 strings.
        """
        lead_id = str(data.get('id') or data.get('lead_id') or '')

        location_data = data.get('location')
        if isinstance(location_data, Location):
            location = location_data
        elif isinstance(location_data, Mapping):
            location = Location(
                city=_parse_str(location_data.get('city'), 'city', lead_id),
                state=_parse_str(location_data.get('state'), 'state', lead_id),
                country=_parse_str(location_data.get('country'), 'country', lead_id),
            )
        else:
            location = Location(
                city=_parse_str(data.get('city'), 'city', lead_id),
                state=_parse_str(data.get('state'), 'state', lead_id),
                country=_parse_str(data.get('country'), 'country', lead_id),
            )

        return cls(
            lead_id=lead_id,
            role_in_decision=_parse_str(data.get('role_in_decision'), 'role_in_decision', lead_id),
            company_size=_parse_int(data.get('company_size'), 'company_size', lead_id),
            industry=_parse_str(data.get('industry'), 'industry', lead_id),
            location=None if location.is_empty() else location,
            lead_source=_parse_str(data.get('lead_source'), 'lead_source', lead_id),
            status=_parse_str(data.get('status'), 'status', lead_id) or STATUS_NEW,
            notes=_parse_str(data.get('notes'), 'notes', lead_id) or "",
            next_follow_up=parse_timestamp(data.get('next_follow_up'), 'next_follow_up', lead_id),
            updated_at=parse_timestamp(data.get('updated_at'), 'updated_at', lead_id),
            lead_score=_parse_int(data.get('lead_score'), 'lead_score', lead_id),
        )


def parse_timestamp(value: Any, field_name: str = 'timestamp', lead_id: str = '') -> Optional[datetime]:
    """Parse a datetime or ISO-8601 string. Empty values return None."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            raise InvalidLeadError(f"{field_name} is not a valid timestamp: {value!r}", lead_id)
    raise InvalidLeadError(f"{field_name} has unsupported type {type(value).__name__}", lead_id)


def _parse_int(value: Any, field_name: str, lead_id: str) -> Optional[int]:
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise InvalidLeadError(f"{field_name} must be an integer", lead_id)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise InvalidLeadError(f"{field_name} must be an integer, got {value!r}", lead_id)


def _parse_str(value: Any, field_name: str, lead_id: str) -> Optional[str]:
    if value is None or value == '':
        return None
    if not isinstance(value, str):
        raise InvalidLeadError(f"{field_name} must be text, got {type(value).__name__}", lead_id)
    return value


# =============================================================================
# SCORING OUTPUT
# =============================================================================

@dataclass(frozen=True)
class ScoringResult:
    """Sub-score breakdown for one lead at one instant."""
    demographics: int
    source_quality: int
    engagement: int
    decay: int
    total: int  # clamped to [-100, 100]
    classification: str

    @property
    def raw_total(self) -> int:
        """Sum of the components before clamping."""
        return self.demographics + self.source_quality + self.engagement + self.decay

    def to_dict(self) -> dict:
        return {
            'demographics': self.demographics,
            'sourceQuality': self.source_quality,
            'engagement': self.engagement,
            'decay': self.decay,
            'total': self.total,
            'classification': self.classification,
        }


@dataclass(frozen=True)
class Recommendation:
    """An improvement action and the points it would add."""
    action: str
    potential_score_increase: int
    priority: str  # high, medium

    def to_dict(self) -> dict:
        return {
            'action': self.action,
            'potential_score_increase': self.potential_score_increase,
            'priority': self.priority,
        }


@dataclass
class ScoredLead:
    """
    Outcome of scoring one lead.

    Exactly one of ``result`` and ``error`` is set. ``incomplete`` marks
    records that could not be scored because a required field is missing.
    """
    lead_id: str
    result: Optional[ScoringResult] = None
    last_calculated: Optional[datetime] = None
    error: Optional[str] = None
    incomplete: bool = False

    @property
    def ok(self) -> bool:
        return self.result is not None

    @property
    def lead_score(self) -> Optional[int]:
        return self.result.total if self.result else None

    @property
    def classification(self) -> Optional[str]:
        return self.result.classification if self.result else None

    @property
    def scoring_metadata(self) -> Optional[dict]:
        if self.result is None:
            return None
        return {
            'last_calculated': self.last_calculated.isoformat() if self.last_calculated else None,
            'classification': self.result.classification,
            'breakdown': self.result.to_dict(),
        }

    def to_dict(self) -> dict:
        data = {'id': self.lead_id}
        if self.ok:
            data['lead_score'] = self.lead_score
            data['classification'] = self.classification
            data['scoring_metadata'] = self.scoring_metadata
        else:
            data['error'] = self.error
            data['incomplete'] = self.incomplete
        return data


@dataclass
class BatchSummary:
    """Counts for a batch run."""
    total: int = 0
    scored: int = 0
    failed: int = 0
    by_classification: Dict[str, int] = field(default_factory=dict)
