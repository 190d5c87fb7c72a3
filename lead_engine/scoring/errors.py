"""Exceptions raised by the lead scoring engine."""

from typing import Optional


class LeadScoringError(Exception):
    """Base class for scoring failures."""

    def __init__(self, message: str, lead_id: Optional[str] = None):
        self.lead_id = lead_id
        super().__init__(message)


class IncompleteLeadError(LeadScoringError):
    """A lead is missing a field the score cannot be computed without."""

    def __init__(self, lead_id: Optional[str], field: str = 'updated_at'):
        self.field = field
        super().__init__(f"lead {lead_id or '<unknown>'} is missing required field '{field}'", lead_id)


class InvalidLeadError(LeadScoringError):
    """A raw lead record could not be converted into a snapshot."""


class WeightConfigError(LeadScoringError):
    """The weight configuration is malformed."""
