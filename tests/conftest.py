"""Shared fixtures for the lead scoring tests."""

from datetime import datetime, timedelta

import pytest

from lead_engine.scoring.models import Location, LeadSnapshot
from lead_engine.scoring.weights import WeightTable


FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0)


def make_lead(
    lead_id: str = "lead-1",
    days_since_update=0,
    **overrides,
) -> LeadSnapshot:
    """Helper to create a LeadSnapshot evaluated against FIXED_NOW."""
    fields = dict(
        lead_id=lead_id,
        status="New",
        notes="",
        updated_at=None if days_since_update is None else FIXED_NOW - timedelta(days=days_since_update),
    )
    fields.update(overrides)
    return LeadSnapshot(**fields)


def make_scenario_a(**overrides) -> LeadSnapshot:
    """Decision maker at a large tech company from a referral, freshly updated."""
    fields = dict(
        role_in_decision="Decision Maker",
        company_size=600,
        industry="Technology",
        location=Location(city="Paris", country="France"),
        lead_source="Referral",
    )
    fields.update(overrides)
    return make_lead(**fields)


def make_record(lead_id: str, days_since_update=0, **overrides) -> dict:
    """Helper to create a raw lead record as stored by LeadDatabase."""
    record = {
        "id": lead_id,
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": f"{lead_id}@example.com",
        "company_name": "Analytical Engines",
        "lead_source": "Referral",
        "role_in_decision": "Decision Maker",
        "company_size": 120,
        "industry": "Finance",
        "status": "New",
        "notes": "",
        "updated_at": None if days_since_update is None
        else (FIXED_NOW - timedelta(days=days_since_update)).isoformat(),
    }
    record.update(overrides)
    return record


@pytest.fixture
def weights() -> WeightTable:
    return WeightTable()


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW
