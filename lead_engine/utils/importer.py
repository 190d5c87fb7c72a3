"""
CSV Lead Import

Reads lead records from a CSV export (one lead per row) into dicts accepted
by LeadDatabase.add_lead. Column names match the lead fields; ``tags`` may
be a JSON array or a ';'-separated list.
"""

import csv
from pathlib import Path
from typing import Dict, List

from .database import EDITABLE_FIELDS, parse_tags


def load_leads_from_csv(csv_path: Path) -> List[Dict]:
    """Load lead records from CSV. Empty cells are dropped."""
    leads = []

    with open(csv_path, 'r', encoding='utf-8', newline='') as f:
        reader = csv.DictReader(f)

        for row in reader:
            lead: Dict = {}
            for key, value in row.items():
                if key is None or value is None:
                    continue
                key = key.strip()
                value = value.strip()
                if not value:
                    continue
                if key in EDITABLE_FIELDS or key in ('id', 'updated_at'):
                    lead[key] = value

            if 'tags' in lead:
                lead['tags'] = parse_tags(lead['tags'])

            if 'company_size' in lead:
                try:
                    lead['company_size'] = int(lead['company_size'])
                except ValueError:
                    lead.pop('company_size')

            leads.append(lead)

    return leads
