"""
SQLite Database Manager for Lead Storage

Handles persistent storage of:
- Leads (CRUD, soft delete, conversion)
- Persisted lead scores and scoring metadata
- Score history
"""

import sqlite3
import json
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Dict, Optional, Any, Iterable
from contextlib import contextmanager

from ..scoring.models import STATUS_CONVERTED, STATUS_NEW, ScoredLead


PROJECT_ROOT = Path(__file__).parent.parent.parent

REQUIRED_FIELDS = ('first_name', 'last_name', 'email', 'company_name', 'lead_source')

# Fields callers may set through add_lead/update_lead
EDITABLE_FIELDS = (
    'first_name', 'last_name', 'email', 'phone', 'job_title',
    'company_name', 'company_website', 'role_in_decision', 'industry',
    'company_size', 'annual_revenue', 'lead_source', 'status', 'priority',
    'city', 'state', 'country', 'tags', 'notes', 'assigned_to',
    'next_follow_up', 'deal_stage', 'source_campaign', 'communication_channel',
)

SORTABLE_FIELDS = ('created_at', 'updated_at', 'lead_score', 'company_name', 'last_name', 'status')


def parse_tags(value: str) -> List[str]:
    """Parse tags given as a JSON array or a ';'-separated list."""
    value = value.strip()
    if not value:
        return []
    if value.startswith('['):
        try:
            return [str(t) for t in json.loads(value)]
        except (json.JSONDecodeError, TypeError):
            pass
    return [t.strip() for t in value.split(';') if t.strip()]


class LeadDatabase:
    """
    SQLite database for storing leads and their scores.

    Tables:
    - leads: Lead records with the last persisted score
    - score_history: One row per persisted scoring run
    """

    SCHEMA = """
    CREATE TABLE IF NOT EXISTS leads (
        id TEXT PRIMARY KEY,
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        email TEXT UNIQUE NOT NULL,
        phone TEXT,
        job_title TEXT,
        company_name TEXT NOT NULL,
        company_website TEXT,

        -- Business context
        role_in_decision TEXT,
        industry TEXT,
        company_size INTEGER,
        annual_revenue REAL,

        -- Lead management
        lead_source TEXT NOT NULL,
        status TEXT DEFAULT 'New',
        priority TEXT DEFAULT 'Medium',
        lead_score INTEGER DEFAULT 0,
        scoring_metadata TEXT,  -- JSON

        -- Location
        city TEXT,
        state TEXT,
        country TEXT,

        tags TEXT,  -- JSON array
        notes TEXT,
        assigned_to TEXT,
        next_follow_up TIMESTAMP,
        deal_stage TEXT,
        source_campaign TEXT,
        communication_channel TEXT DEFAULT 'Email',

        is_converted BOOLEAN DEFAULT FALSE,
        converted_at TIMESTAMP,

        created_at TIMESTAMP,
        updated_at TIMESTAMP,
        deleted_at TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS score_history (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        lead_id TEXT NOT NULL,
        total_score INTEGER,
        classification TEXT,
        breakdown TEXT,  -- JSON
        scored_at TIMESTAMP,

        FOREIGN KEY (lead_id) REFERENCES leads(id)
    );

    CREATE INDEX IF NOT EXISTS idx_leads_status ON leads(status);
    CREATE INDEX IF NOT EXISTS idx_leads_company ON leads(company_name);
    CREATE INDEX IF NOT EXISTS idx_leads_created ON leads(created_at);
    CREATE INDEX IF NOT EXISTS idx_leads_follow_up ON leads(next_follow_up);
    CREATE INDEX IF NOT EXISTS idx_history_lead ON score_history(lead_id);
    """

    def __init__(self, db_path: Optional[Path] = None):
        if db_path is None:
            db_path = PROJECT_ROOT / 'data' / 'leads.db'

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.executescript(self.SCHEMA)

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _encode(field: str, value: Any) -> Any:
        if field == 'email' and value:
            return str(value).strip().lower()
        if field == 'tags' and value is not None:
            if isinstance(value, str):
                value = parse_tags(value)
            return json.dumps(list(value))
        if isinstance(value, datetime):
            return value.isoformat()
        return value

    @staticmethod
    def _row_to_lead(row: sqlite3.Row) -> Dict:
        data = dict(row)
        if data.get('tags'):
            data['tags'] = json.loads(data['tags'])
        if data.get('scoring_metadata'):
            data['scoring_metadata'] = json.loads(data['scoring_metadata'])
        data['is_converted'] = bool(data.get('is_converted'))
        data['location'] = {
            'city': data.get('city'),
            'state': data.get('state'),
            'country': data.get('country'),
        }
        return data

    # =========================================================================
    # LEAD OPERATIONS
    # =========================================================================

    def add_lead(self, lead_data: Dict) -> Optional[str]:
        """
        Add a lead. Returns the new lead ID, or None if the email exists.

        Raises:
            ValueError: if a required field is missing
        """
        missing = [f for f in REQUIRED_FIELDS if not lead_data.get(f)]
        if missing:
            raise ValueError(f"Missing required fields: {', '.join(missing)}")

        data = _flatten_location(lead_data)
        lead_id = str(data.get('id') or uuid.uuid4())
        now = datetime.now().isoformat()

        fields = [f for f in EDITABLE_FIELDS if data.get(f) is not None]
        values = [self._encode(f, data[f]) for f in fields]
        if 'status' not in fields:
            fields.append('status')
            values.append(STATUS_NEW)

        updated_at = self._encode('updated_at', data['updated_at']) if data.get('updated_at') else now
        columns = ['id', *fields, 'created_at', 'updated_at']
        placeholders = ', '.join('?' for _ in columns)

        with self._get_connection() as conn:
            try:
                conn.execute(
                    f"INSERT INTO leads ({', '.join(columns)}) VALUES ({placeholders})",
                    (lead_id, *values, now, updated_at)
                )
                return lead_id
            except sqlite3.IntegrityError:
                return None

    def get_lead(self, lead_id: str, include_deleted: bool = False) -> Optional[Dict]:
        """Get lead by ID."""
        query = "SELECT * FROM leads WHERE id = ?"
        if not include_deleted:
            query += " AND deleted_at IS NULL"
        with self._get_connection() as conn:
            row = conn.execute(query, (lead_id,)).fetchone()
            return self._row_to_lead(row) if row else None

    def get_leads_by_ids(self, lead_ids: Iterable[str]) -> List[Optional[Dict]]:
        """Fetch leads in the given order; unknown IDs map to None."""
        return [self.get_lead(lead_id) for lead_id in lead_ids]

    def list_leads(
        self,
        status: Optional[str] = None,
        lead_source: Optional[str] = None,
        industry: Optional[str] = None,
        role_in_decision: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = 'created_at',
        sort_order: str = 'desc',
        page: int = 1,
        per_page: int = 10,
    ) -> Dict:
        """List leads with filtering, sorting and pagination."""
        clauses = ["deleted_at IS NULL"]
        params: List[Any] = []

        if status:
            clauses.append("status = ?")
            params.append(status)
        if lead_source:
            clauses.append("lead_source = ?")
            params.append(lead_source)
        if role_in_decision:
            clauses.append("role_in_decision = ?")
            params.append(role_in_decision)
        if industry:
            clauses.append("industry LIKE ?")
            params.append(f"%{industry}%")
        if search:
            clauses.append(
                "(first_name LIKE ? OR last_name LIKE ? OR email LIKE ? "
                "OR company_name LIKE ? OR notes LIKE ?)"
            )
            params.extend([f"%{search}%"] * 5)

        if sort_by not in SORTABLE_FIELDS:
            sort_by = 'created_at'
        direction = 'ASC' if sort_order.lower() == 'asc' else 'DESC'
        page = max(page, 1)
        per_page = max(per_page, 1)
        where = " AND ".join(clauses)

        with self._get_connection() as conn:
            total_items = conn.execute(
                f"SELECT COUNT(*) as count FROM leads WHERE {where}", params
            ).fetchone()['count']
            rows = conn.execute(
                f"""SELECT * FROM leads WHERE {where}
                    ORDER BY {sort_by} {direction} LIMIT ? OFFSET ?""",
                (*params, per_page, (page - 1) * per_page)
            ).fetchall()

        total_pages = (total_items + per_page - 1) // per_page
        return {
            'leads': [self._row_to_lead(row) for row in rows],
            'pagination': {
                'current_page': page,
                'per_page': per_page,
                'total_items': total_items,
                'total_pages': total_pages,
                'has_next_page': page < total_pages,
                'has_prev_page': page > 1,
            },
        }

    def all_lead_ids(self) -> List[str]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT id FROM leads WHERE deleted_at IS NULL ORDER BY created_at"
            ).fetchall()
            return [row['id'] for row in rows]

    def update_lead(self, lead_id: str, update_data: Dict) -> Optional[Dict]:
        """Update allow-listed fields and bump updated_at. Returns the lead or None."""
        data = _flatten_location(update_data)
        fields = [f for f in EDITABLE_FIELDS if f in data]
        values = [self._encode(f, data[f]) for f in fields]

        assignments = [f"{f} = ?" for f in fields] + ["updated_at = ?"]
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""UPDATE leads SET {', '.join(assignments)}
                    WHERE id = ? AND deleted_at IS NULL""",
                (*values, datetime.now().isoformat(), lead_id)
            )
            if cursor.rowcount == 0:
                return None
        return self.get_lead(lead_id)

    def delete_lead(self, lead_id: str) -> bool:
        """Soft delete a lead."""
        now = datetime.now().isoformat()
        with self._get_connection() as conn:
            cursor = conn.execute(
                """UPDATE leads SET deleted_at = ?, updated_at = ?
                   WHERE id = ? AND deleted_at IS NULL""",
                (now, now, lead_id)
            )
            return cursor.rowcount > 0

    def hard_delete_lead(self, lead_id: str) -> bool:
        with self._get_connection() as conn:
            conn.execute("DELETE FROM score_history WHERE lead_id = ?", (lead_id,))
            cursor = conn.execute("DELETE FROM leads WHERE id = ?", (lead_id,))
            return cursor.rowcount > 0

    def convert_lead(self, lead_id: str) -> Optional[Dict]:
        """Mark a lead as converted."""
        now = datetime.now().isoformat()
        with self._get_connection() as conn:
            cursor = conn.execute(
                """UPDATE leads SET is_converted = TRUE, converted_at = ?,
                   status = ?, updated_at = ?
                   WHERE id = ? AND deleted_at IS NULL""",
                (now, STATUS_CONVERTED, now, lead_id)
            )
            if cursor.rowcount == 0:
                return None
        return self.get_lead(lead_id)

    def bulk_update(self, lead_ids: List[str], update_data: Dict) -> int:
        """Apply the same update to many leads. Returns the number updated."""
        return sum(1 for lead_id in lead_ids if self.update_lead(lead_id, update_data))

    def bulk_delete(self, lead_ids: List[str]) -> int:
        return sum(1 for lead_id in lead_ids if self.delete_lead(lead_id))

    # =========================================================================
    # SCORE OPERATIONS
    # =========================================================================

    def save_score(self, scored: ScoredLead) -> bool:
        """
        Persist a score and its metadata, and append to the history.

        Does not touch updated_at, since that drives score decay.
        """
        if not scored.ok:
            return False

        metadata = scored.scoring_metadata
        scored_at = metadata['last_calculated'] or datetime.now().isoformat()

        with self._get_connection() as conn:
            cursor = conn.execute(
                """UPDATE leads SET lead_score = ?, scoring_metadata = ?
                   WHERE id = ? AND deleted_at IS NULL""",
                (scored.lead_score, json.dumps(metadata), scored.lead_id)
            )
            if cursor.rowcount == 0:
                return False
            conn.execute(
                """INSERT INTO score_history
                   (lead_id, total_score, classification, breakdown, scored_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (
                    scored.lead_id,
                    scored.lead_score,
                    scored.classification,
                    json.dumps(metadata['breakdown']),
                    scored_at,
                )
            )
            return True

    def get_score_history(self, lead_id: str) -> List[Dict]:
        """Get score history for a lead, newest first."""
        with self._get_connection() as conn:
            rows = conn.execute(
                """SELECT * FROM score_history WHERE lead_id = ?
                   ORDER BY scored_at DESC, id DESC""",
                (lead_id,)
            ).fetchall()
            history = []
            for row in rows:
                data = dict(row)
                if data.get('breakdown'):
                    data['breakdown'] = json.loads(data['breakdown'])
                history.append(data)
            return history

    # =========================================================================
    # STATISTICS
    # =========================================================================

    def get_stats(self) -> Dict:
        """Get lead statistics."""
        with self._get_connection() as conn:
            stats = {}

            row = conn.execute(
                """SELECT COUNT(*) as total,
                          SUM(CASE WHEN is_converted THEN 1 ELSE 0 END) as converted
                   FROM leads WHERE deleted_at IS NULL"""
            ).fetchone()
            stats['total_leads'] = row['total']
            stats['converted_leads'] = row['converted'] or 0

            rows = conn.execute(
                """SELECT status, COUNT(*) as count FROM leads
                   WHERE deleted_at IS NULL GROUP BY status ORDER BY count DESC"""
            ).fetchall()
            stats['leads_by_status'] = {row['status']: row['count'] for row in rows}

            rows = conn.execute(
                """SELECT priority, COUNT(*) as count FROM leads
                   WHERE deleted_at IS NULL GROUP BY priority ORDER BY count DESC"""
            ).fetchall()
            stats['leads_by_priority'] = {row['priority']: row['count'] for row in rows}

            rows = conn.execute(
                """SELECT industry, COUNT(*) as count FROM leads
                   WHERE deleted_at IS NULL AND industry IS NOT NULL AND industry != ''
                   GROUP BY industry ORDER BY count DESC LIMIT 10"""
            ).fetchall()
            stats['leads_by_industry'] = {row['industry']: row['count'] for row in rows}

            rows = conn.execute(
                """SELECT scoring_metadata FROM leads
                   WHERE deleted_at IS NULL AND scoring_metadata IS NOT NULL"""
            ).fetchall()
            by_class: Dict[str, int] = {}
            for row in rows:
                label = json.loads(row['scoring_metadata']).get('classification')
                if label:
                    by_class[label] = by_class.get(label, 0) + 1
            stats['leads_by_classification'] = by_class

            return stats


def _flatten_location(data: Dict) -> Dict:
    """Accept a nested location mapping alongside flat city/state/country."""
    location = data.get('location')
    if not isinstance(location, dict):
        return dict(data)
    flat = {k: v for k, v in data.items() if k != 'location'}
    for key in ('city', 'state', 'country'):
        if key in location and key not in flat:
            flat[key] = location[key]
    return flat
