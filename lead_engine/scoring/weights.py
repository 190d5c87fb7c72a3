"""
Weight Table for Lead Scoring

Immutable mapping of rule category -> {label -> points}, plus the named
scalar constants used by the engagement and decay rules. Loaded once per
process from YAML and never mutated while scoring.

Config (config/config.yaml):
```yaml
scoring:
  target_regions: [California, New York, London]
  stale_after_days: 30
  weights:
    role_in_decision:
      Decision Maker: 30
    lead_source:
      Referral: 30
    base_score: 5
    no_update_30_days: -10
```
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .errors import WeightConfigError


logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent


# =============================================================================
# DEFAULT WEIGHTS
# =============================================================================

CATEGORIES = ('role_in_decision', 'company_size', 'industry', 'location', 'lead_source')

SCALARS = (
    'base_score',
    'notes_added',
    'follow_up_scheduled',
    'status_contacted',
    'no_update_30_days',
    'status_cold',
)

DEFAULT_CATEGORY_WEIGHTS: Dict[str, Dict[str, int]] = {
    'role_in_decision': {
        'Decision Maker': 30,
        'Influencer': 15,
        'End User': 5,
        'Champion': 20,
        'Gatekeeper': 10,
        'Technical Evaluator': 15,
        'Intern': 0,
    },
    'company_size': {
        'large': 20,   # > 500 employees
        'medium': 10,  # 50-500 employees
        'small': 0,    # < 50 employees
    },
    'industry': {
        'Technology': 15,
        'Healthcare': 15,
        'Finance': 15,
        'Manufacturing': 10,
        'Retail': 8,
        'Education': 10,
        'Other': 0,
    },
    'location': {
        'target_region': 10,
        'non_target': 0,
    },
    'lead_source': {
        'Website demo request': 40,
        'Demo Request': 40,
        'Referral': 30,
        'Event/Conference': 20,
        'Trade Show': 20,
        'Cold outreach list': 5,
        'Cold Email': 5,
        'LinkedIn': 15,
        'Website': 10,
        'Other': 0,
    },
}

DEFAULT_SCALARS: Dict[str, int] = {
    'base_score': 5,
    'notes_added': 10,
    'follow_up_scheduled': 10,
    'status_contacted': 15,
    'no_update_30_days': -10,
    'status_cold': -30,
}

DEFAULT_TARGET_REGIONS = ('California', 'New York', 'Texas', 'Florida', 'London', 'Toronto')

DEFAULT_STALE_AFTER_DAYS = 30


# =============================================================================
# WEIGHT TABLE
# =============================================================================

@dataclass(frozen=True)
class WeightTable:
    """
    Read-only scoring weights.

    Unknown labels resolve to 0. Negative weights are allowed (decay
    weights are negative by convention).
    """
    categories: Mapping[str, Mapping[str, int]] = field(
        default_factory=lambda: _freeze(DEFAULT_CATEGORY_WEIGHTS)
    )
    scalars: Mapping[str, int] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_SCALARS))
    )
    target_regions: Tuple[str, ...] = DEFAULT_TARGET_REGIONS
    stale_after_days: int = DEFAULT_STALE_AFTER_DAYS

    def weight(self, category: str, label: Optional[str]) -> int:
        """Points for ``label`` within ``category``; 0 when unknown or absent."""
        if label is None:
            return 0
        return self.categories.get(category, {}).get(label, 0)

    def scalar(self, name: str) -> int:
        return self.scalars.get(name, 0)

    @property
    def base_score(self) -> int:
        return self.scalar('base_score')

    @property
    def notes_added(self) -> int:
        return self.scalar('notes_added')

    @property
    def follow_up_scheduled(self) -> int:
        return self.scalar('follow_up_scheduled')

    @property
    def status_contacted(self) -> int:
        return self.scalar('status_contacted')

    @property
    def no_update_30_days(self) -> int:
        return self.scalar('no_update_30_days')

    @property
    def status_cold(self) -> int:
        return self.scalar('status_cold')

    def to_dict(self) -> dict:
        data: Dict[str, Any] = {c: dict(labels) for c, labels in self.categories.items()}
        data.update(self.scalars)
        return data

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> 'WeightTable':
        """
        Build a table from the ``scoring`` section of a config file.

        Labels merge over the defaults. Unknown categories are ignored,
        since the category set is fixed.
        """
        data = data or {}
        weights_data = data.get('weights') or {}

        categories = {c: dict(labels) for c, labels in DEFAULT_CATEGORY_WEIGHTS.items()}
        scalars = dict(DEFAULT_SCALARS)

        for key, value in weights_data.items():
            if key in CATEGORIES:
                if not isinstance(value, Mapping):
                    raise WeightConfigError(f"weights.{key} must be a mapping of label -> points")
                for label, points in value.items():
                    categories[key][str(label)] = _check_points(f"{key}.{label}", points)
            elif key in SCALARS:
                scalars[key] = _check_points(key, value)
            else:
                logger.warning("Ignoring unknown weight category '%s'", key)

        regions = data.get('target_regions')
        if regions is None:
            target_regions = DEFAULT_TARGET_REGIONS
        elif isinstance(regions, (list, tuple)):
            target_regions = tuple(str(r) for r in regions if str(r).strip())
        else:
            raise WeightConfigError("target_regions must be a list of region names")

        stale_after_days = data.get('stale_after_days', DEFAULT_STALE_AFTER_DAYS)
        if isinstance(stale_after_days, bool) or not isinstance(stale_after_days, int):
            raise WeightConfigError("stale_after_days must be an integer")

        return cls(
            categories=_freeze(categories),
            scalars=MappingProxyType(scalars),
            target_regions=target_regions,
            stale_after_days=stale_after_days,
        )


def _freeze(categories: Mapping[str, Mapping[str, int]]) -> Mapping[str, Mapping[str, int]]:
    return MappingProxyType({c: MappingProxyType(dict(labels)) for c, labels in categories.items()})


def _check_points(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise WeightConfigError(f"weight '{name}' must be an integer, got {value!r}")
    return value


# =============================================================================
# CONFIG LOADING
# =============================================================================

def find_config_path(config_path: Optional[Path] = None) -> Optional[Path]:
    """Resolve config.yaml, falling back to the bundled example."""
    if config_path is not None:
        return Path(config_path)

    config_path = PROJECT_ROOT / 'config' / 'config.yaml'
    if not config_path.exists():
        config_path = PROJECT_ROOT / 'config' / 'config.example.yaml'
    return config_path if config_path.exists() else None


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load the whole YAML config as a dict ({} when no file exists)."""
    path = find_config_path(config_path)
    if path is None:
        return {}
    if not path.exists():
        raise WeightConfigError(f"config file not found: {path}")

    with open(path, encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise WeightConfigError(f"config file {path} must contain a mapping")
    return data


def load_weight_table(config_path: Optional[Path] = None) -> WeightTable:
    """Load scoring weights from YAML, or the defaults when no config exists."""
    data = load_config(config_path)
    table = WeightTable.from_mapping(data.get('scoring'))
    logger.debug("Loaded weight table (%d target regions)", len(table.target_regions))
    return table
