"""Lead Score Engine - rule-based lead scoring and classification."""

__version__ = '1.0.0'
