"""Scoring Layer - Rule-Based Lead Scoring Engine"""
from .classifier import CLASSIFICATIONS, SCORE_BANDS, classify
from .engine import LeadScoringEngine
from .errors import IncompleteLeadError, InvalidLeadError, LeadScoringError, WeightConfigError
from .models import Location, LeadSnapshot, Recommendation, ScoredLead, ScoringResult
from .weights import WeightTable, load_weight_table

__all__ = [
    'CLASSIFICATIONS', 'SCORE_BANDS', 'classify',
    'LeadScoringEngine',
    'IncompleteLeadError', 'InvalidLeadError', 'LeadScoringError', 'WeightConfigError',
    'Location', 'LeadSnapshot', 'Recommendation', 'ScoredLead', 'ScoringResult',
    'WeightTable', 'load_weight_table',
]
