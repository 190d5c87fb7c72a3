"""
Lead Scoring Engine

Facade over the calculator, classifier, recommendation rules and batch
scorer. Every method returns plain data suitable for JSON serialization;
persisting scores is the caller's job.

Usage:
    engine = LeadScoringEngine()
    result = engine.compute(lead)
    scored = engine.batch_score(leads)
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .batch import BatchScorer, LeadInput, score_one
from .classifier import classify
from .models import LeadSnapshot, Recommendation, ScoredLead, ScoringResult
from .recommendations import recommend, total_potential_increase
from .scorer import compute
from .weights import WeightTable, load_weight_table


logger = logging.getLogger(__name__)


class LeadScoringEngine:
    """
    Rule-based lead scoring.

    The current time is read once per call from ``clock`` (or taken from an
    explicit ``now``) so all sub-scores see the same instant.
    """

    def __init__(
        self,
        weights: Optional[WeightTable] = None,
        config_path: Optional[Path] = None,
        clock: Callable[[], datetime] = datetime.now,
        max_workers: Optional[int] = None,
    ):
        self.weights = weights or load_weight_table(config_path)
        self.clock = clock
        self.max_workers = max_workers

    def _now(self, now: Optional[datetime]) -> datetime:
        return now if now is not None else self.clock()

    @staticmethod
    def _snapshot(lead: LeadInput) -> LeadSnapshot:
        return lead if isinstance(lead, LeadSnapshot) else LeadSnapshot.from_dict(lead)

    # =========================================================================
    # CORE OPERATIONS
    # =========================================================================

    def compute(self, lead: LeadInput, now: Optional[datetime] = None) -> ScoringResult:
        """Breakdown, clamped total and classification for one lead."""
        return compute(self._snapshot(lead), self.weights, self._now(now))

    @staticmethod
    def classify(total: int) -> str:
        return classify(total)

    def recommend(self, lead: LeadInput, now: Optional[datetime] = None) -> List[Recommendation]:
        """Improvement actions for one lead, independent of its score."""
        return recommend(self._snapshot(lead), self.weights, self._now(now))

    def score_lead(self, lead: LeadInput, now: Optional[datetime] = None) -> ScoredLead:
        """Score one lead and package the scoring metadata."""
        return score_one(lead, self.weights, self._now(now))

    def batch_score(
        self,
        leads: Iterable[LeadInput],
        now: Optional[datetime] = None,
        on_progress: Optional[Callable[[ScoredLead], None]] = None,
    ) -> List[ScoredLead]:
        """Score every lead independently; failures are reported per item."""
        scorer = BatchScorer(self.weights, max_workers=self.max_workers)
        return scorer.score(leads, self._now(now), on_progress=on_progress)

    # =========================================================================
    # REPORTS
    # =========================================================================

    def scoring_report(self, lead: LeadInput, scoring_metadata: Optional[dict] = None,
                       now: Optional[datetime] = None) -> dict:
        """
        Scoring analysis for one lead.

        ``current_score`` is the last persisted score (0 if never scored);
        the breakdown is computed fresh.
        """
        snapshot = self._snapshot(lead)
        result = compute(snapshot, self.weights, self._now(now))
        return {
            'lead_id': snapshot.lead_id,
            'current_score': snapshot.lead_score or 0,
            'classification': result.classification,
            'breakdown': result.to_dict(),
            'scoring_metadata': scoring_metadata,
        }

    def recommendation_report(self, lead: LeadInput, now: Optional[datetime] = None) -> dict:
        snapshot = self._snapshot(lead)
        recommendations = recommend(snapshot, self.weights, self._now(now))
        return {
            'lead_id': snapshot.lead_id,
            'current_score': snapshot.lead_score or 0,
            'recommendations': [r.to_dict() for r in recommendations],
            'potential_score_increase': total_potential_increase(recommendations),
        }
