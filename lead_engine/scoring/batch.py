"""
Batch Lead Scoring

Scores a collection of leads independently. One result per input, in input
order. A lead that cannot be scored produces a failed ScoredLead instead of
aborting the run.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from .errors import IncompleteLeadError, LeadScoringError
from .models import BatchSummary, LeadSnapshot, ScoredLead
from .scorer import compute
from .weights import WeightTable


logger = logging.getLogger(__name__)

LeadInput = Union[LeadSnapshot, Mapping[str, Any]]


def _lead_id_of(item: LeadInput) -> str:
    if isinstance(item, LeadSnapshot):
        return item.lead_id
    if isinstance(item, Mapping):
        return str(item.get('id') or item.get('lead_id') or '')
    return ''


def score_one(item: LeadInput, weights: WeightTable, now: datetime) -> ScoredLead:
    """Score a single lead, capturing scoring failures on the result."""
    lead_id = _lead_id_of(item)
    try:
        lead = item if isinstance(item, LeadSnapshot) else LeadSnapshot.from_dict(item)
        result = compute(lead, weights, now)
    except IncompleteLeadError as e:
        logger.warning("Skipping incomplete lead %s: %s", lead_id or '<unknown>', e)
        return ScoredLead(lead_id=lead_id, error=str(e), incomplete=True)
    except LeadScoringError as e:
        logger.warning("Failed to score lead %s: %s", lead_id or '<unknown>', e)
        return ScoredLead(lead_id=lead_id, error=str(e))

    return ScoredLead(lead_id=lead.lead_id, result=result, last_calculated=now)


class BatchScorer:
    """
    Applies the score calculator and classifier to many leads.

    Leads share no state, so ``max_workers > 1`` scores them on a thread
    pool. Output order always matches input order.
    """

    def __init__(self, weights: WeightTable, max_workers: Optional[int] = None):
        self.weights = weights
        self.max_workers = max_workers

    def score(
        self,
        leads: Iterable[LeadInput],
        now: datetime,
        on_progress: Optional[Callable[[ScoredLead], None]] = None,
    ) -> List[ScoredLead]:
        items = list(leads)

        def run(item: LeadInput) -> ScoredLead:
            scored = score_one(item, self.weights, now)
            if on_progress is not None:
                on_progress(scored)
            return scored

        if self.max_workers and self.max_workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                results = list(executor.map(run, items))
        else:
            results = [run(item) for item in items]

        summary = summarize(results)
        logger.info(
            "Batch scored %d leads (%d ok, %d failed)",
            summary.total, summary.scored, summary.failed,
        )
        return results


def summarize(results: List[ScoredLead]) -> BatchSummary:
    summary = BatchSummary(total=len(results))
    for scored in results:
        if scored.ok:
            summary.scored += 1
            label = scored.classification
            summary.by_classification[label] = summary.by_classification.get(label, 0) + 1
        else:
            summary.failed += 1
    return summary
