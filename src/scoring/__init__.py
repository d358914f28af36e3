"""Scoring package exports."""

from .candidate_scorer import CandidateScorer
from .composites import CompositeScores, compute_composites


def create_scorer(config=None, reference_year=None):
    """Factory returning the configured candidate scorer."""
    return CandidateScorer(config, reference_year=reference_year)


def score_multiple_candidates(candidates, scorer=None):
    scorer = scorer or create_scorer()
    return [scorer.score_candidate(candidate) for candidate in candidates]


__all__ = [
    "CandidateScorer",
    "CompositeScores",
    "compute_composites",
    "create_scorer",
    "score_multiple_candidates",
]
