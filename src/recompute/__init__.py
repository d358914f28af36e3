"""Full recompute, incremental penalty application and sibling reconciliation."""

from .driver import BatchResult, RecomputeDriver, RecomputeError, baseline_from
from .locks import KeyedLocks
from .name_matcher import AMBIGUOUS, MATCHED, UNMATCHED, MatchResult, NameMatcher
from .ports import CandidateRepository
from .reconciliation import ReconciliationReport, SiblingReconciler

__all__ = [
    "AMBIGUOUS",
    "BatchResult",
    "CandidateRepository",
    "KeyedLocks",
    "MATCHED",
    "MatchResult",
    "NameMatcher",
    "RecomputeDriver",
    "RecomputeError",
    "ReconciliationReport",
    "SiblingReconciler",
    "UNMATCHED",
    "baseline_from",
]
