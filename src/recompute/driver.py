"""Batch recompute driver.

Full recompute scores every candidate from scratch; applying a new penalty
category replays each candidate from its persisted baseline so previously
applied penalties are never subtracted twice. Candidates run on a bounded
thread pool, one lock per candidate id.
"""

from __future__ import annotations

import copy
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from config.settings import RECOMPUTE_CONFIG
from ranking_electoral.config_schema import PENALTY_CATEGORIES
from src.contracts import CATEGORY_FIELDS, COMPOSITE_FIELDS
from src.recompute.locks import KeyedLocks
from src.recompute.ports import CandidateRepository
from src.scoring import CandidateScorer
from src.utils.logger import RecomputeSessionLogger

logger = logging.getLogger(__name__)

SCORE_FIELDS = CATEGORY_FIELDS + tuple(COMPOSITE_FIELDS)


class RecomputeError(RuntimeError):
    """A single candidate could not be scored or persisted."""

    def __init__(self, candidate_id: int, full_name: str, cause: Exception):
        super().__init__(f"{type(cause).__name__}: {cause}")
        self.candidate_id = candidate_id
        self.full_name = full_name
        self.cause = cause


@dataclass
class BatchResult:
    """Result of a batch pass."""

    processed: int
    changed: int
    errors: int
    elapsed_seconds: float

    @property
    def rate(self) -> float:
        """Candidates per second."""
        if self.elapsed_seconds > 0:
            return self.processed / self.elapsed_seconds
        return 0.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "processed": self.processed,
            "changed": self.changed,
            "errors": self.errors,
            "elapsed_seconds": self.elapsed_seconds,
            "rate": self.rate,
        }


def baseline_from(result: Mapping[str, Any]) -> Dict[str, Any]:
    """Pre-penalty snapshot carried by a validated score payload."""
    breakdown = result["breakdown"]
    return {
        "competence_base": breakdown["competence_base"],
        "integrity_base": breakdown["integrity_base"],
        "applied_categories": list(breakdown["applied_categories"]),
    }


def canonical_categories(*groups: Iterable[str]) -> Tuple[str, ...]:
    """Union of category lists in canonical order."""
    wanted = {name for group in groups for name in group}
    return tuple(name for name in PENALTY_CATEGORIES if name in wanted)


def _scores_of(payload: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    if payload is None:
        return None
    return {name: payload.get(name) for name in SCORE_FIELDS}


class RecomputeDriver:
    """Orchestrates full and incremental recomputation over a repository.

    Args:
        repository: any ``CandidateRepository``; the engine keeps no state
            of its own beyond the scorer configuration.
        scorer: defaults to a ``CandidateScorer`` on the loaded configuration.
        workers: thread pool size, ``recompute.workers`` when omitted.
    """

    def __init__(
        self,
        repository: CandidateRepository,
        scorer: Optional[CandidateScorer] = None,
        *,
        workers: Optional[int] = None,
        locks: Optional[KeyedLocks] = None,
    ):
        self.repository = repository
        self.scorer = scorer or CandidateScorer()
        self.workers = max(1, int(workers or RECOMPUTE_CONFIG.get("workers", 4)))
        self.locks = locks or KeyedLocks()
        self._derived: Dict[Tuple[str, ...], CandidateScorer] = {}
        self._derived_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Single candidate
    # ------------------------------------------------------------------
    def recompute_candidate(self, candidate_id: int, *, operation: str = "full") -> bool:
        """Score one candidate from scratch and persist it; ``True`` if scores moved."""
        with self.locks.hold(("candidate", candidate_id)):
            row = self._load(candidate_id)
            return self._score_and_save(row, operation=operation, baseline=None)

    def replay_candidate(self, candidate_id: int) -> bool:
        """Re-apply every enabled category on top of the persisted baseline.

        Categories already applied to the baseline stay applied even when the
        current configuration does not enable them.
        """
        with self.locks.hold(("candidate", candidate_id)):
            row = self._load(candidate_id)
            baseline = self.repository.get_baseline(candidate_id)
            scorer = self.scorer
            if baseline is None:
                logger.info(
                    "Candidato %s sin baseline; se captura con recálculo completo",
                    candidate_id,
                )
            else:
                scorer = self._scorer_for(baseline.get("applied_categories") or ())
            return self._score_and_save(
                row, operation="apply_penalty", baseline=baseline, scorer=scorer
            )

    def _scorer_for(self, applied: Sequence[str]) -> CandidateScorer:
        enabled = self.scorer.config["integrity"]["enabled_categories"]
        categories = canonical_categories(enabled, applied)
        if categories == tuple(enabled):
            return self.scorer
        with self._derived_lock:
            scorer = self._derived.get(categories)
            if scorer is None:
                scorer = self._scorer_with(categories)
                self._derived[categories] = scorer
            return scorer

    def _scorer_with(self, categories: Sequence[str]) -> CandidateScorer:
        config = copy.deepcopy(self.scorer.config)
        config["integrity"]["enabled_categories"] = list(categories)
        return CandidateScorer(config, reference_year=self.scorer.reference_year)

    def _load(self, candidate_id: int) -> Dict[str, Any]:
        row = self.repository.get_candidate(candidate_id)
        if row is None:
            raise LookupError(f"Candidate {candidate_id} does not exist")
        return row

    def _score_and_save(
        self,
        row: Mapping[str, Any],
        *,
        operation: str,
        baseline: Optional[Mapping[str, Any]],
        scorer: Optional[CandidateScorer] = None,
    ) -> bool:
        candidate_id = row["id"]
        try:
            previous = _scores_of(self.repository.get_score(candidate_id))
            result = (scorer or self.scorer).score_candidate(row, baseline=baseline)
            snapshot = baseline_from(result)
            self.repository.save_score(
                candidate_id, result, operation=operation, baseline=snapshot
            )
        except Exception as exc:
            raise RecomputeError(candidate_id, row.get("full_name") or "", exc) from exc
        return previous != _scores_of(result)

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------
    def recompute_all(self, candidate_ids: Optional[Iterable[int]] = None) -> BatchResult:
        """Full recompute of the given (or every active) candidate."""
        ids = self._resolve_ids(candidate_ids)
        return self._run_batch(ids, self.recompute_candidate, "full")

    def apply_new_penalty(
        self, category: str, candidate_ids: Optional[Iterable[int]] = None
    ) -> BatchResult:
        """Enable ``category`` and replay every candidate from its baseline.

        Running it again with the same category leaves scores unchanged.
        """
        if category not in PENALTY_CATEGORIES:
            raise ValueError(
                f"Unknown penalty category {category!r}; expected one of "
                + ", ".join(PENALTY_CATEGORIES)
            )
        enabled = list(self.scorer.config["integrity"]["enabled_categories"])
        if category not in enabled:
            self.scorer = self._scorer_with(canonical_categories(enabled, (category,)))
            with self._derived_lock:
                self._derived.clear()
            logger.info("Categoría de penalidad habilitada: %s", category)
        ids = self._resolve_ids(candidate_ids)
        return self._run_batch(ids, self.replay_candidate, "apply_penalty")

    def _resolve_ids(self, candidate_ids: Optional[Iterable[int]]) -> list:
        if candidate_ids is None:
            return self.repository.list_candidate_ids(active_only=True)
        return list(candidate_ids)

    def _run_batch(
        self, candidate_ids: list, work: Callable[[int], bool], operation: str
    ) -> BatchResult:
        session_logger = RecomputeSessionLogger(operation)
        session_logger.log_session_start(len(candidate_ids))
        started = time.monotonic()
        processed = changed = errors = 0

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = {
                executor.submit(work, candidate_id): candidate_id
                for candidate_id in candidate_ids
            }
            for future in as_completed(futures):
                candidate_id = futures[future]
                try:
                    was_changed = future.result()
                except RecomputeError as exc:
                    errors += 1
                    session_logger.log_candidate_failure(
                        exc.candidate_id, exc.full_name, str(exc)
                    )
                    continue
                except Exception as exc:
                    errors += 1
                    session_logger.log_candidate_failure(candidate_id, "", str(exc))
                    continue
                processed += 1
                if was_changed:
                    changed += 1

        result = BatchResult(
            processed=processed,
            changed=changed,
            errors=errors,
            elapsed_seconds=time.monotonic() - started,
        )
        session_logger.log_session_summary(result.as_dict())
        return result


__all__ = [
    "BatchResult",
    "RecomputeDriver",
    "RecomputeError",
    "baseline_from",
    "canonical_categories",
]
