"""Repository port consumed by the recompute driver and the reconciler.

The engine holds no database state of its own: everything it reads or
writes goes through an object satisfying ``CandidateRepository``.
``src.storage.DatabaseManager`` is the production adapter; tests may pass
any object with the same methods.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol


class CandidateRepository(Protocol):
    def list_candidate_ids(self, active_only: bool = True) -> List[int]:
        ...

    def get_candidate(self, candidate_id: int) -> Optional[Dict[str, Any]]:
        ...

    def get_candidates_snapshot(
        self, candidate_ids: Optional[Iterable[int]] = None
    ) -> List[Dict[str, Any]]:
        ...

    def apply_sibling_updates(self, updates: Mapping[int, Mapping[str, Any]]) -> int:
        """Fill empty propagated columns of several candidates in one transaction."""
        ...

    def save_score(
        self,
        candidate_id: int,
        score_data: Mapping[str, Any],
        *,
        operation: str = "full",
        baseline: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Overwrite Score, ScoreBreakdown (and ScoreBaseline) atomically."""
        ...

    def get_score(self, candidate_id: int) -> Optional[Dict[str, Any]]:
        ...

    def get_baseline(self, candidate_id: int) -> Optional[Dict[str, Any]]:
        ...


__all__ = ["CandidateRepository"]
