"""Candidate name matching with an explicit confidence threshold.

Matching never guesses: exactly one hit is ``matched``, several hits are
``ambiguous`` and go to manual review, none is ``unmatched``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from rapidfuzz import fuzz

from config.settings import RECOMPUTE_CONFIG
from src.utils.text_cleaner import name_key

logger = logging.getLogger(__name__)

MATCHED = "matched"
AMBIGUOUS = "ambiguous"
UNMATCHED = "unmatched"


@dataclass
class MatchResult:
    outcome: str
    candidates: List[int] = field(default_factory=list)
    score: float = 0.0

    @property
    def candidate_id(self) -> Optional[int]:
        """The single matched id, ``None`` for any other outcome."""
        return self.candidates[0] if self.outcome == MATCHED else None


class NameMatcher:
    """Match free-text names against a fixed set of candidate records.

    Args:
        records: mappings with ``id``, ``full_name`` and ``cargo``.
        threshold: minimum ``token_sort_ratio`` (0-100) for a fuzzy hit.
    """

    def __init__(
        self,
        records: Iterable[Mapping[str, Any]],
        threshold: Optional[float] = None,
    ):
        self.threshold = float(
            threshold if threshold is not None else RECOMPUTE_CONFIG["name_match_threshold"]
        )
        self._entries: List[Tuple[str, int, str]] = [
            (name_key(record.get("full_name") or ""), record["id"], record.get("cargo") or "")
            for record in records
        ]
        self._by_key: Dict[str, List[Tuple[int, str]]] = {}
        for key, candidate_id, cargo in self._entries:
            self._by_key.setdefault(key, []).append((candidate_id, cargo))

    @staticmethod
    def similarity(left: str, right: str) -> float:
        if not left or not right:
            return 0.0
        return float(fuzz.token_sort_ratio(name_key(left), name_key(right)))

    def match(self, full_name: str, cargo: Optional[str] = None) -> MatchResult:
        key = name_key(full_name)
        if not key:
            return MatchResult(UNMATCHED)

        exact = self._by_key.get(key, [])
        if cargo:
            exact = [entry for entry in exact if entry[1] == cargo]
        if exact:
            return self._resolve([candidate_id for candidate_id, _ in exact], 100.0)

        scored: Dict[int, float] = {}
        for entry_key, candidate_id, entry_cargo in self._entries:
            if cargo and entry_cargo != cargo:
                continue
            score = fuzz.token_sort_ratio(key, entry_key, score_cutoff=self.threshold)
            if score:
                scored[candidate_id] = float(score)
        if not scored:
            return MatchResult(UNMATCHED)
        return self._resolve(sorted(scored), max(scored.values()))

    def similar_keys(self, key: str) -> List[Tuple[str, float]]:
        """Other name keys at or above the threshold, excluding ``key`` itself."""
        hits = []
        for other in self._by_key:
            if other == key:
                continue
            score = fuzz.token_sort_ratio(key, other, score_cutoff=self.threshold)
            if score:
                hits.append((other, float(score)))
        return sorted(hits)

    @staticmethod
    def _resolve(candidate_ids: List[int], score: float) -> MatchResult:
        if len(candidate_ids) == 1:
            return MatchResult(MATCHED, candidate_ids, score)
        logger.info(
            "Coincidencia ambigua (%s candidatos, score %.1f); requiere revisión manual",
            len(candidate_ids),
            score,
        )
        return MatchResult(AMBIGUOUS, candidate_ids, score)


__all__ = ["AMBIGUOUS", "MATCHED", "UNMATCHED", "MatchResult", "NameMatcher"]
