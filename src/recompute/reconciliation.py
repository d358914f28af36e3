"""Cross-record reconciliation between sibling candidate rows.

The same person can be registered for several cargos. Rows sharing a name
key are grouped; a category that one sibling has and another lacks is
copied to the poorer sibling ("union, never shrink") and the affected rows
are re-scored. Groups that cannot be resolved without guessing are skipped
and reported for manual review.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from config.settings import RECOMPUTE_CONFIG
from src.normalization.normalizer import parse_count, raw_entries
from src.recompute.driver import RecomputeDriver
from src.recompute.locks import KeyedLocks
from src.recompute.name_matcher import NameMatcher
from src.recompute.ports import CandidateRepository
from src.utils.logger import RecomputeSessionLogger
from src.utils.text_cleaner import name_key

logger = logging.getLogger(__name__)

COUNT_CATEGORIES = ("party_resignations",)


@dataclass
class AmbiguousGroup:
    name_key: str
    candidate_ids: List[int]
    reason: str


@dataclass
class PossibleDuplicate:
    left: str
    right: str
    score: float


@dataclass
class ReconciliationReport:
    groups_checked: int = 0
    updated: Dict[int, List[str]] = field(default_factory=dict)
    ambiguous: List[AmbiguousGroup] = field(default_factory=list)
    possible_duplicates: List[PossibleDuplicate] = field(default_factory=list)
    errors: List[int] = field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        return {
            "processed": self.groups_checked,
            "changed": len(self.updated),
            "errors": len(self.errors),
            "ambiguous": len(self.ambiguous),
            "possible_duplicates": len(self.possible_duplicates),
        }


def category_value(row: Mapping[str, Any], category: str) -> Any:
    """Stored value of a propagated category, ``None`` when the row has none."""
    raw = row.get(category)
    if category in COUNT_CATEGORIES:
        count = parse_count(raw)
        return count or None
    entries = raw_entries(raw)
    return [dict(entry) for entry in entries] or None


def _fingerprint(value: Any) -> str:
    return json.dumps(value, sort_keys=True, ensure_ascii=False, default=str)


def find_ambiguity(siblings: Sequence[Mapping[str, Any]]) -> Optional[str]:
    """Reason why a sibling group cannot be merged safely, ``None`` if it can."""
    cargos = [row.get("cargo") for row in siblings]
    repeated = sorted({cargo for cargo in cargos if cargos.count(cargo) > 1})
    if repeated:
        return "cargo repetido: " + ", ".join(str(cargo) for cargo in repeated)
    dnis = {str(row["dni"]).strip() for row in siblings if row.get("dni")}
    if len(dnis) > 1:
        return "DNI distinto entre registros"
    return None


def _entry_set(value: Any) -> frozenset:
    if isinstance(value, list):
        return frozenset(_fingerprint(entry) for entry in value)
    return frozenset((_fingerprint(value),))


def _superset_donor(present: Mapping[int, Any]) -> Optional[Any]:
    """Value whose entries contain every other sibling's entries, lowest id first."""
    sets = {cid: _entry_set(value) for cid, value in present.items()}
    for cid in sorted(present):
        if all(sets[cid] >= other for other in sets.values()):
            return present[cid]
    return None


def plan_propagation(
    siblings: Sequence[Mapping[str, Any]], categories: Sequence[str]
) -> Tuple[Dict[int, Dict[str, Any]], Optional[str]]:
    """Copies needed to complete every sibling, or the reason to skip the group.

    When siblings hold different lists for a category, the one containing
    all the others is copied. Counts and lists that truly diverge are
    ambiguous.
    """
    updates: Dict[int, Dict[str, Any]] = defaultdict(dict)
    for category in categories:
        values = {row["id"]: category_value(row, category) for row in siblings}
        present = {cid: value for cid, value in values.items() if value is not None}
        if not present or len(present) == len(values):
            continue
        if category in COUNT_CATEGORIES:
            distinct = set(present.values())
            donor = distinct.pop() if len(distinct) == 1 else None
        else:
            donor = _superset_donor(present)
        if donor is None:
            return {}, f"datos distintos en {category}"
        for candidate_id, value in values.items():
            if value is None:
                updates[candidate_id][category] = donor
    return dict(updates), None


class SiblingReconciler:
    """Propagates missing categories between sibling rows and re-scores them."""

    def __init__(
        self,
        repository: CandidateRepository,
        driver: Optional[RecomputeDriver] = None,
        *,
        categories: Optional[Sequence[str]] = None,
        threshold: Optional[float] = None,
        locks: Optional[KeyedLocks] = None,
    ):
        self.repository = repository
        self.driver = driver or RecomputeDriver(repository)
        self.categories = tuple(categories or RECOMPUTE_CONFIG["propagated_categories"])
        self.threshold = threshold
        self.locks = locks or self.driver.locks

    def reconcile(self) -> ReconciliationReport:
        session_logger = RecomputeSessionLogger("reconcile")
        report = ReconciliationReport()
        snapshot = self.repository.get_candidates_snapshot()

        groups: Dict[str, List[int]] = defaultdict(list)
        for row in snapshot:
            key = name_key(row.get("full_name") or "")
            if key:
                groups[key].append(row["id"])

        sibling_groups = {key: ids for key, ids in groups.items() if len(ids) > 1}
        session_logger.log_session_start(sum(len(ids) for ids in sibling_groups.values()))

        for key in sorted(sibling_groups):
            report.groups_checked += 1
            try:
                changed = self._reconcile_group(key, sibling_groups[key], report)
            except Exception as exc:
                for candidate_id in sibling_groups[key]:
                    report.errors.append(candidate_id)
                    session_logger.log_candidate_failure(candidate_id, key, str(exc))
                continue
            for candidate_id in changed:
                try:
                    self.driver.recompute_candidate(candidate_id, operation="reconcile")
                except Exception as exc:
                    report.errors.append(candidate_id)
                    session_logger.log_candidate_failure(candidate_id, key, str(exc))

        report.possible_duplicates = self._possible_duplicates(snapshot, groups)
        session_logger.log_session_summary(report.summary())
        return report

    def _reconcile_group(
        self, key: str, candidate_ids: List[int], report: ReconciliationReport
    ) -> List[int]:
        with self.locks.hold(("name", key)):
            siblings = self.repository.get_candidates_snapshot(candidate_ids)
            reason = find_ambiguity(siblings)
            updates: Dict[int, Dict[str, Any]] = {}
            if reason is None:
                updates, reason = plan_propagation(siblings, self.categories)
            if reason is not None:
                report.ambiguous.append(AmbiguousGroup(key, sorted(candidate_ids), reason))
                logger.warning("⚠️ Grupo %s omitido: %s", key, reason)
                return []
            if not updates:
                return []
            self.repository.apply_sibling_updates(updates)

        for candidate_id, fields in updates.items():
            report.updated[candidate_id] = sorted(fields)
            logger.info("🔗 %s (%s): copiado %s", key, candidate_id, ", ".join(sorted(fields)))
        return sorted(updates)

    def _possible_duplicates(
        self, snapshot: Sequence[Mapping[str, Any]], groups: Mapping[str, List[int]]
    ) -> List[PossibleDuplicate]:
        matcher = NameMatcher(snapshot, threshold=self.threshold)
        seen = set()
        duplicates = []
        for key in sorted(groups):
            for other, score in matcher.similar_keys(key):
                pair = tuple(sorted((key, other)))
                if pair in seen:
                    continue
                seen.add(pair)
                duplicates.append(PossibleDuplicate(pair[0], pair[1], score))
        return duplicates


__all__ = [
    "AmbiguousGroup",
    "PossibleDuplicate",
    "ReconciliationReport",
    "SiblingReconciler",
    "category_value",
    "find_ambiguity",
    "plan_propagation",
]
