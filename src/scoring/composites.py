"""Composite weighting engine.

Three fixed linear rankings over competence, integrity and transparency.
Confidence never takes part; it is a filter dimension only.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Mapping, Optional

from src.scoring.penalties import DEFAULT_SCORING

COMPOSITE_COLUMNS = {
    "balanced": "score_balanced",
    "merit": "score_merit",
    "integrity_first": "score_integrity",
}


@dataclass(frozen=True)
class CompositeScores:
    score_balanced: float
    score_merit: float
    score_integrity: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def round_one_decimal(value: float) -> float:
    return float(Decimal(repr(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def weighted_score(
    competence: float, integrity: float, transparency: float, weights: Mapping[str, float]
) -> float:
    raw = (
        weights["competence"] * competence
        + weights["integrity"] * integrity
        + weights["transparency"] * transparency
    )
    return round_one_decimal(raw)


def compute_composites(
    competence: float,
    integrity: float,
    transparency: float,
    config: Optional[Mapping[str, Any]] = None,
) -> CompositeScores:
    weights = config if config is not None else DEFAULT_SCORING["composites"]
    values = {
        column: weighted_score(competence, integrity, transparency, weights[name])
        for name, column in COMPOSITE_COLUMNS.items()
    }
    return CompositeScores(**values)


__all__ = [
    "COMPOSITE_COLUMNS",
    "CompositeScores",
    "compute_composites",
    "round_one_decimal",
    "weighted_score",
]
