"""Shared contracts for validated scoring payloads."""

from .scoring import (
    CATEGORY_FIELDS,
    COMPOSITE_FIELDS,
    CivilPenaltyItem,
    ScoreBreakdown,
    ScoreBreakdownModel,
    ScoreResult,
    ScoreResultModel,
)

__all__ = [
    "CATEGORY_FIELDS",
    "COMPOSITE_FIELDS",
    "CivilPenaltyItem",
    "ScoreBreakdown",
    "ScoreBreakdownModel",
    "ScoreResult",
    "ScoreResultModel",
]
