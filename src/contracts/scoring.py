"""Contracts for candidate scores passed to storage."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, TypedDict

from pydantic import BaseModel, ConfigDict, Field, model_validator

CATEGORY_FIELDS = ("competence", "integrity", "transparency", "confidence")
COMPOSITE_FIELDS = {
    "score_balanced": "balanced",
    "score_merit": "merit",
    "score_integrity": "integrity_first",
}
COMPOSITE_TOLERANCE = 0.1


class CivilPenaltyItem(TypedDict):
    type: str
    penalty: int


class CivilPenaltyItemModel(BaseModel):
    type: str
    penalty: int = Field(ge=0)

    model_config = ConfigDict(extra="forbid")


class ScoreBreakdown(TypedDict, total=False):
    """Itemized audit record explaining a candidate's scores."""

    integrity_base: int
    penal_penalty: int
    civil_penalties: List[CivilPenaltyItem]
    resignation_penalty: int
    reinfo_penalty: int
    company_penalty: int
    incumbent_penalty: int
    voting_penalty: int
    voting_bonus: int
    tax_penalty: int
    omission_penalty: int
    applied_categories: List[str]
    competence_base: int
    incumbent_competence_delta: int
    education_points: int
    education_level_points: int
    education_depth_points: int
    experience_total_points: int
    experience_relevant_points: int
    experience_raw_years: int
    experience_unique_years: int
    experience_has_overlap: bool
    leadership_points: int
    leadership_seniority: str
    leadership_stability: int
    completeness_points: int
    documents_points: int
    assets_quality_points: int
    verification_points: int
    coverage_points: int
    performance_score: Optional[float]
    proposal_quality: Optional[float]


class ScoreBreakdownModel(BaseModel):
    """Validated breakdown; every integrity term is non-negative."""

    integrity_base: int = Field(ge=0, le=100)
    penal_penalty: int = Field(default=0, ge=0)
    civil_penalties: List[CivilPenaltyItemModel] = Field(default_factory=list)
    resignation_penalty: int = Field(default=0, ge=0)
    reinfo_penalty: int = Field(default=0, ge=0)
    company_penalty: int = Field(default=0, ge=0)
    incumbent_penalty: int = Field(default=0, ge=0)
    voting_penalty: int = Field(default=0, ge=0)
    voting_bonus: int = Field(default=0, ge=0)
    tax_penalty: int = Field(default=0, ge=0)
    omission_penalty: int = Field(default=0, ge=0)
    applied_categories: List[str] = Field(default_factory=list)
    competence_base: int = Field(default=0, ge=0, le=100)
    incumbent_competence_delta: int = 0
    education_points: int = Field(default=0, ge=0)
    education_level_points: int = Field(default=0, ge=0)
    education_depth_points: int = Field(default=0, ge=0)
    experience_total_points: int = Field(default=0, ge=0)
    experience_relevant_points: int = Field(default=0, ge=0)
    experience_raw_years: int = Field(default=0, ge=0)
    experience_unique_years: int = Field(default=0, ge=0)
    experience_has_overlap: bool = False
    leadership_points: int = Field(default=0, ge=0)
    leadership_seniority: str = ""
    leadership_stability: int = Field(default=0, ge=0)
    completeness_points: int = Field(default=0, ge=0)
    documents_points: int = Field(default=0, ge=0)
    assets_quality_points: int = Field(default=0, ge=0)
    verification_points: int = Field(default=0, ge=0)
    coverage_points: int = Field(default=0, ge=0)
    performance_score: Optional[float] = Field(default=None, ge=0, le=100)
    proposal_quality: Optional[float] = Field(default=None, ge=0, le=10)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_unique_years(self) -> "ScoreBreakdownModel":
        if self.experience_unique_years > self.experience_raw_years:
            raise ValueError("unique experience years cannot exceed raw years")
        if self.experience_has_overlap != (
            self.experience_unique_years < self.experience_raw_years
        ):
            raise ValueError("experience_has_overlap disagrees with the year totals")
        return self

    @property
    def civil_total(self) -> int:
        return sum(item.penalty for item in self.civil_penalties)

    def expected_integrity(self) -> int:
        """Base minus every itemized deduction plus the voting bonus, in [0, 100]."""

        value = (
            self.integrity_base
            - self.penal_penalty
            - self.civil_total
            - self.resignation_penalty
            - self.reinfo_penalty
            - self.company_penalty
            - self.incumbent_penalty
            - self.tax_penalty
            - self.omission_penalty
            - self.voting_penalty
            + self.voting_bonus
        )
        return max(0, min(100, value))

    def expected_competence(self) -> int:
        return max(0, min(100, self.competence_base + self.incumbent_competence_delta))


class ScoreResult(TypedDict, total=False):
    """Payload used when persisting candidate scores."""

    candidate_id: Optional[int]
    competence: int
    integrity: int
    transparency: int
    confidence: int
    score_balanced: float
    score_merit: float
    score_integrity: float
    weights: Dict[str, Dict[str, float]]
    breakdown: ScoreBreakdown
    version: str
    calculated_at: str


class ScoreResultModel(BaseModel):
    """Validated score payload: ranges, breakdown replay and composites."""

    candidate_id: Optional[int] = None
    competence: int = Field(ge=0, le=100)
    integrity: int = Field(ge=0, le=100)
    transparency: int = Field(ge=0, le=100)
    confidence: int = Field(ge=0, le=100)
    score_balanced: float = Field(ge=0, le=100)
    score_merit: float = Field(ge=0, le=100)
    score_integrity: float = Field(ge=0, le=100)
    weights: Dict[str, Dict[str, float]] = Field(default_factory=dict)
    breakdown: ScoreBreakdownModel
    version: str = "2026.1"
    calculated_at: Optional[datetime] = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_consistency(self) -> "ScoreResultModel":
        expected = self.breakdown.expected_integrity()
        if expected != self.integrity:
            raise ValueError(
                f"breakdown reproduces integrity {expected}, payload says {self.integrity}"
            )
        if self.breakdown.expected_competence() != self.competence:
            raise ValueError("competence does not match competence_base plus delta")
        for column, name in COMPOSITE_FIELDS.items():
            weights = self.weights.get(name)
            if not weights:
                continue
            combined = (
                weights["competence"] * self.competence
                + weights["integrity"] * self.integrity
                + weights["transparency"] * self.transparency
            )
            if abs(combined - getattr(self, column)) > COMPOSITE_TOLERANCE:
                raise ValueError(f"{column} deviates from its weighted combination")
        return self

    def model_dump_for_storage(self) -> Dict[str, Any]:
        """Return a JSON-serializable score payload."""

        return self.model_dump(mode="json")


__all__ = [
    "CATEGORY_FIELDS",
    "COMPOSITE_FIELDS",
    "CivilPenaltyItem",
    "CivilPenaltyItemModel",
    "ScoreBreakdown",
    "ScoreBreakdownModel",
    "ScoreResult",
    "ScoreResultModel",
]
