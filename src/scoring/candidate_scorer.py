"""Candidate scorer: normalize, compute every category, combine and validate."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from config import SCORING_CONFIG
from src.contracts import ScoreResultModel
from src.normalization import NormalizedCandidate, normalize_candidate
from src.scoring.aggregators import (
    compute_competence,
    compute_confidence,
    compute_integrity,
    compute_transparency,
)
from src.scoring.composites import COMPOSITE_COLUMNS, compute_composites
from src.scoring.penalties import performance_score, proposal_quality

logger = logging.getLogger(__name__)


class CandidateScorer:
    """Full scorer producing the four category scores, composites and breakdown."""

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        reference_year: Optional[int] = None,
    ):
        self.config = config or SCORING_CONFIG
        self.version = str(self.config.get("version", "2026.1"))
        self.reference_year = (
            reference_year
            or self.config.get("reference_year")
            or datetime.now(timezone.utc).year
        )
        self.composite_weights = self.config["composites"]
        self._validate_composites_config()

    def score_candidate(
        self,
        candidate: Any,
        *,
        baseline: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Score one candidate row.

        Args:
            candidate: ORM row, raw mapping or an already normalized candidate.
            baseline: optional ``{competence_base, integrity_base}`` snapshot;
                when given both bases are replayed instead of recomputed.

        Raises:
            ValueError: if the resulting payload breaks a score invariant.
        """

        normalized = (
            candidate
            if isinstance(candidate, NormalizedCandidate)
            else normalize_candidate(candidate)
        )
        competence_base = baseline.get("competence_base") if baseline else None
        integrity_base = baseline.get("integrity_base") if baseline else None

        competence = compute_competence(
            normalized,
            reference_year=self.reference_year,
            config=self.config,
            base=competence_base,
        )
        integrity = compute_integrity(normalized, config=self.config, base=integrity_base)
        transparency = compute_transparency(normalized, self.config["transparency"])
        confidence = compute_confidence(normalized, self.config["confidence"])
        composites = compute_composites(
            competence.score,
            integrity.score,
            transparency.score,
            self.composite_weights,
        )

        breakdown = {
            "integrity_base": integrity.integrity_base,
            "penal_penalty": integrity.penal_penalty,
            "civil_penalties": integrity.civil_penalties,
            "resignation_penalty": integrity.resignation_penalty,
            "reinfo_penalty": integrity.reinfo_penalty,
            "company_penalty": integrity.company_penalty,
            "incumbent_penalty": integrity.incumbent_penalty,
            "voting_penalty": integrity.voting_penalty,
            "voting_bonus": integrity.voting_bonus,
            "tax_penalty": integrity.tax_penalty,
            "omission_penalty": integrity.omission_penalty,
            "applied_categories": list(integrity.applied_categories),
            "competence_base": competence.base,
            "incumbent_competence_delta": competence.incumbent_competence_delta,
            "education_points": competence.education_points,
            "education_level_points": competence.education_level_points,
            "education_depth_points": competence.education_depth_points,
            "experience_total_points": competence.experience_total_points,
            "experience_relevant_points": competence.experience_relevant_points,
            "experience_raw_years": competence.experience_raw_years,
            "experience_unique_years": competence.experience_unique_years,
            "experience_has_overlap": competence.experience_has_overlap,
            "leadership_points": competence.leadership_points,
            "leadership_seniority": competence.leadership_seniority,
            "leadership_stability": competence.leadership_stability,
            "completeness_points": transparency.completeness_points,
            "documents_points": transparency.documents_points,
            "assets_quality_points": transparency.assets_quality_points,
            "verification_points": confidence.verification_points,
            "coverage_points": confidence.coverage_points,
            "performance_score": performance_score(normalized.incumbent),
            "proposal_quality": proposal_quality(normalized.proposals),
        }

        result = {
            "candidate_id": normalized.id,
            "competence": competence.score,
            "integrity": integrity.score,
            "transparency": transparency.score,
            "confidence": confidence.score,
            **composites.as_dict(),
            "weights": {name: dict(self.composite_weights[name]) for name in COMPOSITE_COLUMNS},
            "breakdown": breakdown,
            "version": self.version,
            "calculated_at": datetime.now(timezone.utc),
        }

        try:
            validated = ScoreResultModel.model_validate(result)
        except ValidationError as exc:
            identifier = normalized.id if normalized.id is not None else normalized.full_name
            raise ValueError(f"Invalid scoring payload for candidate {identifier}: {exc}") from exc

        logger.debug(
            "Candidato %s puntuado: C=%s I=%s T=%s",
            normalized.id,
            competence.score,
            integrity.score,
            transparency.score,
        )
        return validated.model_dump()

    # Configuration validators ---------------------------------------------

    def _validate_composites_config(self) -> None:
        for name in COMPOSITE_COLUMNS:
            weights = self.composite_weights.get(name)
            if not weights:
                raise ValueError(f"composites.{name} is not configured")
            for key in ("competence", "integrity", "transparency"):
                value = weights.get(key)
                if value is None or value < 0.0 or value > 1.0:
                    raise ValueError(f"composites.{name}.{key} must be between 0 and 1")
            if abs(sum(weights[key] for key in ("competence", "integrity", "transparency")) - 1.0) > 0.01:
                raise ValueError(f"composites.{name} must sum to 1.0")


__all__ = ["CandidateScorer"]
