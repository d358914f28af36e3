"""Category score aggregators: competence, integrity, transparency, confidence."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from src.normalization.inference import political_as_experience
from src.normalization.records import ExperienceRecord, NormalizedCandidate
from src.scoring.penalties import (
    DEFAULT_SCORING,
    apply_tiers,
    civil_penalties,
    clamp,
    company_penalty,
    incumbent_competence_delta,
    incumbent_penalty,
    omission_penalty,
    penal_penalty,
    reinfo_penalty,
    resignation_penalty,
    round_half_up,
    tax_penalty,
    voting_adjustment,
)


@dataclass
class CompetenceResult:
    score: int
    base: int
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
    incumbent_competence_delta: int


@dataclass
class IntegrityResult:
    score: int
    integrity_base: int
    penal_penalty: int = 0
    civil_penalties: List[Dict[str, Any]] = field(default_factory=list)
    resignation_penalty: int = 0
    reinfo_penalty: int = 0
    company_penalty: int = 0
    incumbent_penalty: int = 0
    voting_penalty: int = 0
    voting_bonus: int = 0
    tax_penalty: int = 0
    omission_penalty: int = 0
    applied_categories: Tuple[str, ...] = ()


@dataclass
class TransparencyResult:
    score: int
    completeness_points: int
    documents_points: int
    assets_quality_points: int


@dataclass
class ConfidenceResult:
    score: int
    verification_points: int
    coverage_points: int


# Competence ---------------------------------------------------------------


def _intervals(
    records: Iterable[ExperienceRecord], reference_year: int
) -> List[Tuple[int, int]]:
    """[start, end) year spans; unknown starts are dropped, open ends run to now."""
    spans: List[Tuple[int, int]] = []
    for record in records:
        if record.year_start <= 0:
            continue
        end = record.year_end if record.year_end > 0 else reference_year
        if end > record.year_start:
            spans.append((record.year_start, end))
    return spans


def _merged_years(spans: Sequence[Tuple[int, int]]) -> int:
    total = 0
    current_start: Optional[int] = None
    current_end = 0
    for start, end in sorted(spans):
        if current_start is None or start > current_end:
            if current_start is not None:
                total += current_end - current_start
            current_start, current_end = start, end
        else:
            current_end = max(current_end, end)
    if current_start is not None:
        total += current_end - current_start
    return total


def _education(candidate: NormalizedCandidate, cfg: Mapping[str, Any]) -> Tuple[int, int, int]:
    ladder: Mapping[str, int] = cfg["education_points"]
    levels = sorted(
        {ladder.get(record.level, 0) for record in candidate.education}, reverse=True
    )
    if not levels:
        return 0, 0, 0
    top = levels[0]
    additional = [points for points in levels[1:] if points >= cfg["education_depth_min_points"]]
    depth = 0
    if top >= cfg["education_depth_min_points"]:
        depth = min(len(additional) * cfg["education_depth_step"], cfg["education_depth_cap"])
    total = min(top + depth, cfg["education_cap"])
    return total, top, depth


def _relevance_factor(cfg: Mapping[str, Any], cargo: str, role_type: str) -> float:
    table = cfg["relevance_by_cargo"].get(cargo, {})
    return float(table.get(role_type, cfg["relevant_default_factor"]))


def compute_competence(
    candidate: NormalizedCandidate,
    *,
    reference_year: int,
    config: Optional[Mapping[str, Any]] = None,
    base: Optional[int] = None,
) -> CompetenceResult:
    """Education + experience + relevance + leadership, then incumbent delta.

    ``base`` replaces the computed base when replaying from a baseline. The
    incumbent delta only applies while the incumbent category is enabled.
    """

    scoring = config if config is not None else DEFAULT_SCORING
    cfg = scoring["competence"]

    education_points, level_points, depth_points = _education(candidate, cfg)

    records = list(candidate.experience) + [
        converted
        for converted in (political_as_experience(item) for item in candidate.political)
        if converted is not None
    ]
    spans = _intervals(records, reference_year)
    raw_years = sum(end - start for start, end in spans)
    unique_years = _merged_years(spans)
    total_points = apply_tiers(unique_years, cfg["experience_tiers"])

    relevant = 0.0
    for record in records:
        span = _intervals([record], reference_year)
        if not span:
            continue
        years = min(span[0][1] - span[0][0], cfg["relevant_years_cap"])
        relevant += years * _relevance_factor(cfg, candidate.cargo, record.role_type)
    relevant_points = min(round_half_up(relevant), cfg["relevant_cap"])

    seniority_points: Mapping[str, int] = cfg["seniority_points"]
    top_seniority = max(
        (record.seniority for record in records),
        key=lambda name: seniority_points.get(name, 0),
        default="",
    )
    leadership_years = _merged_years(
        _intervals([record for record in records if record.is_leadership], reference_year)
    )
    stability = apply_tiers(leadership_years, cfg["stability_tiers"])
    leadership_points = min(
        seniority_points.get(top_seniority, 0) + stability, cfg["leadership_cap"]
    )

    if base is None:
        base = min(education_points + total_points + relevant_points + leadership_points, 100)
    delta = 0
    if "incumbent" in scoring["integrity"]["enabled_categories"]:
        delta = incumbent_competence_delta(candidate.incumbent, scoring["incumbent"])
    return CompetenceResult(
        score=int(clamp(round_half_up(base + delta))),
        base=base,
        education_points=education_points,
        education_level_points=level_points,
        education_depth_points=depth_points,
        experience_total_points=total_points,
        experience_relevant_points=relevant_points,
        experience_raw_years=raw_years,
        experience_unique_years=unique_years,
        experience_has_overlap=unique_years < raw_years,
        leadership_points=leadership_points,
        leadership_seniority=top_seniority,
        leadership_stability=stability,
        incumbent_competence_delta=delta,
    )


# Integrity ----------------------------------------------------------------


def integrity_from_terms(
    base: int,
    *,
    penal: int = 0,
    civil_items: Iterable[Mapping[str, Any]] = (),
    resignation: int = 0,
    reinfo: int = 0,
    company: int = 0,
    incumbent: int = 0,
    voting_penalty: int = 0,
    voting_bonus: int = 0,
    tax: int = 0,
    omission: int = 0,
) -> int:
    """Replay itemized terms against ``base`` and clamp to [0, 100]."""

    deductions = penal + sum(int(item["penalty"]) for item in civil_items)
    deductions += resignation + reinfo + company + incumbent + tax + omission
    return int(clamp(base - deductions + voting_bonus - voting_penalty))


def compute_integrity(
    candidate: NormalizedCandidate,
    *,
    config: Optional[Mapping[str, Any]] = None,
    base: Optional[int] = None,
) -> IntegrityResult:
    """Apply every enabled penalty category against the integrity base.

    ``base`` overrides ``integrity.base`` when replaying from a persisted
    baseline. Disabled categories are recorded as zero so the breakdown
    always reproduces the returned score.
    """

    scoring = config if config is not None else DEFAULT_SCORING
    enabled = tuple(scoring["integrity"]["enabled_categories"])
    start = int(scoring["integrity"]["base"] if base is None else base)
    result = IntegrityResult(score=start, integrity_base=start, applied_categories=enabled)

    if "penal" in enabled:
        result.penal_penalty = penal_penalty(candidate.penal, scoring["penal"])
    if "civil" in enabled:
        _, result.civil_penalties = civil_penalties(candidate.civil, scoring["civil"])
    if "resignation" in enabled:
        result.resignation_penalty = resignation_penalty(
            candidate.party_resignations, scoring["resignation"]
        )
    if "reinfo" in enabled:
        result.reinfo_penalty = reinfo_penalty(candidate.reinfo, scoring["reinfo"])
    if "company" in enabled:
        result.company_penalty = company_penalty(candidate.company_issues, scoring["company"])
    if "incumbent" in enabled:
        result.incumbent_penalty = incumbent_penalty(candidate.incumbent, scoring["incumbent"])
    if "voting" in enabled:
        voting = voting_adjustment(candidate.voting, scoring["voting"])
        result.voting_penalty, result.voting_bonus = voting.penalty, voting.bonus
    if "tax" in enabled:
        result.tax_penalty = tax_penalty(candidate.tax, scoring["tax"])
    if "omission" in enabled:
        result.omission_penalty = omission_penalty(candidate.omission, scoring["omission"])

    result.score = integrity_from_terms(
        start,
        penal=result.penal_penalty,
        civil_items=result.civil_penalties,
        resignation=result.resignation_penalty,
        reinfo=result.reinfo_penalty,
        company=result.company_penalty,
        incumbent=result.incumbent_penalty,
        voting_penalty=result.voting_penalty,
        voting_bonus=result.voting_bonus,
        tax=result.tax_penalty,
        omission=result.omission_penalty,
    )
    return result


# Transparency and confidence ----------------------------------------------


def _scaled(level: float, weight: int) -> int:
    return round_half_up(clamp(level) * weight / 100)


def compute_transparency(
    candidate: NormalizedCandidate, config: Optional[Mapping[str, Any]] = None
) -> TransparencyResult:
    cfg = config if config is not None else DEFAULT_SCORING["transparency"]
    completeness = cfg["completeness_base"]
    if candidate.education:
        completeness += cfg["completeness_education"]
    if candidate.experience:
        completeness += cfg["completeness_experience"]
    if candidate.birth_date:
        completeness += cfg["completeness_birth_date"]
    if candidate.assets_declared:
        completeness += cfg["completeness_assets"]

    documents = (
        bool(candidate.hoja_vida_url),
        candidate.income_declared,
        bool(candidate.photo_url),
    )
    documents_level = 100 * sum(documents) / len(documents)
    assets_level = (
        cfg["assets_declared_level"] if candidate.assets_declared else cfg["assets_missing_level"]
    )

    completeness_points = _scaled(completeness, cfg["completeness_weight"])
    documents_points = _scaled(documents_level, cfg["documents_weight"])
    assets_points = _scaled(assets_level, cfg["assets_weight"])
    return TransparencyResult(
        score=int(clamp(completeness_points + documents_points + assets_points)),
        completeness_points=completeness_points,
        documents_points=documents_points,
        assets_quality_points=assets_points,
    )


def compute_confidence(
    candidate: NormalizedCandidate, config: Optional[Mapping[str, Any]] = None
) -> ConfidenceResult:
    cfg = config if config is not None else DEFAULT_SCORING["confidence"]
    verification = cfg["verification_base"]
    if candidate.data_verified:
        verification += cfg["verified_flag_points"]
    if "verified" in candidate.data_source.lower():
        verification += cfg["verified_source_points"]

    coverage_items = (
        bool(candidate.education),
        bool(candidate.experience),
        bool(candidate.political),
        candidate.assets_declared,
        bool(candidate.birth_date),
        bool(candidate.dni),
    )
    coverage_level = 100 * sum(coverage_items) / len(coverage_items)

    verification_points = _scaled(verification, cfg["verification_weight"])
    coverage_points = _scaled(coverage_level, cfg["coverage_weight"])
    return ConfidenceResult(
        score=int(clamp(verification_points + coverage_points)),
        verification_points=verification_points,
        coverage_points=coverage_points,
    )


__all__ = [
    "CompetenceResult",
    "ConfidenceResult",
    "IntegrityResult",
    "TransparencyResult",
    "compute_competence",
    "compute_confidence",
    "compute_integrity",
    "compute_transparency",
    "integrity_from_terms",
]
