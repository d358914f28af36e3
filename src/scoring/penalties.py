"""Per-category penalty and bonus calculators.

Each calculator is a pure function of normalized records and one section of
the scoring configuration (``SCORING_CONFIG[<section>]``). Results are
non-negative integers already bounded by their category cap.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ranking_electoral.config_schema import DEFAULT_CONFIG
from src.normalization.records import (
    CivilSentenceRecord,
    CompanyIssueCounts,
    IncumbentPerformance,
    JudicialDiscrepancy,
    PenalSentenceRecord,
    ProposalQuality,
    ReinfoRight,
    TaxStatus,
    VotingRecordSummary,
)

DEFAULT_SCORING: Dict[str, Any] = DEFAULT_CONFIG.scoring.model_dump(mode="python")


def _section(config: Optional[Mapping[str, Any]], name: str) -> Mapping[str, Any]:
    return config if config is not None else DEFAULT_SCORING[name]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def apply_tiers(value: float, tiers: Iterable[Mapping[str, Any]]) -> int:
    """Points of the first tier whose minimum ``value`` reaches."""
    for tier in tiers:
        if value >= tier["minimum"]:
            return int(tier["points"])
    return 0


def penal_penalty(
    sentences: Sequence[PenalSentenceRecord], config: Optional[Mapping[str, Any]] = None
) -> int:
    cfg = _section(config, "penal")
    firm = sum(1 for sentence in sentences if sentence.is_firm)
    pending = len(sentences) - firm
    return firm * int(cfg["firm_each"]) + pending * int(cfg["pending_each"])


def civil_penalties(
    sentences: Sequence[CivilSentenceRecord], config: Optional[Mapping[str, Any]] = None
) -> Tuple[int, List[Dict[str, Any]]]:
    """Total civil penalty plus one ``{type, penalty}`` item per subtype."""

    cfg = _section(config, "civil")
    per_type: Dict[str, int] = {}
    for sentence in sentences:
        points = int(cfg.get(sentence.type, cfg["otro"]))
        per_type[sentence.type] = per_type.get(sentence.type, 0) + points
    items = [{"type": subtype, "penalty": penalty} for subtype, penalty in per_type.items()]
    return sum(per_type.values()), items


def resignation_penalty(count: int, config: Optional[Mapping[str, Any]] = None) -> int:
    cfg = _section(config, "resignation")
    return apply_tiers(max(count, 0), cfg["tiers"])


def reinfo_severity(rights: Sequence[ReinfoRight]) -> Optional[str]:
    if not rights:
        return None
    return "RED" if any(right.is_red for right in rights) else "AMBER"


def reinfo_penalty(
    rights: Sequence[ReinfoRight], config: Optional[Mapping[str, Any]] = None
) -> int:
    """RED when any right is Vigente/Suspendido, AMBER otherwise; scales per right."""

    cfg = _section(config, "reinfo")
    severity = reinfo_severity(rights)
    if severity is None:
        return 0
    distinct = len({right.derecho_minero or f"#{index}" for index, right in enumerate(rights)})
    prefix = severity.lower()
    magnitude = int(cfg[f"{prefix}_base"]) + int(cfg[f"{prefix}_per_extra_right"]) * (
        distinct - 1
    )
    return min(magnitude, int(cfg[f"{prefix}_cap"]))


def company_penalty(
    issues: Optional[CompanyIssueCounts], config: Optional[Mapping[str, Any]] = None
) -> int:
    if issues is None:
        return 0
    cfg = _section(config, "company")
    penalty = (
        issues.penal * int(cfg["penal_each"])
        + issues.ambiental * int(cfg["ambiental_each"])
        + issues.laboral * int(cfg["laboral_each"])
    )
    if issues.consumidor > int(cfg["consumidor_threshold"]):
        penalty += int(cfg["consumidor_flat"])
    return min(penalty, int(cfg["cap"]))


def tax_penalty(tax: Optional[TaxStatus], config: Optional[Mapping[str, Any]] = None) -> int:
    """Condition and RUC status points plus coactive debts, each debt counted up to a limit."""

    if tax is None:
        return 0
    cfg = _section(config, "tax")
    penalty = 0
    if tax.condition in ("no_habido", "no_hallado"):
        penalty += int(cfg[tax.condition])
    if tax.status in ("suspendido", "baja"):
        penalty += int(cfg[tax.status])
    if tax.has_coactive_debts:
        debts = min(tax.coactive_debt_count or 1, int(cfg["coactive_debt_max_count"]))
        penalty += debts * int(cfg["coactive_debt_each"])
    return min(penalty, int(cfg["cap"]))


def omission_penalty(
    discrepancy: Optional[JudicialDiscrepancy], config: Optional[Mapping[str, Any]] = None
) -> int:
    if discrepancy is None or not discrepancy.has_discrepancy:
        return 0
    cfg = _section(config, "omission")
    penalty = int(cfg["severity_points"].get(discrepancy.severity, 0))
    penalty += discrepancy.undeclared_cases_count * int(cfg["undeclared_case_each"])
    return min(penalty, int(cfg["cap"]))


def _is_incumbent(performance: Optional[IncumbentPerformance]) -> bool:
    return performance is not None and performance.is_incumbent


def incumbent_penalty(
    performance: Optional[IncumbentPerformance], config: Optional[Mapping[str, Any]] = None
) -> int:
    if not _is_incumbent(performance):
        return 0
    cfg = _section(config, "incumbent")
    penalty = 0
    budget = performance.budget_execution_pct
    threshold = float(cfg["budget_threshold_pct"])
    if budget is not None and budget < threshold:
        bands = round_half_up((threshold - budget) / float(cfg["budget_band_pct"]))
        penalty += bands * int(cfg["budget_band_points"])
    penalty += performance.contraloria_reports * int(cfg["report_points"])
    score = performance.performance_score
    floor = float(cfg["performance_threshold"])
    if score is not None and score < floor:
        bands = round_half_up((floor - score) / float(cfg["performance_band"]))
        penalty += bands * int(cfg["performance_band_points"])
    return min(penalty, int(cfg["cap"]))


def incumbent_competence_delta(
    performance: Optional[IncumbentPerformance], config: Optional[Mapping[str, Any]] = None
) -> int:
    """Signed competence adjustment from budget execution, bounded both ways."""

    if not _is_incumbent(performance) or performance.budget_execution_pct is None:
        return 0
    cfg = _section(config, "incumbent")
    bands = round_half_up(
        (performance.budget_execution_pct - float(cfg["budget_threshold_pct"]))
        / float(cfg["budget_band_pct"])
    )
    limit = int(cfg["competence_delta_cap"])
    return int(clamp(bands * int(cfg["competence_band_points"]), -limit, limit))


def performance_score(performance: Optional[IncumbentPerformance]) -> Optional[float]:
    if not _is_incumbent(performance):
        return None
    score = 50.0
    if performance.budget_execution_pct is not None:
        score += (performance.budget_execution_pct - 50.0) * 0.5
    score -= performance.contraloria_reports * 10
    if performance.performance_score is not None:
        score = performance.performance_score
    return float(clamp(score))


@dataclass(frozen=True)
class VotingAdjustment:
    penalty: int = 0
    bonus: int = 0


def voting_adjustment(
    summary: Optional[VotingRecordSummary], config: Optional[Mapping[str, Any]] = None
) -> VotingAdjustment:
    """Penalty and bonus stay separate; per-law votes take precedence over flags."""

    if summary is None:
        return VotingAdjustment()
    cfg = _section(config, "voting")
    if summary.controversial_votes:
        penalty = sum(v.penalty_points for v in summary.controversial_votes if v.vote == "favor")
        bonus = sum(v.bonus_points for v in summary.controversial_votes if v.vote == "contra")
    else:
        penalty = summary.pro_crime_in_favor * int(
            cfg["pro_crime_in_favor_points"]
        ) + summary.anti_democratic_in_favor * int(cfg["anti_democratic_in_favor_points"])
        bonus = summary.pro_crime_against * int(cfg["pro_crime_against_points"])
    return VotingAdjustment(
        penalty=min(penalty, int(cfg["penalty_cap"])),
        bonus=min(bonus, int(cfg["bonus_cap"])),
    )


def proposal_quality(quality: Optional[ProposalQuality]) -> Optional[float]:
    """Mean of the per-proposal dimension means, 2 decimals; informational."""

    if quality is None:
        return None
    if quality.proposals:
        overall = sum(p.mean for p in quality.proposals) / len(quality.proposals)
    elif quality.overall_quality is not None:
        overall = quality.overall_quality
    else:
        return None
    return round(clamp(overall, 0, 10), 2)


__all__ = [
    "DEFAULT_SCORING",
    "VotingAdjustment",
    "apply_tiers",
    "civil_penalties",
    "clamp",
    "company_penalty",
    "incumbent_competence_delta",
    "incumbent_penalty",
    "omission_penalty",
    "penal_penalty",
    "performance_score",
    "proposal_quality",
    "reinfo_penalty",
    "reinfo_severity",
    "resignation_penalty",
    "round_half_up",
    "tax_penalty",
    "voting_adjustment",
]
