"""Canonical typed records produced by the normalizer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from src.normalization.synonyms import (
    FIRM_PENAL_STATUSES,
    LEADERSHIP_SENIORITIES,
    RED_CIVIL_SUBTYPES,
    REINFO_RED_STATES,
)


@dataclass
class EducationRecord:
    level: str = "sin_informacion"
    degree: str = ""
    institution: str = ""
    field: str = ""
    is_completed: bool = False
    has_title: bool = False
    has_bachelor: bool = False


@dataclass
class ExperienceRecord:
    """A job or office held. ``year_start == 0`` is unknown, ``year_end == 0`` is open."""

    institution: str = ""
    position: str = ""
    year_start: int = 0
    year_end: int = 0
    description: str = ""
    type: str = "privado"
    role_type: str = "tecnico_profesional"
    seniority: str = "individual_contributor"
    origin: str = "experience"

    @property
    def is_leadership(self) -> bool:
        return self.seniority in LEADERSHIP_SENIORITIES


@dataclass
class PoliticalRecord:
    """A political post; ``year_start``/``year_end`` are ``None`` when unknown."""

    type: str = "afiliacion"
    party: str = ""
    position: str = ""
    institution: str = ""
    year_start: Optional[int] = None
    year_end: Optional[int] = None
    ongoing: bool = False
    result: Optional[str] = None
    is_elected: bool = False


@dataclass
class PenalSentenceRecord:
    type: str = ""
    case_number: str = ""
    court: str = ""
    sentence: str = ""
    date: str = ""
    status: str = "proceso"
    source: str = ""

    @property
    def is_firm(self) -> bool:
        return self.status in FIRM_PENAL_STATUSES


@dataclass
class CivilSentenceRecord:
    type: str = "otro"
    description: str = ""
    amount: Optional[float] = None
    status: str = ""
    source: str = ""

    @property
    def severity(self) -> str:
        return "RED" if self.type in RED_CIVIL_SUBTYPES else "AMBER"


@dataclass
class CompanyIssueCounts:
    penal: int = 0
    laboral: int = 0
    ambiental: int = 0
    consumidor: int = 0
    total_fines: float = 0.0


@dataclass
class IncumbentPerformance:
    is_incumbent: bool = False
    budget_execution_pct: Optional[float] = None
    contraloria_reports: int = 0
    performance_score: Optional[float] = None


@dataclass
class ControversialVote:
    law_id: str = ""
    vote: str = ""
    penalty_points: int = 0
    bonus_points: int = 0


@dataclass
class VotingRecordSummary:
    in_favor: int = 0
    against: int = 0
    abstentions: int = 0
    absences: int = 0
    pro_crime_in_favor: int = 0
    pro_crime_against: int = 0
    anti_democratic_in_favor: int = 0
    controversial_votes: List[ControversialVote] = field(default_factory=list)


@dataclass
class ProposalScores:
    specificity: float = 0.0
    viability: float = 0.0
    impact: float = 0.0
    evidence: float = 0.0

    @property
    def mean(self) -> float:
        return (self.specificity + self.viability + self.impact + self.evidence) / 4


@dataclass
class ProposalQuality:
    proposals: List[ProposalScores] = field(default_factory=list)
    overall_quality: Optional[float] = None


@dataclass
class ReinfoRight:
    derecho_minero: str = ""
    estado: str = ""

    @property
    def is_red(self) -> bool:
        return self.estado.lower() in REINFO_RED_STATES


@dataclass
class TaxStatus:
    """SUNAT taxpayer condition and RUC status, folded to canonical values."""

    condition: str = ""
    status: str = ""
    has_coactive_debts: bool = False
    coactive_debt_count: int = 0


@dataclass
class JudicialDiscrepancy:
    has_discrepancy: bool = False
    severity: str = "none"
    undeclared_cases_count: int = 0


@dataclass
class NormalizedCandidate:
    """Everything the scoring engine reads about one candidate row."""

    id: Optional[int] = None
    full_name: str = ""
    cargo: str = ""
    party_name: str = ""
    dni: Optional[str] = None
    birth_date: Optional[str] = None
    photo_url: Optional[str] = None
    hoja_vida_url: Optional[str] = None
    data_verified: bool = False
    data_source: str = ""
    party_resignations: int = 0
    education: List[EducationRecord] = field(default_factory=list)
    experience: List[ExperienceRecord] = field(default_factory=list)
    political: List[PoliticalRecord] = field(default_factory=list)
    penal: List[PenalSentenceRecord] = field(default_factory=list)
    civil: List[CivilSentenceRecord] = field(default_factory=list)
    assets_declared: bool = False
    income_declared: bool = False
    company_issues: Optional[CompanyIssueCounts] = None
    incumbent: Optional[IncumbentPerformance] = None
    voting: Optional[VotingRecordSummary] = None
    proposals: Optional[ProposalQuality] = None
    reinfo: List[ReinfoRight] = field(default_factory=list)
    tax: Optional[TaxStatus] = None
    omission: Optional[JudicialDiscrepancy] = None


__all__ = [
    "CivilSentenceRecord",
    "CompanyIssueCounts",
    "ControversialVote",
    "EducationRecord",
    "ExperienceRecord",
    "IncumbentPerformance",
    "JudicialDiscrepancy",
    "NormalizedCandidate",
    "PenalSentenceRecord",
    "PoliticalRecord",
    "ProposalQuality",
    "ProposalScores",
    "ReinfoRight",
    "TaxStatus",
    "VotingRecordSummary",
]
