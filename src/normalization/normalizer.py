"""Raw record normalizer.

Every public function here accepts whatever the ingestion jobs stored
(lists, mappings, JSON strings, ``None``) and returns canonical records.
Nothing raises: a malformed entry is skipped or degrades to defaulted
fields, and a malformed category degrades to empty/``None`` without
touching the other categories of the candidate.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from src.normalization.inference import (
    infer_role_type,
    infer_seniority,
    map_education_level,
)
from src.normalization.records import (
    CivilSentenceRecord,
    CompanyIssueCounts,
    ControversialVote,
    EducationRecord,
    ExperienceRecord,
    IncumbentPerformance,
    JudicialDiscrepancy,
    NormalizedCandidate,
    PenalSentenceRecord,
    PoliticalRecord,
    ProposalQuality,
    ProposalScores,
    ReinfoRight,
    TaxStatus,
    VotingRecordSummary,
)
from src.normalization.synonyms import (
    CARGO_MARKERS,
    CIVIL_SUBTYPES,
    COMPANY_ISSUE_TYPES,
    DEFAULT_CIVIL_SUBTYPE,
    DEFAULT_PENAL_STATUS,
    DEFAULT_POLITICAL_TYPE,
    DISCREPANCY_SEVERITIES,
    PENAL_STATUSES,
    POLITICAL_TYPES,
    PUBLIC_SECTOR_MARKERS,
    PUBLIC_SECTOR_TERMS,
    RUC_STATUSES,
    SYNONYMS,
    TAX_CONDITIONS,
)
from src.utils.text_cleaner import contains_word, fold_text, normalize_text

logger = logging.getLogger(__name__)

_YEAR_RE = re.compile(r"(?<!\d)(\d{4})(?!\d)")


def _get_attr(obj: Any, name: str, default=None):
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _load_blob(raw: Any) -> Any:
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            logger.debug("Blob JSON ilegible, se ignora: %.60s", text)
            return None
    return raw


def _as_entries(raw: Any) -> List[Mapping[str, Any]]:
    data = _load_blob(raw)
    if not isinstance(data, list):
        return []
    return [entry for entry in data if isinstance(entry, Mapping)]


def raw_entries(raw: Any) -> List[Mapping[str, Any]]:
    """Mapping entries of a list blob as stored, ``[]`` when unusable."""
    return _as_entries(raw)


def _as_mapping(raw: Any) -> Optional[Mapping[str, Any]]:
    data = _load_blob(raw)
    return data if isinstance(data, Mapping) else None


def pick(entry: Mapping[str, Any], table: str, field: str, default: Any = None) -> Any:
    """First non-empty value among the synonyms of ``table.field``."""

    for key in SYNONYMS[table][field]:
        value = entry.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        return value
    return default


def _explicit_null(entry: Mapping[str, Any], table: str, field: str) -> bool:
    keys = SYNONYMS[table][field]
    present = [key for key in keys if key in entry]
    return bool(present) and all(entry[key] is None for key in present)


def _text(value: Any) -> str:
    if value is None or isinstance(value, (Mapping, list)):
        return ""
    try:
        return normalize_text(str(value))
    except ValueError:
        # int too large for str()
        return ""


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return fold_text(_text(value)) in {"true", "si", "yes", "1", "x"}


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        else:
            number = float(_text(value).replace(",", "").replace("%", "").strip())
    except (OverflowError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_count(value: Any) -> int:
    number = _number(value)
    if number is None or number < 0:
        return 0
    return int(number)


def parse_year(value: Any) -> Optional[int]:
    """Return the first standalone four-digit run of ``value``.

    ``"2010-03-01"`` gives 2010, ``2015`` gives 2015 and anything without a
    four-digit run gives ``None``. Callers choose the sentinel.
    """

    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value if 1000 <= value <= 9999 else None
    if isinstance(value, float):
        return int(value) if math.isfinite(value) and 1000 <= value <= 9999 else None
    match = _YEAR_RE.search(str(value))
    return int(match.group(1)) if match else None


def resolve_sector(entry: Mapping[str, Any], institution: str) -> str:
    """publico|privado using the explicit sector, then type, then keywords."""

    sector = pick(entry, "experience", "sector")
    if sector is not None:
        folded = _text(sector).lower()
        if any(marker in folded for marker in PUBLIC_SECTOR_MARKERS):
            return "publico"
        return "privado"
    declared = fold_text(_text(pick(entry, "experience", "type")))
    if declared in ("publico", "privado"):
        return declared
    if contains_word(institution, PUBLIC_SECTOR_TERMS):
        return "publico"
    return "privado"


def normalize_experience(raw: Any) -> List[ExperienceRecord]:
    records: List[ExperienceRecord] = []
    for entry in _as_entries(raw):
        institution = _text(pick(entry, "experience", "institution"))
        position = _text(pick(entry, "experience", "position"))
        records.append(
            ExperienceRecord(
                institution=institution,
                position=position,
                year_start=parse_year(pick(entry, "experience", "year_start")) or 0,
                year_end=parse_year(pick(entry, "experience", "year_end")) or 0,
                description=_text(pick(entry, "experience", "description")),
                type=resolve_sector(entry, institution),
                role_type=infer_role_type(position, institution),
                seniority=infer_seniority(position),
            )
        )
    return records


def normalize_political_type(value: Any) -> str:
    folded = fold_text(_text(value)).replace(" ", "_")
    return POLITICAL_TYPES.get(folded, DEFAULT_POLITICAL_TYPE)


def normalize_political(raw: Any) -> List[PoliticalRecord]:
    records: List[PoliticalRecord] = []
    for entry in _as_entries(raw):
        is_elected = entry.get("is_elected") is True
        year_start = parse_year(pick(entry, "political", "year_start"))
        if year_start is None:
            year_start = parse_year(pick(entry, "political", "year"))
        year_end = parse_year(pick(entry, "political", "year_end"))
        ongoing = year_end is None and (
            _flag(entry.get("is_current")) or _explicit_null(entry, "political", "year_end")
        )
        result = _text(pick(entry, "political", "result")) or None
        if result is None and is_elected:
            result = "Electo"
        records.append(
            PoliticalRecord(
                type=normalize_political_type(pick(entry, "political", "type")),
                party=_text(pick(entry, "political", "party")),
                position=_text(pick(entry, "political", "position")),
                institution=_text(pick(entry, "political", "institution")),
                year_start=year_start,
                year_end=year_end,
                ongoing=ongoing,
                result=result,
                is_elected=is_elected,
            )
        )
    return records


def normalize_education(raw: Any) -> List[EducationRecord]:
    records: List[EducationRecord] = []
    for entry in _as_entries(raw):
        degree = _text(pick(entry, "education", "degree"))
        is_completed = _flag(pick(entry, "education", "is_completed", False))
        has_title = _flag(pick(entry, "education", "has_title", False))
        has_bachelor = _flag(pick(entry, "education", "has_bachelor", False))
        records.append(
            EducationRecord(
                level=map_education_level(
                    _text(pick(entry, "education", "level")),
                    degree,
                    is_completed=is_completed,
                    has_title=has_title,
                    has_bachelor=has_bachelor,
                ),
                degree=degree,
                institution=_text(pick(entry, "education", "institution")),
                field=_text(pick(entry, "education", "field")),
                is_completed=is_completed,
                has_title=has_title,
                has_bachelor=has_bachelor,
            )
        )
    return records


def normalize_penal_status(value: Any) -> str:
    folded = fold_text(_text(value))
    for status in PENAL_STATUSES:
        if status in folded:
            return status
    return DEFAULT_PENAL_STATUS


def normalize_penal(raw: Any) -> List[PenalSentenceRecord]:
    return [
        PenalSentenceRecord(
            type=_text(pick(entry, "penal", "type")),
            case_number=_text(pick(entry, "penal", "case_number")),
            court=_text(pick(entry, "penal", "court")),
            sentence=_text(pick(entry, "penal", "sentence")),
            date=_text(pick(entry, "penal", "date")),
            status=normalize_penal_status(pick(entry, "penal", "status")),
            source=_text(pick(entry, "penal", "source")),
        )
        for entry in _as_entries(raw)
    ]


def normalize_civil_subtype(value: Any) -> str:
    folded = fold_text(_text(value))
    for marker, subtype in CIVIL_SUBTYPES:
        if marker in folded:
            return subtype
    return DEFAULT_CIVIL_SUBTYPE


def normalize_civil(raw: Any) -> List[CivilSentenceRecord]:
    return [
        CivilSentenceRecord(
            type=normalize_civil_subtype(pick(entry, "civil", "type")),
            description=_text(pick(entry, "civil", "description")),
            amount=_number(pick(entry, "civil", "amount")),
            status=_text(pick(entry, "civil", "status")),
            source=_text(pick(entry, "civil", "source")),
        )
        for entry in _as_entries(raw)
    ]


def _company_issue_type(value: Any) -> Optional[str]:
    folded = fold_text(_text(value))
    for issue_type in COMPANY_ISSUE_TYPES:
        if issue_type[:6] in folded:
            return issue_type
    return None


def normalize_company_issues(raw: Any) -> Optional[CompanyIssueCounts]:
    """Accept a list of issues or a ``{penal, laboral, ...}`` count mapping."""

    data = _load_blob(raw)
    if isinstance(data, Mapping):
        return CompanyIssueCounts(
            **{issue_type: parse_count(data.get(issue_type)) for issue_type in COMPANY_ISSUE_TYPES},
            total_fines=_number(data.get("total_fines")) or 0.0,
        )
    if not isinstance(data, list):
        return None
    counts = CompanyIssueCounts()
    for entry in data:
        if not isinstance(entry, Mapping):
            continue
        issue_type = _company_issue_type(pick(entry, "company_issue", "issue_type"))
        if issue_type is None:
            continue
        setattr(counts, issue_type, getattr(counts, issue_type) + 1)
        counts.total_fines += max(_number(pick(entry, "company_issue", "fine_amount")) or 0.0, 0.0)
    return counts


def normalize_incumbent(raw: Any) -> Optional[IncumbentPerformance]:
    data = _as_mapping(raw)
    if data is None:
        return None
    return IncumbentPerformance(
        is_incumbent=_flag(pick(data, "incumbent", "is_incumbent", False)),
        budget_execution_pct=_number(pick(data, "incumbent", "budget_execution_pct")),
        contraloria_reports=parse_count(pick(data, "incumbent", "contraloria_reports")),
        performance_score=_number(pick(data, "incumbent", "performance_score")),
    )


def _normalize_vote(value: Any) -> str:
    folded = fold_text(_text(value))
    if folded in ("favor", "a favor", "si", "yes"):
        return "favor"
    if folded in ("contra", "en contra", "no"):
        return "contra"
    return folded


def normalize_voting(raw: Any) -> Optional[VotingRecordSummary]:
    data = _as_mapping(raw)
    if data is None:
        return None
    votes = [
        ControversialVote(
            law_id=_text(pick(entry, "controversial_vote", "law_id")),
            vote=_normalize_vote(pick(entry, "controversial_vote", "vote")),
            penalty_points=parse_count(pick(entry, "controversial_vote", "penalty_points")),
            bonus_points=parse_count(pick(entry, "controversial_vote", "bonus_points")),
        )
        for entry in _as_entries(pick(data, "voting", "controversial_votes"))
    ]
    counts = {
        field: parse_count(pick(data, "voting", field))
        for field in (
            "in_favor",
            "against",
            "abstentions",
            "absences",
            "pro_crime_in_favor",
            "pro_crime_against",
            "anti_democratic_in_favor",
        )
    }
    return VotingRecordSummary(controversial_votes=votes, **counts)


def _dimension(entry: Mapping[str, Any], field: str) -> float:
    value = _number(pick(entry, "proposal", field)) or 0.0
    return min(max(value, 0.0), 10.0)


def normalize_proposals(raw: Any) -> Optional[ProposalQuality]:
    data = _load_blob(raw)
    overall: Optional[float] = None
    if isinstance(data, Mapping):
        overall = _number(data.get("overall_quality", data.get("overallQuality")))
        data = data.get("proposals")
    entries = [entry for entry in data if isinstance(entry, Mapping)] if isinstance(data, list) else []
    if not entries and overall is None:
        return None
    return ProposalQuality(
        proposals=[
            ProposalScores(
                specificity=_dimension(entry, "specificity"),
                viability=_dimension(entry, "viability"),
                impact=_dimension(entry, "impact"),
                evidence=_dimension(entry, "evidence"),
            )
            for entry in entries
        ],
        overall_quality=overall,
    )


def normalize_reinfo(raw: Any) -> List[ReinfoRight]:
    return [
        ReinfoRight(
            derecho_minero=_text(pick(entry, "reinfo", "derecho_minero")),
            estado=_text(pick(entry, "reinfo", "estado")),
        )
        for entry in _as_entries(raw)
    ]


def _fold_choice(value: Any, table: Sequence[Tuple[str, str]]) -> str:
    folded = fold_text(_text(value)).replace("_", " ")
    for marker, canonical in table:
        if marker in folded:
            return canonical
    return ""


def normalize_tax(raw: Any) -> Optional[TaxStatus]:
    """SUNAT record; ``None`` when the candidate has no tax lookup stored."""

    data = _as_mapping(raw)
    if data is None:
        return None
    count = parse_count(pick(data, "tax", "coactive_debt_count"))
    return TaxStatus(
        condition=_fold_choice(pick(data, "tax", "condition"), TAX_CONDITIONS),
        status=_fold_choice(pick(data, "tax", "status"), RUC_STATUSES),
        has_coactive_debts=_flag(pick(data, "tax", "has_coactive_debts", False)) or count > 0,
        coactive_debt_count=count,
    )


def normalize_discrepancy(raw: Any) -> Optional[JudicialDiscrepancy]:
    data = _as_mapping(raw)
    if data is None:
        return None
    severity = fold_text(_text(pick(data, "judicial_discrepancy", "severity")))
    return JudicialDiscrepancy(
        has_discrepancy=_flag(pick(data, "judicial_discrepancy", "has_discrepancy", False)),
        severity=severity if severity in DISCREPANCY_SEVERITIES else "none",
        undeclared_cases_count=parse_count(
            pick(data, "judicial_discrepancy", "undeclared_cases_count")
        ),
    )


def assets_presence(raw: Any) -> Tuple[bool, bool]:
    """(assets declared, income declared) for an assets declaration blob."""

    data = _as_mapping(raw)
    if not data:
        return False, False
    income = data.get("income")
    income_values: Iterable[Any] = (
        income.get("annual_income") if isinstance(income, Mapping) else None,
        data.get("total_income"),
        data.get("public_salary"),
        data.get("private_salary"),
    )
    return True, any((_number(value) or 0) > 0 for value in income_values)


def normalize_cargo(value: Any) -> str:
    folded = fold_text(_text(value))
    for marker, cargo in CARGO_MARKERS:
        if marker in folded:
            return cargo
    return folded.replace(" ", "_")


def normalize_candidate(row: Any) -> NormalizedCandidate:
    """Build the canonical view of a candidate row, mapping or ORM object."""

    assets_declared, income_declared = assets_presence(_get_attr(row, "assets_declaration"))
    candidate_id = _get_attr(row, "id")
    dni = _text(_get_attr(row, "dni")) or None
    return NormalizedCandidate(
        id=candidate_id,
        full_name=_text(_get_attr(row, "full_name")),
        cargo=normalize_cargo(_get_attr(row, "cargo")),
        party_name=_text(_get_attr(row, "party_name")),
        dni=dni,
        birth_date=_text(_get_attr(row, "birth_date")) or None,
        photo_url=_text(_get_attr(row, "photo_url")) or None,
        hoja_vida_url=_text(_get_attr(row, "hoja_vida_url")) or None,
        data_verified=_flag(_get_attr(row, "data_verified", False)),
        data_source=_text(_get_attr(row, "data_source")),
        party_resignations=parse_count(_get_attr(row, "party_resignations")),
        education=normalize_education(_get_attr(row, "education_details")),
        experience=normalize_experience(_get_attr(row, "experience_details")),
        political=normalize_political(_get_attr(row, "political_trajectory")),
        penal=normalize_penal(_get_attr(row, "penal_sentences")),
        civil=normalize_civil(_get_attr(row, "civil_sentences")),
        assets_declared=assets_declared,
        income_declared=income_declared,
        company_issues=normalize_company_issues(_get_attr(row, "company_issues")),
        incumbent=normalize_incumbent(_get_attr(row, "incumbent_performance")),
        voting=normalize_voting(_get_attr(row, "voting_record")),
        proposals=normalize_proposals(_get_attr(row, "proposal_quality")),
        reinfo=normalize_reinfo(_get_attr(row, "reinfo_rights")),
        tax=normalize_tax(_get_attr(row, "tax_status")),
        omission=normalize_discrepancy(_get_attr(row, "judicial_discrepancy")),
    )


def normalize_many(rows: Sequence[Any]) -> List[NormalizedCandidate]:
    return [normalize_candidate(row) for row in rows]


__all__ = [
    "assets_presence",
    "normalize_candidate",
    "normalize_cargo",
    "normalize_civil",
    "normalize_civil_subtype",
    "normalize_discrepancy",
    "normalize_company_issues",
    "normalize_education",
    "normalize_experience",
    "normalize_incumbent",
    "normalize_many",
    "normalize_penal",
    "normalize_penal_status",
    "normalize_political",
    "normalize_political_type",
    "normalize_proposals",
    "normalize_reinfo",
    "normalize_tax",
    "normalize_voting",
    "parse_count",
    "parse_year",
    "raw_entries",
    "pick",
    "resolve_sector",
]
