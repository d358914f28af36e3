"""Keyword inference of education level, role type and seniority."""

from __future__ import annotations

from typing import Optional

from src.normalization.records import ExperienceRecord, PoliticalRecord
from src.normalization.synonyms import (
    ACADEMIC_EXECUTIVE_MARKERS,
    ACADEMIC_ORGANIZATIONS,
    ACADEMIC_POSITIONS,
    DEFAULT_SENIORITY,
    EDUCATION_LEVELS,
    ELECTED_POSITIONS,
    MASTER_KEYWORDS,
    PRIVATE_MIDDLE_POSITIONS,
    PRIVATE_SENIOR_POSITIONS,
    PROFESSIONAL_TITLE_KEYWORDS,
    PUBLIC_ORGANIZATIONS,
    PUBLIC_SENIOR_MARKERS,
    SENIOR_PUBLIC_POSITIONS,
    SENIORITY_KEYWORDS,
)
from src.utils.text_cleaner import contains_any, fold_text


def _completion(text: str, is_completed: bool) -> bool:
    if "incomplet" in text:
        return False
    if "complet" in text:
        return True
    return is_completed


def map_education_level(
    raw_level: str,
    degree: str = "",
    *,
    is_completed: bool = False,
    has_title: bool = False,
    has_bachelor: bool = False,
) -> str:
    """Map free-text Spanish education levels onto the canonical ladder."""

    text = fold_text(raw_level)
    snake = text.replace(" ", "_")
    if snake in EDUCATION_LEVELS:
        return snake
    deg = fold_text(degree)

    if "doctorado" in text or ("posgrado" in text and "doctor" in deg):
        return "doctorado"
    if (
        "maestria" in text
        or "posgrado" in text
        or "postgrado" in text
        or contains_any(deg, MASTER_KEYWORDS)
    ):
        return "maestria"
    if "universit" in text:
        if has_title or contains_any(deg, PROFESSIONAL_TITLE_KEYWORDS):
            return "titulo_profesional"
        if is_completed or has_bachelor or "bachiller" in deg or "bachiller" in text:
            return "universitario_completo"
        return "universitario_incompleto"
    if "tecnic" in text or "tecnolog" in text:
        return "tecnico_completo" if _completion(text, is_completed) else "tecnico_incompleto"
    if "secundaria" in text:
        if _completion(text, is_completed):
            return "secundaria_completa"
        return "secundaria_incompleta"
    if "primaria" in text:
        return "primaria"
    return "sin_informacion"


def infer_role_type(position: str, organization: str) -> str:
    pos = fold_text(position)
    org = fold_text(organization)

    if contains_any(pos, ELECTED_POSITIONS):
        return "electivo_alto"
    if contains_any(pos, SENIOR_PUBLIC_POSITIONS):
        return "ejecutivo_publico_alto"
    if contains_any(org, PUBLIC_ORGANIZATIONS):
        if contains_any(pos, PUBLIC_SENIOR_MARKERS):
            return "ejecutivo_publico_alto"
        return "ejecutivo_publico_medio"
    if contains_any(pos, ACADEMIC_POSITIONS):
        return "academia"
    if contains_any(org, ACADEMIC_ORGANIZATIONS) and not contains_any(
        pos, ACADEMIC_EXECUTIVE_MARKERS
    ):
        return "academia"
    if contains_any(pos, PRIVATE_SENIOR_POSITIONS):
        return "ejecutivo_privado_alto"
    if contains_any(pos, PRIVATE_MIDDLE_POSITIONS):
        return "ejecutivo_privado_medio"
    return "tecnico_profesional"


def infer_seniority(position: str) -> str:
    pos = fold_text(position)
    for seniority, keywords in SENIORITY_KEYWORDS:
        if contains_any(pos, keywords):
            return seniority
    return DEFAULT_SENIORITY


def political_as_experience(record: PoliticalRecord) -> Optional[ExperienceRecord]:
    """Elected, public and party posts count as experience; other entries do not.

    Year sentinels translate to the experience convention: an ongoing post is
    open-ended (``year_end == 0``) and a post without a known end closes at
    its start year.
    """

    if record.type == "cargo_electivo" or record.is_elected:
        role_type, seniority = "electivo_alto", "direccion"
    elif record.type == "cargo_publico":
        role_type, seniority = "ejecutivo_publico_alto", "direccion"
    elif record.type == "cargo_partidario":
        role_type, seniority = "partidario", "coordinador"
    else:
        return None

    year_start = record.year_start or 0
    if record.ongoing:
        year_end = 0
    elif record.year_end is not None:
        year_end = record.year_end
    else:
        year_end = year_start

    return ExperienceRecord(
        institution=record.institution or record.party,
        position=record.position,
        year_start=year_start,
        year_end=year_end,
        type="privado" if role_type == "partidario" else "publico",
        role_type=role_type,
        seniority=seniority,
        origin="political",
    )


__all__ = [
    "infer_role_type",
    "infer_seniority",
    "map_education_level",
    "political_as_experience",
]
