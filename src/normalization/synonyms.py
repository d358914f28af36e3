"""Synonym and keyword tables consumed by the record normalizer.

Each canonical field maps to the raw keys that may carry it, in priority
order; the first key present with a non-empty value wins.
"""

from __future__ import annotations

from typing import Dict, Tuple

SYNONYMS: Dict[str, Dict[str, Tuple[str, ...]]] = {
    "experience": {
        "institution": ("organization", "institution", "centro_trabajo"),
        "position": ("position", "cargo"),
        "year_start": ("start_year", "year_start", "start_date"),
        "year_end": ("end_year", "year_end", "end_date"),
        "description": ("description",),
        "sector": ("sector",),
        "type": ("type",),
    },
    "political": {
        "party": ("party", "partido", "organizacion_politica"),
        "position": ("position", "cargo"),
        "institution": ("institution", "entity"),
        "year_start": ("start_year", "year_start", "start_date"),
        "year_end": ("end_year", "year_end", "end_date"),
        "year": ("year",),
        "result": ("result",),
        "type": ("type",),
    },
    "education": {
        "level": ("level", "education_level", "nivel"),
        "degree": ("degree", "grado", "title"),
        "institution": ("institution",),
        "field": ("field_of_study", "degree"),
        "is_completed": ("is_completed", "completed", "concluido"),
        "has_title": ("has_title",),
        "has_bachelor": ("has_bachelor",),
    },
    "penal": {
        "case_number": ("case_number", "expediente"),
        "court": ("court", "juzgado"),
        "sentence": ("sentence", "pena"),
        "date": ("date", "fecha"),
        "status": ("status", "estado"),
        "type": ("type", "delito"),
        "source": ("source",),
    },
    "civil": {
        "type": ("type", "tipo", "materia"),
        "description": ("description",),
        "amount": ("amount", "monto"),
        "status": ("status", "estado"),
        "source": ("source",),
    },
    "company_issue": {
        "issue_type": ("issue_type", "type", "tipo"),
        "fine_amount": ("fine_amount", "amount", "monto"),
        "company": ("company_name", "company", "ruc"),
    },
    "incumbent": {
        "is_incumbent": ("is_incumbent", "isIncumbent", "incumbent"),
        "budget_execution_pct": ("budget_execution_pct", "budgetExecutionPct"),
        "contraloria_reports": ("contraloria_reports", "contraloriaReports"),
        "performance_score": ("performance_score", "performanceScore"),
    },
    "voting": {
        "in_favor": ("votes_in_favor", "in_favor", "votesInFavor"),
        "against": ("votes_against", "against", "votesAgainst"),
        "abstentions": ("abstentions", "abstention", "abstain"),
        "absences": ("absences", "absent"),
        "pro_crime_in_favor": ("pro_crime_in_favor", "proCrimeVotesInFavor", "pro_crime_favor"),
        "pro_crime_against": ("pro_crime_against", "proCrimeVotesAgainst", "pro_crime_contra"),
        "anti_democratic_in_favor": (
            "anti_democratic_in_favor",
            "antiDemocraticVotes",
            "anti_democratic",
        ),
        "controversial_votes": ("controversial_votes", "controversialVotes"),
    },
    "controversial_vote": {
        "law_id": ("project_id", "law_id", "projectId"),
        "vote": ("vote", "vote_type", "voteType"),
        "penalty_points": ("penalty_points", "penaltyPoints"),
        "bonus_points": ("bonus_points", "bonusPoints"),
    },
    "proposal": {
        "specificity": ("specificity", "especificidad"),
        "viability": ("viability", "viabilidad"),
        "impact": ("impact", "impacto"),
        "evidence": ("evidence", "evidencia"),
    },
    "reinfo": {
        "derecho_minero": ("derecho_minero", "codigo", "code", "id"),
        "estado": ("estado", "status"),
    },
    "tax": {
        "condition": ("condition", "condicion", "taxpayer_condition"),
        "status": ("status", "estado", "ruc_status"),
        "has_coactive_debts": ("has_coactive_debts", "hasCoactiveDebts", "deuda_coactiva"),
        "coactive_debt_count": ("coactive_debt_count", "coactiveDebtCount"),
    },
    "judicial_discrepancy": {
        "has_discrepancy": (
            "has_judicial_discrepancy",
            "hasJudicialDiscrepancy",
            "has_discrepancy",
        ),
        "severity": ("judicial_discrepancy_severity", "judicialDiscrepancySeverity", "severity"),
        "undeclared_cases_count": ("undeclared_cases_count", "undeclaredCasesCount"),
    },
}

PUBLIC_SECTOR_TERMS: Tuple[str, ...] = (
    "municipalidad",
    "gobierno",
    "ministerio",
    "congreso",
    "poder judicial",
    "tribunal",
    "contraloria",
    "defensoria",
    "fiscalia",
    "procuraduria",
    "superintendencia",
    "organismo",
    "instituto nacional",
    "essalud",
    "seguro social",
    "policia",
    "fuerzas armadas",
    "ejercito",
    "marina",
    "fuerza aerea",
    "sunat",
    "sunarp",
    "onpe",
    "jne",
    "reniec",
    "banco central",
    "bcrp",
    "sbs",
    "indecopi",
    "osinergmin",
    "osiptel",
    "ositran",
    "sunass",
    "oefa",
    "senace",
    "servir",
    "ceplan",
    "region",
    "regional",
    "prefectura",
    "subprefectura",
    "gobernacion",
    "ugel",
    "dre",
    "direccion regional",
    "gerencia regional",
    "corte superior",
    "juzgado",
    "registro nacional",
    "electoral",
    "senado",
    "camara de diputados",
    "camara de senadores",
    "parlamento",
    "asamblea",
)

PUBLIC_SECTOR_MARKERS: Tuple[str, ...] = ("public", "público", "publico")

POLITICAL_TYPES: Dict[str, str] = {
    "partidario": "cargo_partidario",
    "cargo_partidario": "cargo_partidario",
    "eleccion": "cargo_electivo",
    "cargo_electivo": "cargo_electivo",
    "candidatura": "candidatura",
    "cargo_publico": "cargo_publico",
    "afiliacion": "afiliacion",
}
DEFAULT_POLITICAL_TYPE = "afiliacion"

PENAL_STATUSES: Tuple[str, ...] = ("firme", "cumplida", "apelacion", "proceso")
FIRM_PENAL_STATUSES: Tuple[str, ...] = ("firme", "cumplida")
DEFAULT_PENAL_STATUS = "proceso"

# (substring, subtype) checked in order
CIVIL_SUBTYPES: Tuple[Tuple[str, str], ...] = (
    ("violencia", "violencia_familiar"),
    ("alimento", "alimentos"),
    ("laboral", "laboral"),
    ("contrat", "contractual"),
    ("obligacion", "contractual"),
)
DEFAULT_CIVIL_SUBTYPE = "otro"
RED_CIVIL_SUBTYPES: Tuple[str, ...] = ("violencia_familiar", "alimentos")

COMPANY_ISSUE_TYPES: Tuple[str, ...] = ("penal", "laboral", "ambiental", "consumidor")

REINFO_RED_STATES: Tuple[str, ...] = ("vigente", "suspendido")

# folded condition/status text -> canonical SUNAT value, checked in order
TAX_CONDITIONS: Tuple[Tuple[str, str], ...] = (
    ("no habido", "no_habido"),
    ("no hallado", "no_hallado"),
    ("habido", "habido"),
)
RUC_STATUSES: Tuple[Tuple[str, str], ...] = (
    ("suspension", "suspendido"),
    ("suspendido", "suspendido"),
    ("baja", "baja"),
    ("activo", "activo"),
)
DISCREPANCY_SEVERITIES: Tuple[str, ...] = ("critical", "major", "minor", "none")

EDUCATION_LEVELS: Tuple[str, ...] = (
    "sin_informacion",
    "primaria",
    "secundaria_incompleta",
    "secundaria_completa",
    "tecnico_incompleto",
    "tecnico_completo",
    "universitario_incompleto",
    "universitario_completo",
    "titulo_profesional",
    "maestria",
    "doctorado",
)

PROFESSIONAL_TITLE_KEYWORDS: Tuple[str, ...] = (
    "titulo",
    "ingeniero",
    "abogado",
    "medico",
    "licenciado",
    "contador",
    "arquitecto",
)
MASTER_KEYWORDS: Tuple[str, ...] = ("magister", "maestro", "maestria", "master")

ELECTED_POSITIONS: Tuple[str, ...] = (
    "congresista",
    "senador",
    "diputado",
    "alcalde",
    "gobernador",
    "regidor",
    "presidente regional",
)
SENIOR_PUBLIC_POSITIONS: Tuple[str, ...] = (
    "ministro",
    "viceministro",
    "embajador",
    "secretario general",
    "jefe institucional",
    "superintendente",
    "contralor",
)
PUBLIC_ORGANIZATIONS: Tuple[str, ...] = (
    "ministerio",
    "gobierno",
    "municipalidad",
    "congreso",
    "poder judicial",
    "fiscalia",
    "contraloria",
    "defensa",
    "fuerzas armadas",
    "ejercito",
    "marina",
    "fuerza aerea",
    "policia",
)
PUBLIC_SENIOR_MARKERS: Tuple[str, ...] = (
    "director",
    "general",
    "jefe",
    "comandante",
    "oficial superior",
)
ACADEMIC_POSITIONS: Tuple[str, ...] = (
    "rector",
    "decano",
    "catedratico",
    "profesor",
    "docente",
)
ACADEMIC_ORGANIZATIONS: Tuple[str, ...] = ("universidad", "instituto")
ACADEMIC_EXECUTIVE_MARKERS: Tuple[str, ...] = ("director", "gerente", "empresario")
PRIVATE_SENIOR_POSITIONS: Tuple[str, ...] = (
    "gerente general",
    "director",
    "ceo",
    "presidente ejecutivo",
    "empresario",
)
PRIVATE_MIDDLE_POSITIONS: Tuple[str, ...] = ("gerente", "subgerente", "jefe")

# (seniority, keywords) checked from the top
SENIORITY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (
        "direccion",
        (
            "presidente",
            "rector",
            "ministro",
            "alcalde",
            "gobernador",
            "congresista",
            "senador",
            "director general",
            "ceo",
            "gerente general",
            "comandante general",
            "embajador",
            "superintendente",
            "contralor",
        ),
    ),
    (
        "gerencia",
        ("general", "gerente", "director", "decano", "oficial superior", "empresario"),
    ),
    ("jefatura", ("jefe", "subgerente", "coordinador", "regidor", "asesor")),
    (
        "coordinador",
        ("profesor", "catedratico", "especialista", "analista", "abogado", "ingeniero"),
    ),
)
DEFAULT_SENIORITY = "individual_contributor"
LEADERSHIP_SENIORITIES: Tuple[str, ...] = ("direccion", "gerencia", "jefatura")

CARGO_MARKERS: Tuple[Tuple[str, str], ...] = (
    ("vicepresidente", "vicepresidente"),
    ("presidente", "presidente"),
    ("senador", "senador"),
    ("diputado", "diputado"),
    ("parlamento", "parlamento_andino"),
)

__all__ = [name for name in dir() if name.isupper()]
