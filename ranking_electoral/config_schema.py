"""Declarative configuration schema for the Ranking Electoral scoring engine."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeFloat,
    NonNegativeInt,
    PositiveFloat,
    PositiveInt,
    PrivateAttr,
    field_validator,
    model_validator,
)

CARGOS = ("presidente", "vicepresidente", "senador", "diputado", "parlamento_andino")
PENALTY_CATEGORIES = (
    "penal",
    "civil",
    "resignation",
    "reinfo",
    "company",
    "incumbent",
    "voting",
    "tax",
    "omission",
)
PROPAGATED_CATEGORIES = ("penal_sentences", "civil_sentences", "party_resignations")


class SchemaError(ValueError):
    """Raised when the configuration schema definition is invalid."""


class StrictModel(BaseModel):
    """Base model enforcing strict validation rules."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        validate_assignment=True,
        str_strip_whitespace=True,
    )


class AppSettings(StrictModel):
    """Top-level runtime metadata."""

    environment: str = Field(
        default="development",
        description="Normalized deployment environment name.",
        examples=["production"],
    )
    debug: bool = Field(
        default=False,
        description="When true, enables verbose logging.",
    )
    timezone: str = Field(
        default="America/Lima",
        description="Timezone used for audit timestamps shown to operators.",
    )

    @field_validator("environment")
    @classmethod
    def _normalize_environment(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"development", "production", "staging", "test"}:
            raise ValueError(
                "environment must be one of: development, staging, production, test"
            )
        return normalized


class PathsConfig(StrictModel):
    """Filesystem layout settings."""

    data_dir: Path = Field(
        default=Path("data"),
        description="Root directory for persistent runtime artefacts.",
        examples=["/var/lib/ranking-electoral"],
    )
    logs_dir: Path = Field(
        default=Path("logs"),
        description="Directory where operational logs are written.",
    )

    @model_validator(mode="after")
    def _ensure_child_paths(self) -> "PathsConfig":
        base = self.data_dir if self.data_dir.is_absolute() else self.data_dir.resolve()
        object.__setattr__(self, "data_dir", base)
        if not self.logs_dir.is_absolute():
            object.__setattr__(self, "logs_dir", (base / self.logs_dir).resolve())
        return self


class DatabaseConfig(StrictModel):
    """Database connectivity parameters."""

    driver: str = Field(
        default="sqlite",
        description="Database backend driver to use.",
        examples=["postgresql"],
    )
    path: Optional[Path] = Field(
        default=Path("data/ranking.db"),
        description="Filesystem path for SQLite database files.",
    )
    host: Optional[str] = Field(default=None, description="Database hostname.")
    port: Optional[int] = Field(default=None, description="Database TCP port.")
    name: str = Field(default="ranking_electoral", description="Database name.")
    user: Optional[str] = Field(default=None, description="Database username.")
    password: Optional[str] = Field(
        default=None, description="Database password; treated as secret."
    )
    pool_size: PositiveInt = Field(
        default=5, description="Number of persistent connections per worker."
    )
    max_overflow: PositiveInt = Field(
        default=10, description="Extra connections opened when the pool is busy."
    )

    @field_validator("port", mode="before")
    @classmethod
    def _blank_port(cls, value: Any) -> Any:
        if value == "":
            return None
        return value

    @model_validator(mode="after")
    def _validate_backend(self) -> "DatabaseConfig":
        driver = self.driver.lower()
        if driver not in {"sqlite", "postgresql"}:
            raise ValueError("driver must be either 'sqlite' or 'postgresql'")
        if driver == "sqlite":
            if not self.path:
                raise ValueError("SQLite configuration requires a file path")
        else:
            missing = [
                field_name
                for field_name in ("host", "port", "user")
                if getattr(self, field_name) in (None, "")
            ]
            if missing:
                raise ValueError(
                    "PostgreSQL configuration requires fields: " + ", ".join(missing)
                )
        return self


class ThresholdTier(StrictModel):
    """Awards ``points`` when a quantity reaches ``minimum``."""

    minimum: NonNegativeFloat
    points: NonNegativeInt


def _check_descending(tiers: List[ThresholdTier], label: str) -> List[ThresholdTier]:
    minimums = [tier.minimum for tier in tiers]
    if minimums != sorted(minimums, reverse=True):
        raise ValueError(f"{label} tiers must be ordered by descending minimum")
    points = [tier.points for tier in tiers]
    if points != sorted(points, reverse=True):
        raise ValueError(f"{label} tier points must not grow as minimum decreases")
    return tiers


class IntegrityConfig(StrictModel):
    """Integrity base and the penalty categories currently applied."""

    base: PositiveInt = Field(
        default=100, le=100, description="Starting integrity before penalties."
    )
    enabled_categories: List[str] = Field(
        default_factory=lambda: list(PENALTY_CATEGORIES),
        description="Penalty categories replayed against the integrity base.",
        examples=[["penal", "civil", "resignation"]],
    )

    @field_validator("enabled_categories")
    @classmethod
    def _known_categories(cls, value: List[str]) -> List[str]:
        unknown = sorted(set(value) - set(PENALTY_CATEGORIES))
        if unknown:
            raise ValueError(
                "unknown penalty categories: " + ", ".join(unknown)
            )
        return [category for category in PENALTY_CATEGORIES if category in value]


class PenalPenaltyConfig(StrictModel):
    """Per-sentence penal penalties (uncapped before the integrity floor)."""

    firm_each: NonNegativeInt = Field(
        default=70, description="Penalty per firme/cumplida sentence."
    )
    pending_each: NonNegativeInt = Field(
        default=35, description="Penalty per sentence in proceso/apelacion."
    )

    @model_validator(mode="after")
    def _firm_dominates(self) -> "PenalPenaltyConfig":
        if self.pending_each > self.firm_each:
            raise ValueError("pending_each must not exceed firm_each")
        return self


class CivilPenaltyConfig(StrictModel):
    """Per-entry civil sentence penalties by subtype."""

    violencia_familiar: NonNegativeInt = Field(default=50)
    alimentos: NonNegativeInt = Field(default=35)
    laboral: NonNegativeInt = Field(default=25)
    contractual: NonNegativeInt = Field(default=15)
    otro: NonNegativeInt = Field(default=10)


class ResignationPenaltyConfig(StrictModel):
    """Tiered penalty for party resignations."""

    tiers: List[ThresholdTier] = Field(
        default_factory=lambda: [
            ThresholdTier(minimum=4, points=15),
            ThresholdTier(minimum=2, points=10),
            ThresholdTier(minimum=1, points=5),
        ]
    )

    @field_validator("tiers")
    @classmethod
    def _ordered(cls, value: List[ThresholdTier]) -> List[ThresholdTier]:
        return _check_descending(value, "resignation")


class ReinfoPenaltyConfig(StrictModel):
    """Mining-registry penalty magnitudes per severity."""

    red_base: NonNegativeInt = Field(default=20)
    red_per_extra_right: NonNegativeInt = Field(default=5)
    red_cap: NonNegativeInt = Field(default=40)
    amber_base: NonNegativeInt = Field(default=10)
    amber_per_extra_right: NonNegativeInt = Field(default=2)
    amber_cap: NonNegativeInt = Field(default=20)


class CompanyPenaltyConfig(StrictModel):
    """Weighted penalty for legal issues of linked companies."""

    penal_each: NonNegativeInt = Field(default=40)
    ambiental_each: NonNegativeInt = Field(default=25)
    laboral_each: NonNegativeInt = Field(default=20)
    consumidor_flat: NonNegativeInt = Field(default=15)
    consumidor_threshold: NonNegativeInt = Field(
        default=5, description="Consumer complaints count that must be exceeded."
    )
    cap: NonNegativeInt = Field(default=60)


class IncumbentPenaltyConfig(StrictModel):
    """Incumbent performance penalty and competence adjustment."""

    budget_threshold_pct: NonNegativeFloat = Field(default=70.0, le=100.0)
    budget_band_pct: PositiveFloat = Field(default=5.0)
    budget_band_points: NonNegativeInt = Field(default=3)
    report_points: NonNegativeInt = Field(default=5)
    performance_threshold: NonNegativeFloat = Field(default=50.0, le=100.0)
    performance_band: PositiveFloat = Field(default=10.0)
    performance_band_points: NonNegativeInt = Field(default=5)
    cap: NonNegativeInt = Field(default=40)
    competence_band_points: NonNegativeInt = Field(
        default=1, description="Competence points per budget band above/below threshold."
    )
    competence_delta_cap: NonNegativeInt = Field(
        default=5, description="Absolute bound of the signed competence delta."
    )


class VotingConfig(StrictModel):
    """Congressional voting record penalty/bonus."""

    pro_crime_in_favor_points: NonNegativeInt = Field(default=10)
    anti_democratic_in_favor_points: NonNegativeInt = Field(default=10)
    pro_crime_against_points: NonNegativeInt = Field(default=5)
    penalty_cap: NonNegativeInt = Field(default=85)
    bonus_cap: NonNegativeInt = Field(default=15)


class TaxPenaltyConfig(StrictModel):
    """SUNAT taxpayer condition, RUC status and coactive debts."""

    no_habido: NonNegativeInt = Field(default=50, description="Taxpayer condition NO HABIDO.")
    no_hallado: NonNegativeInt = Field(default=20, description="Taxpayer condition NO HALLADO.")
    suspendido: NonNegativeInt = Field(default=15, description="RUC temporarily suspended.")
    baja: NonNegativeInt = Field(
        default=10, description="RUC closed (baja definitiva or provisional)."
    )
    coactive_debt_each: NonNegativeInt = Field(default=20)
    coactive_debt_max_count: PositiveInt = Field(
        default=3, description="Coactive debts counted at most this many times."
    )
    cap: NonNegativeInt = Field(default=85)


class OmissionPenaltyConfig(StrictModel):
    """Judicial records missing from the sworn declaration."""

    severity_points: Dict[str, NonNegativeInt] = Field(
        default_factory=lambda: {"critical": 60, "major": 40, "minor": 20, "none": 0},
        description="Base penalty by discrepancy severity.",
    )
    undeclared_case_each: NonNegativeInt = Field(default=10)
    cap: NonNegativeInt = Field(default=85)


def _default_relevance() -> Dict[str, Dict[str, float]]:
    executive = {
        "electivo_alto": 3.0,
        "ejecutivo_publico_alto": 3.0,
        "ejecutivo_privado_alto": 2.8,
        "ejecutivo_publico_medio": 2.0,
        "ejecutivo_privado_medio": 1.8,
        "internacional": 1.8,
        "electivo_medio": 1.5,
        "tecnico_profesional": 1.2,
        "academia": 1.0,
        "partidario": 0.6,
    }
    legislative = {
        "electivo_alto": 3.0,
        "ejecutivo_publico_alto": 2.6,
        "electivo_medio": 2.2,
        "ejecutivo_publico_medio": 2.0,
        "ejecutivo_privado_alto": 1.8,
        "tecnico_profesional": 1.6,
        "ejecutivo_privado_medio": 1.4,
        "academia": 1.4,
        "internacional": 1.2,
        "partidario": 0.8,
    }
    return {
        "presidente": dict(executive),
        "vicepresidente": dict(executive),
        "senador": dict(legislative),
        "diputado": dict(legislative),
        "parlamento_andino": {
            "internacional": 3.0,
            "electivo_alto": 2.2,
            "ejecutivo_publico_alto": 2.2,
            "academia": 1.8,
            "tecnico_profesional": 1.6,
            "ejecutivo_privado_alto": 1.6,
            "ejecutivo_publico_medio": 1.6,
            "electivo_medio": 1.6,
            "ejecutivo_privado_medio": 1.2,
            "partidario": 0.8,
        },
    }


class CompetenceConfig(StrictModel):
    """Education, experience and leadership ladders."""

    education_points: Dict[str, NonNegativeInt] = Field(
        default_factory=lambda: {
            "sin_informacion": 0,
            "primaria": 2,
            "secundaria_incompleta": 4,
            "secundaria_completa": 6,
            "tecnico_incompleto": 7,
            "tecnico_completo": 10,
            "universitario_incompleto": 9,
            "universitario_completo": 14,
            "titulo_profesional": 16,
            "maestria": 18,
            "doctorado": 22,
        }
    )
    education_depth_min_points: NonNegativeInt = Field(
        default=10, description="Additional degrees at or above this level add depth."
    )
    education_depth_step: NonNegativeInt = Field(default=2)
    education_depth_cap: NonNegativeInt = Field(default=8)
    education_cap: NonNegativeInt = Field(default=30)
    experience_tiers: List[ThresholdTier] = Field(
        default_factory=lambda: [
            ThresholdTier(minimum=15, points=25),
            ThresholdTier(minimum=11, points=20),
            ThresholdTier(minimum=8, points=16),
            ThresholdTier(minimum=5, points=12),
            ThresholdTier(minimum=2, points=6),
        ]
    )
    relevant_years_cap: PositiveInt = Field(default=10)
    relevant_default_factor: NonNegativeFloat = Field(default=0.5)
    relevant_cap: NonNegativeInt = Field(default=25)
    relevance_by_cargo: Dict[str, Dict[str, NonNegativeFloat]] = Field(
        default_factory=_default_relevance
    )
    seniority_points: Dict[str, NonNegativeInt] = Field(
        default_factory=lambda: {
            "individual_contributor": 2,
            "coordinador": 6,
            "jefatura": 8,
            "gerencia": 10,
            "direccion": 14,
        }
    )
    stability_tiers: List[ThresholdTier] = Field(
        default_factory=lambda: [
            ThresholdTier(minimum=7, points=6),
            ThresholdTier(minimum=4, points=4),
            ThresholdTier(minimum=2, points=2),
        ]
    )
    leadership_cap: NonNegativeInt = Field(default=20)

    @field_validator("experience_tiers", "stability_tiers")
    @classmethod
    def _ordered(cls, value: List[ThresholdTier]) -> List[ThresholdTier]:
        return _check_descending(value, "competence")

    @field_validator("relevance_by_cargo")
    @classmethod
    def _known_cargos(
        cls, value: Dict[str, Dict[str, float]]
    ) -> Dict[str, Dict[str, float]]:
        unknown = sorted(set(value) - set(CARGOS))
        if unknown:
            raise ValueError("unknown cargos in relevance table: " + ", ".join(unknown))
        return value


class TransparencyConfig(StrictModel):
    """Weights and levels for declaration transparency."""

    completeness_weight: NonNegativeInt = Field(default=35)
    documents_weight: NonNegativeInt = Field(default=35)
    assets_weight: NonNegativeInt = Field(default=30)
    completeness_base: NonNegativeInt = Field(default=30)
    completeness_education: NonNegativeInt = Field(default=20)
    completeness_experience: NonNegativeInt = Field(default=20)
    completeness_birth_date: NonNegativeInt = Field(default=10)
    completeness_assets: NonNegativeInt = Field(default=20)
    assets_declared_level: NonNegativeInt = Field(default=60, le=100)
    assets_missing_level: NonNegativeInt = Field(default=30, le=100)

    @model_validator(mode="after")
    def _weights_fill_scale(self) -> "TransparencyConfig":
        if self.completeness_weight + self.documents_weight + self.assets_weight != 100:
            raise ValueError("transparency weights must add up to 100")
        return self


class ConfidenceConfig(StrictModel):
    """Weights and levels for the data confidence meta-score."""

    verification_weight: NonNegativeInt = Field(default=50)
    coverage_weight: NonNegativeInt = Field(default=50)
    verification_base: NonNegativeInt = Field(default=50)
    verified_flag_points: NonNegativeInt = Field(default=30)
    verified_source_points: NonNegativeInt = Field(default=20)

    @model_validator(mode="after")
    def _weights_fill_scale(self) -> "ConfidenceConfig":
        if self.verification_weight + self.coverage_weight != 100:
            raise ValueError("confidence weights must add up to 100")
        return self


class CompositeWeights(StrictModel):
    """Linear coefficients of one composite ranking."""

    competence: float = Field(ge=0.0, le=1.0)
    integrity: float = Field(ge=0.0, le=1.0)
    transparency: float = Field(ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_sum(self) -> "CompositeWeights":
        total = self.competence + self.integrity + self.transparency
        if abs(total - 1.0) > 0.01:
            raise ValueError("Composite weights must sum to approximately 1.0")
        return self


class CompositesConfig(StrictModel):
    """The three composite rankings."""

    balanced: CompositeWeights = Field(
        default_factory=lambda: CompositeWeights(
            competence=0.45, integrity=0.45, transparency=0.10
        )
    )
    merit: CompositeWeights = Field(
        default_factory=lambda: CompositeWeights(
            competence=0.60, integrity=0.30, transparency=0.10
        )
    )
    integrity_first: CompositeWeights = Field(
        default_factory=lambda: CompositeWeights(
            competence=0.30, integrity=0.60, transparency=0.10
        )
    )


class ScoringConfig(StrictModel):
    """Scoring engine parameters."""

    version: str = Field(
        default="2026.1",
        description="Scoring algorithm version recorded in the audit log.",
    )
    reference_year: Optional[int] = Field(
        default=None,
        ge=1900,
        le=2100,
        description="Year used for open-ended durations; current year when unset.",
    )
    integrity: IntegrityConfig = Field(default_factory=IntegrityConfig)
    penal: PenalPenaltyConfig = Field(default_factory=PenalPenaltyConfig)
    civil: CivilPenaltyConfig = Field(default_factory=CivilPenaltyConfig)
    resignation: ResignationPenaltyConfig = Field(
        default_factory=ResignationPenaltyConfig
    )
    reinfo: ReinfoPenaltyConfig = Field(default_factory=ReinfoPenaltyConfig)
    company: CompanyPenaltyConfig = Field(default_factory=CompanyPenaltyConfig)
    incumbent: IncumbentPenaltyConfig = Field(default_factory=IncumbentPenaltyConfig)
    voting: VotingConfig = Field(default_factory=VotingConfig)
    tax: TaxPenaltyConfig = Field(default_factory=TaxPenaltyConfig)
    omission: OmissionPenaltyConfig = Field(default_factory=OmissionPenaltyConfig)
    competence: CompetenceConfig = Field(default_factory=CompetenceConfig)
    transparency: TransparencyConfig = Field(default_factory=TransparencyConfig)
    confidence: ConfidenceConfig = Field(default_factory=ConfidenceConfig)
    composites: CompositesConfig = Field(default_factory=CompositesConfig)

    @field_validator("reference_year", mode="before")
    @classmethod
    def _blank_year(cls, value: Any) -> Any:
        if value == "":
            return None
        return value


class RecomputeConfig(StrictModel):
    """Batch recompute and reconciliation behaviour."""

    workers: PositiveInt = Field(
        default=4, description="Bounded worker pool size for batch recomputes."
    )
    name_match_threshold: float = Field(
        default=92.0,
        ge=0.0,
        le=100.0,
        description="Minimum token_sort_ratio to consider two names the same person.",
    )
    propagated_categories: List[str] = Field(
        default_factory=lambda: list(PROPAGATED_CATEGORIES),
        description="Raw candidate fields copied between sibling records.",
    )

    @field_validator("propagated_categories")
    @classmethod
    def _known_fields(cls, value: List[str]) -> List[str]:
        unknown = sorted(set(value) - set(PROPAGATED_CATEGORIES))
        if unknown:
            raise ValueError("cannot propagate fields: " + ", ".join(unknown))
        return value


class LoggingConfig(StrictModel):
    """Logging subsystem configuration."""

    level: str = Field(
        default="INFO",
        description="Minimum log level captured by the engine logger.",
        examples=["DEBUG"],
    )
    file_path: Path = Field(
        default=Path("data/logs/ranking.log"),
        description="Absolute path of the rotating log file.",
    )
    max_file_size_mb: PositiveInt = Field(
        default=10,
        description="Maximum size per log file before rotation (MiB).",
    )
    retention_days: PositiveInt = Field(
        default=30,
        description="Number of days to keep rotated log files.",
    )
    format: str = Field(
        default="{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {name}:{line} | {message}",
        description="Log formatting template compatible with loguru.",
    )

    @model_validator(mode="after")
    def _resolve_path(self) -> "LoggingConfig":
        if not self.file_path.is_absolute():
            self.file_path = self.file_path.resolve()
        return self


class Config(StrictModel):
    """Complete Ranking Electoral configuration model."""

    app: AppSettings = Field(default_factory=AppSettings)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    recompute: RecomputeConfig = Field(default_factory=RecomputeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    _metadata: object = PrivateAttr(default=None)


DEFAULT_CONFIG = Config()


def iter_field_docs(
    model: BaseModel | type[BaseModel],
    prefix: str = "",
    *,
    include_defaults: bool = True,
) -> Iterable[dict[str, object]]:
    """Yield flattened schema documentation entries."""

    instance = DEFAULT_CONFIG if isinstance(model, type) else model
    target_model = type(instance) if not isinstance(model, type) else model

    for name, field in target_model.model_fields.items():
        value = getattr(instance, name, field.default)
        key = f"{prefix}.{name}" if prefix else name
        is_nested = isinstance(value, BaseModel)
        yield {
            "name": key,
            "type": getattr(field.annotation, "__name__", str(field.annotation)),
            "description": field.description or "",
            "default": None if (is_nested or not include_defaults) else value,
            "examples": field.examples or [],
            "constraints": _describe_constraints(field),
            "is_nested": is_nested,
        }
        if is_nested:
            yield from iter_field_docs(value, key)


_COMPARATORS = {"ge": ">=", "gt": ">", "le": "<=", "lt": "<"}


def _describe_constraints(field: Any) -> str:
    """Return a human readable description of numeric field bounds."""

    parts: list[str] = []
    for constraint in getattr(field, "metadata", []):
        for attr, comparator in _COMPARATORS.items():
            bound = getattr(constraint, attr, None)
            if bound is not None:
                parts.append(f"{comparator} {bound}")
    return ", ".join(parts)


__all__ = [
    "CARGOS",
    "PENALTY_CATEGORIES",
    "PROPAGATED_CATEGORIES",
    "CompositeWeights",
    "Config",
    "DEFAULT_CONFIG",
    "RecomputeConfig",
    "SchemaError",
    "ScoringConfig",
    "ThresholdTier",
    "iter_field_docs",
]
