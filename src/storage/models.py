# src/storage/models.py
# Modelos de datos del motor de Ranking Electoral
# ===============================================

"""
Define las tablas que lee y escribe el motor de puntajes.

``Candidate`` la escribe la ingesta externa y el motor solo la lee (salvo la
reconciliación entre registros hermanos, que completa categorías vacías).
``Score``, ``ScoreBreakdown``, ``ScoreBaseline`` y ``ScoreLog`` son propiedad
del motor y se sobrescriben en cada recálculo.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import relationship

# Base para todos los modelos
Base = declarative_base()

CARGO_VALUES = ("presidente", "vicepresidente", "senador", "diputado", "parlamento_andino")
SCORE_OPERATIONS = ("full", "apply_penalty", "reconcile")

# Columnas JSON crudas que el normalizador consume
RAW_CATEGORY_COLUMNS = (
    "education_details",
    "experience_details",
    "political_trajectory",
    "penal_sentences",
    "civil_sentences",
    "assets_declaration",
    "company_issues",
    "incumbent_performance",
    "voting_record",
    "proposal_quality",
    "reinfo_rights",
    "tax_status",
    "judicial_discrepancy",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Candidate(Base):
    """
    Un candidato inscrito para un cargo.

    La misma persona puede aparecer en varias filas, una por cargo
    (registros hermanos); la reconciliación las agrupa por nombre.
    """

    __tablename__ = "candidates"

    # Identidad
    # =========
    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(200), nullable=False, index=True)
    cargo = Column(String(30), nullable=False, index=True)
    party_name = Column(String(200))
    dni = Column(String(12), index=True)
    birth_date = Column(String(20))
    photo_url = Column(String(500))
    hoja_vida_url = Column(String(500))
    data_verified = Column(Boolean, default=False)
    data_source = Column(String(100))
    is_active = Column(Boolean, default=True)

    # Categorías crudas (JSON tal como lo dejó la ingesta)
    # ====================================================
    education_details = Column(JSON)
    experience_details = Column(JSON)
    political_trajectory = Column(JSON)
    penal_sentences = Column(JSON)
    civil_sentences = Column(JSON)
    assets_declaration = Column(JSON)
    company_issues = Column(JSON)
    incumbent_performance = Column(JSON)
    voting_record = Column(JSON)
    proposal_quality = Column(JSON)
    reinfo_rights = Column(JSON)
    tax_status = Column(JSON)  # SUNAT: condición, estado del RUC, deudas coactivas
    judicial_discrepancy = Column(JSON)  # procesos omitidos en la hoja de vida
    party_resignations = Column(Integer, default=0, nullable=False)

    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    score = relationship(
        "Score", back_populates="candidate", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (Index("idx_candidates_name_cargo", "full_name", "cargo"),)

    def __repr__(self):
        return f"<Candidate(id={self.id}, name='{self.full_name}', cargo='{self.cargo}')>"

    def to_dict(self) -> Dict[str, Any]:
        """Fila completa como diccionario, incluidas las categorías crudas."""
        data = {
            "id": self.id,
            "full_name": self.full_name,
            "cargo": self.cargo,
            "party_name": self.party_name,
            "dni": self.dni,
            "birth_date": self.birth_date,
            "photo_url": self.photo_url,
            "hoja_vida_url": self.hoja_vida_url,
            "data_verified": bool(self.data_verified),
            "data_source": self.data_source,
            "is_active": bool(self.is_active),
            "party_resignations": self.party_resignations or 0,
        }
        for column in RAW_CATEGORY_COLUMNS:
            data[column] = getattr(self, column)
        return data


class Score(Base):
    """Puntajes vigentes de un candidato: cuatro categorías y tres compuestos."""

    __tablename__ = "scores"

    id = Column(Integer, primary_key=True, autoincrement=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id"), unique=True, nullable=False)

    competence = Column(Integer, nullable=False)
    integrity = Column(Integer, nullable=False)
    transparency = Column(Integer, nullable=False)
    confidence = Column(Integer, nullable=False)

    score_balanced = Column(Float, nullable=False, index=True)
    score_merit = Column(Float, nullable=False, index=True)
    score_integrity = Column(Float, nullable=False, index=True)

    score_version = Column(String(20))
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    candidate = relationship("Candidate", back_populates="score")

    def __repr__(self):
        return (
            f"<Score(candidate_id={self.candidate_id}, C={self.competence}, "
            f"I={self.integrity}, T={self.transparency})>"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "competence": self.competence,
            "integrity": self.integrity,
            "transparency": self.transparency,
            "confidence": self.confidence,
            "score_balanced": self.score_balanced,
            "score_merit": self.score_merit,
            "score_integrity": self.score_integrity,
        }


class ScoreBreakdown(Base):
    """
    Desglose auditable del puntaje.

    Los términos de integridad van en columnas propias para poder consultarlos;
    ``details`` guarda el registro completo validado por el contrato.
    """

    __tablename__ = "score_breakdowns"

    id = Column(Integer, primary_key=True, autoincrement=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id"), unique=True, nullable=False)

    integrity_base = Column(Integer, nullable=False)
    penal_penalty = Column(Integer, default=0, nullable=False)
    civil_penalties = Column(JSON)  # [{type, penalty}]
    resignation_penalty = Column(Integer, default=0, nullable=False)
    reinfo_penalty = Column(Integer, default=0, nullable=False)
    company_penalty = Column(Integer, default=0, nullable=False)
    incumbent_penalty = Column(Integer, default=0, nullable=False)
    voting_penalty = Column(Integer, default=0, nullable=False)
    voting_bonus = Column(Integer, default=0, nullable=False)
    tax_penalty = Column(Integer, default=0, nullable=False)
    omission_penalty = Column(Integer, default=0, nullable=False)

    details = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<ScoreBreakdown(candidate_id={self.candidate_id}, base={self.integrity_base})>"


class ScoreBaseline(Base):
    """Puntajes previos a penalidades; la aplicación incremental parte de aquí."""

    __tablename__ = "score_baselines"

    id = Column(Integer, primary_key=True, autoincrement=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id"), unique=True, nullable=False)
    competence_base = Column(Integer, nullable=False)
    integrity_base = Column(Integer, nullable=False)
    applied_categories = Column(JSON, nullable=False)
    captured_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "competence_base": self.competence_base,
            "integrity_base": self.integrity_base,
            "applied_categories": list(self.applied_categories or []),
            "captured_at": self.captured_at,
        }


class ScoreLog(Base):
    """
    Historial de escrituras de puntajes.

    Una fila por cada escritura de ``Score``, con la operación que la produjo
    y el desglose serializado, para análisis retrospectivos.
    """

    __tablename__ = "score_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id"), nullable=False, index=True)

    operation = Column(String(20), nullable=False)  # Ver SCORE_OPERATIONS
    score_version = Column(String(20), nullable=False)
    calculated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    integrity = Column(Integer, nullable=False)
    score_balanced = Column(Float, nullable=False)
    score_merit = Column(Float, nullable=False)
    score_integrity = Column(Float, nullable=False)
    breakdown = Column(JSON)
    algorithm_weights = Column(JSON)

    def __repr__(self):
        return (
            f"<ScoreLog(candidate_id={self.candidate_id}, op='{self.operation}', "
            f"version='{self.score_version}')>"
        )


def get_model_info():
    """Tablas, columnas e índices de cada modelo; útil para depuración."""
    models = {
        "Candidate": Candidate,
        "Score": Score,
        "ScoreBreakdown": ScoreBreakdown,
        "ScoreBaseline": ScoreBaseline,
        "ScoreLog": ScoreLog,
    }
    return {
        name: {
            "table_name": model.__tablename__,
            "columns": [col.name for col in model.__table__.columns],
            "indexes": [idx.name for idx in model.__table__.indexes],
        }
        for name, model in models.items()
    }
