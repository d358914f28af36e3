# src/storage/database.py
# Manejador de base de datos del motor de Ranking Electoral
# ========================================================

"""
Adaptador SQLAlchemy del repositorio de candidatos.

El motor de puntajes no conoce SQLAlchemy: el driver de recálculo recibe un
objeto que cumple ``CandidateRepository`` (ver ``src/recompute/ports.py``) y
``DatabaseManager`` es la implementación de producción. Todas las lecturas
devuelven diccionarios desacoplados de la sesión, así un lote puede leer
primero y escribir después sin arrastrar objetos ORM entre transacciones.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError
from sqlalchemy import create_engine, desc
from sqlalchemy.orm import sessionmaker

from ..storage.models import (
    Base,
    Candidate,
    RAW_CATEGORY_COLUMNS,
    SCORE_OPERATIONS,
    Score,
    ScoreBaseline,
    ScoreBreakdown,
    ScoreLog,
)
from config.settings import DATABASE_CONFIG
from src.contracts import ScoreResultModel
from src.normalization.normalizer import parse_count, raw_entries

import logging

# Configurar logging para este módulo
logger = logging.getLogger(__name__)

RANKING_COLUMNS = {
    "balanced": Score.score_balanced,
    "merit": Score.score_merit,
    "integrity": Score.score_integrity,
    "integrity_first": Score.score_integrity,
}
SIBLING_WRITABLE_COLUMNS = ("penal_sentences", "civil_sentences", "party_resignations")


def _is_empty(column: str, value: Any) -> bool:
    if column == "party_resignations":
        return parse_count(value) == 0
    return not raw_entries(value)


class DatabaseManager:
    """
    Maneja todas las operaciones de base de datos del motor.

    Cada método abre su propia sesión mediante ``get_session`` y por lo tanto
    su propia transacción; ``save_score`` escribe Score, ScoreBreakdown,
    ScoreBaseline y ScoreLog en una sola.
    """

    def __init__(self, database_config: Dict[str, Any] = None):
        """
        Inicializa el manejador de base de datos.

        Args:
            database_config: Configuración de base de datos. Si no se proporciona,
                           usa la configuración por defecto de settings.py
        """
        self.config = database_config or DATABASE_CONFIG
        self.engine = None
        self.SessionLocal = None
        self._setup_database()

    def _setup_database(self):
        """Crea el engine, la fábrica de sesiones y las tablas."""
        try:
            if self.config["type"] == "sqlite":
                db_path = self.config["path"]
                db_path.parent.mkdir(parents=True, exist_ok=True)
                self.engine = create_engine(
                    f"sqlite:///{db_path}",
                    echo=False,
                    connect_args={
                        "check_same_thread": False,  # Necesario para SQLite con threads
                        "timeout": 20,  # Timeout de 20 segundos para locks
                    },
                    pool_pre_ping=True,
                )

            elif self.config["type"] == "postgresql":
                database_url = (
                    f"postgresql://{self.config['user']}:{self.config['password']}"
                    f"@{self.config['host']}:{self.config['port']}/{self.config['name']}"
                )
                self.engine = create_engine(
                    database_url,
                    echo=False,
                    pool_size=self.config.get("pool_size", 5),
                    max_overflow=self.config.get("max_overflow", 10),
                    pool_pre_ping=True,
                )

            else:
                raise ValueError(
                    f"Tipo de base de datos no soportado: {self.config['type']}"
                )

            self.SessionLocal = sessionmaker(
                autocommit=False,
                autoflush=False,
                bind=self.engine,
                expire_on_commit=False,
            )
            Base.metadata.create_all(self.engine)

            logger.info(
                f"✅ Base de datos configurada exitosamente: {self.config['type']}"
            )

        except Exception as e:
            logger.error(f"❌ Error configurando base de datos: {e}")
            raise

    @contextmanager
    def get_session(self):
        """
        Context manager transaccional.

        Confirma al salir sin errores; ante cualquier excepción hace rollback
        y la vuelve a lanzar.

        Uso:
            with db_manager.get_session() as session:
                candidate = session.get(Candidate, 1)
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Error en operación de base de datos: {e}")
            raise
        finally:
            session.close()

    # =====================================
    # OPERACIONES CON CANDIDATOS
    # =====================================

    def add_candidate(self, data: Mapping[str, Any]) -> int:
        """Inserta un candidato (lo usa la ingesta y los tests) y devuelve su id."""
        allowed = {column.name for column in Candidate.__table__.columns}
        unknown = sorted(set(data) - allowed)
        if unknown:
            raise ValueError(f"Columnas desconocidas para Candidate: {', '.join(unknown)}")
        with self.get_session() as session:
            candidate = Candidate(**dict(data))
            session.add(candidate)
            session.flush()
            return candidate.id

    def list_candidate_ids(self, active_only: bool = True) -> List[int]:
        with self.get_session() as session:
            query = session.query(Candidate.id)
            if active_only:
                query = query.filter(Candidate.is_active.is_(True))
            return [row.id for row in query.order_by(Candidate.id).all()]

    def get_candidate(self, candidate_id: int) -> Optional[Dict[str, Any]]:
        with self.get_session() as session:
            candidate = session.get(Candidate, candidate_id)
            return candidate.to_dict() if candidate else None

    def get_candidates_snapshot(
        self, candidate_ids: Optional[Iterable[int]] = None
    ) -> List[Dict[str, Any]]:
        """Lee de una vez todos los candidatos pedidos (o todos los activos)."""
        with self.get_session() as session:
            query = session.query(Candidate)
            if candidate_ids is None:
                query = query.filter(Candidate.is_active.is_(True))
            else:
                query = query.filter(Candidate.id.in_(list(candidate_ids)))
            return [candidate.to_dict() for candidate in query.order_by(Candidate.id).all()]

    def apply_sibling_updates(self, updates: Mapping[int, Mapping[str, Any]]) -> int:
        """
        Completa categorías vacías de registros hermanos en una sola transacción.

        Nunca sobrescribe un valor no vacío: si la fila ya tiene datos en la
        columna, la actualización de esa columna se ignora y se registra.

        Returns:
            Número de columnas efectivamente escritas.
        """
        written = 0
        with self.get_session() as session:
            for candidate_id, fields in updates.items():
                candidate = session.get(Candidate, candidate_id)
                if candidate is None:
                    raise LookupError(f"Candidato {candidate_id} no existe")
                for column, value in fields.items():
                    if column not in SIBLING_WRITABLE_COLUMNS:
                        raise ValueError(f"La columna {column} no se propaga entre hermanos")
                    if not _is_empty(column, getattr(candidate, column)):
                        logger.warning(
                            f"Columna {column} del candidato {candidate_id} ya tiene datos; se conserva"
                        )
                        continue
                    setattr(candidate, column, value)
                    written += 1
        return written

    # =====================================
    # OPERACIONES CON PUNTAJES
    # =====================================

    def save_score(
        self,
        candidate_id: int,
        score_data: ScoreResultModel | Dict[str, Any],
        *,
        operation: str = "full",
        baseline: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """
        Sobrescribe Score y ScoreBreakdown, opcionalmente ScoreBaseline, y
        agrega una fila a ScoreLog; todo en una transacción.

        Raises:
            ValueError: si el payload no cumple el contrato de puntajes.
            LookupError: si el candidato no existe.
        """
        if operation not in SCORE_OPERATIONS:
            raise ValueError(f"Operación desconocida: {operation}")
        if isinstance(score_data, ScoreResultModel):
            score_model = score_data
        else:
            try:
                score_model = ScoreResultModel.model_validate(score_data)
            except ValidationError as exc:
                raise ValueError(
                    f"Invalid scoring payload for candidate {candidate_id}: {exc}"
                ) from exc

        payload = score_model.model_dump_for_storage()
        breakdown = payload["breakdown"]
        now = datetime.now(timezone.utc)

        with self.get_session() as session:
            if session.get(Candidate, candidate_id) is None:
                raise LookupError(f"Candidato {candidate_id} no existe")

            score = session.query(Score).filter_by(candidate_id=candidate_id).one_or_none()
            if score is None:
                score = Score(candidate_id=candidate_id)
                session.add(score)
            for column in (
                "competence",
                "integrity",
                "transparency",
                "confidence",
                "score_balanced",
                "score_merit",
                "score_integrity",
            ):
                setattr(score, column, payload[column])
            score.score_version = payload["version"]
            score.updated_at = now

            row = (
                session.query(ScoreBreakdown).filter_by(candidate_id=candidate_id).one_or_none()
            )
            if row is None:
                row = ScoreBreakdown(candidate_id=candidate_id)
                session.add(row)
            for column in (
                "integrity_base",
                "penal_penalty",
                "civil_penalties",
                "resignation_penalty",
                "reinfo_penalty",
                "company_penalty",
                "incumbent_penalty",
                "voting_penalty",
                "voting_bonus",
                "tax_penalty",
                "omission_penalty",
            ):
                setattr(row, column, breakdown[column])
            row.details = breakdown
            row.updated_at = now

            if baseline is not None:
                snapshot = (
                    session.query(ScoreBaseline)
                    .filter_by(candidate_id=candidate_id)
                    .one_or_none()
                )
                if snapshot is None:
                    snapshot = ScoreBaseline(candidate_id=candidate_id)
                    session.add(snapshot)
                snapshot.competence_base = int(baseline["competence_base"])
                snapshot.integrity_base = int(baseline["integrity_base"])
                snapshot.applied_categories = list(baseline.get("applied_categories", []))
                snapshot.captured_at = now

            session.add(
                ScoreLog(
                    candidate_id=candidate_id,
                    operation=operation,
                    score_version=payload["version"],
                    calculated_at=now,
                    integrity=payload["integrity"],
                    score_balanced=payload["score_balanced"],
                    score_merit=payload["score_merit"],
                    score_integrity=payload["score_integrity"],
                    breakdown=breakdown,
                    algorithm_weights=payload.get("weights", {}),
                )
            )

        logger.debug(
            f"✅ Puntaje guardado para candidato {candidate_id} ({operation}): "
            f"I={payload['integrity']} B={payload['score_balanced']}"
        )

    def get_score(self, candidate_id: int) -> Optional[Dict[str, Any]]:
        with self.get_session() as session:
            score = session.query(Score).filter_by(candidate_id=candidate_id).one_or_none()
            return score.to_dict() if score else None

    def get_breakdown(self, candidate_id: int) -> Optional[Dict[str, Any]]:
        with self.get_session() as session:
            row = (
                session.query(ScoreBreakdown).filter_by(candidate_id=candidate_id).one_or_none()
            )
            return dict(row.details) if row else None

    def get_baseline(self, candidate_id: int) -> Optional[Dict[str, Any]]:
        with self.get_session() as session:
            snapshot = (
                session.query(ScoreBaseline).filter_by(candidate_id=candidate_id).one_or_none()
            )
            return snapshot.to_dict() if snapshot else None

    def count_score_logs(self, candidate_id: int, operation: Optional[str] = None) -> int:
        with self.get_session() as session:
            query = session.query(ScoreLog).filter_by(candidate_id=candidate_id)
            if operation:
                query = query.filter_by(operation=operation)
            return query.count()

    def get_ranking(
        self,
        mode: str = "balanced",
        limit: int = 20,
        min_confidence: int = 0,
        only_clean: bool = False,
        cargo: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Candidatos ordenados por un puntaje compuesto.

        ``only_clean`` excluye a quien tenga cualquier penalidad penal o civil.
        """
        column = RANKING_COLUMNS.get(mode)
        if column is None:
            raise ValueError(f"Modo de ranking desconocido: {mode}")
        with self.get_session() as session:
            query = (
                session.query(Candidate, Score)
                .join(Score, Score.candidate_id == Candidate.id)
                .filter(Candidate.is_active.is_(True))
                .filter(Score.confidence >= min_confidence)
            )
            if cargo:
                query = query.filter(Candidate.cargo == cargo)
            if only_clean:
                query = query.join(
                    ScoreBreakdown, ScoreBreakdown.candidate_id == Candidate.id
                ).filter(ScoreBreakdown.penal_penalty == 0)
            rows = query.order_by(desc(column), Candidate.full_name).all()

            ranking: List[Dict[str, Any]] = []
            for candidate, score in rows:
                if only_clean and self._has_civil_penalty(session, candidate.id):
                    continue
                entry = score.to_dict()
                entry.update(
                    full_name=candidate.full_name,
                    cargo=candidate.cargo,
                    party_name=candidate.party_name,
                )
                ranking.append(entry)
                if len(ranking) >= limit:
                    break
            return ranking

    @staticmethod
    def _has_civil_penalty(session, candidate_id: int) -> bool:
        row = session.query(ScoreBreakdown).filter_by(candidate_id=candidate_id).one_or_none()
        return bool(row and any(item.get("penalty", 0) > 0 for item in row.civil_penalties or []))


# Instancia global del manejador de base de datos
# ===============================================

_db_manager = None


def get_database_manager() -> DatabaseManager:
    """Devuelve el DatabaseManager compartido, creándolo en la primera llamada."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


__all__ = [
    "DatabaseManager",
    "RAW_CATEGORY_COLUMNS",
    "SIBLING_WRITABLE_COLUMNS",
    "get_database_manager",
]
