"""
Paquete de storage del motor de Ranking Electoral.

Modelos SQLAlchemy y el adaptador ``DatabaseManager`` del repositorio.
"""

from .database import DatabaseManager, get_database_manager
from .models import (
    Base,
    Candidate,
    Score,
    ScoreBaseline,
    ScoreBreakdown,
    ScoreLog,
    get_model_info,
)


def initialize_database():
    """Inicializa la base de datos creando tablas si es necesario."""
    return get_database_manager()


__all__ = [
    "get_database_manager",
    "DatabaseManager",
    "Base",
    "Candidate",
    "Score",
    "ScoreBaseline",
    "ScoreBreakdown",
    "ScoreLog",
    "get_model_info",
    "initialize_database",
]
