"""
Paquete principal del motor de Ranking Electoral.

Contiene los módulos funcionales del motor: normalización, scoring,
recálculo/reconciliación, almacenamiento y utilidades.
"""

from config.version import PROJECT_VERSION, PYTHON_REQUIRES_SPECIFIER

from .normalization import normalize_candidate
from .recompute import RecomputeDriver, SiblingReconciler
from .scoring import CandidateScorer, score_multiple_candidates
from .storage import DatabaseManager, get_database_manager
from .utils import get_logger, setup_logging

__version__ = PROJECT_VERSION
__description__ = (
    "Motor de puntajes auditables para el ranking de candidatos electorales"
)

__package_info__ = {
    "name": "ranking_electoral",
    "version": __version__,
    "description": __description__,
    "author": "Ranking Electoral Team",
    "license": "MIT",
    "python_requires": PYTHON_REQUIRES_SPECIFIER,
}

__all__ = [
    "CandidateScorer",
    "score_multiple_candidates",
    "normalize_candidate",
    "RecomputeDriver",
    "SiblingReconciler",
    "get_database_manager",
    "DatabaseManager",
    "get_logger",
    "setup_logging",
]
