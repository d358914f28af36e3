"""Project configuration facade backed by ranking_electoral.config_manager."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from ranking_electoral.config_manager import Config, ConfigError, load_config

CONFIG: Config = load_config()

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = CONFIG.paths.data_dir
LOGS_DIR = CONFIG.paths.logs_dir

for directory in (DATA_DIR, LOGS_DIR):
    directory.mkdir(parents=True, exist_ok=True)

ENVIRONMENT = CONFIG.app.environment
DEBUG = CONFIG.app.debug
IS_PRODUCTION = ENVIRONMENT == "production"

DATABASE_CONFIG: Dict[str, Any] = CONFIG.database.model_dump(mode="python")
DATABASE_CONFIG["type"] = DATABASE_CONFIG.pop("driver")

SCORING_CONFIG: Dict[str, Any] = CONFIG.scoring.model_dump(mode="python")
RECOMPUTE_CONFIG: Dict[str, Any] = CONFIG.recompute.model_dump(mode="python")

LOGGING_CONFIG: Dict[str, Any] = {
    "level": "DEBUG" if DEBUG else CONFIG.logging.level,
    "file_path": str(CONFIG.logging.file_path),
    "max_file_size": f"{CONFIG.logging.max_file_size_mb} MB",
    "retention": f"{CONFIG.logging.retention_days} days",
    "format": CONFIG.logging.format,
}


def validate_config(config: Config | None = None) -> None:
    """Re-check cross-section rules that a single model cannot see."""

    cfg = config or CONFIG
    for name in ("balanced", "merit", "integrity_first"):
        weights = getattr(cfg.scoring.composites, name)
        total = weights.competence + weights.integrity + weights.transparency
        if abs(total - 1.0) > 0.01:
            raise ConfigError(f"scoring.composites.{name} must sum to 1.0 ±0.01")
    relevance = cfg.scoring.competence.relevance_by_cargo
    seniority = cfg.scoring.competence.seniority_points
    if "direccion" not in seniority:
        raise ConfigError("scoring.competence.seniority_points requires 'direccion'")
    for cargo, table in relevance.items():
        if not table:
            raise ConfigError(f"scoring.competence.relevance_by_cargo.{cargo} is empty")
    if cfg.database.driver == "postgresql":
        missing = [
            field
            for field in ("host", "port", "user", "password")
            if not getattr(cfg.database, field)
        ]
        if missing:
            raise ConfigError("postgresql configuration missing: " + ", ".join(missing))


__all__ = [
    "BASE_DIR",
    "CONFIG",
    "DATA_DIR",
    "LOGS_DIR",
    "ENVIRONMENT",
    "DEBUG",
    "IS_PRODUCTION",
    "DATABASE_CONFIG",
    "SCORING_CONFIG",
    "RECOMPUTE_CONFIG",
    "LOGGING_CONFIG",
    "validate_config",
]
