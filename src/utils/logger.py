# src/utils/logger.py
# Sistema de logging del motor de Ranking Electoral
# =================================================

"""
Configura loguru como destino único de logs del motor de puntajes.

Los módulos del motor registran eventos con ``logging.getLogger(__name__)``;
este módulo instala un handler que reenvía esos registros a loguru, que a su
vez escribe en consola y en un archivo rotado, retenido y comprimido.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from config.settings import DEBUG, LOGGING_CONFIG


class InterceptHandler(logging.Handler):
    """Reenvía registros de ``logging`` estándar hacia loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Any = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


class RankingLogger:
    """
    Configurador centralizado de logging para el motor de puntajes.

    Instala los sinks de consola y archivo una sola vez y conecta el
    logging estándar de Python con loguru.
    """

    def __init__(self):
        self.is_configured = False
        self.log_file_path: Optional[Path] = None

    def configure_logging(self, config: Optional[Dict[str, Any]] = None):
        """
        Configura los handlers según ``LOGGING_CONFIG``.

        Args:
            config: Configuración de logging. Si no se proporciona,
                   usa la de config/settings.py
        """
        if self.is_configured:
            logger.info("Logger ya configurado, omitiendo reconfiguración")
            return

        config = config or LOGGING_CONFIG

        logger.remove()
        self._configure_console_handler(config)
        if config.get("file_path"):
            self._configure_file_handler(config)
        self._intercept_standard_logging(config)

        self.is_configured = True
        logger.info("🎯 Sistema de logging configurado exitosamente")
        logger.debug(f"Configuración aplicada: {config}")

    def _configure_console_handler(self, config: Dict[str, Any]):
        """En desarrollo el formato es colorido y detallado; en producción compacto."""
        if DEBUG:
            console_format = (
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
                "<level>{message}</level>"
            )
            console_level = "DEBUG"
        else:
            console_format = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"
            console_level = config.get("level", "INFO")

        logger.add(
            sys.stdout,
            format=console_format,
            level=console_level,
            colorize=True,
            backtrace=DEBUG,
            diagnose=DEBUG,
        )

    def _configure_file_handler(self, config: Dict[str, Any]):
        """Archivo con rotación por tamaño, retención por días y compresión gz."""
        self.log_file_path = Path(config["file_path"])
        self.log_file_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            str(self.log_file_path),
            format=config.get(
                "format",
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{line} | {message}",
            ),
            level=config.get("level", "INFO"),
            rotation=config.get("max_file_size", "10 MB"),
            retention=config.get("retention", "30 days"),
            compression="gz",
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )

    def _intercept_standard_logging(self, config: Dict[str, Any]):
        """Los módulos usan ``logging.getLogger``; todo termina en loguru."""
        logging.basicConfig(
            handlers=[InterceptHandler()],
            level=logging.DEBUG if DEBUG else config.get("level", "INFO"),
            force=True,
        )
        # SQL de SQLAlchemy solo en modo debug
        logging.getLogger("sqlalchemy.engine").setLevel(
            logging.INFO if DEBUG else logging.WARNING
        )

    def log_system_startup(
        self, version: str = "0.1.0", config_summary: Optional[Dict[str, Any]] = None
    ):
        """Marca el inicio de una ejecución del motor en el log."""
        logger.info("=" * 60)
        logger.info("🚀 RANKING ELECTORAL: MOTOR DE PUNTAJES INICIADO")
        logger.info("=" * 60)
        logger.info(f"Versión: {version}")
        logger.info(f"Modo debug: {DEBUG}")

        if config_summary:
            logger.info("Configuración principal:")
            for key, value in config_summary.items():
                logger.info(f"  {key}: {value}")

        if self.log_file_path:
            logger.info(f"Logs guardándose en: {self.log_file_path}")
        logger.info("=" * 60)


class RecomputeSessionLogger:
    """
    Logger especializado para pasadas de recálculo.

    Etiqueta cada línea con la operación (full, apply_penalty, reconcile)
    para que una pasada completa se pueda seguir en el archivo de log.
    """

    def __init__(self, operation: str):
        self.operation = operation
        self.logger = logger.bind(operation=operation)

    def log_session_start(self, candidates: int):
        self.logger.info(f"🎯 {self.operation}: {candidates} candidatos programados")

    def log_candidate_failure(self, candidate_id: int, full_name: str, error: str):
        self.logger.warning(f"❌ candidato {candidate_id} ({full_name}): {error}")

    def log_session_summary(self, summary: Dict[str, Any]):
        self.logger.info(f"📈 RESUMEN {self.operation}:")
        self.logger.info(f"  • Procesados: {summary.get('processed', 0)}")
        self.logger.info(f"  • Con cambios: {summary.get('changed', 0)}")
        self.logger.info(f"  • Errores: {summary.get('errors', 0)}")
        self.logger.info(f"  • Tiempo total: {summary.get('elapsed_seconds', 0):.1f}s")


_logger_instance: Optional[RankingLogger] = None


def get_logger() -> RankingLogger:
    """Devuelve el configurador único, configurándolo en la primera llamada."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = RankingLogger()
        _logger_instance.configure_logging()
    return _logger_instance


def setup_logging(config: Optional[Dict[str, Any]] = None) -> RankingLogger:
    """
    Configura logging al inicio del proceso.

    Args:
        config: Configuración opcional de logging

    Returns:
        Instancia configurada del logger
    """
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = RankingLogger()
        _logger_instance.configure_logging(config)
    return _logger_instance


__all__ = [
    "InterceptHandler",
    "RankingLogger",
    "RecomputeSessionLogger",
    "get_logger",
    "setup_logging",
]
