"""
Utilidades del motor de Ranking Electoral.
"""

from .logger import get_logger, setup_logging
from .text_cleaner import fold_text, name_key, normalize_text, strip_accents

__all__ = [
    "get_logger",
    "setup_logging",
    "fold_text",
    "name_key",
    "normalize_text",
    "strip_accents",
]
