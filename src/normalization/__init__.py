"""
Normalización de registros crudos de candidatos.

Convierte los blobs JSON heterogéneos de la ingesta en registros canónicos
tipados (ver ``records``) usando la tabla de sinónimos de ``synonyms``.
"""

from .normalizer import normalize_candidate, normalize_many, parse_year
from .records import NormalizedCandidate

__all__ = ["NormalizedCandidate", "normalize_candidate", "normalize_many", "parse_year"]
