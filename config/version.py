"""Project-level versioning and interpreter compatibility metadata."""

from __future__ import annotations

from pathlib import Path
from typing import Final, NamedTuple, Tuple

MIN_PYTHON_VERSION: Final[Tuple[int, int]] = (3, 10)
MIN_PYTHON_VERSION_STR: Final[str] = ".".join(str(part) for part in MIN_PYTHON_VERSION)
PYTHON_REQUIRES_SPECIFIER: Final[str] = f">={MIN_PYTHON_VERSION_STR}"


class VersionInfo(NamedTuple):
    """Semantic version triple parsed from the ``VERSION`` file."""

    major: int
    minor: int
    patch: int

    def __str__(self) -> str:  # pragma: no cover - simple formatting helper
        return f"{self.major}.{self.minor}.{self.patch}"


def parse_version(raw: str) -> VersionInfo:
    """Parse ``MAJOR.MINOR.PATCH`` rejecting negative or missing parts."""

    parts = raw.strip().split(".")
    if len(parts) != 3:
        raise ValueError(f"version must have three numeric parts, got {raw!r}")
    numbers = tuple(int(part) for part in parts)
    for name, value in zip(VersionInfo._fields, numbers):
        if value < 0:
            raise ValueError(f"{name} must be non-negative, got {value}")
    return VersionInfo(*numbers)


_VERSION_FILE = Path(__file__).resolve().parent.parent / "VERSION"
PROJECT_VERSION: Final[str] = _VERSION_FILE.read_text(encoding="utf-8").strip()
VERSION_INFO: Final[VersionInfo] = parse_version(PROJECT_VERSION)
__version__: Final[str] = PROJECT_VERSION

__all__ = [
    "MIN_PYTHON_VERSION",
    "MIN_PYTHON_VERSION_STR",
    "PYTHON_REQUIRES_SPECIFIER",
    "PROJECT_VERSION",
    "VERSION_INFO",
    "VersionInfo",
    "parse_version",
    "__version__",
]
