"""Configuration helpers for the content validation and manifest tools."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .repository import find_repository_root

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _normalise_path(value: str | None, *, default: Path) -> Path:
    if value is None:
        return default

    trimmed = value.strip()
    if not trimmed:
        return default

    return Path(trimmed).expanduser()


def _normalise_log_level(value: str | None, *, default: str) -> str:
    if value is None:
        return default

    trimmed = value.strip().upper()
    if not trimmed:
        return default
    if not isinstance(logging.getLevelName(trimmed), int):
        raise ValueError(
            f"HACKERJEOPARDY_LOG_LEVEL must be a logging level name, got '{value}'."
        )
    return trimmed


@dataclass(frozen=True)
class ContentSettings:
    """Settings shared by the validator and manifest command-line tools.

    Values are read from environment variables so CI jobs can point the tools at
    a different checkout without extra flags. Empty strings are treated as if the
    variable was unset.
    """

    rounds_dir: Path = Path("rounds")
    manifest_path: Path = Path("manifest.json")
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ContentSettings":
        """Return settings populated from ``environ``.

        Args:
            environ: Optional mapping of environment variables. When omitted,
                :data:`os.environ` is used.
        """

        source = environ if environ is not None else os.environ

        return cls(
            rounds_dir=_normalise_path(
                source.get("HACKERJEOPARDY_ROUNDS_DIR"), default=Path("rounds")
            ),
            manifest_path=_normalise_path(
                source.get("HACKERJEOPARDY_MANIFEST_PATH"),
                default=Path("manifest.json"),
            ),
            log_level=_normalise_log_level(
                source.get("HACKERJEOPARDY_LOG_LEVEL"), default="WARNING"
            ),
        )

    def resolve_rounds_dir(self, start: Path | None = None) -> Path:
        """Return :attr:`rounds_dir`, anchoring relative paths at the repository root."""

        if self.rounds_dir.is_absolute():
            return self.rounds_dir
        return find_repository_root(start) / self.rounds_dir


def configure_logging(level: str | int) -> None:
    """Send log records to stderr at ``level``."""

    logging.basicConfig(level=level, format=_LOG_FORMAT)


__all__ = ["ContentSettings", "configure_logging"]
