"""Read-only access to a rounds directory on disk."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .models import CATEGORY_FILENAME, IMAGE_EXTENSIONS, ROUND_FILENAME

logger = logging.getLogger(__name__)

_MAX_ROOT_SEARCH_DEPTH = 10


class RoundsDirectoryNotFound(FileNotFoundError):
    """Raised when the rounds directory itself is missing."""


class RecordError(ValueError):
    """Raised when a ``round.json`` or ``cat.json`` file cannot be loaded."""

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(message)
        self.path = path


class InvalidCategoryName(ValueError):
    """Raised when a declared category does not name a subdirectory of its round."""

    def __init__(self, category: object) -> None:
        super().__init__(f"Category name must be a plain directory name: {category!r}")
        self.category = category


@dataclass(frozen=True)
class RoundSummary:
    """Short description of a round used for listings."""

    id: str
    name: str
    category_count: int
    path: Path


class RoundsRepository:
    """Enumerate rounds and categories and open their record files.

    The validator and the manifest builder both go through this class so they
    agree on directory layout and file names.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def require_root(self) -> None:
        if not self.root.is_dir():
            raise RoundsDirectoryNotFound(
                f"Rounds directory not found: {self.root}"
            )

    def round_directories(self) -> List[Path]:
        """Return every immediate subdirectory of the root, sorted by name."""

        self.require_root()
        return sorted(
            (entry for entry in self.root.iterdir() if entry.is_dir()),
            key=lambda entry: entry.name,
        )

    def round_record_path(self, round_path: Path) -> Path:
        return Path(round_path) / ROUND_FILENAME

    def category_path(self, round_path: Path, category: str) -> Path:
        """Return the directory for ``category`` directly inside ``round_path``.

        Raises:
            InvalidCategoryName: If the name is not a plain directory name or
                resolves outside the round directory.
        """

        if (
            not isinstance(category, str)
            or category in ("", ".", "..")
            or "/" in category
            or "\\" in category
            or Path(category).is_absolute()
        ):
            raise InvalidCategoryName(category)

        path = Path(round_path) / category
        if path.resolve().parent != Path(round_path).resolve():
            raise InvalidCategoryName(category)
        return path

    def has_category(self, round_path: Path, category: str) -> bool:
        return self.category_path(round_path, category).is_dir()

    def category_record_path(self, round_path: Path, category: str) -> Path:
        return self.category_path(round_path, category) / CATEGORY_FILENAME

    def load_round(self, round_path: Path) -> Dict[str, Any]:
        """Return the parsed ``round.json`` for ``round_path``.

        Raises:
            RecordError: If the file is missing, unreadable or not a JSON object.
        """

        return _load_record(self.round_record_path(round_path))

    def load_category(self, round_path: Path, category: str) -> Dict[str, Any]:
        """Return the parsed ``cat.json`` for ``category`` inside ``round_path``.

        Raises:
            RecordError: If the file is missing, unreadable or not a JSON object.
        """

        return _load_record(self.category_record_path(round_path, category))

    def root_images(self, round_path: Path) -> List[str]:
        """Return image filenames sitting directly in the round directory.

        Raises:
            OSError: If the round directory cannot be listed.
        """

        return sorted(
            entry.name
            for entry in Path(round_path).iterdir()
            if not entry.is_dir()
            and entry.name != ROUND_FILENAME
            and entry.suffix.lower() in IMAGE_EXTENSIONS
        )

    def list_rounds(self) -> List[RoundSummary]:
        """Return a summary of each round, tolerating broken ``round.json`` files."""

        summaries: List[RoundSummary] = []
        for round_path in self.round_directories():
            name = round_path.name
            category_count = 0
            try:
                data = self.load_round(round_path)
            except RecordError as exc:
                logger.debug("Listing %s without metadata: %s", round_path.name, exc)
            else:
                if isinstance(data.get("name"), str) and data["name"]:
                    name = data["name"]
                categories = data.get("categories")
                if isinstance(categories, list):
                    category_count = len(categories)
            summaries.append(
                RoundSummary(
                    id=round_path.name,
                    name=name,
                    category_count=category_count,
                    path=round_path,
                )
            )
        return summaries


def record_size(path: Path) -> int:
    """Return the size of ``path`` in bytes, or ``0`` when it cannot be read."""

    try:
        return Path(path).stat().st_size
    except OSError:
        return 0


def directory_size(root: Path, *, exclude: Iterable[Path] = ()) -> int:
    """Return the total size of all regular files below ``root``.

    Symbolic links are not followed and each real directory is visited once.
    Files listed in ``exclude`` are left out of the total.
    """

    excluded = {Path(path).resolve() for path in exclude}
    visited: set[str] = set()
    stack = [Path(root)]
    total = 0

    while stack:
        current = stack.pop()
        try:
            real = os.path.realpath(current)
            if real in visited:
                continue
            visited.add(real)
            with os.scandir(current) as iterator:
                entries = list(iterator)
        except OSError:
            continue

        for entry in entries:
            try:
                if entry.is_symlink():
                    continue
                if entry.is_dir(follow_symlinks=False):
                    stack.append(Path(entry.path))
                elif entry.is_file(follow_symlinks=False):
                    if Path(entry.path).resolve() in excluded:
                        continue
                    total += entry.stat(follow_symlinks=False).st_size
            except OSError:
                continue

    return total


def find_repository_root(start: Path | None = None) -> Path:
    """Return the nearest directory at or above ``start`` containing ``rounds/``.

    Falls back to ``start`` (the current directory by default) when no such
    directory is found within a few levels.
    """

    origin = Path(start) if start is not None else Path.cwd()
    current = origin.resolve()
    for _ in range(_MAX_ROOT_SEARCH_DEPTH):
        if (current / "rounds").is_dir():
            return current
        parent = current.parent
        if parent == current:
            break
        current = parent
    return origin


def _load_record(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        raise RecordError(f"Missing {path.name} file", path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise RecordError(f"Invalid JSON in {path.name} - {exc}", path) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise RecordError(f"Could not read {path.name} - {exc}", path) from exc
    if not isinstance(payload, dict):
        raise RecordError(f"{path.name} must contain a JSON object", path)
    logger.debug("Loaded %s", path)
    return payload


__all__ = [
    "InvalidCategoryName",
    "RecordError",
    "RoundSummary",
    "RoundsDirectoryNotFound",
    "RoundsRepository",
    "directory_size",
    "find_repository_root",
    "record_size",
]
