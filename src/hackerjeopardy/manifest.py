"""Build the repository-wide ``manifest.json`` index from the rounds tree."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Sequence

from pydantic import ValidationError

from .models import CATEGORY_FILENAME, RoundListing
from .reporting import format_bytes
from .repository import (
    InvalidCategoryName,
    RecordError,
    RoundsRepository,
    directory_size,
    record_size,
)
from .settings import ContentSettings, configure_logging

logger = logging.getLogger(__name__)

MANIFEST_NAME = "Hacker Jeopardy Content Repository"
MANIFEST_DESCRIPTION = "Community-contributed question sets for Hacker Jeopardy"
MANIFEST_VERSION = "1.0.0"
MANIFEST_LICENSE = "MIT"
MANIFEST_CONTRIBUTORS: tuple[Dict[str, str], ...] = (
    {"name": "Hacker Jeopardy Community"},
)


@dataclass(frozen=True)
class ManifestEntry:
    """Derived metadata describing a single round."""

    id: str
    name: str
    language: str
    difficulty: str
    categories: tuple[str, ...]
    author: str
    last_modified: str
    size: int
    description: str | None
    tags: tuple[str, ...]

    def to_payload(self) -> Dict[str, Any]:
        """Return a JSON-serialisable representation of the entry."""

        return {
            "id": self.id,
            "name": self.name,
            "language": self.language,
            "difficulty": self.difficulty,
            "categories": list(self.categories),
            "author": self.author,
            "lastModified": self.last_modified,
            "size": self.size,
            "description": self.description,
            "tags": list(self.tags),
        }


@dataclass(frozen=True)
class Manifest:
    """The aggregated index of every readable round."""

    rounds: List[ManifestEntry]
    generated_at: datetime
    name: str = MANIFEST_NAME
    description: str = MANIFEST_DESCRIPTION
    version: str = MANIFEST_VERSION
    license: str = MANIFEST_LICENSE
    contributors: tuple[Dict[str, str], ...] = MANIFEST_CONTRIBUTORS

    @property
    def total_size(self) -> int:
        return sum(entry.size for entry in self.rounds)

    @property
    def formatted_size(self) -> str:
        return format_bytes(self.total_size)

    def to_payload(self) -> Dict[str, Any]:
        """Return the document written to ``manifest.json``."""

        return {
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "lastUpdated": _utc(self.generated_at).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "totalRounds": len(self.rounds),
            "totalSize": self.total_size,
            "rounds": [entry.to_payload() for entry in self.rounds],
            "contributors": [dict(contributor) for contributor in self.contributors],
            "license": self.license,
        }


def round_size(
    repository: RoundsRepository, round_path: Path, categories: Sequence[str]
) -> int:
    """Return the bytes used by a round's records and category directories.

    Missing files count as zero. Each category's ``cat.json`` is counted once
    even though it also lives inside the category directory.
    """

    total = record_size(repository.round_record_path(round_path))
    for category in categories:
        try:
            category_path = repository.category_path(round_path, category)
        except InvalidCategoryName as exc:
            logger.warning("%s: not counting category: %s", Path(round_path).name, exc)
            continue
        category_record = category_path / CATEGORY_FILENAME
        total += record_size(category_record)
        total += directory_size(category_path, exclude=[category_record])
    return total


def build_entry(
    repository: RoundsRepository, round_path: Path, *, today: date | None = None
) -> ManifestEntry:
    """Return the manifest entry for ``round_path``.

    Raises:
        RecordError: If ``round.json`` is missing or malformed.
        ValidationError: If ``round.json`` fields have unusable types.
    """

    round_id = Path(round_path).name
    listing = RoundListing.model_validate(
        repository.load_round(round_path), context={"round": round_id}
    )
    fallback_date = (today or date.today()).isoformat()

    return ManifestEntry(
        id=round_id,
        name=listing.name or round_id,
        language=listing.lang or "en",
        difficulty=listing.difficulty or "mixed",
        categories=tuple(listing.categories),
        author=listing.author or "Community",
        last_modified=listing.date or fallback_date,
        size=round_size(repository, round_path, listing.categories),
        description=listing.description or listing.comment,
        tags=tuple(listing.tags),
    )


def aggregate(root: Path, *, today: date | None = None) -> List[ManifestEntry]:
    """Return one entry per readable round below ``root``, sorted by directory name.

    Rounds whose ``round.json`` cannot be read are skipped with a warning.

    Raises:
        RoundsDirectoryNotFound: If ``root`` is not a directory.
    """

    repository = RoundsRepository(Path(root))
    round_paths = repository.round_directories()
    logger.info("Found %d round directories in %s", len(round_paths), root)

    entries: List[ManifestEntry] = []
    for round_path in round_paths:
        try:
            entries.append(build_entry(repository, round_path, today=today))
        except (RecordError, ValidationError) as exc:
            logger.warning("Skipping round %s: %s", round_path.name, exc)
    return entries


def build_manifest(
    root: Path,
    *,
    timestamp: datetime | None = None,
    today: date | None = None,
) -> Manifest:
    """Aggregate ``root`` into a :class:`Manifest` stamped with ``timestamp``."""

    return Manifest(
        rounds=aggregate(root, today=today),
        generated_at=_utc(timestamp),
    )


def write_manifest(manifest: Manifest, output: Path) -> Path:
    """Serialise ``manifest`` to ``output`` as indented JSON."""

    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(manifest.to_payload(), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    return output_path


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point for building ``manifest.json``."""

    settings = ContentSettings.from_env()
    parser = _build_parser(settings)
    args = parser.parse_args(argv)
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    rounds_dir = args.rounds_dir or settings.resolve_rounds_dir()
    output = args.output or settings.manifest_path

    print(f"Building manifest from: {rounds_dir}")
    print(f"Output file: {output}")

    try:
        manifest = build_manifest(rounds_dir, timestamp=args.timestamp)
        write_manifest(manifest, output)
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(f"Manifest built successfully: {output}")
    print(f"{len(manifest.rounds)} rounds, {manifest.formatted_size} total")
    return 0


def _build_parser(settings: ContentSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate manifest.json from the round directories.",
    )
    parser.add_argument(
        "rounds_dir",
        nargs="?",
        type=Path,
        help=(
            "Directory holding the rounds. Defaults to HACKERJEOPARDY_ROUNDS_DIR "
            f"or '{settings.rounds_dir}'."
        ),
    )
    parser.add_argument(
        "output",
        nargs="?",
        type=Path,
        help=(
            "Where to write the manifest. Defaults to HACKERJEOPARDY_MANIFEST_PATH "
            f"or '{settings.manifest_path}'."
        ),
    )
    parser.add_argument(
        "--timestamp",
        type=_timestamp_argument,
        help="Value for lastUpdated, e.g. 2024-05-05T12:30:00Z. Defaults to now.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log traversal details to stderr.",
    )
    return parser


def _utc(moment: datetime | None) -> datetime:
    """Return ``moment`` (now when omitted) in UTC, truncated to whole seconds."""

    if moment is None:
        moment = datetime.now(timezone.utc)
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).replace(microsecond=0)


def _timestamp_argument(value: str) -> datetime:
    try:
        return _utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"invalid ISO-8601 timestamp: {value!r}"
        ) from exc


__all__ = [
    "Manifest",
    "ManifestEntry",
    "aggregate",
    "build_entry",
    "build_manifest",
    "main",
    "round_size",
    "write_manifest",
]


if __name__ == "__main__":  # pragma: no cover - module executable
    raise SystemExit(main())
