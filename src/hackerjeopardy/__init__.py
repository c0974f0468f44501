"""Validation and indexing tools for Hacker Jeopardy round content."""

from .manifest import Manifest, ManifestEntry, aggregate, build_manifest, write_manifest
from .models import (
    CategoryRecord,
    QuestionRecord,
    RoundListing,
    RoundRecord,
    Severity,
    ValidationIssue,
    ValidationReport,
)
from .reporting import format_bytes, format_round_table, format_validation_report
from .repository import (
    InvalidCategoryName,
    RecordError,
    RoundSummary,
    RoundsDirectoryNotFound,
    RoundsRepository,
    find_repository_root,
)
from .settings import ContentSettings
from .validator import (
    RepositoryValidator,
    RoundStructureError,
    validate,
    validate_round,
    validate_round_structure,
)

__all__ = [
    "RoundRecord",
    "CategoryRecord",
    "QuestionRecord",
    "RoundListing",
    "Severity",
    "ValidationIssue",
    "ValidationReport",
    "RoundsRepository",
    "RoundSummary",
    "RecordError",
    "InvalidCategoryName",
    "RoundsDirectoryNotFound",
    "find_repository_root",
    "RepositoryValidator",
    "RoundStructureError",
    "validate",
    "validate_round",
    "validate_round_structure",
    "Manifest",
    "ManifestEntry",
    "aggregate",
    "build_manifest",
    "write_manifest",
    "format_bytes",
    "format_round_table",
    "format_validation_report",
    "ContentSettings",
]
