"""Typed records for rounds, categories and questions plus validation issues."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    ValidationInfo,
    field_validator,
)

logger = logging.getLogger(__name__)

ROUND_FILENAME = "round.json"
CATEGORY_FILENAME = "cat.json"

QUESTION_VALUES: tuple[int, ...] = (100, 200, 300, 400, 500)
IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".svg"})


class RoundRecord(BaseModel):
    """Schema for ``round.json``.

    Keys outside the declared fields are tolerated. They are only reported as
    warnings through :meth:`unknown_fields`.
    """

    model_config = ConfigDict(extra="allow")

    name: StrictStr = Field(min_length=1)
    categories: list[StrictStr]
    comment: str | None = None
    author: str | None = None
    version: str | int | float | None = None
    created: str | None = None

    @classmethod
    def unknown_fields(cls, data: Mapping[str, Any]) -> list[str]:
        return [key for key in data if key not in cls.model_fields]


class CategoryRecord(BaseModel):
    """Schema for a category's ``cat.json``."""

    model_config = ConfigDict(extra="allow")

    name: StrictStr = Field(min_length=1)
    difficulty: str | None = None
    author: str | None = None
    licence: str | None = None
    date: str | None = None
    questions: list[Any]


class QuestionRecord(BaseModel):
    """Schema for a single entry of a category's ``questions`` list.

    ``answer`` holds the clue shown to contestants and ``question`` holds the
    expected response.
    """

    model_config = ConfigDict(extra="allow")

    question: StrictStr = Field(min_length=1)
    answer: StrictStr | None = None
    image: StrictStr | None = None
    available: StrictBool
    value: Any
    cat: StrictStr = Field(min_length=1)

    @field_validator("image")
    @classmethod
    def _image_is_bare_filename(cls, image: str | None) -> str | None:
        if image is not None and ("/" in image or "\\" in image):
            raise ValueError(
                "Image path must be filename only, no directory separators: "
                f'"{image}"'
            )
        return image

    @field_validator("value")
    @classmethod
    def _value_on_ladder(cls, value: Any) -> int:
        if (
            isinstance(value, bool)
            or not isinstance(value, (int, float))
            or value <= 0
        ):
            raise ValueError("'value' must be a positive number")
        if value not in QUESTION_VALUES:
            raise ValueError("Point value must be 100, 200, 300, 400, or 500")
        return int(value)


_LISTING_TEXT_FIELDS = (
    "name",
    "lang",
    "difficulty",
    "author",
    "date",
    "description",
    "comment",
)


def _ignore_listing_value(info: ValidationInfo, value: Any) -> None:
    round_id = (info.context or {}).get("round", ROUND_FILENAME)
    logger.warning(
        "%s: ignoring '%s' with unusable value %r", round_id, info.field_name, value
    )


class RoundListing(BaseModel):
    """Lenient view of ``round.json`` used when indexing the repository.

    Optional fields with the wrong type fall back to their defaults with a
    logged warning. Only an unusable ``categories`` value fails validation.
    """

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    categories: list[str] = Field(default_factory=list)
    lang: str | None = None
    difficulty: str | None = None
    author: str | None = None
    date: str | None = None
    description: str | None = None
    comment: str | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("categories", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator(*_LISTING_TEXT_FIELDS, mode="before")
    @classmethod
    def _text_or_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or isinstance(value, str):
            return value
        _ignore_listing_value(info, value)
        return None

    @field_validator("tags", mode="before")
    @classmethod
    def _string_tags(cls, value: Any, info: ValidationInfo) -> list[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            _ignore_listing_value(info, value)
            return []
        tags = [tag for tag in value if isinstance(tag, str)]
        dropped = [tag for tag in value if not isinstance(tag, str)]
        if dropped:
            _ignore_listing_value(info, dropped)
        return tags


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    """A single problem found while validating the rounds tree."""

    severity: Severity
    scope: str
    message: str

    def __str__(self) -> str:
        return f"{self.scope}: {self.message}"


@dataclass
class ValidationReport:
    """Errors and warnings collected over one validation run."""

    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        """Return ``True`` when no errors were recorded. Warnings never fail a run."""

        return not self.errors

    def error(self, scope: str, message: str) -> None:
        self.errors.append(ValidationIssue(Severity.ERROR, scope, message))

    def warning(self, scope: str, message: str) -> None:
        self.warnings.append(ValidationIssue(Severity.WARNING, scope, message))

    def extend(self, other: "ValidationReport") -> None:
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)


__all__ = [
    "CATEGORY_FILENAME",
    "CategoryRecord",
    "IMAGE_EXTENSIONS",
    "QUESTION_VALUES",
    "QuestionRecord",
    "ROUND_FILENAME",
    "RoundListing",
    "RoundRecord",
    "Severity",
    "ValidationIssue",
    "ValidationReport",
]
