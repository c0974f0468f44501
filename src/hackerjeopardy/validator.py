"""Validate the rounds tree and report every schema and reference problem."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

from pydantic import BaseModel, ValidationError

from .models import (
    CategoryRecord,
    QuestionRecord,
    RoundRecord,
    ValidationReport,
)
from .reporting import format_round_table, format_validation_report
from .repository import (
    InvalidCategoryName,
    RecordError,
    RoundsDirectoryNotFound,
    RoundsRepository,
)
from .settings import ContentSettings, configure_logging

logger = logging.getLogger(__name__)

_CLUE_OR_IMAGE = "Question must have either clue ('answer') or image"


@dataclass(frozen=True)
class _SchemaMessages:
    """Messages used when turning pydantic errors into validation issues."""

    fields: Mapping[str, str]
    items: Mapping[str, str] = field(default_factory=dict)
    missing: str | None = None
    not_object: str = "Record must be a JSON object"


_ROUND_MESSAGES = _SchemaMessages(
    fields={
        "name": "Missing required field 'name' in round.json",
        "categories": "'categories' must be an array",
    },
    items={"categories": "'categories' entries must be strings"},
    missing="Missing required field '{field}' in round.json",
)

_CATEGORY_MESSAGES = _SchemaMessages(
    fields={
        "name": "Missing required field 'name'",
        "questions": "'questions' must be an array",
    },
)

_QUESTION_MESSAGES = _SchemaMessages(
    fields={
        "question": "Missing or invalid 'question' field",
        "answer": "'answer' field must be a string",
        "image": "'image' field must be a string",
        "available": "'available' field must be a boolean",
        "value": "'value' must be a positive number",
        "cat": "Missing or invalid 'cat' field",
    },
    not_object="Question must be a JSON object",
)


class RoundStructureError(ValueError):
    """Raised by :func:`validate_round_structure` on the first structural problem."""


def schema_messages(
    model: type[BaseModel], data: Any, messages: _SchemaMessages
) -> list[str]:
    """Validate ``data`` against ``model`` and return one message per failing field."""

    try:
        model.model_validate(data)
    except ValidationError as exc:
        rendered: list[str] = []
        for error in exc.errors():
            message = _render_error(error, messages)
            if message not in rendered:
                rendered.append(message)
        return rendered
    return []


def _render_error(error: Mapping[str, Any], messages: _SchemaMessages) -> str:
    location = error.get("loc", ())
    if not location:
        return messages.not_object

    field_name = str(location[0])
    if error["type"] == "value_error":
        return str(error.get("ctx", {}).get("error", error["msg"]))
    if error["type"] == "missing" and messages.missing is not None:
        return messages.missing.format(field=field_name)
    if len(location) > 1 and field_name in messages.items:
        return messages.items[field_name]
    if field_name in messages.fields:
        return messages.fields[field_name]
    return f"'{field_name}' has an invalid value"


class RepositoryValidator:
    """Walk a rounds directory and collect every error and warning.

    Data problems never raise: they become issues on the returned
    :class:`~hackerjeopardy.models.ValidationReport`. Only a missing rounds
    directory is fatal.
    """

    def __init__(self, repository: RoundsRepository) -> None:
        self.repository = repository

    def validate(self) -> ValidationReport:
        report = ValidationReport()
        round_paths = self.repository.round_directories()
        logger.info(
            "Found %d rounds to validate in %s", len(round_paths), self.repository.root
        )
        for round_path in round_paths:
            report.extend(self.validate_round(round_path))
        return report

    def validate_round(self, round_path: Path) -> ValidationReport:
        report = ValidationReport()
        round_id = Path(round_path).name
        logger.debug("Validating round %s", round_id)

        try:
            data = self.repository.load_round(round_path)
        except RecordError as exc:
            report.error(round_id, str(exc))
            return report

        self.check_round_metadata(data, round_id, report)

        categories = data.get("categories")
        if isinstance(categories, list):
            for category in categories:
                if isinstance(category, str):
                    self._validate_category(round_path, category, round_id, report)

        self._check_root_images(round_path, round_id, report)
        return report

    def check_round_metadata(
        self, data: Mapping[str, Any], round_id: str, report: ValidationReport
    ) -> None:
        """Apply the lenient ``round.json`` rules. An empty category list only warns."""

        for message in schema_messages(RoundRecord, data, _ROUND_MESSAGES):
            report.error(round_id, message)

        categories = data.get("categories")
        if isinstance(categories, list) and not categories:
            report.warning(round_id, "Round has no categories")

        for key in RoundRecord.unknown_fields(data):
            report.warning(round_id, f"Unknown field '{key}' in round.json")

    def _validate_category(
        self,
        round_path: Path,
        category: str,
        round_id: str,
        report: ValidationReport,
    ) -> None:
        try:
            category_path = self.repository.category_path(round_path, category)
        except InvalidCategoryName:
            report.error(
                round_id, f'Category name must be a plain directory name: "{category}"'
            )
            return

        scope = f"{round_id}/{category}"
        if not category_path.is_dir():
            report.error(scope, "Category directory does not exist")
            return

        try:
            data = self.repository.load_category(round_path, category)
        except RecordError as exc:
            report.error(scope, str(exc))
            return

        for message in schema_messages(CategoryRecord, data, _CATEGORY_MESSAGES):
            report.error(scope, message)

        questions = data.get("questions")
        if not isinstance(questions, list):
            return
        if not questions:
            report.warning(scope, "Category has no questions")
            return

        for index, question in enumerate(questions):
            self._validate_question(
                question,
                scope=f"{scope}/questions[{index}]",
                round_path=Path(round_path),
                category=category,
                report=report,
            )

    def _validate_question(
        self,
        question: Any,
        *,
        scope: str,
        round_path: Path,
        category: str,
        report: ValidationReport,
    ) -> None:
        for message in schema_messages(QuestionRecord, question, _QUESTION_MESSAGES):
            report.error(scope, message)
        if not isinstance(question, Mapping):
            return

        answer = question.get("answer")
        image = question.get("image")
        if not answer and not image:
            report.error(scope, _CLUE_OR_IMAGE)

        if isinstance(image, str) and image and "/" not in image and "\\" not in image:
            self._check_image_location(image, scope, round_path, category, report)

        cat = question.get("cat")
        if isinstance(cat, str) and cat and cat != category:
            report.error(
                scope, f"'cat' field \"{cat}\" does not match category \"{category}\""
            )

    def _check_image_location(
        self,
        image: str,
        scope: str,
        round_path: Path,
        category: str,
        report: ValidationReport,
    ) -> None:
        expected = self.repository.category_path(round_path, category) / image
        if expected.is_file():
            return

        report.error(
            scope,
            f'Referenced image file does not exist: "{image}" (expected at {expected})',
        )
        if (round_path / image).is_file():
            report.warning(
                scope,
                f'Image "{image}" exists in round root directory but should be in '
                f"category directory ({category}/)",
            )

    def _check_root_images(
        self, round_path: Path, round_id: str, report: ValidationReport
    ) -> None:
        try:
            images = self.repository.root_images(round_path)
        except OSError as exc:
            report.warning(
                round_id,
                f"Could not check round root directory for orphaned images: {exc}",
            )
            return

        for image in images:
            report.error(
                round_id,
                f'Image file "{image}" found in round root directory. '
                "Images must be placed in category subdirectories.",
            )


def validate(root: Path) -> ValidationReport:
    """Validate every round below ``root``.

    Raises:
        RoundsDirectoryNotFound: If ``root`` is not a directory.
    """

    return RepositoryValidator(RoundsRepository(Path(root))).validate()


def validate_round(round_path: Path) -> ValidationReport:
    """Validate a single round directory.

    Raises:
        RoundsDirectoryNotFound: If ``round_path`` is not a directory.
    """

    round_path = Path(round_path)
    if not round_path.is_dir():
        raise RoundsDirectoryNotFound(f"Round directory not found: {round_path}")
    return RepositoryValidator(RoundsRepository(round_path.parent)).validate_round(
        round_path
    )


def validate_round_structure(round_path: Path) -> RoundRecord:
    """Check that a round is complete enough to be played, stopping at the first problem.

    Unlike :func:`validate_round`, a round without categories is an error here.

    Raises:
        RoundStructureError: Describing the first structural problem found.
    """

    round_path = Path(round_path)
    round_id = round_path.name
    repository = RoundsRepository(round_path.parent)

    if not round_path.is_dir():
        raise RoundStructureError(f'Round "{round_id}" does not exist.')

    try:
        data = repository.load_round(round_path)
    except RecordError as exc:
        raise RoundStructureError(str(exc)) from exc

    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise RoundStructureError("Missing required field: name in round.json")
    categories = data.get("categories")
    if categories is None:
        raise RoundStructureError("Missing required field: categories in round.json")
    if not isinstance(categories, list):
        raise RoundStructureError("categories must be an array")
    if not categories:
        raise RoundStructureError("Round must have at least one category")

    messages = schema_messages(RoundRecord, data, _ROUND_MESSAGES)
    if messages:
        raise RoundStructureError(messages[0])

    for category in categories:
        try:
            exists = repository.has_category(round_path, category)
        except InvalidCategoryName as exc:
            raise RoundStructureError(str(exc)) from exc
        if not exists:
            raise RoundStructureError(f'Category directory "{category}" does not exist')
        try:
            category_data = repository.load_category(round_path, category)
        except RecordError as exc:
            raise RoundStructureError(f"{category}: {exc}") from exc

        questions = category_data.get("questions", [])
        if not isinstance(questions, list):
            raise RoundStructureError(
                f'Questions for category "{category}" must be an array'
            )

        for index, question in enumerate(questions):
            prefix = f"{category}[{index}]"
            messages = schema_messages(QuestionRecord, question, _QUESTION_MESSAGES)
            if messages:
                raise RoundStructureError(f"{prefix}: {messages[0]}")
            if not question.get("answer") and not question.get("image"):
                raise RoundStructureError(f"{prefix}: {_CLUE_OR_IMAGE}")

    return RoundRecord.model_validate(data)


def _build_parser(settings: ContentSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate Hacker Jeopardy rounds and their question files.",
    )
    parser.add_argument(
        "round_path",
        nargs="?",
        type=Path,
        help="Path to a single round directory to validate.",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="Validate every round inside the rounds directory.",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List the rounds inside the rounds directory and exit.",
    )
    parser.add_argument(
        "--rounds-dir",
        type=Path,
        default=None,
        help=(
            "Directory holding the rounds. Defaults to HACKERJEOPARDY_ROUNDS_DIR "
            f"or '{settings.rounds_dir}'."
        ),
    )
    parser.add_argument(
        "--structure",
        action="store_true",
        help=(
            "Run the strict structural check on ROUND_PATH, stopping at the first "
            "problem."
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log traversal details to stderr.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point for validating rounds."""

    settings = ContentSettings.from_env()
    parser = _build_parser(settings)
    args = parser.parse_args(argv)
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    selected = sum((args.round_path is not None, args.all, args.list))
    if selected == 0:
        parser.print_help()
        return 1
    if selected > 1:
        parser.error("choose only one of ROUND_PATH, --all or --list")
    if args.structure and args.round_path is None:
        parser.error("--structure requires ROUND_PATH")

    rounds_dir = args.rounds_dir or settings.resolve_rounds_dir()

    try:
        if args.list:
            print(format_round_table(RoundsRepository(rounds_dir).list_rounds()))
            return 0
        if args.structure:
            validate_round_structure(args.round_path)
            print(f"Round structure is valid: {args.round_path}")
            return 0
        if args.all:
            report = validate(rounds_dir)
        else:
            report = validate_round(args.round_path)
    except (OSError, RoundStructureError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(format_validation_report(report))
    return 0 if report.passed else 1


__all__ = [
    "RepositoryValidator",
    "RoundStructureError",
    "main",
    "schema_messages",
    "validate",
    "validate_round",
    "validate_round_structure",
]


if __name__ == "__main__":  # pragma: no cover - module executable
    raise SystemExit(main())
