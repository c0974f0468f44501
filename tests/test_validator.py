from __future__ import annotations

from pathlib import Path

import pytest

from conftest import write_json
from hackerjeopardy.models import Severity, ValidationReport
from hackerjeopardy.repository import RoundsDirectoryNotFound
from hackerjeopardy.validator import (
    RoundStructureError,
    validate,
    validate_round,
    validate_round_structure,
)

QUESTION_SCOPE = "demo_round/Programming/questions[0]"


def _messages(report: ValidationReport, severity: Severity, scope: str) -> list[str]:
    issues = report.errors if severity is Severity.ERROR else report.warnings
    return [issue.message for issue in issues if issue.scope == scope]


def test_well_formed_round_has_no_issues(make_round) -> None:
    report = validate_round(make_round())

    assert report.errors == []
    assert report.warnings == []
    assert report.passed


def test_value_off_the_ladder_is_a_single_error(make_round, make_question) -> None:
    round_path = make_round(categories={"Programming": [make_question(value=350)]})

    report = validate_round(round_path)

    assert len(report.errors) == 1
    assert report.errors[0].scope == QUESTION_SCOPE
    assert "100, 200, 300, 400, or 500" in report.errors[0].message
    assert not report.passed


@pytest.mark.parametrize("value", ["300", -100, 0, True])
def test_value_must_be_a_positive_number(make_round, make_question, value) -> None:
    round_path = make_round(categories={"Programming": [make_question(value=value)]})

    report = validate_round(round_path)

    assert [issue.message for issue in report.errors] == [
        "'value' must be a positive number"
    ]


def test_float_value_on_the_ladder_is_accepted(make_round, make_question) -> None:
    round_path = make_round(categories={"Programming": [make_question(value=200.0)]})

    assert validate_round(round_path).passed


def test_question_needs_clue_or_image(make_round, make_question) -> None:
    round_path = make_round(
        categories={"Programming": [make_question(answer=None, value=999)]}
    )

    report = validate_round(round_path)
    errors = _messages(report, Severity.ERROR, QUESTION_SCOPE)

    assert [message for message in errors if "must have either" in message] == [
        "Question must have either clue ('answer') or image"
    ]
    assert len(errors) == 2


def test_image_only_question_is_valid(make_round, make_question) -> None:
    round_path = make_round(
        categories={"Programming": [make_question(answer=None, image="diagram.png")]}
    )
    (round_path / "Programming" / "diagram.png").write_bytes(b"png")

    report = validate_round(round_path)

    assert report.errors == []
    assert report.warnings == []


def test_missing_image_is_one_error(make_round, make_question) -> None:
    round_path = make_round(
        categories={"Programming": [make_question(image="diagram.png")]}
    )

    report = validate_round(round_path)

    assert len(report.errors) == 1
    assert report.errors[0].message.startswith(
        'Referenced image file does not exist: "diagram.png"'
    )
    assert report.warnings == []


def test_image_in_round_root_adds_misplacement_warning(
    make_round, make_question
) -> None:
    round_path = make_round(
        categories={"Programming": [make_question(image="diagram.png")]}
    )
    (round_path / "diagram.png").write_bytes(b"png")

    report = validate_round(round_path)

    question_errors = _messages(report, Severity.ERROR, QUESTION_SCOPE)
    assert len(question_errors) == 1
    assert "does not exist" in question_errors[0]
    assert _messages(report, Severity.WARNING, QUESTION_SCOPE) == [
        'Image "diagram.png" exists in round root directory but should be in '
        "category directory (Programming/)"
    ]
    assert _messages(report, Severity.ERROR, "demo_round") == [
        'Image file "diagram.png" found in round root directory. '
        "Images must be placed in category subdirectories."
    ]


def test_image_must_be_a_bare_filename(make_round, make_question) -> None:
    round_path = make_round(
        categories={"Programming": [make_question(image="images/diagram.png")]}
    )

    report = validate_round(round_path)

    assert [issue.message for issue in report.errors] == [
        "Image path must be filename only, no directory separators: "
        '"images/diagram.png"'
    ]


def test_question_field_types_are_checked(make_round, make_question) -> None:
    bad = make_question(question=None, answer=42, available="yes", cat=None)
    round_path = make_round(categories={"Programming": [bad]})

    report = validate_round(round_path)

    assert _messages(report, Severity.ERROR, QUESTION_SCOPE) == [
        "Missing or invalid 'question' field",
        "'answer' field must be a string",
        "'available' field must be a boolean",
        "Missing or invalid 'cat' field",
    ]


def test_cat_must_match_enclosing_category(make_round, make_question) -> None:
    round_path = make_round(categories={"Programming": [make_question(cat="Web")]})

    report = validate_round(round_path)

    assert [issue.message for issue in report.errors] == [
        "'cat' field \"Web\" does not match category \"Programming\""
    ]


def test_non_object_question_is_reported(make_round) -> None:
    round_path = make_round(categories={"Programming": ["What is Python?"]})

    report = validate_round(round_path)

    assert _messages(report, Severity.ERROR, QUESTION_SCOPE) == [
        "Question must be a JSON object"
    ]


def test_round_metadata_rules(make_round) -> None:
    round_path = make_round(
        round_data={"categories": [], "theme": "retro", "author": "Ada"},
        categories={},
    )

    report = validate_round(round_path)

    assert [issue.message for issue in report.errors] == [
        "Missing required field 'name' in round.json"
    ]
    assert [issue.message for issue in report.warnings] == [
        "Round has no categories",
        "Unknown field 'theme' in round.json",
    ]


def test_categories_must_be_an_array_of_strings(rounds_dir: Path) -> None:
    round_path = rounds_dir / "odd_round"
    write_json(round_path / "round.json", {"name": "Odd", "categories": "Programming"})

    report = validate_round(round_path)
    assert [issue.message for issue in report.errors] == [
        "'categories' must be an array"
    ]

    write_json(round_path / "round.json", {"name": "Odd", "categories": [1, 2]})
    report = validate_round(round_path)
    assert [issue.message for issue in report.errors] == [
        "'categories' entries must be strings"
    ]


def test_missing_round_json_skips_the_round(rounds_dir: Path) -> None:
    round_path = rounds_dir / "empty_round"
    (round_path / "Programming").mkdir(parents=True)

    report = validate_round(round_path)

    assert [str(issue) for issue in report.errors] == [
        "empty_round: Missing round.json file"
    ]


def test_invalid_round_json_is_reported(rounds_dir: Path) -> None:
    round_path = rounds_dir / "bad_json"
    round_path.mkdir()
    (round_path / "round.json").write_text('{"name": ', encoding="utf-8")

    report = validate_round(round_path)

    assert len(report.errors) == 1
    assert report.errors[0].message.startswith("Invalid JSON in round.json - ")


def test_category_problems_do_not_stop_siblings(make_round, make_question) -> None:
    round_path = make_round(
        round_data={
            "name": "Demo Round",
            "categories": ["Missing", "NoRecord", "BadRecord", "Programming"],
        },
        categories={"Programming": [make_question(value=50)]},
    )
    (round_path / "NoRecord").mkdir()
    (round_path / "BadRecord").mkdir()
    (round_path / "BadRecord" / "cat.json").write_text("oops", encoding="utf-8")

    report = validate_round(round_path)
    scopes = [issue.scope for issue in report.errors]

    assert scopes == [
        "demo_round/Missing",
        "demo_round/NoRecord",
        "demo_round/BadRecord",
        QUESTION_SCOPE,
    ]
    assert report.errors[0].message == "Category directory does not exist"
    assert report.errors[1].message == "Missing cat.json file"
    assert report.errors[2].message.startswith("Invalid JSON in cat.json - ")


def test_category_record_rules(make_round) -> None:
    round_path = make_round(categories={"Programming": []})

    report = validate_round(round_path)
    assert report.errors == []
    assert [str(issue) for issue in report.warnings] == [
        "demo_round/Programming: Category has no questions"
    ]

    write_json(round_path / "Programming" / "cat.json", {"questions": {}})
    report = validate_round(round_path)
    assert [issue.message for issue in report.errors] == [
        "Missing required field 'name'",
        "'questions' must be an array",
    ]


def test_validate_visits_every_round(make_round, make_question) -> None:
    make_round("first", categories={"Programming": [make_question(value=1)]})
    make_round("second", categories={"Programming": [make_question(available=1)]})
    third = make_round("third")
    root = third.parent

    report = validate(root)

    assert [issue.scope for issue in report.errors] == [
        "first/Programming/questions[0]",
        "second/Programming/questions[0]",
    ]
    assert report.errors == validate(root).errors


def test_missing_rounds_directory_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(RoundsDirectoryNotFound):
        validate(tmp_path / "missing")
    with pytest.raises(RoundsDirectoryNotFound):
        validate_round(tmp_path / "missing_round")


def test_structure_check_rejects_rounds_without_categories(make_round) -> None:
    round_path = make_round(
        round_data={"name": "Empty", "categories": []}, categories={}
    )

    with pytest.raises(RoundStructureError, match="at least one category"):
        validate_round_structure(round_path)

    lenient = validate_round(round_path)
    assert lenient.passed
    assert [issue.message for issue in lenient.warnings] == ["Round has no categories"]


def test_structure_check_stops_at_first_problem(make_round, make_question) -> None:
    round_path = make_round(
        categories={
            "Programming": [make_question(), make_question(value=250, available=None)]
        }
    )

    with pytest.raises(RoundStructureError) as excinfo:
        validate_round_structure(round_path)

    assert str(excinfo.value) == "Programming[1]: 'available' field must be a boolean"


def test_structure_check_reports_missing_category_directory(make_round) -> None:
    round_path = make_round(
        round_data={"name": "Demo", "categories": ["Ghost"]}, categories={}
    )

    with pytest.raises(RoundStructureError, match='Category directory "Ghost"'):
        validate_round_structure(round_path)


def test_structure_check_returns_round_record(make_round) -> None:
    record = validate_round_structure(make_round())

    assert record.name == "Demo Round"
    assert record.categories == ["Programming"]


def test_empty_answer_without_image_needs_clue(make_round, make_question) -> None:
    round_path = make_round(categories={"Programming": [make_question(answer="")]})

    report = validate_round(round_path)

    assert [str(issue) for issue in report.errors] == [
        f"{QUESTION_SCOPE}: Question must have either clue ('answer') or image"
    ]


@pytest.mark.parametrize("category", ["", "..", "../other/Programming"])
def test_category_names_must_stay_inside_the_round(
    make_round, rounds_dir: Path, make_question, category: str
) -> None:
    outside = rounds_dir / "other"
    write_json(
        outside / "Programming" / "cat.json",
        {"name": "Programming", "questions": [make_question(value=1)]},
    )
    round_path = make_round(
        round_data={"name": "Demo", "categories": ["Programming", category]}
    )

    report = validate_round(round_path)

    assert [str(issue) for issue in report.errors] == [
        f'demo_round: Category name must be a plain directory name: "{category}"'
    ]


def test_absolute_category_name_is_not_followed(
    make_round, tmp_path: Path, make_question
) -> None:
    outside = tmp_path / "elsewhere" / "Programming"
    write_json(
        outside / "cat.json",
        {"name": "Programming", "questions": [make_question(value=1)]},
    )
    round_path = make_round(
        round_data={"name": "Demo", "categories": ["Programming", str(outside)]}
    )

    report = validate_round(round_path)

    assert [issue.scope for issue in report.errors] == ["demo_round"]
    assert "plain directory name" in report.errors[0].message


@pytest.mark.parametrize("category", ["", "..", "/etc"])
def test_structure_check_rejects_unsafe_category_names(
    make_round, category: str
) -> None:
    round_path = make_round(
        round_data={"name": "Demo", "categories": ["Programming", category]}
    )

    with pytest.raises(RoundStructureError, match="plain directory name"):
        validate_round_structure(round_path)
