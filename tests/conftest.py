"""Test configuration for the Hacker Jeopardy content tools."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import json
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import pytest


def write_json(path: Path, payload: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path


@pytest.fixture()
def make_question() -> Callable[..., dict[str, Any]]:
    """Factory for a valid question record with optional overrides.

    Passing ``None`` for a field removes it from the record.
    """

    def _factory(**overrides: Any) -> dict[str, Any]:
        question: dict[str, Any] = {
            "answer": "This language uses significant indentation.",
            "question": "What is Python?",
            "available": True,
            "value": 300,
            "cat": "Programming",
        }
        for key, value in overrides.items():
            if value is None:
                question.pop(key, None)
            else:
                question[key] = value
        return question

    return _factory


@pytest.fixture()
def rounds_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "rounds"
    directory.mkdir()
    return directory


@pytest.fixture()
def make_round(
    rounds_dir: Path, make_question: Callable[..., dict[str, Any]]
) -> Callable[..., Path]:
    """Factory writing a round with ``round.json`` and one ``cat.json`` per category."""

    def _factory(
        round_id: str = "demo_round",
        *,
        categories: Mapping[str, Sequence[Any]] | None = None,
        round_data: Mapping[str, Any] | None = None,
    ) -> Path:
        if categories is None:
            categories = {"Programming": [make_question()]}

        round_path = rounds_dir / round_id
        round_path.mkdir()
        payload = (
            dict(round_data)
            if round_data is not None
            else {"name": "Demo Round", "categories": list(categories)}
        )
        write_json(round_path / "round.json", payload)

        for name, questions in categories.items():
            write_json(
                round_path / name / "cat.json",
                {"name": name, "questions": list(questions)},
            )
        return round_path

    return _factory


@pytest.fixture(autouse=True)
def _clear_content_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for variable in (
        "HACKERJEOPARDY_ROUNDS_DIR",
        "HACKERJEOPARDY_MANIFEST_PATH",
        "HACKERJEOPARDY_LOG_LEVEL",
    ):
        monkeypatch.delenv(variable, raising=False)


__all__ = ["make_question", "make_round", "rounds_dir", "write_json"]
