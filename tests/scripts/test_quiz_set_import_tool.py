from __future__ import annotations

from pathlib import Path

import pytest

from scripts.quiz_set_import_tool import _read_drafts

HEADER = "question,choice_a,choice_b,choice_c,choice_d,correct_letter,time_limit_ms\n"


def _write_csv(tmp_path: Path, body: str, *, header: str = HEADER) -> Path:
    path = tmp_path / "capitals.csv"
    path.write_text(header + body, encoding="utf-8")
    return path


def test_read_drafts_parses_rows_in_order(tmp_path: Path) -> None:
    path = _write_csv(
        tmp_path,
        "Capital of France?,Paris,Rome,Berlin,Madrid,a,20000\n"
        "Capital of Italy?,Paris,Rome,Berlin,Madrid,B,\n",
    )

    drafts = _read_drafts(path)

    assert [draft.text for draft in drafts] == ["Capital of France?", "Capital of Italy?"]
    assert drafts[0].choices == ("Paris", "Rome", "Berlin", "Madrid")
    assert drafts[0].correct_letter == "A"
    assert drafts[0].time_limit_ms == 20000
    assert drafts[1].correct_letter == "B"
    assert drafts[1].time_limit_ms is None


def test_read_drafts_rejects_missing_columns(tmp_path: Path) -> None:
    path = _write_csv(tmp_path, "Q?,a,b\n", header="question,choice_a,choice_b\n")

    with pytest.raises(ValueError, match="missing required columns"):
        _read_drafts(path)


def test_read_drafts_rejects_invalid_correct_letter(tmp_path: Path) -> None:
    path = _write_csv(tmp_path, "Q?,a,b,c,d,E,\n")

    with pytest.raises(ValueError, match="invalid correct_letter"):
        _read_drafts(path)


def test_read_drafts_rejects_empty_choice(tmp_path: Path) -> None:
    path = _write_csv(tmp_path, "Q?,a,,c,d,A,\n")

    with pytest.raises(ValueError, match="all choices must be non-empty"):
        _read_drafts(path)


def test_read_drafts_rejects_non_positive_time_limit(tmp_path: Path) -> None:
    path = _write_csv(tmp_path, "Q?,a,b,c,d,A,0\n")

    with pytest.raises(ValueError, match="invalid time_limit_ms"):
        _read_drafts(path)


def test_read_drafts_rejects_empty_file(tmp_path: Path) -> None:
    path = _write_csv(tmp_path, "")

    with pytest.raises(ValueError, match="no questions found"):
        _read_drafts(path)
