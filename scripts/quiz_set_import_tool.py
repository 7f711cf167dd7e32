from __future__ import annotations

import argparse
import asyncio
import csv
from datetime import datetime, timezone
from pathlib import Path

from livequiz.db.session import SessionLocal
from livequiz.game.live.constants import ANSWER_LETTERS
from livequiz.game.questions.authoring import create_quiz_set
from livequiz.game.questions.types import QuestionDraft

REQUIRED_COLUMNS = {
    "question",
    "choice_a",
    "choice_b",
    "choice_c",
    "choice_d",
    "correct_letter",
}


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import a CSV file as one quiz set.")
    parser.add_argument("csv_path", type=Path)
    parser.add_argument("--title", default="")
    parser.add_argument("--quiz-set-id", default=None)
    parser.add_argument("--created-by", default=None)
    parser.add_argument("--dry-run", action="store_true")
    return parser.parse_args()


def _parse_time_limit(raw_value: str | None, *, location: str) -> int | None:
    value = (raw_value or "").strip()
    if not value:
        return None
    if not value.isdigit() or int(value) <= 0:
        raise ValueError(f"{location}: invalid time_limit_ms={value!r}")
    return int(value)


def _read_drafts(path: Path) -> list[QuestionDraft]:
    with path.open("r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle)
        missing = sorted(REQUIRED_COLUMNS - set(reader.fieldnames or []))
        if missing:
            raise ValueError(f"{path.name}: missing required columns: {', '.join(missing)}")
        rows = [dict(row) for row in reader]

    drafts: list[QuestionDraft] = []
    for row_index, row in enumerate(rows, start=2):
        location = f"{path.name}:{row_index}"
        question_text = (row.get("question") or "").strip()
        if not question_text:
            raise ValueError(f"{location}: empty question")

        choices = tuple(
            (row.get(f"choice_{letter.lower()}") or "").strip() for letter in ANSWER_LETTERS
        )
        if not all(choices):
            raise ValueError(f"{location}: all choices must be non-empty")

        correct_letter = (row.get("correct_letter") or "").strip().upper()
        if correct_letter not in ANSWER_LETTERS:
            raise ValueError(f"{location}: invalid correct_letter={correct_letter!r}")

        drafts.append(
            QuestionDraft(
                text=question_text,
                choices=choices,  # type: ignore[arg-type]
                correct_letter=correct_letter,
                time_limit_ms=_parse_time_limit(row.get("time_limit_ms"), location=location),
            )
        )
    if not drafts:
        raise ValueError(f"{path.name}: no questions found")
    return drafts


async def _run() -> int:
    args = _parse_args()
    drafts = _read_drafts(args.csv_path)
    title = args.title.strip() or args.csv_path.stem

    quiz_set_id = args.quiz_set_id or "-"
    if not args.dry_run:
        async with SessionLocal.begin() as session:
            quiz_set_id = await create_quiz_set(
                session,
                title=title,
                questions=drafts,
                now_utc=datetime.now(timezone.utc),
                created_by=args.created_by,
                quiz_set_id=args.quiz_set_id,
            )

    print(  # noqa: T201
        "quiz_set_import "
        f"quiz_set_id={quiz_set_id} "
        f"questions={len(drafts)} "
        f"dry_run={args.dry_run}"
    )
    return 0


def main() -> int:
    return asyncio.run(_run())


if __name__ == "__main__":
    raise SystemExit(main())
