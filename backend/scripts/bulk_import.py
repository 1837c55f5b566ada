"""Import lecture markdown and question-bank CSV files as programs.

Usage:
    python -m scripts.bulk_import [--dir imports/test] [--lectures-dir imports/lectures] [--reset]

Lectures come first: every ``*.md`` under the lectures directory becomes a
lecture titled after its file name, categorised by the folder holding it,
with ``<title>_確認問題.csv`` beside it stored as its quiz. Each CSV in the
tests directory then becomes a test or exam whose title, type, unlock
level and XP reward are derived from the file name. Files are processed
in name order and committed one by one, so a failing file never undoes
the files before it.
"""
from __future__ import annotations

import argparse
import logging
import re
import sys
import unicodedata
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence, TextIO

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import SessionLocal
from app.models.program import LearningHistory, Program, ProgramQuestion
from app.services.questions.importer import (
    DEFAULT_LECTURE_CATEGORY,
    LectureImporter,
    ProgramImporter,
    lecture_quiz_name,
)

logger = logging.getLogger(__name__)


@dataclass
class BulkImportReport:
    imported: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bulk import lecture and question-bank files as programs")
    parser.add_argument(
        "--dir",
        dest="directory",
        default=settings.bulk_import_dir,
        help="Directory containing the CSV files (default: %(default)s)",
    )
    parser.add_argument(
        "--lectures-dir",
        dest="lectures_directory",
        default=settings.lecture_import_dir,
        help="Directory tree of lecture markdown files, skipped when missing (default: %(default)s)",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Delete existing programs, their question links and learning history first",
    )
    return parser.parse_args(argv)


def list_csv_files(directory: Path) -> list[Path]:
    files = [path for path in directory.iterdir() if path.is_file() and path.suffix.lower() == ".csv"]
    return sorted(files, key=lambda path: unicodedata.normalize("NFC", path.name))


def _natural_key(name: str) -> list[int | str]:
    # "2_intro" sorts before "10_advanced"
    parts = re.split(r"(\d+)", unicodedata.normalize("NFC", name))
    return [int(part) if part.isdigit() else part.casefold() for part in parts]


def list_lecture_files(
    directory: Path,
    category: str = DEFAULT_LECTURE_CATEGORY,
) -> list[tuple[Path, str]]:
    """Walk ``directory`` depth first, pairing each markdown file with its category.

    Files directly under the root fall into the default category; anything
    deeper is filed under the name of the folder that contains it.
    """

    found: list[tuple[Path, str]] = []
    for path in sorted(directory.iterdir(), key=lambda item: _natural_key(item.name)):
        if path.is_dir():
            found.extend(list_lecture_files(path, unicodedata.normalize("NFC", path.name)))
        elif path.is_file() and path.suffix.lower() == ".md":
            found.append((path, category))
    return found


def import_lectures(session: Session, directory: Path, report: BulkImportReport, out: TextIO) -> None:
    importer = LectureImporter(session)
    for path, category in list_lecture_files(directory):
        name = unicodedata.normalize("NFC", path.name)
        label = unicodedata.normalize("NFC", path.relative_to(directory).as_posix())
        quiz_path = path.with_name(lecture_quiz_name(path.stem))
        try:
            quiz_content = quiz_path.read_bytes() if quiz_path.is_file() else None
            result = importer.import_lecture_file(
                name,
                path.read_bytes(),
                category=category,
                quiz_content=quiz_content,
            )
        except Exception as exc:
            session.rollback()
            logger.exception("Lecture import failed: file=%s", label)
            report.failed.append(label)
            print(f"[ERROR] {label}: {exc}", file=out)
            continue

        if result.skipped:
            session.rollback()
            report.skipped.append(label)
            print(f"[SKIP] {label}: {'; '.join(result.errors)}", file=out)
            continue

        session.commit()
        report.imported.append(label)
        quiz = f"{result.quiz_questions} quiz questions" if result.quiz_questions else "no quiz"
        print(f"[OK] {label} -> {result.title} (lecture, {result.category}, {quiz})", file=out)


def reset_programs(session: Session) -> None:
    session.execute(delete(LearningHistory))
    session.execute(delete(ProgramQuestion))
    session.execute(delete(Program))
    session.commit()


def import_directory(
    session: Session,
    directory: Path,
    *,
    lectures_directory: Path | None = None,
    reset: bool = False,
    out: TextIO | None = None,
) -> BulkImportReport:
    out = out or sys.stdout
    report = BulkImportReport()

    if reset:
        reset_programs(session)
        print("[OK] Cleared programs, question links and learning history", file=out)

    if lectures_directory is not None:
        if lectures_directory.is_dir():
            import_lectures(session, lectures_directory, report, out)
        else:
            print(f"[SKIP] lectures directory not found: {lectures_directory}", file=out)

    importer = ProgramImporter(session)
    for path in list_csv_files(directory):
        name = unicodedata.normalize("NFC", path.name)
        try:
            result = importer.import_program_file(name, path.read_bytes())
        except Exception as exc:
            session.rollback()
            logger.exception("Program import failed: file=%s", name)
            report.failed.append(name)
            print(f"[ERROR] {name}: {exc}", file=out)
            continue

        if result.skipped:
            session.rollback()
            report.skipped.append(name)
            print(f"[SKIP] {name}: {'; '.join(result.errors)}", file=out)
            continue

        session.commit()
        report.imported.append(name)
        print(
            f"[OK] {name} -> {result.title} ({result.program_type}, level {result.level_requirement}, "
            f"{result.xp_reward} XP, {result.questions_imported} questions)",
            file=out,
        )

    print(
        f"Done: {len(report.imported)} imported, {len(report.skipped)} skipped, {len(report.failed)} failed",
        file=out,
    )
    return report


def main(argv: Sequence[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)

    directory = Path(args.directory)
    if not directory.is_dir():
        print(f"[ERROR] directory not found: {directory}", file=sys.stderr)
        return 1

    with SessionLocal() as session:
        report = import_directory(
            session,
            directory,
            lectures_directory=Path(args.lectures_directory),
            reset=args.reset,
        )
    return report.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
