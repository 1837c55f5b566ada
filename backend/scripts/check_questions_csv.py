"""Validate question CSV/XLSX files without touching the database.

Usage:
    python -m scripts.check_questions_csv <file> [<file> ...]
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence, TextIO

from app.services.questions.csv_parser import parse_question_upload


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate question import files")
    parser.add_argument("files", nargs="+", help="CSV or XLSX files to validate")
    return parser.parse_args(argv)


def check_file(path: Path, *, out: TextIO) -> bool:
    try:
        content = path.read_bytes()
    except OSError as exc:
        print(f"[ERROR] {path}: {exc}", file=out)
        return False

    result = parse_question_upload(path.name, content)
    if result.ok:
        print(f"[OK] {path}: {len(result.data)} question(s)", file=out)
        return True

    print(f"[ERROR] {path}: {len(result.issues)} problem(s), {len(result.data)} valid row(s)", file=out)
    for message in result.errors:
        print(f"  {message}", file=out)
    return False


def main(argv: Sequence[str] | None = None, out: TextIO | None = None) -> int:
    args = parse_args(argv)
    out = out or sys.stdout
    results = [check_file(Path(name), out=out) for name in args.files]
    return 0 if all(results) else 1


if __name__ == "__main__":
    raise SystemExit(main())
