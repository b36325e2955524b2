"""Lint a question-bank document for graph problems the engine tolerates silently."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Sequence

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from question_catalog import (
    Catalog,
    find_dangling_follow_ups,
    find_duplicate_ids,
    find_unreachable,
)


def build_report(document: Any) -> Dict[str, Any]:
    """Collect duplicate ids, dangling follow-ups and unreachable questions."""

    raw_questions = document.get("questions") if isinstance(document, dict) else None
    if not isinstance(raw_questions, list):
        raw_questions = []
    catalog = Catalog.from_document(document)
    start = catalog.start_question

    problems: List[str] = []
    if start is None:
        problems.append("meta.startQuestion is not set")
    elif start not in catalog:
        problems.append(f"meta.startQuestion '{start}' does not exist")

    duplicates = find_duplicate_ids(raw_questions)
    for question_id in duplicates:
        problems.append(f"duplicate question id '{question_id}' (later record wins)")

    dangling = find_dangling_follow_ups(catalog)
    for question_id, key, target in dangling:
        problems.append(f"'{question_id}' follow-up '{key}' points to missing '{target}'")

    return {
        "questions": len(catalog),
        "topics": catalog.topics(),
        "start_question": start,
        "duplicates": duplicates,
        "dangling": [list(edge) for edge in dangling],
        "unreachable": find_unreachable(catalog),
        "problems": problems,
    }


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--questions",
        type=str,
        default="questions.json",
        help="Path to the question bank JSON file (default: questions.json)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Also fail when some questions are unreachable from the start question.",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    path = Path(args.questions)
    if not path.exists():
        print(f"Question bank file not found: {path}", file=sys.stderr)
        return 2
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        print(f"Question bank {path} is not valid JSON: {exc}", file=sys.stderr)
        return 2

    report = build_report(document)
    print(json.dumps(report, indent=2, ensure_ascii=False))

    failures = list(report["problems"])
    if args.strict and report["unreachable"]:
        failures.append(f"unreachable questions: {', '.join(report['unreachable'])}")
    for problem in failures:
        print(problem, file=sys.stderr)
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
