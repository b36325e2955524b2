"""Read-only question catalog built from a question-bank document."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from schemas import CatalogMeta, Question

logger = logging.getLogger(__name__)


class CatalogLoadError(ValueError):
    """Raised when a question-bank file cannot be parsed."""


class Catalog:
    """Immutable id -> Question lookup plus the derived topic list."""

    def __init__(self, questions: Mapping[str, Question], meta: Optional[CatalogMeta] = None) -> None:
        self._questions: Dict[str, Question] = dict(questions)
        self._meta = meta or CatalogMeta()
        self._topics = sorted({q.category for q in self._questions.values() if q.category})

    # ------------------------------------------------------------------
    # constructors
    # ------------------------------------------------------------------
    @classmethod
    def load(cls, questions: Iterable[Question], meta: Optional[CatalogMeta] = None) -> "Catalog":
        """Build a catalog; a repeated id overwrites the earlier record."""

        by_id: Dict[str, Question] = {}
        for question in questions:
            if question.id in by_id:
                logger.warning("Duplicate question id %s; later record wins", question.id)
            by_id[question.id] = question
        return cls(by_id, meta)

    @classmethod
    def from_document(cls, document: Any) -> "Catalog":
        if not isinstance(document, Mapping):
            logger.warning("Question bank root is not an object; using an empty catalog")
            return cls({})

        raw_meta = document.get("meta")
        meta = CatalogMeta()
        if isinstance(raw_meta, Mapping):
            try:
                meta = CatalogMeta.model_validate(dict(raw_meta))
            except ValidationError as exc:
                logger.warning("Ignoring malformed catalog meta: %s", exc)

        raw_questions = document.get("questions")
        if not isinstance(raw_questions, list):
            raw_questions = []

        return cls.load(_parse_questions(raw_questions), meta)

    @classmethod
    def from_file(cls, path: str | Path) -> "Catalog":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Question bank file not found: {path}")
        with path.open("r", encoding="utf-8") as fh:
            try:
                document = json.load(fh)
            except json.JSONDecodeError as exc:
                raise CatalogLoadError(f"Question bank {path} is not valid JSON: {exc}") from exc
            except UnicodeDecodeError as exc:
                raise CatalogLoadError(f"Question bank {path} is not UTF-8 text: {exc}") from exc
        catalog = cls.from_document(document)
        logger.info("Loaded %d questions across %d topics from %s", len(catalog), len(catalog.topics()), path)
        return catalog

    # ------------------------------------------------------------------
    # lookups
    # ------------------------------------------------------------------
    @property
    def meta(self) -> CatalogMeta:
        return self._meta

    @property
    def start_question(self) -> Optional[str]:
        return self._meta.start_question

    def get(self, question_id: Optional[str]) -> Optional[Question]:
        if question_id is None:
            return None
        return self._questions.get(question_id)

    def topics(self) -> List[str]:
        return list(self._topics)

    def questions(self) -> List[Question]:
        return list(self._questions.values())

    def __len__(self) -> int:
        return len(self._questions)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._questions

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions.values())


def _parse_questions(raw_questions: Sequence[Any]) -> List[Question]:
    questions: List[Question] = []
    for position, entry in enumerate(raw_questions):
        if not isinstance(entry, Mapping):
            logger.warning("Skipping non-object question at position %d", position)
            continue
        try:
            questions.append(Question.model_validate(dict(entry)))
        except ValidationError as exc:
            logger.warning("Skipping invalid question at position %d: %s", position, exc.errors()[0]["msg"])
    return questions


def find_duplicate_ids(raw_questions: Sequence[Any]) -> List[str]:
    """Return ids that appear more than once, in first-repeat order."""

    seen: set[str] = set()
    duplicates: List[str] = []
    for entry in raw_questions:
        if not isinstance(entry, Mapping) or entry.get("id") is None:
            continue
        question_id = str(entry["id"])
        if question_id in seen and question_id not in duplicates:
            duplicates.append(question_id)
        seen.add(question_id)
    return duplicates


def find_dangling_follow_ups(catalog: Catalog) -> List[tuple[str, str, str]]:
    """List ``(question_id, grade_key, target_id)`` edges pointing outside the catalog."""

    dangling: List[tuple[str, str, str]] = []
    for question in catalog:
        for key, target in question.follow_ups.items():
            if target not in catalog:
                dangling.append((question.id, key, target))
    return dangling


def find_unreachable(catalog: Catalog) -> List[str]:
    """Question ids not reachable from the start question through any follow-up."""

    start = catalog.start_question
    if start is None or start not in catalog:
        return sorted(q.id for q in catalog)

    reached = {start}
    frontier = [start]
    while frontier:
        question = catalog.get(frontier.pop())
        if question is None:
            continue
        for target in question.follow_ups.values():
            if target in catalog and target not in reached:
                reached.add(target)
                frontier.append(target)
    return sorted(q.id for q in catalog if q.id not in reached)
