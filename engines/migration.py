"""Migration chain for stored responses and session snapshots.

Stored sessions are not versioned explicitly. Older snapshots are recognised
by their field shape: responses keyed by ``id`` instead of ``questionId`` and
carrying a qualitative ``rating`` instead of a numeric ``grade``. Every step
below is a pure function so each can be exercised on its own, and running the
chain on already-current data is a no-op.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Sequence

from schemas import Response

logger = logging.getLogger(__name__)

LEGACY_RATING_GRADES: Dict[str, int] = {
    "developing": 2,
    "competent": 3,
    "strong": 4,
}

Shape = Literal["legacy", "current"]


def _as_number(value: Any) -> Optional[int | float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def extract_grade(record: Any) -> Optional[int | float]:
    """Resolve the numeric grade of a stored response.

    A parseable ``grade`` wins; otherwise a legacy ``rating`` label is mapped
    through :data:`LEGACY_RATING_GRADES`; otherwise the response is ungraded.
    """

    if isinstance(record, Response):
        return _as_number(record.grade)
    if not isinstance(record, Mapping):
        return None

    grade = _as_number(record.get("grade"))
    if grade is not None:
        return grade

    rating = record.get("rating")
    if rating:
        return LEGACY_RATING_GRADES.get(str(rating).lower())
    return None


def detect_shape(record: Mapping[str, Any]) -> Shape:
    if "rating" in record:
        return "legacy"
    if "questionId" not in record and "id" in record:
        return "legacy"
    return "current"


def normalize_response(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Rewrite one stored record into the current response shape."""

    normalized = {key: value for key, value in record.items() if key not in ("rating", "id")}
    question_id = record.get("questionId")
    if question_id is None:
        question_id = record.get("id")
    normalized["questionId"] = None if question_id is None else str(question_id)

    topic = record.get("topic")
    if topic is None:
        topic = record.get("category")
    normalized["topic"] = topic
    normalized["grade"] = extract_grade(record)
    return normalized


def upgrade_responses(raw_responses: Any) -> List[Response]:
    """Normalize a stored response list; non-object entries are dropped."""

    if not isinstance(raw_responses, (list, tuple)):
        return []

    upgraded: List[Response] = []
    legacy_count = 0
    for position, entry in enumerate(raw_responses):
        if isinstance(entry, Response):
            entry = entry.to_record()
        if not isinstance(entry, Mapping):
            logger.debug("Dropping non-object response at position %d", position)
            continue
        if detect_shape(entry) == "legacy":
            legacy_count += 1
        record = normalize_response(entry)
        upgraded.append(Response.model_validate(_scalar_fields(record)))

    if legacy_count:
        logger.info("Upgraded %d legacy response(s)", legacy_count)
    return upgraded


def _scalar_fields(record: Dict[str, Any]) -> Dict[str, Any]:
    # text fields written by older clients are not always strings
    cleaned = dict(record)
    for key in ("topic", "category", "prompt", "difficulty", "timestamp"):
        value = cleaned.get(key)
        if value is not None and not isinstance(value, str):
            cleaned[key] = str(value)
    return cleaned


def normalize_topic_filter(
    selected: Any,
    select_all: Any,
    known_topics: Sequence[str],
) -> tuple[List[str], bool]:
    if not isinstance(selected, list) or not all(isinstance(t, str) for t in selected):
        return list(known_topics), True
    if not isinstance(select_all, bool):
        return list(known_topics), True
    return list(selected), select_all


def normalize_history(raw_history: Any) -> List[str]:
    if not isinstance(raw_history, list):
        return []
    history: List[str] = []
    for entry in raw_history:
        if isinstance(entry, bool) or not isinstance(entry, (str, int, float)):
            continue
        entry = str(entry)
        if not entry:
            continue
        if history and history[-1] == entry:
            continue
        history.append(entry)
    return history


def normalize_snapshot(raw: Mapping[str, Any], known_topics: Iterable[str]) -> Dict[str, Any]:
    """Bring a stored snapshot mapping into the current shape."""

    topics = list(known_topics)
    selected, select_all = normalize_topic_filter(
        raw.get("selectedTopics"), raw.get("selectAllTopics"), topics
    )
    current_id = raw.get("currentId")
    if current_id is not None and not isinstance(current_id, str):
        current_id = str(current_id)
    meta = raw.get("meta")
    last_saved = raw.get("lastSavedAt")
    return {
        "meta": dict(meta) if isinstance(meta, Mapping) else None,
        "currentId": current_id or None,
        "history": normalize_history(raw.get("history")),
        "responses": upgrade_responses(raw.get("responses")),
        "selectedTopics": selected,
        "selectAllTopics": select_all,
        "lastSavedAt": last_saved if isinstance(last_saved, str) else None,
    }
