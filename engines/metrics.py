"""Summary statistics over the response ledger.

Everything here is recomputed from scratch for each summary request. The
consistency measure looks only at the most recent graded answers so that
late-session drift reflects current performance rather than the whole
session.
"""

from __future__ import annotations

import statistics
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from engines.migration import extract_grade
from schemas import ConsistencyReport, Metrics, Response, TopicAverage

CONSISTENCY_WINDOW = 5
MIN_CONSISTENCY_SAMPLES = 2
HIGHLY_CONSISTENT_BELOW = 0.4
MODERATELY_CONSISTENT_BELOW = 0.8
UNCATEGORIZED = "Uncategorized"

INSUFFICIENT_DATA = "insufficient data"
HIGHLY_CONSISTENT = "highly consistent"
MODERATELY_CONSISTENT = "moderately consistent"
VARIABLE = "variable"


def _field(entry: Any, name: str) -> Any:
    if isinstance(entry, Response):
        return getattr(entry, name, None)
    if isinstance(entry, Mapping):
        return entry.get(name)
    return None


def _topic_of(entry: Any) -> str:
    topic = _field(entry, "topic")
    if topic is None:
        topic = _field(entry, "category")
    if topic is None:
        return UNCATEGORIZED
    return str(topic)


def graded_entries(responses: Iterable[Any]) -> List[Tuple[Any, float]]:
    graded: List[Tuple[Any, float]] = []
    for entry in responses:
        grade = extract_grade(entry)
        if grade is not None:
            graded.append((entry, float(grade)))
    return graded


def classify_spread(std_dev: float) -> str:
    if std_dev < HIGHLY_CONSISTENT_BELOW:
        return HIGHLY_CONSISTENT
    if std_dev < MODERATELY_CONSISTENT_BELOW:
        return MODERATELY_CONSISTENT
    return VARIABLE


def consistency(grades: Sequence[float], window: int = CONSISTENCY_WINDOW) -> ConsistencyReport:
    recent = list(grades)[-window:] if window > 0 else []
    if len(recent) < MIN_CONSISTENCY_SAMPLES:
        return ConsistencyReport(
            label=INSUFFICIENT_DATA,
            std_dev=None,
            window_size=window,
            sample_size=len(recent),
        )
    spread = statistics.pstdev(recent)
    return ConsistencyReport(
        label=classify_spread(spread),
        std_dev=round(spread, 4),
        window_size=window,
        sample_size=len(recent),
    )


def topic_averages(graded: Sequence[Tuple[Any, float]]) -> List[TopicAverage]:
    buckets: Dict[str, List[float]] = defaultdict(list)
    for entry, grade in graded:
        buckets[_topic_of(entry)].append(grade)
    return [
        TopicAverage(topic=topic, average=statistics.fmean(values), count=len(values))
        for topic, values in sorted(buckets.items())
    ]


def summarize(responses: Iterable[Any]) -> Metrics:
    entries = list(responses)
    graded = graded_entries(entries)
    grades = [grade for _, grade in graded]
    return Metrics(
        total_questions=len(graded),
        answered_questions=len(entries),
        average_score=statistics.fmean(grades) if grades else None,
        consistency=consistency(grades),
        topic_averages=topic_averages(graded),
    )
