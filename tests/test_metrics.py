import pytest

from engines.metrics import (
    CONSISTENCY_WINDOW,
    HIGHLY_CONSISTENT,
    INSUFFICIENT_DATA,
    MODERATELY_CONSISTENT,
    VARIABLE,
    classify_spread,
    consistency,
    summarize,
)
from schemas import Response


def test_topic_and_overall_averages():
    metrics = summarize(
        [
            {"topic": "A", "grade": 4},
            {"topic": "A", "grade": 2},
            {"topic": "B", "grade": 3},
        ]
    )
    assert metrics.total_questions == 3
    assert metrics.average_score == pytest.approx(3.0)
    assert [(t.topic, t.average, t.count) for t in metrics.topic_averages] == [("A", 3.0, 2), ("B", 3.0, 1)]


def test_mixed_legacy_and_fresh_entries():
    metrics = summarize(
        [
            Response(question_id="Q1", grade=2, topic="Z"),
            {"id": "Q2", "rating": "strong", "category": "M"},
            {"id": "Q3", "rating": "unknown"},
            {"id": "Q4", "grade": 1},
        ]
    )
    assert metrics.answered_questions == 4
    assert metrics.total_questions == 3
    assert metrics.average_score == pytest.approx(7 / 3)
    assert [t.topic for t in metrics.topic_averages] == ["M", "Uncategorized", "Z"]


def test_empty_ledger():
    metrics = summarize([])
    assert metrics.total_questions == 0
    assert metrics.average_score is None
    assert metrics.topic_averages == []
    assert metrics.consistency.label == INSUFFICIENT_DATA
    assert metrics.consistency.std_dev is None


def test_consistency_labels():
    steady = consistency([4, 4, 4, 4, 4])
    assert steady.std_dev == 0
    assert steady.label == HIGHLY_CONSISTENT
    assert steady.window_size == CONSISTENCY_WINDOW

    swinging = consistency([4, 0, 4, 0, 4])
    assert swinging.std_dev == pytest.approx(1.9596, abs=1e-4)
    assert swinging.label == VARIABLE

    assert classify_spread(0.5) == MODERATELY_CONSISTENT
    assert classify_spread(0.8) == VARIABLE


def test_consistency_uses_latest_window_only():
    report = consistency([0, 0, 0, 4, 4, 4, 4, 4])
    assert report.sample_size == 5
    assert report.label == HIGHLY_CONSISTENT


def test_single_graded_entry_is_insufficient():
    metrics = summarize([{"questionId": "Q1", "grade": 3}, {"questionId": "Q2", "grade": None}])
    assert metrics.consistency.label == INSUFFICIENT_DATA
    assert metrics.consistency.sample_size == 1


def test_metrics_serialise_with_camel_case_keys():
    payload = summarize([{"grade": 1}, {"grade": 3}]).model_dump(by_alias=True)
    assert payload["averageScore"] == 2
    assert payload["consistency"]["windowSize"] == 5
    assert payload["consistency"]["stdDev"] == 1
