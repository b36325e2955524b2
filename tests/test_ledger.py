from engines.ledger import ResponseLedger
from schemas import Response


def _response(question_id: str, grade=3, notes: str = "") -> Response:
    return Response(question_id=question_id, grade=grade, notes=notes, topic="T")


def test_upsert_appends_new_questions_in_order():
    ledger = ResponseLedger()
    assert ledger.upsert(_response("Q1")) == 0
    assert ledger.upsert(_response("Q2")) == 1
    assert [r.question_id for r in ledger.all()] == ["Q1", "Q2"]


def test_upsert_replaces_in_place():
    ledger = ResponseLedger()
    for question_id in ("Q1", "Q2", "Q3"):
        ledger.upsert(_response(question_id, grade=1, notes="first"))

    index = ledger.upsert(_response("Q2", grade=4, notes="second"))

    assert index == 1
    assert len(ledger) == 3
    assert [r.question_id for r in ledger] == ["Q1", "Q2", "Q3"]
    replaced = ledger.find_by_question("Q2")
    assert replaced.grade == 4
    assert replaced.notes == "second"
    assert ledger.find_by_question("Q1").notes == "first"


def test_find_and_clear():
    ledger = ResponseLedger([_response("Q1")])
    assert ledger.find_by_question("missing") is None
    ledger.clear()
    assert len(ledger) == 0
    assert ledger.all() == []


def test_from_raw_runs_upgrade():
    ledger = ResponseLedger.from_raw([{"id": "Q1", "rating": "strong"}, {"id": "Q1", "grade": 2}])
    assert len(ledger) == 1
    assert ledger.find_by_question("Q1").grade == 2
    assert ResponseLedger.upgrade([{"id": "Q5", "rating": "developing"}])[0].grade == 2


def test_to_records_uses_storage_keys():
    ledger = ResponseLedger([_response("Q1", grade=2)])
    record = ledger.to_records()[0]
    assert record["questionId"] == "Q1"
    assert record["grade"] == 2
    assert "question_id" not in record


def test_responses_without_question_id_are_each_kept():
    ledger = ResponseLedger()
    assert ledger.upsert(Response(grade=4, notes="first")) == 0
    assert ledger.upsert(Response(grade=2, notes="second")) == 1
    ledger.upsert(_response("Q1"))

    assert len(ledger) == 3
    assert [r.notes for r in ledger.all()[:2]] == ["first", "second"]
    assert ledger.find_by_question(None) is None
