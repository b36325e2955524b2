import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def temp_db(monkeypatch, tmp_path):
    import db

    db_path = tmp_path / "test.db"
    monkeypatch.setenv("DB_PATH", str(db_path))
    db.reset_pool(str(db_path))
    db.init()
    yield str(db_path)
    db._pool.close_all()


@pytest.fixture
def bank_document():
    return {
        "meta": {"startQuestion": "Q1", "title": "Sample"},
        "questions": [
            {
                "id": "Q1",
                "prompt": "Describe a REST API you designed.",
                "category": "Design",
                "difficulty": "medium",
                "followUps": {"3": "Q2", "4": "Q2", "default": "Q3"},
                "scoreDescriptors": {"1": "Vague", "3": "Solid", "4": "Excellent"},
            },
            {
                "id": "Q2",
                "prompt": "How would you version it?",
                "category": "Design",
                "difficulty": "hard",
                "followUps": {"default": "Q4"},
                "scoreDescriptors": {},
            },
            {
                "id": "Q3",
                "prompt": "What is an HTTP status code?",
                "category": "Basics",
                "difficulty": "easy",
                "followUps": {"default": "Q4"},
            },
            {
                "id": "Q4",
                "prompt": "Which SQL isolation level do you default to?",
                "category": "Databases",
                "difficulty": "medium",
                "followUps": {},
            },
        ],
    }


@pytest.fixture
def catalog(bank_document):
    from question_catalog import Catalog

    return Catalog.from_document(bank_document)
