import pytest

import env_validation
from env_validation import EnvironmentError, get_env_bool, validate_environment

_VARS = ("DB_PATH", "QUESTION_BANK_PATH", "SESSION_SLOT", "INTERVIEW_PERSISTENCE", "GRADE_MIN", "GRADE_MAX")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in _VARS:
        # setenv first so the values validate_environment writes are undone too
        monkeypatch.setenv(var, "placeholder")
        monkeypatch.delenv(var)


def test_defaults_are_applied():
    settings = validate_environment()
    assert settings.db_path == "data.db"
    assert settings.question_bank_path == "questions.json"
    assert settings.session_slot == env_validation.DEFAULTS["SESSION_SLOT"]
    assert settings.persistence_enabled is True
    assert (settings.grade_min, settings.grade_max) == (0, 4)


def test_overrides_and_persistence_toggle(monkeypatch):
    monkeypatch.setenv("GRADE_MAX", "5")
    monkeypatch.setenv("INTERVIEW_PERSISTENCE", "off")
    settings = validate_environment()
    assert settings.grade_max == 5
    assert settings.persistence_enabled is False


def test_invalid_grade_range(monkeypatch):
    monkeypatch.setenv("GRADE_MIN", "3")
    monkeypatch.setenv("GRADE_MAX", "1")
    with pytest.raises(EnvironmentError):
        validate_environment()

    monkeypatch.setenv("GRADE_MIN", "low")
    with pytest.raises(EnvironmentError):
        validate_environment()


def test_get_env_bool(monkeypatch):
    assert get_env_bool("FEATURE_X", default=True) is True
    monkeypatch.setenv("FEATURE_X", "Yes")
    assert get_env_bool("FEATURE_X") is True
    monkeypatch.setenv("FEATURE_X", "0")
    assert get_env_bool("FEATURE_X", default=True) is False
