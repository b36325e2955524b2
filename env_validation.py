"""Environment variable validation and management."""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class EnvironmentError(Exception):
    """Raised when configuration environment variables are invalid."""
    pass


DEFAULTS = {
    "DB_PATH": "data.db",
    "QUESTION_BANK_PATH": "questions.json",
    "SESSION_SLOT": "adaptive-interview-session",
    "INTERVIEW_PERSISTENCE": "true",
    "GRADE_MIN": "0",
    "GRADE_MAX": "4",
}


@dataclass(frozen=True)
class Settings:
    db_path: str
    question_bank_path: str
    session_slot: str
    persistence_enabled: bool
    grade_min: int
    grade_max: int


def validate_environment() -> Settings:
    """Apply defaults, validate values and return the effective settings.

    Raises EnvironmentError if validation fails.
    """
    # Apply defaults before validation so dependent modules see consistent values.
    for var, value in DEFAULTS.items():
        if not os.getenv(var):
            os.environ[var] = value
            logger.info("Environment variable %s not set; using default '%s'", var, value)

    grade_min = _get_env_int("GRADE_MIN")
    grade_max = _get_env_int("GRADE_MAX")
    if grade_min > grade_max:
        raise EnvironmentError(f"GRADE_MIN ({grade_min}) must not exceed GRADE_MAX ({grade_max})")

    slot = os.environ["SESSION_SLOT"].strip()
    if not slot:
        raise EnvironmentError("SESSION_SLOT must not be blank")

    settings = Settings(
        db_path=os.environ["DB_PATH"],
        question_bank_path=os.environ["QUESTION_BANK_PATH"],
        session_slot=slot,
        persistence_enabled=get_env_bool("INTERVIEW_PERSISTENCE", default=True),
        grade_min=grade_min,
        grade_max=grade_max,
    )
    if not settings.persistence_enabled:
        logger.warning("Session persistence disabled; progress will not survive a restart")
    return settings


def _get_env_int(name: str) -> int:
    value = os.getenv(name, DEFAULTS[name])
    try:
        return int(value)
    except ValueError as exc:
        raise EnvironmentError(f"Invalid integer for {name}: {value}") from exc


def get_env_bool(name: str, default: bool = False) -> bool:
    """Get boolean value from environment variable."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on", "enabled"}
