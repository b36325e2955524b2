"""Grade-conditioned navigation over the question graph."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from schemas import Question

logger = logging.getLogger(__name__)

DEFAULT_FOLLOW_UP_KEY = "default"
MAX_HISTORY = 500


@dataclass
class NavigationState:
    """Current position plus the visited-id stack used for going back."""

    current_id: Optional[str] = None
    history: List[str] = field(default_factory=list)


def grade_key(grade: int | float) -> str:
    if isinstance(grade, float) and grade.is_integer():
        grade = int(grade)
    return str(grade)


class NavigationEngine:
    def __init__(self, max_history: int = MAX_HISTORY) -> None:
        if max_history <= 0:
            raise ValueError("max_history must be positive")
        self.max_history = int(max_history)

    def start(self, start_question_id: Optional[str]) -> NavigationState:
        return NavigationState(current_id=start_question_id, history=[])

    def visit(self, state: NavigationState, question_id: Optional[str]) -> bool:
        """Push ``question_id`` unless it is already on top of the stack."""

        if not question_id:
            return False
        if state.history and state.history[-1] == question_id:
            return False
        state.history.append(question_id)
        if len(state.history) > self.max_history:
            del state.history[: len(state.history) - self.max_history]
        return True

    @staticmethod
    def advance(question: Question, grade: int | float) -> Optional[str]:
        """Resolve the follow-up for ``grade``: exact key, then default, then terminal."""

        follow_ups = question.follow_ups
        key = grade_key(grade)
        if key in follow_ups:
            next_id = follow_ups[key]
        elif DEFAULT_FOLLOW_UP_KEY in follow_ups:
            next_id = follow_ups[DEFAULT_FOLLOW_UP_KEY]
        else:
            next_id = None
        logger.debug("Question %s graded %s -> %s", question.id, key, next_id)
        return next_id or None

    @staticmethod
    def back(state: NavigationState) -> Optional[str]:
        """Drop the current entry and return the one before it, if any."""

        if state.history:
            state.history.pop()
        if not state.history:
            return None
        return state.history[-1]
