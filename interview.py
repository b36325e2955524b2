"""Interview session: the trigger surface driven by the external UI.

An :class:`InterviewSession` owns the session state and response ledger for
one respondent. Each trigger runs synchronously and returns the view the UI
should show next. Triggers that cannot run raise :class:`InterviewError`
subclasses carrying a user-facing advisory and leave state untouched.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Union

from engines.ledger import ResponseLedger
from engines.metrics import summarize
from engines.navigation import NavigationEngine
from question_catalog import Catalog
from schemas import (
    IdleView,
    Metrics,
    Question,
    QuestionView,
    Response,
    ScoreDescriptor,
    SessionReport,
    SummaryView,
    TopicSelection,
)
from session_store import SessionState, SessionStore, now_iso

logger = logging.getLogger(__name__)

View = Union[QuestionView, SummaryView, IdleView]

NOT_READY_ADVISORY = "Questions are still loading. Try again in a moment."
NO_TOPIC_ADVISORY = "Select at least one topic or choose All Topics to begin."
NO_GRADE_ADVISORY = "Select a grade before continuing."
NO_SESSION_ADVISORY = "No saved session to resume."
NO_RESPONSES_ADVISORY = "No responses recorded yet."


class InterviewError(Exception):
    """Base class for rejected triggers; ``str(exc)`` is the advisory."""


class NotReadyError(InterviewError):
    """The question catalog has not finished loading."""


class ValidationFailure(InterviewError):
    """Required input was missing or out of range."""


def _capitalize(value: Optional[str]) -> str:
    if not value:
        return ""
    return value[:1].upper() + value[1:]


def _display_grade(grade: Optional[Union[int, float]]) -> Optional[Union[int, float]]:
    if isinstance(grade, float) and grade.is_integer():
        return int(grade)
    return grade


def build_descriptors(question: Question) -> List[ScoreDescriptor]:
    """Rubric descriptors sorted from highest grade down; non-numeric keys skipped."""

    descriptors: List[ScoreDescriptor] = []
    for key, text in question.score_descriptors.items():
        try:
            grade = int(key)
        except ValueError:
            continue
        descriptors.append(ScoreDescriptor(grade=grade, description=text))
    descriptors.sort(key=lambda d: d.grade, reverse=True)
    return descriptors


class InterviewSession:
    def __init__(
        self,
        store: SessionStore,
        catalog: Optional[Catalog] = None,
        *,
        grade_min: int = 0,
        grade_max: int = 4,
        navigator: Optional[NavigationEngine] = None,
    ) -> None:
        self.store = store
        self.navigator = navigator or NavigationEngine()
        self.grade_min = int(grade_min)
        self.grade_max = int(grade_max)
        self.catalog: Optional[Catalog] = None
        self.state = SessionState()
        self.ledger = ResponseLedger()
        if catalog is not None:
            self.attach_catalog(catalog)

    # ------------------------------------------------------------------
    # catalog
    # ------------------------------------------------------------------
    @property
    def ready(self) -> bool:
        return self.catalog is not None and len(self.catalog) > 0

    def attach_catalog(self, catalog: Catalog) -> None:
        """Complete the one-shot catalog load and default the topic filter."""

        self.catalog = catalog
        self.state.meta = catalog.meta.model_dump(by_alias=True)
        self.state.selected_topics = catalog.topics()
        self.state.select_all_topics = True

    def _require_ready(self) -> Catalog:
        catalog = self.catalog
        if catalog is None or len(catalog) == 0:
            raise NotReadyError(NOT_READY_ADVISORY)
        return catalog

    # ------------------------------------------------------------------
    # views
    # ------------------------------------------------------------------
    def _question_view(self, question: Question) -> QuestionView:
        self.navigator.visit(self.state.navigation, question.id)
        existing = self.ledger.find_by_question(question.id)
        return QuestionView(
            question_id=question.id,
            prompt=question.prompt,
            category=question.category,
            difficulty=question.difficulty,
            descriptors=build_descriptors(question),
            grade=_display_grade(existing.grade) if existing else None,
            notes=existing.notes if existing else "",
        )

    def _summary_view(self) -> SummaryView:
        self.store.save(self.state, self.ledger)
        return SummaryView(metrics=self.metrics(), responses=self.ledger.all())

    def _render(self, question_id: Optional[str]) -> View:
        catalog = self._require_ready()
        question = catalog.get(question_id)
        if question is None:
            if question_id is not None:
                logger.warning("Question with id %r missing. Ending interview.", question_id)
                self.state.current_id = None
            return self._summary_view()
        return self._question_view(question)

    # ------------------------------------------------------------------
    # triggers
    # ------------------------------------------------------------------
    def start_fresh(self, selection: TopicSelection) -> View:
        catalog = self._require_ready()
        known = catalog.topics()
        if selection.select_all:
            topics, select_all = known, True
        else:
            topics, select_all = list(dict.fromkeys(selection.topics)), False
            if not topics:
                raise ValidationFailure(NO_TOPIC_ADVISORY)
            unknown = [topic for topic in topics if topic not in known]
            if unknown:
                raise ValidationFailure(f"Unknown topic(s): {', '.join(unknown)}")

        self.store.clear(self.state)
        self.ledger.clear()
        self.state.meta = catalog.meta.model_dump(by_alias=True)
        self.state.navigation = self.navigator.start(catalog.start_question)
        self.state.selected_topics = topics
        self.state.select_all_topics = select_all
        logger.info("Starting interview at %s", self.state.current_id)

        view = self._render(self.state.current_id)
        if isinstance(view, QuestionView):
            self.store.save(self.state, self.ledger)
        return view

    def can_resume(self) -> bool:
        return self.store.has_restorable_progress(self.store.load())

    def resume(self) -> View:
        catalog = self._require_ready()
        snapshot = self.store.load()
        if snapshot is None or not self.store.has_restorable_progress(snapshot):
            return IdleView(advisory=NO_SESSION_ADVISORY)
        self.state, self.ledger = self.store.restore(snapshot, catalog)
        logger.info(
            "Resumed session at %s with %d response(s)", self.state.current_id, len(self.ledger)
        )
        return self._render(self.state.current_id)

    def _validate_grade(self, grade: object) -> int:
        if grade is None:
            raise ValidationFailure(NO_GRADE_ADVISORY)
        if isinstance(grade, bool) or not isinstance(grade, int):
            raise ValidationFailure(f"Grade must be a whole number, got {grade!r}.")
        if not self.grade_min <= grade <= self.grade_max:
            raise ValidationFailure(
                f"Grade must be between {self.grade_min} and {self.grade_max}."
            )
        return grade

    def submit_grade(self, grade: Optional[int], notes: Optional[str] = "") -> View:
        catalog = self._require_ready()
        grade = self._validate_grade(grade)

        question = catalog.get(self.state.current_id)
        if question is None:
            return self._render(self.state.current_id)

        self.ledger.upsert(
            Response(
                question_id=question.id,
                grade=grade,
                notes=(notes or "").strip(),
                topic=question.category,
                category=question.category,
                prompt=question.prompt,
                difficulty=question.difficulty,
                timestamp=now_iso(),
            )
        )
        next_id = self.navigator.advance(question, grade)
        self.state.current_id = next_id
        view = self._render(next_id)
        if isinstance(view, QuestionView):
            self.store.save(self.state, self.ledger)
        return view

    def back(self) -> View:
        catalog = self._require_ready()
        if not self.state.history:
            return IdleView()
        previous_id = self.navigator.back(self.state.navigation)
        if previous_id is None:
            # history exhausted: resuming restarts at the entry question
            self.state.current_id = self.state.start_question
            self.store.save(self.state, self.ledger)
            return IdleView()
        self.state.current_id = previous_id
        self.store.save(self.state, self.ledger)
        question = catalog.get(previous_id)
        if question is None:
            logger.warning("History references missing question %r", previous_id)
            return IdleView()
        return self._question_view(question)

    def reset(self) -> IdleView:
        topics = self.catalog.topics() if self.catalog is not None else []
        self.state.navigation = self.navigator.start(self.state.start_question)
        self.ledger.clear()
        self.state.selected_topics = topics
        self.state.select_all_topics = True
        self.store.clear(self.state)
        logger.info("Interview reset")
        return IdleView()

    def request_summary(self) -> SummaryView:
        self._require_ready()
        return self._summary_view()

    # ------------------------------------------------------------------
    # reporting
    # ------------------------------------------------------------------
    def metrics(self) -> Metrics:
        return summarize(self.ledger.all())

    def export_report(self) -> SessionReport:
        self._require_ready()
        return SessionReport(
            generated_at=datetime.now(timezone.utc).isoformat(),
            meta=dict(self.state.meta),
            history=list(self.state.history),
            selected_topics=list(self.state.selected_topics),
            select_all_topics=self.state.select_all_topics,
            metrics=self.metrics(),
            responses=self.ledger.all(),
        )

    def export_text(self, generated_at: Optional[datetime] = None) -> str:
        self._require_ready()
        responses = self.ledger.all()
        if not responses:
            raise ValidationFailure(NO_RESPONSES_ADVISORY)
        stamp = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
        lines = [f"Adaptive Interview Summary - {stamp}", ""]
        for index, entry in enumerate(responses, start=1):
            topic = entry.topic if entry.topic is not None else entry.category
            grade = _display_grade(entry.grade)
            lines.extend(
                [
                    f"{index}. {entry.prompt or entry.question_id or '(unknown question)'} ({topic}, {_capitalize(entry.difficulty)})",
                    f"   Grade: {grade if grade is not None else '—'}",
                    f"   Notes: {entry.notes or '(none)'}",
                    "",
                ]
            )
        return "\n".join(lines)
