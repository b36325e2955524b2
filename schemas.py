"""Pydantic schemas for question-bank records, responses, views and reports."""

from __future__ import annotations

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field, field_validator

__all__ = [
    "Question",
    "CatalogMeta",
    "Response",
    "TopicSelection",
    "TopicAverage",
    "ConsistencyReport",
    "Metrics",
    "ScoreDescriptor",
    "QuestionView",
    "SummaryView",
    "IdleView",
    "SessionReport",
]


class Question(BaseModel):
    """A single question-bank record. Immutable once loaded."""

    id: str
    prompt: str = ""
    category: str | None = None
    difficulty: str | None = None
    follow_ups: Dict[str, str] = Field(default_factory=dict, alias="followUps")
    score_descriptors: Dict[str, str] = Field(default_factory=dict, alias="scoreDescriptors")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "extra": "ignore",
    }

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        if value is None or isinstance(value, (dict, list)):
            raise ValueError("question id must be a scalar")
        return str(value)

    @field_validator("prompt", mode="before")
    @classmethod
    def _coerce_prompt(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("category", "difficulty", mode="before")
    @classmethod
    def _coerce_label(cls, value: Any) -> str | None:
        if value is None or isinstance(value, (dict, list)):
            return None
        return str(value)

    @field_validator("follow_ups", "score_descriptors", mode="before")
    @classmethod
    def _coerce_mapping(cls, value: Any) -> Dict[str, str]:
        if not isinstance(value, dict):
            return {}
        return {str(key): str(target) for key, target in value.items() if target is not None}


class CatalogMeta(BaseModel):
    start_question: str | None = Field(default=None, alias="startQuestion")

    model_config = {
        "populate_by_name": True,
        "extra": "allow",
    }


class Response(BaseModel):
    """Recorded answer for one question, in the current storage shape."""

    question_id: str | None = Field(default=None, alias="questionId")
    grade: int | float | None = Field(
        default=None,
        description="Numeric grade; null when the stored answer could not be graded.",
    )
    notes: str = ""
    topic: str | None = Field(
        default=None,
        description="Question category copied at answer time.",
    )
    category: str | None = None
    prompt: str | None = None
    difficulty: str | None = None
    timestamp: str | None = None

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }

    @field_validator("notes", mode="before")
    @classmethod
    def _coerce_notes(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class TopicSelection(BaseModel):
    topics: List[str] = Field(default_factory=list)
    select_all: bool = Field(default=False, alias="selectAll")

    model_config = {"populate_by_name": True}


class TopicAverage(BaseModel):
    topic: str
    average: float
    count: int


class ConsistencyReport(BaseModel):
    label: str
    std_dev: float | None = Field(default=None, alias="stdDev")
    window_size: int = Field(alias="windowSize")
    sample_size: int = Field(alias="sampleSize")

    model_config = {"populate_by_name": True}


class Metrics(BaseModel):
    total_questions: int = Field(alias="totalQuestions")
    answered_questions: int = Field(alias="answeredQuestions")
    average_score: float | None = Field(default=None, alias="averageScore")
    consistency: ConsistencyReport
    topic_averages: List[TopicAverage] = Field(default_factory=list, alias="topicAverages")

    model_config = {"populate_by_name": True}


class ScoreDescriptor(BaseModel):
    grade: int
    description: str


class QuestionView(BaseModel):
    kind: Literal["question"] = "question"
    question_id: str = Field(alias="questionId")
    prompt: str
    category: str | None = None
    difficulty: str | None = None
    descriptors: List[ScoreDescriptor] = Field(default_factory=list)
    grade: int | float | None = None
    notes: str = ""

    model_config = {"populate_by_name": True}


class SummaryView(BaseModel):
    kind: Literal["summary"] = "summary"
    metrics: Metrics
    responses: List[Response] = Field(default_factory=list)


class IdleView(BaseModel):
    kind: Literal["idle"] = "idle"
    advisory: str | None = None


class SessionReport(BaseModel):
    generated_at: str = Field(alias="generatedAt")
    meta: Dict[str, Any] = Field(default_factory=dict)
    history: List[str] = Field(default_factory=list)
    selected_topics: List[str] = Field(default_factory=list, alias="selectedTopics")
    select_all_topics: bool = Field(default=True, alias="selectAllTopics")
    metrics: Metrics
    responses: List[Response] = Field(default_factory=list)

    model_config = {"populate_by_name": True}
