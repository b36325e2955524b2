# app.py: HTTP surface for the adaptive interview engine.
# Triggers are async endpoints, so they run one at a time on the event loop
# against the single InterviewSession kept on app.state.

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

import db
from interview import InterviewSession, NotReadyError, ValidationFailure
from question_catalog import Catalog, CatalogLoadError
from schemas import TopicSelection
from session_store import SessionStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    from env_validation import validate_environment

    settings = validate_environment()
    db.reset_pool(settings.db_path)
    store = SessionStore(settings.session_slot, enabled=settings.persistence_enabled)
    session = InterviewSession(store, grade_min=settings.grade_min, grade_max=settings.grade_max)
    app.state.session = session
    try:
        session.attach_catalog(Catalog.from_file(settings.question_bank_path))
    except (OSError, CatalogLoadError) as exc:
        logger.error("Failed to load questions: %s", exc)
    yield


app = FastAPI(title="Adaptive Interview", version="1.0.0", lifespan=_lifespan)


class GradeRequest(BaseModel):
    grade: Optional[int] = None
    notes: str = Field(default="", max_length=10_000)


def _session(request: Request) -> InterviewSession:
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Questions are still loading. Try again in a moment.")
    return session


def _run(trigger, *args):
    try:
        return trigger(*args)
    except NotReadyError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except ValidationFailure as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/catalog/topics")
async def catalog_topics(request: Request):
    session = _session(request)
    topics = session.catalog.topics() if session.catalog is not None else []
    return {"ready": session.ready, "topics": topics}


@app.post("/interview/start")
async def interview_start(selection: TopicSelection, request: Request):
    return _run(_session(request).start_fresh, selection)


@app.post("/interview/resume")
async def interview_resume(request: Request):
    return _run(_session(request).resume)


@app.get("/interview/resumable")
async def interview_resumable(request: Request):
    return {"resumable": _session(request).can_resume()}


@app.post("/interview/grade")
async def interview_grade(payload: GradeRequest, request: Request):
    return _run(_session(request).submit_grade, payload.grade, payload.notes)


@app.post("/interview/back")
async def interview_back(request: Request):
    return _run(_session(request).back)


@app.post("/interview/reset")
async def interview_reset(request: Request):
    return _run(_session(request).reset)


@app.get("/interview/summary")
async def interview_summary(request: Request):
    return _run(_session(request).request_summary)


@app.get("/interview/report")
async def interview_report(request: Request):
    return _run(_session(request).export_report)


@app.get("/interview/report.txt", response_class=PlainTextResponse)
async def interview_report_text(request: Request):
    text = _run(_session(request).export_text)
    return PlainTextResponse(
        text,
        headers={"Content-Disposition": 'attachment; filename="adaptive-interview-summary.txt"'},
    )
