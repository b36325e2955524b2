"""Durable snapshot storage for a single interview session."""
from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

import db
from engines.ledger import ResponseLedger
from engines.migration import normalize_snapshot
from engines.navigation import NavigationState
from question_catalog import Catalog

logger = logging.getLogger(__name__)

DEFAULT_SLOT = "adaptive-interview-session"

ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def now_iso() -> str:
    return datetime.now(timezone.utc).strftime(ISO_FORMAT)


@dataclass
class SessionState:
    """Position, history and topic filter of the active interview."""

    meta: Dict[str, Any] = field(default_factory=dict)
    navigation: NavigationState = field(default_factory=NavigationState)
    selected_topics: List[str] = field(default_factory=list)
    select_all_topics: bool = True
    last_saved_at: Optional[str] = None

    @property
    def current_id(self) -> Optional[str]:
        return self.navigation.current_id

    @current_id.setter
    def current_id(self, value: Optional[str]) -> None:
        self.navigation.current_id = value

    @property
    def history(self) -> List[str]:
        return self.navigation.history

    @property
    def start_question(self) -> Optional[str]:
        start = self.meta.get("startQuestion")
        return start if isinstance(start, str) and start else None


class SessionStore:
    """Reads and writes the session snapshot to one named slot.

    Any SQLite failure switches the store to in-memory operation for the rest
    of its lifetime: saves become no-ops and there is nothing to resume.
    """

    def __init__(self, slot: str = DEFAULT_SLOT, *, enabled: bool = True) -> None:
        self.slot = slot
        self._available = bool(enabled)
        self._initialized = False

    @property
    def available(self) -> bool:
        return self._available

    def _degrade(self, operation: str, exc: Exception) -> None:
        if self._available:
            logger.warning(
                "Session storage unavailable during %s (%s); continuing without persistence",
                operation,
                exc,
            )
        self._available = False

    def _ready(self) -> bool:
        if not self._available:
            return False
        if not self._initialized:
            try:
                db.init()
            except sqlite3.Error as exc:
                self._degrade("init", exc)
                return False
            self._initialized = True
        return True

    # ------------------------------------------------------------------
    # snapshot I/O
    # ------------------------------------------------------------------
    @staticmethod
    def build_snapshot(state: SessionState, ledger: ResponseLedger) -> Dict[str, Any]:
        return {
            "meta": dict(state.meta),
            "currentId": state.current_id,
            "history": list(state.history),
            "responses": ledger.to_records(),
            "selectedTopics": list(state.selected_topics),
            "selectAllTopics": state.select_all_topics,
            "lastSavedAt": state.last_saved_at,
        }

    def save(self, state: SessionState, ledger: ResponseLedger) -> bool:
        """Overwrite the slot with the current state. Returns whether it was written."""

        if not self._ready():
            return False
        previous = state.last_saved_at
        state.last_saved_at = now_iso()
        payload = json.dumps(self.build_snapshot(state, ledger))
        try:
            db.write_slot(self.slot, payload)
        except sqlite3.Error as exc:
            state.last_saved_at = previous
            self._degrade("save", exc)
            return False
        return True

    def load(self) -> Optional[Dict[str, Any]]:
        if not self._ready():
            return None
        try:
            raw = db.read_slot(self.slot)
        except sqlite3.Error as exc:
            self._degrade("load", exc)
            return None
        if not raw:
            return None
        try:
            snapshot = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Failed to parse persisted session in slot %s: %s", self.slot, exc)
            return None
        if not isinstance(snapshot, dict):
            logger.warning("Persisted session in slot %s is not an object; ignoring it", self.slot)
            return None
        return snapshot

    def clear(self, state: Optional[SessionState] = None) -> None:
        if state is not None:
            state.last_saved_at = None
        if not self._ready():
            return
        try:
            db.delete_slot(self.slot)
        except sqlite3.Error as exc:
            self._degrade("clear", exc)

    # ------------------------------------------------------------------
    # restore helpers
    # ------------------------------------------------------------------
    @staticmethod
    def has_restorable_progress(snapshot: Optional[Mapping[str, Any]]) -> bool:
        if not snapshot:
            return False
        responses = snapshot.get("responses")
        has_responses = isinstance(responses, list) and len(responses) > 0
        return has_responses or snapshot.get("currentId") is not None

    @staticmethod
    def restore(snapshot: Mapping[str, Any], catalog: Catalog) -> Tuple[SessionState, ResponseLedger]:
        """Rebuild in-memory state from a stored snapshot, migrating old shapes."""

        normalized = normalize_snapshot(snapshot, catalog.topics())
        meta = normalized["meta"]
        if meta is None:
            meta = catalog.meta.model_dump(by_alias=True)
        state = SessionState(
            meta=meta,
            navigation=NavigationState(
                current_id=normalized["currentId"],
                history=normalized["history"],
            ),
            selected_topics=normalized["selectedTopics"],
            select_all_topics=normalized["selectAllTopics"],
            last_saved_at=normalized["lastSavedAt"],
        )
        return state, ResponseLedger(normalized["responses"])
