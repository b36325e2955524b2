import logging
import os
import sqlite3
from datetime import datetime, timezone
from typing import Iterable, Optional

from db_pool import SQLiteConnectionPool

logger = logging.getLogger(__name__)

DB_PATH = os.getenv("DB_PATH", "data.db")

_pool = SQLiteConnectionPool(DB_PATH, max_connections=5)


def _exec(sql: str, params: Iterable = ()):
    with _pool.get_connection() as con:
        cur = con.execute(sql, params)
        con.commit()
        return cur


def _query(sql: str, params: Iterable = ()) -> list[sqlite3.Row]:
    with _pool.get_connection() as con:
        cur = con.execute(sql, params)
        return cur.fetchall()


def reset_pool(path: Optional[str] = None) -> None:
    """Point the module at ``path`` (or ``DB_PATH``) with a fresh pool."""
    global DB_PATH, _pool
    if path is not None:
        DB_PATH = path
    _pool.close_all()
    _pool = SQLiteConnectionPool(DB_PATH, max_connections=5)


def init() -> None:
    _exec(
        """
        CREATE TABLE IF NOT EXISTS session_slots (
            slot        TEXT PRIMARY KEY,
            payload     TEXT NOT NULL,
            updated_at  TEXT NOT NULL
        )
        """
    )


# -------------- session slots --------------
def read_slot(slot: str) -> Optional[str]:
    """Return the raw payload stored under ``slot``, if any."""
    rows = _query("SELECT payload FROM session_slots WHERE slot = ?", (slot,))
    if not rows:
        return None
    return rows[0]["payload"]


def write_slot(slot: str, payload: str) -> None:
    """Atomically replace the payload stored under ``slot``."""
    _exec(
        """
        INSERT INTO session_slots (slot, payload, updated_at)
        VALUES (?, ?, ?)
        ON CONFLICT(slot) DO UPDATE SET
            payload = excluded.payload,
            updated_at = excluded.updated_at
        """,
        (slot, payload, datetime.now(timezone.utc).isoformat()),
    )


def delete_slot(slot: str) -> None:
    _exec("DELETE FROM session_slots WHERE slot = ?", (slot,))


def list_slots() -> list[dict]:
    rows = _query("SELECT slot, updated_at FROM session_slots ORDER BY slot")
    return [{"slot": row["slot"], "updated_at": row["updated_at"]} for row in rows]
