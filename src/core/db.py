"""SQLite database layer for answer logs and per-conversation engine state."""

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from src.core.schemas import EngineState

_ANSWER_LOGS_TABLE = """
CREATE TABLE IF NOT EXISTS answer_logs (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    request_id          TEXT    NOT NULL,
    question            TEXT    NOT NULL,
    normalized_question TEXT    NOT NULL,
    context_json        TEXT    NOT NULL DEFAULT '{}',
    intent              TEXT    NOT NULL,
    entities_json       TEXT    NOT NULL DEFAULT '{}',
    answer              TEXT    NOT NULL,
    confidence          TEXT    NOT NULL,
    reason              TEXT    NOT NULL DEFAULT '',
    next_action         TEXT    NOT NULL DEFAULT '',
    trace_json          TEXT    NOT NULL DEFAULT '{}',
    latency_ms          INTEGER NOT NULL DEFAULT 0,
    provider_model      TEXT    NOT NULL DEFAULT '',
    created_at          TEXT    NOT NULL
);
"""

_CONVERSATION_STATE_TABLE = """
CREATE TABLE IF NOT EXISTS conversation_state (
    conversation_id TEXT PRIMARY KEY,
    state_json      TEXT NOT NULL,
    updated_at      TEXT NOT NULL
);
"""


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_ANSWER_LOGS_TABLE)
    conn.execute(_CONVERSATION_STATE_TABLE)
    conn.commit()
    return conn


# ---------------------------------------------------------------------------
# Answer log
# ---------------------------------------------------------------------------


def insert_answer_log(conn: sqlite3.Connection, entry: dict[str, Any]) -> int:
    """Record one answered question. Returns the row ID.

    ``entry`` keys: request_id, question, normalized_question, context,
    intent, entities, answer, confidence, reason, next_action, trace,
    latency_ms, provider_model.
    """
    cursor = conn.execute(
        """
        INSERT INTO answer_logs
            (request_id, question, normalized_question, context_json, intent,
             entities_json, answer, confidence, reason, next_action,
             trace_json, latency_ms, provider_model, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            entry["request_id"],
            entry["question"],
            entry["normalized_question"],
            json.dumps(entry.get("context") or {}),
            entry["intent"],
            json.dumps(entry.get("entities") or {}),
            entry["answer"],
            entry["confidence"],
            entry.get("reason", ""),
            entry.get("next_action", ""),
            json.dumps(entry.get("trace") or {}),
            int(entry.get("latency_ms", 0)),
            entry.get("provider_model", ""),
            datetime.now().isoformat(),
        ),
    )
    conn.commit()
    return cursor.lastrowid or 0


def count_answer_logs(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT COUNT(*) FROM answer_logs").fetchone()
    return int(row[0])


class AnswerLogRepository(Protocol):
    """Anything that can persist an answer log entry."""

    def create(self, entry: dict[str, Any]) -> None: ...


class SQLiteAnswerLogRepository:
    """Answer log backed by the ``answer_logs`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def create(self, entry: dict[str, Any]) -> None:
        insert_answer_log(self._conn, entry)


class InMemoryAnswerLogRepository:
    """Answer log kept in a list. Used by tests and dry runs."""

    def __init__(self) -> None:
        self.entries: list[dict[str, Any]] = []

    def create(self, entry: dict[str, Any]) -> None:
        self.entries.append(entry)


# ---------------------------------------------------------------------------
# Conversation state
# ---------------------------------------------------------------------------


def load_state(conn: sqlite3.Connection, conversation_id: str) -> EngineState | None:
    """Return the stored state for a conversation, or None if it has none."""
    row = conn.execute(
        "SELECT state_json FROM conversation_state WHERE conversation_id = ?",
        (conversation_id,),
    ).fetchone()
    if row is None:
        return None
    return EngineState.model_validate_json(row["state_json"])


def save_state(conn: sqlite3.Connection, conversation_id: str, state: EngineState) -> None:
    """Store the state for a conversation, replacing any previous one."""
    conn.execute(
        """
        INSERT INTO conversation_state (conversation_id, state_json, updated_at)
        VALUES (?, ?, ?)
        ON CONFLICT(conversation_id)
        DO UPDATE SET
            state_json = excluded.state_json,
            updated_at = excluded.updated_at
        """,
        (conversation_id, state.model_dump_json(by_alias=True), datetime.now().isoformat()),
    )
    conn.commit()
