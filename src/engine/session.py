"""Run engine turns against state persisted per conversation."""

import logging
import sqlite3

from src.core.config import Settings
from src.core.db import load_state, save_state
from src.core.schemas import EngineInput, EngineResponse
from src.engine.orchestrator import run_engine

logger = logging.getLogger(__name__)


def run_turn(
    conn: sqlite3.Connection,
    conversation_id: str,
    engine_input: EngineInput,
    settings: Settings | None = None,
) -> EngineResponse:
    """Load the conversation's state, run one turn, and store the new state.

    A stored state takes precedence over ``engine_input.state``. Concurrent
    turns for one conversation are not serialized here; the last save wins.
    """
    settings = settings or Settings()
    stored = load_state(conn, conversation_id)
    if stored is not None:
        engine_input = engine_input.model_copy(update={"state": stored})

    response = run_engine(engine_input, settings.scoring, settings.engine)
    save_state(conn, conversation_id, response.state)

    logger.info("Conversation '%s': %s", conversation_id, response.type)
    return response
