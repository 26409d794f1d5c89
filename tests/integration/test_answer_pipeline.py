"""Answer pipeline with a SQLite answer log and in-process cache."""

import json
from pathlib import Path
from unittest.mock import MagicMock

from src.answer.models import AnswerContext, AnswerRequest, Part, Vehicle
from src.answer.service import handle_answer_request
from src.core.cache import ResponseCache, create_cache
from src.core.config import CacheConfig
from src.core.db import SQLiteAnswerLogRepository, count_answer_logs, init_db

INTENT_JSON = json.dumps({
    "intent": "PART_AVAILABILITY_AND_ELIGIBILITY",
    "entities": {
        "vehicle": {"year": 2021, "make": "Hyundai", "model": "Tucson"},
        "part": {"name": "alternator", "oem_part_number": None},
        "location": {"postal_code": "80112", "radius_miles": 25},
    },
    "missing_required_fields": [],
    "notes": None,
})

DRAFT_JSON = json.dumps({
    "answer": "It will probably fit, and one is likely available nearby.",
    "reason": "Trim, engine and VIN are not provided.",
    "next_action": "Share the VIN to confirm fitment.",
})


def _provider() -> MagicMock:
    provider = MagicMock()
    provider.default_model = "gpt-4.1-mini"
    provider.complete.side_effect = [INTENT_JSON, DRAFT_JSON]
    return provider


def _request() -> AnswerRequest:
    return AnswerRequest(
        question="Will an alternator fit my 2021 Tucson, and is one nearby?",
        context=AnswerContext(
            vehicle=Vehicle(year=2021, make="Hyundai", model="Tucson"),
            part=Part(name="alternator"),
        ),
    )


def test_answer_is_logged_to_sqlite(tmp_path: Path) -> None:
    conn = init_db(tmp_path / "answers.db")
    try:
        response = handle_answer_request(
            _request(), _provider(), SQLiteAnswerLogRepository(conn), ResponseCache(),
        )

        assert response.confidence == "medium"
        assert "R11_MISSING_DETAIL_CAP" in response.trace.rules_applied
        assert count_answer_logs(conn) == 1

        row = conn.execute("SELECT * FROM answer_logs").fetchone()
        assert row["request_id"] == response.trace.request_id
        assert row["intent"] == "PART_AVAILABILITY_AND_ELIGIBILITY"
        assert row["confidence"] == "medium"
        assert row["provider_model"] == "gpt-4.1-mini"
        assert json.loads(row["entities_json"])["vehicle"]["make"] == "Hyundai"
        assert json.loads(row["trace_json"])["rules_applied"] == response.trace.rules_applied
    finally:
        conn.close()


def test_cached_answer_is_not_logged_again(tmp_path: Path) -> None:
    conn = init_db(tmp_path / "answers.db")
    provider = _provider()
    cache = create_cache(CacheConfig(ttl_seconds=60))
    try:
        repo = SQLiteAnswerLogRepository(conn)
        first = handle_answer_request(_request(), provider, repo, cache)
        second = handle_answer_request(_request(), provider, repo, cache)

        assert count_answer_logs(conn) == 1
        assert second.answer == first.answer
        assert second.trace.request_id != first.trace.request_id
    finally:
        conn.close()


def test_disabled_cache_calls_provider_each_time(tmp_path: Path) -> None:
    conn = init_db(tmp_path / "answers.db")
    provider = MagicMock()
    provider.default_model = "gpt-4.1-mini"
    provider.complete.side_effect = [INTENT_JSON, DRAFT_JSON, INTENT_JSON, DRAFT_JSON]
    cache = create_cache(CacheConfig(enabled=False))
    try:
        repo = SQLiteAnswerLogRepository(conn)
        handle_answer_request(_request(), provider, repo, cache)
        handle_answer_request(_request(), provider, repo, cache)

        assert provider.complete.call_count == 4
        assert count_answer_logs(conn) == 2
    finally:
        conn.close()
