"""Tests for the answer pipeline service."""

import json
from unittest.mock import MagicMock

from src.answer.models import AnswerContext, AnswerRequest, LocationContext, Part
from src.answer.service import draft_answer, fallback_draft, handle_answer_request
from src.core.cache import NullCache, ResponseCache
from src.core.config import LLMConfig, Settings
from src.core.db import InMemoryAnswerLogRepository

INTENT_JSON = json.dumps({
    "intent": "PART_AVAILABILITY_LOCAL",
    "entities": {
        "part": {"name": "alternator"},
        "location": {"postal_code": "80112", "radius_miles": 25},
    },
    "missing_required_fields": [],
})

MISSING_ZIP_JSON = json.dumps({
    "intent": "PART_AVAILABILITY_LOCAL",
    "entities": {"part": {"name": "alternator"}},
    "missing_required_fields": ["location.postal_code"],
})

DRAFT_JSON = json.dumps({
    "answer": "Yes, the alternator is available nearby.",
    "reason": "Part and location are known.",
    "next_action": "Call the store to reserve it.",
})


def _mock_provider(*responses: str | Exception) -> MagicMock:
    provider = MagicMock()
    provider.default_model = "test-model"
    provider.complete.side_effect = list(responses)
    return provider


def _request(question: str = "Is the alternator in stock near 80112?") -> AnswerRequest:
    return AnswerRequest(
        question=question,
        context=AnswerContext(
            part=Part(name="alternator"),
            location=LocationContext(postal_code="80112"),
        ),
    )


class TestFallbackDraft:
    def test_unknown_lists_missing_fields(self) -> None:
        draft = fallback_draft("unknown", ["location.postal_code", "vehicle.year"])
        assert draft.answer == "Unknown"
        assert draft.reason == "Missing: location.postal_code, vehicle.year."
        assert draft.next_action == "Provide location.postal_code, vehicle.year to confirm."

    def test_unknown_without_fields(self) -> None:
        draft = fallback_draft("unknown", [])
        assert draft.answer == "Unknown"
        assert draft.reason == "Missing required details."

    def test_other_confidence(self) -> None:
        draft = fallback_draft("medium", [])
        assert draft.answer == "I can't confirm yet."
        assert draft.next_action == "Provide more details to continue."


class TestDraftAnswer:
    def test_valid_draft(self) -> None:
        provider = _mock_provider(DRAFT_JSON)
        draft = draft_answer(provider, "q", None, "high", [], LLMConfig())
        assert draft.answer == "Yes, the alternator is available nearby."

    def test_invalid_shape_uses_fallback(self) -> None:
        provider = _mock_provider('{"answer": "Yes"}')
        draft = draft_answer(provider, "q", None, "unknown", ["part.name"], LLMConfig())
        assert draft.answer == "Unknown"
        assert draft.reason == "Missing: part.name."

    def test_provider_error_uses_fallback(self) -> None:
        provider = _mock_provider(RuntimeError("boom"))
        draft = draft_answer(provider, "q", None, "medium", [], LLMConfig())
        assert draft.answer == "I can't confirm yet."


class TestHandleAnswerRequest:
    def test_high_confidence_answer(self) -> None:
        provider = _mock_provider(INTENT_JSON, DRAFT_JSON)
        repo = InMemoryAnswerLogRepository()

        response = handle_answer_request(_request(), provider, repo, NullCache())

        assert response.confidence == "high"
        assert response.intent == "PART_AVAILABILITY_LOCAL"
        assert response.answer == "Yes, the alternator is available nearby."
        assert response.trace.rules_applied == ["R01_INTENT_CLASSIFIED", "R10_CONFIDENCE_GATED"]
        assert response.trace.provider.llm_model == "test-model"
        assert provider.complete.call_count == 2

    def test_logs_entry(self) -> None:
        provider = _mock_provider(INTENT_JSON, DRAFT_JSON)
        repo = InMemoryAnswerLogRepository()

        response = handle_answer_request(
            _request("  Is the alternator   in stock near 80112? "), provider, repo, NullCache(),
        )

        assert len(repo.entries) == 1
        entry = repo.entries[0]
        assert entry["request_id"] == response.trace.request_id
        assert entry["question"] == "  Is the alternator   in stock near 80112? "
        assert entry["normalized_question"] == "Is the alternator in stock near 80112?"
        assert entry["confidence"] == "high"
        assert entry["provider_model"] == "test-model"
        assert entry["context"]["location"]["postal_code"] == "80112"

    def test_configured_model_in_trace(self) -> None:
        provider = _mock_provider(INTENT_JSON, DRAFT_JSON)
        settings = Settings(llm={"model": "gpt-4.1"})
        response = handle_answer_request(
            _request(), provider, InMemoryAnswerLogRepository(), NullCache(), settings,
        )
        assert response.trace.provider.llm_model == "gpt-4.1"
        assert provider.complete.call_args.kwargs["model"] == "gpt-4.1"

    def test_missing_fields_merged_without_duplicates(self) -> None:
        provider = _mock_provider(MISSING_ZIP_JSON, RuntimeError("draft down"))
        response = handle_answer_request(
            _request(), provider, InMemoryAnswerLogRepository(), NullCache(),
        )

        assert response.trace.missing_fields == ["location.postal_code"]
        assert response.confidence == "unknown"
        assert response.answer == "Unknown"
        assert response.reason == "Missing: location.postal_code."
        assert "R02_MISSING_REQUIRED_FIELDS" in response.trace.rules_applied

    def test_extraction_failure_is_unknown_intent(self) -> None:
        provider = _mock_provider("not json", RuntimeError("draft down"))
        response = handle_answer_request(
            _request(), provider, InMemoryAnswerLogRepository(), NullCache(),
        )
        assert response.intent == "UNKNOWN_INTENT"
        assert response.confidence == "unknown"
        assert response.trace.missing_fields == ["intent"]

    def test_cache_hit_skips_provider(self) -> None:
        provider = _mock_provider(INTENT_JSON, DRAFT_JSON)
        repo = InMemoryAnswerLogRepository()
        cache = ResponseCache(ttl_seconds=300)

        first = handle_answer_request(_request(), provider, repo, cache)
        second = handle_answer_request(_request(), provider, repo, cache)

        assert provider.complete.call_count == 2
        assert len(repo.entries) == 1
        assert second.answer == first.answer
        assert second.trace.request_id != first.trace.request_id
        assert second.trace.provider.latency_ms == 0
        assert cache.stats()["hits"] == 1

    def test_cache_key_uses_normalized_question(self) -> None:
        provider = _mock_provider(INTENT_JSON, DRAFT_JSON)
        cache = ResponseCache(ttl_seconds=300)
        repo = InMemoryAnswerLogRepository()

        handle_answer_request(_request("alternator   near 80112?"), provider, repo, cache)
        handle_answer_request(_request("alternator near 80112? \U0001F697"), provider, repo, cache)

        assert provider.complete.call_count == 2
