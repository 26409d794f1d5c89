"""Tests for LLM intent/entity extraction."""

import json
from unittest.mock import MagicMock

from src.answer.intent import _build_user_prompt, extract_intent_entities
from src.answer.models import AnswerContext, Part
from src.core.config import LLMConfig


def _mock_provider(response: str | Exception) -> MagicMock:
    provider = MagicMock()
    if isinstance(response, Exception):
        provider.complete.side_effect = response
    else:
        provider.complete.return_value = response
    return provider


VALID = json.dumps({
    "intent": "PART_AVAILABILITY_LOCAL",
    "entities": {
        "vehicle": None,
        "part": {"name": "alternator", "oem_part_number": None},
        "location": {"postal_code": "80112", "radius_miles": 25},
    },
    "missing_required_fields": [],
    "notes": None,
})


class TestBuildUserPrompt:
    def test_includes_question_and_context(self) -> None:
        prompt = _build_user_prompt("alternator?", AnswerContext(part=Part(name="alternator")))
        assert "Question: alternator?" in prompt
        assert '"name": "alternator"' in prompt
        assert '"missing_required_fields"' in prompt

    def test_empty_context(self) -> None:
        assert "Context: {}" in _build_user_prompt("q", None)


class TestExtractIntentEntities:
    def test_valid_response(self) -> None:
        provider = _mock_provider(VALID)
        result = extract_intent_entities(provider, "alternator near 80112?", None, LLMConfig())
        assert result.intent == "PART_AVAILABILITY_LOCAL"
        assert result.entities.part is not None
        assert result.entities.part.name == "alternator"
        assert result.entities.location is not None
        assert result.entities.location.postal_code == "80112"

    def test_passes_llm_config(self) -> None:
        provider = _mock_provider(VALID)
        extract_intent_entities(provider, "q", None, LLMConfig(model="m-1", temperature=0.3))
        call = provider.complete.call_args
        assert call.kwargs["model"] == "m-1"
        assert call.kwargs["temperature"] == 0.3
        assert "PART_AVAILABILITY_LOCAL" in call.kwargs["system"]

    def test_fenced_response(self) -> None:
        provider = _mock_provider(f"```json\n{VALID}\n```")
        result = extract_intent_entities(provider, "q", None, LLMConfig())
        assert result.intent == "PART_AVAILABILITY_LOCAL"

    def test_null_entities(self) -> None:
        provider = _mock_provider('{"intent": "CLARIFY_REQUEST", "entities": null}')
        result = extract_intent_entities(provider, "q", None, LLMConfig())
        assert result.intent == "CLARIFY_REQUEST"
        assert result.entities == AnswerContext()

    def test_disallowed_intent_falls_back(self) -> None:
        provider = _mock_provider('{"intent": "ORDER_PIZZA", "entities": {}}')
        result = extract_intent_entities(provider, "q", None, LLMConfig())
        assert result.intent == "UNKNOWN_INTENT"
        assert result.missing_required_fields == ["intent"]
        assert result.notes == "Invalid intent extraction response."

    def test_provider_error_falls_back(self) -> None:
        provider = _mock_provider(RuntimeError("timeout"))
        result = extract_intent_entities(provider, "q", None, LLMConfig())
        assert result.intent == "UNKNOWN_INTENT"
        assert result.entities == AnswerContext()
        assert result.missing_required_fields == ["intent"]

    def test_non_json_falls_back(self) -> None:
        provider = _mock_provider("I think it's an alternator question")
        result = extract_intent_entities(provider, "q", None, LLMConfig())
        assert result.intent == "UNKNOWN_INTENT"
