"""LLM-based intent and entity extraction for operator questions."""

import json
import logging

from pydantic import ValidationError

from src.answer.models import ALLOWED_INTENTS, AnswerContext, IntentExtraction
from src.core.config import LLMConfig
from src.llm.base import LLMProvider, parse_json_response

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "Output must be strict JSON. No extra text.\n\n"
    "You are an information extraction engine for an automotive parts answer engine.\n"
    "Return ONLY valid JSON that matches the provided schema.\n"
    "Do not guess missing fields. Use null when unknown.\n"
    f"Choose intent ONLY from:\n{', '.join(ALLOWED_INTENTS)}"
)

_RESPONSE_SCHEMA = (
    "{\n"
    '  "intent": "string",\n'
    '  "entities": {\n'
    '    "vehicle": { "year": 0, "make": "string", "model": "string", '
    '"trim": "string|null", "engine": "string|null", "vin": "string|null" },\n'
    '    "part": { "name": "string|null", "oem_part_number": "string|null" },\n'
    '    "location": { "postal_code": "string|null", "radius_miles": 0 }\n'
    "  },\n"
    '  "missing_required_fields": ["string"],\n'
    '  "notes": "string|null"\n'
    "}"
)


def _build_user_prompt(question: str, context: AnswerContext | None) -> str:
    context_json = json.dumps(context.model_dump() if context else {})
    return (
        f"Question: {question}\n"
        f"Context: {context_json}\n\n"
        f"Return JSON with this schema:\n{_RESPONSE_SCHEMA}"
    )


def unknown_intent(note: str) -> IntentExtraction:
    """Extraction result used whenever the provider output is unusable."""
    return IntentExtraction(
        intent="UNKNOWN_INTENT",
        entities=AnswerContext(),
        missing_required_fields=["intent"],
        notes=note,
    )


def extract_intent_entities(
    provider: LLMProvider,
    question: str,
    context: AnswerContext | None,
    config: LLMConfig,
) -> IntentExtraction:
    """Ask the provider to classify the question and pull out entities.

    Never raises for provider or parsing failures: those yield UNKNOWN_INTENT.
    """
    prompt = _build_user_prompt(question, context)
    try:
        raw = provider.complete(
            prompt,
            model=config.model,
            system=_SYSTEM_PROMPT,
            temperature=config.temperature,
        )
        data = parse_json_response(raw)
        return IntentExtraction.model_validate(data)
    except ValidationError:
        logger.warning("Intent extraction returned an invalid shape", exc_info=True)
        return unknown_intent("Invalid intent extraction response.")
    except Exception:
        logger.warning("Intent extraction failed", exc_info=True)
        return unknown_intent("Intent extraction failed.")
