"""Answer pipeline: normalize, extract, gate confidence, draft, log, cache.

Data flow:
  1. Normalize question and context
  2. Cache lookup (hit returns immediately with a fresh request_id)
  3. LLM intent/entity extraction
  4. Required-field and confidence rules
  5. LLM answer draft, with a deterministic fallback
  6. Answer log write, cache store
"""

import json
import logging
import time
import uuid
from collections.abc import Callable
from typing import TypeVar

from src.answer.intent import extract_intent_entities
from src.answer.models import (
    AnswerContext,
    AnswerDraft,
    AnswerRequest,
    AnswerResponse,
    EngineTrace,
    ProviderTrace,
)
from src.answer.normalize import normalize_context, normalize_question
from src.answer.rules import compute_missing_required_fields, evaluate_confidence
from src.core.cache import Cache, make_cache_key
from src.core.config import LLMConfig, Settings
from src.core.db import AnswerLogRepository
from src.llm.base import LLMProvider, parse_json_response

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DRAFT_SYSTEM_PROMPT = (
    "You are a parts answer engine. You return ONE direct operational answer.\n"
    "Rules:\n"
    "- No links, no lists.\n"
    "- Do not claim you checked inventory systems.\n"
    "- Match tone to a dealership operator: concise, confident, calm.\n"
    '- If confidence=unknown: answer must be "Unknown" or "I can\'t confirm yet."\n'
    '- If confidence=medium: use "likely" or "probably" once, not repeatedly.\n'
    "Return ONLY valid JSON."
)

_DRAFT_SCHEMA = '{\n  "answer": "string",\n  "reason": "string",\n  "next_action": "string"\n}'


def _timed(operation: Callable[[], T]) -> tuple[T, int]:
    """Run ``operation`` and return (result, elapsed milliseconds)."""
    start = time.perf_counter()
    result = operation()
    return result, int((time.perf_counter() - start) * 1000)


def _build_draft_prompt(
    question: str,
    entities: AnswerContext | None,
    confidence: str,
    missing_fields: list[str],
) -> str:
    entities_json = json.dumps(entities.model_dump() if entities else {})
    return (
        f"Normalized question: {question}\n"
        f"Extracted entities: {entities_json}\n"
        f"Confidence: {confidence}\n"
        f"Missing fields: {json.dumps(missing_fields)}\n\n"
        f"Return JSON with this schema:\n{_DRAFT_SCHEMA}"
    )


def fallback_draft(confidence: str, missing_fields: list[str]) -> AnswerDraft:
    """Answer used when the draft call fails or returns an invalid shape."""
    if confidence == "unknown":
        if missing_fields:
            joined = ", ".join(missing_fields)
            return AnswerDraft(
                answer="Unknown",
                reason=f"Missing: {joined}.",
                next_action=f"Provide {joined} to confirm.",
            )
        return AnswerDraft(
            answer="Unknown",
            reason="Missing required details.",
            next_action="Provide the missing required details to confirm.",
        )

    return AnswerDraft(
        answer="I can't confirm yet.",
        reason="Additional information is required.",
        next_action="Provide more details to continue.",
    )


def draft_answer(
    provider: LLMProvider,
    question: str,
    entities: AnswerContext | None,
    confidence: str,
    missing_fields: list[str],
    config: LLMConfig,
) -> AnswerDraft:
    """Draft the operator-facing answer. Falls back instead of raising."""
    prompt = _build_draft_prompt(question, entities, confidence, missing_fields)
    try:
        raw = provider.complete(
            prompt,
            model=config.model,
            system=_DRAFT_SYSTEM_PROMPT,
            temperature=config.temperature,
        )
        return AnswerDraft.model_validate(parse_json_response(raw))
    except Exception:
        logger.warning("Answer draft failed - using fallback", exc_info=True)
        return fallback_draft(confidence, missing_fields)


def handle_answer_request(
    request: AnswerRequest,
    provider: LLMProvider,
    repo: AnswerLogRepository,
    cache: Cache,
    settings: Settings | None = None,
) -> AnswerResponse:
    """Answer one operator question end to end."""
    settings = settings or Settings()
    llm_config = settings.llm

    normalized_question = normalize_question(request.question)
    normalized_context = normalize_context(request.context)
    cache_key = make_cache_key({
        "question": normalized_question,
        "context": normalized_context.model_dump() if normalized_context else None,
    })

    cached: AnswerResponse | None = cache.get(cache_key)
    if cached is not None:
        logger.info("Cache hit for '%s'", normalized_question)
        trace = cached.trace.model_copy(update={
            "request_id": str(uuid.uuid4()),
            "provider": cached.trace.provider.model_copy(update={"latency_ms": 0}),
        })
        return cached.model_copy(update={"trace": trace})

    extraction, intent_ms = _timed(lambda: extract_intent_entities(
        provider, normalized_question, normalized_context, llm_config,
    ))
    intent = extraction.intent
    entities = extraction.entities

    computed = compute_missing_required_fields(intent, entities)
    missing_fields = list(dict.fromkeys([*extraction.missing_required_fields, *computed]))

    confidence = evaluate_confidence(intent, entities, normalized_question, missing_fields)

    draft, draft_ms = _timed(lambda: draft_answer(
        provider, normalized_question, entities, confidence.confidence, missing_fields, llm_config,
    ))

    model_name = llm_config.model or provider.default_model
    trace = EngineTrace(
        request_id=str(uuid.uuid4()),
        normalized_question=normalized_question,
        missing_fields=missing_fields,
        rules_applied=confidence.rules_applied,
        provider=ProviderTrace(llm_model=model_name, latency_ms=intent_ms + draft_ms),
    )
    response = AnswerResponse(
        answer=draft.answer,
        confidence=confidence.confidence,
        reason=draft.reason,
        next_action=draft.next_action,
        intent=intent,
        entities=entities,
        trace=trace,
    )

    repo.create({
        "request_id": trace.request_id,
        "question": request.question,
        "normalized_question": normalized_question,
        "context": normalized_context.model_dump() if normalized_context else {},
        "intent": intent,
        "entities": entities.model_dump(),
        "answer": response.answer,
        "confidence": response.confidence,
        "reason": response.reason,
        "next_action": response.next_action,
        "trace": trace.model_dump(),
        "latency_ms": trace.provider.latency_ms,
        "provider_model": model_name,
    })
    cache.set(cache_key, response)

    logger.info(
        "Answered '%s': intent=%s confidence=%s (%d ms)",
        normalized_question, intent, confidence.confidence, trace.provider.latency_ms,
    )
    return response
