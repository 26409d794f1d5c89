"""Orchestrator: one conversational turn of candidate resolution.

Turn flow:
  1. Location resolver (may ask for a location, once)
  2. Collect buckets -> filter chain (radius, pending clarification)
  3. Scorer -> ranker -> tie resolver
  4. Outcome selection by top score and confirmed scope

The function is pure: the returned outcome carries the next EngineState and
nothing else is remembered between calls.
"""

import logging

from src.core.config import EngineConfig, ScoringConfig
from src.core.schemas import (
    AnswerOutcome,
    AskLocationOutcome,
    Candidate,
    ClarifyOutcome,
    EngineInput,
    EngineResponse,
    EngineState,
    StopOutcome,
)
from src.engine.location import resolve_location
from src.engine.matcher import (
    ClarificationFilter,
    Filter,
    LocalRadiusFilter,
    collect_candidates,
    run_filter_chain,
)
from src.engine.ranker import rank_candidates, resolve_tie
from src.engine.scorer import score_candidates

logger = logging.getLogger(__name__)

ASK_LOCATION_MESSAGE = "I don't have your location. What city or ZIP should I search near?"
STOP_MESSAGE = (
    "Not confirmed. Next actions: expand radius, watch/notify, or switch resolution mode."
)

_DEFAULT_ENGINE = EngineConfig()


def run_engine(
    engine_input: EngineInput,
    scoring: ScoringConfig | None = None,
    config: EngineConfig | None = None,
) -> EngineResponse:
    """Decide the outcome of one turn and the state to carry into the next.

    Args:
        engine_input: Extracted location, clarification answer, candidate
            buckets and the prior state for this conversation.
        scoring: Signal weights. Defaults to 0.5 / 0.3 / 0.2.
        config: Radius, tie and confidence thresholds.

    Returns:
        One of the outcome variants. Malformed or thin input ends in a stop
        outcome rather than an exception.
    """
    config = config or _DEFAULT_ENGINE
    state = engine_input.state

    resolution = resolve_location(engine_input, state)
    if resolution.ask:
        return AskLocationOutcome(message=ASK_LOCATION_MESSAGE, state=resolution.state)

    location = resolution.location
    if not location:
        logger.debug("No location after asking - stopping")
        return _stop(resolution.state)

    next_state = resolution.state.model_copy(
        update={
            "last_location": location,
            "mode": "national" if engine_input.allow_national else resolution.state.mode,
        },
    )
    resolving_clarification = state.clarification_asked and bool(
        engine_input.clarification_answer
    )

    filters = _build_filters(engine_input, next_state, config, resolving_clarification)
    candidates = run_filter_chain(collect_candidates(engine_input.candidates), filters)
    if not candidates:
        logger.debug("No candidates survived filtering - stopping")
        return _stop(next_state)

    ranked = rank_candidates(score_candidates(candidates, scoring))
    tie = resolve_tie(ranked, config)
    primary = tie.primary.candidate if tie.primary is not None else None
    top_score = tie.top_score
    logger.debug(
        "Ranked %d candidates: top=%.3f tied=%d primary=%s",
        len(ranked), top_score, len(tie.tied), primary.id if primary else None,
    )

    if resolving_clarification:
        if (
            primary is not None
            and top_score >= config.answer_threshold
            and has_confirmed_scope(primary, location)
        ):
            return _answer(primary, location, next_state)
        return _stop(next_state)

    if top_score >= config.answer_threshold:
        if primary is None or not has_confirmed_scope(primary, location):
            return _stop(next_state)
        return _answer(primary, location, next_state)

    if top_score >= config.clarify_threshold:
        # Never ask twice in one conversation.
        if state.clarification_asked:
            return _stop(next_state)
        options = tuple(s.candidate for s in tie.tied[: config.max_clarify_options])
        return ClarifyOutcome(
            message=clarification_question(options),
            options=options,
            state=next_state.model_copy(update={"clarification_asked": True}),
        )

    return _stop(next_state)


def has_confirmed_scope(candidate: Candidate, location: str | None) -> bool:
    """True when location, availability and an explicit open-now are all known."""
    if not location or not candidate.availability:
        return False
    return candidate.open_now is True


def clarification_question(options: tuple[Candidate, ...] | list[Candidate]) -> str:
    names = [c.name for c in options]
    return f"Which one do you mean: {' or '.join(names)}?"


def answer_message(candidate: Candidate, location: str) -> str:
    return (
        f"Confirmed: {candidate.name} has {candidate.availability} in {location}. "
        "It is open now."
    )


def _answer(candidate: Candidate, location: str, state: EngineState) -> AnswerOutcome:
    return AnswerOutcome(
        message=answer_message(candidate, location),
        candidate=candidate,
        state=state,
    )


def _stop(state: EngineState) -> StopOutcome:
    return StopOutcome(message=STOP_MESSAGE, state=state)


def _build_filters(
    engine_input: EngineInput,
    state: EngineState,
    config: EngineConfig,
    resolving_clarification: bool,
) -> list[Filter]:
    """Build the filter chain for this turn."""
    filters: list[Filter] = []
    if state.mode != "national":
        filters.append(LocalRadiusFilter(config.local_radius_miles))
    if resolving_clarification and engine_input.clarification_answer:
        filters.append(ClarificationFilter(engine_input.clarification_answer))
    return filters
