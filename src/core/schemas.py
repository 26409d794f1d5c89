"""Core data models for the candidate resolution engine.

All models are frozen. JSON payloads use camelCase keys (``distanceMiles``,
``clarificationAsked``); snake_case attribute names are accepted as well.
"""

import math
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

SourceType = Literal["provider", "feed", "public"]
SearchMode = Literal["local", "national"]
LocationStatus = Literal["resolved", "denied", "unclear"]

STOP_ACTIONS: tuple[str, ...] = ("expand_radius", "watch_notify", "switch_resolution_mode")
ANSWER_ACTIONS: tuple[str, ...] = ("call", "directions")


def _as_float(v: int | float) -> float:
    # Integers too large for a float read as infinity of the same sign.
    try:
        return float(v)
    except OverflowError:
        return math.copysign(math.inf, v)


class _Frozen(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class Candidate(_Frozen):
    """One part-availability listing from a provider, feed, or public source.

    Relevance signals that are not numbers (booleans included) are read as 0.0.
    NaN, infinity and out-of-range values are kept as given and bounded by the
    scorer. Integers too large for a float become infinity.
    """

    id: str
    name: str
    source: SourceType
    authority: float = 0.0
    agreement: float = 0.0
    freshness: float = 0.0
    distance_miles: float | None = None
    availability: str | None = None
    open_now: bool | None = None
    location_label: str | None = None

    @field_validator("authority", "agreement", "freshness", mode="before")
    @classmethod
    def signal_as_float(cls, v: Any) -> float:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return 0.0
        return _as_float(v)

    @field_validator("distance_miles", mode="before")
    @classmethod
    def distance_as_float(cls, v: Any) -> float | None:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return None
        value = _as_float(v)
        if math.isnan(value):
            return None
        return value

    @field_validator("open_now", mode="before")
    @classmethod
    def open_now_strict(cls, v: Any) -> bool | None:
        # Only a real boolean counts; "true" or 1 from upstream is unknown.
        return v if isinstance(v, bool) else None


class ScoredCandidate(_Frozen):
    """Wrapper that pairs a frozen Candidate with its combined relevance score."""

    candidate: Candidate
    score: float = Field(default=0.0, ge=0.0, le=1.0)


class EngineLocation(_Frozen):
    """Location as resolved by the upstream extraction stage."""

    status: LocationStatus
    city_zip: str | None = None


class CandidateBuckets(_Frozen):
    """Candidate lists grouped by provenance."""

    provider: list[Candidate] = Field(default_factory=list)
    feed: list[Candidate] = Field(default_factory=list)
    public: list[Candidate] = Field(default_factory=list)

    @field_validator("provider", "feed", "public", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class EngineState(_Frozen):
    """Everything the engine remembers between turns of one conversation."""

    clarification_asked: bool = False
    location_asked: bool = False
    last_location: str | None = None
    mode: SearchMode = "local"

    @field_validator("mode", mode="before")
    @classmethod
    def mode_default(cls, v: Any) -> Any:
        return "local" if v is None else v


class EngineInput(_Frozen):
    """Structured input for a single engine turn."""

    intent: str = ""
    location: EngineLocation | None = None
    location_input: str | None = None
    clarification_answer: str | None = None
    candidates: CandidateBuckets = Field(default_factory=CandidateBuckets)
    state: EngineState = Field(default_factory=EngineState)
    allow_national: bool = False

    @field_validator("candidates", "state", mode="before")
    @classmethod
    def none_as_default(cls, v: Any) -> Any:
        return {} if v is None else v


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


class _Outcome(_Frozen):
    message: str
    state: EngineState


class AnswerOutcome(_Outcome):
    """A single candidate is confirmed for the resolved location."""

    type: Literal["answer"] = "answer"
    candidate: Candidate
    actions: tuple[str, ...] = ANSWER_ACTIONS


class ClarifyOutcome(_Outcome):
    """The user is asked to pick between near-equal candidates."""

    type: Literal["clarify"] = "clarify"
    options: tuple[Candidate, ...]


class AskLocationOutcome(_Outcome):
    type: Literal["ask_location"] = "ask_location"


class StopOutcome(_Outcome):
    """Nothing could be confirmed; fallback actions are offered."""

    type: Literal["stop"] = "stop"
    actions: tuple[str, ...] = STOP_ACTIONS


class HandoffOutcome(_Outcome):
    """Reserved for routing to a human. Not produced by the decision logic."""

    type: Literal["handoff"] = "handoff"


EngineResponse = Annotated[
    AnswerOutcome | ClarifyOutcome | AskLocationOutcome | StopOutcome | HandoffOutcome,
    Field(discriminator="type"),
]

engine_response_adapter: TypeAdapter[EngineResponse] = TypeAdapter(EngineResponse)
