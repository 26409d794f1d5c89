"""Request, extraction and response models for the answer pipeline."""

from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

Intent = Literal[
    "PART_AVAILABILITY_LOCAL",
    "PART_ELIGIBILITY",
    "PART_AVAILABILITY_AND_ELIGIBILITY",
    "CLARIFY_REQUEST",
    "UNKNOWN_INTENT",
]
ALLOWED_INTENTS: tuple[str, ...] = get_args(Intent)

ConfidenceLevel = Literal["high", "medium", "low", "unknown"]


class Vehicle(BaseModel):
    year: int | None = None
    make: str | None = None
    model: str | None = None
    trim: str | None = None
    engine: str | None = None
    vin: str | None = None


class Part(BaseModel):
    name: str | None = None
    oem_part_number: str | None = None


class LocationContext(BaseModel):
    postal_code: str | None = None
    radius_miles: float | None = None


class AnswerContext(BaseModel):
    """Vehicle, part and location details known before the question is read."""

    vehicle: Vehicle | None = None
    part: Part | None = None
    location: LocationContext | None = None


class AnswerRequest(BaseModel):
    """A single operator question."""

    question: str = Field(min_length=1)
    context: AnswerContext | None = None
    mode: Literal["pilot", "internal_test"] = "pilot"

    @field_validator("question")
    @classmethod
    def question_not_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "question must not be empty"
            raise ValueError(msg)
        return v


class IntentExtraction(BaseModel):
    """Structured output of the intent/entity extraction prompt."""

    intent: Intent
    entities: AnswerContext = Field(default_factory=AnswerContext)
    missing_required_fields: list[str] = Field(default_factory=list)
    notes: str | None = None

    @field_validator("entities", mode="before")
    @classmethod
    def none_as_empty(cls, v: object) -> object:
        return {} if v is None else v


class AnswerDraft(BaseModel):
    """The drafted operator-facing answer."""

    answer: str
    reason: str
    next_action: str


class ProviderTrace(BaseModel):
    llm_model: str
    latency_ms: int = 0


class EngineTrace(BaseModel):
    """Diagnostics attached to every answer."""

    request_id: str
    normalized_question: str
    missing_fields: list[str] = Field(default_factory=list)
    rules_applied: list[str] = Field(default_factory=list)
    provider: ProviderTrace


class AnswerResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    answer: str
    confidence: ConfidenceLevel
    reason: str
    next_action: str
    intent: Intent
    entities: AnswerContext | None = None
    trace: EngineTrace
