"""Configuration models and YAML loader for the parts answer engine."""

import math
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


class ScoringConfig(BaseModel):
    """Weights for combining candidate relevance signals."""

    authority_weight: float = Field(default=0.5, ge=0.0, le=1.0)
    agreement_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    freshness_weight: float = Field(default=0.2, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def weights_sum_to_one(self) -> "ScoringConfig":
        total = self.authority_weight + self.agreement_weight + self.freshness_weight
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            msg = f"scoring weights must sum to 1.0, got {total}"
            raise ValueError(msg)
        return self


class EngineConfig(BaseModel):
    """Thresholds for ranking, tie-breaking, and outcome selection."""

    local_radius_miles: float = Field(default=25.0, gt=0.0)
    tie_score_delta: float = Field(default=0.02, ge=0.0, le=1.0)
    distance_tie_break_miles: float = Field(default=5.0, ge=0.0)
    answer_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    clarify_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    max_clarify_options: int = Field(default=3, ge=1)

    @model_validator(mode="after")
    def clarify_below_answer(self) -> "EngineConfig":
        if self.clarify_threshold > self.answer_threshold:
            msg = "clarify_threshold must not exceed answer_threshold"
            raise ValueError(msg)
        return self


class LLMConfig(BaseModel):
    """Generative text provider used for extraction and drafting."""

    provider: str = "openai"
    model: str | None = None
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    timeout_s: float = Field(default=8.0, gt=0.0)

    @field_validator("provider")
    @classmethod
    def provider_not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "provider must not be empty"
            raise ValueError(msg)
        return v.strip().lower()


class CacheConfig(BaseModel):
    """Response cache settings."""

    enabled: bool = True
    ttl_seconds: int = Field(default=300, ge=1)


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/answer_engine.db"


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
