"""Abstract base class for LLM providers and JSON response parsing."""

import json
import re
from abc import ABC, abstractmethod
from typing import Any


def parse_json_response(raw_text: str) -> dict[str, Any]:
    """Decode an LLM response into a JSON object.

    Handles markdown-wrapped JSON (```json ... ```) and plain JSON.

    Raises:
        ValueError: If the text is not JSON or not a JSON object.
    """
    cleaned = re.sub(r"^```(?:json)?\s*\n?", "", raw_text.strip())
    cleaned = re.sub(r"\n?```\s*$", "", cleaned)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        msg = f"Failed to parse LLM response as JSON: {e}"
        raise ValueError(msg) from e

    if not isinstance(data, dict):
        msg = f"Expected a JSON object from LLM, got {type(data).__name__}"
        raise ValueError(msg)
    return data


class LLMProvider(ABC):
    """Base class that every LLM provider must implement."""

    def __init__(self, timeout_s: float | None = None) -> None:
        self.timeout_s = timeout_s

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'openai')."""

    @property
    @abstractmethod
    def default_model(self) -> str:
        """The default model ID used when no override is specified."""

    @property
    @abstractmethod
    def env_var(self) -> str:
        """Environment variable name for the API key."""

    @abstractmethod
    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str,
        temperature: float = 0.0,
    ) -> str:
        """Send a prompt to the LLM and return the raw response text.

        Args:
            prompt: User message.
            model: Override the provider's default model. None uses default.
            system: System instructions.
            temperature: Sampling temperature.

        Returns:
            Raw text response from the LLM (expected to be JSON).
        """
