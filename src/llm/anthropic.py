"""Anthropic Claude LLM provider."""

import logging
import os

from src.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class AnthropicProvider(LLMProvider):
    """LLM provider using the Anthropic messages API."""

    @property
    def provider_id(self) -> str:
        return "anthropic"

    @property
    def default_model(self) -> str:
        return "claude-sonnet-4-20250514"

    @property
    def env_var(self) -> str:
        return "ANTHROPIC_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str,
        temperature: float = 0.0,
    ) -> str:
        api_key = os.environ.get(self.env_var)
        if not api_key:
            msg = "ANTHROPIC_API_KEY environment variable is required"
            raise ValueError(msg)

        try:
            import anthropic
        except ImportError:
            msg = (
                "anthropic is required for this provider. "
                "Install with: pip install 'parts-answer-engine[anthropic]'"
            )
            raise ImportError(msg) from None

        client_kwargs: dict[str, float] = {}
        if self.timeout_s is not None:
            client_kwargs["timeout"] = self.timeout_s
        client = anthropic.Anthropic(api_key=api_key, **client_kwargs)
        use_model = model or self.default_model

        logger.debug("Sending prompt to Anthropic API (%s)", use_model)
        message = client.messages.create(
            model=use_model,
            max_tokens=1024,
            temperature=temperature,
            system=system,
            messages=[{"role": "user", "content": prompt}],
        )

        return message.content[0].text  # type: ignore[union-attr]
