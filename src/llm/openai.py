"""OpenAI LLM provider."""

import logging
import os

from src.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """LLM provider using the OpenAI chat completions API in JSON mode."""

    @property
    def provider_id(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return "gpt-4.1-mini"

    @property
    def env_var(self) -> str:
        return "OPENAI_API_KEY"

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
            msg = "OPENAI_API_KEY environment variable is required"
            raise ValueError(msg)

        try:
            import openai
        except ImportError:
            msg = (
                "openai is required for this provider. "
                "Install with: pip install 'parts-answer-engine[openai]'"
            )
            raise ImportError(msg) from None

        client_kwargs: dict[str, float] = {}
        if self.timeout_s is not None:
            client_kwargs["timeout"] = self.timeout_s
        client = openai.OpenAI(api_key=api_key, **client_kwargs)
        use_model = model or self.default_model

        logger.debug("Sending prompt to OpenAI API (%s)", use_model)
        response = client.chat.completions.create(
            model=use_model,
            temperature=temperature,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
        )

        return response.choices[0].message.content or "{}"
