"""Google Gemini LLM provider (google-genai SDK)."""

import logging
import os

from src.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """LLM provider using the Google Gemini API with a JSON response type."""

    @property
    def provider_id(self) -> str:
        return "gemini"

    @property
    def default_model(self) -> str:
        return "gemini-2.5-flash"

    @property
    def env_var(self) -> str:
        return "GOOGLE_API_KEY"

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
            msg = "GOOGLE_API_KEY environment variable is required"
            raise ValueError(msg)

        try:
            from google import genai
            from google.genai import types as genai_types
        except ImportError:
            msg = (
                "google-genai is required for this provider. "
                "Install with: pip install 'parts-answer-engine[gemini]'"
            )
            raise ImportError(msg) from None

        use_model = model or self.default_model
        http_options = None
        if self.timeout_s is not None:
            # google-genai expresses timeouts in milliseconds.
            http_options = genai_types.HttpOptions(timeout=int(self.timeout_s * 1000))

        logger.debug("Sending prompt to Gemini API (%s)", use_model)
        client = genai.Client(api_key=api_key, http_options=http_options)
        response = client.models.generate_content(
            model=use_model,
            contents=prompt,
            config=genai_types.GenerateContentConfig(
                system_instruction=system,
                temperature=temperature,
                response_mime_type="application/json",
            ),
        )

        return response.text or "{}"
