"""Gemini adapter: OpenAIAdapter pointed at Gemini's OpenAI-compatible endpoint.

JSON response mode is on by default so the model answers with a bare
analysis object.
"""

from quantumdomino.core.openai_adapter import OpenAIAdapter

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_GEMINI_MODEL = "gemini-3-flash-preview"


class GeminiAdapter(OpenAIAdapter):
    """Adapter for Google Gemini models."""

    def __init__(
        self,
        api_key: str,
        model_id: str = DEFAULT_GEMINI_MODEL,
        temperature: float = 0.7,
        base_url: str | None = None,
    ):
        super().__init__(
            model_id=model_id,
            api_key=api_key,
            base_url=base_url or GEMINI_BASE_URL,
            temperature=temperature,
            json_mode=True,
        )
