"""Anthropic Messages API adapter.

Thinking blocks (if the model emits any) become ``reasoning_text``; the
last text block becomes ``raw_text``. There is no JSON response mode, so
the analysis parser pulls the JSON object out of the text.
"""

import logging
import time
from typing import Any

import anthropic
from anthropic import Anthropic

from quantumdomino.core.adapter import AdapterError, AdapterResponse, ModelAdapter

logger = logging.getLogger(__name__)

_RATE_LIMIT_BACKOFF_S = 5.0


class AnthropicAdapter(ModelAdapter):
    """Adapter for the Anthropic Messages API."""

    def __init__(
        self,
        model_id: str,
        api_key: str,
        temperature: float = 0.0,
    ):
        self._model_id = model_id
        self._temperature = temperature
        self._client = Anthropic(api_key=api_key)

    @property
    def model_id(self) -> str:
        return self._model_id

    def query(
        self,
        messages: list[dict[str, str]],
        max_tokens: int,
        timeout_s: float,
        context: dict[str, Any] | None = None,
    ) -> AdapterResponse:
        start = time.monotonic()
        msg = self._call_api(messages, max_tokens, timeout_s)
        elapsed_ms = (time.monotonic() - start) * 1000

        raw_text = ""
        reasoning_text = None
        for block in msg.content:
            if block.type == "thinking":
                reasoning_text = block.thinking
            elif block.type == "text":
                raw_text = block.text

        if not raw_text:
            raise AdapterError(
                "empty_response", self._model_id,
                "message contained no text block",
            )

        return AdapterResponse(
            raw_text=raw_text,
            reasoning_text=reasoning_text,
            input_tokens=msg.usage.input_tokens,
            output_tokens=msg.usage.output_tokens,
            latency_ms=elapsed_ms,
            model_id=self._model_id,
            model_version=msg.model,
        )

    def _call_api(self, messages, max_tokens, timeout_s):
        """Call the API with one rate-limit retry."""
        for attempt in range(2):
            try:
                return self._client.messages.create(
                    model=self._model_id,
                    messages=messages,
                    max_tokens=max_tokens,
                    temperature=self._temperature,
                    timeout=timeout_s,
                )
            except anthropic.APITimeoutError as e:
                raise AdapterError("timeout", self._model_id, str(e)) from e
            except anthropic.RateLimitError as e:
                if attempt == 0:
                    logger.info(
                        "Rate limited by %s, retrying in %.0fs",
                        self._model_id, _RATE_LIMIT_BACKOFF_S,
                    )
                    time.sleep(_RATE_LIMIT_BACKOFF_S)
                    continue
                raise AdapterError("rate_limit", self._model_id, str(e)) from e
            except anthropic.APIError as e:
                raise AdapterError("api_error", self._model_id, str(e)) from e
            except Exception as e:
                raise AdapterError("api_error", self._model_id, str(e)) from e
        raise AdapterError("api_error", self._model_id, "max retries exceeded")
