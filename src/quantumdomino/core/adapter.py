"""ModelAdapter: one interface over every text-generation backend.

- MockAdapter: deterministic and offline, driven by a strategy callable
- OpenAIAdapter / AnthropicAdapter / GeminiAdapter: live SDK-backed clients
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable
import time


class AdapterError(Exception):
    """Raised by adapters on any backend failure.

    Raw SDK exceptions never cross this boundary. ``error_type`` is one of
    "timeout", "rate_limit", "api_error", "empty_response",
    "missing_credential" or "unsupported_provider".
    """

    def __init__(
        self,
        error_type: str,
        model_id: str,
        details: str = "",
    ):
        self.error_type = error_type
        self.model_id = model_id
        self.details = details
        super().__init__(f"{error_type} from {model_id}: {details}")


@dataclass(frozen=True)
class AdapterResponse:
    """Immutable response from a model query."""

    raw_text: str
    reasoning_text: str | None
    input_tokens: int
    output_tokens: int
    latency_ms: float
    model_id: str
    model_version: str


class ModelAdapter(ABC):
    """Abstract base for all model adapters."""

    @property
    @abstractmethod
    def model_id(self) -> str:
        """Identifier of the configured model."""

    @abstractmethod
    def query(
        self,
        messages: list[dict[str, str]],
        max_tokens: int,
        timeout_s: float,
        context: dict[str, Any] | None = None,
    ) -> AdapterResponse:
        """Send messages to the model and return its response."""


# Approximate chars per token for mock truncation
_CHARS_PER_TOKEN = 4

MockStrategy = Callable[[list[dict[str, str]], dict[str, Any]], str]


class MockAdapter(ModelAdapter):
    """Offline adapter for tests and demos.

    The strategy callable receives (messages, context) and returns the raw
    text the "model" would have produced.
    """

    def __init__(self, model_id: str, strategy: MockStrategy):
        self._model_id = model_id
        self._strategy = strategy

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
        raw = self._strategy(messages, context or {})

        max_chars = max_tokens * _CHARS_PER_TOKEN
        if len(raw) > max_chars:
            raw = raw[:max_chars]

        elapsed_ms = (time.monotonic() - start) * 1000
        prompt_chars = sum(len(m.get("content", "")) for m in messages)

        return AdapterResponse(
            raw_text=raw,
            reasoning_text=None,
            input_tokens=prompt_chars // _CHARS_PER_TOKEN,
            output_tokens=max(1, len(raw) // _CHARS_PER_TOKEN),
            latency_ms=elapsed_ms,
            model_id=self._model_id,
            model_version=self._model_id,
        )
