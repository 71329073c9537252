"""Analysis client: session snapshot in, AnalysisResult (or None) out.

Pipeline per request: build prompt -> query adapter -> sanitize ->
parse/validate -> telemetry. Every failure along the way (missing
credential, SDK error, unparseable or off-schema output) is logged and
collapses to ``None``; callers never see an exception.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from typing import Any

from quantumdomino.config import AnalysisConfig
from quantumdomino.core.adapter import AdapterError, MockAdapter, ModelAdapter
from quantumdomino.core.anthropic_adapter import AnthropicAdapter
from quantumdomino.core.engine import compute_totals, winner
from quantumdomino.core.gemini_adapter import GeminiAdapter
from quantumdomino.core.models import AnalysisResult, SessionState
from quantumdomino.core.openai_adapter import OpenAIAdapter
from quantumdomino.core.parser import AnalysisParser
from quantumdomino.core.sanitizer import clean_label, sanitize_text
from quantumdomino.core.schemas import analysis_schema
from quantumdomino.core.telemetry import AnalysisTelemetryEntry, AnalysisTelemetryLogger

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Prompt
# ------------------------------------------------------------------

def build_prompt(state: SessionState) -> str:
    """Render the analysis request for ``state``."""
    totals = compute_totals(state.rounds)
    history = ", ".join(
        f"{r.points_a}-{r.points_b}" for r in reversed(state.rounds)
    )
    return (
        "Analyze this futuristic domino match:\n"
        f"Team A ({clean_label(state.team_a_name)}): {totals.a} points.\n"
        f"Team B ({clean_label(state.team_b_name)}): {totals.b} points.\n"
        f"Target score to win: {state.winning_score}.\n"
        f"History of rounds (A vs B, oldest first): {history or 'none'}.\n"
        "\n"
        "Provide a strategic summary, a prediction of who will win based on "
        "the momentum, and 3 futuristic tactical tips for the losing team.\n"
        'Answer with a single JSON object with the keys "summary" (string), '
        '"prediction" (string) and "tips" (array of exactly 3 strings).'
    )


def can_request_analysis(state: SessionState) -> bool:
    """Analysis only makes sense mid-game: some rounds, nobody has won."""
    return bool(state.rounds) and winner(state) is None


# ------------------------------------------------------------------
# Mock strategies
# ------------------------------------------------------------------

def momentum_strategy(messages: list[dict[str, str]], context: dict[str, Any]) -> str:
    """Well-formed analysis derived from the snapshot in ``context``."""
    snap = context.get("snapshot", {})
    rounds = snap.get("rounds", [])
    total_a = sum(r["points_a"] for r in rounds)
    total_b = sum(r["points_b"] for r in rounds)
    names = {"A": snap.get("team_a_name", "Team A"), "B": snap.get("team_b_name", "Team B")}

    # Last three rounds, newest first in the snapshot
    recent_a = sum(r["points_a"] for r in rounds[:3])
    recent_b = sum(r["points_b"] for r in rounds[:3])
    hot = "A" if recent_a >= recent_b else "B"
    trailing = "B" if total_a >= total_b else "A"

    return json.dumps({
        "summary": (
            f"{names['A']} {total_a} - {total_b} {names['B']} "
            f"after {len(rounds)} rounds, racing to {snap.get('winning_score')}."
        ),
        "prediction": f"{names[hot]} carries the momentum of the last rounds.",
        "tips": [
            f"{names[trailing]}: hold doubles back until the board opens.",
            f"{names[trailing]}: block the suit your opponent keeps playing.",
            f"{names[trailing]}: count the pips left before every draw.",
        ],
    })


def garbage_strategy(messages: list[dict[str, str]], context: dict[str, Any]) -> str:
    """Prose with no JSON in it."""
    return "The quantum field is too turbulent to read right now."


_STRATEGY_REGISTRY = {
    "momentum": momentum_strategy,
    "garbage": garbage_strategy,
}


# ------------------------------------------------------------------
# Adapter factory
# ------------------------------------------------------------------

def _resolve_api_key(cfg: AnalysisConfig) -> str:
    if not cfg.api_key_env:
        raise AdapterError(
            "missing_credential", cfg.model_id or cfg.provider,
            "no api_key_env configured",
        )
    key = os.environ.get(cfg.api_key_env)
    if not key:
        raise AdapterError(
            "missing_credential", cfg.model_id or cfg.provider,
            f"environment variable {cfg.api_key_env} not set",
        )
    return key


def build_adapter(cfg: AnalysisConfig) -> ModelAdapter:
    """Build the adapter described by ``cfg``.

    Raises AdapterError when the adapter cannot be built (no credential,
    unknown provider or mock strategy).
    """
    if cfg.provider == "mock":
        strategy_fn = _STRATEGY_REGISTRY.get(cfg.strategy or "momentum")
        if strategy_fn is None:
            raise AdapterError(
                "unsupported_provider", "mock",
                f"unknown mock strategy {cfg.strategy!r}, "
                f"available: {list(_STRATEGY_REGISTRY)}",
            )
        return MockAdapter(model_id=f"mock-{cfg.strategy or 'momentum'}", strategy=strategy_fn)

    if cfg.provider == "gemini":
        return GeminiAdapter(
            api_key=_resolve_api_key(cfg),
            model_id=cfg.model_id or "gemini-3-flash-preview",
            temperature=cfg.temperature,
            base_url=cfg.base_url,
        )
    if cfg.provider == "openai":
        return OpenAIAdapter(
            model_id=cfg.model_id or "gpt-4o-mini",
            api_key=_resolve_api_key(cfg),
            base_url=cfg.base_url,
            temperature=cfg.temperature,
        )
    if cfg.provider == "anthropic":
        return AnthropicAdapter(
            model_id=cfg.model_id or "claude-haiku-4-5",
            api_key=_resolve_api_key(cfg),
            temperature=cfg.temperature,
        )
    raise AdapterError(
        "unsupported_provider", cfg.model_id or cfg.provider,
        f"unsupported provider {cfg.provider!r}",
    )


# ------------------------------------------------------------------
# Client
# ------------------------------------------------------------------

class AnalysisClient:
    """Requests commentary for a session snapshot.

    The adapter is built on first use, so a missing credential only
    disables analysis instead of failing at startup. Safe to call from
    several worker threads at once: the request counter and the adapter
    build are guarded by a lock.
    """

    def __init__(
        self,
        config: AnalysisConfig,
        adapter: ModelAdapter | None = None,
        telemetry: AnalysisTelemetryLogger | None = None,
    ):
        self._config = config
        self._adapter = adapter
        self._telemetry = telemetry
        self._parser = AnalysisParser(analysis_schema())
        self._request_count = 0
        self._lock = threading.Lock()

    @property
    def request_count(self) -> int:
        return self._request_count

    def analyze(self, state: SessionState) -> AnalysisResult | None:
        with self._lock:
            self._request_count += 1
            request_number = self._request_count
        prompt = build_prompt(state)
        snapshot = state.to_dict()

        try:
            adapter = self._get_adapter()
            response = adapter.query(
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self._config.max_output_tokens,
                timeout_s=self._config.timeout_s,
                context={"snapshot": snapshot},
            )
        except AdapterError as exc:
            logger.warning("Analysis unavailable: %s", exc)
            self._record(AnalysisTelemetryEntry(
                request_number=request_number,
                model_id=exc.model_id,
                model_version="",
                prompt=prompt,
                raw_output="",
                parse_success=False,
                error=f"{exc.error_type}: {exc.details}",
                injection_detected=False,
                state_snapshot=snapshot,
            ))
            return None

        raw_text = sanitize_text(response.raw_text)
        parsed = self._parser.parse(raw_text)
        if parsed.injection_detected:
            logger.warning(
                "Possible prompt injection in output from %s", response.model_id
            )

        self._record(AnalysisTelemetryEntry(
            request_number=request_number,
            model_id=response.model_id,
            model_version=response.model_version,
            prompt=prompt,
            raw_output=raw_text,
            parse_success=parsed.success,
            error=parsed.error,
            injection_detected=parsed.injection_detected,
            state_snapshot=snapshot,
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
            latency_ms=response.latency_ms,
        ))

        if not parsed.success:
            logger.warning(
                "Rejected analysis from %s: %s", response.model_id, parsed.error
            )
            return None
        return parsed.analysis

    def _get_adapter(self) -> ModelAdapter:
        with self._lock:
            if self._adapter is None:
                self._adapter = build_adapter(self._config)
                logger.info("Analysis adapter ready: %s", self._adapter.model_id)
            return self._adapter

    def _record(self, entry: AnalysisTelemetryEntry) -> None:
        if self._telemetry is None:
            return
        try:
            self._telemetry.log_request(entry)
        except OSError as exc:
            logger.warning("Failed to write analysis telemetry: %s", exc)
