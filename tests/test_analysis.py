"""Tests for the analysis client, prompt builder and adapter factory."""

import json
import os
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import pytest

from quantumdomino.analysis import (
    AnalysisClient,
    build_adapter,
    build_prompt,
    can_request_analysis,
    garbage_strategy,
    momentum_strategy,
)
from quantumdomino.config import AnalysisConfig
from quantumdomino.core.adapter import AdapterError, AdapterResponse, MockAdapter
from quantumdomino.core.anthropic_adapter import AnthropicAdapter
from quantumdomino.core.gemini_adapter import GeminiAdapter
from quantumdomino.core.models import AnalysisResult, Round, SessionState
from quantumdomino.core.openai_adapter import OpenAIAdapter
from quantumdomino.core.telemetry import AnalysisTelemetryLogger


def _state(*pairs, **kwargs) -> SessionState:
    """Build a state from (points_a, points_b) pairs given oldest first."""
    rounds = tuple(
        Round(id=f"r{i}", points_a=a, points_b=b, timestamp=float(i))
        for i, (a, b) in enumerate(pairs, 1)
    )
    return SessionState(rounds=tuple(reversed(rounds)), **kwargs)


def _response(text: str) -> AdapterResponse:
    return AdapterResponse(
        raw_text=text,
        reasoning_text=None,
        input_tokens=12,
        output_tokens=34,
        latency_ms=5.0,
        model_id="fake-model",
        model_version="fake-model-001",
    )


VALID = json.dumps({
    "summary": "Tight race",
    "prediction": "Cyber Nexus by a tile",
    "tips": ["Block fives", "Hold the double six", "Count pips"],
})


# ------------------------------------------------------------------
# Prompt
# ------------------------------------------------------------------

class TestBuildPrompt:
    def test_contains_names_totals_and_target(self):
        prompt = build_prompt(_state((120, 0), (0, 90), (85, 0)))
        assert "Team A (Cyber Nexus): 205 points." in prompt
        assert "Team B (Void Runners): 90 points." in prompt
        assert "Target score to win: 200." in prompt

    def test_history_oldest_first(self):
        prompt = build_prompt(_state((120, 0), (0, 90)))
        assert "120-0, 0-90" in prompt

    def test_asks_for_json_keys(self):
        prompt = build_prompt(_state((1, 0)))
        assert '"summary"' in prompt
        assert '"prediction"' in prompt
        assert '"tips"' in prompt

    def test_team_names_are_flattened(self):
        state = _state((1, 0), team_a_name="Line\nBreak\x00 Crew")
        prompt = build_prompt(state)
        assert "Team A (Line Break Crew)" in prompt


class TestCanRequest:
    def test_empty_game(self):
        assert can_request_analysis(SessionState()) is False

    def test_mid_game(self):
        assert can_request_analysis(_state((10, 0))) is True

    def test_after_win(self):
        assert can_request_analysis(_state((250, 0))) is False


# ------------------------------------------------------------------
# Mock strategies
# ------------------------------------------------------------------

class TestStrategies:
    def test_momentum_is_valid_analysis(self):
        snap = _state((10, 0), (0, 40)).to_dict()
        raw = momentum_strategy([], {"snapshot": snap})
        data = json.loads(raw)
        assert len(data["tips"]) == 3
        assert "10 - 40" in data["summary"]
        assert data["tips"][0].startswith("Cyber Nexus")

    def test_garbage_has_no_json(self):
        assert "{" not in garbage_strategy([], {})


# ------------------------------------------------------------------
# Adapter factory
# ------------------------------------------------------------------

class TestBuildAdapter:
    def test_mock_provider(self):
        adapter = build_adapter(AnalysisConfig(provider="mock", strategy="momentum"))
        assert isinstance(adapter, MockAdapter)
        assert adapter.model_id == "mock-momentum"

    def test_mock_default_strategy(self):
        adapter = build_adapter(AnalysisConfig(provider="mock"))
        assert adapter.model_id == "mock-momentum"

    def test_unknown_mock_strategy(self):
        with pytest.raises(AdapterError) as exc_info:
            build_adapter(AnalysisConfig(provider="mock", strategy="psychic"))
        assert exc_info.value.error_type == "unsupported_provider"

    @patch.dict(os.environ, {"TEST_GEMINI_KEY": "gk-test"})
    @patch("quantumdomino.core.openai_adapter.OpenAI")
    def test_gemini_provider(self, MockOpenAI):
        adapter = build_adapter(
            AnalysisConfig(provider="gemini", api_key_env="TEST_GEMINI_KEY")
        )
        assert isinstance(adapter, GeminiAdapter)
        assert MockOpenAI.call_args[1]["api_key"] == "gk-test"

    @patch.dict(os.environ, {"TEST_OPENAI_KEY": "sk-test"})
    @patch("quantumdomino.core.openai_adapter.OpenAI")
    def test_openai_provider(self, MockOpenAI):
        adapter = build_adapter(AnalysisConfig(
            provider="openai", model_id="gpt-4o", api_key_env="TEST_OPENAI_KEY",
        ))
        assert isinstance(adapter, OpenAIAdapter)
        assert adapter.model_id == "gpt-4o"

    @patch.dict(os.environ, {"TEST_ANTHROPIC_KEY": "sk-ant-test"})
    @patch("quantumdomino.core.anthropic_adapter.Anthropic")
    def test_anthropic_provider(self, MockAnthropic):
        adapter = build_adapter(AnalysisConfig(
            provider="anthropic",
            model_id="claude-haiku-4-5",
            api_key_env="TEST_ANTHROPIC_KEY",
        ))
        assert isinstance(adapter, AnthropicAdapter)

    def test_missing_api_key_env_var(self):
        with pytest.raises(AdapterError, match="not set") as exc_info:
            build_adapter(AnalysisConfig(
                provider="gemini", api_key_env="NONEXISTENT_KEY_VAR_12345",
            ))
        assert exc_info.value.error_type == "missing_credential"

    def test_no_api_key_env_configured(self):
        with pytest.raises(AdapterError) as exc_info:
            build_adapter(AnalysisConfig(provider="openai", api_key_env=None))
        assert exc_info.value.error_type == "missing_credential"

    def test_unknown_provider(self):
        with pytest.raises(AdapterError, match="unsupported provider"):
            build_adapter(AnalysisConfig(provider="palm"))


# ------------------------------------------------------------------
# Client
# ------------------------------------------------------------------

class TestAnalysisClient:
    def test_success(self):
        adapter = MagicMock()
        adapter.query.return_value = _response(VALID)
        client = AnalysisClient(AnalysisConfig(), adapter=adapter)

        result = client.analyze(_state((10, 0)))

        assert result == AnalysisResult(
            summary="Tight race",
            prediction="Cyber Nexus by a tile",
            tips=("Block fives", "Hold the double six", "Count pips"),
        )

    def test_query_arguments(self):
        adapter = MagicMock()
        adapter.query.return_value = _response(VALID)
        cfg = AnalysisConfig(max_output_tokens=321, timeout_s=9.0)
        AnalysisClient(cfg, adapter=adapter).analyze(_state((10, 0)))

        kwargs = adapter.query.call_args[1]
        assert kwargs["max_tokens"] == 321
        assert kwargs["timeout_s"] == 9.0
        assert kwargs["messages"][0]["role"] == "user"
        assert kwargs["context"]["snapshot"]["winning_score"] == 200

    def test_json_in_prose_accepted(self):
        adapter = MagicMock()
        adapter.query.return_value = _response(f"Here you go:\n```json\n{VALID}\n```")
        result = AnalysisClient(AnalysisConfig(), adapter=adapter).analyze(_state((1, 0)))
        assert result is not None
        assert result.summary == "Tight race"

    def test_adapter_error_returns_none(self):
        adapter = MagicMock()
        adapter.query.side_effect = AdapterError("timeout", "fake-model", "slow")
        result = AnalysisClient(AnalysisConfig(), adapter=adapter).analyze(_state((1, 0)))
        assert result is None

    def test_off_schema_returns_none(self):
        adapter = MagicMock()
        adapter.query.return_value = _response(
            json.dumps({"summary": "s", "prediction": "p", "tips": ["only one"]})
        )
        result = AnalysisClient(AnalysisConfig(), adapter=adapter).analyze(_state((1, 0)))
        assert result is None

    def test_garbage_returns_none(self):
        adapter = MockAdapter("mock-garbage", garbage_strategy)
        assert AnalysisClient(AnalysisConfig(), adapter=adapter).analyze(_state((1, 0))) is None

    def test_missing_credential_returns_none(self):
        cfg = AnalysisConfig(provider="gemini", api_key_env="NONEXISTENT_KEY_VAR_12345")
        client = AnalysisClient(cfg)
        assert client.analyze(_state((1, 0))) is None
        assert client.request_count == 1

    def test_mock_provider_end_to_end(self):
        client = AnalysisClient(AnalysisConfig(provider="mock", strategy="momentum"))
        result = client.analyze(_state((30, 0), (0, 10)))
        assert result is not None
        assert len(result.tips) == 3

    def test_adapter_built_once(self):
        client = AnalysisClient(AnalysisConfig(provider="mock"))
        with patch("quantumdomino.analysis.build_adapter", wraps=build_adapter) as spy:
            client.analyze(_state((1, 0)))
            client.analyze(_state((2, 0)))
        assert spy.call_count == 1


class TestAnalysisTelemetry:
    def test_success_logged(self, tmp_path):
        telemetry = AnalysisTelemetryLogger(tmp_path, "session-test")
        adapter = MagicMock()
        adapter.query.return_value = _response(VALID)
        client = AnalysisClient(AnalysisConfig(), adapter=adapter, telemetry=telemetry)

        client.analyze(_state((5, 0)))

        record = json.loads(telemetry.file_path.read_text().strip())
        assert record["parse_success"] is True
        assert record["model_version"] == "fake-model-001"
        assert record["output_tokens"] == 34
        assert record["session_id"] == "session-test"
        assert record["state_snapshot"]["rounds"][0]["points_a"] == 5

    def test_adapter_failure_logged(self, tmp_path):
        telemetry = AnalysisTelemetryLogger(tmp_path, "session-test")
        adapter = MagicMock()
        adapter.query.side_effect = AdapterError("api_error", "fake-model", "500")
        client = AnalysisClient(AnalysisConfig(), adapter=adapter, telemetry=telemetry)

        client.analyze(_state((5, 0)))

        record = json.loads(telemetry.file_path.read_text().strip())
        assert record["parse_success"] is False
        assert record["error"] == "api_error: 500"

    def test_telemetry_write_failure_does_not_break_analysis(self, tmp_path):
        telemetry = MagicMock()
        telemetry.log_request.side_effect = OSError("disk full")
        adapter = MagicMock()
        adapter.query.return_value = _response(VALID)
        client = AnalysisClient(AnalysisConfig(), adapter=adapter, telemetry=telemetry)

        assert client.analyze(_state((5, 0))) is not None


class TestConcurrentRequests:
    def test_parallel_requests_share_one_adapter(self, tmp_path):
        def slow_build(cfg):
            time.sleep(0.05)
            return MockAdapter("mock-momentum", momentum_strategy)

        telemetry = AnalysisTelemetryLogger(tmp_path, "session-par")
        client = AnalysisClient(AnalysisConfig(provider="mock"), telemetry=telemetry)

        with patch("quantumdomino.analysis.build_adapter", side_effect=slow_build) as spy:
            with ThreadPoolExecutor(max_workers=4) as pool:
                results = list(pool.map(client.analyze, [_state((i, 0)) for i in range(1, 9)]))

        assert spy.call_count == 1
        assert all(r is not None for r in results)
        assert client.request_count == 8
        lines = telemetry.file_path.read_text().strip().split("\n")
        numbers = sorted(json.loads(line)["request_number"] for line in lines)
        assert numbers == list(range(1, 9))
