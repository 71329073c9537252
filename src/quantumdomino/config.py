"""Application configuration loader."""

import yaml
from dataclasses import dataclass, field
from pathlib import Path

from quantumdomino.core.models import (
    DEFAULT_TEAM_A_NAME,
    DEFAULT_TEAM_B_NAME,
    DEFAULT_WINNING_SCORE,
)

PROVIDERS = ("mock", "openai", "anthropic", "gemini")
DEFAULT_SCORE_PRESETS = [100, 150, 200, 500]


@dataclass
class SessionConfig:
    team_a_name: str = DEFAULT_TEAM_A_NAME
    team_b_name: str = DEFAULT_TEAM_B_NAME
    winning_score: int = DEFAULT_WINNING_SCORE
    score_presets: list[int] = field(
        default_factory=lambda: list(DEFAULT_SCORE_PRESETS)
    )


@dataclass
class AnalysisConfig:
    provider: str = "gemini"  # "mock", "openai", "anthropic", "gemini"
    model_id: str | None = "gemini-3-flash-preview"
    api_key_env: str | None = "GEMINI_API_KEY"  # env var name for API key
    base_url: str | None = None         # custom API base URL
    strategy: str | None = None         # for mock provider
    temperature: float = 0.7
    max_output_tokens: int = 1024
    timeout_s: float = 30.0


@dataclass
class AppConfig:
    session: SessionConfig = field(default_factory=SessionConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    telemetry_dir: Path | None = None


def default_config() -> AppConfig:
    return AppConfig()


def _positive_int(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")
    return value


def load_config(path: Path) -> AppConfig:
    """Load application config from a YAML file.

    Every section and key is optional; missing values fall back to the
    defaults above. An API key is never read here, only the name of the
    environment variable holding it.
    """
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"{path}: top level must be a mapping")

    s = raw.get("session") or {}
    a = raw.get("analysis") or {}
    defaults = AnalysisConfig()

    presets = s.get("score_presets", DEFAULT_SCORE_PRESETS)
    session = SessionConfig(
        team_a_name=str(s.get("team_a_name", DEFAULT_TEAM_A_NAME)),
        team_b_name=str(s.get("team_b_name", DEFAULT_TEAM_B_NAME)),
        winning_score=_positive_int(
            s.get("winning_score", DEFAULT_WINNING_SCORE), "session.winning_score"
        ),
        score_presets=[
            _positive_int(p, "session.score_presets[]") for p in presets
        ],
    )

    provider = a.get("provider", defaults.provider)
    if provider not in PROVIDERS:
        raise ValueError(
            f"Unsupported provider: {provider!r}. Available: {list(PROVIDERS)}"
        )

    analysis = AnalysisConfig(
        provider=provider,
        model_id=a.get("model_id", defaults.model_id),
        api_key_env=a.get("api_key_env", defaults.api_key_env),
        base_url=a.get("base_url"),
        strategy=a.get("strategy"),
        temperature=a.get("temperature", defaults.temperature),
        max_output_tokens=a.get("max_output_tokens", defaults.max_output_tokens),
        timeout_s=a.get("timeout_s", defaults.timeout_s),
    )

    telemetry_dir = raw.get("telemetry_dir")

    return AppConfig(
        session=session,
        analysis=analysis,
        telemetry_dir=Path(telemetry_dir) if telemetry_dir else None,
    )
