"""AnalysisTelemetryLogger: JSONL log of analysis calls.

One logger per session. Each analysis request appends one line holding
the prompt, the raw model output, the parse outcome and token/latency
figures. Nothing is ever read back; the log is for inspection only.
"""

import json
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from pathlib import Path

import quantumdomino

_SCHEMA_VERSION = "1.0.0"


@dataclass
class AnalysisTelemetryEntry:
    """One analysis request."""

    request_number: int
    model_id: str
    model_version: str
    prompt: str
    raw_output: str
    parse_success: bool
    error: str | None
    injection_detected: bool
    state_snapshot: dict
    input_tokens: int = 0
    output_tokens: int = 0
    latency_ms: float = 0.0


class AnalysisTelemetryLogger:
    """Writes JSONL telemetry for a single scoring session."""

    def __init__(self, output_dir: Path, session_id: str):
        self._output_dir = Path(output_dir)
        self._session_id = session_id
        self._output_dir.mkdir(parents=True, exist_ok=True)
        self._file_path = self._output_dir / f"{session_id}.jsonl"

    @property
    def file_path(self) -> Path:
        return self._file_path

    @property
    def session_id(self) -> str:
        return self._session_id

    def log_request(self, entry: AnalysisTelemetryEntry) -> None:
        record = asdict(entry)
        record["schema_version"] = _SCHEMA_VERSION
        record["session_id"] = self._session_id
        record["engine_version"] = quantumdomino.__version__
        record["timestamp"] = datetime.now(timezone.utc).isoformat()
        self._append(record)

    def _append(self, record: dict) -> None:
        with open(self._file_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record, default=str) + "\n")
