"""AnalysisParser: turn raw model output into an AnalysisResult.

JSON-mode backends answer with a bare object, so the whole text is tried
first. Otherwise every ``{ ... }`` span in the text is a candidate, and
the last one that decodes and validates against the schema wins (models
that restate their answer after a correction mean the final one).
"""

import json
import re
from dataclasses import dataclass

import jsonschema

from quantumdomino.core.models import AnalysisResult
from quantumdomino.core.sanitizer import detect_injection

# Outermost { ... } with at most one level of nested braces
_JSON_OBJECT_RE = re.compile(r"\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}")


@dataclass(frozen=True)
class ParseResult:
    """Result of parsing one analysis response."""

    success: bool
    analysis: AnalysisResult | None
    raw_json: str | None
    error: str | None
    injection_detected: bool


class AnalysisParser:
    """Extract and validate the analysis object from model output."""

    def __init__(self, schema: dict):
        self._schema = schema

    def parse(self, raw_text: str) -> ParseResult:
        injection = detect_injection(raw_text)
        stripped = raw_text.strip()

        candidates = [stripped] if stripped.startswith("{") else []
        candidates += _JSON_OBJECT_RE.findall(raw_text)

        if not candidates:
            return ParseResult(
                success=False,
                analysis=None,
                raw_json=None,
                error="No JSON object found in output",
                injection_detected=injection,
            )

        last_error = None
        best = None

        for candidate in candidates:
            try:
                parsed = json.loads(candidate)
            except json.JSONDecodeError as e:
                last_error = f"JSON parse error: {e}"
                continue

            if not isinstance(parsed, dict):
                last_error = "JSON value is not an object"
                continue

            try:
                jsonschema.validate(parsed, self._schema)
            except jsonschema.ValidationError as e:
                last_error = f"Schema validation: {e.message}"
                continue

            best = (parsed, candidate)

        if best:
            return ParseResult(
                success=True,
                analysis=AnalysisResult.from_dict(best[0]),
                raw_json=best[1],
                error=None,
                injection_detected=injection,
            )

        return ParseResult(
            success=False,
            analysis=None,
            raw_json=candidates[0],
            error=last_error,
            injection_detected=injection,
        )
