"""Schema loading utility."""

import json
from pathlib import Path

SCHEMAS_DIR = Path(__file__).resolve().parent.parent / "schemas"
ANALYSIS_SCHEMA_PATH = SCHEMAS_DIR / "analysis.json"


def load_schema(path: Path) -> dict:
    """Load a JSON Schema file and return as dict."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def analysis_schema() -> dict:
    """The bundled schema every analysis response must satisfy."""
    return load_schema(ANALYSIS_SCHEMA_PATH)
