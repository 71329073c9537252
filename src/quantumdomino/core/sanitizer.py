"""Text hygiene for both directions of the analysis call.

Model output passes through ``sanitize_text`` before it is parsed.
Team names are free-form user text; ``clean_label`` flattens them to a
single printable line before they are embedded in a prompt.
Injection detection only flags; it never blocks.
"""

import re

# Control chars to strip (keep \t=0x09, \n=0x0a, \r=0x0d)
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

# Zero-width and BOM characters
_ZERO_WIDTH_RE = re.compile(r"[\u200b\u200c\u200d\u2060\ufeff\u00ad]")

_WHITESPACE_RUN_RE = re.compile(r"\s+")

_INJECTION_PATTERNS = [
    re.compile(r"ignore\s+(all\s+)?previous\s+instructions", re.IGNORECASE),
    re.compile(r"disregard\s+(all\s+)?previous", re.IGNORECASE),
    re.compile(r"new\s+instructions?\s*:", re.IGNORECASE),
    re.compile(r"<\s*/?\s*(system|human|assistant)\s*>", re.IGNORECASE),
    re.compile(r"\[\s*/?\s*INST\s*\]", re.IGNORECASE),
    re.compile(r'"role"\s*:\s*"system"', re.IGNORECASE),
    re.compile(r"you\s+are\s+now\s+(a|an|the|free|unbound)", re.IGNORECASE),
]

MAX_LABEL_LENGTH = 40


def sanitize_text(text: str) -> str:
    """Strip control characters and zero-width chars. Preserves normal unicode."""
    text = _CONTROL_RE.sub("", text)
    text = _ZERO_WIDTH_RE.sub("", text)
    return text


def clean_label(text: str, max_length: int = MAX_LABEL_LENGTH) -> str:
    """Single-line, trimmed, length-capped version of a display label."""
    text = sanitize_text(text)
    text = _WHITESPACE_RUN_RE.sub(" ", text).strip()
    return text[:max_length]


def detect_injection(text: str) -> bool:
    """True if ``text`` contains a known prompt-injection pattern.

    Heuristic: false positives are possible but rare.
    """
    return any(p.search(text) for p in _INJECTION_PATTERNS)
