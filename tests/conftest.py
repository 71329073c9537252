"""Shared test fixtures for quantumdomino."""

import pytest

from quantumdomino.core.models import Round, SessionState


@pytest.fixture
def tmp_output(tmp_path):
    """Provide a temporary output directory for telemetry."""
    return tmp_path / "output"


@pytest.fixture
def mid_game_state():
    """Three rounds, newest first: A 120, B 90, A 60 (A leads 180-90)."""
    return SessionState(
        rounds=(
            Round(id="r3", points_a=60, points_b=0, timestamp=3.0),
            Round(id="r2", points_a=0, points_b=90, timestamp=2.0),
            Round(id="r1", points_a=120, points_b=0, timestamp=1.0),
        ),
    )
