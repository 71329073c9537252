"""Session data types: rounds, the immutable session snapshot, analysis results.

Every type here is frozen. The engine never edits a snapshot in place; it
builds a new one with ``dataclasses.replace``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

DEFAULT_TEAM_A_NAME = "Cyber Nexus"
DEFAULT_TEAM_B_NAME = "Void Runners"
DEFAULT_WINNING_SCORE = 200


class Team(str, Enum):
    A = "A"
    B = "B"

    @property
    def opponent(self) -> Team:
        return Team.B if self is Team.A else Team.A


class Phase(str, Enum):
    """Lifecycle of a single game: Idle -> Accumulating -> Won -> Idle."""

    IDLE = "idle"
    ACCUMULATING = "accumulating"
    WON = "won"


@dataclass(frozen=True)
class Round:
    """One scoring event. Exactly one team is credited."""

    id: str
    points_a: int
    points_b: int
    timestamp: float

    def points_for(self, team: Team) -> int:
        return self.points_a if team is Team.A else self.points_b

    @property
    def team(self) -> Team:
        """The credited team."""
        return Team.A if self.points_a > 0 else Team.B


@dataclass(frozen=True)
class SessionState:
    """The entire game. ``rounds`` is newest-first."""

    team_a_name: str = DEFAULT_TEAM_A_NAME
    team_b_name: str = DEFAULT_TEAM_B_NAME
    rounds: tuple[Round, ...] = ()
    winning_score: int = DEFAULT_WINNING_SCORE

    def team_name(self, team: Team) -> str:
        return self.team_a_name if team is Team.A else self.team_b_name

    def to_dict(self) -> dict:
        """Serializable snapshot (used for prompts and telemetry)."""
        return {
            "team_a_name": self.team_a_name,
            "team_b_name": self.team_b_name,
            "winning_score": self.winning_score,
            "rounds": [
                {
                    "id": r.id,
                    "points_a": r.points_a,
                    "points_b": r.points_b,
                    "timestamp": r.timestamp,
                }
                for r in self.rounds
            ],
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Transient commentary returned by the analysis service."""

    summary: str
    prediction: str
    tips: tuple[str, ...] = field(default_factory=tuple)

    @staticmethod
    def from_dict(d: dict) -> AnalysisResult:
        return AnalysisResult(
            summary=str(d["summary"]),
            prediction=str(d["prediction"]),
            tips=tuple(str(t) for t in d.get("tips", [])),
        )

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "prediction": self.prediction,
            "tips": list(self.tips),
        }
