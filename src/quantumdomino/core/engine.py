"""Score session engine: pure transitions over an immutable SessionState.

Actions are small frozen dataclasses. ``apply_action`` takes the current
snapshot plus one action and returns the next snapshot; it never mutates
its input. Invalid input (non-numeric or non-positive points, bad targets,
unknown round ids) is a silent no-op and returns the same snapshot.

Derived values (totals, winner, leader, phase) are computed on read and
never stored.

The engine does not lock the game after a win. Suppressing round changes
once a team has won is the caller's policy (see ``quantumdomino.session``).
"""

from __future__ import annotations

import dataclasses
import time
import uuid
from dataclasses import dataclass
from typing import Callable, NamedTuple, Union

from quantumdomino.core.models import Phase, Round, SessionState, Team

__all__ = [
    "AddRound",
    "DeleteRound",
    "SetWinningScore",
    "ResetSession",
    "RenameTeam",
    "Action",
    "Totals",
    "apply_action",
    "compute_totals",
    "determine_winner",
    "winner",
    "leader",
    "session_phase",
    "progress",
    "round_number",
    "parse_positive_int",
]


# ------------------------------------------------------------------
# Actions
# ------------------------------------------------------------------

@dataclass(frozen=True)
class AddRound:
    team: Team
    points: int | str


@dataclass(frozen=True)
class DeleteRound:
    round_id: str


@dataclass(frozen=True)
class SetWinningScore:
    score: int | str


@dataclass(frozen=True)
class ResetSession:
    pass


@dataclass(frozen=True)
class RenameTeam:
    team: Team
    name: str


Action = Union[AddRound, DeleteRound, SetWinningScore, ResetSession, RenameTeam]


def _new_round_id() -> str:
    return uuid.uuid4().hex


def parse_positive_int(value: object) -> int | None:
    """Return ``value`` as a positive int, or None if it is not one.

    Accepts ints and strings of ASCII digits (surrounding whitespace
    allowed). Signs, underscores, decimal points, non-ASCII digits,
    booleans, floats and anything <= 0 are rejected.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        n = value
    elif isinstance(value, str):
        text = value.strip()
        if not (text.isascii() and text.isdigit()):
            return None
        n = int(text)
    else:
        return None
    return n if n > 0 else None


# ------------------------------------------------------------------
# Transition
# ------------------------------------------------------------------

def apply_action(
    state: SessionState,
    action: Action,
    *,
    clock: Callable[[], float] = time.time,
    new_id: Callable[[], str] = _new_round_id,
) -> SessionState:
    """Return the snapshot that results from applying ``action`` to ``state``."""
    if isinstance(action, AddRound):
        points = parse_positive_int(action.points)
        if points is None:
            return state
        team = Team(action.team)
        new_round = Round(
            id=new_id(),
            points_a=points if team is Team.A else 0,
            points_b=points if team is Team.B else 0,
            timestamp=clock(),
        )
        # Newest first
        return dataclasses.replace(state, rounds=(new_round, *state.rounds))

    if isinstance(action, DeleteRound):
        kept = tuple(r for r in state.rounds if r.id != action.round_id)
        if len(kept) == len(state.rounds):
            return state
        return dataclasses.replace(state, rounds=kept)

    if isinstance(action, SetWinningScore):
        score = parse_positive_int(action.score)
        if score is None:
            return state
        return dataclasses.replace(state, winning_score=score)

    if isinstance(action, ResetSession):
        return dataclasses.replace(state, rounds=())

    if isinstance(action, RenameTeam):
        field_name = "team_a_name" if Team(action.team) is Team.A else "team_b_name"
        return dataclasses.replace(state, **{field_name: action.name})

    raise TypeError(f"Unknown action: {action!r}")


# ------------------------------------------------------------------
# Derived values
# ------------------------------------------------------------------

class Totals(NamedTuple):
    a: int
    b: int

    def for_team(self, team: Team) -> int:
        return self.a if team is Team.A else self.b


def compute_totals(rounds: tuple[Round, ...] | list[Round]) -> Totals:
    total_a = 0
    total_b = 0
    for r in rounds:
        total_a += r.points_a
        total_b += r.points_b
    return Totals(total_a, total_b)


def determine_winner(total_a: int, total_b: int, winning_score: int) -> Team | None:
    """Team whose total reaches ``winning_score``.

    A is checked first, so if both teams reach the target in the same
    evaluation A is reported.
    """
    if total_a >= winning_score:
        return Team.A
    if total_b >= winning_score:
        return Team.B
    return None


def winner(state: SessionState) -> Team | None:
    totals = compute_totals(state.rounds)
    return determine_winner(totals.a, totals.b, state.winning_score)


def leader(state: SessionState) -> Team | None:
    """Team strictly ahead on points, or None when level."""
    totals = compute_totals(state.rounds)
    if totals.a > totals.b:
        return Team.A
    if totals.b > totals.a:
        return Team.B
    return None


def session_phase(state: SessionState) -> Phase:
    if winner(state) is not None:
        return Phase.WON
    if state.rounds:
        return Phase.ACCUMULATING
    return Phase.IDLE


def progress(total: int, winning_score: int) -> float:
    """Fraction of the target reached, capped at 1.0."""
    if winning_score <= 0:
        return 0.0
    return min(total / winning_score, 1.0)


def round_number(state: SessionState, index: int) -> int:
    """Display number of ``state.rounds[index]``; the oldest round is 1."""
    return len(state.rounds) - index
