"""Interactive terminal scoreboard.

Pure rendering and command dispatch over a Scorekeeper; no game logic
lives here. Each command is parsed, turned into an engine action (or an
analysis request), and the whole board is re-rendered from the new
snapshot. Pressing Enter on an empty line just redraws, which is how a
pending analysis is picked up once it lands.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from rich.align import Align
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from quantumdomino import __version__
from quantumdomino.config import DEFAULT_SCORE_PRESETS
from quantumdomino.core.engine import (
    AddRound,
    DeleteRound,
    RenameTeam,
    SetWinningScore,
    parse_positive_int,
    progress,
    round_number,
)
from quantumdomino.core.models import SessionState, Team
from quantumdomino.session import AnalysisStatus, Scorekeeper

logger = logging.getLogger(__name__)

TEAM_COLORS = {Team.A: "cyan", Team.B: "magenta"}
BAR_WIDTH = 24
HISTORY_LIMIT = 12

HELP_TEXT = """\
  a [points]        add points for team A (prompts if omitted)
  b [points]        add points for team B
  del <n>           delete round number n
  target <n>        set the score limit (presets: {presets})
  name <a|b> <txt>  rename a team
  analyze           request neural strategy analysis
  reset             purge the record (asks first)
  new               start a new game after a win
  <enter>           redraw
  help              show this help
  quit              leave"""

_ALIASES = {
    "d": "del", "delete": "del", "rm": "del",
    "t": "target", "limit": "target",
    "n": "name",
    "ai": "analyze", "analyse": "analyze", "refresh": "analyze",
    "purge": "reset",
    "?": "help", "h": "help",
    "q": "quit", "exit": "quit",
}

_KNOWN = {"a", "b", "del", "target", "name", "analyze", "reset", "new", "help", "quit"}


@dataclass(frozen=True)
class Command:
    name: str
    args: list[str] = field(default_factory=list)


def parse_command(line: str) -> Command | None:
    """Split a typed line into a command name and its arguments.

    Returns None for a blank line. ``name`` keeps everything after the
    team letter as one argument so names may contain spaces.
    """
    line = line.strip()
    if not line:
        return None

    head, _, rest = line.partition(" ")
    name = head.lower()
    name = _ALIASES.get(name, name)

    if name not in _KNOWN:
        return Command("unknown", [line])
    if name == "name":
        team, _, label = rest.strip().partition(" ")
        return Command("name", [a for a in (team, label.strip()) if a])
    return Command(name, rest.split())


def round_id_for_number(state: SessionState, number: int) -> str | None:
    """Map a displayed round number back to the round's id."""
    index = len(state.rounds) - number
    if 0 <= index < len(state.rounds):
        return state.rounds[index].id
    return None


# ------------------------------------------------------------------
# Rendering
# ------------------------------------------------------------------

def make_progress_bar(total: int, target: int, color: str) -> Text:
    """Proportional bar toward the target, capped at full."""
    filled = int(progress(total, target) * BAR_WIDTH)
    bar = Text()
    bar.append("█" * filled, style=f"bold {color}")
    bar.append("░" * (BAR_WIDTH - filled), style="dim")
    return bar


def build_header() -> Panel:
    title = Text()
    title.append(" D ", style="bold black on cyan")
    title.append("  QUANTUM DOMINO", style="bold cyan")
    sub = Text(f"Orbital System Active // v{__version__}", style="dim cyan")
    return Panel(Group(title, sub), border_style="cyan", padding=(0, 1))


def build_settings(keeper: Scorekeeper, presets: list[int]) -> Panel:
    current = keeper.state.winning_score
    line = Text("Score limit: ", style="dim")
    for score in presets:
        style = "bold black on cyan" if score == current else "dim"
        line.append(f" {score} ", style=style)
        line.append(" ")
    if current not in presets:
        line.append(f" custom {current} ", style="bold black on cyan")
    target = Text(f"TARGET {current} PTS", style="bold cyan", justify="right")

    grid = Table.grid(expand=True)
    grid.add_column()
    grid.add_column(justify="right")
    grid.add_row(line, target)
    return Panel(grid, border_style="bright_black", padding=(0, 1))


def build_score_card(keeper: Scorekeeper, team: Team) -> Panel:
    state = keeper.state
    color = TEAM_COLORS[team]
    total = keeper.totals.for_team(team)
    is_leader = keeper.leader is team

    head = Text()
    head.append(f"TEAM {team.value}", style=f"bold {color}")
    if is_leader:
        head.append("  LEADER", style=f"bold black on {color}")

    score = Text()
    score.append(str(total), style="bold white")
    score.append(f" / {state.winning_score}", style="dim")

    body = Group(
        head,
        Text(state.team_name(team).upper(), style="bold"),
        score,
        make_progress_bar(total, state.winning_score, color),
    )
    return Panel(
        body,
        border_style=f"bold {color}" if is_leader else color,
        padding=(0, 1),
    )


def build_scoreboard(keeper: Scorekeeper) -> Table:
    grid = Table.grid(expand=True, padding=(0, 1))
    grid.add_column(ratio=1)
    grid.add_column(ratio=1)
    grid.add_row(build_score_card(keeper, Team.A), build_score_card(keeper, Team.B))
    return grid


def build_history(state: SessionState, limit: int = HISTORY_LIMIT) -> Panel:
    lines: list[Text] = []
    if not state.rounds:
        lines.append(Text("  Timeline data null // Awaiting input", style="dim italic"))
    else:
        for index, r in enumerate(state.rounds[:limit]):
            line = Text()
            line.append(f"  ITER_{round_number(state, index):<4d}", style="dim")
            line.append(
                f"{r.points_a:>5d}",
                style=f"bold {TEAM_COLORS[Team.A]}" if r.points_a else "bright_black",
            )
            line.append("  |  ", style="dim")
            line.append(
                f"{r.points_b:<5d}",
                style=f"bold {TEAM_COLORS[Team.B]}" if r.points_b else "bright_black",
            )
            lines.append(line)
        hidden = len(state.rounds) - limit
        if hidden > 0:
            lines.append(Text(f"  ... {hidden} older rounds", style="dim"))

    return Panel(
        Group(*lines),
        title="[bold]_ Quantum Record[/bold]",
        border_style="cyan",
        padding=(0, 1),
    )


def build_analysis(keeper: Scorekeeper) -> Panel:
    status = keeper.analysis_status
    result = keeper.analysis
    lines: list = []

    if not keeper.analysis_enabled:
        lines.append(Text("Neural processor offline", style="dim italic"))
    elif status is AnalysisStatus.PENDING:
        lines.append(Text("Parsing temporal rifts...", style="bold magenta"))
    elif result is not None:
        lines.append(Text("MATCH STATUS", style="bold magenta"))
        lines.append(Text(result.summary))
        lines.append(Text(""))
        lines.append(Text("PREDICTION", style="bold magenta"))
        lines.append(Text(result.prediction, style="italic"))
        lines.append(Text(""))
        lines.append(Text("TACTICAL PROTOCOLS", style="bold magenta"))
        for i, tip in enumerate(result.tips, 1):
            tip_line = Text()
            tip_line.append(f" {i} ", style="bold magenta")
            tip_line.append(tip)
            lines.append(tip_line)
        if keeper.can_request_analysis:
            lines.append(Text(""))
            lines.append(Text("Type 'analyze' to refresh", style="dim"))
    else:
        if status is AnalysisStatus.FAILED:
            lines.append(Text("No analysis available. Type 'analyze' to retry.", style="yellow"))
        else:
            lines.append(Text("Neural processor online", style="dim"))
        if keeper.can_request_analysis:
            lines.append(Text("Type 'analyze' to start calculation", style="bold magenta"))
        else:
            lines.append(Text("Calculation unavailable", style="dim"))

    return Panel(
        Group(*lines),
        title="[bold]_ Neural Strategy[/bold]",
        border_style="magenta",
        padding=(0, 1),
    )


def build_winner_panel(keeper: Scorekeeper) -> Panel | None:
    team = keeper.winner
    if team is None:
        return None
    color = TEAM_COLORS[team]
    content = Group(
        Align.center(Text(f"EL EQUIPO {team.value} HA GANADO", style=f"bold {color}")),
        Align.center(Text(keeper.state.team_name(team).upper(), style="bold white")),
        Align.center(Text("DOMINACIÓN CUÁNTICA COMPLETA", style="dim")),
        Text(""),
        Align.center(Text("Type 'new' to start a new timeline", style=f"bold {color}")),
    )
    return Panel(content, border_style=f"bold {color}", padding=(1, 2))


def render(keeper: Scorekeeper, presets: list[int] | None = None) -> Group:
    parts: list = [build_header()]
    winner_panel = build_winner_panel(keeper)
    if winner_panel is not None:
        parts.append(winner_panel)
    parts.append(build_settings(keeper, presets or DEFAULT_SCORE_PRESETS))
    parts.append(build_scoreboard(keeper))
    parts.append(build_history(keeper.state))
    parts.append(build_analysis(keeper))
    return Group(*parts)


# ------------------------------------------------------------------
# Input loop
# ------------------------------------------------------------------

class ScoreShell:
    """Read-eval-render loop over a Scorekeeper."""

    def __init__(
        self,
        keeper: Scorekeeper,
        console: Console | None = None,
        presets: list[int] | None = None,
        input_fn: Callable[[str], str] | None = None,
    ):
        self.keeper = keeper
        self.console = console or Console()
        self.presets = presets or list(DEFAULT_SCORE_PRESETS)
        self._input = input_fn or self.console.input
        self.message: str | None = None

    def run(self) -> None:
        try:
            while True:
                self.draw()
                try:
                    line = self._input("> ")
                except (EOFError, KeyboardInterrupt):
                    break
                if not self.handle(line):
                    break
        finally:
            self.keeper.close()

    def draw(self) -> None:
        self.console.clear()
        self.console.print(render(self.keeper, self.presets))
        if self.message:
            self.console.print(Text(self.message, style="yellow"))
            self.message = None

    def handle(self, line: str) -> bool:
        """Execute one typed line. Returns False when the user quits."""
        cmd = parse_command(line)
        if cmd is None:
            return True
        logger.debug("Command %s %s", cmd.name, cmd.args)

        if cmd.name == "quit":
            return False
        if cmd.name == "help":
            self.message = HELP_TEXT.format(
                presets=", ".join(str(p) for p in self.presets)
            )
        elif cmd.name in ("a", "b"):
            self._add_points(Team(cmd.name.upper()), cmd.args)
        elif cmd.name == "del":
            self._delete_round(cmd.args)
        elif cmd.name == "target":
            if cmd.args:
                self.keeper.dispatch(SetWinningScore(cmd.args[0]))
        elif cmd.name == "name":
            self._rename(cmd.args)
        elif cmd.name == "analyze":
            if self.keeper.request_analysis() is None:
                self.message = "Nothing to analyze right now."
        elif cmd.name == "reset":
            answer = self._ask("Purge chronology? [y/N] ")
            if answer.strip().lower() in ("y", "yes"):
                self.keeper.reset()
        elif cmd.name == "new":
            if self.keeper.winner is not None:
                self.keeper.reset()
            else:
                self.message = "The game is still running. Use 'reset' to purge it."
        else:
            self.message = f"Unknown command: {cmd.args[0]!r} (type 'help')"
        return True

    def _ask(self, prompt: str) -> str:
        """Follow-up prompt; an interrupt or EOF counts as an empty answer."""
        try:
            return self._input(prompt)
        except (EOFError, KeyboardInterrupt):
            return ""

    def _add_points(self, team: Team, args: list[str]) -> None:
        if self.keeper.is_locked:
            self.message = "Game over. Type 'new' to start a new timeline."
            return
        raw = args[0] if args else self._ask(f"Add points team {team.value}> ")
        # Invalid entry just closes the prompt
        self.keeper.dispatch(AddRound(team, raw))

    def _delete_round(self, args: list[str]) -> None:
        if self.keeper.is_locked:
            self.message = "Game over. Type 'new' to start a new timeline."
            return
        if not args:
            return
        number = parse_positive_int(args[0])
        round_id = (
            round_id_for_number(self.keeper.state, number)
            if number is not None else args[0]
        )
        if round_id is not None:
            self.keeper.dispatch(DeleteRound(round_id))

    def _rename(self, args: list[str]) -> None:
        if len(args) < 2 or args[0].upper() not in ("A", "B"):
            self.message = "Usage: name <a|b> <new name>"
            return
        self.keeper.dispatch(RenameTeam(Team(args[0].upper()), args[1]))
