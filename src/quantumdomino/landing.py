"""BR RONINS clan showcase: static data rendered as terminal sections.

Purely presentational. The only computed value is the clan win rate.
"""

from __future__ import annotations

from dataclasses import dataclass

from rich.align import Align
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

ACCENT = "red"

NAV_LINKS = ["Inicio", "Clan", "Miembros", "Torneos"]


@dataclass(frozen=True)
class MemberStats:
    kd: float
    headshot_rate: str


@dataclass(frozen=True)
class Member:
    id: str
    nickname: str
    role: str
    role_color: str
    stats: MemberStats | None = None


@dataclass(frozen=True)
class Tournament:
    id: str
    name: str
    date: str
    position: str
    prize: str | None = None


@dataclass(frozen=True)
class ClanStats:
    matches_played: int
    matches_won: int
    tournaments_won: int
    level: int

    @property
    def win_rate(self) -> float:
        if self.matches_played <= 0:
            return 0.0
        return self.matches_won / self.matches_played


HERO_TAGLINE = "Honor. Precisión. Dominio."
ABOUT_TEXT = (
    "BR RONINS nació en las ligas comunitarias y hoy compite en torneos "
    "regionales. Jugamos en equipo, entrenamos cada semana y no dejamos "
    "a nadie atrás."
)

MEMBERS = [
    Member("m1", "Kaze", "Líder", "red", MemberStats(kd=1.84, headshot_rate="41%")),
    Member("m2", "Shiro", "Francotirador", "cyan", MemberStats(kd=2.10, headshot_rate="58%")),
    Member("m3", "Tetsu", "Entry Fragger", "yellow", MemberStats(kd=1.32, headshot_rate="37%")),
    Member("m4", "Yumi", "Soporte", "green", MemberStats(kd=1.05, headshot_rate="29%")),
    Member("m5", "Ronin", "Reserva", "white"),
]

CLAN_STATS = ClanStats(matches_played=412, matches_won=287, tournaments_won=9, level=42)

ACHIEVEMENTS = [
    Tournament("t1", "Copa Relámpago", "2024-03-16", "1º", prize="$500"),
    Tournament("t2", "Liga Nocturna Temporada 4", "2024-07-02", "2º"),
    Tournament("t3", "Open Sudamericano", "2024-11-23", "Top 8", prize="$150"),
]

FOOTER_TEXT = "© BR RONINS · Forjados en combate"


# ------------------------------------------------------------------
# Sections
# ------------------------------------------------------------------

def build_nav() -> Text:
    nav = Text()
    nav.append("BR ", style="bold white")
    nav.append("RONINS", style=f"bold {ACCENT}")
    nav.append("    ")
    nav.append("  ".join(link.upper() for link in NAV_LINKS), style="dim")
    return nav


def build_hero() -> Panel:
    title = Text("BR RONINS", style=f"bold {ACCENT}", justify="center")
    tagline = Text(HERO_TAGLINE, style="italic white", justify="center")
    return Panel(Group(title, tagline), border_style=ACCENT, padding=(1, 2))


def build_about() -> Panel:
    return Panel(Text(ABOUT_TEXT), title="[bold]El Clan[/bold]", border_style="white")


def build_members(members: list[Member] = MEMBERS) -> Panel:
    table = Table(expand=True, show_edge=False)
    table.add_column("Nick", style="bold")
    table.add_column("Rol")
    table.add_column("K/D", justify="right")
    table.add_column("HS%", justify="right")
    for m in members:
        table.add_row(
            m.nickname,
            Text(m.role, style=m.role_color),
            f"{m.stats.kd:.2f}" if m.stats else "-",
            m.stats.headshot_rate if m.stats else "-",
        )
    return Panel(table, title="[bold]Miembros[/bold]", border_style=ACCENT)


def build_stats(stats: ClanStats = CLAN_STATS) -> Panel:
    table = Table(show_header=False, show_edge=False, expand=True)
    table.add_column("Stat", style="dim")
    table.add_column("Value", justify="right", style="bold")
    table.add_row("Partidas jugadas", str(stats.matches_played))
    table.add_row("Partidas ganadas", str(stats.matches_won))
    table.add_row("Win rate", f"{stats.win_rate:.0%}")
    table.add_row("Torneos ganados", str(stats.tournaments_won))
    table.add_row("Nivel", str(stats.level))
    return Panel(table, title="[bold]Estadísticas[/bold]", border_style="white")


def build_achievements(tournaments: list[Tournament] = ACHIEVEMENTS) -> Panel:
    lines = []
    for t in tournaments:
        line = Text()
        line.append(f"{t.position:>6}  ", style=f"bold {ACCENT}")
        line.append(t.name, style="bold")
        line.append(f"  {t.date}", style="dim")
        if t.prize:
            line.append(f"  {t.prize}", style="green")
        lines.append(line)
    return Panel(Group(*lines), title="[bold]Logros[/bold]", border_style=ACCENT)


def build_footer() -> Text:
    return Text(FOOTER_TEXT, style="dim", justify="center")


def render_landing() -> Group:
    return Group(
        build_nav(),
        build_hero(),
        build_about(),
        build_members(),
        build_stats(),
        build_achievements(),
        Align.center(build_footer()),
    )


def show_landing(console: Console | None = None) -> None:
    (console or Console()).print(render_landing())
