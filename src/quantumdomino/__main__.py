"""CLI entry point: python -m quantumdomino [play|landing] [-c config.yaml]"""

import argparse
import logging
import sys
import uuid
from pathlib import Path

from dotenv import load_dotenv

from quantumdomino.analysis import AnalysisClient
from quantumdomino.config import AppConfig, default_config, load_config
from quantumdomino.core.models import SessionState
from quantumdomino.core.telemetry import AnalysisTelemetryLogger
from quantumdomino.landing import show_landing
from quantumdomino.session import AnalysisTracker, Scorekeeper
from quantumdomino.shell import ScoreShell

_LOG_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG]


def build_scorekeeper(config: AppConfig) -> Scorekeeper:
    """Wire a fresh game from config."""
    telemetry = None
    if config.telemetry_dir:
        session_id = f"session-{uuid.uuid4().hex[:8]}"
        telemetry = AnalysisTelemetryLogger(config.telemetry_dir, session_id)

    client = AnalysisClient(config.analysis, telemetry=telemetry)
    state = SessionState(
        team_a_name=config.session.team_a_name,
        team_b_name=config.session.team_b_name,
        winning_score=config.session.winning_score,
    )
    return Scorekeeper(state, AnalysisTracker(client))


def _run_play(config: AppConfig) -> None:
    keeper = build_scorekeeper(config)
    ScoreShell(keeper, presets=config.session.score_presets).run()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="quantumdomino",
        description="Quantum Domino scoreboard with AI match analysis",
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=["play", "landing"],
        default="play",
        help="play: run the scoreboard (default); landing: show the clan page",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML config file (default: built-in settings)",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="More log output (-v info, -vv debug)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=_LOG_LEVELS[min(args.verbose, len(_LOG_LEVELS) - 1)],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    load_dotenv(args.env_file)

    if args.command == "landing":
        show_landing()
        return

    if args.config is not None:
        if not args.config.exists():
            print(f"Error: config file not found: {args.config}", file=sys.stderr)
            sys.exit(1)
        config = load_config(args.config)
    else:
        config = default_config()

    _run_play(config)


if __name__ == "__main__":
    main()
