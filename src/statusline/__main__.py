"""Command-line entry point: print a team's statusline updates as JSON lines.

Usage:
    statusline-watch [--config PATH] [--teams-dir DIR] [--polling]
                     [--log-level LEVEL] [--log-dir DIR] TEAM AGENT [AGENT ...]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time

from .config import load_config
from .event_bus import ERROR, UPDATE
from .logging_setup import setup_logging
from .models import StatusLineEvent
from .watcher import StatusLineWatcher

logger = logging.getLogger("statusline.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="statusline-watch",
        description="Tail agent statusline logs and print each update as a JSON line.",
    )
    parser.add_argument("team", help="Team whose statusline directory is watched")
    parser.add_argument("agents", nargs="+", metavar="agent", help="Agent(s) to watch")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--teams-dir", help="Override the teams root directory")
    parser.add_argument(
        "--polling",
        action="store_true",
        default=None,
        help="Poll for changes instead of using native filesystem events",
    )
    parser.add_argument("--log-level", help="Log level (default from config: INFO)")
    parser.add_argument("--log-dir", help="Directory for the rotating JSON log file")
    return parser


def print_event(event: StatusLineEvent) -> None:
    print(json.dumps(event.to_dict()), flush=True)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    if args.teams_dir:
        config.teams_dir = args.teams_dir
    if args.polling:
        config.use_polling = True
    if args.log_level:
        config.log_level = args.log_level
    if args.log_dir:
        config.log_dir = args.log_dir

    try:
        setup_logging(config.log_level, config.log_dir)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    with StatusLineWatcher(args.team, config) as watcher:
        watcher.on(UPDATE, print_event)
        watcher.on(ERROR, lambda error: logger.warning(f"Watcher error: {error}"))
        watcher.ensure_dir()
        for agent_name in args.agents:
            try:
                watcher.watch_agent(agent_name)
            except ValueError as e:
                logger.error(str(e))

        logger.info(
            f"Watching {len(watcher.watched_agents())} agent(s) in {watcher.directory}"
        )
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Statusline watch stopped")

    return 0


if __name__ == "__main__":
    sys.exit(main())
