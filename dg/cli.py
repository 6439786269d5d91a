from __future__ import annotations

import argparse
import sys
from collections.abc import Callable, Mapping

from dg.common import DgError
from dg.config import Settings
from dg.identity import Session

Command = Callable[[Session], None]

ALIASES = {
    "h": "help",
    "v": "version",
}


def command_map() -> dict[str, Command]:
    """
    Map CLI command names to command functions.

    Each value takes the per-invocation `Session`.
    """
    from dg import commands

    return {
        "build": commands.build,
        "debug": commands.debug,
        "deploy": commands.deploy,
        "deploy_check": commands.deploy_check,
        "help": commands.print_help,
        "purge": commands.purge,
        "push": commands.push,
        "run": commands.run,
        "test": commands.test,
        "version": commands.version,
    }


def build_parser(commands: Mapping[str, Command]) -> argparse.ArgumentParser:
    """Build argument parser with one optional positional command choice."""
    parser = argparse.ArgumentParser(
        prog="dg",
        description="Build, test, run, and deploy docker images via docker & fig.",
        add_help=False,
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="help",
        choices=sorted([*commands.keys(), *ALIASES.keys()]),
    )
    return parser


def run_command(command: str, commands: Mapping[str, Command], session: Session) -> None:
    """
    Run one registered command.

    `commands` is passed in to keep this function easy to test.
    """
    commands[ALIASES.get(command, command)](session)


def main(argv: list[str] | None = None) -> None:
    commands = command_map()
    parser = build_parser(commands)
    args = parser.parse_args(argv)

    try:
        session = Session(Settings.from_env())
        run_command(args.command, commands, session)
    except DgError as exc:
        # One line on stderr; the first failure ends the run.
        print(str(exc), file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
