#!/usr/bin/env python3
import argparse
import logging
import sys

from Shell.config import Config
from Shell.repl import run_repl
from Shell.session import ShellSession


def parse_args(args=None):
    parser = argparse.ArgumentParser(description="MiniShell - a small interactive command interpreter.")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Trace process spawning, pipe relays and background jobs on stderr.",
    )
    parser.add_argument(
        "--no-history",
        action="store_true",
        help="Do not read or write the history file.",
    )
    return parser.parse_args(args)


def main(args=None):
    opts = parse_args(args)
    config = Config.from_env()
    if opts.no_history:
        config.use_history = False
    if opts.debug:
        config.log_level = "DEBUG"

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )
    session = ShellSession(config=config)
    sys.exit(run_repl(session))


if __name__ == "__main__":
    main()
