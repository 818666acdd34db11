# main.py

import argparse
import asyncio
import datetime
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from prompt_toolkit.styles import Style

from snova import config_handler
from snova.command_loader import load_all_commands
from snova.command_model import Command
from snova.errors import SnovaError
from snova.prompt_engine import DEFAULT_VISIBLE_ROWS, PromptEngine
from snova.terminal import Terminal
from snova.text_style import strip_markup
from snova.wizard import Wizard

__version__ = "0.3.0"

NOTHING_SELECTED = "Nothing selected."
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'

logger = logging.getLogger(__name__)


def setup_logging(config: Dict[str, Any]) -> None:
    """Logs go to a file; the terminal belongs to the wizard."""
    log_config = config.get("logging", {})
    level = getattr(logging, str(log_config.get("level", "INFO")).upper(), logging.INFO)
    log_dir = config_handler.resolve_path(config, "log_dir", os.path.join("~", ".cache", "snova"))
    try:
        os.makedirs(log_dir, exist_ok=True)
        handler = logging.FileHandler(os.path.join(log_dir, log_config.get("file", "snova.log")))
    except OSError as e:
        print(f"⚠️ Warning: Could not open log file in {log_dir}: {e}", file=sys.stderr)
        handler = logging.NullHandler()
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[handler])


def build_style(config: Dict[str, Any]) -> Style:
    return Style.from_dict(config.get("ui", {}).get("style", {}))


async def run_wizard(commands: List[Command], config: Dict[str, Any],
                     terminal: Optional[Terminal] = None) -> Optional[str]:
    """Runs one wizard session with the terminal in raw mode."""
    terminal = terminal or Terminal(style=build_style(config))
    visible_rows = config.get("ui", {}).get("visible_rows", DEFAULT_VISIBLE_ROWS)
    engine = PromptEngine(terminal, visible_rows=visible_rows)

    with terminal.session():
        return await Wizard(engine, commands, config).run()


def list_commands(commands: List[Command]) -> None:
    width = max((len(strip_markup(cmd.description)) for cmd in commands), default=0)
    for cmd in commands:
        print(f"{strip_markup(cmd.description):<{width}}  {cmd.template}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="snova",
        description="Build a shell command interactively from a catalog of templates.",
    )
    parser.add_argument("--list", action="store_true", help="list available commands and exit")
    parser.add_argument("--check", action="store_true", help="validate the command catalogs and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = config_handler.load_configuration()
    except FileNotFoundError as e:
        print(f"Failed: {e}", file=sys.stderr)
        return 1

    setup_logging(config)
    logger.info("=" * 80)
    logger.info("  snova Session Started")
    logger.info(f"  Timestamp: {datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info("=" * 80)

    try:
        # Load errors are reported before anything is drawn
        commands = load_all_commands(config)

        if args.list:
            list_commands(commands)
            return 0
        if args.check:
            print(f"{len(commands)} commands OK")
            return 0

        if not sys.stdin.isatty():
            print("Failed: snova needs an interactive terminal", file=sys.stderr)
            logger.error("stdin is not a terminal.")
            return 1

        result = asyncio.run(run_wizard(commands, config))
    except SnovaError as e:
        logger.error(f"Failed: {e}")
        print(f"Failed: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.critical("Critical error in main", exc_info=True)
        print(f"Unexpected critical error: {e}", file=sys.stderr)
        return 1
    finally:
        logger.info("  snova Session Ended")
        logger.info("=" * 80)

    if result is None:
        print(NOTHING_SELECTED)
    else:
        print(result)
    return 0


def run():
    """ Console script entry point. """
    exit_code = main()
    logging.shutdown()
    sys.exit(exit_code)


if __name__ == "__main__":
    run()
