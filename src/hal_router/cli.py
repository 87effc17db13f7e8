"""Command-line interface for the hal-router bot."""

import argparse
import logging
import sys
from pathlib import Path

from hal_router import __version__
from hal_router.brokers.console import ConsoleBroker
from hal_router.config import Config
from hal_router.core.matcher import MATCHERS
from hal_router.server import BotServer


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application.

    Args:
        verbose: Enable debug logging if True
    """
    level = logging.DEBUG if verbose else logging.INFO
    format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    logging.basicConfig(level=level, format=format_str)


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        args: Command-line arguments (defaults to sys.argv)

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="hal-router",
        description="hal-router - Plugin-based chat bot reading events from stdin",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=None,
        help="Path to configuration file (YAML)",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose/debug logging",
    )

    parser.add_argument(
        "--channel",
        type=str,
        default=None,
        help="Channel assigned to console input (overrides config)",
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of dispatch worker threads (overrides config)",
    )

    parser.add_argument(
        "--matcher",
        type=str,
        choices=sorted(MATCHERS),
        default=None,
        help="Pattern matcher for instance patterns (overrides config)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(args)


def load_config(args: argparse.Namespace) -> Config:
    """Load configuration from file and apply CLI overrides.

    Args:
        args: Parsed command-line arguments

    Returns:
        Configuration object
    """
    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Configuration file not found: {config_path}", file=sys.stderr)
            sys.exit(1)
        config = Config.from_yaml(config_path)
    else:
        default_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path.home() / ".config" / "hal-router" / "config.yaml",
        ]
        config = None
        for path in default_paths:
            if path.exists():
                config = Config.from_yaml(path)
                break
        if config is None:
            config = Config.default()

    # Apply CLI overrides
    if args.channel:
        config.console.channel = args.channel
    if args.workers is not None:
        if args.workers < 1:
            print("Error: --workers must be at least 1", file=sys.stderr)
            sys.exit(1)
        config.server.workers = args.workers
    if args.matcher:
        config.server.matcher = args.matcher

    return config


def run_console(config: Config) -> int:
    """Run the bot on stdin/stdout until input ends.

    Args:
        config: Bot configuration

    Returns:
        Number of events dispatched
    """
    broker = ConsoleBroker(
        output=sys.stdout,
        channel=config.console.channel,
        user=config.console.user,
    )
    server = BotServer(config=config)

    server.start()
    try:
        return server.run(broker.events(sys.stdin))
    finally:
        server.stop()


def main(args: list[str] | None = None) -> None:
    """Main entry point for the CLI.

    Args:
        args: Command-line arguments (defaults to sys.argv)
    """
    parsed_args = parse_args(args)
    setup_logging(verbose=parsed_args.verbose)

    try:
        config = load_config(parsed_args)
    except ValueError as e:
        print(f"Error: Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        run_console(config)
    except KeyboardInterrupt:
        print("\nGoodbye!")


if __name__ == "__main__":
    main()
