"""CLI entry point for the check scheduler.

Usage:
    python -m check_scheduler [options]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import logging.config
import sys
from typing import NoReturn

from pydantic import TypeAdapter, ValidationError

from check_scheduler import __version__
from check_scheduler.app import Scheduler
from check_scheduler.config import (
    MAX_REFRESH_INTERVAL_SECONDS,
    MIN_REFRESH_INTERVAL_SECONDS,
    RefreshInterval,
    Settings,
    clear_settings_cache,
    get_settings,
)
from check_scheduler.shutdown import GracefulShutdown
from check_scheduler.sync.refresher import RefreshError

APP_NAME = "Check Scheduler"

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130

_refresh_interval_adapter: TypeAdapter[int] = TypeAdapter(RefreshInterval)


def refresh_interval(value: str) -> int:
    """Parse a --refresh-interval value with the same bounds as the settings."""
    try:
        return _refresh_interval_adapter.validate_python(value)
    except ValidationError:
        raise argparse.ArgumentTypeError(
            f"must be an integer from {MIN_REFRESH_INTERVAL_SECONDS} "
            f"to {MAX_REFRESH_INTERVAL_SECONDS}, got {value!r}"
        ) from None


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="check-scheduler",
        description="Keep check and alert definitions in sync with their authority.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m check_scheduler                         Run the refresh loop
  python -m check_scheduler --config-check          Validate config and exit
  python -m check_scheduler --refresh-interval 30   Refresh every 30 seconds
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config-check",
        action="store_true",
        help="Validate configuration and exit",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level (default: from settings)",
    )
    parser.add_argument(
        "--refresh-interval",
        type=refresh_interval,
        default=None,
        help="Override seconds between refreshes (default: from settings)",
    )
    return parser


def configure_logging(level: str) -> None:
    """Configure logging for the application.

    Args:
        level: Logging level string (DEBUG, INFO, etc.)
    """
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": (
                    "%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d): %(message)s"
                ),
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "detailed" if level == "DEBUG" else "standard",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {
            "level": level,
            "handlers": ["console"],
        },
        "loggers": {
            "httpx": {"level": "WARNING"},
            "httpcore": {"level": "WARNING"},
            "redis": {"level": "WARNING"},
        },
    }
    logging.config.dictConfig(config)


def print_config_summary(settings: Settings) -> None:
    """Print a summary of the configuration with secrets redacted."""
    summary = settings.redacted_summary()
    print(f"{APP_NAME} v{__version__}")
    print("Configuration:")
    print(f"  Check source: {summary['check_source']}")
    print(f"  Alert source: {summary['alert_source']}")
    print(f"  Auth: {summary['auth']}")
    print(f"  Redis: {summary['redis_url']}")
    print(f"  Log Level: {summary['log_level']}")
    print(f"  Refresh Interval: {summary['refresh_interval_seconds']}s")
    print()


def validate_config() -> Settings | None:
    """Validate and load configuration.

    Returns:
        Settings instance if valid, None if invalid.
    """
    try:
        clear_settings_cache()
        return get_settings()
    except ValidationError as e:
        print("Configuration validation failed:", file=sys.stderr)
        for error in e.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            print(f"  {field}: {error['msg']}", file=sys.stderr)
        return None


def run_config_check(settings: Settings) -> int:
    """Print the validated configuration and return the exit code."""
    print("Configuration is valid!")
    print()
    print_config_summary(settings)
    return EXIT_SUCCESS


async def run_scheduler(settings: Settings) -> int:
    """Run the scheduler until a shutdown signal arrives.

    Returns:
        Exit code.
    """
    logger = logging.getLogger(__name__)

    try:
        async with GracefulShutdown() as shutdown:
            scheduler = Scheduler(settings)
            shutdown.register_cleanup(scheduler.stop)

            logger.info("Loading definitions...")
            await scheduler.start()
            logger.info("Scheduler running. Press Ctrl+C to stop.")

            await shutdown.wait()
            logger.info("Shutdown signal received, stopping scheduler...")

        return EXIT_SUCCESS
    except RefreshError as e:
        logger.error("Startup failed: %s", e)
        return EXIT_ERROR
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.exception("Scheduler failed: %s", e)
        return EXIT_ERROR


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:]).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    settings = validate_config()
    if settings is None:
        sys.exit(EXIT_CONFIG_ERROR)

    if args.refresh_interval is not None:
        settings = settings.model_copy(update={"refresh_interval_seconds": args.refresh_interval})

    configure_logging(args.log_level or settings.log_level)

    if args.config_check:
        sys.exit(run_config_check(settings))

    print_config_summary(settings)
    sys.exit(asyncio.run(run_scheduler(settings)))


if __name__ == "__main__":
    main()
