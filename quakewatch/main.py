"""Command-line Entry Point.

Loads configuration, starts the poll loop and prints the report on
shutdown. SIGINT/SIGTERM stop the loop after the current cycle.

Exit codes:
    0: stopped normally
    1: an output sink became unavailable
    2: invalid configuration
"""

import argparse
import logging
import os
import signal
import sys
import threading

import yaml

from quakewatch.core.config import Config, validate_config
from quakewatch.core.errors import SinkError
from quakewatch.scheduler import PollScheduler
from quakewatch.shell.config_loader import ENV_PREFIX, load_config, load_config_from_env


logger = logging.getLogger(__name__)


def configure_logging(level_name: str | None = None) -> None:
    """Configure root logging to stderr; stdout is reserved for events."""
    level_name = (level_name or os.environ.get("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _get_config(config_path: str | None = None) -> Config:
    """Load configuration from file or environment."""
    config_path = config_path or os.environ.get("CONFIG_PATH")

    if config_path:
        return load_config(config_path)
    elif any(name.startswith(ENV_PREFIX) for name in os.environ):
        # Simple env-based config
        return load_config_from_env()
    else:
        # Try default config path
        return load_config()


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="quakewatch",
        description="Poll the USGS event feed and stream newly seen earthquakes",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to YAML config file (default: $CONFIG_PATH or config/config.yaml)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single cycle, print the report and exit",
    )
    parser.add_argument(
        "--max-cycles",
        type=_positive_int,
        default=None,
        help="Stop after this many cycles",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (default: $LOG_LEVEL or INFO)",
    )
    return parser.parse_args(argv)


def _install_signal_handlers(scheduler: PollScheduler) -> None:
    def handle(signum, frame):
        logger.info("Received %s, stopping", signal.Signals(signum).name)
        # The main thread may hold the stop event's lock inside wait();
        # setting it from here could deadlock.
        threading.Thread(target=scheduler.stop, name="quakewatch-stop", daemon=True).start()

    signal.signal(signal.SIGINT, handle)
    signal.signal(signal.SIGTERM, handle)


def main(argv: list[str] | None = None) -> int:
    """Run the monitor until stopped.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Process exit code
    """
    args = _parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = _get_config(args.config)
    except (yaml.YAMLError, ValueError, KeyError, TypeError) as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    validation = validate_config(config)
    for warning in validation.warnings:
        logger.warning("Config %s: %s", warning.field, warning.message)
    if not validation.valid:
        for error in validation.critical_errors:
            logger.error("Config %s: %s", error.field, error.message)
        return 2

    scheduler = PollScheduler(config)
    _install_signal_handlers(scheduler)

    max_cycles = 1 if args.once else args.max_cycles

    try:
        scheduler.run(max_cycles=max_cycles)
        for line in scheduler.summary_lines():
            scheduler.emit(line)
    except SinkError as e:
        logger.critical("Output unavailable, exiting: %s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
