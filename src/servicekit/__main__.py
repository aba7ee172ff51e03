"""
=============================================================================
SERVICEKIT CLI ENTRY POINT
=============================================================================

    # Serve with defaults (127.0.0.1:8080)
    servicekit
    python -m servicekit serve

    # Config file + overrides
    servicekit --config config.json --port 3000 serve

    # One-shot health check (exit status 0 = healthy)
    servicekit health

    # Transform input without starting a server
    servicekit process --input hello
    echo hello | servicekit process

=============================================================================
STARTUP ORDER
=============================================================================

1. Parse arguments
2. Load configuration (defaults → env → CONFIG_FILE), --config sets
   CONFIG_FILE
3. Apply --host / --port, validate again
4. Configure logging (--log-level wins over the file)
5. Run the sub-command

Any ServiceError along the way is logged and turns into exit status 1.

=============================================================================
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from . import __version__
from .config import VALID_LOG_LEVELS, Config
from .errors import IoError, ServiceError
from .handlers import HealthChecker
from .logs import configure_logging
from .processing import process_data
from .server import ServiceServer


logger = logging.getLogger("servicekit")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="servicekit",
        description="Starter HTTP service with health, metrics and processing endpoints",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  servicekit                                # Serve with defaults
  servicekit --port 3000 serve              # Custom port
  servicekit --config config.json health    # Check a config file
  servicekit process --input hello          # Prints "Processed: HELLO"
        """,
    )

    parser.add_argument(
        "--config", "-c",
        default=None,
        help="JSON configuration file (sets CONFIG_FILE)",
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=VALID_LOG_LEVELS,
        default=None,
        help="Logging level (default: logging.level from config, info)",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind to (overrides config)",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (overrides config)",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"servicekit {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Start the HTTP server (default)")
    serve.add_argument("--tls", action="store_true", help="Request TLS (not supported yet)")

    subparsers.add_parser("health", help="Run the health checks once and exit")

    process = subparsers.add_parser("process", help="Process input and print the result")
    process.add_argument(
        "--input", "-i",
        default=None,
        help="Input text (default: one line from stdin)",
    )

    return parser


def load_config(args: argparse.Namespace) -> Config:
    """
    Build the effective configuration for a CLI invocation.

    Raises:
        ServiceError: If loading or validation fails.
    """
    if args.config:
        os.environ["CONFIG_FILE"] = args.config

    config = Config.load()

    if args.host is not None:
        config.server.host = args.host
    if args.port is not None:
        config.server.port = args.port

    config.validate()
    return config


def run_server(config: Config, tls: bool = False) -> int:
    if tls:
        config.server.tls_enabled = True

    server = ServiceServer(config)
    server.run()
    return 0


def run_health_check() -> int:
    """Run the system and configuration checks. Returns an exit status."""
    logger.info("Running health check")

    def check_system():
        logger.info("Checking system health")

    def check_configuration():
        logger.info("Checking configuration")
        Config.load().validate()

    checker = (HealthChecker()
        .add_check(check_system, name="system")
        .add_check(check_configuration, name="configuration"))

    try:
        checker.check_health()
    except ServiceError as e:
        logger.error(f"Health check failed: {e}")
        return 1

    logger.info("Health check passed")
    return 0


def run_process_command(data: Optional[str] = None) -> int:
    """Process input (or one stdin line) and print the result."""
    if data is None:
        logger.info("Reading from stdin...")
        try:
            data = sys.stdin.readline().strip()
        except OSError as e:
            raise IoError.wrap(e)

    logger.info(f"Processing input: {data}")

    try:
        result = process_data(data)
    except ServiceError as e:
        logger.log(e.log_level, f"Processing failed: {e}")
        return 1

    logger.info(f"Result: {result}")
    print(result)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Console script entry point. Returns the process exit status."""
    args = build_parser().parse_args(argv)

    # Until the config is loaded, log with defaults so load errors are seen
    configure_logging(level_override=args.log_level)

    try:
        config = load_config(args)
        configure_logging(config.logging, level_override=args.log_level)
        logger.info(f"Starting servicekit {__version__}")

        if args.command == "health":
            return run_health_check()
        if args.command == "process":
            return run_process_command(args.input)
        return run_server(config, tls=getattr(args, "tls", False))
    except ServiceError as e:
        logger.log(e.log_level, f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
