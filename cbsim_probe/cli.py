#!/usr/bin/env python3
"""
Command-line interface for the control box probe.

Runs the probe against the simulator's frontend socket, or serves the mock
control box so the probe can be tried without the simulator.

Usage:
    cbsim-probe [--url URL] [--lifetime SECONDS] [--log-level LEVEL]
    cbsim-probe --serve-mock [--host HOST] [--port PORT] [--qr-text TEXT]
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from cbsim_probe.client import run_probe
from cbsim_probe.config.env_loader import load_env_file
from cbsim_probe.config.logging_config import configure_logging
from cbsim_probe.config.models import ApplicationConfig, LogLevel
from cbsim_probe.config.settings import get_config
from cbsim_probe.mock.control_box import MockControlBox


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="cbsim-probe",
        description="Probe the control box simulator's WebSocket frontend",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Probe the simulator on the default address for five seconds
  cbsim-probe

  # Probe another address for ten seconds with debug output
  cbsim-probe --url ws://192.168.1.20:7071/ws --lifetime 10 --log-level DEBUG

  # Serve the mock control box on the simulator's port
  cbsim-probe --serve-mock --port 7071
        """,
    )
    parser.add_argument(
        "--url",
        help="WebSocket URL to probe (default: CBSIM_PROBE_URL or ws://localhost:7071/ws)",
    )
    parser.add_argument(
        "--lifetime",
        type=float,
        help="Seconds before the probe shuts down (default: CBSIM_PROBE_LIFETIME or 5)",
    )
    parser.add_argument(
        "--log-level",
        choices=[level.value for level in LogLevel],
        help="Logging level (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--env-file",
        help="Load environment variables from this file instead of .env",
    )
    parser.add_argument(
        "--serve-mock",
        action="store_true",
        help="Serve the mock control box instead of probing",
    )
    parser.add_argument("--host", help="Mock control box bind address")
    parser.add_argument("--port", type=int, help="Mock control box port")
    parser.add_argument("--qr-text", help="QR code text pushed by the mock control box")
    return parser.parse_args(argv)


def apply_overrides(config: ApplicationConfig, args: argparse.Namespace) -> ApplicationConfig:
    """Apply command line values on top of the environment configuration."""
    if args.url is not None:
        config.probe.url = args.url
    if args.lifetime is not None:
        config.probe.lifetime = args.lifetime
    if args.log_level is not None:
        config.logging.level = LogLevel(args.log_level)
    if args.host is not None:
        config.mock.host = args.host
    if args.port is not None:
        config.mock.port = args.port
    if args.qr_text is not None:
        config.mock.qr_text = args.qr_text

    errors = config.validate()
    if errors:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {error}" for error in errors)
        )
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit status."""
    args = parse_args(argv)

    load_env_file(args.env_file)
    try:
        config = apply_overrides(get_config(), args)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    logger = configure_logging(config=config.logging)

    if args.serve_mock:
        server = MockControlBox.from_config(config.mock)
        try:
            asyncio.run(server.serve_forever())
        except KeyboardInterrupt:
            logger.info("Mock control box interrupted")
        return 0

    return asyncio.run(run_probe(config.probe))


if __name__ == "__main__":
    sys.exit(main())
