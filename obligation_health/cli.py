"""Command-line interface for the obligation health engine."""
from __future__ import annotations

import argparse
import logging
import sys

from .config import load_config
from .errors import HealthCalculationError
from .logging_setup import configure_logging
from .risk import HealthStatus
from .service import HealthChecker

logger = logging.getLogger(__name__)

EXIT_LIQUIDATABLE = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="obligation-health",
        description="Lending obligation health calculator",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    check_parser = sub.add_parser("check", help="Compute and classify obligations")
    check_parser.add_argument(
        "snapshot",
        nargs="?",
        default=None,
        help="Snapshot document (overrides snapshots.path from config)",
    )
    check_parser.add_argument(
        "--obligation",
        action="append",
        dest="obligations",
        default=None,
        help="Only check this obligation address (repeatable)",
    )

    report_parser = sub.add_parser("report", help="Print a health report")
    report_parser.add_argument(
        "snapshot",
        nargs="?",
        default=None,
        help="Snapshot document (overrides snapshots.path from config)",
    )

    return parser


def _run(args: argparse.Namespace) -> int:
    """Execute the selected command and return the exit status."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    checker = HealthChecker(config)

    try:
        if args.command == "check":
            results = checker.check(args.snapshot, args.obligations)
            if any(status is HealthStatus.LIQUIDATABLE for _, status in results):
                return EXIT_LIQUIDATABLE
            return 0
        if args.command == "report":
            results = checker.check(args.snapshot)
            print(checker.build_summary(results))
            return 0
    except HealthCalculationError as e:
        logger.error("Health calculation failed: %s", e)
        return 1

    build_parser().print_help()
    return 1


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(_run(args))
