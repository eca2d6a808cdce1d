"""
Frontend module for the pod network benchmark harness.

Parses the command line, loads the cluster configuration and runs the
selected suites in one session.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from netbench import __version__
from netbench.builders.command_builders import get_supported_families
from netbench.config import load_config
from netbench.core.session import Session
from netbench.core.suites import SuiteReport, run_suites
from netbench.errors import BenchmarkError, ConfigError
from netbench.logs import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_CONFIG = 2
EXIT_UNEXPECTED = 3


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="netbench",
        description="Pod network benchmark harness",
        epilog="Example: netbench --config cluster.yaml --suite netperf"
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to the cluster YAML configuration file"
    )

    parser.add_argument(
        "--suite",
        choices=get_supported_families() + ["all"],
        default="all",
        help="Benchmark suite to run (default: all)"
    )

    parser.add_argument(
        "--keep-namespace",
        action="store_true",
        help="Do not delete the test namespace at the end"
    )

    parser.add_argument(
        "--log-file",
        type=str,
        help="Also write logs to this file"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def selected_suites(suite: str) -> List[str]:
    if suite == "all":
        return get_supported_families()
    return [suite]


def print_summary(reports: List[SuiteReport]) -> None:
    """Print one line per suite and the failed cases."""
    print(f"\n{'='*60}")
    print("Benchmark Summary")
    print(f"{'='*60}")
    for report in reports:
        if report.skipped:
            status = f"SKIPPED ({report.skipped})"
        elif report.aborted:
            status = f"ABORTED ({report.aborted})"
        else:
            passed = len(report.cases) - len(report.failures)
            status = f"{passed}/{len(report.cases)} cases passed"
        print(f"  {report.family:<10} {status}")
        for case in report.failures:
            print(f"    FAIL {case.name}: {case.error}")
    print(f"{'='*60}\n")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the frontend.

    Returns:
        Exit code (0 when every case passed, 1 on failures, 2 on
        configuration errors, 3 on unexpected errors)
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    setup_logging(
        log_level="DEBUG" if args.verbose else "INFO",
        log_output="both" if args.log_file else "console",
        log_file=args.log_file
    )

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    try:
        with Session(config, keep_namespace=args.keep_namespace) as session:
            logger.info(f"Using namespace {session.namespace}")
            reports = run_suites(session, selected_suites(args.suite))
    except BenchmarkError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURES
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return EXIT_FAILURES
    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        print(f"Unexpected error: {e}", file=sys.stderr)
        return EXIT_UNEXPECTED

    logger.debug(json.dumps([r.to_dict() for r in reports], indent=2))
    print_summary(reports)
    return EXIT_OK if all(r.passed for r in reports) else EXIT_FAILURES


if __name__ == "__main__":
    sys.exit(main())
