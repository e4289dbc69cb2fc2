"""CLI entry point for owl-harness."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import structlog
from dotenv import load_dotenv

from owl_harness.config import HarnessConfig
from owl_harness.errors import HarnessError
from owl_harness.runner.loader import load_scenarios
from owl_harness.runner.tags import TagExpression, TagExpressionError
from owl_harness.runner.worker_pool import WorkerPool

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def configure_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure structlog for CLI output."""
    log_level = "DEBUG" if debug else "INFO" if verbose else "WARNING"

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="owl-harness",
        description="owl-harness - Resilient UI scenarios against live web shops, powered by Owl Browser",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  owl-harness scenarios/
  owl-harness scenarios/cart.py --tags "@cart and not @skip" --workers 4
  owl-harness scenarios/ --base-url https://staging.example.com -v
""",
    )

    parser.add_argument(
        "paths",
        nargs="+",
        help="Scenario files or directories",
    )
    parser.add_argument(
        "--base-url",
        default="",
        help="Base URL of the shop (default: BASE_URL env var or the production shop)",
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=0,
        help="Parallel workers (default: WORKERS env var or 2)",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=0,
        help="Element wait timeout in milliseconds (default: TIMEOUT env var or 10000)",
    )
    parser.add_argument(
        "--tags", "-t",
        default=None,
        help='Tag expression (default: TAGS env var or "not @skip")',
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Request a visible browser where the engine supports it",
    )
    parser.add_argument(
        "--owl-endpoint",
        default="",
        help="Owl Browser endpoint (default: from OWL_ENDPOINT env var)",
    )
    parser.add_argument(
        "--owl-token",
        default="",
        help="Owl Browser auth token (default: from OWL_TOKEN env var)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    configure_logging(args.verbose, args.debug)

    logger = structlog.get_logger("owl_harness")

    try:
        config = HarnessConfig(
            base_url=args.base_url,
            headless=False if args.headed else None,
            workers=args.workers,
            timeout_ms=args.timeout,
            tags=args.tags,
            owl_endpoint=args.owl_endpoint,
            owl_token=args.owl_token,
        )
        expression = TagExpression.parse(config.tags)
    except (ValueError, TagExpressionError) as e:
        logger.error("Invalid configuration", error=str(e))
        return EXIT_CONFIG

    if not config.has_engine_credentials:
        logger.error("OWL_ENDPOINT and OWL_TOKEN must be set (via env or --owl-endpoint/--owl-token)")
        return EXIT_CONFIG

    try:
        registry = load_scenarios(args.paths)
    except (FileNotFoundError, ValueError, HarnessError) as e:
        logger.error("Could not load scenarios", error=str(e))
        return EXIT_CONFIG

    selected = registry.select(expression)
    logger.info(
        "Scenarios selected",
        selected=len(selected),
        total=len(registry),
        tags=config.tags,
        base_url=config.base_url,
    )

    summary = asyncio.run(WorkerPool(config).run(selected))

    print()
    print("=" * 60)
    print("  OWL HARNESS RUN COMPLETE")
    print("=" * 60)
    print(summary.format())
    print("=" * 60)

    return EXIT_OK if summary.success else EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
