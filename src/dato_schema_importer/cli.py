"""
Command-line interface for the DatoCMS schema import tool.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from . import cma_utils
from .events import LoggingEventSubscriber
from .importer import ImportResult, import_schema
from .models import ImportPlan
from .progress import ImportProgress
from .utils import setup_logging


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Import a DatoCMS schema plan into a destination project")

    _ = parser.add_argument("plan", help="Path to the import plan JSON file")

    _ = parser.add_argument(
        "--api-token-pass-path",
        help="Path for the CMA token in pass utility (default: DATOCMS_API_TOKEN or datocms/cli/token)",
    )

    _ = parser.add_argument(
        "--environment", "-e", help="Destination environment (default: DATOCMS_ENVIRONMENT or primary)"
    )

    _ = parser.add_argument("--base-url", help="Content Management API base URL")

    _ = parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    return parser.parse_args(argv)


def _print_progress(progress: ImportProgress) -> None:
    print(f"Progress: {progress.finished}/{progress.total}")


def _print_summary(result: ImportResult) -> None:
    print("Schema import completed")
    print(f"  Item types mapped: {len(result.item_type_ids)}")
    print(f"  Fields mapped: {len(result.field_ids)}")
    print(f"  Fieldsets mapped: {len(result.fieldset_ids)}")
    print(f"  Plugins mapped: {len(result.plugin_ids)}")
    print(f"  Operations: {result.progress.finished}/{result.progress.total}")


def main(argv: list[str] | None = None) -> None:
    """Main entry point.

    The run is bracketed by a LoggingEventSubscriber, so its start and end
    show up in the log file next to the requests it made.
    """
    args = parse_arguments(argv)

    setup_logging(verbose=args.verbose)
    logger = logging.getLogger(__name__)

    try:
        plan = ImportPlan.from_file(args.plan)
        token = cma_utils.get_token(args.api_token_pass_path)
        client = cma_utils.get_client(token, environment=args.environment, base_url=args.base_url)

        label = f"environment {client.environment}" if client.environment else "primary environment"
        events = LoggingEventSubscriber(label)
        result = asyncio.run(import_schema(plan, client, _print_progress, events=events))
    except Exception:
        logger.exception("Schema import failed")
        sys.exit(1)

    _print_summary(result)
    sys.exit(0)
