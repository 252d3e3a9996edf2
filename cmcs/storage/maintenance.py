"""
Maintenance command for the claim data containers.

Usage:
    cmcs-maintenance stats
    cmcs-maintenance cleanup
    cmcs-maintenance summary --manager manager@example.com
    cmcs-maintenance --config other.yaml stats
"""

import argparse
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from ..services.data_context import ClaimsData
from ..utils.config import Config
from ..utils.errors import ClaimsDataError, ConfigurationError
from ..utils.formatting import format_amount
from ..utils.logging import setup_logging, with_context

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cmcs-maintenance",
        description="Inspect and tidy the claim data containers."
    )
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to the YAML configuration file (default: config.yaml)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("stats", help="Print storage statistics for claim documents")
    subparsers.add_parser("cleanup", help="Delete documents whose claim no longer exists")

    summary = subparsers.add_parser("summary", help="Print a manager's dashboard figures")
    summary.add_argument("--manager", required=True, help="Manager email address")

    return parser


@with_context(component="maintenance")
def print_stats(data: ClaimsData) -> None:
    stats = data.files.get_storage_statistics()

    print(f"Files:      {stats.total_files}")
    print(f"Total size: {stats.total_size_formatted}")
    for file_type, count in sorted(stats.files_by_type.items()):
        print(f"  {file_type}: {count}")
    print(f"Claims with documents: {len(stats.files_by_claim)}")


@with_context(component="maintenance")
def run_cleanup(data: ClaimsData) -> int:
    removed = data.workflow.cleanup_orphaned_files()
    print(f"Removed {removed} orphaned file(s)")
    return removed


@with_context(component="maintenance")
def print_summary(data: ClaimsData, manager_email: str) -> None:
    stats = data.claims.get_manager_stats(manager_email)

    print(f"Manager:              {manager_email}")
    print(f"Pending claims:       {stats.pending_claims}")
    print(f"Approved this month:  {stats.approved_this_month}")
    print(f"Rejected this month:  {stats.rejected_this_month}")
    print(f"Total pending amount: {format_amount(stats.total_pending_amount)}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        config = Config.load(args.config)
    except ConfigurationError as e:
        setup_logging(level="INFO")
        logger.error(e.user_message)
        return 1

    setup_logging(
        level=config.logging.level,
        log_format=config.logging.format,
        log_file=config.logging.file or None
    )

    try:
        data = ClaimsData.from_config(config)

        if args.command == "stats":
            print_stats(data)
        elif args.command == "cleanup":
            run_cleanup(data)
        elif args.command == "summary":
            print_summary(data, args.manager)

    except ClaimsDataError as e:
        logger.error(f"Maintenance command failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
