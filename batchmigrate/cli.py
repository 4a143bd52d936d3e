"""Command-line interface for the batch migration engine."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .exceptions import ConfigurationError, MigrationError
from .models.config import MigrationConfig
from .models.migration import MigrationRun
from .orchestrator import MigrationEngine
from .services.validator import ConfigValidator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="batchmigrate",
        description="Batch Migration Engine - move tabular data between CSV/XML files and databases"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Run migration
    run_parser = subparsers.add_parser("run", help="Run a migration")
    run_parser.add_argument("--config", required=True, help="Path to migration config file")
    run_parser.add_argument("--batch-size", type=int, help="Records per batch")
    run_parser.add_argument(
        "--continue-on-error", action="store_true", default=None,
        help="Skip failed batches instead of stopping"
    )
    run_parser.add_argument("--max-errors", type=int, help="Failed batches tolerated before stopping")
    run_parser.add_argument("--report", help="Write the run summary as JSON to this path")
    run_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    # Validate config
    validate_parser = subparsers.add_parser("validate", help="Validate a migration config")
    validate_parser.add_argument("--config", required=True, help="Path to migration config file")
    validate_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    # Discover columns
    discover_parser = subparsers.add_parser("discover", help="Show the source columns")
    discover_parser.add_argument("--config", required=True, help="Path to migration config file")
    discover_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    args = parser.parse_args(argv)

    # Set up logging
    log_level = logging.DEBUG if getattr(args, "verbose", False) else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    commands = {
        "run": run_migration,
        "validate": run_validation,
        "discover": run_discovery,
    }
    if args.command not in commands:
        parser.print_help()
        return EXIT_CONFIG

    try:
        return commands[args.command](args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG
    except MigrationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILED


def load_config(args) -> MigrationConfig:
    """Load a config file, apply command-line overrides and check paths."""
    config = MigrationConfig.from_json_file(args.config)
    config = config.with_overrides(
        batch_size=getattr(args, "batch_size", None),
        continue_on_error=getattr(args, "continue_on_error", None),
        max_errors=getattr(args, "max_errors", None),
    )
    ConfigValidator().validate_or_raise(config)
    return config


def run_migration(args) -> int:
    """Run a migration from config file."""
    config = load_config(args)
    descriptor = config.to_descriptor()
    result = MigrationEngine(descriptor).run()

    print_summary(result)

    if args.report:
        report = result.to_dict()
        report["migration"] = descriptor.to_dict()
        try:
            with open(args.report, "w", encoding="utf-8") as f:
                json.dump(report, f, indent=2, default=str)
        except OSError as e:
            print(f"Error: cannot write report {args.report}: {e}", file=sys.stderr)
            return EXIT_FAILED
        print(f"Report saved to {args.report}")

    return EXIT_OK if result.success else EXIT_FAILED


def print_summary(result: MigrationRun) -> None:
    print("\n" + "=" * 60)
    print("MIGRATION COMPLETE" if result.success else "MIGRATION FAILED")
    print("=" * 60)
    print(f"Kind: {result.kind.value if result.kind else '-'}")
    print(f"Status: {result.status.value}")
    print(f"Columns: {', '.join(result.columns)}")
    print(f"Records Migrated: {result.records_migrated}")
    print(f"Batches: {result.batches_flushed} written, {result.batches_failed} failed")
    if result.table_created:
        print("Target table created")
    if result.duration_seconds is not None:
        print(f"Duration: {result.duration_seconds:.2f} seconds")
    if result.error is not None:
        print(f"Error: {result.error}")


def run_validation(args) -> int:
    """Validate a migration config."""
    config = load_config(args)
    descriptor = config.to_descriptor()

    print("\n=== Config is valid ===")
    print(f"Kind: {descriptor.kind.value}")
    print(f"Source: {descriptor.source.describe()}")
    print(f"Target: {descriptor.target.describe()}")
    print(f"Batch size: {descriptor.batch_size}")
    return EXIT_OK


def run_discovery(args) -> int:
    """Print the discovered source columns."""
    config = load_config(args)
    descriptors = MigrationEngine(config.to_descriptor()).discover()

    print(f"\n=== {len(descriptors)} Columns ===")
    for descriptor in descriptors:
        print(f"  {descriptor.name}: {descriptor.type_name}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
