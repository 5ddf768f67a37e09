#!/usr/bin/env python3
"""
Fedora Commons Export Tool - Main CLI Entry Point

Exports Fedora Commons 3 objects (datastreams plus profile metadata) into a
sharded filesystem tree, tracking per-object progress in a SQLite ledger so
long batch runs can be interrupted and resumed.
"""

import argparse
import code
import logging
import sys
from pathlib import Path
from typing import Optional

from config_loader import ConfigLoader, get_nested
from context import ExportContext
from exceptions import ConfigError, DuplicateIdError, FetchError, RepositoryConnectionError
from logger import log_config, log_section, setup_logging
from orchestrator import RunReport

__version__ = "1.0.0"


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"limit must be a positive integer, got {value}")
    return number


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='export_fedora.py',
        description="Export Fedora Commons objects to a filesystem tree",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Export the configured test object (ledger not used)
  python export_fedora.py --test

  # Export (or re-export) one object
  python export_fedora.py --single qsr-object:189208

  # Export the first 100 pending objects
  python export_fedora.py --fullrun 100

  # Show where pending objects would be written, without writing
  python export_fedora.py --dryrun

  # Ledger status counts
  python export_fedora.py --status
        """
    )

    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    modes = parser.add_mutually_exclusive_group()
    modes.add_argument('--test', action='store_true', help='Process test object from config')
    modes.add_argument('--single', metavar='ID', help='Process single object by ID')
    modes.add_argument(
        '--fullrun', metavar='LIMIT', nargs='?', const=0, type=_positive_int,
        help='Process all pending objects, optionally limit count'
    )
    modes.add_argument(
        '--dryrun', metavar='LIMIT', nargs='?', const=0, type=_positive_int,
        help='Simulate full run, optionally limit count (needs an existing ledger)'
    )
    modes.add_argument(
        '--status', action='store_true',
        help='Show ledger status counts (creates and seeds the ledger on first use)'
    )

    parser.add_argument(
        '--config', type=str, default='config.yaml',
        help='Path to configuration YAML file (default: config.yaml)'
    )
    parser.add_argument(
        '--secrets', type=str,
        help='Path to secrets YAML file (default: SECRETS.yaml next to the config)'
    )
    parser.add_argument(
        '--stale-after', metavar='MINUTES', type=_positive_int,
        help='Reclaim jobs left in processing for longer than MINUTES'
    )
    parser.add_argument('--debug', action='store_true', help='Enable debug mode')
    parser.add_argument(
        '-v', '--verbose', action='count', default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def _selected_mode(args: argparse.Namespace) -> Optional[str]:
    if args.test:
        return 'test'
    if args.single:
        return 'single'
    if args.fullrun is not None:
        return 'fullrun'
    if args.dryrun is not None:
        return 'dryrun'
    if args.status:
        return 'status'
    return None


def run_test_object(context: ExportContext, logger: logging.Logger) -> int:
    """Export the configured test object, bypassing the ledger."""
    object_id = context.test_object
    if not object_id:
        logger.error("No fedora.test_object configured")
        return 2

    logger.info(f"Testing with Object: {object_id}")
    try:
        exported = context.fetcher.fetch_object(object_id)
    except FetchError as e:
        logger.error(f"Test object could not be fetched: {e}")
        return 1
    logger.info(f"Datastreams: {', '.join(exported.datastreams)}")

    test_ds = exported.datastreams.get(context.test_datastream)
    if test_ds is not None:
        logger.info(f"{test_ds.dsid} Content Type: {test_ds.content_type}")
        logger.debug(f"{test_ds.dsid} Content: {test_ds.content.decode('utf-8', errors='replace')}")

    result = context.build_exporter().export_object(object_id, exported)
    if not result.ok:
        logger.error(f"Test export failed: {result.message}")
        return 1

    logger.info(f"Object Dir: {result.directory}")
    return 0


def run_single(context: ExportContext, object_id: str, logger: logging.Logger) -> int:
    """Export one object through the ledger, regardless of its status."""
    result = context.build_runner(show_progress=False).process_single(object_id)
    if result.ok:
        logger.info(f"Exported {object_id} to {result.directory}")
        return 0
    return 1


def run_batch(context: ExportContext, limit: Optional[int], dry_run: bool, logger: logging.Logger) -> int:
    """Run a full or dry batch over the pending jobs and report the outcome."""
    runner = context.build_runner()
    batch = runner.run_batch(limit=limit, dry_run=dry_run)

    report_generator = RunReport(logger)
    report = report_generator.generate_report(batch, context.ledger.status_counts())
    print("\n" + report_generator.format_console_report(report))

    if context.report_path:
        try:
            report_generator.export_json_report(report, context.report_path)
        except OSError as e:
            logger.warning(f"Failed to export JSON report: {str(e)}")

    if batch.failed:
        logger.warning(f"Run completed with {len(batch.failed)} errors")
        return 1

    logger.info("Run completed successfully")
    return 0


def show_status(context: ExportContext) -> int:
    """Print ledger status counts."""
    counts = context.ledger.status_counts()
    print("Ledger status:")
    for status, count in counts.items():
        print(f"  {status:<11}  {count}")
    print(f"  {'total':<11}  {sum(counts.values())}")
    return 0


def start_debug_session(context: Optional[ExportContext]) -> None:
    """Open an interactive console with the export context."""
    banner = "Fedora export debug console. Available: context"
    code.interact(banner=banner, local={'context': context})


def main(argv=None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    mode = _selected_mode(args)
    if mode is None:
        parser.print_usage()
        print("No valid mode specified. Use --help for usage information.")
        return 1

    verbosity = max(args.verbose, 1)
    setup_logging(verbosity=verbosity, level='DEBUG' if args.debug else None)
    logger = logging.getLogger('fedora_export')

    log_section("Fedora Commons Export Tool")
    logger.info(f"Version: {__version__}")

    context = None
    try:
        logger.info(f"Loading configuration from {args.config}")
        config = ConfigLoader.load(args.config, args.secrets)
        config = ConfigLoader.merge_with_args(config, args)
        ConfigLoader.validate(config)

        setup_logging(
            verbosity=verbosity,
            log_file=get_nested(config, 'logging.file'),
            level=get_nested(config, 'logging.level')
        )
        log_config(config)

        ledger_path = get_nested(config, 'ledger.path')
        if mode == 'dryrun' and ledger_path and not Path(ledger_path).exists():
            logger.warning(
                f"No ledger at {ledger_path}; nothing to simulate. "
                "Run --status or --fullrun to create it."
            )
            return 0

        context = ExportContext.from_config(config, open_ledger=(mode != 'test'))

        if mode in ('test', 'single', 'fullrun'):
            logger.info("Testing Fedora connectivity")
            context.check_connection()

        if mode == 'test':
            exit_code = run_test_object(context, logger)
        elif mode == 'single':
            exit_code = run_single(context, args.single, logger)
        elif mode == 'fullrun':
            exit_code = run_batch(context, args.fullrun or None, False, logger)
        elif mode == 'dryrun':
            exit_code = run_batch(context, args.dryrun or None, True, logger)
        else:
            exit_code = show_status(context)

        if args.debug:
            start_debug_session(context)

        return exit_code

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 2
    except RepositoryConnectionError as e:
        logger.error(str(e))
        return 1
    except DuplicateIdError as e:
        logger.error(f"Ledger seeding failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.error("Export interrupted by user")
        return 130
    finally:
        if context is not None:
            context.close()


if __name__ == "__main__":
    sys.exit(main())
