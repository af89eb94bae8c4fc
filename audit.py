#!/usr/bin/env python3
"""
binpkg-audit - list installed packages that ship compiled ELF binaries.

Read-only: nothing is rebuilt or modified, the rebuild section only
prints emerge command lines.

Usage:
    audit.py -t               # Packages with binaries, sorted by build time
    audit.py -f -t            # ...plus each package's binary files
    audit.py -r               # ...plus emerge commands tiered by build time
    audit.py -t dev-libs/foo  # Only one package
"""

import argparse
import os
import sys

from binpkg_audit import __version__
from binpkg_audit.common import AuditError
from binpkg_audit.config import Config, load_config, validate_config
from binpkg_audit.logging_config import get_logger, setup_logging
from binpkg_audit.pipeline import AuditOptions, run_audit
from binpkg_audit.query_tools import check_prerequisites
from binpkg_audit.rebuild import render_rebuild_commands
from binpkg_audit.render import render_report

# Configuration from environment
CONFIG_PATH = os.environ.get("BINPKG_AUDIT_CONFIG")
MAX_WORKERS = os.environ.get("BINPKG_AUDIT_MAX_WORKERS")


def build_config(args: argparse.Namespace) -> Config:
    """Load configuration and apply environment and command line overrides."""
    config = load_config(args.config or CONFIG_PATH, verbose=args.verbose)

    jobs = args.jobs
    if jobs is None and MAX_WORKERS:
        try:
            jobs = int(MAX_WORKERS)
        except ValueError:
            raise ValueError(f"BINPKG_AUDIT_MAX_WORKERS must be an integer, got {MAX_WORKERS!r}")
    if jobs is not None:
        config = config.with_max_workers(jobs)

    for message in validate_config(config):
        get_logger().warning(message)
    return config


def cmd_audit(args: argparse.Namespace, config: Config) -> int:
    """Run the audit and print the report (and rebuild commands)."""
    options = AuditOptions(
        atom=args.atom,
        show_files=args.file,
        show_time=args.time,
        rebuild=args.rebuild,
    )

    check_prerequisites(options.need_time, config)
    records = run_audit(options, config)

    if not options.should_print:
        return 0

    for line in render_report(records, show_time=options.need_time, show_files=options.show_files):
        emit(line)

    if options.rebuild:
        for line in render_rebuild_commands(records):
            emit(line)
    return 0


def emit(line: str) -> None:
    """
    Write one report line to stdout as filesystem bytes.

    Paths decoded with surrogateescape are written back byte for byte,
    so non-UTF-8 file names print as they are on disk.
    """
    sys.stdout.flush()
    sys.stdout.buffer.write(os.fsencode(line) + b"\n")
    sys.stdout.buffer.flush()


def report_error(exc: Exception) -> int:
    """Print a fatal error to stderr and return the exit status."""
    get_logger().debug("Run aborted", exc_info=exc)
    print(f"error: {exc}", file=sys.stderr)
    return 1


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Find installed packages that ship ELF binaries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-f", "--file",
        action="store_true",
        help="print path to elf files",
    )
    parser.add_argument(
        "-t", "--time",
        action="store_true",
        help="print average build time of package using qlop",
    )
    parser.add_argument(
        "-r", "--rebuild",
        action="store_true",
        help="print rebuild package command line",
    )
    parser.add_argument(
        "-j", "--jobs",
        type=int,
        default=None,
        help="parallel workers across packages (default: 16)",
    )
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="path to a YAML configuration file",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="also write debug logs to this file",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="log tool invocations and progress to stderr",
    )
    verbosity.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="no warnings on stderr (fatal errors are still reported)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "atom",
        nargs="?",
        default=None,
        help="only process one package (CAT/PN or PN without PV)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for binpkg-audit."""
    args = create_parser().parse_args(argv)

    setup_logging(log_file=args.log_file, verbose=args.verbose, quiet=args.quiet)

    try:
        config = build_config(args)
    except ValueError as e:
        return report_error(e)

    try:
        return cmd_audit(args, config)
    except AuditError as e:
        return report_error(e)


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
