"""
Audit pipeline: enumerate → classify → time → sort.

Each stage is a parallel map over an immutable list, joined before the
next stage starts. Any error aborts the whole run.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from functools import partial

from .build_time import average_duration
from .classifier import has_binary, list_binaries
from .common import parallel_map
from .config import Config
from .enumerator import enumerate_packages


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditOptions:
    """
    What an audit run collects and prints.

    Attributes:
        atom: Restrict enumeration to one package atom
        show_files: Collect and print binary file paths
        show_time: Collect and print average build durations
        rebuild: Collect durations and print tiered emerge commands
    """
    atom: str | None = None
    show_files: bool = False
    show_time: bool = False
    rebuild: bool = False

    @property
    def need_time(self) -> bool:
        return self.show_time or self.rebuild

    @property
    def should_print(self) -> bool:
        """Without -t or -r the run only validates and prints nothing."""
        return self.show_time or self.rebuild


@dataclass(frozen=True)
class AuditRecord:
    """
    A package shipping at least one ELF binary.

    Attributes:
        package: Package identifier
        files: Binary paths sorted by path (empty unless files were requested)
        duration: Average build time in seconds (0 unless time was requested)
    """
    package: str
    files: tuple[str, ...] = ()
    duration: int = 0


def classify_package(package: str, show_files: bool, config: Config) -> AuditRecord | None:
    """
    Build the record for a package, or None if it ships no binaries.

    With show_files every file is tested; otherwise the check stops at
    the first binary.
    """
    if show_files:
        files = sorted(list_binaries(package, config))
        if not files:
            return None
        return AuditRecord(package, tuple(files))

    if has_binary(package, config):
        return AuditRecord(package)
    return None


def sort_records(records: list[AuditRecord], by_duration: bool) -> list[AuditRecord]:
    """
    Order records for printing.

    By duration, ties fall back to package name so output is
    deterministic; otherwise the input order is kept.
    """
    if not by_duration:
        return list(records)
    return sorted(records, key=lambda record: (record.duration, record.package))


def run_audit(options: AuditOptions, config: Config | None = None) -> list[AuditRecord]:
    """
    Run the full audit and return records ready for printing.

    Args:
        options: What to collect
        config: Configuration (worker counts, executable overrides)

    Returns:
        Records for packages with at least one binary

    Raises:
        AuditError: On the first tool, file or parse failure
    """
    config = config or Config()
    workers = config.preferences.max_workers
    start_time = time.time()

    packages = enumerate_packages(options.atom, config)
    logger.info("Checking %d package(s) for ELF binaries", len(packages))

    classified = parallel_map(
        partial(classify_package, show_files=options.show_files, config=config),
        packages,
        workers,
    )
    records = [record for record in classified if record is not None]
    logger.info("%d package(s) ship binaries", len(records))

    if options.need_time:
        durations = parallel_map(
            partial(average_duration, config=config),
            [record.package for record in records],
            workers,
        )
        records = [
            replace(record, duration=duration)
            for record, duration in zip(records, durations)
        ]

    records = sort_records(records, by_duration=options.need_time)
    logger.debug("Audit finished in %.1fs", time.time() - start_time)
    return records
