"""
Binary (ELF) detection for installed files and packages.

A file counts as binary when its first four bytes are the ELF magic.
Nothing else in the header is inspected.
"""

from __future__ import annotations

import logging

from .common import FileReadError, parallel_any, parallel_map
from .config import Config
from .query_tools import run_query


logger = logging.getLogger(__name__)

ELF_MAGIC = b"\x7fELF"


def is_binary(path: str) -> bool:
    """
    Check whether a file starts with the ELF magic.

    Files shorter than four bytes are not binaries.

    Raises:
        FileReadError: If the file cannot be opened or read
    """
    try:
        with open(path, "rb") as f:
            header = f.read(len(ELF_MAGIC))
    except OSError as e:
        raise FileReadError(path, e) from e
    return header == ELF_MAGIC


def owned_files(package: str, config: Config | None = None) -> list[str]:
    """
    List every file path owned by an installed package.

    A package owning no files yields an empty list; any qlist failure
    raises ToolError.
    """
    output = run_query("qlist", package, config)
    return [line for line in output.splitlines() if line]


def list_binaries(package: str, config: Config | None = None) -> list[str]:
    """
    Return the package's files that are ELF binaries.

    Files are tested in parallel; the result order is not meaningful.
    """
    config = config or Config()
    files = owned_files(package, config)
    flags = parallel_map(is_binary, files, config.preferences.file_workers)
    binaries = [path for path, flag in zip(files, flags) if flag]
    logger.debug("%s: %d of %d file(s) are binaries", package, len(binaries), len(files))
    return binaries


def has_binary(package: str, config: Config | None = None) -> bool:
    """Return True as soon as any file owned by the package is an ELF binary."""
    config = config or Config()
    files = owned_files(package, config)
    return parallel_any(is_binary, files, config.preferences.file_workers)
