"""
Common utilities shared across binpkg_audit modules.

Holds the error taxonomy every stage raises and the fork-join helpers
used to fan work out across packages and files.
"""

from __future__ import annotations

import os
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class AuditError(Exception):
    """
    Base exception for fatal audit errors.

    Every subclass aborts the run; nothing in the pipeline catches and
    continues.
    """


class ToolError(AuditError):
    """
    External query tool exited with a non-benign status.

    Attributes:
        command: Command that was executed
        exit_code: Process exit code (-1 on timeout)
        stdout: Captured standard output
        stderr: Captured standard error
    """
    def __init__(
        self,
        command: Sequence[str],
        exit_code: int,
        stdout: str = "",
        stderr: str = "",
        reason: str | None = None,
    ):
        self.command = tuple(command)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        reason = reason or f"exited with code {exit_code}"
        message = (
            f"{' '.join(self.command)} failed ({reason}), "
            f"stdout:\n{stdout!r}\nstderr:\n{stderr!r}"
        )
        super().__init__(message)


class ToolNotFoundError(AuditError):
    """
    One or more external query tools are not installed.

    Attributes:
        executables: Names of the missing executables
    """
    def __init__(self, executables: Sequence[str], hint: str | None = None):
        self.executables = tuple(executables)
        message = f"Required tool(s) not found in PATH: {', '.join(self.executables)}"
        if hint:
            message += f" ({hint})"
        super().__init__(message)


class FileReadError(AuditError):
    """
    Installed file could not be read for a reason other than a short file.

    Attributes:
        path: Path that failed
        cause: Underlying OSError
    """
    def __init__(self, path: str, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to read file: {path}: {cause}")


class MalformedOutputError(AuditError):
    """
    External tool output contained a field that could not be parsed.

    Attributes:
        command: Command whose output was parsed
        token: Offending token
    """
    def __init__(self, command: Sequence[str], token: str):
        self.command = tuple(command)
        self.token = token
        super().__init__(
            f"Unexpected output from {' '.join(self.command) or 'query tool'}: "
            f"{token!r} is not a number of seconds"
        )


def parallel_map(
    func: Callable[[T], R],
    items: Sequence[T],
    max_workers: int = 8,
) -> list[R]:
    """
    Apply func to every item in parallel and join.

    Results come back in input order. The first exception raised by any
    task cancels tasks that have not started yet and is re-raised once
    running tasks finish.

    Args:
        func: Side-effect free function to apply
        items: Input sequence (not modified)
        max_workers: Thread pool size, 1 runs sequentially

    Returns:
        List of results aligned with items
    """
    items = list(items)
    if max_workers <= 1 or len(items) <= 1:
        return [func(item) for item in items]

    results: list = [None] * len(items)
    executor = ThreadPoolExecutor(max_workers=min(max_workers, len(items)))
    try:
        futures = {executor.submit(func, item): index for index, item in enumerate(items)}
        for future in as_completed(futures):
            results[futures[future]] = future.result()
    finally:
        executor.shutdown(wait=True, cancel_futures=True)
    return results


def parallel_any(
    predicate: Callable[[T], bool],
    items: Sequence[T],
    max_workers: int = 8,
) -> bool:
    """
    Any-of reduction evaluated in parallel.

    Returns as soon as one item satisfies the predicate; pending tasks
    are cancelled. Exceptions propagate like in parallel_map.
    """
    items = list(items)
    if max_workers <= 1 or len(items) <= 1:
        return any(predicate(item) for item in items)

    executor = ThreadPoolExecutor(max_workers=min(max_workers, len(items)))
    try:
        futures = [executor.submit(predicate, item) for item in items]
        for future in as_completed(futures):
            if future.result():
                return True
        return False
    finally:
        executor.shutdown(wait=True, cancel_futures=True)


def vlog(msg: str, verbose: bool = False) -> None:
    """
    Log verbose message using structured logging.

    Args:
        msg: Message to log
        verbose: Whether verbose mode is enabled
    """
    if verbose or os.environ.get("BINPKG_AUDIT_DEBUG", "0") == "1":
        try:
            from .logging_config import get_logger
            get_logger().info(msg)
        except Exception:
            print(f"[binpkg_audit] {msg}", file=sys.stderr)
