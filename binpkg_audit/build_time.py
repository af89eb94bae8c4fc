"""
Average merge duration lookup via qlop.
"""

from __future__ import annotations

import logging
import re
from typing import Sequence

from .common import MalformedOutputError
from .config import Config
from .query_tools import get_query_tool, run_query


logger = logging.getLogger(__name__)

_SECONDS_RE = re.compile(r"[0-9]+")


def parse_duration(output: str, command: Sequence[str] = ()) -> int:
    """
    Extract the average duration in seconds from qlop output.

    The second whitespace-separated token holds the seconds. Output
    with fewer than two tokens means the package was never timed and
    counts as 0.

    Raises:
        MalformedOutputError: If the second token is not an unsigned integer
    """
    tokens = output.split()
    if len(tokens) < 2:
        return 0

    token = tokens[1]
    if not _SECONDS_RE.fullmatch(token):
        raise MalformedOutputError(command, token)
    return int(token)


def average_duration(package: str, config: Config | None = None) -> int:
    """
    Query the average historical merge duration of a package.

    Returns:
        Duration in whole seconds (0 when qlop has no record)

    Raises:
        ToolError: If qlop exits non-zero
        MalformedOutputError: If the seconds field cannot be parsed
    """
    config = config or Config()
    output = run_query("qlop", package, config)
    command = get_query_tool("qlop").build_command(package, config.get_executable("qlop"))
    seconds = parse_duration(output, command)
    logger.debug("%s: average merge time %ds", package, seconds)
    return seconds
