"""
Installed package enumeration via eix.
"""

from __future__ import annotations

import logging

from .config import Config
from .query_tools import run_query


logger = logging.getLogger(__name__)


def enumerate_packages(atom: str | None = None, config: Config | None = None) -> list[str]:
    """
    List installed packages, optionally restricted to one atom.

    Order is whatever eix emits. "No matches" yields an empty list.

    Args:
        atom: CATEGORY/NAME or bare NAME
        config: Configuration

    Returns:
        Package identifiers

    Raises:
        ToolError: If eix fails for any reason other than "no matches"
    """
    output = run_query("eix", atom, config)
    packages = [line.strip() for line in output.splitlines() if line.strip()]
    logger.debug("eix returned %d package(s)%s", len(packages), f" for {atom}" if atom else "")
    return packages
