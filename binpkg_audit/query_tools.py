"""
Registry of the external portage query tools and their invocation.

The audit treats three tools as black boxes with a text contract:
1. eix   - inventory of installed packages (exit 1 means "no matches")
2. qlist - files owned by an installed package
3. qlop  - merge-time statistics from the emerge log
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import threading
from dataclasses import dataclass

from .common import ToolError, ToolNotFoundError
from .config import Config


logger = logging.getLogger(__name__)

ATOM_PLACEHOLDER = "{atom}"

# Cache for executable availability checks
_AVAILABLE_CACHE: dict[str, bool] = {}
_AVAILABLE_CACHE_LOCK = threading.Lock()


@dataclass(frozen=True)
class QueryTool:
    """
    External query tool definition.

    Attributes:
        name: Tool identifier, also the default executable name
        display_name: Human-readable description
        command_template: Command with an {atom} placeholder
        provided_by: Gentoo package shipping the tool
        benign_exit_codes: Non-zero exit codes meaning "empty result"
        requires_atom: Whether the command is meaningless without an atom
    """
    name: str
    display_name: str
    command_template: tuple[str, ...]
    provided_by: str
    benign_exit_codes: tuple[int, ...] = ()
    requires_atom: bool = True

    def build_command(self, atom: str | None = None, executable: str | None = None) -> tuple[str, ...]:
        """
        Build the command line for an invocation.

        Args:
            atom: Package atom substituted for the placeholder (dropped when None)
            executable: Replacement for the default executable

        Returns:
            Command tuple

        Raises:
            ValueError: If the tool needs an atom and none was given
        """
        if atom is None and self.requires_atom:
            raise ValueError(f"{self.name} requires a package atom")

        command = []
        for part in self.command_template:
            if part == ATOM_PLACEHOLDER:
                if atom is not None:
                    command.append(atom)
                continue
            command.append(part)
        if executable:
            command[0] = executable
        return tuple(command)

    def is_available(self, executable: str | None = None) -> bool:
        """
        Check if the tool's executable can be found in PATH.

        Results are cached per executable for the life of the process.
        """
        executable = executable or self.name
        with _AVAILABLE_CACHE_LOCK:
            if executable in _AVAILABLE_CACHE:
                return _AVAILABLE_CACHE[executable]

        available = shutil.which(executable) is not None

        with _AVAILABLE_CACHE_LOCK:
            _AVAILABLE_CACHE[executable] = available
        return available


QUERY_TOOLS = (
    QueryTool(
        name="eix",
        display_name="eix installed package inventory",
        command_template=("eix", "-I#", ATOM_PLACEHOLDER),
        provided_by="app-portage/eix",
        benign_exit_codes=(1,),
        requires_atom=False,
    ),
    QueryTool(
        name="qlist",
        display_name="qlist file ownership query",
        command_template=("qlist", "-eo", ATOM_PLACEHOLDER),
        provided_by="app-portage/portage-utils",
    ),
    QueryTool(
        name="qlop",
        display_name="qlop merge time statistics",
        command_template=("qlop", "-CMamq", ATOM_PLACEHOLDER),
        provided_by="app-portage/portage-utils",
    ),
)

_TOOLS_BY_NAME = {tool.name: tool for tool in QUERY_TOOLS}


def get_query_tool(name: str) -> QueryTool | None:
    """Get query tool by name, or None if unknown."""
    return _TOOLS_BY_NAME.get(name)


def _require_tool(name: str) -> QueryTool:
    tool = get_query_tool(name)
    if tool is None:
        raise KeyError(f"Unknown query tool: {name}")
    return tool


def run_query(name: str, atom: str | None = None, config: Config | None = None) -> str:
    """
    Run a query tool synchronously and return its standard output.

    Output is decoded as UTF-8 with surrogateescape so file paths with
    undecodable bytes still round-trip to the filesystem.

    Args:
        name: Query tool name ("eix", "qlist", "qlop")
        atom: Package atom
        config: Configuration (executable overrides, timeout)

    Returns:
        Captured stdout, or "" for a benign empty exit code

    Raises:
        ToolNotFoundError: If the executable does not exist
        ToolError: On any other non-zero exit or a timeout
    """
    config = config or Config()
    tool = _require_tool(name)
    command = tool.build_command(atom, config.get_executable(name))
    timeout = config.preferences.timeout_seconds

    logger.debug("Running %s: %s", tool.display_name, " ".join(command))

    try:
        result = subprocess.run(
            command,
            capture_output=True,
            encoding="utf-8",
            errors="surrogateescape",
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        raise ToolNotFoundError(
            [command[0]], hint=f"needed for {tool.display_name}, install {tool.provided_by}"
        ) from e
    except subprocess.TimeoutExpired as e:
        raise ToolError(
            command,
            -1,
            stdout=_decode(e.stdout),
            stderr=_decode(e.stderr),
            reason=f"timed out after {timeout}s",
        ) from e

    if result.returncode == 0:
        return result.stdout

    if result.returncode in tool.benign_exit_codes:
        logger.debug("%s reported no matches (exit %d)", command[0], result.returncode)
        return ""

    raise ToolError(command, result.returncode, stdout=result.stdout, stderr=result.stderr)


def _decode(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def required_tools(need_time: bool) -> list[QueryTool]:
    """Query tools an audit run will invoke."""
    names = ["eix", "qlist"]
    if need_time:
        names.append("qlop")
    return [_require_tool(name) for name in names]


def check_prerequisites(need_time: bool, config: Config | None = None) -> None:
    """
    Verify every query tool the run needs is installed.

    Args:
        need_time: Whether build durations will be queried (needs qlop)
        config: Configuration (executable overrides)

    Raises:
        ToolNotFoundError: Naming every missing executable
    """
    config = config or Config()
    missing = []
    packages = []
    for tool in required_tools(need_time):
        executable = config.get_executable(tool.name) or tool.name
        if not tool.is_available(executable):
            missing.append(executable)
            if tool.provided_by not in packages:
                packages.append(tool.provided_by)

    if missing:
        raise ToolNotFoundError(missing, hint=f"install {', '.join(packages)}")


def clear_cache() -> None:
    """Clear the executable availability cache."""
    with _AVAILABLE_CACHE_LOCK:
        _AVAILABLE_CACHE.clear()
