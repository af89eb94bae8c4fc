"""
binpkg-audit - find installed Gentoo packages that ship ELF binaries.

Core Modules:
- Enumeration: installed package inventory (eix)
- Classification: ELF detection over owned files (qlist)
- Build times: average merge durations (qlop)
- Rebuild planning: emerge command lines tiered by build time
- Foundation: config, logging, external tool invocation
"""

__version__ = "1.0.0"

from .common import (
    AuditError,
    ToolError,
    ToolNotFoundError,
    FileReadError,
    MalformedOutputError,
    parallel_map,
    parallel_any,
)
from .config import Config, Preferences, load_config, load_config_file, validate_config
from .query_tools import QueryTool, QUERY_TOOLS, get_query_tool, run_query, check_prerequisites
from .enumerator import enumerate_packages
from .classifier import ELF_MAGIC, is_binary, owned_files, list_binaries, has_binary
from .build_time import parse_duration, average_duration
from .rebuild import DurationTier, classify_tier, partition_tiers, render_rebuild_commands
from .render import format_duration, render_report
from .pipeline import AuditOptions, AuditRecord, run_audit
from .logging_config import setup_logging, get_logger

__all__ = [
    "__version__",
    # Errors and helpers
    "AuditError",
    "ToolError",
    "ToolNotFoundError",
    "FileReadError",
    "MalformedOutputError",
    "parallel_map",
    "parallel_any",
    # Configuration
    "Config",
    "Preferences",
    "load_config",
    "load_config_file",
    "validate_config",
    # External tools
    "QueryTool",
    "QUERY_TOOLS",
    "get_query_tool",
    "run_query",
    "check_prerequisites",
    # Pipeline stages
    "enumerate_packages",
    "ELF_MAGIC",
    "is_binary",
    "owned_files",
    "list_binaries",
    "has_binary",
    "parse_duration",
    "average_duration",
    "DurationTier",
    "classify_tier",
    "partition_tiers",
    "render_rebuild_commands",
    "format_duration",
    "render_report",
    "AuditOptions",
    "AuditRecord",
    "run_audit",
    # Logging
    "setup_logging",
    "get_logger",
]
