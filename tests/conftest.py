"""
Shared fixtures: real files on disk and a fake for the portage query tools.
"""

import logging
import os
import subprocess

import pytest

from binpkg_audit import query_tools


ELF_HEADER = b"\x7fELF\x02\x01\x01\x00" + b"\x00" * 56


@pytest.fixture(autouse=True)
def _clear_availability_cache():
    query_tools.clear_cache()
    yield
    query_tools.clear_cache()


@pytest.fixture
def make_file(tmp_path):
    """Create a file under tmp_path with the given bytes and return its path."""
    def _make(name: str, content: bytes) -> str:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return str(path)
    return _make


class FakeTools:
    """
    Stand-in for subprocess.run that answers eix, qlist and qlop.

    Attributes:
        packages: eix output lines
        files: package -> owned file paths (qlist)
        durations: package -> qlop stdout
        exit_codes: tool name -> forced exit code
        calls: every command received
    """

    def __init__(self, packages=(), files=None, durations=None):
        self.packages = list(packages)
        self.files = dict(files or {})
        self.durations = dict(durations or {})
        self.exit_codes = {}
        self.calls = []

    def __call__(self, command, **kwargs):
        self.calls.append(tuple(command))
        name = os.path.basename(command[0])
        code = self.exit_codes.get(name, 0)
        if code:
            return subprocess.CompletedProcess(command, code, "partial out", f"{name} broke")

        if name == "eix":
            stdout = "".join(f"{pkg}\n" for pkg in self.packages)
        elif name == "qlist":
            stdout = "".join(f"{path}\n" for path in self.files.get(command[-1], []))
        elif name == "qlop":
            stdout = self.durations.get(command[-1], "")
        else:
            raise FileNotFoundError(command[0])
        return subprocess.CompletedProcess(command, 0, stdout, "")

    def commands_for(self, name):
        return [call for call in self.calls if os.path.basename(call[0]) == name]


@pytest.fixture
def fake_tools(monkeypatch):
    """Patch subprocess.run in the query tool layer with a FakeTools instance."""
    tools = FakeTools()
    monkeypatch.setattr(query_tools.subprocess, "run", tools)
    return tools


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop handlers bound to a test's captured streams."""
    yield
    logger = logging.getLogger("binpkg_audit")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
