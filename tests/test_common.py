"""
Tests for shared helpers and the error taxonomy (binpkg_audit/common.py).
"""

import threading
import time

import pytest

from binpkg_audit.common import (
    AuditError,
    FileReadError,
    MalformedOutputError,
    ToolError,
    ToolNotFoundError,
    parallel_any,
    parallel_map,
)


class TestErrors:
    """Tests for the fatal error classes."""

    def test_tool_error_carries_output(self):
        """Test ToolError keeps command, exit code and captured streams."""
        err = ToolError(("qlist", "-eo", "cat/a"), 2, stdout="out", stderr="boom")
        assert err.command == ("qlist", "-eo", "cat/a")
        assert err.exit_code == 2
        assert "qlist -eo cat/a" in str(err)
        assert "'out'" in str(err)
        assert "'boom'" in str(err)
        assert isinstance(err, AuditError)

    def test_tool_error_custom_reason(self):
        """Test ToolError with a timeout reason."""
        err = ToolError(("qlop",), -1, reason="timed out after 5s")
        assert "timed out after 5s" in str(err)

    def test_tool_not_found_lists_executables(self):
        """Test ToolNotFoundError names every missing tool and the hint."""
        err = ToolNotFoundError(["eix", "qlop"], hint="install app-portage/eix")
        assert err.executables == ("eix", "qlop")
        assert "eix, qlop" in str(err)
        assert "app-portage/eix" in str(err)

    def test_file_read_error(self):
        """Test FileReadError attaches path and cause."""
        cause = PermissionError(13, "Permission denied")
        err = FileReadError("/usr/bin/x", cause)
        assert err.path == "/usr/bin/x"
        assert err.cause is cause
        assert "/usr/bin/x" in str(err)

    def test_malformed_output_error(self):
        """Test MalformedOutputError shows the offending token."""
        err = MalformedOutputError(("qlop", "-CMamq", "cat/a"), "abc")
        assert err.token == "abc"
        assert "'abc'" in str(err)


class TestParallelMap:
    """Tests for parallel_map."""

    def test_preserves_input_order(self):
        """Test results line up with inputs even when tasks finish out of order."""
        def slow_square(n):
            time.sleep(0.01 * (5 - n))
            return n * n

        assert parallel_map(slow_square, [1, 2, 3, 4], max_workers=4) == [1, 4, 9, 16]

    def test_empty_input(self):
        """Test empty input returns empty list."""
        assert parallel_map(lambda n: n, [], max_workers=4) == []

    def test_sequential_when_single_worker(self):
        """Test max_workers=1 runs in the calling thread."""
        caller = threading.get_ident()
        threads = parallel_map(lambda _: threading.get_ident(), [1, 2, 3], max_workers=1)
        assert threads == [caller, caller, caller]

    def test_uses_worker_threads(self):
        """Test tasks run outside the calling thread with several workers."""
        caller = threading.get_ident()
        threads = parallel_map(lambda _: threading.get_ident(), [1, 2, 3], max_workers=3)
        assert caller not in threads

    def test_exception_propagates(self):
        """Test the first failure is re-raised."""
        def fail_on_three(n):
            if n == 3:
                raise ValueError("three")
            return n

        with pytest.raises(ValueError, match="three"):
            parallel_map(fail_on_three, [1, 2, 3, 4], max_workers=2)

    def test_does_not_modify_input(self):
        """Test the input sequence is left untouched."""
        items = [3, 1, 2]
        parallel_map(lambda n: n + 1, items, max_workers=2)
        assert items == [3, 1, 2]


class TestParallelAny:
    """Tests for parallel_any."""

    def test_true_when_one_matches(self):
        """Test any-of returns True if one item matches."""
        assert parallel_any(lambda n: n == 3, [1, 2, 3, 4], max_workers=4) is True

    def test_false_when_none_match(self):
        """Test any-of returns False when nothing matches."""
        assert parallel_any(lambda n: n > 10, [1, 2, 3], max_workers=4) is False

    def test_empty_is_false(self):
        """Test empty input is False."""
        assert parallel_any(lambda n: True, [], max_workers=4) is False

    def test_sequential_short_circuits(self):
        """Test the sequential path stops at the first match."""
        seen = []

        def record(n):
            seen.append(n)
            return n == 2

        assert parallel_any(record, [1, 2, 3, 4], max_workers=1) is True
        assert seen == [1, 2]

    def test_exception_propagates(self):
        """Test a failing predicate aborts the reduction."""
        def boom(n):
            raise OSError("gone")

        with pytest.raises(OSError, match="gone"):
            parallel_any(boom, [1, 2], max_workers=2)
