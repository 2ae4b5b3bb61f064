"""Progress and summary output of the guest test runner."""

from __future__ import annotations

import sys

FAILURE_EXIT_CODE = 101


def _end_line(verdict: str) -> str:
    """Finish the pending result line with ``verdict`` and return it."""
    sys.stdout.write(verdict + "\n")
    sys.stdout.flush()
    return verdict


def test_start(ntests: int) -> None:
    """Announce how many tests will run."""
    print(f"running {ntests} tests (using x86test runner)")


def test_ignored(name: str) -> None:
    """Report that a test is ignored."""
    print(f"test {name} ... ignored")


def test_before_run(name: str) -> None:
    """Print the start of a test's result line."""
    print(f"test {name} ... ", end="", flush=True)


def test_failed(name: str) -> str:
    """Finish a test's result line with a failure."""
    return _end_line("FAILED")


def test_success(name: str) -> str:
    """Finish a test's result line with a success."""
    return _end_line("OK")


def test_summary(passed: int, failed: int, ignored: int) -> None:
    """Print the summary; exit with status 101 if any test failed."""
    verdict = "OK" if failed == 0 else "FAILED"
    print(f"\ntest result: {verdict} {passed} passed; {failed} failed; {ignored} ignored")
    if failed != 0:
        sys.exit(FAILURE_EXIT_CODE)