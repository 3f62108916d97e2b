"""Built-in self test for the path classifier.

The table below is the reference behaviour of the detector: each row is a path,
whether it must be flagged, and a short reason shown in the report.
"""

from __future__ import annotations

from collections.abc import Iterable

from zippys.detect.base import evaluate
from zippys.types import SelfTestCase, SelfTestResult, SelfTestSummary


class SelfTestFailure(Exception):
    pass


def _case(path: str, vulnerable: bool, reason: str) -> SelfTestCase:
    return SelfTestCase(path=path, vulnerable=vulnerable, reason=reason)


SELF_TEST_CASES: tuple[SelfTestCase, ...] = (
    # Parent directory traversal
    _case("../etc/passwd", True, "parent directory traversal"),
    _case("../../windows/system32", True, "parent directory traversal"),
    _case("00..", True, "parent directory traversal"),
    # URL encoding
    _case("%2e%2e/etc/passwd", True, "URL encoding"),
    _case("~%0", True, "URL encoding with tilde"),
    _case("%0%", True, "URL encoding"),
    # Absolute paths
    _case("/etc/passwd", True, "absolute path"),
    _case("\\windows\\system32", True, "absolute path"),
    _case("/", False, "single slash is safe"),
    _case("\\", False, "single backslash is safe"),
    # Tilde expansion
    _case("~/", True, "tilde expansion"),
    _case("~/.ssh/config", True, "tilde expansion"),
    _case("~..", True, "tilde with parent directory"),
    _case("~", False, "single tilde is safe"),
    _case("~0", False, "tilde with digit is safe"),
    _case("~A/0", False, "tilde username pattern"),
    # Colon patterns
    _case("00:\\", True, "numeric drive with separator"),
    _case("A:\\", True, "drive letter with separator"),
    _case(":\\", True, "colon at start with separator"),
    _case(":\\000", True, "colon with null byte"),
    _case(":0", False, "colon with digit is safe"),
    _case("A:A", False, "drive letter with alphanumeric is safe"),
    _case("0:00", False, "numeric colon pattern is safe"),
    _case(":", False, "single colon is safe"),
    # Windows device names
    _case("CON", True, "Windows device name"),
    _case("PRN", True, "Windows device name"),
    _case("COM1", True, "Windows device name"),
    # Safe paths
    _case("normal/file.txt", False, "normal file path"),
    _case("", False, "empty path"),
    _case("file.txt", False, "simple filename"),
)


def run_self_tests(cases: Iterable[SelfTestCase] = SELF_TEST_CASES) -> SelfTestSummary:
    summary = SelfTestSummary()
    for case in cases:
        verdict = evaluate(case.path)
        summary.results.append(
            SelfTestResult(
                case=case,
                got=verdict.vulnerable,
                rule=verdict.reason.value if verdict.reason else None,
            )
        )
    return summary


def assert_self_tests(cases: Iterable[SelfTestCase] = SELF_TEST_CASES) -> SelfTestSummary:
    """Run *cases*; raise SelfTestFailure if any verdict is wrong."""
    summary = run_self_tests(cases)
    if summary.failed:
        raise SelfTestFailure(f"{summary.failed} test(s) failed")
    return summary
