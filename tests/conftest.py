# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Global pytest fixtures shared across all test modules.

This module provides:
- Fake gtest/standalone executables written as small Python scripts
- A fake in-process runner recording calls and concurrency
- Helpers to build discovered tests and rule sets
"""

import json
import logging
import sys
import threading
import time
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path
from typing import Any

import pytest

from ceph_test_runner.core.errors import TestExecutionError, TestTimeoutError
from ceph_test_runner.core.models import TestCaseRecord, TestStatus
from ceph_test_runner.core.types import DiscoveredTest, PassType, TestBinary, TestKind
from ceph_test_runner.rules.tables import RuleSet, RuleTable
from ceph_test_runner.utils.logging import _RunnerStreamHandler

FAKE_BINARY_TEMPLATE = """#!{python}
import json
import sys
import time

CONFIG = json.loads({config!r})
args = sys.argv[1:]
with open(__file__ + ".calls", "a") as handle:
    handle.write(json.dumps(args) + "\\n")
print("running", " ".join(args))
time.sleep(CONFIG["sleep"])

xml_path = None
for arg in args:
    if arg.startswith("--gtest_output=xml:"):
        xml_path = arg[len("--gtest_output=xml:"):]

if xml_path and CONFIG["cases"] is not None:
    body = ""
    for suite, name, failed in CONFIG["cases"]:
        failure = '<failure message="boom"/>' if failed else ""
        body += (
            '<testcase name="%s" classname="%s" status="run" result="completed" time="0.01">%s</testcase>'
            % (name, suite, failure)
        )
    document = '<?xml version="1.0"?><testsuites><testsuite name="S">' + body
    if not CONFIG["truncate"]:
        document += "</testsuite></testsuites>"
    with open(xml_path, "w") as handle:
        handle.write(document)

sys.exit(CONFIG["exit_code"])
"""


@pytest.fixture(autouse=True)
def _remove_runner_log_handler() -> Iterator[None]:
    """Drop the stream handler installed by CLI runs, its stream is closed afterwards."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, _RunnerStreamHandler):
            root.removeHandler(handler)


@pytest.fixture
def make_test_binary(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing an executable fake test binary.

    The fake appends its arguments to ``<binary>.calls`` as JSON lines, sleeps,
    writes a gtest XML report when asked for one and exits with ``exit_code``.
    """

    def _make(
        name: str,
        cases: Iterable[tuple[str, str, bool]] | None = (("Suite", "Case", False),),
        exit_code: int = 0,
        sleep: float = 0.0,
        truncate: bool = False,
        directory: Path | None = None,
    ) -> Path:
        target_dir = directory or tmp_path / "bin"
        target_dir.mkdir(parents=True, exist_ok=True)
        config = json.dumps(
            {
                "cases": None if cases is None else [list(c) for c in cases],
                "exit_code": exit_code,
                "sleep": sleep,
                "truncate": truncate,
            }
        )
        path = target_dir / name
        path.write_text(FAKE_BINARY_TEMPLATE.format(python=sys.executable, config=config))
        path.chmod(0o755)
        return path

    return _make


@pytest.fixture
def read_calls() -> Callable[[Path], list[list[str]]]:
    """Read the argument lists a fake binary was called with."""

    def _read(binary: Path) -> list[list[str]]:
        calls_file = binary.with_name(binary.name + ".calls")
        if not calls_file.exists():
            return []
        return [json.loads(line) for line in calls_file.read_text().splitlines() if line]

    return _read


def make_discovered(
    name: str,
    kind: TestKind = TestKind.FRAMEWORK,
    launch_args: str = "",
    directory: Path = Path("/tests"),
) -> DiscoveredTest:
    return DiscoveredTest(binary=TestBinary(directory / name), kind=kind, launch_args=launch_args)


@pytest.fixture
def discovered() -> Callable[..., DiscoveredTest]:
    """Factory for DiscoveredTest instances that do not exist on disk."""
    return make_discovered


@pytest.fixture
def rule_set() -> Callable[..., RuleSet]:
    """Factory building a RuleSet from plain mappings."""

    def _make(
        excluded: dict[str, Any] | None = None,
        isolated: dict[str, Any] | None = None,
        manual: dict[str, Any] | None = None,
        slow: dict[str, Any] | None = None,
        standalone: dict[str, str] | None = None,
    ) -> RuleSet:
        return RuleSet(
            excluded=RuleTable.from_filters(excluded or {}),
            isolated=RuleTable.from_filters(isolated or {}),
            manual=RuleTable.from_filters(manual or {}),
            slow=RuleTable.from_filters(slow or {}),
            standalone=RuleTable.from_arguments(standalone or {}),
        )

    return _make


class FakeRunner:
    """In-process runner recording calls, without launching processes.

    Attributes:
        durations: Seconds each binary (by name) blocks its worker
        failures: Binaries (by name) raising TestExecutionError
        timeouts: Binaries (by name) raising TestTimeoutError
        crashes: Binaries (by name) raising an unexpected RuntimeError
        calls: (name, pass, filter or args) per call, in start order
    """

    def __init__(self) -> None:
        self.durations: dict[str, float] = {}
        self.failures: set[str] = set()
        self.timeouts: set[str] = set()
        self.crashes: set[str] = set()
        self.calls: list[tuple[str, PassType, str]] = []
        self.start_times: dict[str, float] = {}
        self.max_concurrency = 0
        self._running = 0
        self._lock = threading.Lock()

    def _run(self, binary_path: Path, fragment_path: Path, pass_type: PassType, detail: str) -> None:
        name = binary_path.name
        with self._lock:
            self.calls.append((name, pass_type, detail))
            self.start_times[f"{pass_type.value}:{name}"] = time.monotonic()
            self._running += 1
            self.max_concurrency = max(self.max_concurrency, self._running)
        try:
            time.sleep(self.durations.get(name, 0.0))
            failed = name in self.failures or name in self.timeouts
            record = TestCaseRecord(
                id=f"{name}::Suite.Case",
                binary=name,
                pass_type=pass_type.value,
                status=TestStatus.FAILED if failed else TestStatus.PASSED,
                duration=0.01,
            )
            fragment_path.parent.mkdir(parents=True, exist_ok=True)
            fragment_path.write_bytes(record.to_json_line())
            if name in self.crashes:
                raise RuntimeError(f"{name} crashed the runner")
            if name in self.timeouts:
                raise TestTimeoutError(f"{name} timed out after 1s", 1)
            if name in self.failures:
                raise TestExecutionError(f"{name} exited with return code 1", 1)
        finally:
            with self._lock:
                self._running -= 1

    def run_framework(
        self,
        binary_path: Path,
        result_dir: Path,
        timeout: float,
        subtest_filter: str,
        fragment_path: Path,
        pass_type: PassType = PassType.PARALLEL,
    ) -> Path:
        self._run(binary_path, fragment_path, pass_type, subtest_filter)
        return fragment_path

    def run_standalone(
        self,
        binary_path: Path,
        result_dir: Path,
        fragment_path: Path,
        timeout: float,
        launch_args: str,
        pass_type: PassType = PassType.PARALLEL,
    ) -> None:
        self._run(binary_path, fragment_path, pass_type, launch_args)

    def names(self, pass_type: PassType) -> list[str]:
        return [name for name, p, _ in self.calls if p == pass_type]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()
