# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Core types for ceph-test-runner orchestration."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from ceph_test_runner.core.constants import EXIT_FAILURE, EXIT_SUCCESS


class TestKind(str, Enum):
    """How a test binary is launched.

    FRAMEWORK: gtest binary, accepts a ``--gtest_filter`` expression
    STANDALONE: bespoke executable launched with a fixed argument string
    """

    __test__ = False

    FRAMEWORK = "framework"
    STANDALONE = "standalone"


class PassType(str, Enum):
    """The two execution passes of a run."""

    PARALLEL = "parallel"
    ISOLATED = "isolated"


@dataclass(frozen=True)
class TestBinary:
    """A discovered test executable, identified by its path."""

    __test__ = False

    path: Path

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def directory(self) -> Path:
        return self.path.parent

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class DiscoveredTest:
    """A test binary together with its launch convention.

    ``launch_args`` is only meaningful for STANDALONE binaries, where it holds
    the fixed argument string from the standalone arguments table.
    """

    binary: TestBinary
    kind: TestKind = TestKind.FRAMEWORK
    launch_args: str = ""

    @property
    def name(self) -> str:
        return self.binary.name

    @property
    def is_standalone(self) -> bool:
        return self.kind == TestKind.STANDALONE


@dataclass(frozen=True)
class Job:
    """One scheduled execution of a test binary."""

    test: DiscoveredTest
    pass_type: PassType
    gtest_filter: str
    timeout: float
    fragment_path: Path
    result_dir: Path

    @property
    def name(self) -> str:
        return self.test.name


@dataclass(frozen=True)
class JobOutcome:
    """Outcome of a single Job, produced exactly once per dispatched Job."""

    success: bool
    binary: TestBinary
    pass_type: PassType
    error: str | None = None
    duration: float = 0.0

    @classmethod
    def failed(
        cls, job: Job, error: str, duration: float = 0.0
    ) -> "JobOutcome":
        return cls(
            success=False,
            binary=job.test.binary,
            pass_type=job.pass_type,
            error=error,
            duration=duration,
        )

    @classmethod
    def succeeded(cls, job: Job, duration: float = 0.0) -> "JobOutcome":
        return cls(
            success=True,
            binary=job.test.binary,
            pass_type=job.pass_type,
            duration=duration,
        )


@dataclass
class PassResults:
    """Outcomes of one execution pass.

    Attributes:
        pass_type: The pass these outcomes belong to
        outcomes: One outcome per dispatched job, in dispatch order
        skipped: Number of discovered binaries not dispatched in this pass
    """

    pass_type: PassType
    outcomes: list[JobOutcome] = field(default_factory=list)
    skipped: int = 0

    @property
    def total(self) -> int:
        """Number of dispatched jobs."""
        return len(self.outcomes)

    @property
    def passed(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failed(self) -> int:
        return self.total - self.passed

    @property
    def failures(self) -> list[JobOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.success]

    @property
    def has_failures(self) -> bool:
        return self.failed > 0

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    def __str__(self) -> str:
        """Concise string representation: total/passed/failed/skipped."""
        return f"{self.total}/{self.passed}/{self.failed}/{self.skipped}"


@dataclass
class RunResults:
    """Results of a complete run across both passes.

    Attributes:
        parallel: Results of the parallel pass
        isolated: Results of the sequential isolated pass
        discovered: Number of test binaries found by discovery
        stream_path: Path of the merged result stream, None if merging failed
    """

    parallel: PassResults | None = None
    isolated: PassResults | None = None
    discovered: int = 0
    stream_path: Path | None = None

    def _iter_results(self) -> list[PassResults]:
        return [r for r in (self.parallel, self.isolated) if r is not None]

    @property
    def total(self) -> int:
        return sum(r.total for r in self._iter_results())

    @property
    def passed(self) -> int:
        return sum(r.passed for r in self._iter_results())

    @property
    def failed(self) -> int:
        return sum(r.failed for r in self._iter_results())

    @property
    def failures(self) -> list[JobOutcome]:
        return [f for r in self._iter_results() for f in r.failures]

    @property
    def has_failures(self) -> bool:
        return self.failed > 0

    @property
    def exit_code(self) -> int:
        return EXIT_FAILURE if self.has_failures else EXIT_SUCCESS

    def __str__(self) -> str:
        parts = []
        if self.parallel is not None:
            parts.append(f"parallel: {self.parallel}")
        if self.isolated is not None:
            parts.append(f"isolated: {self.isolated}")
        return f"RunResults({', '.join(parts) if parts else 'empty'})"
