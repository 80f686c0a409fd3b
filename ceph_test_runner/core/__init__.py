"""Core components shared across ceph-test-runner."""

from ceph_test_runner.core.errors import (
    DiscoveryError,
    RuleFileError,
    SuitesFailedError,
    TestExecutionError,
    TestRunnerError,
    TestTimeoutError,
)
from ceph_test_runner.core.models import TestCaseRecord, TestStatus
from ceph_test_runner.core.run_state import RunState
from ceph_test_runner.core.types import (
    DiscoveredTest,
    Job,
    JobOutcome,
    PassResults,
    PassType,
    RunResults,
    TestBinary,
    TestKind,
)

__all__ = [
    # Errors
    "TestRunnerError",
    "DiscoveryError",
    "RuleFileError",
    "TestExecutionError",
    "TestTimeoutError",
    "SuitesFailedError",
    # Models
    "TestStatus",
    "TestCaseRecord",
    # Types
    "TestKind",
    "PassType",
    "TestBinary",
    "DiscoveredTest",
    "Job",
    "JobOutcome",
    "PassResults",
    "RunResults",
    "RunState",
]
