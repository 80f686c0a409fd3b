# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Exception hierarchy for ceph-test-runner.

Discovery and rule errors are fatal and abort the run before any test is
launched. Execution errors are raised by the runner for a single test binary
and are always contained at the job boundary by the scheduler. The only
error allowed to end a run abnormally after tests started is
``SuitesFailedError``.
"""


class TestRunnerError(Exception):
    """Base class for all ceph-test-runner errors."""

    __test__ = False


class DiscoveryError(TestRunnerError):
    """The test directory could not be enumerated."""


class RuleFileError(TestRunnerError):
    """A rule tables file is missing or malformed."""


class TestExecutionError(TestRunnerError):
    """A test binary could not be launched or exited with a non-zero status."""

    def __init__(self, message: str, return_code: int | None = None) -> None:
        super().__init__(message)
        self.return_code = return_code


class TestTimeoutError(TestExecutionError):
    """A test binary exceeded its wall-clock timeout and was killed."""

    def __init__(self, message: str, timeout: float) -> None:
        super().__init__(message)
        self.timeout = timeout


class SuitesFailedError(TestRunnerError):
    """One or more test suites failed during the run."""

    def __init__(self, failure_count: int) -> None:
        super().__init__("One or more test suites failed")
        self.failure_count = failure_count
