# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Process-wide run state shared by all workers."""

import threading

from ceph_test_runner.core.types import JobOutcome


class RunState:
    """Tracks whether any job failed during the run.

    Workers call ``record`` concurrently; the flag is only read by the run
    controller after a pass barrier. Once set, the flag is never cleared.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._failure_count = 0
        self._outcome_count = 0

    def record(self, outcome: JobOutcome) -> None:
        with self._lock:
            self._outcome_count += 1
            if not outcome.success:
                self._failure_count += 1

    @property
    def failed(self) -> bool:
        with self._lock:
            return self._failure_count > 0

    @property
    def failure_count(self) -> int:
        with self._lock:
            return self._failure_count

    @property
    def outcome_count(self) -> int:
        with self._lock:
            return self._outcome_count
