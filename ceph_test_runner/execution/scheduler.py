# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Bounded worker pool executing the jobs of one pass.

Each job blocks a worker thread while its test process runs, so the pool
size is the number of test binaries running at the same time. A pass is
fail-slow: it only returns once every dispatched job produced an outcome.
"""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Protocol

from ceph_test_runner.core.constants import PROGRESS_POLL_INTERVAL
from ceph_test_runner.core.run_state import RunState
from ceph_test_runner.core.types import Job, JobOutcome, PassType
from ceph_test_runner.execution.progress import ProgressReporter

logger = logging.getLogger(__name__)


class TestExecutor(Protocol):
    """Launches a single test binary and writes its result fragment."""

    def run_framework(
        self,
        binary_path: Path,
        result_dir: Path,
        timeout: float,
        subtest_filter: str,
        fragment_path: Path,
        pass_type: PassType = PassType.PARALLEL,
    ) -> Path: ...

    def run_standalone(
        self,
        binary_path: Path,
        result_dir: Path,
        fragment_path: Path,
        timeout: float,
        launch_args: str,
        pass_type: PassType = PassType.PARALLEL,
    ) -> None: ...


class PassScheduler:
    """Runs the jobs of a pass under a bounded thread pool."""

    def __init__(
        self,
        runner: TestExecutor,
        run_state: RunState,
        poll_interval: float = PROGRESS_POLL_INTERVAL,
    ):
        """Initialize the scheduler.

        Args:
            runner: Executor launching the test binaries
            run_state: Process-wide state receiving every outcome
            poll_interval: Seconds between two progress log lines
        """
        self.runner = runner
        self.run_state = run_state
        self.poll_interval = poll_interval

    def run_pass(self, jobs: list[Job], worker_count: int) -> list[JobOutcome]:
        """Run ``jobs`` with at most ``worker_count`` of them at a time.

        Jobs are dispatched in list order. The returned outcomes are in the
        same order, one per job, whatever order the jobs completed in.
        """
        if not jobs:
            logger.info("No jobs to run")
            return []

        label = jobs[0].pass_type.value
        pool_size = max(1, min(worker_count, len(jobs)))
        reporter = ProgressReporter(total_jobs=len(jobs), label=label)
        logger.info(f"Dispatching {len(jobs)} job(s) for the {label} pass on {pool_size} worker(s)")

        with ThreadPoolExecutor(
            max_workers=pool_size, thread_name_prefix=f"{label}-worker"
        ) as executor:
            futures = [executor.submit(self._run_job, job, reporter) for job in jobs]
            pending: set[Future[JobOutcome]] = set(futures)
            while pending:
                _, pending = wait(pending, timeout=self.poll_interval)
                reporter.report_progress(len(futures) - len(pending))

        return [self._collect(future, job) for future, job in zip(futures, jobs)]

    def _run_job(self, job: Job, reporter: ProgressReporter) -> JobOutcome:
        job_id = reporter.report_job_start(job)
        start = time.monotonic()
        try:
            if job.test.is_standalone:
                self.runner.run_standalone(
                    job.test.binary.path,
                    job.result_dir,
                    job.fragment_path,
                    job.timeout,
                    job.test.launch_args,
                    job.pass_type,
                )
            else:
                self.runner.run_framework(
                    job.test.binary.path,
                    job.result_dir,
                    job.timeout,
                    job.gtest_filter,
                    job.fragment_path,
                    job.pass_type,
                )
        except Exception as e:
            outcome = JobOutcome.failed(job, str(e) or type(e).__name__, time.monotonic() - start)
        else:
            outcome = JobOutcome.succeeded(job, time.monotonic() - start)

        self.run_state.record(outcome)
        # Nothing after record() may raise, _collect would record the job again
        try:
            reporter.report_job_end(job_id, outcome)
        except Exception as e:
            logger.warning(f"Failed to report the end of {job.name}: {e}")
        return outcome

    def _collect(self, future: "Future[JobOutcome]", job: Job) -> JobOutcome:
        """Outcome of a finished future, failures outside the job turned into outcomes."""
        error = future.exception()
        if error is None:
            return future.result()

        logger.error(f"Worker for {job.name} failed unexpectedly: {error}", exc_info=error)
        outcome = JobOutcome.failed(job, str(error) or type(error).__name__)
        self.run_state.record(outcome)
        return outcome
