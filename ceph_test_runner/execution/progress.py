# -*- coding: utf-8 -*-

"""Progress reporting for test binary execution."""

import logging
import threading
import time
from datetime import datetime

from colorama import Fore, Style, init

from ceph_test_runner.core.types import Job, JobOutcome

init()  # Initialize colorama for cross-platform color support

logger = logging.getLogger(__name__)


class ProgressReporter:
    """Reports suite start/end events and pass progress.

    Worker threads report concurrently, so console writes are serialized.
    """

    def __init__(self, total_jobs: int = 0, label: str = ""):
        self.start_time = time.time()
        self.total_jobs = total_jobs
        self.label = label
        self._lock = threading.Lock()
        self._job_counter = 0

    def _emit(self, line: str) -> None:
        with self._lock:
            print(line, flush=True)

    def report_job_start(self, job: Job) -> int:
        """Report that a job has started executing, returns its ID."""
        with self._lock:
            self._job_counter += 1
            job_id = self._job_counter
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        filter_info = f" [filter: {job.gtest_filter}]" if job.gtest_filter else ""
        self._emit(
            f"{timestamp} [{self.label}] [ID:{job_id}] "
            f"{Fore.YELLOW}EXECUTING{Style.RESET_ALL} {job.name}{filter_info}"
        )
        logger.info(f"Starting {job.name} ({self.label} pass){filter_info}")
        return job_id

    def report_job_end(self, job_id: int, outcome: JobOutcome) -> None:
        """Format: 2025-06-27 18:26:16.834 [parallel] [ID:4] PASSED unittest_foo.exe in 3.2 seconds"""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        if outcome.success:
            status, status_color = "PASSED", Fore.GREEN
        else:
            status, status_color = "FAILED", Fore.RED

        self._emit(
            f"{timestamp} [{self.label}] [ID:{job_id}] "
            f"{status_color}{status}{Style.RESET_ALL} {outcome.binary.name} "
            f"in {outcome.duration:.1f} seconds"
        )
        if outcome.success:
            logger.info(f"{outcome.binary.name} passed in {outcome.duration:.1f}s")
        else:
            logger.error(
                f"{outcome.binary.name} failed in {outcome.duration:.1f}s: {outcome.error}"
            )

    def report_progress(self, completed: int) -> None:
        """Report how many jobs of the pass have produced an outcome."""
        elapsed = time.time() - self.start_time
        logger.info(
            f"{self.label} pass: {completed} of {self.total_jobs} complete "
            f"({elapsed:.0f}s elapsed)"
        )
