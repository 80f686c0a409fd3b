# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Main orchestration logic for ceph-test-runner."""

import logging
from pathlib import Path

from ceph_test_runner.core.constants import (
    DEFAULT_TEST_TIMEOUT,
    DEFAULT_WORKER_COUNT,
    ISOLATED_WORKER_COUNT,
    PROGRESS_POLL_INTERVAL,
    RESULT_STREAM_FILENAME,
    XUNIT_XML,
)
from ceph_test_runner.core.errors import SuitesFailedError
from ceph_test_runner.core.run_state import RunState
from ceph_test_runner.core.types import DiscoveredTest, PassResults, PassType, RunResults
from ceph_test_runner.discovery import TestDiscovery
from ceph_test_runner.execution import (
    JobGenerator,
    PassScheduler,
    SubprocessRunner,
    TestExecutor,
)
from ceph_test_runner.reporting import (
    log_stream_diagnostics,
    merge_result_fragments,
    write_xunit_report,
)
from ceph_test_runner.rules import RuleResolver, RuleSet
from ceph_test_runner.utils.cleanup import cleanup_stale_fragments
from ceph_test_runner.utils.terminal import terminal

logger = logging.getLogger(__name__)


class TestOrchestrator:
    """Drives a complete run: discovery, both passes, aggregation and verdict."""

    __test__ = False

    def __init__(
        self,
        test_dir: Path,
        output_dir: Path,
        rules: RuleSet,
        timeout: float = DEFAULT_TEST_TIMEOUT,
        workers: int = DEFAULT_WORKER_COUNT,
        skip_slow: bool = False,
        runner: TestExecutor | None = None,
        poll_interval: float = PROGRESS_POLL_INTERVAL,
        write_xunit: bool = True,
        discovery: TestDiscovery | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            test_dir: Directory tree containing the test binaries
            output_dir: Directory receiving logs, the result stream and reports
            rules: Rule tables of the run
            timeout: Per-binary timeout in seconds
            workers: Worker count of the parallel pass
            skip_slow: Exclude the binaries of the slow table
            runner: Executor launching the binaries, a SubprocessRunner by default
            poll_interval: Seconds between two progress log lines
            write_xunit: Also convert the result stream into xunit.xml
            discovery: Discovery to use instead of one built from ``test_dir``
        """
        self.test_dir = Path(test_dir)
        self.output_dir = Path(output_dir).resolve()
        self.rules = rules
        self.timeout = timeout
        self.workers = workers
        self.skip_slow = skip_slow
        self.write_xunit = write_xunit

        self.stream_path = self.output_dir / RESULT_STREAM_FILENAME
        self.xunit_path = self.output_dir / XUNIT_XML

        self.run_state = RunState()
        self.resolver = RuleResolver(rules, skip_slow=skip_slow)
        self.discovery = discovery or TestDiscovery(self.test_dir, rules.standalone)
        self.job_generator = JobGenerator(self.resolver, self.output_dir, timeout)
        self.scheduler = PassScheduler(
            runner or SubprocessRunner(), self.run_state, poll_interval
        )

    def run(self) -> RunResults:
        """Run all tests and return the results.

        Raises:
            DiscoveryError: If the test directory cannot be enumerated
            SuitesFailedError: If any job of either pass failed
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        cleanup_stale_fragments(self.output_dir)

        tests = self.discovery.discover()
        results = RunResults(discovered=len(tests))

        results.parallel = self._run_pass(tests, PassType.PARALLEL, self.workers)
        # The isolated pass starts only once every parallel job has an outcome
        results.isolated = self._run_pass(tests, PassType.ISOLATED, ISOLATED_WORKER_COUNT)

        results.stream_path = self._aggregate()
        self._print_summary(results)

        if self.run_state.failed:
            raise SuitesFailedError(self.run_state.failure_count)
        return results

    def _run_pass(self, tests: list[DiscoveredTest], pass_type: PassType, workers: int) -> PassResults:
        jobs, skipped = self.job_generator.generate(tests, pass_type)
        outcomes = self.scheduler.run_pass(jobs, workers)
        pass_results = PassResults(pass_type=pass_type, outcomes=outcomes, skipped=skipped)
        logger.info(f"{pass_type.value} pass finished: {pass_results} (total/passed/failed/skipped)")
        return pass_results

    def _aggregate(self) -> Path | None:
        """Merge the fragments of both passes, never fails the run."""
        try:
            merge_result_fragments(self.output_dir, self.stream_path)
        except OSError as e:
            logger.warning(f"Failed to merge result fragments into {self.stream_path}: {e}")
            log_stream_diagnostics(self.stream_path, self.output_dir)
            return None

        if self.write_xunit:
            try:
                write_xunit_report(self.stream_path, self.xunit_path)
            except OSError as e:
                logger.warning(f"Failed to write xunit report {self.xunit_path}: {e}")
        return self.stream_path

    def _print_summary(self, results: RunResults) -> None:
        print("\n" + terminal.header("Test Execution Summary", width=50))
        print(f"Discovered {results.discovered} test binaries")
        for pass_results in (results.parallel, results.isolated):
            if pass_results is not None:
                print(
                    f"{pass_results.pass_type.value.capitalize()} pass: "
                    f"{pass_results.total} run, {pass_results.passed} passed, "
                    f"{pass_results.failed} failed, {pass_results.skipped} not dispatched"
                )
        print(terminal.format_run_summary(results))
        if results.has_failures:
            print(terminal.format_failures(results))
        if results.stream_path is not None:
            print(f"Result stream: {results.stream_path}")
        else:
            print(terminal.warning(f"Result stream not written, see the log for {self.stream_path}"))
        print("=" * 50)
