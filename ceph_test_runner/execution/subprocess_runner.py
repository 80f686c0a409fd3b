# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Test binary subprocess execution functionality."""

import logging
import os
import shlex
import subprocess
import time
from pathlib import Path

from ceph_test_runner.core.constants import FRAGMENT_PREFIX, IS_WINDOWS
from ceph_test_runner.core.errors import TestExecutionError, TestTimeoutError
from ceph_test_runner.core.models import TestCaseRecord, TestStatus
from ceph_test_runner.core.types import PassType
from ceph_test_runner.execution.gtest_output import parse_gtest_xml, write_fragment

logger = logging.getLogger(__name__)

LOGS_DIRNAME = "logs"


class SubprocessRunner:
    """Executes test binaries as subprocesses and writes their result fragments.

    Both entry points write the job's fragment before returning or raising,
    so a failing binary is still visible in the merged result stream.
    """

    def __init__(self, env: dict[str, str] | None = None):
        """Initialize the subprocess runner.

        Args:
            env: Extra environment variables for every test process
        """
        self.env = env or {}

    def run_framework(
        self,
        binary_path: Path,
        result_dir: Path,
        timeout: float,
        subtest_filter: str,
        fragment_path: Path,
        pass_type: PassType = PassType.PARALLEL,
    ) -> Path:
        """Run a gtest binary, optionally restricted by a filter expression.

        Args:
            binary_path: Path to the test binary
            result_dir: Directory receiving the per-test log
            timeout: Wall-clock timeout in seconds
            subtest_filter: ``--gtest_filter`` expression, empty for no filter
            fragment_path: Job-unique result stream fragment to write
            pass_type: Pass the job belongs to

        Returns:
            Path to the written fragment

        Raises:
            TestTimeoutError: If the binary exceeded ``timeout`` and was killed
            TestExecutionError: If the binary could not be launched or failed
        """
        xml_path = fragment_path.with_name(fragment_path.name + ".xml")
        cmd = [str(binary_path), f"--gtest_output=xml:{xml_path}"]
        if subtest_filter:
            cmd.append(f"--gtest_filter={subtest_filter}")

        start = time.monotonic()
        error: TestExecutionError | None = None
        try:
            self._execute(cmd, binary_path, self._log_path(result_dir, fragment_path), timeout)
        except TestExecutionError as e:
            error = e
        duration = time.monotonic() - start

        records: list[TestCaseRecord] = []
        if xml_path.exists():
            records = parse_gtest_xml(xml_path, binary_path.name, pass_type, str(binary_path))
            xml_path.unlink()

        if error is not None:
            records.append(self._binary_record(binary_path, pass_type, TestStatus.FAILED, duration, str(error)))
        elif not records:
            records.append(self._binary_record(binary_path, pass_type, TestStatus.PASSED, duration))

        write_fragment(fragment_path, records)
        if error is not None:
            raise error
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
        """Run a standalone test binary with its fixed argument string.

        Args:
            binary_path: Path to the test binary
            result_dir: Directory receiving the per-test log
            fragment_path: Job-unique result stream fragment to write
            timeout: Wall-clock timeout in seconds
            launch_args: Argument string from the standalone arguments table
            pass_type: Pass the job belongs to

        Raises:
            TestTimeoutError: If the binary exceeded ``timeout`` and was killed
            TestExecutionError: If the binary could not be launched or failed
        """
        cmd = [str(binary_path), *shlex.split(launch_args, posix=not IS_WINDOWS)]

        start = time.monotonic()
        error: TestExecutionError | None = None
        try:
            self._execute(cmd, binary_path, self._log_path(result_dir, fragment_path), timeout)
        except TestExecutionError as e:
            error = e
        duration = time.monotonic() - start

        status = TestStatus.PASSED if error is None else TestStatus.FAILED
        message = None if error is None else str(error)
        write_fragment(
            fragment_path,
            [self._binary_record(binary_path, pass_type, status, duration, message)],
        )
        if error is not None:
            raise error

    def _execute(self, cmd: list[str], binary_path: Path, log_path: Path, timeout: float) -> None:
        """Run ``cmd`` in the binary's directory, output captured to ``log_path``."""
        logger.debug(f"Executing command: {' '.join(cmd)}")
        log_path.parent.mkdir(parents=True, exist_ok=True)

        with open(log_path, "wb") as log_file:
            try:
                completed = subprocess.run(
                    cmd,
                    cwd=str(binary_path.parent),
                    stdin=subprocess.DEVNULL,
                    stdout=log_file,
                    stderr=subprocess.STDOUT,
                    env={**os.environ, **self.env},
                    timeout=timeout,
                    check=False,
                )
            except subprocess.TimeoutExpired as e:
                # subprocess.run kills the child before re-raising
                raise TestTimeoutError(
                    f"{binary_path.name} timed out after {timeout}s", timeout
                ) from e
            except OSError as e:
                raise TestExecutionError(f"Failed to launch {binary_path.name}: {e}") from e

        if completed.returncode != 0:
            raise TestExecutionError(
                f"{binary_path.name} exited with return code {completed.returncode}",
                completed.returncode,
            )

    @staticmethod
    def _log_path(result_dir: Path, fragment_path: Path) -> Path:
        # One log per job, named after its fragment
        return result_dir / LOGS_DIRNAME / f"{fragment_path.stem.removeprefix(FRAGMENT_PREFIX)}.log"

    @staticmethod
    def _binary_record(
        binary_path: Path,
        pass_type: PassType,
        status: TestStatus,
        duration: float,
        message: str | None = None,
    ) -> TestCaseRecord:
        return TestCaseRecord(
            id=binary_path.name,
            binary=binary_path.name,
            pass_type=pass_type.value,
            status=status,
            duration=round(duration, 3),
            message=message,
            path=str(binary_path),
        )
