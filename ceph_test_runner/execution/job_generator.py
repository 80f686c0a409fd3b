# -*- coding: utf-8 -*-

"""Job list generation for the parallel and isolated passes."""

import logging
from pathlib import Path

from ceph_test_runner.core.constants import FRAGMENT_PREFIX, FRAGMENT_SUFFIX
from ceph_test_runner.core.types import DiscoveredTest, Job, PassType
from ceph_test_runner.rules.resolver import RuleResolver
from ceph_test_runner.utils.strings import sanitize_filename

logger = logging.getLogger(__name__)

# Fragments sort by pass first, then by dispatch index
PASS_ORDER = {PassType.PARALLEL: 1, PassType.ISOLATED: 2}


class JobGenerator:
    """Builds the jobs of a pass from the discovered tests and the rules."""

    def __init__(self, resolver: RuleResolver, result_dir: Path, timeout: float):
        """Initialize the job generator.

        Args:
            resolver: Rule resolver deciding which tests run in which pass
            result_dir: Directory receiving logs and result fragments
            timeout: Per-job timeout in seconds
        """
        self.resolver = resolver
        self.result_dir = Path(result_dir).resolve()
        self.timeout = timeout

    def fragment_path(self, pass_type: PassType, index: int, test: DiscoveredTest) -> Path:
        """Job-unique fragment path, ordered by pass and dispatch index."""
        filename = (
            f"{FRAGMENT_PREFIX}{PASS_ORDER[pass_type]}_{pass_type.value}_"
            f"{index:05d}_{sanitize_filename(test.name)}{FRAGMENT_SUFFIX}"
        )
        return self.result_dir / filename

    def generate(self, tests: list[DiscoveredTest], pass_type: PassType) -> tuple[list[Job], int]:
        """Build the jobs of ``pass_type``.

        Returns:
            Tuple of (jobs in discovery order, number of tests not dispatched)
        """
        jobs: list[Job] = []
        skipped = 0
        for test in tests:
            effective_filter = self.resolver.resolve(test, pass_type)
            if effective_filter is None:
                logger.debug(f"Not dispatching {test.name} in the {pass_type.value} pass")
                skipped += 1
                continue
            jobs.append(
                Job(
                    test=test,
                    pass_type=pass_type,
                    gtest_filter=effective_filter.expression,
                    timeout=self.timeout,
                    fragment_path=self.fragment_path(pass_type, len(jobs), test),
                    result_dir=self.result_dir,
                )
            )

        logger.info(
            f"Scheduled {len(jobs)} job(s) for the {pass_type.value} pass, "
            f"{skipped} test(s) not dispatched"
        )
        return jobs, skipped
