# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Cleanup utilities for ceph-test-runner."""

import logging
from pathlib import Path

from ceph_test_runner.core.constants import FRAGMENT_GLOB

logger = logging.getLogger(__name__)


def cleanup_stale_fragments(result_dir: Path) -> int:
    """Remove result fragments left behind by an interrupted run.

    Fragments are merged into the result stream by file name pattern, so
    leftovers of a previous run would otherwise end up in this run's stream.

    Args:
        result_dir: Directory receiving the fragments of this run.

    Returns:
        Number of fragments removed.
    """
    if not result_dir.exists():
        return 0

    removed = 0
    for fragment in result_dir.glob(FRAGMENT_GLOB):
        try:
            fragment.unlink()
            removed += 1
            logger.debug(f"Removed stale fragment: {fragment.name}")
        except OSError as e:
            logger.warning(f"Failed to remove fragment {fragment.name}: {e}")

    if removed > 0:
        logger.info(f"Cleaned up {removed} stale result fragment(s)")
    return removed
