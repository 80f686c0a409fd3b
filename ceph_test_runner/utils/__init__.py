# -*- coding: utf-8 -*-

"""Utility modules for ceph-test-runner."""

from ceph_test_runner.utils.cleanup import cleanup_stale_fragments
from ceph_test_runner.utils.terminal import terminal

__all__ = [
    "terminal",
    "cleanup_stale_fragments",
]
