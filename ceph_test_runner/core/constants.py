# -*- coding: utf-8 -*-

"""Core constants shared across ceph-test-runner."""

import os
import sys

# Discovery
TEST_BINARY_PREFIXES = ("unittest", "ceph_test")
IS_WINDOWS = sys.platform == "win32"
EXECUTABLE_SUFFIX = ".exe" if IS_WINDOWS else ""

# Rule tables
WILDCARD = "*"
GTEST_FILTER_SEPARATOR = ":"
GTEST_NEGATION_PREFIX = "-"

# General timeouts
DEFAULT_TEST_TIMEOUT = 300  # seconds per test binary

# Concurrency
DEFAULT_WORKER_COUNT = min(os.cpu_count() or 1, 8)
ISOLATED_WORKER_COUNT = 1
MAX_WORKER_COUNT = 256

# Progress reporting
PROGRESS_POLL_INTERVAL = 5.0  # seconds

# Result stream
RESULT_STREAM_FILENAME = "results.jsonl"
XUNIT_XML = "xunit.xml"
FRAGMENT_PREFIX = "_fragment_"
FRAGMENT_SUFFIX = ".part"
FRAGMENT_GLOB = f"{FRAGMENT_PREFIX}*{FRAGMENT_SUFFIX}"
MERGE_CHUNK_SIZE = 1024 * 1024  # 1 MiB
CHECKSUM_ALGORITHM = "sha256"

# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INVALID_ARGS = 2
EXIT_DISCOVERY_ERROR = 3
