# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Platform-specific utilities for ceph-test-runner."""

import os
from pathlib import Path

from ceph_test_runner.core.constants import EXECUTABLE_SUFFIX, IS_WINDOWS


def is_executable_file(path: Path, suffix: str = EXECUTABLE_SUFFIX) -> bool:
    """Check whether ``path`` looks like a runnable test executable.

    On Windows the suffix alone identifies executables. Where executables
    carry no suffix, the executable permission bit is required instead so
    that object files or logs next to the binaries are not picked up.
    """
    if not path.is_file():
        return False
    if suffix:
        return path.name.endswith(suffix)
    return IS_WINDOWS or os.access(path, os.X_OK)
