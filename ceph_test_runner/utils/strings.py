# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""String utility functions for ceph-test-runner."""

import re


def sanitize_filename(name: str) -> str:
    """Sanitize a test binary name for use in file names.

    Replaces any character that is not alphanumeric, a dot, a dash or an
    underscore with an underscore.

    Args:
        name: The name to sanitize (e.g., "unittest_foo.exe").

    Returns:
        Sanitized name suitable for file names.

    Examples:
        >>> sanitize_filename("unittest_foo.exe")
        'unittest_foo.exe'
        >>> sanitize_filename("ceph test:1")
        'ceph_test_1'
    """
    return re.sub(r"[^a-zA-Z0-9_.\-]", "_", name)
