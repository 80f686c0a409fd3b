# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Test binary discovery components."""

from .test_discovery import TestDiscovery

__all__ = [
    "TestDiscovery",
]
