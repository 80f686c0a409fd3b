# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

# -*- coding: utf-8 -*-

"""Test binary execution components."""

from .job_generator import JobGenerator
from .progress import ProgressReporter
from .scheduler import PassScheduler, TestExecutor
from .subprocess_runner import SubprocessRunner

__all__ = [
    "JobGenerator",
    "PassScheduler",
    "ProgressReporter",
    "SubprocessRunner",
    "TestExecutor",
]
