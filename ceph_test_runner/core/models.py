# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Result stream records shared across ceph-test-runner.

Each line of the result stream is a single JSON object describing one test
case. Fragments written by individual jobs use the same format, so merging
them is a plain byte concatenation.
"""

import json
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class TestStatus(str, Enum):
    """Test case status values written to the result stream."""

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    ERRORED = "errored"


@dataclass
class TestCaseRecord:
    """One test case outcome in the result stream."""

    __test__ = False

    id: str
    binary: str
    pass_type: str
    status: TestStatus
    duration: float = 0.0
    message: str | None = None
    path: str | None = None

    def to_json_line(self) -> bytes:
        """Serialize the record as a newline terminated UTF-8 JSON line."""
        data = asdict(self)
        data["pass"] = data.pop("pass_type")
        data["status"] = self.status.value
        return (json.dumps(data, sort_keys=True) + "\n").encode("utf-8")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TestCaseRecord":
        """Build a record from a decoded JSON line.

        Raises:
            KeyError: If a mandatory field is missing.
            ValueError: If the status is unknown or the duration is not numeric.
        """
        return cls(
            id=str(data["id"]),
            binary=str(data["binary"]),
            pass_type=str(data["pass"]),
            status=TestStatus(data["status"]),
            duration=float(data.get("duration") or 0.0),
            message=data.get("message"),
            path=data.get("path"),
        )
