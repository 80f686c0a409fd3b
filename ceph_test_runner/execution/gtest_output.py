# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Conversion of gtest XML reports into result stream records.

A binary that crashes or is killed on timeout can leave a truncated XML
report behind. The report is parsed in lxml recovery mode so that every
test case written before the crash still reaches the result stream.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from lxml import etree

from ceph_test_runner.core.models import TestCaseRecord, TestStatus
from ceph_test_runner.core.types import PassType

logger = logging.getLogger(__name__)

_SKIPPED_RESULTS = {"skipped", "suppressed"}


def _duration(value: str | None) -> float:
    try:
        return float(value or 0.0)
    except ValueError:
        return 0.0


def _testcase_record(
    testcase: etree._Element, binary_name: str, pass_type: PassType, binary_path: str | None
) -> TestCaseRecord:
    classname = testcase.get("classname", "")
    name = testcase.get("name", "")
    test_id = f"{binary_name}::{classname}.{name}" if classname else f"{binary_name}::{name}"

    failures = testcase.findall("failure") + testcase.findall("error")
    if failures:
        status = TestStatus.FAILED
        message: str | None = "\n".join(
            f.get("message") or (f.text or "").strip() for f in failures
        )
    elif (
        testcase.get("result") in _SKIPPED_RESULTS
        or testcase.get("status") == "notrun"
        or testcase.find("skipped") is not None
    ):
        status = TestStatus.SKIPPED
        message = None
    else:
        status = TestStatus.PASSED
        message = None

    return TestCaseRecord(
        id=test_id,
        binary=binary_name,
        pass_type=pass_type.value,
        status=status,
        duration=_duration(testcase.get("time")),
        message=message,
        path=binary_path,
    )


def parse_gtest_xml(
    xml_path: Path, binary_name: str, pass_type: PassType, binary_path: str | None = None
) -> list[TestCaseRecord]:
    """Parse a gtest XML report into result stream records.

    Args:
        xml_path: Path of the ``--gtest_output=xml`` report
        binary_name: Short name of the binary that produced the report
        pass_type: Pass the binary ran in
        binary_path: Full path of the binary, stored on every record

    Returns:
        One record per ``<testcase>`` element, empty if nothing is readable.
    """
    parser = etree.XMLParser(recover=True)
    try:
        tree = etree.parse(str(xml_path), parser)  # nosec B320 - report written by the test binary
    except (OSError, etree.XMLSyntaxError) as e:
        logger.warning(f"Failed to parse gtest report {xml_path}: {e}")
        return []

    root = tree.getroot()
    if root is None:
        logger.warning(f"gtest report {xml_path} is empty")
        return []

    return [_testcase_record(tc, binary_name, pass_type, binary_path) for tc in root.iter("testcase")]


def write_fragment(fragment_path: Path, records: Iterable[TestCaseRecord]) -> int:
    """Write records to a result stream fragment.

    Returns:
        Number of bytes written.
    """
    fragment_path.parent.mkdir(parents=True, exist_ok=True)
    written = 0
    with open(fragment_path, "wb") as handle:
        for record in records:
            written += handle.write(record.to_json_line())
    return written
