"""Result stream aggregation and reports."""

from .diagnostics import log_stream_diagnostics
from .stream_merger import MergeStats, merge_result_fragments, read_result_stream
from .xunit_writer import XUnitStats, write_xunit_report

__all__ = [
    "MergeStats",
    "XUnitStats",
    "log_stream_diagnostics",
    "merge_result_fragments",
    "read_result_stream",
    "write_xunit_report",
]
