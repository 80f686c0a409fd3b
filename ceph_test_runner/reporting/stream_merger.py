# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Result stream merger for combining per-job fragments.

Every job writes its records to its own fragment file. Once all jobs are
done, the fragments are concatenated into the final result stream:

- Fragments are taken in sorted (directory listing) order
- Each fragment is copied in full, in bounded chunks, so a fragment's bytes
  stay contiguous in the output whatever its size
- A fragment is deleted only after it was copied
"""

import json
import logging
import shutil
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from ceph_test_runner.core.constants import FRAGMENT_GLOB, MERGE_CHUNK_SIZE
from ceph_test_runner.core.models import TestCaseRecord

logger = logging.getLogger(__name__)


@dataclass
class MergeStats:
    """Statistics of a merge."""

    fragments: int = 0
    bytes_written: int = 0


def collect_fragments(result_dir: Path, pattern: str = FRAGMENT_GLOB) -> list[Path]:
    """List the fragment files of ``result_dir`` in merge order."""
    if not result_dir.is_dir():
        return []
    return sorted(p for p in result_dir.glob(pattern) if p.is_file())


def merge_result_fragments(
    result_dir: Path,
    output_path: Path,
    pattern: str = FRAGMENT_GLOB,
    chunk_size: int = MERGE_CHUNK_SIZE,
) -> MergeStats:
    """Concatenate all fragments of ``result_dir`` into ``output_path``.

    Args:
        result_dir: Directory holding the fragments
        output_path: Final result stream, created or truncated
        pattern: Glob identifying fragment files
        chunk_size: Maximum number of bytes read at once

    Returns:
        MergeStats with the number of fragments and bytes merged

    Raises:
        OSError: If the output cannot be written or a fragment cannot be read.
    """
    fragments = [p for p in collect_fragments(result_dir, pattern) if p != output_path]
    stats = MergeStats()

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "wb") as output:
        for fragment in fragments:
            with open(fragment, "rb") as source:
                shutil.copyfileobj(source, output, chunk_size)
            stats.bytes_written = output.tell()
            stats.fragments += 1
            fragment.unlink()
            logger.debug(f"Merged fragment {fragment.name}")

    logger.info(
        f"Merged {stats.fragments} fragment(s) into {output_path}: "
        f"{stats.bytes_written} bytes"
    )
    return stats


def read_result_stream(stream_path: Path) -> Iterator[TestCaseRecord]:
    """Yield the records of a result stream.

    Lines that cannot be decoded, typically left by a fragment whose writer
    was interrupted, are skipped with a warning.
    """
    with open(stream_path, "rb") as handle:
        for line_number, raw_line in enumerate(handle, 1):
            if not raw_line.strip():
                continue
            try:
                yield TestCaseRecord.from_dict(json.loads(raw_line))
            except (UnicodeDecodeError, ValueError, KeyError, TypeError) as e:
                logger.warning(
                    f"Skipping corrupted record at {stream_path.name}:{line_number}: "
                    f"{type(e).__name__}: {e}"
                )
