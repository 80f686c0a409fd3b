# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Best-effort diagnostics when the result stream could not be merged.

Operators recover results out of band from whatever is left on disk, so the
existence and checksum of the stream and of every remaining fragment are
logged.
"""

import hashlib
import logging
from pathlib import Path

from ceph_test_runner.core.constants import CHECKSUM_ALGORITHM, MERGE_CHUNK_SIZE
from ceph_test_runner.reporting.stream_merger import collect_fragments

logger = logging.getLogger(__name__)


def file_checksum(path: Path, algorithm: str = CHECKSUM_ALGORITHM) -> str:
    """Hex digest of a file, read in chunks."""
    digest = hashlib.new(algorithm)
    with open(path, "rb") as handle:
        for chunk in iter(lambda: handle.read(MERGE_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def describe_file(path: Path) -> str:
    """One line description of a file: existence, size and checksum."""
    if not path.exists():
        return f"{path}: missing"
    try:
        size = path.stat().st_size
        checksum = file_checksum(path)
    except OSError as e:
        return f"{path}: exists, unreadable ({type(e).__name__}: {e})"
    return f"{path}: exists, {size} bytes, {CHECKSUM_ALGORITHM} {checksum}"


def log_stream_diagnostics(stream_path: Path, result_dir: Path) -> list[str]:
    """Log the state of the result stream and of leftover fragments.

    Never raises; returns the logged lines.
    """
    lines = [describe_file(stream_path)]
    try:
        fragments = collect_fragments(result_dir)
    except OSError as e:
        fragments = []
        lines.append(f"{result_dir}: cannot list fragments ({e})")
    lines.extend(describe_file(fragment) for fragment in fragments)

    logger.warning("Result stream diagnostics:")
    for line in lines:
        logger.warning(f"  {line}")
    return lines
