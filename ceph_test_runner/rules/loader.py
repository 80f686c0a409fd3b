# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Loading rule tables from YAML files.

The rules file is a mapping with up to five tables:

.. code-block:: yaml

    excluded:
      unittest_mempool.exe: "mempool.check_shard_select"
      ceph_test_admin_socket_output.exe: "*"
    isolated:
      unittest_perf_counters.exe: ["PerfCounters.SinglePerfCounters"]
    manual:
      ceph_test_libcephfs_lazyio.exe: "*"
    slow:
      unittest_bluefs.exe: "*"
    standalone:
      ceph_test_timers.exe: ""

Filter payloads are gtest filter strings (``:`` separated) or lists of
tokens. Standalone payloads are the argument strings passed to the binary.
"""

import importlib.resources
import logging
from pathlib import Path
from typing import Any

import yaml

from ceph_test_runner.core.errors import RuleFileError
from ceph_test_runner.rules.tables import RuleSet, RuleTable

logger = logging.getLogger(__name__)

FILTER_TABLES = ("excluded", "isolated", "manual", "slow")
ARGUMENT_TABLES = ("standalone",)
DEFAULT_RULES_FILENAME = "default_rules.yaml"


def default_rules_path() -> Path:
    """Locate the rule tables bundled with the package."""
    resource = importlib.resources.files("ceph_test_runner.rules").joinpath(
        DEFAULT_RULES_FILENAME
    )
    return Path(str(resource))


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as e:
        raise RuleFileError(f"Cannot read rules file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise RuleFileError(f"Invalid YAML in rules file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RuleFileError(
            f"Rules file {path} must contain a mapping, got {type(data).__name__}"
        )
    return data


def _table_mapping(path: Path, name: str, value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise RuleFileError(f"Table '{name}' in {path} must be a mapping")
    for pattern in value:
        if not isinstance(pattern, str) or not pattern:
            raise RuleFileError(f"Invalid pattern {pattern!r} in table '{name}' of {path}")
    return value


def _filter_table(path: Path, name: str, value: Any) -> RuleTable:
    mapping = _table_mapping(path, name, value)
    for pattern, payload in mapping.items():
        if isinstance(payload, list):
            if not all(isinstance(token, str) for token in payload):
                raise RuleFileError(
                    f"Filter tokens of '{pattern}' in table '{name}' must be strings"
                )
        elif not isinstance(payload, str):
            raise RuleFileError(
                f"Payload of '{pattern}' in table '{name}' must be a string or a list"
            )
    try:
        return RuleTable.from_filters(mapping)
    except ValueError as e:
        raise RuleFileError(f"Invalid payload in table '{name}' of {path}: {e}") from e


def _argument_table(path: Path, name: str, value: Any) -> RuleTable:
    mapping = _table_mapping(path, name, value)
    arguments: dict[str, str] = {}
    for pattern, args in mapping.items():
        if args is None:
            args = ""
        if not isinstance(args, str):
            raise RuleFileError(
                f"Arguments of '{pattern}' in table '{name}' must be a string"
            )
        arguments[pattern] = args
    return RuleTable.from_arguments(arguments)


def load_rules(path: Path | None = None) -> RuleSet:
    """Load a ``RuleSet`` from ``path``, or the bundled defaults.

    Raises:
        RuleFileError: If the file cannot be read or has an invalid structure.
    """
    rules_path = path or default_rules_path()
    data = _read_yaml(rules_path)

    unknown = set(data) - set(FILTER_TABLES) - set(ARGUMENT_TABLES)
    if unknown:
        raise RuleFileError(
            f"Unknown table(s) in {rules_path}: {', '.join(sorted(unknown))}"
        )

    rules = RuleSet(
        excluded=_filter_table(rules_path, "excluded", data.get("excluded")),
        isolated=_filter_table(rules_path, "isolated", data.get("isolated")),
        manual=_filter_table(rules_path, "manual", data.get("manual")),
        slow=_filter_table(rules_path, "slow", data.get("slow")),
        standalone=_argument_table(rules_path, "standalone", data.get("standalone")),
    )
    logger.info(
        f"Loaded rules from {rules_path}: {len(rules.excluded)} excluded, "
        f"{len(rules.isolated)} isolated, {len(rules.manual)} manual, "
        f"{len(rules.slow)} slow, {len(rules.standalone)} standalone"
    )
    return rules
