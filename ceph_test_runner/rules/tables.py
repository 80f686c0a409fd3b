# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Pattern-keyed rule tables.

A rule table is an ordered list of ``(pattern, payload)`` entries. Patterns
are shell-style globs matched against the whole short name of a test binary
(``unittest_mempool.exe``, ``ceph_test_libcephfs*``). The payload is either
the wildcard ``"*"`` (the whole binary) or a tuple of gtest filter tokens.

The standalone arguments table reuses the same structure with an opaque
argument string as payload.

Composition follows two rules when a pattern is written twice:
    - the wildcard always wins over a token payload
    - otherwise the last write wins

A table therefore cannot express "partially excluded and partially slow" for
the same pattern; this is a known limitation of the composition.
"""

from __future__ import annotations

import fnmatch
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass

from ceph_test_runner.core.constants import GTEST_FILTER_SEPARATOR, WILDCARD

Payload = str | tuple[str, ...]


def parse_filter_tokens(value: str | Iterable[str]) -> Payload:
    """Normalize a filter payload.

    Strings are split on the gtest separator (``"A.*:B.c"`` gives two tokens),
    iterables are taken token by token. A payload made only of the wildcard
    collapses to ``WILDCARD``.

    Raises:
        ValueError: If the payload contains no token at all.
    """
    if isinstance(value, str):
        raw_tokens = value.split(GTEST_FILTER_SEPARATOR)
    else:
        raw_tokens = [str(token) for token in value]

    tokens = tuple(token.strip() for token in raw_tokens if token.strip())
    if not tokens:
        raise ValueError("empty filter payload")
    if WILDCARD in tokens:
        return WILDCARD
    return tokens


@dataclass(frozen=True)
class RuleEntry:
    """A single rule: a name pattern and its payload."""

    pattern: str
    payload: Payload

    @property
    def is_wildcard(self) -> bool:
        return self.payload == WILDCARD

    @property
    def tokens(self) -> tuple[str, ...]:
        """Filter tokens of the entry, empty for wildcard or string payloads."""
        if isinstance(self.payload, tuple):
            return self.payload
        return ()

    def matches(self, name: str) -> bool:
        return fnmatch.fnmatchcase(name, self.pattern)


class RuleTable:
    """Ordered collection of rule entries, at most one per pattern."""

    def __init__(self, entries: Iterable[RuleEntry] = ()) -> None:
        self._entries: dict[str, RuleEntry] = {}
        for entry in entries:
            self.set(entry.pattern, entry.payload)

    @classmethod
    def from_filters(cls, table: Mapping[str, str | Iterable[str]]) -> RuleTable:
        """Build a filter table from a ``pattern -> payload`` mapping."""
        return cls(
            RuleEntry(pattern, parse_filter_tokens(value))
            for pattern, value in table.items()
        )

    @classmethod
    def from_arguments(cls, table: Mapping[str, str]) -> RuleTable:
        """Build a standalone arguments table, payloads kept verbatim."""
        return cls(RuleEntry(pattern, str(args)) for pattern, args in table.items())

    def set(self, pattern: str, payload: Payload) -> None:
        """Write a payload for a pattern: wildcard wins, else last write wins."""
        existing = self._entries.get(pattern)
        if existing is not None and existing.is_wildcard:
            return
        self._entries[pattern] = RuleEntry(pattern, payload)

    def fold(self, patterns: Iterable[str]) -> None:
        """Fold the patterns of another table in as whole-binary rules."""
        for pattern in patterns:
            self.set(pattern, WILDCARD)

    def copy(self) -> RuleTable:
        return RuleTable(self._entries.values())

    def matching(self, name: str) -> list[RuleEntry]:
        """All entries whose pattern matches ``name``, in table order."""
        return [entry for entry in self._entries.values() if entry.matches(name)]

    def first_match(self, name: str) -> RuleEntry | None:
        for entry in self._entries.values():
            if entry.matches(name):
                return entry
        return None

    @property
    def patterns(self) -> list[str]:
        return list(self._entries)

    def get(self, pattern: str) -> RuleEntry | None:
        return self._entries.get(pattern)

    def __contains__(self, pattern: object) -> bool:
        return pattern in self._entries

    def __iter__(self) -> Iterator[RuleEntry]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"RuleTable({[(e.pattern, e.payload) for e in self._entries.values()]})"


@dataclass
class RuleSet:
    """The rule tables driving a run.

    Attributes:
        excluded: Sub-tests (or whole binaries) never run in the parallel pass
        isolated: Sub-tests (or whole binaries) run alone in the isolated pass
        manual: Binaries only run by hand, never by the runner
        slow: Binaries skipped when slow tests are disabled
        standalone: Non-gtest binaries and their fixed launch arguments
    """

    excluded: RuleTable
    isolated: RuleTable
    manual: RuleTable
    slow: RuleTable
    standalone: RuleTable

    @classmethod
    def empty(cls) -> RuleSet:
        return cls(
            excluded=RuleTable(),
            isolated=RuleTable(),
            manual=RuleTable(),
            slow=RuleTable(),
            standalone=RuleTable(),
        )


def build_exclusion_table(rules: RuleSet, skip_slow: bool = False) -> RuleTable:
    """Compose the effective exclusion table of the parallel pass.

    Starts from the excluded table, then folds in the manual and isolated
    patterns as whole-binary exclusions, and the slow patterns as well when
    ``skip_slow`` is set.
    """
    table = rules.excluded.copy()
    table.fold(rules.manual.patterns)
    table.fold(rules.isolated.patterns)
    if skip_slow:
        table.fold(rules.slow.patterns)
    return table
