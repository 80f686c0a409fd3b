# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Rule resolution for the parallel and isolated passes.

Every discovered binary falls in exactly one of these buckets:
    - runs in the parallel pass only (no rule, or partial exclusions)
    - runs in the isolated pass only (isolated patterns are folded into the
      exclusion table as whole-binary rules)
    - excluded entirely (manual tests, ``"*"`` exclusions, and slow tests
      when slow tests are skipped)

Usage:
    >>> resolver = RuleResolver(rules, skip_slow=False)
    >>> resolver.parallel_filter(test)   # None when the binary is skipped
    EffectiveFilter(expression='-Mempool.check_shard_select')
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ceph_test_runner.core.constants import (
    GTEST_FILTER_SEPARATOR,
    GTEST_NEGATION_PREFIX,
)
from ceph_test_runner.core.types import DiscoveredTest, PassType
from ceph_test_runner.rules.tables import RuleSet, RuleTable, build_exclusion_table

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """Union of all entries of a table matching a binary name.

    Attributes:
        tokens: Filter tokens of every matching non-wildcard entry
        wildcard: True if any matching entry covers the whole binary
    """

    tokens: frozenset[str] = frozenset()
    wildcard: bool = False

    @property
    def matched(self) -> bool:
        return self.wildcard or bool(self.tokens)


@dataclass(frozen=True)
class EffectiveFilter:
    """The gtest filter expression a job runs with.

    An empty expression means the binary runs without ``--gtest_filter``.
    """

    expression: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.expression

    def __str__(self) -> str:
        return self.expression


def resolve(name: str, table: RuleTable) -> Resolution:
    """Collect the rules of ``table`` that apply to the binary ``name``.

    Matching entries accumulate: their tokens are unioned and a single
    wildcard entry marks the whole binary. The result does not depend on the
    order of the table entries.
    """
    tokens: set[str] = set()
    wildcard = False
    for entry in table.matching(name):
        if entry.is_wildcard:
            wildcard = True
        else:
            tokens.update(entry.tokens)
    return Resolution(tokens=frozenset(tokens), wildcard=wildcard)


def join_tokens(tokens: frozenset[str]) -> str:
    """Join filter tokens into a deterministic gtest filter expression."""
    return GTEST_FILTER_SEPARATOR.join(sorted(tokens))


def parallel_filter(test: DiscoveredTest, exclusion_table: RuleTable) -> EffectiveFilter | None:
    """Resolve the parallel pass filter of ``test``.

    Returns:
        None when the binary is excluded as a whole, otherwise the negation
        of the matched sub-tests (empty when nothing matched).
    """
    resolution = resolve(test.name, exclusion_table)
    if resolution.wildcard:
        return None
    if not resolution.tokens:
        return EffectiveFilter()
    if test.is_standalone:
        logger.warning(
            f"{test.name} is a standalone test and cannot exclude sub-tests, "
            f"ignoring {join_tokens(resolution.tokens)}"
        )
        return EffectiveFilter()
    return EffectiveFilter(GTEST_NEGATION_PREFIX + join_tokens(resolution.tokens))


def isolated_filter(test: DiscoveredTest, isolated_table: RuleTable) -> EffectiveFilter | None:
    """Resolve the isolated pass filter of ``test``.

    Returns:
        None when no isolated rule matches, an empty filter when the whole
        binary is isolated, otherwise exactly the matched sub-tests.
    """
    resolution = resolve(test.name, isolated_table)
    if not resolution.matched:
        return None
    if resolution.wildcard:
        return EffectiveFilter()
    if test.is_standalone:
        logger.warning(
            f"{test.name} is a standalone test and cannot select sub-tests, "
            "running it as a whole"
        )
        return EffectiveFilter()
    return EffectiveFilter(join_tokens(resolution.tokens))


class RuleResolver:
    """Resolves the effective rules of both passes from a ``RuleSet``."""

    def __init__(self, rules: RuleSet, skip_slow: bool = False) -> None:
        self.rules = rules
        self.skip_slow = skip_slow
        self.exclusion_table = build_exclusion_table(rules, skip_slow)
        self.isolated_table = rules.isolated

    def resolve(self, test: DiscoveredTest, pass_type: PassType) -> EffectiveFilter | None:
        """Filter of ``test`` for ``pass_type``, None if it is not dispatched."""
        if pass_type == PassType.PARALLEL:
            return parallel_filter(test, self.exclusion_table)
        return isolated_filter(test, self.isolated_table)

    def parallel_filter(self, test: DiscoveredTest) -> EffectiveFilter | None:
        return parallel_filter(test, self.exclusion_table)

    def isolated_filter(self, test: DiscoveredTest) -> EffectiveFilter | None:
        return isolated_filter(test, self.isolated_table)

    def __repr__(self) -> str:
        return (
            f"RuleResolver(excluded={len(self.exclusion_table)}, "
            f"isolated={len(self.isolated_table)}, skip_slow={self.skip_slow})"
        )
