# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2025 Daniel Schmidt

"""Rule tables and their resolution."""

from .loader import default_rules_path, load_rules
from .resolver import EffectiveFilter, Resolution, RuleResolver, resolve
from .tables import RuleEntry, RuleSet, RuleTable, build_exclusion_table

__all__ = [
    "EffectiveFilter",
    "Resolution",
    "RuleEntry",
    "RuleResolver",
    "RuleSet",
    "RuleTable",
    "build_exclusion_table",
    "default_rules_path",
    "load_rules",
    "resolve",
]
