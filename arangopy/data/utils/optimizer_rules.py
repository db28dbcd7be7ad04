# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Optimizer rule toggles for queries.

A toggle is a string "+rule-name" (enable) or "-rule-name" (disable).
Toggles are evaluated left to right, a later toggle overriding earlier ones
for the same rule. The special name "all" stands for every rule that can be
toggled, at the point of the list where it appears: "-all" after "+use-indexes"
disables use-indexes too, while "+use-indexes" after "-all" re-enables it.
"""

from __future__ import annotations

import logging
from typing import Iterable

logger = logging.getLogger(__name__)

ALL_RULES = "all"
ENABLE_PREFIX = "+"
DISABLE_PREFIX = "-"


def _parse_toggle(toggle: str) -> tuple[bool, str]:
    return (toggle[0] == ENABLE_PREFIX, toggle[1:])


def normalize_optimizer_rules(rules: Iterable[str] | None) -> list[str]:
    """
    Validate a list of optimizer rule toggles, returning it as a list
    with surrounding whitespace removed.

    Raises:
        ValueError: if any toggle lacks the "+"/"-" prefix or the rule name,
            or if a single string is passed in place of a list.
    """
    if rules is None:
        return []
    if isinstance(rules, str):
        raise ValueError("Optimizer rules must be passed as a list of strings.")
    normalized: list[str] = []
    for rule in rules:
        if not isinstance(rule, str):
            raise ValueError(f"Invalid optimizer rule toggle: {rule!r}.")
        _rule = rule.strip()
        if len(_rule) < 2 or _rule[0] not in (ENABLE_PREFIX, DISABLE_PREFIX):
            raise ValueError(
                f"Invalid optimizer rule toggle: {rule!r}. Toggles must be "
                "of the form '+rule-name' or '-rule-name'."
            )
        normalized.append(_rule)
    return normalized


def resolve_optimizer_rules(
    rules: Iterable[str] | None,
    available: Iterable[str],
    *,
    enabled_by_default: Iterable[str] | None = None,
    non_toggleable: Iterable[str] | None = None,
) -> dict[str, bool]:
    """
    Compute which rules end up enabled after applying a list of toggles.

    Args:
        rules: the toggles, evaluated left to right.
        available: all the rule names known to the optimizer.
        enabled_by_default: the rules enabled before any toggle is applied.
            If not provided, all available rules start enabled.
        non_toggleable: rules that cannot be switched, thus ignored by
            individual toggles and by "all".

    Returns:
        a dictionary from each available rule name to whether it is enabled.
        Toggles for names not in `available` are ignored.
    """
    _available = list(available)
    _non_toggleable = set(non_toggleable or [])
    _defaults = set(_available if enabled_by_default is None else enabled_by_default)
    state = {rule_name: rule_name in _defaults for rule_name in _available}

    for toggle in normalize_optimizer_rules(rules):
        enable, rule_name = _parse_toggle(toggle)
        if rule_name == ALL_RULES:
            for a_rule_name in _available:
                if a_rule_name not in _non_toggleable:
                    state[a_rule_name] = enable
        elif rule_name not in state:
            logger.info(f"Ignoring toggle for unknown optimizer rule: {toggle}")
        elif rule_name in _non_toggleable:
            logger.info(f"Ignoring toggle for non-toggleable optimizer rule: {toggle}")
        else:
            state[rule_name] = enable
    return state


def compact_optimizer_rules(rules: Iterable[str] | None) -> list[str]:
    """
    Return the shortest list of toggles equivalent to the provided one,
    for any set of available rules.

    Only the last "all" toggle matters, along with the individual toggles
    that follow it and actually differ from it; for each rule, only its last
    toggle is kept. The relative order of the surviving toggles is preserved.
    """
    _rules = normalize_optimizer_rules(rules)
    last_all_index = -1
    for index, toggle in enumerate(_rules):
        if _parse_toggle(toggle)[1] == ALL_RULES:
            last_all_index = index

    all_enable: bool | None = None
    compacted: list[str] = []
    if last_all_index >= 0:
        all_toggle = _rules[last_all_index]
        all_enable = _parse_toggle(all_toggle)[0]
        compacted.append(all_toggle)

    last_toggles: dict[str, str] = {}
    for toggle in _rules[last_all_index + 1 :]:
        rule_name = _parse_toggle(toggle)[1]
        # re-insertion moves the rule to its latest position
        last_toggles.pop(rule_name, None)
        last_toggles[rule_name] = toggle

    for toggle in last_toggles.values():
        if all_enable is not None and _parse_toggle(toggle)[0] == all_enable:
            continue
        compacted.append(toggle)
    return compacted
