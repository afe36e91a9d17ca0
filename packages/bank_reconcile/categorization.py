"""Rule-based categorization.

Rules come from the budget config in declaration order. The first rule with a
``filter`` that accepts a record assigns its name as the category; rules
without a ``filter`` are never evaluated. The same function serves freshly
parsed statement records and uncategorized ledger transactions.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import Any

from .models import RawTransaction, Rule, rule_text


def auto_rules(rules: Iterable[Rule]) -> list[Rule]:
    """Return the rules that can be applied automatically (those with a filter)."""

    return [r for r in rules if r.filter is not None]


def match_rule(record: Any, rules: Sequence[Rule]) -> Rule | None:
    text = rule_text(record)
    for rule in rules:
        if rule.filter is not None and rule.filter(record, text):
            return rule
    return None


def categorize(record: RawTransaction, rules: Sequence[Rule]) -> RawTransaction:
    """Return ``record`` with the first matching rule's category.

    No match returns the record unchanged.
    """

    rule = match_rule(record, rules)
    if rule is None:
        return record
    return replace(record, category=rule.name)


def categorize_all(
    records: Iterable[RawTransaction], rules: Sequence[Rule]
) -> list[RawTransaction]:
    active = auto_rules(rules)
    return [categorize(r, active) for r in records]


__all__ = ["auto_rules", "match_rule", "categorize", "categorize_all"]
