"""Rule engine: apply processing rules to canonical transactions.

Rules run in ``rule_order`` (stable for ties) against the current state of
the transaction, so a rule sees the edits made by the rules before it. A
matching ignore rule stops evaluation and drops the row.
"""

import copy
import logging
import math
import operator as op
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from ledgerkit.domain.entities import (
    AppliedRule,
    CanonicalField,
    CanonicalTransaction,
    ConditionLogic,
    DataType,
    FieldChange,
    Operator,
    ProcessingRule,
    RuleCondition,
    SetFieldAction,
    Transform,
    TransformFieldAction,
)
from ledgerkit.utils.date_parser import ISO, parse_statement_date

logger = logging.getLogger(__name__)

_LEADING_FLOAT = re.compile(r"\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")

_TEXT_TESTS: dict[Operator, Callable[[str, str], bool]] = {
    Operator.EQUALS: lambda value, expected: value == expected,
    Operator.CONTAINS: lambda value, expected: expected in value,
    Operator.STARTS_WITH: lambda value, expected: value.startswith(expected),
    Operator.ENDS_WITH: lambda value, expected: value.endswith(expected),
}

_ORDER_TESTS: dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.GREATER_THAN: op.gt,
    Operator.LESS_THAN: op.lt,
    Operator.GREATER_OR_EQUAL: op.ge,
    Operator.LESS_OR_EQUAL: op.le,
}


@dataclass
class RuleResult:
    """Outcome of running the rules over one transaction."""

    transaction: CanonicalTransaction
    ignored: bool = False
    applied: list[AppliedRule] = field(default_factory=list)
    ignored_by: Optional[str] = None


def to_float(value: Any) -> float:
    """Read the leading number of a value, NaN when there is none."""
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    if value is None:
        return math.nan
    match = _LEADING_FLOAT.match(str(value))
    if match is None:
        return math.nan
    return float(match.group(0))


def as_text(value: Any) -> str:
    """Render a field value as text; whole floats lose their ``.0``."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_empty(value: Any) -> bool:
    """Missing values and blank strings are empty. Numbers never are."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def evaluate_condition(condition: RuleCondition, transaction: CanonicalTransaction) -> bool:
    """Evaluate one condition against the current transaction state."""
    value = transaction.get_field(condition.field)

    if condition.operator is Operator.IS_EMPTY:
        return is_empty(value)
    if condition.operator is Operator.IS_NOT_EMPTY:
        return not is_empty(value)
    if is_empty(value):
        return False

    if condition.operator in _ORDER_TESTS:
        compare = _ORDER_TESTS[condition.operator]
        if condition.data_type is DataType.DATE:
            left = parse_statement_date(as_text(value), ISO)
            right = parse_statement_date(condition.value, ISO)
            return left is not None and right is not None and compare(left, right)
        left, right = to_float(value), to_float(condition.value)
        return not (math.isnan(left) or math.isnan(right)) and compare(left, right)

    text, expected = as_text(value), as_text(condition.value)
    if not condition.case_sensitive:
        text, expected = text.lower(), expected.lower()
    return _TEXT_TESTS[condition.operator](text, expected)


def evaluate_conditions(
    conditions: Iterable[RuleCondition],
    logic: ConditionLogic,
    transaction: CanonicalTransaction,
) -> bool:
    """Combine condition results with ALL/ANY logic.

    A rule without conditions always matches.
    """
    conditions = list(conditions)
    if not conditions:
        return True
    results = (evaluate_condition(c, transaction) for c in conditions)
    if logic is ConditionLogic.ALL:
        return all(results)
    return any(results)


def apply_transform(value: Any, transform: Transform, parameter: Optional[str] = None) -> Any:
    """Apply a value transform. Empty values pass through unchanged."""
    if value is None or value == "":
        return value

    if transform in (Transform.ABSOLUTE, Transform.NEGATE, Transform.MULTIPLY):
        number = to_float(value)
        if math.isnan(number):
            number = 0.0
        if transform is Transform.ABSOLUTE:
            return abs(number)
        if transform is Transform.NEGATE:
            return -number
        factor = to_float(parameter)
        if math.isnan(factor) or factor == 0:
            factor = 1.0
        return number * factor

    text = as_text(value)
    if transform is Transform.UPPERCASE:
        return text.upper()
    if transform is Transform.LOWERCASE:
        return text.lower()
    return text.strip()


def coerce_field_value(field_name: CanonicalField, value: Any) -> Any:
    """Convert an action value to the type the canonical field holds."""
    if field_name.is_numeric:
        number = to_float(value)
        if isinstance(value, str) and value.strip() and math.isnan(number):
            logger.debug("Non-numeric value %r written to %s", value, field_name.value)
        return number
    if field_name is CanonicalField.CURRENCY_ID:
        try:
            return int(value)
        except (TypeError, ValueError):
            return None
    if field_name is CanonicalField.DATE:
        return parse_statement_date(as_text(value), ISO)
    if value is None:
        return None
    return as_text(value)


def _run_actions(rule: ProcessingRule, transaction: CanonicalTransaction) -> list[FieldChange]:
    changes = []
    for action in rule.actions:
        if isinstance(action, SetFieldAction):
            old_value = transaction.get_field(action.field)
            new_value = coerce_field_value(action.field, action.value)
            transaction.set_field(action.field, new_value)
            changes.append(FieldChange(action.field, old_value, new_value))
        elif isinstance(action, TransformFieldAction):
            old_value = transaction.get_field(action.field)
            new_value = apply_transform(old_value, action.transform, action.parameter)
            target = action.destination
            if new_value is not old_value:
                new_value = coerce_field_value(target, new_value)
            transaction.set_field(target, new_value)
            changes.append(FieldChange(action.field, old_value, new_value, target_field=target))
    return changes


def apply_rules(
    transaction: CanonicalTransaction,
    rules: Iterable[ProcessingRule],
) -> RuleResult:
    """Run the active rules over a copy of ``transaction``.

    Args:
        transaction: Canonical transaction as produced by the field mapper
        rules: Processing rules of the bank configuration (any order)

    Returns:
        RuleResult with the rewritten transaction, the ignore verdict and the
        rules that changed at least one field
    """
    current = copy.deepcopy(transaction)
    result = RuleResult(transaction=current)

    ordered = sorted((r for r in rules if r.active), key=lambda r: r.rule_order)
    for rule in ordered:
        if not evaluate_conditions(rule.conditions, rule.condition_logic, current):
            continue

        if rule.ignores_row:
            logger.debug("Rule '%s' ignores row %s", rule.name, current.id)
            result.ignored = True
            result.ignored_by = rule.name
            break

        changes = _run_actions(rule, current)
        if changes:
            logger.debug(
                "Rule '%s' changed %s on %s",
                rule.name,
                ", ".join(c.field.value for c in changes),
                current.id,
            )
            result.applied.append(
                AppliedRule(
                    rule_id=rule.id,
                    rule_name=rule.name,
                    rule_type=rule.type,
                    changes=tuple(changes),
                )
            )

    current.rules_applied.extend(result.applied)
    return result
