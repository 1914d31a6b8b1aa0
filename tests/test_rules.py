"""Tests for the rule engine."""

import math

import pytest

from ledgerkit.domain.entities import (
    CanonicalField,
    ConditionLogic,
    DataType,
    IgnoreRowAction,
    Operator,
    RuleCondition,
    RuleType,
    SetFieldAction,
    Transform,
    TransformFieldAction,
)
from ledgerkit.domain.rules import (
    apply_rules,
    apply_transform,
    evaluate_condition,
    evaluate_conditions,
)


def _cond(field, operator, value="", **kwargs):
    return RuleCondition(
        field=CanonicalField.parse(field), operator=Operator.parse(operator), value=value, **kwargs
    )


class TestConditions:
    """Condition evaluation."""

    @pytest.mark.parametrize(
        "operator,value,expected",
        [
            ("equals", "Grocery Store", True),
            ("equals", "Grocery", False),
            ("contains", "cery St", True),
            ("startsWith", "Groc", True),
            ("startsWith", "Store", False),
            ("endsWith", "Store", True),
        ],
    )
    def test_text_operators(self, make_transaction, operator, value, expected):
        txn = make_transaction(description="Grocery Store")
        assert evaluate_condition(_cond("description", operator, value), txn) is expected

    def test_case_sensitive_by_default(self, make_transaction):
        txn = make_transaction(description="STARBUCKS 123")
        assert not evaluate_condition(_cond("description", "contains", "starbucks"), txn)
        assert evaluate_condition(
            _cond("description", "contains", "starbucks", case_sensitive=False), txn
        )

    @pytest.mark.parametrize(
        "operator,value,expected",
        [
            ("lessThan", "0", True),
            ("greaterThan", "-100", True),
            ("greaterThan", "-50", False),
            ("greaterOrEqual", "-50", True),
            ("lessOrEqual", "-50.01", False),
        ],
    )
    def test_numeric_operators(self, make_transaction, operator, value, expected):
        txn = make_transaction(amount=-50.0)
        condition = _cond("amount", operator, value, data_type=DataType.NUMBER)
        assert evaluate_condition(condition, txn) is expected

    def test_numeric_operator_with_non_numeric_value_is_false(self, make_transaction):
        txn = make_transaction(amount=-50.0)
        assert not evaluate_condition(_cond("amount", "lessThan", "abc"), txn)

    def test_date_comparison(self, make_transaction):
        txn = make_transaction(date="2024-01-15")
        condition = _cond("date", "greaterThan", "2024-01-01", data_type=DataType.DATE)
        assert evaluate_condition(condition, txn)
        condition = _cond("date", "lessThan", "2024-01-01", data_type=DataType.DATE)
        assert not evaluate_condition(condition, txn)

    def test_equals_on_whole_amount_matches_integer_text(self, make_transaction):
        txn = make_transaction(amount=-75.0)
        assert evaluate_condition(_cond("amount", "equals", "-75"), txn)

    def test_empty_value_never_satisfies_positive_condition(self, make_transaction):
        txn = make_transaction(payee="")
        for operator in ("equals", "contains", "startsWith", "endsWith", "greaterThan"):
            assert not evaluate_condition(_cond("payee", operator, ""), txn)
        assert not evaluate_condition(_cond("reference", "contains", "x"), txn)

    def test_is_empty_and_is_not_empty(self, make_transaction):
        txn = make_transaction(payee="   ", payer="ACME")
        assert evaluate_condition(_cond("payee", "isEmpty"), txn)
        assert not evaluate_condition(_cond("payer", "isEmpty"), txn)
        assert evaluate_condition(_cond("payer", "isNotEmpty"), txn)
        assert evaluate_condition(_cond("destinationAccountId", "isEmpty"), txn)

    def test_zero_amount_is_not_empty(self, make_transaction):
        txn = make_transaction(amount=0.0)
        assert evaluate_condition(_cond("amount", "isNotEmpty"), txn)

    def test_logic_all_and_any(self, make_transaction):
        txn = make_transaction(description="Coffee", amount=-4.0)
        hit = _cond("description", "equals", "Coffee")
        miss = _cond("amount", "greaterThan", "0")
        assert evaluate_conditions([hit, miss], ConditionLogic.ANY, txn)
        assert not evaluate_conditions([hit, miss], ConditionLogic.ALL, txn)
        assert evaluate_conditions([hit], ConditionLogic.ALL, txn)

    def test_no_conditions_always_match(self, make_transaction):
        assert evaluate_conditions([], ConditionLogic.ALL, make_transaction())


class TestTransforms:
    """Value transforms."""

    @pytest.mark.parametrize(
        "value,transform,parameter,expected",
        [
            (-75.0, Transform.ABSOLUTE, None, 75.0),
            (20.0, Transform.NEGATE, None, -20.0),
            ("12.5", Transform.MULTIPLY, "2", 25.0),
            (3.0, Transform.MULTIPLY, None, 3.0),
            (3.0, Transform.MULTIPLY, "0", 3.0),
            ("abc", Transform.ABSOLUTE, None, 0.0),
            ("Mixed Case", Transform.UPPERCASE, None, "MIXED CASE"),
            ("Mixed Case", Transform.LOWERCASE, None, "mixed case"),
            ("  padded  ", Transform.TRIM, None, "padded"),
        ],
    )
    def test_transform(self, value, transform, parameter, expected):
        assert apply_transform(value, transform, parameter) == expected

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_values_are_not_transformed(self, value):
        assert apply_transform(value, Transform.NEGATE) == value


class TestApplyRules:
    """Sequential rule application."""

    def test_absolute_transform_on_negative_amount(self, make_transaction, make_rule):
        """amount lessThan 0 with an absolute transform turns -75 into 75 once."""
        rule = make_rule(
            name="Make positive",
            type=RuleType.FIELD_TRANSFORM,
            conditions=[_cond("amount", "lessThan", "0", data_type=DataType.NUMBER)],
            actions=[TransformFieldAction(CanonicalField.AMOUNT, Transform.ABSOLUTE)],
        )
        result = apply_rules(make_transaction(amount=-75.0), [rule])

        assert result.transaction.amount == 75
        assert not result.ignored
        assert [a.rule_name for a in result.transaction.rules_applied] == ["Make positive"]
        assert len(result.applied) == 1
        change = result.applied[0].changes[0]
        assert (change.old_value, change.new_value) == (-75.0, 75.0)
        assert change.target_field is CanonicalField.AMOUNT

    def test_input_transaction_is_not_mutated(self, make_transaction, make_rule):
        rule = make_rule(actions=[SetFieldAction(CanonicalField.PAYEE, "Shop")])
        original = make_transaction()
        apply_rules(original, [rule])
        assert original.payee == ""
        assert original.rules_applied == []

    def test_rules_run_in_order_on_current_state(self, make_transaction, make_rule):
        """A later rule sees the value written by an earlier one."""
        set_type = make_rule(
            name="Set type",
            rule_order=2,
            conditions=[_cond("payee", "equals", "Employer")],
            actions=[SetFieldAction(CanonicalField.TRANSACTION_TYPE, "income")],
        )
        set_payee = make_rule(
            name="Set payee",
            rule_order=1,
            conditions=[_cond("description", "contains", "SALARY")],
            actions=[SetFieldAction(CanonicalField.PAYEE, "Employer")],
        )
        result = apply_rules(make_transaction(description="SALARY JAN"), [set_type, set_payee])

        assert result.transaction.transaction_type == "income"
        assert [a.rule_name for a in result.applied] == ["Set payee", "Set type"]

    def test_equal_order_keeps_list_order(self, make_transaction, make_rule):
        first = make_rule(name="first", actions=[SetFieldAction(CanonicalField.NOTES, "a")])
        second = make_rule(name="second", actions=[SetFieldAction(CanonicalField.NOTES, "b")])
        assert apply_rules(make_transaction(), [first, second]).transaction.notes == "b"
        assert apply_rules(make_transaction(), [second, first]).transaction.notes == "a"

    def test_inactive_rules_are_skipped(self, make_transaction, make_rule):
        rule = make_rule(active=False, actions=[SetFieldAction(CanonicalField.PAYEE, "X")])
        result = apply_rules(make_transaction(), [rule])
        assert result.transaction.payee == ""
        assert result.applied == []

    def test_unmatched_rule_not_recorded(self, make_transaction, make_rule):
        rule = make_rule(
            conditions=[_cond("description", "equals", "Nope")],
            actions=[SetFieldAction(CanonicalField.PAYEE, "X")],
        )
        assert apply_rules(make_transaction(), [rule]).applied == []

    def test_ignore_rule_short_circuits(self, make_transaction, make_rule):
        ignore = make_rule(
            name="Skip balance",
            type=RuleType.ROW_IGNORE,
            rule_order=1,
            conditions=[_cond("description", "startsWith", "BALANCE")],
            actions=[IgnoreRowAction()],
        )
        later = make_rule(rule_order=2, actions=[SetFieldAction(CanonicalField.PAYEE, "X")])
        result = apply_rules(make_transaction(description="BALANCE FORWARD"), [later, ignore])

        assert result.ignored
        assert result.ignored_by == "Skip balance"
        assert result.applied == []
        assert result.transaction.payee == ""

    def test_ignore_action_in_other_rule_type(self, make_transaction, make_rule):
        rule = make_rule(type=RuleType.FIELD_VALUE_SET, actions=[IgnoreRowAction()])
        assert apply_rules(make_transaction(), [rule]).ignored

    def test_transform_to_target_field(self, make_transaction, make_rule):
        rule = make_rule(
            type=RuleType.FIELD_TRANSFORM,
            actions=[
                TransformFieldAction(
                    CanonicalField.DESCRIPTION, Transform.UPPERCASE, target_field=CanonicalField.NOTES
                )
            ],
        )
        txn = apply_rules(make_transaction(description="Shop"), [rule]).transaction
        assert txn.description == "Shop"
        assert txn.notes == "SHOP"

    def test_set_numeric_field_coerces(self, make_transaction, make_rule):
        rule = make_rule(
            actions=[
                SetFieldAction(CanonicalField.DESTINATION_AMOUNT, "12.5"),
                SetFieldAction(CanonicalField.AMOUNT, "lots"),
            ]
        )
        txn = apply_rules(make_transaction(), [rule]).transaction
        assert txn.destination_amount == 12.5
        assert math.isnan(txn.amount)

    def test_determinism(self, make_transaction, make_rule):
        """Same rules and same input always give the same output."""
        rules = [
            make_rule(
                rule_order=1,
                conditions=[_cond("amount", "lessThan", "0")],
                actions=[TransformFieldAction(CanonicalField.AMOUNT, Transform.NEGATE)],
            ),
            make_rule(
                rule_order=2,
                conditions=[_cond("amount", "greaterThan", "0")],
                actions=[SetFieldAction(CanonicalField.TRANSACTION_TYPE, "expenses")],
            ),
        ]
        txn = make_transaction(amount=-20.0)
        first = apply_rules(txn, rules)
        second = apply_rules(txn, rules)
        assert first.transaction == second.transaction
        assert first.applied == second.applied
