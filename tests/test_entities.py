"""Tests for domain entities."""

import pytest
from datetime import datetime, UTC

from ledgerkit.domain.entities import (
    Account,
    CanonicalField,
    DateFormat,
    IgnoreRowAction,
    MappingKey,
    Operator,
    RuleType,
    SetFieldAction,
    Transform,
    TransformFieldAction,
)
from ledgerkit.domain.errors import ValidationError


class TestAccount:
    """Tests for Account entity."""

    def test_account_immutability(self):
        """Test that Account entities are immutable."""
        account = Account(
            id=1,
            name="Test Account",
            bank_name="Test Bank",
            currency_id=None,
            created_at=datetime.now(UTC),
        )
        with pytest.raises(Exception):  # dataclass frozen raises FrozenInstanceError
            account.name = "New Name"


class TestNamedEnum:
    """Tests for parsing user-supplied enum names."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("startsWith", Operator.STARTS_WITH),
            ("STARTS_WITH", Operator.STARTS_WITH),
            ("starts_with", Operator.STARTS_WITH),
            (Operator.CONTAINS, Operator.CONTAINS),
        ],
    )
    def test_parse_aliases(self, text, expected):
        assert Operator.parse(text) is expected

    def test_parse_value_with_slashes(self):
        assert DateFormat.parse("MM/DD/YYYY") is DateFormat.MM_DD_YYYY

    def test_parse_unknown(self):
        with pytest.raises(ValidationError) as excinfo:
            MappingKey.parse("colour")
        assert "Invalid mapping key 'colour'" in str(excinfo.value)
        assert "subcategoryId" in str(excinfo.value)

    def test_domain_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            Transform.parse("sqrt")


class TestCanonicalTransaction:
    """Tests for field access on import-stage transactions."""

    def test_field_attribute_names(self):
        assert CanonicalField.SUBCATEGORY_ID.attribute == "subcategory_id"
        assert CanonicalField.DESTINATION_AMOUNT.attribute == "destination_amount"
        assert CanonicalField.AMOUNT.is_numeric
        assert not CanonicalField.PAYEE.is_numeric

    def test_get_and_set_field(self, make_transaction):
        txn = make_transaction()
        txn.set_field(CanonicalField.TO_ACCOUNT_ID, "9")
        assert txn.to_account_id == "9"
        assert txn.get_field(CanonicalField.DESCRIPTION) == "Grocery Store"

    def test_every_canonical_field_is_an_attribute(self, make_transaction):
        txn = make_transaction()
        for field in CanonicalField:
            txn.get_field(field)


class TestProcessingRule:
    """Tests for ProcessingRule entity."""

    def test_ignores_row(self, make_rule):
        assert make_rule(type=RuleType.ROW_IGNORE).ignores_row
        assert make_rule(actions=[IgnoreRowAction()]).ignores_row
        assert not make_rule(actions=[SetFieldAction(CanonicalField.PAYEE, "x")]).ignores_row

    def test_transform_destination(self):
        action = TransformFieldAction(CanonicalField.AMOUNT, Transform.NEGATE)
        assert action.destination is CanonicalField.AMOUNT
        action = TransformFieldAction(
            CanonicalField.AMOUNT, Transform.NEGATE, target_field=CanonicalField.DESTINATION_AMOUNT
        )
        assert action.destination is CanonicalField.DESTINATION_AMOUNT
