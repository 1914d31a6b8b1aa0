"""Domain model entities for ledgerkit.

These are pure data classes representing business concepts, independent of
database schema. Persisted entities are frozen; the import-stage
``CanonicalTransaction`` is mutable because the rule engine rewrites it.

Names that users type (mapping keys, rule fields, operators, transforms) are
closed enums so every lookup goes through one validated place.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from ledgerkit.domain.errors import ValidationError, invalid_choice


class NamedEnum(str, Enum):
    """String enum that can be parsed from user-supplied names."""

    @classmethod
    def parse(cls, name: Any) -> "NamedEnum":
        """Parse an enum member from its value, member name or snake_case alias.

        Raises:
            ValidationError: If the name does not match any member
        """
        if isinstance(name, cls):
            return name
        text = str(name or "").strip()
        for member in cls:
            if text in (member.value, member.name, member.name.lower()):
                return member
            if text == _camel_to_snake(member.value):
                return member
        raise ValidationError(
            invalid_choice(_enum_kind(cls), text, [m.value for m in cls])
        )


def _camel_to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _enum_kind(cls: type) -> str:
    return _camel_to_snake(cls.__name__).replace("_", " ")


class DateFormat(NamedEnum):
    """Statement date layouts a bank configuration can declare."""

    MM_DD_YYYY = "MM/DD/YYYY"
    DD_MM_YYYY = "DD/MM/YYYY"
    YYYY_MM_DD = "YYYY-MM-DD"


class AmountHandling(NamedEnum):
    """How a bank export encodes the transaction amount."""

    SEPARATE = "separate"
    SIGNED = "signed"


class MappingKey(NamedEnum):
    """Keys of a bank configuration field mapping (canonical side)."""

    DATE = "date"
    DESCRIPTION = "description"
    AMOUNT = "amount"
    DEBIT = "debit"
    CREDIT = "credit"
    ACCOUNT = "account"
    DESTINATION_ACCOUNT_ID = "destinationAccountId"
    DESTINATION_AMOUNT = "destinationAmount"
    TRANSACTION_TYPE = "transactionType"
    TRANSACTION_GROUP = "transactionGroup"
    CATEGORY = "category"
    SUBCATEGORY_ID = "subcategoryId"
    PAYEE = "payee"
    PAYER = "payer"
    REFERENCE = "reference"
    TAG = "tag"
    NOTES = "notes"


class CanonicalField(NamedEnum):
    """Canonical transaction fields that rules may read or write."""

    DATE = "date"
    DESCRIPTION = "description"
    AMOUNT = "amount"
    ACCOUNT_ID = "accountId"
    FROM_ACCOUNT_ID = "fromAccountId"
    TO_ACCOUNT_ID = "toAccountId"
    DESTINATION_ACCOUNT_ID = "destinationAccountId"
    DESTINATION_AMOUNT = "destinationAmount"
    TRANSACTION_TYPE = "transactionType"
    TRANSACTION_GROUP = "transactionGroup"
    CATEGORY_ID = "categoryId"
    SUBCATEGORY_ID = "subcategoryId"
    PAYEE = "payee"
    PAYER = "payer"
    REFERENCE = "reference"
    TAG = "tag"
    NOTES = "notes"
    CURRENCY_ID = "currencyId"

    @property
    def attribute(self) -> str:
        """Attribute name on ``CanonicalTransaction``."""
        return _camel_to_snake(self.value)

    @property
    def is_numeric(self) -> bool:
        return self in (CanonicalField.AMOUNT, CanonicalField.DESTINATION_AMOUNT)


class RuleType(NamedEnum):
    FIELD_TRANSFORM = "FIELD_TRANSFORM"
    FIELD_VALUE_SET = "FIELD_VALUE_SET"
    ROW_IGNORE = "ROW_IGNORE"


class ActionKind(NamedEnum):
    SET_FIELD = "SET_FIELD"
    TRANSFORM_FIELD = "TRANSFORM_FIELD"
    IGNORE_ROW = "IGNORE_ROW"


class ConditionLogic(NamedEnum):
    ALL = "ALL"
    ANY = "ANY"


class Operator(NamedEnum):
    """Condition operators understood by the rule engine."""

    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    GREATER_OR_EQUAL = "greaterOrEqual"
    LESS_OR_EQUAL = "lessOrEqual"


class DataType(NamedEnum):
    STRING = "string"
    NUMBER = "number"
    DATE = "date"


class Transform(NamedEnum):
    """Value transforms available to TRANSFORM_FIELD actions."""

    ABSOLUTE = "absolute"
    NEGATE = "negate"
    MULTIPLY = "multiply"
    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    TRIM = "trim"


class ImportStatus(NamedEnum):
    READY = "ready"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Account:
    """Ledger account domain entity."""

    id: int
    name: str
    bank_name: str
    currency_id: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class Currency:
    """Currency domain entity."""

    id: int
    code: str
    name: str
    is_base: bool
    created_at: datetime


@dataclass(frozen=True)
class BankSettings:
    """Parsing settings of a bank configuration."""

    has_headers: bool = True
    delimiter: str = ","
    encoding: str = "utf-8"
    date_format: DateFormat = DateFormat.YYYY_MM_DD
    amount_handling: AmountHandling = AmountHandling.SIGNED
    currency: Optional[str] = None
    account_id: Optional[int] = None


@dataclass(frozen=True)
class BankConfiguration:
    """Bank export configuration: column mapping plus parsing settings."""

    id: int
    name: str
    type: str
    field_mapping: dict[MappingKey, str]
    settings: BankSettings
    created_at: datetime

    def column_for(self, key: MappingKey) -> Optional[str]:
        """Return the source column mapped to ``key``, if any."""
        column = self.field_mapping.get(key)
        return column or None


@dataclass(frozen=True)
class RuleCondition:
    """A single predicate over one canonical field."""

    field: CanonicalField
    operator: Operator
    value: str = ""
    data_type: DataType = DataType.STRING
    case_sensitive: bool = True


@dataclass(frozen=True)
class SetFieldAction:
    """Assign a static value to a field."""

    field: CanonicalField
    value: Any


@dataclass(frozen=True)
class TransformFieldAction:
    """Transform a field and write the result to ``target_field``."""

    field: CanonicalField
    transform: Transform
    target_field: Optional[CanonicalField] = None
    parameter: Optional[str] = None

    @property
    def destination(self) -> CanonicalField:
        return self.target_field or self.field


@dataclass(frozen=True)
class IgnoreRowAction:
    """Drop the row from the import."""


RuleAction = Union[SetFieldAction, TransformFieldAction, IgnoreRowAction]


@dataclass(frozen=True)
class ProcessingRule:
    """User-defined import rule owned by a bank configuration."""

    id: int
    bank_config_id: int
    name: str
    type: RuleType
    active: bool
    rule_order: int
    conditions: tuple[RuleCondition, ...]
    condition_logic: ConditionLogic
    actions: tuple[RuleAction, ...]
    created_at: datetime
    updated_at: datetime

    @property
    def ignores_row(self) -> bool:
        return self.type is RuleType.ROW_IGNORE or any(
            isinstance(action, IgnoreRowAction) for action in self.actions
        )


@dataclass(frozen=True)
class Transaction:
    """Ledger transaction domain entity."""

    id: int
    account_id: int
    date: date
    amount: Decimal
    description: Optional[str]
    reference: Optional[str]
    subcategory_id: Optional[str]
    transaction_type: Optional[str]
    payee: Optional[str]
    payer: Optional[str]
    notes: Optional[str]
    currency_id: Optional[int]
    reconciliation_reference: Optional[str]
    reconciled_at: Optional[datetime]
    created_at: datetime
    category_id: Optional[str] = None
    transaction_group: Optional[str] = None
    tags: tuple[str, ...] = ()
    destination_account_id: Optional[int] = None
    destination_amount: Optional[Decimal] = None

    @property
    def is_reconciled(self) -> bool:
        return self.reconciliation_reference is not None


@dataclass(frozen=True)
class FieldChange:
    """One field rewrite performed by a rule action."""

    field: CanonicalField
    old_value: Any
    new_value: Any
    target_field: Optional[CanonicalField] = None


@dataclass(frozen=True)
class AppliedRule:
    """Record of a rule that changed a canonical transaction."""

    rule_id: int
    rule_name: str
    rule_type: RuleType
    changes: tuple[FieldChange, ...]


@dataclass
class ValidationResult:
    """Outcome of validating one canonical transaction.

    ``info`` holds confirmations of successfully mapped optional fields and
    never affects the status.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    info: list[str] = field(default_factory=list)


@dataclass
class CanonicalTransaction:
    """Import-stage transaction, normalized from one raw bank row."""

    id: str
    date: Optional[str]
    description: str
    amount: float
    account_id: Optional[str] = None
    from_account_id: Optional[str] = None
    to_account_id: Optional[str] = None
    destination_account_id: Optional[str] = None
    destination_amount: Optional[float] = None
    transaction_type: str = ""
    transaction_group: str = ""
    category_id: str = ""
    subcategory_id: str = ""
    payee: str = ""
    payer: str = ""
    reference: str = ""
    tag: str = ""
    notes: str = ""
    currency_id: Optional[int] = None
    tags: list[str] = field(default_factory=list)
    file_name: str = ""
    row_index: int = 0
    raw_data: dict[str, str] = field(default_factory=dict)
    status: ImportStatus = ImportStatus.READY
    is_duplicate: bool = False
    validation: ValidationResult = field(default_factory=ValidationResult)
    rules_applied: list[AppliedRule] = field(default_factory=list)

    def get_field(self, name: CanonicalField) -> Any:
        return getattr(self, name.attribute)

    def set_field(self, name: CanonicalField, value: Any) -> None:
        setattr(self, name.attribute, value)
