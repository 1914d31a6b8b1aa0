"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, including the JSON shapes used to
store field mappings, rule conditions and rule actions.
"""

from typing import Any

from ledgerkit.domain import entities as domain
from ledgerkit.domain.entities import (
    ActionKind,
    AmountHandling,
    CanonicalField,
    ConditionLogic,
    DataType,
    DateFormat,
    MappingKey,
    Operator,
    RuleType,
    Transform,
)
from ledgerkit.database.models import (
    Account as ORMAccount,
    Currency as ORMCurrency,
    BankConfiguration as ORMBankConfiguration,
    ProcessingRule as ORMProcessingRule,
    Transaction as ORMTransaction,
)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        bank_name=orm_account.bank_name,
        currency_id=orm_account.currency_id,
        created_at=orm_account.created_at,
    )


def currency_to_domain(orm_currency: ORMCurrency) -> domain.Currency:
    """Convert SQLAlchemy Currency model to domain Currency entity."""
    return domain.Currency(
        id=orm_currency.id,
        code=orm_currency.code,
        name=orm_currency.name,
        is_base=orm_currency.is_base,
        created_at=orm_currency.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        date=orm_transaction.date,
        amount=orm_transaction.amount,
        description=orm_transaction.description,
        reference=orm_transaction.reference,
        subcategory_id=orm_transaction.subcategory_id,
        transaction_type=orm_transaction.transaction_type,
        payee=orm_transaction.payee,
        payer=orm_transaction.payer,
        notes=orm_transaction.notes,
        currency_id=orm_transaction.currency_id,
        reconciliation_reference=orm_transaction.reconciliation_reference,
        reconciled_at=orm_transaction.reconciled_at,
        created_at=orm_transaction.created_at,
        category_id=orm_transaction.category_id,
        transaction_group=orm_transaction.transaction_group,
        tags=tuple(orm_transaction.tags or ()),
        destination_account_id=orm_transaction.destination_account_id,
        destination_amount=orm_transaction.destination_amount,
    )


def field_mapping_to_record(field_mapping: dict[MappingKey, str]) -> dict[str, str]:
    """Convert a domain field mapping to its JSON form."""
    return {key.value: column for key, column in field_mapping.items() if column}


def field_mapping_to_domain(record: dict[str, str] | None) -> dict[MappingKey, str]:
    """Convert a stored field mapping to domain keys."""
    return {MappingKey.parse(key): column for key, column in (record or {}).items() if column}


def bank_configuration_to_domain(orm_config: ORMBankConfiguration) -> domain.BankConfiguration:
    """Convert SQLAlchemy BankConfiguration model to domain entity."""
    return domain.BankConfiguration(
        id=orm_config.id,
        name=orm_config.name,
        type=orm_config.type,
        field_mapping=field_mapping_to_domain(orm_config.field_mapping),
        settings=domain.BankSettings(
            has_headers=orm_config.has_headers,
            delimiter=orm_config.delimiter,
            encoding=orm_config.encoding,
            date_format=DateFormat.parse(orm_config.date_format),
            amount_handling=AmountHandling.parse(orm_config.amount_handling),
            currency=orm_config.currency,
            account_id=orm_config.account_id,
        ),
        created_at=orm_config.created_at,
    )


def condition_to_record(condition: domain.RuleCondition) -> dict[str, Any]:
    """Convert a rule condition to its JSON form."""
    return {
        "field": condition.field.value,
        "operator": condition.operator.value,
        "value": condition.value,
        "dataType": condition.data_type.value,
        "caseSensitive": condition.case_sensitive,
    }


def condition_to_domain(record: dict[str, Any]) -> domain.RuleCondition:
    """Convert a stored rule condition to a domain entity."""
    return domain.RuleCondition(
        field=CanonicalField.parse(record["field"]),
        operator=Operator.parse(record["operator"]),
        value="" if record.get("value") is None else str(record["value"]),
        data_type=DataType.parse(record.get("dataType") or DataType.STRING),
        case_sensitive=record.get("caseSensitive") is not False,
    )


def action_to_record(action: domain.RuleAction) -> dict[str, Any]:
    """Convert a rule action to its JSON form."""
    if isinstance(action, domain.SetFieldAction):
        return {"type": ActionKind.SET_FIELD.value, "field": action.field.value, "value": action.value}
    if isinstance(action, domain.TransformFieldAction):
        return {
            "type": ActionKind.TRANSFORM_FIELD.value,
            "field": action.field.value,
            "transform": action.transform.value,
            "targetField": action.target_field.value if action.target_field else None,
            "parameter": action.parameter,
        }
    return {"type": ActionKind.IGNORE_ROW.value}


def action_to_domain(record: dict[str, Any]) -> domain.RuleAction:
    """Convert a stored rule action to a domain entity."""
    kind = ActionKind.parse(record.get("type"))
    if kind is ActionKind.SET_FIELD:
        return domain.SetFieldAction(
            field=CanonicalField.parse(record["field"]), value=record.get("value")
        )
    if kind is ActionKind.TRANSFORM_FIELD:
        target = record.get("targetField")
        return domain.TransformFieldAction(
            field=CanonicalField.parse(record["field"]),
            transform=Transform.parse(record["transform"]),
            target_field=CanonicalField.parse(target) if target else None,
            parameter=record.get("parameter"),
        )
    return domain.IgnoreRowAction()


def processing_rule_to_domain(orm_rule: ORMProcessingRule) -> domain.ProcessingRule:
    """Convert SQLAlchemy ProcessingRule model to domain entity."""
    return domain.ProcessingRule(
        id=orm_rule.id,
        bank_config_id=orm_rule.bank_config_id,
        name=orm_rule.name,
        type=RuleType.parse(orm_rule.type),
        active=orm_rule.active,
        rule_order=orm_rule.rule_order,
        conditions=tuple(condition_to_domain(c) for c in orm_rule.conditions or []),
        condition_logic=ConditionLogic.parse(orm_rule.condition_logic or ConditionLogic.ANY),
        actions=tuple(action_to_domain(a) for a in orm_rule.actions or []),
        created_at=orm_rule.created_at,
        updated_at=orm_rule.updated_at,
    )
