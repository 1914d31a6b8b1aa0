"""Map raw statement rows onto canonical import transactions."""

import math
import time
from typing import Optional, Sequence

from ledgerkit.domain.entities import (
    AmountHandling,
    BankConfiguration,
    CanonicalTransaction,
    Currency,
    MappingKey,
)
from ledgerkit.utils.amount_parser import parse_amount_text
from ledgerkit.utils.date_parser import parse_statement_date

RawRow = dict[str, str]


def make_import_id(timestamp: int, file_index: int, row_index: int) -> str:
    """Build the synthetic id of an import-stage transaction."""
    return f"import_{timestamp}_{file_index}_{row_index}"


def cell(row: RawRow, bank_config: BankConfiguration, key: MappingKey) -> str:
    """Return the raw value of the column mapped to ``key`` ("" when unmapped)."""
    column = bank_config.column_for(key)
    if column is None:
        return ""
    value = row.get(column)
    return "" if value is None else str(value)


def parse_row_amount(row: RawRow, bank_config: BankConfiguration) -> float:
    """Compute the signed amount of a row.

    With separate debit and credit columns a positive credit wins, otherwise
    the debit is negated. With a signed column the sign is taken as given.
    """
    if bank_config.settings.amount_handling is AmountHandling.SEPARATE:
        debit = parse_amount_text(cell(row, bank_config, MappingKey.DEBIT) or "0")
        credit = parse_amount_text(cell(row, bank_config, MappingKey.CREDIT) or "0")
        if credit > 0:
            return credit
        # -0.0 would read as a debit of zero
        return -debit if debit else 0.0
    return parse_amount_text(cell(row, bank_config, MappingKey.AMOUNT) or "0")


def resolve_currency_id(
    bank_config: BankConfiguration,
    currencies: Sequence[Currency],
    base_currency_id: Optional[int],
) -> Optional[int]:
    """Resolve the configured currency code, falling back to the base currency."""
    code = bank_config.settings.currency
    if code:
        wanted = code.strip().upper()
        for currency in currencies:
            if currency.code.upper() == wanted:
                return currency.id
    return base_currency_id


def _optional_float(value: str) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value.replace(",", "").strip())
    except ValueError:
        return math.nan


def map_row(
    raw_row: RawRow,
    bank_config: BankConfiguration,
    file_index: int,
    row_index: int,
    currencies: Sequence[Currency] = (),
    base_currency_id: Optional[int] = None,
    file_name: str = "",
    timestamp: Optional[int] = None,
) -> CanonicalTransaction:
    """Translate one raw row into a canonical transaction.

    Args:
        raw_row: Source column -> cell value
        bank_config: Bank configuration with the field mapping and settings
        file_index: Position of the file in the upload
        row_index: Position of the row in its file
        currencies: Known currencies for resolving the configured code
        base_currency_id: Currency used when the code is absent or unknown
        file_name: Name of the originating file
        timestamp: Milliseconds used in the synthetic id (defaults to now)

    Returns:
        CanonicalTransaction with status ``ready`` and no validation yet
    """
    if timestamp is None:
        timestamp = int(time.time() * 1000)

    def value(key: MappingKey) -> str:
        return cell(raw_row, bank_config, key)

    account = value(MappingKey.ACCOUNT)
    if not account and bank_config.settings.account_id is not None:
        account = str(bank_config.settings.account_id)
    tag = value(MappingKey.TAG)

    return CanonicalTransaction(
        id=make_import_id(timestamp, file_index, row_index),
        date=parse_statement_date(value(MappingKey.DATE), bank_config.settings.date_format),
        description=value(MappingKey.DESCRIPTION),
        amount=parse_row_amount(raw_row, bank_config),
        account_id=account or None,
        destination_account_id=value(MappingKey.DESTINATION_ACCOUNT_ID) or None,
        destination_amount=_optional_float(value(MappingKey.DESTINATION_AMOUNT)),
        transaction_type=value(MappingKey.TRANSACTION_TYPE),
        transaction_group=value(MappingKey.TRANSACTION_GROUP),
        category_id=value(MappingKey.CATEGORY),
        subcategory_id=value(MappingKey.SUBCATEGORY_ID),
        payee=value(MappingKey.PAYEE),
        payer=value(MappingKey.PAYER),
        reference=value(MappingKey.REFERENCE),
        tag=tag,
        notes=value(MappingKey.NOTES),
        currency_id=resolve_currency_id(bank_config, currencies, base_currency_id),
        tags=[tag] if tag else [],
        file_name=file_name,
        row_index=row_index,
        raw_data=dict(raw_row),
    )
