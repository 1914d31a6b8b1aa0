"""Currency domain service."""

from typing import Optional
from ledgerkit.database.base import Database
from ledgerkit.domain.entities import Currency as CurrencyEntity
from ledgerkit.domain.errors import ConflictError, ValidationError

BASE_CURRENCY_CODE = "USD"


class CurrencyService:
    """Service for managing currencies and the base currency."""

    def __init__(self, db: Database):
        self.db = db

    def add_currency(self, code: str, name: str, is_base: bool = False) -> int:
        """Add a currency.

        Raises:
            ValidationError: If the code is not a three-letter ISO code
            ConflictError: If the code already exists
        """
        code = code.strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValidationError(f"Invalid currency code '{code}': expected three letters")
        if self.db.get_currency_by_code(code) is not None:
            raise ConflictError(f"Currency '{code}' already exists")
        return self.db.create_currency(code=code, name=name, is_base=is_base)

    def list_currencies(self) -> list[CurrencyEntity]:
        return self.db.list_currencies()

    def get_by_code(self, code: str) -> Optional[CurrencyEntity]:
        return self.db.get_currency_by_code(code)

    def ensure_base_currency(self) -> CurrencyEntity:
        """Return the base currency.

        Without a flagged base currency, USD serves as base and is created
        when missing.
        """
        for currency in self.db.list_currencies():
            if currency.is_base:
                return currency

        existing = self.db.get_currency_by_code(BASE_CURRENCY_CODE)
        if existing is not None:
            return existing
        currency_id = self.db.create_currency(BASE_CURRENCY_CODE, "US Dollar", is_base=True)
        return self.db.get_currency(currency_id)
