"""Account domain service."""

from typing import Optional
from ledgerkit.database.base import Database
from ledgerkit.domain.entities import Account as AccountEntity
from ledgerkit.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    currency_not_found,
)


class AccountService:
    """Service for ledger accounts: creation and lookup by ID or name."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(self, name: str, bank_name: str, currency_id: Optional[int] = None) -> int:
        """Create a new account.

        Returns:
            Account ID

        Raises:
            ValidationError: If the name is empty
            ConflictError: If account name already exists
            NotFoundError: If the currency doesn't exist
        """
        if not name or not name.strip():
            raise ValidationError("Account name is required")
        if self.get_by_name(name) is not None:
            raise ConflictError(f"Account with name '{name}' already exists")
        if currency_id is not None and self.db.get_currency(currency_id) is None:
            raise NotFoundError(currency_not_found(currency_id))

        return self.db.create_account(name=name, bank_name=bank_name, currency_id=currency_id)

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        return self.db.get_account(account_id)

    def get_by_name(self, name: str) -> Optional[AccountEntity]:
        """Find an account by its exact name."""
        return next((acc for acc in self.db.list_accounts() if acc.name == name), None)

    def list_accounts(self) -> list[AccountEntity]:
        """List all accounts, sorted by name."""
        return self.db.list_accounts()

    def resolve(self, account: str | int) -> int:
        """Resolve an account reference to an account ID.

        Integers and numeric strings are IDs; anything else is a name.
        Imported rows carry the account as text, so ``"3"`` means account 3.

        Raises:
            NotFoundError: If no account matches
        """
        if isinstance(account, str) and not account.strip().lstrip("-").isdigit():
            found = self.get_by_name(account)
            if found is None:
                raise NotFoundError(f"Account '{account}' not found")
            return found.id

        account_id = int(account)
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        return account_id
