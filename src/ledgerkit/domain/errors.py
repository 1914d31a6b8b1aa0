"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations or reconciled rows."""


class ImportPipelineError(DomainError):
    """Unexpected failure while processing an import batch.

    The message is a multi-line diagnostic meant to be shown to the user
    as-is.
    """


class ReconciliationCommitError(DomainError):
    """The repository rejected one of the reconciliation writes.

    Attributes:
        failed_id: Transaction ID whose write failed
        reconciled_ids: IDs reconciled before the failure (not rolled back)
    """

    def __init__(self, message: str, failed_id: int, reconciled_ids: list[int]):
        super().__init__(message)
        self.failed_id = failed_id
        self.reconciled_ids = reconciled_ids


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def currency_not_found(currency: int | str) -> str:
    """Return message for missing currency by ID or code."""
    return f"Currency {currency} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def bank_configuration_not_found(config: int | str) -> str:
    """Return message for missing bank configuration by ID or name."""
    if isinstance(config, int):
        return f"Bank configuration {config} not found"
    return f"Bank configuration '{config}' not found"


def processing_rule_not_found(rule_id: int) -> str:
    """Return message for missing processing rule."""
    return f"Processing rule {rule_id} not found"


def transaction_already_reconciled(transaction_id: int, reference: str) -> str:
    """Return message when a transaction already carries a reconciliation reference."""
    return f"Transaction {transaction_id} is already reconciled under '{reference}'"


def invalid_choice(kind: str, value: str, choices: list[str]) -> str:
    """Return message for a value outside a closed set of names."""
    return f"Invalid {kind} '{value}'. Must be one of: {', '.join(choices)}"
