"""Domain layer for ledgerkit application.

Services are imported lazily: the database layer imports
``ledgerkit.domain.entities``, and the services import the database layer.
"""

_SERVICES = {
    "AccountService": "ledgerkit.domain.account",
    "CurrencyService": "ledgerkit.domain.currency",
    "BankConfigService": "ledgerkit.domain.bank_config",
    "ProcessingRuleService": "ledgerkit.domain.processing_rules",
    "TransactionService": "ledgerkit.domain.transaction",
    "CSVImportService": "ledgerkit.domain.csv_import",
    "ReconciliationSession": "ledgerkit.domain.reconciliation",
    "ReconciliationService": "ledgerkit.domain.reconciliation",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
