"""Bank configuration domain service."""

from dataclasses import replace
from typing import Any, Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import (
    AmountHandling,
    BankConfiguration as BankConfigurationEntity,
    BankSettings,
    DateFormat,
    MappingKey,
)
from ledgerkit.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    bank_configuration_not_found,
)


class BankConfigService:
    """Service for managing bank export configurations."""

    def __init__(self, db: Database):
        """Initialize bank configuration service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_configuration(
        self,
        name: str,
        type: str = "bank",
        field_mapping: Optional[dict[Any, str]] = None,
        settings: Optional[BankSettings] = None,
    ) -> int:
        """Create a new bank configuration.

        Args:
            name: Configuration name
            type: Free-form kind of source (bank, credit_card, broker, ...)
            field_mapping: Canonical mapping key -> source column
            settings: Parsing settings (defaults apply when omitted)

        Returns:
            Configuration ID

        Raises:
            ConflictError: If the name already exists
            ValidationError: If a mapping key is unknown or conflicts with the amount handling
            NotFoundError: If the default account doesn't exist
        """
        if not name or not name.strip():
            raise ValidationError("Bank configuration name is required")
        if self.db.get_bank_configuration_by_name(name) is not None:
            raise ConflictError(f"Bank configuration with name '{name}' already exists")

        settings = settings or BankSettings()
        self._check_settings(settings)
        mapping = self._parse_mapping(field_mapping or {}, settings)

        return self.db.create_bank_configuration(
            name=name, type=type, field_mapping=mapping, settings=settings
        )

    def get_configuration(self, config_id: int) -> Optional[BankConfigurationEntity]:
        """Get bank configuration by ID."""
        return self.db.get_bank_configuration(config_id)

    def get_configuration_by_name(self, name: str) -> Optional[BankConfigurationEntity]:
        """Get bank configuration by name."""
        return self.db.get_bank_configuration_by_name(name)

    def list_configurations(self) -> list[BankConfigurationEntity]:
        """List all bank configurations."""
        return self.db.list_bank_configurations()

    def set_mapping(self, config_id: int, key: MappingKey | str, column: str) -> None:
        """Map a canonical field to a source column, replacing any previous column.

        Raises:
            NotFoundError: If the configuration doesn't exist
            ValidationError: If the key is unknown or invalid for the amount handling
        """
        config = self._require(config_id)
        if not column or not column.strip():
            raise ValidationError("Source column name is required")
        mapping = dict(config.field_mapping)
        mapping.update(self._parse_mapping({key: column.strip()}, config.settings))
        self.db.update_bank_configuration(config_id, field_mapping=mapping)

    def remove_mapping(self, config_id: int, key: MappingKey | str) -> None:
        """Remove the mapping of a canonical field."""
        config = self._require(config_id)
        mapping = dict(config.field_mapping)
        mapping.pop(MappingKey.parse(key), None)
        self.db.update_bank_configuration(config_id, field_mapping=mapping)

    def update_settings(self, config_id: int, **changes: Any) -> BankSettings:
        """Update individual settings of a configuration.

        Args:
            config_id: Configuration ID
            **changes: BankSettings field names and their new values

        Returns:
            The updated settings
        """
        config = self._require(config_id)
        try:
            settings = replace(config.settings, **changes)
        except TypeError as e:
            raise ValidationError(f"Unknown bank setting: {e}") from e
        settings = replace(
            settings,
            date_format=DateFormat.parse(settings.date_format),
            amount_handling=AmountHandling.parse(settings.amount_handling),
        )
        self._check_settings(settings)
        self.db.update_bank_configuration(config_id, settings=settings)
        return settings

    def validate_configuration(self, config: BankConfigurationEntity) -> tuple[bool, list[str]]:
        """Check that a configuration maps every field an import needs.

        Returns:
            Tuple of (is_valid, list of missing mapping keys)
        """
        mapped = {key for key, column in config.field_mapping.items() if column}
        required = [MappingKey.DATE, MappingKey.DESCRIPTION]
        missing = [key.value for key in required if key not in mapped]

        if config.settings.amount_handling is AmountHandling.SEPARATE:
            if MappingKey.DEBIT not in mapped and MappingKey.CREDIT not in mapped:
                missing.append(f"{MappingKey.DEBIT.value}/{MappingKey.CREDIT.value}")
        elif MappingKey.AMOUNT not in mapped:
            missing.append(MappingKey.AMOUNT.value)

        return (len(missing) == 0, missing)

    def delete_configuration(self, config_id: int) -> None:
        """Delete a bank configuration together with its processing rules."""
        self._require(config_id)
        self.db.delete_bank_configuration(config_id)

    def _require(self, config_id: int) -> BankConfigurationEntity:
        config = self.db.get_bank_configuration(config_id)
        if config is None:
            raise NotFoundError(bank_configuration_not_found(config_id))
        return config

    def _check_settings(self, settings: BankSettings) -> None:
        if settings.account_id is not None and self.db.get_account(settings.account_id) is None:
            raise NotFoundError(account_not_found(settings.account_id))
        if settings.currency is not None:
            code = settings.currency.strip()
            if len(code) != 3 or not code.isalpha():
                raise ValidationError(f"Invalid currency code '{settings.currency}': expected three letters")
        if not settings.delimiter:
            raise ValidationError("Delimiter cannot be empty")

    @staticmethod
    def _parse_mapping(raw: dict[Any, str], settings: BankSettings) -> dict[MappingKey, str]:
        mapping = {}
        for key, column in raw.items():
            mapping_key = MappingKey.parse(key)
            if settings.amount_handling is AmountHandling.SEPARATE and mapping_key is MappingKey.AMOUNT:
                raise ValidationError(
                    "Cannot map 'amount' field for separate debit/credit handling. "
                    "Map 'debit' and 'credit' instead."
                )
            if settings.amount_handling is AmountHandling.SIGNED and mapping_key in (
                MappingKey.DEBIT,
                MappingKey.CREDIT,
            ):
                raise ValidationError(
                    f"Cannot map '{mapping_key.value}' field for signed amount handling. "
                    "Map 'amount' instead."
                )
            if column:
                mapping[mapping_key] = column
        return mapping
