"""Processing rule domain service."""

from typing import Optional, Sequence

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import (
    CanonicalField,
    ConditionLogic,
    DataType,
    IgnoreRowAction,
    Operator,
    ProcessingRule as ProcessingRuleEntity,
    RuleAction,
    RuleCondition,
    RuleType,
    SetFieldAction,
    Transform,
    TransformFieldAction,
)
from ledgerkit.domain.errors import (
    NotFoundError,
    ValidationError,
    bank_configuration_not_found,
    processing_rule_not_found,
)

VALUELESS_OPERATORS = (Operator.IS_EMPTY, Operator.IS_NOT_EMPTY)
NUMERIC_OPERATORS = (
    Operator.GREATER_THAN,
    Operator.LESS_THAN,
    Operator.GREATER_OR_EQUAL,
    Operator.LESS_OR_EQUAL,
)


def parse_condition(text: str, case_sensitive: bool = True) -> RuleCondition:
    """Parse a condition written as ``"field operator value"``.

    The value may contain spaces. Comparison operators on numeric fields get
    the number data type.

    Examples:
        >>> parse_condition("description contains COFFEE SHOP").value
        'COFFEE SHOP'
        >>> parse_condition("amount lessThan 0").data_type
        <DataType.NUMBER: 'number'>
    """
    parts = text.strip().split(maxsplit=2)
    if len(parts) < 2:
        raise ValidationError(
            f"Invalid condition '{text}': expected 'field operator value'"
        )
    field = CanonicalField.parse(parts[0])
    operator = Operator.parse(parts[1])
    value = parts[2] if len(parts) > 2 else ""
    if operator not in VALUELESS_OPERATORS and not value:
        raise ValidationError(f"Condition '{text}' needs a value to compare against")

    data_type = DataType.STRING
    if field.is_numeric and operator in NUMERIC_OPERATORS:
        data_type = DataType.NUMBER
    elif field is CanonicalField.DATE and operator in NUMERIC_OPERATORS:
        data_type = DataType.DATE
    return RuleCondition(
        field=field,
        operator=operator,
        value=value,
        data_type=data_type,
        case_sensitive=case_sensitive,
    )


def parse_set_action(text: str) -> SetFieldAction:
    """Parse a SET_FIELD action written as ``"field=value"``."""
    field, sep, value = text.partition("=")
    if not sep:
        raise ValidationError(f"Invalid set action '{text}': expected 'field=value'")
    return SetFieldAction(field=CanonicalField.parse(field.strip()), value=value.strip())


def parse_transform_action(text: str) -> TransformFieldAction:
    """Parse a TRANSFORM_FIELD action written as ``"field:transform[:target]"``.

    ``multiply`` takes its factor after an equals sign, e.g.
    ``"amount:multiply=100"``.
    """
    parts = [p.strip() for p in text.split(":")]
    if len(parts) not in (2, 3):
        raise ValidationError(
            f"Invalid transform action '{text}': expected 'field:transform[:target]'"
        )
    transform_name, _, parameter = parts[1].partition("=")
    return TransformFieldAction(
        field=CanonicalField.parse(parts[0]),
        transform=Transform.parse(transform_name),
        target_field=CanonicalField.parse(parts[2]) if len(parts) == 3 and parts[2] else None,
        parameter=parameter or None,
    )


class ProcessingRuleService:
    """Service for managing the processing rules of bank configurations."""

    def __init__(self, db: Database):
        """Initialize processing rule service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_rule(
        self,
        bank_config_id: int,
        name: str,
        type: RuleType | str,
        conditions: Sequence[RuleCondition] = (),
        actions: Sequence[RuleAction] = (),
        condition_logic: ConditionLogic | str = ConditionLogic.ANY,
        rule_order: Optional[int] = None,
        active: bool = True,
    ) -> int:
        """Create a processing rule.

        Args:
            bank_config_id: Owning bank configuration ID
            name: Rule name
            type: Rule type
            conditions: Conditions (no conditions means the rule always matches)
            actions: Actions applied when the conditions hold
            condition_logic: ALL or ANY (default)
            rule_order: Evaluation order; appended after the last rule when omitted
            active: Whether the rule takes part in imports

        Returns:
            Rule ID

        Raises:
            NotFoundError: If the bank configuration doesn't exist
            ValidationError: If the rule is malformed
        """
        if self.db.get_bank_configuration(bank_config_id) is None:
            raise NotFoundError(bank_configuration_not_found(bank_config_id))
        if not name or not name.strip():
            raise ValidationError("Rule name is required")

        rule_type = RuleType.parse(type)
        logic = ConditionLogic.parse(condition_logic)
        actions = list(actions)
        self._check_actions(rule_type, actions)

        if rule_order is None:
            existing = self.db.list_processing_rules(bank_config_id)
            rule_order = max((r.rule_order for r in existing), default=-1) + 1

        return self.db.create_processing_rule(
            bank_config_id=bank_config_id,
            name=name.strip(),
            type=rule_type.value,
            conditions=list(conditions),
            condition_logic=logic.value,
            actions=actions,
            rule_order=rule_order,
            active=active,
        )

    def update_rule(
        self,
        rule_id: int,
        name: Optional[str] = None,
        type: RuleType | str | None = None,
        conditions: Optional[Sequence[RuleCondition]] = None,
        actions: Optional[Sequence[RuleAction]] = None,
        condition_logic: ConditionLogic | str | None = None,
    ) -> ProcessingRuleEntity:
        """Edit a rule. Arguments left as None keep their stored value.

        The edited rule is checked as a whole, so changing only the type must
        still leave actions that fit it. Switching to ROW_IGNORE without new
        actions replaces them with the ignore action; switching away from it
        drops the ignore action.

        Returns:
            The updated rule

        Raises:
            NotFoundError: If the rule doesn't exist
            ValidationError: If the edited rule is malformed
        """
        rule = self._require(rule_id)
        if name is not None and not name.strip():
            raise ValidationError("Rule name is required")

        rule_type = RuleType.parse(type) if type is not None else rule.type
        if actions is not None:
            new_actions = list(actions)
        elif rule_type is RuleType.ROW_IGNORE:
            new_actions = [IgnoreRowAction()]
        else:
            new_actions = [a for a in rule.actions if not isinstance(a, IgnoreRowAction)]
        self._check_actions(rule_type, new_actions)
        logic = ConditionLogic.parse(condition_logic) if condition_logic is not None else None

        self.db.update_processing_rule(
            rule_id,
            name=name.strip() if name is not None else None,
            type=rule_type.value if type is not None else None,
            conditions=list(conditions) if conditions is not None else None,
            condition_logic=logic.value if logic is not None else None,
            actions=new_actions if actions is not None or type is not None else None,
        )
        return self._require(rule_id)

    def get_rule(self, rule_id: int) -> Optional[ProcessingRuleEntity]:
        """Get processing rule by ID."""
        return self.db.get_processing_rule(rule_id)

    def list_rules(self, bank_config_id: int) -> list[ProcessingRuleEntity]:
        """List all rules of a bank configuration in evaluation order."""
        return self.db.list_processing_rules(bank_config_id)

    def get_active_rules(self, bank_config_id: int) -> list[ProcessingRuleEntity]:
        """List the active rules of a bank configuration in evaluation order."""
        return self.db.get_active_processing_rules(bank_config_id)

    def set_active(self, rule_id: int, active: bool) -> None:
        """Activate or deactivate a rule."""
        self._require(rule_id)
        self.db.update_processing_rule_active(rule_id, active)

    def toggle(self, rule_id: int) -> bool:
        """Flip the active flag of a rule. Returns the new state."""
        rule = self._require(rule_id)
        self.db.update_processing_rule_active(rule_id, not rule.active)
        return not rule.active

    def reorder(self, rule_id: int, rule_order: int) -> None:
        """Change the evaluation order of a rule."""
        self._require(rule_id)
        if rule_order < 0:
            raise ValidationError("Rule order must be zero or positive")
        self.db.update_processing_rule_order(rule_id, rule_order)

    def delete_rule(self, rule_id: int) -> None:
        """Delete a rule."""
        self._require(rule_id)
        self.db.delete_processing_rule(rule_id)

    def _require(self, rule_id: int) -> ProcessingRuleEntity:
        rule = self.db.get_processing_rule(rule_id)
        if rule is None:
            raise NotFoundError(processing_rule_not_found(rule_id))
        return rule

    @staticmethod
    def _check_actions(rule_type: RuleType, actions: list[RuleAction]) -> None:
        if rule_type is RuleType.ROW_IGNORE:
            if any(not isinstance(a, IgnoreRowAction) for a in actions):
                raise ValidationError("ROW_IGNORE rules cannot change fields")
            return
        if not actions:
            raise ValidationError(f"{rule_type.value} rules need at least one action")
        for action in actions:
            if isinstance(action, TransformFieldAction) and action.transform is Transform.MULTIPLY:
                if action.parameter is not None:
                    try:
                        float(action.parameter)
                    except ValueError:
                        raise ValidationError(
                            f"Multiply factor must be a number, got '{action.parameter}'"
                        ) from None
