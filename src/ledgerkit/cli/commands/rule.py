"""Processing rule commands."""

import click
from ledgerkit.cli.helpers import bank_or_exit, handle_domain_error
from ledgerkit.domain.bank_config import BankConfigService
from ledgerkit.domain.entities import (
    ConditionLogic,
    IgnoreRowAction,
    RuleType,
    SetFieldAction,
    TransformFieldAction,
)
from ledgerkit.domain.errors import DomainError, ValidationError
from ledgerkit.domain.processing_rules import (
    ProcessingRuleService,
    parse_condition,
    parse_set_action,
    parse_transform_action,
)


@click.group()
def rule_group():
    """Manage processing rules applied during import."""
    pass


@rule_group.command("add")
@click.argument("bank")
@click.argument("name")
@click.option(
    "--type",
    "rule_type",
    type=click.Choice([t.value for t in RuleType], case_sensitive=False),
    required=True,
    help="Rule type",
)
@click.option(
    "--when",
    "conditions",
    multiple=True,
    help='Condition "field operator value" (repeatable)',
)
@click.option(
    "--logic",
    type=click.Choice([c.value for c in ConditionLogic], case_sensitive=False),
    default=ConditionLogic.ANY.value,
    show_default=True,
    help="How conditions combine",
)
@click.option("--ignore-case", is_flag=True, default=False, help="Compare text case-insensitively")
@click.option("--set", "set_actions", multiple=True, help="SET_FIELD action field=value (repeatable)")
@click.option(
    "--transform",
    "transform_actions",
    multiple=True,
    help="TRANSFORM_FIELD action field:transform[:target] (repeatable)",
)
@click.option("--order", type=int, help="Evaluation order (default: after existing rules)")
@click.option("--inactive", is_flag=True, default=False, help="Create the rule switched off")
@click.pass_context
def add_rule(
    ctx,
    bank: str,
    name: str,
    rule_type: str,
    conditions: tuple[str, ...],
    logic: str,
    ignore_case: bool,
    set_actions: tuple[str, ...],
    transform_actions: tuple[str, ...],
    order: int | None,
    inactive: bool,
):
    """Add a processing rule to a bank configuration.

    Examples:
        ledgerkit rule add Chase "Coffee" --type FIELD_VALUE_SET \\
            --when "description contains STARBUCKS" --ignore-case --set subcategoryId=coffee

        ledgerkit rule add Chase "Positive amounts" --type FIELD_TRANSFORM \\
            --when "amount lessThan 0" --transform amount:absolute

        ledgerkit rule add Chase "Skip balance rows" --type ROW_IGNORE \\
            --when "description startsWith BALANCE"
    """
    db = ctx.obj["db"]
    config = bank_or_exit(ctx, BankConfigService(db), bank)
    service = ProcessingRuleService(db)

    try:
        parsed_conditions = [parse_condition(c, case_sensitive=not ignore_case) for c in conditions]
        actions = [parse_set_action(a) for a in set_actions]
        actions += [parse_transform_action(a) for a in transform_actions]
        if RuleType.parse(rule_type) is RuleType.ROW_IGNORE and not actions:
            actions = [IgnoreRowAction()]
        rule_id = service.create_rule(
            bank_config_id=config.id,
            name=name,
            type=rule_type,
            conditions=parsed_conditions,
            actions=actions,
            condition_logic=logic,
            rule_order=order,
            active=not inactive,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created rule '{name}' (ID: {rule_id}) for '{config.name}'")


def _describe_condition(condition) -> str:
    text = f"{condition.field.value} {condition.operator.value}"
    if condition.value:
        text += f" {condition.value!r}"
    if not condition.case_sensitive:
        text += " (any case)"
    return text


def _describe_action(action) -> str:
    if isinstance(action, SetFieldAction):
        return f"set {action.field.value} = {action.value!r}"
    if isinstance(action, TransformFieldAction):
        text = f"{action.transform.value}({action.field.value}"
        if action.parameter:
            text += f", {action.parameter}"
        text += ")"
        if action.target_field:
            text += f" -> {action.target_field.value}"
        return text
    return "ignore row"


@rule_group.command("list")
@click.argument("bank")
@click.pass_context
def list_rules(ctx, bank: str):
    """List the rules of a bank configuration in evaluation order."""
    db = ctx.obj["db"]
    config = bank_or_exit(ctx, BankConfigService(db), bank)
    rules = ProcessingRuleService(db).list_rules(config.id)
    if not rules:
        click.echo(f"No processing rules for '{config.name}'.")
        return

    click.echo(f"\nProcessing rules for {config.name}:")
    click.echo("-" * 60)
    for rule in rules:
        state = "on " if rule.active else "off"
        click.echo(f"[{state}] #{rule.rule_order} {rule.name} (ID: {rule.id}, {rule.type.value})")
        if rule.conditions:
            joined = f" {rule.condition_logic.value} ".join(
                _describe_condition(c) for c in rule.conditions
            )
            click.echo(f"      when {joined}")
        else:
            click.echo("      always")
        for action in rule.actions:
            click.echo(f"      then {_describe_action(action)}")


@rule_group.command("edit")
@click.argument("rule_id", type=int)
@click.option("--name", help="New rule name")
@click.option(
    "--type",
    "rule_type",
    type=click.Choice([t.value for t in RuleType], case_sensitive=False),
    help="New rule type",
)
@click.option("--when", "conditions", multiple=True, help="Replace the conditions (repeatable)")
@click.option("--always", is_flag=True, default=False, help="Remove all conditions")
@click.option(
    "--logic",
    type=click.Choice([c.value for c in ConditionLogic], case_sensitive=False),
    help="How conditions combine",
)
@click.option("--ignore-case", is_flag=True, default=False, help="Compare --when text case-insensitively")
@click.option("--set", "set_actions", multiple=True, help="Replace the actions with SET_FIELD field=value")
@click.option(
    "--transform",
    "transform_actions",
    multiple=True,
    help="Replace the actions with TRANSFORM_FIELD field:transform[:target]",
)
@click.pass_context
def edit_rule(
    ctx,
    rule_id: int,
    name: str | None,
    rule_type: str | None,
    conditions: tuple[str, ...],
    always: bool,
    logic: str | None,
    ignore_case: bool,
    set_actions: tuple[str, ...],
    transform_actions: tuple[str, ...],
):
    """Edit a rule. Only the given parts change.

    Examples:
        ledgerkit rule edit 3 --name "Coffee shops" --when "payee contains coffee" --ignore-case

        ledgerkit rule edit 3 --set subcategoryId=dining --logic ALL
    """
    if always and conditions:
        handle_domain_error(ctx, ValidationError("Use either --when or --always, not both"))

    service = ProcessingRuleService(ctx.obj["db"])
    try:
        new_conditions = None
        if always:
            new_conditions = []
        elif conditions:
            new_conditions = [parse_condition(c, case_sensitive=not ignore_case) for c in conditions]
        new_actions = None
        if set_actions or transform_actions:
            new_actions = [parse_set_action(a) for a in set_actions]
            new_actions += [parse_transform_action(a) for a in transform_actions]
        rule = service.update_rule(
            rule_id,
            name=name,
            type=rule_type,
            conditions=new_conditions,
            actions=new_actions,
            condition_logic=logic,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Updated rule '{rule.name}' (ID: {rule.id})")


@rule_group.command("toggle")
@click.argument("rule_id", type=int)
@click.option("--on/--off", "active", default=None, help="Set the state instead of flipping it")
@click.pass_context
def toggle_rule(ctx, rule_id: int, active: bool | None):
    """Switch a rule on or off."""
    service = ProcessingRuleService(ctx.obj["db"])
    try:
        if active is None:
            active = service.toggle(rule_id)
        else:
            service.set_active(rule_id, active)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Rule {rule_id} is now {'active' if active else 'inactive'}")


@rule_group.command("reorder")
@click.argument("rule_id", type=int)
@click.argument("order", type=int)
@click.pass_context
def reorder_rule(ctx, rule_id: int, order: int):
    """Change the evaluation order of a rule (lower runs first)."""
    service = ProcessingRuleService(ctx.obj["db"])
    try:
        service.reorder(rule_id, order)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Rule {rule_id} moved to order {order}")


@rule_group.command("delete")
@click.argument("rule_id", type=int)
@click.pass_context
def delete_rule(ctx, rule_id: int):
    """Delete a rule."""
    service = ProcessingRuleService(ctx.obj["db"])
    try:
        service.delete_rule(rule_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted rule {rule_id}")


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rule_group, name="rule")
