"""Interactive authoring of package rules."""

from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

from rich.console import Console
from rich.prompt import Confirm, Prompt

from .models import Action, Rule, RuleSet, TargetPolicy, UpgradeNote
from .rules import load_rules, save_rules

AskFn = Callable[..., str]
ConfirmFn = Callable[..., bool]

UPGRADE_POLICIES = [
    TargetPolicy.HIGHER.value,
    TargetPolicy.EXACT_OR_HIGHER.value,
    TargetPolicy.EXACT.value,
    TargetPolicy.EXACT_OR_LOWER.value,
    TargetPolicy.LOWER.value,
]


def _ask_required(ask: AskFn, label: str, **kwargs) -> str:
    while True:
        answer = (ask(label, **kwargs) or "").strip()
        if answer:
            return answer


def load_or_create(rules_path: str | Path) -> RuleSet:
    """Existing rules, or an empty rule set when the file does not exist yet."""
    if not Path(rules_path).is_file():
        return RuleSet()
    return load_rules(rules_path)


def prompt_rule(ask: AskFn = Prompt.ask, confirm: ConfirmFn = Confirm.ask) -> Rule:
    """Ask for one package rule."""
    package_id = _ask_required(ask, "Package id")
    action = _ask_required(
        ask,
        "Action",
        choices=[Action.UPGRADE.value, Action.REMOVE.value],
        default=Action.UPGRADE.value,
    )

    if action == Action.UPGRADE.value:
        policy = TargetPolicy.coerce(
            _ask_required(
                ask,
                "Target policy",
                choices=UPGRADE_POLICIES,
                default=TargetPolicy.EXACT_OR_HIGHER.value,
            )
        )
        target_version = _ask_required(ask, "Target version")
    else:
        policy = TargetPolicy.NONE
        target_version = None

    upgrades = []
    while confirm("Add upgrade note?", default=False):
        from_selector = _ask_required(ask, "From version (range, wildcard, or *)", default="*")
        notes = _ask_required(ask, "Notes")
        upgrades.append(UpgradeNote(from_selector=from_selector, notes=notes, to=target_version))

    return Rule(
        id=package_id,
        action=Action(action),
        target_version=target_version,
        target_policy=policy,
        upgrades=tuple(upgrades),
    )


def add_rule_interactive(
    rules_path: str | Path,
    ask: AskFn = Prompt.ask,
    confirm: ConfirmFn = Confirm.ask,
    console: Console | None = None,
) -> Rule:
    """Prompt for a rule, merge it into the rules file and save.

    An existing rule for the same package id (case-insensitive) is replaced.
    """
    console = console or Console()
    rule_set = load_or_create(rules_path)

    console.print("[bold]Add package rule[/bold]")
    rule = prompt_rule(ask, confirm)

    existing = rule_set.get(rule.id)
    if existing is not None and existing.include_transitive is not None:
        rule = replace(rule, include_transitive=existing.include_transitive)
    rule_set.upsert(rule)
    save_rules(rules_path, rule_set)
    console.print(f"Rules saved to {rules_path}")
    return rule
