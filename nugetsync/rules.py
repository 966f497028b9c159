"""Rule files and rule resolution.

A rules file is a JSON document of the form::

    {
      "schemaVersion": 1,
      "defaultIncludeTransitive": false,
      "packages": [
        {
          "id": "Newtonsoft.Json",
          "action": "upgrade",
          "targetVersion": "13.0.3",
          "targetPolicy": "exact_or_higher",
          "includeTransitive": null,
          "upgrades": [{"from": "[12.0,13.0)", "to": "13.0.3", "notes": "..."}]
        }
      ]
    }

Property names are matched case-insensitively.
"""

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from .errors import RulesError, RulesFileNotFound
from .models import Action, PackageRecord, Rule, RuleSet, TargetPolicy, UpgradeNote

logger = logging.getLogger(__name__)

RULE_ACTIONS = (Action.UPGRADE.value, Action.REMOVE.value)


def _lower_keys(data: Mapping[str, Any], context: str) -> dict[str, Any]:
    if not isinstance(data, Mapping):
        raise RulesError(f"{context} must be a JSON object")
    return {str(key).lower(): value for key, value in data.items()}


def _optional_str(value: Any, field_name: str, context: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise RulesError(f"{context}: '{field_name}' must be a string")
    return value


def _optional_bool(value: Any, field_name: str, context: str) -> bool | None:
    if value is None:
        return None
    if not isinstance(value, bool):
        raise RulesError(f"{context}: '{field_name}' must be true or false")
    return value


def _parse_upgrade(data: Any, context: str) -> UpgradeNote:
    fields = _lower_keys(data, context)
    from_selector = _optional_str(fields.get("from"), "from", context)
    notes = _optional_str(fields.get("notes"), "notes", context)
    return UpgradeNote(
        from_selector="*" if from_selector is None else from_selector,
        notes=notes or "",
        to=_optional_str(fields.get("to"), "to", context),
    )


def parse_rule(data: Any, index: int = 0) -> Rule:
    """Build a Rule from one entry of the ``packages`` array.

    Raises:
        RulesError: If the entry is structurally invalid
    """
    context = f"packages[{index}]"
    fields = _lower_keys(data, context)

    package_id = fields.get("id")
    if not isinstance(package_id, str) or not package_id.strip():
        raise RulesError(f"{context}: 'id' is required")

    action = _optional_str(fields.get("action"), "action", context)
    action = (action or Action.UPGRADE.value).strip().lower()
    if action not in RULE_ACTIONS:
        raise RulesError(f"{context}: unsupported action '{action}' for {package_id}")

    policy = _optional_str(fields.get("targetpolicy"), "targetPolicy", context)

    upgrades = fields.get("upgrades")
    if upgrades is None:
        upgrades = []
    if not isinstance(upgrades, list):
        raise RulesError(f"{context}: 'upgrades' must be an array")

    return Rule(
        id=package_id.strip(),
        action=Action(action),
        target_version=_optional_str(fields.get("targetversion"), "targetVersion", context),
        target_policy=TargetPolicy.coerce(policy),
        include_transitive=_optional_bool(
            fields.get("includetransitive"), "includeTransitive", context
        ),
        upgrades=tuple(
            _parse_upgrade(upgrade, f"{context}.upgrades[{i}]")
            for i, upgrade in enumerate(upgrades)
        ),
    )


def parse_rules(data: Any) -> RuleSet:
    """Build a RuleSet from a decoded rules document.

    Duplicate package ids are allowed; the last definition wins.

    Raises:
        RulesError: If the document is structurally invalid
    """
    if data is None:
        raise RulesError("Rules file is invalid.")
    fields = _lower_keys(data, "rules document")

    schema_version = fields.get("schemaversion", 1)
    if not isinstance(schema_version, int) or isinstance(schema_version, bool):
        raise RulesError("'schemaVersion' must be an integer")

    default_include = _optional_bool(
        fields.get("defaultincludetransitive"), "defaultIncludeTransitive", "rules document"
    )

    packages = fields.get("packages")
    if packages is None:
        packages = []
    if not isinstance(packages, list):
        raise RulesError("'packages' must be an array")

    rule_set = RuleSet(
        default_include_transitive=bool(default_include),
        schema_version=schema_version,
    )
    for index, entry in enumerate(packages):
        rule = parse_rule(entry, index)
        if rule_set.get(rule.id) is not None:
            logger.warning("Duplicate rule for %s; the last definition wins", rule.id)
        rule_set.upsert(rule)
    return rule_set


def load_rules(path: str | Path) -> RuleSet:
    """Read and validate a rules file.

    Raises:
        RulesFileNotFound: If the file does not exist
        RulesError: If the file is not a valid rules document
    """
    rules_path = Path(path)
    if not rules_path.is_file():
        raise RulesFileNotFound(f"Rules file not found: {rules_path}")

    try:
        data = json.loads(rules_path.read_text(encoding="utf-8-sig"))
    except json.JSONDecodeError as e:
        raise RulesError(f"Rules file is not valid JSON: {rules_path}: {e}") from e

    rule_set = parse_rules(data)
    logger.debug("Loaded %d rules from %s", len(rule_set), rules_path)
    return rule_set


def rule_to_dict(rule: Rule) -> dict[str, Any]:
    return {
        "id": rule.id,
        "action": rule.action.value,
        "targetVersion": rule.target_version,
        "targetPolicy": rule.target_policy.value,
        "includeTransitive": rule.include_transitive,
        "upgrades": [
            {"from": upgrade.from_selector, "to": upgrade.to, "notes": upgrade.notes}
            for upgrade in rule.upgrades
        ],
    }


def rule_set_to_dict(rule_set: RuleSet) -> dict[str, Any]:
    """Serialize a RuleSet back to the rules document layout."""
    return {
        "schemaVersion": rule_set.schema_version,
        "defaultIncludeTransitive": rule_set.default_include_transitive,
        "packages": [rule_to_dict(rule) for rule in rule_set.rules.values()],
    }


def save_rules(path: str | Path, rule_set: RuleSet) -> None:
    """Write ``rule_set`` as an indented rules document."""
    rules_path = Path(path)
    rules_path.parent.mkdir(parents=True, exist_ok=True)
    rules_path.write_text(json.dumps(rule_set_to_dict(rule_set), indent=2) + "\n", encoding="utf-8")


def include_transitive_for(rule: Rule, rule_set: RuleSet) -> bool:
    if rule.include_transitive is not None:
        return rule.include_transitive
    return rule_set.default_include_transitive


def resolve(
    packages: Iterable[PackageRecord] | Mapping[str, PackageRecord],
    rule_set: RuleSet,
) -> list[tuple[PackageRecord, Rule]]:
    """Pair each aggregated package with its applicable rule.

    Packages without a rule are dropped, as are transitive packages whose
    rule (or the rule set default) excludes transitive dependencies.

    Args:
        packages: Aggregated packages, or the mapping returned by aggregate()
        rule_set: Rules keyed case-insensitively by package id

    Returns:
        (package, rule) pairs in package order
    """
    if isinstance(packages, Mapping):
        packages = packages.values()

    applicable = []
    for package in packages:
        rule = rule_set.get(package.id)
        if rule is None:
            continue
        if package.is_transitive and not include_transitive_for(rule, rule_set):
            logger.debug("Skipping transitive package %s", package.id)
            continue
        applicable.append((package, rule))
    return applicable
