"""Rule decision engine.

Turns a repository inventory and a rule set into ordered report rows. The
engine is pure: it performs no I/O and keeps no state between calls, so
separate inventories may be processed in parallel by the caller.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from .aggregate import aggregate, format_frameworks, project_frameworks
from .models import (
    Action,
    PackageRecord,
    ProjectInventory,
    ReportRow,
    RepoInventory,
    Rule,
    RuleSet,
)
from .patterns import select_comment
from .rules import resolve
from .versioning import needs_action

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def decide(package: PackageRecord, rule: Rule) -> tuple[Action, str] | None:
    """Decide what to do with an applicable package.

    Returns:
        (action, target version) when a row is due, None when the package
        already satisfies its rule or cannot be evaluated

    Raises:
        InvalidVersion: If the resolved or target version does not parse
    """
    if rule.action is Action.REMOVE:
        return Action.REMOVE, ""

    if _is_blank(rule.target_version) or _is_blank(package.resolved_version):
        return None

    if not needs_action(package.resolved_version, rule.target_version, rule.target_policy):
        return None
    return Action.UPGRADE, rule.target_version


def build_project_rows(
    inventory: RepoInventory,
    project: ProjectInventory,
    rule_set: RuleSet,
    clock: Clock = datetime.now,
) -> list[ReportRow]:
    """Rows for a single project; an "up to date" row when nothing is due."""
    packages = aggregate(project)
    rows = []

    for package, rule in resolve(packages, rule_set):
        decision = decide(package, rule)
        if decision is None:
            continue

        action, target_version = decision
        rows.append(
            ReportRow(
                project_url=inventory.project_url,
                repo_ref=inventory.repo_ref,
                csproj_path=project.csproj_path,
                frameworks=format_frameworks(package.frameworks),
                nuget_name=package.id,
                is_transitive=package.is_transitive,
                action=action.value,
                target_version=target_version,
                comment=select_comment(rule.upgrades, package.resolved_version),
                date_updated=clock(),
            )
        )
        logger.debug(
            "%s: %s %s -> %s",
            project.csproj_path,
            action.value,
            package.id,
            target_version or "-",
        )

    if not rows:
        rows.append(
            ReportRow(
                project_url=inventory.project_url,
                repo_ref=inventory.repo_ref,
                csproj_path=project.csproj_path,
                frameworks=format_frameworks(project_frameworks(project)),
                nuget_name="",
                is_transitive=False,
                action=Action.UP_TO_DATE.value,
                target_version="",
                comment="",
                date_updated=clock(),
            )
        )

    return rows


def build_rows(
    inventory: RepoInventory,
    rule_set: RuleSet,
    clock: Clock | None = None,
) -> list[ReportRow]:
    """Build the change report for every project of ``inventory``.

    Args:
        inventory: Projects in report order
        rule_set: The rules to apply
        clock: Returns the timestamp stamped on each row; defaults to the
            local wall clock

    Returns:
        Report rows in project order

    Raises:
        InvalidVersion: If a compared version does not parse; the whole
            build is abandoned rather than silently skipping the package
    """
    clock = clock or datetime.now
    rows: list[ReportRow] = []
    for project in inventory.projects:
        rows.extend(build_project_rows(inventory, project, rule_set, clock))
    return rows
