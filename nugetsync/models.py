"""Core data models for NuGetSync."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Action(str, Enum):
    """What a rule asks for, or what a report row records."""

    UPGRADE = "upgrade"
    REMOVE = "remove"
    UP_TO_DATE = "up to date"


class TargetPolicy(str, Enum):
    """How a package's current version must relate to a rule's target."""

    HIGHER = "higher"
    EXACT_OR_HIGHER = "exact_or_higher"
    EXACT = "exact"
    EXACT_OR_LOWER = "exact_or_lower"
    LOWER = "lower"
    NONE = "none"

    @classmethod
    def coerce(cls, value: "str | TargetPolicy | None") -> "TargetPolicy":
        """Normalize a policy name; unknown or missing names mean exact_or_higher."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.EXACT_OR_HIGHER
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.EXACT_OR_HIGHER


@dataclass
class PackageInventory:
    """A package as listed under one target framework."""

    id: str
    requested_version: str | None = None
    resolved_version: str | None = None
    is_transitive: bool = False


@dataclass
class FrameworkInventory:
    """Packages resolved for one target framework moniker (tfm)."""

    tfm: str
    packages: list[PackageInventory] = field(default_factory=list)


@dataclass
class ProjectInventory:
    """One buildable project (csproj) and its per-framework listings."""

    csproj_path: str
    frameworks: list[FrameworkInventory] = field(default_factory=list)


@dataclass
class RepoInventory:
    """Everything collected for a single repository."""

    repo_root: str = ""
    project_url: str = ""
    repo_ref: str = ""
    branch_name: str = ""
    commit_sha: str = ""
    generated_at_utc: datetime | None = None
    projects: list[ProjectInventory] = field(default_factory=list)


@dataclass(frozen=True)
class PackageRecord:
    """A package after collapsing all of a project's framework listings."""

    id: str
    resolved_version: str | None
    is_transitive: bool
    frameworks: frozenset[str]


@dataclass(frozen=True)
class UpgradeNote:
    """Explanatory note attached to a rule, selected by the current version."""

    from_selector: str = "*"
    notes: str = ""
    to: str | None = None


@dataclass(frozen=True)
class Rule:
    """User-authored rule for a single package id."""

    id: str
    action: Action = Action.UPGRADE
    target_version: str | None = None
    target_policy: TargetPolicy = TargetPolicy.EXACT_OR_HIGHER
    include_transitive: bool | None = None
    upgrades: tuple[UpgradeNote, ...] = ()


@dataclass
class RuleSet:
    """Rules keyed case-insensitively by package id."""

    default_include_transitive: bool = False
    rules: dict[str, Rule] = field(default_factory=dict)
    schema_version: int = 1

    def get(self, package_id: str) -> Rule | None:
        return self.rules.get(package_id.lower())

    def upsert(self, rule: Rule) -> None:
        """Add a rule, replacing any existing rule for the same id."""
        self.rules[rule.id.lower()] = rule

    def __len__(self) -> int:
        return len(self.rules)


@dataclass
class ReportRow:
    """A single line of the change report."""

    project_url: str
    repo_ref: str
    csproj_path: str
    frameworks: str
    nuget_name: str
    is_transitive: bool
    action: str
    target_version: str
    comment: str
    date_updated: datetime | None = None
