"""Collapse a project's per-framework package listings into one record per id."""

from functools import reduce

from .models import PackageInventory, PackageRecord, ProjectInventory
from .versioning import try_parse

PackageMap = dict[str, PackageRecord]


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def is_higher_version(candidate: str | None, existing: str | None) -> bool:
    """Whether ``candidate`` should replace ``existing`` as the resolved version.

    Any non-blank candidate replaces a missing version. Otherwise both must
    parse and the candidate must be strictly greater; unparsable candidates
    never override.
    """
    if _is_blank(candidate):
        return False
    if _is_blank(existing):
        return True

    candidate_version = try_parse(candidate)
    existing_version = try_parse(existing)
    if candidate_version is None or existing_version is None:
        return False
    return candidate_version > existing_version


def _add_framework(frameworks: frozenset[str], tfm: str) -> frozenset[str]:
    if any(existing.lower() == tfm.lower() for existing in frameworks):
        return frameworks
    return frameworks | {tfm}


def merge_occurrence(acc: PackageMap, tfm: str, package: PackageInventory) -> PackageMap:
    """Fold one framework occurrence of a package into the accumulator.

    Returns a new mapping; records are replaced, never mutated. Keys are the
    lower-cased package id and insertion order follows first appearance.
    """
    key = package.id.lower()
    existing = acc.get(key)

    if existing is None:
        record = PackageRecord(
            id=package.id,
            resolved_version=package.resolved_version,
            is_transitive=package.is_transitive,
            frameworks=frozenset({tfm}),
        )
    else:
        resolved = existing.resolved_version
        if is_higher_version(package.resolved_version, resolved):
            resolved = package.resolved_version
        record = PackageRecord(
            id=existing.id,
            resolved_version=resolved,
            # Direct anywhere means direct.
            is_transitive=existing.is_transitive and package.is_transitive,
            frameworks=_add_framework(existing.frameworks, tfm),
        )

    merged = dict(acc)
    merged[key] = record
    return merged


def iter_occurrences(project: ProjectInventory):
    """Yield (tfm, package) pairs in listing order."""
    for framework in project.frameworks:
        for package in framework.packages:
            yield framework.tfm, package


def aggregate(project: ProjectInventory) -> PackageMap:
    """Aggregate every package of ``project``.

    Args:
        project: A project with its per-framework listings

    Returns:
        Mapping of lower-cased package id to its aggregated record, in
        first-seen order
    """
    return reduce(
        lambda acc, occurrence: merge_occurrence(acc, *occurrence),
        iter_occurrences(project),
        {},
    )


def project_frameworks(project: ProjectInventory) -> list[str]:
    """All framework names of a project, de-duplicated case-insensitively."""
    seen: dict[str, str] = {}
    for framework in project.frameworks:
        seen.setdefault(framework.tfm.lower(), framework.tfm)
    return list(seen.values())


def format_frameworks(frameworks) -> str:
    """Sorted, comma-joined, case-insensitively de-duplicated framework names."""
    unique: dict[str, str] = {}
    for tfm in frameworks:
        unique.setdefault(tfm.upper(), tfm)
    # Ordinal ignore-case order compares upper-cased names.
    return ",".join(sorted(unique.values(), key=str.upper))
