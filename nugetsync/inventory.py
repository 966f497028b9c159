"""Inventory parsing and persistence.

Reads the JSON emitted by ``dotnet list package --format json`` and stores
the collected inventory as ``NugetSync.Inventory.json``.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from .errors import InventoryError
from .models import FrameworkInventory, PackageInventory, ProjectInventory, RepoInventory
from .paths import to_repo_relative_path

INVENTORY_FILENAME = "NugetSync.Inventory.json"


def _parse_listed_package(data: dict[str, Any], is_transitive: bool) -> PackageInventory:
    return PackageInventory(
        id=data.get("id") or "",
        requested_version=data.get("requestedVersion"),
        resolved_version=data.get("resolvedVersion"),
        is_transitive=is_transitive,
    )


def parse_dotnet_list_json(content: str, repo_root: str | Path) -> list[ProjectInventory]:
    """Parse ``dotnet list package --format json`` output.

    Args:
        content: The command's standard output
        repo_root: Repository root used to make project paths relative

    Returns:
        Projects in listing order; top-level packages precede transitive ones
        within each framework

    Raises:
        InventoryError: If the output is not valid JSON
    """
    try:
        document = json.loads(content)
    except json.JSONDecodeError as e:
        raise InventoryError(f"Unreadable dotnet list output: {e}") from e

    projects: list[ProjectInventory] = []
    if not isinstance(document, dict):
        return projects

    for project_data in document.get("projects") or []:
        if "path" not in project_data:
            continue

        project = ProjectInventory(
            csproj_path=to_repo_relative_path(repo_root, project_data.get("path") or "")
        )
        for framework_data in project_data.get("frameworks") or []:
            framework = FrameworkInventory(tfm=framework_data.get("framework") or "")
            for package_data in framework_data.get("topLevelPackages") or []:
                framework.packages.append(_parse_listed_package(package_data, False))
            for package_data in framework_data.get("transitivePackages") or []:
                framework.packages.append(_parse_listed_package(package_data, True))
            project.frameworks.append(framework)

        projects.append(project)

    return projects


def inventory_to_dict(inventory: RepoInventory) -> dict[str, Any]:
    return {
        "repoRoot": inventory.repo_root,
        "projectUrl": inventory.project_url,
        "repoRef": inventory.repo_ref,
        "branchName": inventory.branch_name,
        "commitSha": inventory.commit_sha,
        "generatedAtUtc": (
            inventory.generated_at_utc.isoformat() if inventory.generated_at_utc else None
        ),
        "projects": [
            {
                "csprojPath": project.csproj_path,
                "frameworks": [
                    {
                        "tfm": framework.tfm,
                        "packages": [
                            {
                                "id": package.id,
                                "requestedVersion": package.requested_version,
                                "resolvedVersion": package.resolved_version,
                                "isTransitive": package.is_transitive,
                            }
                            for package in framework.packages
                        ],
                    }
                    for framework in project.frameworks
                ],
            }
            for project in inventory.projects
        ],
    }


def _get(data: dict[str, Any], key: str, default: Any = None) -> Any:
    """Case-insensitive property lookup."""
    if not isinstance(data, dict):
        raise InventoryError(f"Expected a JSON object, got {data!r}")
    if key in data:
        return data[key]
    lowered = key.lower()
    for name, value in data.items():
        if name.lower() == lowered:
            return value
    return default


def _str_field(data: dict[str, Any], key: str) -> str | None:
    value = _get(data, key)
    if value is not None and not isinstance(value, str):
        raise InventoryError(f"'{key}' must be a string, got {value!r}")
    return value


def _bool_field(data: dict[str, Any], key: str) -> bool:
    value = _get(data, key, False)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise InventoryError(f"'{key}' must be true or false, got {value!r}")
    return value


def inventory_from_dict(data: dict[str, Any]) -> RepoInventory:
    """Build a RepoInventory from its JSON document.

    Raises:
        InventoryError: If the document layout is wrong
    """
    if not isinstance(data, dict):
        raise InventoryError("Inventory must be a JSON object")

    generated = _str_field(data, "generatedAtUtc")
    try:
        generated_at = datetime.fromisoformat(generated) if generated else None
    except ValueError as e:
        raise InventoryError(f"Invalid generatedAtUtc: {generated!r}") from e

    try:
        projects = [
            ProjectInventory(
                csproj_path=_str_field(project, "csprojPath") or "",
                frameworks=[
                    FrameworkInventory(
                        tfm=_str_field(framework, "tfm") or "",
                        packages=[
                            PackageInventory(
                                id=_str_field(package, "id") or "",
                                requested_version=_str_field(package, "requestedVersion"),
                                resolved_version=_str_field(package, "resolvedVersion"),
                                is_transitive=_bool_field(package, "isTransitive"),
                            )
                            for package in _get(framework, "packages") or []
                        ],
                    )
                    for framework in _get(project, "frameworks") or []
                ],
            )
            for project in _get(data, "projects") or []
        ]
    except TypeError as e:
        raise InventoryError(f"Malformed inventory: {e}") from e

    return RepoInventory(
        repo_root=_str_field(data, "repoRoot") or "",
        project_url=_str_field(data, "projectUrl") or "",
        repo_ref=_str_field(data, "repoRef") or "",
        branch_name=_str_field(data, "branchName") or "",
        commit_sha=_str_field(data, "commitSha") or "",
        generated_at_utc=generated_at,
        projects=projects,
    )


def write_inventory(path: str | Path, inventory: RepoInventory) -> Path:
    """Write ``inventory`` as indented JSON."""
    inventory_path = Path(path)
    inventory_path.parent.mkdir(parents=True, exist_ok=True)
    inventory_path.write_text(
        json.dumps(inventory_to_dict(inventory), indent=2) + "\n", encoding="utf-8"
    )
    return inventory_path


def read_inventory(path: str | Path) -> RepoInventory:
    """Load an inventory written by write_inventory().

    Raises:
        InventoryError: If the file is missing or malformed
    """
    inventory_path = Path(path)
    if not inventory_path.is_file():
        raise InventoryError(f"Inventory file not found: {inventory_path}")
    try:
        data = json.loads(inventory_path.read_text(encoding="utf-8-sig"))
    except json.JSONDecodeError as e:
        raise InventoryError(f"Inventory file is not valid JSON: {inventory_path}: {e}") from e
    return inventory_from_dict(data)
