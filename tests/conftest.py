"""Pytest configuration and fixtures."""

import json
from datetime import datetime

import pytest

from nugetsync.models import (
    FrameworkInventory,
    PackageInventory,
    ProjectInventory,
    RepoInventory,
)

FIXED_NOW = datetime(2024, 5, 17, 9, 30, 0)


def build_project(path: str, frameworks: dict[str, list[tuple]]) -> ProjectInventory:
    """Build a project from ``{tfm: [(id, version, is_transitive), ...]}``."""
    return ProjectInventory(
        csproj_path=path,
        frameworks=[
            FrameworkInventory(
                tfm=tfm,
                packages=[
                    PackageInventory(id=pkg_id, resolved_version=version, is_transitive=transitive)
                    for pkg_id, version, transitive in packages
                ],
            )
            for tfm, packages in frameworks.items()
        ],
    )


@pytest.fixture
def make_project():
    """Factory for projects: ``make_project(path, {tfm: [(id, version, is_transitive)]})``."""
    return build_project


@pytest.fixture
def fixed_clock():
    """Clock returning a constant timestamp."""
    return lambda: FIXED_NOW


@pytest.fixture
def sample_inventory():
    """Inventory with two projects, one of them multi-targeted."""
    return RepoInventory(
        repo_root="/src/shop",
        project_url="https://git.example.com/shop.git",
        repo_ref="main",
        projects=[
            build_project(
                "src/Shop.Api/Shop.Api.csproj",
                {
                    "net8.0": [
                        ("Newtonsoft.Json", "12.0.3", False),
                        ("Serilog", "2.10.0", False),
                        ("System.Memory", "4.5.4", True),
                    ],
                    "net6.0": [
                        ("Newtonsoft.Json", "13.0.1", False),
                        ("Serilog", "2.10.0", False),
                    ],
                },
            ),
            build_project(
                "src/Shop.Core/Shop.Core.csproj",
                {"net8.0": [("Dapper", "2.1.35", False)]},
            ),
        ],
    )


@pytest.fixture
def sample_rules_document():
    """Rules document in the on-disk layout."""
    return {
        "schemaVersion": 1,
        "defaultIncludeTransitive": False,
        "packages": [
            {
                "id": "newtonsoft.json",
                "action": "upgrade",
                "targetVersion": "13.0.3",
                "targetPolicy": "exact_or_higher",
                "upgrades": [
                    {"from": "[12.0,13.0)", "to": "13.0.3", "notes": "Breaking: review serializer settings"},
                    {"from": "13.*", "to": "13.0.3", "notes": "Patch upgrade"},
                ],
            },
            {
                "id": "Serilog",
                "action": "remove",
                "targetPolicy": "none",
                "upgrades": [{"from": "*", "notes": "Use Microsoft.Extensions.Logging"}],
            },
        ],
    }


@pytest.fixture
def rules_file(tmp_path, sample_rules_document):
    """Rules document written to disk."""
    path = tmp_path / "nugetsyncrules.json"
    path.write_text(json.dumps(sample_rules_document))
    return path


@pytest.fixture
def dotnet_list_output():
    """Output of ``dotnet list package --format json --include-transitive``."""
    return json.dumps(
        {
            "version": 1,
            "parameters": "--include-transitive",
            "projects": [
                {
                    "path": "/repo/src/App/App.csproj",
                    "frameworks": [
                        {
                            "framework": "net8.0",
                            "topLevelPackages": [
                                {
                                    "id": "Newtonsoft.Json",
                                    "requestedVersion": "12.0.3",
                                    "resolvedVersion": "12.0.3",
                                }
                            ],
                            "transitivePackages": [
                                {"id": "System.Memory", "resolvedVersion": "4.5.4"}
                            ],
                        }
                    ],
                },
                {"path": "/repo/src/Empty/Empty.csproj"},
            ],
        }
    )


@pytest.fixture
def settings_file(tmp_path, monkeypatch):
    """Point settings at a temporary file."""
    path = tmp_path / "config" / "settings.json"
    monkeypatch.setenv("NUGETSYNC_SETTINGS", str(path))
    return path
