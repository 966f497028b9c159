"""Tests for persisted settings."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from nugetsync.errors import SettingsError
from nugetsync.paths import get_repo_key
from nugetsync.settings import Settings, get_settings_path, load_settings, save_settings


class TestSettingsModel:
    def test_alias_and_name(self):
        assert Settings(dataRoot="/data").data_root == "/data"
        assert Settings(data_root="/data").data_root == "/data"

    @pytest.mark.parametrize("value", ["", "   "])
    def test_blank_data_root_rejected(self, value):
        with pytest.raises(ValidationError):
            Settings(data_root=value)

    def test_derived_paths(self):
        settings = Settings(data_root="/data")
        key = get_repo_key("/src/shop")

        assert settings.rules_path == Path("/data/nugetsyncrules.json")
        assert settings.mega_report_path == Path("/data/NugetSync.MegaReport.tsv")
        assert settings.report_path("/src/shop") == Path("/data/outputs", key, "NugetSync.Report.tsv")
        assert settings.inventory_path("/src/shop") == Path("/data/outputs", key, "NugetSync.Inventory.json")
        assert settings.packages_path("/src/shop") == Path("/data/outputs", key, "NugetSync.Packages.tsv")


class TestSettingsFile:
    def test_env_override(self, settings_file):
        assert get_settings_path() == settings_file

    def test_save_then_load(self, settings_file):
        path = save_settings(Settings(data_root="/data"))

        assert path == settings_file
        assert json.loads(settings_file.read_text()) == {"dataRoot": "/data"}
        assert load_settings().data_root == "/data"

    def test_load_missing(self, settings_file):
        with pytest.raises(SettingsError, match="nugetsync init"):
            load_settings()

    def test_load_invalid(self, settings_file):
        settings_file.parent.mkdir(parents=True)
        settings_file.write_text('{"dataRoot": ""}')
        with pytest.raises(SettingsError, match="invalid"):
            load_settings()
