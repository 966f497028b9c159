"""Persisted user settings and the default file layout under the data root."""

import os
from pathlib import Path

import typer
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import SettingsError
from .inventory import INVENTORY_FILENAME
from .paths import get_repo_key
from .report import REPORT_FILENAME

APP_NAME = "NugetSync"
SETTINGS_ENV_VAR = "NUGETSYNC_SETTINGS"
RULES_FILENAME = "nugetsyncrules.json"
PACKAGES_FILENAME = "NugetSync.Packages.tsv"
MEGA_REPORT_FILENAME = "NugetSync.MegaReport.tsv"


class Settings(BaseModel):
    """Settings written by ``nugetsync init``."""

    model_config = ConfigDict(populate_by_name=True)

    data_root: str = Field(alias="dataRoot")

    @field_validator("data_root")
    @classmethod
    def validate_data_root(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("dataRoot is required")
        return v.strip()

    @property
    def rules_path(self) -> Path:
        return Path(self.data_root) / RULES_FILENAME

    @property
    def outputs_root(self) -> Path:
        return Path(self.data_root) / "outputs"

    @property
    def mega_report_path(self) -> Path:
        return Path(self.data_root) / MEGA_REPORT_FILENAME

    def repo_output_dir(self, repo_root: str | Path) -> Path:
        return self.outputs_root / get_repo_key(repo_root)

    def report_path(self, repo_root: str | Path) -> Path:
        return self.repo_output_dir(repo_root) / REPORT_FILENAME

    def inventory_path(self, repo_root: str | Path) -> Path:
        return self.repo_output_dir(repo_root) / INVENTORY_FILENAME

    def packages_path(self, repo_root: str | Path) -> Path:
        return self.repo_output_dir(repo_root) / PACKAGES_FILENAME


def get_settings_path() -> Path:
    """Location of settings.json; ``NUGETSYNC_SETTINGS`` overrides it."""
    override = os.environ.get(SETTINGS_ENV_VAR)
    if override:
        return Path(override)
    return Path(typer.get_app_dir(APP_NAME)) / "settings.json"


def load_settings() -> Settings:
    """Read the saved settings.

    Raises:
        SettingsError: If settings were never saved or are invalid
    """
    path = get_settings_path()
    if not path.is_file():
        raise SettingsError("Settings not found. Run: nugetsync init --data-root <path>")

    try:
        return Settings.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        raise SettingsError(
            f"Settings file is invalid ({path}). Run: nugetsync init --data-root <path>"
        ) from e


def save_settings(settings: Settings) -> Path:
    """Write ``settings`` and return the file it was written to."""
    path = get_settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(settings.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
    return path
