"""Tab-separated report output."""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from .errors import ReportError
from .models import ReportRow, RepoInventory

logger = logging.getLogger(__name__)

REPORT_FILENAME = "NugetSync.Report.tsv"
REPORT_COLUMNS = (
    "ProjectUrl",
    "RepoRef",
    "CsprojPath",
    "Frameworks",
    "NugetName",
    "IsTransitive",
    "Action",
    "TargetVersion",
    "Comment",
    "DateUpdated",
)
PACKAGES_COLUMNS = (
    "ProjectUrl",
    "RepoRef",
    "CsprojPath",
    "Framework",
    "Package",
    "Version",
    "IsTransitive",
    "DateUpdated",
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def clean(value: str | None) -> str:
    """Replace characters that would break the TSV layout with spaces."""
    if not value:
        return ""
    return value.replace("\t", " ").replace("\r", " ").replace("\n", " ")


def quote(value: str | None) -> str:
    """Single-quote non-empty values so spreadsheets keep them as text."""
    if not value:
        return ""
    return f"'{value}'"


def format_bool(value: bool) -> str:
    return "TRUE" if value else "FALSE"


def format_date(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.strftime(DATE_FORMAT)


def format_row(row: ReportRow) -> str:
    return "\t".join(
        [
            clean(row.project_url),
            clean(row.repo_ref),
            clean(row.csproj_path),
            clean(row.frameworks),
            clean(row.nuget_name),
            format_bool(row.is_transitive),
            clean(row.action),
            quote(clean(row.target_version)),
            clean(row.comment),
            format_date(row.date_updated),
        ]
    )


def format_report(rows: Iterable[ReportRow]) -> str:
    """Render rows, header first, one line per row."""
    lines = ["\t".join(REPORT_COLUMNS)]
    lines.extend(format_row(row) for row in rows)
    return "\n".join(lines) + "\n"


def write_report_tsv(path: str | Path, rows: Iterable[ReportRow]) -> Path:
    """Write the change report to ``path``."""
    report_path = Path(path)
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(format_report(rows), encoding="utf-8")
    return report_path


def format_packages(inventory: RepoInventory) -> str:
    """Render the flat package listing of an inventory."""
    generated = inventory.generated_at_utc
    if generated is not None and generated.tzinfo is None:
        generated = generated.replace(tzinfo=timezone.utc)
    date_updated = format_date(generated.astimezone() if generated else None)

    lines = ["\t".join(PACKAGES_COLUMNS)]
    for project in inventory.projects:
        for framework in project.frameworks:
            for package in framework.packages:
                lines.append(
                    "\t".join(
                        [
                            clean(inventory.project_url),
                            clean(inventory.repo_ref),
                            clean(project.csproj_path),
                            clean(framework.tfm),
                            clean(package.id),
                            clean(package.resolved_version),
                            format_bool(package.is_transitive),
                            date_updated,
                        ]
                    )
                )
    return "\n".join(lines) + "\n"


def write_packages_tsv(path: str | Path, inventory: RepoInventory) -> Path:
    """Write every listed package, one row per framework occurrence."""
    packages_path = Path(path)
    packages_path.parent.mkdir(parents=True, exist_ok=True)
    packages_path.write_text(format_packages(inventory), encoding="utf-8")
    return packages_path


def find_reports(outputs_root: str | Path) -> list[Path]:
    """All per-repository reports under ``outputs_root``, sorted by path."""
    root = Path(outputs_root)
    if not root.is_dir():
        return []
    return sorted(root.rglob(REPORT_FILENAME), key=lambda p: str(p).lower())


def merge_reports(outputs_root: str | Path, output_path: str | Path) -> Path:
    """Concatenate every per-repository report into one file.

    The header is written once; blank lines are dropped.

    Raises:
        ReportError: If no report exists under ``outputs_root``
    """
    reports = find_reports(outputs_root)
    if not reports:
        raise ReportError("No report files found to merge.")

    merged: list[str] = []
    for report in reports:
        lines = report.read_text(encoding="utf-8-sig").splitlines()
        if not lines:
            continue
        header, body = lines[0], lines[1:]
        if not merged:
            merged.append(header)
        merged.extend(line for line in body if line)

    target = Path(output_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text("\n".join(merged) + "\n", encoding="utf-8")
    logger.info("Merged %d reports into %s", len(reports), target)
    return target
