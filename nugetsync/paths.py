"""Repository path helpers."""

import hashlib
import os
import re
from pathlib import Path

_UNSAFE = re.compile(r"[^\w-]")


def sanitize(name: str) -> str:
    return _UNSAFE.sub("_", name)


def get_repo_key(repo_root: str | Path) -> str:
    """Stable output folder name for a repository: ``<name>_<8 hex chars>``."""
    root = str(repo_root)
    name = Path(root).name or "repo"
    digest = hashlib.sha256(root.encode("utf-8")).hexdigest()[:8]
    return f"{sanitize(name)}_{digest}"


def to_repo_relative_path(repo_root: str | Path, path: str | Path) -> str:
    """``path`` relative to ``repo_root``, always with forward slashes."""
    relative = os.path.relpath(Path(repo_root, path), repo_root)
    return relative.replace("\\", "/")
