"""Version-control metadata for report rows."""

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

GIT_TIMEOUT = 10.0


def run_git(repo_root: str | Path, *args: str) -> str | None:
    """Run a git command, returning stripped stdout or None on any failure."""
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=str(repo_root),
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("git %s failed: %s", " ".join(args), e)
        return None

    if result.returncode != 0:
        logger.debug("git %s exited with %d", " ".join(args), result.returncode)
        return None
    output = result.stdout.strip()
    return output or None


def read_origin_url(git_config: Path) -> str | None:
    """Extract the ``origin`` remote url from a ``.git/config`` file."""
    if not git_config.is_file():
        return None

    in_origin = False
    for line in git_config.read_text(encoding="utf-8", errors="replace").splitlines():
        stripped = line.strip()
        if stripped.lower().startswith('[remote "origin"]'):
            in_origin = True
            continue
        if stripped.startswith("[") and stripped.endswith("]"):
            in_origin = False
            continue
        if in_origin and stripped.lower().startswith("url"):
            _, sep, value = stripped.partition("=")
            if sep:
                return value.strip()
    return None


def get_project_url(repo_root: str | Path) -> str | None:
    """The origin remote url, from git or straight from ``.git/config``."""
    url = run_git(repo_root, "remote", "get-url", "origin")
    if url:
        return url
    return read_origin_url(Path(repo_root, ".git", "config"))


def get_branch_name(repo_root: str | Path) -> str | None:
    branch = run_git(repo_root, "rev-parse", "--abbrev-ref", "HEAD")
    if branch and branch.upper() != "HEAD":
        return branch
    return None


def get_commit_sha(repo_root: str | Path) -> str | None:
    return run_git(repo_root, "rev-parse", "HEAD")


def get_repo_ref(repo_root: str | Path) -> str | None:
    """Branch name, else an exact tag, else the short commit sha."""
    branch = get_branch_name(repo_root)
    if branch:
        return branch

    tag = run_git(repo_root, "describe", "--tags", "--exact-match")
    if tag:
        return tag

    return run_git(repo_root, "rev-parse", "--short", "HEAD")
