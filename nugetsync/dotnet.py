"""dotnet CLI invocation: project discovery, restore and package listing."""

import asyncio
import logging
from pathlib import Path

from .errors import DotnetError, InventoryError
from .inventory import parse_dotnet_list_json
from .models import ProjectInventory
from .paths import to_repo_relative_path

logger = logging.getLogger(__name__)

EXCLUDED_DIRS = {"bin", "obj"}


def discover_targets(repo_root: str | Path) -> list[Path]:
    """Find every ``*.csproj`` below ``repo_root``, skipping bin/ and obj/."""
    root = Path(repo_root)
    targets = []
    for path in root.rglob("*.csproj"):
        relative_parts = path.relative_to(root).parts[:-1]
        if any(part.lower() in EXCLUDED_DIRS for part in relative_parts):
            continue
        targets.append(path)
    return sorted(targets, key=lambda p: str(p).lower())


class DotnetRunner:
    """Runs dotnet commands for a repository."""

    def __init__(self, repo_root: str | Path, executable: str = "dotnet"):
        self.repo_root = Path(repo_root)
        self.executable = executable

    async def _run(self, *args: str) -> str:
        """Run dotnet with ``args`` and return its standard output.

        Raises:
            DotnetError: If the process cannot start or exits non-zero
        """
        command = " ".join((self.executable, *args))
        logger.debug("Running %s", command)
        try:
            process = await asyncio.create_subprocess_exec(
                self.executable,
                *args,
                cwd=str(self.repo_root),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise DotnetError(f"Failed to start {self.executable}: {e}") from e

        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            error = stderr.decode("utf-8", errors="replace").strip()
            raise DotnetError(f"{command} failed: {error}")
        return stdout.decode("utf-8", errors="replace")

    async def restore(self, target: str | Path) -> None:
        await self._run("restore", str(target))

    async def list_packages_json(self, target: str | Path, include_transitive: bool = True) -> str:
        """Return the JSON package listing of ``target``."""
        args = ["list", str(target), "package", "--format", "json"]
        if include_transitive:
            args.append("--include-transitive")
        return await self._run(*args)

    async def collect_target(self, target: Path, include_transitive: bool = True) -> list[ProjectInventory]:
        """Restore and list one target.

        A target that fails or lists nothing is recorded as a project with no
        frameworks so the rest of the repository is still reported.
        """
        try:
            await self.restore(target)
            output = await self.list_packages_json(target, include_transitive)
            projects = parse_dotnet_list_json(output, self.repo_root)
        except (DotnetError, InventoryError) as e:
            logger.warning("Could not list packages for %s: %s", target, e)
            projects = []

        if not projects:
            return [ProjectInventory(csproj_path=to_repo_relative_path(self.repo_root, target))]
        return projects

    async def collect(self, targets: list[Path], include_transitive: bool = True) -> list[ProjectInventory]:
        """Collect all targets in order."""
        projects: list[ProjectInventory] = []
        for target in targets:
            projects.extend(await self.collect_target(target, include_transitive))
        return projects
