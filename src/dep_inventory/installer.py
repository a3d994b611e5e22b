"""Dependency materialization — runs the package manager in an app root."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Protocol, Sequence, runtime_checkable

import structlog

from dep_inventory.errors import InstallationError

log = structlog.get_logger("dep_inventory.installer")

MATERIALIZED_DIR = "node_modules"


@runtime_checkable
class Installer(Protocol):
    """Interface for anything that can materialize an application's deps."""

    async def ensure_materialized(self, root: Path) -> None: ...


class NpmInstaller:
    """Runs ``npm install`` in roots that have no node_modules yet.

    Installs are serialized per root; once a root is materialized it is
    never installed again during the lifetime of this instance.
    """

    def __init__(
        self,
        command: Sequence[str] = ("npm", "install"),
        retries: int = 0,
    ) -> None:
        self.command = list(command)
        self.retries = max(retries, 0)
        self._locks: dict[Path, asyncio.Lock] = {}
        self._materialized: set[Path] = set()

    def is_materialized(self, root: Path) -> bool:
        root = Path(root).resolve()
        return root in self._materialized or (root / MATERIALIZED_DIR).is_dir()

    async def ensure_materialized(self, root: Path) -> None:
        """Install dependencies in *root* unless node_modules already exists."""
        root = Path(root).resolve()
        if root in self._materialized:
            return
        lock = self._locks.setdefault(root, asyncio.Lock())
        async with lock:
            # Another caller may have finished while we waited
            if self.is_materialized(root):
                self._materialized.add(root)
                return
            await self._install(root)
            self._materialized.add(root)

    async def _install(self, root: Path) -> None:
        attempts = self.retries + 1
        for attempt in range(1, attempts + 1):
            log.info("installer.install_start", root=str(root), attempt=attempt)
            try:
                await _run(self.command, root)
            except InstallationError as e:
                if attempt >= attempts:
                    log.error(
                        "installer.install_failed",
                        root=str(root),
                        returncode=e.returncode,
                    )
                    raise
                log.warning(
                    "installer.install_retry",
                    root=str(root),
                    attempt=attempt,
                    returncode=e.returncode,
                )
            else:
                log.info("installer.install_done", root=str(root))
                return


async def _run(cmd: list[str], cwd: Path) -> None:
    """Run *cmd* in *cwd*, raising InstallationError on failure."""
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise InstallationError(cwd, None, str(e)) from e
    _, stderr = await proc.communicate()
    if proc.returncode != 0:
        raise InstallationError(
            cwd, proc.returncode, stderr.decode(errors="replace").strip()
        )
