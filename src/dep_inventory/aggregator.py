"""Dependency aggregation across applications.

Walks applications in order, resolves metadata only for dependencies not
seen in an earlier application, and accumulates one ordered report.
"""

import asyncio
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

import structlog

from dep_inventory.errors import ConfigurationError, InstallationError, InventoryError
from dep_inventory.manifest import DEFAULT_INTERNAL_PREFIXES, MANIFEST_NAME, read_manifest
from dep_inventory.models import (
    AggregateReport,
    DependencyMetadata,
    ManifestDependencies,
    ResolutionFailure,
    VersionConflict,
)
from dep_inventory.resolver import MetadataResolver

log = structlog.get_logger("dep_inventory.aggregator")


class Aggregator:
    """Owns the accumulated report state for one aggregation run."""

    def __init__(
        self,
        resolver: MetadataResolver,
        internal_prefixes: Iterable[str] = DEFAULT_INTERNAL_PREFIXES,
        max_concurrency: int = 4,
        keep_going: bool = False,
        on_status: Optional[Callable[[str], None]] = None,
    ) -> None:
        if max_concurrency < 1:
            raise ConfigurationError("max_concurrency must be at least 1")
        self.resolver = resolver
        self.internal_prefixes = tuple(internal_prefixes)
        self.max_concurrency = max_concurrency
        self.keep_going = keep_going
        self._on_status = on_status or (lambda _: None)
        self._reset()

    # ── State ─────────────────────────────────────────────────────────────

    def _reset(self) -> None:
        self._dependencies: list[str] = []
        self._names: dict[str, str] = {}
        self._versions: dict[str, str] = {}
        self._descriptions: dict[str, Optional[str]] = {}
        self._resolved_from: dict[str, Path] = {}
        self._declared: dict[str, dict[str, str]] = {}
        self._failures: list[ResolutionFailure] = []

    def is_new(self, identifier: str) -> bool:
        """First-seen wins: only identifiers not yet recorded are resolved."""
        return identifier not in self._names

    def _record(self, identifier: str, metadata: DependencyMetadata, root: Path) -> None:
        self._dependencies.append(identifier)
        self._names[identifier] = metadata.name
        self._versions[identifier] = metadata.version
        self._descriptions[identifier] = metadata.description
        self._resolved_from[identifier] = root

    def _fail(self, root: Path, error: InventoryError, identifier: Optional[str] = None) -> None:
        log.warning(
            "aggregator.skipped",
            root=str(root),
            identifier=identifier,
            error=str(error),
        )
        self._failures.append(
            ResolutionFailure(application=root, identifier=identifier, error=str(error))
        )

    def _note_declarations(self, root: Path, manifest: ManifestDependencies) -> None:
        for identifier in manifest.other_dependencies:
            specs = self._declared.setdefault(identifier, {})
            specs.setdefault(str(root), manifest.all_dependencies[identifier])

    def _status(self, msg: str) -> None:
        self._on_status(msg)

    # ── Run ───────────────────────────────────────────────────────────────

    async def aggregate(self, applications: Sequence[Path]) -> AggregateReport:
        """Aggregate the dependencies of *applications*, in the given order."""
        if not applications:
            raise ConfigurationError("No applications given")
        self._reset()
        for root in applications:
            await self._aggregate_application(Path(root))
        log.info(
            "aggregator.done",
            applications=len(applications),
            dependencies=len(self._dependencies),
            failures=len(self._failures),
        )
        return self._snapshot()

    async def _aggregate_application(self, root: Path) -> None:
        self._status(f"start {root}")
        log.info("aggregator.app_start", root=str(root))

        manifest = read_manifest(root / MANIFEST_NAME, self.internal_prefixes)
        self._note_declarations(root, manifest)

        new = [d for d in manifest.other_dependencies if self.is_new(d)]
        if not new:
            log.info("aggregator.app_skipped", root=str(root), reason="nothing new")
            self._status(f"done {root}")
            return

        try:
            await self.resolver.ensure_materialized(root)
        except InstallationError as e:
            if not self.keep_going:
                raise
            self._fail(root, e)
            self._status(f"failed {root}")
            return

        results = await self._resolve_all(new, root)

        # Merge only after every resolution finished
        for identifier, result in zip(new, results):
            if isinstance(result, InventoryError):
                self._fail(root, result, identifier)
            elif isinstance(result, BaseException):
                raise result
            else:
                self._record(identifier, result, root)

        log.info("aggregator.app_done", root=str(root), resolved=len(new))
        self._status(f"done {root}")

    async def _resolve_all(self, identifiers: list[str], root: Path) -> list:
        """Resolve *identifiers* concurrently, bounded by max_concurrency."""
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _one(identifier: str) -> DependencyMetadata:
            async with semaphore:
                return await self.resolver.resolve(identifier, root)

        tasks = [asyncio.ensure_future(_one(d)) for d in identifiers]
        try:
            return await asyncio.gather(*tasks, return_exceptions=self.keep_going)
        except BaseException:
            # First failure aborts the application; stop the siblings too
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    # ── Result ────────────────────────────────────────────────────────────

    def _conflicts(self) -> list[VersionConflict]:
        conflicts: list[VersionConflict] = []
        for identifier in self._dependencies:
            specs = self._declared.get(identifier, {})
            if len(set(specs.values())) > 1:
                conflicts.append(
                    VersionConflict(
                        identifier=identifier,
                        resolved_from=self._resolved_from[identifier],
                        specifiers=dict(specs),
                    )
                )
        return conflicts

    def _snapshot(self) -> AggregateReport:
        conflicts = self._conflicts()
        for c in conflicts:
            log.warning(
                "aggregator.version_conflict",
                identifier=c.identifier,
                resolved_from=str(c.resolved_from),
                specifiers=c.specifiers,
            )
        return AggregateReport(
            dependencies=list(self._dependencies),
            names=dict(self._names),
            versions=dict(self._versions),
            descriptions=dict(self._descriptions),
            failures=list(self._failures),
            conflicts=conflicts,
        )
