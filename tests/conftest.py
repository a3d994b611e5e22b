"""Pytest configuration and fixtures."""

import json
from pathlib import Path
from typing import Optional

import pytest

from dep_inventory.errors import InstallationError


def _write_json(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))


def install_packages(root: Path, packages: dict[str, dict]) -> None:
    """Lay out node_modules/<id>/package.json for each package."""
    (root / "node_modules").mkdir(parents=True, exist_ok=True)
    for identifier, metadata in packages.items():
        _write_json(root / "node_modules" / identifier / "package.json", metadata)


class FakeInstaller:
    """Stands in for npm: installs staged packages on first request."""

    def __init__(self) -> None:
        self.calls: list[Path] = []
        self.installs: list[Path] = []
        self.staged: dict[Path, dict[str, dict]] = {}
        self.failing: set[Path] = set()

    def stage(self, root: Path, packages: dict[str, dict]) -> None:
        self.staged[Path(root).resolve()] = packages

    def fail(self, root: Path) -> None:
        self.failing.add(Path(root).resolve())

    async def ensure_materialized(self, root: Path) -> None:
        root = Path(root).resolve()
        self.calls.append(root)
        if root in self.failing:
            raise InstallationError(root, 1, "npm ERR! boom")
        if (root / "node_modules").is_dir():
            return
        self.installs.append(root)
        install_packages(root, self.staged.get(root, {}))


@pytest.fixture
def fake_installer():
    return FakeInstaller()


@pytest.fixture
def make_app(tmp_path):
    """Factory creating an application directory with a package.json."""

    def _make(
        name: str,
        dependencies: Optional[dict[str, str]] = None,
        dev_dependencies: Optional[dict[str, str]] = None,
        installed: Optional[dict[str, dict]] = None,
    ) -> Path:
        root = tmp_path / name
        root.mkdir()
        manifest: dict = {"name": name, "version": "0.0.0"}
        if dependencies is not None:
            manifest["dependencies"] = dependencies
        if dev_dependencies is not None:
            manifest["devDependencies"] = dev_dependencies
        _write_json(root / "package.json", manifest)
        if installed is not None:
            install_packages(root, installed)
        return root

    return _make
