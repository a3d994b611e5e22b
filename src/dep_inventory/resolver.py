"""Metadata resolver — name/version/description of an installed dependency."""

import json
from pathlib import Path

import structlog
from pydantic import ValidationError

from dep_inventory.errors import ResolutionError
from dep_inventory.installer import MATERIALIZED_DIR, Installer
from dep_inventory.manifest import MANIFEST_NAME
from dep_inventory.models import DependencyMetadata

log = structlog.get_logger("dep_inventory.resolver")


def metadata_path(identifier: str, root: Path) -> Path:
    """Location of *identifier*'s package.json under *root*.

    Scoped names (``@scope/pkg``) map onto nested directories.
    """
    return Path(root) / MATERIALIZED_DIR / Path(*identifier.split("/")) / MANIFEST_NAME


class MetadataResolver:
    """Reads installed package metadata, materializing the app root first."""

    def __init__(self, installer: Installer) -> None:
        self.installer = installer

    async def ensure_materialized(self, root: Path) -> None:
        await self.installer.ensure_materialized(root)

    async def resolve(self, identifier: str, root: Path) -> DependencyMetadata:
        """Return the installed metadata of *identifier* declared by *root*."""
        await self.ensure_materialized(root)

        path = metadata_path(identifier, root)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ResolutionError(identifier, path, "not installed") from e
        except OSError as e:
            raise ResolutionError(identifier, path, e.strerror or str(e)) from e
        except UnicodeDecodeError as e:
            raise ResolutionError(identifier, path, f"invalid UTF-8 ({e})") from e
        except json.JSONDecodeError as e:
            raise ResolutionError(identifier, path, f"invalid JSON ({e})") from e
        if not isinstance(data, dict):
            raise ResolutionError(identifier, path, "top-level value is not an object")

        try:
            metadata = DependencyMetadata.model_validate(data)
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
            raise ResolutionError(identifier, path, f"bad fields: {fields}") from e

        log.debug(
            "resolver.resolved",
            identifier=identifier,
            version=metadata.version,
            root=str(root),
        )
        return metadata
