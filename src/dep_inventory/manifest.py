"""Manifest reader — declared dependencies of one application."""

import json
from pathlib import Path
from typing import Iterable

import structlog

from dep_inventory.errors import ParseError
from dep_inventory.models import ManifestDependencies

log = structlog.get_logger("dep_inventory.manifest")

MANIFEST_NAME = "package.json"
DEFAULT_INTERNAL_PREFIXES: tuple[str, ...] = ("@minus5",)
DEPENDENCY_GROUPS = ("dependencies", "devDependencies")


def is_internal(identifier: str, prefixes: Iterable[str]) -> bool:
    """True if *identifier* belongs to one of the internal namespaces."""
    return any(identifier.startswith(p) for p in prefixes)


def read_manifest(
    path: Path,
    internal_prefixes: Iterable[str] = DEFAULT_INTERNAL_PREFIXES,
) -> ManifestDependencies:
    """Load a package.json and partition its runtime + dev dependencies.

    Both groups are merged into one mapping; a key present in both keeps
    its runtime position and takes the devDependencies specifier.
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ParseError(path, e.strerror or str(e)) from e
    except UnicodeDecodeError as e:
        raise ParseError(path, f"invalid UTF-8 ({e})") from e
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ParseError(path, f"invalid JSON ({e})") from e
    if not isinstance(data, dict):
        raise ParseError(path, "top-level value is not an object")

    all_deps: dict[str, str] = {}
    for group in DEPENDENCY_GROUPS:
        section = data.get(group) or {}
        if not isinstance(section, dict):
            raise ParseError(path, f"'{group}' is not an object")
        all_deps.update({name: str(spec) for name, spec in section.items()})

    prefixes = tuple(internal_prefixes)
    internal = [d for d in all_deps if is_internal(d, prefixes)]
    other = [d for d in all_deps if not is_internal(d, prefixes)]

    log.debug(
        "manifest.read",
        path=str(path),
        internal=len(internal),
        other=len(other),
    )
    return ManifestDependencies(
        internal_dependencies=internal,
        other_dependencies=other,
        all_dependencies=all_deps,
    )
