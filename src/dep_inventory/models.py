"""Data models for dep-inventory."""

from pathlib import Path
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ── Manifest ──────────────────────────────────────────────────────────────

class ManifestDependencies(BaseModel):
    """Dependencies declared by one application's package.json."""

    internal_dependencies: list[str] = Field(default_factory=list)
    other_dependencies: list[str] = Field(default_factory=list)
    all_dependencies: dict[str, str] = Field(default_factory=dict)


# ── Installed metadata ────────────────────────────────────────────────────

class DependencyMetadata(BaseModel):
    """Fields read from an installed dependency's own package.json."""

    model_config = ConfigDict(extra="ignore")

    name: str
    version: str
    description: Optional[str] = None

    @field_validator("description", mode="before")
    @classmethod
    def _stringify_description(cls, value: object) -> Optional[str]:
        # Some published manifests carry non-string descriptions
        return value if value is None or isinstance(value, str) else str(value)


# ── Aggregate report ──────────────────────────────────────────────────────

class ResolutionFailure(BaseModel):
    """A dependency (or a whole application) skipped in keep-going mode."""

    application: Path
    identifier: Optional[str] = None  # None when the install itself failed
    error: str


class VersionConflict(BaseModel):
    """Same identifier declared with different specifiers across applications."""

    identifier: str
    resolved_from: Path
    specifiers: dict[str, str] = Field(default_factory=dict)  # root -> spec


class AggregateReport(BaseModel):
    """Ordered unique dependencies plus their name/version/description."""

    dependencies: list[str] = Field(default_factory=list)
    names: dict[str, str] = Field(default_factory=dict)
    versions: dict[str, str] = Field(default_factory=dict)
    descriptions: dict[str, Optional[str]] = Field(default_factory=dict)
    failures: list[ResolutionFailure] = Field(default_factory=list)
    conflicts: list[VersionConflict] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.dependencies)

    @property
    def is_partial(self) -> bool:
        """True if some dependencies were skipped because they failed."""
        return bool(self.failures)

    def rows(self) -> Iterator[tuple[str, str, str]]:
        """Yield (name, version, description) in report order."""
        for identifier in self.dependencies:
            yield (
                self.names[identifier],
                self.versions[identifier],
                self.descriptions.get(identifier) or "",
            )
