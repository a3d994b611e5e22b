"""Run configuration for dep-inventory."""

from pathlib import Path

from pydantic import BaseModel, Field

from dep_inventory.errors import ConfigurationError
from dep_inventory.manifest import DEFAULT_INTERNAL_PREFIXES
from dep_inventory.report import DEFAULT_OUTPUT


class InventoryConfig(BaseModel):
    """Everything one report run needs."""

    applications: list[Path] = Field(default_factory=list)
    output: Path = DEFAULT_OUTPUT
    internal_prefixes: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INTERNAL_PREFIXES)
    )
    max_concurrency: int = Field(default=4, ge=1)
    install_retries: int = Field(default=0, ge=0)
    keep_going: bool = False
    include_conflicts: bool = False
    npm_command: str = "npm"

    def require_applications(self) -> list[Path]:
        """Return the application roots, failing fast if there are none."""
        if not self.applications:
            raise ConfigurationError(
                "No applications given; pass at least one directory containing package.json"
            )
        return self.applications
