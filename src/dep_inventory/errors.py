"""Custom exceptions for dep-inventory."""

from pathlib import Path
from typing import Optional


class InventoryError(Exception):
    """Base exception for all dep-inventory errors."""


class ConfigurationError(InventoryError):
    """Raised when the run is misconfigured (e.g. no applications given)."""


class ParseError(InventoryError):
    """Raised when an application manifest is missing or not valid JSON."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read manifest {path}: {reason}")


class InstallationError(InventoryError):
    """Raised when the install step fails for an application root."""

    def __init__(self, root: Path, returncode: Optional[int], stderr: str = ""):
        self.root = root
        self.returncode = returncode
        self.stderr = stderr
        detail = f"exit {returncode}" if returncode is not None else "could not start"
        message = f"Install failed in {root} ({detail})"
        if stderr:
            message += f": {stderr}"
        super().__init__(message)


class ResolutionError(InventoryError):
    """Raised when an installed dependency's metadata cannot be read."""

    def __init__(self, identifier: str, path: Path, reason: str):
        self.identifier = identifier
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot resolve {identifier} from {path}: {reason}")


class ReportWriteError(InventoryError):
    """Raised when the rendered report cannot be written."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot write report {path}: {reason}")
