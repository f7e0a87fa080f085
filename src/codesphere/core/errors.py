"""
Error taxonomy for the analysis pipeline.

Only ``ROOT_NOT_FOUND`` ever aborts a run; it is returned as ``Err(ScanError)``.
The other kinds degrade gracefully and surface through ``Diagnostics``.
"""

from dataclasses import dataclass
from enum import StrEnum


class ErrorKind(StrEnum):
    ROOT_NOT_FOUND = "root_not_found"
    ENTRY_UNREADABLE = "entry_unreadable"
    PARSE_FAILURE = "parse_failure"
    UNRESOLVED_IMPORT = "unresolved_import"


@dataclass
class ScanError:
    """Structured error for scan operations."""
    message: str
    kind: ErrorKind = ErrorKind.ROOT_NOT_FOUND
    path: str | None = None
    cause: Exception | None = None

    @property
    def is_fatal(self) -> bool:
        return self.kind == ErrorKind.ROOT_NOT_FOUND


class ConfigError(ValueError):
    """Raised when a configuration file is unreadable or malformed."""


class LayoutStateError(RuntimeError):
    """Raised on an illegal layout state transition."""
