"""Error envelope shared by the expander, suite loading and the CLI.

Each error carries a stable code plus a location: the suite file and a dotted
path inside it (`tests[0].parameters[1].sources[0]`). Errors raised by
expand() itself have no file; their path points into the slot list (`slots[1]`).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional


@dataclass(frozen=True)
class ExpanderError(Exception):
    """Base error envelope. Carries a stable code plus where the problem was found."""

    code: str
    message: str
    file: Optional[str] = None
    path: Optional[str] = None

    nowhere: ClassVar[str] = "<suite>"

    def __str__(self) -> str:
        parts: list[str] = []
        if self.file:
            parts.append(self.file)
        if self.path:
            parts.append(self.path)
        loc = ":".join(parts) if parts else self.nowhere
        return f"{loc}: {self.code}: {self.message}"

    def in_suite(self, *, file: Optional[str], path: str) -> SuiteValidationError:
        """Re-locate this error inside a suite file, keeping code and message."""
        return SuiteValidationError(code=self.code, message=self.message, file=file, path=path)


class ConfigurationError(ExpanderError):
    """Slots or strategy cannot be expanded. Raised before any case is produced."""

    nowhere = "<slots>"


class SuiteLoadError(ExpanderError):
    pass


class SuiteValidationError(ExpanderError):
    pass
