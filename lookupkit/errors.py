"""Error kinds raised by lookup plugins and the registry.

Every failure carries the offending term (path, pattern, URL, command) so the
message is actionable; underlying causes are chained with ``raise ... from``.
"""
from __future__ import annotations

from typing import Optional


class LookupPluginError(Exception):
    """Base class for all lookup resolution failures."""

    def __init__(self, message: str, term: Optional[str] = None) -> None:
        super().__init__(message)
        self.term = term


class NotFoundError(LookupPluginError):
    """Raised when no plugin is registered under the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"lookup plugin '{name}' not found", term=name)
        self.name = name


class InvalidTermError(LookupPluginError):
    """Malformed glob pattern, non-terminating sequence, incomplete CSV spec."""


class SourceUnavailableError(LookupPluginError):
    """File, URL or command could not be read."""


class PersistenceError(LookupPluginError):
    """A directory or file could not be created or written."""


class NoMatchError(LookupPluginError):
    """first_found exhausted its candidates."""


class LookupCancelledError(LookupPluginError):
    """The caller cancelled the lookup (or its deadline passed)."""
