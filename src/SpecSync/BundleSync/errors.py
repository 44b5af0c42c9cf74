# === NAVMAP v1 ===
# {
#   "module": "SpecSync.BundleSync.errors",
#   "purpose": "Define the exception hierarchy used across bundle discovery, extraction, and reconciliation",
#   "sections": [
#     {"id": "base", "name": "Base Exceptions", "anchor": "BAS", "kind": "api"},
#     {"id": "network", "name": "Fetch & Diff Service Errors", "anchor": "NET", "kind": "api"},
#     {"id": "pipeline", "name": "Discovery & Extraction Errors", "anchor": "PIP", "kind": "api"},
#     {"id": "configuration", "name": "Configuration Errors", "anchor": "CFG", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Exception hierarchy shared across bundle discovery, extraction, and persistence.

The sync run is a straight pipeline: fetch the documentation page, find the
script bundles, execute the data bundle, match what it yields against the
tracked specification files, and persist the results.  Every stage fails fast.
The classes below name the stage that failed so the CLI can print one
actionable line, while keeping the structured context (URL, status code,
pattern) available to callers that want it.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "SpecSyncError",
    "FetchError",
    "DiscoveryError",
    "ExtractionError",
    "DiffServiceError",
    "ConfigurationError",
]


class SpecSyncError(RuntimeError):
    """Base exception for every failure that aborts a sync run."""


class FetchError(SpecSyncError):
    """Raised when a text fetch returns a non-success status or an empty body."""

    def __init__(
        self,
        message: str,
        *,
        url: str,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class DiscoveryError(SpecSyncError):
    """Raised when an expected bundle reference is missing from fetched content."""

    def __init__(self, message: str, *, pattern: Optional[str] = None) -> None:
        super().__init__(message)
        self.pattern = pattern


class ExtractionError(SpecSyncError):
    """Raised when sandboxed execution fails, times out, or yields no documents."""

    def __init__(self, message: str, *, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


class DiffServiceError(SpecSyncError):
    """Raised when the remote changelog service answers with a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        file_name: str,
        status_code: Optional[int] = None,
        body_snippet: str = "",
    ) -> None:
        super().__init__(message)
        self.file_name = file_name
        self.status_code = status_code
        self.body_snippet = body_snippet


class ConfigurationError(SpecSyncError):
    """Raised when configuration files or tracked specification files are unreadable."""
