# === NAVMAP v1 ===
# {
#   "module": "SpecSync.BundleSync",
#   "purpose": "Package initialization for SpecSync.BundleSync",
#   "sections": [
#     {"id": "getattr", "name": "__getattr__", "anchor": "function-getattr", "kind": "function"},
#     {"id": "dir", "name": "__dir__", "anchor": "function-dir", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Public API for syncing tracked OpenAPI specs from a documentation bundle.

The documentation site builds its specifications in browser-side script.  This
package locates the content-hashed bundles, runs the data bundle in a
disposable V8 sandbox, matches the recovered documents to the tracked spec
files by title, and persists sanitized updates with oasdiff changelogs.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Tuple

__version__ = "0.3.0"

_EXPORTS: Dict[str, Tuple[str, str]] = {
    "BundleLocator": ("locator", "BundleLocator"),
    "DiffServiceClient": ("reconcile", "DiffServiceClient"),
    "DiscoveredSpec": ("models", "DiscoveredSpec"),
    "JsSandbox": ("sandbox", "JsSandbox"),
    "MatchResult": ("matching", "MatchResult"),
    "SpecSyncError": ("errors", "SpecSyncError"),
    "SpecSyncSettings": ("settings", "SpecSyncSettings"),
    "SpecTarget": ("models", "SpecTarget"),
    "SyncReport": ("pipeline", "SyncReport"),
    "extract_specs": ("sandbox", "extract_specs"),
    "load_settings": ("settings", "load_settings"),
    "match_discovered_specs": ("matching", "match_discovered_specs"),
    "render_report": ("formatters", "render_report"),
    "run_sync": ("pipeline", "run_sync"),
    "sanitize_spec": ("reconcile", "sanitize_spec"),
    "title_key": ("models", "title_key"),
}

__all__ = ["__version__", *sorted(_EXPORTS)]


def __getattr__(name: str) -> Any:
    """Lazily import API exports so importing the package stays cheap."""

    target = _EXPORTS.get(name)
    if target is None:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
    module = import_module(f"{__name__}.{target[0]}")
    value = getattr(module, target[1])
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    """Expose lazily-populated attributes in ``dir()`` results."""

    return sorted(set(globals()) | set(__all__))
