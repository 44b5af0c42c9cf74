"""Data structures shared by extraction, matching, and persistence.

Recovered specification documents are plain JSON mappings.  Titles are not
unique across documents, and two structurally equal documents recovered from
one bundle are still two documents, so every recovered value is wrapped in a
:class:`DiscoveredSpec` handle whose equality is identity.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

__all__ = [
    "SpecDocument",
    "DiscoveredSpec",
    "SpecTarget",
    "is_spec_document",
    "spec_title",
    "spec_version",
    "title_key",
]

SpecDocument = Dict[str, Any]

_HANDLE_COUNTER = itertools.count(1)


def is_spec_document(value: Any) -> bool:
    """Return ``True`` when ``value`` has the shape of an OpenAPI document.

    The required shape is a JSON object with a string ``openapi`` version tag
    and object-valued ``paths`` and ``components``.  Anything else is not a
    specification document; there is no partial match.
    """

    return (
        isinstance(value, dict)
        and isinstance(value.get("openapi"), str)
        and isinstance(value.get("paths"), dict)
        and isinstance(value.get("components"), dict)
    )


def _info(document: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    info = document.get("info") if isinstance(document, Mapping) else None
    return info if isinstance(info, Mapping) else {}


def spec_title(document: Optional[Mapping[str, Any]], default: str = "Untitled") -> str:
    """Raw ``info.title`` of ``document`` or ``default`` when missing or empty."""

    title = _info(document).get("title")
    return str(title) if title else default


def spec_version(document: Optional[Mapping[str, Any]], default: str = "unknown") -> str:
    """Raw ``info.version`` of ``document`` or ``default`` when missing or empty."""

    version = _info(document).get("version")
    return str(version) if version else default


def title_key(title: Optional[str]) -> str:
    """Normalize a title into the key used for matching.

    Examples:
        >>> title_key("  Public API ")
        'public api'
        >>> title_key(None)
        ''
    """

    return str(title or "").strip().casefold()


@dataclass(eq=False)
class DiscoveredSpec:
    """Identity handle around one document recovered from a bundle."""

    document: SpecDocument
    handle: int = field(default_factory=lambda: next(_HANDLE_COUNTER))

    @property
    def title(self) -> str:
        return spec_title(self.document)

    @property
    def version(self) -> str:
        return spec_version(self.document)

    @property
    def key(self) -> str:
        return title_key(_info(self.document).get("title"))

    def __repr__(self) -> str:
        return f"DiscoveredSpec(handle={self.handle}, title={self.title!r}, version={self.version!r})"


@dataclass(frozen=True)
class SpecTarget:
    """One locally tracked specification file and where its outputs go."""

    file_name: str
    target_path: Path
    result_path: Path
    diff_result_path: Path
    current_spec: SpecDocument = field(compare=False, repr=False)

    @property
    def title(self) -> str:
        return spec_title(self.current_spec)

    @property
    def key(self) -> str:
        return title_key(_info(self.current_spec).get("title"))
