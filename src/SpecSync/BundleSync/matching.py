# === NAVMAP v1 ===
# {
#   "module": "SpecSync.BundleSync.matching",
#   "purpose": "Reconcile tracked specification targets with documents recovered from the bundle",
#   "sections": [
#     {"id": "records", "name": "Result records", "anchor": "REC", "kind": "api"},
#     {"id": "match", "name": "match_discovered_specs", "anchor": "function-match-discovered-specs", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Title-keyed matching of tracked targets against discovered documents.

Titles are the only link between a tracked file and a recovered document, and
they are neither unique nor stable in casing.  Matching therefore groups the
discovered documents by :func:`~SpecSync.BundleSync.models.title_key` into
first-in-first-out queues (enumeration order of the sandbox context) and walks
the targets in their given order, each target consuming the head of its
queue.  No re-sorting happens anywhere: which physical document satisfies
which target depends only on the two input orders.

Besides the match set, three anomaly views are produced:

* targets whose key has no (remaining) document,
* documents whose key no target asked for,
* keys carrying more than one document in total, with every version seen and
  the versions actually consumed.  This is the only signal that the source
  publishes several documents under one title.
"""

from __future__ import annotations

import logging
from collections import OrderedDict, deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Sequence

from .models import DiscoveredSpec, SpecTarget

__all__ = [
    "DuplicateTitle",
    "MatchResult",
    "UnmatchedTarget",
    "match_discovered_specs",
]

LOGGER = logging.getLogger(__name__)

# --- Result records -------------------------------------------------------------


@dataclass(frozen=True)
class UnmatchedTarget:
    """Tracked file for which no discovered document was available."""

    file_name: str
    title: str


@dataclass(frozen=True)
class DuplicateTitle:
    """Several discovered documents sharing one title key."""

    title: str
    count: int
    versions: List[str]
    used_versions: List[str]


@dataclass
class MatchResult:
    """Outcome of :func:`match_discovered_specs`.

    ``matches`` maps the index of a target in the input sequence to the handle
    it consumed, in ascending index order.
    """

    matches: Dict[int, DiscoveredSpec] = field(default_factory=dict)
    unmatched_expected: List[UnmatchedTarget] = field(default_factory=list)
    unmatched_discovered: List[str] = field(default_factory=list)
    duplicated_discovered: List[DuplicateTitle] = field(default_factory=list)


# --- Matching -------------------------------------------------------------------


def match_discovered_specs(
    targets: Sequence[SpecTarget],
    discovered: Sequence[DiscoveredSpec],
) -> MatchResult:
    """Pair every target with at most one discovered document.

    Args:
        targets: Tracked files in reporting order.
        discovered: Recovered documents in context enumeration order.

    Returns:
        :class:`MatchResult`; the function performs no I/O and is
        deterministic for fixed input order.
    """

    result = MatchResult()
    expected_keys = {target.key for target in targets}

    queues: "OrderedDict[str, Deque[DiscoveredSpec]]" = OrderedDict()
    for spec in discovered:
        queues.setdefault(spec.key, deque()).append(spec)

    consumed: Dict[str, List[DiscoveredSpec]] = {}
    for index, target in enumerate(targets):
        queue = queues.get(target.key)
        if not queue:
            result.unmatched_expected.append(UnmatchedTarget(file_name=target.file_name, title=target.title))
            continue
        selected = queue.popleft()
        result.matches[index] = selected
        consumed.setdefault(target.key, []).append(selected)

    for key, remaining in queues.items():
        used = consumed.get(key, [])
        total = len(used) + len(remaining)
        if total > 1:
            representative = remaining[0] if remaining else used[0]
            result.duplicated_discovered.append(
                DuplicateTitle(
                    title=representative.title,
                    count=total,
                    versions=[spec.version for spec in [*used, *remaining]],
                    used_versions=[spec.version for spec in used],
                )
            )

    for key, remaining in queues.items():
        if key in expected_keys:
            continue
        result.unmatched_discovered.extend(spec.title for spec in remaining)

    LOGGER.info(
        "matched %d of %d target(s) against %d discovered document(s)",
        len(result.matches),
        len(targets),
        len(discovered),
        extra={"stage": "match"},
    )
    return result
