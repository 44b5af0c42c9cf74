# === NAVMAP v1 ===
# {
#   "module": "SpecSync.BundleSync.reconcile",
#   "purpose": "Sanitize matched documents, request changelogs, and persist updated specs",
#   "sections": [
#     {"id": "sanitize-spec", "name": "sanitize_spec", "anchor": "function-sanitize-spec", "kind": "function"},
#     {"id": "diffserviceclient", "name": "DiffServiceClient", "anchor": "class-diffserviceclient", "kind": "class"},
#     {"id": "write-matched-spec", "name": "write_matched_spec", "anchor": "function-write-matched-spec", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Persistence of matched specification documents.

Recovered documents are sanitized before they leave the process: private chat
invitation links in ``info.description`` are replaced with a fixed token.  The
sanitized document is then diffed against the tracked copy by the remote
oasdiff service, and the spec, its changelog, and the canonical target file
are written.  Targets are persisted one at a time, so a failure on a later
target leaves earlier targets updated.
"""

from __future__ import annotations

import copy
import logging
import re
from typing import Any, Mapping, Optional

import httpx

from .errors import DiffServiceError
from .models import DiscoveredSpec, SpecDocument, SpecTarget, spec_title
from .settings import DiffServiceSettings
from .storage import dump_spec_json, write_text

__all__ = [
    "DEFAULT_REDACTION_TOKEN",
    "DiffServiceClient",
    "sanitize_spec",
    "write_matched_spec",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_REDACTION_TOKEN = "REDACTED_TGLINK"

_INVITE_LINK_PATTERN = re.compile(r"https://t\.me/joinchat/[A-Za-z0-9_-]+")


def sanitize_spec(document: Mapping[str, Any], token: str = DEFAULT_REDACTION_TOKEN) -> SpecDocument:
    """Return a deep copy of ``document`` with invitation links redacted.

    Only ``info.description`` is rewritten.  Applying the function to its own
    output is a no-op.

    Examples:
        >>> sanitize_spec({"info": {"description": "Chat https://t.me/joinchat/AbC123 today"}})
        {'info': {'description': 'Chat REDACTED_TGLINK today'}}
    """

    cloned: SpecDocument = copy.deepcopy(dict(document))
    info = cloned.get("info")
    if isinstance(info, dict) and isinstance(info.get("description"), str):
        info["description"] = _INVITE_LINK_PATTERN.sub(token, info["description"])
    return cloned


class DiffServiceClient:
    """Client for the oasdiff changelog endpoint."""

    def __init__(self, client: httpx.Client, config: Optional[DiffServiceSettings] = None) -> None:
        self.client = client
        self.config = config or DiffServiceSettings()

    def changelog(self, old_spec: Any, new_spec: Any, file_name: str) -> str:
        """Return a markdown changelog between ``old_spec`` and ``new_spec``.

        Raises:
            DiffServiceError: If the service answers with a non-success status
                or cannot be reached.
        """

        files = {
            "base": (f"{file_name}.old.json", dump_spec_json(old_spec).encode("utf-8"), "application/json"),
            "revision": (f"{file_name}.new.json", dump_spec_json(new_spec).encode("utf-8"), "application/json"),
        }
        endpoint = self.config.endpoint
        try:
            response = self.client.post(
                endpoint,
                files=files,
                headers={"accept": self.config.accept},
                timeout=self.config.timeout_sec,
            )
        except httpx.HTTPError as exc:
            raise DiffServiceError(
                f"oasdiff diff request failed for {file_name}: {exc}",
                file_name=file_name,
            ) from exc

        body = response.text
        if not response.is_success:
            snippet = body[: self.config.body_snippet_chars]
            raise DiffServiceError(
                f"oasdiff diff request failed for {file_name}. HTTP {response.status_code}. Body: {snippet}",
                file_name=file_name,
                status_code=response.status_code,
                body_snippet=snippet,
            )

        LOGGER.debug("changelog received for %s (%d chars)", file_name, len(body), extra={"stage": "diff"})
        return body if body.endswith("\n") else f"{body}\n"


def write_matched_spec(
    target: SpecTarget,
    discovered: DiscoveredSpec,
    diff_client: DiffServiceClient,
    *,
    redaction_token: str = DEFAULT_REDACTION_TOKEN,
) -> str:
    """Sanitize, diff, and persist one matched document.

    Returns:
        Summary line ``<file name> <= "<title>"`` for the run report.
    """

    sanitized = sanitize_spec(discovered.document, redaction_token)
    changelog = diff_client.changelog(target.current_spec, sanitized, target.file_name)
    spec_json = dump_spec_json(sanitized)
    write_text(target.result_path, spec_json)
    write_text(target.diff_result_path, changelog)
    write_text(target.target_path, spec_json)
    LOGGER.info(
        "updated %s from %r (version %s)",
        target.file_name,
        discovered.title,
        discovered.version,
        extra={"stage": "persist"},
    )
    return f'{target.file_name} <= "{spec_title(discovered.document)}"'

