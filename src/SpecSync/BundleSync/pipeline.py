# === NAVMAP v1 ===
# {
#   "module": "SpecSync.BundleSync.pipeline",
#   "purpose": "Orchestrate discovery, extraction, matching, and persistence for one sync run",
#   "sections": [
#     {"id": "syncreport", "name": "SyncReport", "anchor": "class-syncreport", "kind": "class"},
#     {"id": "run-sync", "name": "run_sync", "anchor": "function-run-sync", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""End-to-end sync run.

Stages run strictly in sequence, each consuming the full output of the one
before it::

    landing page -> main bundle path -> main bundle -> data bundle path
      -> data bundle -> sandbox extraction -> matching -> persistence

Any :class:`~SpecSync.BundleSync.errors.SpecSyncError` propagates unchanged
and ends the run.  There are no retries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import httpx

from .locator import BundleLocator
from .matching import MatchResult, match_discovered_specs
from .net import build_http_client, fetch_text, resolve_url
from .reconcile import DiffServiceClient, write_matched_spec
from .sandbox import JsSandbox, extract_specs
from .settings import SpecSyncSettings
from .storage import (
    clear_run_directories,
    ensure_output_dirs,
    read_expected_targets,
    write_raw_cache,
)

__all__ = ["SyncReport", "run_sync"]

LOGGER = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """Everything the run report prints."""

    docs_url: str
    main_script_url: str
    openapi_script_url: str
    match: MatchResult
    result_dir: Path
    target_dir: Path
    updated: List[str] = field(default_factory=list)
    dry_run: bool = False


def run_sync(
    settings: Optional[SpecSyncSettings] = None,
    *,
    client: Optional[httpx.Client] = None,
    dry_run: bool = False,
) -> SyncReport:
    """Synchronize tracked specs with the documents embedded in the docs site.

    Args:
        settings: Effective settings; defaults plus environment when omitted.
        client: HTTP client to use for every request; one is built from
            ``settings.http`` (and closed afterwards) when omitted.
        dry_run: Stop after matching. Nothing is deleted or written and the
            diff service is not called; ``updated`` lists the would-be updates.

    Raises:
        SpecSyncError: From whichever stage failed first.
    """

    cfg = settings or SpecSyncSettings()
    paths = cfg.paths
    owns_client = client is None
    http = client or build_http_client(cfg.http)
    LOGGER.debug("starting sync run", extra={"stage": "start", "config_hash": cfg.config_hash()})

    try:
        if not dry_run:
            clear_run_directories([paths.cache_dir, paths.result_dir])

        locator = BundleLocator(cfg.source)
        docs_url = cfg.source.docs_url

        docs_html = fetch_text(docs_url, client=http)
        main_script_url = resolve_url(docs_url, locator.locate_main_bundle(docs_html))

        main_script_source = fetch_text(main_script_url, client=http)
        openapi_script_url = resolve_url(docs_url, locator.locate_data_bundle(main_script_source))

        openapi_source = fetch_text(openapi_script_url, client=http)
        sandbox = JsSandbox(timeout_sec=cfg.sandbox.timeout_sec, max_memory_mb=cfg.sandbox.max_memory_mb)
        discovered = extract_specs(openapi_source, sandbox=sandbox)

        targets = read_expected_targets(paths.specs_dir, paths.result_dir)
        match = match_discovered_specs(targets, discovered)

        report = SyncReport(
            docs_url=docs_url,
            main_script_url=main_script_url,
            openapi_script_url=openapi_script_url,
            match=match,
            result_dir=paths.result_dir,
            target_dir=paths.specs_dir,
            dry_run=dry_run,
        )

        if dry_run:
            report.updated = [
                f'{targets[index].file_name} <= "{spec.title}"' for index, spec in match.matches.items()
            ]
            return report

        ensure_output_dirs([paths.raw_cache_dir, paths.result_dir])
        write_raw_cache(
            paths.raw_cache_dir,
            {main_script_url: main_script_source, openapi_script_url: openapi_source},
        )

        diff_client = DiffServiceClient(http, cfg.diff_service)
        for index, target in enumerate(targets):
            spec = match.matches.get(index)
            if spec is None:
                continue
            report.updated.append(
                write_matched_spec(
                    target,
                    spec,
                    diff_client,
                    redaction_token=cfg.sanitize.redaction_token,
                )
            )
        return report
    finally:
        if owns_client:
            http.close()
