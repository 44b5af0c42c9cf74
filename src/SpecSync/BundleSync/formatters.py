"""Plain-text rendering of the run report printed on success."""

from __future__ import annotations

from typing import Iterable, List

from .matching import DuplicateTitle, UnmatchedTarget
from .pipeline import SyncReport

__all__ = [
    "format_bullets",
    "format_duplicate",
    "format_unmatched_target",
    "render_report",
]


def format_bullets(items: Iterable[str]) -> str:
    """One ``- item`` line per entry, or ``- none`` when there are no entries."""

    lines: List[str] = [f"- {item}" for item in items]
    return "\n".join(lines) if lines else "- none"


def format_unmatched_target(item: UnmatchedTarget) -> str:
    return f'{item.file_name} (title: "{item.title}")'


def format_duplicate(item: DuplicateTitle) -> str:
    return (
        f'"{item.title}" (x{item.count}) versions: [{", ".join(item.versions)}], '
        f'used: [{", ".join(item.used_versions)}]'
    )


def render_report(report: SyncReport) -> str:
    """Render ``report`` in the layout consumed by CI job summaries."""

    match = report.match
    header = "Dry run: no files written." if report.dry_run else "Specs updated."
    sections = [
        header,
        "",
        f"Docs: {report.docs_url}",
        f"Main script: {report.main_script_url}",
        f"OpenAPI script: {report.openapi_script_url}",
        "",
        "Targets:",
        format_bullets(report.updated),
        "",
        "Unmatched expected titles:",
        format_bullets(format_unmatched_target(item) for item in match.unmatched_expected),
        "",
        "Unmatched discovered titles:",
        format_bullets(f'"{title}"' for title in match.unmatched_discovered),
        "",
        "Duplicated discovered titles in source:",
        format_bullets(format_duplicate(item) for item in match.duplicated_discovered),
        "",
        f"Result dir: {report.result_dir}",
        f"Target dir: {report.target_dir}",
    ]
    return "\n".join(sections) + "\n"
