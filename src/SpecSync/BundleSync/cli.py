# === NAVMAP v1 ===
# {
#   "module": "SpecSync.BundleSync.cli",
#   "purpose": "Typer CLI for running and inspecting spec syncs",
#   "sections": [
#     {"id": "build-overrides", "name": "_build_overrides", "anchor": "function-build-overrides", "kind": "function"},
#     {"id": "main", "name": "main", "anchor": "function-main", "kind": "function"},
#     {"id": "update", "name": "update", "anchor": "function-update", "kind": "function"},
#     {"id": "show-settings", "name": "show_settings", "anchor": "function-show-settings", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Command line entry point.

Examples:
    $ specsync update
    $ specsync update --dry-run --docs-url https://example.org/api-docs
    $ specsync show-settings --config specsync.yaml

On success the run report goes to stdout.  Any failure is printed as a single
line on stderr and the process exits with status 1.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, NoReturn, Optional

import typer
from rich.console import Console

from . import __version__
from .errors import SpecSyncError
from .formatters import render_report
from .logging_utils import setup_logging
from .pipeline import run_sync
from .settings import load_settings

__all__ = ["app", "main", "cli_main"]

_err_console = Console(stderr=True, highlight=False, soft_wrap=True)

app = typer.Typer(
    name="specsync",
    help="Synchronize tracked OpenAPI specs with the documents embedded in a docs site bundle",
    no_args_is_help=True,
    add_completion=False,
)


def _fail(message: str) -> NoReturn:
    _err_console.print(" ".join(message.splitlines()), style="red", markup=False)
    raise typer.Exit(1)


def _build_overrides(
    *,
    docs_url: Optional[str] = None,
    specs_dir: Optional[Path] = None,
    work_dir: Optional[Path] = None,
    log_level: Optional[str] = None,
    sandbox_timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """Translate CLI flags into a nested settings override mapping."""

    overrides: Dict[str, Dict[str, Any]] = {}
    if docs_url is not None:
        overrides.setdefault("source", {})["docs_url"] = docs_url
    if specs_dir is not None:
        overrides.setdefault("paths", {})["specs_dir"] = specs_dir
    if work_dir is not None:
        overrides.setdefault("paths", {})["work_dir"] = work_dir
    if log_level is not None:
        overrides.setdefault("logging", {})["level"] = log_level
    if sandbox_timeout is not None:
        overrides.setdefault("sandbox", {})["timeout_sec"] = sandbox_timeout
    return overrides


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"specsync {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """specsync - keep specs/*.json in line with the live API docs."""


@app.command()
def update(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        envvar="SPECSYNC_CONFIG",
        help="Path to a YAML settings file",
    ),
    docs_url: Optional[str] = typer.Option(None, "--docs-url", help="Documentation landing page URL"),
    specs_dir: Optional[Path] = typer.Option(None, "--specs-dir", help="Directory of tracked *.json specs"),
    work_dir: Optional[Path] = typer.Option(
        None, "--work-dir", help="Directory holding the .cache and .result run directories"
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR"),
    sandbox_timeout: Optional[float] = typer.Option(
        None, "--sandbox-timeout", help="Wall-clock budget in seconds for bundle execution"
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Discover, extract and match only; write nothing and skip the diff service",
    ),
) -> None:
    """Fetch the docs bundles, extract the specs, and update matching files."""

    try:
        settings = load_settings(
            config,
            _build_overrides(
                docs_url=docs_url,
                specs_dir=specs_dir,
                work_dir=work_dir,
                log_level=log_level,
                sandbox_timeout=sandbox_timeout,
            ),
        )
        setup_logging(settings.logging)
        report = run_sync(settings, dry_run=dry_run)
    except (SpecSyncError, OSError) as exc:
        _fail(str(exc))
    typer.echo(render_report(report), nl=False)


@app.command("show-settings")
def show_settings(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        envvar="SPECSYNC_CONFIG",
        help="Path to a YAML settings file",
    ),
) -> None:
    """Print the effective settings as JSON."""

    try:
        settings = load_settings(config)
    except SpecSyncError as exc:
        _fail(str(exc))
    typer.echo(settings.model_dump_json(indent=2))


def cli_main() -> None:
    """Console script entry point."""

    app()
