"""Filesystem side of a sync run: tracked targets, run directories, artifacts."""

from __future__ import annotations

import json
import logging
import shutil
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Iterable, List, Mapping
from urllib.parse import urlparse

from .errors import ConfigurationError
from .models import SpecTarget

__all__ = [
    "clear_run_directories",
    "dump_spec_json",
    "ensure_output_dirs",
    "read_expected_targets",
    "write_raw_cache",
    "write_text",
]

LOGGER = logging.getLogger(__name__)


def _run_parallel(tasks: List[Callable[[], Any]]) -> None:
    """Run independent filesystem tasks concurrently; the first error propagates."""

    if not tasks:
        return
    with ThreadPoolExecutor(max_workers=len(tasks)) as executor:
        futures = [executor.submit(task) for task in tasks]
        for future in futures:
            future.result()


def read_expected_targets(specs_dir: Path, result_dir: Path) -> List[SpecTarget]:
    """Load every ``*.json`` file of ``specs_dir`` as a tracked target, sorted by name."""

    if not specs_dir.is_dir():
        raise ConfigurationError(f"Specs directory not found: {specs_dir}")

    file_names = sorted(
        entry.name for entry in specs_dir.iterdir() if entry.is_file() and entry.name.endswith(".json")
    )
    targets: List[SpecTarget] = []
    for file_name in file_names:
        target_path = specs_dir / file_name
        try:
            current_spec = json.loads(target_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"Cannot load tracked spec {target_path}: {exc}") from exc
        stem = file_name[: -len(".json")]
        targets.append(
            SpecTarget(
                file_name=file_name,
                target_path=target_path,
                result_path=result_dir / file_name,
                diff_result_path=result_dir / f"{stem}.diff.md",
                current_spec=current_spec,
            )
        )
    LOGGER.info("loaded %d tracked spec(s) from %s", len(targets), specs_dir, extra={"stage": "targets"})
    return targets


def _remove_tree(path: Path) -> None:
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return


def clear_run_directories(paths: Iterable[Path]) -> None:
    """Remove per-run directories left over from a previous run.

    A directory that does not exist is skipped; any other failure propagates.
    """

    _run_parallel([lambda p=path: _remove_tree(p) for path in paths])


def ensure_output_dirs(paths: Iterable[Path]) -> None:
    _run_parallel([lambda p=path: p.mkdir(parents=True, exist_ok=True) for path in paths])


def write_text(path: Path, text: str) -> None:
    path.write_text(text, encoding="utf-8")


def write_raw_cache(raw_cache_dir: Path, sources: Mapping[str, str]) -> List[Path]:
    """Write fetched bundle sources under their URL basenames (write-only cache)."""

    written: List[Path] = []
    tasks: List[Callable[[], Any]] = []
    for url, source in sources.items():
        destination = raw_cache_dir / Path(urlparse(url).path).name
        written.append(destination)
        tasks.append(lambda d=destination, s=source: write_text(d, s))
    _run_parallel(tasks)
    return written


def dump_spec_json(document: Any) -> str:
    """Serialize ``document`` with two-space indentation and a trailing newline."""

    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"
