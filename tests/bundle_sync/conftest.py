# === NAVMAP v1 ===
# {
#   "module": "tests.bundle_sync.conftest",
#   "purpose": "Shared fixtures for bundle sync tests: spec factories, targets, and a mocked docs site",
#   "sections": [
#     {"id": "fixtures", "name": "Fixtures", "anchor": "FIX", "kind": "fixtures"}
#   ]
# }
# === /NAVMAP ===

"""Shared fixtures for bundle sync tests."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from SpecSync.BundleSync.models import SpecTarget
from SpecSync.BundleSync.settings import SpecSyncSettings

DOCS_URL = "https://docs.example.test/api-docs"
MAIN_PATH = "/assets/main-AbC123.js"
DATA_PATH = "/assets/openapi-data-XyZ789.js"
DIFF_BASE_URL = "https://diff.example.test"
DIFF_TENANT = "tenant-1"


def build_spec(
    title: Optional[str],
    version: str = "1.0",
    *,
    description: Optional[str] = None,
    paths: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    info: Dict[str, Any] = {"version": version}
    if title is not None:
        info["title"] = title
    if description is not None:
        info["description"] = description
    return {
        "openapi": "3.0.1",
        "info": info,
        "paths": paths if paths is not None else {},
        "components": {},
    }


@pytest.fixture
def make_spec() -> Callable[..., Dict[str, Any]]:
    return build_spec


@pytest.fixture
def make_target(tmp_path: Path) -> Callable[..., SpecTarget]:
    def _make(file_name: str, spec: Dict[str, Any]) -> SpecTarget:
        return SpecTarget(
            file_name=file_name,
            target_path=tmp_path / "specs" / file_name,
            result_path=tmp_path / "result" / file_name,
            diff_result_path=tmp_path / "result" / file_name.replace(".json", ".diff.md"),
            current_spec=spec,
        )

    return _make


def data_bundle_source(specs: List[Dict[str, Any]]) -> str:
    """Render ``specs`` the way the site's build emits its data module."""

    names = [f"s{index}" for index in range(len(specs))]
    declarations = "\n".join(f"var {name} = {json.dumps(spec)};" for name, spec in zip(names, specs))
    exported = ", ".join(f"{name} as {name.upper()}" for name in names)
    return f"{declarations}\nexport {{ {exported} }};\n"


@pytest.fixture
def render_data_bundle() -> Callable[[List[Dict[str, Any]]], str]:
    return data_bundle_source


@dataclass
class DocsSite:
    """In-memory documentation site plus oasdiff endpoint."""

    html: str
    main_source: str
    data_source: str
    diff_status: Dict[str, int] = field(default_factory=dict)
    diff_body: str = "## Changes\n- none"
    requests: List[httpx.Request] = field(default_factory=list)
    diff_uploads: List[bytes] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if request.method == "GET":
            pages = {
                DOCS_URL: self.html,
                f"https://docs.example.test{MAIN_PATH}": self.main_source,
                f"https://docs.example.test{DATA_PATH}": self.data_source,
            }
            if url in pages:
                return httpx.Response(200, text=pages[url])
            return httpx.Response(404, text="not found")
        if request.method == "POST" and url == f"{DIFF_BASE_URL}/tenants/{DIFF_TENANT}/diff":
            body = request.read()
            self.diff_uploads.append(body)
            for file_name, status in self.diff_status.items():
                if f'filename="{file_name}.old.json"'.encode() in body:
                    return httpx.Response(status, text=f"failure for {file_name}")
            return httpx.Response(200, text=self.diff_body)
        return httpx.Response(405)

    def client(self) -> httpx.Client:
        from SpecSync.BundleSync.net import build_http_client

        return build_http_client(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def docs_site(make_spec: Callable[..., Dict[str, Any]]) -> DocsSite:
    html = (
        "<!doctype html><html><head>"
        f'<script type="module" crossorigin src="{MAIN_PATH}"></script>'
        "</head><body><div id=app></div></body></html>"
    )
    main_source = 'const routes=()=>import("./assets/openapi-data-XyZ789.js");export{routes};'
    specs = [
        make_spec("Public API", "1.0", description="Questions: https://t.me/joinchat/AbC123 please"),
        make_spec("Corporate API", "2.0"),
    ]
    return DocsSite(html=html, main_source=main_source, data_source=data_bundle_source(specs))


@pytest.fixture
def sync_settings(tmp_path: Path) -> SpecSyncSettings:
    specs_dir = tmp_path / "specs"
    specs_dir.mkdir()
    return SpecSyncSettings(
        source={"docs_url": DOCS_URL},
        paths={"specs_dir": specs_dir, "work_dir": tmp_path / "work"},
        diff_service={"base_url": DIFF_BASE_URL, "tenant_id": DIFF_TENANT},
        sandbox={"timeout_sec": 5.0},
    )


@pytest.fixture
def write_tracked_spec(sync_settings: SpecSyncSettings) -> Callable[[str, Dict[str, Any]], Path]:
    def _write(file_name: str, spec: Dict[str, Any]) -> Path:
        path = sync_settings.paths.specs_dir / file_name
        path.write_text(json.dumps(spec, indent=2) + "\n", encoding="utf-8")
        return path

    return _write
