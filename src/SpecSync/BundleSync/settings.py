# === NAVMAP v1 ===
# {
#   "module": "SpecSync.BundleSync.settings",
#   "purpose": "Typed configuration models, environment overrides, and YAML loading for sync runs",
#   "sections": [
#     {"id": "sourcesettings", "name": "SourceSettings", "anchor": "class-sourcesettings", "kind": "class"},
#     {"id": "httpsettings", "name": "HttpSettings", "anchor": "class-httpsettings", "kind": "class"},
#     {"id": "sandboxsettings", "name": "SandboxSettings", "anchor": "class-sandboxsettings", "kind": "class"},
#     {"id": "diffservicesettings", "name": "DiffServiceSettings", "anchor": "class-diffservicesettings", "kind": "class"},
#     {"id": "pathsettings", "name": "PathSettings", "anchor": "class-pathsettings", "kind": "class"},
#     {"id": "loggingsettings", "name": "LoggingSettings", "anchor": "class-loggingsettings", "kind": "class"},
#     {"id": "sanitizesettings", "name": "SanitizeSettings", "anchor": "class-sanitizesettings", "kind": "class"},
#     {"id": "specsyncsettings", "name": "SpecSyncSettings", "anchor": "class-specsyncsettings", "kind": "class"},
#     {"id": "load-raw-yaml", "name": "load_raw_yaml", "anchor": "function-load-raw-yaml", "kind": "function"},
#     {"id": "load-settings", "name": "load_settings", "anchor": "function-load-settings", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Configuration models for the bundle sync pipeline.

Settings are grouped by concern (source site, HTTP, sandbox, diff service,
paths, logging) as frozen Pydantic models under a single
:class:`SpecSyncSettings` root.  The root is a ``pydantic-settings`` model so
every field can be overridden from the environment using the ``SPECSYNC_``
prefix and ``__`` as the nesting delimiter, e.g.
``SPECSYNC_SANDBOX__TIMEOUT_SEC=5``.

Precedence, lowest to highest: built-in defaults, environment variables, the
YAML file passed to :func:`load_settings`, explicit keyword overrides.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

__all__ = [
    "SourceSettings",
    "HttpSettings",
    "SandboxSettings",
    "DiffServiceSettings",
    "PathSettings",
    "LoggingSettings",
    "SanitizeSettings",
    "SpecSyncSettings",
    "load_raw_yaml",
    "load_settings",
]

DEFAULT_DOCS_URL = "https://monobank.ua/api-docs"
DEFAULT_USER_AGENT = "monobank-api-community-docs-spec-toolkit"
DEFAULT_OASDIFF_TENANT_ID = "b4153952-9781-4596-8bf9-fd286d626506"


class SourceSettings(BaseModel):
    """Where the documentation site lives and how its bundles are named."""

    model_config = ConfigDict(frozen=True)

    docs_url: str = Field(default=DEFAULT_DOCS_URL, description="Documentation landing page")
    main_bundle_prefix: str = Field(
        default="/assets/main-",
        description="Path prefix of the main script asset referenced from <head>",
    )
    data_bundle_prefix: str = Field(
        default="assets/openapi-data-",
        description="Path prefix of the specification data asset referenced from the main bundle",
    )
    bundle_suffix: str = Field(default=".js", description="File extension of script assets")

    @field_validator("docs_url")
    @classmethod
    def validate_docs_url(cls, value: str) -> str:
        """Require an absolute http(s) URL so relative bundle paths can be resolved."""

        stripped = value.strip()
        if not stripped.startswith(("http://", "https://")):
            raise ValueError(f"docs_url must be an absolute http(s) URL, got '{value}'")
        return stripped


class HttpSettings(BaseModel):
    """HTTP client settings used for page, bundle, and diff service requests."""

    model_config = ConfigDict(frozen=True)

    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent header value")
    timeout_connect: float = Field(default=10.0, gt=0.0, le=120.0)
    timeout_read: float = Field(default=60.0, gt=0.0, le=600.0)
    follow_redirects: bool = Field(default=True)
    trust_env: bool = Field(
        default=True,
        description="Honor HTTP(S)_PROXY and NO_PROXY environment variables",
    )


class SandboxSettings(BaseModel):
    """Limits applied to untrusted bundle execution."""

    model_config = ConfigDict(frozen=True)

    timeout_sec: float = Field(default=10.0, gt=0.0, le=600.0, description="Wall-clock budget")
    max_memory_mb: Optional[int] = Field(
        default=None,
        gt=0,
        description="Hard V8 heap limit; None leaves the engine default",
    )


class DiffServiceSettings(BaseModel):
    """Remote changelog (oasdiff) service settings."""

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(default="https://api.oasdiff.com")
    tenant_id: str = Field(default=DEFAULT_OASDIFF_TENANT_ID)
    accept: str = Field(default="text/markdown")
    body_snippet_chars: int = Field(default=600, ge=0, le=100_000)
    timeout_sec: float = Field(default=120.0, gt=0.0, le=900.0)

    @property
    def endpoint(self) -> str:
        """Diff endpoint for the configured tenant."""

        return f"{self.base_url.rstrip('/')}/tenants/{self.tenant_id}/diff"


class PathSettings(BaseModel):
    """Filesystem locations for tracked specs and per-run artifacts."""

    model_config = ConfigDict(frozen=True)

    specs_dir: Path = Field(default=Path("specs"), description="Tracked specification files")
    work_dir: Path = Field(default=Path(".ci"), description="Root for cache and result dirs")

    @field_validator("specs_dir", "work_dir", mode="before")
    @classmethod
    def normalize_dir(cls, value: Any) -> Path:
        return Path(value).expanduser()

    @property
    def cache_dir(self) -> Path:
        return self.work_dir / ".cache"

    @property
    def raw_cache_dir(self) -> Path:
        return self.cache_dir / "raw"

    @property
    def result_dir(self) -> Path:
        return self.work_dir / ".result"


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="WARNING", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    emit_json_logs: bool = Field(
        default=False,
        description="Render console records as JSON lines instead of plain text",
    )
    log_dir: Optional[Path] = Field(
        default=None,
        description="Directory for rotating JSONL log files; None disables file logging",
    )
    retention_days: int = Field(default=30, ge=1)
    max_log_size_mb: int = Field(default=20, gt=0)

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Normalize and validate logging level."""
        upper = str(v).upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if upper not in valid_levels:
            raise ValueError(f"level must be one of {sorted(valid_levels)}, got '{v}'")
        return upper

    def level_int(self) -> int:
        """Convert level string to logging module integer."""
        return logging.getLevelName(self.level)


class SanitizeSettings(BaseModel):
    """Content policy applied before any recovered document leaves the process."""

    model_config = ConfigDict(frozen=True)

    redaction_token: str = Field(default="REDACTED_TGLINK", min_length=1)


class SpecSyncSettings(BaseSettings):
    """Root settings object for a sync run."""

    model_config = SettingsConfigDict(
        env_prefix="SPECSYNC_",
        env_nested_delimiter="__",
        frozen=True,
        extra="ignore",
    )

    source: SourceSettings = Field(default_factory=SourceSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    sandbox: SandboxSettings = Field(default_factory=SandboxSettings)
    diff_service: DiffServiceSettings = Field(default_factory=DiffServiceSettings)
    paths: PathSettings = Field(default_factory=PathSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    sanitize: SanitizeSettings = Field(default_factory=SanitizeSettings)

    def config_hash(self) -> str:
        """Short stable fingerprint of the effective configuration."""

        payload = self.model_dump_json(exclude={"logging"})
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


def _deep_merge(base: MutableMapping[str, Any], overrides: Mapping[str, Any]) -> MutableMapping[str, Any]:
    for key, value in overrides.items():
        existing = base.get(key)
        if isinstance(existing, MutableMapping) and isinstance(value, Mapping):
            _deep_merge(existing, value)
        else:
            base[key] = value
    return base


def load_raw_yaml(config_path: Path) -> Dict[str, Any]:
    """Read ``config_path`` and return its top-level mapping."""

    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file {config_path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Config file {config_path} is not valid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping at top level")
    return data


def load_settings(
    config_path: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> SpecSyncSettings:
    """Build effective settings from defaults, environment, YAML, and overrides.

    Args:
        config_path: Optional YAML file whose sections mirror the settings models.
        overrides: Nested mapping applied last, typically built from CLI flags.

    Raises:
        ConfigurationError: If the file cannot be read or values fail validation.
    """

    data: Dict[str, Any] = load_raw_yaml(config_path) if config_path is not None else {}
    if overrides:
        _deep_merge(data, overrides)
    try:
        return SpecSyncSettings(**data)
    except ValidationError as exc:
        origin = f" from {config_path}" if config_path is not None else ""
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ConfigurationError(
            f"Invalid settings{origin}: {location}: {first.get('msg', 'invalid value')}"
        ) from exc
