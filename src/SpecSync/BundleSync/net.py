# === NAVMAP v1 ===
# {
#   "module": "SpecSync.BundleSync.net",
#   "purpose": "HTTPX client construction and the text fetcher used by the sync pipeline",
#   "sections": [
#     {"id": "helpers", "name": "Client construction helpers", "anchor": "HELP", "kind": "helpers"},
#     {"id": "api", "name": "Public API", "anchor": "API", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""HTTPX client and text fetcher for the documentation site."""

from __future__ import annotations

import logging
import ssl
from typing import Optional
from urllib.parse import urljoin

import certifi
import httpx

from .errors import FetchError
from .settings import HttpSettings

__all__ = ["build_http_client", "fetch_text", "resolve_url"]

LOGGER = logging.getLogger(__name__)

# --- Client construction helpers ----------------------------------------------


def _build_ssl_context() -> ssl.SSLContext:
    context = ssl.create_default_context()
    context.load_verify_locations(certifi.where())
    return context


def _timeout_for(config: HttpSettings) -> httpx.Timeout:
    return httpx.Timeout(
        connect=config.timeout_connect,
        read=config.timeout_read,
        write=config.timeout_read,
        pool=config.timeout_connect,
    )


def _request_hook(request: httpx.Request) -> None:
    LOGGER.debug("http-request", extra={"method": request.method, "url": str(request.url)})


def _response_hook(response: httpx.Response) -> None:
    LOGGER.debug(
        "http-response",
        extra={"url": str(response.request.url), "status": response.status_code},
    )


# --- Public API ----------------------------------------------------------------


def build_http_client(
    config: Optional[HttpSettings] = None,
    *,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """Create an HTTPX client carrying the toolkit user agent and timeouts.

    Args:
        config: HTTP settings; defaults are used when omitted.
        transport: Optional transport override (``httpx.MockTransport`` in tests).
    """

    cfg = config or HttpSettings()
    kwargs = {}
    if transport is not None:
        kwargs["transport"] = transport
    else:
        kwargs["verify"] = _build_ssl_context()
    return httpx.Client(
        headers={"user-agent": cfg.user_agent},
        timeout=_timeout_for(cfg),
        follow_redirects=cfg.follow_redirects,
        trust_env=cfg.trust_env,
        event_hooks={"request": [_request_hook], "response": [_response_hook]},
        **kwargs,
    )


def fetch_text(url: str, *, client: httpx.Client) -> str:
    """GET ``url`` and return its body as text.

    Raises:
        FetchError: On transport failure, a non-success status, or a body that
            is empty or whitespace only.
    """

    try:
        response = client.get(url)
    except httpx.HTTPError as exc:
        raise FetchError(f"Failed to fetch {url}: {exc}", url=url) from exc

    if not response.is_success:
        raise FetchError(
            f"Failed to fetch {url}. HTTP status: {response.status_code}",
            url=url,
            status_code=response.status_code,
        )

    body = response.text
    if not body.strip():
        raise FetchError(f"Fetched empty response body from {url}", url=url, status_code=response.status_code)

    LOGGER.info("fetched %s (%d chars)", url, len(body), extra={"stage": "fetch"})
    return body


def resolve_url(base_url: str, path: str) -> str:
    """Join a discovered asset ``path`` onto the page it was found from."""

    return urljoin(base_url, path)
