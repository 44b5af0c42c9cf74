"""Find the content-hashed script bundles of the documentation site.

Asset file names change on every deploy, so they are located by pattern: the
main bundle from the landing page ``<head>``, and the specification data
bundle from the main bundle's source.  Both searches use the first match.  A
miss means the site layout changed and is reported as :class:`DiscoveryError`.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Pattern

from .errors import DiscoveryError
from .settings import SourceSettings

__all__ = ["BundleLocator", "locate_main_bundle", "locate_data_bundle"]

LOGGER = logging.getLogger(__name__)

_HEAD_PATTERN = re.compile(r"<head[^>]*>([\s\S]*?)</head>", re.IGNORECASE)


class BundleLocator:
    """Pattern-based lookup of the main and data bundle paths."""

    def __init__(self, config: Optional[SourceSettings] = None) -> None:
        self.config = config or SourceSettings()
        suffix = re.escape(self.config.bundle_suffix)
        # file name runs until a quote, backtick, whitespace, or closing '>' / ')'
        self.main_pattern: Pattern[str] = re.compile(
            re.escape(self.config.main_bundle_prefix) + r"[^\"'`\s>]+" + suffix + r"\b"
        )
        data_prefix = self.config.data_bundle_prefix.lstrip("/")
        self.data_pattern: Pattern[str] = re.compile(
            r"(?:/)?" + re.escape(data_prefix) + r"[^\"'`\s)]+" + suffix + r"\b"
        )

    def locate_main_bundle(self, html: str) -> str:
        """Return the main script path referenced from the page head.

        The whole document is searched when no ``<head>`` section is found.
        """

        head_match = _HEAD_PATTERN.search(html)
        search_space = head_match.group(1) if head_match and head_match.group(1) else html
        match = self.main_pattern.search(search_space)
        if match is None:
            raise DiscoveryError(
                "Could not find main script path in API docs HTML",
                pattern=self.main_pattern.pattern,
            )
        LOGGER.info("main bundle path: %s", match.group(0), extra={"stage": "discover"})
        return match.group(0)

    def locate_data_bundle(self, bundle_source: str) -> str:
        """Return the specification data bundle path, always with a leading ``/``."""

        match = self.data_pattern.search(bundle_source)
        if match is None:
            raise DiscoveryError(
                "Could not find openapi-data script path in main script",
                pattern=self.data_pattern.pattern,
            )
        path = match.group(0)
        if not path.startswith("/"):
            path = f"/{path}"
        LOGGER.info("data bundle path: %s", path, extra={"stage": "discover"})
        return path


def locate_main_bundle(html: str, config: Optional[SourceSettings] = None) -> str:
    """Shortcut for :meth:`BundleLocator.locate_main_bundle` with ``config`` patterns."""

    return BundleLocator(config).locate_main_bundle(html)


def locate_data_bundle(bundle_source: str, config: Optional[SourceSettings] = None) -> str:
    """Shortcut for :meth:`BundleLocator.locate_data_bundle` with ``config`` patterns."""

    return BundleLocator(config).locate_data_bundle(bundle_source)
