"""Bundle path discovery on the landing page and inside the main bundle."""

from __future__ import annotations

import pytest

from SpecSync.BundleSync.errors import DiscoveryError
from SpecSync.BundleSync.locator import BundleLocator, locate_data_bundle, locate_main_bundle
from SpecSync.BundleSync.settings import SourceSettings


def test_main_bundle_found_in_head():
    html = (
        '<html><head><link rel="stylesheet" href="/assets/main-9f8e.css">'
        '<script type="module" src="/assets/main-B1x_7Qz.js"></script></head>'
        "<body></body></html>"
    )

    assert locate_main_bundle(html) == "/assets/main-B1x_7Qz.js"


def test_main_bundle_search_is_restricted_to_head():
    html = (
        '<html><head><script src="/assets/main-head.js"></script></head>'
        '<body><script src="/assets/main-body.js"></script></body></html>'
    )

    assert locate_main_bundle(html) == "/assets/main-head.js"


def test_main_bundle_in_body_only_is_not_found_when_head_exists():
    html = '<html><head><title>Docs</title></head><body><script src="/assets/main-x.js"></script></body></html>'

    with pytest.raises(DiscoveryError):
        locate_main_bundle(html)


def test_main_bundle_falls_back_to_whole_document_without_head():
    html = "<script type=module src=/assets/main-abc.js></script>"

    assert locate_main_bundle(html) == "/assets/main-abc.js"


def test_main_bundle_head_tag_is_case_insensitive():
    html = "<HTML><HEAD><SCRIPT SRC='/assets/main-Q.js'></SCRIPT></HEAD></HTML>"

    assert locate_main_bundle(html) == "/assets/main-Q.js"


def test_main_bundle_first_match_wins():
    html = '<head><script src="/assets/main-one.js"></script><script src="/assets/main-two.js"></script></head>'

    assert locate_main_bundle(html) == "/assets/main-one.js"


def test_missing_main_bundle_raises_discovery_error():
    with pytest.raises(DiscoveryError, match="main script path") as excinfo:
        locate_main_bundle("<html><head></head><body>nothing</body></html>")
    assert excinfo.value.pattern


@pytest.mark.parametrize(
    "source, expected",
    [
        ('import("/assets/openapi-data-Ab12.js")', "/assets/openapi-data-Ab12.js"),
        ('n(()=>import("./assets/openapi-data-Ab12.js"),[])', "/assets/openapi-data-Ab12.js"),
        ('const m=["assets/openapi-data-Ab12.js"]', "/assets/openapi-data-Ab12.js"),
        ("x=`assets/openapi-data-q-Z.js`", "/assets/openapi-data-q-Z.js"),
    ],
)
def test_data_bundle_path_always_has_leading_slash(source, expected):
    assert locate_data_bundle(source) == expected


def test_data_bundle_first_match_wins():
    source = 'a("assets/openapi-data-first.js");b("assets/openapi-data-second.js")'

    assert locate_data_bundle(source) == "/assets/openapi-data-first.js"


def test_missing_data_bundle_raises_discovery_error():
    with pytest.raises(DiscoveryError, match="openapi-data"):
        locate_data_bundle('import("./assets/vendor-123.js")')


def test_locator_patterns_follow_settings():
    locator = BundleLocator(
        SourceSettings(main_bundle_prefix="/static/app.", data_bundle_prefix="/static/specs.", bundle_suffix=".mjs")
    )

    assert locator.locate_main_bundle('<head><script src="/static/app.77.mjs"></script></head>') == "/static/app.77.mjs"
    assert locator.locate_data_bundle('import("static/specs.1f.mjs")') == "/static/specs.1f.mjs"


def test_module_helpers_accept_custom_settings():
    config = SourceSettings(main_bundle_prefix="/js/entry-", data_bundle_prefix="js/specs-")

    assert locate_main_bundle('<head><script src="/js/entry-9.js"></script></head>', config) == "/js/entry-9.js"
    assert locate_data_bundle('import("./js/specs-4.js")', config) == "/js/specs-4.js"
    with pytest.raises(DiscoveryError):
        locate_main_bundle('<head><script src="/assets/main-9.js"></script></head>', config)
