"""Title-keyed FIFO matching of targets against discovered documents."""

from __future__ import annotations

import pytest

from SpecSync.BundleSync.matching import DuplicateTitle, UnmatchedTarget, match_discovered_specs
from SpecSync.BundleSync.models import DiscoveredSpec


@pytest.fixture
def discover(make_spec):
    def _discover(*entries):
        return [DiscoveredSpec(document=make_spec(title, version)) for title, version in entries]

    return _discover


def test_single_target_single_document(make_target, make_spec, discover):
    targets = [make_target("personal.json", make_spec("Public API"))]
    discovered = discover(("Public API", "1.0"))

    result = match_discovered_specs(targets, discovered)

    assert result.matches == {0: discovered[0]}
    assert result.unmatched_expected == []
    assert result.unmatched_discovered == []
    assert result.duplicated_discovered == []


def test_duplicate_titles_consume_first_discovered(make_target, make_spec, discover):
    targets = [make_target("personal.json", make_spec("Public API"))]
    discovered = discover(("Public API", "1.0"), ("Public API", "1.1"))

    result = match_discovered_specs(targets, discovered)

    assert result.matches[0] is discovered[0]
    assert result.matches[0].version == "1.0"
    assert result.unmatched_discovered == []
    assert result.duplicated_discovered == [
        DuplicateTitle(title="Public API", count=2, versions=["1.0", "1.1"], used_versions=["1.0"])
    ]


def test_case_and_whitespace_variants_share_a_queue(make_target, make_spec, discover):
    targets = [
        make_target("a.json", make_spec("public api")),
        make_target("b.json", make_spec("  PUBLIC API ")),
    ]
    discovered = discover(("Public API", "1.0"), ("Public API", "1.1"))

    result = match_discovered_specs(targets, discovered)

    assert result.matches[0] is discovered[0]
    assert result.matches[1] is discovered[1]
    assert result.duplicated_discovered == [
        DuplicateTitle(title="Public API", count=2, versions=["1.0", "1.1"], used_versions=["1.0", "1.1"])
    ]


def test_unknown_target_and_unexpected_document(make_target, make_spec, discover):
    targets = [make_target("x.json", make_spec("Foo"))]
    discovered = discover(("Bar", "1.0"))

    result = match_discovered_specs(targets, discovered)

    assert result.matches == {}
    assert result.unmatched_expected == [UnmatchedTarget(file_name="x.json", title="Foo")]
    assert result.unmatched_discovered == ["Bar"]
    assert result.duplicated_discovered == []


def test_more_targets_than_documents_under_a_key(make_target, make_spec, discover):
    targets = [
        make_target("a.json", make_spec("Public API")),
        make_target("b.json", make_spec("Public API")),
    ]
    discovered = discover(("Public API", "1.0"))

    result = match_discovered_specs(targets, discovered)

    assert list(result.matches) == [0]
    assert result.unmatched_expected == [UnmatchedTarget(file_name="b.json", title="Public API")]
    assert result.duplicated_discovered == []


def test_missing_titles_match_under_empty_key(make_target, make_spec, discover):
    targets = [make_target("anon.json", make_spec(None))]
    discovered = [DiscoveredSpec(document=make_spec(None, "0.1"))]

    result = match_discovered_specs(targets, discovered)

    assert result.matches == {0: discovered[0]}
    assert targets[0].title == "Untitled"


def test_duplicates_under_unexpected_key_are_reported_twice_over(make_target, make_spec, discover):
    targets = [make_target("a.json", make_spec("Public API"))]
    discovered = discover(("Public API", "1.0"), ("Legacy", "0.1"), ("legacy", "0.2"))

    result = match_discovered_specs(targets, discovered)

    assert result.unmatched_discovered == ["Legacy", "legacy"]
    assert result.duplicated_discovered == [
        DuplicateTitle(title="Legacy", count=2, versions=["0.1", "0.2"], used_versions=[])
    ]


def test_duplicate_record_follows_first_appearance_order(make_target, make_spec, discover):
    discovered = discover(("B", "1"), ("A", "1"), ("B", "2"), ("A", "2"))

    result = match_discovered_specs([], discovered)

    assert [record.title for record in result.duplicated_discovered] == ["B", "A"]
    assert result.unmatched_discovered == ["B", "B", "A", "A"]


def test_partition_covers_every_document_exactly_once(make_target, make_spec, discover):
    targets = [
        make_target("a.json", make_spec("A")),
        make_target("b.json", make_spec("B")),
        make_target("c.json", make_spec("C")),
    ]
    discovered = discover(("A", "1"), ("A", "2"), ("D", "1"), ("B", "1"))

    result = match_discovered_specs(targets, discovered)

    matched = list(result.matches.values())
    assert len({id(spec) for spec in matched}) == len(matched)
    assert set(result.matches) == {0, 1}
    assert [entry.file_name for entry in result.unmatched_expected] == ["c.json"]
    assert result.unmatched_discovered == ["D"]
    # the second "A" stays under an expected key: duplicate only, never unmatched
    assert result.duplicated_discovered[0].versions == ["1", "2"]


def test_matching_is_deterministic(make_target, make_spec, discover):
    targets = [make_target("a.json", make_spec("A")), make_target("b.json", make_spec("A"))]
    discovered = discover(("A", "1"), ("A", "2"), ("A", "3"))

    first = match_discovered_specs(targets, discovered)
    second = match_discovered_specs(targets, discovered)

    assert first.matches == second.matches
    assert first.duplicated_discovered == second.duplicated_discovered
    assert [spec.version for spec in first.matches.values()] == ["1", "2"]


def test_duplicate_record_for_mixed_casing(make_target, make_spec, discover):
    targets = [make_target("personal.json", make_spec("Public API"))]
    discovered = discover(("public api", "1.0"), ("Public API", "1.1"))

    result = match_discovered_specs(targets, discovered)

    assert result.matches[0].version == "1.0"
    assert result.unmatched_discovered == []
    (record,) = result.duplicated_discovered
    assert record.title in {"public api", "Public API"}
    assert (record.count, record.versions, record.used_versions) == (2, ["1.0", "1.1"], ["1.0"])
