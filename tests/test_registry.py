"""Tests for the implementor registry and its merge protocol."""

import itertools
import logging

import pytest

from docindex.models.implementor import Fragment, ImplementorRecord
from docindex.registry.channel import DeliveryChannel
from docindex.registry.implementor_registry import ImplementorRegistry
from docindex.registry.models import RegistryStateError


def _fragment(crate: str, *types: str, trait: str = "Display", source: str = "") -> Fragment:
    """Build a single-crate fragment of ``trait`` implementors."""
    return Fragment.from_mapping(
        {crate: [ImplementorRecord(trait, t, crate) for t in types]},
        source=source or f"{crate}.json",
    )


def _types(registry: ImplementorRegistry, trait: str = "Display") -> list[str]:
    return [r.implementing_type for r in registry.query(trait)]


def _started(channel: DeliveryChannel | None = None) -> tuple[DeliveryChannel, ImplementorRegistry]:
    channel = channel or DeliveryChannel()
    registry = ImplementorRegistry()
    registry.initialize(channel)
    return channel, registry


# --- Delivery / drain ---


def test_buffered_then_live_delivery():
    channel = DeliveryChannel()
    channel.deliver(_fragment("crateX", "Foo"))

    registry = ImplementorRegistry()
    registry.initialize(channel)
    channel.deliver(_fragment("crateY", "Bar"))

    results = list(registry.query("Display"))
    assert [r.implementing_type for r in results] == ["Foo", "Bar"]
    assert [r.owning_crate for r in results] == ["crateX", "crateY"]


def test_drain_preserves_arrival_order():
    channel = DeliveryChannel()
    for crate, t in [("c1", "A"), ("c2", "B"), ("c3", "C")]:
        channel.deliver(_fragment(crate, t))

    registry = ImplementorRegistry()
    reports = registry.initialize(channel)

    assert len(reports) == 3
    assert _types(registry) == ["A", "B", "C"]
    assert channel.pending_count == 0
    assert channel.is_live


def test_initialize_with_empty_buffer():
    _, registry = _started()
    assert registry.initialized
    assert list(registry.query("Display")) == []


def test_initialize_twice_raises():
    channel, registry = _started()
    with pytest.raises(RegistryStateError):
        registry.initialize(channel)


def test_second_registry_cannot_take_over_channel():
    channel, _ = _started()
    with pytest.raises(RegistryStateError):
        ImplementorRegistry().initialize(channel)


# --- Idempotence / order independence ---


def test_redelivery_is_idempotent():
    channel, registry = _started()
    frag = _fragment("crateX", "Foo")
    channel.deliver(frag)
    channel.deliver(frag)

    assert _types(registry) == ["Foo"]
    assert registry.stats.duplicates == 1
    assert len(registry) == 1


def test_redelivery_before_and_after_initialize():
    channel = DeliveryChannel()
    frag = _fragment("crateX", "Foo")
    channel.deliver(frag)
    _, registry = _started(channel)
    channel.deliver(frag)

    assert _types(registry) == ["Foo"]


def test_merged_set_independent_of_delivery_order():
    fragments = [
        _fragment("crateX", "Foo", "Baz"),
        _fragment("crateY", "Bar"),
        _fragment("crateZ", "Foo", "Qux"),
        _fragment("crateX", "Baz", source="crateX-again.json"),
    ]

    expected = None
    for order in itertools.permutations(fragments):
        for split in range(len(order) + 1):
            channel = DeliveryChannel()
            for frag in order[:split]:
                channel.deliver(frag)
            _, registry = _started(channel)
            for frag in order[split:]:
                channel.deliver(frag)

            identities = {r.identity for r in registry.query("Display")}
            if expected is None:
                expected = identities
            assert identities == expected

    assert len(expected) == 5


def test_same_type_different_constraints_are_distinct():
    _, registry = _started()
    registry.merge(
        Fragment.from_mapping(
            {
                "emath": [
                    ImplementorRecord("IndexMut", "emath::Pos2", "emath", "impl IndexMut<usize> for Pos2"),
                    ImplementorRecord("IndexMut", "emath::Pos2", "emath", "impl IndexMut<usize> for Pos2"),
                    ImplementorRecord("IndexMut", "emath::Pos2", "emath", "impl IndexMut<(usize, usize)> for Pos2"),
                ]
            }
        )
    )
    assert len(registry.query("IndexMut")) == 2


def test_same_type_from_two_crates_is_kept_twice():
    _, registry = _started()
    registry.merge(_fragment("crateX", "Foo"))
    registry.merge(_fragment("crateY", "Foo"))
    assert registry.crates_for("Display") == ["crateX", "crateY"]


# --- Malformed input ---


def test_partial_fragment_resilience(caplog):
    _, registry = _started()
    frag = Fragment.from_mapping(
        {
            "crateX": [
                ImplementorRecord("Display", "Foo", "crateX"),
                ImplementorRecord("Display", "", "crateX"),
                ImplementorRecord("Display", "Bar", "crateX"),
            ]
        },
        source="mixed.json",
    )

    with caplog.at_level(logging.WARNING, logger="docindex.registry.implementor_registry"):
        report = registry.merge(frag)

    assert _types(registry) == ["Foo", "Bar"]
    assert report.added == 2
    assert report.dropped == 1
    assert registry.stats.dropped == 1
    assert "Dropped 1 malformed record(s) from fragment mixed.json" in caplog.text


def test_record_missing_trait_is_dropped():
    _, registry = _started()
    report = registry.merge(
        Fragment.from_mapping({"crateX": [ImplementorRecord("", "Foo", "crateX")]})
    )
    assert report.dropped == 1
    assert registry.traits() == []


def test_non_record_entries_are_dropped():
    _, registry = _started()
    report = registry.merge(
        Fragment.from_mapping({"crateX": [{"trait": "Display"}, ImplementorRecord("Display", "Foo", "crateX")]})
    )
    assert report.dropped == 1
    assert report.added == 1


def test_non_fragment_payload_is_rejected_not_raised():
    channel, registry = _started()
    channel.deliver({"crateX": []})
    channel.deliver(None)

    assert registry.stats.fragments_rejected == 2
    assert registry.stats.fragments_merged == 0


# --- Queries ---


def test_query_unknown_trait_is_empty():
    _, registry = _started()
    result = registry.query("NoSuchTrait")
    assert len(result) == 0
    assert list(result) == []
    assert not result


def test_query_result_is_restartable_and_indexable():
    channel, registry = _started()
    channel.deliver(_fragment("crateX", "Foo", "Bar"))

    result = registry.query("Display")
    assert [r.implementing_type for r in result] == ["Foo", "Bar"]
    assert [r.implementing_type for r in result] == ["Foo", "Bar"]
    assert result[1].implementing_type == "Bar"
    assert result.trait_name == "Display"


def test_fragment_with_several_traits():
    _, registry = _started()
    registry.merge(
        Fragment.from_mapping(
            {
                "crateX": [
                    ImplementorRecord("Display", "Foo", "crateX"),
                    ImplementorRecord("Debug", "Foo", "crateX"),
                ]
            }
        )
    )
    assert registry.traits() == ["Debug", "Display"]
    assert len(registry.implementors_in_crate("crateX")) == 2
    assert registry.implementors_in_crate("crateY") == []


def test_resolve_trait_by_short_name():
    _, registry = _started()
    registry.merge(_fragment("crateX", "Foo", trait="core::fmt::Display"))
    registry.merge(_fragment("crateX", "Foo", trait="core::cmp::PartialOrd"))

    assert registry.resolve_trait("Display") == ["core::fmt::Display"]
    assert registry.resolve_trait("core::cmp::PartialOrd") == ["core::cmp::PartialOrd"]
    assert registry.resolve_trait("Hash") == []


# --- Stats / readiness ---


def test_stats_count_distinct_sources():
    channel, registry = _started()
    channel.deliver(_fragment("crateX", "Foo", source="a.js"))
    channel.deliver(_fragment("crateX", "Foo", source="a.js"))
    channel.deliver(_fragment("crateY", "Bar", source="b.js"))

    stats = registry.stats
    assert stats.fragments_merged == 3
    assert stats.distinct_sources == 2
    assert stats.records == 2
    assert stats.duplicates == 1


def test_readiness_requires_expected_count():
    channel, registry = _started()
    channel.deliver(_fragment("crateX", "Foo", source="a.js"))

    assert not registry.readiness().ready
    assert registry.readiness().missing is None
    assert not registry.readiness(2).ready
    assert registry.readiness(2).missing == 1

    channel.deliver(_fragment("crateY", "Bar", source="b.js"))
    report = registry.readiness(2)
    assert report.ready
    assert report.summary() == "2/2 fragment source(s) merged (ready)"


# --- Malformed fragment structure ---


def test_non_list_crate_entry_is_dropped_and_siblings_merge():
    channel, registry = _started()
    channel.deliver(
        Fragment(
            entries={
                "good": (ImplementorRecord("Display", "Foo", "good"),),
                "bad": None,
                "later": (ImplementorRecord("Display", "Bar", "later"),),
            },
            source="mixed.js",
        )
    )

    assert _types(registry) == ["Foo", "Bar"]
    assert registry.stats.fragments_merged == 1
    assert registry.stats.records == 2
    assert registry.stats.dropped == 1


def test_non_mapping_entries_rejected():
    channel, registry = _started()
    channel.deliver(Fragment(entries=None, source="broken.js"))

    assert registry.stats.fragments_rejected == 1
    assert registry.stats.fragments_merged == 0
    assert registry.traits() == []


def test_non_string_identity_fields_are_dropped():
    channel, registry = _started()
    report = registry.merge(
        Fragment.from_mapping(
            {
                "c": [
                    ImplementorRecord(["Display"], "Foo", "c"),
                    ImplementorRecord("Display", "Bar", "c"),
                    ImplementorRecord("Display", "Baz", "c", constraint_text={"where": "T"}),
                ]
            },
            source="c.js",
        )
    )

    assert _types(registry) == ["Bar"]
    assert report.dropped == 2
    assert report.added == 1
    assert report.total == 3


def test_corrected_redelivery_after_malformed_fragment():
    channel, registry = _started()
    channel.deliver(Fragment(entries={"good": (ImplementorRecord("Display", "Foo", "good"),), "bad": None}, source="a.js"))
    channel.deliver(_fragment("good", "Foo", source="a.js"))

    assert _types(registry) == ["Foo"]
    assert registry.stats.records == 1
    assert registry.stats.duplicates == 1
    assert registry.stats.fragments_merged == 2


# --- Views and readiness edge cases ---


def test_query_view_sees_trait_added_later():
    channel, registry = _started()
    view = registry.query("Display")
    assert list(view) == []

    channel.deliver(_fragment("crateX", "Foo"))
    channel.deliver(_fragment("crateY", "Bar"))

    assert [r.implementing_type for r in view] == ["Foo", "Bar"]
    assert len(view) == 2
    assert view[0].owning_crate == "crateX"


def test_sourceless_fragments_count_toward_readiness():
    channel, registry = _started()
    first = Fragment.from_mapping({"crateX": [ImplementorRecord("Display", "Foo", "crateX")]})
    second = Fragment.from_mapping({"crateY": [ImplementorRecord("Display", "Bar", "crateY")]})

    channel.deliver(first)
    channel.deliver(first)
    assert registry.stats.distinct_sources == 1
    assert not registry.readiness(2).ready

    channel.deliver(second)
    assert registry.readiness(2).ready
