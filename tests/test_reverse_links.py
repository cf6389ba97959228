from __future__ import annotations

from typing import Any

from adapters.relationship_graph import RelationshipGraphIndex, reverse_links_for
from contracts import Element


def _el(id: str, name: str, category: str, **fields: Any) -> Element:
    return Element(id=id, name=name, category=category, fields=fields)


def _town_world() -> list[Element]:
    return [
        _el("locA", "Town Square", "location"),
        _el("charB", "Bob", "character", locationId="locA"),
        _el("charA", "Alice", "character", locationId="locA"),
    ]


def test_reverse_links_end_to_end():
    elements = _town_world()
    alice, bob = elements[2], elements[1]

    assert reverse_links_for("locA", elements) == {"locationId": [alice, bob]}


def test_index_accepts_mapping_and_is_reusable():
    elements = _town_world()
    index = RelationshipGraphIndex.build({el.id: el for el in elements})

    assert [el.name for el in index.reverse_links_for("locA")["locationId"]] == ["Alice", "Bob"]
    assert index.reverse_links_for("charA") == {}
    assert index.reverse_links_for("nope") == {}


def test_self_references_are_excluded():
    elements = [
        _el("loc-1", "Old Keep", "location", parentLocationId="loc-1", zoneIds=["loc-1", "loc-2"]),
        _el("loc-2", "Keep Yard", "location", parentLocationId="loc-1"),
    ]
    links = reverse_links_for("loc-1", elements)

    assert list(links) == ["parentLocationId"]
    assert [el.id for el in links["parentLocationId"]] == ["loc-2"]


def test_system_fields_are_not_references():
    elements = [
        _el("loc-1", "Old Keep", "location"),
        _el("char-1", "Alice", "character", world="loc-1", tags=["loc-1"], type="loc-1"),
    ]
    assert reverse_links_for("loc-1", elements) == {}


def test_sources_sorted_case_insensitively_then_by_id():
    elements = [
        _el("loc-1", "Old Keep", "location"),
        _el("char-3", "bob", "character", locationId="loc-1"),
        _el("char-2", "Alice", "character", locationId="loc-1"),
        _el("char-1", "Bob", "character", locationId="loc-1"),
    ]
    sources = reverse_links_for("loc-1", elements)["locationId"]
    assert [el.id for el in sources] == ["char-2", "char-1", "char-3"]


def test_grouping_merges_spellings_and_lists_each_source_once():
    elements = [
        _el("locA", "Town Square", "location"),
        _el("charA", "Alice", "character", location="locA"),
        _el("charB", "Bob", "character", locationId="locA"),
        _el("charC", "Carol", "character", location="locA", location_id="locA"),
    ]
    index = RelationshipGraphIndex.build(elements)
    groups = index.grouped_reverse_links_for("locA")

    assert list(groups) == ["Located in"]
    group = groups["Located in"]
    assert group.fields == ["location", "locationId", "location_id"]
    assert [el.name for el in group.elements] == ["Alice", "Bob", "Carol"]


def test_grouping_falls_back_to_normalized_field_name():
    elements = [
        _el("loc-1", "Old Keep", "location"),
        _el("char-1", "Alice", "character", favouriteTavernId="loc-1", allies=["loc-1"]),
    ]
    groups = RelationshipGraphIndex.build(elements).grouped_reverse_links_for("loc-1")

    assert set(groups) == {"favourite tavern", "Allied with"}
    assert groups["favourite tavern"].fields == ["favouriteTavernId"]


def test_edges_and_dangling_references():
    elements = [
        _el("charA", "Alice", "character", friends=["charB", "ghost-9"]),
        _el("charB", "Bob", "character"),
    ]
    index = RelationshipGraphIndex.build(elements)

    assert [(src.id, field, target) for src, field, target in index.edges()] == [
        ("charA", "friends", "charB"),
    ]
    assert [(src.id, field, target) for src, field, target in index.dangling_references()] == [
        ("charA", "friends", "ghost-9"),
    ]
