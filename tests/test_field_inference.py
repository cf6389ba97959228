from __future__ import annotations

from adapters.field_inference import (
    FieldInferenceEngine,
    looks_like_id,
    relation_key,
    strip_reference_suffix,
)
from adapters.field_inference.normalize import singularize, to_snake_case
from contracts import Cardinality, Element

_UUID = "3f2b9c1e-8a7d-4e2f-9b1a-0c5d6e7f8a9b"


def _engine(known_ids: tuple[str, ...] = ()) -> FieldInferenceEngine:
    return FieldInferenceEngine(known_ids=known_ids)


def test_empty_list_is_classified_by_name_alone():
    cls = _engine().classify("speciesIds", [])
    assert cls.cardinality is Cardinality.MULTI
    assert cls.target_category == "species"


def test_value_shape_beats_field_name():
    engine = _engine()

    scalar = engine.classify("birthplace", "Some City")
    assert scalar.cardinality is Cardinality.SCALAR
    assert scalar.target_category is None
    assert not scalar.is_reference

    single = engine.classify("birthplace", _UUID)
    assert single.cardinality is Cardinality.SINGLE
    assert single.target_category == "location"
    assert single.is_reference


def test_null_values_fall_back_to_name_heuristics():
    engine = _engine()
    assert engine.classify("location_id", None).cardinality is Cardinality.SINGLE
    assert engine.classify("friendIds", "").cardinality is Cardinality.MULTI
    assert engine.classify("allies", None).target_category == "institution"
    assert engine.classify("parentLocation", "   ").cardinality is Cardinality.SINGLE


def test_plural_looking_scalars_stay_scalar():
    engine = _engine()
    for name in ("motivations", "customs", "origins", "status", "aesthetics", "politics"):
        assert engine.classify(name, None).cardinality is Cardinality.SCALAR, name


def test_bare_parent_points_at_owning_category():
    cls = _engine().classify("parent", None, owning_category="location")
    assert cls.cardinality is Cardinality.SINGLE
    assert cls.target_category == "location"


def test_non_reference_values_are_scalar():
    engine = _engine()
    assert engine.classify("population", 1200).cardinality is Cardinality.SCALAR
    assert engine.classify("isSecret", True).cardinality is Cardinality.SCALAR
    assert engine.classify("stats", {"hp": 3}).cardinality is Cardinality.SCALAR
    assert engine.classify("friends", ["char-2", "not an id"]).cardinality is Cardinality.SCALAR


def test_list_of_ids_is_multi():
    cls = _engine().classify("friends", ["char-2", _UUID])
    assert cls.cardinality is Cardinality.MULTI
    assert cls.target_category == "character"


def test_known_snapshot_ids_count_as_ids():
    assert _engine().classify("locationId", "locA").cardinality is Cardinality.SCALAR

    cls = _engine(known_ids=("locA",)).classify("locationId", "locA")
    assert cls.cardinality is Cardinality.SINGLE
    assert cls.target_category == "location"


def test_looks_like_id_shapes():
    assert looks_like_id(_UUID)
    assert looks_like_id("element-9xq2")
    assert looks_like_id("loc-12")
    assert looks_like_id("ckv9x2m0h0000abcdefghijk")
    assert not looks_like_id("Some City")
    assert not looks_like_id("")
    assert not looks_like_id(" loc-12")
    assert not looks_like_id(42)


def test_forward_links_and_referenced_ids():
    element = Element(
        id="char-1",
        name="Alice",
        category="character",
        fields={
            "locationId": "loc-1",
            "friends": ["char-2", "char-3"],
            "enemies": [],
            "bio": "Grew up by the river.",
            "parentId": "char-1",
        },
    )
    engine = _engine()

    links = {link.field_name: link.target_ids for link in engine.forward_links(element)}
    assert links == {
        "locationId": ["loc-1"],
        "friends": ["char-2", "char-3"],
        "parentId": ["char-1"],
    }
    assert engine.referenced_ids(element) == {"loc-1", "char-2", "char-3"}


def test_reference_field_for_category():
    engine = _engine()
    assert engine.reference_field_for("character") == "characters"
    assert engine.reference_field_for("phenomenon") == "phenomena"
    assert engine.reference_field_for("species") == "species"
    assert engine.reference_field_for("mystery") is None


def test_strip_reference_suffix():
    assert strip_reference_suffix("speciesIds") == ("species", Cardinality.MULTI)
    assert strip_reference_suffix("location_id") == ("location", Cardinality.SINGLE)
    assert strip_reference_suffix("LOCATION_IDS") == ("LOCATION", Cardinality.MULTI)
    assert strip_reference_suffix("liquid") == ("liquid", None)
    assert strip_reference_suffix("Id") == ("Id", None)


def test_name_normalization():
    assert to_snake_case("parentLocation") == "parent_location"
    assert to_snake_case("hit-points") == "hit_points"
    assert singularize("abilities") == "ability"
    assert singularize("linked_zones") == "linked_zone"
    assert singularize("phenomena") == "phenomenon"
    assert singularize("status") == "status"
    assert relation_key("locationId") == relation_key("location_id") == "location"
    assert relation_key("allies") == relation_key("allyIds") == "ally"
