"""
Field inference — hand-maintained field vocabulary tables.

StaticFieldTable implements ports.field_category_lookup.FieldCategoryLookup.
All keys are normalized field names (suffix-stripped, snake_case, lower-case).
Replace this adapter with a schema-backed one once the store publishes a schema.
"""
from __future__ import annotations

from typing import Optional

from contracts import Cardinality, FieldHint

from .normalize import singularize

KNOWN_CATEGORIES: frozenset[str] = frozenset({
    "ability", "character", "collective", "construct", "creature",
    "event", "family", "institution", "language", "law",
    "location", "map", "marker", "narrative", "object",
    "phenomenon", "pin", "relation", "species", "title",
    "trait", "zone",
})

# category → conventional multi-reference field on a text-bearing element
CATEGORY_FIELDS: dict[str, str] = {
    "ability": "abilities",
    "character": "characters",
    "collective": "collectives",
    "construct": "constructs",
    "creature": "creatures",
    "event": "events",
    "family": "families",
    "institution": "institutions",
    "language": "languages",
    "law": "laws",
    "location": "locations",
    "map": "maps",
    "marker": "markers",
    "narrative": "narratives",
    "object": "objects",
    "phenomenon": "phenomena",
    "pin": "pins",
    "relation": "relations",
    "species": "species",
    "title": "titles",
    "trait": "traits",
    "zone": "zones",
}

SINGLE_LINK_FIELDS: dict[str, str] = {
    # location
    "location": "location",
    "birthplace": "location",
    "parent_location": "location",
    "homeworld": "location",
    "locus": "location",
    "zone": "zone",
    # character
    "founder": "character",
    "actor": "character",
    "protagonist": "character",
    "antagonist": "character",
    "narrator": "character",
    "leader": "character",
    "creator": "character",
    "owner": "character",
    "ruler": "character",
    "rival": "character",
    "partner": "character",
    # institution
    "primary_power": "institution",
    "custodian": "institution",
    "author": "institution",
    "issuer": "institution",
    "operator": "institution",
    "conservator": "institution",
    "parent_institution": "institution",
    "body": "institution",
    "religion": "institution",
    "faction": "institution",
    # other
    "parent_species": "species",
    "governing_title": "title",
    "superior_title": "title",
    "parent_object": "object",
    "language": "language",
    "parent_law": "law",
    "parent_map": "map",
    "map": "map",
    "parent_narrative": "narrative",
    "anti_trait": "trait",
    "source": "phenomenon",
    "system": "phenomenon",
    "tradition": "construct",
    "classification": "construct",
}

MULTI_LINK_FIELDS: dict[str, str] = {
    "characters": "character",
    "friends": "character",
    "rivals": "character",
    "founders": "character",
    "ancestors": "character",
    "wielders": "character",
    "holders": "character",
    "members": "character",
    "inhabitants": "character",
    "participants": "character",
    "children": "character",
    "enemies": "character",

    "locations": "location",
    "extraction_markets": "location",
    "industry_markets": "location",
    "estates": "location",
    "environments": "location",
    "spread": "location",

    "institutions": "institution",
    "secondary_powers": "institution",
    "allies": "institution",
    "adversaries": "institution",
    "governs": "institution",

    "species": "species",
    "delicacies": "species",
    "predators": "species",
    "prey": "species",
    "variants": "species",
    "carriers": "species",
    "nourishment": "species",

    "traits": "trait",
    "affinities": "trait",
    "interactions": "trait",

    "abilities": "ability",
    "empowered_abilities": "ability",
    "empowerments": "ability",
    "actions": "ability",
    "adaptations": "ability",

    "languages": "language",
    "dialects": "language",

    "family": "family",
    "families": "family",

    "objects": "object",
    "items": "object",
    "defensive_objects": "object",
    "buildings": "object",
    "heirlooms": "object",
    "symbols": "object",
    "catalysts": "object",

    "constructs": "construct",
    "materials": "construct",
    "technology": "construct",
    "consumes": "construct",
    "extraction_goods": "construct",
    "industry_goods": "construct",
    "currencies": "construct",
    "building_methods": "construct",
    "extraction_methods": "construct",
    "industry_methods": "construct",
    "cults": "construct",
    "fighters": "construct",
    "traditions": "construct",
    "reproduction": "construct",
    "penalties": "construct",
    "equipment": "construct",
    "symbolism": "construct",
    "routes": "construct",
    "boundaries": "construct",

    "populations": "collective",
    "collectives": "collective",

    "effects": "phenomenon",
    "phenomena": "phenomenon",
    "prohibitions": "phenomenon",

    "titles": "title",
    "adjudicators": "title",
    "enforcers": "title",

    "laws": "law",
    "principles": "law",

    "zones": "zone",
    "linked_zones": "zone",

    "relations": "relation",
    "creatures": "creature",
    "events": "event",
    "narratives": "narrative",
    "triggers": "event",
    "markers": "marker",
    "pins": "pin",
    "maps": "map",
}

# End in "s" but hold free text or plain scalars.
PLURAL_SCALAR_FIELDS: frozenset[str] = frozenset({
    "motivations", "customs", "origins", "aesthetics", "politics",
    "mechanics", "ethics", "physics", "status", "address", "class",
    "alias", "aliases", "tags", "keywords", "labels", "categories",
    "notes", "details", "lyrics", "news", "series", "process",
    "progress", "access", "business", "focus", "genus", "chaos",
    "hit_points", "stats", "is_public", "contents", "terms",
})

# Ordered: first matching substring wins.
SUBSTRING_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("character", "character"),
    ("location", "location"),
    ("place", "location"),
    ("market", "location"),
    ("building", "construct"),
    ("construct", "construct"),
    ("institution", "institution"),
    ("collective", "collective"),
    ("population", "collective"),
    ("object", "object"),
    ("method", "phenomenon"),
    ("title", "title"),
)

_REFERENCE_PREFIXES = ("parent_", "primary_", "secondary_", "superior_", "linked_")

# relation key (see normalize.relation_key) → reverse-relation label
RELATION_LABELS: dict[str, str] = {
    "location": "Located in",
    "birthplace": "Born in",
    "member": "Member of",
    "inhabitant": "Inhabits",
    "species": "Species of",
    "parent": "Parent of",
    "child": "Child of",
    "creator": "Created by",
    "owner": "Owned by",
    "item": "Contains",
    "participant": "Participates in",
    "ally": "Allied with",
    "enemy": "Enemy of",
    "religion": "Worshipped by",
    "faction": "Member of faction",
    "homeworld": "Homeworld of",
    "ruler": "Rules over",
}


class StaticFieldTable:
    """FieldCategoryLookup backed by the tables above."""

    def hint_for(self, normalized_name: str) -> Optional[FieldHint]:
        if normalized_name in SINGLE_LINK_FIELDS:
            return FieldHint(
                cardinality=Cardinality.SINGLE,
                category=SINGLE_LINK_FIELDS[normalized_name],
            )
        if normalized_name in MULTI_LINK_FIELDS:
            return FieldHint(
                cardinality=Cardinality.MULTI,
                category=MULTI_LINK_FIELDS[normalized_name],
            )
        return None

    def guess_category(self, normalized_name: str) -> Optional[str]:
        if not normalized_name:
            return None
        hint = self.hint_for(normalized_name)
        if hint is not None:
            return hint.category
        if normalized_name in KNOWN_CATEGORIES:
            return normalized_name

        singular = singularize(normalized_name)
        if singular in KNOWN_CATEGORIES:
            return singular
        hint = self.hint_for(singular)
        if hint is not None:
            return hint.category

        for prefix in _REFERENCE_PREFIXES:
            if normalized_name.startswith(prefix):
                rest = normalized_name[len(prefix):]
                return self.guess_category(rest)

        for needle, category in SUBSTRING_CATEGORIES:
            if needle in normalized_name:
                return category
        return None

    def is_plural_scalar(self, normalized_name: str) -> bool:
        return normalized_name in PLURAL_SCALAR_FIELDS

    def reference_field_for(self, category: str) -> Optional[str]:
        return CATEGORY_FIELDS.get(category)

    def known_categories(self) -> frozenset[str]:
        return KNOWN_CATEGORIES

    def label_for(self, normalized_name: str) -> Optional[str]:
        return RELATION_LABELS.get(normalized_name)
