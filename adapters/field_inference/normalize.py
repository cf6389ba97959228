"""
Field inference — field-name normalization.
"""
from __future__ import annotations

import re
from typing import Optional

from contracts import Cardinality

_CAMEL_RE = re.compile(r"(?<=[a-z0-9])([A-Z])")

# (suffix, case-sensitive, cardinality); plural forms first
_REFERENCE_SUFFIXES: tuple[tuple[str, bool, Cardinality], ...] = (
    ("_ids", False, Cardinality.MULTI),
    ("Ids", True, Cardinality.MULTI),
    ("_id", False, Cardinality.SINGLE),
    ("Id", True, Cardinality.SINGLE),
)

_IRREGULAR_SINGULARS = {
    "species": "species",
    "series": "series",
    "phenomena": "phenomenon",
    "children": "child",
    "people": "person",
    "data": "data",
    "news": "news",
}


def strip_reference_suffix(field_name: str) -> tuple[str, Optional[Cardinality]]:
    """Removes an Id/Ids/_id/_ids suffix and returns the cardinality it implies.

    "speciesIds"  → ("species", MULTI)
    "location_id" → ("location", SINGLE)
    "liquid"      → ("liquid", None)     # lower-case "id" is not a suffix
    """
    for suffix, case_sensitive, cardinality in _REFERENCE_SUFFIXES:
        if case_sensitive:
            matched = field_name.endswith(suffix)
            # camelCase suffix needs a lower-case letter or digit before it
            if matched and len(field_name) > len(suffix):
                matched = not field_name[-len(suffix) - 1].isupper()
        else:
            matched = field_name.lower().endswith(suffix)
        base = field_name[: -len(suffix)]
        if matched and base.strip("_"):
            return base, cardinality
    return field_name, None


def to_snake_case(name: str) -> str:
    """"parentLocation" → "parent_location"; "hit-points" → "hit_points"."""
    s = _CAMEL_RE.sub(r"_\1", name.strip())
    s = re.sub(r"[\s\-]+", "_", s).lower()
    s = re.sub(r"_+", "_", s)
    return s.strip("_")


def normalize_field_name(field_name: str) -> str:
    """Suffix-stripped, snake_case, lower-case name used for table lookups."""
    base, _ = strip_reference_suffix(field_name)
    return to_snake_case(base)


def singularize(name: str) -> str:
    """Naive English singular of the last snake_case segment.

    "abilities" → "ability", "linked_zones" → "linked_zone", "species" → "species"
    """
    head, sep, last = name.rpartition("_")
    if last in _IRREGULAR_SINGULARS:
        single = _IRREGULAR_SINGULARS[last]
    elif last.endswith("ies") and len(last) > 4:
        single = last[:-3] + "y"
    elif last.endswith(("ss", "us", "is")):
        single = last
    elif last.endswith(("sses", "ches", "shes", "xes")):
        single = last[:-2]
    elif last.endswith("s") and len(last) > 3:
        single = last[:-1]
    else:
        single = last
    return f"{head}{sep}{single}"


def relation_key(field_name: str) -> str:
    """Key under which differently-spelled fields of one relationship merge.

    "location", "locationId", "location_id" → "location"
    "allies", "allyIds"                    → "ally"
    """
    return singularize(normalize_field_name(field_name))
