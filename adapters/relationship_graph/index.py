"""
Relationship graph — RelationshipGraphIndex: reverse links over one snapshot.

The index is built once from a snapshot and never mutated; when the element
collection changes, build a new one.
"""
from __future__ import annotations

import logging
from typing import Iterable, Iterator, Mapping, Optional, Union

from contracts import Element, ReverseLinkGroup
from ports.field_category_lookup import FieldCategoryLookup

from ..field_inference.engine import FieldInferenceEngine, reference_ids
from ..field_inference.normalize import normalize_field_name, relation_key

logger = logging.getLogger("worldlink.relationship_graph")

# Envelope / bookkeeping fields that never hold references.
SYSTEM_FIELDS: frozenset[str] = frozenset({
    "id", "created_at", "updated_at", "name", "description", "image_url",
    "imageUrl", "tags", "category", "type", "supertype", "subtype",
    "is_public", "world",
})

ElementsArg = Union[Mapping[str, Element], Iterable[Element]]


def _by_name(el: Element) -> tuple[str, str]:
    return (el.name.casefold(), el.id)


def _as_mapping(elements: ElementsArg) -> dict[str, Element]:
    if isinstance(elements, Mapping):
        return dict(elements)
    return {el.id: el for el in elements}


class RelationshipGraphIndex:
    """
    Inverted reference index: target_id → [(field_name, source Element)].

    Usage:
        index = RelationshipGraphIndex.build(elements)
        index.reverse_links_for("loc-1")      # {"locationId": [Alice, Bob]}
        index.grouped_reverse_links_for("loc-1")
    """

    def __init__(
        self,
        elements: Mapping[str, Element],
        engine: FieldInferenceEngine,
    ) -> None:
        self._elements = elements
        self._engine = engine

        # target_id → field_name → [source Element]
        self._incoming: dict[str, dict[str, list[Element]]] = {}

        # source_id → [(field_name, target_id)], read by edges() and dangling_references()
        self._outgoing: dict[str, list[tuple[str, str]]] = {}

        self._scan()

    @classmethod
    def build(
        cls,
        elements: ElementsArg,
        engine: Optional[FieldInferenceEngine] = None,
    ) -> RelationshipGraphIndex:
        snapshot = _as_mapping(elements)
        engine = (engine or FieldInferenceEngine()).with_known_ids(snapshot.keys())
        return cls(snapshot, engine)

    # ── lookup ────────────────────────────────────────────────────────────────

    def reverse_links_for(self, target_id: str) -> dict[str, list[Element]]:
        """field_name → sources referencing target_id, each list sorted by name."""
        incoming = self._incoming.get(target_id, {})
        return {field: list(sources) for field, sources in incoming.items()}

    def grouped_reverse_links_for(self, target_id: str) -> dict[str, ReverseLinkGroup]:
        """Reverse links merged under normalized relationship labels."""
        return group_reverse_links(self.reverse_links_for(target_id), self._engine.lookup)

    def edges(self) -> Iterator[tuple[Element, str, str]]:
        """(source, field_name, target_id) for every reference whose target is in the snapshot."""
        for source_id, refs in self._outgoing.items():
            source = self._elements[source_id]
            for field_name, target_id in refs:
                if target_id in self._elements:
                    yield source, field_name, target_id

    def dangling_references(self) -> list[tuple[Element, str, str]]:
        """References to ids that are not part of the snapshot."""
        dangling = []
        for source_id, refs in self._outgoing.items():
            for field_name, target_id in refs:
                if target_id not in self._elements:
                    dangling.append((self._elements[source_id], field_name, target_id))
        return dangling

    # ── private ───────────────────────────────────────────────────────────────

    def _scan(self) -> None:
        for source in self._elements.values():
            for field_name, value in source.fields.items():
                if field_name in SYSTEM_FIELDS:
                    continue
                classification = self._engine.classify(field_name, value, source.category)
                if not classification.is_reference:
                    continue
                for target_id in dict.fromkeys(reference_ids(classification, value)):
                    if target_id == source.id:
                        continue  # self-reference
                    self._outgoing.setdefault(source.id, []).append((field_name, target_id))
                    self._incoming.setdefault(target_id, {}).setdefault(field_name, []).append(source)

        for by_field in self._incoming.values():
            for sources in by_field.values():
                sources.sort(key=_by_name)

        logger.debug(
            "reverse index built: %d elements, %d referenced targets",
            len(self._elements), len(self._incoming),
        )


def reverse_links_for(
    target_id: str,
    elements: ElementsArg,
    engine: Optional[FieldInferenceEngine] = None,
) -> dict[str, list[Element]]:
    """One-shot reverse-link computation over a snapshot."""
    return RelationshipGraphIndex.build(elements, engine).reverse_links_for(target_id)


def group_reverse_links(
    reverse_links: Mapping[str, list[Element]],
    lookup: Optional[FieldCategoryLookup] = None,
) -> dict[str, ReverseLinkGroup]:
    """Merges fields that denote one relationship ("location", "locationId", ...).

    Each group keeps the raw field names that contributed and lists every
    source element once, sorted by name.
    """
    merged: dict[str, tuple[list[str], dict[str, Element]]] = {}
    for field_name in sorted(reverse_links):
        key = relation_key(field_name)
        fields, sources = merged.setdefault(key, ([], {}))
        fields.append(field_name)
        for el in reverse_links[field_name]:
            sources.setdefault(el.id, el)

    grouped: dict[str, ReverseLinkGroup] = {}
    for key, (fields, sources) in merged.items():
        label = (lookup.label_for(key) if lookup is not None else None) or _fallback_label(fields[0])
        group = grouped.get(label)
        if group is None:
            grouped[label] = ReverseLinkGroup(
                label=label,
                fields=list(fields),
                elements=sorted(sources.values(), key=_by_name),
            )
            continue
        # two keys sharing one friendly label
        known = {el.id for el in group.elements}
        group.fields.extend(fields)
        group.elements.extend(el for el in sources.values() if el.id not in known)
        group.elements.sort(key=_by_name)
    return grouped


def _fallback_label(field_name: str) -> str:
    return normalize_field_name(field_name).replace("_", " ")
