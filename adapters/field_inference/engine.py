"""
Field inference — FieldInferenceEngine.

Classifies a (field_name, value) pair as scalar / single reference / multi
reference, with a best-guess target category.

Order of evidence:
  1. value shape   — id-shaped string → SINGLE, list of ids → MULTI
  2. non-empty value of any other shape → SCALAR (value beats name)
  3. empty / null value → name heuristics only (suffix, table, prefix, plural)

Never raises: anything unexpected ends up as SCALAR without a category.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Optional

from contracts import Cardinality, Element, FieldClassification, ForwardLink
from ports.field_category_lookup import FieldCategoryLookup

from .normalize import strip_reference_suffix, to_snake_case
from .tables import StaticFieldTable

logger = logging.getLogger("worldlink.field_inference")

_ID_PATTERNS = (
    # canonical UUID
    re.compile(r"^[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}$", re.IGNORECASE),
    # prefixed tokens with at least one digit: "abcd1234-ef56", "world_0001a"
    re.compile(r"^(?=.*\d)[a-zA-Z0-9]{8,}[-_][a-zA-Z0-9]{4,}[-_a-zA-Z0-9]*$"),
    # element-123abc
    re.compile(r"^element-[a-zA-Z0-9]+$"),
    # category-number: "loc-1", "char-42"
    re.compile(r"^[a-z]+-[0-9]+$"),
    # long hex / dashed hex
    re.compile(r"^[a-f0-9-]{20,}$", re.IGNORECASE),
    # long alphanumeric token with digits (cuid, nanoid, ...)
    re.compile(r"^(?=.*\d)[0-9a-z]{20,}$", re.IGNORECASE),
)


def looks_like_id(value: Any, known_ids: Optional[frozenset[str]] = None) -> bool:
    """True if value has the shape of an opaque element id.

    A string equal to an id present in the current snapshot always counts,
    since ids are opaque and need not match any pattern.
    """
    if not isinstance(value, str):
        return False
    s = value.strip()
    if not s or s != value:
        return False
    if known_ids and s in known_ids:
        return True
    return any(p.match(s) for p in _ID_PATTERNS)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


class FieldInferenceEngine:
    """
    Schema-less reference-field classifier.

    Usage:
        engine = FieldInferenceEngine()
        engine.classify("birthplace", "Some City").cardinality       # SCALAR
        engine.classify("speciesIds", []).target_category             # "species"

    With the ids of the current snapshot (opaque ids like "locA" count as ids):
        engine = FieldInferenceEngine(known_ids=elements.keys())
    """

    def __init__(
        self,
        lookup: Optional[FieldCategoryLookup] = None,
        known_ids: Optional[Iterable[str]] = None,
    ) -> None:
        self._lookup: FieldCategoryLookup = lookup or StaticFieldTable()
        self._known_ids: frozenset[str] = frozenset(known_ids or ())

    @property
    def lookup(self) -> FieldCategoryLookup:
        return self._lookup

    def with_known_ids(self, known_ids: Iterable[str]) -> FieldInferenceEngine:
        """Returns an engine sharing the lookup but aware of another snapshot's ids."""
        return FieldInferenceEngine(lookup=self._lookup, known_ids=known_ids)

    # ── classification ────────────────────────────────────────────────────────

    def classify(
        self,
        field_name: str,
        value: Any,
        owning_category: Optional[str] = None,
    ) -> FieldClassification:
        """Classifies one field. Never raises."""
        try:
            cardinality, category = self._classify(field_name, value, owning_category)
        except Exception:  # heuristics must degrade, not fail
            logger.debug("classification of %r failed, treating as scalar", field_name, exc_info=True)
            cardinality, category = Cardinality.SCALAR, None
        return FieldClassification(
            field_name=field_name,
            cardinality=cardinality,
            target_category=category,
        )

    def classify_element(self, element: Element) -> dict[str, FieldClassification]:
        return {
            name: self.classify(name, value, element.category)
            for name, value in element.fields.items()
        }

    def reference_field_for(self, category: str) -> Optional[str]:
        """Conventional reference field on a text-bearing element for a category."""
        return self._lookup.reference_field_for(category)

    # ── derived views ─────────────────────────────────────────────────────────

    def forward_links(self, element: Element) -> list[ForwardLink]:
        """One ForwardLink per reference field that currently holds ids."""
        links: list[ForwardLink] = []
        for name, cls in self.classify_element(element).items():
            ids = reference_ids(cls, element.fields.get(name))
            if ids:
                links.append(ForwardLink(field_name=name, classification=cls, target_ids=ids))
        return links

    def referenced_ids(self, element: Element) -> set[str]:
        """Every id held by the element's reference fields."""
        ids: set[str] = set()
        for link in self.forward_links(element):
            ids.update(link.target_ids)
        ids.discard(element.id)
        return ids

    # ── private ───────────────────────────────────────────────────────────────

    def _classify(
        self, field_name: str, value: Any, owning_category: Optional[str]
    ) -> tuple[Cardinality, Optional[str]]:
        base, suffix_cardinality = strip_reference_suffix(field_name or "")
        normalized = to_snake_case(base)

        if _is_empty(value):
            return self._classify_by_name(normalized, suffix_cardinality, owning_category)

        if isinstance(value, str):
            if looks_like_id(value, self._known_ids):
                return Cardinality.SINGLE, self._guess_category(normalized, owning_category)
            return Cardinality.SCALAR, None

        if isinstance(value, (list, tuple)):
            if not value:
                # a list with no items still says "list"; only the name can tell what of
                if self._lookup.is_plural_scalar(normalized):
                    return Cardinality.SCALAR, None
                return Cardinality.MULTI, self._guess_category(normalized, owning_category)
            if all(looks_like_id(v, self._known_ids) for v in value):
                return Cardinality.MULTI, self._guess_category(normalized, owning_category)
            return Cardinality.SCALAR, None

        # numbers, booleans, mappings, anything else
        return Cardinality.SCALAR, None

    def _classify_by_name(
        self,
        normalized: str,
        suffix_cardinality: Optional[Cardinality],
        owning_category: Optional[str],
    ) -> tuple[Cardinality, Optional[str]]:
        if not normalized:
            return Cardinality.SCALAR, None
        if suffix_cardinality is not None:
            return suffix_cardinality, self._guess_category(normalized, owning_category)

        hint = self._lookup.hint_for(normalized)
        if hint is not None:
            return hint.cardinality, hint.category

        if normalized == "parent" or normalized.startswith(("parent_", "primary_", "superior_")):
            return Cardinality.SINGLE, self._guess_category(normalized, owning_category)

        if (
            normalized.endswith("s")
            and len(normalized) > 3
            and not self._lookup.is_plural_scalar(normalized)
        ):
            return Cardinality.MULTI, self._guess_category(normalized, owning_category)

        return Cardinality.SCALAR, None

    def _guess_category(self, normalized: str, owning_category: Optional[str]) -> Optional[str]:
        # "parent" on a location points at another location
        if normalized in ("parent", "parents") and owning_category:
            return owning_category
        return self._lookup.guess_category(normalized)


def reference_ids(classification: FieldClassification, value: Any) -> list[str]:
    """Ids held by a value under a given classification (empty for scalars)."""
    if classification.cardinality is Cardinality.SINGLE:
        return [value] if isinstance(value, str) and value.strip() else []
    if classification.cardinality is Cardinality.MULTI and isinstance(value, (list, tuple)):
        return [v for v in value if isinstance(v, str) and v.strip()]
    return []
