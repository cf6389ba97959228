"""
contracts.py — single source of truth for the data types shared by WorldLink.
Every module imports its shared types ONLY from here. Do not change without
bumping CONTRACTS_VERSION.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

CONTRACTS_VERSION = "1.0.0"

# Keys of a flat API record that are part of the Element envelope
# rather than its open field vocabulary.
_ENVELOPE_KEYS = ("id", "name", "category")

UNCATEGORIZED = "uncategorized"


# ─────────────────────────── Element ─────────────────────────────────────

class Element(BaseModel):
    id: str
    name: str = ""
    category: str = UNCATEGORIZED      # open set: character, location, ...
    fields: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Element:
        """Builds an Element from a flat API record.

        {"id": "c-1", "name": "Alice", "category": "character", "locationId": "l-1"}
        → Element(id="c-1", name="Alice", category="character",
                  fields={"locationId": "l-1"})
        """
        fields = {k: v for k, v in record.items() if k not in _ENVELOPE_KEYS}
        name = record.get("name")
        category = record.get("category")
        return cls(
            id=str(record["id"]),
            name=name if isinstance(name, str) else "",
            category=category if isinstance(category, str) and category else UNCATEGORIZED,
            fields=fields,
        )

    def to_record(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "category": self.category, **self.fields}

    def get(self, field_name: str, default: Any = None) -> Any:
        return self.fields.get(field_name, default)


def group_by_category(elements: Any) -> dict[str, list[Element]]:
    """category → elements sorted by name. Accepts an iterable or an id → Element mapping."""
    if isinstance(elements, Mapping):
        elements = elements.values()
    grouped: dict[str, list[Element]] = {}
    for el in elements:
        grouped.setdefault(el.category, []).append(el)
    for members in grouped.values():
        members.sort(key=lambda e: (e.name.casefold(), e.id))
    return grouped


# ─────────────────────────── Field inference ─────────────────────────────

class Cardinality(str, Enum):
    SCALAR = "scalar"
    SINGLE = "single"    # one id
    MULTI = "multi"      # list of ids


class FieldHint(BaseModel):
    """One row of the name → category lookup."""
    cardinality: Cardinality
    category: Optional[str] = None


class FieldClassification(BaseModel):
    field_name: str
    cardinality: Cardinality = Cardinality.SCALAR
    target_category: Optional[str] = None

    @property
    def is_reference(self) -> bool:
        return self.cardinality is not Cardinality.SCALAR


class ForwardLink(BaseModel):
    field_name: str
    classification: FieldClassification
    target_ids: list[str]


# ─────────────────────────── Reverse links ───────────────────────────────

class ReverseLinkGroup(BaseModel):
    label: str                 # "Located in"
    fields: list[str]          # raw field names that contributed
    elements: list[Element]    # unique sources, sorted by name


# ─────────────────────────── Mentions ────────────────────────────────────

class Mention(BaseModel):
    text: str
    start: int           # character offset, inclusive
    end: int             # character offset, exclusive
    confidence: float    # 0..1
    element: Element
    category: str
    is_linked: bool = False

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, v: float) -> float:
        return max(0.0, min(1.0, v))

    @property
    def element_id(self) -> str:
        return self.element.id

    def overlaps(self, start: int, end: int) -> bool:
        return self.start < end and start < self.end


# ─────────────────────────── Link workflow ───────────────────────────────

class LinkEdit(BaseModel):
    """Provisional mutation produced by accept / link_all."""
    element_id: str
    field_updates: dict[str, list[str]] = Field(default_factory=dict)
    text: Optional[str] = None      # rewritten text, None = unchanged
    linked_ids: list[str] = Field(default_factory=list)
    rewritten_spans: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.field_updates and self.text is None


class CommitStatus(str, Enum):
    COMMITTED = "committed"
    NOTHING_TO_COMMIT = "nothing_to_commit"
    FAILED = "failed"
