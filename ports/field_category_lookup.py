"""
Port: FieldCategoryLookup
Responsibility: name → category knowledge used by field inference and linking.
Stands in for a schema registry; a fetched schema can implement it instead of
the hand-maintained tables.
"""
from typing import Optional, Protocol, runtime_checkable

from contracts import FieldHint


@runtime_checkable
class FieldCategoryLookup(Protocol):
    def hint_for(self, normalized_name: str) -> Optional[FieldHint]:
        """
        Returns the known cardinality/category for a suffix-stripped,
        snake_case, lower-case field name, or None if the name is unknown.
        """
        ...

    def guess_category(self, normalized_name: str) -> Optional[str]:
        """
        Best-effort target category for a field name: exact table first,
        then category names, plurals, prefixes and substrings. None if no guess.
        """
        ...

    def is_plural_scalar(self, normalized_name: str) -> bool:
        """True for names that end in 's' but hold free text (e.g. 'customs')."""
        ...

    def reference_field_for(self, category: str) -> Optional[str]:
        """Conventional multi-reference field for a category ('character' → 'characters')."""
        ...

    def known_categories(self) -> frozenset[str]:
        """Category tags the lookup knows about. Other categories are still tolerated."""
        ...

    def label_for(self, normalized_name: str) -> Optional[str]:
        """Friendly reverse-relation label ('location' → 'Located in'), or None."""
        ...
