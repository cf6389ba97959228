from .index import (
    SYSTEM_FIELDS,
    RelationshipGraphIndex,
    group_reverse_links,
    reverse_links_for,
)

__all__ = [
    "RelationshipGraphIndex",
    "SYSTEM_FIELDS",
    "group_reverse_links",
    "reverse_links_for",
]
