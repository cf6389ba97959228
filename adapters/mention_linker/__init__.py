from .detector import LINKED_BOOST, DetectorConfig, MentionDetector, resolve_overlaps
from .index import CategoryIndex, name_key
from .markup import InlineLink, find_links, format_link, linked_ids_in, overlaps_link

__all__ = [
    "LINKED_BOOST",
    "CategoryIndex",
    "DetectorConfig",
    "InlineLink",
    "MentionDetector",
    "find_links",
    "format_link",
    "linked_ids_in",
    "name_key",
    "overlaps_link",
    "resolve_overlaps",
]
