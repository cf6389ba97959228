"""
Mention linker — inline reference markup.

Format: [Display text](category:id)

The format is stored inside element text and must stay stable: anything
written by format_link() is read back by find_links().
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

LINK_RE = re.compile(r"\[([^\]]+)\]\(([^):]+):([^)]+)\)")


@dataclass(frozen=True)
class InlineLink:
    display: str
    category: str
    element_id: str
    start: int
    end: int


def find_links(text: str) -> list[InlineLink]:
    """Every inline link in text, in order of appearance."""
    if not text:
        return []
    return [
        InlineLink(
            display=m.group(1),
            category=m.group(2),
            element_id=m.group(3),
            start=m.start(),
            end=m.end(),
        )
        for m in LINK_RE.finditer(text)
    ]


def linked_ids_in(text: str) -> set[str]:
    return {link.element_id for link in find_links(text)}


def format_link(display: str, category: str, element_id: str) -> str:
    # brackets in the display text would end the link early
    display = display.replace("[", "(").replace("]", ")")
    return f"[{display}]({category}:{element_id})"


def overlaps_link(links: Iterable[InlineLink], start: int, end: int) -> bool:
    return any(link.start < end and start < link.end for link in links)
