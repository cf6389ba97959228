"""
Mention linker — candidate span extraction.

Two passes over the text:
  1. runs of capitalized words ("Town Square") not glued to other alphanumerics
  2. whole-word, case-insensitive occurrences of every known element name
Spans inside inline markup are dropped; identical spans are merged.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from .markup import find_links, overlaps_link

# Capitalized words, optionally separated by whitespace
_CAPITALIZED_RE = re.compile(
    r"(?<![a-zA-Z0-9])[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*(?![a-zA-Z0-9])"
)


@dataclass(frozen=True)
class Candidate:
    text: str
    start: int
    end: int


def compile_name_patterns(names: Iterable[str]) -> list[re.Pattern]:
    """One whole-word, case-insensitive pattern per distinct name."""
    seen: set[str] = set()
    patterns: list[re.Pattern] = []
    for name in names:
        name = (name or "").strip()
        key = name.casefold()
        if not name or key in seen:
            continue
        seen.add(key)
        patterns.append(
            re.compile(
                r"(?<![a-zA-Z0-9])" + re.escape(name) + r"(?![a-zA-Z0-9])",
                re.IGNORECASE,
            )
        )
    return patterns


def extract_candidates(
    text: str,
    name_patterns: Iterable[re.Pattern] = (),
    min_length: int = 3,
) -> list[Candidate]:
    """Candidate spans ordered by (start, end)."""
    if not text:
        return []
    links = find_links(text)
    spans: dict[tuple[int, int], Candidate] = {}

    def add(m: re.Match) -> None:
        start, end = m.start(), m.end()
        if end - start < min_length or (start, end) in spans:
            return
        if overlaps_link(links, start, end):
            return
        spans[(start, end)] = Candidate(m.group(), start, end)

    # 1. Capitalized runs
    for m in _CAPITALIZED_RE.finditer(text):
        add(m)
    # 2. Known names regardless of capitalization
    for pattern in name_patterns:
        for m in pattern.finditer(text):
            add(m)

    return [spans[key] for key in sorted(spans)]
