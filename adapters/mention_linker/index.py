"""
Mention linker — CategoryIndex: RapidFuzz name lookup over one category.
"""
from __future__ import annotations

import re
from typing import Iterable

from rapidfuzz import fuzz, process as rf_process

from contracts import Element

_DASHES_RE = re.compile(r"[\u2010-\u2015\u2212]")
_SINGLE_QUOTES_RE = re.compile(r"[\u2018\u2019\u02bc]")
_DOUBLE_QUOTES_RE = re.compile(r"[\u201c\u201d]")
_SPACES_RE = re.compile(r"\s+")


def name_key(name: str) -> str:
    """Case-folded key; typographic dashes and quotes become ASCII, whitespace collapses.

    "  Jean\u2010Luc  O\u2019Neil " → "jean-luc o'neil"
    """
    key = _DASHES_RE.sub("-", name.strip().casefold())
    key = _SINGLE_QUOTES_RE.sub("'", key)
    key = _DOUBLE_QUOTES_RE.sub('"', key)
    return _SPACES_RE.sub(" ", key)


class CategoryIndex:
    """
    Name index over the elements of one category.

    Usage:
        index = CategoryIndex("character", elements, threshold=0.7, match_floor=0.7)
        index.search("Alice")      # [(Element(name="Alice"), 1.0)]
    """

    def __init__(
        self,
        category: str,
        elements: Iterable[Element],
        threshold: float,
        match_floor: float = 0.0,
        scorer: str = "WRatio",
    ) -> None:
        self.category = category
        self.threshold = threshold
        self._scorer = getattr(fuzz, scorer)
        self._score_cutoff = match_floor * 100.0
        # nameless elements cannot be mentioned
        named = [el for el in elements if el.name and el.name.strip()]
        self._elements: list[Element] = named
        self._keys: list[str] = [name_key(el.name) for el in named]

    def __len__(self) -> int:
        return len(self._elements)

    @property
    def elements(self) -> list[Element]:
        return list(self._elements)

    def search(self, query: str, limit: int = 5) -> list[tuple[Element, float]]:
        """(element, similarity 0..1) pairs at or above the match floor, best first."""
        key = name_key(query)
        if not key or not self._keys:
            return []
        # (matched key, score 0..100, position in self._keys)
        results = rf_process.extract(
            key,
            self._keys,
            scorer=self._scorer,
            limit=limit,
            score_cutoff=self._score_cutoff,
        )
        return [(self._elements[i], score / 100.0) for _key, score, i in results]
