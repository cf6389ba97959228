"""
Mention linker — MentionDetector: scored, non-overlapping mentions of known
elements in free text.

Pipeline per detect() call:
  1. candidate spans   (spans.extract_candidates)
  2. fuzzy lookup      (one CategoryIndex per category, RapidFuzz)
  3. linked boost      (+LINKED_BOOST for ids already referenced, capped at 1)
  4. category threshold
  5. overlap resolution (best confidence wins, then sorted by position)

detect() is a pure function of (text, indices, linked_ids).
"""
from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional, Union

from pydantic import BaseModel, Field

from config import Settings
from contracts import Element, Mention, group_by_category

from .markup import linked_ids_in
from .index import CategoryIndex
from .spans import compile_name_patterns, extract_candidates

logger = logging.getLogger("worldlink.mention_linker")

# Confidence added to candidates the text-bearing element already references.
LINKED_BOOST = 0.1


class DetectorConfig(BaseModel):
    """Thresholds of the mention detector. Similarities are on a 0..1 scale."""

    linked_boost: float = LINKED_BOOST
    match_floor: float = 0.7
    default_threshold: float = 0.7
    category_thresholds: dict[str, float] = Field(default_factory=lambda: {"event": 0.8})
    min_span_length: int = 3
    fuzzy_scorer: str = "WRatio"
    fuzzy_limit: int = 5

    @classmethod
    def from_settings(cls, settings: Settings) -> DetectorConfig:
        return cls(
            linked_boost=settings.linked_boost,
            match_floor=settings.match_floor,
            default_threshold=settings.default_threshold,
            category_thresholds=dict(settings.category_thresholds),
            min_span_length=settings.min_span_length,
            fuzzy_scorer=settings.fuzzy_scorer,
            fuzzy_limit=settings.fuzzy_limit,
        )

    def threshold_for(self, category: str) -> float:
        return self.category_thresholds.get(category, self.default_threshold)


def _dedup_key(m: Mention) -> tuple:
    return (-m.confidence, -(m.end - m.start), m.start, m.category, m.element_id)


def resolve_overlaps(mentions: Iterable[Mention]) -> list[Mention]:
    """Greedily keeps the best non-overlapping mentions, returned by start offset."""
    kept: list[Mention] = []
    for m in sorted(mentions, key=_dedup_key):
        if not any(k.overlaps(m.start, m.end) for k in kept):
            kept.append(m)
    return sorted(kept, key=lambda m: (m.start, m.end))


class MentionDetector:
    """
    Usage:
        detector = MentionDetector.from_elements(snapshot.values())
        mentions = detector.detect(story, linked_ids=workflow.linked_ids())

    One instance per session; call rebuild() when category membership changes.
    """

    def __init__(
        self,
        elements_by_category: Mapping[str, Iterable[Element]],
        config: Optional[DetectorConfig] = None,
    ) -> None:
        self._config = config or DetectorConfig()
        self._indices: dict[str, CategoryIndex] = {}
        for category in sorted(elements_by_category):
            index = CategoryIndex(
                category,
                elements_by_category[category],
                threshold=self._config.threshold_for(category),
                match_floor=self._config.match_floor,
                scorer=self._config.fuzzy_scorer,
            )
            if len(index):
                self._indices[category] = index

        self._name_patterns = compile_name_patterns(
            el.name for index in self._indices.values() for el in index.elements
        )
        logger.debug(
            "mention indices built: %s",
            {category: len(index) for category, index in self._indices.items()},
        )

    @classmethod
    def from_elements(
        cls,
        elements: Union[Iterable[Element], Mapping[str, Element]],
        config: Optional[DetectorConfig] = None,
    ) -> MentionDetector:
        return cls(group_by_category(elements), config)

    def rebuild(self, elements: Union[Iterable[Element], Mapping[str, Element]]) -> MentionDetector:
        """A new detector over another element collection, same configuration."""
        return MentionDetector.from_elements(elements, self._config)

    @property
    def config(self) -> DetectorConfig:
        return self._config

    @property
    def categories(self) -> list[str]:
        return list(self._indices)

    # ── detection ─────────────────────────────────────────────────────────────

    def detect(self, text: str, linked_ids: Iterable[str] = frozenset()) -> list[Mention]:
        if not text or not self._indices:
            return []
        linked_in_fields = frozenset(linked_ids)
        linked_in_text = linked_ids_in(text)
        cfg = self._config

        hits: list[Mention] = []
        for span in extract_candidates(text, self._name_patterns, cfg.min_span_length):
            for category, index in self._indices.items():
                for element, similarity in index.search(span.text, limit=cfg.fuzzy_limit):
                    is_linked = element.id in linked_in_fields or element.id in linked_in_text
                    confidence = min(similarity + cfg.linked_boost, 1.0) if is_linked else similarity
                    if confidence < index.threshold:
                        continue
                    hits.append(Mention(
                        text=span.text,
                        start=span.start,
                        end=span.end,
                        confidence=confidence,
                        element=element,
                        category=category,
                        is_linked=is_linked,
                    ))

        mentions = resolve_overlaps(hits)
        logger.debug("detect: %d candidate hits, %d mentions", len(hits), len(mentions))
        return mentions

    def search(self, query: str, category: Optional[str] = None) -> list[tuple[Element, float]]:
        """Manual lookup by name: (element, score) pairs, best first, one per id."""
        if category is not None:
            indices = [self._indices[category]] if category in self._indices else []
        else:
            indices = list(self._indices.values())

        results: list[tuple[Element, float]] = []
        for index in indices:
            results.extend(index.search(query, limit=self._config.fuzzy_limit))

        results.sort(key=lambda r: (-r[1], r[0].name.casefold(), r[0].id))
        seen: set[str] = set()
        unique: list[tuple[Element, float]] = []
        for element, score in results:
            if element.id in seen:
                continue
            seen.add(element.id)
            unique.append((element, score))
        return unique
