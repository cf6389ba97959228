"""
Link workflow — LinkResolutionWorkflow: turns accepted mentions into durable
references on one text-bearing element.

Accepting a mention does two things to a provisional working copy:
  - appends the mentioned id to the conventional reference field of its
    category ("character" → "characters"), never twice
  - rewrites the mention's span into inline markup: [Alice](character:c-1)

Nothing reaches the store until commit(), which sends every pending change in
one Persistence.save() call. A failed save rolls the working copy back, so the
field update and the text rewrite are stored together or not at all.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from config import Settings
from contracts import Cardinality, CommitStatus, Element, LinkEdit, Mention
from ports.persistence import Persistence

from ..field_inference.engine import FieldInferenceEngine
from ..field_inference.normalize import normalize_field_name
from ..mention_linker.markup import format_link, linked_ids_in

logger = logging.getLogger("worldlink.link_workflow")

# Spellings under which a conventional reference field may already exist.
_FIELD_VARIANTS = ("{}", "{}Ids", "{}_ids")

SuppressionKey = tuple[int, str, str]  # (start, element id, span text)


class LinkResolutionWorkflow:
    """
    One instance per editing session of one element.

    Usage:
        wf = LinkResolutionWorkflow(narrative)
        mentions = wf.filter_suppressed(detector.detect(wf.text, wf.linked_ids()))
        wf.link_all(mentions)
        wf.commit(store)            # CommitStatus.COMMITTED
    """

    def __init__(
        self,
        element: Element,
        engine: Optional[FieldInferenceEngine] = None,
        text_field: str = "story",
        rewrite_text: bool = True,
    ) -> None:
        self._engine = engine or FieldInferenceEngine()
        self._text_field = text_field
        self._rewrite_text = rewrite_text

        self._base: Element = element.model_copy(deep=True)
        self._working: Element = element.model_copy(deep=True)
        self._dirty: list[str] = []                 # changed field names, in order
        self._suppressed: set[SuppressionKey] = set()

    @classmethod
    def from_settings(
        cls,
        element: Element,
        settings: Settings,
        engine: Optional[FieldInferenceEngine] = None,
    ) -> LinkResolutionWorkflow:
        return cls(
            element,
            engine=engine,
            text_field=settings.text_field,
            rewrite_text=settings.rewrite_text,
        )

    # ── state ─────────────────────────────────────────────────────────────────

    @property
    def element(self) -> Element:
        """The working copy, including uncommitted edits."""
        return self._working

    @property
    def text_field(self) -> str:
        return self._text_field

    @property
    def text(self) -> str:
        value = self._working.fields.get(self._text_field)
        return value if isinstance(value, str) else ""

    def linked_ids(self) -> frozenset[str]:
        """Ids referenced by the element's reference fields or inline markup.

        Single-reference fields the lookup knows by name ("protagonist",
        "narrator", ...) count whatever id they hold, opaque or not.
        """
        ids: set[str] = set(self._engine.referenced_ids(self._working))
        lookup = self._engine.lookup
        for name, value in self._working.fields.items():
            if not isinstance(value, str) or not value.strip():
                continue
            hint = lookup.hint_for(normalize_field_name(name))
            if hint is not None and hint.cardinality is Cardinality.SINGLE:
                ids.add(value)
        for category in lookup.known_categories():
            base = lookup.reference_field_for(category)
            if base is None:
                continue
            for variant in _FIELD_VARIANTS:
                value = self._working.fields.get(variant.format(base))
                if isinstance(value, list):
                    ids.update(v for v in value if isinstance(v, str) and v)
        ids.update(linked_ids_in(self.text))
        ids.discard(self._working.id)
        return frozenset(ids)

    def pending_fields(self) -> dict[str, Any]:
        """The uncommitted partial update: field name → new value."""
        return {name: self._working.fields.get(name) for name in self._dirty}

    # ── decisions ─────────────────────────────────────────────────────────────

    def accept(self, mention: Mention) -> LinkEdit:
        if mention.is_linked:
            return LinkEdit(element_id=self._working.id)
        return self._apply([mention])

    def link_all(self, mentions: Iterable[Mention]) -> LinkEdit:
        """Accepts every unlinked mention; each id is added once, every span rewritten."""
        return self._apply([m for m in mentions if not m.is_linked])

    def reject(self, mention: Mention) -> None:
        self._suppressed.add(_suppression_key(mention))

    def filter_suppressed(self, mentions: Iterable[Mention]) -> list[Mention]:
        """Drops rejected mentions. A rejection lapses once the text at its span changes."""
        text = self.text
        for key in list(self._suppressed):
            start, _id, span_text = key
            if text[start:start + len(span_text)] != span_text:
                self._suppressed.discard(key)
        return [m for m in mentions if _suppression_key(m) not in self._suppressed]

    # ── commit ────────────────────────────────────────────────────────────────

    def commit(self, persistence: Persistence) -> CommitStatus:
        partial = self.pending_fields()
        if not partial:
            return CommitStatus.NOTHING_TO_COMMIT

        element_id = self._working.id
        try:
            saved = persistence.save(element_id, partial)
        except Exception:
            logger.exception("saving links of %s failed", element_id)
            saved = False

        if not saved:
            logger.warning(
                "commit of %s failed, rolling back %d field(s)", element_id, len(partial)
            )
            self.rollback()
            return CommitStatus.FAILED

        self._base = self._working.model_copy(deep=True)
        self._dirty.clear()
        logger.info("committed %s: %s", element_id, sorted(partial))
        return CommitStatus.COMMITTED

    def rollback(self) -> None:
        """Discards every uncommitted edit."""
        self._working = self._base.model_copy(deep=True)
        self._dirty.clear()

    # ── private ───────────────────────────────────────────────────────────────

    def _apply(self, mentions: list[Mention]) -> LinkEdit:
        text = self.text
        fresh: list[Mention] = []
        for m in mentions:
            if text[m.start:m.end] != m.text:
                logger.warning(
                    "skipping stale mention %r at %d-%d of %s",
                    m.text, m.start, m.end, self._working.id,
                )
                continue
            fresh.append(m)

        edit = LinkEdit(element_id=self._working.id)
        if not fresh:
            return edit

        # one field update per id, in order of first appearance
        for m in fresh:
            if m.element_id in edit.linked_ids:
                continue
            edit.linked_ids.append(m.element_id)
            field_name = self._field_for(m.category)
            if field_name is None:
                logger.debug("no reference field for category %r", m.category)
                continue
            current = self._working.fields.get(field_name)
            ids = list(current) if isinstance(current, list) else []
            if m.element_id in ids:
                continue
            ids.append(m.element_id)
            self._set_field(field_name, ids)
            edit.field_updates[field_name] = ids

        if self._rewrite_text:
            new_text, count = _rewrite(text, fresh)
            if count:
                self._set_field(self._text_field, new_text)
                edit.text = new_text
                edit.rewritten_spans = count

        return edit

    def _field_for(self, category: str) -> Optional[str]:
        base = self._engine.reference_field_for(category)
        if base is None:
            return None
        for variant in _FIELD_VARIANTS:
            name = variant.format(base)
            if name in self._working.fields:
                return name
        return base

    def _set_field(self, name: str, value: Any) -> None:
        self._working.fields[name] = value
        if name not in self._dirty:
            self._dirty.append(name)


def _suppression_key(mention: Mention) -> SuppressionKey:
    return (mention.start, mention.element_id, mention.text)


def _rewrite(text: str, mentions: list[Mention]) -> tuple[str, int]:
    """Replaces each span with inline markup, right to left so offsets stay valid."""
    count = 0
    left_bound = len(text) + 1
    for m in sorted(mentions, key=lambda m: m.start, reverse=True):
        if m.end > left_bound:
            continue  # overlaps a span already rewritten
        link = format_link(m.text, m.category, m.element_id)
        text = text[:m.start] + link + text[m.end:]
        left_bound = m.start
        count += 1
    return text, count
