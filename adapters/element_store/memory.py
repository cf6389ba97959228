"""
InMemoryPersistence — Persistence that keeps records in a dict, for tests
and for embedding the workflow without a snapshot file.
"""
from __future__ import annotations

from typing import Any, Iterable, Optional

from contracts import Element


class InMemoryPersistence:
    """
    Records every save() call; `fail=True` makes save() report failure.

        store = InMemoryPersistence([narrative])
        workflow.commit(store)
        store.saves      # [("n-1", {"characters": [...], "story": "..."})]
    """

    def __init__(self, elements: Optional[Iterable[Element]] = None, fail: bool = False) -> None:
        self._elements: dict[str, Element] = {el.id: el.model_copy(deep=True) for el in elements or ()}
        self.fail = fail
        self.saves: list[tuple[str, dict[str, Any]]] = []

    def save(self, element_id: str, partial_fields: dict[str, Any]) -> bool:
        if self.fail:
            return False
        self.saves.append((element_id, dict(partial_fields)))
        el = self._elements.get(element_id)
        if el is not None:
            el.fields.update(partial_fields)
        return True

    def snapshot(self) -> dict[str, Element]:
        return {eid: el.model_copy(deep=True) for eid, el in self._elements.items()}

    def get_element(self, element_id: str) -> Element:
        el = self._elements.get(element_id)
        if el is None:
            raise KeyError(f"Element not found: {element_id!r}")
        return el.model_copy(deep=True)
