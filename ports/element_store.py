"""
Port: ElementStore
Responsibility: read-only snapshots of the world's elements.
The core receives a fresh snapshot on every call instead of subscribing to changes.
"""
from typing import Protocol, runtime_checkable

from contracts import Element


@runtime_checkable
class ElementStore(Protocol):
    def snapshot(self) -> dict[str, Element]:
        """Returns {element_id → Element} as of now. Callers must not mutate it."""
        ...

    def get_element(self, element_id: str) -> Element:
        """Returns one Element by ID. Raises KeyError if not found."""
        ...
