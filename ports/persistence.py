"""
Port: Persistence
Responsibility: durable partial updates of a single element.
Used only by callers around LinkResolutionWorkflow, never by detection/inference.
"""
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Persistence(Protocol):
    def save(self, element_id: str, partial_fields: dict[str, Any]) -> bool:
        """
        Persists the given fields of one element in a single operation.
        Returns True on success, False if nothing was written.
        """
        ...
