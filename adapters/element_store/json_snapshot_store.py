"""
JsonSnapshotStore — ElementStore and Persistence over a world export file.

Accepted layouts:
  {"elements": [{"id": ..., "name": ..., "category": ..., ...}, ...]}
  [{"id": ..., ...}, ...]
  {"character": [{"id": ..., ...}], "location": [...]}   # category → records

save() writes the merged record to a temporary file in the layout the
snapshot was read in, moves it over the snapshot, and only then updates the
in-memory record. A failed write returns False and changes nothing.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Union

from contracts import Element

logger = logging.getLogger("worldlink.element_store")

_ENVELOPE = "envelope"
_LIST = "list"
_BY_CATEGORY = "by_category"


class JsonSnapshotStore:
    """Implements ports.ElementStore and ports.Persistence on a JSON file."""

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)
        self._layout, self._records, self._extra = _load(self._path)

    @property
    def path(self) -> Path:
        return self._path

    # ── ElementStore ──────────────────────────────────────────────────────────

    def snapshot(self) -> dict[str, Element]:
        return {str(r["id"]): Element.from_record(r) for r in self._records}

    def get_element(self, element_id: str) -> Element:
        return Element.from_record(self._record(element_id))

    # ── Persistence ───────────────────────────────────────────────────────────

    def save(self, element_id: str, partial_fields: dict[str, Any]) -> bool:
        try:
            record = self._record(element_id)
        except KeyError:
            logger.warning("save: element %r is not in %s", element_id, self._path)
            return False

        merged = {**record, **partial_fields}
        records = [merged if r is record else r for r in self._records]
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            tmp.write_text(
                json.dumps(self._dump(records), indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
            tmp.replace(self._path)
        except OSError as e:
            logger.error("save: writing %s to %s failed: %s", element_id, self._path, e)
            tmp.unlink(missing_ok=True)
            return False

        # in-memory state follows the file only after a successful write
        record.update(partial_fields)
        logger.info("saved %s (%s) to %s", element_id, ", ".join(partial_fields), self._path)
        return True

    # ── private ───────────────────────────────────────────────────────────────

    def _record(self, element_id: str) -> dict[str, Any]:
        for record in self._records:
            if str(record["id"]) == element_id:
                return record
        raise KeyError(f"Element not found: {element_id!r}")

    def _dump(self, records: list[dict[str, Any]]) -> Any:
        if self._layout == _LIST:
            return records
        if self._layout == _ENVELOPE:
            return {**self._extra, "elements": records}
        grouped: dict[str, list[dict[str, Any]]] = {}
        for record in records:
            grouped.setdefault(record["category"], []).append(record)
        return grouped


def _load(path: Path) -> tuple[str, list[dict[str, Any]], dict[str, Any]]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{path} is not valid JSON: {e}") from e

    extra: dict[str, Any] = {}
    if isinstance(data, list):
        layout, records = _LIST, data
    elif isinstance(data, dict) and isinstance(data.get("elements"), list):
        layout, records = _ENVELOPE, data["elements"]
        extra = {k: v for k, v in data.items() if k != "elements"}
    elif isinstance(data, dict) and all(isinstance(v, list) for v in data.values()):
        layout, records = _BY_CATEGORY, []
        for category, members in data.items():
            for record in members:
                if isinstance(record, dict):
                    record.setdefault("category", category)
                records.append(record)
    else:
        raise ValueError(
            f"{path}: expected a list of records, {{'elements': [...]}} "
            "or a mapping of category → records"
        )

    seen: set[str] = set()
    for i, record in enumerate(records):
        if not isinstance(record, dict) or "id" not in record:
            raise ValueError(f"{path}: record #{i} has no 'id'")
        element_id = str(record["id"])
        if element_id in seen:
            raise ValueError(f"{path}: duplicate element id {element_id!r}")
        seen.add(element_id)

    logger.debug("loaded %d elements from %s (%s layout)", len(records), path, layout)
    return layout, records, extra
