"""Saved framing openings backed by a local JSON key-value store.

The store is a single JSON document on disk mapping key names to values.
Saved openings live under one named key as a JSON array of
``{tag, type, roWidth, roHeight, items, timestamp}`` records. The list is
append-only apart from explicit remove and clear; nothing is synced to a
server.
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from sitebook.calculators.fractions import DEFAULT_PRECISION, to_fraction_string
from sitebook.calculators.framing import CutListEntry, OpeningSpec
from sitebook.logging import get_logger

logger = get_logger(__name__)

SAVED_OPENINGS_KEY = "framing_cut_list"


class LocalStore:
    """Minimal JSON key-value store persisted to a single file.

    Reads go to disk every time so separate processes sharing the file see
    each other's writes. A missing file reads as an empty store.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning("local_store_corrupt", path=str(self.path), error=str(e))
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        tmp_path.replace(self.path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._read_all().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def delete(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


@dataclass
class SavedOpening:
    """A cut list saved for later reference.

    Attributes:
        tag: Opening mark, e.g. "W-101".
        type: Opening type (window, door, pass-through).
        roWidth: Formatted rough opening width.
        roHeight: Formatted rough opening height.
        items: Cut-list rows as ``{name, length, qty, material}`` dicts.
        timestamp: Save time in milliseconds since the epoch.
    """

    tag: str
    type: str
    roWidth: str
    roHeight: str
    items: list[dict[str, Any]] = field(default_factory=list)
    timestamp: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SavedOpening:
        return cls(
            tag=str(data.get("tag", "")),
            type=str(data.get("type", "")),
            roWidth=str(data.get("roWidth", "")),
            roHeight=str(data.get("roHeight", "")),
            items=list(data.get("items") or []),
            timestamp=int(data.get("timestamp") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class SavedOpeningsRepository:
    """Append, list, remove, and clear saved openings in a LocalStore."""

    def __init__(self, store: LocalStore, key: str = SAVED_OPENINGS_KEY):
        self.store = store
        self.key = key

    def list(self) -> list[SavedOpening]:
        raw = self.store.get(self.key, [])
        if not isinstance(raw, list):
            return []
        return [SavedOpening.from_dict(item) for item in raw if isinstance(item, dict)]

    def append(
        self,
        spec: OpeningSpec,
        entries: list[CutListEntry],
        precision: int = DEFAULT_PRECISION,
    ) -> SavedOpening:
        """Save the cut list for an opening.

        An empty opening tag defaults to the type initial plus the next
        position, e.g. "W-3" for the third saved entry.

        Args:
            spec: Opening the cut list was computed for.
            entries: Cut-list entries to save.
            precision: Fraction denominator for the formatted RO size.

        Returns:
            The saved record.
        """
        existing = self.list()
        tag = spec.opening_tag or f"{spec.opening_type[:1].upper()}-{len(existing) + 1}"
        saved = SavedOpening(
            tag=tag,
            type=spec.opening_type,
            roWidth=to_fraction_string(spec.ro_width, precision=precision),
            roHeight=to_fraction_string(spec.ro_height, precision=precision),
            items=[
                {
                    "name": entry.name,
                    "length": entry.length,
                    "qty": entry.qty,
                    "material": entry.material,
                }
                for entry in entries
            ],
            timestamp=int(time.time() * 1000),
        )
        self.store.set(self.key, [item.to_dict() for item in existing] + [saved.to_dict()])
        logger.info("opening_saved", tag=tag, item_count=len(saved.items), total=len(existing) + 1)
        return saved

    def remove(self, index: int) -> SavedOpening:
        """Remove one saved opening by zero-based position.

        Raises:
            IndexError: If no saved opening exists at index.
        """
        existing = self.list()
        if index < 0 or index >= len(existing):
            raise IndexError(f"No saved opening at position {index}")
        removed = existing.pop(index)
        self.store.set(self.key, [item.to_dict() for item in existing])
        logger.info("opening_removed", tag=removed.tag, remaining=len(existing))
        return removed

    def clear(self) -> int:
        count = len(self.list())
        self.store.delete(self.key)
        logger.info("openings_cleared", count=count)
        return count
