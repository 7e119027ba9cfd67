"""Persisted user positions for floating labels.

Two independent maps, one per annotated track, from event index to the
label's top-left corner. The store is read once per render and written
once per drag commit. Writes merge into the existing map so saving one
label never drops another label's position.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import OverrideStoreError
from .models import Track

logger = logging.getLogger(__name__)

STORE_KEYS = {
    Track.PRIMARY: "t1_label_positions",
    Track.SECONDARY: "t2_label_positions",
}


@dataclass(frozen=True)
class Point:
    x: float
    y: float


# -----------------------
# Key-value backends
# -----------------------

class KeyValueStore:
    """Minimal string key-value store, scoped to one client."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore(KeyValueStore):
    """All keys kept in one JSON object on disk, surviving reloads."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise OverrideStoreError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise OverrideStoreError(f"{self.path} does not hold a JSON object")
        return data

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except OverrideStoreError as e:
            logger.warning("Replacing unreadable store: %s", e)
            data = {}
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            raise OverrideStoreError(f"Cannot write {self.path}: {e}") from e


# -----------------------
# Label overrides
# -----------------------

class LabelOverrideStore:
    def __init__(self, backend: Optional[KeyValueStore] = None):
        self.backend = backend or MemoryStore()

    def load(self, track: Track) -> Dict[int, Point]:
        """Saved positions for a track; empty when the store is unreadable.

        A broken store only costs the manual positions, the render falls
        back to computed placements.
        """
        positions: Dict[int, Point] = {}
        for index, pos in self._read_map(track).items():
            try:
                positions[int(index)] = Point(float(pos["x"]), float(pos["y"]))
            except (KeyError, TypeError, ValueError):
                logger.debug("Ignoring malformed saved position %r for %s", pos, index)
        return positions

    def save(self, track: Track, index: int, position: Point) -> None:
        """Merge one label position into the track's saved map."""
        data = self._read_map(track)
        data[str(index)] = {"x": round(position.x), "y": round(position.y)}
        if self._write(track, data):
            logger.info("Saved %s label %d at (%.0f, %.0f)", track.value, index, position.x, position.y)

    def clear(self, track: Track) -> None:
        self._write(track, {})

    def _read_map(self, track: Track) -> Dict[str, Any]:
        try:
            raw = self.backend.get(STORE_KEYS[track])
        except OverrideStoreError as e:
            logger.warning("Ignoring label positions for %s: %s", track.value, e)
            return {}
        try:
            data = json.loads(raw) if raw else {}
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable label positions for %s", track.value)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring label positions for %s: not a JSON object", track.value)
            return {}
        return data

    def _write(self, track: Track, data: Dict[str, Any]) -> bool:
        try:
            self.backend.set(STORE_KEYS[track], json.dumps(data))
        except OverrideStoreError as e:
            logger.error("Label positions for %s not saved: %s", track.value, e)
            return False
        return True
