"""Shared preset storage: user-defined label sets keyed by name.

The store owns its state; there is no module-level cache.  Writes follow a
read-replace pattern under a lock and land atomically via ``os.replace``.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_PRESET_KEY = "default"


class PresetStoreError(RuntimeError):
    """Raised when the preset file cannot be read or written."""


class Preset(BaseModel):
    key: str
    data: dict[str, Any] = Field(default_factory=dict)
    updated_at: str = ""


def normalize_key(key: Any, fallback: str = DEFAULT_PRESET_KEY) -> str:
    """Trimmed *key*, else trimmed *fallback*, else ``"default"``."""
    for candidate in (key, fallback):
        if candidate is None:
            continue
        value = str(candidate).strip()
        if value:
            return value
    return DEFAULT_PRESET_KEY


class PresetStore:
    """JSON-file backed preset store.

    File layout::

        {"default": {"data": {...}, "updated_at": "2024-01-05T10:00:00+00:00"}}
    """

    def __init__(self, path: str | Path, default_key: str = DEFAULT_PRESET_KEY) -> None:
        self.path = Path(path)
        self.default_key = normalize_key(default_key)
        self._lock = threading.Lock()

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            raise PresetStoreError(f"Cannot read presets from {self.path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise PresetStoreError(f"Presets file {self.path} does not hold an object")
        return raw

    def _write_all(self, rows: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".presets-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(rows, fh, ensure_ascii=False, indent=2)
                os.replace(tmp, self.path)
            except BaseException:
                with contextlib.suppress(OSError):
                    os.unlink(tmp)
                raise
        except OSError as exc:
            raise PresetStoreError(f"Cannot write presets to {self.path}: {exc}") from exc

    def key_for(self, key: Any) -> str:
        return normalize_key(key, self.default_key)

    def load(self, key: Any = None) -> Preset | None:
        """Return the stored preset for *key*, or ``None`` if it was never saved."""
        key = self.key_for(key)
        with self._lock:
            row = self._read_all().get(key)
        if not isinstance(row, dict):
            return None
        data = row.get("data")
        return Preset(
            key=key,
            data=data if isinstance(data, dict) else {},
            updated_at=str(row.get("updated_at") or ""),
        )

    def save(self, key: Any, data: dict[str, Any]) -> Preset:
        """Insert or replace the preset stored under *key*."""
        if not isinstance(data, dict):
            raise TypeError("preset data must be a dict")
        preset = Preset(
            key=self.key_for(key),
            data=data,
            updated_at=datetime.now(UTC).isoformat(),
        )
        with self._lock:
            rows = self._read_all()
            rows[preset.key] = {"data": preset.data, "updated_at": preset.updated_at}
            self._write_all(rows)
        logger.info("Saved preset %r to %s", preset.key, self.path)
        return preset
