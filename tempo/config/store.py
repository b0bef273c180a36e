"""Persisted preference stores."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol


class PreferenceStore(Protocol):
    """Opaque key/value collaborator used by global initialization."""

    def get(self, key: str) -> dict[str, Any] | None: ...

    def set(self, key: str, value: dict[str, Any]) -> None: ...


class MemoryStore:
    """In-process store, handy when nothing should touch the disk."""

    def __init__(self, data: dict[str, dict[str, Any]] | None = None) -> None:
        self._data = dict(data or {})

    def get(self, key: str) -> dict[str, Any] | None:
        value = self._data.get(key)
        return dict(value) if value is not None else None

    def set(self, key: str, value: dict[str, Any]) -> None:
        self._data[key] = dict(value)


class JsonFileStore:
    """Persist preference mappings keyed by name in a JSON file."""

    def __init__(self, store_path: Path) -> None:
        self._store_path = store_path

    def get(self, key: str) -> dict[str, Any] | None:
        value = self._read_data().get(key)
        if value is None:
            return None
        if not isinstance(value, dict):
            raise ValueError(f"Preference '{key}' is not a mapping: {self._store_path}")
        return value

    def set(self, key: str, value: dict[str, Any]) -> None:
        data = self._read_data()
        data[key] = value
        self._write_data(data)

    def _read_data(self) -> dict[str, Any]:
        if not self._store_path.exists():
            return {}

        try:
            raw = json.loads(self._store_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid preference store JSON: {self._store_path}") from exc

        if not isinstance(raw, dict):
            raise ValueError(f"Preference store must contain an object: {self._store_path}")
        return raw

    def _write_data(self, data: dict[str, Any]) -> None:
        self._store_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._store_path.with_suffix(f"{self._store_path.suffix}.tmp")
        temp_path.write_text(
            json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False),
            encoding="utf-8",
        )
        temp_path.replace(self._store_path)
