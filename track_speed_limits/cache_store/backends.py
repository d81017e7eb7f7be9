"""Key-value backends for the speed limit cache.

Both backends expose the same small surface (``get``/``set``/``delete``/
``delete_many``/``keys``/``len``) and raise :class:`CacheWriteError` when a
write is rejected. The TTL semantics live one layer up in :mod:`.speed_limit_cache`.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable

from ..errors import CacheWriteError

_LOGGER = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """String-to-string store with enumeration and a size limit."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def delete_many(self, keys: Iterable[str]) -> int: ...

    def keys(self) -> Iterable[str]: ...

    def __len__(self) -> int: ...


class MemoryKeyValueStore:
    """Thread-safe dict-backed store with an optional entry quota."""

    def __init__(self, max_entries: int | None = None) -> None:
        self._max_entries = max_entries if max_entries and max_entries > 0 else None
        self._lock = threading.Lock()
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            if (
                self._max_entries is not None
                and key not in self._data
                and len(self._data) >= self._max_entries
            ):
                raise CacheWriteError(
                    f"store quota of {self._max_entries} entries exceeded"
                )
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def delete_many(self, keys: Iterable[str]) -> int:
        with self._lock:
            removed = 0
            for key in keys:
                if self._data.pop(key, None) is not None:
                    removed += 1
            return removed

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class JsonFileKeyValueStore:
    """Store persisted as a single JSON object on disk.

    The file is read lazily on first access and rewritten atomically (temp
    file + replace) after every mutation; ``delete_many`` rewrites it once for
    the whole batch. A missing file is an empty store; a corrupt one is logged
    and replaced on the next successful write.
    """

    def __init__(self, path: str | Path, max_entries: int | None = None) -> None:
        candidate = Path(path)
        self._path = candidate if candidate.is_absolute() else Path.cwd() / candidate
        self._max_entries = max_entries if max_entries and max_entries > 0 else None
        self._lock = threading.Lock()
        self._data: Optional[Dict[str, str]] = None

    @property
    def path(self) -> Path:
        return self._path

    def _read_file(self) -> Dict[str, str]:
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            _LOGGER.error("Failed reading cache file %s: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            _LOGGER.warning(
                "Ignoring cache file %s with unexpected type %s",
                self._path,
                type(payload).__name__,
            )
            return {}
        return {
            str(key): value for key, value in payload.items() if isinstance(value, str)
        }

    def _write_file(self, data: Dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._path.with_suffix(".tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=True, sort_keys=True)
            temp_path.replace(self._path)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

    def _loaded(self) -> Dict[str, str]:
        if self._data is None:
            self._data = self._read_file()
        return self._data

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._loaded().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._loaded()
            if (
                self._max_entries is not None
                and key not in data
                and len(data) >= self._max_entries
            ):
                raise CacheWriteError(
                    f"cache file {self._path} is full ({self._max_entries} entries)"
                )
            updated = dict(data)
            updated[key] = value
            self._commit(updated)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._loaded()
            if key not in data:
                return
            updated = dict(data)
            del updated[key]
            self._commit(updated)

    def delete_many(self, keys: Iterable[str]) -> int:
        """Remove ``keys`` with a single file rewrite; return how many existed."""

        with self._lock:
            data = self._loaded()
            updated = dict(data)
            removed = sum(1 for key in keys if updated.pop(key, None) is not None)
            if removed:
                self._commit(updated)
            return removed

    def _commit(self, updated: Dict[str, str]) -> None:
        try:
            self._write_file(updated)
        except OSError as exc:
            raise CacheWriteError(
                f"failed writing cache file {self._path}: {exc}"
            ) from exc
        self._data = updated

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._loaded())

    def __len__(self) -> int:
        with self._lock:
            return len(self._loaded())


__all__ = ["KeyValueStore", "MemoryKeyValueStore", "JsonFileKeyValueStore"]
