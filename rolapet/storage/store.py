"""Namespaced key-value stores.

Each key holds one logical collection (``users``, ``ratings``, ...). Writers
go through :meth:`BaseStore.collection`, which holds a per-key lock for the
whole load -> mutate -> store cycle so that two callers working on the same
collection cannot overwrite each other's changes.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

log = logging.getLogger(__name__)


class BaseStore:
    """Shared locking and unit-of-work logic. Subclasses implement the medium."""

    def __init__(self, prefix: str = "rolapet_") -> None:
        self._prefix = prefix
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Medium-specific hooks
    # ------------------------------------------------------------------

    def _load(self, name: str) -> Any:
        raise NotImplementedError

    def _dump(self, name: str, value: Any) -> None:
        raise NotImplementedError

    def _delete(self, name: str) -> None:
        raise NotImplementedError

    def _names(self) -> list[str]:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def lock_for(self, key: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock

    def get(self, key: str) -> Any:
        """Return the value stored under *key*, or ``None``."""
        with self.lock_for(key):
            return self._load(self._prefix + key)

    def set(self, key: str, value: Any) -> None:
        with self.lock_for(key):
            self._dump(self._prefix + key, value)

    def remove(self, key: str) -> None:
        with self.lock_for(key):
            self._delete(self._prefix + key)

    def clear(self) -> None:
        """Remove every key under this store's prefix."""
        for name in self._names():
            if name.startswith(self._prefix):
                with self.lock_for(name[len(self._prefix):]):
                    self._delete(name)

    @contextmanager
    def collection(self, key: str, default: Any = None) -> Iterator[Any]:
        """Lock *key*, yield its value (or *default*) and write it back on success.

        Nothing is written when the block raises.
        """
        with self.lock_for(key):
            value = self._load(self._prefix + key)
            if value is None:
                value = [] if default is None else default
            yield value
            self._dump(self._prefix + key, value)


class JsonFileStore(BaseStore):
    """One ``<prefix><key>.json`` file per key under *base_dir*."""

    def __init__(self, base_dir: Optional[str | Path] = None, prefix: str = "rolapet_") -> None:
        super().__init__(prefix)
        if base_dir is None:
            self._base = Path.home() / ".rolapet" / "data"
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)

    @property
    def base_dir(self) -> Path:
        return self._base

    def _path(self, name: str) -> Path:
        return self._base / f"{name}.json"

    def _load(self, name: str) -> Any:
        path = self._path(name)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            log.warning("Unreadable store file %s: %s", path, exc)
            return None

    def _dump(self, name: str, value: Any) -> None:
        self._path(name).write_text(
            json.dumps(value, indent=2, ensure_ascii=False, default=str),
            encoding="utf-8",
        )

    def _delete(self, name: str) -> None:
        self._path(name).unlink(missing_ok=True)

    def _names(self) -> list[str]:
        return [p.stem for p in self._base.glob("*.json")]


class MemoryStore(BaseStore):
    """In-process store. Values are deep-copied in and out."""

    def __init__(self, prefix: str = "rolapet_") -> None:
        super().__init__(prefix)
        self._data: dict[str, Any] = {}

    def _load(self, name: str) -> Any:
        return copy.deepcopy(self._data.get(name))

    def _dump(self, name: str, value: Any) -> None:
        self._data[name] = copy.deepcopy(value)

    def _delete(self, name: str) -> None:
        self._data.pop(name, None)

    def _names(self) -> list[str]:
        return list(self._data)
