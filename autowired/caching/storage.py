"""Cache storages with file-dependency invalidation."""

from __future__ import annotations

import hashlib
import os
import pickle
import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

import structlog

logger = structlog.get_logger(__name__)

MtimeProvider = Callable[[str], Optional[float]]


def file_mtime(path: str) -> Optional[float]:
    """Return the modification time of a file, or None when it is gone."""
    try:
        return os.stat(path).st_mtime
    except FileNotFoundError:
        return None


@dataclass
class CacheEntry:
    """A single cache entry."""
    value: Any
    files: Dict[str, Optional[float]] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class CacheStats:
    """Statistics for a cache storage."""
    hits: int = 0
    misses: int = 0
    writes: int = 0
    removals: int = 0
    invalidations: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "writes": self.writes,
            "removals": self.removals,
            "invalidations": self.invalidations,
            "hit_rate": self.hit_rate,
        }


class CacheStorage(ABC):
    """
    Key-addressed storage for cached values.

    An entry written with file dependencies records the modification time of
    each file and is reported missing once any of them changes.
    """

    def __init__(self, mtime: Optional[MtimeProvider] = None):
        self._mtime = mtime or file_mtime
        self._lock = threading.Lock()
        self._stats = CacheStats()

    @abstractmethod
    def _load_entry(self, key: str) -> Optional[CacheEntry]:
        """Load a raw entry without validating it."""

    @abstractmethod
    def _store_entry(self, key: str, entry: CacheEntry) -> None:
        """Persist a raw entry."""

    @abstractmethod
    def _delete_entry(self, key: str) -> bool:
        """Delete a raw entry, returning whether it existed."""

    @abstractmethod
    def clean(self) -> None:
        """Remove all entries."""

    def read(self, key: str) -> Optional[Any]:
        """Read a value, or None when missing or invalidated."""
        with self._lock:
            entry = self._load_entry(key)
            if entry is None:
                self._stats.misses += 1
                return None

            if not self._is_fresh(entry):
                self._delete_entry(key)
                self._stats.misses += 1
                self._stats.invalidations += 1
                logger.debug("cache_entry_invalidated", key=key)
                return None

            self._stats.hits += 1
            return entry.value

    def write(self, key: str, value: Any, files: Iterable[str] = ()) -> None:
        """Write a value, invalidated when any of ``files`` changes."""
        entry = CacheEntry(
            value=value,
            files={path: self._mtime(path) for path in files},
        )
        with self._lock:
            self._store_entry(key, entry)
            self._stats.writes += 1

    def remove(self, key: str) -> bool:
        """Remove a key from the storage."""
        with self._lock:
            removed = self._delete_entry(key)
            if removed:
                self._stats.removals += 1
            return removed

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return all(self._mtime(path) == mtime for path, mtime in entry.files.items())

    @property
    def stats(self) -> CacheStats:
        """Get cache statistics."""
        return self._stats


class MemoryStorage(CacheStorage):
    """
    Process-local storage.

    Values are kept by reference; callers must treat them as read-only.
    """

    def __init__(self, mtime: Optional[MtimeProvider] = None):
        super().__init__(mtime)
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    def _load_entry(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def _store_entry(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry

    def _delete_entry(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clean(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class FileStorage(CacheStorage):
    """
    Storage persisting pickled entries in a directory, one file per key.

    Entries survive process restarts, so metadata resolved by one worker is
    reused by the next.
    """

    SUFFIX = ".cache"

    def __init__(self, directory: str, mtime: Optional[MtimeProvider] = None):
        super().__init__(mtime)
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        digest = hashlib.md5(key.encode()).hexdigest()
        return self.directory / f"{digest}{self.SUFFIX}"

    def _load_entry(self, key: str) -> Optional[CacheEntry]:
        path = self._path(key)
        try:
            with path.open("rb") as fh:
                return pickle.load(fh)
        except FileNotFoundError:
            return None
        except (pickle.UnpicklingError, EOFError, AttributeError, ImportError) as e:
            # Truncated writes or entries referring to removed classes
            logger.warning("cache_entry_unreadable", key=key, path=str(path), error=str(e))
            path.unlink(missing_ok=True)
            return None

    def _store_entry(self, key: str, entry: CacheEntry) -> None:
        path = self._path(key)
        tmp = path.with_suffix(f".{os.getpid()}.tmp")
        with tmp.open("wb") as fh:
            pickle.dump(entry, fh, protocol=pickle.HIGHEST_PROTOCOL)
        os.replace(tmp, path)

    def _delete_entry(self, key: str) -> bool:
        path = self._path(key)
        if path.exists():
            path.unlink()
            return True
        return False

    def clean(self) -> None:
        with self._lock:
            for path in self.directory.glob(f"*{self.SUFFIX}"):
                path.unlink(missing_ok=True)
