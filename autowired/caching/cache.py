"""Namespaced cache front over a ``CacheStorage``."""

from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, Optional

from .storage import CacheStorage


class Cache:
    """
    Namespaced view of a storage.

    Keys may be any JSON-serializable value (strings, lists, tuples); they
    are hashed together with the namespace.

    Usage:
        cache = Cache(storage, "autowired.properties")
        value = cache.load(["app.presenters.HomePresenter", "/app/container.py"])
        if value is None:
            value = compute()
            cache.save(key, value, dependencies={Cache.FILES: ["/app/presenters.py"]})
    """

    FILES = "files"

    def __init__(self, storage: CacheStorage, namespace: str = ""):
        self.storage = storage
        self.namespace = namespace

    def generate_key(self, key: Any) -> str:
        """Build the storage key for a cache key."""
        key_data = json.dumps(key, default=str, sort_keys=True)
        return f"{self.namespace}:{hashlib.md5(key_data.encode()).hexdigest()}"

    def load(self, key: Any) -> Optional[Any]:
        """Load a value, or None when missing or invalidated."""
        return self.storage.read(self.generate_key(key))

    def save(
        self,
        key: Any,
        value: Any,
        dependencies: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Save a value and return it.

        Args:
            key: Cache key
            value: Value to store
            dependencies: ``{Cache.FILES: [paths]}`` invalidates the entry
                when any of the files changes
        """
        files = (dependencies or {}).get(self.FILES) or ()
        self.storage.write(self.generate_key(key), value, files=[f for f in files if f])
        return value

    def remove(self, key: Any) -> bool:
        """Remove a value."""
        return self.storage.remove(self.generate_key(key))
