"""Response cache implementation."""

from __future__ import annotations

import hashlib
import json
import threading
from collections import OrderedDict
from collections.abc import Mapping
from typing import Any
from typing import Generic
from typing import TypeVar

from docrepo.context import ContextOptions

ValueT = TypeVar('ValueT')
_MISSING_OBJECT = object()


def fingerprint(
    identity: str,
    parameters: Mapping[str, Any] | None,
    options: ContextOptions,
) -> str:
    """Compute the cache key of a request.

    The key is a pure function of the request identity (an operation id or
    a route), its parameters, and the context options. Parameters are
    normalized by key order so logically identical requests collapse to one
    key, while requests differing only in repository name, enrichers, or
    schemas get distinct keys.

    Args:
        identity: Operation id or route of the request.
        parameters: Request parameters. Values that are not JSON types are
            included by their string form.
        options: Context options applied to the request.

    Returns:
        Hex digest key.
    """
    canonical = json.dumps(
        {
            'identity': identity,
            'parameters': dict(parameters or {}),
            'repository': options.repository_name,
            'enrichers': sorted(options.enrichers),
            'schemas': sorted(options.schemas),
        },
        sort_keys=True,
        separators=(',', ':'),
        default=str,
    )
    return hashlib.sha256(canonical.encode()).hexdigest()


class ResponseCache(Generic[ValueT]):
    """Thread-safe cache of decoded responses.

    The cache is not write-through: nothing evicts an entry when the
    document it holds changes on the server. Entries stay until
    [`clear()`][docrepo.cache.ResponseCache.clear] is called or, if a
    `maxsize` is set, until the entry becomes the least recently used one
    when the cache is full.

    Args:
        maxsize: Optional maximum number of entries. `None` means unbounded.

    Raises:
        ValueError: If `maxsize` is negative.
    """

    def __init__(self, maxsize: int | None = None) -> None:
        if maxsize is not None and maxsize < 0:
            raise ValueError(f'Cache size cannot be negative. Got {maxsize}.')
        self.maxsize = maxsize
        self.hits = 0
        self.misses = 0

        self._data: OrderedDict[str, ValueT] = OrderedDict()
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return self.size()

    def __repr__(self) -> str:
        return (
            f'{type(self).__name__}(size={self.size()}, '
            f'maxsize={self.maxsize})'
        )

    def size(self) -> int:
        """Number of distinct keys currently stored."""
        with self._lock:
            return len(self._data)

    def exists(self, key: str) -> bool:
        """Check if key is in the cache."""
        with self._lock:
            return key in self._data

    def get(self, key: str, default: Any = None) -> ValueT | Any:
        """Get the value for key if it exists else return default."""
        with self._lock:
            value = self._data.get(key, _MISSING_OBJECT)
            if value is _MISSING_OBJECT:
                self.misses += 1
                return default
            self._data.move_to_end(key)
            self.hits += 1
            return value

    def put(self, key: str, value: ValueT) -> None:
        """Set key to value, overwriting any existing value."""
        if self.maxsize == 0:
            return

        with self._lock:
            self._data[key] = value
            self._data.move_to_end(key)
            if self.maxsize is not None and len(self._data) > self.maxsize:
                self._data.popitem(last=False)

    def evict(self, key: str) -> None:
        """Evict key from the cache."""
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._data.clear()
