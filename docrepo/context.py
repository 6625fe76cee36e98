"""Mutable client configuration read by every call."""
from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass
from dataclasses import replace


@dataclass(frozen=True)
class ContextOptions:
    """Per-call context sent to the server.

    Attributes:
        enrichers: Names of document enrichers to request.
        schemas: Names of schemas whose properties should be returned. Empty
            means the server default.
        repository_name: Repository to address. `None` means the server's
            default repository.
    """

    enrichers: frozenset[str] = frozenset()
    schemas: frozenset[str] = frozenset()
    repository_name: str | None = None


@dataclass(frozen=True)
class ContextSnapshot:
    """Immutable view of a [`ClientContext`][docrepo.context.ClientContext].

    Attributes:
        options: Context options applied to calls.
        cache_enabled: Whether the repository facade uses the response cache.
    """

    options: ContextOptions = ContextOptions()
    cache_enabled: bool = False


class ClientContext:
    """Configuration shared by every call made through one client.

    Each call takes a [`snapshot()`][docrepo.context.ClientContext.snapshot]
    when it starts and uses it throughout, so a single call never observes a
    mix of old and new settings.

    Warning:
        Mutating the context while other threads have calls in flight is
        allowed, but whether an in-flight call observes the old or the new
        configuration depends on whether it took its snapshot before or after
        the mutation. Configure the client before sharing it between threads
        if that matters.

    Args:
        options: Initial context options.
        cache_enabled: Initially enable the response cache.
    """

    def __init__(
        self,
        options: ContextOptions | None = None,
        *,
        cache_enabled: bool = False,
    ) -> None:
        self._lock = threading.Lock()
        self._snapshot = ContextSnapshot(
            options=options if options is not None else ContextOptions(),
            cache_enabled=cache_enabled,
        )

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.snapshot()})'

    def snapshot(self) -> ContextSnapshot:
        """Get the current configuration."""
        with self._lock:
            return self._snapshot

    def set_cache_enabled(self, enabled: bool) -> None:
        with self._lock:
            self._snapshot = replace(self._snapshot, cache_enabled=enabled)

    def set_enrichers(self, enrichers: Iterable[str]) -> None:
        self._set_options(enrichers=frozenset(enrichers))

    def set_schemas(self, schemas: Iterable[str]) -> None:
        self._set_options(schemas=frozenset(schemas))

    def set_repository_name(self, name: str | None) -> None:
        self._set_options(repository_name=name)

    def _set_options(self, **changes: object) -> None:
        with self._lock:
            options = replace(self._snapshot.options, **changes)
            self._snapshot = replace(self._snapshot, options=options)
