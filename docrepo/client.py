"""Client implementation."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from types import TracebackType
from typing import Any

if sys.version_info >= (3, 11):  # pragma: >=3.11 cover
    from typing import Self
else:  # pragma: <3.11 cover
    from typing_extensions import Self

import requests
from pydantic import BaseModel

from docrepo.automation.engine import InvocationEngine
from docrepo.automation.operation import OperationBuilder
from docrepo.cache import ResponseCache
from docrepo.config import ClientConfig
from docrepo.context import ClientContext
from docrepo.context import ContextOptions
from docrepo.marshal.business import BusinessObjectMarshaller
from docrepo.marshal.protocols import Marshaller
from docrepo.marshal.registry import MarshallerRegistry
from docrepo.repository import Repository
from docrepo.transport import Transport
from docrepo.utils.imports import import_from_path

logger = logging.getLogger(__name__)


class Client:
    """Client for a document-repository server.

    A client owns the transport, the marshaller registry, the response
    cache, and the context shared by every call. It is safe to share one
    client between threads.

    Tip:
        A [`Client`][docrepo.client.Client] instance can be used as a
        context manager which will automatically call
        [`close()`][docrepo.client.Client.close] on exit.

        ```python
        with Client('http://localhost:8080/nuxeo', username='u', password='p') as client:
            root = client.repository().fetch_document_root()
        ```

    Note:
        The builder-style methods
        ([`enable_cache()`][docrepo.client.Client.enable_cache],
        [`enrichers()`][docrepo.client.Client.enrichers],
        [`register_marshaller()`][docrepo.client.Client.register_marshaller],
        ...) mutate the client for every thread using it. Calls already in
        flight in other threads may observe either the old or the new
        configuration.

    Args:
        url: Base URL of the server.
        username: Username for basic authentication.
        password: Password for basic authentication.
        token: Authentication token used instead of basic authentication.
        timeout: Optional timeout in seconds for each HTTP request.
        cache: Enable the response cache.
        cache_size: Optional maximum number of cached responses. If `None`,
            the cache grows until it is cleared.
        enrichers: Document enrichers requested on every call.
        schemas: Schemas whose properties are returned on every call.
        repository_name: Repository addressed by default.
        max_workers: Number of threads used for callback-style calls.
        marshallers: Fully-qualified paths of marshaller classes to
            instantiate and register.
        session: Optional [`requests.Session`][requests.Session] to send
            requests with.

    Raises:
        ValueError: If `cache_size` is negative or `max_workers` is not
            positive.
        ImportError: If a marshaller path cannot be imported.
    """  # noqa: E501

    def __init__(
        self,
        url: str,
        *,
        username: str | None = None,
        password: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        cache: bool = False,
        cache_size: int | None = None,
        enrichers: Iterable[str] = (),
        schemas: Iterable[str] = (),
        repository_name: str | None = None,
        max_workers: int | None = None,
        marshallers: Iterable[str] = (),
        session: requests.Session | None = None,
    ) -> None:
        self.registry = MarshallerRegistry()
        self.cache: ResponseCache[Any] = ResponseCache(cache_size)
        self._marshaller_paths = list(marshallers)
        for path in self._marshaller_paths:
            self.registry.register(import_from_path(path)())

        self.transport = Transport(
            url,
            username=username,
            password=password,
            token=token,
            timeout=timeout,
            session=session,
        )
        self.context = ClientContext(
            ContextOptions(
                enrichers=frozenset(enrichers),
                schemas=frozenset(schemas),
                repository_name=repository_name,
            ),
            cache_enabled=cache,
        )
        try:
            self.engine = InvocationEngine(
                self.transport,
                self.registry,
                max_workers=max_workers,
            )
        except ValueError:
            self.transport.close()
            raise

        self._username = username
        self._password = password
        self._token = token
        self._max_workers = max_workers

        logger.info(f'Initialized {self}')

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_traceback: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        snapshot = self.context.snapshot()
        return (
            f'{type(self).__name__}(url={self.transport.url}, '
            f'cache={snapshot.cache_enabled}, '
            f'repository_name={snapshot.options.repository_name})'
        )

    def close(self) -> None:
        """Wait for pending callback-style calls and close the transport."""
        self.engine.close()
        self.transport.close()
        logger.info(f'Closed {self}')

    def config(self) -> ClientConfig:
        """Get the client configuration.

        Marshallers registered after construction are not part of the
        configuration.

        Example:
            ```python
            >>> client = Client(...)
            >>> config = client.config()
            >>> client = Client.from_config(config)
            ```
        """
        snapshot = self.context.snapshot()
        return ClientConfig(
            url=self.transport.url,
            username=self._username,
            password=self._password,
            token=self._token,
            timeout=self.transport.timeout,
            cache=snapshot.cache_enabled,
            cache_size=self.cache.maxsize,
            enrichers=sorted(snapshot.options.enrichers),
            schemas=sorted(snapshot.options.schemas),
            repository_name=snapshot.options.repository_name,
            max_workers=self._max_workers,
            marshallers=self._marshaller_paths,
        )

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        *,
        session: requests.Session | None = None,
    ) -> Client:
        """Create a new client from a configuration.

        Args:
            config: Configuration, e.g., returned by `#!python .config()`.
            session: Optional session to send requests with.
        """
        return cls(
            url=config.url,
            username=config.username,
            password=config.password,
            token=config.token,
            timeout=config.timeout,
            cache=config.cache,
            cache_size=config.cache_size,
            enrichers=config.enrichers,
            schemas=config.schemas,
            repository_name=config.repository_name,
            max_workers=config.max_workers,
            marshallers=config.marshallers,
            session=session,
        )

    def automation(self, operation_id: str | None = None) -> OperationBuilder:
        """Start building an Automation operation bound to this client."""
        return OperationBuilder(
            operation_id,
            engine=self.engine,
            context=self.context.snapshot().options,
        )

    def repository(self) -> Repository:
        """Get the repository facade."""
        return Repository(self)

    def enable_cache(self) -> Self:
        """Enable the response cache for document fetches."""
        self.context.set_cache_enabled(True)
        return self

    def disable_cache(self) -> Self:
        """Disable the response cache. Cached entries are kept."""
        self.context.set_cache_enabled(False)
        return self

    def refresh_cache(self) -> Self:
        """Clear the response cache."""
        self.cache.clear()
        return self

    def enrichers(self, *names: str) -> Self:
        """Replace the document enrichers requested on every call."""
        self.context.set_enrichers(names)
        return self

    def schemas(self, *names: str) -> Self:
        """Replace the schemas requested on every call."""
        self.context.set_schemas(names)
        return self

    def repository_name(self, name: str | None) -> Self:
        """Address another repository by default."""
        self.context.set_repository_name(name)
        return self

    def register_marshaller(
        self,
        marshaller: Marshaller | type[BaseModel],
    ) -> Self:
        """Register a marshaller.

        Args:
            marshaller: Marshaller to register. A Pydantic model class is
                wrapped in a
                [`BusinessObjectMarshaller`][docrepo.marshal.BusinessObjectMarshaller]
                named after the class.
        """  # noqa: E501
        if isinstance(marshaller, type) and issubclass(marshaller, BaseModel):
            marshaller = BusinessObjectMarshaller(marshaller)
        self.registry.register(marshaller)
        return self

    def clear_marshallers(self) -> Self:
        """Discard registered marshallers and restore the built-in ones."""
        self.registry.unregister_all()
        return self
