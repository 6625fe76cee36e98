"""Repository facade over the REST protocol."""
from __future__ import annotations

import copy
import logging
from concurrent.futures import Future
from dataclasses import replace
from typing import Any
from typing import Callable
from typing import TYPE_CHECKING
from urllib.parse import quote

from docrepo.cache import fingerprint
from docrepo.context import ContextOptions
from docrepo.marshal.builtin import document_to_json
from docrepo.objects.blob import Blob
from docrepo.objects.document import Document
from docrepo.objects.document import Documents
from docrepo.objects.records import ACP
from docrepo.objects.records import Audit

if TYPE_CHECKING:
    from docrepo.client import Client

logger = logging.getLogger(__name__)

_MISSING_OBJECT = object()
_DEFAULT_BLOB_XPATH = 'file:content'


def _path_route(path: str) -> str:
    return 'path/' + quote(path.strip('/'), safe='/')


def _id_route(document: Document | str) -> str:
    uid = document if isinstance(document, str) else document.uid
    if uid is None:
        raise ValueError('The document has no uid; fetch it from the server.')
    return 'id/' + quote(uid, safe='')


class Repository:
    """Common repository verbs expressed as engine calls.

    Every call applies the client's current repository name, enrichers, and
    schemas. Fetches of a single document go through the client's response
    cache when caching is enabled; all other calls always reach the server.

    Warning:
        The cache is not updated by
        [`update_document()`][docrepo.repository.Repository.update_document]
        or any other write. A fetch after a write may return the cached,
        stale document until
        [`refresh_cache()`][docrepo.repository.Repository.refresh_cache] is
        called.

    Args:
        client: Client whose engine, context, and cache are used.
        repository_name: Optional repository overriding the client's.
    """

    def __init__(
        self,
        client: Client,
        repository_name: str | None = None,
    ) -> None:
        self.client = client
        self._repository_name = repository_name

    def __repr__(self) -> str:
        return (
            f'{type(self).__name__}(client={self.client!r}, '
            f'repository_name={self._repository_name!r})'
        )

    def repository_name(self, name: str) -> Repository:
        """Get a facade addressing another repository."""
        return Repository(self.client, name)

    def refresh_cache(self) -> Repository:
        """Clear the response cache.

        The next fetch of any document goes to the server.

        Returns:
            This facade, for chaining.
        """
        self.client.cache.clear()
        logger.debug('Cleared the response cache')
        return self

    def fetch_document_root(self) -> Document:
        """Fetch the root document of the repository."""
        return self._fetch('path/')

    def fetch_document_by_path(self, path: str) -> Document:
        """Fetch a document by its path.

        Args:
            path: Path of the document, with or without a leading `/`.

        Raises:
            RemoteError: With `status == 404` if no document has this path.
        """
        return self._fetch(_path_route(path))

    def fetch_document_by_id(self, uid: str) -> Document:
        """Fetch a document by its uid."""
        return self._fetch(_id_route(uid))

    def fetch_document_root_async(
        self,
        *,
        on_success: Callable[[Document], None] | None = None,
        on_failure: Callable[[Exception], None] | None = None,
    ) -> Future[Document]:
        """Fetch the root document without blocking.

        Exactly one of the callbacks is called, once, on a pool thread.
        """
        return self.client.engine.submit(
            self.fetch_document_root,
            on_success=on_success,
            on_failure=on_failure,
        )

    def fetch_document_by_path_async(
        self,
        path: str,
        *,
        on_success: Callable[[Document], None] | None = None,
        on_failure: Callable[[Exception], None] | None = None,
    ) -> Future[Document]:
        """Fetch a document by its path without blocking."""
        return self.client.engine.submit(
            self.fetch_document_by_path,
            path,
            on_success=on_success,
            on_failure=on_failure,
        )

    def fetch_document_by_id_async(
        self,
        uid: str,
        *,
        on_success: Callable[[Document], None] | None = None,
        on_failure: Callable[[Exception], None] | None = None,
    ) -> Future[Document]:
        """Fetch a document by its uid without blocking."""
        return self.client.engine.submit(
            self.fetch_document_by_id,
            uid,
            on_success=on_success,
            on_failure=on_failure,
        )

    def create_document_by_path(
        self,
        parent_path: str,
        document: Document,
    ) -> Document:
        """Create a document under the document at `parent_path`.

        Returns:
            The created document as stored by the server.
        """
        return self._call(
            'POST',
            _path_route(parent_path),
            body=document_to_json(document),
        )

    def create_document_by_id(
        self,
        parent_id: str,
        document: Document,
    ) -> Document:
        """Create a document under the document with uid `parent_id`."""
        return self._call(
            'POST',
            _id_route(parent_id),
            body=document_to_json(document),
        )

    def update_document(self, document: Document) -> Document:
        """Update a document identified by its uid.

        Returns:
            The updated document as stored by the server.
        """
        return self._call(
            'PUT',
            _id_route(document),
            body=document_to_json(document),
        )

    def delete_document(self, document: Document | str) -> None:
        """Delete a document given as a document or a uid."""
        self._call('DELETE', _id_route(document))

    def query(
        self,
        nxql: str,
        *,
        page_size: int | None = None,
        current_page_index: int | None = None,
    ) -> Documents:
        """Run an NXQL query.

        Args:
            nxql: Query, e.g., `"SELECT * FROM Note"`.
            page_size: Optional page size.
            current_page_index: Optional index of the page to return.

        Returns:
            Documents of the requested page. `total_size` is the number of
            matches reported by the server.
        """
        params: dict[str, Any] = {'query': nxql}
        if page_size is not None:
            params['pageSize'] = page_size
        if current_page_index is not None:
            params['currentPageIndex'] = current_page_index
        return self._call('GET', 'query', params=params)

    def fetch_children(self, document: Document | str) -> Documents:
        """Fetch the children of a document."""
        return self._call('GET', f'{_id_route(document)}/@children')

    def fetch_acp(self, document: Document | str) -> ACP:
        """Fetch the access control policy of a document."""
        return self._call('GET', f'{_id_route(document)}/@acl')

    def fetch_audit(self, document: Document | str) -> Audit:
        """Fetch the audit trail of a document."""
        return self._call('GET', f'{_id_route(document)}/@audit')

    def fetch_blob(
        self,
        document: Document | str,
        xpath: str = _DEFAULT_BLOB_XPATH,
    ) -> Blob:
        """Fetch a blob property of a document.

        Args:
            document: Document or uid.
            xpath: Property holding the blob.
        """
        return self._call(
            'GET',
            f'{_id_route(document)}/@blob/{quote(xpath, safe="/:")}',
        )

    def _state(self) -> tuple[bool, ContextOptions]:
        snapshot = self.client.context.snapshot()
        options = snapshot.options
        if self._repository_name is not None:
            options = replace(options, repository_name=self._repository_name)
        return snapshot.cache_enabled, options

    def _call(
        self,
        method: str,
        route: str,
        *,
        params: dict[str, Any] | None = None,
        body: Any = None,
    ) -> Any:
        _, options = self._state()
        return self.client.engine.call(
            method,
            route,
            options=options,
            params=params,
            body=body,
        )

    def _fetch(self, route: str) -> Any:
        cache_enabled, options = self._state()
        if not cache_enabled:
            return self.client.engine.call('GET', route, options=options)

        key = fingerprint(f'GET {route}', None, options)
        cached = self.client.cache.get(key, _MISSING_OBJECT)
        if cached is not _MISSING_OBJECT:
            logger.debug(f'GET {route} (cached=True)')
            return copy.deepcopy(cached)

        result = self.client.engine.call('GET', route, options=options)
        self.client.cache.put(key, copy.deepcopy(result))
        return result
