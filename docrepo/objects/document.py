"""Document and document list models."""
from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Iterator


@dataclass
class Document:
    """Document stored in the remote repository.

    Documents built locally (e.g., to pass to
    [`create_document_by_path()`][docrepo.repository.Repository.create_document_by_path])
    only need a `name` and `type`. Documents returned by the server have
    every attribute the server reported.

    Example:
        ```python
        document = Document('file', 'File')
        document.set('dc:title', 'new title')
        ```

    Attributes:
        name: Name of the document used to build its path.
        type: Document type, e.g., `'File'` or `'Folder'`.
        uid: Unique identifier assigned by the server.
        path: Absolute path of the document in its repository.
        state: Life cycle state.
        title: Document title.
        parent_ref: Unique identifier of the parent document.
        repository_name: Name of the repository holding the document.
        properties: Property bag keyed by prefixed property name.
        context_parameters: Data attached by enrichers, keyed by enricher
            name. An enricher that produced nothing is simply absent.
        facets: Facets of the document.
        change_token: Server change token.
        is_checked_out: Whether the document is checked out.
        last_modified: Last modification timestamp as reported.
        entity_type: Entity type tag.
    """

    name: str | None = None
    type: str | None = None
    uid: str | None = None
    path: str | None = None
    state: str | None = None
    title: str | None = None
    parent_ref: str | None = None
    repository_name: str | None = None
    properties: dict[str, Any] = field(default_factory=dict)
    context_parameters: dict[str, Any] = field(default_factory=dict)
    facets: list[str] = field(default_factory=list)
    change_token: str | None = None
    is_checked_out: bool | None = None
    last_modified: str | None = None
    entity_type: str = 'document'

    @property
    def id(self) -> str | None:
        """Alias of `uid`."""
        return self.uid

    @id.setter
    def id(self, value: str | None) -> None:
        self.uid = value

    @property
    def ref(self) -> str:
        """Reference usable as an operation input (uid, else path).

        Raises:
            ValueError: If the document has neither a uid nor a path.
        """
        if self.uid is not None:
            return self.uid
        if self.path is not None:
            return self.path
        raise ValueError(
            'Document has no uid or path and cannot be referenced.',
        )

    def get(self, key: str, default: Any = None) -> Any:
        """Get a property value."""
        return self.properties.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a property value."""
        self.properties[key] = value


@dataclass
class Documents:
    """Page of documents returned by a query or a listing.

    Attributes:
        documents: Documents in the page, in server order.
        total_size: Total number of matches reported by the server. This can
            be larger than `len(documents)` when the result is paginated.
        is_paginable: Whether the server paginated the result.
        results_count: Number of results reported for the page.
        page_size: Page size used by the server.
        current_page_index: Index of this page.
        number_of_pages: Total number of pages.
    """

    documents: list[Document] = field(default_factory=list)
    total_size: int = 0
    is_paginable: bool = False
    results_count: int | None = None
    page_size: int | None = None
    current_page_index: int | None = None
    number_of_pages: int | None = None
    entity_type: str = 'documents'

    def __iter__(self) -> Iterator[Document]:
        return iter(self.documents)

    def __len__(self) -> int:
        return len(self.documents)

    def __getitem__(self, index: int) -> Document:
        return self.documents[index]
