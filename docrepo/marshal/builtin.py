"""Built-in marshallers for the server's standard entity types."""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from docrepo.exceptions import EncodingError
from docrepo.objects.blob import Blob
from docrepo.objects.document import Document
from docrepo.objects.document import Documents
from docrepo.objects.records import ACE
from docrepo.objects.records import ACL
from docrepo.objects.records import ACP
from docrepo.objects.records import Audit
from docrepo.objects.records import LogEntry
from docrepo.objects.records import RecordSet
from docrepo.objects.refs import DocRef
from docrepo.objects.refs import DocRefs

ENTITY_TYPE_KEY = 'entity-type'


def document_from_json(data: dict[str, Any]) -> Document:
    """Build a [`Document`][docrepo.objects.Document] from its JSON form."""
    return Document(
        name=data.get('name'),
        type=data.get('type'),
        uid=data.get('uid'),
        path=data.get('path'),
        state=data.get('state'),
        title=data.get('title'),
        parent_ref=data.get('parentRef'),
        repository_name=data.get('repository'),
        properties=dict(data.get('properties') or {}),
        context_parameters=dict(data.get('contextParameters') or {}),
        facets=list(data.get('facets') or []),
        change_token=data.get('changeToken'),
        is_checked_out=data.get('isCheckedOut'),
        last_modified=data.get('lastModified'),
    )


def document_to_json(document: Document) -> dict[str, Any]:
    """Build the JSON body used to create or update a document.

    Only attributes a client may set are included.
    """
    data: dict[str, Any] = {ENTITY_TYPE_KEY: document.entity_type}
    if document.name is not None:
        data['name'] = document.name
    if document.type is not None:
        data['type'] = document.type
    if document.uid is not None:
        data['uid'] = document.uid
    if document.change_token is not None:
        data['changeToken'] = document.change_token
    properties = dict(document.properties)
    if document.title is not None:
        properties.setdefault('dc:title', document.title)
    data['properties'] = properties
    return data


def _ref(obj: Document | DocRef) -> str:
    return obj.ref


class DocumentMarshaller:
    """Single document (`document`).

    Encodes a document or [`DocRef`][docrepo.objects.DocRef] as a
    `doc:<ref>` input reference.
    """

    entity_type = 'document'

    def supported(self, obj: Any) -> bool:
        return isinstance(obj, (Document, DocRef))

    def encode(self, obj: Document | DocRef) -> str:
        return f'doc:{_ref(obj)}'

    def decode(self, data: dict[str, Any]) -> Document:
        return document_from_json(data)


class DocumentsMarshaller:
    """Document list (`documents`).

    Encodes [`Documents`][docrepo.objects.Documents],
    [`DocRefs`][docrepo.objects.DocRefs], or a non-empty sequence of
    documents and references as a `docs:<ref>,<ref>` input reference.
    """

    entity_type = 'documents'

    def supported(self, obj: Any) -> bool:
        if isinstance(obj, (Documents, DocRefs)):
            return True
        return (
            isinstance(obj, Sequence)
            and not isinstance(obj, (str, bytes))
            and len(obj) > 0
            and all(isinstance(o, (Document, DocRef)) for o in obj)
        )

    def encode(self, obj: Any) -> str:
        return 'docs:' + ','.join(_ref(o) for o in obj)

    def decode(self, data: dict[str, Any]) -> Documents:
        entries = [document_from_json(e) for e in data.get('entries') or []]
        return Documents(
            documents=entries,
            total_size=data.get('totalSize', len(entries)),
            is_paginable=data.get('isPaginable', False),
            results_count=data.get('resultsCount'),
            page_size=data.get('pageSize'),
            current_page_index=data.get('currentPageIndex'),
            number_of_pages=data.get('numberOfPages'),
        )


class BlobMarshaller:
    """Binary content (`blob`).

    The wire form of a blob is a mapping with the `data`, `filename`, and
    `mimetype` of one part of a binary or multipart message.
    """

    entity_type = 'blob'

    def supported(self, obj: Any) -> bool:
        return isinstance(obj, Blob)

    def encode(self, obj: Blob) -> dict[str, Any]:
        return {
            'data': obj.read(),
            'filename': obj.filename,
            'mimetype': obj.mimetype,
        }

    def decode(self, data: dict[str, Any]) -> Blob:
        return Blob(
            data['data'],
            filename=data.get('filename'),
            mimetype=data.get('mimetype'),
        )


class RecordSetMarshaller:
    """Result-set query rows (`recordSet`)."""

    entity_type = 'recordSet'

    def supported(self, obj: Any) -> bool:
        return False

    def encode(self, obj: Any) -> Any:
        raise EncodingError('Record sets cannot be operation inputs.')

    def decode(self, data: dict[str, Any]) -> RecordSet:
        return RecordSet(entries=list(data.get('entries') or []))


class AuditMarshaller:
    """Audit log entries.

    The REST audit route tags its response `logEntries` so the same
    marshaller is also registered under that name.

    Args:
        entity_type: Discriminator to register under.
    """

    def __init__(self, entity_type: str = 'audit') -> None:
        self.entity_type = entity_type

    def supported(self, obj: Any) -> bool:
        return False

    def encode(self, obj: Any) -> Any:
        raise EncodingError('Audits cannot be operation inputs.')

    def decode(self, data: dict[str, Any]) -> Audit:
        return Audit(
            log_entries=[
                LogEntry(
                    id=e.get('id'),
                    category=e.get('category'),
                    event_id=e.get('eventId'),
                    event_date=e.get('eventDate'),
                    principal_name=e.get('principalName'),
                    doc_uuid=e.get('docUUID'),
                    doc_path=e.get('docPath'),
                    doc_type=e.get('docType'),
                    doc_life_cycle=e.get('docLifeCycle'),
                    repository_id=e.get('repositoryId'),
                    comment=e.get('comment'),
                    extended=dict(e.get('extended') or {}),
                )
                for e in data.get('entries') or []
            ],
        )


class ACPMarshaller:
    """Access control policy (`acls`)."""

    entity_type = 'acls'

    def supported(self, obj: Any) -> bool:
        return False

    def encode(self, obj: Any) -> Any:
        raise EncodingError('ACPs cannot be operation inputs.')

    def decode(self, data: dict[str, Any]) -> ACP:
        return ACP(
            acls=[
                ACL(
                    name=acl['name'],
                    aces=[
                        ACE(
                            username=ace['username'],
                            permission=ace['permission'],
                            granted=ace.get('granted', True),
                            creator=ace.get('creator'),
                            begin=ace.get('begin'),
                            end=ace.get('end'),
                            status=ace.get('status'),
                        )
                        for ace in acl.get('ace') or []
                    ],
                )
                for acl in data.get('acl') or []
            ],
        )


class ValueMarshaller:
    """Scalar operation result, e.g., `string` or `boolean`.

    Decodes `{"entity-type": "string", "value": "..."}` to the plain value.

    Args:
        entity_type: Discriminator to register under.
    """

    def __init__(self, entity_type: str) -> None:
        self.entity_type = entity_type

    def supported(self, obj: Any) -> bool:
        return False

    def encode(self, obj: Any) -> Any:
        raise EncodingError('Use a raw value as the input instead.')

    def decode(self, data: dict[str, Any]) -> Any:
        return data.get('value')


def _is_json_value(obj: Any) -> bool:
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return True
    if isinstance(obj, (list, tuple)):
        return all(_is_json_value(o) for o in obj)
    if isinstance(obj, dict):
        return all(
            isinstance(k, str) and _is_json_value(v) for k, v in obj.items()
        )
    return False


class RawMarshaller:
    """Raw JSON-compatible input values (`raw`).

    Strings pass through verbatim so a path like `'/folder/file'` can be
    used directly as an input.
    """

    entity_type = 'raw'

    def supported(self, obj: Any) -> bool:
        return _is_json_value(obj)

    def encode(self, obj: Any) -> Any:
        return obj

    def decode(self, data: Any) -> Any:
        return data


SCALAR_ENTITY_TYPES = ('string', 'boolean', 'long', 'double', 'date')


def builtin_marshallers() -> list[Any]:
    """Create the default marshallers in encode priority order."""
    return [
        BlobMarshaller(),
        DocumentMarshaller(),
        DocumentsMarshaller(),
        RecordSetMarshaller(),
        AuditMarshaller('audit'),
        AuditMarshaller('logEntries'),
        ACPMarshaller(),
        *(ValueMarshaller(tag) for tag in SCALAR_ENTITY_TYPES),
        RawMarshaller(),
    ]
