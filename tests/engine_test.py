from __future__ import annotations

import json
import threading
from typing import Any
from unittest import mock

import pytest
import requests

from docrepo.automation import InvocationEngine
from docrepo.automation.engine import context_headers
from docrepo.automation.engine import ENRICHERS_HEADER
from docrepo.automation.engine import REPOSITORY_HEADER
from docrepo.automation.engine import SCHEMAS_HEADER
from docrepo.client import Client
from docrepo.context import ContextOptions
from docrepo.exceptions import ClientError
from docrepo.exceptions import DecodingError
from docrepo.exceptions import EncodingError
from docrepo.exceptions import RemoteError
from docrepo.exceptions import TransportError
from docrepo.objects import Blob
from docrepo.objects import Document
from docrepo.objects import Documents
from docrepo.objects import DocRef
from docrepo.objects import DocRefs
from docrepo.objects import RecordSet
from testing.mocked.server import MockServer


def _response(
    status: int,
    content: bytes,
    content_type: str | None = None,
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = content
    if content_type is not None:
        response.headers['Content-Type'] = content_type
    return response


class _BrokenMarshaller:
    entity_type = 'document'

    def supported(self, obj: Any) -> bool:
        return isinstance(obj, Document)

    def encode(self, obj: Document) -> str:
        raise KeyError('encode')

    def decode(self, data: dict[str, Any]) -> Document:
        raise KeyError('decode')


def test_context_headers() -> None:
    assert context_headers(ContextOptions()) == {}
    headers = context_headers(
        ContextOptions(
            enrichers=frozenset(['breadcrumb', 'acls']),
            schemas=frozenset(['dublincore']),
            repository_name='test',
        ),
    )
    assert headers == {
        ENRICHERS_HEADER: 'acls,breadcrumb',
        SCHEMAS_HEADER: 'dublincore',
        REPOSITORY_HEADER: 'test',
    }


def test_execute_get_document(client: Client) -> None:
    document = client.automation('Repository.GetDocument').param('value', '/').execute()
    assert isinstance(document, Document)
    assert document.path == '/'
    assert document.type == 'Root'


def test_execute_with_document_input(client: Client) -> None:
    note = client.repository().fetch_document_by_path('/folder_1/note_0')
    title = client.automation('Document.GetTitle').input(note).execute()
    assert title == 'Note 0'
    title = client.automation('Document.GetTitle').input(DocRef(note.path)).execute()
    assert title == 'Note 0'


def test_execute_void_operation(client: Client) -> None:
    assert client.automation('Log').param('message', 'hello').execute() is None


def test_execute_query(client: Client) -> None:
    documents = (
        client.automation('Repository.Query')
        .param('query', 'SELECT * FROM Note')
        .execute()
    )
    assert isinstance(documents, Documents)
    assert len(documents) == 5
    assert documents.total_size == 5


def test_execute_result_set_query(client: Client) -> None:
    records = (
        client.automation('Repository.ResultSetQuery')
        .param('query', 'SELECT * FROM Note')
        .execute()
    )
    assert isinstance(records, RecordSet)
    assert len(records.uuids) == 5


def test_execute_update_many_documents(client: Client) -> None:
    notes = client.automation('Repository.Query').param(
        'query',
        'SELECT * FROM Note',
    ).execute()
    refs = DocRefs()
    for note in list(notes)[:2]:
        refs.add(note.uid)

    updated = (
        client.automation('Document.Update')
        .param('properties', {'dc:description': 'updated'})
        .input(refs)
        .execute()
    )
    assert isinstance(updated, Documents)
    assert [d.get('dc:description') for d in updated] == ['updated', 'updated']


def test_execute_get_blob(client: Client) -> None:
    blob = client.automation('Document.GetBlob').input('/folder_2/file').execute()
    assert isinstance(blob, Blob)
    assert blob.filename == 'fields.json'
    assert blob.mimetype == 'application/json'
    content = blob.read()
    assert content.startswith(b'[')
    assert b'"fieldType": "string"' in content


def test_execute_attach_and_get_blobs(client: Client) -> None:
    file_ = client.repository().fetch_document_by_path('/folder_2/file')
    blobs = [
        Blob(b'first', filename='a.txt', mimetype='text/plain'),
        Blob(b'second', filename='b.txt', mimetype='text/plain'),
    ]
    client.automation('Blob.AttachOnDocument').param(
        'document',
        file_,
    ).param('xpath', 'files:files').input(blobs).execute()

    result = client.automation('Document.GetBlobs').input(file_).execute()
    assert isinstance(result, list)
    assert [b.filename for b in result] == ['fields.json', 'a.txt', 'b.txt']
    assert result[2].read() == b'second'


def test_execute_attach_blob_from_path(client: Client, tmp_path) -> None:
    filepath = tmp_path / 'notes.txt'
    filepath.write_bytes(b'some notes')

    blob = (
        client.automation('Blob.AttachOnDocument')
        .param('document', '/folder_2/file')
        .input(Blob.from_path(filepath))
        .execute()
    )
    assert blob.filename == 'notes.txt'
    assert blob.read() == b'some notes'

    fetched = client.repository().fetch_blob(
        client.repository().fetch_document_by_path('/folder_2/file'),
    )
    assert fetched.read() == b'some notes'


def test_execute_with_enrichers(client: Client) -> None:
    document = (
        client.automation('Repository.GetDocument')
        .param('value', '/folder_1')
        .enrichers('acls', 'breadcrumb')
        .execute()
    )
    assert len(document.context_parameters['acls']) == 1
    assert len(document.context_parameters['breadcrumb']) == 2


def test_unknown_operation_raises_remote_error(client: Client) -> None:
    with pytest.raises(RemoteError) as exc_info:
        client.automation('Document.Missing').execute()

    error = exc_info.value
    assert error.status == 404
    assert 'Document.Missing' in error.message
    assert error.remote_stack_trace is not None
    assert isinstance(error, ClientError)


def test_unknown_repository_raises_remote_error(client: Client) -> None:
    with pytest.raises(RemoteError) as exc_info:
        client.automation('Repository.GetDocument').param(
            'value',
            '/',
        ).repository_name('other').execute()
    assert exc_info.value.status == 404


def test_unknown_entity_type_raises_decoding_error(client: Client) -> None:
    with pytest.raises(DecodingError, match='mystery'):
        client.automation('Document.Mystery').execute()


def test_unsupported_input_raises_encoding_error(
    client: Client,
    server: MockServer,
) -> None:
    with pytest.raises(EncodingError):
        client.automation('Document.GetTitle').input(object()).execute()
    assert server.requests == []


@pytest.mark.parametrize('input_', ('/folder_2/file', Blob(b'payload')))
def test_unserializable_param_raises_encoding_error(
    client: Client,
    server: MockServer,
    input_: Any,
) -> None:
    builder = (
        client.automation('Blob.AttachOnDocument')
        .param('document', '/folder_2/file')
        .param('extra', Blob(b'x'))
        .input(input_)
    )
    with pytest.raises(EncodingError) as exc_info:
        builder.execute()
    assert isinstance(exc_info.value.__cause__, TypeError)
    assert server.requests == []


def test_marshaller_failures_are_wrapped(client: Client) -> None:
    client.register_marshaller(_BrokenMarshaller())

    with pytest.raises(EncodingError) as encode_info:
        client.automation('Document.GetTitle').input(Document(uid='a')).execute()
    assert isinstance(encode_info.value.__cause__, KeyError)

    with pytest.raises(DecodingError) as decode_info:
        client.automation('Repository.GetDocument').param('value', '/').execute()
    assert isinstance(decode_info.value.__cause__, KeyError)


def test_transport_failure_raises_transport_error(client: Client) -> None:
    with mock.patch(
        'requests.Session.request',
        side_effect=requests.exceptions.ConnectionError('unreachable'),
    ):
        with pytest.raises(TransportError) as exc_info:
            client.automation('Repository.GetDocument').param(
                'value',
                '/',
            ).execute()
    assert exc_info.value.status is None


def test_unauthenticated_request(server: MockServer) -> None:
    from testing.client import mocked_session
    from testing.client import SERVER_URL

    with Client(SERVER_URL, session=mocked_session(server)) as client:
        with pytest.raises(RemoteError) as exc_info:
            client.repository().fetch_document_root()
    assert exc_info.value.status == 401


def test_decode_error_without_envelope(client: Client) -> None:
    with pytest.raises(RemoteError) as exc_info:
        client.engine.decode(_response(500, b'Internal failure', 'text/plain'))
    assert exc_info.value.status == 500
    assert exc_info.value.message == 'Internal failure'
    assert exc_info.value.remote_stack_trace is None


def test_decode_invalid_json(client: Client) -> None:
    with pytest.raises(DecodingError, match='JSON'):
        client.engine.decode(_response(200, b'{not json', 'application/json'))


def test_decode_empty_body(client: Client) -> None:
    assert client.engine.decode(_response(200, b'', 'application/json')) is None
    assert client.engine.decode(_response(204, b'')) is None


def test_decode_raw_json_value(client: Client) -> None:
    data = {'entity-type': 'raw', 'value': [1, 2]}
    response = _response(200, json.dumps(data).encode(), 'application/json')
    assert client.engine.decode(response) == data


def test_decode_bad_multipart(client: Client) -> None:
    with pytest.raises(DecodingError):
        client.engine.decode(_response(200, b'garbage', 'multipart/mixed'))


def test_execute_async_success_called_once(client: Client) -> None:
    successes: list[Any] = []
    failures: list[Exception] = []
    done = threading.Event()

    def _on_success(result: Any) -> None:
        successes.append(result)
        done.set()

    future = client.automation('Repository.GetDocument').param(
        'value',
        '/folder_1',
    ).execute_async(on_success=_on_success, on_failure=failures.append)

    assert done.wait(timeout=5)
    assert future.result(timeout=5).path == '/folder_1'
    assert len(successes) == 1
    assert successes[0].path == '/folder_1'
    assert failures == []


def test_execute_async_failure_called_once(client: Client) -> None:
    successes: list[Any] = []
    failures: list[Exception] = []

    future = client.automation('Document.Missing').execute_async(
        on_success=successes.append,
        on_failure=failures.append,
    )

    with pytest.raises(RemoteError):
        future.result(timeout=5)
    assert successes == []
    assert len(failures) == 1
    assert isinstance(failures[0], RemoteError)
    assert failures[0].status == 404


def test_execute_async_does_not_block(
    client: Client,
    server: MockServer,
) -> None:
    release = threading.Event()
    handle = server.handle

    def _held_handle(request: requests.PreparedRequest) -> requests.Response:
        release.wait(timeout=5)
        return handle(request)

    caller = threading.get_ident()
    callback_threads: list[int] = []

    with mock.patch.object(server, 'handle', side_effect=_held_handle):
        future = client.automation('Repository.GetDocument').param(
            'value',
            '/',
        ).execute_async(
            on_success=lambda _: callback_threads.append(threading.get_ident()),
        )
        # The response is still held so the call cannot have completed
        assert not future.done()
        assert callback_threads == []

        release.set()
        assert future.result(timeout=5).path == '/'

    assert len(callback_threads) == 1
    assert callback_threads[0] != caller


def test_execute_async_without_callbacks(client: Client) -> None:
    future = client.automation('Log').execute_async()
    assert future.result(timeout=5) is None


def test_call_async(client: Client) -> None:
    failures: list[Exception] = []
    future = client.engine.call_async(
        'GET',
        'path/folder_2',
        on_failure=failures.append,
    )
    assert future.result(timeout=5).path == '/folder_2'
    assert failures == []


def test_engine_without_client(server: MockServer) -> None:
    from docrepo.marshal import MarshallerRegistry
    from docrepo.transport import Transport
    from testing.client import mocked_session
    from testing.client import SERVER_URL

    transport = Transport(
        SERVER_URL,
        username='Administrator',
        password='Administrator',
        session=mocked_session(server),
    )
    engine = InvocationEngine(transport, MarshallerRegistry(), max_workers=1)
    document = engine.call(
        'GET',
        'path/',
        options=ContextOptions(repository_name='test'),
    )
    engine.close()
    assert document.path == '/'
    assert server.requests == [('GET', 'repo/test/path/')]
