from __future__ import annotations

import email.parser
import email.policy
import json

import pytest

from docrepo.automation.multipart import decode_parts
from docrepo.automation.multipart import encode_related
from docrepo.automation.multipart import REQUEST_CONTENT_TYPE


def _parse(body: bytes, content_type: str):
    header = f'Content-Type: {content_type}\r\n\r\n'.encode()
    return email.parser.BytesParser(policy=email.policy.HTTP).parsebytes(
        header + body,
    )


def test_encode_related_single_file() -> None:
    envelope = {'params': {'document': '/folder_2/file'}, 'context': {}}
    body, content_type = encode_related(
        envelope,
        [{'data': b'hello', 'filename': 'a.txt', 'mimetype': 'text/plain'}],
    )
    assert content_type.startswith('multipart/related; boundary=')
    assert f'type="{REQUEST_CONTENT_TYPE}"' in content_type

    message = _parse(body, content_type)
    parts = list(message.iter_parts())
    assert len(parts) == 2
    assert parts[0]['Content-ID'] == 'request'
    assert json.loads(parts[0].get_payload(decode=True)) == envelope
    assert parts[1]['Content-ID'] == 'input'
    assert parts[1].get_filename() == 'a.txt'
    assert parts[1].get_payload(decode=True) == b'hello'


def test_encode_related_many_files() -> None:
    files = [
        {'data': f'{i}'.encode(), 'filename': None, 'mimetype': 'text/plain'}
        for i in range(3)
    ]
    body, content_type = encode_related({'params': {}}, files)
    parts = list(_parse(body, content_type).iter_parts())
    assert [p['Content-ID'] for p in parts[1:]] == ['input', 'input#1', 'input#2']
    # Files without a name are named after their content id
    assert parts[2].get_filename() == 'input#1'


def test_decode_parts() -> None:
    content_type = 'multipart/mixed; boundary="b"'
    body = (
        b'--b\r\n'
        b'Content-Type: text/plain\r\n'
        b'Content-Disposition: attachment; filename="a.txt"\r\n\r\n'
        b'first\r\n'
        b'--b\r\n'
        b'Content-Type: application/json\r\n'
        b'Content-Disposition: attachment; filename="b.json"\r\n\r\n'
        b'[1, 2]\r\n'
        b'--b--\r\n'
    )
    parts = decode_parts(body, content_type)
    assert parts == [
        {'data': b'first', 'filename': 'a.txt', 'mimetype': 'text/plain'},
        {'data': b'[1, 2]', 'filename': 'b.json', 'mimetype': 'application/json'},
    ]


def test_decode_parts_round_trip_with_encode() -> None:
    files = [{'data': b'\x00\x01binary', 'filename': 'x.bin', 'mimetype': 'application/octet-stream'}]
    body, content_type = encode_related({'params': {}}, files)
    parts = decode_parts(body, content_type)
    assert parts[1]['data'] == b'\x00\x01binary'
    assert parts[1]['filename'] == 'x.bin'


def test_decode_parts_not_multipart() -> None:
    with pytest.raises(ValueError, match='multipart'):
        decode_parts(b'{}', 'application/json')
