"""Multipart framing for blob inputs and multi-blob results."""
from __future__ import annotations

import email.parser
import email.policy
import json
import uuid
from typing import Any

REQUEST_CONTENT_TYPE = 'application/json+nxrequest'


def encode_related(
    envelope: dict[str, Any],
    parts: list[dict[str, Any]],
) -> tuple[bytes, str]:
    """Frame a request envelope and files as a `multipart/related` body.

    The first part is the JSON envelope. Each following part is one file,
    identified by `Content-ID: input` for the first file and `input#<n>` for
    the rest.

    Args:
        envelope: JSON request envelope.
        parts: File parts with `data`, `filename`, and `mimetype` keys.

    Returns:
        Tuple of the body and the `Content-Type` header value.
    """
    boundary = f'docrepo-{uuid.uuid4().hex}'
    chunks = [
        f'--{boundary}\r\n'.encode(),
        f'Content-Type: {REQUEST_CONTENT_TYPE}; charset=UTF-8\r\n'.encode(),
        b'Content-Transfer-Encoding: 8bit\r\n',
        b'Content-ID: request\r\n\r\n',
        json.dumps(envelope).encode(),
        b'\r\n',
    ]
    for i, part in enumerate(parts):
        content_id = 'input' if i == 0 else f'input#{i}'
        filename = part.get('filename') or content_id
        chunks += [
            f'--{boundary}\r\n'.encode(),
            f'Content-Type: {part["mimetype"]}\r\n'.encode(),
            b'Content-Transfer-Encoding: binary\r\n',
            (
                'Content-Disposition: attachment; '
                f'filename="{filename}"\r\n'
            ).encode(),
            f'Content-ID: {content_id}\r\n\r\n'.encode(),
            part['data'],
            b'\r\n',
        ]
    chunks.append(f'--{boundary}--\r\n'.encode())

    content_type = (
        f'multipart/related; boundary="{boundary}"; '
        f'type="{REQUEST_CONTENT_TYPE}"; start="request"'
    )
    return b''.join(chunks), content_type


def decode_parts(content: bytes, content_type: str) -> list[dict[str, Any]]:
    """Split a multipart body into its parts.

    Args:
        content: Response body.
        content_type: `Content-Type` header of the response, including the
            boundary parameter.

    Returns:
        Parts in message order, each a mapping with `data`, `filename`, and
        `mimetype` keys.

    Raises:
        ValueError: If the body is not a well-formed multipart message.
    """
    header = f'Content-Type: {content_type}\r\n\r\n'.encode()
    message = email.parser.BytesParser(policy=email.policy.HTTP).parsebytes(
        header + content,
    )
    if not message.is_multipart() or message.defects:
        raise ValueError(
            f'Body is not a well-formed multipart message: '
            f'{message.defects or content_type}',
        )

    parts = []
    for part in message.iter_parts():
        payload = part.get_payload(decode=True)
        parts.append(
            {
                'data': payload if payload is not None else b'',
                'filename': part.get_filename(),
                'mimetype': part.get_content_type(),
            },
        )
    return parts
