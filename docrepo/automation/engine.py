"""Invocation engine executing Automation operations and REST calls."""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from concurrent.futures import Future
from concurrent.futures import ThreadPoolExecutor
from typing import Any
from typing import Callable
from typing import TypeVar
from urllib.parse import quote

import requests

from docrepo.automation.multipart import decode_parts
from docrepo.automation.multipart import encode_related
from docrepo.automation.operation import OperationDescriptor
from docrepo.context import ContextOptions
from docrepo.exceptions import ClientError
from docrepo.exceptions import DecodingError
from docrepo.exceptions import EncodingError
from docrepo.exceptions import RemoteError
from docrepo.marshal.builtin import ENTITY_TYPE_KEY
from docrepo.marshal.protocols import Marshaller
from docrepo.marshal.registry import MarshallerRegistry
from docrepo.objects.blob import Blob
from docrepo.objects.blob import DEFAULT_MIMETYPE
from docrepo.transport import Transport
from docrepo.utils.timer import Timer

logger = logging.getLogger(__name__)

T = TypeVar('T')

ENRICHERS_HEADER = 'X-NXenrichers.document'
SCHEMAS_HEADER = 'X-NXDocumentProperties'
REPOSITORY_HEADER = 'X-NXRepository'
BLOB_ENTITY_TYPE = 'blob'


def context_headers(options: ContextOptions) -> dict[str, str]:
    """Request headers carrying the context options."""
    headers = {}
    if options.enrichers:
        headers[ENRICHERS_HEADER] = ','.join(sorted(options.enrichers))
    if options.schemas:
        headers[SCHEMAS_HEADER] = ','.join(sorted(options.schemas))
    if options.repository_name is not None:
        headers[REPOSITORY_HEADER] = options.repository_name
    return headers


def _is_blob_input(value: Any) -> bool:
    if isinstance(value, Blob):
        return True
    return (
        isinstance(value, (list, tuple))
        and len(value) > 0
        and all(isinstance(v, Blob) for v in value)
    )


def _attachment_filename(response: requests.Response) -> str | None:
    disposition = response.headers.get('Content-Disposition')
    if disposition is None:
        return None
    for param in disposition.split(';')[1:]:
        key, _, value = param.strip().partition('=')
        if key.lower() == 'filename':
            return value.strip('"')
    return None


class InvocationEngine:
    """Execute calls against the server and decode their typed results.

    The engine is stateless apart from its transport, registry, and thread
    pool, and is safe to use from many threads at once. It never reads or
    writes the response cache and never retries: every failure is reported
    as exactly one [`ClientError`][docrepo.exceptions.ClientError].

    Args:
        transport: Transport used to send requests.
        registry: Registry used to encode inputs and decode results.
        max_workers: Number of threads used for callback-style calls.
    """

    def __init__(
        self,
        transport: Transport,
        registry: MarshallerRegistry,
        *,
        max_workers: int | None = None,
    ) -> None:
        self.transport = transport
        self.registry = registry
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix='docrepo-engine',
        )

    def __repr__(self) -> str:
        return f'{type(self).__name__}(transport={self.transport!r})'

    def close(self) -> None:
        """Wait for pending callback-style calls and stop the thread pool."""
        self._executor.shutdown(wait=True)

    def execute(self, descriptor: OperationDescriptor) -> Any:
        """Execute an Automation operation, blocking until done.

        Args:
            descriptor: Operation to execute.

        Returns:
            Decoded result, or `None` if the operation returns nothing.

        Raises:
            TransportError: If no response was received.
            RemoteError: If the server responded with an error status.
            DecodingError: If the response could not be decoded.
            EncodingError: If the input could not be encoded.
        """
        with Timer() as timer:
            body, content_type = self.encode(descriptor)
            headers = context_headers(descriptor.context)
            headers['Content-Type'] = content_type
            response = self.transport.request(
                'POST',
                f'automation/{descriptor.operation_id}',
                headers=headers,
                data=body,
            )
            result = self.decode(response)

        logger.debug(
            f'{type(self).__name__}: EXECUTE {descriptor.operation_id} in '
            f'{timer.elapsed_ms:.3f} ms (result={type(result).__name__})',
        )
        return result

    def execute_async(
        self,
        descriptor: OperationDescriptor,
        *,
        on_success: Callable[[Any], None] | None = None,
        on_failure: Callable[[Exception], None] | None = None,
    ) -> Future[Any]:
        """Execute an Automation operation on the engine's thread pool.

        Returns immediately. Exactly one of `on_success` or `on_failure` is
        called, once, on a pool thread. The ordering of callbacks across
        calls is unspecified.

        Returns:
            Future of the decoded result.
        """
        return self.submit(
            self.execute,
            descriptor,
            on_success=on_success,
            on_failure=on_failure,
        )

    def call(
        self,
        method: str,
        route: str,
        *,
        options: ContextOptions | None = None,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
    ) -> Any:
        """Call a REST route, blocking until done.

        If the context options name a repository, the route is prefixed with
        `repo/<name>/`.

        Args:
            method: HTTP method.
            route: Route relative to the API root, e.g., `'path/folder_2'`.
            options: Context options sent with the call.
            params: Query string parameters.
            body: JSON-compatible request body.

        Returns:
            Decoded result, or `None` if the response has no body.

        Raises:
            ClientError: See
                [`execute()`][docrepo.automation.engine.InvocationEngine.execute].
        """
        options = options if options is not None else ContextOptions()
        if options.repository_name is not None:
            route = f'repo/{quote(options.repository_name, safe="")}/{route}'

        with Timer() as timer:
            response = self.transport.request(
                method,
                route,
                params=params,
                headers=context_headers(options),
                json=body,
            )
            result = self.decode(response)

        logger.debug(
            f'{type(self).__name__}: {method} {route} in '
            f'{timer.elapsed_ms:.3f} ms (result={type(result).__name__})',
        )
        return result

    def call_async(
        self,
        method: str,
        route: str,
        *,
        options: ContextOptions | None = None,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
        on_success: Callable[[Any], None] | None = None,
        on_failure: Callable[[Exception], None] | None = None,
    ) -> Future[Any]:
        """Call a REST route on the engine's thread pool.

        Callback semantics match
        [`execute_async()`][docrepo.automation.engine.InvocationEngine.execute_async].
        """
        return self.submit(
            self.call,
            method,
            route,
            options=options,
            params=params,
            body=body,
            on_success=on_success,
            on_failure=on_failure,
        )

    def submit(
        self,
        function: Callable[..., T],
        /,
        *args: Any,
        on_success: Callable[[T], None] | None = None,
        on_failure: Callable[[Exception], None] | None = None,
        **kwargs: Any,
    ) -> Future[T]:
        """Run a blocking call on the thread pool with completion callbacks.

        If `function` raises, `on_failure` is called with the exception and
        the future holds the same exception. Otherwise `on_success` is called
        with the result. An exception raised by `on_success` is stored in the
        future and does not trigger `on_failure`.
        """

        def _run() -> T:
            try:
                result = function(*args, **kwargs)
            except Exception as e:
                if on_failure is not None:
                    on_failure(e)
                raise
            if on_success is not None:
                on_success(result)
            return result

        return self._executor.submit(_run)

    def encode(self, descriptor: OperationDescriptor) -> tuple[bytes, str]:
        """Encode the request body of an operation.

        Returns:
            Tuple of the body and its content type.

        Raises:
            EncodingError: If a parameter or the input has no marshaller or
                the marshaller fails.
        """
        envelope: dict[str, Any] = {
            'params': {
                name: self._encode_value(value)
                for name, value in descriptor.parameters.items()
            },
            'context': {},
        }

        value = descriptor.input
        parts: list[dict[str, Any]] | None = None
        if _is_blob_input(value):
            blobs = [value] if isinstance(value, Blob) else list(value)
            marshaller = self.registry.resolve_for_encode(blobs[0])
            parts = [self._encode_with(marshaller, b) for b in blobs]
        elif value is not None:
            envelope['input'] = self._encode_value(value)

        try:
            if parts is not None:
                return encode_related(envelope, parts)
            return json.dumps(envelope).encode(), 'application/json'
        except (TypeError, ValueError) as e:
            raise EncodingError(
                f'Failed to encode the request for operation '
                f'{descriptor.operation_id}: {e}',
            ) from e

    def decode(self, response: requests.Response) -> Any:
        """Decode a response into its typed result.

        Error statuses raise a
        [`RemoteError`][docrepo.exceptions.RemoteError]. Responses without a
        body decode to `None`. Attachments and non-JSON bodies decode as a
        blob, multipart bodies as a list of blobs, and JSON bodies with the
        marshaller registered for their entity type.

        Raises:
            RemoteError: If the response has an error status.
            DecodingError: If the body cannot be decoded.
        """
        if response.status_code >= 400:
            raise self._remote_error(response)

        content = response.content
        if response.status_code == 204 or not content:
            return None

        content_type = response.headers.get('Content-Type', '')
        mimetype = content_type.split(';')[0].strip().lower()

        if mimetype.startswith('multipart/'):
            try:
                parts = decode_parts(content, content_type)
            except ValueError as e:
                raise DecodingError(str(e)) from e
            marshaller = self.registry.resolve_for_decode(BLOB_ENTITY_TYPE)
            return [self._decode_with(marshaller, part) for part in parts]

        filename = _attachment_filename(response)
        if filename is not None or 'json' not in mimetype:
            marshaller = self.registry.resolve_for_decode(BLOB_ENTITY_TYPE)
            part = {
                'data': content,
                'filename': filename,
                'mimetype': mimetype or DEFAULT_MIMETYPE,
            }
            return self._decode_with(marshaller, part)

        try:
            data = json.loads(content)
        except ValueError as e:
            raise DecodingError(f'Response is not valid JSON: {e}') from e
        entity_type = (
            data.get(ENTITY_TYPE_KEY) if isinstance(data, dict) else None
        )
        marshaller = self.registry.resolve_for_decode(entity_type)
        return self._decode_with(marshaller, data)

    def _encode_value(self, value: Any) -> Any:
        marshaller = self.registry.resolve_for_encode(value)
        return self._encode_with(marshaller, value)

    def _encode_with(self, marshaller: Marshaller, value: Any) -> Any:
        try:
            return marshaller.encode(value)
        except ClientError:
            raise
        except Exception as e:
            raise EncodingError(
                f'Marshaller for entity type "{marshaller.entity_type}" '
                f'failed to encode {type(value).__name__}: {e}',
            ) from e

    def _decode_with(self, marshaller: Marshaller, data: Any) -> Any:
        try:
            return marshaller.decode(data)
        except ClientError:
            raise
        except Exception as e:
            raise DecodingError(
                f'Marshaller for entity type "{marshaller.entity_type}" '
                f'failed to decode the response: {e}',
            ) from e

    def _remote_error(self, response: requests.Response) -> RemoteError:
        message = response.text or response.reason or 'Unknown error'
        stack_trace = None
        try:
            envelope = response.json()
        except ValueError:
            envelope = None
        if isinstance(envelope, dict):
            message = envelope.get('message') or message
            stack_trace = envelope.get('stacktrace')
        return RemoteError(
            message,
            status=response.status_code,
            remote_stack_trace=stack_trace,
        )
