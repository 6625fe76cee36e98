"""Client exception types.

Every failure of a call made through a
[`Client`][docrepo.client.Client] surfaces as exactly one
[`ClientError`][docrepo.exceptions.ClientError] subclass.
"""
from __future__ import annotations


class ClientError(Exception):
    """Base exception class for client errors.

    Args:
        message: Human-readable message.
        status: HTTP status code of the response, if one was received.
        remote_stack_trace: Stack trace text reported by the server, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        remote_stack_trace: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.remote_stack_trace = remote_stack_trace

    def __repr__(self) -> str:
        return (
            f'{type(self).__name__}(message={self.message!r}, '
            f'status={self.status})'
        )


class TransportError(ClientError):
    """Exception raised when no response was received from the server.

    Wraps connection, timeout, and other transport-level failures.
    """

    pass


class RemoteError(ClientError):
    """Exception raised when the server responds with an error status.

    The `status` and `message` are preserved verbatim from the server's
    error envelope so callers can branch on, e.g., `status == 404`.
    """

    pass


class DecodingError(ClientError):
    """Exception raised when a response cannot be decoded.

    Raised when the response's entity type has no registered marshaller or
    when the marshaller fails on the response body.
    """

    pass


class EncodingError(ClientError):
    """Exception raised when an operation input cannot be encoded."""

    pass
