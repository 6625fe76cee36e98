"""HTTP transport to the server."""
from __future__ import annotations

import logging
import sys
from types import TracebackType
from typing import Any
from typing import Mapping

if sys.version_info >= (3, 11):  # pragma: >=3.11 cover
    from typing import Self
else:  # pragma: <3.11 cover
    from typing_extensions import Self

import requests

from docrepo.exceptions import TransportError

logger = logging.getLogger(__name__)

API_PATH = 'api/v1'
TOKEN_HEADER = 'X-Authentication-Token'


class Transport:
    """Authenticated HTTP session bound to one server.

    A single [`requests.Session`][requests.Session] is kept for connection
    pooling. The session is shared by every thread using the client; it is
    only configured in the constructor and never mutated afterwards.

    Args:
        url: Base URL of the server, e.g., `'http://localhost:8080/nuxeo'`.
        username: Username for basic authentication.
        password: Password for basic authentication.
        token: Authentication token. Takes precedence over `username`.
        timeout: Optional timeout in seconds passed to every request.
        session: Optional session to use instead of creating one.
    """

    def __init__(
        self,
        url: str,
        *,
        username: str | None = None,
        password: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url.rstrip('/')
        self.api_url = f'{self.url}/{API_PATH}'
        self.timeout = timeout

        self._session = session if session is not None else requests.Session()
        if token is not None:
            self._session.headers[TOKEN_HEADER] = token
        elif username is not None:
            self._session.auth = (username, password or '')

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
        return f'{type(self).__name__}(url={self.url!r})'

    @property
    def session(self) -> requests.Session:
        """Underlying session."""
        return self._session

    def close(self) -> None:
        """Close the session."""
        self._session.close()

    def request(
        self,
        method: str,
        route: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        data: bytes | None = None,
        json: Any = None,
    ) -> requests.Response:
        """Send a request to a route under the API root.

        Args:
            method: HTTP method.
            route: Route relative to `<url>/api/v1`.
            params: Query string parameters.
            headers: Extra request headers.
            data: Raw request body.
            json: JSON request body.

        Returns:
            Response, whatever its status code.

        Raises:
            TransportError: If no response was received.
        """
        url = f'{self.api_url}/{route.lstrip("/")}'
        try:
            return self._session.request(
                method,
                url,
                params=params,
                headers=dict(headers) if headers is not None else None,
                data=data,
                json=json,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(f'{method} {url} failed: {e}') from e
