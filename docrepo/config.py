"""Client configuration model."""

from __future__ import annotations

import pathlib
import sys
from typing import List  # noqa: UP035
from typing import Optional

if sys.version_info >= (3, 11):  # pragma: >=3.11 cover
    from typing import Self
else:  # pragma: <3.11 cover
    from typing_extensions import Self

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator

from docrepo.utils.config import dump
from docrepo.utils.config import load


class ClientConfig(BaseModel):
    """Client configuration.

    Tip:
        See the [`Client`][docrepo.client.Client] parameters for more
        information about each configuration option.

    Example:
        ```toml title="docrepo.toml"
        url = "http://localhost:8080/nuxeo"
        username = "Administrator"
        password = "Administrator"
        cache = true
        enrichers = ["acls", "breadcrumb"]
        ```

    Attributes:
        url: Base URL of the server, without the `/api/v1` suffix.
        username: Username for basic authentication.
        password: Password for basic authentication.
        token: Authentication token sent instead of basic authentication.
        timeout: Optional timeout in seconds for each HTTP request.
        cache: Enable the response cache.
        cache_size: Maximum number of cached responses. `None` is unbounded.
        enrichers: Document enrichers requested on every call.
        schemas: Schemas whose properties are returned on every call.
        repository_name: Repository addressed by default.
        max_workers: Number of threads used for callback-style calls.
        marshallers: Fully-qualified paths of marshaller classes to
            instantiate and register when the client is created.
    """

    model_config = ConfigDict(extra='forbid')

    url: str
    username: Optional[str] = None  # noqa: UP007
    password: Optional[str] = None  # noqa: UP007
    token: Optional[str] = None  # noqa: UP007
    timeout: Optional[float] = None  # noqa: UP007
    cache: bool = False
    cache_size: Optional[int] = None  # noqa: UP007
    enrichers: List[str] = Field(default_factory=list)  # noqa: UP006
    schemas: List[str] = Field(default_factory=list)  # noqa: UP006
    repository_name: Optional[str] = None  # noqa: UP007
    max_workers: Optional[int] = None  # noqa: UP007
    marshallers: List[str] = Field(default_factory=list)  # noqa: UP006

    @field_validator('url')
    @classmethod
    def _url_validator(cls, v: str) -> str:
        if not (v.startswith('http://') or v.startswith('https://')):
            raise ValueError('URL must start with http:// or https://.')
        return v.rstrip('/')

    @field_validator('cache_size')
    @classmethod
    def _cache_size_validator(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError('Cache size must be None or >= 0.')
        return v

    @field_validator('max_workers')
    @classmethod
    def _max_workers_validator(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError('Max workers must be None or >= 1.')
        return v

    @classmethod
    def from_toml(cls, filepath: str | pathlib.Path) -> Self:
        """Create a configuration from a TOML file."""
        with open(filepath, 'rb') as f:
            return load(cls, f)

    def write_toml(self, filepath: str | pathlib.Path) -> None:
        """Write the configuration to a TOML file.

        Options that are `None` are omitted, and are restored to `None` when
        the file is loaded again.
        """
        filepath = pathlib.Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, 'wb') as f:
            dump(self, f)
