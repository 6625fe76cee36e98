"""Binary content model."""
from __future__ import annotations

import io
import mimetypes
import os
import pathlib
import shutil
from typing import BinaryIO

DEFAULT_MIMETYPE = 'application/octet-stream'


class Blob:
    """Binary content sent to or received from the server.

    A blob is backed either by in-memory bytes or by a local file. Blobs
    backed by a file are not read until their content is needed, but an
    upload reads the whole file into the request body.

    Example:
        ```python
        blob = Blob.from_path('report.pdf')
        with blob.open() as f:
            header = f.read(4)
        ```

    Args:
        data: Content of the blob. Mutually exclusive with `path`.
        path: Path to a local file holding the content. Mutually exclusive
            with `data`.
        filename: Name of the file. Defaults to the basename of `path`.
        mimetype: MIME type of the content.

    Raises:
        ValueError: If both or neither of `data` and `path` are given.
    """

    def __init__(
        self,
        data: bytes | None = None,
        *,
        path: str | os.PathLike[str] | None = None,
        filename: str | None = None,
        mimetype: str | None = None,
    ) -> None:
        if (data is None) == (path is None):
            raise ValueError('Exactly one of data or path must be provided.')
        self._data = data
        self._path = pathlib.Path(path) if path is not None else None
        if filename is None and self._path is not None:
            filename = self._path.name
        self.filename = filename
        self.mimetype = mimetype or DEFAULT_MIMETYPE

    @classmethod
    def from_path(
        cls,
        path: str | os.PathLike[str],
        mimetype: str | None = None,
    ) -> Blob:
        """Create a blob backed by a local file.

        The MIME type is guessed from the file extension if not given.
        """
        if mimetype is None:
            mimetype, _ = mimetypes.guess_type(str(path))
        return cls(path=path, mimetype=mimetype)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Blob):
            return NotImplemented
        return (
            self.filename == other.filename
            and self.mimetype == other.mimetype
            and self.read() == other.read()
        )

    def __repr__(self) -> str:
        return (
            f'{type(self).__name__}(filename={self.filename!r}, '
            f'mimetype={self.mimetype!r}, length={self.length})'
        )

    @property
    def path(self) -> pathlib.Path | None:
        """Local file backing this blob, if any."""
        return self._path

    @property
    def length(self) -> int:
        """Size of the content in bytes."""
        if self._data is not None:
            return len(self._data)
        assert self._path is not None
        return os.path.getsize(self._path)

    def open(self) -> BinaryIO:
        """Open a readable binary stream over the content.

        The caller is responsible for closing the stream.
        """
        if self._data is not None:
            return io.BytesIO(self._data)
        assert self._path is not None
        return open(self._path, 'rb')

    def read(self) -> bytes:
        """Read the full content."""
        with self.open() as f:
            return f.read()

    def to_file(self, path: str | os.PathLike[str]) -> pathlib.Path:
        """Write the content to a local file.

        Returns:
            Path of the written file.
        """
        target = pathlib.Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with self.open() as src, open(target, 'wb') as dst:
            shutil.copyfileobj(src, dst)
        return target
