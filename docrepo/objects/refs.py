"""Document references used as operation inputs."""
from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import Iterator
from typing import NamedTuple


class DocRef(NamedTuple):
    """Reference to a single document.

    Attributes:
        ref: Document uid or absolute path.
    """

    ref: str


@dataclass
class DocRefs:
    """Ordered list of document references."""

    refs: list[DocRef] = field(default_factory=list)

    def __iter__(self) -> Iterator[DocRef]:
        return iter(self.refs)

    def __len__(self) -> int:
        return len(self.refs)

    def add(self, ref: DocRef | str) -> None:
        """Append a reference."""
        self.refs.append(ref if isinstance(ref, DocRef) else DocRef(ref))
