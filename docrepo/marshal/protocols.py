"""Marshaller protocol."""
from __future__ import annotations

from typing import Any
from typing import Protocol
from typing import runtime_checkable


@runtime_checkable
class Marshaller(Protocol):
    """Bidirectional strategy mapping a typed object to its wire form.

    The `entity_type` attribute is the discriminator the marshaller is
    registered under. On decode, a response whose `entity-type` tag equals
    `entity_type` is passed to
    [`decode()`][docrepo.marshal.protocols.Marshaller.decode]. On encode,
    the first marshaller whose
    [`supported()`][docrepo.marshal.protocols.Marshaller.supported] check
    accepts an operation input is used.
    """

    entity_type: str

    def supported(self, obj: Any) -> bool:
        """Check if the marshaller can encode the object.

        Marshallers which only decode (e.g., result types which are never
        sent as an operation input) return `False` for every object.
        """
        ...

    def encode(self, obj: Any) -> Any:
        """Encode the object into its JSON-compatible wire form."""
        ...

    def decode(self, data: Any) -> Any:
        """Decode the wire form into an object."""
        ...
