"""Marshaller registry."""
from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Any

from docrepo.exceptions import DecodingError
from docrepo.exceptions import EncodingError
from docrepo.marshal.builtin import builtin_marshallers
from docrepo.marshal.protocols import Marshaller

logger = logging.getLogger(__name__)


class MarshallerRegistry:
    """Thread-safe mapping of entity type to marshaller.

    The registry starts with the
    [built-in marshallers][docrepo.marshal.builtin.builtin_marshallers].
    At most one marshaller is active per entity type: registering a
    marshaller for a type that already has one replaces it, including
    built-in ones.

    When encoding, registered marshallers are tried newest first, then the
    built-in marshallers in priority order.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._builtins: OrderedDict[str, Marshaller] = OrderedDict()
        self._custom: OrderedDict[str, Marshaller] = OrderedDict()
        self.unregister_all()

    def __contains__(self, entity_type: object) -> bool:
        with self._lock:
            return entity_type in self._custom or entity_type in self._builtins

    def __repr__(self) -> str:
        with self._lock:
            custom = list(self._custom)
        return f'{type(self).__name__}(custom={custom})'

    @property
    def entity_types(self) -> list[str]:
        """Entity types with an active marshaller."""
        with self._lock:
            return list(self._custom) + [
                t for t in self._builtins if t not in self._custom
            ]

    def get(self, entity_type: str) -> Marshaller | None:
        """Get the active marshaller for an entity type, if any."""
        with self._lock:
            marshaller = self._custom.get(entity_type)
            if marshaller is None:
                marshaller = self._builtins.get(entity_type)
            return marshaller

    def register(self, marshaller: Marshaller) -> None:
        """Register a marshaller, replacing any for the same entity type."""
        with self._lock:
            self._custom.pop(marshaller.entity_type, None)
            self._custom[marshaller.entity_type] = marshaller
        logger.debug(
            f'Registered marshaller {marshaller!r} for entity type '
            f'"{marshaller.entity_type}"',
        )

    def unregister_all(self) -> None:
        """Discard custom marshallers and restore the built-in ones."""
        with self._lock:
            self._custom.clear()
            self._builtins.clear()
            for marshaller in builtin_marshallers():
                self._builtins[marshaller.entity_type] = marshaller

    def resolve_for_decode(self, entity_type: str | None) -> Marshaller:
        """Get the marshaller that decodes a response entity type.

        Raises:
            DecodingError: If no marshaller is active for `entity_type`.
        """
        marshaller = self.get(entity_type) if entity_type is not None else None
        if marshaller is None:
            raise DecodingError(
                f'No marshaller is registered for entity type '
                f'{entity_type!r}.',
            )
        return marshaller

    def resolve_for_encode(self, obj: Any) -> Marshaller:
        """Get the marshaller that encodes an operation input.

        Raises:
            EncodingError: If no active marshaller supports `obj`.
        """
        with self._lock:
            candidates = list(reversed(self._custom.values())) + [
                m for t, m in self._builtins.items() if t not in self._custom
            ]
        for marshaller in candidates:
            if marshaller.supported(obj):
                return marshaller
        raise EncodingError(
            f'No marshaller is registered for input of type '
            f'{type(obj).__name__}.',
        )
