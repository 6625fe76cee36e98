"""Marshalling of operation inputs and typed results."""
from __future__ import annotations

from docrepo.marshal.business import BusinessObjectMarshaller
from docrepo.marshal.protocols import Marshaller
from docrepo.marshal.registry import MarshallerRegistry

__all__ = ['BusinessObjectMarshaller', 'Marshaller', 'MarshallerRegistry']
