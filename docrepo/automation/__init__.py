"""Automation protocol: operation descriptors and the invocation engine."""
from __future__ import annotations

from docrepo.automation.engine import InvocationEngine
from docrepo.automation.operation import OperationBuilder
from docrepo.automation.operation import OperationDescriptor

__all__ = ['InvocationEngine', 'OperationBuilder', 'OperationDescriptor']
