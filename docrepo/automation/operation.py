"""Automation operation descriptors and their builder."""
from __future__ import annotations

import sys
from collections.abc import Mapping
from concurrent.futures import Future
from dataclasses import dataclass
from dataclasses import field
from types import MappingProxyType
from typing import Any
from typing import Callable
from typing import TYPE_CHECKING

if sys.version_info >= (3, 11):  # pragma: >=3.11 cover
    from typing import Self
else:  # pragma: <3.11 cover
    from typing_extensions import Self

from docrepo.context import ContextOptions

if TYPE_CHECKING:
    from docrepo.automation.engine import InvocationEngine


@dataclass(frozen=True)
class OperationDescriptor:
    """Immutable description of one Automation call.

    Descriptors are created with an
    [`OperationBuilder`][docrepo.automation.operation.OperationBuilder]
    and are safe to share between threads.

    Attributes:
        operation_id: Id of the server-side operation, e.g.,
            `'Repository.GetDocument'`.
        parameters: Read-only parameters in insertion order. Some operations
            are sensitive to parameter order.
        input: Optional operation input: a document or reference, a list of
            documents or references, a blob or list of blobs, a raw value, or
            a registered business object.
        context: Context options sent with the call.
    """

    operation_id: str
    parameters: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    input: Any = None
    context: ContextOptions = ContextOptions()


class OperationBuilder:
    """Chainable builder of [`OperationDescriptor`][docrepo.automation.operation.OperationDescriptor].

    A builder is a mutable, single-use helper and should not be shared
    between threads. Builders returned by
    [`Client.automation()`][docrepo.client.Client.automation] are bound to
    the client's engine and start from the client's context options, so they
    can execute the operation directly.

    Example:
        ```python
        document = client.automation() \\
            .param('value', '/') \\
            .execute('Repository.GetDocument')

        blob = client.automation('Blob.AttachOnDocument') \\
            .param('document', '/folder_2/file') \\
            .input(Blob.from_path('notes.txt')) \\
            .execute()
        ```

    Args:
        operation_id: Optional operation id. May instead be passed to
            [`build()`][docrepo.automation.operation.OperationBuilder.build]
            or [`execute()`][docrepo.automation.operation.OperationBuilder.execute].
        engine: Engine used by `execute()` and `execute_async()`.
        context: Initial context options.
    """  # noqa: E501

    def __init__(
        self,
        operation_id: str | None = None,
        *,
        engine: InvocationEngine | None = None,
        context: ContextOptions | None = None,
    ) -> None:
        context = context if context is not None else ContextOptions()
        self._operation_id = operation_id
        self._engine = engine
        self._parameters: dict[str, Any] = {}
        self._input: Any = None
        self._enrichers = context.enrichers
        self._schemas = context.schemas
        self._repository_name = context.repository_name

    def __repr__(self) -> str:
        return (
            f'{type(self).__name__}(operation_id={self._operation_id!r}, '
            f'parameters={list(self._parameters)})'
        )

    def new_request(self, operation_id: str) -> OperationBuilder:
        """Start a new builder with the same engine and context options."""
        return OperationBuilder(
            operation_id,
            engine=self._engine,
            context=self._context(),
        )

    def param(self, name: str, value: Any) -> Self:
        """Set a parameter, keeping the position of an existing one."""
        self._parameters[name] = value
        return self

    def params(self, parameters: Mapping[str, Any]) -> Self:
        """Set several parameters in mapping order."""
        for name, value in parameters.items():
            self.param(name, value)
        return self

    def input(self, value: Any) -> Self:
        """Set the operation input."""
        self._input = value
        return self

    def enrichers(self, *names: str) -> Self:
        """Replace the document enrichers requested by this call."""
        self._enrichers = frozenset(names)
        return self

    def schemas(self, *names: str) -> Self:
        """Replace the schemas requested by this call."""
        self._schemas = frozenset(names)
        return self

    def repository_name(self, name: str | None) -> Self:
        """Address another repository for this call."""
        self._repository_name = name
        return self

    def build(self, operation_id: str | None = None) -> OperationDescriptor:
        """Build the descriptor.

        Args:
            operation_id: Operation id, overriding the one given to the
                constructor.

        Raises:
            ValueError: If no operation id was given.
        """
        operation_id = (
            operation_id if operation_id is not None else self._operation_id
        )
        if operation_id is None:
            raise ValueError('An operation id is required.')
        return OperationDescriptor(
            operation_id=operation_id,
            parameters=MappingProxyType(dict(self._parameters)),
            input=self._input,
            context=self._context(),
        )

    def execute(self, operation_id: str | None = None) -> Any:
        """Build the descriptor and execute it, blocking until done.

        Returns:
            Decoded result, or `None` for operations without a result.

        Raises:
            ClientError: If the call fails.
            RuntimeError: If the builder is not bound to an engine.
        """
        return self._require_engine().execute(self.build(operation_id))

    def execute_async(
        self,
        operation_id: str | None = None,
        *,
        on_success: Callable[[Any], None] | None = None,
        on_failure: Callable[[Exception], None] | None = None,
    ) -> Future[Any]:
        """Build the descriptor and execute it without blocking.

        See
        [`InvocationEngine.execute_async()`][docrepo.automation.engine.InvocationEngine.execute_async].
        """  # noqa: E501
        return self._require_engine().execute_async(
            self.build(operation_id),
            on_success=on_success,
            on_failure=on_failure,
        )

    def _context(self) -> ContextOptions:
        return ContextOptions(
            enrichers=self._enrichers,
            schemas=self._schemas,
            repository_name=self._repository_name,
        )

    def _require_engine(self) -> InvocationEngine:
        if self._engine is None:
            raise RuntimeError(
                'This builder is not bound to an engine. Use '
                'Client.automation() or pass the descriptor from build() to '
                'InvocationEngine.execute().',
            )
        return self._engine
