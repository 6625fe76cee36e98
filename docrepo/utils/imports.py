"""Resolve marshallers and other objects by string paths."""

from __future__ import annotations

import importlib
from typing import Any


def get_object_path(obj: Any) -> str:
    """Get the fully qualified path of an object.

    Example:
        ```python
        >>> from docrepo.marshal.builtin import DocumentMarshaller
        >>> get_object_path(DocumentMarshaller)
        'docrepo.marshal.builtin.DocumentMarshaller'
        ```
    """
    return f'{obj.__module__}.{obj.__qualname__}'


def import_from_path(path: str) -> Any:
    """Import an object via its fully qualified path.

    Args:
        path: Fully qualified path of the object, e.g.,
            `'mypackage.marshallers.InvoiceMarshaller'`.

    Returns:
        Imported object.

    Raises:
        ImportError: If the path has no module component or the object
            does not exist in the module.
    """
    module_path, _, name = path.rpartition('.')
    if len(module_path) == 0:
        raise ImportError(
            f'Object path must contain at least one module. Got {path}',
        )
    module = importlib.import_module(module_path)
    try:
        return getattr(module, name)
    except AttributeError as e:
        raise ImportError(f'Module {module_path} has no object {name}.') from e
