"""General purpose utility functions."""
from __future__ import annotations

from docrepo.utils.imports import get_object_path
from docrepo.utils.imports import import_from_path
from docrepo.utils.timer import Timer

__all__ = ['Timer', 'get_object_path', 'import_from_path']
