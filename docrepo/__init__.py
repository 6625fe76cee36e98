"""DocRepo is a client library for document-repository REST and Automation APIs."""
from __future__ import annotations

import importlib.metadata as importlib_metadata

from docrepo.client import Client
from docrepo.config import ClientConfig

__all__ = ['Client', 'ClientConfig']

__version__ = importlib_metadata.version('docrepo')
