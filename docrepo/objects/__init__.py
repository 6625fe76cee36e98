"""Typed models exchanged with the server."""
from __future__ import annotations

from docrepo.objects.blob import Blob
from docrepo.objects.document import Document
from docrepo.objects.document import Documents
from docrepo.objects.records import ACE
from docrepo.objects.records import ACL
from docrepo.objects.records import ACP
from docrepo.objects.records import Audit
from docrepo.objects.records import LogEntry
from docrepo.objects.records import RecordSet
from docrepo.objects.refs import DocRef
from docrepo.objects.refs import DocRefs

__all__ = [
    'ACE',
    'ACL',
    'ACP',
    'Audit',
    'Blob',
    'DocRef',
    'DocRefs',
    'Document',
    'Documents',
    'LogEntry',
    'RecordSet',
]
