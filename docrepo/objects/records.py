"""Record set, audit, and access control models."""
from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import Any


@dataclass
class RecordSet:
    """Rows returned by a result-set query.

    Attributes:
        entries: Raw rows, one mapping per row.
        uuids: Unique identifiers of the rows, in row order.
    """

    entries: list[dict[str, Any]] = field(default_factory=list)
    entity_type: str = 'recordSet'

    @property
    def uuids(self) -> list[str]:
        return [
            entry['ecm:uuid'] for entry in self.entries if 'ecm:uuid' in entry
        ]


@dataclass
class LogEntry:
    """Single audit log entry."""

    id: int | None = None
    category: str | None = None
    event_id: str | None = None
    event_date: str | None = None
    principal_name: str | None = None
    doc_uuid: str | None = None
    doc_path: str | None = None
    doc_type: str | None = None
    doc_life_cycle: str | None = None
    repository_id: str | None = None
    comment: str | None = None
    extended: dict[str, Any] = field(default_factory=dict)


@dataclass
class Audit:
    """Audit trail of a document, most recent entries first."""

    log_entries: list[LogEntry] = field(default_factory=list)
    entity_type: str = 'audit'


@dataclass
class ACE:
    """Access control entry."""

    username: str
    permission: str
    granted: bool = True
    creator: str | None = None
    begin: str | None = None
    end: str | None = None
    status: str | None = None


@dataclass
class ACL:
    """Named, ordered list of access control entries."""

    name: str
    aces: list[ACE] = field(default_factory=list)


@dataclass
class ACP:
    """Access control policy: the ordered ACLs applying to a document."""

    acls: list[ACL] = field(default_factory=list)
    entity_type: str = 'acls'
