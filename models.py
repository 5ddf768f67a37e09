"""Data models for the Fedora export pipeline."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from dateutil import parser as date_parser


class JobStatus(str, Enum):
    """Lifecycle states of a ledger job."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"


class FailureKind(str, Enum):
    """Per-object failure categories recorded by the batch runner."""
    INVALID_IDENTIFIER = "invalid_identifier"
    FETCH = "fetch"
    IO = "io"
    UNEXPECTED = "unexpected"


@dataclass
class Datastream:
    """A named payload attached to a repository object."""

    dsid: str
    content: bytes
    content_type: str
    profile: Dict[str, Any] = field(default_factory=dict)

    @property
    def creation_date(self) -> 'CreationDate':
        """Creation date carried in the datastream profile."""
        return CreationDate.from_value(self.profile.get('dsCreateDate'))


@dataclass
class ExportedObject:
    """Result of fetching one repository object."""

    pid: str
    datastreams: Dict[str, Datastream] = field(default_factory=dict)
    profile: Dict[str, Any] = field(default_factory=dict)

    def add_datastream(self, datastream: Datastream) -> None:
        """Add a datastream keyed by its dsid."""
        self.datastreams[datastream.dsid] = datastream

    def has_datastream(self, dsid: str) -> bool:
        """Check if the object carries the named datastream."""
        return dsid in self.datastreams


class CreationDate:
    """
    Creation timestamp as found in a profile.

    Profiles carry the date either as text (straight from the repository XML)
    or as an already parsed datetime. The variant is fixed at construction
    and resolved explicitly with ``resolve()``.
    """

    TEXT = "text"
    TIMESTAMP = "timestamp"
    ABSENT = "absent"

    def __init__(self, kind: str, value: Any = None):
        self.kind = kind
        self.value = value

    @classmethod
    def from_value(cls, value: Any) -> 'CreationDate':
        if isinstance(value, datetime):
            return cls(cls.TIMESTAMP, value)
        if isinstance(value, str) and value.strip():
            return cls(cls.TEXT, value.strip())
        return cls(cls.ABSENT)

    def resolve(self) -> Optional[datetime]:
        """
        Resolve to a datetime.

        Returns:
            The timestamp, or None when absent

        Raises:
            ValueError: If a text value cannot be parsed
        """
        if self.kind == self.TIMESTAMP:
            return self.value
        if self.kind == self.TEXT:
            try:
                return date_parser.parse(self.value)
            except (OverflowError, date_parser.ParserError) as e:
                raise ValueError(f"Unparseable creation date '{self.value}': {e}") from e
        return None

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, CreationDate):
            return False
        return self.kind == other.kind and self.value == other.value

    def __repr__(self) -> str:
        return f"CreationDate({self.kind!r}, {self.value!r})"


@dataclass(frozen=True)
class ExportResult:
    """Outcome of exporting (or planning) one object."""

    object_id: str
    directory: Optional[Path] = None
    failure_kind: Optional[FailureKind] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, object_id: str, directory: Path) -> 'ExportResult':
        return cls(object_id=object_id, directory=directory)

    @classmethod
    def failure(cls, object_id: str, kind: FailureKind, message: str) -> 'ExportResult':
        return cls(object_id=object_id, failure_kind=kind, message=message)

    @property
    def ok(self) -> bool:
        return self.failure_kind is None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize result to dictionary."""
        return {
            'object_id': self.object_id,
            'directory': str(self.directory) if self.directory else None,
            'failure_kind': self.failure_kind.value if self.failure_kind else None,
            'message': self.message
        }


__all__ = [
    'JobStatus',
    'FailureKind',
    'Datastream',
    'ExportedObject',
    'CreationDate',
    'ExportResult'
]
