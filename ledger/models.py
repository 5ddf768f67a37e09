"""SQLAlchemy models for the export job ledger."""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from models import JobStatus


def enum_values(enum_cls) -> list:
    """Persist enum values rather than member names."""
    return [member.value for member in enum_cls]


class Base(DeclarativeBase):
    pass


class Job(Base):
    """One export job per repository object identifier."""

    __tablename__ = "objects"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    status: Mapped[JobStatus] = mapped_column(
        SAEnum(
            JobStatus,
            name="jobstatus",
            native_enum=False,
            length=20,
            values_callable=enum_values,
        ),
        nullable=False,
        default=JobStatus.PENDING,
    )
    processing_start: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    processing_end: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    directory_path: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    job_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column("metadata", JSON, nullable=True)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize job to dictionary."""
        return {
            'id': self.id,
            'status': self.status.value if self.status else None,
            'processing_start': self.processing_start.isoformat() if self.processing_start else None,
            'processing_end': self.processing_end.isoformat() if self.processing_end else None,
            'directory_path': self.directory_path,
            'metadata': self.job_metadata,
            'error': self.error
        }

    def __repr__(self) -> str:
        return f"Job(id={self.id!r}, status={self.status!r})"


__all__ = ['Base', 'Job']
