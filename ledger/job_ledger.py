"""
Durable job ledger for resumable batch exports.

The ledger is a single SQLite table with one row per object identifier.
Rows are seeded in bulk from an identifier listing and then move through
pending -> processing -> complete | error as the batch runner works.
"""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from sqlalchemy import create_engine, func, insert, select, text, update
from sqlalchemy.orm import sessionmaker

from exceptions import DuplicateIdError
from models import JobStatus
from .models import Base, Job

BULK_CHUNK_SIZE = 1000


def _utcnow() -> datetime:
    # SQLite stores naive timestamps; all ledger times are UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _chunks(items: List[str], size: int):
    for start in range(0, len(items), size):
        yield items[start:start + size]


class JobLedger:
    """Persistent table of export jobs keyed by object identifier."""

    def __init__(self, database_url: str, logger: Optional[logging.Logger] = None):
        """
        Connect to a ledger database.

        Args:
            database_url: SQLAlchemy URL, e.g. "sqlite:///export.sqlite3"
            logger: Logger instance
        """
        self.database_url = database_url
        self.logger = logger or logging.getLogger('fedora_export.ledger')
        self.engine = create_engine(database_url)
        self._sessions = sessionmaker(self.engine, expire_on_commit=False)

    @classmethod
    def initialize(
        cls,
        db_path: Union[str, Path],
        id_listing_path: Optional[Union[str, Path]] = None,
        logger: Optional[logging.Logger] = None
    ) -> 'JobLedger':
        """
        Open the ledger at ``db_path``, creating and seeding it if it does not exist.

        An existing store is only connected to; the listing is not re-loaded.

        Args:
            db_path: SQLite database file
            id_listing_path: Optional file with one object identifier per line
            logger: Logger instance

        Raises:
            DuplicateIdError: If the listing repeats an identifier
        """
        db_path = Path(db_path)
        is_new = not db_path.exists()
        if is_new:
            db_path.parent.mkdir(parents=True, exist_ok=True)

        ledger = cls(f"sqlite:///{db_path}", logger=logger)

        if not is_new:
            ledger.logger.info(f"Ledger already exists: {db_path}")
            return ledger

        ledger.create_schema()
        ledger.logger.info(f"Ledger created at {db_path} with table '{Job.__tablename__}'")

        if id_listing_path and Path(id_listing_path).exists():
            ledger.load_listing(id_listing_path)
        elif id_listing_path:
            ledger.logger.warning(f"Identifier listing not found: {id_listing_path}")

        return ledger

    def create_schema(self) -> None:
        """Create the jobs table if missing."""
        Base.metadata.create_all(self.engine)

    def load_listing(self, listing_path: Union[str, Path]) -> int:
        """Bulk-load identifiers from a listing file."""
        with open(listing_path, 'r', encoding='utf-8') as f:
            return self.bulk_load(f)

    def bulk_load(self, lines: Iterable[str]) -> int:
        """
        Insert one pending job per non-empty line.

        Either every identifier is inserted or none is.

        Args:
            lines: Object identifiers, surrounding whitespace ignored

        Returns:
            Number of rows inserted

        Raises:
            DuplicateIdError: If an identifier repeats within the input or
                already exists in the ledger
        """
        object_ids: List[str] = []
        seen = set()
        duplicates = set()
        for line in lines:
            object_id = line.strip()
            if not object_id:
                continue
            if object_id in seen:
                duplicates.add(object_id)
                continue
            seen.add(object_id)
            object_ids.append(object_id)

        with self._sessions.begin() as session:
            for chunk in _chunks(object_ids, BULK_CHUNK_SIZE):
                duplicates.update(session.scalars(select(Job.id).where(Job.id.in_(chunk))))
            if duplicates:
                raise DuplicateIdError(duplicates)

            loaded = 0
            for chunk in _chunks(object_ids, BULK_CHUNK_SIZE):
                session.execute(
                    insert(Job),
                    [{'id': object_id, 'status': JobStatus.PENDING} for object_id in chunk]
                )
                loaded += len(chunk)
                self.logger.info(f"{loaded} IDs loaded from listing.")

        self.logger.info(f"{loaded} IDs loaded, ledger holds {self.count()} jobs")
        return loaded

    def _update(self, object_id: str, **values) -> bool:
        with self._sessions.begin() as session:
            result = session.execute(update(Job).where(Job.id == object_id).values(**values))
            updated = result.rowcount > 0

        if not updated:
            self.logger.warning(f"No ledger entry for {object_id}; status not recorded")
        return updated

    def mark_processing(self, object_id: str) -> bool:
        """Set status=processing and stamp processing_start."""
        return self._update(
            object_id,
            status=JobStatus.PROCESSING,
            processing_start=_utcnow()
        )

    def mark_complete(self, object_id: str, directory_path: Union[str, Path]) -> bool:
        """Set status=complete, stamp processing_end and record the directory."""
        return self._update(
            object_id,
            status=JobStatus.COMPLETE,
            processing_end=_utcnow(),
            directory_path=str(directory_path)
        )

    def mark_error(self, object_id: str, message: str) -> bool:
        """Set status=error, stamp processing_end and record the message."""
        return self._update(
            object_id,
            status=JobStatus.ERROR,
            processing_end=_utcnow(),
            error=message
        )

    def pending_ids(self, limit: Optional[int] = None) -> List[str]:
        """
        Return pending identifiers in insertion order.

        Args:
            limit: Maximum number of identifiers (None for all)
        """
        stmt = (
            select(Job.id)
            .where(Job.status == JobStatus.PENDING)
            .order_by(text(f"{Job.__tablename__}.rowid"))
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        with self._sessions() as session:
            return list(session.scalars(stmt))

    def reclaim_stale(self, older_than: timedelta) -> List[str]:
        """
        Return interrupted jobs to pending.

        A job counts as interrupted when it has been ``processing`` for
        longer than ``older_than``.

        Returns:
            Reclaimed identifiers
        """
        cutoff = _utcnow() - older_than
        stale = (Job.status == JobStatus.PROCESSING) & (
            Job.processing_start.is_(None) | (Job.processing_start < cutoff)
        )

        with self._sessions.begin() as session:
            object_ids = list(session.scalars(select(Job.id).where(stale)))
            if object_ids:
                session.execute(update(Job).where(stale).values(status=JobStatus.PENDING))

        for object_id in object_ids:
            self.logger.warning(f"Reclaimed stale job {object_id} (processing since before {cutoff})")
        return object_ids

    def get_job(self, object_id: str) -> Optional[Job]:
        """Fetch a job row by identifier."""
        with self._sessions() as session:
            return session.get(Job, object_id)

    def status_counts(self) -> Dict[str, int]:
        """Count jobs per status (every status is present, possibly 0)."""
        counts = {status.value: 0 for status in JobStatus}
        with self._sessions() as session:
            rows = session.execute(select(Job.status, func.count()).group_by(Job.status))
            for status, count in rows:
                counts[status.value] = count
        return counts

    def count(self) -> int:
        """Total number of jobs."""
        with self._sessions() as session:
            return session.scalar(select(func.count()).select_from(Job))

    def close(self) -> None:
        """Release database connections."""
        self.engine.dispose()
