"""
Batch runner driving the job ledger.

Each pending job is exported in turn: mark processing, export, then mark
complete or error. A failed job is recorded and the batch moves on.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from exporters import ObjectExporter
from ledger import JobLedger
from logger import ProgressTracker, log_section
from models import ExportResult


@dataclass
class BatchReport:
    """Outcome of one batch run."""

    dry_run: bool = False
    limit: Optional[int] = None
    started_at: str = field(default_factory=lambda: datetime.now().isoformat())
    duration_seconds: float = 0.0
    reclaimed: List[str] = field(default_factory=list)
    results: List[ExportResult] = field(default_factory=list)

    @property
    def succeeded(self) -> List[ExportResult]:
        return [result for result in self.results if result.ok]

    @property
    def failed(self) -> List[ExportResult]:
        return [result for result in self.results if not result.ok]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize report to dictionary."""
        return {
            'dry_run': self.dry_run,
            'limit': self.limit,
            'started_at': self.started_at,
            'duration_seconds': self.duration_seconds,
            'reclaimed': list(self.reclaimed),
            'attempted': len(self.results),
            'succeeded': len(self.succeeded),
            'failed': len(self.failed),
            'results': [result.to_dict() for result in self.results]
        }


class BatchRunner:
    """Runs ObjectExporter over the pending jobs of a JobLedger."""

    def __init__(
        self,
        ledger: JobLedger,
        exporter: ObjectExporter,
        logger: Optional[logging.Logger] = None,
        stale_after: Optional[timedelta] = None,
        show_progress: bool = True
    ):
        """
        Initialize the batch runner.

        Args:
            ledger: Job ledger to read from and record into
            exporter: Per-object exporter
            logger: Logger instance
            stale_after: Reclaim jobs stuck in processing for longer than this
            show_progress: Display a tqdm progress bar
        """
        self.ledger = ledger
        self.exporter = exporter
        self.logger = logger or logging.getLogger('fedora_export.orchestrator.batch_runner')
        self.stale_after = stale_after
        self.show_progress = show_progress

    def run_batch(self, limit: Optional[int] = None, dry_run: bool = False) -> BatchReport:
        """
        Export pending jobs.

        The pending list is read once at the start; jobs queued during the
        run are left for the next one.

        Args:
            limit: Maximum number of jobs (None for all pending)
            dry_run: Only plan destinations; no filesystem or ledger changes

        Returns:
            BatchReport with one ExportResult per job
        """
        log_section("Dry Run" if dry_run else "Full Run")
        if limit is not None:
            self.logger.info(f"Processing up to {limit} objects.")
        else:
            self.logger.info("Processing all objects.")

        report = BatchReport(dry_run=dry_run, limit=limit)
        start_time = time.time()

        if self.stale_after is not None and not dry_run:
            report.reclaimed = self.ledger.reclaim_stale(self.stale_after)

        object_ids = self.ledger.pending_ids(limit)
        self.logger.info(f"{len(object_ids)} pending objects selected")

        with ProgressTracker(total_items=len(object_ids), item_type='objects') as tracker:
            for object_id in tqdm(
                object_ids,
                desc="Dry run" if dry_run else "Exporting",
                unit="object",
                disable=not self.show_progress
            ):
                if dry_run:
                    result = self._plan_single(object_id)
                else:
                    result = self.process_single(object_id)
                report.results.append(result)
                tracker.increment(success=result.ok)

        report.duration_seconds = time.time() - start_time
        return report

    def process_single(self, object_id: str) -> ExportResult:
        """
        Export one object and record the outcome, whatever its current status.

        Args:
            object_id: Object identifier

        Returns:
            ExportResult of the export
        """
        self.logger.info(f"Processing object: {object_id}")
        self.ledger.mark_processing(object_id)

        result = self.exporter.export_object(object_id)

        if result.ok:
            self.ledger.mark_complete(object_id, result.directory)
        else:
            self.logger.error(f"Error processing object {object_id}: {result.message}")
            self.ledger.mark_error(object_id, result.message)

        return result

    def _plan_single(self, object_id: str) -> ExportResult:
        result = self.exporter.plan(object_id)
        if result.ok:
            self.logger.info(f"[dry run] would export {object_id} to {result.directory}")
        else:
            self.logger.warning(f"[dry run] {object_id} would fail: {result.message}")
        return result
