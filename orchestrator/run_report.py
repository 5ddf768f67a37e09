"""
Run report generator for batch exports.

Aggregates a BatchReport and the ledger status counts into a report that can
be printed to the console or exported as JSON.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from logger import format_elapsed
from .batch_runner import BatchReport


class RunReport:
    """Builds and renders batch run reports."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('fedora_export.orchestrator.run_report')

    def generate_report(
        self,
        batch: BatchReport,
        ledger_counts: Optional[Dict[str, int]] = None
    ) -> Dict[str, Any]:
        """
        Generate a report dictionary.

        Args:
            batch: Result of BatchRunner.run_batch
            ledger_counts: Optional status counts from the ledger after the run

        Returns:
            Report dictionary with summary, errors and ledger sections
        """
        attempted = len(batch.results)
        succeeded = len(batch.succeeded)

        summary = {
            'mode': 'dry_run' if batch.dry_run else 'full_run',
            'limit': batch.limit,
            'attempted': attempted,
            'succeeded': succeeded,
            'failed': attempted - succeeded,
            'reclaimed': len(batch.reclaimed),
            'success_rate': (succeeded / attempted) if attempted else 1.0,
            'duration_seconds': batch.duration_seconds,
            'duration_formatted': format_elapsed(batch.duration_seconds)
        }

        report = {
            'summary': summary,
            'errors': [result.to_dict() for result in batch.failed],
            'ledger': dict(ledger_counts) if ledger_counts else {},
            'started_at': batch.started_at,
            'timestamp': datetime.now().isoformat()
        }

        self.logger.info(
            f"Report generated: {attempted} objects, {summary['failed']} errors"
        )
        return report

    def format_console_report(self, report: Dict[str, Any]) -> str:
        """Format report for console display."""
        summary = report.get('summary', {})
        title = "DRY RUN REPORT" if summary.get('mode') == 'dry_run' else "EXPORT REPORT"

        sections = ["=" * 60, title, "=" * 60, ""]

        sections.append("Summary:")
        sections.append(f"  Attempted:   {summary.get('attempted', 0)}")
        sections.append(f"  Succeeded:   {summary.get('succeeded', 0)}")
        sections.append(f"  Failed:      {summary.get('failed', 0)}")
        if summary.get('reclaimed'):
            sections.append(f"  Reclaimed:   {summary['reclaimed']}")
        sections.append(f"  Success:     {summary.get('success_rate', 1.0) * 100:.1f}%")
        sections.append(f"  Duration:    {summary.get('duration_formatted', '0s')}")
        sections.append("")

        errors = report.get('errors', [])
        if errors:
            sections.append("Errors:")
            sections.append("-" * 60)
            for error in errors[:20]:
                sections.append(
                    f"  {error['object_id']} [{error['failure_kind']}]: {error['message']}"
                )
            if len(errors) > 20:
                sections.append(f"  ... and {len(errors) - 20} more")
            sections.append("")

        ledger = report.get('ledger', {})
        if ledger:
            sections.append("Ledger Status:")
            sections.append("-" * 60)
            for status, count in ledger.items():
                sections.append(f"  {status:<11}  {count}")
            sections.append("")

        sections.append("=" * 60)
        return "\n".join(sections)

    def export_json_report(self, report: Dict[str, Any], filepath: str) -> None:
        """
        Export report to JSON file.

        Raises:
            OSError: If the file cannot be written
        """
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(report, f, indent=2, ensure_ascii=False, default=str)

        self.logger.info(f"JSON report exported to {filepath}")
