"""Export context built once at startup and passed to every component."""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional

from config_loader import get_nested
from exceptions import ConfigError
from exporters import MimeRegistry, ObjectExporter
from fetchers import ApiFetcher, BaseFetcher
from ledger import JobLedger
from orchestrator import BatchRunner


@dataclass
class ExportContext:
    """Shared collaborators of one export run."""

    base_dir: Path
    mime_registry: MimeRegistry
    fetcher: BaseFetcher
    ledger: Optional[JobLedger] = None
    test_object: Optional[str] = None
    test_datastream: str = 'RDF'
    stale_after: Optional[timedelta] = None
    report_path: Optional[str] = None
    config: Dict[str, Any] = field(default_factory=dict)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger('fedora_export'))

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        fetcher: Optional[BaseFetcher] = None,
        open_ledger: bool = True
    ) -> 'ExportContext':
        """
        Build the context from a validated configuration.

        Args:
            config: Configuration dictionary
            fetcher: Optional fetcher override (an ApiFetcher is built otherwise)
            open_ledger: Open (and on first use create and seed) the ledger

        Raises:
            ConfigError: If the ledger is requested but not configured
            DuplicateIdError: If seeding a new ledger finds duplicate identifiers
        """
        logger = logging.getLogger('fedora_export')

        mime_types_path = get_nested(config, 'export.mime_types')
        if mime_types_path:
            mime_registry = MimeRegistry.from_file(mime_types_path)
        else:
            mime_registry = MimeRegistry.from_system()

        ledger = None
        if open_ledger:
            ledger_path = get_nested(config, 'ledger.path')
            if not ledger_path:
                raise ConfigError("Missing required configuration: ledger.path")
            ledger = JobLedger.initialize(
                ledger_path,
                get_nested(config, 'ledger.id_listing'),
                logger=logging.getLogger('fedora_export.ledger')
            )

        stale_minutes = get_nested(config, 'ledger.stale_after_minutes')

        return cls(
            base_dir=Path(get_nested(config, 'export.base_dir', './export')),
            mime_registry=mime_registry,
            fetcher=fetcher or ApiFetcher(config),
            ledger=ledger,
            test_object=get_nested(config, 'fedora.test_object'),
            test_datastream=get_nested(config, 'fedora.test_datastream', 'RDF'),
            stale_after=timedelta(minutes=stale_minutes) if stale_minutes else None,
            report_path=get_nested(config, 'migration.report_path'),
            config=config,
            logger=logger
        )

    def build_exporter(self) -> ObjectExporter:
        """Create an ObjectExporter writing below ``base_dir``."""
        return ObjectExporter(
            self.fetcher,
            self.base_dir,
            self.mime_registry,
            logger=logging.getLogger('fedora_export.exporters')
        )

    def build_runner(self, show_progress: bool = True) -> BatchRunner:
        """
        Create a BatchRunner over the ledger.

        Raises:
            ConfigError: If the context was built without a ledger
        """
        if self.ledger is None:
            raise ConfigError("Job ledger is not initialized")
        return BatchRunner(
            self.ledger,
            self.build_exporter(),
            stale_after=self.stale_after,
            show_progress=show_progress
        )

    def check_connection(self) -> None:
        """Verify the repository using the configured test object."""
        if not self.test_object:
            self.logger.warning("No fedora.test_object configured; skipping connectivity check")
            return
        self.fetcher.check_connection(self.test_object, self.test_datastream)

    def close(self) -> None:
        """Release ledger connections."""
        if self.ledger is not None:
            self.ledger.close()
