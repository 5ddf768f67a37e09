"""Exports a single repository object to the filesystem."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from exceptions import FetchError, InvalidIdentifierError
from fetchers.base_fetcher import BaseFetcher
from models import ExportedObject, ExportResult, FailureKind
from .datastream_writer import DatastreamWriter, write_json
from .mime_registry import MimeRegistry
from .path_planner import aggregate_metadata_name, plan_directory


class ObjectExporter:
    """
    Orchestrates export of one object: fetch, plan path, write all
    datastreams, write the aggregate object metadata.

    Failures are returned as ``ExportResult.failure`` values rather than
    raised, so batch callers can record them and move on.
    """

    def __init__(
        self,
        fetcher: BaseFetcher,
        base_dir: Union[str, Path],
        mime_registry: MimeRegistry,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the exporter.

        Args:
            fetcher: Repository fetcher producing ExportedObject instances
            base_dir: Export root directory
            mime_registry: Registry used to pick datastream file extensions
            logger: Logger instance
        """
        self.fetcher = fetcher
        self.base_dir = Path(base_dir)
        self.logger = logger or logging.getLogger('fedora_export.exporters.object_exporter')
        self.writer = DatastreamWriter(mime_registry, logger=self.logger)

    def export_object(self, object_id: str, exported: Optional[ExportedObject] = None) -> ExportResult:
        """
        Fetch an object and write it below the base directory.

        Args:
            object_id: Object identifier, e.g. "qsr-object:189208"
            exported: Already fetched object; skips the repository round-trip

        Returns:
            Success with the object directory, or a failure with its kind
        """
        try:
            directory = self._export(object_id, exported)
        except InvalidIdentifierError as e:
            self.logger.error(str(e))
            return ExportResult.failure(object_id, FailureKind.INVALID_IDENTIFIER, str(e))
        except FetchError as e:
            self.logger.error(f"Failed to fetch {object_id}: {e}")
            return ExportResult.failure(object_id, FailureKind.FETCH, str(e))
        except OSError as e:
            self.logger.error(f"Failed to write {object_id}: {e}")
            return ExportResult.failure(object_id, FailureKind.IO, str(e))
        except Exception as e:
            self.logger.exception(f"Unexpected error exporting {object_id}: {e}")
            return ExportResult.failure(
                object_id, FailureKind.UNEXPECTED, f"{type(e).__name__}: {e}"
            )

        return ExportResult.success(object_id, directory)

    def plan(self, object_id: str) -> ExportResult:
        """Compute the destination directory without fetching or writing."""
        try:
            directory = plan_directory(object_id, self.base_dir, create=False)
        except InvalidIdentifierError as e:
            return ExportResult.failure(object_id, FailureKind.INVALID_IDENTIFIER, str(e))
        return ExportResult.success(object_id, directory)

    def _export(self, object_id: str, exported: Optional[ExportedObject] = None) -> Path:
        # Identifier is validated before the repository is contacted
        plan_directory(object_id, self.base_dir, create=False)

        if exported is None:
            exported = self.fetcher.fetch_object(object_id)
        object_dir = plan_directory(object_id, self.base_dir)

        datastream_metadata = self._write_datastreams(exported, object_dir)

        metadata = dict(exported.profile)
        metadata['datastreams'] = datastream_metadata
        metadata_path = object_dir / aggregate_metadata_name(object_id)
        write_json(metadata_path, metadata)

        self.logger.info(
            f"Exported {object_id}: {len(datastream_metadata)} datastream(s) -> {object_dir}"
        )
        return object_dir

    def _write_datastreams(self, exported: ExportedObject, object_dir: Path) -> Dict[str, Any]:
        summaries = {}
        for dsid, datastream in exported.datastreams.items():
            summaries[dsid] = self.writer.write_datastream(
                object_dir,
                dsid,
                datastream.content,
                datastream.profile,
                datastream.content_type
            )
        return summaries
