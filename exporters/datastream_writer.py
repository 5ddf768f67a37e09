"""Writes datastream content and profile metadata to disk."""

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from models import CreationDate
from .mime_registry import MimeRegistry
from .path_planner import DATASTREAMS_DIR


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    if isinstance(value, Path):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def write_json(path: Path, data: Dict[str, Any]) -> None:
    """Write pretty-printed JSON, replacing any existing file."""
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False, default=_json_default)
        f.write('\n')


class DatastreamWriter:
    """
    Persists one datastream into an object directory.

    For each datastream this writer:
    1. Resolves the file extension from the content type
    2. Writes the raw bytes to ``datastreams/<dsid><ext>``
    3. Writes the profile to ``datastreams/<dsid>_metadata.json``
    4. Stamps the content file with the datastream creation date
    """

    def __init__(self, mime_registry: MimeRegistry, logger: Optional[logging.Logger] = None):
        self.mime_registry = mime_registry
        self.logger = logger or logging.getLogger('fedora_export.exporters.datastream_writer')

    def write_datastream(
        self,
        object_dir: Path,
        dsid: str,
        content: bytes,
        profile: Dict[str, Any],
        mime_type: str
    ) -> Dict[str, Any]:
        """
        Write a datastream and its metadata.

        Args:
            object_dir: Object directory from the path planner
            dsid: Datastream identifier
            content: Raw datastream bytes
            profile: Datastream profile (all fields are serialized)
            mime_type: Content type reported by the repository

        Returns:
            Summary with mime_type, datastream_file, metadata_file and metadata

        Raises:
            OSError: If either file cannot be written
        """
        object_dir = Path(object_dir)
        datastreams_dir = object_dir / DATASTREAMS_DIR
        datastreams_dir.mkdir(parents=True, exist_ok=True)

        extension = self.mime_registry.extension_for(mime_type)
        relative_path = f"{DATASTREAMS_DIR}/{dsid}{extension}"
        content_path = object_dir / relative_path

        with open(content_path, 'wb') as f:
            f.write(content)

        metadata = dict(profile)
        metadata_path = datastreams_dir / f"{dsid}_metadata.json"
        write_json(metadata_path, metadata)

        creation_date = CreationDate.from_value(metadata.get('dsCreateDate'))
        self.logger.debug(
            f"Wrote datastream {dsid} to {content_path} ({len(content)} bytes, "
            f"created {creation_date.value})"
        )
        self._apply_timestamp(content_path, creation_date)

        return {
            'mime_type': mime_type,
            'datastream_file': relative_path,
            'metadata_file': str(metadata_path),
            'metadata': metadata
        }

    def _apply_timestamp(self, path: Path, creation_date: CreationDate) -> None:
        """Set atime and mtime from the creation date; failures only warn."""
        try:
            timestamp = creation_date.resolve()
            if timestamp is None:
                return
            epoch = timestamp.timestamp()
            os.utime(path, (epoch, epoch))
        except (ValueError, OSError, OverflowError) as e:
            self.logger.warning(f"Could not set timestamp for {path}: {e}")
