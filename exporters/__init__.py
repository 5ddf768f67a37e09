"""Filesystem export package for the Fedora export pipeline.

This package turns fetched repository objects into a plain directory tree.

Package Structure:
- mime_registry: Content type -> file extension resolution
- path_planner: Sharded directory layout per object identifier
- datastream_writer: Writes datastream bytes and profile JSON, preserving creation dates
- object_exporter: Exports one object and returns an ExportResult

Layout produced for ``<type>:<local>``::

    <base_dir>/<type>/<local[0:2]>/<local>/
        datastreams/<dsid>.<ext>
        datastreams/<dsid>_metadata.json
        <type>-<local>_metadata.json
"""

from .mime_registry import MimeRegistry
from .path_planner import aggregate_metadata_name, plan_directory, split_identifier
from .datastream_writer import DatastreamWriter
from .object_exporter import ObjectExporter

__all__ = [
    'MimeRegistry',
    'plan_directory',
    'split_identifier',
    'aggregate_metadata_name',
    'DatastreamWriter',
    'ObjectExporter'
]
