"""Deterministic on-disk layout for repository objects."""

import logging
from pathlib import Path
from typing import Tuple, Union

from exceptions import InvalidIdentifierError

logger = logging.getLogger('fedora_export.exporters.path_planner')

DATASTREAMS_DIR = 'datastreams'
SHARD_LENGTH = 2


def split_identifier(object_id: str) -> Tuple[str, str]:
    """
    Split ``<type>:<localid>`` on the first colon.

    Raises:
        InvalidIdentifierError: If the identifier is malformed
    """
    if not isinstance(object_id, str):
        raise InvalidIdentifierError(str(object_id), "identifier must be a string")

    object_type, separator, local_id = object_id.partition(':')
    if not separator:
        raise InvalidIdentifierError(object_id, "missing ':' separator")
    if not object_type:
        raise InvalidIdentifierError(object_id, "empty type part")
    if len(local_id) < SHARD_LENGTH:
        raise InvalidIdentifierError(
            object_id, f"local part must be at least {SHARD_LENGTH} characters"
        )

    for part in (object_type, local_id):
        if part in ('.', '..') or '/' in part or '\\' in part:
            raise InvalidIdentifierError(object_id, f"unsafe path component '{part}'")

    return object_type, local_id


def plan_directory(object_id: str, base_dir: Union[str, Path], create: bool = True) -> Path:
    """
    Compute (and by default create) the directory for an object.

    Layout is ``<base_dir>/<type>/<local[0:2]>/<local>`` with a
    ``datastreams`` subdirectory.

    Args:
        object_id: Object identifier, e.g. "qsr-object:189208"
        base_dir: Export root directory
        create: Create the directory tree if missing

    Returns:
        Object directory (parent of ``datastreams``)

    Raises:
        InvalidIdentifierError: If the identifier is malformed
    """
    object_type, local_id = split_identifier(object_id)
    object_dir = Path(base_dir) / object_type / local_id[:SHARD_LENGTH] / local_id

    if create:
        (object_dir / DATASTREAMS_DIR).mkdir(parents=True, exist_ok=True)
        logger.debug(f"Object directory ready: {object_dir}")

    return object_dir


def aggregate_metadata_name(object_id: str) -> str:
    """File name of the object-level metadata JSON."""
    return object_id.replace(':', '-') + '_metadata.json'


__all__ = [
    'DATASTREAMS_DIR',
    'split_identifier',
    'plan_directory',
    'aggregate_metadata_name'
]
