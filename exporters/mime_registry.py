"""Content type to file extension registry."""

import logging
import mimetypes
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple, Union

logger = logging.getLogger('fedora_export.exporters.mime_registry')

XML_EXTENSION = '.xml'
DEFAULT_EXTENSION = '.bin'


class MimeRegistry:
    """
    Maps content types to preferred file extensions.

    Resolution order:
    1. Any content type mentioning "xml" (RDF/XML, MODS, DC...) -> .xml
    2. Registry lookup
    3. .bin
    """

    def __init__(self, mapping: Optional[Dict[str, str]] = None):
        """
        Initialize the registry.

        Args:
            mapping: Content type -> extension (with or without leading dot)
        """
        self._extensions: Dict[str, str] = {}
        if mapping:
            self._add_all(mapping.items())

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> 'MimeRegistry':
        """
        Load an Apache httpd style mime.types file.

        Each non-comment line is ``<type> <ext> [<ext> ...]``; the first
        extension wins, as does the first line naming a type.
        """
        registry = cls()
        entries = []
        with open(file_path, 'r', encoding='utf-8') as f:
            for line in f:
                stripped = line.strip()
                if not stripped or stripped.startswith('#'):
                    continue
                parts = stripped.split()
                if len(parts) >= 2:
                    entries.append((parts[0], parts[1]))
        registry._add_all(entries)
        logger.info(f"Loaded {len(registry)} mime types from {file_path}")
        return registry

    @classmethod
    def from_system(cls) -> 'MimeRegistry':
        """Build the registry from the standard library mimetypes table."""
        mimetypes.init()
        entries = []
        for content_type in sorted(set(mimetypes.types_map.values())):
            # preferred extension for the type
            extension = mimetypes.guess_extension(content_type, strict=True)
            if extension:
                entries.append((content_type, extension))
        registry = cls()
        registry._add_all(entries)
        logger.debug(f"Loaded {len(registry)} mime types from system table")
        return registry

    def _add_all(self, entries: Iterable[Tuple[str, str]]) -> None:
        for content_type, extension in entries:
            key = content_type.strip().lower()
            if key and key not in self._extensions:
                self._extensions[key] = extension.strip().lstrip('.')

    def extension_for(self, content_type: Optional[str]) -> str:
        """
        Resolve the file extension (with leading dot) for a content type.

        Args:
            content_type: Content-Type header value, parameters allowed

        Returns:
            Extension such as ".pdf"
        """
        if not content_type:
            return DEFAULT_EXTENSION

        if 'xml' in content_type:
            return XML_EXTENSION

        base_type = content_type.split(';', 1)[0].strip().lower()
        extension = self._extensions.get(base_type)
        if extension:
            return f".{extension}"

        return DEFAULT_EXTENSION

    def __contains__(self, content_type: str) -> bool:
        return content_type.strip().lower() in self._extensions

    def __len__(self) -> int:
        return len(self._extensions)
