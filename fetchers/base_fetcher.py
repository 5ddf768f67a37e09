"""Abstract repository fetcher interface."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from models import ExportedObject


class BaseFetcher(ABC):
    """Abstract base class for repository object fetchers."""

    def __init__(self, config: Optional[Dict[str, Any]] = None, logger=None):
        """
        Initialize base fetcher with configuration and logger.

        Args:
            config: Configuration dictionary
            logger: Logger instance (optional, uses module logger if not provided)
        """
        self.config = config or {}
        self.logger = logger or logging.getLogger('fedora_export.fetcher')

    @abstractmethod
    def fetch_object(self, pid: str) -> ExportedObject:
        """
        Fetch an object with its profile and all datastreams.

        Args:
            pid: Object identifier

        Returns:
            Populated ExportedObject

        Raises:
            FetchError: If the object or one of its datastreams cannot be retrieved
        """
        pass

    @abstractmethod
    def check_connection(self, pid: str, dsid: str = 'RDF') -> None:
        """
        Verify that the named datastream of a known object can be fetched.

        Raises:
            RepositoryConnectionError: If the repository is unreachable or
                the datastream is missing
        """
        pass
