"""API fetcher retrieving Fedora objects via the REST API."""

import logging
from typing import Any, Dict, Optional

import requests

from exceptions import FetchError, RepositoryConnectionError
from fedora_client import FedoraClient
from models import Datastream, ExportedObject
from .base_fetcher import BaseFetcher

logger = logging.getLogger('fedora_export.fetcher.api')


class ApiFetcher(BaseFetcher):
    """Fetches objects, datastream profiles and datastream content from Fedora."""

    def __init__(self, config: Dict[str, Any], logger=None, client: Optional[FedoraClient] = None):
        """
        Initialize API fetcher with configuration.

        Args:
            config: Configuration dictionary with a ``fedora`` section
            logger: Logger instance (optional)
            client: Pre-built client (optional, built from config otherwise)
        """
        super().__init__(config, logger)

        if client is None:
            if not config.get('fedora', {}).get('url'):
                raise ValueError("fedora.url is required for API fetcher")
            client = FedoraClient.from_config(config)
        self.client = client

        self.stats = {
            'objects_fetched': 0,
            'datastreams_fetched': 0,
            'bytes_fetched': 0,
            'fetch_errors': 0
        }

        self.logger.debug(f"Initialized ApiFetcher for {self.client.base_url}")

    def fetch_object(self, pid: str) -> ExportedObject:
        """
        Fetch an object with its profile and all datastreams.

        Raises:
            FetchError: If any request for the object fails
        """
        try:
            exported = ExportedObject(pid=pid, profile=self.client.get_object_profile(pid))

            for entry in self.client.list_datastreams(pid):
                dsid = entry['dsid']
                profile = self.client.get_datastream_profile(pid, dsid)
                content, content_type = self.client.get_datastream_content(pid, dsid)
                exported.add_datastream(Datastream(
                    dsid=dsid,
                    content=content,
                    content_type=content_type,
                    profile=profile
                ))
                self.stats['datastreams_fetched'] += 1
                self.stats['bytes_fetched'] += len(content)

        except requests.exceptions.HTTPError as e:
            self.stats['fetch_errors'] += 1
            status_code = e.response.status_code if e.response is not None else None
            if status_code == 404:
                raise FetchError(f"Object not found: {pid}") from e
            raise FetchError(f"HTTP {status_code} while fetching {pid}: {e}") from e

        except requests.exceptions.RequestException as e:
            self.stats['fetch_errors'] += 1
            raise FetchError(f"Repository unreachable while fetching {pid}: {e}") from e

        self.stats['objects_fetched'] += 1
        self.logger.debug(f"Fetched {pid} with datastreams: {', '.join(exported.datastreams)}")
        return exported

    def check_connection(self, pid: str, dsid: str = 'RDF') -> None:
        """Fetch the profile of a known datastream to prove connectivity."""
        try:
            datastream_ids = [entry['dsid'] for entry in self.client.list_datastreams(pid)]
            if dsid not in datastream_ids:
                raise RepositoryConnectionError(
                    f"Datastream '{dsid}' not found on test object {pid}"
                )
            self.client.get_datastream_profile(pid, dsid)
        except requests.exceptions.RequestException as e:
            raise RepositoryConnectionError(
                f"Error connecting to Fedora at {self.client.base_url}: {e}"
            ) from e

        self.logger.info(f"Connected to Fedora at {self.client.base_url}")
