"""Fedora Commons 3 REST API client with retry logic and profile parsing."""

import logging
import time
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import requests
import urllib3
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger('fedora_export.client')


def parse_profile(xml_text: str) -> Dict[str, Any]:
    """
    Flatten a Fedora profile document into a dictionary.

    Every child element of the root becomes a key holding its text. Elements
    with child elements (``objModels``) become lists of the child texts, and
    repeated elements (``dsAltID``) are collected into lists.

    Args:
        xml_text: objectProfile or datastreamProfile XML

    Returns:
        Profile dictionary
    """
    soup = BeautifulSoup(xml_text, 'xml')
    root = soup.find(True)
    if root is None:
        return {}

    profile: Dict[str, Any] = {}
    for element in root.find_all(True, recursive=False):
        if element.find(True) is not None:
            value: Any = [child.get_text(strip=True) for child in element.find_all(True, recursive=False)]
        else:
            value = element.get_text(strip=True)

        if element.name in profile:
            existing = profile[element.name]
            if not isinstance(existing, list):
                existing = [existing]
            existing.append(value)
            profile[element.name] = existing
        else:
            profile[element.name] = value

    return profile


def parse_datastream_list(xml_text: str) -> List[Dict[str, str]]:
    """Parse an objectDatastreams document into dsid/label/mimeType entries."""
    soup = BeautifulSoup(xml_text, 'xml')
    return [
        {
            'dsid': element.get('dsid'),
            'label': element.get('label', ''),
            'mime_type': element.get('mimeType', '')
        }
        for element in soup.find_all('datastream')
        if element.get('dsid')
    ]


class FedoraClient:
    """Fedora 3 REST API client with basic authentication, retries and rate limiting."""

    def __init__(
        self,
        base_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        verify_ssl: bool = True,
        timeout: int = 30,
        max_retries: int = 3,
        retry_backoff_factor: float = 2.0,
        rate_limit: float = 0.0
    ):
        """
        Initialize the client.

        Args:
            base_url: Fedora base URL (e.g., "https://fedora.example.org/fedora")
            username: Username for basic auth
            password: Password for basic auth
            verify_ssl: Whether to verify SSL certificates
            timeout: HTTP request timeout in seconds
            max_retries: Maximum retry attempts for transient errors
            retry_backoff_factor: Exponential backoff factor
            rate_limit: Minimum seconds between requests (0.0 = no rate limiting)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.rate_limit = rate_limit
        self.last_request_time = 0.0

        self.session = requests.Session()
        if username:
            self.session.auth = (username, password or '')
            logger.info(f"Initialized Fedora client with Basic auth for {self.base_url}")
        else:
            logger.info(f"Initialized anonymous Fedora client for {self.base_url}")

        self.session.verify = verify_ssl
        if not verify_ssl:
            logger.warning("SSL verification disabled - this is insecure!")
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=retry_backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        logger.debug(f"Client configured with timeout={timeout}s, max_retries={max_retries}, "
                     f"backoff_factor={retry_backoff_factor}, rate_limit={rate_limit}s")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'FedoraClient':
        """Create a client from the ``fedora`` configuration section."""
        fedora_config = config.get('fedora', {})
        return cls(
            base_url=fedora_config['url'],
            username=fedora_config.get('user'),
            password=fedora_config.get('password'),
            verify_ssl=fedora_config.get('verify_ssl', True),
            timeout=fedora_config.get('timeout', 30),
            max_retries=fedora_config.get('max_retries', 3),
            retry_backoff_factor=float(fedora_config.get('retry_backoff_factor', 2.0)),
            rate_limit=float(fedora_config.get('rate_limit', 0.0))
        )

    def _enforce_rate_limit(self) -> None:
        if self.rate_limit <= 0:
            return

        time_since_last = time.time() - self.last_request_time
        if time_since_last < self.rate_limit:
            sleep_time = self.rate_limit - time_since_last
            logger.debug(f"Rate limiting: sleeping for {sleep_time:.2f}s")
            time.sleep(sleep_time)

    def _make_request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """
        Make an HTTP request against the Fedora API.

        Args:
            method: HTTP method
            endpoint: Path below the base URL (e.g., "/objects/demo:1")
            **kwargs: Additional arguments for requests

        Returns:
            Response object

        Raises:
            requests.exceptions.HTTPError: For HTTP errors
            requests.exceptions.RequestException: For other request errors
        """
        self._enforce_rate_limit()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        start_time = time.time()
        logger.debug(f"API Request: {method} {url}")

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            elapsed = time.time() - start_time
            logger.debug(f"API Response: {response.status_code} {url} ({elapsed:.3f}s)")
            response.raise_for_status()
            return response

        except requests.exceptions.Timeout:
            logger.error(f"Request timeout after {self.timeout}s: {method} {url}")
            raise

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else "unknown"
            logger.debug(f"HTTP Error {status_code}: {method} {url}")
            raise

        except requests.exceptions.RequestException as e:
            logger.error(f"Request error: {method} {url} - {str(e)}")
            raise

        finally:
            self.last_request_time = time.time()

    @staticmethod
    def _object_path(pid: str) -> str:
        return f"/objects/{quote(pid, safe=':')}"

    def get_object_profile(self, pid: str) -> Dict[str, Any]:
        """Fetch the object profile (label, owner, dates, models, state)."""
        response = self._make_request('GET', self._object_path(pid), params={'format': 'xml'})
        return parse_profile(response.text)

    def list_datastreams(self, pid: str) -> List[Dict[str, str]]:
        """List the datastreams of an object."""
        response = self._make_request(
            'GET', f"{self._object_path(pid)}/datastreams", params={'format': 'xml'}
        )
        return parse_datastream_list(response.text)

    def get_datastream_profile(self, pid: str, dsid: str) -> Dict[str, Any]:
        """Fetch the profile of one datastream."""
        response = self._make_request(
            'GET',
            f"{self._object_path(pid)}/datastreams/{quote(dsid, safe='')}",
            params={'format': 'xml'}
        )
        return parse_profile(response.text)

    def get_datastream_content(self, pid: str, dsid: str) -> Tuple[bytes, str]:
        """
        Fetch datastream content.

        Returns:
            Tuple of (content bytes, Content-Type header)
        """
        response = self._make_request(
            'GET', f"{self._object_path(pid)}/datastreams/{quote(dsid, safe='')}/content"
        )
        content_type = response.headers.get('Content-Type', 'application/octet-stream')
        return response.content, content_type

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()


__all__ = ['FedoraClient', 'parse_profile', 'parse_datastream_list']
