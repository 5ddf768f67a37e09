"""Fetchers package for retrieving objects from a Fedora Commons repository."""

from .base_fetcher import BaseFetcher
from .api_fetcher import ApiFetcher

__all__ = [
    'BaseFetcher',
    'ApiFetcher'
]
