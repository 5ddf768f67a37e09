"""Shared fixtures: an in-memory repository fetcher and ledger helpers."""

from typing import Dict, List

import pytest

from exceptions import FetchError, RepositoryConnectionError
from exporters import MimeRegistry, ObjectExporter
from fetchers.base_fetcher import BaseFetcher
from ledger import JobLedger
from models import Datastream, ExportedObject


MIME_TABLE = {
    'application/pdf': 'pdf',
    'image/jpeg': 'jpg',
    'image/tiff': 'tif',
    'text/plain': 'txt',
}


def make_object(pid: str) -> ExportedObject:
    """Build a small object with an RDF, DC and a binary datastream."""
    exported = ExportedObject(
        pid=pid,
        profile={
            'objLabel': f"Label for {pid}",
            'objOwnerId': 'fedoraAdmin',
            'objModels': ['info:fedora/fedora-system:FedoraObject-3.0'],
            'objCreateDate': '2012-03-01T10:00:00.000Z',
            'objState': 'A',
        }
    )
    exported.add_datastream(Datastream(
        dsid='RDF',
        content=f'<rdf:RDF about="{pid}"/>'.encode('utf-8'),
        content_type='application/rdf+xml',
        profile={'dsLabel': 'Relationships', 'dsCreateDate': '2012-03-01T10:00:00.000Z', 'dsMIME': 'application/rdf+xml'}
    ))
    exported.add_datastream(Datastream(
        dsid='DC',
        content=b'<oai_dc:dc/>',
        content_type='text/xml',
        profile={'dsLabel': 'Dublin Core', 'dsCreateDate': '2012-03-01T10:00:01.000Z', 'dsMIME': 'text/xml'}
    ))
    exported.add_datastream(Datastream(
        dsid='OBJ',
        content=b'%PDF-1.4 fake',
        content_type='application/pdf',
        profile={'dsLabel': 'Document', 'dsCreateDate': '2013-06-15T08:30:00.000Z', 'dsMIME': 'application/pdf'}
    ))
    return exported


class FakeFetcher(BaseFetcher):
    """Serves objects from memory; unknown or failing ids raise FetchError."""

    def __init__(self, objects: Dict[str, ExportedObject] = None, failing: List[str] = None):
        super().__init__({})
        self.objects = dict(objects or {})
        self.failing = set(failing or [])
        self.calls: List[str] = []

    def add(self, pid: str) -> ExportedObject:
        exported = make_object(pid)
        self.objects[pid] = exported
        return exported

    def fetch_object(self, pid: str) -> ExportedObject:
        self.calls.append(pid)
        if pid in self.failing or pid not in self.objects:
            raise FetchError(f"Object not found: {pid}")
        return self.objects[pid]

    def check_connection(self, pid: str, dsid: str = 'RDF') -> None:
        exported = self.objects.get(pid)
        if exported is None or not exported.has_datastream(dsid):
            raise RepositoryConnectionError(f"Datastream '{dsid}' not found on test object {pid}")


@pytest.fixture
def mime_registry():
    return MimeRegistry(MIME_TABLE)


@pytest.fixture
def fetcher():
    fake = FakeFetcher()
    for pid in ('qsr-object:189208', 'qsr-object:189209', 'demo:10'):
        fake.add(pid)
    return fake


@pytest.fixture
def export_dir(tmp_path):
    return tmp_path / 'export'


@pytest.fixture
def exporter(fetcher, export_dir, mime_registry):
    return ObjectExporter(fetcher, export_dir, mime_registry)


@pytest.fixture
def ledger(tmp_path):
    job_ledger = JobLedger.initialize(tmp_path / 'ledger.sqlite3')
    yield job_ledger
    job_ledger.close()
