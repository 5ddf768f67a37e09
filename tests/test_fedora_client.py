"""Tests for the Fedora REST client, profile parsing and the API fetcher."""

import pytest
import requests

from exceptions import FetchError, RepositoryConnectionError
from fedora_client import FedoraClient, parse_datastream_list, parse_profile
from fetchers import ApiFetcher


OBJECT_PROFILE = """<?xml version="1.0" encoding="UTF-8"?>
<objectProfile xmlns="http://www.fedora.info/definitions/1/0/access/"
    xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" pid="demo:10">
  <objLabel>Sample object</objLabel>
  <objOwnerId>fedoraAdmin</objOwnerId>
  <objModels>
    <model>info:fedora/fedora-system:FedoraObject-3.0</model>
    <model>info:fedora/demo:Collection</model>
  </objModels>
  <objCreateDate>2012-03-01T10:00:00.000Z</objCreateDate>
  <objLastModDate>2014-07-09T11:12:13.000Z</objLastModDate>
  <objState>A</objState>
</objectProfile>
"""

DATASTREAM_PROFILE = """<?xml version="1.0" encoding="UTF-8"?>
<datastreamProfile xmlns="http://www.fedora.info/definitions/1/0/management/"
    pid="demo:10" dsID="DC">
  <dsLabel>Dublin Core Record</dsLabel>
  <dsVersionID>DC1.0</dsVersionID>
  <dsCreateDate>2012-03-01T10:00:00.000Z</dsCreateDate>
  <dsState>A</dsState>
  <dsMIME>text/xml</dsMIME>
  <dsAltID></dsAltID>
  <dsAltID>dc-alt</dsAltID>
  <dsSize>412</dsSize>
</datastreamProfile>
"""

DATASTREAM_LIST = """<?xml version="1.0" encoding="UTF-8"?>
<objectDatastreams xmlns="http://www.fedora.info/definitions/1/0/access/" pid="demo:10">
  <datastream dsid="DC" label="Dublin Core Record" mimeType="text/xml"/>
  <datastream dsid="RDF" label="Relationships" mimeType="application/rdf+xml"/>
  <datastream dsid="OBJ" label="Scan" mimeType="image/tiff"/>
</objectDatastreams>
"""


def _response(status_code=200, content=b'', content_type='text/xml', url='http://fedora.test/x'):
    response = requests.Response()
    response.status_code = status_code
    response._content = content
    response.headers['Content-Type'] = content_type
    response.url = url
    response.reason = 'OK' if status_code < 400 else 'Not Found'
    response.encoding = 'utf-8'
    return response


def _http_error(status_code):
    response = _response(status_code)
    return requests.exceptions.HTTPError(f"{status_code} error", response=response)


class StubClient:
    """Serves canned profiles for a single object."""

    base_url = 'http://fedora.test/fedora'

    def __init__(self, error=None):
        self.error = error

    def get_object_profile(self, pid):
        if self.error is not None:
            raise self.error
        return parse_profile(OBJECT_PROFILE)

    def list_datastreams(self, pid):
        if self.error is not None:
            raise self.error
        return parse_datastream_list(DATASTREAM_LIST)

    def get_datastream_profile(self, pid, dsid):
        return {'dsLabel': dsid, 'dsCreateDate': '2012-03-01T10:00:00.000Z'}

    def get_datastream_content(self, pid, dsid):
        return f'{dsid} content'.encode('utf-8'), 'application/octet-stream'


class StubSession:
    """Records requests and replies with queued responses."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    def request(self, method, url, timeout=None, **kwargs):
        self.requests.append((method, url, kwargs))
        return self.responses.pop(0)

    def close(self):
        pass


class TestParseProfile:

    def test_object_profile(self):
        profile = parse_profile(OBJECT_PROFILE)

        assert profile['objLabel'] == 'Sample object'
        assert profile['objOwnerId'] == 'fedoraAdmin'
        assert profile['objModels'] == [
            'info:fedora/fedora-system:FedoraObject-3.0',
            'info:fedora/demo:Collection',
        ]
        assert profile['objCreateDate'] == '2012-03-01T10:00:00.000Z'
        assert profile['objState'] == 'A'

    def test_datastream_profile_repeated_elements(self):
        profile = parse_profile(DATASTREAM_PROFILE)

        assert profile['dsLabel'] == 'Dublin Core Record'
        assert profile['dsMIME'] == 'text/xml'
        assert profile['dsAltID'] == ['', 'dc-alt']
        assert profile['dsSize'] == '412'

    def test_empty_document(self):
        assert parse_profile('') == {}


def test_parse_datastream_list():
    entries = parse_datastream_list(DATASTREAM_LIST)

    assert [entry['dsid'] for entry in entries] == ['DC', 'RDF', 'OBJ']
    assert entries[2] == {'dsid': 'OBJ', 'label': 'Scan', 'mime_type': 'image/tiff'}


class TestFedoraClient:

    def test_session_configuration(self):
        client = FedoraClient('https://fedora.test/fedora/', 'fedoraAdmin', 'secret', verify_ssl=False)

        assert client.base_url == 'https://fedora.test/fedora'
        assert client.session.auth == ('fedoraAdmin', 'secret')
        assert client.session.verify is False
        client.close()

    def test_from_config(self):
        client = FedoraClient.from_config({
            'fedora': {'url': 'http://fedora.test/fedora', 'user': 'u', 'password': 'p', 'timeout': 5}
        })

        assert client.timeout == 5
        assert client.session.auth == ('u', 'p')

    def test_object_profile_request(self):
        client = FedoraClient('http://fedora.test/fedora')
        client.session = StubSession([_response(content=OBJECT_PROFILE.encode('utf-8'))])

        profile = client.get_object_profile('demo:10')

        method, url, kwargs = client.session.requests[0]
        assert method == 'GET'
        assert url == 'http://fedora.test/fedora/objects/demo:10'
        assert kwargs['params'] == {'format': 'xml'}
        assert profile['objLabel'] == 'Sample object'

    def test_datastream_content(self):
        client = FedoraClient('http://fedora.test/fedora')
        client.session = StubSession([_response(content=b'\x89PNG', content_type='image/png')])

        content, content_type = client.get_datastream_content('demo:10', 'OBJ')

        assert content == b'\x89PNG'
        assert content_type == 'image/png'
        assert client.session.requests[0][1] == 'http://fedora.test/fedora/objects/demo:10/datastreams/OBJ/content'

    def test_http_error_raised(self):
        client = FedoraClient('http://fedora.test/fedora')
        client.session = StubSession([_response(404)])

        with pytest.raises(requests.exceptions.HTTPError):
            client.list_datastreams('demo:404')


class TestApiFetcher:

    def test_fetch_object(self):
        fetcher = ApiFetcher({}, client=StubClient())

        exported = fetcher.fetch_object('demo:10')

        assert exported.pid == 'demo:10'
        assert exported.profile['objLabel'] == 'Sample object'
        assert list(exported.datastreams) == ['DC', 'RDF', 'OBJ']
        assert exported.datastreams['OBJ'].content == b'OBJ content'
        assert fetcher.stats['objects_fetched'] == 1
        assert fetcher.stats['datastreams_fetched'] == 3

    def test_not_found(self):
        fetcher = ApiFetcher({}, client=StubClient(error=_http_error(404)))

        with pytest.raises(FetchError, match='Object not found: demo:404'):
            fetcher.fetch_object('demo:404')
        assert fetcher.stats['fetch_errors'] == 1

    def test_server_error(self):
        fetcher = ApiFetcher({}, client=StubClient(error=_http_error(500)))

        with pytest.raises(FetchError, match='HTTP 500'):
            fetcher.fetch_object('demo:10')

    def test_unreachable(self):
        error = requests.exceptions.ConnectionError('connection refused')
        fetcher = ApiFetcher({}, client=StubClient(error=error))

        with pytest.raises(FetchError, match='unreachable'):
            fetcher.fetch_object('demo:10')

    def test_requires_url_without_client(self):
        with pytest.raises(ValueError):
            ApiFetcher({'fedora': {}})

    def test_check_connection(self):
        ApiFetcher({}, client=StubClient()).check_connection('demo:10', 'RDF')

    def test_check_connection_missing_datastream(self):
        fetcher = ApiFetcher({}, client=StubClient())

        with pytest.raises(RepositoryConnectionError, match="'THUMB'"):
            fetcher.check_connection('demo:10', 'THUMB')

    def test_check_connection_unreachable(self):
        error = requests.exceptions.ConnectionError('connection refused')
        fetcher = ApiFetcher({}, client=StubClient(error=error))

        with pytest.raises(RepositoryConnectionError):
            fetcher.check_connection('demo:10')
