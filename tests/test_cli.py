"""Tests for the command-line entry point."""

import json
import logging

import pytest
import yaml

import export_fedora
from models import JobStatus
from ledger import JobLedger


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logging.getLogger('fedora_export').handlers.clear()


@pytest.fixture
def workspace(tmp_path):
    listing = tmp_path / 'ids.txt'
    listing.write_text('demo:10\nqsr-object:189208\n', encoding='utf-8')

    config = {
        'fedora': {
            'url': 'http://fedora.test/fedora',
            'user': 'fedoraAdmin',
            'password': 'secret',
            'test_object': 'demo:10',
            'test_datastream': 'RDF',
        },
        'export': {'base_dir': str(tmp_path / 'export')},
        'ledger': {'path': str(tmp_path / 'ledger.sqlite3'), 'id_listing': str(listing)},
        'migration': {'report_path': str(tmp_path / 'report.json')},
    }
    config_path = tmp_path / 'config.yaml'
    with open(config_path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(config, f)
    return tmp_path


@pytest.fixture
def use_fake_fetcher(monkeypatch, fetcher):
    monkeypatch.setattr('context.ApiFetcher', lambda config: fetcher)
    return fetcher


def _run(workspace, *args):
    return export_fedora.main(['--config', str(workspace / 'config.yaml'), *args])


def _ledger(workspace):
    return JobLedger.initialize(workspace / 'ledger.sqlite3')


def test_no_mode_prints_usage(capsys):
    assert export_fedora.main([]) == 1

    out = capsys.readouterr()
    assert 'usage:' in out.err or 'usage:' in out.out
    assert 'No valid mode specified' in out.out


def test_modes_are_mutually_exclusive():
    with pytest.raises(SystemExit):
        export_fedora.main(['--test', '--status'])


def test_limit_must_be_positive():
    with pytest.raises(SystemExit):
        export_fedora.main(['--fullrun', '0'])


def test_missing_config_exits_with_config_error(tmp_path):
    assert export_fedora.main(['--status', '--config', str(tmp_path / 'missing.yaml')]) == 2


def test_status_seeds_and_reports(workspace, capsys):
    assert _run(workspace, '--status') == 0

    out = capsys.readouterr().out
    assert 'pending' in out
    assert 'total' in out

    ledger = _ledger(workspace)
    assert ledger.pending_ids() == ['demo:10', 'qsr-object:189208']
    ledger.close()


def test_dryrun_without_ledger_creates_nothing(workspace):
    assert _run(workspace, '--dryrun') == 0

    assert not (workspace / 'ledger.sqlite3').exists()
    assert not (workspace / 'export').exists()


def test_dryrun_changes_nothing(workspace, capsys):
    assert _run(workspace, '--status') == 0
    capsys.readouterr()

    assert _run(workspace, '--dryrun') == 0

    assert 'DRY RUN REPORT' in capsys.readouterr().out
    assert not (workspace / 'export').exists()
    ledger = _ledger(workspace)
    assert ledger.status_counts()['pending'] == 2
    ledger.close()


def test_fullrun_exports_pending(workspace, use_fake_fetcher, capsys):
    assert _run(workspace, '--fullrun') == 0

    assert 'EXPORT REPORT' in capsys.readouterr().out
    assert (workspace / 'export' / 'demo' / '10' / '10' / 'demo-10_metadata.json').is_file()
    assert (workspace / 'export' / 'qsr-object' / '18' / '189208' / 'datastreams' / 'OBJ.pdf').is_file()

    ledger = _ledger(workspace)
    assert ledger.status_counts()['complete'] == 2
    ledger.close()

    with open(workspace / 'report.json', encoding='utf-8') as f:
        assert json.load(f)['summary']['succeeded'] == 2


def test_fullrun_limit_and_failures(workspace, use_fake_fetcher):
    use_fake_fetcher.failing.add('demo:10')

    assert _run(workspace, '--fullrun', '1') == 1

    ledger = _ledger(workspace)
    assert ledger.get_job('demo:10').status == JobStatus.ERROR
    assert ledger.get_job('qsr-object:189208').status == JobStatus.PENDING
    ledger.close()


def test_single_reexports(workspace, use_fake_fetcher):
    assert _run(workspace, '--single', 'qsr-object:189208') == 0

    ledger = _ledger(workspace)
    job = ledger.get_job('qsr-object:189208')
    assert job.status == JobStatus.COMPLETE
    assert job.directory_path.endswith('189208')
    ledger.close()


def test_test_mode_bypasses_ledger(workspace, use_fake_fetcher):
    assert _run(workspace, '--test') == 0

    assert use_fake_fetcher.calls == ['demo:10']
    assert (workspace / 'export' / 'demo' / '10' / '10' / 'datastreams' / 'RDF.xml').is_file()
    assert not (workspace / 'ledger.sqlite3').exists()


def test_failed_connectivity_check(workspace, use_fake_fetcher):
    del use_fake_fetcher.objects['demo:10']

    assert _run(workspace, '--fullrun') == 1

    ledger = _ledger(workspace)
    assert ledger.status_counts()['pending'] == 2
    ledger.close()


def test_duplicate_listing(workspace):
    (workspace / 'ids.txt').write_text('demo:10\ndemo:10\n', encoding='utf-8')

    assert _run(workspace, '--status') == 1
