"""Tests for the sharded object directory layout."""

import pytest

from exceptions import InvalidIdentifierError
from exporters.path_planner import aggregate_metadata_name, plan_directory, split_identifier


class TestPlanDirectory:
    """Directory planning for valid identifiers."""

    def test_layout_uses_two_character_shard(self, tmp_path):
        directory = plan_directory('qsr-object:189208', tmp_path)

        assert directory == tmp_path / 'qsr-object' / '18' / '189208'
        assert (directory / 'datastreams').is_dir()

    def test_creation_is_idempotent(self, tmp_path):
        first = plan_directory('demo:ab', tmp_path)
        second = plan_directory('demo:ab', tmp_path)

        assert first == second == tmp_path / 'demo' / 'ab' / 'ab'
        assert (second / 'datastreams').is_dir()

    def test_returns_object_dir_not_datastreams_dir(self, tmp_path):
        directory = plan_directory('demo:12345', tmp_path)
        assert directory.name == '12345'

    def test_plan_without_create_touches_nothing(self, tmp_path):
        directory = plan_directory('demo:12345', tmp_path, create=False)

        assert directory == tmp_path / 'demo' / '12' / '12345'
        assert list(tmp_path.iterdir()) == []

    def test_splits_on_first_colon_only(self):
        assert split_identifier('type:local:extra') == ('type', 'local:extra')


class TestInvalidIdentifiers:
    """Malformed identifiers are rejected before anything is created."""

    @pytest.mark.parametrize('object_id', [
        'no-colon-here',
        'demo:1',
        'demo:',
        ':12345',
        'demo:..',
        'demo:ab/cd',
        '../etc:passwd',
    ])
    def test_rejected_without_side_effects(self, tmp_path, object_id):
        with pytest.raises(InvalidIdentifierError):
            plan_directory(object_id, tmp_path)

        assert list(tmp_path.iterdir()) == []

    def test_error_names_identifier(self, tmp_path):
        with pytest.raises(InvalidIdentifierError) as excinfo:
            plan_directory('demo:1', tmp_path)

        assert excinfo.value.object_id == 'demo:1'
        assert 'demo:1' in str(excinfo.value)


def test_aggregate_metadata_name_replaces_colon():
    assert aggregate_metadata_name('qsr-object:189208') == 'qsr-object-189208_metadata.json'
