"""
Tests for plain-data conversion and YAML persistence.
"""
import pytest
import sys
import os

import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from conftest import play_out

from tourney.bracket import winner_of
from tourney.models import Match, Snapshot
from tourney.serialization import match_from_dict, snapshot_from_dict, to_dict
from tourney.storage import YamlSnapshotStore


class TestSerialization:
    """Tests for to_dict and the from_dict converters."""

    def test_snapshot_round_trip(self, group_phase_snapshot):
        """A started group phase with its pending knockout survives conversion."""
        snapshot = play_out(group_phase_snapshot, 'cup')
        assert snapshot_from_dict(to_dict(snapshot)) == snapshot

    def test_tuples_become_lists(self):
        """Plain data uses lists only."""
        match = Match(id='x-m1', round=1, match_number=1, scores=((21, 15),),
                      placement_interval=(1, 4), depends_on_a=winner_of('x-m0'))
        data = to_dict(match)
        assert data['scores'] == [[21, 15]]
        assert data['placement_interval'] == [1, 4]
        assert data['depends_on_a'] == {'match_id': 'x-m0', 'result': 'winner'}
        assert match_from_dict(data) == match

    def test_unknown_keys_are_ignored(self):
        """Extra keys from newer hosts do not break loading."""
        match = match_from_dict({'id': 'x-m1', 'round': 1, 'match_number': 1, 'colour': 'red'})
        assert match.id == 'x-m1'

    def test_empty_data(self):
        """None or an empty dict is an empty snapshot."""
        assert snapshot_from_dict(None) == Snapshot()
        assert snapshot_from_dict({}) == Snapshot()


class TestYamlSnapshotStore:
    """Tests for the locked YAML file store."""

    def test_missing_file_loads_empty(self, tmp_path):
        """Nothing saved yet."""
        assert YamlSnapshotStore(str(tmp_path / 'state.yaml')).load() == Snapshot()

    def test_save_and_load(self, tmp_path, round_robin_snapshot):
        """The file is plain YAML and loads back to the same snapshot."""
        path = tmp_path / 'nested' / 'state.yaml'
        store = YamlSnapshotStore(str(path))
        store.save(round_robin_snapshot)
        with open(path, encoding='utf-8') as f:
            data = yaml.safe_load(f)
        assert data['current_tournament_id'] == 'rr'
        assert store.load() == round_robin_snapshot

    def test_update_applies_transform(self, tmp_path, round_robin_snapshot):
        """update() loads, transforms and saves."""
        store = YamlSnapshotStore(str(tmp_path / 'state.yaml'))
        result = store.update(lambda current: round_robin_snapshot)
        assert result == round_robin_snapshot
        assert store.load() == round_robin_snapshot

    def test_failed_update_leaves_file(self, tmp_path, round_robin_snapshot):
        """A transform that raises writes nothing."""
        store = YamlSnapshotStore(str(tmp_path / 'state.yaml'))
        store.save(round_robin_snapshot)

        def fail(current):
            raise RuntimeError('boom')

        with pytest.raises(RuntimeError):
            store.update(fail)
        assert store.load() == round_robin_snapshot
