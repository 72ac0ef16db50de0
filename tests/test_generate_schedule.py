"""
Tests for the schedule printing command line tool.
"""
import pytest
import sys
import os

import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from generate_schedule import (
    CLI_TOURNAMENT_ID,
    build_tournament,
    format_schedule,
    load_roster,
    main,
    pools_to_groups,
)
from tourney.config import get_default_settings, merge_settings


@pytest.fixture
def roster_file(tmp_path):
    path = tmp_path / 'teams.yaml'
    path.write_text(yaml.dump(['Sharks', 'Waves', 'Dunes', 'Palms']))
    return str(path)


@pytest.fixture
def pools_file(tmp_path):
    path = tmp_path / 'pools.yaml'
    path.write_text(yaml.dump({
        'Pool A': ['Sharks', 'Waves', 'Dunes'],
        'Pool B': {'teams': ['Palms', 'Reef', 'Tide']},
    }, sort_keys=False))
    return str(path)


class TestLoadRoster:
    """Tests for reading rosters."""

    def test_plain_list(self, roster_file):
        """A list of names has no pools."""
        assert load_roster(roster_file) == (['Sharks', 'Waves', 'Dunes', 'Palms'], None)

    def test_pools(self, pools_file):
        """Pools may be plain lists or dicts with a teams list."""
        names, pools = load_roster(pools_file)
        assert names == ['Sharks', 'Waves', 'Dunes', 'Palms', 'Reef', 'Tide']
        assert pools == [['Sharks', 'Waves', 'Dunes'], ['Palms', 'Reef', 'Tide']]

    def test_pools_to_groups(self):
        """Pools map onto the ids the engine hands out in roster order."""
        groups = pools_to_groups([['A', 'B'], ['C', 'D', 'E']], 'cli')
        assert groups[0].team_ids == ('cli-t1', 'cli-t2')
        assert groups[1].team_ids == ('cli-t3', 'cli-t4', 'cli-t5')
        assert groups[1].name == 'Group B'


class TestBuildTournament:
    """Tests for creating and printing the tournament."""

    def test_round_robin_schedule(self):
        """Default settings: a two-court round-robin from 09:00."""
        snapshot, tournament = build_tournament(['Sharks', 'Waves', 'Dunes', 'Palms'],
                                                get_default_settings())
        assert tournament.id == CLI_TOURNAMENT_ID
        lines = format_schedule(tournament)
        assert lines[0] == '# Round 1'
        assert lines[1] == '09:00 Court 1: Sharks vs Palms'
        assert lines[-1] == '6 matches, 09:00-10:10'

    def test_playoff_placeholders(self):
        """The follow-up playoff prints its placeholders."""
        snapshot, tournament = build_tournament(['Sharks', 'Waves', 'Dunes', 'Palms'],
                                                get_default_settings())
        child = snapshot.children_of(tournament.id)[0]
        assert '1st place vs 2nd place' in format_schedule(child)[1]

    def test_pools_become_groups(self):
        """With pools, a group-based system uses them as the groups."""
        settings = merge_settings(get_default_settings(), {
            'system': 'group-phase', 'group_phase': {'teams_per_group': 3},
        })
        names = ['Sharks', 'Waves', 'Dunes', 'Palms', 'Reef', 'Tide']
        snapshot, tournament = build_tournament(names, settings, [names[:3], names[3:]])
        assert [g.team_ids for g in tournament.groups] == [
            ('cli-t1', 'cli-t2', 'cli-t3'), ('cli-t4', 'cli-t5', 'cli-t6'),
        ]
        assert len(tournament.matches) == 6


class TestMain:
    """Tests for the command line entry point."""

    def test_prints_schedule(self, roster_file, monkeypatch, capsys):
        """Prints the tournament and its follow-up phase."""
        monkeypatch.setattr(sys, 'argv', ['generate_schedule.py', roster_file])
        assert main() == 0
        output = capsys.readouterr().out
        assert '# Tournament (round-robin)' in output
        assert '# Finals' in output

    def test_settings_file(self, pools_file, tmp_path, monkeypatch, capsys):
        """A settings file switches the system."""
        settings = tmp_path / 'settings.yaml'
        settings.write_text(yaml.dump({'system': 'group-phase', 'group_phase': {'teams_per_group': 3}}))
        monkeypatch.setattr(sys, 'argv', ['generate_schedule.py', pools_file, str(settings)])
        assert main() == 0
        output = capsys.readouterr().out
        assert '# Knockout Phase' in output
        assert '1st Group A vs 2nd Group B' in output

    def test_invalid_roster(self, tmp_path, monkeypatch, capsys):
        """A roster the engine rejects exits with 1."""
        path = tmp_path / 'teams.yaml'
        path.write_text(yaml.dump(['Lonely']))
        monkeypatch.setattr(sys, 'argv', ['generate_schedule.py', str(path)])
        assert main() == 1
        assert 'two teams' in capsys.readouterr().err
