"""
Unit tests for building commands from plain data.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tourney.commands import (
    COMMAND_TYPES,
    CompleteMatch,
    CreateFinalsPhase,
    CreateTournament,
    UpdateGroupConfiguration,
    UpdateTeams,
    command_from_dict,
    command_type_of,
)
from tourney.errors import TournamentError
from tourney.models import Group, GroupPhaseConfig, KnockoutSettings, SchedulingSettings, Team


class TestCommandFromDict:
    """Tests for command_from_dict."""

    def test_create_tournament_with_nested_settings(self):
        """Nested sections become settings objects."""
        command = command_from_dict({
            'type': 'create-tournament',
            'name': 'Cup',
            'system': 'group-phase',
            'teams': ['A', 'B', 'C', 'D'],
            'group_phase_config': {'number_of_groups': 2, 'teams_per_group': 3},
            'knockout_settings': {'use_referees': True},
            'scheduling': {'start_time': '10:00'},
        })
        assert isinstance(command, CreateTournament)
        assert command.teams == ('A', 'B', 'C', 'D')
        assert command.group_phase_config == GroupPhaseConfig(number_of_groups=2, teams_per_group=3)
        assert command.knockout_settings == KnockoutSettings(use_referees=True)
        assert command.scheduling == SchedulingSettings(start_time='10:00')

    def test_create_tournament_default_scheduling(self):
        """An omitted or null scheduling section keeps the defaults."""
        command = command_from_dict({'type': 'create-tournament', 'name': 'Cup',
                                     'system': 'swiss', 'teams': ['A', 'B'], 'scheduling': None})
        assert command.scheduling == SchedulingSettings()

    def test_scores_become_tuples(self):
        """Set scores are stored as tuples."""
        command = command_from_dict({'type': 'complete-match', 'tournament_id': 't',
                                     'match_id': 't-m1', 'scores': [[21, 15]]})
        assert command == CompleteMatch('t', 't-m1', ((21, 15),))

    def test_team_entries_mix_names_and_records(self):
        """Roster updates accept new names and existing team records."""
        command = command_from_dict({'type': 'update-teams', 'tournament_id': 't',
                                     'teams': ['New', {'id': 't-t1', 'name': 'Old', 'present': False}]})
        assert isinstance(command, UpdateTeams)
        assert command.teams == ('New', Team(id='t-t1', name='Old', present=False))

    def test_manual_groups(self):
        """Groups are converted for manual seeding."""
        command = command_from_dict({'type': 'update-group-configuration', 'tournament_id': 't',
                                     'seeding': 'manual',
                                     'groups': [{'id': 'group-a', 'name': 'Group A', 'team_ids': ['x', 'y']}]})
        assert isinstance(command, UpdateGroupConfiguration)
        assert command.groups == (Group('group-a', 'Group A', ('x', 'y')),)

    def test_finals_settings_default(self):
        """A finals phase without settings uses the knockout defaults."""
        command = command_from_dict({'type': 'create-finals-phase', 'parent_tournament_id': 't'})
        assert command == CreateFinalsPhase('t')
        command = command_from_dict({'type': 'create-finals-phase', 'parent_tournament_id': 't',
                                     'settings': None, 'team_count': 4})
        assert command.settings == KnockoutSettings()
        assert command.team_count == 4

    def test_unknown_type(self):
        """Unknown command types are rejected."""
        with pytest.raises(TournamentError, match='Unknown command type'):
            command_from_dict({'type': 'launch-rockets'})

    def test_missing_fields(self):
        """A command without its required fields is rejected."""
        with pytest.raises(TournamentError, match='Invalid'):
            command_from_dict({'type': 'start-tournament'})

    def test_type_names(self):
        """Commands map back to their registered names."""
        assert command_type_of(CompleteMatch('t', 't-m1')) == 'complete-match'
        assert command_type_of(CreateFinalsPhase('t')) == 'create-finals-phase'
        assert len(COMMAND_TYPES) == 12

    def test_not_a_command(self):
        """Arbitrary objects are rejected."""
        with pytest.raises(TournamentError):
            command_type_of(object())
