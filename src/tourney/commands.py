"""
The closed set of commands the engine accepts.

Each command is a frozen dataclass; ``command_from_dict`` builds one from plain data
tagged with a kebab-case ``type``.
"""
from dataclasses import dataclass, field, fields
from typing import Dict, Optional, Tuple, Union

from tourney.errors import TournamentError
from tourney.models import (
    HEAD_TO_HEAD_FIRST, Group, GroupPhaseConfig, KnockoutSettings, SchedulingSettings,
    SetScore, Team,
)
from tourney.serialization import (
    group_from_dict, group_phase_config_from_dict, knockout_settings_from_dict,
    scheduling_from_dict, team_from_dict,
)


@dataclass(frozen=True)
class CreateTournament:
    name: str
    system: str
    teams: Tuple[str, ...]
    number_of_courts: int = 1
    sets_per_match: int = 1
    points_per_set: int = 21
    points_per_third_set: int = 15
    tiebreaker_order: str = HEAD_TO_HEAD_FIRST
    number_of_rounds: Optional[int] = None
    scheduling: SchedulingSettings = field(default_factory=SchedulingSettings)
    group_phase_config: Optional[GroupPhaseConfig] = None
    knockout_settings: Optional[KnockoutSettings] = None
    tournament_id: Optional[str] = None
    random_seed: Optional[int] = None


@dataclass(frozen=True)
class UpdateTeams:
    tournament_id: str
    teams: Tuple[Team, ...]


@dataclass(frozen=True)
class StartTournament:
    tournament_id: str


@dataclass(frozen=True)
class RecordMatchScore:
    tournament_id: str
    match_id: str
    scores: Tuple[SetScore, ...]


@dataclass(frozen=True)
class CompleteMatch:
    tournament_id: str
    match_id: str
    scores: Optional[Tuple[SetScore, ...]] = None


@dataclass(frozen=True)
class GenerateNextSwissRound:
    tournament_id: str


@dataclass(frozen=True)
class CreateFinalsPhase:
    parent_tournament_id: str
    settings: KnockoutSettings = field(default_factory=KnockoutSettings)
    team_count: Optional[int] = None


@dataclass(frozen=True)
class ResetTournament:
    tournament_id: str


@dataclass(frozen=True)
class UpdateGroupConfiguration:
    tournament_id: str
    teams_per_group: Optional[int] = None
    seeding: Optional[str] = None
    groups: Optional[Tuple[Group, ...]] = None
    allow_short_groups: Optional[bool] = None
    random_seed: Optional[int] = None


@dataclass(frozen=True)
class UpdatePhaseSettings:
    tournament_id: str
    name: Optional[str] = None
    system: Optional[str] = None
    number_of_courts: Optional[int] = None
    sets_per_match: Optional[int] = None
    points_per_set: Optional[int] = None
    points_per_third_set: Optional[int] = None
    tiebreaker_order: Optional[str] = None
    number_of_rounds: Optional[int] = None
    scheduling: Optional[SchedulingSettings] = None
    knockout_settings: Optional[KnockoutSettings] = None


@dataclass(frozen=True)
class DeleteTournament:
    tournament_id: str


@dataclass(frozen=True)
class SetCurrentTournament:
    tournament_id: Optional[str]


Command = Union[
    CreateTournament, UpdateTeams, StartTournament, RecordMatchScore, CompleteMatch,
    GenerateNextSwissRound, CreateFinalsPhase, ResetTournament, UpdateGroupConfiguration,
    UpdatePhaseSettings, DeleteTournament, SetCurrentTournament,
]

COMMAND_TYPES = {
    'create-tournament': CreateTournament,
    'update-teams': UpdateTeams,
    'start-tournament': StartTournament,
    'record-match-score': RecordMatchScore,
    'complete-match': CompleteMatch,
    'generate-next-swiss-round': GenerateNextSwissRound,
    'create-finals-phase': CreateFinalsPhase,
    'reset-tournament': ResetTournament,
    'update-group-configuration': UpdateGroupConfiguration,
    'update-phase-settings': UpdatePhaseSettings,
    'delete-tournament': DeleteTournament,
    'set-current-tournament': SetCurrentTournament,
}

# Nested values that need converting from plain data
_CONVERTERS = {
    'teams': lambda items: tuple(
        item if isinstance(item, str) else team_from_dict(item) for item in items
    ),
    'scores': lambda items: tuple(tuple(s) for s in items) if items is not None else None,
    'scheduling': lambda data: scheduling_from_dict(data) if data is not None else None,
    'knockout_settings': knockout_settings_from_dict,
    'settings': lambda data: knockout_settings_from_dict(data) or KnockoutSettings(),
    'group_phase_config': group_phase_config_from_dict,
    'groups': lambda items: tuple(group_from_dict(g) for g in items) if items is not None else None,
}


def command_from_dict(data: Dict) -> Command:
    """Build a command from ``{'type': 'complete-match', ...}``."""
    command_type = data.get('type')
    cls = COMMAND_TYPES.get(command_type)
    if cls is None:
        raise TournamentError(f"Unknown command type '{command_type}'")
    kwargs = {}
    for f in fields(cls):
        if f.name not in data:
            continue
        value = data[f.name]
        converter = _CONVERTERS.get(f.name)
        kwargs[f.name] = converter(value) if converter else value
    if cls is CreateTournament and kwargs.get('scheduling') is None:
        kwargs.pop('scheduling', None)
    try:
        return cls(**kwargs)
    except TypeError as e:
        raise TournamentError(f"Invalid '{command_type}' command: {e}") from e


def command_type_of(command: Command) -> str:
    for name, cls in COMMAND_TYPES.items():
        if isinstance(command, cls):
            return name
    raise TournamentError(f"Not a command: {command!r}")
