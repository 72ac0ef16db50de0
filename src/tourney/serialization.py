"""
Conversion between engine snapshots and plain data (dicts, lists, scalars).

The plain form is what hosts persist (YAML) or send over the wire (JSON).
"""
import dataclasses
from typing import Any, Dict, Optional

from tourney.models import (
    Dependency, Group, GroupPhaseConfig, GroupStandingEntry, KnockoutSettings, Match,
    PhaseRef, SchedulingSettings, SlotSource, Snapshot, StandingEntry, Team, Tournament,
    TournamentContainer,
)


def to_dict(obj: Any) -> Any:
    """Convert dataclasses and tuples recursively into dicts and lists."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_dict(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, dict):
        return {k: to_dict(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_dict(item) for item in obj]
    return obj


def _known(cls, data: Dict) -> Dict:
    names = {f.name for f in dataclasses.fields(cls)}
    return {k: v for k, v in data.items() if k in names}


def _pair(value) -> Optional[tuple]:
    return tuple(value) if value is not None else None


def team_from_dict(data: Dict) -> Team:
    return Team(**_known(Team, data))


def dependency_from_dict(data: Optional[Dict]) -> Optional[Dependency]:
    return Dependency(**_known(Dependency, data)) if data else None


def slot_source_from_dict(data: Optional[Dict]) -> Optional[SlotSource]:
    return SlotSource(**_known(SlotSource, data)) if data else None


def match_from_dict(data: Dict) -> Match:
    fields = _known(Match, data)
    fields['scores'] = tuple(tuple(s) for s in fields.get('scores') or ())
    for side in ('a', 'b'):
        fields[f'depends_on_{side}'] = dependency_from_dict(fields.get(f'depends_on_{side}'))
        fields[f'source_{side}'] = slot_source_from_dict(fields.get(f'source_{side}'))
    for key in ('placement_interval', 'winner_interval', 'loser_interval'):
        fields[key] = _pair(fields.get(key))
    return Match(**fields)


def group_from_dict(data: Dict) -> Group:
    fields = _known(Group, data)
    fields['team_ids'] = tuple(fields.get('team_ids') or ())
    return Group(**fields)


def standing_from_dict(data: Dict) -> StandingEntry:
    return StandingEntry(**_known(StandingEntry, data))


def group_standing_from_dict(data: Dict) -> GroupStandingEntry:
    return GroupStandingEntry(**_known(GroupStandingEntry, data))


def group_phase_config_from_dict(data: Optional[Dict]) -> Optional[GroupPhaseConfig]:
    if not data:
        return None
    fields = _known(GroupPhaseConfig, data)
    fields['groups'] = tuple(group_from_dict(g) for g in fields.get('groups') or ())
    return GroupPhaseConfig(**fields)


def knockout_settings_from_dict(data: Optional[Dict]) -> Optional[KnockoutSettings]:
    return KnockoutSettings(**_known(KnockoutSettings, data)) if data else None


def scheduling_from_dict(data: Optional[Dict]) -> SchedulingSettings:
    return SchedulingSettings(**_known(SchedulingSettings, data or {}))


def tournament_from_dict(data: Dict) -> Tournament:
    fields = _known(Tournament, data)
    fields['scheduling'] = scheduling_from_dict(fields.get('scheduling'))
    fields['teams'] = tuple(team_from_dict(t) for t in fields.get('teams') or ())
    fields['matches'] = tuple(match_from_dict(m) for m in fields.get('matches') or ())
    fields['standings'] = tuple(standing_from_dict(s) for s in fields.get('standings') or ())
    fields['group_standings'] = tuple(
        group_standing_from_dict(s) for s in fields.get('group_standings') or ()
    )
    fields['group_phase_config'] = group_phase_config_from_dict(fields.get('group_phase_config'))
    fields['knockout_settings'] = knockout_settings_from_dict(fields.get('knockout_settings'))
    fields['eliminated_team_ids'] = tuple(fields.get('eliminated_team_ids') or ())
    return Tournament(**fields)


def container_from_dict(data: Dict) -> TournamentContainer:
    fields = _known(TournamentContainer, data)
    fields['phases'] = tuple(PhaseRef(**_known(PhaseRef, p)) for p in fields.get('phases') or ())
    return TournamentContainer(**fields)


def snapshot_from_dict(data: Optional[Dict]) -> Snapshot:
    if not data:
        return Snapshot()
    return Snapshot(
        tournaments=tuple(tournament_from_dict(t) for t in data.get('tournaments') or ()),
        containers=tuple(container_from_dict(c) for c in data.get('containers') or ()),
        current_tournament_id=data.get('current_tournament_id'),
    )
