"""
Command line tool: build a tournament from a YAML roster and print its schedule.

Usage:
    python generate_schedule.py <teams.yaml> [settings.yaml]

The roster is either a list of team names (in seed order) or a mapping of pool names
to team lists; pools are used as the groups of a group-based system.
"""
import os
import sys
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

import yaml

from tourney.bracket import GROUP_NAMES
from tourney.commands import CreateTournament, StartTournament
from tourney.config import (
    group_phase_from_settings, knockout_from_settings, load_settings, scheduling_from_settings,
)
from tourney.engine import apply_command
from tourney.errors import TournamentError
from tourney.models import GROUP_BASED_SYSTEMS, Group, Snapshot, Tournament
from tourney.scheduling import estimate_tournament_duration, schedule_tournament

CLI_TOURNAMENT_ID = 'cli'


def load_roster(file_path: str) -> Tuple[List[str], Optional[List[List[str]]]]:
    """Return team names and, for a pool mapping, the pools as lists of names."""
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or []
    if isinstance(data, list):
        return [str(name) for name in data], None
    pools = []
    for pool_data in data.values():
        # pools are either a plain list or a dict with a 'teams' list
        names = pool_data.get('teams', []) if isinstance(pool_data, dict) else pool_data
        pools.append([str(name) for name in names])
    return [name for pool in pools for name in pool], pools


def pools_to_groups(pools: List[List[str]], tournament_id: str) -> Tuple[Group, ...]:
    """Groups over the team ids the engine assigns (roster order, 1-based)."""
    groups = []
    number = 1
    for i, pool in enumerate(pools):
        team_ids = tuple(f"{tournament_id}-t{number + k}" for k in range(len(pool)))
        number += len(pool)
        groups.append(Group(id=f"group-{GROUP_NAMES[i].lower()}", name=f"Group {GROUP_NAMES[i]}",
                            team_ids=team_ids))
    return tuple(groups)


def build_tournament(team_names: List[str], settings: Dict,
                     pools: Optional[List[List[str]]] = None) -> Tuple[Snapshot, Tournament]:
    """Create and start a tournament; returns the snapshot and the started phase."""
    system = settings['system']
    group_config = None
    if system in GROUP_BASED_SYSTEMS:
        group_config = group_phase_from_settings(settings)
        if pools:
            group_config = replace(group_config, seeding='manual',
                                   groups=pools_to_groups(pools, CLI_TOURNAMENT_ID))
    command = CreateTournament(
        name=settings['name'],
        system=system,
        teams=tuple(team_names),
        number_of_courts=settings['number_of_courts'],
        sets_per_match=settings['sets_per_match'],
        points_per_set=settings['points_per_set'],
        points_per_third_set=settings['points_per_third_set'],
        tiebreaker_order=settings['tiebreaker_order'],
        number_of_rounds=settings.get('number_of_rounds'),
        scheduling=scheduling_from_settings(settings),
        group_phase_config=group_config,
        knockout_settings=knockout_from_settings(settings),
        tournament_id=CLI_TOURNAMENT_ID,
    )
    snapshot = apply_command(Snapshot(), command)
    snapshot = apply_command(snapshot, StartTournament(tournament_id=CLI_TOURNAMENT_ID))
    return snapshot, snapshot.get_tournament(CLI_TOURNAMENT_ID)


def format_schedule(tournament: Tournament) -> List[str]:
    """Lines of the printed schedule, one block per round."""
    times = {entry['match_id']: entry for entry in schedule_tournament(tournament)}
    lines = []
    current_round = None
    for match in sorted(tournament.matches, key=lambda m: (m.round, m.match_number)):
        if match.is_bye:
            continue
        if match.round != current_round:
            if current_round is not None:
                lines.append('')
            lines.append(f"# Round {match.round}")
            current_round = match.round
        entry = times.get(match.id, {})
        team_a = tournament.team_name(match.team_a_id) if match.team_a_id else (match.placeholder_a or 'TBD')
        team_b = tournament.team_name(match.team_b_id) if match.team_b_id else (match.placeholder_b or 'TBD')
        lines.append(f"{entry.get('start_time', '--:--')} Court {entry.get('court', '-')}: "
                     f"{team_a} vs {team_b}")
    estimate = estimate_tournament_duration(tournament)
    lines.append('')
    lines.append(f"{estimate['match_count']} matches, {estimate['start_time']}-{estimate['end_time']}")
    return lines


def main():
    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)

    # Use command line arguments if provided, otherwise use default paths
    teams_file = sys.argv[1] if len(sys.argv) > 1 else os.path.join(base_dir, 'data', 'teams.yaml')
    settings_file = sys.argv[2] if len(sys.argv) > 2 else None

    team_names, pools = load_roster(teams_file)
    settings = load_settings(settings_file)
    try:
        snapshot, tournament = build_tournament(team_names, settings, pools)
    except TournamentError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"# {tournament.name} ({tournament.system})")
    print()
    for line in format_schedule(tournament):
        print(line)
    for child in snapshot.children_of(tournament.id):
        print()
        print(f"# {child.phase_name}")
        print()
        for line in format_schedule(child):
            print(line)
    return 0


if __name__ == '__main__':
    sys.exit(main())
