"""
Group phase: group configuration, seeding teams into groups, and the interleaved
group round-robin schedule.
"""
import logging
import math
import random
from typing import Dict, List, Optional, Sequence, Tuple

from tourney.bracket import GROUP_NAMES
from tourney.errors import ConfigurationError
from tourney.models import SCHEDULED, Group, Match, Team, make_match_id
from tourney.roundrobin import round_robin_pairings

logger = logging.getLogger(__name__)

MIN_GROUPS = 2
MAX_GROUPS = 8
SUPPORTED_GROUP_SIZES = (3, 4, 5)
SEEDING_MODES = ('snake', 'random', 'manual')


def calculate_group_configuration(team_count: int, teams_per_group: int,
                                  allow_short_groups: bool = True) -> Dict[str, int]:
    """
    Work out how many groups a roster needs.

    Returns:
        dict with 'number_of_groups', 'teams_per_group' and 'bye_count'.

    Raises:
        ConfigurationError: too few teams, a group count outside 2-8, or a roster that
            does not fill its groups (only tolerated when ``allow_short_groups``).
    """
    if team_count < 2:
        raise ConfigurationError("At least two teams are required")
    if teams_per_group not in SUPPORTED_GROUP_SIZES:
        raise ConfigurationError(
            f"Unsupported group size {teams_per_group}; use one of {SUPPORTED_GROUP_SIZES}"
        )
    number_of_groups = math.ceil(team_count / teams_per_group)
    bye_count = number_of_groups * teams_per_group - team_count
    if number_of_groups < MIN_GROUPS or number_of_groups > MAX_GROUPS:
        raise ConfigurationError(
            f"{team_count} teams in groups of {teams_per_group} gives {number_of_groups} groups; "
            f"between {MIN_GROUPS} and {MAX_GROUPS} groups are supported"
        )
    if bye_count and not allow_short_groups:
        raise ConfigurationError(
            f"Team count {team_count} is not divisible by group size {teams_per_group}"
        )
    if teams_per_group - math.ceil(bye_count / number_of_groups) < 2:
        raise ConfigurationError(
            f"{team_count} teams leave a group of {teams_per_group} with fewer than two teams"
        )
    return {
        'number_of_groups': number_of_groups,
        'teams_per_group': teams_per_group,
        'bye_count': bye_count,
    }


def distribute_byes(number_of_groups: int, bye_count: int) -> List[int]:
    """Byes per group, handed out one at a time starting from the last group."""
    byes = [0] * number_of_groups
    for i in range(bye_count):
        byes[number_of_groups - 1 - (i % number_of_groups)] += 1
    return byes


def _empty_groups(number_of_groups: int) -> List[List[str]]:
    return [[] for _ in range(number_of_groups)]


def _build_groups(members: List[List[str]], teams_per_group: int) -> Tuple[Group, ...]:
    return tuple(
        Group(
            id=f"group-{GROUP_NAMES[i].lower()}",
            name=f"Group {GROUP_NAMES[i]}",
            team_ids=tuple(team_ids),
            bye_count=max(0, teams_per_group - len(team_ids)),
        )
        for i, team_ids in enumerate(members)
    )


def snake_draft(teams: Sequence[Team], number_of_groups: int,
                capacities: Sequence[int]) -> List[List[str]]:
    """
    Deal teams in seed order across groups, reversing direction every row:
    A B C D, D C B A, A B C D, ... Full groups are skipped.
    """
    ordered = sorted(teams, key=lambda t: t.seed_position)
    members = _empty_groups(number_of_groups)
    row = 0
    pending = list(ordered)
    while pending:
        columns = range(number_of_groups) if row % 2 == 0 else reversed(range(number_of_groups))
        for g in columns:
            if not pending:
                break
            if len(members[g]) < capacities[g]:
                members[g].append(pending.pop(0).id)
        row += 1
    return members


def random_draw(teams: Sequence[Team], number_of_groups: int, capacities: Sequence[int],
                rng: Optional[random.Random] = None) -> List[List[str]]:
    rng = rng or random.Random()
    shuffled = list(teams)
    rng.shuffle(shuffled)
    members = _empty_groups(number_of_groups)
    g = 0
    for team in shuffled:
        while len(members[g]) >= capacities[g]:
            g = (g + 1) % number_of_groups
        members[g].append(team.id)
        g = (g + 1) % number_of_groups
    return members


def generate_groups(teams: Sequence[Team], teams_per_group: int, seeding: str = 'snake',
                    allow_short_groups: bool = True,
                    rng: Optional[random.Random] = None) -> Tuple[Group, ...]:
    """
    Seed present teams into groups.

    Args:
        teams: Roster; absent teams are left out.
        teams_per_group: Target group size (3, 4 or 5).
        seeding: 'snake' (default), 'random', or 'manual' (empty groups for the caller
            to fill).
        allow_short_groups: Accept rosters that leave some groups one team short.
        rng: Random source for 'random' seeding.
    """
    present = [team for team in teams if team.present]
    config = calculate_group_configuration(len(present), teams_per_group, allow_short_groups)
    number_of_groups = config['number_of_groups']
    byes = distribute_byes(number_of_groups, config['bye_count'])
    capacities = [teams_per_group - b for b in byes]

    if seeding == 'snake':
        members = snake_draft(present, number_of_groups, capacities)
    elif seeding == 'random':
        members = random_draw(present, number_of_groups, capacities, rng)
    elif seeding == 'manual':
        members = _empty_groups(number_of_groups)
    else:
        raise ConfigurationError(f"Unknown seeding mode '{seeding}'")
    groups = _build_groups(members, teams_per_group)
    logger.debug("Seeded %d teams into %d groups (%s)", len(present), number_of_groups, seeding)
    return groups


def validate_groups(groups: Sequence[Group], teams: Sequence[Team]) -> None:
    """Groups must partition the present teams exactly."""
    present = {team.id for team in teams if team.present}
    seen = set()
    for group in groups:
        if len(group.team_ids) < 2:
            raise ConfigurationError(f"{group.name} needs at least two teams")
        for team_id in group.team_ids:
            if team_id in seen:
                raise ConfigurationError(f"Team {team_id} is in more than one group")
            if team_id not in present:
                raise ConfigurationError(f"Team {team_id} is not a present team")
            seen.add(team_id)
    missing = present - seen
    if missing:
        raise ConfigurationError(f"{len(missing)} present team(s) are not in any group")


def generate_group_phase_matches(tournament_id: str, groups: Sequence[Group],
                                 number_of_courts: int) -> List[Match]:
    """
    Round-robin within each group, interleaved across groups.

    The schedule takes the first match of every group, then the second of every group,
    and so on, so that parallel courts host different groups. Courts cycle through
    1..number_of_courts and every ``number_of_courts`` matches form one round.
    """
    per_group = []
    for group in groups:
        flat = [pair for pairs in round_robin_pairings(group.team_ids) for pair in pairs]
        per_group.append((group, flat))

    ordered = []
    longest = max((len(flat) for _, flat in per_group), default=0)
    for i in range(longest):
        for group, flat in per_group:
            if i < len(flat):
                ordered.append((group.id, flat[i]))

    courts = max(1, number_of_courts)
    matches = []
    for index, (group_id, (team_a, team_b)) in enumerate(ordered):
        number = index + 1
        matches.append(Match(
            id=make_match_id(tournament_id, number),
            round=index // courts + 1,
            match_number=number,
            team_a_id=team_a,
            team_b_id=team_b,
            court=index % courts + 1,
            status=SCHEDULED,
            group_id=group_id,
        ))
    logger.debug("Generated %d group matches across %d groups", len(matches), len(groups))
    return matches
