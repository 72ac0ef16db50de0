"""
Shared building blocks for knockout-style brackets.
"""
import math
from typing import Callable, List, Optional, Sequence, Set, Union

from tourney.models import (
    Dependency, Group, GroupStandingEntry, Match, SlotSource, StandingEntry, make_match_id,
    LOSER, PENDING, SCHEDULED, WINNER,
)

GROUP_NAMES = 'ABCDEFGH'

# What a bracket slot can be seeded with at generation time
Entrant = Union[str, SlotSource, Dependency]


def calculate_bracket_size(num_teams: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_teams <= 0:
        return 0
    if num_teams == 1:
        return 2
    return 2 ** math.ceil(math.log2(num_teams))


def generate_bracket_order(bracket_size: int) -> List[int]:
    """
    Generate the standard tournament bracket order.
    This ensures that if all higher seeds win, they meet in the proper rounds.

    For 8 teams: [1, 8, 4, 5, 2, 7, 3, 6]
    This gives matchups: 1v8, 4v5, 2v7, 3v6
    """
    if bracket_size <= 2:
        return [1, 2]

    upper_half = generate_bracket_order(bracket_size // 2)
    lower_half = [bracket_size + 1 - seed for seed in upper_half]

    result = []
    for u, l in zip(upper_half, lower_half):
        result.extend([u, l])
    return result


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = 'th'
    else:
        suffix = {1: 'st', 2: 'nd', 3: 'rd'}.get(n % 10, 'th')
    return f"{n}{suffix}"


def group_source(group_index: int, rank: int) -> SlotSource:
    return SlotSource(kind='group', rank=rank, group_index=group_index)


def best_of_rank(rank: int, order: int) -> SlotSource:
    return SlotSource(kind='best-of-rank', rank=rank, order=order)


def standing_source(rank: int) -> SlotSource:
    return SlotSource(kind='standing', rank=rank)


def winner_of(match_id: str) -> Dependency:
    return Dependency(match_id=match_id, result=WINNER)


def loser_of(match_id: str) -> Dependency:
    return Dependency(match_id=match_id, result=LOSER)


def describe_source(source: SlotSource) -> str:
    """Human-readable label for an unresolved slot."""
    if source.kind == 'group':
        return f"{ordinal(source.rank)} Group {GROUP_NAMES[source.group_index]}"
    if source.kind == 'best-of-rank':
        return f"Best {ordinal(source.rank)} #{source.order}"
    return f"{ordinal(source.rank)} place"


class BracketBuilder:
    """Accumulates the matches of one bracket with sequential numbering.

    Match ids are derived from the tournament id so a bracket generated twice for
    the same tournament is identical.
    """

    def __init__(self, tournament_id: str, start_number: int = 1):
        self.tournament_id = tournament_id
        self.next_number = start_number
        self.matches: List[Match] = []
        self._numbers = {}

    def label(self, entrant: Optional[Entrant]) -> Optional[str]:
        if isinstance(entrant, SlotSource):
            return describe_source(entrant)
        if isinstance(entrant, Dependency):
            number = self._numbers.get(entrant.match_id, '?')
            prefix = 'Winner' if entrant.result == WINNER else 'Loser'
            return f"{prefix} M{number}"
        return None

    def add(self, round_number: int, tag: Optional[str],
            team_a: Optional[Entrant], team_b: Optional[Entrant], **extra) -> str:
        """Append a match and return its id.

        A string entrant is a known team id; a SlotSource or Dependency leaves the slot
        empty until the resolver fills it. ``None`` leaves the slot to interval
        resolution.
        """
        number = self.next_number
        self.next_number += 1
        match_id = make_match_id(self.tournament_id, number)
        fields = dict(extra)
        for side, entrant in (('a', team_a), ('b', team_b)):
            if isinstance(entrant, str):
                fields[f'team_{side}_id'] = entrant
            elif isinstance(entrant, SlotSource):
                fields[f'source_{side}'] = entrant
            elif isinstance(entrant, Dependency):
                fields[f'depends_on_{side}'] = entrant
            label = self.label(entrant)
            if label:
                fields[f'placeholder_{side}'] = label
        both_known = isinstance(team_a, str) and isinstance(team_b, str)
        match = Match(
            id=match_id,
            round=round_number,
            match_number=number,
            status=SCHEDULED if both_known else PENDING,
            knockout_round=tag,
            **fields,
        )
        self.matches.append(match)
        self._numbers[match_id] = number
        return match_id


def rank_across_groups(group_standings: Sequence[GroupStandingEntry], groups: Sequence[Group],
                       rank: int) -> List[GroupStandingEntry]:
    """
    Order every group's rank-``rank`` finisher against each other.

    Points desc, point differential desc, set differential desc, then group order.
    """
    group_order = {group.id: i for i, group in enumerate(groups)}
    candidates = [e for e in group_standings if e.group_rank == rank and e.group_id in group_order]
    return sorted(
        candidates,
        key=lambda e: (-e.points, -e.point_diff, -e.set_diff, group_order[e.group_id]),
    )


def make_source_lookup(groups: Sequence[Group],
                       group_standings: Sequence[GroupStandingEntry] = (),
                       standings: Sequence[StandingEntry] = ()) -> Callable[[SlotSource], Optional[str]]:
    """Build the function that turns a SlotSource into a team id (None if no such rank)."""
    by_group_rank = {(e.group_id, e.group_rank): e.team_id for e in group_standings}

    def lookup(source: SlotSource) -> Optional[str]:
        if source.kind == 'group':
            if source.group_index is None or source.group_index >= len(groups):
                return None
            return by_group_rank.get((groups[source.group_index].id, source.rank))
        if source.kind == 'best-of-rank':
            ranked = rank_across_groups(group_standings, groups, source.rank)
            if source.order > len(ranked):
                return None
            return ranked[source.order - 1].team_id
        if source.kind == 'standing':
            if source.rank > len(standings):
                return None
            return standings[source.rank - 1].team_id
        raise ValueError(f"Unknown slot source kind '{source.kind}'")

    return lookup


def referenced_team_ids(matches: Sequence[Match]) -> Set[str]:
    return {team_id for match in matches for team_id in match.team_ids}
