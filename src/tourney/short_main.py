"""
Short main round: qualification plus concurrent placement brackets.

Groups of four feed three placement bands:

- top band, places 1..2G: the group winners plus the qualification winners
- qualification losers, places 2G+1..3G
- group last places, places 3G+1..4G

Qualification pairs the runner-up of one group with the third of another. Each band
is played out in full: losers keep playing for the places below, so every place is
decided by a match unless a bye stands in.
"""
import logging
from typing import List, Sequence

from tourney.bracket import BracketBuilder, Entrant, group_source, loser_of, winner_of
from tourney.errors import ConfigurationError
from tourney.models import Match
from tourney.placement_tree import build_full_placement_tree

logger = logging.getLogger(__name__)

QUALIFICATION = 'qualification'
REQUIRED_GROUP_SIZE = 4


def qualification_opponent(group_index: int, number_of_groups: int) -> int:
    """
    Group whose third place meets this group's runner-up.

    Reversed group order (A-D, B-C, ...) for an even group count; an odd count has a
    middle group that would meet itself, so every group shifts by one instead.
    """
    if number_of_groups % 2 == 1:
        return (group_index + 1) % number_of_groups
    return number_of_groups - 1 - group_index


def _assign_qualifiers(qualification_groups: Sequence[Sequence[int]], number_of_groups: int) -> List[int]:
    """
    For each group winner pick a qualification match, preferring one with no team from
    the winner's own group. Returns the qualification index per group.
    """
    used = set()
    assignment = []
    for g in range(number_of_groups):
        candidates = [(g + 1 + k) % number_of_groups for k in range(number_of_groups)]
        choice = next((q for q in candidates if q not in used and g not in qualification_groups[q]), None)
        if choice is None:
            choice = next(q for q in candidates if q not in used)
        used.add(choice)
        assignment.append(choice)
    return assignment


def generate_short_main_matches(tournament_id: str, number_of_groups: int, teams_per_group: int,
                                play_third_place: bool = True) -> List[Match]:
    """
    Build the short main round for ``number_of_groups`` groups of four.

    Raises:
        ConfigurationError: for any other group size or a group count outside 2-8.
    """
    if teams_per_group != REQUIRED_GROUP_SIZE:
        raise ConfigurationError(
            f"Short main round needs groups of {REQUIRED_GROUP_SIZE}, got {teams_per_group}"
        )
    if number_of_groups < 2 or number_of_groups > 8:
        raise ConfigurationError(
            f"Short main round requires between 2 and 8 groups, got {number_of_groups}"
        )

    builder = BracketBuilder(tournament_id)
    qualification_groups = []
    qualification_ids = []
    for g in range(number_of_groups):
        opponent = qualification_opponent(g, number_of_groups)
        qualification_groups.append((g, opponent))
        qualification_ids.append(builder.add(
            1, QUALIFICATION, group_source(g, 2), group_source(opponent, 3),
        ))

    # last places play their band alongside the qualification round
    build_full_placement_tree(
        builder,
        [group_source(g, 4) for g in range(number_of_groups)],
        band_start=3 * number_of_groups + 1,
        first_round=1,
        tag=f"placement-{3 * number_of_groups + 1}-{4 * number_of_groups}",
    )

    # standard bracket order pairs seed g+1 with seed 2G-g, so the qualifier a winner
    # should meet goes to the mirrored position
    assignment = _assign_qualifiers(qualification_groups, number_of_groups)
    qualifiers: List[Entrant] = [None] * number_of_groups
    for g, q in enumerate(assignment):
        qualifiers[number_of_groups - 1 - g] = winner_of(qualification_ids[q])
    top_entrants: List[Entrant] = [group_source(g, 1) for g in range(number_of_groups)] + qualifiers
    build_full_placement_tree(
        builder, top_entrants, band_start=1, first_round=2, tag='top',
        third_place=play_third_place,
    )

    build_full_placement_tree(
        builder,
        [loser_of(q_id) for q_id in qualification_ids],
        band_start=2 * number_of_groups + 1,
        first_round=2,
        tag=f"placement-{2 * number_of_groups + 1}-{3 * number_of_groups}",
    )
    logger.debug("Short main round for %d groups: %d matches", number_of_groups, len(builder.matches))
    return builder.matches
