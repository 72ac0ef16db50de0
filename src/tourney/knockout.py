"""
Knockout bracket templates driven by the number of groups feeding them.

Group winners advance furthest, middle ranks meet across groups in an intermediate
round, and the bottom rank is eliminated. Every slot is a SlotSource (a group rank)
or a Dependency on an earlier knockout match; the resolver fills them in once the
group phase is over.
"""
import logging
from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple

from tourney.bracket import (
    BracketBuilder, best_of_rank, group_source, loser_of, winner_of,
)
from tourney.errors import GenerationError
from tourney.models import BYE, Match

logger = logging.getLogger(__name__)

MIN_GROUPS = 2
MAX_GROUPS = 8

INTERMEDIATE = 'intermediate'
PRE_QUARTERFINAL = 'pre-quarterfinal'
QUARTERFINAL = 'quarterfinal'
SEMIFINAL = 'semifinal'
THIRD_PLACE = 'third-place'
FINAL = 'final'

# Tiers from the deepest to the earliest, used for placements
TIER_ORDER = (FINAL, THIRD_PLACE, SEMIFINAL, QUARTERFINAL, PRE_QUARTERFINAL, INTERMEDIATE)

# Quarterfinal seed pairings, upper half then lower half
QUARTERFINAL_SEEDS = ((1, 8), (4, 5), (2, 7), (3, 6))


def _finals(builder: BracketBuilder, round_number: int, semifinal_ids: Sequence[str],
            play_third_place: bool) -> None:
    if play_third_place:
        builder.add(round_number, THIRD_PLACE, loser_of(semifinal_ids[0]), loser_of(semifinal_ids[1]),
                    playoff_for_place=3)
    builder.add(round_number, FINAL, winner_of(semifinal_ids[0]), winner_of(semifinal_ids[1]),
                playoff_for_place=1)


def _semifinals_from(builder: BracketBuilder, round_number: int,
                     quarterfinal_ids: Sequence[str]) -> List[str]:
    return [
        builder.add(round_number, SEMIFINAL, winner_of(quarterfinal_ids[0]), winner_of(quarterfinal_ids[1])),
        builder.add(round_number, SEMIFINAL, winner_of(quarterfinal_ids[2]), winner_of(quarterfinal_ids[3])),
    ]


def _two_groups(builder: BracketBuilder, play_third_place: bool) -> None:
    semifinals = [
        builder.add(1, SEMIFINAL, group_source(0, 1), group_source(1, 2)),
        builder.add(1, SEMIFINAL, group_source(1, 1), group_source(0, 2)),
    ]
    _finals(builder, 2, semifinals, play_third_place)


def _three_groups(builder: BracketBuilder, play_third_place: bool) -> None:
    semifinals = [
        builder.add(1, SEMIFINAL, group_source(0, 1), best_of_rank(2, 1)),
        builder.add(1, SEMIFINAL, group_source(1, 1), group_source(2, 1)),
    ]
    _finals(builder, 2, semifinals, play_third_place)


def _four_groups(builder: BracketBuilder, teams_per_group: int, play_third_place: bool) -> None:
    # cross-group intermediate round: A-D, B-C, C-B, D-A
    middle = (3, 4) if teams_per_group == 5 else (2, 3)
    intermediate = [
        builder.add(1, INTERMEDIATE, group_source(g, middle[0]), group_source(3 - g, middle[1]))
        for g in range(4)
    ]
    # each group winner avoids the intermediate match holding its own middle rank
    feeder = (1, 0, 3, 2)
    round_number = 2
    if teams_per_group == 5:
        intermediate = [
            builder.add(2, PRE_QUARTERFINAL, group_source(g, 2), winner_of(intermediate[feeder[g]]))
            for g in range(4)
        ]
        round_number = 3
    quarterfinals = [
        builder.add(round_number, QUARTERFINAL, group_source(g, 1), winner_of(intermediate[feeder[g]]))
        for g in range(4)
    ]
    semifinals = _semifinals_from(builder, round_number + 1, quarterfinals)
    _finals(builder, round_number + 2, semifinals, play_third_place)


def _many_groups(builder: BracketBuilder, number_of_groups: int, play_third_place: bool) -> None:
    seeds = [group_source(g, 1) for g in range(number_of_groups)]
    seeds += [best_of_rank(2, k) for k in range(1, 8 - number_of_groups + 1)]
    quarterfinals = [
        builder.add(1, QUARTERFINAL, seeds[high - 1], seeds[low - 1])
        for high, low in QUARTERFINAL_SEEDS
    ]
    semifinals = _semifinals_from(builder, 2, quarterfinals)
    _finals(builder, 3, semifinals, play_third_place)


def generate_knockout_matches(tournament_id: str, number_of_groups: int, teams_per_group: int,
                              play_third_place: bool = True) -> List[Match]:
    """
    Build the knockout bracket for a group phase.

    Args:
        tournament_id: Id of the knockout phase, used for match ids.
        number_of_groups: Groups feeding the bracket (2-8).
        teams_per_group: Configured group size (3, 4 or 5).
        play_third_place: Add a match between the semifinal losers.

    Returns:
        Pending matches whose slots are group-rank sources or dependencies.

    Raises:
        GenerationError: for an unsupported group count or group size.
    """
    if number_of_groups < MIN_GROUPS or number_of_groups > MAX_GROUPS:
        raise GenerationError(
            f"Knockout bracket requires between {MIN_GROUPS} and {MAX_GROUPS} groups, "
            f"got {number_of_groups}"
        )
    if teams_per_group not in (3, 4, 5):
        raise GenerationError(f"Knockout bracket does not support groups of {teams_per_group}")

    builder = BracketBuilder(tournament_id)
    if number_of_groups == 2:
        _two_groups(builder, play_third_place)
    elif number_of_groups == 3:
        _three_groups(builder, play_third_place)
    elif number_of_groups == 4:
        _four_groups(builder, teams_per_group, play_third_place)
    else:
        _many_groups(builder, number_of_groups, play_third_place)
    logger.debug("Knockout template for %d groups of %d: %d matches",
                 number_of_groups, teams_per_group, len(builder.matches))
    return builder.matches


def tier_bands(matches: Sequence[Match]) -> Dict[Optional[str], Tuple[int, int]]:
    """
    Places at stake per tier, worked out from the bracket template alone.

    The final and third-place bands hold the places of both teams; every other band
    holds the places of that tier's losers. The band after the last one starts the
    places of teams eliminated in the group phase (key ``None``).
    """
    counts = Counter(m.knockout_round for m in matches)
    bands: Dict[Optional[str], Tuple[int, int]] = {FINAL: (1, 2)}
    if counts[THIRD_PLACE]:
        bands[THIRD_PLACE] = (3, 4)
    place = 3
    for tier in TIER_ORDER[2:]:
        if not counts[tier]:
            continue
        bands[tier] = (place, place + counts[tier] - 1)
        place += counts[tier]
    bands[None] = (place, place)
    return bands


def compute_knockout_placements(matches: Sequence[Match],
                                eliminated_team_ids: Sequence[str] = ()) -> Dict[str, Tuple[int, int]]:
    """
    Place range per team from completed knockout matches.

    The final decides 1 and 2 and the third-place match 3 and 4 (without it the
    semifinal losers share 3-4). Losers of each earlier tier take that tier's band, and
    teams eliminated after the group phase take the last band. Bands never depend on
    which matches are already done, so provisional places are stable.
    """
    bands = tier_bands(matches)
    placements: Dict[str, Tuple[int, int]] = {}
    for tier in (FINAL, THIRD_PLACE):
        for match in matches:
            if match.knockout_round != tier or not match.is_completed:
                continue
            start = bands[tier][0]
            for offset, team_id in enumerate((match.winner_id, match.loser_id)):
                if team_id and team_id != BYE:
                    placements[team_id] = (start + offset, start + offset)
    for tier in TIER_ORDER[2:]:
        for match in matches:
            if match.knockout_round != tier or not match.is_completed:
                continue
            if match.loser_id and match.loser_id != BYE and match.loser_id not in placements:
                placements[match.loser_id] = bands[tier]

    eliminated = [t for t in eliminated_team_ids if t not in placements]
    if eliminated:
        start = bands[None][0]
        band = (start, start + len(eliminated) - 1)
        for team_id in eliminated:
            placements[team_id] = band
    return placements


def format_place(band: Tuple[int, int]) -> str:
    start, end = band
    return f"{start}." if start == end else f"{start}.-{end}."
