"""
Placement tree: a balanced elimination tree whose matches carry placement intervals.

Every match covers a contiguous range of final places. The winner moves on to the
lower half of that range and the loser keeps the upper half. N entrants are seeded
into a bracket of the next power of two; seeds beyond N are structural byes, so only
N-1 matches are generated. Once the tree is complete each team holds an interval, and
teams that share one are ordered by seed, which makes the final placement a bijection
onto the band.
"""
import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

from tourney.bracket import (
    BracketBuilder, Entrant, calculate_bracket_size, generate_bracket_order, group_source,
    loser_of,
)
from tourney.models import BYE, Interval, Match

logger = logging.getLogger(__name__)

# Marks a slot that a previous match fills through its winner interval
_FED = object()


def round_tag(tag: str, rounds_left: int, round_number: int) -> str:
    if rounds_left == 0:
        return f"{tag}-final"
    if rounds_left == 1:
        return f"{tag}-semifinal"
    if rounds_left == 2:
        return f"{tag}-quarterfinal"
    return f"{tag}-round-{round_number}"


def build_placement_tree(builder: BracketBuilder, entrants: Sequence[Entrant],
                         band_start: int = 1, first_round: int = 1,
                         tag: str = 'placement', third_place: bool = False) -> List[str]:
    """
    Append a placement tree for ``entrants`` (best seed first) to ``builder``.

    Args:
        builder: Receives the matches.
        entrants: Team ids, slot sources or dependencies, in seed order.
        band_start: Best place the tree awards.
        first_round: Round number of the tree's first round.
        tag: Prefix for the matches' knockout round tags.
        third_place: Add a match between the semifinal losers.

    Returns:
        Ids of the generated matches.
    """
    num_entrants = len(entrants)
    if num_entrants < 2:
        return []
    bracket_size = calculate_bracket_size(num_entrants)
    rounds = int(math.log2(bracket_size))
    order = generate_bracket_order(bracket_size)

    feeds: List[object] = [entrants[seed - 1] if seed <= num_entrants else None for seed in order]
    match_ids = []
    semifinals: Dict[int, str] = {}
    for r in range(1, rounds + 1):
        width = bracket_size // 2 ** (r - 1)
        interval = (band_start, band_start + width - 1)
        mid = band_start + width // 2 - 1
        winner_interval = (band_start, mid)
        loser_interval = (mid + 1, interval[1])
        rounds_left = rounds - r
        next_feeds: List[object] = []
        for position in range(len(feeds) // 2):
            slot_a, slot_b = feeds[2 * position], feeds[2 * position + 1]
            if slot_a is None or slot_b is None:
                # structural bye: the present entrant skips this round
                next_feeds.append(slot_a if slot_b is None else slot_b)
                continue
            match_id = builder.add(
                first_round + r - 1,
                round_tag(tag, rounds_left, r),
                None if slot_a is _FED else slot_a,
                None if slot_b is _FED else slot_b,
                placement_interval=interval,
                winner_interval=winner_interval,
                loser_interval=loser_interval,
                bracket_position=position,
                playoff_for_place=band_start if rounds_left == 0 else None,
            )
            match_ids.append(match_id)
            if rounds_left == 1:
                semifinals[position] = match_id
            next_feeds.append(_FED)
        feeds = next_feeds

    if third_place and len(semifinals) == 2:
        match_ids.append(builder.add(
            first_round + rounds - 1,
            f"{tag}-third-place",
            None, None,
            placement_interval=(band_start + 2, band_start + 3),
            winner_interval=(band_start + 2, band_start + 2),
            loser_interval=(band_start + 3, band_start + 3),
            bracket_position=0,
            playoff_for_place=band_start + 2,
            placeholder_a=builder.label(loser_of(semifinals[0])),
            placeholder_b=builder.label(loser_of(semifinals[1])),
        ))
    logger.debug("Placement tree %s: %d entrants, %d matches, band from %d",
                 tag, num_entrants, len(match_ids), band_start)
    return match_ids


def _interval_tag(tag: str, interval: Interval, band_start: int, rounds_left: int,
                  round_number: int) -> str:
    if interval[0] == band_start:
        return round_tag(tag, rounds_left, round_number)
    if rounds_left == 0 and interval[0] == band_start + 2:
        return f"{tag}-third-place"
    return f"placement-{interval[0]}-{interval[1]}"


def build_full_placement_tree(builder: BracketBuilder, entrants: Sequence[Entrant],
                              band_start: int = 1, first_round: int = 1,
                              tag: str = 'placement', third_place: bool = True) -> List[str]:
    """
    Append a placement bracket in which every place is played for.

    Unlike :func:`build_placement_tree` the losers of each round play on: every
    interval of every round gets its own matches, so a band of P = 2^k entrants takes
    P/2 * k matches. Seeds beyond the entrant count are byes, auto-completed by the
    resolver. Without ``third_place`` the semifinal losers share the interval below
    the final.

    Returns:
        Ids of the generated matches.
    """
    num_entrants = len(entrants)
    if num_entrants < 2:
        return []
    bracket_size = calculate_bracket_size(num_entrants)
    rounds = int(math.log2(bracket_size))
    order = generate_bracket_order(bracket_size)
    seeded = [entrants[seed - 1] if seed <= num_entrants else BYE for seed in order]

    match_ids = []
    for r in range(1, rounds + 1):
        width = bracket_size // 2 ** (r - 1)
        rounds_left = rounds - r
        for lo in range(band_start, band_start + bracket_size, width):
            interval = (lo, lo + width - 1)
            if not third_place and rounds_left == 0 and lo == band_start + 2:
                continue
            mid = lo + width // 2 - 1
            for position in range(width // 2):
                slot_a = seeded[2 * position] if r == 1 else None
                slot_b = seeded[2 * position + 1] if r == 1 else None
                match_ids.append(builder.add(
                    first_round + r - 1,
                    _interval_tag(tag, interval, band_start, rounds_left, r),
                    slot_a, slot_b,
                    placement_interval=interval,
                    winner_interval=(lo, mid),
                    loser_interval=(mid + 1, interval[1]),
                    bracket_position=position,
                    playoff_for_place=lo if rounds_left == 0 else None,
                ))
    logger.debug("Full placement tree %s: %d entrants, %d matches, band from %d",
                 tag, num_entrants, len(match_ids), band_start)
    return match_ids


def generate_placement_tree(tournament_id: str, entrants: Sequence[Entrant],
                            band_start: int = 1) -> List[Match]:
    """Generate a standalone placement tree covering places band_start..band_start+N-1."""
    builder = BracketBuilder(tournament_id)
    build_placement_tree(builder, entrants, band_start=band_start)
    return builder.matches


def group_rank_entrants(number_of_groups: int, teams_per_group: int) -> List[Entrant]:
    """Seed order for a group-fed tree: every group winner, then every runner-up, ..."""
    return [
        group_source(g, rank)
        for rank in range(1, teams_per_group + 1)
        for g in range(number_of_groups)
    ]


def placement_intervals(matches: Sequence[Match]) -> Dict[str, Interval]:
    """Narrowest placement interval each team has earned so far."""
    result: Dict[str, Interval] = {}
    for match in sorted(matches, key=lambda m: (m.round, m.match_number)):
        if not match.is_completed or match.winner_interval is None:
            continue
        for team_id, interval in ((match.winner_id, match.winner_interval),
                                  (match.loser_id, match.loser_interval)):
            if team_id is None or team_id == BYE or interval is None:
                continue
            current = result.get(team_id)
            if current is None or interval[1] - interval[0] <= current[1] - current[0]:
                result[team_id] = interval
    return result


def compute_placements(matches: Sequence[Match],
                       seed_order: Optional[Dict[str, int]] = None) -> Dict[str, int]:
    """
    Final place per team: intervals in order, seed order within a shared interval,
    numbered densely from the best interval's start.
    """
    seed_order = seed_order or {}
    intervals = placement_intervals(matches)
    if not intervals:
        return {}
    ordered: List[Tuple[Interval, int, str]] = sorted(
        (interval, seed_order.get(team_id, len(seed_order)), team_id)
        for team_id, interval in intervals.items()
    )
    start = ordered[0][0][0]
    return {team_id: start + i for i, (_, _, team_id) in enumerate(ordered)}
