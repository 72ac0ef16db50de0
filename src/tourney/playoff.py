"""
Playoff (finals) phase: neighbours in the standings play each other for places.
"""
from typing import Dict, List, Sequence

from tourney.bracket import BracketBuilder, Entrant, standing_source
from tourney.models import BYE, Match, StandingEntry


def generate_playoff_matches(tournament_id: str, entrants: Sequence[Entrant],
                             number_of_courts: int) -> List[Match]:
    """
    Pair 1st v 2nd, 3rd v 4th, ... for places.

    Args:
        tournament_id: Id of the playoff phase.
        entrants: Team ids in standings order, or SlotSources when the parent phase is
            still running.
        number_of_courts: Courts cycle in match order.

    Returns:
        One round of matches; an odd last entrant gets no match.
    """
    builder = BracketBuilder(tournament_id)
    courts = max(1, number_of_courts)
    for i in range(0, len(entrants) - 1, 2):
        number = builder.next_number
        builder.add(
            1, 'playoff', entrants[i], entrants[i + 1],
            playoff_for_place=i + 1,
            court=(number - 1) % courts + 1,
        )
    return builder.matches


def placeholder_entrants(team_count: int) -> List[Entrant]:
    return [standing_source(rank) for rank in range(1, team_count + 1)]


def ranked_team_ids(standings: Sequence[StandingEntry]) -> List[str]:
    return [entry.team_id for entry in standings]


def compute_playoff_placements(matches: Sequence[Match],
                               standings: Sequence[StandingEntry]) -> Dict[str, int]:
    """Winner of the match for place p takes p, the loser p+1; an unpaired last team keeps its rank."""
    placements = {}
    for match in matches:
        if not match.is_completed or match.playoff_for_place is None:
            continue
        if match.winner_id and match.winner_id != BYE:
            placements[match.winner_id] = match.playoff_for_place
        if match.loser_id and match.loser_id != BYE:
            placements[match.loser_id] = match.playoff_for_place + 1
    if len(standings) % 2 == 1:
        last = standings[-1].team_id
        placements.setdefault(last, len(standings))
    return placements
