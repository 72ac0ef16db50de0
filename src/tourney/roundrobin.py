"""
Round-robin match generation using the circle method.
"""
import logging
from typing import List, Optional, Sequence, Tuple

from tourney.models import BYE, SCHEDULED, Match, make_match_id

logger = logging.getLogger(__name__)


def round_robin_pairings(team_ids: Sequence[str]) -> List[List[Tuple[str, str]]]:
    """
    Pair every team with every other team once, round by round.

    The first team stays fixed while the others rotate one position clockwise each
    round. An odd roster is padded with a synthetic bye team whose pairings are
    dropped, so that team sits out instead.

    Returns:
        One list of (team_a, team_b) pairs per round; N-1 rounds for N (padded) teams.
    """
    teams = list(team_ids)
    if len(teams) < 2:
        return []
    if len(teams) % 2 == 1:
        teams.append(BYE)

    num_teams = len(teams)
    fixed = teams[0]
    rotating = teams[1:]
    rounds = []
    for _ in range(num_teams - 1):
        current = [fixed] + rotating
        pairs = []
        for i in range(num_teams // 2):
            team_a = current[i]
            team_b = current[num_teams - 1 - i]
            if team_a == BYE or team_b == BYE:
                continue
            pairs.append((team_a, team_b))
        rounds.append(pairs)
        rotating = [rotating[-1]] + rotating[:-1]
    return rounds


def generate_round_robin_matches(tournament_id: str, team_ids: Sequence[str],
                                 number_of_courts: int, start_number: int = 1,
                                 group_id: Optional[str] = None) -> List[Match]:
    """
    Generate every match of a single round-robin.

    Args:
        tournament_id: Used to derive stable match ids.
        team_ids: Teams in seed order.
        number_of_courts: Courts available; within a round the court counter restarts
            at 1 and matches beyond the court count get no court.
        start_number: Number of the first generated match.
        group_id: Stamped onto each match when generating for a group.

    Returns:
        n*(n-1)/2 matches, numbered consecutively across rounds.
    """
    matches = []
    number = start_number
    for round_index, pairs in enumerate(round_robin_pairings(team_ids)):
        court = 1
        for team_a, team_b in pairs:
            matches.append(Match(
                id=make_match_id(tournament_id, number),
                round=round_index + 1,
                match_number=number,
                team_a_id=team_a,
                team_b_id=team_b,
                court=court if court <= number_of_courts else None,
                status=SCHEDULED,
                group_id=group_id,
            ))
            number += 1
            court += 1
    logger.debug("Generated %d round-robin matches for %d teams", len(matches), len(team_ids))
    return matches
