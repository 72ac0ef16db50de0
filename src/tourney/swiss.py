"""
Swiss-system pairing.
"""
import logging
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from tourney.models import SCHEDULED, Match, StandingEntry, Team, make_match_id

logger = logging.getLogger(__name__)

MAX_PAIRING_STEPS = 20000


def played_pairs(matches: Sequence[Match]) -> Set[FrozenSet[str]]:
    """Unordered pairs of teams that have already been drawn against each other."""
    pairs = set()
    for match in matches:
        if match.team_a_id and match.team_b_id:
            pairs.add(frozenset((match.team_a_id, match.team_b_id)))
    return pairs


def sort_by_standing(teams: Sequence[Team], standings: Sequence[StandingEntry]) -> List[Team]:
    """Sort by points, set differential, point differential (all desc); stable."""
    by_team: Dict[str, StandingEntry] = {entry.team_id: entry for entry in standings}

    def key(team: Team):
        entry = by_team.get(team.id)
        if entry is None:
            return (0, 0, 0)
        return (-entry.points, -entry.set_diff, -entry.point_diff)

    return sorted(teams, key=key)


def _pick_sit_out(ranked: List[Team], previous_matches: Sequence[Match],
                  round_number: int) -> Optional[Team]:
    """Lowest ranked team among those that sat out least often so far."""
    if len(ranked) % 2 == 0:
        return None
    games: Dict[str, int] = {team.id: 0 for team in ranked}
    for match in previous_matches:
        for team_id in match.team_ids:
            if team_id in games:
                games[team_id] += 1
    sit_outs = {team_id: (round_number - 1) - count for team_id, count in games.items()}
    fewest = min(sit_outs.values())
    for team in reversed(ranked):
        if sit_outs[team.id] == fewest:
            return team
    return ranked[-1]


def _greedy_pairs(ranked_ids: List[str], played: Set[FrozenSet[str]]) -> List[Tuple[str, str]]:
    paired: Set[str] = set()
    pairs = []
    for i, team_id in enumerate(ranked_ids):
        if team_id in paired:
            continue
        for opponent_id in ranked_ids[i + 1:]:
            if opponent_id in paired:
                continue
            if frozenset((team_id, opponent_id)) in played:
                continue
            pairs.append((team_id, opponent_id))
            paired.update((team_id, opponent_id))
            break

    # everyone reachable already played: accept rematches in standings order
    leftovers = [team_id for team_id in ranked_ids if team_id not in paired]
    for i in range(0, len(leftovers) - 1, 2):
        pairs.append((leftovers[i], leftovers[i + 1]))
    return pairs


def _pair_without_rematch(ranked_ids: List[str], played: Set[FrozenSet[str]],
                          budget: int = MAX_PAIRING_STEPS) -> Optional[List[Tuple[str, str]]]:
    """
    Greedy pairing with backtracking: the top unpaired team takes the nearest unplayed
    opponent, and a later dead end revisits that choice. Returns None if no
    rematch-free pairing is found within the step budget.
    """
    steps = [0]

    def search(remaining: List[str]) -> Optional[List[Tuple[str, str]]]:
        if len(remaining) < 2:
            return []
        steps[0] += 1
        if steps[0] > budget:
            return None
        team_id = remaining[0]
        for j in range(1, len(remaining)):
            opponent_id = remaining[j]
            if frozenset((team_id, opponent_id)) in played:
                continue
            rest = search(remaining[1:j] + remaining[j + 1:])
            if rest is not None:
                return [(team_id, opponent_id)] + rest
            if steps[0] > budget:
                return None
        return None

    return search(list(ranked_ids))


def generate_swiss_round(tournament_id: str, teams: Sequence[Team],
                         standings: Sequence[StandingEntry], previous_matches: Sequence[Match],
                         round_number: int, number_of_courts: int) -> List[Match]:
    """
    Pair one Swiss round.

    Each unpaired team takes the nearest team below it in the standings that it has not
    played yet, backtracking out of dead ends. If no rematch-free pairing exists, teams
    left over after the greedy pass are paired in standings order, accepting a rematch.
    With an odd team count one team sits out; no bye match is emitted.

    Returns:
        The round's matches, or an empty list when every possible pairing would be a
        rematch (nothing left to play).
    """
    ranked = sort_by_standing(teams, standings)
    if len(ranked) < 2:
        return []
    sit_out = _pick_sit_out(ranked, previous_matches, round_number)
    if sit_out is not None:
        ranked = [team for team in ranked if team.id != sit_out.id]

    played = played_pairs(previous_matches)
    ranked_ids = [team.id for team in ranked]
    pairs = _pair_without_rematch(ranked_ids, played)
    if pairs is None:
        pairs = _greedy_pairs(ranked_ids, played)

    if all(frozenset(pair) in played for pair in pairs):
        logger.info("No unplayed pairing left for round %d of %s", round_number, tournament_id)
        return []

    start = len(previous_matches) + 1
    matches = []
    for index, (team_a, team_b) in enumerate(pairs):
        number = start + index
        matches.append(Match(
            id=make_match_id(tournament_id, number),
            round=round_number,
            match_number=number,
            team_a_id=team_a,
            team_b_id=team_b,
            court=index + 1 if index < number_of_courts else None,
            status=SCHEDULED,
        ))
    if sit_out is not None:
        logger.debug("Round %d: %s sits out", round_number, sit_out.id)
    return matches
