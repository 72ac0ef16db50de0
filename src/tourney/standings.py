"""
Standings calculation for whole tournaments and for groups.

Ranking: points -> tiebreaker pair (head-to-head and point differential, in the
configured order) -> set differential -> seed order.
"""
from functools import cmp_to_key
from typing import Dict, List, Optional, Sequence, Tuple

from tourney.models import (
    BYE, HEAD_TO_HEAD_FIRST, POINT_DIFF_FIRST,
    Group, GroupStandingEntry, Match, SetScore, StandingEntry, Team,
)


def count_sets(scores: Sequence[SetScore]) -> Tuple[int, int]:
    """Count sets won by each side, ignoring drawn or unplayed (0:0) sets."""
    sets_a = 0
    sets_b = 0
    for score_a, score_b in scores:
        if score_a > score_b:
            sets_a += 1
        elif score_b > score_a:
            sets_b += 1
    return sets_a, sets_b


def determine_winner(scores: Sequence[SetScore]) -> Optional[int]:
    """Determine the winning side from set scores.

    Returns 0 for team A, 1 for team B, None if the sets are level.
    """
    if not scores:
        return None
    sets_a, sets_b = count_sets(scores)
    if sets_a > sets_b:
        return 0
    if sets_b > sets_a:
        return 1
    return None


def counts_for_standings(match: Match) -> bool:
    return (match.is_completed and not match.is_bye and match.has_both_teams
            and BYE not in (match.team_a_id, match.team_b_id))


def _accumulate(team_ids: Sequence[str], matches: Sequence[Match],
                sets_per_match: int) -> Dict[str, Dict[str, int]]:
    stats = {team_id: dict(played=0, won=0, lost=0, sets_won=0, sets_lost=0,
                           points_won=0, points_lost=0)
             for team_id in team_ids}
    for match in matches:
        if not counts_for_standings(match):
            continue
        team_a, team_b = match.team_a_id, match.team_b_id
        if team_a not in stats or team_b not in stats:
            continue
        sets_a, sets_b = count_sets(match.scores)
        points_a = sum(s[0] for s in match.scores)
        points_b = sum(s[1] for s in match.scores)
        for team, own_sets, other_sets, own_points, other_points in (
                (team_a, sets_a, sets_b, points_a, points_b),
                (team_b, sets_b, sets_a, points_b, points_a)):
            record = stats[team]
            record['played'] += 1
            record['sets_won'] += own_sets
            record['sets_lost'] += other_sets
            record['points_won'] += own_points
            record['points_lost'] += other_points
            if match.winner_id == team:
                record['won'] += 1
            else:
                record['lost'] += 1
    for record in stats.values():
        # wins decide single-set formats, sets decide multi-set formats
        record['points'] = record['won'] if sets_per_match == 1 else record['sets_won']
    return stats


def head_to_head(team_x: str, team_y: str, matches: Sequence[Match]) -> int:
    """Return -1 if team_x won their direct meeting(s), 1 if team_y did, else 0."""
    balance = 0
    for match in matches:
        if not counts_for_standings(match):
            continue
        if {match.team_a_id, match.team_b_id} != {team_x, team_y}:
            continue
        if match.winner_id == team_x:
            balance -= 1
        elif match.winner_id == team_y:
            balance += 1
    return (balance > 0) - (balance < 0)


def rank_entries(entries: List[StandingEntry], matches: Sequence[Match],
                 tiebreaker_order: str, seed_order: Dict[str, int]) -> List[StandingEntry]:
    """
    Sort standing entries into their final order.

    Head-to-head only separates a tie between exactly two teams level on points;
    larger ties fall through to point and set differential.
    """
    level_counts: Dict[int, int] = {}
    for entry in entries:
        level_counts[entry.points] = level_counts.get(entry.points, 0) + 1

    def compare(x: StandingEntry, y: StandingEntry) -> int:
        if x.points != y.points:
            return y.points - x.points
        two_way_tie = level_counts[x.points] == 2
        if tiebreaker_order == POINT_DIFF_FIRST:
            criteria = ('point_diff', 'head_to_head')
        else:
            criteria = ('head_to_head', 'point_diff')
        for criterion in criteria:
            if criterion == 'point_diff':
                if x.point_diff != y.point_diff:
                    return y.point_diff - x.point_diff
            elif two_way_tie:
                result = head_to_head(x.team_id, y.team_id, matches)
                if result:
                    return result
        if x.set_diff != y.set_diff:
            return y.set_diff - x.set_diff
        return seed_order.get(x.team_id, 0) - seed_order.get(y.team_id, 0)

    return sorted(entries, key=cmp_to_key(compare))


def calculate_standings(teams: Sequence[Team], matches: Sequence[Match],
                        sets_per_match: int = 1,
                        tiebreaker_order: str = HEAD_TO_HEAD_FIRST) -> List[StandingEntry]:
    """
    Calculate overall standings for a roster.

    Args:
        teams: Teams to rank, in seed order (the final fallback tiebreaker).
        matches: Any matches; only completed, non-bye matches between listed teams count.
        sets_per_match: 1 ranks by wins, anything else ranks by sets won.
        tiebreaker_order: 'head-to-head-first' or 'point-diff-first'.

    Returns:
        StandingEntry list, best first.
    """
    team_ids = [team.id for team in teams]
    stats = _accumulate(team_ids, matches, sets_per_match)
    entries = [StandingEntry(team_id=team_id, **stats[team_id]) for team_id in team_ids]
    seed_order = {team_id: i for i, team_id in enumerate(team_ids)}
    return rank_entries(entries, matches, tiebreaker_order, seed_order)


def calculate_group_standings(group: Group, matches: Sequence[Match],
                              sets_per_match: int = 1,
                              tiebreaker_order: str = HEAD_TO_HEAD_FIRST) -> List[GroupStandingEntry]:
    """Standings for one group, using only that group's matches, with a dense group rank."""
    group_matches = [m for m in matches if m.group_id == group.id]
    stats = _accumulate(group.team_ids, group_matches, sets_per_match)
    entries = [StandingEntry(team_id=team_id, **stats[team_id]) for team_id in group.team_ids]
    seed_order = {team_id: i for i, team_id in enumerate(group.team_ids)}
    ranked = rank_entries(entries, group_matches, tiebreaker_order, seed_order)
    return [
        GroupStandingEntry(group_id=group.id, group_rank=rank, **_entry_fields(entry))
        for rank, entry in enumerate(ranked, start=1)
    ]


def calculate_all_group_standings(groups: Sequence[Group], matches: Sequence[Match],
                                  sets_per_match: int = 1,
                                  tiebreaker_order: str = HEAD_TO_HEAD_FIRST) -> List[GroupStandingEntry]:
    standings = []
    for group in groups:
        standings.extend(calculate_group_standings(group, matches, sets_per_match, tiebreaker_order))
    return standings


def _entry_fields(entry: StandingEntry) -> Dict[str, int]:
    return dict(
        team_id=entry.team_id, played=entry.played, won=entry.won, lost=entry.lost,
        sets_won=entry.sets_won, sets_lost=entry.sets_lost,
        points_won=entry.points_won, points_lost=entry.points_lost, points=entry.points,
    )
