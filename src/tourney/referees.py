"""
Referee assignment for knockout phases.

The first knockout round is refereed by the teams eliminated after the group phase;
every later round by the losers of the round before. A referee should not have met
either team in the group phase when that can be avoided.
"""
import logging
from dataclasses import replace
from typing import Dict, List, Sequence, Set

from tourney.models import BYE, Match

logger = logging.getLogger(__name__)


def build_opponent_history(matches: Sequence[Match]) -> Dict[str, Set[str]]:
    history: Dict[str, Set[str]] = {}
    for match in matches:
        if not match.team_a_id or not match.team_b_id:
            continue
        history.setdefault(match.team_a_id, set()).add(match.team_b_id)
        history.setdefault(match.team_b_id, set()).add(match.team_a_id)
    return history


def has_played_against(referee_id: str, match: Match, history: Dict[str, Set[str]]) -> bool:
    opponents = history.get(referee_id, set())
    return any(team_id in opponents for team_id in match.team_ids)


def assign_referees(matches: Sequence[Match], round_number: int, candidates: Sequence[str],
                    history: Dict[str, Set[str]]) -> List[Match]:
    """
    Give each unrefereed, non-bye match of ``round_number`` one referee.

    Candidates are used at most once, in order; one that met neither team is preferred.
    """
    available = [c for c in candidates if c and c != BYE]
    result = []
    for match in matches:
        if (match.round != round_number or match.referee_team_id or match.is_bye
                or match.is_completed or not available):
            result.append(match)
            continue
        busy = set(match.team_ids)
        eligible = [c for c in available if c not in busy]
        if not eligible:
            result.append(match)
            continue
        choice = next((c for c in eligible if not has_played_against(c, match, history)), eligible[0])
        available.remove(choice)
        result.append(replace(match, referee_team_id=choice))
        logger.debug("Referee %s assigned to %s", choice, match.id)
    return result


def round_losers(matches: Sequence[Match], round_number: int) -> List[str]:
    return [m.loser_id for m in matches
            if m.round == round_number and m.is_completed and m.loser_id and m.loser_id != BYE]


def is_round_complete(matches: Sequence[Match], round_number: int) -> bool:
    in_round = [m for m in matches if m.round == round_number]
    return bool(in_round) and all(m.is_completed for m in in_round)
