"""
Bracket dependency resolver.

Matches are held in an arena keyed by id. Two indexes point from a finished match to
the slots its result fills:

- explicit edges: a slot's ``depends_on`` names the match whose winner or loser it takes
- interval slots: in placement trees the next match is the one whose
  ``placement_interval`` equals this match's winner (or loser) interval at bracket
  position ``bracket_position // 2``

Resolution runs to a fixed point, auto-completing matches against a bye on the way,
and is idempotent: resolving an already resolved match list changes nothing.
"""
import logging
from collections import deque
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from tourney.errors import ResolutionError
from tourney.models import (
    BYE, COMPLETED, LOSER, PENDING, SCHEDULED, WINNER,
    Interval, Match, SlotSource,
)

logger = logging.getLogger(__name__)

SIDES = ('a', 'b')

# (target match id, side, 'winner' | 'loser')
Edge = Tuple[str, str, str]


def refresh_status(match: Match) -> Match:
    """Flip between pending and scheduled according to slot occupancy."""
    if match.is_completed:
        return match
    if match.has_both_teams:
        if match.status == PENDING:
            return replace(match, status=SCHEDULED)
        return match
    if match.status != PENDING:
        return replace(match, status=PENDING)
    return match


def complete_bye(match: Match) -> Optional[Match]:
    """Auto-complete a match that has a bye in one or both slots.

    Returns None if the match is not a bye match or is not ready yet.
    """
    if match.is_completed or not match.has_both_teams:
        return None
    if BYE not in (match.team_a_id, match.team_b_id):
        return None
    winner = match.team_b_id if match.team_a_id == BYE else match.team_a_id
    return replace(match, winner_id=winner, status=COMPLETED, scores=(), is_bye=True)


class BracketIndex:
    """Arena of matches plus the reverse indexes used for propagation."""

    def __init__(self, matches: Iterable[Match]):
        self.order: List[str] = []
        self.matches: Dict[str, Match] = {}
        for match in matches:
            self.order.append(match.id)
            self.matches[match.id] = match

        self.dependents: Dict[str, List[Edge]] = {}
        self.interval_slots: Dict[Tuple[Interval, int], str] = {}
        for match in self.matches.values():
            for side in SIDES:
                dependency = match.depends_on(side)
                if dependency is None:
                    continue
                if dependency.match_id not in self.matches:
                    raise ResolutionError(
                        f"Match {match.id} depends on unknown match {dependency.match_id}"
                    )
                self.dependents.setdefault(dependency.match_id, []).append(
                    (match.id, side, dependency.result)
                )
            if match.placement_interval is not None and match.bracket_position is not None:
                self.interval_slots[(match.placement_interval, match.bracket_position)] = match.id

    def targets(self, match: Match) -> List[Edge]:
        """Every slot filled by this match's winner or loser."""
        edges = list(self.dependents.get(match.id, ()))
        if match.bracket_position is None:
            return edges
        side = 'a' if match.bracket_position % 2 == 0 else 'b'
        for interval, result in ((match.winner_interval, WINNER), (match.loser_interval, LOSER)):
            if interval is None:
                continue
            target = self.interval_slots.get((interval, match.bracket_position // 2))
            if target is not None and target != match.id:
                edges.append((target, side, result))
        return edges

    def fill(self, target_id: str, side: str, team_id: str) -> bool:
        """Put a team into an empty slot; occupied slots are left alone."""
        match = self.matches[target_id]
        if match.team(side) is not None:
            return False
        self.matches[target_id] = refresh_status(match.with_team(side, team_id))
        return True

    def resolve(self, start_ids: Optional[Iterable[str]] = None) -> None:
        """Propagate results and auto-complete byes until nothing changes."""
        queue = deque(self.order if start_ids is None else start_ids)
        while queue:
            match = self.matches[queue.popleft()]
            if not match.is_completed:
                completed = complete_bye(match)
                if completed is None:
                    continue
                self.matches[match.id] = match = completed
                logger.debug("Auto-completed bye match %s, winner %s", match.id, match.winner_id)
            for target_id, side, result in self.targets(match):
                team_id = match.winner_id if result == WINNER else match.loser_id
                if team_id is None:
                    continue
                if self.fill(target_id, side, team_id):
                    queue.append(target_id)

    def to_list(self) -> List[Match]:
        return [self.matches[match_id] for match_id in self.order]


def resolve_bracket(matches: Sequence[Match]) -> List[Match]:
    """Run dependency resolution over a match list to a fixed point."""
    index = BracketIndex(matches)
    index.resolve()
    return index.to_list()


def populate_sources(matches: Sequence[Match],
                     lookup: Callable[[SlotSource], Optional[str]]) -> List[Match]:
    """Fill every slot that carries a SlotSource, then resolve.

    ``lookup`` maps a source to a team id, or None when the source names a rank that
    does not exist (a group short a team); such slots become byes.
    """
    populated = []
    for match in matches:
        for side in SIDES:
            source = match.source(side)
            if source is not None and match.team(side) is None:
                team_id = lookup(source)
                match = match.with_team(side, team_id if team_id is not None else BYE)
        populated.append(refresh_status(match))
    return resolve_bracket(populated)


def validate_bracket(matches: Sequence[Match]) -> None:
    """Raise ResolutionError on dangling dependencies or dependency cycles."""
    index = BracketIndex(matches)
    graph = {match_id: [t for t, _, _ in index.targets(match)]
             for match_id, match in index.matches.items()}

    # iterative three-colour DFS
    state = dict.fromkeys(graph, 0)
    for root in index.order:
        if state[root]:
            continue
        stack = [(root, iter(graph[root]))]
        state[root] = 1
        while stack:
            node, children = stack[-1]
            for child in children:
                if state[child] == 1:
                    raise ResolutionError(f"Dependency cycle through match {child}")
                if state[child] == 0:
                    state[child] = 1
                    stack.append((child, iter(graph[child])))
                    break
            else:
                state[node] = 2
                stack.pop()


def is_bracket_complete(matches: Sequence[Match]) -> bool:
    return bool(matches) and all(m.is_completed for m in matches)
