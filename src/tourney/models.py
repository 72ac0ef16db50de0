"""
Entity model for tournaments: teams, matches, groups, standings, phases.

Every entity is a frozen dataclass and every collection on an entity is a tuple, so
a snapshot handed to the engine is never mutated. Transitions build new objects with
``dataclasses.replace``.
"""
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Optional, Tuple


# Competition systems
ROUND_ROBIN = 'round-robin'
SWISS = 'swiss'
GROUP_PHASE = 'group-phase'
ALL_PLACEMENTS = 'beachl-all-placements'
SHORT_MAIN = 'beachl-short-main'
PLACEMENT_TREE = 'placement-tree'
KNOCKOUT = 'knockout'
SHORT_MAIN_KNOCKOUT = 'short-main-knockout'
PLAYOFF = 'playoff'

SYSTEMS = (
    ROUND_ROBIN, SWISS, GROUP_PHASE, ALL_PLACEMENTS, SHORT_MAIN,
    PLACEMENT_TREE, KNOCKOUT, SHORT_MAIN_KNOCKOUT, PLAYOFF,
)
GROUP_BASED_SYSTEMS = (GROUP_PHASE, ALL_PLACEMENTS, SHORT_MAIN)
BRACKET_SYSTEMS = (KNOCKOUT, PLACEMENT_TREE, SHORT_MAIN_KNOCKOUT, PLAYOFF)

# Knockout-type phase created when a group-based tournament starts
CHILD_SYSTEMS = {
    GROUP_PHASE: KNOCKOUT,
    ALL_PLACEMENTS: PLACEMENT_TREE,
    SHORT_MAIN: SHORT_MAIN_KNOCKOUT,
}

# Match status
SCHEDULED = 'scheduled'
PENDING = 'pending'
IN_PROGRESS = 'in-progress'
COMPLETED = 'completed'

# Tournament / container status
CONFIGURATION = 'configuration'

HEAD_TO_HEAD_FIRST = 'head-to-head-first'
POINT_DIFF_FIRST = 'point-diff-first'

WINNER = 'winner'
LOSER = 'loser'

# Reserved team id for a slot that can never hold a real team
BYE = 'bye'

SetScore = Tuple[int, int]
Interval = Tuple[int, int]


def make_match_id(tournament_id: str, match_number: int) -> str:
    """Build the stable id of the n-th match generated for a tournament."""
    return f"{tournament_id}-m{match_number}"


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    seed_position: int = 0
    present: bool = True


@dataclass(frozen=True)
class Dependency:
    """A slot filled by the winner or loser of another match."""

    match_id: str
    result: str = WINNER


@dataclass(frozen=True)
class SlotSource:
    """A slot filled from a previous phase's final ranking.

    kind is one of:
      - 'group': rank ``rank`` of group ``group_index``
      - 'best-of-rank': the ``order``-th best team among every group's rank ``rank``
      - 'standing': rank ``rank`` of the parent phase's overall standings
    """

    kind: str
    rank: int
    group_index: Optional[int] = None
    order: int = 1


@dataclass(frozen=True)
class Match:
    id: str
    round: int
    match_number: int
    team_a_id: Optional[str] = None
    team_b_id: Optional[str] = None
    court: Optional[int] = None
    scores: Tuple[SetScore, ...] = ()
    winner_id: Optional[str] = None
    status: str = SCHEDULED
    knockout_round: Optional[str] = None
    depends_on_a: Optional[Dependency] = None
    depends_on_b: Optional[Dependency] = None
    source_a: Optional[SlotSource] = None
    source_b: Optional[SlotSource] = None
    placeholder_a: Optional[str] = None
    placeholder_b: Optional[str] = None
    group_id: Optional[str] = None
    placement_interval: Optional[Interval] = None
    winner_interval: Optional[Interval] = None
    loser_interval: Optional[Interval] = None
    bracket_position: Optional[int] = None
    playoff_for_place: Optional[int] = None
    referee_team_id: Optional[str] = None
    is_bye: bool = False

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED

    @property
    def has_both_teams(self) -> bool:
        return self.team_a_id is not None and self.team_b_id is not None

    @property
    def loser_id(self) -> Optional[str]:
        if self.winner_id is None:
            return None
        if self.winner_id == BYE:
            return BYE
        if self.winner_id == self.team_a_id:
            return self.team_b_id
        return self.team_a_id

    @property
    def team_ids(self) -> Tuple[str, ...]:
        """Real teams currently in the match."""
        return tuple(t for t in (self.team_a_id, self.team_b_id) if t is not None and t != BYE)

    def team(self, side: str) -> Optional[str]:
        return self.team_a_id if side == 'a' else self.team_b_id

    def depends_on(self, side: str) -> Optional[Dependency]:
        return self.depends_on_a if side == 'a' else self.depends_on_b

    def source(self, side: str) -> Optional[SlotSource]:
        return self.source_a if side == 'a' else self.source_b

    def with_team(self, side: str, team_id: Optional[str]) -> 'Match':
        if side == 'a':
            return replace(self, team_a_id=team_id)
        return replace(self, team_b_id=team_id)


@dataclass(frozen=True)
class Group:
    id: str
    name: str
    team_ids: Tuple[str, ...] = ()
    bye_count: int = 0


@dataclass(frozen=True)
class StandingEntry:
    team_id: str
    played: int = 0
    won: int = 0
    lost: int = 0
    sets_won: int = 0
    sets_lost: int = 0
    points_won: int = 0
    points_lost: int = 0
    points: int = 0

    @property
    def set_diff(self) -> int:
        return self.sets_won - self.sets_lost

    @property
    def point_diff(self) -> int:
        return self.points_won - self.points_lost


@dataclass(frozen=True)
class GroupStandingEntry(StandingEntry):
    group_id: str = ''
    group_rank: int = 0


@dataclass(frozen=True)
class GroupPhaseConfig:
    number_of_groups: int
    teams_per_group: int = 4
    seeding: str = 'snake'
    groups: Tuple[Group, ...] = ()
    allow_short_groups: bool = True


@dataclass(frozen=True)
class KnockoutSettings:
    sets_per_match: int = 1
    points_per_set: int = 21
    points_per_third_set: int = 15
    play_third_place_match: bool = True
    use_referees: bool = False


@dataclass(frozen=True)
class SchedulingSettings:
    start_time: str = '09:00'
    end_time: str = '17:00'
    minutes_per_21_point_set: int = 20
    minutes_per_15_point_set: int = 12
    minutes_between_matches: int = 5
    minutes_between_phases: int = 0


@dataclass(frozen=True)
class Tournament:
    id: str
    name: str
    system: str
    number_of_courts: int = 1
    sets_per_match: int = 1
    points_per_set: int = 21
    points_per_third_set: int = 15
    tiebreaker_order: str = HEAD_TO_HEAD_FIRST
    number_of_rounds: Optional[int] = None
    scheduling: SchedulingSettings = field(default_factory=SchedulingSettings)
    teams: Tuple[Team, ...] = ()
    matches: Tuple[Match, ...] = ()
    standings: Tuple[StandingEntry, ...] = ()
    group_standings: Tuple[GroupStandingEntry, ...] = ()
    current_round: int = 0
    status: str = CONFIGURATION
    container_id: Optional[str] = None
    phase_order: int = 1
    phase_name: Optional[str] = None
    parent_phase_id: Optional[str] = None
    group_phase_config: Optional[GroupPhaseConfig] = None
    knockout_settings: Optional[KnockoutSettings] = None
    eliminated_team_ids: Tuple[str, ...] = ()
    revision: int = 0

    @property
    def is_group_based(self) -> bool:
        return self.system in GROUP_BASED_SYSTEMS

    @property
    def present_teams(self) -> Tuple[Team, ...]:
        return tuple(t for t in self.teams if t.present)

    @property
    def groups(self) -> Tuple[Group, ...]:
        if self.group_phase_config is None:
            return ()
        return self.group_phase_config.groups

    def get_match(self, match_id: str) -> Optional[Match]:
        for match in self.matches:
            if match.id == match_id:
                return match
        return None

    def get_team(self, team_id: str) -> Optional[Team]:
        for team in self.teams:
            if team.id == team_id:
                return team
        return None

    def team_name(self, team_id: Optional[str]) -> str:
        if team_id is None:
            return 'TBD'
        if team_id == BYE:
            return 'BYE'
        team = self.get_team(team_id)
        return team.name if team else team_id

    def seed_order(self) -> Dict[str, int]:
        """Map team id to its 0-based seed rank (seed position, then roster order)."""
        ordered = sorted(enumerate(self.teams), key=lambda it: (it[1].seed_position or it[0] + 1, it[0]))
        return {team.id: rank for rank, (_, team) in enumerate(ordered)}


@dataclass(frozen=True)
class PhaseRef:
    tournament_id: str
    order: int
    name: str


@dataclass(frozen=True)
class TournamentContainer:
    """Ordered sequence of phases that together form one competition."""

    id: str
    name: str
    phases: Tuple[PhaseRef, ...] = ()
    current_phase_index: int = 0
    status: str = IN_PROGRESS
    revision: int = 0


@dataclass(frozen=True)
class Snapshot:
    """Complete engine state handed to and returned from every command."""

    tournaments: Tuple[Tournament, ...] = ()
    containers: Tuple[TournamentContainer, ...] = ()
    current_tournament_id: Optional[str] = None

    def get_tournament(self, tournament_id: Optional[str]) -> Optional[Tournament]:
        for tournament in self.tournaments:
            if tournament.id == tournament_id:
                return tournament
        return None

    def get_container(self, container_id: Optional[str]) -> Optional[TournamentContainer]:
        for container in self.containers:
            if container.id == container_id:
                return container
        return None

    def children_of(self, tournament_id: str) -> Tuple[Tournament, ...]:
        return tuple(t for t in self.tournaments if t.parent_phase_id == tournament_id)

    def with_tournament(self, tournament: Tournament) -> 'Snapshot':
        """Replace the tournament with the same id, or append it."""
        tournaments = list(self.tournaments)
        for i, existing in enumerate(tournaments):
            if existing.id == tournament.id:
                tournaments[i] = tournament
                break
        else:
            tournaments.append(tournament)
        return replace(self, tournaments=tuple(tournaments))

    def with_container(self, container: TournamentContainer) -> 'Snapshot':
        containers = list(self.containers)
        for i, existing in enumerate(containers):
            if existing.id == container.id:
                containers[i] = container
                break
        else:
            containers.append(container)
        return replace(self, containers=tuple(containers))

    def without_tournaments(self, tournament_ids: Iterable[str]) -> 'Snapshot':
        drop = set(tournament_ids)
        current = self.current_tournament_id
        remaining = tuple(t for t in self.tournaments if t.id not in drop)
        if current in drop:
            current = remaining[0].id if remaining else None
        return replace(self, tournaments=remaining, current_tournament_id=current)
