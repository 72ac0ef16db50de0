"""
Tournament state machine.

Every command is handled by a pure function ``(Snapshot, command) -> Snapshot``.
``apply_command`` looks the handler up by command class. Handlers never mutate their
input; a command that does not apply (unknown ids, a transition that already
happened) returns the snapshot unchanged.
"""
import logging
import random
import uuid
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from tourney.bracket import make_source_lookup, referenced_team_ids
from tourney.commands import (
    Command, CompleteMatch, CreateFinalsPhase, CreateTournament, DeleteTournament,
    GenerateNextSwissRound, RecordMatchScore, ResetTournament, SetCurrentTournament,
    StartTournament, UpdateGroupConfiguration, UpdatePhaseSettings, UpdateTeams,
)
from tourney.errors import ConfigurationError, ScoreError, StateError, TournamentError
from tourney.groups import (
    MAX_GROUPS, MIN_GROUPS, generate_group_phase_matches, generate_groups, validate_groups,
)
from tourney.knockout import generate_knockout_matches
from tourney.models import (
    CHILD_SYSTEMS, COMPLETED, CONFIGURATION, GROUP_BASED_SYSTEMS, IN_PROGRESS, KNOCKOUT,
    PLACEMENT_TREE, PLAYOFF, ROUND_ROBIN, SHORT_MAIN, SHORT_MAIN_KNOCKOUT, SWISS,
    GroupPhaseConfig, KnockoutSettings, Match, PhaseRef, Snapshot, Team, Tournament,
    TournamentContainer,
)
from tourney.placement_tree import generate_placement_tree, group_rank_entrants
from tourney.playoff import generate_playoff_matches, placeholder_entrants, ranked_team_ids
from tourney.referees import (
    assign_referees, build_opponent_history, is_round_complete, round_losers,
)
from tourney.resolver import is_bracket_complete, populate_sources, resolve_bracket, validate_bracket
from tourney.roundrobin import generate_round_robin_matches
from tourney.short_main import REQUIRED_GROUP_SIZE, generate_short_main_matches
from tourney.standings import (
    calculate_all_group_standings, calculate_standings, determine_winner,
)
from tourney.swiss import generate_swiss_round
from tourney.validation import validate_match_scores, validate_score_inputs

logger = logging.getLogger(__name__)

# Systems a tournament can be created with; the others only exist as later phases
ROOT_SYSTEMS = (ROUND_ROBIN, SWISS, PLACEMENT_TREE) + GROUP_BASED_SYSTEMS

PHASE_NAMES = {
    ROUND_ROBIN: 'Preliminary Round',
    SWISS: 'Swiss Rounds',
    PLACEMENT_TREE: 'Placement Tree',
    KNOCKOUT: 'Knockout Phase',
    SHORT_MAIN_KNOCKOUT: 'Main Round',
    PLAYOFF: 'Finals',
}

Handler = Callable[[Snapshot, Command], Snapshot]


def _bump(tournament: Tournament, **changes) -> Tournament:
    return replace(tournament, revision=tournament.revision + 1, **changes)


def _bump_container(container: TournamentContainer, **changes) -> TournamentContainer:
    return replace(container, revision=container.revision + 1, **changes)


def _phase_name(system: str) -> str:
    return PHASE_NAMES.get(system, 'Group Phase')


def _seed_groups(teams: Sequence[Team], config: GroupPhaseConfig,
                 random_seed: Optional[int] = None) -> GroupPhaseConfig:
    """Fill ``config.groups``: caller-supplied manual groups are validated, else seeded."""
    if config.seeding == 'manual' and config.groups:
        if not MIN_GROUPS <= len(config.groups) <= MAX_GROUPS:
            raise ConfigurationError(
                f"Between {MIN_GROUPS} and {MAX_GROUPS} groups are supported, got {len(config.groups)}"
            )
        validate_groups(config.groups, teams)
        groups = tuple(config.groups)
    else:
        groups = generate_groups(teams, config.teams_per_group, config.seeding,
                                 config.allow_short_groups, random.Random(random_seed))
    return replace(config, groups=groups, number_of_groups=len(groups))


def _check_group_system(system: str, config: GroupPhaseConfig) -> None:
    if system == SHORT_MAIN and config.teams_per_group != REQUIRED_GROUP_SIZE:
        raise ConfigurationError(
            f"The short main round needs groups of {REQUIRED_GROUP_SIZE}, "
            f"got {config.teams_per_group}"
        )


def _standings_fields(tournament: Tournament, matches: Sequence[Match]) -> Dict:
    """Recomputed standings for a match list, grouped or overall as the system needs."""
    if tournament.is_group_based:
        return {'group_standings': tuple(calculate_all_group_standings(
            tournament.groups, matches, tournament.sets_per_match, tournament.tiebreaker_order))}
    return {'standings': tuple(calculate_standings(
        tournament.present_teams, matches, tournament.sets_per_match,
        tournament.tiebreaker_order))}


def _phase_status(tournament: Tournament, matches: Sequence[Match]) -> str:
    if not is_bracket_complete(matches):
        return IN_PROGRESS
    if tournament.system == SWISS:
        limit = tournament.number_of_rounds
        if limit is None or tournament.current_round < limit:
            return IN_PROGRESS
    return COMPLETED


def _refresh_container(snapshot: Snapshot, container_id: Optional[str]) -> Snapshot:
    """Derive container status and current phase from its phases."""
    container = snapshot.get_container(container_id)
    if container is None:
        return snapshot
    phases = [snapshot.get_tournament(ref.tournament_id) for ref in container.phases]
    phases = [p for p in phases if p is not None]
    if not phases:
        return snapshot
    done = all(p.status == COMPLETED for p in phases)
    index = next((i for i, p in enumerate(phases) if p.status != COMPLETED), len(phases) - 1)
    status = COMPLETED if done else IN_PROGRESS
    if status == container.status and index == container.current_phase_index:
        return snapshot
    return snapshot.with_container(_bump_container(container, status=status,
                                                   current_phase_index=index))


def _add_phase(snapshot: Snapshot, container_id: Optional[str], child: Tournament) -> Snapshot:
    container = snapshot.get_container(container_id)
    if container is None:
        return snapshot
    ref = PhaseRef(tournament_id=child.id, order=child.phase_order, name=child.phase_name)
    return snapshot.with_container(_bump_container(container, phases=container.phases + (ref,)))


def _descendants(snapshot: Snapshot, tournament_id: str) -> List[str]:
    found = []
    stack = [tournament_id]
    while stack:
        for child in snapshot.children_of(stack.pop()):
            found.append(child.id)
            stack.append(child.id)
    return found


# --- phase children -------------------------------------------------------


def _child_tournament(parent: Tournament, system: str, matches: Sequence[Match],
                      settings: KnockoutSettings, teams: Tuple[Team, ...] = ()) -> Tournament:
    validate_bracket(matches)
    return Tournament(
        id=f"{parent.id}-phase{parent.phase_order + 1}",
        name=parent.name,
        system=system,
        number_of_courts=parent.number_of_courts,
        sets_per_match=settings.sets_per_match,
        points_per_set=settings.points_per_set,
        points_per_third_set=settings.points_per_third_set,
        tiebreaker_order=parent.tiebreaker_order,
        scheduling=parent.scheduling,
        teams=teams,
        matches=tuple(resolve_bracket(matches)),
        status=IN_PROGRESS,
        container_id=parent.container_id,
        phase_order=parent.phase_order + 1,
        phase_name=_phase_name(system),
        parent_phase_id=parent.id,
        knockout_settings=settings,
    )


def _group_child(parent: Tournament) -> Tournament:
    """Pending knockout-type phase fed by the groups of ``parent``."""
    settings = parent.knockout_settings or KnockoutSettings()
    system = CHILD_SYSTEMS[parent.system]
    child_id = f"{parent.id}-phase{parent.phase_order + 1}"
    groups_count = len(parent.groups)
    per_group = parent.group_phase_config.teams_per_group
    if system == KNOCKOUT:
        matches = generate_knockout_matches(child_id, groups_count, per_group,
                                            settings.play_third_place_match)
    elif system == PLACEMENT_TREE:
        matches = generate_placement_tree(child_id, group_rank_entrants(groups_count, per_group))
    else:
        matches = generate_short_main_matches(child_id, groups_count, per_group,
                                              settings.play_third_place_match)
    return _child_tournament(parent, system, matches, settings)


def _playoff_child(parent: Tournament, entrants: Sequence, settings: KnockoutSettings,
                   teams: Tuple[Team, ...] = ()) -> Tournament:
    child_id = f"{parent.id}-phase{parent.phase_order + 1}"
    matches = generate_playoff_matches(child_id, entrants, parent.number_of_courts)
    return _child_tournament(parent, PLAYOFF, matches, settings, teams)


def _referee_matches(matches: Sequence[Match], eliminated: Sequence[str],
                     history) -> List[Match]:
    """
    Referee the first round with eliminated teams and every later round, once the round
    before it is complete, with that round's losers (earlier losers as fallback).
    """
    matches = list(matches)
    rounds = sorted({m.round for m in matches})
    if not rounds:
        return matches
    matches = assign_referees(matches, rounds[0], eliminated, history)
    for position, (previous, current) in enumerate(zip(rounds, rounds[1:])):
        if not is_round_complete(matches, previous):
            break
        playing = {t for m in matches if m.round == current for t in m.team_ids}
        pool = list(round_losers(matches, previous))
        for earlier in reversed(rounds[:position]):
            pool.extend(round_losers(matches, earlier))
        pool.extend(eliminated)
        candidates = [c for c in dict.fromkeys(pool) if c not in playing]
        matches = assign_referees(matches, current, candidates, history)
    return matches


def _uses_referees(tournament: Tournament) -> bool:
    return (tournament.system == KNOCKOUT and tournament.knockout_settings is not None
            and tournament.knockout_settings.use_referees)


def _populate_child(snapshot: Snapshot, parent: Tournament) -> Snapshot:
    """Fill a pending child phase from its finished parent."""
    child = next((c for c in snapshot.children_of(parent.id) if not c.teams), None)
    if child is None:
        return snapshot
    if parent.is_group_based:
        lookup = make_source_lookup(parent.groups, parent.group_standings)
        ranked = [e.team_id for e in sorted(parent.group_standings,
                                            key=lambda e: (e.group_rank, e.group_id))]
    else:
        lookup = make_source_lookup((), (), parent.standings)
        ranked = ranked_team_ids(parent.standings)
    matches = populate_sources(child.matches, lookup)
    referenced = referenced_team_ids(matches)
    teams = tuple(t for t in parent.present_teams if t.id in referenced)
    eliminated = tuple(t for t in ranked if t not in referenced)
    if _uses_referees(child):
        history = build_opponent_history(parent.matches)
        matches = _referee_matches(matches, eliminated, history)
    child = replace(child, teams=teams, eliminated_team_ids=eliminated)
    child = _bump(child, matches=tuple(matches), status=_phase_status(child, matches),
                  **_standings_fields(child, matches))
    logger.info("Phase %s populated from %s: %d teams, %d eliminated",
                child.id, parent.id, len(teams), len(eliminated))
    return snapshot.with_tournament(child)


# --- command handlers -----------------------------------------------------


def handle_create_tournament(snapshot: Snapshot, command: CreateTournament) -> Snapshot:
    tournament_id = command.tournament_id or uuid.uuid4().hex[:12]
    if snapshot.get_tournament(tournament_id) is not None:
        logger.warning("Tournament %s already exists", tournament_id)
        return snapshot
    if command.system not in ROOT_SYSTEMS:
        raise ConfigurationError(f"Unknown tournament system '{command.system}'")
    names = [name.strip() for name in command.teams if name and name.strip()]
    if len(names) < 2:
        raise ConfigurationError("At least two teams are required")

    teams = tuple(
        Team(id=f"{tournament_id}-t{i}", name=name, seed_position=i)
        for i, name in enumerate(names, start=1)
    )
    group_config = None
    if command.system in GROUP_BASED_SYSTEMS:
        group_config = command.group_phase_config or GroupPhaseConfig(number_of_groups=0)
        _check_group_system(command.system, group_config)
        group_config = _seed_groups(teams, group_config, command.random_seed)

    container_id = f"{tournament_id}-container"
    tournament = Tournament(
        id=tournament_id,
        name=command.name,
        system=command.system,
        number_of_courts=max(1, command.number_of_courts),
        sets_per_match=command.sets_per_match,
        points_per_set=command.points_per_set,
        points_per_third_set=command.points_per_third_set,
        tiebreaker_order=command.tiebreaker_order,
        number_of_rounds=command.number_of_rounds,
        scheduling=command.scheduling,
        teams=teams,
        status=CONFIGURATION,
        container_id=container_id,
        phase_order=1,
        phase_name=_phase_name(command.system),
        group_phase_config=group_config,
        knockout_settings=command.knockout_settings,
        revision=1,
    )
    container = TournamentContainer(
        id=container_id,
        name=command.name,
        phases=(PhaseRef(tournament_id=tournament_id, order=1, name=tournament.phase_name),),
        status=IN_PROGRESS,
        revision=1,
    )
    logger.info("Created %s tournament %s with %d teams", command.system, tournament_id, len(teams))
    snapshot = snapshot.with_tournament(tournament).with_container(container)
    return replace(snapshot, current_tournament_id=tournament_id)


def handle_update_teams(snapshot: Snapshot, command: UpdateTeams) -> Snapshot:
    tournament = snapshot.get_tournament(command.tournament_id)
    if tournament is None:
        return snapshot
    if tournament.status != CONFIGURATION:
        raise ConfigurationError("Teams can only be changed before the tournament starts")
    taken = {t.id for t in tournament.teams}
    next_number = len(tournament.teams) + 1
    teams = []
    for position, entry in enumerate(command.teams, start=1):
        if isinstance(entry, str):
            while f"{tournament.id}-t{next_number}" in taken:
                next_number += 1
            entry = Team(id=f"{tournament.id}-t{next_number}", name=entry)
            taken.add(entry.id)
        teams.append(replace(entry, seed_position=position))
    if len(teams) < 2:
        raise ConfigurationError("At least two teams are required")

    tournament = replace(tournament, teams=tuple(teams))
    if tournament.is_group_based:
        config = tournament.group_phase_config
        if config.seeding == 'manual':
            config = replace(config, groups=())
        tournament = replace(tournament, group_phase_config=_seed_groups(tournament.teams, config))
    return snapshot.with_tournament(_bump(tournament))


def handle_start_tournament(snapshot: Snapshot, command: StartTournament) -> Snapshot:
    tournament = snapshot.get_tournament(command.tournament_id)
    if tournament is None:
        return snapshot
    if tournament.status != CONFIGURATION:
        logger.warning("Tournament %s already started", tournament.id)
        return snapshot
    present = tournament.present_teams
    if len(present) < 2:
        raise ConfigurationError("At least two present teams are required to start")
    team_ids = [t.id for t in sorted(present, key=lambda t: tournament.seed_order()[t.id])]

    child = None
    current_round = 0
    if tournament.system == ROUND_ROBIN:
        matches = generate_round_robin_matches(tournament.id, team_ids, tournament.number_of_courts)
        if tournament.knockout_settings is not None:
            child = _playoff_child(tournament, placeholder_entrants(len(team_ids)),
                                   tournament.knockout_settings)
    elif tournament.system == SWISS:
        matches = generate_swiss_round(tournament.id, present, (), (), 1, tournament.number_of_courts)
        current_round = 1
    elif tournament.system == PLACEMENT_TREE:
        matches = resolve_bracket(generate_placement_tree(tournament.id, team_ids))
    else:
        validate_groups(tournament.groups, tournament.teams)
        matches = generate_group_phase_matches(tournament.id, tournament.groups,
                                               tournament.number_of_courts)
        child = _group_child(tournament)

    started = _bump(tournament, matches=tuple(matches), current_round=current_round,
                    status=IN_PROGRESS, **_standings_fields(tournament, matches))
    logger.info("Started tournament %s: %d matches", tournament.id, len(matches))
    snapshot = snapshot.with_tournament(started)
    if child is not None:
        snapshot = _add_phase(snapshot.with_tournament(child), tournament.container_id, child)
    return snapshot


def _scored_match(tournament: Tournament, match_id: str) -> Optional[Match]:
    """The match a score applies to, or None when the command is a no-op."""
    match = tournament.get_match(match_id)
    if match is None:
        logger.warning("Match %s not found in %s", match_id, tournament.id)
        return None
    if match.is_completed:
        logger.warning("Match %s is already completed", match_id)
        return None
    if not match.has_both_teams:
        raise StateError(f"Match {match_id} is still waiting for its teams")
    return match


def handle_record_match_score(snapshot: Snapshot, command: RecordMatchScore) -> Snapshot:
    tournament = snapshot.get_tournament(command.tournament_id)
    if tournament is None:
        return snapshot
    match = _scored_match(tournament, command.match_id)
    if match is None:
        return snapshot
    scores = tuple(tuple(s) for s in command.scores)
    error = validate_score_inputs(scores)
    if error:
        raise ScoreError(error)
    updated = replace(match, scores=scores, status=IN_PROGRESS)
    matches = tuple(updated if m.id == match.id else m for m in tournament.matches)
    return snapshot.with_tournament(_bump(tournament, matches=matches))


def handle_complete_match(snapshot: Snapshot, command: CompleteMatch) -> Snapshot:
    tournament = snapshot.get_tournament(command.tournament_id)
    if tournament is None:
        return snapshot
    match = _scored_match(tournament, command.match_id)
    if match is None:
        return snapshot
    scores = tuple(tuple(s) for s in (command.scores if command.scores is not None else match.scores))
    error = validate_match_scores(scores, tournament.sets_per_match, tournament.points_per_set,
                                  tournament.points_per_third_set)
    if error:
        raise ScoreError(error)
    side = determine_winner(scores)
    if side is None:
        raise ScoreError(f"The scores do not decide match {match.id}")
    winner = match.team_a_id if side == 0 else match.team_b_id
    completed = replace(match, scores=scores, winner_id=winner, status=COMPLETED)

    # resolution reaches its fixed point before standings are recomputed
    matches = resolve_bracket([completed if m.id == match.id else m for m in tournament.matches])
    if _uses_referees(tournament):
        parent = snapshot.get_tournament(tournament.parent_phase_id)
        history = build_opponent_history(parent.matches if parent else ())
        matches = _referee_matches(matches, tournament.eliminated_team_ids, history)
    tournament = _bump(tournament, matches=tuple(matches),
                       status=_phase_status(tournament, matches),
                       **_standings_fields(tournament, matches))
    logger.info("Match %s completed, winner %s", match.id, winner)
    snapshot = snapshot.with_tournament(tournament)
    if tournament.status == COMPLETED:
        logger.info("Phase %s completed", tournament.id)
        snapshot = _populate_child(snapshot, tournament)
    return _refresh_container(snapshot, tournament.container_id)


def handle_generate_next_swiss_round(snapshot: Snapshot, command: GenerateNextSwissRound) -> Snapshot:
    tournament = snapshot.get_tournament(command.tournament_id)
    if tournament is None or tournament.system != SWISS or tournament.status == COMPLETED:
        return snapshot
    if tournament.status == CONFIGURATION:
        raise StateError("Start the tournament before generating rounds")
    current = [m for m in tournament.matches if m.round == tournament.current_round]
    if not all(m.is_completed for m in current):
        raise StateError(f"Round {tournament.current_round} is not complete yet")

    next_round = tournament.current_round + 1
    limit = tournament.number_of_rounds
    new_matches = []
    if limit is None or next_round <= limit:
        new_matches = generate_swiss_round(tournament.id, tournament.present_teams,
                                           tournament.standings, tournament.matches,
                                           next_round, tournament.number_of_courts)
    if not new_matches:
        logger.info("Swiss tournament %s finished after round %d", tournament.id,
                    tournament.current_round)
        snapshot = snapshot.with_tournament(_bump(tournament, status=COMPLETED))
        return _refresh_container(snapshot, tournament.container_id)
    tournament = _bump(tournament, matches=tournament.matches + tuple(new_matches),
                       current_round=next_round, status=IN_PROGRESS)
    logger.info("Swiss round %d generated for %s", next_round, tournament.id)
    return snapshot.with_tournament(tournament)


def handle_create_finals_phase(snapshot: Snapshot, command: CreateFinalsPhase) -> Snapshot:
    parent = snapshot.get_tournament(command.parent_tournament_id)
    if parent is None:
        return snapshot
    if any(c.system == PLAYOFF for c in snapshot.children_of(parent.id)):
        logger.warning("Tournament %s already has a finals phase", parent.id)
        return snapshot
    if parent.status == CONFIGURATION:
        raise StateError("A finals phase needs a started tournament")
    standings = calculate_standings(parent.present_teams, parent.matches,
                                    parent.sets_per_match, parent.tiebreaker_order)
    count = command.team_count or len(standings)
    if count < 2:
        raise ConfigurationError("A finals phase needs at least two teams")
    entrants = ranked_team_ids(standings)[:count]
    teams = tuple(parent.get_team(team_id) for team_id in entrants)
    child = _playoff_child(parent, entrants, command.settings, teams)
    child = replace(child, **_standings_fields(child, child.matches))

    snapshot = snapshot.with_tournament(_bump(parent, status=COMPLETED, standings=tuple(standings)))
    snapshot = _add_phase(snapshot.with_tournament(child), parent.container_id, child)
    snapshot = _refresh_container(snapshot, parent.container_id)
    logger.info("Finals phase %s created with %d teams", child.id, len(teams))
    return replace(snapshot, current_tournament_id=child.id)


def handle_reset_tournament(snapshot: Snapshot, command: ResetTournament) -> Snapshot:
    tournament = snapshot.get_tournament(command.tournament_id)
    if tournament is None:
        return snapshot
    while tournament.parent_phase_id and snapshot.get_tournament(tournament.parent_phase_id):
        tournament = snapshot.get_tournament(tournament.parent_phase_id)
    dropped = _descendants(snapshot, tournament.id)
    reset = _bump(tournament, matches=(), group_standings=(), current_round=0,
                  status=CONFIGURATION, eliminated_team_ids=(),
                  **_standings_fields(tournament, ()))
    snapshot = snapshot.without_tournaments(dropped).with_tournament(reset)
    container = snapshot.get_container(tournament.container_id)
    if container is not None:
        phases = tuple(p for p in container.phases if p.tournament_id not in dropped)
        snapshot = snapshot.with_container(_bump_container(
            container, phases=phases, current_phase_index=0, status=IN_PROGRESS))
    if snapshot.current_tournament_id is None or snapshot.current_tournament_id in dropped:
        snapshot = replace(snapshot, current_tournament_id=tournament.id)
    logger.info("Tournament %s reset, %d later phase(s) removed", tournament.id, len(dropped))
    return snapshot


def handle_update_group_configuration(snapshot: Snapshot, command: UpdateGroupConfiguration) -> Snapshot:
    tournament = snapshot.get_tournament(command.tournament_id)
    if tournament is None:
        return snapshot
    if not tournament.is_group_based:
        raise ConfigurationError(f"Tournament {tournament.id} has no group phase")
    if tournament.status != CONFIGURATION:
        raise ConfigurationError("Groups can only be changed before the tournament starts")
    config = tournament.group_phase_config or GroupPhaseConfig(number_of_groups=0)
    changes = {}
    if command.teams_per_group is not None:
        changes['teams_per_group'] = command.teams_per_group
    if command.seeding is not None:
        changes['seeding'] = command.seeding
    if command.allow_short_groups is not None:
        changes['allow_short_groups'] = command.allow_short_groups
    changes['groups'] = tuple(command.groups) if command.groups is not None else ()
    config = replace(config, **changes)
    _check_group_system(tournament.system, config)
    config = _seed_groups(tournament.teams, config, command.random_seed)
    return snapshot.with_tournament(_bump(tournament, group_phase_config=config))


_SETTING_FIELDS = (
    'name', 'number_of_courts', 'sets_per_match', 'points_per_set', 'points_per_third_set',
    'tiebreaker_order', 'number_of_rounds', 'scheduling', 'knockout_settings',
)


def handle_update_phase_settings(snapshot: Snapshot, command: UpdatePhaseSettings) -> Snapshot:
    tournament = snapshot.get_tournament(command.tournament_id)
    if tournament is None:
        return snapshot
    if tournament.status == COMPLETED:
        raise StateError(f"Tournament {tournament.id} is already completed")
    changes = {name: getattr(command, name) for name in _SETTING_FIELDS
               if getattr(command, name) is not None}
    if command.system is not None and command.system != tournament.system:
        if tournament.status != CONFIGURATION:
            raise ConfigurationError("The system can only be changed before the tournament starts")
        if command.system not in ROOT_SYSTEMS:
            raise ConfigurationError(f"Unknown tournament system '{command.system}'")
        changes['system'] = command.system
        changes['phase_name'] = _phase_name(command.system)
        if command.system in GROUP_BASED_SYSTEMS:
            config = tournament.group_phase_config or GroupPhaseConfig(number_of_groups=0)
            _check_group_system(command.system, config)
            changes['group_phase_config'] = _seed_groups(tournament.teams, config)
        else:
            changes['group_phase_config'] = None
    if 'number_of_courts' in changes:
        changes['number_of_courts'] = max(1, changes['number_of_courts'])
    if not changes:
        return snapshot
    return snapshot.with_tournament(_bump(tournament, **changes))


def handle_delete_tournament(snapshot: Snapshot, command: DeleteTournament) -> Snapshot:
    tournament = snapshot.get_tournament(command.tournament_id)
    if tournament is None:
        return snapshot
    container = snapshot.get_container(tournament.container_id)
    if container is None:
        dropped = [tournament.id] + _descendants(snapshot, tournament.id)
        return snapshot.without_tournaments(dropped)
    dropped = [t.id for t in snapshot.tournaments if t.container_id == container.id]
    snapshot = snapshot.without_tournaments(dropped)
    logger.info("Deleted container %s (%d phases)", container.id, len(dropped))
    return replace(snapshot, containers=tuple(c for c in snapshot.containers if c.id != container.id))


def handle_set_current_tournament(snapshot: Snapshot, command: SetCurrentTournament) -> Snapshot:
    if command.tournament_id is not None and snapshot.get_tournament(command.tournament_id) is None:
        return snapshot
    return replace(snapshot, current_tournament_id=command.tournament_id)


HANDLERS: Dict[type, Handler] = {
    CreateTournament: handle_create_tournament,
    UpdateTeams: handle_update_teams,
    StartTournament: handle_start_tournament,
    RecordMatchScore: handle_record_match_score,
    CompleteMatch: handle_complete_match,
    GenerateNextSwissRound: handle_generate_next_swiss_round,
    CreateFinalsPhase: handle_create_finals_phase,
    ResetTournament: handle_reset_tournament,
    UpdateGroupConfiguration: handle_update_group_configuration,
    UpdatePhaseSettings: handle_update_phase_settings,
    DeleteTournament: handle_delete_tournament,
    SetCurrentTournament: handle_set_current_tournament,
}


def apply_command(snapshot: Snapshot, command: Command) -> Snapshot:
    """Apply one command and return the new snapshot."""
    handler = HANDLERS.get(type(command))
    if handler is None:
        raise TournamentError(f"Unsupported command {type(command).__name__}")
    logger.debug("Applying %s", type(command).__name__)
    return handler(snapshot, command)


def apply_commands(snapshot: Snapshot, commands: Sequence[Command]) -> Snapshot:
    for command in commands:
        snapshot = apply_command(snapshot, command)
    return snapshot


# --- host synchronisation -------------------------------------------------


def _merge_by_id(local: Sequence, incoming: Sequence) -> Tuple:
    merged = {item.id: item for item in local}
    order = [item.id for item in local]
    for item in incoming:
        existing = merged.get(item.id)
        if existing is None:
            order.append(item.id)
            merged[item.id] = item
        elif item.revision >= existing.revision:
            merged[item.id] = item
    return tuple(merged[item_id] for item_id in order)


def merge_snapshots(local: Snapshot, incoming: Snapshot) -> Snapshot:
    """Union of two snapshots by id; the higher revision wins, ties keep the incoming copy."""
    tournaments = _merge_by_id(local.tournaments, incoming.tournaments)
    containers = _merge_by_id(local.containers, incoming.containers)
    ids = {t.id for t in tournaments}
    current = local.current_tournament_id if local.current_tournament_id in ids else None
    if current is None and incoming.current_tournament_id in ids:
        current = incoming.current_tournament_id
    return Snapshot(tournaments=tournaments, containers=containers, current_tournament_id=current)


def replace_snapshot(local: Snapshot, incoming: Snapshot) -> Snapshot:
    return incoming
