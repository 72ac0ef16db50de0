"""
Shared pytest fixtures for tournament engine tests.
"""
import pytest
import sys
import os
from dataclasses import replace

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tourney.commands import CompleteMatch, CreateTournament, StartTournament
from tourney.engine import apply_command
from tourney.models import COMPLETED, GroupPhaseConfig, KnockoutSettings, Snapshot, Team
from tourney.resolver import resolve_bracket


def make_team_names(count):
    return [f"Team {i}" for i in range(1, count + 1)]


def winning_scores(sets_per_match, side_a_wins):
    """A decided result for the configured format, from team A's point of view."""
    score = (21, 15) if side_a_wins else (15, 21)
    return (score,) if sets_per_match == 1 else (score, score)


def play_out(snapshot, tournament_id, favour_seed=True, max_steps=500):
    """Complete every playable match, the better seed winning (or losing), until none is left."""
    for _ in range(max_steps):
        tournament = snapshot.get_tournament(tournament_id)
        ready = [m for m in tournament.matches if not m.is_completed and m.has_both_teams]
        if not ready:
            return snapshot
        match = ready[0]
        seeds = tournament.seed_order()
        a_better = seeds.get(match.team_a_id, 0) < seeds.get(match.team_b_id, 0)
        scores = winning_scores(tournament.sets_per_match, a_better == favour_seed)
        snapshot = apply_command(snapshot, CompleteMatch(tournament_id, match.id, scores))
    raise AssertionError("matches kept becoming playable")


def play_bracket(matches, pick_winner, max_steps=500):
    """Resolve and complete a bare match list; pick_winner(team_a, team_b) returns the winner."""
    matches = resolve_bracket(matches)
    for _ in range(max_steps):
        ready = [m for m in matches if not m.is_completed and m.has_both_teams]
        if not ready:
            return matches
        match = ready[0]
        winner = pick_winner(match.team_a_id, match.team_b_id)
        scores = ((21, 15),) if winner == match.team_a_id else ((15, 21),)
        done = replace(match, winner_id=winner, status=COMPLETED, scores=scores)
        matches = resolve_bracket([done if m.id == match.id else m for m in matches])
    raise AssertionError("bracket did not finish")


@pytest.fixture
def team_names():
    """Factory for rosters of generic team names."""
    return make_team_names


@pytest.fixture
def teams():
    """Eight present teams in seed order."""
    return [Team(id=f"t{i}", name=f"Team {i}", seed_position=i) for i in range(1, 9)]


@pytest.fixture
def round_robin_snapshot():
    """Started four-team round-robin on two courts."""
    snapshot = apply_command(Snapshot(), CreateTournament(
        name='League', system='round-robin', teams=tuple(make_team_names(4)),
        number_of_courts=2, tournament_id='rr',
    ))
    return apply_command(snapshot, StartTournament('rr'))


@pytest.fixture
def group_phase_snapshot():
    """Started group phase: eight teams in two snake-seeded groups of four."""
    snapshot = apply_command(Snapshot(), CreateTournament(
        name='Beach Cup', system='group-phase', teams=tuple(make_team_names(8)),
        number_of_courts=2, tournament_id='cup',
        group_phase_config=GroupPhaseConfig(number_of_groups=2, teams_per_group=4),
        knockout_settings=KnockoutSettings(),
    ))
    return apply_command(snapshot, StartTournament('cup'))


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point the Flask host at a temporary data directory."""
    import app as app_module
    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    return str(tmp_path)


@pytest.fixture
def client(data_dir):
    """Flask test client over an empty data directory."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
