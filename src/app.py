"""
Flask JSON host for the tournament engine.

The engine itself is pure; this module owns the persisted snapshot, applies commands
to it one at a time under a file lock, and serves derived views (standings, placements,
schedules).
"""
import os
import logging

from flask import Flask, jsonify, request

from tourney.commands import command_from_dict, command_type_of
from tourney.engine import apply_command, merge_snapshots, replace_snapshot
from tourney.errors import TournamentError
from tourney.knockout import compute_knockout_placements, format_place
from tourney.models import KNOCKOUT, PLACEMENT_TREE, PLAYOFF, SHORT_MAIN_KNOCKOUT, Snapshot, Tournament
from tourney.placement_tree import compute_placements
from tourney.playoff import compute_playoff_placements
from tourney.scheduling import (
    check_time_overrun, estimate_phase_offsets, estimate_tournament_duration, schedule_tournament,
)
from tourney.serialization import snapshot_from_dict, to_dict
from tourney.storage import YamlSnapshotStore

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))
STATE_FILENAME = 'tournaments.yaml'


def _state_file() -> str:
    """Return full path to the persisted snapshot."""
    return os.path.join(DATA_DIR, STATE_FILENAME)


def _get_store() -> YamlSnapshotStore:
    return YamlSnapshotStore(_state_file())


def load_snapshot() -> Snapshot:
    return _get_store().load()


@app.errorhandler(TournamentError)
def handle_tournament_error(error):
    app.logger.warning(f'Command rejected: {error}')
    return jsonify({'success': False, 'error': str(error)}), 400


def _placements(snapshot: Snapshot, tournament: Tournament) -> dict:
    """Final or provisional places per team id, as display strings."""
    if tournament.system == KNOCKOUT:
        bands = compute_knockout_placements(tournament.matches, tournament.eliminated_team_ids)
        return {team_id: format_place(band) for team_id, band in bands.items()}
    if tournament.system in (PLACEMENT_TREE, SHORT_MAIN_KNOCKOUT):
        places = compute_placements(tournament.matches, tournament.seed_order())
        return {team_id: f'{place}.' for team_id, place in places.items()}
    if tournament.system == PLAYOFF:
        parent = snapshot.get_tournament(tournament.parent_phase_id)
        standings = parent.standings if parent else tournament.standings
        entrants = {t.id for t in tournament.teams}
        standings = [e for e in standings if e.team_id in entrants]
        places = compute_playoff_placements(tournament.matches, standings)
        return {team_id: f'{place}.' for team_id, place in places.items()}
    return {}


def _container_phases(snapshot: Snapshot, tournament: Tournament) -> list:
    container = snapshot.get_container(tournament.container_id)
    if container is None:
        return [tournament]
    phases = [snapshot.get_tournament(ref.tournament_id) for ref in container.phases]
    return [p for p in phases if p is not None]


@app.route('/api/state', methods=['GET'])
def api_state():
    """Return the whole persisted snapshot."""
    return jsonify(to_dict(load_snapshot()))


@app.route('/api/commands', methods=['POST'])
def api_apply_command():
    """Apply one command (JSON body with a 'type') and persist the result."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Expected a JSON object.'}), 400
    command = command_from_dict(data)
    snapshot = _get_store().update(lambda current: apply_command(current, command))
    app.logger.info(f'Applied {command_type_of(command)}')
    return jsonify({
        'success': True,
        'current_tournament_id': snapshot.current_tournament_id,
        'state': to_dict(snapshot),
    })


@app.route('/api/tournaments/<tournament_id>', methods=['GET'])
def api_tournament(tournament_id):
    """Return one tournament with team names and placements."""
    snapshot = load_snapshot()
    tournament = snapshot.get_tournament(tournament_id)
    if tournament is None:
        return jsonify({'success': False, 'error': 'Tournament not found.'}), 404
    return jsonify({
        'success': True,
        'tournament': to_dict(tournament),
        'team_names': {team.id: team.name for team in tournament.teams},
        'placements': _placements(snapshot, tournament),
    })


@app.route('/api/tournaments/<tournament_id>/schedule', methods=['GET'])
def api_schedule(tournament_id):
    """Return match start times and the duration estimate for a tournament."""
    snapshot = load_snapshot()
    tournament = snapshot.get_tournament(tournament_id)
    if tournament is None:
        return jsonify({'success': False, 'error': 'Tournament not found.'}), 404
    estimate = estimate_tournament_duration(tournament)
    return jsonify({
        'success': True,
        'matches': schedule_tournament(tournament),
        'estimate': estimate,
        'overrun': check_time_overrun(estimate['end_time'], tournament.scheduling.end_time),
        'phases': estimate_phase_offsets(_container_phases(snapshot, tournament)),
    })


@app.route('/api/state/merge', methods=['POST'])
def api_merge_state():
    """Merge an incoming snapshot into the persisted one ('?mode=replace' overwrites it)."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Expected a JSON object.'}), 400
    incoming = snapshot_from_dict(data)
    combine = replace_snapshot if request.args.get('mode') == 'replace' else merge_snapshots
    snapshot = _get_store().update(lambda current: combine(current, incoming))
    app.logger.info(f'Merged snapshot with {len(incoming.tournaments)} tournament(s)')
    return jsonify({'success': True, 'state': to_dict(snapshot)})


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    app.run(debug=True, port=5000)
