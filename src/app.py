"""
Flask JSON API wiring the bracket engine to YAML storage.
"""
import os
import random
import yaml
from datetime import datetime
from filelock import FileLock
from flask import Flask, jsonify, request
from competition.errors import (
    AlreadyDecidedError,
    MatchNotFoundError,
    SlotConflictError,
    TournamentError,
)
from competition.models import ELIMINATION, GROUP_ROUND, GROUP_STAGE, Match, Team, Tournament
from competition.groups import ensure_all_assigned, generate_groups, generate_group_stage_matches, group_matches_by_matchday, matches_for_matchday
from competition.standings import calculate_all_standings, select_advancing_teams
from competition.elimination import generate_elimination_bracket, generate_playoff_bracket, get_bracket_display
from competition.series import add_series_game_result, update_match_details, update_match_score
from competition.status import calculate_tournament_status, ensure_format

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))
TOURNAMENTS_DIR = os.path.join(DATA_DIR, 'tournaments')
LOCK_TIMEOUT_SECONDS = 10


def get_default_tournament_settings():
    """Return default tournament settings."""
    return {
        'format': GROUP_STAGE,
        'groups_stage_settings': {
            'teams_per_group': 4,
            'teams_advancing_per_group': 2,
            'matches_per_team_in_group': 1,
        },
        'best_of_matches': 1,
        'custom_rules': {
            'points': {'win': 3, 'draw': 1, 'loss': 0}
        },
    }


def _tournament_dir(tournament_id: str) -> str:
    return os.path.join(TOURNAMENTS_DIR, tournament_id)


def _file_path(tournament_id: str, filename: str) -> str:
    return os.path.join(_tournament_dir(tournament_id), filename)


def _tournament_lock(tournament_id: str) -> FileLock:
    """One writer per tournament for every read-modify-write of its matches."""
    os.makedirs(_tournament_dir(tournament_id), exist_ok=True)
    return FileLock(_file_path(tournament_id, '.lock'), timeout=LOCK_TIMEOUT_SECONDS)


def load_tournament(tournament_id: str):
    """Load tournament settings from YAML, merging with defaults. None if missing."""
    path = _file_path(tournament_id, 'tournament.yaml')
    if not os.path.exists(path):
        return None
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    defaults = get_default_tournament_settings()
    for key, value in defaults.items():
        if key not in data:
            data[key] = value
    data['id'] = tournament_id
    return Tournament.from_dict(data)


def save_tournament(tournament: Tournament):
    os.makedirs(_tournament_dir(tournament.id), exist_ok=True)
    with open(_file_path(tournament.id, 'tournament.yaml'), 'w', encoding='utf-8') as f:
        yaml.dump(tournament.to_dict(), f, default_flow_style=False)


def load_teams(tournament_id: str) -> list:
    """Load the tournament roster. Plain names are accepted as team ids."""
    path = _file_path(tournament_id, 'teams.yaml')
    if not os.path.exists(path):
        return []
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or []
    if isinstance(data, dict):
        data = data.get('teams', [])
    teams = []
    for entry in data:
        if isinstance(entry, dict):
            entry.setdefault('tournament', tournament_id)
            teams.append(Team.from_dict(entry))
        else:
            teams.append(Team(id=str(entry), tournament=tournament_id))
    return teams


def save_teams(tournament_id: str, teams: list):
    os.makedirs(_tournament_dir(tournament_id), exist_ok=True)
    with open(_file_path(tournament_id, 'teams.yaml'), 'w', encoding='utf-8') as f:
        yaml.dump({'teams': [t.to_dict() for t in teams]}, f, default_flow_style=False)


def load_matches(tournament_id: str) -> list:
    """Load every match of the tournament from YAML."""
    path = _file_path(tournament_id, 'matches.yaml')
    if not os.path.exists(path):
        return []
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    if not data:
        return []
    return [Match.from_dict(m) for m in data.get('matches', [])]


def save_matches(tournament_id: str, matches: list):
    """Save every match of the tournament to YAML."""
    os.makedirs(_tournament_dir(tournament_id), exist_ok=True)
    with open(_file_path(tournament_id, 'matches.yaml'), 'w', encoding='utf-8') as f:
        yaml.dump({'matches': [m.to_dict() for m in matches]}, f, default_flow_style=False)


def _request_options():
    data = request.get_json(silent=True) or {}
    seed = data.get('seed')
    rng = random.Random(seed) if seed is not None else None
    return data, rng


def _not_found(what: str):
    return jsonify({'error': f'{what} not found'}), 404


@app.errorhandler(TournamentError)
def handle_tournament_error(error):
    """Map engine errors to JSON responses."""
    if isinstance(error, MatchNotFoundError):
        status = 404
    elif isinstance(error, (AlreadyDecidedError, SlotConflictError)):
        status = 409
    else:
        status = 400
    app.logger.warning(f'{type(error).__name__}: {error}')
    return jsonify({'error': str(error), 'type': type(error).__name__}), status


@app.route('/api/tournaments/<tournament_id>/group-stage', methods=['POST'])
def create_group_stage(tournament_id):
    """Generate groups and round-robin fixtures for a group-stage tournament."""
    data, rng = _request_options()
    tournament = load_tournament(tournament_id)
    if tournament is None:
        return _not_found('Tournament')
    ensure_format(tournament, GROUP_STAGE)

    now = datetime.now()
    if tournament.registration_team_end and now < tournament.registration_team_end:
        return jsonify({'error': 'Team registration has not closed yet'}), 400
    if tournament.start_date and now > tournament.start_date:
        return jsonify({'error': 'The tournament has already started'}), 400

    with _tournament_lock(tournament_id):
        if load_matches(tournament_id) and not data.get('regenerate'):
            return jsonify({'error': 'Matches already generated for this tournament'}), 409

        teams = load_teams(tournament_id)
        groups, unassigned = generate_groups(tournament, teams, rng=rng)
        ensure_all_assigned(unassigned)
        matches = generate_group_stage_matches(tournament, groups)
        save_matches(tournament_id, matches)

    app.logger.info(f'Group stage generated for {tournament_id}: {len(groups)} groups, {len(matches)} matches')
    return jsonify({
        'message': 'Group stage generated',
        'groups': {label: [t.id for t in members] for label, members in groups.items()},
        'matches_count': len(matches),
    }), 201


@app.route('/api/tournaments/<tournament_id>/matches')
def get_tournament_matches(tournament_id):
    return jsonify([m.to_dict() for m in load_matches(tournament_id)])


@app.route('/api/tournaments/<tournament_id>/standings')
def get_group_standings(tournament_id):
    """Standings of every group."""
    tournament = load_tournament(tournament_id)
    if tournament is None:
        return _not_found('Tournament')
    ensure_format(tournament, GROUP_STAGE)
    return jsonify(calculate_all_standings(load_matches(tournament_id), tournament))


@app.route('/api/tournaments/<tournament_id>/matchdays')
def get_matches_by_matchday(tournament_id):
    by_matchday = group_matches_by_matchday(load_matches(tournament_id))
    return jsonify({str(day): [m.to_dict() for m in day_matches] for day, day_matches in by_matchday.items()})


@app.route('/api/tournaments/<tournament_id>/matchdays/<int:matchday>')
def get_single_matchday(tournament_id, matchday):
    return jsonify([m.to_dict() for m in matches_for_matchday(load_matches(tournament_id), matchday)])


@app.route('/api/tournaments/<tournament_id>/elimination', methods=['POST'])
def create_elimination_bracket(tournament_id):
    """Generate the full single elimination bracket of an elimination tournament."""
    data, rng = _request_options()
    tournament = load_tournament(tournament_id)
    if tournament is None:
        return _not_found('Tournament')
    ensure_format(tournament, ELIMINATION)

    teams = load_teams(tournament_id)
    if len(teams) < 2:
        return jsonify({'error': 'At least 2 teams are needed'}), 400

    with _tournament_lock(tournament_id):
        if load_matches(tournament_id) and not data.get('regenerate'):
            return jsonify({'error': 'Bracket already generated for this tournament'}), 409
        matches = generate_elimination_bracket(tournament, teams, rng=rng)
        save_matches(tournament_id, matches)

    app.logger.info(f'Elimination bracket generated for {tournament_id}: {len(matches)} matches')
    return jsonify({
        'message': 'Elimination bracket generated',
        'matches': [m.to_dict() for m in matches],
    }), 201


@app.route('/api/tournaments/<tournament_id>/playoff', methods=['POST'])
def create_playoff_bracket(tournament_id):
    """Generate the playoff bracket from the group standings."""
    data, rng = _request_options()
    tournament = load_tournament(tournament_id)
    if tournament is None:
        return _not_found('Tournament')
    ensure_format(tournament, GROUP_STAGE)

    with _tournament_lock(tournament_id):
        matches = load_matches(tournament_id)
        group_matches = [m for m in matches if m.round == GROUP_ROUND]
        if len(group_matches) < len(matches) and not data.get('regenerate'):
            return jsonify({'error': 'Playoff already generated for this tournament'}), 409

        standings = calculate_all_standings(group_matches, tournament)
        advancing = select_advancing_teams(standings, tournament.teams_advancing_per_group)
        if len(advancing) < 2:
            return jsonify({'error': 'Not enough teams for a playoff'}), 400

        bracket = generate_playoff_bracket(tournament, advancing, rng=rng)
        save_matches(tournament_id, group_matches + bracket)

    app.logger.info(f'Playoff generated for {tournament_id}: {len(advancing)} teams, {len(bracket)} matches')
    return jsonify({
        'message': 'Playoff generated',
        'matches': [m.to_dict() for m in bracket],
    }), 201


@app.route('/api/tournaments/<tournament_id>/bracket')
def get_bracket(tournament_id):
    return jsonify(get_bracket_display(load_matches(tournament_id)))


@app.route('/api/tournaments/<tournament_id>/status')
def get_tournament_status(tournament_id):
    tournament = load_tournament(tournament_id)
    if tournament is None:
        return _not_found('Tournament')
    return jsonify({'status': calculate_tournament_status(tournament)})


def _find_match(matches, match_id):
    for match in matches:
        if match.id == match_id:
            return match
    raise MatchNotFoundError(f'No match with id {match_id}')


MATCH_DETAIL_FIELDS = ('date', 'time', 'location', 'description', 'status')


@app.route('/api/tournaments/<tournament_id>/matches/<match_id>', methods=['PUT'])
def update_match(tournament_id, match_id):
    """Edit a match: scheduling details, status and/or the final score."""
    data = request.get_json(silent=True) or {}
    details = {key: data[key] for key in MATCH_DETAIL_FIELDS if data.get(key) is not None}
    has_scores = 'score_team1' in data or 'score_team2' in data
    if has_scores and ('score_team1' not in data or 'score_team2' not in data):
        return jsonify({'error': 'Missing scores'}), 400
    if not has_scores and not details:
        return jsonify({'error': 'Nothing to update'}), 400
    if load_tournament(tournament_id) is None:
        return _not_found('Tournament')

    with _tournament_lock(tournament_id):
        matches = load_matches(tournament_id)
        match = _find_match(matches, match_id)
        if details:
            update_match_details(match, **details)
        if has_scores:
            update_match_score(match, data['score_team1'], data['score_team2'], matches)
        save_matches(tournament_id, matches)

    if details:
        app.logger.info(f'Match {match_id} of {tournament_id} updated: {", ".join(details)}')
    return jsonify(match.to_dict())


@app.route('/api/tournaments/<tournament_id>/matches/<match_id>/series', methods=['POST'])
def add_series_game(tournament_id, match_id):
    """Add one game result to a best-of series."""
    data, rng = _request_options()
    if 'score_team1' not in data or 'score_team2' not in data:
        return jsonify({'error': 'Missing scores'}), 400
    tournament = load_tournament(tournament_id)
    if tournament is None:
        return _not_found('Tournament')

    with _tournament_lock(tournament_id):
        matches = load_matches(tournament_id)
        match = _find_match(matches, match_id)
        add_series_game_result(match, data['score_team1'], data['score_team2'], tournament,
                               matches=matches, rng=rng)
        save_matches(tournament_id, matches)

    return jsonify(match.to_dict())


if __name__ == '__main__':
    app.run(debug=True)
