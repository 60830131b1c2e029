"""
Flask web application for the ping-pong tournament.

Registrations, the current draw and queued notifications are YAML documents
in the data directory. Every read-modify-write runs under one file lock.
"""
import os
import uuid
import yaml
from datetime import datetime
from filelock import FileLock
from flask import Flask, request, jsonify
from bracket.documents import (
    registration_from_document,
    team_from_document,
    tournament_from_document,
    tournament_to_document,
    match_to_document,
)
from bracket.elimination import find_match, generate_tournament, get_champion, update_match_winner
from bracket.errors import (
    BracketError,
    InvalidWinner,
    MalformedDocument,
    OutOfRangeReference,
    UnplayableMatch,
)
from bracket.models import is_reserved_name
from bracket.notifications import build_notification_document, match_update_notification

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))

TEAMS_FILE = os.path.join(DATA_DIR, 'teams.yaml')
TOURNAMENT_FILE = os.path.join(DATA_DIR, 'tournament.yaml')
NOTIFICATIONS_FILE = os.path.join(DATA_DIR, 'notifications.yaml')
SETTINGS_FILE = os.path.join(DATA_DIR, 'settings.yaml')
MAX_TEAM_NAME_LENGTH = 50

ERROR_STATUS = {
    OutOfRangeReference: 404,
    InvalidWinner: 400,
    MalformedDocument: 400,
    UnplayableMatch: 409,
}


def _data_lock() -> FileLock:
    os.makedirs(DATA_DIR, exist_ok=True)
    return FileLock(os.path.join(DATA_DIR, '.lock'), timeout=10)


def _error(message, status):
    return jsonify({'success': False, 'error': message}), status


def _bracket_error(e: BracketError):
    status = next((code for cls, code in ERROR_STATUS.items() if isinstance(e, cls)), 500)
    if status == 500:
        app.logger.error(f'Bracket structure error: {e}')
    return _error(str(e), status)


def _load_yaml(path):
    if not os.path.exists(path):
        return None
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        app.logger.warning(f'Failed to parse {path}: {e}')
        return None


def _save_yaml(path, data):
    os.makedirs(DATA_DIR, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.dump(data, f, default_flow_style=False, allow_unicode=True)


def get_default_settings():
    """Return default tournament settings."""
    return {
        'notification_topic': 'tournaments',
        'upcoming_match_count': 2,
        'notifications_enabled': True,
        'require_approval': True,
    }


def load_settings():
    """Load settings from YAML, filling in defaults for missing keys."""
    settings = get_default_settings()
    data = _load_yaml(SETTINGS_FILE)
    if isinstance(data, dict):
        settings.update(data)

    count = settings['upcoming_match_count']
    try:
        settings['upcoming_match_count'] = int(count)
    except (TypeError, ValueError):
        app.logger.warning(f'Invalid upcoming_match_count {count!r} in {SETTINGS_FILE}, using default')
        settings['upcoming_match_count'] = get_default_settings()['upcoming_match_count']
    return settings


def load_registrations():
    """Load team registrations from YAML file."""
    data = _load_yaml(TEAMS_FILE)
    if not data or 'teams' not in data:
        return []
    return [registration_from_document(doc) for doc in data['teams']]


def save_registrations(registrations):
    """Save team registrations to YAML file."""
    _save_yaml(TEAMS_FILE, {'teams': registrations})


def load_tournament():
    """Load the current draw, or None if no draw has been generated."""
    data = _load_yaml(TOURNAMENT_FILE)
    if not data:
        return None
    return tournament_from_document(data)


def save_tournament(tournament):
    """Save the current draw to YAML file."""
    _save_yaml(TOURNAMENT_FILE, tournament_to_document(tournament))


def load_notifications():
    """Load queued notification documents."""
    data = _load_yaml(NOTIFICATIONS_FILE)
    if not data or 'notifications' not in data:
        return []
    return data['notifications']


def queue_notification(document):
    """Append a notification document for the delivery worker. Caller holds the lock."""
    notifications = load_notifications()
    document = dict(document, id=uuid.uuid4().hex)
    notifications.append(document)
    _save_yaml(NOTIFICATIONS_FILE, {'notifications': notifications})
    return document


def get_draw_teams(registrations, settings):
    """Teams that enter the draw, in registration order."""
    if settings.get('require_approval', True):
        registrations = [r for r in registrations if r['isApproved']]
    return [team_from_document(r) for r in registrations]


def tournament_response(tournament):
    document = tournament_to_document(tournament)
    document['champion'] = get_champion(tournament)
    return document


@app.route('/api/teams', methods=['GET'])
def api_list_teams():
    """List registrations, optionally only approved ones."""
    try:
        registrations = load_registrations()
    except MalformedDocument as e:
        return _bracket_error(e)

    if request.args.get('approved') in ('1', 'true'):
        registrations = [r for r in registrations if r['isApproved']]
    return jsonify({'success': True, 'teams': registrations})


@app.route('/api/teams', methods=['POST'])
def api_register_team():
    """Register a team. New teams wait for admin approval."""
    payload = request.get_json(silent=True) or {}
    name = str(payload.get('name', '')).strip()

    if not name:
        return _error('Team name is required.', 400)
    if len(name) > MAX_TEAM_NAME_LENGTH:
        return _error(f'Team name must be at most {MAX_TEAM_NAME_LENGTH} characters.', 400)
    if is_reserved_name(name):
        return _error(f'"{name}" is a reserved name.', 400)

    registration = {
        'id': uuid.uuid4().hex,
        'name': name,
        'player1Name': str(payload.get('player1Name', '')).strip(),
        'player2Name': str(payload.get('player2Name', '')).strip(),
        'contact1': str(payload.get('contact1', '')).strip(),
        'contact2': str(payload.get('contact2', '')).strip(),
        'registrationDate': datetime.now().isoformat(),
        'isApproved': False,
    }

    with _data_lock():
        try:
            registrations = load_registrations()
        except MalformedDocument as e:
            return _bracket_error(e)
        if any(r['name'].lower() == name.lower() for r in registrations):
            return _error('This team name is already registered.', 400)
        registrations.append(registration)
        save_registrations(registrations)

    app.logger.info(f'Registered team {name} ({registration["id"]})')
    return jsonify({'success': True, 'team': registration}), 201


@app.route('/api/teams/<team_id>/approve', methods=['POST'])
def api_approve_team(team_id):
    """Approve a registration, or revoke approval with {"approved": false}."""
    payload = request.get_json(silent=True) or {}
    approved = bool(payload.get('approved', True))

    with _data_lock():
        try:
            registrations = load_registrations()
        except MalformedDocument as e:
            return _bracket_error(e)
        registration = next((r for r in registrations if r['id'] == team_id), None)
        if registration is None:
            return _error('Registration not found.', 404)
        registration['isApproved'] = approved
        save_registrations(registrations)

    app.logger.info(f'Team {registration["name"]} approved={approved}')
    return jsonify({'success': True, 'team': registration})


@app.route('/api/teams/<team_id>', methods=['DELETE'])
def api_delete_team(team_id):
    """Delete a registration. An existing draw is not changed until regenerated."""
    with _data_lock():
        try:
            registrations = load_registrations()
        except MalformedDocument as e:
            return _bracket_error(e)
        remaining = [r for r in registrations if r['id'] != team_id]
        if len(remaining) == len(registrations):
            return _error('Registration not found.', 404)
        save_registrations(remaining)

    return jsonify({'success': True})


@app.route('/api/tournament/generate', methods=['POST'])
def api_generate_tournament():
    """Generate a new draw from the approved teams, replacing the current one."""
    settings = load_settings()

    with _data_lock():
        try:
            teams = get_draw_teams(load_registrations(), settings)
        except MalformedDocument as e:
            return _bracket_error(e)
        tournament = generate_tournament(teams)
        save_tournament(tournament)

    app.logger.info(
        f'Generated draw {tournament.id} for {len(teams)} teams '
        f'(bracket size {tournament.bracket_size})'
    )
    return jsonify({'success': True, 'tournament': tournament_response(tournament)}), 201


@app.route('/api/tournament', methods=['GET'])
def api_get_tournament():
    """Return the current draw."""
    try:
        tournament = load_tournament()
    except MalformedDocument as e:
        return _bracket_error(e)
    if tournament is None:
        return _error('No draw has been generated yet.', 404)
    return jsonify({'success': True, 'tournament': tournament_response(tournament)})


@app.route('/api/matches/<match_id>/winner', methods=['POST'])
def api_update_match_winner(match_id):
    """Record a match result and advance the winner."""
    payload = request.get_json(silent=True) or {}
    winner = str(payload.get('winner', '')).strip()
    if not winner:
        return _error('Winner is required.', 400)

    settings = load_settings()
    events = []

    with _data_lock():
        try:
            tournament = load_tournament()
            if tournament is None:
                return _error('No draw has been generated yet.', 404)
            round_index, match_index = find_match(tournament, match_id)
            update_match_winner(
                tournament, round_index, match_index, winner,
                on_match_completed=events.append,
                upcoming_count=settings['upcoming_match_count'],
            )
        except BracketError as e:
            return _bracket_error(e)
        save_tournament(tournament)

        notification = None
        if settings.get('notifications_enabled') and events:
            document = match_update_notification(events[0], topic=settings['notification_topic'])
            if document:
                notification = queue_notification(document)

    app.logger.info(f'Match {match_id} won by {winner}')
    return jsonify({
        'success': True,
        'tournament': tournament_response(tournament),
        'notification': notification,
    })


@app.route('/api/order-of-play', methods=['GET'])
def api_order_of_play():
    """Every match that can be played now, in bracket order."""
    try:
        tournament = load_tournament()
    except MalformedDocument as e:
        return _bracket_error(e)
    if tournament is None:
        return jsonify({'success': True, 'matches': []})

    matches = []
    for round_ in tournament.rounds:
        for match in round_.matches:
            if match.is_playable:
                matches.append(dict(match_to_document(match), round=round_.name))
    return jsonify({'success': True, 'matches': matches})


@app.route('/api/notifications', methods=['GET'])
def api_list_notifications():
    """List queued notifications."""
    return jsonify({'success': True, 'notifications': load_notifications()})


@app.route('/api/notifications', methods=['POST'])
def api_send_notification():
    """Queue an admin broadcast, to a topic or to every registered device."""
    payload = request.get_json(silent=True) or {}
    title = str(payload.get('title', '')).strip()
    body = str(payload.get('body', '')).strip()
    if not title or not body:
        return _error('Title and body are required.', 400)

    topic = payload.get('topic') or None
    with _data_lock():
        notification = queue_notification(build_notification_document(title, body, topic=topic))

    app.logger.info(f'Queued notification "{title}" for {topic or "all devices"}')
    return jsonify({'success': True, 'notification': notification}), 201


if __name__ == '__main__':
    app.run(debug=True, port=5000)
