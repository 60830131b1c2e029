"""
Conversion between bracket objects and plain key/value documents.

Field names match the stored documents (team1Players, isApproved, ...).
Reading is strict: a document with a missing or mistyped field is rejected
with MalformedDocument instead of being filled in with defaults. The only
defaults are an empty winner, empty player lists and the optional
registration fields.
"""
from typing import Dict, List

from .elimination import validate_tournament
from .errors import MalformedDocument, StructuralInvariantViolation
from .models import Match, Round, Team, Tournament


def _require(document, key, expected_type, context):
    if not isinstance(document, dict):
        raise MalformedDocument(f"{context} must be a mapping, got {type(document).__name__}")
    if key not in document:
        raise MalformedDocument(f"{context} is missing '{key}'")
    value = document[key]
    if not isinstance(value, expected_type):
        raise MalformedDocument(
            f"{context} field '{key}' must be {expected_type.__name__}, got {type(value).__name__}"
        )
    return value


def _optional(document, key, expected_type, default, context):
    if document.get(key) is None:
        return default
    return _require(document, key, expected_type, context)


def _string_list(document, key, context) -> List[str]:
    values = _optional(document, key, list, [], context)
    if not all(isinstance(value, str) for value in values):
        raise MalformedDocument(f"{context} field '{key}' must be a list of strings")
    return list(values)


def match_to_document(match: Match) -> Dict:
    return {
        'id': match.id,
        'team1': match.team1,
        'team2': match.team2,
        'team1Players': list(match.team1_players),
        'team2Players': list(match.team2_players),
        'winner': match.winner,
    }


def match_from_document(document: Dict) -> Match:
    context = f"Match {document.get('id', '?') if isinstance(document, dict) else '?'}"
    return Match(
        id=_require(document, 'id', str, context),
        team1=_require(document, 'team1', str, context),
        team2=_require(document, 'team2', str, context),
        team1_players=_string_list(document, 'team1Players', context),
        team2_players=_string_list(document, 'team2Players', context),
        winner=_optional(document, 'winner', str, "", context),
    )


def round_to_document(round_: Round) -> Dict:
    return {
        'id': round_.id,
        'name': round_.name,
        'matches': [match_to_document(match) for match in round_.matches],
    }


def round_from_document(document: Dict) -> Round:
    context = f"Round {document.get('id', '?') if isinstance(document, dict) else '?'}"
    return Round(
        id=_require(document, 'id', str, context),
        name=_require(document, 'name', str, context),
        matches=[match_from_document(m) for m in _require(document, 'matches', list, context)],
    )


def tournament_to_document(tournament: Tournament) -> Dict:
    return {
        'id': tournament.id,
        'rounds': [round_to_document(round_) for round_ in tournament.rounds],
    }


def tournament_from_document(document: Dict) -> Tournament:
    """
    Read a stored tournament.

    Besides the field checks, the rebuilt tournament must have the shape of a
    single-elimination bracket; a document that does not is reported as
    malformed.
    """
    context = "Tournament"
    tournament = Tournament(
        id=_require(document, 'id', str, context),
        rounds=[round_from_document(r) for r in _require(document, 'rounds', list, context)],
    )
    try:
        validate_tournament(tournament)
    except StructuralInvariantViolation as e:
        raise MalformedDocument(f"Tournament {tournament.id}: {e}") from e
    return tournament


def team_to_document(team: Team) -> Dict:
    return {'id': team.id, 'name': team.name, 'players': list(team.players)}


def team_from_document(document: Dict) -> Team:
    """
    Build a Team from either a team document (id, name, players) or a
    registration document (id, name, player1Name, player2Name, ...).
    Empty player names are dropped.
    """
    context = f"Team {document.get('id', '?') if isinstance(document, dict) else '?'}"
    team_id = _require(document, 'id', str, context)
    name = _require(document, 'name', str, context)
    if not name.strip():
        raise MalformedDocument(f"{context} has an empty name")

    if 'players' in document:
        players = _string_list(document, 'players', context)
    else:
        players = [
            _optional(document, key, str, "", context)
            for key in ('player1Name', 'player2Name')
        ]
    return Team(id=team_id, name=name, players=[p for p in players if p])


def registration_from_document(document: Dict) -> Dict:
    """Validate a stored registration and fill in its optional fields."""
    context = f"Registration {document.get('id', '?') if isinstance(document, dict) else '?'}"
    registration = {
        'id': _require(document, 'id', str, context),
        'name': _require(document, 'name', str, context),
        'isApproved': _optional(document, 'isApproved', bool, False, context),
        'registrationDate': _optional(document, 'registrationDate', str, "", context),
    }
    for key in ('player1Name', 'player2Name', 'contact1', 'contact2'):
        registration[key] = _optional(document, key, str, "", context)
    return registration
