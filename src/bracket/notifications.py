"""
Match completion events and the notification documents built from them.

Nothing here sends anything: documents are queued with status "pending" and
an external worker delivers them.
"""
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .models import Match, Tournament

MATCH_UPDATE_TITLE = "Match Update: Next Up"
DEFAULT_TOPIC = "tournaments"


class MatchCompleted:
    """Emitted after a winner has been recorded and propagated."""

    def __init__(self, completed_match_id, round_index, match_index, winner,
                 next_match=None, next_position=None, upcoming_matches=None):
        self.completed_match_id = completed_match_id
        self.round_index = round_index
        self.match_index = match_index
        self.winner = winner
        self.next_match = next_match
        self.next_position = next_position  # (round_index, match_index) of next_match
        self.upcoming_matches = upcoming_matches if upcoming_matches else []

    def __repr__(self):
        next_id = self.next_match.id if self.next_match else None
        return (f"MatchCompleted(completed_match_id={self.completed_match_id}, "
                f"winner={self.winner}, next_match={next_id})")


def find_next_match_to_play(tournament: Tournament, round_index: int,
                            match_index: int) -> Optional[Tuple[Match, int, int]]:
    """
    Find the match that should be played after the given one.

    This is the following match of the same round if it can be played,
    otherwise the first playable match of the next round.
    Returns (match, round_index, match_index) or None.
    """
    rounds = tournament.rounds
    if round_index >= len(rounds):
        return None

    current = rounds[round_index].matches
    if match_index + 1 < len(current) and current[match_index + 1].is_playable:
        return current[match_index + 1], round_index, match_index + 1

    if round_index + 1 < len(rounds):
        for idx, match in enumerate(rounds[round_index + 1].matches):
            if match.is_playable:
                return match, round_index + 1, idx

    return None


def find_upcoming_matches(tournament: Tournament, round_index: int, match_index: int,
                          count: int = 2) -> List[Match]:
    """Playable matches after the given one: rest of its round, then the next round."""
    upcoming = []
    rounds = tournament.rounds
    if round_index >= len(rounds) or count <= 0:
        return upcoming

    candidates = rounds[round_index].matches[match_index + 1:]
    if round_index + 1 < len(rounds):
        candidates = candidates + rounds[round_index + 1].matches

    for match in candidates:
        if match.is_playable:
            upcoming.append(match)
            if len(upcoming) == count:
                break
    return upcoming


def build_match_completed(tournament: Tournament, round_index: int, match_index: int,
                          upcoming_count: int = 2) -> MatchCompleted:
    completed = tournament.rounds[round_index].matches[match_index]
    event = MatchCompleted(
        completed_match_id=completed.id,
        round_index=round_index,
        match_index=match_index,
        winner=completed.winner,
    )

    found = find_next_match_to_play(tournament, round_index, match_index)
    if found:
        next_match, next_round, next_index = found
        event.next_match = next_match
        event.next_position = (next_round, next_index)
        event.upcoming_matches = find_upcoming_matches(tournament, next_round, next_index, upcoming_count)
    return event


def build_match_update_message(event: MatchCompleted) -> Optional[str]:
    """Text announcing the next match and what comes after it."""
    if event.next_match is None:
        return None

    message = f"Next up: {event.next_match.team1} vs {event.next_match.team2}"
    if event.upcoming_matches:
        message += "\n\nComing up soon:"
        for match in event.upcoming_matches:
            message += f"\n• {match.team1} vs {match.team2}"
    return message


def build_notification_document(title: str, body: str, topic: Optional[str] = None,
                                token: Optional[str] = None,
                                data: Optional[Dict[str, str]] = None) -> Dict:
    """
    Create a notification document for the delivery worker.

    With a topic it is broadcast to subscribers, with a token it goes to one
    device, and with neither it targets every registered device.
    """
    document = {
        'title': title,
        'body': body,
        'timestamp': datetime.now().isoformat(),
        'status': 'pending',
    }
    if topic:
        document['topic'] = topic
    elif token:
        document['token'] = token
    if data:
        document.update(data)
    return document


def match_update_notification(event: MatchCompleted, topic: str = DEFAULT_TOPIC) -> Optional[Dict]:
    """Notification document for a completed match, or None if nothing is next."""
    body = build_match_update_message(event)
    if body is None:
        return None

    next_round, next_index = event.next_position
    return build_notification_document(
        MATCH_UPDATE_TITLE,
        body,
        topic=topic,
        data={
            'type': 'match_update',
            'completedMatchId': event.completed_match_id,
            'nextMatchId': event.next_match.id,
            'roundIndex': str(next_round),
            'matchIndex': str(next_index),
        },
    )
