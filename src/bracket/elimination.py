"""
Single elimination bracket generation and winner propagation.
"""
import logging
import math
import uuid
from typing import Callable, List, Optional, Tuple

from .errors import (
    InvalidWinner,
    OutOfRangeReference,
    StructuralInvariantViolation,
    UnplayableMatch,
)
from .models import BYE, TBD, Match, Round, Team, Tournament
from .notifications import MatchCompleted, build_match_completed

logger = logging.getLogger(__name__)

ROUND_NAMES_BY_TEAM_COUNT = {
    16: "Eights",
    32: "Round of 32",
    64: "Round of 64",
    128: "Round of 128",
    256: "Round of 256",
}


def determine_bracket_size(num_teams: int) -> int:
    """Calculate the bracket size (next power of 2, never less than 2)."""
    if num_teams <= 2:
        return 2
    return 1 << (num_teams - 1).bit_length()


def get_round_name(round_index: int, total_rounds: int) -> str:
    """
    Get the name of a round from its position.

    The last three rounds are named from the final backwards; earlier rounds
    are named by how many teams enter them.
    """
    if round_index == total_rounds - 1:
        return "Grand Finals"
    elif round_index == total_rounds - 2:
        return "Semi Finals"
    elif round_index == total_rounds - 3:
        return "Quarter Finals"

    teams_in_round = 2 ** (total_rounds - round_index)
    return ROUND_NAMES_BY_TEAM_COUNT.get(teams_in_round, f"Round {round_index + 1}")


def _mark_bye_positions(marked: List[bool], start: int, end: int, byes_remaining: int):
    """
    Mark BYE slots in marked[start..end] (inclusive) by recursive halving.

    When the range needs at least half of its slots as BYEs, the odd offsets
    go first so every BYE sits opposite a team; otherwise the budget is split
    between the two halves.
    """
    if byes_remaining <= 0:
        return

    size = end - start + 1
    if size == 1:
        marked[start] = True
        return

    if byes_remaining >= size // 2:
        for position in range(start + 1, end + 1, 2):
            if byes_remaining == 0:
                break
            marked[position] = True
            byes_remaining -= 1
        for position in range(start, end + 1, 2):
            if byes_remaining == 0:
                break
            if not marked[position]:
                marked[position] = True
                byes_remaining -= 1
        return

    mid = start + size // 2
    first_half = byes_remaining // 2
    _mark_bye_positions(marked, start, mid - 1, first_half)
    _mark_bye_positions(marked, mid, end, byes_remaining - first_half)


def distribute_teams_and_byes(teams: List[Team], bracket_size: int) -> List[Team]:
    """
    Pad the team list with BYE placeholders up to bracket_size.

    BYEs are spread evenly so that no BYE meets another BYE in the first
    round (unless there are no real teams at all). Real teams keep their
    original relative order. Returns a new list.
    """
    num_byes = bracket_size - len(teams)
    if num_byes <= 0:
        return list(teams)

    marked = [False] * bracket_size
    _mark_bye_positions(marked, 0, bracket_size - 1, num_byes)

    result = []
    remaining = iter(teams)
    for position, is_bye in enumerate(marked):
        if is_bye:
            result.append(Team(id=f"bye-{position}", name=BYE))
        else:
            result.append(next(remaining))
    return result


def _create_match(round_index: int, match_index: int, team1: Team, team2: Team) -> Match:
    """Create a first round match, auto-advancing a team drawn against a BYE."""
    winner = ""
    if team1.is_bye and not team2.is_bye:
        winner = team2.name
    elif team2.is_bye and not team1.is_bye:
        winner = team1.name

    return Match(
        id=f"r{round_index}-m{match_index}",
        team1=team1.name,
        team2=team2.name,
        team1_players=[] if team1.is_bye else team1.players,
        team2_players=[] if team2.is_bye else team2.players,
        winner=winner,
    )


def _create_placeholder_match(round_index: int, match_index: int) -> Match:
    return Match(id=f"r{round_index}-m{match_index}", team1=TBD, team2=TBD)


def generate_brackets(teams: List[Team]) -> List[Round]:
    """
    Build every round of the draw from a BYE-padded team list.

    Round 0 pairs consecutive teams; later rounds are TBD placeholders that
    fill in as winners propagate. Winners decided by a BYE are advanced into
    round 1 straight away.
    """
    bracket_size = len(teams)
    if bracket_size < 2 or bracket_size & (bracket_size - 1):
        raise StructuralInvariantViolation(
            f"Bracket needs a power of two of at least 2 teams, got {bracket_size}"
        )

    total_rounds = int(math.log2(bracket_size))
    rounds = []

    for round_index in range(total_rounds):
        num_matches = bracket_size // 2 ** (round_index + 1)
        if round_index == 0:
            matches = [
                _create_match(0, i, teams[2 * i], teams[2 * i + 1])
                for i in range(num_matches)
            ]
        else:
            matches = [_create_placeholder_match(round_index, i) for i in range(num_matches)]

        rounds.append(Round(
            id=f"round-{round_index}",
            name=get_round_name(round_index, total_rounds),
            matches=matches,
        ))

    # BYE winners are known before anything is played
    for match_index, match in enumerate(rounds[0].matches):
        if match.winner:
            _advance_winner(rounds, 0, match_index)

    return rounds


def generate_tournament(approved_teams: List[Team], tournament_id: Optional[str] = None) -> Tournament:
    """
    Generate a complete draw from the approved teams.

    This is a pure function of its input: regenerating replaces the draw
    instead of updating a previous one.
    """
    bracket_size = determine_bracket_size(len(approved_teams))
    padded = distribute_teams_and_byes(approved_teams, bracket_size)
    rounds = generate_brackets(padded)

    tournament = Tournament(id=tournament_id or uuid.uuid4().hex, rounds=rounds)
    logger.debug(
        f"Generated tournament {tournament.id}: {len(approved_teams)} teams, "
        f"bracket size {bracket_size}, {len(rounds)} rounds"
    )
    return tournament


def _slot_in_next_round(match_index: int) -> Tuple[int, str]:
    """Return (next_match_index, 'team1' | 'team2') for a match's winner."""
    return match_index // 2, "team1" if match_index % 2 == 0 else "team2"


def _fill_slot(rounds: List[Round], round_index: int, match_index: int, slot: str,
               team_name: str, players: List[str]):
    """
    Put a team into one slot of a match.

    If the match had been won by the team that is being replaced, or the slot
    is being reset to TBD, its result is cleared and the slot it fed in the
    following round goes back to TBD.
    """
    target = rounds[round_index].matches[match_index]
    setattr(target, slot, team_name)
    setattr(target, f"{slot}_players", list(players))

    if target.winner and (team_name == TBD or target.winner not in (target.team1, target.team2)):
        logger.debug(f"Clearing stale winner {target.winner} of match {target.id}")
        target.winner = ""
        if round_index < len(rounds) - 1:
            next_index, next_slot = _slot_in_next_round(match_index)
            _fill_slot(rounds, round_index + 1, next_index, next_slot, TBD, [])


def _advance_winner(rounds: List[Round], round_index: int, match_index: int):
    """Copy a decided match's winner and players into the next round."""
    if round_index >= len(rounds) - 1:
        return

    match = rounds[round_index].matches[match_index]
    next_index, slot = _slot_in_next_round(match_index)
    _fill_slot(rounds, round_index + 1, next_index, slot, match.winner, match.players_for(match.winner))


def _get_match(tournament: Tournament, round_index: int, match_index: int) -> Match:
    if not 0 <= round_index < len(tournament.rounds):
        raise OutOfRangeReference(
            f"Round {round_index} does not exist (tournament has {len(tournament.rounds)} rounds)"
        )
    matches = tournament.rounds[round_index].matches
    if not 0 <= match_index < len(matches):
        raise OutOfRangeReference(
            f"Match {match_index} does not exist in {tournament.rounds[round_index].name}"
        )
    return matches[match_index]


def update_match_winner(tournament: Tournament, round_index: int, match_index: int, winner: str,
                        on_match_completed: Optional[Callable[[MatchCompleted], None]] = None,
                        upcoming_count: int = 2) -> Tournament:
    """
    Record the winner of a match and advance them into the next round.

    The tournament is updated in place and returned. All checks run before
    anything changes, so a rejected update leaves the tournament untouched.
    Setting the same winner again is a no-op; setting a different one
    replaces the advanced team downstream.

    Args:
        tournament: Tournament to update
        round_index: Index of the round containing the match
        match_index: Index of the match within its round
        winner: Name of the winning side
        on_match_completed: Optional callback receiving a MatchCompleted event
        upcoming_count: How many upcoming matches the event lists

    Raises:
        OutOfRangeReference: round or match index out of bounds
        UnplayableMatch: a side of the match is still TBD
        InvalidWinner: winner is not one of the sides, or is a BYE
    """
    match = _get_match(tournament, round_index, match_index)

    if match.team1 == TBD or match.team2 == TBD:
        raise UnplayableMatch(f"Match {match.id} is waiting for a previous result")
    if winner == BYE or winner not in (match.team1, match.team2):
        raise InvalidWinner(f"{winner!r} is not playing in match {match.id}")

    if round_index < len(tournament.rounds) - 1:
        next_index, _ = _slot_in_next_round(match_index)
        if next_index >= len(tournament.rounds[round_index + 1].matches):
            raise StructuralInvariantViolation(
                f"Round {round_index + 1} has no match {next_index} to receive the winner of {match.id}"
            )

    match.winner = winner
    _advance_winner(tournament.rounds, round_index, match_index)
    logger.debug(f"Match {match.id} won by {winner}")

    if on_match_completed is not None:
        on_match_completed(build_match_completed(tournament, round_index, match_index, upcoming_count))

    return tournament


def is_playable(match: Match) -> bool:
    """A match can be played when both sides are real teams and it has no winner."""
    return match.is_playable


def find_match(tournament: Tournament, match_id: str) -> Tuple[int, int]:
    """Return (round_index, match_index) of the match with this id."""
    for round_index, round_ in enumerate(tournament.rounds):
        for match_index, match in enumerate(round_.matches):
            if match.id == match_id:
                return round_index, match_index
    raise OutOfRangeReference(f"Match {match_id} not found in tournament {tournament.id}")


def get_champion(tournament: Tournament) -> Optional[str]:
    """Return the winner of the final, or None while it is undecided."""
    if not tournament.rounds or not tournament.rounds[-1].matches:
        return None
    return tournament.rounds[-1].matches[0].winner or None


def validate_tournament(tournament: Tournament):
    """
    Check the shape of a tournament.

    Raises StructuralInvariantViolation if round sizes do not halve down to a
    single final, or if any winner does not name one of its match's sides.
    """
    if not tournament.rounds:
        raise StructuralInvariantViolation(f"Tournament {tournament.id} has no rounds")

    for round_index, round_ in enumerate(tournament.rounds):
        expected = 2 ** (len(tournament.rounds) - round_index - 1)
        if len(round_.matches) != expected:
            raise StructuralInvariantViolation(
                f"{round_.name} has {len(round_.matches)} matches, expected {expected}"
            )
        for match in round_.matches:
            if match.winner and match.winner not in (match.team1, match.team2):
                raise StructuralInvariantViolation(
                    f"Winner {match.winner} of match {match.id} is not one of its teams"
                )
            if match.winner and TBD in (match.team1, match.team2):
                raise StructuralInvariantViolation(
                    f"Match {match.id} has a winner but is still waiting for an opponent"
                )
