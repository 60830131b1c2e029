"""
Tests for next-match lookup and notification documents.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket.elimination import generate_tournament, update_match_winner
from bracket.notifications import (
    MATCH_UPDATE_TITLE,
    build_match_completed,
    build_match_update_message,
    build_notification_document,
    find_next_match_to_play,
    find_upcoming_matches,
    match_update_notification,
)
from conftest import make_teams


@pytest.fixture
def tournament(eight_teams):
    return generate_tournament(eight_teams, tournament_id="cup")


class TestFindNextMatch:

    def test_next_match_in_same_round(self, tournament):
        update_match_winner(tournament, 0, 0, "Team 1")
        match, round_index, match_index = find_next_match_to_play(tournament, 0, 0)
        assert (match.id, round_index, match_index) == ("r0-m1", 0, 1)

    def test_falls_back_to_next_round(self, tournament):
        update_match_winner(tournament, 0, 0, "Team 1")
        update_match_winner(tournament, 0, 1, "Team 3")
        update_match_winner(tournament, 0, 3, "Team 7")
        # r0-m3 was the last match of its round; the first semi is ready
        match, round_index, match_index = find_next_match_to_play(tournament, 0, 3)
        assert (match.id, round_index, match_index) == ("r1-m0", 1, 0)

    def test_skips_when_following_match_is_decided(self, tournament):
        update_match_winner(tournament, 0, 1, "Team 3")
        update_match_winner(tournament, 0, 0, "Team 1")
        match, round_index, _ = find_next_match_to_play(tournament, 0, 0)
        assert (match.id, round_index) == ("r1-m0", 1)

    def test_nothing_next_after_final(self):
        tournament = generate_tournament(make_teams(2))
        update_match_winner(tournament, 0, 0, "Team 1")
        assert find_next_match_to_play(tournament, 0, 0) is None

    def test_out_of_range_round(self, tournament):
        assert find_next_match_to_play(tournament, 7, 0) is None


class TestUpcomingMatches:

    def test_rest_of_round_then_next_round(self, tournament):
        update_match_winner(tournament, 0, 0, "Team 1")
        update_match_winner(tournament, 0, 1, "Team 3")
        upcoming = find_upcoming_matches(tournament, 0, 2, count=3)
        assert [m.id for m in upcoming] == ["r0-m3", "r1-m0"]

    def test_zero_count(self, tournament):
        assert find_upcoming_matches(tournament, 0, 0, count=0) == []


class TestMessages:

    def test_message_with_upcoming_matches(self, tournament):
        update_match_winner(tournament, 0, 0, "Team 1")
        event = build_match_completed(tournament, 0, 0)
        assert build_match_update_message(event) == (
            "Next up: Team 3 vs Team 4\n\nComing up soon:"
            "\n• Team 5 vs Team 6\n• Team 7 vs Team 8"
        )

    def test_message_without_upcoming_matches(self):
        tournament = generate_tournament(make_teams(4))
        update_match_winner(tournament, 0, 0, "Team 1")
        event = build_match_completed(tournament, 0, 0)
        assert build_match_update_message(event) == "Next up: Team 3 vs Team 4"

    def test_no_message_after_final(self):
        tournament = generate_tournament(make_teams(2))
        update_match_winner(tournament, 0, 0, "Team 1")
        event = build_match_completed(tournament, 0, 0)
        assert event.next_match is None
        assert build_match_update_message(event) is None
        assert match_update_notification(event) is None


class TestNotificationDocuments:

    def test_topic_document(self):
        doc = build_notification_document("Hello", "World", topic="tournaments")
        assert doc['topic'] == "tournaments"
        assert doc['status'] == "pending"
        assert 'token' not in doc
        assert doc['timestamp']

    def test_token_document(self):
        doc = build_notification_document("Hello", "World", token="device-1")
        assert doc['token'] == "device-1"
        assert 'topic' not in doc

    def test_all_devices_document(self):
        doc = build_notification_document("Hello", "World")
        assert 'topic' not in doc and 'token' not in doc

    def test_match_update_notification(self, tournament):
        update_match_winner(tournament, 0, 0, "Team 1")
        event = build_match_completed(tournament, 0, 0)
        doc = match_update_notification(event, topic="pingpong")
        assert doc['title'] == MATCH_UPDATE_TITLE
        assert doc['topic'] == "pingpong"
        assert doc['type'] == "match_update"
        assert doc['completedMatchId'] == "r0-m0"
        assert doc['nextMatchId'] == "r0-m1"
        assert (doc['roundIndex'], doc['matchIndex']) == ("0", "1")
        assert doc['body'].startswith("Next up: Team 3 vs Team 4")
