"""
Unit tests for the data models (Team, Match, Round, Tournament).
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket.models import BYE, TBD, Match, Round, Team, Tournament, is_reserved_name


class TestTeam:
    """Tests for the Team model."""

    def test_team_creation(self):
        team = Team(id="t1", name="Test Team", players=["Ann", "Bob"])
        assert team.name == "Test Team"
        assert team.players == ["Ann", "Bob"]
        assert not team.is_bye

    def test_team_without_players(self):
        assert Team(id="t1", name="Test Team").players == []

    def test_players_are_copied(self):
        players = ["Ann"]
        team = Team(id="t1", name="Test Team", players=players)
        players.append("Bob")
        assert team.players == ["Ann"]

    def test_bye_team(self):
        assert Team(id="bye-3", name=BYE).is_bye

    def test_reserved_names(self):
        assert is_reserved_name("BYE")
        assert is_reserved_name(" tbd ")
        assert not is_reserved_name("Byers")

    def test_team_repr(self):
        repr_str = repr(Team(id="t1", name="Test Team"))
        assert "Test Team" in repr_str
        assert "t1" in repr_str


class TestMatch:
    """Tests for the Match model."""

    def test_placeholder_defaults(self):
        match = Match(id="r1-m0")
        assert (match.team1, match.team2) == (TBD, TBD)
        assert match.winner == ""
        assert not match.is_decided
        assert not match.is_playable

    def test_playable(self):
        assert Match(id="m", team1="A", team2="B").is_playable
        assert not Match(id="m", team1="A", team2=BYE).is_playable
        assert not Match(id="m", team1="A", team2="B", winner="A").is_playable

    def test_players_for(self):
        match = Match(id="m", team1="A", team2="B", team1_players=["Ann"], team2_players=["Bob"])
        assert match.players_for("B") == ["Bob"]
        assert match.players_for("C") == []

    def test_equality(self):
        assert Match(id="m", team1="A", team2="B") == Match(id="m", team1="A", team2="B")
        assert Match(id="m", team1="A", team2="B") != Match(id="m", team1="A", team2="C")


class TestRoundAndTournament:

    def test_round_repr(self):
        round_ = Round(id="round-0", name="Grand Finals", matches=[Match(id="r0-m0")])
        assert "Grand Finals" in repr(round_)

    def test_bracket_size(self):
        rounds = [
            Round(id="round-0", name="Semi Finals", matches=[Match(id="r0-m0"), Match(id="r0-m1")]),
            Round(id="round-1", name="Grand Finals", matches=[Match(id="r1-m0")]),
        ]
        assert Tournament(id="t", rounds=rounds).bracket_size == 4
        assert Tournament(id="t").bracket_size == 0
