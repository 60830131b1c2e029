BYE = "BYE"
TBD = "TBD"


def is_reserved_name(name):
    """BYE and TBD (in any case) mark empty slots and cannot be team names."""
    return name.strip().upper() in (BYE, TBD)


class Team:
    def __init__(self, id, name, players=None):
        self.id = id
        self.name = name
        self.players = list(players) if players else []

    @property
    def is_bye(self):
        return self.name == BYE

    def __eq__(self, other):
        if not isinstance(other, Team):
            return NotImplemented
        return (self.id, self.name, self.players) == (other.id, other.name, other.players)

    def __repr__(self):
        return f"Team(id={self.id}, name={self.name}, players={self.players})"


class Match:
    def __init__(self, id, team1=TBD, team2=TBD, team1_players=None, team2_players=None, winner=""):
        self.id = id
        self.team1 = team1
        self.team2 = team2
        self.team1_players = list(team1_players) if team1_players else []
        self.team2_players = list(team2_players) if team2_players else []
        self.winner = winner  # "" until decided

    @property
    def is_decided(self):
        return bool(self.winner)

    @property
    def is_playable(self):
        return (not self.winner
                and self.team1 not in (TBD, BYE)
                and self.team2 not in (TBD, BYE))

    def players_for(self, team_name):
        """Return the player list of whichever side is called team_name."""
        if team_name == self.team1:
            return list(self.team1_players)
        if team_name == self.team2:
            return list(self.team2_players)
        return []

    def __eq__(self, other):
        if not isinstance(other, Match):
            return NotImplemented
        return vars(self) == vars(other)

    def __repr__(self):
        return (f"Match(id={self.id}, team1={self.team1}, team2={self.team2}, "
                f"winner={self.winner!r})")


class Round:
    def __init__(self, id, name, matches=None):
        self.id = id
        self.name = name
        self.matches = matches if matches is not None else []

    def __eq__(self, other):
        if not isinstance(other, Round):
            return NotImplemented
        return (self.id, self.name, self.matches) == (other.id, other.name, other.matches)

    def __repr__(self):
        return f"Round(id={self.id}, name={self.name}, matches={len(self.matches)})"


class Tournament:
    def __init__(self, id, rounds=None):
        self.id = id
        self.rounds = rounds if rounds is not None else []

    @property
    def bracket_size(self):
        if not self.rounds:
            return 0
        return len(self.rounds[0].matches) * 2

    def __eq__(self, other):
        if not isinstance(other, Tournament):
            return NotImplemented
        return (self.id, self.rounds) == (other.id, other.rounds)

    def __repr__(self):
        return f"Tournament(id={self.id}, rounds={[r.name for r in self.rounds]})"
