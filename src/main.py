# Command line entry point: print the draw for a list of teams

import argparse
import sys
import yaml
from bracket.documents import team_from_document, tournament_to_document
from bracket.elimination import generate_tournament
from bracket.errors import MalformedDocument
from bracket.models import is_reserved_name


def load_teams(file_path):
    """
    Load teams from a YAML list.

    Entries may be plain names, team documents (name, players) or stored
    registration documents (name, player1Name, player2Name).
    """
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or []
    if isinstance(data, dict):
        data = data.get('teams', [])

    teams = []
    for index, entry in enumerate(data):
        if isinstance(entry, str):
            entry = {'name': entry}
        if isinstance(entry, dict):
            entry = dict(entry)
            entry.setdefault('id', f"team-{index + 1}")
        team = team_from_document(entry)
        if is_reserved_name(team.name):
            raise MalformedDocument(f'"{team.name}" is a reserved name')
        teams.append(team)
    return teams


def format_tournament(tournament):
    lines = []
    for round_ in tournament.rounds:
        lines.append(f"# {round_.name}")
        for match in round_.matches:
            line = f"{match.team1} vs {match.team2}"
            if match.winner:
                line += f"  -> {match.winner}"
            lines.append(line)
        lines.append("")
    return "\n".join(lines).rstrip()


def main(argv=None):
    parser = argparse.ArgumentParser(description='Generate a single elimination draw.')
    parser.add_argument('teams_file', help='YAML file with the list of teams')
    parser.add_argument('--format', choices=['text', 'yaml'], default='text')
    parser.add_argument('--id', dest='tournament_id', default=None, help='Tournament id')
    args = parser.parse_args(argv)

    try:
        teams = load_teams(args.teams_file)
    except (OSError, yaml.YAMLError, MalformedDocument) as e:
        print(f"Error: could not load teams from {args.teams_file}: {e}", file=sys.stderr)
        return 1

    tournament = generate_tournament(teams, tournament_id=args.tournament_id)

    if args.format == 'yaml':
        print(yaml.dump(tournament_to_document(tournament), default_flow_style=False, sort_keys=False), end='')
    else:
        print(format_tournament(tournament))
    return 0


if __name__ == '__main__':
    sys.exit(main())
