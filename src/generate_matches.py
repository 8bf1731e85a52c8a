import yaml
import os
import random
from competition.models import Team, Tournament
from competition.groups import ensure_all_assigned, generate_groups, generate_group_stage_matches

def load_teams(file_path):
    """Load a roster file: a list of team names, or a mapping with 'tournament' and 'teams'."""
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or []
    settings = {}
    if isinstance(data, dict):
        settings = data.get('tournament', {}) or {}
        data = data.get('teams', []) or []
    settings.setdefault('id', os.path.splitext(os.path.basename(file_path))[0])
    tournament = Tournament.from_dict(settings)
    teams = [Team(id=str(name), tournament=tournament.id) for name in data]
    return tournament, teams

def generate_group_stage(tournament, teams, seed=None):
    rng = random.Random(seed) if seed is not None else None
    groups, unassigned = generate_groups(tournament, teams, rng=rng)
    ensure_all_assigned(unassigned)
    return groups, generate_group_stage_matches(tournament, groups)

def format_group_stage(groups, matches):
    lines = []
    for group_name, members in groups.items():
        if lines:
            lines.append("")  # Blank line between groups
        lines.append(f"# Group {group_name}: {', '.join(t.id for t in members)}")
        group_matches = sorted((m for m in matches if m.group == group_name), key=lambda m: m.matchday)
        current_day = None
        for match in group_matches:
            if match.matchday != current_day:
                current_day = match.matchday
                lines.append(f"## Matchday {current_day}")
            lines.append(f"{match.team1} vs {match.team2}")
    return lines

def main():
    import sys

    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)

    # Use command line argument if provided, otherwise use default path
    teams_file = sys.argv[1] if len(sys.argv) > 1 else os.path.join(base_dir, 'data', 'teams.yaml')
    seed = int(sys.argv[2]) if len(sys.argv) > 2 else None

    tournament, teams = load_teams(teams_file)

    if not teams:
        print(f"No teams found in {teams_file}", file=sys.stderr)
        return

    groups, matches = generate_group_stage(tournament, teams, seed)
    for line in format_group_stage(groups, matches):
        print(line)

if __name__ == '__main__':
    main()
