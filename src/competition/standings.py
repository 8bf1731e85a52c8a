"""
Group standings with points, goal difference, goals for and head-to-head
tie-breaks.
"""
from functools import cmp_to_key
from typing import Dict, List

from competition.models import COMPLETED, GROUP_ROUND, Match


def _is_scored(match: Match) -> bool:
    return match.status == COMPLETED and match.score_team1 is not None and match.score_team2 is not None


def _new_row(team) -> Dict:
    return {
        'team': team,
        'played': 0,
        'wins': 0,
        'draws': 0,
        'losses': 0,
        'goals_for': 0,
        'goals_against': 0,
        'points': 0,
    }


def build_head_to_head(matches: List[Match]) -> Dict:
    """
    Map (team_a, team_b) -> goal difference of team_a over team_b, summed over
    every completed direct meeting. Both orientations are stored.
    """
    head_to_head = {}
    for match in matches:
        if not _is_scored(match):
            continue
        diff = match.score_team1 - match.score_team2
        key = (match.team1, match.team2)
        head_to_head[key] = head_to_head.get(key, 0) + diff
        reverse = (match.team2, match.team1)
        head_to_head[reverse] = head_to_head.get(reverse, 0) - diff
    return head_to_head


def calculate_group_standings(matches: List[Match], tournament) -> List[Dict]:
    """
    Calculate the standings of one group from its matches.

    Every team appearing in the list gets a row, even without a completed
    match. Only completed matches with both scores count.

    Ranking: points -> goal difference -> goals for -> head-to-head.
    Head-to-head only compares the two teams being ordered, so three-way
    ties may not be ordered consistently.
    """
    points = tournament.points
    win_points = points.get('win', 3)
    draw_points = points.get('draw', 1)
    loss_points = points.get('loss', 0)

    table = {}
    for match in matches:
        for team in (match.team1, match.team2):
            if team is not None and team not in table:
                table[team] = _new_row(team)

    for match in matches:
        if not _is_scored(match):
            continue
        home = table[match.team1]
        away = table[match.team2]

        home['played'] += 1
        away['played'] += 1
        home['goals_for'] += match.score_team1
        home['goals_against'] += match.score_team2
        away['goals_for'] += match.score_team2
        away['goals_against'] += match.score_team1

        if match.score_team1 > match.score_team2:
            home['wins'] += 1
            home['points'] += win_points
            away['losses'] += 1
            away['points'] += loss_points
        elif match.score_team1 < match.score_team2:
            away['wins'] += 1
            away['points'] += win_points
            home['losses'] += 1
            home['points'] += loss_points
        else:
            home['draws'] += 1
            away['draws'] += 1
            home['points'] += draw_points
            away['points'] += draw_points

    for row in table.values():
        row['goal_difference'] = row['goals_for'] - row['goals_against']

    head_to_head = build_head_to_head(matches)

    def compare(a, b):
        if a['points'] != b['points']:
            return b['points'] - a['points']
        if a['goal_difference'] != b['goal_difference']:
            return b['goal_difference'] - a['goal_difference']
        if a['goals_for'] != b['goals_for']:
            return b['goals_for'] - a['goals_for']
        # Positive when a beat b, so a sorts first
        return -head_to_head.get((a['team'], b['team']), 0)

    return sorted(table.values(), key=cmp_to_key(compare))


def calculate_all_standings(matches: List[Match], tournament) -> Dict[str, List[Dict]]:
    """Standings for every group, keyed by group label in label order."""
    by_group = {}
    for match in matches:
        if match.round == GROUP_ROUND and match.group is not None:
            by_group.setdefault(match.group, []).append(match)
    return {group: calculate_group_standings(by_group[group], tournament) for group in sorted(by_group)}


def select_advancing_teams(standings: Dict[str, List[Dict]], teams_advancing: int) -> List:
    """Top ``teams_advancing`` teams of every group, concatenated in group order."""
    advancing = []
    for group in sorted(standings):
        advancing.extend(row['team'] for row in standings[group][:teams_advancing])
    return advancing
