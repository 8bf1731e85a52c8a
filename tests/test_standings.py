"""
Unit tests for group standings and advancement.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from competition.models import Match, Tournament
from competition.standings import (
    build_head_to_head,
    calculate_group_standings,
    calculate_all_standings,
    select_advancing_teams,
)


def played(team1, team2, score1, score2, group='A'):
    return Match(tournament='cup', round='group', group=group, matchday=1,
                 team1=team1, team2=team2, score_team1=score1, score_team2=score2,
                 status='completed')


def unplayed(team1, team2, group='A'):
    return Match(tournament='cup', round='group', group=group, matchday=1, team1=team1, team2=team2)


def by_team(rows):
    return {row['team']: row for row in rows}


class TestGroupStandings:
    """Tests for points, record and ordering."""

    def test_three_team_example(self, group_tournament):
        matches = [played('A', 'B', 3, 0), played('B', 'C', 1, 0), played('C', 'A', 2, 2)]

        standings = calculate_group_standings(matches, group_tournament)
        rows = by_team(standings)

        assert [row['team'] for row in standings] == ['A', 'B', 'C']
        assert (rows['A']['points'], rows['A']['wins'], rows['A']['draws']) == (4, 1, 1)
        assert (rows['B']['points'], rows['B']['wins'], rows['B']['losses']) == (3, 1, 1)
        assert (rows['C']['points'], rows['C']['losses'], rows['C']['draws']) == (1, 1, 1)

    def test_goal_totals(self, group_tournament):
        rows = by_team(calculate_group_standings([played('A', 'B', 3, 1)], group_tournament))
        assert rows['A']['goals_for'] == 3
        assert rows['A']['goals_against'] == 1
        assert rows['A']['goal_difference'] == 2
        assert rows['B']['goal_difference'] == -2
        assert rows['A']['played'] == rows['B']['played'] == 1

    def test_draw_never_counts_as_win_or_loss(self, group_tournament):
        rows = by_team(calculate_group_standings([played('A', 'B', 1, 1)], group_tournament))
        for team in ('A', 'B'):
            assert rows[team]['draws'] == 1
            assert rows[team]['wins'] == 0
            assert rows[team]['losses'] == 0
            assert rows[team]['points'] == 1

    def test_only_completed_matches_count(self, group_tournament):
        in_progress = played('A', 'B', 2, 0)
        in_progress.status = 'in-progress'
        missing_score = played('A', 'C', None, 0)
        matches = [in_progress, missing_score, unplayed('B', 'C')]

        standings = calculate_group_standings(matches, group_tournament)

        assert len(standings) == 3
        assert all(row['played'] == 0 and row['points'] == 0 for row in standings)

    def test_custom_points(self):
        tournament = Tournament(id='cup', points={'win': 2, 'draw': 0, 'loss': 1})
        rows = by_team(calculate_group_standings(
            [played('A', 'B', 2, 0), played('B', 'C', 1, 1)], tournament))
        assert rows['A']['points'] == 2
        assert rows['B']['points'] == 1
        assert rows['C']['points'] == 0

    def test_goal_difference_then_goals_for(self, group_tournament):
        matches = [played('A', 'X', 3, 0), played('B', 'Y', 1, 0), played('C', 'Z', 4, 1)]
        order = [row['team'] for row in calculate_group_standings(matches, group_tournament)]
        # A and C both +3, C scored more; B only +1
        assert order[:3] == ['C', 'A', 'B']

    def test_head_to_head_breaks_tie(self, group_tournament):
        """A and B level on points, goal difference and goals; A won the direct match."""
        matches = [played('B', 'D', 1, 0), played('A', 'B', 2, 1), played('D', 'A', 1, 0)]

        order = [row['team'] for row in calculate_group_standings(matches, group_tournament)]

        assert order == ['A', 'B', 'D']

    def test_head_to_head_sums_both_legs(self):
        matches = [played('A', 'B', 2, 0), played('B', 'A', 1, 0)]
        assert build_head_to_head(matches) == {('A', 'B'): 1, ('B', 'A'): -1}


class TestAllStandings:
    """Tests for multi-group standings and advancing teams."""

    def test_partitions_by_group(self, group_tournament):
        matches = [
            played('B1', 'B2', 0, 1, group='B'),
            played('A1', 'A2', 2, 0, group='A'),
            Match(tournament='cup', round='final', bracket_id='M1', team1='A1', team2='B2'),
        ]
        standings = calculate_all_standings(matches, group_tournament)
        assert list(standings) == ['A', 'B']
        assert [row['team'] for row in standings['B']] == ['B2', 'B1']

    def test_select_advancing_teams(self, group_tournament):
        matches = [
            played('A1', 'A2', 2, 0, group='A'), played('A2', 'A3', 2, 0, group='A'),
            played('B1', 'B2', 1, 0, group='B'), played('B3', 'B2', 0, 3, group='B'),
        ]
        standings = calculate_all_standings(matches, group_tournament)
        assert select_advancing_teams(standings, 2) == ['A1', 'A2', 'B2', 'B1']
        assert select_advancing_teams(standings, 1) == ['A1', 'B2']
