"""
Unit tests for the group stage command line script.
"""
import pytest
import sys
import os
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from competition.errors import NoTeamsError
from generate_matches import load_teams, generate_group_stage, format_group_stage, main


class TestLoadTeams:
    """Tests for reading roster files."""

    def test_plain_list(self, tmp_path):
        path = tmp_path / "summer.yaml"
        path.write_text(yaml.dump(['Lions', 'Tigers', 'Bears']))

        tournament, teams = load_teams(str(path))

        assert tournament.id == 'summer'
        assert tournament.teams_per_group == 4
        assert [t.id for t in teams] == ['Lions', 'Tigers', 'Bears']
        assert all(t.tournament == 'summer' for t in teams)

    def test_mapping_with_settings(self, tmp_path):
        path = tmp_path / "roster.yaml"
        path.write_text(yaml.dump({
            'tournament': {'id': 'cup', 'groups_stage_settings': {'teams_per_group': 3,
                                                                   'matches_per_team_in_group': 2}},
            'teams': ['a', 'b', 'c'],
        }))

        tournament, teams = load_teams(str(path))

        assert tournament.id == 'cup'
        assert tournament.teams_per_group == 3
        assert tournament.legs == 2
        assert len(teams) == 3

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        _, teams = load_teams(str(path))
        assert teams == []


class TestGenerateGroupStage:
    """Tests for generation and printing."""

    def test_seed_is_reproducible(self, tmp_path):
        path = tmp_path / "cup.yaml"
        path.write_text(yaml.dump([f"T{i}" for i in range(8)]))
        tournament, teams = load_teams(str(path))

        first_groups, first = generate_group_stage(tournament, teams, seed=3)
        second_groups, second = generate_group_stage(tournament, teams, seed=3)

        assert {k: [t.id for t in v] for k, v in first_groups.items()} == \
               {k: [t.id for t in v] for k, v in second_groups.items()}
        assert [(m.team1, m.team2, m.matchday) for m in first] == \
               [(m.team1, m.team2, m.matchday) for m in second]
        assert len(first) == 12

    def test_no_teams(self, group_tournament):
        with pytest.raises(NoTeamsError):
            generate_group_stage(group_tournament, [])

    def test_format_group_stage(self, tmp_path, group_tournament, fixed_rng):
        from competition.groups import generate_groups, generate_group_stage_matches
        path = tmp_path / "cup.yaml"
        path.write_text(yaml.dump(['a', 'b', 'c', 'd']))
        _, teams = load_teams(str(path))

        groups, _ = generate_groups(group_tournament, teams, rng=fixed_rng)
        matches = generate_group_stage_matches(group_tournament, groups)

        lines = format_group_stage(groups, matches)

        assert lines == [
            "# Group A: a, b, c, d",
            "## Matchday 1",
            "a vs b",
            "c vs d",
            "## Matchday 2",
            "a vs c",
            "b vs d",
            "## Matchday 3",
            "a vs d",
            "b vs c",
        ]

    def test_blank_line_between_groups(self, group_tournament, fixed_rng):
        from competition.groups import generate_groups, generate_group_stage_matches
        from competition.models import Team
        teams = [Team(id=name) for name in ('a', 'b', 'c', 'd', 'e', 'f')]
        groups, _ = generate_groups(group_tournament, teams, rng=fixed_rng)
        matches = generate_group_stage_matches(group_tournament, groups)

        lines = format_group_stage(groups, matches)

        assert lines[0] == "# Group A: a, c, e"
        assert "" in lines
        assert lines[lines.index("") + 1] == "# Group B: b, d, f"


class TestMain:
    """Tests for the script entry point."""

    def test_main_prints_groups(self, tmp_path, monkeypatch, capsys):
        path = tmp_path / "cup.yaml"
        path.write_text(yaml.dump(['a', 'b', 'c']))
        monkeypatch.setattr(sys, 'argv', ['generate_matches.py', str(path), '1'])

        main()

        out = capsys.readouterr().out
        assert out.startswith("# Group A:")
        assert out.count(" vs ") == 3

    def test_main_without_teams(self, tmp_path, monkeypatch, capsys):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        monkeypatch.setattr(sys, 'argv', ['generate_matches.py', str(path)])

        main()

        assert "No teams found" in capsys.readouterr().err
