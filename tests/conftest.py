"""
Shared pytest fixtures for the bracket engine tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os
import yaml

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from competition.models import Tournament, ELIMINATION, GROUP_STAGE


class FixedOrder:
    """Random source that keeps list order and always picks the first choice."""

    def shuffle(self, items):
        pass

    def choice(self, items):
        return items[0]


@pytest.fixture
def fixed_rng():
    return FixedOrder()


@pytest.fixture
def group_tournament():
    """Group stage tournament: groups of 4, top 2 advance, single leg."""
    return Tournament(id='cup', format=GROUP_STAGE, teams_per_group=4,
                      teams_advancing_per_group=2, matches_per_team_in_group=1)


@pytest.fixture
def knockout_tournament():
    """Elimination tournament with single-game matches."""
    return Tournament(id='knockout', format=ELIMINATION, best_of_matches=1)


@pytest.fixture
def best_of_three():
    return Tournament(id='series', format=ELIMINATION, best_of_matches=3)


@pytest.fixture
def client():
    """Create a Flask test client."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the app at an empty tournaments directory."""
    import app as app_module

    tournaments_dir = tmp_path / "tournaments"
    tournaments_dir.mkdir()
    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    monkeypatch.setattr(app_module, 'TOURNAMENTS_DIR', str(tournaments_dir))
    return tournaments_dir


@pytest.fixture
def make_tournament(temp_data_dir):
    """Write tournament.yaml and teams.yaml for a tournament id."""
    def _make(tournament_id, settings, team_names):
        tournament_dir = temp_data_dir / tournament_id
        tournament_dir.mkdir(parents=True, exist_ok=True)
        (tournament_dir / "tournament.yaml").write_text(yaml.dump(settings, default_flow_style=False))
        (tournament_dir / "teams.yaml").write_text(yaml.dump(list(team_names), default_flow_style=False))
        return tournament_dir
    return _make
