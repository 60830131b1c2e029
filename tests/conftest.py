"""
Shared pytest fixtures for bracket engine tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - skip the exhaustive property sweeps
"""
import pytest
import sys
import os
import yaml

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket.models import Team


def make_teams(count, prefix="Team"):
    """Create count teams with two players each."""
    return [
        Team(id=f"team{i}", name=f"{prefix} {i}", players=[f"Player {i}A", f"Player {i}B"])
        for i in range(1, count + 1)
    ]


@pytest.fixture
def three_teams():
    return make_teams(3)


@pytest.fixture
def eight_teams():
    return make_teams(8)


@pytest.fixture
def sixteen_teams():
    return make_teams(16)


@pytest.fixture
def client():
    """Create a test client."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the application at an empty temporary data directory."""
    import app as app_module

    data_dir = tmp_path / "data"
    data_dir.mkdir()

    monkeypatch.setattr(app_module, 'DATA_DIR', str(data_dir))
    monkeypatch.setattr(app_module, 'TEAMS_FILE', str(data_dir / "teams.yaml"))
    monkeypatch.setattr(app_module, 'TOURNAMENT_FILE', str(data_dir / "tournament.yaml"))
    monkeypatch.setattr(app_module, 'NOTIFICATIONS_FILE', str(data_dir / "notifications.yaml"))
    monkeypatch.setattr(app_module, 'SETTINGS_FILE', str(data_dir / "settings.yaml"))

    return data_dir


@pytest.fixture
def write_settings(temp_data_dir):
    """Write settings.yaml into the temporary data directory."""
    def _write(**settings):
        (temp_data_dir / "settings.yaml").write_text(yaml.dump(settings, default_flow_style=False))
    return _write
