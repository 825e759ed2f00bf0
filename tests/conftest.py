import pytest

from pubcal import create_app
from pubcal.config import PubcalConfig
from pubcal.processing.calendar_manager import CalendarManager


@pytest.fixture
def config(tmp_path):
    """Configuration with every directory under tmp_path."""
    return PubcalConfig(
        calendar_dir=tmp_path / "calendars",
        record_dir=tmp_path / "records",
        log_dir=tmp_path / "logs",
    )


@pytest.fixture
def manager(config):
    """Calendar manager on file-backed stores."""
    return CalendarManager.from_config(config)


@pytest.fixture
def sample_payload():
    """Calendar payload with one event, as a client would send it."""
    return {
        "title": "Team Calendar",
        "description": "Shared team events",
        "tags": ["team", "work"],
        "created_by": "alice",
        "events": [
            {
                "summary": "Kickoff",
                "start": "2024-01-01T10:00:00Z",
                "end": "2024-01-01T11:00:00Z",
                "location": "Room 1",
            }
        ],
    }


@pytest.fixture
def app(config, manager):
    """Create and configure a Flask app for testing."""
    app = create_app(config, manager)
    app.config.update({"TESTING": True})
    return app


@pytest.fixture
def client(app):
    return app.test_client()
