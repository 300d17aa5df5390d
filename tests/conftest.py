import json

import pytest

from triage.app import create_app
from triage.config import Config
from triage.notifications import Notifier
from triage.store import MemoryStateStore, StateRepository
from triage.workspace import Workspace


@pytest.fixture
def sample_logs():
    return [
        {"id": "a1", "cabinetName": "Room1", "status": "Error", "message": "Disk full"},
        {"id": "a2", "cabinet_name": "Room1", "status": "Info", "message": "Backup done"},
        {"id": "b1", "cabinetName": "Room2", "status": "Warn", "service": "printer", "tray": 2},
        {"cabinetName": "Room2", "status": "Success", "summary": "Login ok"},
    ]


@pytest.fixture
def sample_upload(sample_logs):
    return json.dumps(sample_logs)


@pytest.fixture
def config():
    return Config(environ={})


@pytest.fixture
def store():
    return MemoryStateStore()


@pytest.fixture
def repository(store):
    return StateRepository(store)


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def workspace(repository, notifier):
    ws = Workspace(repository, notifier)
    ws.refresh()
    return ws


@pytest.fixture
def app(config, store):
    """Create a Flask test app backed by the in-memory store."""
    application = create_app(config, store=store)
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    """Create a Flask test client."""
    return app.test_client()
