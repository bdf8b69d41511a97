import os
import tempfile

# Keep database, config and log files of the test run out of the user's data dir.
os.environ.setdefault("FLOWSHARE_DATA_DIR", tempfile.mkdtemp(prefix="flowshare-tests-"))

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import flowshare.models  # noqa: F401


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    def factory():
        return Session(engine)

    return factory


class RecordingHub:
    """Stand-in for ``RealtimeHub`` that keeps published events in a list."""

    def __init__(self):
        self.events = []

    def publish(self, event, data):
        self.events.append((event, data))
        return 1

    def names(self):
        return [name for name, _ in self.events]


@pytest.fixture
def hub():
    return RecordingHub()
