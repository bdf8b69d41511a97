# flowshare/storage/db.py
from sqlmodel import SQLModel, create_engine, Session

from flowshare.core.settings import DB_PATH

# Ensure SQLModel metadata is populated
import flowshare.models  # noqa: F401
from flowshare.storage import migrations


_engine = create_engine(
    f"sqlite:///{DB_PATH.as_posix()}",
    echo=False,
    connect_args={"check_same_thread": False},
)


def init_db(engine=None):
    target = engine or _engine
    if engine is None:
        DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(target)
    migrations.run_all(target)


def get_engine():
    return _engine


def get_session() -> Session:
    return Session(_engine)
