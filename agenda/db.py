# agenda/db.py

import logging

from sqlmodel import SQLModel, create_engine, Session

from agenda.config import get_settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str, echo: bool = False, timeout: float = 5.0):
    connect_args = {}
    if database_url.startswith("sqlite"):
        # required for SQLite + FastAPI; timeout bounds waits on the file lock
        connect_args = {"check_same_thread": False, "timeout": timeout}
    return create_engine(database_url, echo=echo, connect_args=connect_args)


settings = get_settings()
engine = build_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO, timeout=settings.DB_TIMEOUT_SECONDS)


def init_db(bind=None) -> None:
    # models must be imported so their tables are registered on the metadata
    from agenda import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
    logger.info("Database tables ensured")


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
