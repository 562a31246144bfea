from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from typing import Generator

from notification_center.core.config import settings


def make_engine(database_url: str) -> Engine:
    """
    Engine for the notification store.

    SQLite connections are shared with the worker threads ``ServiceGateway``
    runs the store on, so the same-thread check is switched off there.
    """
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, autoflush=False, autocommit=False)


engine = make_engine(settings.database_url)

SessionLocal = make_session_factory(engine)


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
