# infrastructure/database/connection.py
"""
Engine and session handling for the survey store.

The deployed dashboard runs on PostgreSQL; local runs and the test suite
use SQLite. The URL is resolved once per process unless a caller passes
one explicitly.
"""

import logging
import os
from contextlib import contextmanager
from typing import Dict, Generator, Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from infrastructure.utilities.common import database_url_from, load_settings

load_dotenv()

logger = logging.getLogger(__name__)

POSTGRES_DEFAULTS = {
    "POSTGRES_HOST": "localhost",
    "POSTGRES_PORT": "5432",
    "POSTGRES_DB": "eldercare_survey",
    "POSTGRES_USER": os.getenv("USER", "postgres"),
    "POSTGRES_PASSWORD": "",
}

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def get_database_url(settings: Optional[dict] = None) -> str:
    """
    Resolve the database URL.

    Order of precedence:
    1. DATABASE_URL environment variable
    2. ``database.url`` in the settings (the default config file when
       ``settings`` is not given)
    3. A PostgreSQL URL assembled from the POSTGRES_* variables
    """
    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url

    if settings is None:
        settings = load_settings()
    config_url = database_url_from(settings)
    if config_url:
        return config_url

    parts = {key: os.getenv(key, default) for key, default in POSTGRES_DEFAULTS.items()}
    credentials = parts["POSTGRES_USER"]
    if parts["POSTGRES_PASSWORD"]:
        credentials += f":{parts['POSTGRES_PASSWORD']}"
    return (
        f"postgresql://{credentials}@{parts['POSTGRES_HOST']}:"
        f"{parts['POSTGRES_PORT']}/{parts['POSTGRES_DB']}"
    )


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine with pool settings suited to the backend.

    SQLite engines get no pool sizing (its pools do not accept it). An
    in-memory SQLite database is held on a single shared connection.
    """
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            url, echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if url.startswith("sqlite"):
        return create_engine(url, echo=echo, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        echo=echo,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,  # seconds
    )


def get_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """Shared engine; passing a URL replaces it."""
    global _engine

    if _engine is None or database_url is not None:
        _engine = create_db_engine(database_url or get_database_url(), echo=echo)

    return _engine


def get_session_factory(engine: Optional[Engine] = None) -> sessionmaker:
    """Shared session factory; passing an engine rebinds it."""
    global _SessionLocal

    if _SessionLocal is None or engine is not None:
        _SessionLocal = sessionmaker(
            bind=engine or get_engine(),
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

    return _SessionLocal


def get_session() -> Session:
    """New session from the shared factory. The caller closes it."""
    return get_session_factory()()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Session that commits when the block completes and rolls back when
    it raises.

        with session_scope() as session:
            SurveyRepository(session).add_submission("2025_3월", record)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Optional[Engine] = None) -> None:
    """Create the survey tables that do not exist yet."""
    from .models import Base

    Base.metadata.create_all(bind=engine or get_engine())


def check_connection(session: Optional[Session] = None) -> bool:
    """True when a trivial query succeeds; a scoped session is used when none is given."""
    if session is None:
        with session_scope() as scoped:
            return check_connection(scoped)
    try:
        session.execute(select(1))
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        return False
    return True


def get_table_counts(session: Optional[Session] = None) -> Dict[str, int]:
    """Row count per survey table, keyed by table name."""
    from .models import Institution, SurveySubmission

    if session is None:
        with session_scope() as scoped:
            return get_table_counts(scoped)
    return {
        model.__tablename__: session.scalar(select(func.count()).select_from(model))
        for model in (Institution, SurveySubmission)
    }
