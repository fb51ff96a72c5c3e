import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_db_engine(database_url: str):
    """Create an engine; SQLite needs check_same_thread off for the scheduler thread"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    return create_engine(
        database_url,
        connect_args=connect_args,
        pool_pre_ping=True,  # Test connections before using
        echo=False,
    )


def create_session_factory(bind) -> sessionmaker:
    # Records are handed to the scheduler and API after their session closes
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=bind)


def init_db(bind):
    """Create all tables"""
    # Import models so they register on Base.metadata
    from app import models  # noqa: F401

    Base.metadata.create_all(bind=bind)
    logger.info("Database tables ready")
