"""
Database schema and connection management.

The source relations mirror the IMDb dataset tables (title_basics,
title_ratings, title_episode). Normalized documents live in their own
table, keyed by (collection, key), usually in a separate catalog database.
"""

from datetime import datetime
from pathlib import Path

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    create_engine,
)
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


class TitleBasics(Base):
    """One media title (movie, series, episode, ...)."""

    __tablename__ = "title_basics"

    tconst = Column(String, primary_key=True)  # tt0000001
    titletype = Column(String, nullable=False, index=True)
    primarytitle = Column(String)
    originaltitle = Column(String)
    isadult = Column(Boolean, nullable=False, default=False)
    startyear = Column(Integer)
    endyear = Column(Integer)
    runtimeminutes = Column(Integer)
    genres = Column(String)  # comma-delimited, e.g. "Drama,Romance"


class TitleRating(Base):
    """IMDb user rating of a title."""

    __tablename__ = "title_ratings"

    tconst = Column(String, ForeignKey("title_basics.tconst"), primary_key=True)
    averagerating = Column(Float)
    numvotes = Column(Integer)


class TitleEpisode(Base):
    """Links an episode title to its parent series."""

    __tablename__ = "title_episode"

    tconst = Column(String, ForeignKey("title_basics.tconst"), primary_key=True)
    parenttconst = Column(String, nullable=False, index=True)
    seasonnumber = Column(Integer)
    episodenumber = Column(Integer)


class CatalogDocument(Base):
    """Denormalized document stored by key within a collection."""

    __tablename__ = "catalog_documents"

    collection = Column(String, primary_key=True)
    key = Column(String, primary_key=True)
    document = Column(JSON, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


def _ensure_sqlite_dir(url: str) -> None:
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)


def init_database(url: str) -> None:
    """
    Initialize database and create tables.

    Args:
        url: SQLAlchemy database URL (e.g. sqlite:///data/catalog.db)
    """
    _ensure_sqlite_dir(url)
    engine = create_engine(url)
    Base.metadata.create_all(engine)


def get_session_factory(url: str) -> sessionmaker:
    """
    Get a session factory bound to the database.

    Args:
        url: SQLAlchemy database URL

    Returns:
        sessionmaker producing SQLAlchemy sessions
    """
    engine = create_engine(url)
    return sessionmaker(bind=engine)


def get_session(url: str):
    """
    Get database session.

    Args:
        url: SQLAlchemy database URL

    Returns:
        SQLAlchemy session
    """
    return get_session_factory(url)()
