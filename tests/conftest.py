"""
Pytest configuration and shared fixtures.
"""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from catalogsync.database import (
    TitleBasics,
    TitleEpisode,
    TitleRating,
    get_session,
    get_session_factory,
    init_database,
)
from catalogsync.document_store import DocumentStore
from catalogsync.job_queue import RedisJobQueue
from catalogsync.logger import StructuredLogger
from catalogsync.source_store import SourceStore


class FakePipeline:
    """Buffers commands and applies them on execute()."""

    def __init__(self, redis):
        self.redis = redis
        self.commands = []

    def set(self, *args, **kwargs):
        self.commands.append(("set", args, kwargs))
        return self

    def rpush(self, *args):
        self.commands.append(("rpush", args, {}))
        return self

    def execute(self):
        commands, self.commands = self.commands, []
        return [getattr(self.redis, name)(*args, **kwargs) for name, args, kwargs in commands]


class FakeRedis:
    """In-memory stand-in for the few Redis commands the job queue uses."""

    def __init__(self):
        self.values = {}
        self.lists = {}

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    def set(self, key, value, nx=False):
        if nx and key in self.values:
            return None
        self.values[key] = value
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.values.pop(key, None) is not None:
                removed += 1
        return removed

    def rpush(self, key, *values):
        self.lists.setdefault(key, []).extend(values)
        return len(self.lists[key])

    def lpop(self, key):
        items = self.lists.get(key)
        if not items:
            return None
        return items.pop(0)

    def llen(self, key):
        return len(self.lists.get(key, []))


class BrokenRedis(FakeRedis):
    """Fails every push, as a Redis server going away mid-batch would."""

    def rpush(self, key, *values):
        raise RedisConnectionError("Connection refused")


class FlakyRedis(FakeRedis):
    """Fails the first push only, then recovers."""

    def __init__(self):
        super().__init__()
        self.failures_left = 1

    def rpush(self, key, *values):
        if self.failures_left:
            self.failures_left -= 1
            raise RedisConnectionError("Connection reset by peer")
        return super().rpush(key, *values)


def add_title(session, tconst, titletype, primarytitle, **fields):
    session.add(
        TitleBasics(
            tconst=tconst,
            titletype=titletype,
            primarytitle=primarytitle,
            originaltitle=fields.pop("originaltitle", primarytitle),
            isadult=fields.pop("isadult", False),
            **fields,
        )
    )


@pytest.fixture
def source_url(tmp_path) -> str:
    """Source database with a movie, a series, a mini-series and a short."""
    url = f"sqlite:///{tmp_path / 'source.db'}"
    init_database(url)
    session = get_session(url)

    add_title(session, "tt0000001", "movie", "Carmencita", startyear=1894,
              runtimeminutes=1, genres="Documentary,Short")
    session.add(TitleRating(tconst="tt0000001", averagerating=5.7, numvotes=1900))

    add_title(session, "tt0000002", "tvSeries", "The Show", originaltitle="Le Show",
              startyear=2000, endyear=2002, runtimeminutes=45, genres="Comedy,Drama")
    session.add(TitleRating(tconst="tt0000002", averagerating=8.1, numvotes=25000))

    # Episodes deliberately inserted out of order
    add_title(session, "tt0000012", "tvEpisode", "Pilot Part Three", runtimeminutes=44)
    add_title(session, "tt0000011", "tvEpisode", "Pilot Part Two", runtimeminutes=43)
    add_title(session, "tt0000010", "tvEpisode", "Pilot", runtimeminutes=42)
    session.add(TitleEpisode(tconst="tt0000012", parenttconst="tt0000002",
                             seasonnumber=2, episodenumber=1))
    session.add(TitleEpisode(tconst="tt0000011", parenttconst="tt0000002",
                             seasonnumber=1, episodenumber=2))
    session.add(TitleEpisode(tconst="tt0000010", parenttconst="tt0000002",
                             seasonnumber=1, episodenumber=1))

    add_title(session, "tt0000003", "short", "Untitled", genres=None)
    add_title(session, "tt0000004", "tvMiniSeries", "Short Run", startyear=2010,
              endyear=2010, genres="")
    session.add(TitleRating(tconst="tt0000004", averagerating=None, numvotes=12))

    session.commit()
    session.close()
    return url


@pytest.fixture
def source(source_url) -> SourceStore:
    return SourceStore(get_session_factory(source_url))


@pytest.fixture
def catalog_url(tmp_path) -> str:
    url = f"sqlite:///{tmp_path / 'catalog' / 'catalog.db'}"
    init_database(url)
    return url


@pytest.fixture
def documents(catalog_url) -> DocumentStore:
    return DocumentStore(get_session_factory(catalog_url))


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def queue(fake_redis) -> RedisJobQueue:
    return RedisJobQueue(fake_redis)


@pytest.fixture
def logger(tmp_path) -> StructuredLogger:
    """File-only logger writing under the test's temporary directory."""
    return StructuredLogger(
        name="catalogsync-test",
        level="DEBUG",
        log_dir=tmp_path / "logs",
        enable_console=False,
    )
