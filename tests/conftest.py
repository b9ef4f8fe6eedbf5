"""
Shared fixtures: a mongomock database behind the Motor collection getters.

Tests seed and inspect documents through the synchronous mongomock database
returned by the `db` fixture. Services read the same documents through
MotorDatabaseView, which exposes the awaitable Motor call shapes they use.
"""

import mongomock
import pytest

from creator_analytics.db import mongo
from factories import NOW

AWAITABLE_METHODS = frozenset({
    "find_one",
    "insert_one",
    "insert_many",
    "update_one",
    "count_documents",
    "delete_many",
    "create_index",
    "index_information",
})


class MotorCursorView:
    def __init__(self, cursor):
        self._cursor = cursor

    def sort(self, key_or_list, direction=None):
        self._cursor.sort(key_or_list, direction)
        return self

    def limit(self, n):
        self._cursor.limit(n)
        return self

    async def to_list(self, length=None):
        docs = list(self._cursor)
        return docs[:length] if length else docs


class MotorCollectionView:
    def __init__(self, collection):
        self.delegate = collection
        self.name = collection.name

    def find(self, *args, **kwargs):
        return MotorCursorView(self.delegate.find(*args, **kwargs))

    def __getattr__(self, name):
        if name not in AWAITABLE_METHODS:
            raise AttributeError(name)
        method = getattr(self.delegate, name)

        async def call(*args, **kwargs):
            return method(*args, **kwargs)

        return call


class MotorDatabaseView:
    def __init__(self, database):
        self.delegate = database

    def __getitem__(self, name):
        return MotorCollectionView(self.delegate[name])


@pytest.fixture
def db(monkeypatch):
    """Fresh mongomock database installed behind the collection getters."""
    database = mongomock.MongoClient()["creator_analytics_test"]
    monkeypatch.setattr(mongo, "_database", MotorDatabaseView(database))
    return database


@pytest.fixture
def now():
    return NOW
