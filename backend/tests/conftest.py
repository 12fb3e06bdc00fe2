# tests/conftest.py
import os
from datetime import datetime

# Set environment variables for testing before the app modules read them
os.environ.setdefault("SECRET_KEY", "testing_secret_key_for_development_only")
os.environ.setdefault("SMTP_USERNAME", "")
os.environ.setdefault("SMTP_PASSWORD", "")

import mongomock
import pytest
from fastapi.testclient import TestClient

import leave_portal.db as db_module
from leave_portal.services.auth_service import create_access_token, hash_password
from leave_portal.utils.ws_manager import manager
from main import app

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)


# ---------------------------------------------------------------------------
# Async facade over mongomock so the routes can keep awaiting Motor-style calls
# ---------------------------------------------------------------------------

class AsyncCursor:
    def __init__(self, cursor):
        self._cursor = cursor

    def sort(self, *args, **kwargs):
        self._cursor = self._cursor.sort(*args, **kwargs)
        return self

    def skip(self, count):
        self._cursor = self._cursor.skip(count)
        return self

    def limit(self, count):
        self._cursor = self._cursor.limit(count)
        return self

    async def to_list(self, length=None):
        docs = list(self._cursor)
        return docs if length is None else docs[:length]


class AsyncCollection:
    def __init__(self, collection):
        self._collection = collection

    def find(self, *args, **kwargs):
        return AsyncCursor(self._collection.find(*args, **kwargs))

    def aggregate(self, pipeline, **kwargs):
        return AsyncCursor(self._collection.aggregate(pipeline, **kwargs))

    def __getattr__(self, name):
        attr = getattr(self._collection, name)
        if not callable(attr):
            return attr

        async def call(*args, **kwargs):
            return attr(*args, **kwargs)
        return call


class AsyncDatabase:
    def __init__(self, database):
        self.sync = database

    def __getitem__(self, name):
        return AsyncCollection(self.sync[name])

    async def command(self, name, *args, **kwargs):
        return {"ok": 1.0}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mongo(monkeypatch):
    """Fresh in-memory database per test; returns the synchronous mongomock handle for seeding."""
    database = mongomock.MongoClient().get_database("leave_management_test")
    monkeypatch.setattr(db_module, "db", AsyncDatabase(database))
    return database


@pytest.fixture
def client(mongo):
    manager.active_connections.clear()
    with TestClient(app) as c:
        yield c
    manager.active_connections.clear()


@pytest.fixture
def make_user(mongo):
    counter = {"n": 0}

    def _make_user(role="employee", department="Engineering", name=None, leave_balance=None, **extra):
        counter["n"] += 1
        doc = {
            "name": name or f"{role.title()} {counter['n']}",
            "email": f"{role}{counter['n']}@acme.io",
            "hashed_password": PASSWORD_HASH,
            "role": role,
            "department": department,
            "leaveBalance": leave_balance if leave_balance is not None else {"annual": 20, "sick": 10, "casual": 5},
            "createdAt": datetime.utcnow(),
        }
        doc.update(extra)
        doc["_id"] = mongo["users"].insert_one(doc).inserted_id
        return doc

    return _make_user


def auth_headers(user: dict) -> dict:
    token = create_access_token({"sub": str(user["_id"])})
    return {"Authorization": f"Bearer {token}"}


class RecordingSocket:
    """Stands in for a connected browser socket."""

    def __init__(self):
        self.messages = []

    async def send_json(self, payload):
        self.messages.append(payload)

    async def close(self, *args, **kwargs):
        pass
