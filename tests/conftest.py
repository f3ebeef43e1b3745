import mongomock
import pytest
from fastapi.testclient import TestClient
from pymongo.errors import PyMongoError

from config import Settings
from database import AppContext
from main import create_app


@pytest.fixture
def settings():
    return Settings(ci=False, connect_retries=10, connect_delay_ms=2000)


@pytest.fixture
def mongo_client():
    return mongomock.MongoClient()


@pytest.fixture
def context(settings, mongo_client):
    return AppContext(settings=settings, client=mongo_client, db=mongo_client["courseStore"])


@pytest.fixture
def client(context):
    with TestClient(create_app(context=context)) as c:
        yield c


@pytest.fixture
def broken_store(monkeypatch):
    """Make every read and write against the mock store fail."""

    def fail(*args, **kwargs):
        raise PyMongoError("connection reset by peer")

    for method in ("find", "insert_one", "insert_many", "count_documents"):
        monkeypatch.setattr(mongomock.collection.Collection, method, fail)
