"""
MongoDB access for the course store.

Collections are named after the lowercased schema class: ``course`` and
``order``. Connection state lives in an explicit ``AppContext`` built once at
startup and handed to request handlers; there is no module-level client.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from bson.errors import BSONError
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from config import DEFAULT_DATABASE_NAME, Settings
from errors import StorageOperationError, StorageUnavailable

logger = logging.getLogger(__name__)

COURSE_COLLECTION = "course"
ORDER_COLLECTION = "order"

# How long a single attempt waits for a server before counting as failed
SERVER_SELECTION_TIMEOUT_MS = 2000


def connect_with_retry(
    uri: str,
    retries: int = 10,
    delay_ms: int = 2000,
    client_factory: Callable[..., MongoClient] = MongoClient,
) -> MongoClient:
    """
    Connect to MongoDB, retrying ``retries`` times with a constant delay.

    Each attempt builds a client and pings the server; the client is only
    returned once the ping succeeds. Raises StorageUnavailable carrying the
    last driver error when every attempt fails.
    """
    last_error: Optional[BaseException] = None
    for attempt in range(1, retries + 1):
        client = None
        try:
            client = client_factory(uri, serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS, tz_aware=True)
            client.admin.command("ping")
            logger.info("✅ MongoDB connected")
            return client
        except PyMongoError as e:
            last_error = e
            if client is not None:
                client.close()
            logger.info(f"MongoDB not ready, retrying in {delay_ms}ms... ({attempt}/{retries})")
            time.sleep(delay_ms / 1000)
    raise StorageUnavailable(last_error, retries)


@dataclass
class AppContext:
    """Everything a request handler needs: settings plus the live database."""

    settings: Settings
    client: MongoClient
    db: Database

    def close(self) -> None:
        self.client.close()
        logger.info("MongoDB connection closed")


def open_context(settings: Settings, client_factory: Callable[..., MongoClient] = MongoClient) -> AppContext:
    client = connect_with_retry(
        settings.mongo_uri,
        retries=settings.connect_retries,
        delay_ms=settings.connect_delay_ms,
        client_factory=client_factory,
    )
    db = client.get_default_database(DEFAULT_DATABASE_NAME)
    return AppContext(settings=settings, client=client, db=db)


@contextmanager
def storage_errors():
    """Re-raise driver and BSON encoding failures as StorageOperationError."""
    try:
        yield
    except (PyMongoError, BSONError, OverflowError) as e:
        raise StorageOperationError(str(e)) from e


def create_document(db: Database, collection_name: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Insert ``data`` and return the stored document including its ``_id``."""
    doc = dict(data)
    with storage_errors():
        result = db[collection_name].insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


def create_documents(db: Database, collection_name: str, data: List[Dict[str, Any]]) -> List[Any]:
    docs = [dict(d) for d in data]
    with storage_errors():
        result = db[collection_name].insert_many(docs)
    return list(result.inserted_ids)


def get_documents(
    db: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Documents in whatever order the store returns them."""
    with storage_errors():
        cursor = db[collection_name].find(filter_dict or {})
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)


def count_documents(db: Database, collection_name: str) -> int:
    with storage_errors():
        return db[collection_name].count_documents({})


def serialize_document(doc: Dict[str, Any]) -> Dict[str, Any]:
    # Convert ObjectId to str
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    # BSON dates are UTC; render one ISO form whether or not the client is tz-aware
    for key, value in doc.items():
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            doc[key] = value.astimezone(timezone.utc).isoformat()
    return doc
