"""
Seed the course catalog on first run (idempotent).

Seeding is best-effort: failures come back inside the SeedResult instead of
being raised, so startup can continue with an empty catalog.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from pymongo.database import Database

from database import COURSE_COLLECTION, count_documents, create_documents
from errors import SeedFailure, StorageOperationError

logger = logging.getLogger(__name__)


INITIAL_COURSES = [
    {
        "title": "English Basics",
        "instructor": "John Doe",
        "category": "English",
        "location": "USA",
        "price": 49.99,
        "rating": 4.5,
        "spaces": 10,
        "cover": "https://cdn-icons-png.flaticon.com/512/3135/3135715.png",
    },
    {
        "title": "French Advanced",
        "instructor": "Marie Curie",
        "category": "French",
        "location": "France",
        "price": 79.99,
        "rating": 4.8,
        "spaces": 8,
        "cover": "https://cdn-icons-png.flaticon.com/512/1048/1048949.png",
    },
    {
        "title": "Spanish Beginner",
        "instructor": "Carlos Lopez",
        "category": "Spanish",
        "location": "Spain",
        "price": 39.99,
        "rating": 4.2,
        "spaces": 12,
        "cover": "https://cdn-icons-png.flaticon.com/512/1048/1048953.png",
    },
]


@dataclass
class SeedResult:
    skipped: bool = False
    inserted: int = 0
    existing: int = 0
    error: Optional[SeedFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def seed_courses(db: Database, skip: bool = False) -> SeedResult:
    """Insert INITIAL_COURSES when the course collection is empty."""
    if skip:
        return SeedResult(skipped=True)

    try:
        count = count_documents(db, COURSE_COLLECTION)
        if count > 0:
            return SeedResult(existing=count)
        logger.info("📥 Seeding sample courses...")
        inserted = create_documents(db, COURSE_COLLECTION, INITIAL_COURSES)
    except StorageOperationError as e:
        return SeedResult(error=SeedFailure(e.message))
    return SeedResult(inserted=len(inserted))


def log_seed_result(result: SeedResult) -> None:
    if result.skipped:
        logger.warning("⚠️ Skipping DB seed in CI environment")
    elif result.error is not None:
        logger.warning(f"⚠️ Cannot preload courses: {result.error}")
    elif result.inserted:
        logger.info(f"✅ Courses added ({result.inserted}).")
    else:
        logger.info(f"ℹ️ Courses already exist ({result.existing}). Skipping seed.")
