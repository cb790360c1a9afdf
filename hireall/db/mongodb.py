"""
MongoDB Connection Utility

MongoDB stores every HireAll document:
- users / subscriptions: account and plan data
- jobs / applications: the user's job board (synced from the extension)
- sponsors / soc_codes: UK visa sponsorship reference data
- contacts: contact form submissions
- cv_analyses / cover_letters / ai_resumes: AI tool history
- resume_versions: uploaded CV files and their extracted text
- cv_analysis_templates / email_templates: admin-managed content
- ai_feedback: thumbs up / down on AI output

Timestamps are stored as epoch milliseconds so the extension and the web
app can compare them without timezone handling.
"""
import logging
import time

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from hireall.core.config import get_settings

logger = logging.getLogger(__name__)

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        settings = get_settings()
        _client = MongoClient(settings.mongodb_uri, serverSelectionTimeoutMS=5000)
    return _client


def get_mongo_db() -> Database:
    """Get the application database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[get_settings().mongodb_db]
    return _db


def set_mongo_db(db: Database) -> None:
    """Swap the active database (tests point this at mongomock)."""
    global _db
    _db = db


def get_collection(name: str) -> Collection:
    """Get a collection by its key in COLLECTIONS (or a raw name)."""
    db = get_mongo_db()
    return db[COLLECTIONS.get(name, name)]


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        get_mongo_db().command("ping")
        return True
    except Exception as e:
        logger.error("MongoDB connection failed: %s", e)
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "subscriptions": "subscriptions",
    "jobs": "jobs",
    "applications": "applications",
    "sponsors": "sponsors",
    "soc_codes": "soc_codes",
    "contacts": "contacts",
    "cv_analyses": "cv_analyses",
    "cover_letters": "cover_letters",
    "cv_analysis_templates": "cv_analysis_templates",
    "resume_versions": "resume_versions",
    "ai_resumes": "ai_resumes",
    "email_templates": "email_templates",
    "ai_feedback": "ai_feedback",
}


def init_mongo_indexes():
    """
    Create indexes for better query performance.
    Call this once during app startup.
    """
    db = get_mongo_db()

    # Duplicate detection on the job board
    db[COLLECTIONS["jobs"]].create_index([("user_id", ASCENDING), ("normalized_url", ASCENDING)])
    db[COLLECTIONS["jobs"]].create_index([("user_id", ASCENDING), ("job_identifier", ASCENDING)])
    db[COLLECTIONS["jobs"]].create_index([("created_at", DESCENDING)])

    db[COLLECTIONS["applications"]].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    db[COLLECTIONS["applications"]].create_index("job_id")

    # Prefix search on normalized sponsor names
    db[COLLECTIONS["sponsors"]].create_index("search_name")
    db[COLLECTIONS["sponsors"]].create_index("is_active")

    db[COLLECTIONS["soc_codes"]].create_index("code")
    db[COLLECTIONS["contacts"]].create_index([("status", ASCENDING), ("created_at", DESCENDING)])
    db[COLLECTIONS["cv_analyses"]].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    db[COLLECTIONS["cover_letters"]].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    db[COLLECTIONS["cv_analysis_templates"]].create_index([("industry", ASCENDING), ("job_level", ASCENDING)])
    db[COLLECTIONS["resume_versions"]].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    db[COLLECTIONS["ai_resumes"]].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    db[COLLECTIONS["email_templates"]].create_index([("category", ASCENDING), ("active", ASCENDING)])
    db[COLLECTIONS["ai_feedback"]].create_index([("sentiment", ASCENDING), ("created_at", DESCENDING)])

    logger.info("MongoDB indexes created successfully")
