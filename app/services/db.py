import os

import motor.motor_asyncio
from dotenv import load_dotenv
from pymongo import ASCENDING, DESCENDING

from app.utils.logging_config import get_logger

logger = get_logger(__name__)

load_dotenv()

MONGO_DETAILS = os.getenv("MONGO_DETAILS", "mongodb://localhost:27017")
DB_NAME = os.getenv("DB_NAME", "job_portal")

# motor connects lazily, so this never blocks on the server
client = motor.motor_asyncio.AsyncIOMotorClient(MONGO_DETAILS)
db = client[DB_NAME]
logger.info(f"Mongo client created for database {DB_NAME}")

users_coll = db["users"]
jobs_coll = db["jobs"]
posts_coll = db["posts"]


async def _create_index(coll, keys, name: str, **kwargs):
    try:
        await coll.create_index(keys, **kwargs)
        logger.debug(f"Created index on {name}")
    except Exception as e:
        if "already exists" in str(e).lower():
            logger.debug(f"Index on {name} already exists")
        else:
            logger.warning(f"Could not create index on {name}: {e}")


async def init_indexes():
    """Index initialization for collections."""
    logger.info("Starting database index initialization")

    # Users - ids and emails are unique, search filters are plain indexes
    await _create_index(users_coll, [("user_id", ASCENDING)], "users.user_id", unique=True)
    await _create_index(users_coll, [("email", ASCENDING)], "users.email", unique=True)
    await _create_index(users_coll, [("skills.name", ASCENDING)], "users.skills.name")
    await _create_index(users_coll, [("location.city", ASCENDING)], "users.location.city")
    await _create_index(users_coll, [("connections.connection_id", ASCENDING)], "users.connections.connection_id")

    # Jobs - listing is filtered on status and sorted by creation date
    await _create_index(jobs_coll, [("job_id", ASCENDING)], "jobs.job_id", unique=True)
    await _create_index(jobs_coll, [("status", ASCENDING), ("created_at", DESCENDING)], "jobs.(status, created_at)")
    await _create_index(jobs_coll, [("employer_id", ASCENDING)], "jobs.employer_id")
    await _create_index(jobs_coll, [("skills.name", ASCENDING)], "jobs.skills.name")
    await _create_index(jobs_coll, [("applications.applicant_id", ASCENDING)], "jobs.applications.applicant_id")

    # Posts - the feed reads newest first per visibility
    await _create_index(posts_coll, [("post_id", ASCENDING)], "posts.post_id", unique=True)
    await _create_index(posts_coll, [("author_id", ASCENDING), ("created_at", DESCENDING)], "posts.(author_id, created_at)")
    await _create_index(posts_coll, [("visibility", ASCENDING), ("created_at", DESCENDING)], "posts.(visibility, created_at)")
    await _create_index(posts_coll, [("tags", ASCENDING)], "posts.tags")

    logger.info("Database index initialization completed")


def to_dict(doc):
    """Strip the mongo ObjectId so documents can be returned as JSON."""
    if not doc:
        return None
    doc.pop("_id", None)
    return doc
