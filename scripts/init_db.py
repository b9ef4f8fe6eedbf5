"""
Database initialization script - indexes for the analytics lookup paths

Run once (safe to re-run) to create indexes:
    python scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables before settings are read
load_dotenv()

import logging

from creator_analytics.db import mongo
from creator_analytics.db.indexes import create_indexes

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)

COLLECTIONS = [
    mongo.USERS,
    mongo.STORES,
    mongo.COURSES,
    mongo.DIGITAL_PRODUCTS,
    mongo.PURCHASES,
    mongo.ENROLLMENTS,
    mongo.COURSE_ANALYTICS,
    mongo.CREATOR_PIPELINE,
    mongo.ANALYTICS_EVENTS,
    mongo.COUPON_USAGES,
]


async def verify_indexes():
    """Logs the indexes and document count of every collection."""
    db = mongo.get_database()
    for name in COLLECTIONS:
        collection = db[name]
        indexes = await collection.index_information()
        count = await collection.count_documents({})
        logger.info(f"{name}: {count} documents")
        for idx_name in indexes.keys():
            if idx_name != "_id_":
                logger.info(f"    {idx_name}")


async def main():
    logger.info("=" * 60)
    logger.info("  Creator Analytics Database Setup")
    logger.info("=" * 60)

    await mongo.connect_to_mongo()
    try:
        await create_indexes()
        await verify_indexes()
        logger.info("Database initialization complete")
    finally:
        await mongo.close_mongo_connection()


if __name__ == "__main__":
    asyncio.run(main())
