"""
creator_analytics/db/mongo.py

Purpose: MongoDB connection setup

- Initializes Motor client with connection pooling
- Health checks and retry logic
- Proper connection lifecycle management
- Named accessors for every collection the analytics layer reads or writes
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
from typing import Optional
import asyncio
from creator_analytics.core.config import settings
from creator_analytics.core.exceptions import ExternalServiceError
from creator_analytics.core.logging import get_logger

logger = get_logger(__name__)

# Global MongoDB client
_client: Optional[AsyncIOMotorClient] = None
_database: Optional[AsyncIOMotorDatabase] = None


USERS = "users"
STORES = "stores"
COURSES = "courses"
DIGITAL_PRODUCTS = "digital_products"
PURCHASES = "purchases"
ENROLLMENTS = "enrollments"
COURSE_ANALYTICS = "course_analytics"
CREATOR_PIPELINE = "creator_pipeline"
ANALYTICS_EVENTS = "analytics_events"
COUPONS = "coupons"
COUPON_USAGES = "coupon_usages"


async def connect_to_mongo():
    """
    Establishes connection to MongoDB with retry logic.
    Called during application startup.
    """
    global _client, _database

    if _client is not None:
        logger.warning("MongoDB client already initialized")
        return

    max_retries = 3
    retry_delay = 2

    for attempt in range(1, max_retries + 1):
        try:
            logger.info(
                f"Attempting to connect to MongoDB (attempt {attempt}/{max_retries})"
            )

            _client = AsyncIOMotorClient(
                settings.MONGODB_URL,
                maxPoolSize=50,
                minPoolSize=5,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=10000,
                retryWrites=True,
                retryReads=True,
            )

            _database = _client[settings.MONGODB_DB_NAME]

            # Verify connection
            await _client.admin.command("ping")

            logger.info(
                f"✅ Successfully connected to MongoDB: {settings.MONGODB_DB_NAME}"
            )
            return

        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error(
                f"Failed to connect to MongoDB (attempt {attempt}/{max_retries}): {e}"
            )
            _client = None
            _database = None

            if attempt < max_retries:
                logger.info(f"Retrying in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
                retry_delay *= 2  # Exponential backoff
            else:
                logger.critical("Failed to connect to MongoDB after all retries")
                raise ConnectionError("Could not establish MongoDB connection") from e


async def close_mongo_connection():
    """
    Closes the MongoDB connection.
    Called during application shutdown.
    """
    global _client, _database

    if _client:
        logger.info("Closing MongoDB connection")
        _client.close()
        _client = None
        _database = None
        logger.info("MongoDB connection closed")


async def check_database_health() -> bool:
    """
    Checks if the database connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        if _client is None:
            logger.error("MongoDB client not initialized")
            return False

        await _client.admin.command("ping")
        return True

    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        return False


def get_database() -> AsyncIOMotorDatabase:
    """
    Returns the MongoDB database instance.

    Raises:
        ExternalServiceError: If database is not initialized
    """
    if _database is None:
        raise ExternalServiceError(
            "Database not initialized. Call connect_to_mongo() during startup."
        )
    return _database


def get_collection(name: str) -> AsyncIOMotorCollection:
    """Returns a collection by name from the initialized database."""
    return get_database()[name]


def get_users_collection() -> AsyncIOMotorCollection:
    """
    Platform accounts, keyed by `clerk_id`.

    Fields: clerk_id, name, first_name, email, image_url, admin, created_at
    """
    return get_collection(USERS)


def get_stores_collection() -> AsyncIOMotorCollection:
    """One store per creator. Fields: user_id, name, slug, created_at"""
    return get_collection(STORES)


def get_courses_collection() -> AsyncIOMotorCollection:
    return get_collection(COURSES)


def get_digital_products_collection() -> AsyncIOMotorCollection:
    return get_collection(DIGITAL_PRODUCTS)


def get_purchases_collection() -> AsyncIOMotorCollection:
    """
    Purchase history. `amount` is in cents; `status` is one of
    pending / completed / refunded.
    """
    return get_collection(PURCHASES)


def get_enrollments_collection() -> AsyncIOMotorCollection:
    return get_collection(ENROLLMENTS)


def get_course_analytics_collection() -> AsyncIOMotorCollection:
    return get_collection(COURSE_ANALYTICS)


def get_creator_pipeline_collection() -> AsyncIOMotorCollection:
    """
    CRM entries for creator outreach (one per user_id).

    Fields: user_id, store_id, stage, daw, instagram_handle, tiktok_handle,
    audience_size, niche, last_touch_at, last_touch_type, next_step_note,
    assigned_to, invited_at, signed_up_at, drafting_at, published_at,
    first_sale_at, created_at, updated_at
    """
    return get_collection(CREATOR_PIPELINE)


def get_analytics_events_collection() -> AsyncIOMotorCollection:
    return get_collection(ANALYTICS_EVENTS)


def get_coupons_collection() -> AsyncIOMotorCollection:
    return get_collection(COUPONS)


def get_coupon_usages_collection() -> AsyncIOMotorCollection:
    return get_collection(COUPON_USAGES)
