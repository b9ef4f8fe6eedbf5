"""
creator_analytics/db/indexes.py

Purpose: Database index management

- Creates unique and lookup indexes used by the analytics queries
- Idempotent: safe to run on every startup
"""

from pymongo import ASCENDING, DESCENDING

from creator_analytics.db.mongo import (
    get_users_collection,
    get_stores_collection,
    get_courses_collection,
    get_digital_products_collection,
    get_purchases_collection,
    get_enrollments_collection,
    get_course_analytics_collection,
    get_creator_pipeline_collection,
    get_analytics_events_collection,
    get_coupon_usages_collection,
)
from creator_analytics.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes for optimal performance.
    This function is idempotent - safe to run multiple times.
    """
    try:
        users = get_users_collection()
        stores = get_stores_collection()
        courses = get_courses_collection()
        products = get_digital_products_collection()
        purchases = get_purchases_collection()
        enrollments = get_enrollments_collection()
        course_analytics = get_course_analytics_collection()
        pipeline = get_creator_pipeline_collection()
        events = get_analytics_events_collection()
        coupon_usages = get_coupon_usages_collection()

        logger.info("Creating database indexes...")

        # ==============================================
        # ACCOUNTS & STORES
        # ==============================================

        await users.create_index("clerk_id", name="clerk_id_idx")
        await users.create_index("created_at", name="users_created_idx")
        logger.debug("Created indexes on users")

        await stores.create_index("user_id", name="store_user_idx")
        await stores.create_index("slug", name="store_slug_idx")
        logger.debug("Created indexes on stores")

        # ==============================================
        # CONTENT
        # ==============================================

        await courses.create_index("user_id", name="course_user_idx")
        await products.create_index("store_id", name="product_store_idx")
        await products.create_index("user_id", name="product_user_idx")
        await course_analytics.create_index("course_id", name="course_analytics_course_idx")
        logger.debug("Created indexes on content collections")

        # ==============================================
        # COMMERCE
        # ==============================================

        await purchases.create_index(
            [("store_id", ASCENDING), ("status", ASCENDING)],
            name="purchase_store_status_idx"
        )
        await purchases.create_index(
            [("admin_user_id", ASCENDING), ("created_at", DESCENDING)],
            name="purchase_admin_user_created_idx"
        )
        await purchases.create_index("course_id", name="purchase_course_idx")
        await purchases.create_index("product_id", name="purchase_product_idx")
        await purchases.create_index("created_at", name="purchase_created_idx")
        await enrollments.create_index("course_id", name="enrollment_course_idx")
        await enrollments.create_index("created_at", name="enrollment_created_idx")
        await enrollments.create_index(
            [("user_id", ASCENDING), ("course_id", ASCENDING)],
            name="enrollment_user_course_idx"
        )
        await coupon_usages.create_index(
            [("used_at", DESCENDING)],
            name="coupon_usage_used_at_idx"
        )
        logger.debug("Created indexes on commerce collections")

        # ==============================================
        # CREATOR PIPELINE
        # ==============================================

        await pipeline.create_index("user_id", unique=True, name="pipeline_user_unique")
        await pipeline.create_index(
            [("stage", ASCENDING), ("updated_at", DESCENDING)],
            name="pipeline_stage_updated_idx"
        )
        for stage_field in ("drafting_at", "published_at"):
            await pipeline.create_index(
                [("stage", ASCENDING), (stage_field, ASCENDING)],
                name=f"pipeline_stage_{stage_field}_idx"
            )
        logger.debug("Created indexes on creator_pipeline")

        # ==============================================
        # ANALYTICS EVENTS
        # ==============================================

        await events.create_index(
            [("user_id", ASCENDING), ("event_type", ASCENDING)],
            name="event_user_type_idx"
        )
        await events.create_index(
            [("store_id", ASCENDING), ("event_type", ASCENDING)],
            name="event_store_type_idx"
        )
        await events.create_index("timestamp", name="event_timestamp_idx")
        logger.debug("Created indexes on analytics_events")

        logger.info("✅ All database indexes created successfully")

        pipeline_indexes = await pipeline.index_information()
        event_indexes = await events.index_information()
        logger.info(
            f"Index summary: Pipeline={len(pipeline_indexes)}, "
            f"Events={len(event_indexes)}"
        )

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise


if __name__ == "__main__":
    """
    Run this module directly to create indexes manually.
    """
    import asyncio
    from creator_analytics.db.mongo import connect_to_mongo, close_mongo_connection

    async def main():
        await connect_to_mongo()
        await create_indexes()
        await close_mongo_connection()

    asyncio.run(main())
