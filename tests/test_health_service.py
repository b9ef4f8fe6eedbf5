import pytest

from creator_analytics.core.exceptions import ResourceNotFoundError
from creator_analytics.pipeline.stages import BulkEmailFilter, LeaderboardSort
from creator_analytics.services import health_service
from factories import (
    add_course,
    add_enrollment,
    add_pipeline_entry,
    add_product,
    add_purchase,
    add_store,
    add_user,
    days_before,
)


def seed(db):
    # big: high revenue, recent sales, rated course with enrollments
    add_user(db, "big", image_url="https://img/big.png")
    big_store = add_store(db, "big")
    big_course = add_course(db, "big", big_store, is_published=True)
    db["course_analytics"].insert_one({"course_id": str(big_course["_id"]), "avg_rating": 4.6})
    for i in range(12):
        add_enrollment(db, f"student_{i}", big_course)
    add_purchase(db, big_store, "b1", amount=150000, days_ago=2)

    # quiet: sold once, 45 days ago, three products
    add_user(db, "quiet")
    quiet_store = add_store(db, "quiet")
    for _ in range(3):
        add_product(db, quiet_store, is_published=True)
    add_purchase(db, quiet_store, "b2", amount=5000, days_ago=45)

    # newbie: new store, published course, never sold
    add_user(db, "newbie", email=None)
    newbie_store = add_store(db, "newbie", created_at=days_before(5))
    add_course(db, "newbie", newbie_store, is_published=True)

    # orphan store with no user record
    add_store(db, "orphan")


@pytest.mark.asyncio
async def test_leaderboard_by_revenue(db, now):
    seed(db)
    add_pipeline_entry(db, "big", "active")

    rows = await health_service.get_creator_leaderboard(now=now)

    assert [row["user_id"] for row in rows] == ["big", "quiet", "newbie"]
    assert [row["rank"] for row in rows] == [1, 2, 3]

    top = rows[0]
    assert top["id"] is not None
    assert top["total_revenue"] == 1500.0
    assert top["revenue_this_month"] == 1500.0
    assert top["total_enrollments"] == 12
    assert top["average_rating"] == 4.6
    assert top["course_count"] == 1
    assert top["product_count"] == 0
    assert top["user_avatar"] == "https://img/big.png"
    # 20 revenue + 25 recent + 10 diversity + 15 rating + 4 engagement
    assert top["health_score"] == 74
    assert top["health_status"] == "good"
    assert top["onboarding_progress"] == 100
    assert rows[1]["id"] is None


@pytest.mark.asyncio
async def test_leaderboard_sort_and_limit(db, now):
    seed(db)

    by_products = await health_service.get_creator_leaderboard(
        limit=2, sort_by=LeaderboardSort.PRODUCTS, now=now
    )
    assert [row["user_id"] for row in by_products] == ["quiet", "big"]
    assert [row["rank"] for row in by_products] == [1, 2]

    by_enrollments = await health_service.get_creator_leaderboard(
        sort_by=LeaderboardSort.ENROLLMENTS, now=now
    )
    assert by_enrollments[0]["user_id"] == "big"


@pytest.mark.asyncio
async def test_leaderboard_name_falls_back_to_email(db, now):
    add_user(db, "anon", name=None, email="anon@example.com")
    add_store(db, "anon")

    rows = await health_service.get_creator_leaderboard(now=now)
    assert rows[0]["user_name"] == "anon@example.com"


@pytest.mark.asyncio
async def test_creators_needing_attention_sorted_by_severity(db, now):
    seed(db)
    add_user(db, "gone")
    gone_store = add_store(db, "gone")
    add_purchase(db, gone_store, "b3", amount=1000, days_ago=80)

    rows = await health_service.get_creators_needing_attention(now=now)

    assert [row["user_id"] for row in rows] == ["gone", "quiet", "newbie"]
    assert rows[0]["severity"] == "high"
    assert rows[0]["issue"] == "No sales in 80 days"
    assert rows[1]["severity"] == "medium"
    assert rows[1]["issue"] == "No sales in 45 days"
    assert rows[2]["issue"] == "Published course(s) with no sales"
    assert rows[2]["health_score"] == 30


@pytest.mark.asyncio
@pytest.mark.parametrize("audience,expected", [
    (BulkEmailFilter.ALL, ["big", "quiet"]),
    (BulkEmailFilter.NO_SALES_30D, ["quiet"]),
    (BulkEmailFilter.TOP_PERFORMERS, ["big"]),
    (BulkEmailFilter.LOW_HEALTH, []),
    (BulkEmailFilter.NEW_CREATORS, []),
])
async def test_bulk_email_filters(db, now, audience, expected):
    seed(db)

    rows = await health_service.get_creators_for_bulk_email(audience, now=now)
    assert [row["user_id"] for row in rows] == expected


@pytest.mark.asyncio
async def test_bulk_email_low_health_and_new_creators(db, now):
    add_user(db, "fresh")
    fresh_store = add_store(db, "fresh", created_at=days_before(3))
    add_course(db, "fresh", fresh_store)

    low = await health_service.get_creators_for_bulk_email(BulkEmailFilter.LOW_HEALTH, now=now)
    new = await health_service.get_creators_for_bulk_email(BulkEmailFilter.NEW_CREATORS, now=now)

    assert [row["user_id"] for row in low] == ["fresh"]
    assert [row["user_id"] for row in new] == ["fresh"]
    assert low[0]["product_count"] == 1
    assert low[0]["last_sale_at"] is None


@pytest.mark.asyncio
async def test_onboarding_status_progress(db):
    add_user(db, "creator", created_at=days_before(30))
    store = add_store(db, "creator", created_at=days_before(29))
    add_course(db, "creator", store, is_published=True,
               created_at=days_before(20), published_at=days_before(15))
    add_course(db, "creator", store, created_at=days_before(25))

    status = await health_service.get_creator_onboarding_status("creator")

    steps = {step["id"]: step for step in status["steps"]}
    assert [step["id"] for step in status["steps"]] == ["account", "store", "product", "publish", "first_sale"]
    assert steps["account"]["completed_at"] == days_before(30)
    assert steps["store"]["completed_at"] == days_before(29)
    assert steps["product"]["completed_at"] == days_before(25)
    assert steps["publish"]["completed_at"] == days_before(15)
    assert steps["first_sale"]["completed"] is False
    assert status["overall_progress"] == 80


@pytest.mark.asyncio
async def test_onboarding_status_first_sale(db):
    add_user(db, "creator")
    store = add_store(db, "creator")
    add_product(db, store, is_published=True)
    add_purchase(db, store, "buyer", days_ago=9)
    add_purchase(db, store, "buyer", days_ago=4)

    status = await health_service.get_creator_onboarding_status("creator")
    steps = {step["id"]: step for step in status["steps"]}

    assert steps["publish"]["completed"] is True
    assert steps["first_sale"]["completed_at"] == days_before(9)
    assert status["overall_progress"] == 100


@pytest.mark.asyncio
async def test_onboarding_status_unknown_user(db):
    with pytest.raises(ResourceNotFoundError):
        await health_service.get_creator_onboarding_status("nobody")
