import pytest
from bson import ObjectId

from creator_analytics.core.config import settings
from creator_analytics.core.exceptions import ValidationError
from creator_analytics.services import conversion_service
from factories import add_course, add_enrollment, add_event, add_product, add_purchase, add_store, add_user, days_before


@pytest.mark.asyncio
async def test_purchase_funnel(db, now):
    add_user(db, "u1", created_at=days_before(5))
    add_user(db, "u2", created_at=days_before(10))
    add_user(db, "u3", created_at=days_before(60))

    add_event(db, "course_view", days_ago=2, user_id="u1")
    add_event(db, "course_view", days_ago=1, user_id="u1")
    add_event(db, "course_view", days_ago=3, user_id="u2")
    add_event(db, "course_view", days_ago=40, user_id="u3")

    course = add_course(db, "creator")
    add_enrollment(db, "u1", course, days_ago=3)
    add_enrollment(db, "u3", course, days_ago=50)

    add_purchase(db, None, "u1", days_ago=2)
    add_purchase(db, None, "u2", status="pending", days_ago=2)

    funnel = await conversion_service.get_purchase_funnel(days=30, now=now)

    assert [step["count"] for step in funnel["steps"]] == [5, 2, 2, 1, 1]
    assert funnel["steps"][1]["conversion_rate"] == 40
    assert funnel["steps"][1]["drop_off_rate"] == 60
    assert funnel["overall_conversion"] == 20
    # u1 signed up 5 days ago and bought 2 days ago
    assert funnel["average_time_to_convert"] == pytest.approx(3)


@pytest.mark.asyncio
async def test_purchase_funnel_rejects_bad_window(db, now):
    with pytest.raises(ValidationError):
        await conversion_service.get_purchase_funnel(days=0, now=now)


@pytest.mark.asyncio
async def test_empty_funnel(db, now):
    funnel = await conversion_service.get_purchase_funnel(now=now)
    assert [step["count"] for step in funnel["steps"]] == [0, 0, 0, 0, 0]
    assert funnel["overall_conversion"] == 0
    assert funnel["average_time_to_convert"] == 0


@pytest.mark.asyncio
async def test_conversion_metrics(db):
    for clerk_id in ("u1", "u2", "u3", "u4"):
        add_user(db, clerk_id)
    course = add_course(db, "creator")
    add_enrollment(db, "u1", course)
    add_enrollment(db, "u2", course)

    add_purchase(db, None, "u1", amount=1000)
    add_purchase(db, None, "u1", amount=3000)
    add_purchase(db, None, "u2", amount=2000)
    add_purchase(db, None, "u3", amount=1000, status="pending")

    add_event(db, "page_view", user_id="u1")
    add_event(db, "page_view", session_id="anonymous-1")

    metrics = await conversion_service.get_conversion_metrics()

    assert metrics == {
        "visit_to_signup": 50,
        "signup_to_enroll": 50,
        "enroll_to_purchase": 100,
        "overall_conversion": 50,
        "average_order_value": 20,
        "cart_abandonment_rate": 25,
        "repeat_purchase_rate": 50,
    }


@pytest.mark.asyncio
async def test_visit_to_signup_without_visitor_events(db):
    add_user(db, "u1")

    metrics = await conversion_service.get_conversion_metrics()
    assert metrics["visit_to_signup"] == 100
    assert metrics["average_order_value"] == 0


@pytest.mark.asyncio
async def test_abandoned_carts(db, now):
    add_user(db, "u1", name="Buyer One")
    course = add_course(db, "creator", title="Sound Design")
    store = add_store(db, "creator")
    product = add_product(db, store, title="Vocal Chops")

    add_purchase(db, None, "u1", amount=4900, status="pending", days_ago=3,
                 course_id=str(course["_id"]))
    add_purchase(db, None, "u2", amount=2000, status="failed", days_ago=1,
                 product_id=str(product["_id"]))
    add_purchase(db, None, "u1", amount=900, status="pending", days_ago=2,
                 course_id=str(ObjectId()))
    add_purchase(db, None, "u1", status="completed", days_ago=1)
    add_purchase(db, None, "u1", status="refunded", days_ago=1)
    add_purchase(db, None, "u1", status="pending", days_ago=45)

    carts = await conversion_service.get_abandoned_carts(days=30, now=now)

    assert [cart["user_id"] for cart in carts] == ["u2", "u1", "u1"]
    assert carts[0]["product_type"] == "product"
    assert carts[0]["product_name"] == "Vocal Chops"
    assert carts[0]["user_name"] is None
    assert carts[1]["product_name"] == "Unknown Course"
    assert carts[2]["product_type"] == "course"
    assert carts[2]["product_name"] == "Sound Design"
    assert carts[2]["user_name"] == "Buyer One"
    assert carts[2]["user_email"] == "u1@example.com"
    assert carts[2]["amount"] == 49.0
    assert carts[2]["days_since_abandoned"] == 3


@pytest.mark.asyncio
async def test_coupon_performance(db):
    save10 = {"_id": ObjectId(), "code": "SAVE10", "is_active": True}
    vip = {"_id": ObjectId(), "code": "VIP", "is_active": False}
    db["coupons"].insert_many([save10, vip])
    add_user(db, "u1", name="Buyer One")

    db["coupon_usages"].insert_many([
        {"_id": ObjectId(), "coupon_id": str(save10["_id"]), "user_id": "u1",
         "discount_applied": 500, "used_at": days_before(5)},
        {"_id": ObjectId(), "coupon_id": str(save10["_id"]), "user_id": "u2",
         "discount_applied": 300, "used_at": days_before(1)},
        {"_id": ObjectId(), "coupon_id": str(vip["_id"]), "user_id": "u1",
         "discount_applied": 1000, "used_at": days_before(3)},
        {"_id": ObjectId(), "coupon_id": str(ObjectId()), "user_id": "u3",
         "discount_applied": 200, "used_at": days_before(2)},
    ])

    report = await conversion_service.get_coupon_performance()

    assert report["total_coupons"] == 2
    assert report["active_coupons"] == 1
    assert report["total_usages"] == 4
    assert report["total_discount_given"] == 20.0

    top = report["top_coupons"]
    assert [row["code"] for row in top] == ["SAVE10", "VIP"]
    assert top[0]["usage_count"] == 2
    assert top[0]["discount_given"] == 8.0
    assert top[0]["conversion_rate"] == 0
    assert top[1]["is_active"] is False

    recent = report["recent_usages"]
    assert [row["code"] for row in recent] == ["SAVE10", "Unknown", "VIP", "SAVE10"]
    assert recent[2]["user_name"] == "Buyer One"
    assert recent[2]["discount_applied"] == 10.0


@pytest.mark.asyncio
async def test_conversion_by_source(db, now):
    add_event(db, "page_view", user_id="u1", metadata={"utm_source": "youtube"})
    add_event(db, "signup", user_id="u1", metadata={"utm_source": "youtube"})
    add_event(db, "purchase", user_id="u1", metadata={"utm_source": "youtube", "value": 4900})
    add_event(db, "page_view", user_id="u2", metadata={"utm_source": "youtube"})
    add_event(db, "page_view", session_id="s1", metadata={"referrer": "google.com"})
    add_event(db, "purchase", session_id="s1", metadata={"referrer": "google.com", "value": 9900})
    add_event(db, "page_view", session_id="s2")
    add_event(db, "purchase", user_id="u9", days_ago=45, metadata={"utm_source": "old"})

    sources = await conversion_service.get_conversion_by_source(days=30, now=now)

    assert [row["source"] for row in sources] == ["google.com", "youtube", "direct"]
    youtube = sources[1]
    assert youtube["visitors"] == 2
    assert youtube["signups"] == 1
    assert youtube["purchases"] == 1
    assert youtube["revenue"] == 49.0
    assert youtube["conversion_rate"] == 50
    assert sources[0]["conversion_rate"] == 100
    assert sources[2]["revenue"] == 0


@pytest.mark.asyncio
async def test_funnel_counts_recent_signups_past_scan_limit(db, now, monkeypatch):
    monkeypatch.setattr(settings, "USER_SCAN_LIMIT", 3)
    for i in range(3):
        add_user(db, f"old_{i}", created_at=days_before(300))
    add_user(db, "recent", created_at=days_before(2))

    funnel = await conversion_service.get_purchase_funnel(days=30, now=now)

    assert funnel["steps"][1]["count"] == 1


@pytest.mark.asyncio
async def test_funnel_dates_users_without_created_at_by_object_id(db, now):
    db["users"].insert_many([
        {"_id": ObjectId.from_datetime(days_before(2)), "clerk_id": "legacy_recent"},
        {"_id": ObjectId.from_datetime(days_before(90)), "clerk_id": "legacy_old"},
    ])

    funnel = await conversion_service.get_purchase_funnel(days=30, now=now)

    assert funnel["steps"][1]["count"] == 1


@pytest.mark.asyncio
async def test_abandoned_carts_past_scan_limit(db, now, monkeypatch):
    monkeypatch.setattr(settings, "PURCHASE_SCAN_LIMIT", 2)
    add_purchase(db, None, "old_1", status="pending", days_ago=200)
    add_purchase(db, None, "old_2", status="pending", days_ago=210)
    add_purchase(db, None, "recent", status="pending", days_ago=1)

    carts = await conversion_service.get_abandoned_carts(days=30, now=now)

    assert [cart["user_id"] for cart in carts] == ["recent"]


@pytest.mark.asyncio
async def test_sources_tolerate_malformed_event_metadata(db, now):
    add_event(db, "purchase", session_id="s1", metadata={"value": "19.99", "utm_source": "ig"})
    add_event(db, "purchase", session_id="s2", metadata={"value": 2500, "utm_source": "ig"})
    add_event(db, "purchase", session_id="s3", metadata={"value": True, "utm_source": 42})

    sources = {row["source"]: row for row in await conversion_service.get_conversion_by_source(now=now)}

    assert set(sources) == {"ig", "42"}
    assert sources["ig"]["purchases"] == 2
    assert sources["ig"]["revenue"] == 25.0
    assert sources["42"]["revenue"] == 0
