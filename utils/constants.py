"""
utils/constants.py

Purpose: Centralized static values

- Activity windows and stuck-creator thresholds
- Health score bands
- Outreach copy shown next to flagged creators
- Event types and purchase statuses

(Prevents hardcoding across the codebase)
"""

# ============================================================
# ACTIVITY WINDOWS (days)
# ============================================================

RECENT_SALES_WINDOW_DAYS = 30
CHURN_RISK_WINDOW_DAYS = 60
NEW_CREATOR_WINDOW_DAYS = 30

DRAFTING_STUCK_DAYS = 3
PUBLISHED_STUCK_DAYS = 14

DEFAULT_FUNNEL_DAYS = 30
MAX_WINDOW_DAYS = 365

# ============================================================
# HEALTH SCORING
# ============================================================

# (minimum, points) pairs, checked top-down; first match wins
REVENUE_POINTS = [(10000, 30), (1000, 20), (100, 10)]
ANY_REVENUE_POINTS = 5

RECENT_REVENUE_POINTS = 25
SALE_WITHIN_30_DAYS_POINTS = 15
SALE_WITHIN_60_DAYS_POINTS = 5

PRODUCT_COUNT_POINTS = [(5, 20), (3, 15), (1, 10)]
RATING_POINTS = [(4.5, 15), (4.0, 10), (3.5, 5)]
ENROLLMENT_POINTS = [(100, 10), (50, 7), (10, 4)]

HEALTH_STATUS_BANDS = [
    (80, "excellent"),
    (60, "good"),
    (40, "fair"),
    (20, "poor"),
]
HEALTH_STATUS_FLOOR = "critical"

ONBOARDING_STEP_POINTS = 20

# Attention score (creators needing attention)
ATTENTION_REVENUE_POINTS = 30
ATTENTION_RECENT_SALE_POINTS = 40
ATTENTION_HAS_COURSE_POINTS = 30

TOP_PERFORMER_REVENUE = 1000

DEFAULT_LEADERBOARD_LIMIT = 50
MAX_LEADERBOARD_LIMIT = 500

# ============================================================
# OUTREACH COPY
# ============================================================

STUCK_DRAFTING_ACTION = "Send setup help email + scheduling link"
STUCK_PUBLISHED_ACTION = "Review marketing strategy + promotional tips"

NO_RECENT_SALES_ACTION = "Send re-engagement email with promotional tips"
NO_SALES_EVER_ACTION = "Review pricing and marketing strategy"
NO_SALES_EVER_ISSUE = "Published course(s) with no sales"

UNKNOWN_USER_NAME = "Unknown"
DEFAULT_CREATOR_NAME = "Creator"

# ============================================================
# ONBOARDING CHECKLIST
# ============================================================

ONBOARDING_STEPS = [
    ("account", "Create Account", "Sign up and verify your email"),
    ("store", "Create Store", "Set up your creator storefront"),
    ("product", "Create First Product", "Add a course or digital product"),
    ("publish", "Publish Product", "Make your product live for customers"),
    ("first_sale", "First Sale", "Get your first paying customer"),
]

# ============================================================
# COMMERCE
# ============================================================

PURCHASE_COMPLETED = "completed"
PURCHASE_REFUNDED = "refunded"

PLATFORM_FEE_RATE = 0.10
PROCESSING_FEE_RATE = 0.029
NET_REVENUE_RATE = 1 - PLATFORM_FEE_RATE - PROCESSING_FEE_RATE

MAX_DAILY_BUCKETS = 30

# ============================================================
# ANALYTICS EVENTS
# ============================================================

EVENT_SIGNUP = "signup"
EVENT_CREATOR_STARTED = "creator_started"
EVENT_CREATOR_PUBLISHED = "creator_published"
EVENT_COURSE_VIEW = "course_view"
EVENT_PRODUCT_VIEW = "product_view"
EVENT_ENROLLMENT = "enrollment"
EVENT_PURCHASE = "purchase"
EVENT_PAGE_VIEW = "page_view"

CLEAR_EVENTS_CONFIRMATION = "DELETE_ALL_ANALYTICS_EVENTS"

DIRECT_TRAFFIC_SOURCE = "direct"
TOP_SOURCES_LIMIT = 10
TOP_COUPONS_LIMIT = 10
RECENT_COUPON_USAGES_LIMIT = 10

# ============================================================
# CREATOR ANALYTICS OVERVIEW
# ============================================================

MAX_REVENUE_PERIODS = 12
TOP_PRODUCTS_LIMIT = 10
