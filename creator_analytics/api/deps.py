"""
creator_analytics/api/deps.py

Purpose: Shared request dependencies

- Admin gate for every /admin route (X-Admin-User-Id header)
"""

from typing import Optional

from fastapi import Header

from creator_analytics.core.config import settings
from creator_analytics.core.exceptions import AuthenticationError, AuthorizationError
from creator_analytics.core.logging import get_logger
from creator_analytics.services import records_service

logger = get_logger(__name__)

ADMIN_HEADER = "X-Admin-User-Id"


async def require_admin(
    x_admin_user_id: Optional[str] = Header(default=None, alias=ADMIN_HEADER),
) -> Optional[str]:
    """
    Verifies the caller is a platform admin.

    When the header is present the user must exist with `admin: true`.
    When it is absent the request is rejected only if REQUIRE_ADMIN is set.

    Returns:
        Admin clerk id, or None for an anonymous call when allowed

    Raises:
        AuthenticationError: Header missing while admin identity is required
        AuthorizationError: User unknown or not an admin
    """
    if not x_admin_user_id:
        if settings.REQUIRE_ADMIN:
            raise AuthenticationError(f"{ADMIN_HEADER} header is required")
        return None

    user = await records_service.get_user(x_admin_user_id)
    if user is None or not user.admin:
        logger.warning(f"Admin access denied for {x_admin_user_id}")
        raise AuthorizationError()

    return x_admin_user_id
