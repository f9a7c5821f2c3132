"""
Request identity dependencies.

The user identity arrives in the X-User-Id header (set by the frontend after
sign-in).  Anonymous requests are allowed where a user is optional; they
simply get no personal dictionary.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Header, HTTPException, status

logger = logging.getLogger(__name__)


async def get_current_user_id(
    x_user_id: str = Header(..., alias="X-User-Id"),
) -> str:
    """Extract the user ID from the request header. Raises 401 if blank."""
    if not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header.",
        )
    return x_user_id


async def get_optional_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> Optional[str]:
    """Extract user ID if present, return None for anonymous use."""
    return x_user_id or None
