"""
Utility functions for API endpoints
"""
import re

from fastapi import HTTPException

from app.services.users import is_valid_user_slug

SAFE_SEGMENT_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def require_safe_segment(value: str, label: str) -> str:
    """
    Ensure a path parameter can be used as a single file system path segment

    Raises HTTPException with 400 status for empty values, separators or '..'
    """
    if not SAFE_SEGMENT_PATTERN.match(value) or ".." in value:
        raise HTTPException(status_code=400, detail=f"Invalid {label}: {value!r}")
    return value


def require_user_slug(user: str) -> str:
    """
    Ensure the user path parameter is a username slug (e.g. 'robin-meier')
    """
    if not is_valid_user_slug(user):
        raise HTTPException(status_code=400, detail=f"Invalid user: {user!r}")
    return user
