"""
Inspector names

Inspectors log in by name only; the slug of the name scopes their saved answers.
"""
import re

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 50

USER_SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class UsernameError(ValueError):
    pass


def slugify_username(name: str) -> str:
    """
    Convert a display name to a URL-safe slug ('Robin Meier' -> 'robin-meier')
    """
    slug = name.strip().lower()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def validate_username(name: str) -> str:
    """
    Validate a display name and return it trimmed

    Raises:
        UsernameError: Empty, too short, too long, or without usable characters
    """
    trimmed = name.strip()
    if not trimmed:
        raise UsernameError("Please enter a name.")
    if len(trimmed) < MIN_NAME_LENGTH:
        raise UsernameError(f"The name must be at least {MIN_NAME_LENGTH} characters long.")
    if len(trimmed) > MAX_NAME_LENGTH:
        raise UsernameError(f"The name must be at most {MAX_NAME_LENGTH} characters long.")
    if not slugify_username(trimmed):
        raise UsernameError("The name must contain at least one letter or digit.")
    return trimmed


def is_valid_user_slug(slug: str) -> bool:
    return bool(USER_SLUG_PATTERN.match(slug))
