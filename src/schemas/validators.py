"""
Shared validation functions for Pydantic schemas.

This module contains validators used across multiple entity schemas (bookmarks,
notes, todos, rooms, tags).
"""
from datetime import UTC, datetime
from typing import Any

from core.config import get_settings

MAX_TAG_NAME_LENGTH = 100
TAG_COLOR_MAX_LENGTH = 32


def validate_not_blank(value: str, field_name: str) -> str:
    """Reject empty or whitespace-only strings."""
    if not value or not value.strip():
        raise ValueError(f"{field_name} cannot be empty")
    return value


def validate_tag_name(name: str) -> str:
    """
    Normalize and validate a tag name.

    Tags keep their display casing; only surrounding whitespace is removed.

    Raises:
        ValueError: If the name is empty or too long.
    """
    normalized = name.strip()
    if not normalized:
        raise ValueError("Tag name cannot be empty")
    if len(normalized) > MAX_TAG_NAME_LENGTH:
        raise ValueError(
            f"Tag name exceeds maximum length of {MAX_TAG_NAME_LENGTH} characters",
        )
    return normalized


def validate_title_length(title: str | None) -> str | None:
    """Validate that title doesn't exceed maximum length."""
    settings = get_settings()
    if title is not None and len(title) > settings.max_title_length:
        raise ValueError(
            f"Title exceeds maximum length of {settings.max_title_length:,} characters "
            f"(got {len(title):,} characters).",
        )
    return title


def validate_note_length(note: str | None) -> str | None:
    """Validate that a bookmark note doesn't exceed maximum length."""
    settings = get_settings()
    if note is not None and len(note) > settings.max_note_length:
        raise ValueError(
            f"Note exceeds maximum length of {settings.max_note_length:,} characters "
            f"(got {len(note):,} characters).",
        )
    return note


def validate_content_length(content: str | None) -> str | None:
    """Validate that note/todo content doesn't exceed maximum length."""
    settings = get_settings()
    if content is not None and len(content) > settings.max_content_length:
        raise ValueError(
            f"Content exceeds maximum length of {settings.max_content_length:,} characters "
            f"(got {len(content):,} characters).",
        )
    return content


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC so they compare with stored timestamps."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def loaded_attribute(obj: Any, name: str) -> Any:
    """
    Return a relationship value only if SQLAlchemy already loaded it.

    Reading an unloaded relationship would trigger lazy IO, which is not
    allowed outside the async session context, so unloaded means None.
    """
    return obj.__dict__.get(name)
