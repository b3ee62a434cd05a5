"""Input validation and sanitization for the recommend and search endpoints."""

from __future__ import annotations

import re
from typing import Any

from fastapi import HTTPException

from .mode_planner import MODE_STEP_MAP
from .settings import settings

_WHITESPACE = re.compile(r"\s+")


class InputValidator:
    """
    Validator for user inputs before they reach the LLM or the catalog.

    Oversized queries and id lists are cut or rejected here so a single
    request cannot exhaust model tokens.
    """

    QUERY_MIN_LENGTH = 1
    QUERY_MAX_LENGTH = 500
    FEEDBACK_MAX_LENGTH = 500
    EXCLUDE_ID_MAX_LENGTH = 64

    RESPONSE_TYPES = ("single", "course")

    @classmethod
    def sanitize_query(cls, value: Any) -> str | None:
        """
        Trim and collapse whitespace.

        Returns:
            The cleaned query, or None when it is not a string or its length
            falls outside 1-500 characters.
        """
        if not isinstance(value, str):
            return None
        cleaned = _WHITESPACE.sub(" ", value).strip()
        if not (cls.QUERY_MIN_LENGTH <= len(cleaned) <= cls.QUERY_MAX_LENGTH):
            return None
        return cleaned

    @classmethod
    def require_query(cls, value: Any, *, field: str = "query") -> str:
        cleaned = cls.sanitize_query(value)
        if cleaned is None:
            raise HTTPException(
                400,
                f'Missing or invalid "{field}" field '
                f"({cls.QUERY_MIN_LENGTH}-{cls.QUERY_MAX_LENGTH} chars)",
            )
        return cleaned

    @classmethod
    def to_positive_int(cls, value: Any) -> int | None:
        """Accept ints and numeric strings; anything below 1 becomes None."""
        if isinstance(value, bool):
            return None
        if isinstance(value, str):
            value = value.strip()
            if not value.lstrip("-").isdigit():
                return None
            value = int(value)
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if isinstance(value, int) and value > 0:
            return value
        return None

    @classmethod
    def validate_mode(cls, value: Any) -> str | None:
        if isinstance(value, str) and value.strip().lower() in MODE_STEP_MAP:
            return value.strip().lower()
        return None

    @classmethod
    def validate_response_type(cls, value: Any) -> str | None:
        if isinstance(value, str) and value.strip().lower() in cls.RESPONSE_TYPES:
            return value.strip().lower()
        return None

    @classmethod
    def sanitize_exclude_ids(
        cls, value: Any, *, limit: int = settings.MAX_EXCLUDE_PLACE_IDS
    ) -> list[str]:
        """Non-empty string ids, de-duplicated in order, at most ``limit`` of them."""
        if not isinstance(value, list):
            return []
        seen: list[str] = []
        for item in value:
            if not isinstance(item, str):
                continue
            item = item.strip()
            if not item or len(item) > cls.EXCLUDE_ID_MAX_LENGTH or item in seen:
                continue
            seen.append(item)
            if len(seen) >= limit:
                break
        return seen

    @classmethod
    def sanitize_feedback(cls, value: Any) -> str | None:
        if not isinstance(value, str):
            return None
        cleaned = value.strip()[: cls.FEEDBACK_MAX_LENGTH]
        return cleaned or None

    @classmethod
    def sanitize_region(cls, value: Any) -> str | None:
        if not isinstance(value, str):
            return None
        cleaned = _WHITESPACE.sub(" ", value).strip()
        return cleaned[:50] or None


def sanitize_query(value: Any) -> str | None:
    """Shorthand for InputValidator.sanitize_query."""
    return InputValidator.sanitize_query(value)


__all__ = [
    "InputValidator",
    "sanitize_query",
]
