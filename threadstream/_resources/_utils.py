"""Shared helpers for resource modules."""

from typing import Any


def _build_body(**kwargs: Any) -> dict:
    """Build a JSON request body, omitting None values."""
    return {k: v for k, v in kwargs.items() if v is not None}
