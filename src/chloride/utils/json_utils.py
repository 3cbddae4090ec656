"""JSON response shape helpers.

Backends answer collections either bare (``[...]``) or wrapped
(``{"files": [...]}``). Shapes are tried in a fixed order and the first
match wins; nothing is assumed about which one a deployment uses.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any

from chloride.models.error_models import MalformedResponse

ShapeMatcher = Callable[[Any], list[Any] | None]


def wrapped_list(key: str) -> ShapeMatcher:
    """Match ``{key: [...]}``."""

    def match(data: Any) -> list[Any] | None:
        if isinstance(data, dict) and isinstance(data.get(key), list):
            return list(data[key])
        return None

    return match


def bare_list(data: Any) -> list[Any] | None:
    """Match ``[...]``."""
    if isinstance(data, list):
        return list(data)
    return None


def wrapped_object(key: str) -> ShapeMatcher:
    """Match ``{key: {...}}`` as a one-element list."""

    def match(data: Any) -> list[Any] | None:
        if isinstance(data, dict) and isinstance(data.get(key), dict):
            return [data[key]]
        return None

    return match


def bare_object(required: Iterable[str]) -> ShapeMatcher:
    """Match a single object carrying every ``required`` key, as a one-element list."""
    keys = tuple(required)

    def match(data: Any) -> list[Any] | None:
        if isinstance(data, dict) and all(k in data for k in keys):
            return [data]
        return None

    return match


def decode_collection(data: Any, matchers: Sequence[ShapeMatcher], what: str) -> list[Any]:
    """Run ``matchers`` in order and return the first match.

    An empty body (None) is an empty collection.

    Raises:
        MalformedResponse: no matcher accepted the body
    """
    if data is None:
        return []
    for matcher in matchers:
        items = matcher(data)
        if items is not None:
            return items
    raise MalformedResponse(f"Unexpected {what} response shape")


def unwrap_collection(data: Any, key: str) -> list[Any]:
    """``{key: [...]}`` or ``[...]``."""
    return decode_collection(data, (wrapped_list(key), bare_list), key)
