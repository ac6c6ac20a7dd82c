"""Utilities for resolving page-selection expressions such as ``"1,3,5-7"``."""

from __future__ import annotations

import re
from typing import List

_NUMBER_RE = re.compile(r"^\d+$", re.ASCII)


class PageRangeError(ValueError):
    """Raised when a page-selection token is not numeric."""

    def __init__(self, message: str, *, token: str | None = None):
        super().__init__(message)
        self.token = token


def _to_index(text: str, token: str) -> int:
    value = text.strip()
    if not _NUMBER_RE.match(value):
        raise PageRangeError(f"Invalid page token '{token}'", token=token)
    return int(value) - 1


def resolve_page_range(expression: str | None, total_pages: int) -> List[int]:
    """Return zero-based page indices selected by ``expression``.

    ``expression`` uses 1-based numbers and inclusive ranges. Indices are
    emitted in token order without sorting or de-duplication, and anything
    outside ``0 <= index < total_pages`` is dropped rather than rejected.
    An absent expression selects the first page. Non-numeric tokens raise
    :class:`PageRangeError`.
    """

    if total_pages <= 0:
        return []
    if expression is None or not expression.strip():
        return [0]

    indices: List[int] = []
    for raw_token in expression.split(","):
        token = raw_token.strip()
        if not token:
            continue
        if "-" in token:
            start_text, end_text = token.split("-", 1)
            start = _to_index(start_text, token)
            end = _to_index(end_text, token)
            for index in range(max(start, 0), min(end, total_pages - 1) + 1):
                indices.append(index)
        else:
            index = _to_index(token, token)
            if 0 <= index < total_pages:
                indices.append(index)
    return indices


def resolve_page_targets(expression: str | None, total_pages: int) -> List[int]:
    """Like :func:`resolve_page_range` but an absent value or ``all`` means every page."""

    if expression is None or not expression.strip() or expression.strip().lower() == "all":
        return list(range(total_pages))
    return resolve_page_range(expression, total_pages)


__all__ = ["PageRangeError", "resolve_page_range", "resolve_page_targets"]
