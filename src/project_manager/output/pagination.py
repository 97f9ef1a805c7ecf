"""Pagination helpers for list responses."""

from __future__ import annotations

from typing import Any, Sequence

MAX_PAGE_SIZE = 100


def clamp_window(limit: int, offset: int) -> tuple[int, int]:
    """Limit to 1..MAX_PAGE_SIZE, offset to >= 0."""
    return max(1, min(limit, MAX_PAGE_SIZE)), max(0, offset)


def build_pagination(total_count: int, limit: int, offset: int) -> dict:
    """Metadata for the page of ``limit`` items starting at ``offset``.

    The window is clamped first, so the reported limit/offset are the ones
    actually applied.
    """
    limit, offset = clamp_window(limit, offset)
    end = offset + limit
    more = end < total_count
    return {
        "total_count": total_count,
        "limit": limit,
        "offset": offset,
        "has_more": more,
        "next_offset": end if more else None,
    }


def paginate(items: Sequence[Any], limit: int, offset: int = 0) -> tuple[list[Any], dict]:
    """Slice ``items`` to one page and return it with its metadata."""
    meta = build_pagination(len(items), limit, offset)
    start = meta["offset"]
    return list(items[start:start + meta["limit"]]), meta
