"""Page arithmetic shared by the listing endpoints."""
from __future__ import annotations

import math
from dataclasses import dataclass

# Keeps ``(page - 1) * page_size`` inside a signed 64-bit OFFSET.
MAX_PAGE_NUMBER = 10**9


@dataclass(frozen=True)
class Page:
    page: int
    page_size: int
    offset: int
    total: int
    total_pages: int


def parse_page_number(raw: object) -> int:
    """Clamp a requested page number to ``1..MAX_PAGE_NUMBER``; non-numeric input means 1."""
    try:
        page = int(str(raw).strip())
    except (TypeError, ValueError):
        return 1
    return min(MAX_PAGE_NUMBER, max(1, page))


def parse_page_size(raw: object, default: int, maximum: int) -> int:
    if raw is None or str(raw).strip() == "":
        return default
    try:
        size = int(str(raw).strip())
    except ValueError:
        return default
    return min(maximum, max(1, size))


def paginate(page: int, page_size: int, total: int) -> Page:
    """Compute the offset and page count for ``total`` rows.

    A page past the end is valid and simply yields no rows.
    """
    page = min(MAX_PAGE_NUMBER, max(1, page))
    return Page(
        page=page,
        page_size=page_size,
        offset=(page - 1) * page_size,
        total=total,
        total_pages=math.ceil(total / page_size) if total else 0,
    )
