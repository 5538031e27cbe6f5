"""Tests for page arithmetic."""
from __future__ import annotations

import pytest

from salonbook.pagination import (MAX_PAGE_NUMBER, paginate, parse_page_number,
                                  parse_page_size)


@pytest.mark.parametrize(
    "page, size, total, offset, pages",
    [
        (1, 10, 95, 0, 10),
        (10, 10, 95, 90, 10),
        (2, 10, 25, 10, 3),
        (3, 10, 30, 20, 3),
        (1, 7, 1, 0, 1),
        (4, 10, 0, 30, 0),
    ],
)
def test_paginate(page, size, total, offset, pages):
    result = paginate(page, size, total)

    assert result.offset == offset
    assert result.total_pages == pages
    assert result.total == total


@pytest.mark.parametrize("raw, expected", [(None, 1), ("", 1), ("abc", 1), ("0", 1), ("-3", 1), ("2", 2), (5, 5)])
def test_parse_page_number_clamps(raw, expected):
    assert parse_page_number(raw) == expected


@pytest.mark.parametrize("raw, expected", [(None, 10), ("", 10), ("x", 10), ("0", 1), ("20", 20), ("500", 50)])
def test_parse_page_size(raw, expected):
    assert parse_page_size(raw, default=10, maximum=50) == expected


def test_huge_page_number_is_capped():
    assert parse_page_number("100000000000000000000") == MAX_PAGE_NUMBER

    result = paginate(10**20, 50, 3)
    assert result.page == MAX_PAGE_NUMBER
    assert result.offset < 2**63
