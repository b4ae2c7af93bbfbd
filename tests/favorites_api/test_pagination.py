"""Tests for the pagination metadata helper."""

from __future__ import annotations

import pytest

from favorites_api.services.pagination import build_pagination


def test_middle_of_three_pages() -> None:
    meta = build_pagination(page=2, limit=10, total=25)

    assert meta.model_dump(by_alias=True) == {
        "currentPage": 2,
        "totalPages": 3,
        "totalEntries": 25,
        "hasNextPage": True,
        "hasPrevPage": True,
        "limit": 10,
    }


@pytest.mark.parametrize(
    ("page", "has_next", "has_prev"),
    [(1, True, False), (3, False, True), (4, False, True)],
)
def test_page_flags(page: int, has_next: bool, has_prev: bool) -> None:
    meta = build_pagination(page=page, limit=10, total=25)

    assert meta.total_pages == 3
    assert meta.has_next_page is has_next
    assert meta.has_prev_page is has_prev


def test_exact_multiple_does_not_add_a_page() -> None:
    assert build_pagination(page=1, limit=10, total=30).total_pages == 3


def test_empty_result_has_zero_pages() -> None:
    meta = build_pagination(page=1, limit=10, total=0)

    assert meta.total_pages == 0
    assert meta.has_next_page is False
    assert meta.has_prev_page is False
