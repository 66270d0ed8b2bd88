import pytest
from sqlalchemy import func, select

from conftest import CLASS_A

from services.user_management.models.students import Student
from shared.pagination import (
    SortOrder,
    apply_listing,
    count_listing,
    is_search_active,
    normalize_sort_order,
    page_window,
)


@pytest.mark.parametrize("page, expected", [(0, (0, 10)), (1, (10, 10)), (3, (30, 10)), (-2, (0, 10)), (None, (0, 10))])
def test_page_window(page, expected):
    assert page_window(page, 10) == expected


@pytest.mark.parametrize(
    "query, active",
    [(None, False), ("", False), ("ab", False), ("  ab  ", False), ("abc", True), (" abc ", True)],
)
def test_search_activates_above_minimum_length(query, active):
    assert is_search_active(query, 2) is active


@pytest.mark.parametrize(
    "value, expected",
    [("asc", SortOrder.ASC), ("ASC", SortOrder.ASC), ("desc", SortOrder.DESC), ("sideways", SortOrder.DESC), (None, SortOrder.DESC)],
)
def test_normalize_sort_order(value, expected):
    assert normalize_sort_order(value) == expected


async def _names(db, **kwargs):
    stmt = apply_listing(select(Student.name), name_column=Student.name, page_size=10, **kwargs)
    return (await db.execute(stmt)).scalars().all()


async def test_browse_mode_sorts_desc_by_default(db, seed):
    await seed.students(CLASS_A, ["Alice", "Citra", "Budi"], with_buckets=False)

    assert await _names(db) == ["Citra", "Budi", "Alice"]
    assert await _names(db, sort_order="asc") == ["Alice", "Budi", "Citra"]
    assert await _names(db, sort_order="unknown") == ["Citra", "Budi", "Alice"]


async def test_search_mode_ignores_sort_order_and_filters_case_insensitively(db, seed):
    await seed.students(CLASS_A, ["Anna Lee", "Hanna Putri", "Budi"], with_buckets=False)

    assert await _names(db, search_query="ANN", sort_order="desc") == ["Anna Lee", "Hanna Putri"]


async def test_short_query_falls_back_to_browse_mode(db, seed):
    await seed.students(CLASS_A, ["Anna", "Budi"], with_buckets=False)

    assert await _names(db, search_query="an", sort_order="asc") == ["Anna", "Budi"]


async def test_count_listing_applies_the_search_filter(db, seed):
    await seed.students(CLASS_A, ["Anna", "Hanna", "Budi"], with_buckets=False)

    base = select(func.count(Student.id))
    assert await db.scalar(count_listing(base, name_column=Student.name, search_query="anna")) == 2
    assert await db.scalar(count_listing(base, name_column=Student.name, search_query="an")) == 3


async def test_search_treats_like_wildcards_literally(db, seed):
    await seed.students(CLASS_A, ["Alice", "Budi", "Citra", "dev_ops_bot", "Sales 100%"], with_buckets=False)

    assert await _names(db, search_query="___") == []
    assert await _names(db, search_query="v_o") == ["dev_ops_bot"]
    assert await _names(db, search_query="00%") == ["Sales 100%"]

    base = select(func.count(Student.id))
    assert await db.scalar(count_listing(base, name_column=Student.name, search_query="___")) == 0
