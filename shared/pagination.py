# shared/pagination.py
"""Paging, search and sort rules shared by every student listing.

Listings run in one of two modes:

* search mode, once the query is longer than ``MIN_SEARCH_LENGTH``: rows are
  filtered by a case-insensitive substring match and the caller's sort order
  is ignored (rows come back in ascending name order so pages stay stable);
* browse mode otherwise: no filter, rows sorted by name in the requested
  order, ``desc`` when the order is missing or unknown.
"""
import enum
from typing import Optional, Tuple

from sqlalchemy.sql import Select

from shared.config import MIN_SEARCH_LENGTH, PAGE_SIZE


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


def normalize_sort_order(value: Optional[str]) -> SortOrder:
    if isinstance(value, SortOrder):
        return value
    if value and value.strip().lower() == SortOrder.ASC.value:
        return SortOrder.ASC
    return SortOrder.DESC


def page_window(page: Optional[int], page_size: int = PAGE_SIZE) -> Tuple[int, int]:
    page = max(page or 0, 0)
    return page * page_size, page_size


def is_search_active(query: Optional[str], min_length: int = MIN_SEARCH_LENGTH) -> bool:
    return bool(query) and len(query.strip()) > min_length


def _name_matches(name_column, search_query: str):
    # % and _ in the query are literal characters, not wildcards
    return name_column.icontains(search_query.strip(), autoescape=True)


def apply_listing(
    stmt: Select,
    *,
    name_column,
    page: Optional[int] = 0,
    page_size: int = PAGE_SIZE,
    search_query: Optional[str] = None,
    sort_order: Optional[str] = None,
    tiebreaker=None,
) -> Select:
    skip, take = page_window(page, page_size)

    if is_search_active(search_query):
        stmt = stmt.where(_name_matches(name_column, search_query)).order_by(name_column.asc())
    elif normalize_sort_order(sort_order) == SortOrder.ASC:
        stmt = stmt.order_by(name_column.asc())
    else:
        stmt = stmt.order_by(name_column.desc())

    if tiebreaker is not None:
        stmt = stmt.order_by(tiebreaker)

    return stmt.offset(skip).limit(take)


def count_listing(stmt: Select, *, name_column, search_query: Optional[str] = None) -> Select:
    """Total-row count matching what ``apply_listing`` would page over."""
    if is_search_active(search_query):
        stmt = stmt.where(_name_matches(name_column, search_query))
    return stmt
