"""
Translation of request parameters into validated store queries.
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from bookstore.errors import InvalidId, InvalidPagination, InvalidSortField, InvalidSortOrder

SORTABLE_FIELDS = {
    "title": "title",
    "authors": "authors.0",  # array-valued, sort on the first author
    "description": "description",
    "publicationYear": "publicationYear",
}
ASCENDING = 1
DESCENDING = -1
DEFAULT_PAGE_SIZE = 10

_INTEGER = re.compile(r"^[+-]?\d+$")
# BSON integers are signed 64-bit
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class ListQueryParams(BaseModel):
    """Raw listing parameters exactly as received on the query string."""
    offset: Optional[str] = Field(None, description="1-based page number")
    limit: Optional[str] = Field(None, description="Page size")
    sort: Optional[str] = Field(None, description="Sort field")
    order: Optional[str] = Field(None, description="1 for ascending, -1 for descending")


class QueryPlan(BaseModel):
    """Validated skip/limit/sort for a listing query."""
    model_config = ConfigDict(frozen=True)

    skip: int
    limit: int
    sort: List[Tuple[str, int]]


def _parse_int(raw: Optional[str]) -> Optional[int]:
    if raw is None or raw.strip() == "":
        return None
    raw = raw.strip()
    if not _INTEGER.match(raw):
        raise InvalidPagination()
    value = int(raw)
    if not INT64_MIN <= value <= INT64_MAX:
        raise InvalidPagination()
    return value


def _parse_order(raw: Optional[str]) -> int:
    if raw is None or raw.strip() == "":
        return ASCENDING
    raw = raw.strip()
    if not _INTEGER.match(raw) or int(raw) not in (ASCENDING, DESCENDING):
        raise InvalidSortOrder()
    return int(raw)


def build_list_plan(params: ListQueryParams, default_limit: int = DEFAULT_PAGE_SIZE) -> QueryPlan:
    """
    Build the query plan for a book listing.

    Args:
        params: Raw listing parameters
        default_limit: Page size used when ``limit`` is absent or not positive

    Returns:
        QueryPlan with skip, limit and sort keys

    Raises:
        InvalidPagination: If offset or limit is not an integer
        InvalidSortField: If sort is not a sortable field
        InvalidSortOrder: If order is not 1 or -1
    """
    offset = _parse_int(params.offset)
    requested_limit = _parse_int(params.limit)

    limit = requested_limit if requested_limit is not None and requested_limit > 0 else default_limit
    skip = (offset - 1) * limit if offset is not None and offset > 1 else 0
    if skip > INT64_MAX:
        raise InvalidPagination()

    sort_field = params.sort or None
    if sort_field is not None and sort_field not in SORTABLE_FIELDS:
        raise InvalidSortField()
    order = _parse_order(params.order)

    if sort_field is None:
        sort = [("_id", order)]
    else:
        # _id breaks ties so pages do not overlap
        sort = [(SORTABLE_FIELDS[sort_field], order), ("_id", ASCENDING)]

    return QueryPlan(skip=skip, limit=limit, sort=sort)


def build_search_filter(query: Optional[str]) -> Optional[Dict[str, Any]]:
    """Text-index filter for ``query``, or None when there is nothing to search for."""
    if query is None or query.strip() == "":
        return None
    return {"$text": {"$search": query}}


def parse_book_id(raw: Any) -> int:
    """Parse a path id into an integer, raising InvalidId when it is not one."""
    if isinstance(raw, bool):
        raise InvalidId()
    if isinstance(raw, int):
        value = raw
    elif raw is None or not _INTEGER.match(str(raw).strip()):
        raise InvalidId()
    else:
        value = int(str(raw).strip())
    if not INT64_MIN <= value <= INT64_MAX:
        raise InvalidId()
    return value
