"""Pagination, sorting and search for list queries."""

from typing import Any, Literal, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Select, or_
from sqlalchemy.orm import InstrumentedAttribute

MAX_LIMIT = 50
MAX_SEARCH_LENGTH = 72


class PaginatedQuery(BaseModel):
    """Query string parameters shared by every list endpoint."""

    model_config = ConfigDict(extra="ignore")

    limit: int = Field(default=10, ge=1, le=MAX_LIMIT)
    offset: int = Field(default=0, ge=0)
    sort_by: str = "id"
    order: Literal["asc", "desc"] = "asc"
    search: str = Field(default="", max_length=MAX_SEARCH_LENGTH)

    def cache_params(self) -> dict[str, Any]:
        """Parameters that identify this page in a list cache key."""
        params: dict[str, Any] = {
            "limit": self.limit,
            "offset": self.offset,
            "sort": self.sort_by,
            "order": self.order,
        }
        if self.search:
            params["search"] = self.search
        return params


def apply_pagination(
    stmt: Select,
    pq: PaginatedQuery,
    sortable: Mapping[str, InstrumentedAttribute],
    search_columns: Sequence[InstrumentedAttribute] = (),
) -> Select:
    """Apply search, ordering, limit and offset to a SELECT.

    Args:
        stmt: Base select statement
        pq: Parsed pagination parameters
        sortable: Whitelist of sort names to columns; must contain "id"
        search_columns: Columns matched case-insensitively against ``pq.search``

    Returns:
        The paginated statement. Unknown sort names fall back to id.
    """
    if pq.search and search_columns:
        pattern = f"%{pq.search}%"
        stmt = stmt.where(or_(*(col.ilike(pattern) for col in search_columns)))

    column = sortable.get(pq.sort_by, sortable["id"])
    stmt = stmt.order_by(column.desc() if pq.order == "desc" else column.asc())
    return stmt.limit(pq.limit).offset(pq.offset)
