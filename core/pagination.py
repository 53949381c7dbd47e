"""
Offset pagination and whitelisted sorting for list queries.

Sort keys arrive from the API as camelCase names and are mapped to SQL
expressions through a whitelist, so user input never reaches the query text.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional


@dataclass(frozen=True)
class PageRequest:
    """A 1-based page of ``page_size`` rows."""

    page: int = 1
    page_size: int = 25

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


@dataclass
class PageResult:
    """
    One page of rows plus the total row count of the unpaged query.

    Usage:
        result = PageResult(rows, total_count, request.page, request.page_size)
        return result.to_dict("orders")
    """

    items: List[Dict[str, Any]]
    total_count: int
    page: int = 1
    page_size: int = 25

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    def to_dict(self, items_key: str = "items", **extra: Any) -> Dict[str, Any]:
        """Serialize as the list payload returned by paged endpoints."""
        return {
            items_key: self.items,
            "totalCount": self.total_count,
            "page": self.page,
            "pageSize": self.page_size,
            "totalPages": self.total_pages,
            **extra,
        }


def build_order_clause(
    sort_by: Optional[str],
    sort_order: Optional[str],
    columns: Mapping[str, str],
    default: str,
    tiebreaker: Optional[str] = None,
) -> str:
    """
    Build an ``ORDER BY`` clause from a whitelisted sort key.

    Args:
        sort_by: API sort key (unknown keys fall back to ``default``)
        sort_order: ``asc`` or ``desc`` (anything else means ``desc``)
        columns: Mapping of API sort key to SQL expression
        default: Sort key used when ``sort_by`` is not whitelisted
        tiebreaker: Extra SQL expression appended for a stable order

    Returns:
        Clause such as ``ORDER BY o.order_date DESC NULLS LAST``
    """
    expression = columns.get(sort_by) or columns[default]
    direction = "ASC" if (sort_order or "").lower() == "asc" else "DESC"
    clause = f"ORDER BY {expression} {direction} NULLS LAST"
    if tiebreaker:
        clause += f", {tiebreaker}"
    return clause
