import math
from collections.abc import Sequence
from functools import cmp_to_key
from typing import Literal

from pydantic import BaseModel, ConfigDict

from gateway_graph.models import RouteCoverageDetail

CoverageFilter = Literal["ALL", "COVERED", "UNCOVERED"]
SortColumn = Literal["namespace", "name"]
SortDirection = Literal["asc", "desc"]


class RouteCoverageView(BaseModel):
    """One page of the route coverage table."""

    total: int
    total_pages: int
    page: int
    page_size: int | Literal["All"]
    visible: list[RouteCoverageDetail]

    model_config = ConfigDict(frozen=True)


def _compare(a: str, b: str) -> int:
    return (a > b) - (a < b)


def compute_route_coverage_view(
    rows: Sequence[RouteCoverageDetail],
    search: str = "",
    filter_coverage: CoverageFilter = "ALL",
    sort_col: SortColumn = "namespace",
    sort_dir: SortDirection = "asc",
    page: int = 1,
    page_size: int | Literal["All"] = 20,
) -> RouteCoverageView:
    """
    Filter, sort and paginate route coverage rows.

    Search is a case-insensitive substring match on name or namespace.
    Sorting is case-insensitive on ``sort_col``; ties fall back to namespace
    (when sorting by name) and then name, always ascending. The page is
    clamped into range, and ``page_size="All"`` returns everything on one page.

    Args:
        rows: Route coverage records, usually ``CoverageGraph.route_coverage``
        search: Free-text filter
        filter_coverage: "ALL", "COVERED" or "UNCOVERED"
        sort_col: "namespace" or "name"
        sort_dir: "asc" or "desc"
        page: 1-based page number
        page_size: Rows per page, or "All"

    Returns:
        RouteCoverageView with the visible slice and paging totals

    Raises:
        ValueError: If page_size is not positive
    """
    if page_size != "All" and page_size < 1:
        raise ValueError(f"page_size must be positive or 'All', got {page_size}")

    term = search.strip().lower()

    def keep(row: RouteCoverageDetail) -> bool:
        if filter_coverage == "COVERED" and not row.covered:
            return False
        if filter_coverage == "UNCOVERED" and row.covered:
            return False
        if term and term not in row.name.lower() and term not in row.namespace.lower():
            return False
        return True

    direction = 1 if sort_dir == "asc" else -1

    def order(a: RouteCoverageDetail, b: RouteCoverageDetail) -> int:
        primary = _compare(getattr(a, sort_col).lower(), getattr(b, sort_col).lower())
        if primary:
            return primary * direction
        if sort_col != "namespace":
            by_namespace = _compare(a.namespace.lower(), b.namespace.lower())
            if by_namespace:
                return by_namespace
        return _compare(a.name.lower(), b.name.lower())

    filtered = sorted((row for row in rows if keep(row)), key=cmp_to_key(order))

    total = len(filtered)
    if page_size == "All":
        return RouteCoverageView(
            total=total, total_pages=1, page=1, page_size=page_size, visible=filtered
        )

    total_pages = max(1, math.ceil(total / page_size))
    safe_page = min(max(1, page), total_pages)
    start = (safe_page - 1) * page_size
    return RouteCoverageView(
        total=total,
        total_pages=total_pages,
        page=safe_page,
        page_size=page_size,
        visible=filtered[start : start + page_size],
    )
