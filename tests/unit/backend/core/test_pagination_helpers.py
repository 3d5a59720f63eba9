"""
Unit Tests for Pagination Utilities.

Tests the offset pagination helpers.
"""

from datetime import date

import pytest
from pydantic import BaseModel

from eventdesk.backend.core.pagination import (
    PaginationParams,
    create_paginated_response,
    get_pagination_params,
)


class EventRow(BaseModel):
    slug: str
    start_date: date


def _rows(count: int) -> list[dict]:
    return [{"slug": f"meet-{n}", "start_date": date(2026, 1, n + 1)} for n in range(count)]


class TestPaginationParams:
    """Tests for the query dependency."""

    def test_returns_params(self):
        params = get_pagination_params(limit=50, offset=10)

        assert params == PaginationParams(limit=50, offset=10)


class TestCreatePaginatedResponse:
    """Tests for create_paginated_response."""

    def test_creates_valid_response_structure(self):
        """Should build the success envelope with pagination."""
        result = create_paginated_response(_rows(2), EventRow, total=2)

        assert result["success"] is True
        assert result["error"] is None
        assert set(result["pagination"]) == {"total", "limit", "offset", "has_more"}
        assert "timestamp" in result["metadata"]

    def test_items_serialised_through_schema(self):
        """Dates should be rendered as ISO strings."""
        result = create_paginated_response(_rows(1), EventRow, total=1)

        assert result["data"] == [{"slug": "meet-0", "start_date": "2026-01-01"}]

    @pytest.mark.parametrize(
        ("count", "total", "offset", "has_more"),
        [
            (5, 12, 0, True),
            (5, 12, 5, True),
            (2, 12, 10, False),
            (0, 0, 0, False),
        ],
    )
    def test_has_more(self, count, total, offset, has_more):
        result = create_paginated_response(_rows(count), EventRow, total=total, limit=5, offset=offset)

        assert result["pagination"]["has_more"] is has_more
        assert result["pagination"]["total"] == total
        assert result["pagination"]["offset"] == offset

    def test_unknown_total_never_has_more(self):
        result = create_paginated_response(_rows(3), EventRow, limit=3)

        assert result["pagination"]["has_more"] is False

    def test_includes_request_id(self):
        result = create_paginated_response([], EventRow, total=0, request_id="req-42")

        assert result["metadata"]["request_id"] == "req-42"
