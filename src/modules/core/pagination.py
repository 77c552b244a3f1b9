"""Pagination used by list endpoints (admin order listing)."""

from __future__ import annotations

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class StandardResultsSetPagination(PageNumberPagination):
    """Page-number pagination wrapped in the storefront response envelope."""

    page_size = 20
    page_size_query_param = "limit"
    max_page_size = 100

    def get_paginated_response(self, data) -> Response:
        page = self.page
        return Response(
            {
                "success": True,
                "data": {
                    "results": data,
                    "pagination": {
                        "currentPage": page.number,
                        "totalPages": page.paginator.num_pages,
                        "totalCount": page.paginator.count,
                        "hasNextPage": page.has_next(),
                        "hasPrevPage": page.has_previous(),
                        "limit": self.get_page_size(self.request),
                    },
                },
            }
        )
