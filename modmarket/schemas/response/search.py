"""
Request and response bodies of the dynamic search endpoints.
"""

import enum
from typing import Any

from pydantic import Field

from .._modmarket import _MarketModel
from ..query import ComplexityAnalysis, ComplexQuery, QueryValidationResult

__all__ = [
    "SearchPatternType",
    "DynamicSearchRequest",
    "SearchQueryInfo",
    "SearchPagination",
    "SearchAnalytics",
    "DynamicSearchResponse",
    "QueryAnalysisSummary",
    "QueryAnalysisResponse",
]


class SearchPatternType(str, enum.Enum):
    car_search = "carSearch"
    advanced_search = "advancedSearch"
    modification_search = "modificationSearch"
    price_analysis = "priceAnalysis"
    location_search = "locationSearch"


class DynamicSearchRequest(_MarketModel):
    type: str = SearchPatternType.car_search.value
    """search pattern name; unknown names fall back to a car search"""
    params: dict[str, Any] = Field(default_factory=dict)
    custom_query: ComplexQuery | None = None
    """used as-is instead of a pattern when given"""
    include_analytics: bool = False
    include_highlights: bool = False
    optimize: bool | None = None
    """defaults to the `SEARCH_OPTIMIZE_BY_DEFAULT` setting"""


class SearchQueryInfo(_MarketModel):
    type: str
    params: dict[str, Any]
    optimized: bool


class SearchPagination(_MarketModel):
    page: int
    limit: int
    total_items: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def from_count(cls, page: int, limit: int, count: int | None) -> "SearchPagination":
        total = count or 0
        total_pages = -(-total // limit) if total else 0

        return cls(
            page=page,
            limit=limit,
            total_items=total,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


class SearchAnalytics(_MarketModel):
    execution_time: float
    """total request handling time in milliseconds"""
    query_execution_time: float
    validation: QueryValidationResult
    complexity: ComplexityAnalysis
    index_suggestions: list[str]
    result_count: int
    total_count: int | None = None


class DynamicSearchResponse(_MarketModel):
    listings: list[dict[str, Any]]
    pagination: SearchPagination | None = None
    query: SearchQueryInfo
    analytics: SearchAnalytics | None = None
    highlights: list[dict[str, Any]] | None = None
    """per listing, in the same order, the highlighted title and description"""
    warnings: list[str] | None = None
    optimizations: list[str] | None = None


class QueryAnalysisSummary(_MarketModel):
    is_valid: bool
    complexity_score: float
    has_optimizations: bool
    recommendation_count: int
    warning_count: int


class QueryAnalysisResponse(_MarketModel):
    validation: QueryValidationResult
    complexity: ComplexityAnalysis
    index_suggestions: list[str]
    optimized_query: ComplexQuery
    analysis: QueryAnalysisSummary
