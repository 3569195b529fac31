"""
Dynamic listing search.

`POST /api/search/dynamic` runs one of the common search patterns (or a
client-built `ComplexQuery`), optionally rewritten by the optimizer, and
returns the matching listings with their images and modifications.
`GET /api/search/dynamic` is the same car search driven by query parameters,
for links and simple clients.
"""

import time
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from modmarket.core.config import get_app_settings
from modmarket.core.exceptions import QueryExecutionError, QueryValidationError, registered_exceptions
from modmarket.core.root_logger import get_logger
from modmarket.db.db_setup import generate_session
from modmarket.schemas.query import CarSortBy, ComplexQuery, JoinCondition
from modmarket.schemas.response import (
    DynamicSearchRequest,
    DynamicSearchResponse,
    ErrorResponse,
    SearchAnalytics,
    SearchPagination,
    SearchPatternType,
    SearchQueryInfo,
)
from modmarket.services.query_builder.optimizer import QueryOptimizer
from modmarket.services.query_builder.patterns import MODIFICATION_COLUMNS, CommonQueryPatterns
from modmarket.services.query_builder.search_query_builder import SearchQueryBuilder
from modmarket.services.search.highlighter import highlight

router = APIRouter(prefix="/dynamic")

logger = get_logger()

PATTERNS: dict[str, Callable[[dict[str, Any]], ComplexQuery]] = {
    SearchPatternType.car_search.value: CommonQueryPatterns.car_search,
    SearchPatternType.advanced_search.value: CommonQueryPatterns.advanced_search,
    SearchPatternType.modification_search.value: CommonQueryPatterns.modification_search,
    SearchPatternType.price_analysis.value: CommonQueryPatterns.price_analysis,
    SearchPatternType.location_search.value: CommonQueryPatterns.location_search,
}

LISTING_DETAILS = [
    JoinCondition(table="listing_images", select=["image_url", "is_primary"]),
    JoinCondition(table="modifications", select=MODIFICATION_COLUMNS),
]

DESCRIPTION_HIGHLIGHT_LENGTH = 200


def _with_listing_details(query: ComplexQuery) -> ComplexQuery:
    """Adds the images and modifications of each listing unless the query already joins them."""
    joined = {join.table for join in query.joins}
    details = [join for join in LISTING_DETAILS if join.table not in joined]
    return query.model_copy(update={"joins": query.joins + details})


def _highlights(listings: list[dict[str, Any]], search: str) -> list[dict[str, Any]]:
    return [
        {
            "id": listing.get("id"),
            "title": [s.model_dump(by_alias=True) for s in highlight(listing.get("title") or "", search)],
            "description": [
                s.model_dump(by_alias=True)
                for s in highlight(listing.get("description") or "", search, max_length=DESCRIPTION_HIGHLIGHT_LENGTH)
            ],
        }
        for listing in listings
    ]


def run_dynamic_search(session: Session, data: DynamicSearchRequest) -> DynamicSearchResponse:
    start = time.perf_counter()
    settings = get_app_settings()
    optimize = settings.SEARCH_OPTIMIZE_BY_DEFAULT if data.optimize is None else data.optimize

    logger.info(f"Dynamic search: type={data.type} custom={data.custom_query is not None} optimize={optimize}")

    try:
        if data.custom_query:
            query = data.custom_query
        else:
            query = PATTERNS.get(data.type, CommonQueryPatterns.car_search)(data.params)
    except ValidationError as e:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST,
            detail=ErrorResponse.respond(
                message="Invalid search parameters",
                exception=str(e),
                errors=[f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()],
            ),
        ) from e

    if optimize:
        query = QueryOptimizer.optimize_query(query)

    try:
        result = SearchQueryBuilder(session).execute_query(_with_listing_details(query))
    except QueryValidationError as e:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST,
            detail=ErrorResponse.respond(
                message=registered_exceptions()[QueryValidationError], exception=str(e), errors=e.errors
            ),
        ) from e
    except QueryExecutionError as e:
        logger.error(f"Dynamic search failed: {e}")
        raise HTTPException(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=ErrorResponse.respond(message=registered_exceptions()[QueryExecutionError], exception=str(e)),
        ) from e

    total_time = (time.perf_counter() - start) * 1000

    response = DynamicSearchResponse(
        listings=result.data,
        query=SearchQueryInfo(type=data.type, params=data.params, optimized=optimize),
    )

    if query.pagination:
        response.pagination = SearchPagination.from_count(query.pagination.page, query.pagination.limit, result.count)

    if data.include_analytics:
        response.analytics = SearchAnalytics(
            execution_time=total_time,
            query_execution_time=result.execution_time_ms,
            validation=result.validation,
            complexity=QueryOptimizer.analyze_complexity(query),
            index_suggestions=QueryOptimizer.suggest_indexes(query),
            result_count=len(result.data),
            total_count=result.count,
        )

    if data.include_highlights and query.text_search:
        response.highlights = _highlights(result.data, query.text_search.query)

    if result.validation.warnings:
        response.warnings = result.validation.warnings

    if result.validation.optimizations:
        response.optimizations = result.validation.optimizations

    logger.info(f"Dynamic search completed - found {len(result.data)} results in {total_time:.1f}ms")
    return response


def _split(value: str | None) -> list[str] | None:
    if not value:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


def _range(min: int | None, max: int | None) -> dict[str, int] | None:
    if min is None and max is None:
        return None
    return {"min": min, "max": max}


@router.post("", response_model=DynamicSearchResponse)
def dynamic_search(data: DynamicSearchRequest, session: Session = Depends(generate_session)):
    return run_dynamic_search(session, data)


@router.get("", response_model=DynamicSearchResponse)
def dynamic_search_from_query(
    q: str | None = None,
    make: str | None = Query(None, description="comma separated"),
    model: str | None = Query(None, description="comma separated"),
    year_from: int | None = Query(None, alias="yearFrom"),
    year_to: int | None = Query(None, alias="yearTo"),
    price_from: int | None = Query(None, alias="priceFrom"),
    price_to: int | None = Query(None, alias="priceTo"),
    mileage_from: int | None = Query(None, alias="mileageFrom"),
    mileage_to: int | None = Query(None, alias="mileageTo"),
    condition: str | None = Query(None, description="comma separated"),
    transmission: str | None = Query(None, description="comma separated"),
    location: str | None = None,
    has_modifications: bool = Query(False, alias="hasModifications"),
    mod_categories: str | None = Query(None, alias="modCategories", description="comma separated"),
    specific_mods: str | None = Query(None, alias="specificMods", description="comma separated"),
    sort_by: CarSortBy = Query(CarSortBy.relevance, alias="sortBy"),
    page: int = 1,
    limit: int = 12,
    analytics: bool = False,
    optimize: bool = True,
    session: Session = Depends(generate_session),
):
    params = {
        "searchTerm": q,
        "make": _split(make),
        "model": _split(model),
        "yearRange": _range(year_from, year_to),
        "priceRange": _range(price_from, price_to),
        "mileageRange": _range(mileage_from, mileage_to),
        "condition": _split(condition),
        "transmission": _split(transmission),
        "location": location,
        "hasModifications": has_modifications or None,
        "modificationCategories": _split(mod_categories),
        "specificModifications": _split(specific_mods),
        "sortBy": sort_by.value,
        "page": page,
        "limit": limit,
    }

    data = DynamicSearchRequest(
        type=SearchPatternType.car_search.value,
        params={key: value for key, value in params.items() if value is not None},
        include_analytics=analytics,
        optimize=optimize,
    )
    return run_dynamic_search(session, data)
