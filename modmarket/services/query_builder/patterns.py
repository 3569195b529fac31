"""
Ready-made complex queries for the common marketplace searches.

Each pattern takes its parameter model (or a dict with the same keys, in
camelCase or snake_case) and returns a `ComplexQuery`. Filters are only added
for the parameters that were given, so an empty parameter set yields an
unfiltered query with the pattern's default ordering.
"""

from typing import Any, TypeVar

from pydantic import BaseModel

from modmarket.core.root_logger import get_logger
from modmarket.schemas.query import (
    AdvancedSearchParams,
    CarSearchParams,
    CarSortBy,
    ComplexQuery,
    ConditionOperator,
    LocationSearchParams,
    ModificationSearchParams,
    PriceAnalysisParams,
    TextSearchType,
)

from .builder import QueryBuilderHelpers
from .limits import DEFAULT_LIMIT

logger = get_logger(__name__)

ParamsT = TypeVar("ParamsT", bound=BaseModel)

MODIFICATION_COLUMNS = ["name", "description", "category", "created_at"]

_CAR_SORTING = {
    CarSortBy.price_low: ("price", "asc"),
    CarSortBy.price_high: ("price", "desc"),
    CarSortBy.year_new: ("year", "desc"),
    CarSortBy.year_old: ("year", "asc"),
    CarSortBy.newest: ("created_at", "desc"),
}


def _as_params(params_cls: type[ParamsT], params: ParamsT | dict[str, Any] | None) -> ParamsT:
    if isinstance(params, params_cls):
        return params
    return params_cls.model_validate(params or {})


def _as_list(value: str | list[str]) -> list[str]:
    return value if isinstance(value, list) else [value]


def _has_text(term: str | None) -> bool:
    return bool(term and term.strip())


def _paginate(builder: QueryBuilderHelpers, page: int | None, limit: int | None) -> None:
    if page or limit:
        builder.paginate(page or 1, limit or DEFAULT_LIMIT)


class CommonQueryPatterns:
    @staticmethod
    def car_search(params: CarSearchParams | dict[str, Any] | None = None) -> ComplexQuery:
        """
        Standard listing search from the search page filters.

        Multi-value filters (make, model, condition, transmission) accept a
        single string or a list and always become an `in` condition. Without a
        `sort_by`, results are ordered by relevance when there is a search term
        and by newest first otherwise.
        """
        params = _as_params(CarSearchParams, params)
        builder = QueryBuilderHelpers.create()

        if _has_text(params.search_term):
            builder.text_search(params.search_term, type=TextSearchType.websearch)

        if params.make:
            builder.where_in("make", _as_list(params.make))

        if params.model:
            builder.where_in("model", _as_list(params.model))

        if params.year_range:
            builder.where_between("year", params.year_range.min, params.year_range.max)

        if params.price_range:
            builder.where_between("price", params.price_range.min, params.price_range.max)

        if params.mileage_range:
            builder.where_between("mileage", params.mileage_range.min, params.mileage_range.max)

        if params.condition:
            builder.where_in("condition", _as_list(params.condition))

        if params.transmission:
            builder.where_in("transmission", _as_list(params.transmission))

        if params.location:
            builder.where_like("location", params.location)

        if params.has_modifications:
            builder.where("modification_count", ConditionOperator.gt, 0)

        if params.modification_categories:
            builder.where_in("modifications.category", params.modification_categories)

        if params.specific_modifications:
            builder.where_in("modifications.name", params.specific_modifications)

        if params.sort_by in _CAR_SORTING:
            builder.order_by(*_CAR_SORTING[params.sort_by])
        elif not _has_text(params.search_term):
            # relevance ordering is applied by the executor when text search is present
            builder.order_by("created_at", "desc")

        _paginate(builder, params.page, params.limit)
        return builder.build()

    @staticmethod
    def advanced_search(params: AdvancedSearchParams | dict[str, Any] | None = None) -> ComplexQuery:
        """
        Boolean search over arbitrary fields.

        `must_have` values must all match, `should_have` entries are combined
        into one OR group (a list value contributes one alternative per
        element), and `must_not` values are excluded.
        """
        params = _as_params(AdvancedSearchParams, params)
        builder = QueryBuilderHelpers.create()

        if _has_text(params.text_search):
            builder.text_search(params.text_search)

        for field, value in (params.must_have or {}).items():
            if isinstance(value, list):
                builder.where_in(field, value)
            else:
                builder.where(field, ConditionOperator.eq, value)

        if params.should_have:

            def should(group):
                for alternatives in params.should_have:
                    for field, value in alternatives.items():
                        for v in _as_list(value):
                            group.where(field, ConditionOperator.eq, v)

            builder.where_group("OR", should)

        for field, value in (params.must_not or {}).items():
            if isinstance(value, list):
                builder.where(field, ConditionOperator.not_in, value)
            else:
                builder.where(field, ConditionOperator.neq, value)

        for field, bounds in (params.ranges or {}).items():
            builder.where_between(field, bounds.min, bounds.max)

        for sort in params.sorting or []:
            builder.order_by(sort.field, sort.order)

        _paginate(builder, params.page, params.limit)
        return builder.build()

    @staticmethod
    def modification_search(params: ModificationSearchParams | dict[str, Any] | None = None) -> ComplexQuery:
        params = _as_params(ModificationSearchParams, params)
        builder = QueryBuilderHelpers.create()

        if _has_text(params.search_term):
            builder.text_search(params.search_term)

        if params.has_modifications:
            builder.where("modification_count", ConditionOperator.gt, 0)

        if params.min_modification_count is not None:
            builder.where("modification_count", ConditionOperator.gte, params.min_modification_count)

        if params.categories or params.specific_mods or params.date_range:
            builder.join("modifications", MODIFICATION_COLUMNS)

        if params.categories:
            builder.where_in("modifications.category", params.categories)

        if params.specific_mods:
            builder.where_in("modifications.name", params.specific_mods)

        if params.date_range:
            builder.where_between("modifications.created_at", params.date_range.date_from, params.date_range.date_to)

        _paginate(builder, params.page, params.limit)
        return builder.build()

    @staticmethod
    def price_analysis(params: PriceAnalysisParams | dict[str, Any] | None = None) -> ComplexQuery:
        """
        Listings for a price comparison, most expensive first.

        `group_by` and `sort_by` are accepted but have no effect on the query yet.
        """
        params = _as_params(PriceAnalysisParams, params)
        builder = QueryBuilderHelpers.create()

        if params.make:
            builder.where("make", ConditionOperator.eq, params.make)

        if params.model:
            builder.where("model", ConditionOperator.eq, params.model)

        if params.year_range:
            builder.where_between("year", params.year_range.min, params.year_range.max)

        if params.group_by or params.sort_by:
            logger.warning(
                f"price analysis ignores group_by={params.group_by} sort_by={params.sort_by}, "
                "results are sorted by price"
            )

        builder.order_by("price", "desc")
        return builder.build()

    @staticmethod
    def location_search(params: LocationSearchParams | dict[str, Any] | None = None) -> ComplexQuery:
        """
        Listings whose location mentions the given place names, newest first.

        Each of `location`, `state` and `city` must appear in the listing's
        location text. `radius` and `sort_by_distance` are stored for distance
        search, which needs coordinates the listings do not have yet.
        """
        params = _as_params(LocationSearchParams, params)
        builder = QueryBuilderHelpers.create()

        if _has_text(params.search_term):
            builder.text_search(params.search_term)

        for place in (params.location, params.state, params.city):
            if place:
                builder.where_like("location", place)

        builder.order_by("created_at", "desc")

        _paginate(builder, params.page, params.limit)
        return builder.build()
