"""
Parameter models for the common listing search patterns.

Each model mirrors the form a client submits for one kind of search. The
pattern functions in `modmarket.services.query_builder.patterns` accept either
these models or plain dicts in camelCase or snake_case.
"""

import enum
from datetime import date, datetime

from pydantic import Field, field_validator

from .._modmarket import _MarketModel
from .complex_query import ConditionValue, SortCondition

__all__ = [
    "Range",
    "DateRange",
    "CarSortBy",
    "PriceGroupBy",
    "PriceSortBy",
    "CarSearchParams",
    "AdvancedSearchParams",
    "ModificationSearchParams",
    "PriceAnalysisParams",
    "LocationSearchParams",
]

RangeValue = int | float | str | None


class Range(_MarketModel):
    """Inclusive bounds; either side may be left open."""

    min: RangeValue = None
    max: RangeValue = None

    @field_validator("min", "max", mode="before")
    @classmethod
    def date_to_isoformat(cls, v):
        if isinstance(v, datetime | date):
            return v.isoformat()
        return v


class DateRange(_MarketModel):
    date_from: str | None = Field(default=None, alias="from")
    date_to: str | None = Field(default=None, alias="to")

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def date_to_isoformat(cls, v):
        if isinstance(v, datetime | date):
            return v.isoformat()
        return v


class CarSortBy(str, enum.Enum):
    relevance = "relevance"
    price_low = "price_low"
    price_high = "price_high"
    year_new = "year_new"
    year_old = "year_old"
    newest = "newest"


class PriceGroupBy(str, enum.Enum):
    make = "make"
    model = "model"
    year = "year"
    condition = "condition"


class PriceSortBy(str, enum.Enum):
    avg_price = "avg_price"
    count = "count"
    min_price = "min_price"
    max_price = "max_price"


class _PagedParams(_MarketModel):
    page: int | None = None
    limit: int | None = None


class CarSearchParams(_PagedParams):
    search_term: str | None = None
    make: str | list[str] | None = None
    model: str | list[str] | None = None
    year_range: Range | None = None
    price_range: Range | None = None
    mileage_range: Range | None = None
    condition: str | list[str] | None = None
    transmission: str | list[str] | None = None
    location: str | None = None
    has_modifications: bool | None = None
    modification_categories: list[str] | None = None
    specific_modifications: list[str] | None = None
    sort_by: CarSortBy | None = None


class AdvancedSearchParams(_PagedParams):
    text_search: str | None = None
    must_have: dict[str, ConditionValue] | None = None
    """field -> value; a list value means "any of these"."""
    should_have: list[dict[str, ConditionValue]] | None = None
    """every entry contributes alternatives to a single OR group"""
    must_not: dict[str, ConditionValue] | None = None
    ranges: dict[str, Range] | None = None
    sorting: list[SortCondition] | None = None


class ModificationSearchParams(_PagedParams):
    search_term: str | None = None
    categories: list[str] | None = None
    specific_mods: list[str] | None = None
    date_range: DateRange | None = None
    has_modifications: bool | None = None
    min_modification_count: int | None = None


class PriceAnalysisParams(_MarketModel):
    make: str | None = None
    model: str | None = None
    year_range: Range | None = None
    group_by: PriceGroupBy | None = None
    sort_by: PriceSortBy | None = None


class LocationSearchParams(_PagedParams):
    search_term: str | None = None
    location: str | None = None
    radius: float | None = None
    """kilometres around `location`; stored for distance search, not applied yet"""
    state: str | None = None
    city: str | None = None
    sort_by_distance: bool | None = None
