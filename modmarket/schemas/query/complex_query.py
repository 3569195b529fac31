"""
This module defines the complex query model used by the listing search.

A `ComplexQuery` is a declarative description of a search: an optional
full-text search, a flat list of conditions, nested groups of conditions,
sorting, pagination and related-table joins. It says nothing about how the
search is executed; `modmarket.services.query_builder` builds, analyses and
translates it into SQL.

An empty `ComplexQuery` means "no filter".
"""

from __future__ import annotations

import enum

from pydantic import Field, field_validator

from .._modmarket import _MarketModel

__all__ = [
    "ConditionOperator",
    "LogicalOperator",
    "TextSearchType",
    "TextSearchConfig",
    "SortOrder",
    "JoinType",
    "ConditionValue",
    "SearchCondition",
    "QueryGroup",
    "TextSearchCondition",
    "SortCondition",
    "JoinCondition",
    "Pagination",
    "ComplexQuery",
]


class ConditionOperator(str, enum.Enum):
    eq = "eq"
    neq = "neq"
    gt = "gt"
    gte = "gte"
    lt = "lt"
    lte = "lte"
    like = "like"
    ilike = "ilike"
    in_ = "in"
    not_in = "not_in"
    is_null = "is_null"
    not_null = "not_null"

    @property
    def is_null_check(self) -> bool:
        return self in (ConditionOperator.is_null, ConditionOperator.not_null)

    @property
    def is_list(self) -> bool:
        return self in (ConditionOperator.in_, ConditionOperator.not_in)


class LogicalOperator(str, enum.Enum):
    AND = "AND"
    OR = "OR"


class TextSearchType(str, enum.Enum):
    """
    How the search text is parsed into a full-text query.

    `websearch` accepts search-engine syntax (quotes, `or`, `-term`), `plainto`
    ANDs the plain words, `phraseto` and `phrase` require the words in order.
    """

    websearch = "websearch"
    plainto = "plainto"
    phraseto = "phraseto"
    phrase = "phrase"


class TextSearchConfig(str, enum.Enum):
    english = "english"
    simple = "simple"


class SortOrder(str, enum.Enum):
    asc = "asc"
    desc = "desc"


class JoinType(str, enum.Enum):
    inner = "inner"
    left = "left"
    right = "right"
    full = "full"


Scalar = str | int | float | bool
ConditionValue = Scalar | list[Scalar] | None
"""values a condition can compare against; null-check operators carry None"""


class SearchCondition(_MarketModel):
    field: str
    operator: ConditionOperator
    value: ConditionValue = None
    logic: LogicalOperator | None = None
    """connector to the previous condition; unset inside groups"""


class QueryGroup(_MarketModel):
    conditions: list[SearchCondition | QueryGroup] = Field(default_factory=list)
    logic: LogicalOperator


class TextSearchCondition(_MarketModel):
    query: str
    fields: list[str] | None = None
    type: TextSearchType | None = None
    config: TextSearchConfig | None = None


class SortCondition(_MarketModel):
    field: str
    order: SortOrder = SortOrder.desc


class JoinCondition(_MarketModel):
    table: str
    select: list[str]
    type: JoinType = JoinType.left
    alias: str | None = None
    on: str = ""

    @field_validator("select", mode="before")
    @classmethod
    def split_select(cls, v):
        """accepts a comma separated column string as well as a list"""
        if isinstance(v, str):
            return [column.strip() for column in v.split(",") if column.strip()]
        return v


class Pagination(_MarketModel):
    page: int
    limit: int


class ComplexQuery(_MarketModel):
    text_search: TextSearchCondition | None = None
    conditions: list[SearchCondition] = Field(default_factory=list)
    groups: list[QueryGroup] = Field(default_factory=list)
    sorting: list[SortCondition] = Field(default_factory=list)
    pagination: Pagination | None = None
    joins: list[JoinCondition] = Field(default_factory=list)
