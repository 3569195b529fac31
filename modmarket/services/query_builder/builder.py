"""
Fluent builders for `ComplexQuery` objects.

`QueryBuilderHelpers` accumulates conditions, groups, sorting, pagination and
joins through chained calls and returns the finished query from `build`.
`GroupBuilder` does the same for one parenthesised group of conditions that
share a single logical connective; groups can nest to any depth.

Builders never reject contradictory input (an empty `in` list, a range whose
minimum exceeds its maximum); that is left to whoever executes the query.
A builder is meant for a single query and must not be shared.

Example:
    query = (
        QueryBuilderHelpers.create()
        .text_search("turbo")
        .where_in("make", ["Subaru", "Mitsubishi"])
        .where_between("year", 2002, None)
        .where_group("OR", lambda g: g.where("transmission", "eq", "manual").where_null("mileage"))
        .order_by("price", "asc")
        .paginate(1, 24)
        .build()
    )
"""

from collections.abc import Callable

from modmarket.schemas.query import (
    ComplexQuery,
    ConditionOperator,
    ConditionValue,
    JoinCondition,
    JoinType,
    LogicalOperator,
    Pagination,
    QueryGroup,
    SearchCondition,
    SortCondition,
    SortOrder,
    TextSearchCondition,
    TextSearchConfig,
    TextSearchType,
)

from .limits import DEFAULT_LIMIT


def _condition(
    field: str,
    operator: ConditionOperator | str,
    value: ConditionValue = None,
    logic: LogicalOperator | str | None = None,
) -> SearchCondition:
    operator = ConditionOperator(operator)
    if operator.is_null_check:
        value = None

    return SearchCondition(field=field, operator=operator, value=value, logic=logic)


class GroupBuilder:
    """
    Builds one `QueryGroup`. Conditions added here carry no connective of
    their own; the group's `logic` joins them.
    """

    def __init__(self, logic: LogicalOperator | str) -> None:
        self._group = QueryGroup(logic=LogicalOperator(logic))

    def where(self, field: str, operator: ConditionOperator | str, value: ConditionValue = None) -> "GroupBuilder":
        self._group.conditions.append(_condition(field, operator, value))
        return self

    def where_in(self, field: str, values: list) -> "GroupBuilder":
        return self.where(field, ConditionOperator.in_, values)

    def where_between(self, field: str, min: ConditionValue = None, max: ConditionValue = None) -> "GroupBuilder":
        if min is not None:
            self.where(field, ConditionOperator.gte, min)
        if max is not None:
            self.where(field, ConditionOperator.lte, max)
        return self

    def where_like(self, field: str, pattern: str, case_sensitive: bool = False) -> "GroupBuilder":
        operator = ConditionOperator.like if case_sensitive else ConditionOperator.ilike
        return self.where(field, operator, f"%{pattern}%")

    def where_null(self, field: str) -> "GroupBuilder":
        return self.where(field, ConditionOperator.is_null)

    def where_not_null(self, field: str) -> "GroupBuilder":
        return self.where(field, ConditionOperator.not_null)

    def group(self, logic: LogicalOperator | str, builder_fn: Callable[["GroupBuilder"], object]) -> "GroupBuilder":
        """
        Adds a nested group. `builder_fn` receives the nested builder and is
        called before this method returns.
        """
        nested = GroupBuilder(logic)
        builder_fn(nested)
        self._group.conditions.append(nested.build())
        return self

    def build(self) -> QueryGroup:
        return self._group.model_copy(deep=True)


class QueryBuilderHelpers:
    """
    Fluent builder for a `ComplexQuery`.

    Flat conditions default to the AND connective. Text search and pagination
    are single values; setting them again replaces the earlier value. All other
    calls append, and the order of the calls is kept.
    """

    def __init__(self) -> None:
        self._query = ComplexQuery()

    @classmethod
    def create(cls) -> "QueryBuilderHelpers":
        return cls()

    def text_search(
        self,
        term: str,
        fields: list[str] | None = None,
        type: TextSearchType | str | None = None,
        config: TextSearchConfig | str | None = None,
    ) -> "QueryBuilderHelpers":
        """
        Sets the full-text search.

        Args:
            term (str): The text to search for.
            fields (list[str] | None, optional): Columns to search. Defaults to the listing's searchable columns.
            type (TextSearchType | str | None, optional): How the text is parsed into a query.
            config (TextSearchConfig | str | None, optional): Text search dictionary, "english" or "simple".
        """
        self._query.text_search = TextSearchCondition(query=term, fields=fields, type=type, config=config)
        return self

    def where(
        self,
        field: str,
        operator: ConditionOperator | str,
        value: ConditionValue = None,
        logic: LogicalOperator | str = LogicalOperator.AND,
    ) -> "QueryBuilderHelpers":
        self._query.conditions.append(_condition(field, operator, value, logic))
        return self

    def where_in(self, field: str, values: list) -> "QueryBuilderHelpers":
        return self.where(field, ConditionOperator.in_, values)

    def where_between(
        self, field: str, min: ConditionValue = None, max: ConditionValue = None
    ) -> "QueryBuilderHelpers":
        """
        Adds `field >= min` and/or `field <= max`. A bound left as None adds
        nothing, so with both None the call is a no-op.
        """
        if min is not None:
            self.where(field, ConditionOperator.gte, min)
        if max is not None:
            self.where(field, ConditionOperator.lte, max)
        return self

    def where_like(self, field: str, pattern: str, case_sensitive: bool = False) -> "QueryBuilderHelpers":
        """Matches `pattern` anywhere in the column value."""
        operator = ConditionOperator.like if case_sensitive else ConditionOperator.ilike
        return self.where(field, operator, f"%{pattern}%")

    def where_null(self, field: str) -> "QueryBuilderHelpers":
        return self.where(field, ConditionOperator.is_null)

    def where_not_null(self, field: str) -> "QueryBuilderHelpers":
        return self.where(field, ConditionOperator.not_null)

    def where_group(
        self, logic: LogicalOperator | str, builder_fn: Callable[[GroupBuilder], object]
    ) -> "QueryBuilderHelpers":
        """
        Adds a group of conditions joined by `logic`.

        Args:
            logic (LogicalOperator | str): "AND" or "OR".
            builder_fn (Callable[[GroupBuilder], object]): Called immediately with the group's builder.
                Exceptions raised by it propagate to the caller.
        """
        group = GroupBuilder(logic)
        builder_fn(group)
        self._query.groups.append(group.build())
        return self

    def order_by(self, field: str, order: SortOrder | str = SortOrder.desc) -> "QueryBuilderHelpers":
        self._query.sorting.append(SortCondition(field=field, order=order))
        return self

    def paginate(self, page: int, limit: int = DEFAULT_LIMIT) -> "QueryBuilderHelpers":
        self._query.pagination = Pagination(page=page, limit=limit)
        return self

    def join(
        self,
        table: str,
        select: str | list[str],
        type: JoinType | str = JoinType.left,
        alias: str | None = None,
        on: str | None = None,
    ) -> "QueryBuilderHelpers":
        self._query.joins.append(JoinCondition(table=table, select=select, type=type, alias=alias, on=on or ""))
        return self

    def build(self) -> ComplexQuery:
        """
        Returns the query built so far. The result is a copy; later calls on
        the builder do not change it.
        """
        return self._query.model_copy(deep=True)
