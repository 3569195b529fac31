"""
Translation of `ComplexQuery` objects into SQLAlchemy statements.

`SearchQueryBuilder` is the consumer of the query model: it validates a query
against the listing schema and the configured limits, turns it into a
`Select`, runs it with a matching count query and returns plain dictionaries.

Translation rules:

- Only rows matching the base filters are returned (by default `status == "active"`).
- Text search uses PostgreSQL full-text search when available and tokenized,
  case-insensitive `LIKE` matching on other databases.
- Flat conditions joined with AND are applied one by one; all conditions
  joined with OR form a single alternative.
- Groups are translated recursively into `and_`/`or_` expressions.
- A dotted field such as `modifications.category` filters through the
  relationship: the listing matches when a related row matches.
- Joins load the selected columns of the related rows into the result under
  the join's alias (or table name). An inner join additionally requires at
  least one related row.
- String columns sort case-insensitively. Without explicit sorting, text
  searches order by relevance (`search_boost`, then `view_count`) and all other
  searches by newest first.
"""

import time
from typing import Any

import sqlalchemy as sa
from dateutil import parser as date_parser
from dateutil.parser import ParserError
from sqlalchemy.dialects.postgresql import REGCONFIG
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import InstrumentedAttribute, RelationshipProperty, Session, load_only, selectinload
from sqlalchemy.sql import sqltypes

from modmarket.core.exceptions import QueryExecutionError, QueryValidationError, UnsupportedOperatorError
from modmarket.db.models import SqlAlchemyBase
from modmarket.db.models.listings import ListingModel
from modmarket.schemas._modmarket import SearchType, _MarketModel
from modmarket.schemas.listing import ListingRead
from modmarket.schemas.query import (
    ComplexQuery,
    ConditionOperator,
    JoinCondition,
    JoinType,
    LogicalOperator,
    Pagination,
    QueryExecutionResult,
    QueryGroup,
    QueryValidationResult,
    SearchCondition,
    SortOrder,
    TextSearchCondition,
    TextSearchConfig,
    TextSearchType,
)
from modmarket.services import BaseService
from modmarket.services.search.search_terms import SearchTerms

from . import limits
from .limits import QueryLimits

TSQUERY_FUNCTIONS = {
    TextSearchType.websearch: sa.func.websearch_to_tsquery,
    TextSearchType.plainto: sa.func.plainto_tsquery,
    TextSearchType.phraseto: sa.func.phraseto_tsquery,
    TextSearchType.phrase: sa.func.phraseto_tsquery,
}

RELEVANCE_SORTING = [("search_boost", SortOrder.desc), ("view_count", SortOrder.desc)]
DEFAULT_SORTING = [("created_at", SortOrder.desc)]

TRUE_STRINGS = ["true", "t", "yes", "y", "1"]
FALSE_STRINGS = ["false", "f", "no", "n", "0"]


class ResolvedField:
    """A column reached from the base model, possibly through relationships."""

    def __init__(self, attr: InstrumentedAttribute, relationships: list[InstrumentedAttribute]) -> None:
        self.attr = attr
        self.relationships = relationships

    @property
    def sqla_type(self) -> Any:
        return self.attr.type

    def wrap(self, clause: sa.ColumnElement) -> sa.ColumnElement:
        """Moves `clause` behind the relationships, innermost first."""
        for relationship in reversed(self.relationships):
            if relationship.property.uselist:
                clause = relationship.any(clause)
            else:
                clause = relationship.has(clause)
        return clause


class SearchQueryBuilder(BaseService):
    """
    Validates, translates and executes complex queries against one model.

    Args:
        session (Session): The database session queries run in.
        model (type[SqlAlchemyBase], optional): The model searched. Defaults to `ListingModel`.
        schema (type[_MarketModel], optional): Schema naming the default columns and the
            searchable properties. Defaults to `ListingRead`.
        select_fields (list[str] | None, optional): Columns returned for each row.
            Defaults to the fields of `schema`.
        base_filters (dict[str, Any] | None, optional): Equality filters applied to every
            query. Defaults to active listings only.
        query_limits (QueryLimits | None, optional): Limits enforced by `validate_query`.
            Defaults to the application settings.
    """

    def __init__(
        self,
        session: Session,
        model: type[SqlAlchemyBase] = ListingModel,
        schema: type[_MarketModel] = ListingRead,
        select_fields: list[str] | None = None,
        base_filters: dict[str, Any] | None = None,
        query_limits: QueryLimits | None = None,
    ) -> None:
        super().__init__()
        self.session = session
        self.model = model
        self.schema = schema
        self.select_fields = select_fields or list(schema.model_fields)
        self.base_filters = {"status": "active"} if base_filters is None else base_filters
        self.limits = query_limits or QueryLimits.from_settings(self._settings)

        for field in self.select_fields:
            if not isinstance(getattr(self.model, field, None), InstrumentedAttribute):
                raise ValueError(f"'{field}' is not a column of {self.model.__name__}")

    # ==================================================================================================================
    # Field Resolution

    def resolve_field(self, field: str) -> ResolvedField:
        """
        Resolves a possibly dotted field name (e.g. "modifications.category") to a column.

        Raises:
            ValueError: If any part of the name does not exist, or a part other
                than the last is not a relationship.
        """
        parts = field.split(".")
        if not all(parts):
            raise ValueError(f"invalid field name '{field}'")

        current_model = self.model
        relationships: list[InstrumentedAttribute] = []

        for i, part in enumerate(parts):
            attr = getattr(current_model, part, None)
            if not isinstance(attr, InstrumentedAttribute):
                raise ValueError(f"unknown field '{field}'")

            is_relationship = isinstance(attr.property, RelationshipProperty)
            if i < len(parts) - 1:
                if not is_relationship:
                    raise ValueError(f"'{part}' in '{field}' is not a relationship")
                relationships.append(attr)
                current_model = attr.property.mapper.class_
            elif is_relationship:
                raise ValueError(f"'{field}' is a relationship, not a column")
            else:
                return ResolvedField(attr, relationships)

        raise ValueError(f"unknown field '{field}'")

    def resolve_join(self, join: JoinCondition) -> InstrumentedAttribute:
        """
        Finds the relationship of the base model that leads to `join.table`.
        The relationship name and the related table name are both accepted.

        Raises:
            ValueError: If no relationship matches, or a selected column does not exist.
        """
        mapper = sa.inspect(self.model)
        for relationship in mapper.relationships:
            target = relationship.mapper
            if join.table not in (relationship.key, target.local_table.name):
                continue

            for column in join.select:
                if column not in target.column_attrs.keys():
                    raise ValueError(f"unknown column '{column}' on '{join.table}'")

            return getattr(self.model, relationship.key)

        raise ValueError(f"unknown table '{join.table}'")

    @staticmethod
    def coerce_value(condition: SearchCondition, sqla_type: Any) -> Any:
        """
        Converts a condition's value to the type of the column it is compared with.

        Dates are parsed with `dateutil`, booleans accept common strings and
        numeric columns accept numeric strings. Each element of a list value is
        converted on its own.

        Raises:
            ValueError: If the value cannot be converted, or a LIKE operator is
                used on a column that is not a string.
        """
        if condition.operator in (ConditionOperator.like, ConditionOperator.ilike):
            if not isinstance(sqla_type, sqltypes.String):
                raise ValueError(f"'{condition.operator.value}' can only be used with text fields")

        values = condition.value if isinstance(condition.value, list) else [condition.value]
        coerced = []

        for value in values:
            if value is None:
                coerced.append(value)
                continue

            if isinstance(sqla_type, sqltypes.DateTime | sqltypes.Date):
                try:
                    parsed = date_parser.parse(str(value))
                except (ParserError, OverflowError) as e:
                    raise ValueError(f"unknown date format '{value}'") from e
                coerced.append(parsed.date() if isinstance(sqla_type, sqltypes.Date) else parsed)

            elif isinstance(sqla_type, sqltypes.Boolean):
                if isinstance(value, str):
                    if value.lower() in TRUE_STRINGS:
                        coerced.append(True)
                    elif value.lower() in FALSE_STRINGS:
                        coerced.append(False)
                    else:
                        raise ValueError(f"unrecognized boolean value '{value}'")
                else:
                    coerced.append(bool(value))

            elif isinstance(sqla_type, sqltypes.Integer | sqltypes.Float | sqltypes.Numeric):
                if isinstance(value, bool):
                    raise ValueError(f"expected a number, got '{value}'")
                if isinstance(value, str):
                    try:
                        value = float(value) if isinstance(sqla_type, sqltypes.Float | sqltypes.Numeric) else int(value)
                    except ValueError as e:
                        raise ValueError(f"expected a number, got '{value}'") from e
                coerced.append(value)

            else:
                coerced.append(value)

        return coerced if isinstance(condition.value, list) else coerced[0]

    # ==================================================================================================================
    # Translation

    def _condition_clause(self, condition: SearchCondition) -> sa.ColumnElement:
        resolved = self.resolve_field(condition.field)
        value = self.coerce_value(condition, resolved.sqla_type)
        attr = resolved.attr
        operator = condition.operator

        # equality on strings ignores case
        if isinstance(resolved.sqla_type, sqltypes.String) and operator in (
            ConditionOperator.eq,
            ConditionOperator.neq,
            ConditionOperator.in_,
            ConditionOperator.not_in,
        ):
            attr = sa.func.lower(attr)
            if isinstance(value, list):
                value = [v.lower() if isinstance(v, str) else v for v in value]
            elif isinstance(value, str):
                value = value.lower()

        if operator is ConditionOperator.eq:
            clause = attr == value
        elif operator is ConditionOperator.neq:
            clause = attr != value
        elif operator is ConditionOperator.gt:
            clause = attr > value
        elif operator is ConditionOperator.gte:
            clause = attr >= value
        elif operator is ConditionOperator.lt:
            clause = attr < value
        elif operator is ConditionOperator.lte:
            clause = attr <= value
        elif operator is ConditionOperator.like:
            clause = attr.like(value)
        elif operator is ConditionOperator.ilike:
            clause = attr.ilike(value)
        elif operator is ConditionOperator.in_:
            clause = attr.in_(value if isinstance(value, list) else [value])
        elif operator is ConditionOperator.not_in:
            clause = attr.not_in(value if isinstance(value, list) else [value])
        elif operator is ConditionOperator.is_null:
            clause = attr.is_(None)
        elif operator is ConditionOperator.not_null:
            clause = attr.is_not(None)
        else:
            raise UnsupportedOperatorError(str(operator))

        return resolved.wrap(clause)

    def _group_clause(self, group: QueryGroup) -> sa.ColumnElement | None:
        clauses = []
        for item in group.conditions:
            if isinstance(item, QueryGroup):
                nested = self._group_clause(item)
                if nested is not None:
                    clauses.append(nested)
            else:
                clauses.append(self._condition_clause(item))

        if not clauses:
            return None

        return sa.or_(*clauses) if group.logic is LogicalOperator.OR else sa.and_(*clauses)

    def _text_search_clause(self, text_search: TextSearchCondition) -> sa.ColumnElement:
        fields = text_search.fields or self.schema._searchable_properties
        resolved_fields = [self.resolve_field(field) for field in fields]

        search_terms = SearchTerms(self.session, text_search.query, self.schema._normalize_search)

        if search_terms.search_type is SearchType.full_text:
            config = sa.cast((text_search.config or TextSearchConfig.english).value, REGCONFIG)
            to_tsquery = TSQUERY_FUNCTIONS[text_search.type or TextSearchType.websearch]
            tsquery = to_tsquery(config, search_terms.search)

            return sa.or_(
                *[
                    resolved.wrap(sa.func.to_tsvector(config, sa.func.coalesce(resolved.attr, "")).op("@@")(tsquery))
                    for resolved in resolved_fields
                ]
            )

        # tokenized matching, fields reached through relationships are matched separately
        clauses = []
        for term in search_terms.search_list:
            clauses.append(sa.or_(*[resolved.wrap(resolved.attr.ilike(f"%{term}%")) for resolved in resolved_fields]))

        return sa.and_(*clauses) if clauses else sa.false()

    def _where_clauses(self, query: ComplexQuery) -> list[sa.ColumnElement]:
        clauses: list[sa.ColumnElement] = [getattr(self.model, key) == value for key, value in self.base_filters.items()]

        if query.text_search:
            clauses.append(self._text_search_clause(query.text_search))

        any_of = []
        for condition in query.conditions:
            if condition.logic is LogicalOperator.OR:
                any_of.append(self._condition_clause(condition))
            else:
                clauses.append(self._condition_clause(condition))

        if any_of:
            clauses.append(sa.or_(*any_of))

        for group in query.groups:
            group_clause = self._group_clause(group)
            if group_clause is not None:
                clauses.append(group_clause)

        for join in query.joins:
            if join.type is JoinType.inner:
                relationship = self.resolve_join(join)
                clauses.append(relationship.any() if relationship.property.uselist else relationship.has())

        return clauses

    def _order_by(self, query: ComplexQuery) -> list[sa.ColumnElement]:
        if query.sorting:
            sorting = [(sort.field, sort.order) for sort in query.sorting]
        elif query.text_search:
            sorting = RELEVANCE_SORTING
        else:
            sorting = DEFAULT_SORTING

        order_by = []
        for field, order in sorting:
            attr = getattr(self.model, field, None)
            if not isinstance(attr, InstrumentedAttribute) or isinstance(attr.property, RelationshipProperty):
                continue

            if isinstance(attr.type, sqltypes.String):
                attr = sa.func.lower(attr)

            order_by.append(attr.asc() if order is SortOrder.asc else attr.desc())

        return order_by

    def build_query(self, query: ComplexQuery) -> sa.Select:
        """
        Translates `query` into a `Select` over the base model.

        Raises:
            ValueError: If a field, join or value cannot be translated. Use
                `validate_query` first to get every problem at once.
        """
        stmt = sa.select(self.model).where(*self._where_clauses(query))
        stmt = stmt.options(load_only(*[getattr(self.model, field) for field in self.select_fields]))

        for join in query.joins:
            relationship = self.resolve_join(join)
            target = relationship.property.mapper.class_
            stmt = stmt.options(selectinload(relationship).load_only(*[getattr(target, c) for c in join.select]))

        stmt = stmt.order_by(*self._order_by(query))

        if query.pagination:
            stmt = stmt.offset((query.pagination.page - 1) * query.pagination.limit).limit(query.pagination.limit)

        return stmt

    def build_count_query(self, query: ComplexQuery) -> sa.Select:
        """Counts the rows `build_query` would return without pagination."""
        return sa.select(sa.func.count()).select_from(self.model).where(*self._where_clauses(query))

    # ==================================================================================================================
    # Validation

    def _validate_condition(self, condition: SearchCondition, label: str) -> list[str]:
        errors = []

        if not condition.operator.is_null_check and condition.value is None:
            errors.append(f"{label}: value is required for operator {condition.operator.value}")

        if condition.operator.is_list and not isinstance(condition.value, list):
            errors.append(f"{label}: {condition.operator.value} requires an array value")
        elif not condition.operator.is_list and isinstance(condition.value, list):
            errors.append(f"{label}: {condition.operator.value} does not accept an array value")

        try:
            resolved = self.resolve_field(condition.field)
            if not errors:
                self.coerce_value(condition, resolved.sqla_type)
        except ValueError as e:
            errors.append(f"{label}: {e}")

        return errors

    def _validate_group(self, group: QueryGroup, label: str, depth: int) -> list[str]:
        errors = []

        if not group.conditions:
            errors.append(f"{label}: must have at least one condition")

        if depth > self.limits.max_nesting_depth:
            errors.append(f"{label}: nested deeper than {self.limits.max_nesting_depth} levels")
            return errors

        nested_index = 0
        for index, item in enumerate(group.conditions):
            if isinstance(item, QueryGroup):
                nested_index += 1
                errors.extend(self._validate_group(item, f"{label}, Nested Group {nested_index}", depth + 1))
            else:
                errors.extend(self._validate_condition(item, f"{label}, Condition {index + 1}"))

        return errors

    @staticmethod
    def _count_items(groups: list[QueryGroup]) -> tuple[int, int]:
        """Returns the number of groups and conditions in `groups`, nested ones included."""
        group_count = condition_count = 0
        for group in groups:
            group_count += 1
            for item in group.conditions:
                if isinstance(item, QueryGroup):
                    nested_groups, nested_conditions = SearchQueryBuilder._count_items([item])
                    group_count += nested_groups
                    condition_count += nested_conditions
                else:
                    condition_count += 1
        return group_count, condition_count

    def _validate_text_search(self, text_search: TextSearchCondition) -> list[str]:
        errors = []

        if not text_search.query.strip():
            errors.append("Text search query cannot be empty")
        elif not SearchTerms(self.session, text_search.query, self.schema._normalize_search).search_list:
            errors.append("Text search query has no searchable terms")

        if len(text_search.query) > self.limits.max_text_length:
            errors.append(f"Text search query too long (max {self.limits.max_text_length} characters)")

        for field in text_search.fields or []:
            try:
                resolved = self.resolve_field(field)
            except ValueError as e:
                errors.append(f"Text search: {e}")
                continue

            if not isinstance(resolved.sqla_type, sqltypes.String):
                errors.append(f"Text search: '{field}' is not a text field")

        return errors

    def _validate_pagination(self, pagination: Pagination) -> list[str]:
        errors = []

        if pagination.page < 1:
            errors.append("Page must be greater than 0")
        elif pagination.page > self.limits.max_page:
            errors.append(f"Page must not exceed {self.limits.max_page}")

        if pagination.limit < 1 or pagination.limit > self.limits.max_limit:
            errors.append(f"Limit must be between 1 and {self.limits.max_limit}")

        return errors

    def validate_query(self, query: ComplexQuery) -> QueryValidationResult:
        """
        Checks a query before it is translated.

        Errors make the query invalid: an empty or overlong text search, unknown
        fields or join tables, missing or mistyped values, empty groups, limits
        on the number of conditions and groups and on nesting depth, and page or
        limit out of range. Warnings and optimizations are advice only.

        Args:
            query (ComplexQuery): The query to check.

        Returns:
            QueryValidationResult: All problems found, not just the first one.
        """
        errors: list[str] = []
        warnings: list[str] = []
        optimizations: list[str] = []

        if query.text_search:
            errors.extend(self._validate_text_search(query.text_search))

        for index, condition in enumerate(query.conditions):
            errors.extend(self._validate_condition(condition, f"Condition {index + 1}"))

        for index, group in enumerate(query.groups):
            errors.extend(self._validate_group(group, f"Group {index + 1}", depth=1))

        group_count, grouped_conditions = self._count_items(query.groups)
        if len(query.conditions) + grouped_conditions > self.limits.max_conditions:
            errors.append(f"Too many conditions (max {self.limits.max_conditions})")
        if group_count > self.limits.max_groups:
            errors.append(f"Too many groups (max {self.limits.max_groups})")

        for index, sort in enumerate(query.sorting):
            try:
                resolved = self.resolve_field(sort.field)
            except ValueError as e:
                errors.append(f"Sort {index + 1}: {e}")
                continue

            if resolved.relationships:
                errors.append(f"Sort {index + 1}: cannot sort by related field '{sort.field}'")

        for index, join in enumerate(query.joins):
            try:
                self.resolve_join(join)
            except ValueError as e:
                errors.append(f"Join {index + 1}: {e}")

        if query.pagination:
            errors.extend(self._validate_pagination(query.pagination))

        if len(query.conditions) > limits.MANY_CONDITIONS:
            warnings.append("Large number of conditions may impact performance")
            optimizations.append("Consider grouping related conditions or using different filter strategy")

        if query.text_search and len(query.conditions) > limits.TEXT_SEARCH_MANY_CONDITIONS:
            optimizations.append("Consider adding composite indexes for frequently used filter combinations")

        if query.pagination and query.pagination.page > limits.DEEP_PAGE:
            warnings.append("Deep pagination may be slow")
            optimizations.append("Consider using cursor-based pagination for better performance")

        if query.text_search and any(sort.field == "created_at" for sort in query.sorting):
            optimizations.append(
                "Text search results are already ranked by relevance; additional sorting may reduce relevance accuracy"
            )

        return QueryValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            optimizations=optimizations,
        )

    # ==================================================================================================================
    # Execution

    def _serialize(self, row: SqlAlchemyBase, joins: list[JoinCondition]) -> dict[str, Any]:
        data = {field: getattr(row, field) for field in self.select_fields}

        for join in joins:
            related = getattr(row, self.resolve_join(join).key)
            key = join.alias or join.table

            if isinstance(related, list):
                data[key] = [{column: getattr(item, column) for column in join.select} for item in related]
            elif related is not None:
                data[key] = {column: getattr(related, column) for column in join.select}
            else:
                data[key] = None

        return data

    def execute_query(self, query: ComplexQuery) -> QueryExecutionResult:
        """
        Validates and runs `query`.

        Args:
            query (ComplexQuery): The query to run.

        Raises:
            QueryValidationError: If the query is invalid; `errors` lists every problem.
            QueryExecutionError: If the database fails. The session is rolled back first.

        Returns:
            QueryExecutionResult: The rows as dictionaries, the total count for
                paginated queries, the validation result and the time taken.
        """
        start = time.perf_counter()

        validation = self.validate_query(query)
        if not validation.is_valid:
            raise QueryValidationError(validation.errors)

        try:
            rows = self.session.execute(self.build_query(query)).unique().scalars().all()
            data = [self._serialize(row, query.joins) for row in rows]

            count = None
            if query.pagination:
                count = self.session.scalar(self.build_count_query(query))
        except SQLAlchemyError as e:
            self.session.rollback()
            self._logger.error(f"Search query failed: {e}")
            raise QueryExecutionError(f"Query execution failed: {e}") from e

        execution_time_ms = (time.perf_counter() - start) * 1000
        self._logger.debug(f"Search returned {len(data)} rows in {execution_time_ms:.1f}ms")

        return QueryExecutionResult(
            data=data,
            count=count,
            validation=validation,
            execution_time_ms=execution_time_ms,
        )
