"""
Static analysis of complex queries.

`QueryOptimizer` estimates how expensive a query is, suggests the indexes that
would serve it, and rewrites it into an equivalent, cheaper form. Nothing here
touches the database; every method is a pure function of the query.
"""

from modmarket.schemas.query import (
    ComplexityAnalysis,
    ComplexQuery,
    ConditionOperator,
    LogicalOperator,
    QueryGroup,
    SearchCondition,
)

from . import limits


class QueryOptimizer:
    @staticmethod
    def analyze_complexity(query: ComplexQuery) -> ComplexityAnalysis:
        """
        Scores a query from 0 to 10 and explains what makes it expensive.

        Args:
            query (ComplexQuery): The query to analyse.

        Returns:
            ComplexityAnalysis: The capped score with warnings and recommendations.
        """
        complexity = 0.0
        recommendations: list[str] = []
        warnings: list[str] = []

        if query.text_search:
            complexity += 2
            if query.text_search.fields and len(query.text_search.fields) > limits.MANY_TEXT_SEARCH_FIELDS:
                complexity += 2
                warnings.append("Searching too many fields may impact performance")
                recommendations.append("Consider limiting search fields to most relevant ones")

        complexity += len(query.conditions) * 0.5
        if len(query.conditions) > limits.MANY_CONDITIONS:
            complexity += 3
            warnings.append("Large number of conditions may slow down query")
            recommendations.append("Consider grouping related conditions or using different approach")

        for condition in query.conditions:
            if (
                condition.operator in (ConditionOperator.like, ConditionOperator.ilike)
                and isinstance(condition.value, str)
                and condition.value.startswith("%")
            ):
                complexity += 1
                warnings.append(f"Leading wildcard in LIKE operation for field '{condition.field}' is expensive")
                recommendations.append(f"Consider full-text search instead of LIKE for field '{condition.field}'")

        complexity += len(query.groups) * 1.5

        def analyze_group(group: QueryGroup, depth: int = 0) -> None:
            nonlocal complexity

            if depth > limits.DEEP_GROUP_NESTING:
                complexity += 5
                warnings.append("Deep nesting in query groups can impact performance")
                recommendations.append("Consider flattening nested groups or simplifying logic")

            for item in group.conditions:
                if isinstance(item, QueryGroup):
                    analyze_group(item, depth + 1)

        for group in query.groups:
            analyze_group(group)

        if query.pagination and query.pagination.page > limits.DEEP_PAGE:
            complexity += 2
            warnings.append("Deep pagination is inefficient")
            recommendations.append("Consider cursor-based pagination for better performance")

        if len(query.sorting) > limits.MANY_SORT_FIELDS:
            complexity += 1
            warnings.append("Multiple sort conditions may impact performance")
            recommendations.append("Consider reducing number of sort fields")

        return ComplexityAnalysis(
            score=min(complexity, limits.MAX_COMPLEXITY),
            recommendations=recommendations,
            warnings=warnings,
        )

    @staticmethod
    def suggest_indexes(query: ComplexQuery) -> list[str]:
        """
        Lists index suggestions for the filtered, sorted and text-searched
        columns, without duplicates and in the order they were first suggested.
        """
        suggestions: list[str] = []

        fields = list(dict.fromkeys(condition.field for condition in query.conditions))
        if len(fields) > 1:
            suggestions.append(f"Composite index on ({', '.join(fields)}) for filter combinations")

        for field in fields:
            suggestions.append(f"Index on '{field}' for filtering")

        for sort in query.sorting:
            suggestions.append(f"Index on '{sort.field}' for sorting")

        if query.text_search:
            suggestions.append("GIN index on search_vector for full-text search")
            for field in query.text_search.fields or []:
                suggestions.append(f"GIN index on '{field}' for field-specific text search")

        return list(dict.fromkeys(suggestions))

    @staticmethod
    def optimize_query(query: ComplexQuery) -> ComplexQuery:
        """
        Returns a rewritten copy of `query`; the input is left untouched.

        - Three or more conditions on one field that are all `eq` become a
          single `in` condition holding their values in their original order.
          It is appended after the remaining conditions. Fields that mix
          operators or connect the conditions with different logic are left
          alone. The `in` condition keeps their shared logic.
        - Past page 100 the page size is capped at 10.
        """
        optimized = query.model_copy(deep=True)

        by_field: dict[str, list[SearchCondition]] = {}
        for condition in optimized.conditions:
            by_field.setdefault(condition.field, []).append(condition)

        for field, conditions in by_field.items():
            if len(conditions) < limits.EQ_COLLAPSE_THRESHOLD:
                continue
            if not all(c.operator == ConditionOperator.eq for c in conditions):
                continue
            # an `in` list holds scalars only
            if any(c.value is None or isinstance(c.value, list) for c in conditions):
                continue
            # the `in` condition takes the place of all of them in the AND or OR chain
            if len({c.logic is LogicalOperator.OR for c in conditions}) > 1:
                continue

            optimized.conditions = [c for c in optimized.conditions if c.field != field]
            optimized.conditions.append(
                SearchCondition(
                    field=field,
                    operator=ConditionOperator.in_,
                    value=[c.value for c in conditions],
                    logic=conditions[0].logic,
                )
            )

        if optimized.pagination and optimized.pagination.page > limits.DEEP_PAGE:
            optimized.pagination.limit = min(optimized.pagination.limit, limits.DEEP_PAGE_MAX_LIMIT)

        return optimized
