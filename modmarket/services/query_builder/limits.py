"""
Limits and thresholds for complex listing queries.

`QueryLimits` holds the hard limits a query must respect to be executed; its
values come from the application settings. The module constants are the
thresholds the optimizer uses for its advice.
"""

from dataclasses import dataclass

from modmarket.core.settings import AppSettings

DEFAULT_LIMIT = 12
"""page size used when only a page number is given"""

# QueryOptimizer thresholds
MANY_TEXT_SEARCH_FIELDS = 5
MANY_CONDITIONS = 10
DEEP_GROUP_NESTING = 3
DEEP_PAGE = 100
DEEP_PAGE_MAX_LIMIT = 10
MANY_SORT_FIELDS = 3
MAX_COMPLEXITY = 10
EQ_COLLAPSE_THRESHOLD = 3
"""number of `eq` conditions on one field that are rewritten into a single `in`"""

TEXT_SEARCH_MANY_CONDITIONS = 5
"""conditions combined with a text search before composite indexes are advised"""


@dataclass(frozen=True)
class QueryLimits:
    max_conditions: int = 50
    max_groups: int = 20
    max_nesting_depth: int = 5
    max_text_length: int = 1000
    max_page: int = 1000
    max_limit: int = 100

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "QueryLimits":
        return cls(
            max_conditions=settings.SEARCH_MAX_CONDITIONS,
            max_groups=settings.SEARCH_MAX_GROUPS,
            max_nesting_depth=settings.SEARCH_MAX_NESTING_DEPTH,
            max_text_length=settings.SEARCH_MAX_TEXT_LENGTH,
            max_page=settings.SEARCH_MAX_PAGE,
            max_limit=settings.SEARCH_MAX_LIMIT,
        )
