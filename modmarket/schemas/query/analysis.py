"""
Result models produced when a complex query is analysed or validated.
"""

from typing import Any

from pydantic import Field

from .._modmarket import _MarketModel

__all__ = ["ComplexityAnalysis", "QueryValidationResult", "QueryExecutionResult"]


class ComplexityAnalysis(_MarketModel):
    score: float = 0
    """estimated cost of the query, 0 (trivial) to 10 (expensive)"""
    recommendations: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class QueryValidationResult(_MarketModel):
    is_valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    optimizations: list[str] = Field(default_factory=list)


class QueryExecutionResult(_MarketModel):
    data: list[dict[str, Any]] = Field(default_factory=list)
    count: int | None = None
    """total matches ignoring pagination; only set for paginated queries"""
    validation: QueryValidationResult
    execution_time_ms: float = 0
