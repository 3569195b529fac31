"""
Query analysis without execution.

`POST /api/search/analyze` validates a `ComplexQuery`, scores its complexity,
suggests indexes and shows what the optimizer would make of it. Nothing is
read from the listings table.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from modmarket.core.root_logger import get_logger
from modmarket.db.db_setup import generate_session
from modmarket.schemas.query import ComplexQuery
from modmarket.schemas.response import QueryAnalysisResponse, QueryAnalysisSummary
from modmarket.services.query_builder.optimizer import QueryOptimizer
from modmarket.services.query_builder.search_query_builder import SearchQueryBuilder

router = APIRouter(prefix="/analyze")

logger = get_logger()


@router.post("", response_model=QueryAnalysisResponse)
def analyze_query(query: ComplexQuery, session: Session = Depends(generate_session)):
    validation = SearchQueryBuilder(session).validate_query(query)
    complexity = QueryOptimizer.analyze_complexity(query)
    index_suggestions = QueryOptimizer.suggest_indexes(query)
    optimized_query = QueryOptimizer.optimize_query(query)

    summary = QueryAnalysisSummary(
        is_valid=validation.is_valid,
        complexity_score=complexity.score,
        has_optimizations=query.model_dump() != optimized_query.model_dump(),
        recommendation_count=len(complexity.recommendations),
        warning_count=len(validation.warnings) + len(complexity.warnings),
    )

    logger.info(
        f"Query analysis completed: valid={summary.is_valid} score={summary.complexity_score} "
        f"optimizations={summary.has_optimizations}"
    )

    return QueryAnalysisResponse(
        validation=validation,
        complexity=complexity,
        index_suggestions=index_suggestions,
        optimized_query=optimized_query,
        analysis=summary,
    )
