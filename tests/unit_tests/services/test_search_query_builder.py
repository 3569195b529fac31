import pytest
import sqlalchemy as sa
from sqlalchemy.exc import OperationalError

from modmarket.core.exceptions import QueryExecutionError, QueryValidationError
from modmarket.schemas.query import ComplexQuery, SearchCondition
from modmarket.services.query_builder.builder import QueryBuilderHelpers
from modmarket.services.query_builder.limits import QueryLimits
from modmarket.services.query_builder.optimizer import QueryOptimizer
from modmarket.services.query_builder.search_query_builder import SearchQueryBuilder

ACTIVE_NEWEST_FIRST = ["Stock Miata", "Lifted Tacoma", "Clean Civic Type R", "Turbocharged Supra"]


def titles(result):
    return [row["title"] for row in result.data]


def run(session, builder: QueryBuilderHelpers, **kwargs):
    return SearchQueryBuilder(session, **kwargs).execute_query(builder.build())


def test_empty_query_returns_active_listings_newest_first(session):
    result = SearchQueryBuilder(session).execute_query(ComplexQuery())

    assert titles(result) == ACTIVE_NEWEST_FIRST
    assert result.count is None
    assert result.validation.is_valid
    assert result.execution_time_ms >= 0


def test_rows_contain_select_fields(session):
    result = SearchQueryBuilder(session).execute_query(ComplexQuery())

    row = result.data[-1]
    assert row["make"] == "Toyota"
    assert row["year"] == 1998
    assert row["status"] == "active"
    assert row["modification_count"] == 2
    assert "search_boost" not in row


def test_custom_select_fields_and_base_filters(session):
    builder = SearchQueryBuilder(session, select_fields=["id", "title"], base_filters={})
    result = builder.execute_query(ComplexQuery())

    assert len(result.data) == 5
    assert set(result.data[0]) == {"id", "title"}
    assert result.data[0]["title"] == "Sold WRX"


def test_unknown_select_field_is_rejected(session):
    with pytest.raises(ValueError):
        SearchQueryBuilder(session, select_fields=["title", "horsepower"])


def test_string_equality_ignores_case(session):
    result = run(session, QueryBuilderHelpers.create().where("make", "eq", "toyota"))

    assert titles(result) == ["Lifted Tacoma", "Turbocharged Supra"]


def test_in_and_not_in(session):
    result = run(session, QueryBuilderHelpers.create().where_in("make", ["HONDA", "Mazda"]))
    assert titles(result) == ["Stock Miata", "Clean Civic Type R"]

    result = run(session, QueryBuilderHelpers.create().where("make", "not_in", ["Toyota"]))
    assert titles(result) == ["Stock Miata", "Clean Civic Type R"]


def test_range_conditions(session):
    result = run(session, QueryBuilderHelpers.create().where_between("price", 10000, 40000))

    assert titles(result) == ["Lifted Tacoma", "Clean Civic Type R"]


def test_numeric_strings_are_coerced(session):
    result = run(session, QueryBuilderHelpers.create().where("year", "gte", "2015"))

    assert titles(result) == ["Lifted Tacoma", "Clean Civic Type R"]


def test_dates_are_coerced(session):
    result = run(session, QueryBuilderHelpers.create().where("created_at", "gte", "2024-03-01"))

    assert titles(result) == ["Stock Miata", "Lifted Tacoma"]


def test_null_checks(session):
    result = run(session, QueryBuilderHelpers.create().where_not_null("engine"))
    assert titles(result) == ["Turbocharged Supra"]

    result = run(session, QueryBuilderHelpers.create().where_null("engine"))
    assert len(result.data) == 3


def test_like_operators(session):
    result = run(session, QueryBuilderHelpers.create().where_like("location", "denver"))
    assert titles(result) == ["Lifted Tacoma"]

    result = run(session, QueryBuilderHelpers.create().where("location", "like", "%, C%"))
    assert titles(result) == ["Lifted Tacoma", "Turbocharged Supra"]


def test_or_conditions_form_one_alternative(session):
    builder = (
        QueryBuilderHelpers.create()
        .where("transmission", "eq", "manual")
        .where("make", "eq", "Honda", logic="OR")
        .where("make", "eq", "Toyota", logic="OR")
    )

    assert titles(run(session, builder)) == ["Clean Civic Type R", "Turbocharged Supra"]


def test_groups(session):
    builder = QueryBuilderHelpers.create().where_group(
        "OR",
        lambda g: g.where("price", "lt", 10000).group(
            "AND", lambda n: n.where("year", "gte", 2018).where("transmission", "eq", "manual")
        ),
    )

    assert titles(run(session, builder)) == ["Stock Miata", "Clean Civic Type R"]


def test_related_fields_filter_through_relationship(session):
    result = run(session, QueryBuilderHelpers.create().where_in("modifications.category", ["suspension"]))
    assert titles(result) == ["Lifted Tacoma", "Turbocharged Supra"]

    result = run(session, QueryBuilderHelpers.create().where("images.is_primary", "eq", "yes"))
    assert titles(result) == ["Turbocharged Supra"]


def test_text_search_matches_every_token(session):
    result = run(session, QueryBuilderHelpers.create().text_search("turbo"))
    assert titles(result) == ["Turbocharged Supra"]

    result = run(session, QueryBuilderHelpers.create().text_search("truck kit"))
    assert titles(result) == ["Lifted Tacoma"]

    result = run(session, QueryBuilderHelpers.create().text_search("truck roadster"))
    assert result.data == []


def test_text_search_named_fields(session):
    result = run(session, QueryBuilderHelpers.create().text_search("toyota", fields=["title"]))
    assert result.data == []

    result = run(session, QueryBuilderHelpers.create().text_search("lift", fields=["modifications.name"]))
    assert titles(result) == ["Lifted Tacoma"]


def test_text_search_orders_by_relevance(session):
    result = run(session, QueryBuilderHelpers.create().text_search("manual", fields=["transmission"]))

    assert titles(result)[0] == "Turbocharged Supra"
    assert titles(result)[1] == "Clean Civic Type R"


def test_explicit_sorting(session):
    result = run(session, QueryBuilderHelpers.create().order_by("price", "asc"))
    assert titles(result) == ["Stock Miata", "Lifted Tacoma", "Clean Civic Type R", "Turbocharged Supra"]

    result = run(session, QueryBuilderHelpers.create().order_by("title", "asc"))
    assert titles(result) == ["Clean Civic Type R", "Lifted Tacoma", "Stock Miata", "Turbocharged Supra"]


def test_pagination_and_count(session):
    result = run(session, QueryBuilderHelpers.create().paginate(2, 3))

    assert titles(result) == ["Turbocharged Supra"]
    assert result.count == 4


def test_joins_load_selected_columns(session):
    builder = (
        QueryBuilderHelpers.create()
        .where("make", "eq", "Honda")
        .join("modifications", ["name", "category"])
        .join("listing_images", "image_url", alias="photos")
    )

    row = run(session, builder).data[0]

    assert row["modifications"] == [{"name": "Cold air intake", "category": "engine"}]
    assert row["photos"] == [{"image_url": "https://img.example.com/civic-1.jpg"}]


def test_left_join_keeps_rows_without_related(session):
    result = run(session, QueryBuilderHelpers.create().join("modifications", ["name"]))

    assert titles(result) == ACTIVE_NEWEST_FIRST
    assert result.data[0]["modifications"] == []


def test_inner_join_requires_related_rows(session):
    result = run(session, QueryBuilderHelpers.create().join("modifications", ["name"], type="inner"))

    assert titles(result) == ["Lifted Tacoma", "Clean Civic Type R", "Turbocharged Supra"]


def test_build_count_query(session):
    builder = SearchQueryBuilder(session)
    query = QueryBuilderHelpers.create().where("make", "eq", "Toyota").paginate(1, 1).build()

    assert session.scalar(builder.build_count_query(query)) == 2
    assert isinstance(builder.build_query(query), sa.Select)


def test_validation_reports_every_problem(session):
    query = ComplexQuery(
        conditions=[
            SearchCondition(field="horsepower", operator="gt", value=300),
            SearchCondition(field="make", operator="in", value="Toyota"),
            SearchCondition(field="make", operator="eq"),
            SearchCondition(field="year", operator="eq", value="new"),
            SearchCondition(field="year", operator="like", value="%19%"),
        ],
    )

    validation = SearchQueryBuilder(session).validate_query(query)

    assert not validation.is_valid
    assert validation.errors == [
        "Condition 1: unknown field 'horsepower'",
        "Condition 2: in requires an array value",
        "Condition 3: value is required for operator eq",
        "Condition 4: expected a number, got 'new'",
        "Condition 5: 'like' can only be used with text fields",
    ]


def test_validation_of_text_search_and_pagination(session):
    query = QueryBuilderHelpers.create().text_search("  ", fields=["year"]).paginate(0, 101).build()

    errors = SearchQueryBuilder(session).validate_query(query).errors

    assert "Text search query cannot be empty" in errors
    assert "Text search: 'year' is not a text field" in errors
    assert "Page must be greater than 0" in errors
    assert "Limit must be between 1 and 100" in errors


def test_validation_of_groups(session):
    query = (
        QueryBuilderHelpers.create()
        .where_group("AND", lambda g: None)
        .where_group("OR", lambda g: g.where("make", "eq", "Honda").group("AND", lambda n: n.where("bogus", "eq", 1)))
        .build()
    )

    errors = SearchQueryBuilder(session).validate_query(query).errors

    assert errors == [
        "Group 1: must have at least one condition",
        "Group 2, Nested Group 1, Condition 1: unknown field 'bogus'",
    ]


def test_validation_limits(session):
    limits = QueryLimits(max_conditions=2, max_groups=1, max_nesting_depth=2)
    query = (
        QueryBuilderHelpers.create()
        .where("year", "gte", 2000)
        .where("year", "lte", 2020)
        .where_group(
            "OR",
            lambda g: g.group("AND", lambda n: n.group("OR", lambda d: d.where("make", "eq", "Honda"))),
        )
        .build()
    )

    errors = SearchQueryBuilder(session, query_limits=limits).validate_query(query).errors

    assert "Group 1, Nested Group 1, Nested Group 1: nested deeper than 2 levels" in errors
    assert "Too many conditions (max 2)" in errors
    assert "Too many groups (max 1)" in errors


def test_validation_of_sorting_and_joins(session):
    query = (
        QueryBuilderHelpers.create()
        .order_by("modifications.name")
        .order_by("horsepower")
        .join("owners", ["name"])
        .join("modifications", ["name", "price"])
        .build()
    )

    errors = SearchQueryBuilder(session).validate_query(query).errors

    assert errors == [
        "Sort 1: cannot sort by related field 'modifications.name'",
        "Sort 2: unknown field 'horsepower'",
        "Join 1: unknown table 'owners'",
        "Join 2: unknown column 'price' on 'modifications'",
    ]


def test_validation_advice(session):
    builder = QueryBuilderHelpers.create().text_search("turbo").order_by("created_at").paginate(150, 10)
    for year in range(2000, 2012):
        builder.where("year", "neq", year)

    validation = SearchQueryBuilder(session).validate_query(builder.build())

    assert validation.is_valid
    assert validation.warnings == [
        "Large number of conditions may impact performance",
        "Deep pagination may be slow",
    ]
    assert len(validation.optimizations) == 4


def test_execute_raises_on_invalid_query(session):
    query = QueryBuilderHelpers.create().where("horsepower", "gt", 300).build()

    with pytest.raises(QueryValidationError) as exc_info:
        SearchQueryBuilder(session).execute_query(query)

    assert exc_info.value.errors == ["Condition 1: unknown field 'horsepower'"]
    assert "unknown field 'horsepower'" in str(exc_info.value)


def test_execute_wraps_database_errors(session, monkeypatch):
    def failing_execute(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(session, "execute", failing_execute)

    with pytest.raises(QueryExecutionError, match="database is locked"):
        SearchQueryBuilder(session).execute_query(ComplexQuery())


def test_optimized_or_conditions_return_the_same_rows(session):
    query = (
        QueryBuilderHelpers.create()
        .where("make", "eq", "Toyota", logic="OR")
        .where("make", "eq", "Honda", logic="OR")
        .where("make", "eq", "Mazda", logic="OR")
        .where("year", "eq", 2099, logic="OR")
        .build()
    )
    builder = SearchQueryBuilder(session)

    expected = titles(builder.execute_query(query))

    assert expected == ACTIVE_NEWEST_FIRST
    assert titles(builder.execute_query(QueryOptimizer.optimize_query(query))) == expected


def test_text_search_without_terms_is_rejected(session):
    query = QueryBuilderHelpers.create().text_search('!!! ""').build()
    builder = SearchQueryBuilder(session)

    assert builder.validate_query(query).errors == ["Text search query has no searchable terms"]

    with pytest.raises(QueryValidationError):
        builder.execute_query(query)

    assert session.execute(builder.build_query(query)).scalars().all() == []
