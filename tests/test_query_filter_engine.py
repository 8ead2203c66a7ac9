"""
Statement-level tests for the query filter engine. Nothing here touches
a database; assertions look at the compiled SQL.
"""

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from datarepo.shared.core.exceptions import InvalidFilterError
from datarepo.shared.repositories.filters import (
    apply_filters,
    column_names,
    date_range_clauses,
    keyword_clause,
    operator_clause,
    searchable_columns,
)
from datarepo.shared.schemas.filters import EqualityFilter, OperatorFilter

from tests.models import Article, Tag


def sql(stmt) -> str:
    return str(stmt.compile(compile_kwargs={"literal_binds": True})).replace("\n", " ")


class TestApplyFilters:
    def test_empty_spec_returns_statement_unchanged(self):
        stmt = select(Article)

        assert apply_filters(stmt, Article, {}) is stmt
        assert apply_filters(stmt, Article, None) is stmt

    def test_order_only_spec_adds_nothing(self):
        stmt = select(Article)

        assert apply_filters(stmt, Article, {"order": "title", "sort": "asc"}) is stmt

    def test_equality_form_is_anded_equalities(self):
        compiled = sql(apply_filters(select(Article), Article, {"status": "draft", "views": 5}))

        assert "test_articles.status = 'draft' AND test_articles.views = 5" in compiled
        assert "LIKE" not in compiled

    def test_operator_form(self):
        stmt = apply_filters(
            select(Article),
            Article,
            {"title": {"sql": "like"}, "views": {10: ">=", 100: "<"}},
        )
        compiled = sql(stmt)

        assert "test_articles.title LIKE '%sql%'" in compiled
        assert "test_articles.views >= 10" in compiled
        assert "test_articles.views < 100" in compiled

    def test_ordering_applied_after_constraints(self):
        compiled = sql(apply_filters(select(Article), Article, {"status": "draft", "order": "title", "sort": "desc"}))

        assert compiled.index("WHERE") < compiled.index("ORDER BY test_articles.title DESC")

    def test_default_direction_is_ascending(self):
        compiled = sql(apply_filters(select(Article), Article, {"status": "draft", "order": "title"}))

        assert "ORDER BY test_articles.title ASC" in compiled

    def test_ordering_can_be_disabled(self):
        stmt = apply_filters(select(Article), Article, {"status": "draft", "order": "title"}, apply_order=False)

        assert "ORDER BY" not in sql(stmt)

    def test_reserved_keys_never_become_constraints(self):
        compiled = sql(apply_filters(select(Article), Article, {"views": {1: ">"}, "order": "id", "page": 2}))

        assert "test_articles.page" not in compiled
        assert "test_articles.id =" not in compiled

    def test_typed_operator_filter_with_one_field(self):
        compiled = sql(apply_filters(select(Article), Article, OperatorFilter({"views": {50: "<>"}})))

        assert "test_articles.views != 50" in compiled

    def test_typed_equality_filter_keeps_mapping_values(self):
        compiled = sql(apply_filters(select(Tag), Tag, EqualityFilter({"name": "sql"})))

        assert "test_tags.name = 'sql'" in compiled

    def test_typed_filter_ignores_reserved_keys(self):
        compiled = sql(apply_filters(select(Article), Article, EqualityFilter({"status": "draft", "page": 2})))

        assert "test_articles.status = 'draft'" in compiled
        assert "page" not in compiled

    def test_unknown_field(self):
        with pytest.raises(InvalidFilterError) as exc:
            apply_filters(select(Article), Article, {"missing": 1})
        assert exc.value.details["field"] == "missing"

    def test_unknown_operator(self):
        with pytest.raises(InvalidFilterError):
            apply_filters(select(Article), Article, {"views": {1: "between"}})

    def test_mixed_shapes_fail_fast(self):
        with pytest.raises(InvalidFilterError):
            apply_filters(select(Article), Article, {"status": "draft", "views": {1: ">"}})


class TestClauses:
    def test_operator_names_are_case_insensitive(self):
        assert "NOT LIKE '%x%'" in sql(select(Tag).where(operator_clause(Tag.name, "NOT LIKE", "x")))

    def test_keyword_searches_every_column(self):
        compiled = sql(select(Tag).where(keyword_clause("sq", searchable_columns(Tag))))

        assert "CAST(test_tags.id AS VARCHAR) LIKE '%sq%'" in compiled
        assert " OR CAST(test_tags.name AS VARCHAR) LIKE '%sq%'" in compiled

    def test_keyword_without_columns_matches_nothing(self):
        compiled = sql(select(Tag).where(keyword_clause("sq", []))).lower()

        assert "false" in compiled or "0 = 1" in compiled

    def test_date_range_covers_whole_days(self):
        low, high = date_range_clauses(Article.created_at, date(2024, 1, 15), date(2024, 1, 16), timezone.utc)

        assert low.right.value == datetime(2024, 1, 15, 0, 0, tzinfo=timezone.utc)
        assert high.right.value == datetime(2024, 1, 16, 23, 59, 59, 999999, tzinfo=timezone.utc)

    def test_date_range_bounds_are_bound_as_utc(self):
        berlin_winter = timezone(timedelta(hours=1))

        low, high = date_range_clauses(Article.created_at, date(2024, 1, 15), date(2024, 1, 15), berlin_winter)

        assert low.right.value == datetime(2024, 1, 14, 23, 0, tzinfo=timezone.utc)
        assert low.right.value.tzinfo is timezone.utc
        assert high.right.value == datetime(2024, 1, 15, 22, 59, 59, 999999, tzinfo=timezone.utc)

    def test_column_names_come_from_mapper(self):
        names = column_names(Article)

        assert {"id", "title", "status", "views", "created_at", "deleted_at", "is_active", "priority"} <= set(names)
        assert column_names(Article) is names
