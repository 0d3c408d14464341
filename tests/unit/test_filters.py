"""Unit tests for filter clauses and page windows."""

import pytest
from sqlalchemy import desc, select, true
from sqlalchemy.dialects import postgresql, sqlite

from snippetbox.persistence.error import PaginationError
from snippetbox.persistence.filters import FilterClauseBuilder, page_window, paginate
from snippetbox.persistence.tables import comments_table, snippets_table


class TestFilterClauseBuilder:
    def test_empty_filter_is_always_true(self):
        """No set field yields an always-true clause and no parameters."""
        # Arrange
        builder = FilterClauseBuilder()
        builder.equals(snippets_table.c.language, None)
        builder.search([snippets_table.c.title], "")
        builder.at_least(snippets_table.c.created_at, None)

        # Act
        clause = builder.clause

        # Assert
        assert clause.compare(true())
        assert builder.params == {}

    def test_only_present_fields_contribute(self):
        # Arrange
        builder = FilterClauseBuilder()

        # Act
        builder.equals(snippets_table.c.language, "python")
        builder.equals(snippets_table.c.is_public, None)
        builder.search([snippets_table.c.title, snippets_table.c.code], "sort")

        # Assert
        assert builder.params == {"language": "python", "search": "%sort%"}
        sql = str(builder.clause.compile(dialect=sqlite.dialect()))
        assert "code_snippets.language = ?" in sql
        assert "lower(code_snippets.title) LIKE lower(?)" in sql
        assert "is_public" not in sql

    def test_search_is_case_insensitive_on_postgres(self):
        builder = FilterClauseBuilder()
        builder.search([comments_table.c.content], "Bug")

        sql = str(builder.clause.compile(dialect=postgresql.dialect()))

        assert "ILIKE" in sql
        assert builder.params["search"] == "%Bug%"

    @pytest.mark.parametrize(
        "term,pattern",
        [
            ("50%", "%50/%%"),
            ("snake_case", "%snake/_case%"),
            ("a/b", "%a//b%"),
        ],
    )
    def test_search_escapes_wildcards(self, term, pattern):
        """LIKE metacharacters in the term match literally."""
        builder = FilterClauseBuilder()
        builder.search([comments_table.c.content], term)

        sql = str(builder.clause.compile(dialect=postgresql.dialect()))

        assert builder.params["search"] == pattern
        assert "ESCAPE '/'" in sql

    def test_starts_with(self):
        builder = FilterClauseBuilder()
        builder.starts_with(snippets_table.c.language, "py_")
        builder.starts_with(snippets_table.c.title, "", "ignored")

        assert builder.params == {"prefix": "py/_%"}

    def test_date_bounds_use_their_own_placeholders(self):
        # Arrange
        builder = FilterClauseBuilder()

        # Act
        builder.at_least(comments_table.c.created_at, "2024-01-01", "start_date")
        builder.at_most(comments_table.c.created_at, "2024-02-01", "end_date")

        # Assert
        assert set(builder.params) == {"start_date", "end_date"}
        compiled = builder.clause.compile()
        assert compiled.params["start_date"] == "2024-01-01"
        assert compiled.params["end_date"] == "2024-02-01"

    def test_binding_a_name_twice_is_rejected(self):
        builder = FilterClauseBuilder()
        builder.bind("now", 1)

        with pytest.raises(ValueError):
            builder.bind("now", 2)

    def test_is_null_only_when_enabled(self):
        builder = FilterClauseBuilder()
        builder.is_null(comments_table.c.parent_id, False)
        assert builder.clause.compare(true())

        builder.is_null(comments_table.c.parent_id, True)
        assert "comments.parent_id IS NULL" in str(builder.clause.compile())


class TestPageWindow:
    def test_first_page_starts_at_zero(self):
        assert page_window(1, 20) == (20, 0)

    def test_offset_is_page_minus_one_times_size(self):
        assert page_window(3, 25) == (25, 50)

    @pytest.mark.parametrize("page,page_size", [(0, 10), (-1, 10), (1, 0), (2, -5)])
    def test_invalid_window_is_rejected(self, page, page_size):
        """Out-of-range windows raise instead of being clamped."""
        with pytest.raises(PaginationError):
            page_window(page, page_size)


class TestPaginate:
    def test_appends_tiebreak_and_window(self):
        """Ordering ends with the key so pages are deterministic."""
        # Arrange
        stmt = select(snippets_table.c.id)

        # Act
        paged = paginate(
            stmt,
            [desc(snippets_table.c.created_at)],
            snippets_table.c.id,
            page=3,
            page_size=20,
        )

        # Assert
        compiled = paged.compile(dialect=sqlite.dialect())
        sql = str(compiled)
        assert (
            "ORDER BY code_snippets.created_at DESC, code_snippets.id" in sql
        )
        assert "LIMIT" in sql and "OFFSET" in sql
        assert {20, 40} <= set(compiled.params.values())
