"""Filter clauses for paged queries.

A ``FilterClauseBuilder`` turns the set fields of a filter object into one
boolean expression. Every value is bound under a named placeholder typed
after its column, so the same expression renders correctly on either
store. ``paginate`` adds the deterministic ordering and LIMIT/OFFSET
window.
"""

from typing import Any, Optional, Sequence

from sqlalchemy import BindParameter, ColumnElement, Select, and_, bindparam, or_, true
from sqlalchemy.types import String

from snippetbox.persistence.error import PaginationError

LIKE_ESCAPE = "/"


def escape_like(term: str) -> str:
    """Make ``%`` and ``_`` in a user-supplied term match literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


class FilterClauseBuilder:
    """Accumulates the conditions of a sparse filter.

    Fields whose value is ``None`` (or an empty search term) contribute
    nothing. ``clause`` joins the collected conditions with AND and is an
    always-true expression when nothing was collected. ``params`` maps each
    placeholder name to its bound value.

    Example:
        builder = FilterClauseBuilder()
        builder.equals(snippets_table.c.language, filter.language)
        builder.search(
            [snippets_table.c.title, snippets_table.c.code], filter.search
        )
        stmt = select(snippets_table).where(builder.clause)
    """

    def __init__(self) -> None:
        self._conditions: list[ColumnElement[bool]] = []
        self.params: dict[str, Any] = {}

    def bind(self, name: str, value: Any, type_: Any = None) -> BindParameter:
        """Register a named placeholder for a custom condition."""
        if name in self.params:
            raise ValueError(f"Placeholder '{name}' is already bound")
        self.params[name] = value
        return bindparam(name, value, type_=type_)

    def add(self, condition: ColumnElement[bool]) -> "FilterClauseBuilder":
        """Add a prebuilt condition with no bound filter value."""
        self._conditions.append(condition)
        return self

    def equals(
        self, column: ColumnElement, value: Any, name: Optional[str] = None
    ) -> "FilterClauseBuilder":
        if value is None:
            return self
        param = self.bind(name or column.key, value, column.type)
        self._conditions.append(column == param)
        return self

    def search(
        self,
        columns: Sequence[ColumnElement],
        term: Optional[str],
        name: str = "search",
    ) -> "FilterClauseBuilder":
        """Case-insensitive substring match against any of ``columns``."""
        if not term:
            return self
        pattern = self.bind(name, f"%{escape_like(term)}%", String())
        self._conditions.append(
            or_(*(column.ilike(pattern, escape=LIKE_ESCAPE) for column in columns))
        )
        return self

    def starts_with(
        self, column: ColumnElement, prefix: Optional[str], name: str = "prefix"
    ) -> "FilterClauseBuilder":
        """Case-insensitive prefix match."""
        if not prefix:
            return self
        pattern = self.bind(name, f"{escape_like(prefix)}%", String())
        self._conditions.append(column.ilike(pattern, escape=LIKE_ESCAPE))
        return self

    def at_least(
        self, column: ColumnElement, value: Any, name: Optional[str] = None
    ) -> "FilterClauseBuilder":
        if value is None:
            return self
        param = self.bind(name or f"{column.key}_from", value, column.type)
        self._conditions.append(column >= param)
        return self

    def at_most(
        self, column: ColumnElement, value: Any, name: Optional[str] = None
    ) -> "FilterClauseBuilder":
        if value is None:
            return self
        param = self.bind(name or f"{column.key}_to", value, column.type)
        self._conditions.append(column <= param)
        return self

    def is_null(self, column: ColumnElement, enabled: bool) -> "FilterClauseBuilder":
        if enabled:
            self._conditions.append(column.is_(None))
        return self

    @property
    def clause(self) -> ColumnElement[bool]:
        if not self._conditions:
            return true()
        return and_(*self._conditions)


def page_window(page: int, page_size: int) -> tuple[int, int]:
    """Return ``(limit, offset)`` for a 1-based page.

    Raises:
        PaginationError: If page or page_size is below 1
    """
    if page < 1 or page_size < 1:
        raise PaginationError(
            f"Invalid page window: page={page}, page_size={page_size}"
        )
    return page_size, (page - 1) * page_size


def paginate(
    stmt: Select,
    order_by: Sequence[ColumnElement],
    tiebreak: ColumnElement,
    page: int,
    page_size: int,
) -> Select:
    """Order ``stmt`` deterministically and cut one page from it.

    ``tiebreak`` (normally the primary key) is appended to ``order_by`` so
    rows with equal sort keys keep a stable order across pages.
    """
    limit, offset = page_window(page, page_size)
    return stmt.order_by(*order_by, tiebreak).limit(limit).offset(offset)
