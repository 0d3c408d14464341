"""Paged query execution."""

from typing import Callable, Sequence, TypeVar

import logfire
from sqlalchemy import ColumnElement, FromClause, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.domain.model import Page
from snippetbox.persistence.decoder import Row, decode_int
from snippetbox.persistence.error import PaginationError
from snippetbox.persistence.filters import paginate

T = TypeVar("T")


class PaginatedQueryExecutor:
    """Runs the count and the windowed data query of one filter.

    Both queries share the same WHERE clause. They are issued separately
    and are not guaranteed to see the same snapshot under concurrent
    writes.
    """

    def __init__(self, session: AsyncSession, max_page_size: int = 100) -> None:
        self.session = session
        self.max_page_size = max_page_size

    async def fetch_page(
        self,
        *,
        source: FromClause,
        columns: Sequence[ColumnElement],
        key: ColumnElement,
        where: ColumnElement[bool],
        order_by: Sequence[ColumnElement],
        page: int,
        page_size: int,
        mapper: Callable[[Sequence[Row]], list[T]],
    ) -> Page[T]:
        """Fetch one page of a filtered query.

        Args:
            source: Table or join both queries select from
            columns: Columns of the data query
            key: Primary key of the paged entity; counted distinctly and
                used as the ordering tiebreak
            where: Filter clause shared by both queries
            order_by: Requested ordering
            page: 1-based page number
            page_size: Maximum items per page
            mapper: Converts the fetched rows into items

        Returns:
            Page holding at most ``page_size`` items and the total count

        Raises:
            PaginationError: If the window is invalid or exceeds the
                configured maximum page size
        """
        if page_size > self.max_page_size:
            raise PaginationError(
                f"page_size {page_size} exceeds maximum of {self.max_page_size}"
            )
        data_stmt = paginate(
            select(*columns).select_from(source).where(where),
            order_by,
            key,
            page,
            page_size,
        )
        count_stmt = select(func.count(distinct(key))).select_from(source).where(where)

        total = decode_int((await self.session.execute(count_stmt)).scalar() or 0)
        result = await self.session.execute(data_stmt)
        items = mapper([row._mapping for row in result.fetchall()])

        logfire.debug(
            "Fetched page",
            page=page,
            page_size=page_size,
            total_count=total,
            returned=len(items),
        )
        return Page(items=items, total_count=total, page=page, page_size=page_size)
