"""Row-level persistence over SQLAlchemy Core tables."""

from collections.abc import Sequence
from typing import Any, NoReturn
from uuid import UUID

import structlog
from sqlalchemy import ColumnElement, Table, and_, delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictException, StoreException

logger = structlog.get_logger()


class RecordStore:
    """
    Single-row insert/select/update/delete over an async session.

    Every write commits on its own; a failed call is rolled back so the
    store is left exactly as it was before the call.
    """

    def __init__(self, db: AsyncSession):
        """Initialize store with database session."""
        self.db = db

    async def insert(self, table: Table, values: dict[str, Any]) -> dict[str, Any]:
        """
        Insert one row.

        Args:
            table: Target table
            values: Column values

        Returns:
            The stored row, including generated columns

        Raises:
            ConflictException: If a unique constraint rejects the row
            StoreException: If the database call fails
        """
        stmt = insert(table).values(**values).returning(table)
        try:
            result = await self.db.execute(stmt)
            row = result.fetchone()
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning("store_insert_conflict", table=table.name, error=str(e.orig))
            raise ConflictException(f"Row conflicts with an existing {table.name} record")
        except SQLAlchemyError as e:
            await self._fail("insert", table, e)

        return dict(row._mapping)

    async def select_where(
        self,
        table: Table,
        *conditions: ColumnElement[bool],
        order_by: Sequence[Any] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        Select rows matching all conditions.

        Args:
            table: Source table
            conditions: Filter expressions combined with AND
            order_by: Ordering expressions
            limit: Optional row limit

        Returns:
            Matching rows as dictionaries
        """
        stmt = select(table)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            await self._fail("select", table, e)

        return [dict(row._mapping) for row in result.fetchall()]

    async def get_by_id(self, table: Table, row_id: UUID) -> dict[str, Any] | None:
        """Fetch one row by primary key, or None."""
        rows = await self.select_where(table, table.c.id == row_id, limit=1)
        return rows[0] if rows else None

    async def update_where(
        self,
        table: Table,
        row_id: UUID,
        patch: dict[str, Any],
        *conditions: ColumnElement[bool],
    ) -> dict[str, Any] | None:
        """
        Partially update one row by primary key.

        Args:
            table: Target table
            row_id: Primary key value
            patch: Columns to change
            conditions: Extra filters the row must still satisfy

        Returns:
            The updated row, or None if no row matched

        Raises:
            ConflictException: If a unique constraint rejects the change
            StoreException: If the database call fails
        """
        stmt = (
            update(table)
            .where(and_(table.c.id == row_id, *conditions))
            .values(**patch)
            .returning(table)
        )
        try:
            result = await self.db.execute(stmt)
            row = result.fetchone()
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning("store_update_conflict", table=table.name, error=str(e.orig))
            raise ConflictException(f"Row conflicts with an existing {table.name} record")
        except SQLAlchemyError as e:
            await self._fail("update", table, e)

        return dict(row._mapping) if row else None

    async def delete_where(self, table: Table, row_id: UUID) -> bool:
        """
        Hard delete one row by primary key.

        Returns:
            True if a row was removed
        """
        stmt = delete(table).where(table.c.id == row_id)
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self._fail("delete", table, e)

        return result.rowcount > 0

    async def delete_many(self, table: Table, *conditions: ColumnElement[bool]) -> int:
        """Hard delete every row matching all conditions; returns the count."""
        stmt = delete(table).where(and_(*conditions))
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self._fail("delete", table, e)

        return result.rowcount

    async def count_by(self, table: Table, column: str) -> dict[Any, int]:
        """Count rows grouped by one column."""
        col = table.c[column]
        stmt = select(col, func.count()).select_from(table).group_by(col)
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            await self._fail("count", table, e)

        return {value: count for value, count in result.all()}

    async def _fail(self, operation: str, table: Table, error: SQLAlchemyError) -> NoReturn:
        await self.db.rollback()
        logger.error(
            "store_operation_failed",
            operation=operation,
            table=table.name,
            error=str(error),
        )
        raise StoreException(f"Failed to {operation} {table.name}") from error
