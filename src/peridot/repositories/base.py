"""Base repository with common CRUD operations."""

from typing import Any, TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from peridot.db.base import Base
from peridot.errors.exceptions import (
    DuplicateKeyError,
    NotFoundError,
    PeridotError,
    ReferentialIntegrityError,
)

T = TypeVar("T", bound=Base)


def is_unique_violation(exc: IntegrityError) -> bool:
    """Tell a unique-key collision apart from a foreign-key failure."""
    text = str(exc.orig).lower()
    return "unique" in text or "duplicate key" in text


def translate_integrity_error(exc: IntegrityError, relationship: str, message: str) -> PeridotError:
    """Map a store constraint violation onto the peridot error taxonomy."""
    if is_unique_violation(exc):
        return DuplicateKeyError(message, details={"relationship": relationship})
    return ReferentialIntegrityError(relationship, message)


class BaseRepository:
    """Generic async repository for SQLAlchemy models keyed by an integer ``id``.

    ``entity`` is the human name used in "no <entity> found with ID <id>".
    """

    entity: str = "record"

    def __init__(self, session: AsyncSession, model_class: type[T]):
        self.session = session
        self.model_class = model_class

    async def get_row(self, pk_value: int) -> T:
        """Get a single record by primary key or raise NotFoundError."""
        stmt = (
            select(self.model_class)
            .where(self.model_class.id == pk_value)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(self.entity, pk_value)
        return row

    async def get_rows(self, pk_values: list[int]) -> list[T]:
        """Get the records whose IDs are present; missing IDs are skipped."""
        if not pk_values:
            return []
        stmt = (
            select(self.model_class)
            .where(self.model_class.id.in_(pk_values))
            .order_by(self.model_class.id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_rows(self, *conditions: Any, order_by: Any = None) -> list[T]:
        """List records matching all conditions, ordered by ID unless told otherwise."""
        stmt = (
            select(self.model_class)
            .where(*conditions)
            .order_by(order_by if order_by is not None else self.model_class.id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, relationship: str, **kwargs: Any) -> T:
        """Create and persist a new record.

        ``relationship`` names the foreign key(s) this row depends on, for
        the error raised when the store rejects it.
        """
        row = self.model_class(**kwargs)
        self.session.add(row)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise translate_integrity_error(
                exc, relationship, f"could not add {self.entity}: {relationship} not satisfied"
            ) from exc
        return row

    async def update_by_id(self, pk_value: int, relationship: str = "", **values: Any) -> None:
        """Update columns on one record; zero rows affected means NotFound."""
        stmt = (
            update(self.model_class)
            .where(self.model_class.id == pk_value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
        except IntegrityError as exc:
            raise translate_integrity_error(
                exc, relationship, f"could not update {self.entity} {pk_value}: {relationship} not satisfied"
            ) from exc
        if result.rowcount == 0:
            raise NotFoundError(self.entity, pk_value)

    async def delete_by_id(self, pk_value: int, relationship: str = "") -> None:
        """Delete one record; zero rows affected means NotFound."""
        stmt = (
            delete(self.model_class)
            .where(self.model_class.id == pk_value)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
        except IntegrityError as exc:
            raise ReferentialIntegrityError(
                relationship, f"{self.entity} {pk_value} is still referenced by {relationship}"
            ) from exc
        if result.rowcount == 0:
            raise NotFoundError(self.entity, pk_value)
