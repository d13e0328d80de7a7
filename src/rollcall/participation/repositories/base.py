"""
Base repository with the shared persistence mechanics.

Statements run against the mapped tables directly (Core rows, no identity
map) so every read reflects the database and never an object cached in
the session by an earlier call.
"""

import logging
from dataclasses import fields
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import Table, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rollcall.core.models import Base
from rollcall.participation.domain import utc_now
from rollcall.participation.errors import DuplicateError, NotFoundError, StaleDataError

logger = logging.getLogger(__name__)

EntityType = TypeVar("EntityType")

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def is_unique_violation(error: IntegrityError) -> bool:
    """True when an IntegrityError came from a unique constraint."""
    message = str(error.orig).lower()
    return "unique constraint" in message or "duplicate key" in message


def is_foreign_key_violation(error: IntegrityError) -> bool:
    """True when an IntegrityError came from a foreign key (missing parent row)."""
    return "foreign key" in str(error.orig).lower()


class SQLAlchemyRepository(Generic[EntityType]):
    """Maps one table to one domain dataclass."""

    model_class: type[Base]
    entity_class: type[EntityType]
    duplicate_code = "duplicate"

    def __init__(self, session: AsyncSession) -> None:
        """
        Args:
            session: Async SQLAlchemy session owned by the calling worker
        """
        self.session = session
        self.table: Table = self.model_class.__table__  # type: ignore[assignment]
        self.entity_name = self.entity_class.__name__

    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------

    def to_domain(self, row: Any) -> EntityType:
        names = [f.name for f in fields(self.entity_class)]  # type: ignore[arg-type]
        return self.entity_class(**{name: getattr(row, name) for name in names})

    def to_persistence(self, entity: EntityType) -> dict[str, Any]:
        values = {f.name: getattr(entity, f.name) for f in fields(entity)}  # type: ignore[arg-type]
        # Let column defaults stamp timestamps on first insert
        for timestamp in ("created_at", "updated_at"):
            if values.get(timestamp) is None:
                values.pop(timestamp, None)
        return values

    def dialect_insert(self):  # type: ignore[no-untyped-def]
        """Dialect-specific INSERT supporting ON CONFLICT clauses."""
        dialect = self.session.get_bind().dialect.name
        try:
            return _DIALECT_INSERTS[dialect](self.table)
        except KeyError:
            raise NotImplementedError(f"Upsert is not supported on {dialect}") from None

    # ------------------------------------------------------------------
    # Shared operations
    # ------------------------------------------------------------------

    async def _insert(self, entity: EntityType) -> EntityType:
        stmt = insert(self.table).values(**self.to_persistence(entity)).returning(*self.table.c)
        try:
            result = await self.session.execute(stmt)
            row = result.one()
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if is_unique_violation(e):
                raise DuplicateError(
                    f"{self.entity_name} already exists", code=self.duplicate_code
                ) from e
            if is_foreign_key_violation(e):
                raise NotFoundError(
                    f"{self.entity_name} references a missing parent row"
                ) from e
            logger.error(f"Failed to create {self.entity_name}: {e}")
            raise
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to create {self.entity_name}: {e}")
            raise

        logger.debug(f"Created {self.entity_name}: {row.id}")
        return self.to_domain(row)

    async def _versioned_update(self, entity: EntityType, **values: Any) -> EntityType:
        """Write values only if the stored lock_version equals the entity's.

        Raises:
            StaleDataError: Row exists but another writer got there first
            NotFoundError: Row does not exist
        """
        entity_id: UUID = entity.id  # type: ignore[attr-defined]
        expected_version: int = entity.lock_version  # type: ignore[attr-defined]
        c = self.table.c

        stmt = (
            update(self.table)
            .where(c.id == entity_id, c.lock_version == expected_version)
            .values(**values, lock_version=c.lock_version + 1, updated_at=utc_now())
            .returning(*self.table.c)
        )
        try:
            result = await self.session.execute(stmt)
            row = result.one_or_none()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to update {self.entity_name} {entity_id}: {e}")
            raise

        if row is None:
            exists = await self.session.scalar(select(c.id).where(c.id == entity_id))
            if exists is None:
                raise NotFoundError(f"{self.entity_name} not found: {entity_id}")
            raise StaleDataError(
                f"{self.entity_name} {entity_id} was modified since version {expected_version}"
            )

        logger.debug(f"Updated {self.entity_name} {entity_id} to version {row.lock_version}")
        return self.to_domain(row)

    async def _get_one(self, *criteria: Any) -> EntityType:
        result = await self.session.execute(select(self.table).where(*criteria))
        row = result.one_or_none()
        if row is None:
            raise NotFoundError(f"{self.entity_name} not found")
        return self.to_domain(row)

    async def _list(self, *criteria: Any, order_by: Any = ()) -> list[EntityType]:
        stmt = select(self.table).where(*criteria)
        if order_by:
            stmt = stmt.order_by(*order_by)
        result = await self.session.execute(stmt)
        return [self.to_domain(row) for row in result.all()]
