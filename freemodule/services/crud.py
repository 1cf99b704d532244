"""
freemodule/services/crud.py
Generic table repository

One CrudService instance per table. Reads are public; for owned tables every
update and delete carries `WHERE id = :id AND user_id = :owner` in the same
statement that mutates, so a row that exists but belongs to someone else is
reported exactly like a row that does not exist.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from freemodule.errors import NoFieldsError, NotFoundError, translate_integrity_error
from freemodule.orm.user import User

logger = logging.getLogger(__name__)


class CrudService:
    def __init__(
        self,
        model,
        resource: str,
        order_by: Iterable,
        owned: bool = True,
        author_label: Optional[str] = None,
        conflict_message: str = "Resource already exists",
        reference_message: str = "Referenced resource does not exist",
    ):
        self.model = model
        self.resource = resource
        self.order_by = list(order_by)
        self.owned = owned
        self.author_label = author_label
        self.conflict_message = conflict_message
        self.reference_message = reference_message

    # ------------------------------------------------------------------
    # Query building
    # ------------------------------------------------------------------

    def base_query(self) -> Select:
        """Every column of the table, plus the author's name when configured."""
        columns = list(self.model.__table__.c)
        if self.author_label:
            columns.append(User.name.label(self.author_label))
            return select(*columns).outerjoin(User, User.id == self.model.user_id)
        return select(*columns)

    def _scoped(self, stmt, entity_id: int, owner_id: Optional[int], scope: Dict[str, Any]):
        stmt = stmt.where(self.model.id == entity_id)
        if self.owned:
            if owner_id is None:
                raise ValueError(f"{self.resource} mutations require an owner")
            stmt = stmt.where(self.model.user_id == owner_id)
        for column, value in scope.items():
            stmt = stmt.where(getattr(self.model, column) == value)
        return stmt

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def create(self, db: AsyncSession, fields: Dict[str, Any], owner_id: Optional[int] = None) -> dict:
        values = dict(fields)
        if self.owned:
            values["user_id"] = owner_id
        try:
            result = await db.execute(insert(self.model).values(**values).returning(self.model.id))
            new_id = result.scalar_one()
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise translate_integrity_error(e, self.conflict_message, self.reference_message)
        logger.info(f"{self.resource} {new_id} created")
        return await self.get(db, new_id)

    async def get(self, db: AsyncSession, entity_id: int, **scope) -> dict:
        stmt = self.base_query().where(self.model.id == entity_id)
        for column, value in scope.items():
            stmt = stmt.where(getattr(self.model, column) == value)
        row = (await db.execute(stmt)).mappings().first()
        if row is None:
            raise NotFoundError(self.resource)
        return dict(row)

    async def exists(self, db: AsyncSession, entity_id: int) -> bool:
        result = await db.execute(select(self.model.id).where(self.model.id == entity_id))
        return result.scalar_one_or_none() is not None

    async def list(
        self,
        db: AsyncSession,
        limit: int,
        offset: int,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[Iterable] = None,
    ) -> List[dict]:
        stmt = self.base_query()
        for column, value in (filters or {}).items():
            if value is not None:
                stmt = stmt.where(getattr(self.model, column) == value)
        stmt = stmt.order_by(*(order_by if order_by is not None else self.order_by))
        stmt = stmt.limit(limit).offset(offset)
        rows = (await db.execute(stmt)).mappings().all()
        return [dict(row) for row in rows]

    async def update(
        self,
        db: AsyncSession,
        entity_id: int,
        fields: Dict[str, Any],
        owner_id: Optional[int] = None,
        **scope,
    ) -> dict:
        if not fields:
            raise NoFieldsError()
        stmt = self._scoped(update(self.model), entity_id, owner_id, scope)
        try:
            result = await db.execute(stmt.values(**fields).returning(self.model.id))
            updated_id = result.scalar_one_or_none()
            if updated_id is None:
                await db.rollback()
                self._log_miss("update", entity_id, owner_id)
                raise NotFoundError(self.resource)
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise translate_integrity_error(e, self.conflict_message, self.reference_message)
        return await self.get(db, updated_id)

    async def delete(self, db: AsyncSession, entity_id: int, owner_id: Optional[int] = None, **scope) -> dict:
        """Delete and return the removed row."""
        stmt = self._scoped(delete(self.model), entity_id, owner_id, scope)
        result = await db.execute(stmt.returning(*self.model.__table__.c))
        row = result.mappings().first()
        if row is None:
            await db.rollback()
            self._log_miss("delete", entity_id, owner_id)
            raise NotFoundError(self.resource)
        deleted = dict(row)
        await db.commit()
        logger.info(f"{self.resource} {entity_id} deleted")
        return deleted

    def _log_miss(self, action: str, entity_id: int, owner_id: Optional[int]) -> None:
        if self.owned:
            logger.warning(f"{action} {self.resource} {entity_id} by user {owner_id}: not found or not owned")
