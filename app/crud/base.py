"""
CRUD base class - SQLModel version

Works on SQLModel objects directly
"""
from typing import Generic, TypeVar, Type, Optional, List, Any, Dict, Sequence
from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

ModelType = TypeVar("ModelType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=SQLModel)


def contains_ci(column, value: str):
    """Case-insensitive partial match predicate"""
    return func.lower(column).contains(value.strip().lower(), autoescape=True)


class CRUDBase(Generic[ModelType]):
    """
    Generic repository

    Subclasses add the entity specific queries
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def get(self, db: AsyncSession, id: str) -> Optional[ModelType]:
        """Fetch one record by id"""
        result = await db.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def get_multi(
        self,
        db: AsyncSession,
        *,
        skip: int = 0,
        limit: int = 100,
        order_by: Any = None
    ) -> List[ModelType]:
        """Fetch a page of records"""
        query = select(self.model)
        if order_by is not None:
            query = query.order_by(order_by)
        else:
            query = query.order_by(self.model.created_at.desc())
        query = query.offset(skip).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_by_ids(self, db: AsyncSession, ids: Sequence[str]) -> List[ModelType]:
        if not ids:
            return []
        result = await db.execute(
            select(self.model).where(self.model.id.in_(list(ids)))
        )
        return list(result.scalars().all())

    async def create(
        self,
        db: AsyncSession,
        *,
        obj_in: CreateSchemaType | Dict[str, Any]
    ) -> ModelType:
        """
        Create a record

        Accepts a schema or a plain dict
        """
        if isinstance(obj_in, dict):
            db_obj = self.model(**obj_in)
        else:
            db_obj = self.model(**obj_in.model_dump())

        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def delete(self, db: AsyncSession, *, id: str) -> bool:
        """Delete a record"""
        obj = await self.get(db, id)
        if obj:
            await db.delete(obj)
            await db.flush()
            return True
        return False

    async def delete_by_ids(self, db: AsyncSession, ids: Sequence[str]) -> int:
        """Bulk delete by id, returns the number of rows removed"""
        if not ids:
            return 0
        result = await db.execute(
            delete(self.model).where(self.model.id.in_(list(ids)))
        )
        return result.rowcount or 0

