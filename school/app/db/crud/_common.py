"""Helpers shared by the per-entity CRUD modules."""

from typing import TypeVar

from sqlalchemy import delete as sa_delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from school.app.db.base import Base
from school.app.exceptions import ConflictError, NotFoundError

ModelT = TypeVar("ModelT", bound=Base)


async def get_or_raise(
    session: AsyncSession,
    model: type[ModelT],
    entity_id: int,
    entity_name: str,
) -> ModelT:
    """Load a row by primary key.

    Raises:
        NotFoundError: No row with that id
    """
    obj = await session.get(model, entity_id)
    if obj is None:
        raise NotFoundError(entity_name, entity_id)
    return obj


async def flush_or_conflict(
    session: AsyncSession,
    obj: ModelT,
    conflict_detail: str,
) -> ModelT:
    """Add and flush ``obj`` so constraint violations surface here.

    Raises:
        ConflictError: A unique or foreign key constraint rejected the row
    """
    session.add(obj)
    try:
        await session.flush()
    except IntegrityError as e:
        raise ConflictError(conflict_detail) from e
    await session.refresh(obj)
    return obj


async def delete_by_id(
    session: AsyncSession,
    model: type[ModelT],
    entity_id: int,
    entity_name: str,
) -> None:
    """Delete a row by primary key.

    Raises:
        NotFoundError: No row with that id
        ConflictError: Other rows still reference it
    """
    try:
        result = await session.execute(sa_delete(model).where(model.id == entity_id))
    except IntegrityError as e:
        raise ConflictError(f"{entity_name} {entity_id} is still referenced") from e
    if result.rowcount == 0:
        raise NotFoundError(entity_name, entity_id)
