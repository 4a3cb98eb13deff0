"""Exec (admin and manager) CRUD operations."""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from school.app.db.crud._common import delete_by_id, flush_or_conflict, get_or_raise
from school.app.db.models import Exec
from school.app.db.pagination import PaginatedQuery, apply_pagination

SORTABLE = {
    "id": Exec.id,
    "first_name": Exec.first_name,
    "last_name": Exec.last_name,
    "email": Exec.email,
    "role": Exec.role,
    "created_at": Exec.created_at,
}
SEARCHABLE = (Exec.first_name, Exec.last_name, Exec.email)


async def create_exec(
    session: AsyncSession,
    *,
    first_name: str,
    last_name: str,
    email: str,
    password_hash: str,
    role: str = "manager",
) -> Exec:
    """Insert a new exec.

    Raises:
        ConflictError: The email is already registered
    """
    exec_ = Exec(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password_hash=password_hash,
        role=role,
    )
    return await flush_or_conflict(session, exec_, f"Email {email} is already registered")


async def list_execs(session: AsyncSession, pq: PaginatedQuery) -> List[Exec]:
    stmt = apply_pagination(select(Exec), pq, SORTABLE, SEARCHABLE)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_exec(session: AsyncSession, exec_id: int) -> Exec:
    return await get_or_raise(session, Exec, exec_id, "Exec")


async def get_exec_by_email(session: AsyncSession, email: str) -> Optional[Exec]:
    result = await session.execute(select(Exec).where(Exec.email == email))
    return result.scalar_one_or_none()


async def save_exec(session: AsyncSession, exec_: Exec) -> Exec:
    """Persist changes made to a loaded exec."""
    return await flush_or_conflict(session, exec_, f"Email {exec_.email} is already registered")


async def delete_exec(session: AsyncSession, exec_id: int) -> None:
    await delete_by_id(session, Exec, exec_id, "Exec")
