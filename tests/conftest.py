import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from school.app.api.deps import get_cache_backend
from school.app.api.execs import router as execs_router
from school.app.core.cache import InMemoryCache, reset_cache
from school.app.db.async_session import get_db
from school.app.db.init_db import create_all_tables
from school.app.main import API_PREFIX, install_exception_handlers

ADMIN = {
    "first_name": "Ada",
    "last_name": "Admin",
    "email": "ada@classnama.io",
    "password": "adminpassword",
    "role": "admin",
}


def sqlite_url_from_absolute_path(path: str) -> str:
    # SQLAlchemy expects 4 slashes for absolute paths. The path already starts
    # with '/', so strip it when appending after '////'.
    return f"sqlite+aiosqlite:////{path.lstrip('/')}"


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
def engine(tmp_path):
    engine = create_async_engine(
        sqlite_url_from_absolute_path(str(tmp_path / "classnama_test.db")),
        poolclass=NullPool,
    )
    event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
    asyncio.run(create_all_tables(engine))
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
def memory_cache():
    reset_cache()
    yield InMemoryCache()
    reset_cache()


@pytest.fixture
def make_client(session_maker, memory_cache):
    """Build a TestClient over the given routers backed by the temp database.

    The exec router is always mounted so tests can register an admin.
    Pass ``cache=None`` to run the list endpoints without a cache.
    """

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    def _make(*routers, cache=memory_cache) -> TestClient:
        app = FastAPI()
        app.include_router(execs_router, prefix=API_PREFIX)
        for router in routers:
            app.include_router(router, prefix=API_PREFIX)
        install_exception_handlers(app)
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_cache_backend] = lambda: cache
        return TestClient(app, raise_server_exceptions=False)

    return _make


def register_exec(client: TestClient, **overrides) -> dict:
    """Register an exec and return the response body."""
    resp = client.post(f"{API_PREFIX}/execs/register", json={**ADMIN, **overrides})
    assert resp.status_code == 201, resp.text
    return resp.json()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def admin_headers(client: TestClient, **overrides) -> dict:
    return bearer(register_exec(client, **overrides)["token"])


def teacher_payload(n: int = 1, **overrides) -> dict:
    payload = {
        "first_name": f"Teacher{n}",
        "last_name": "Smith",
        "email": f"teacher{n}@classnama.io",
        "password": "teacherpassword",
        "subject": "Maths",
        "phone_number": f"+4470000000{n:02d}",
    }
    payload.update(overrides)
    return payload


def student_payload(teacher_id: int, n: int = 1, **overrides) -> dict:
    payload = {
        "first_name": f"Student{n}",
        "last_name": "Jones",
        "email": f"student{n}@classnama.io",
        "password": "studentpassword",
        "class": "9A",
        "birth_date": "2010-05-01",
        "address": "1 School Lane",
        "parent_name": "Pat Jones",
        "parent_phone_number": "+447111111111",
        "teacher_id": teacher_id,
    }
    payload.update(overrides)
    return payload
