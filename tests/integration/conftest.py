import asyncio
import os
from collections.abc import Awaitable, Callable, Generator
from pathlib import Path
from typing import TypeVar

import psycopg
import pytest

from greenintellect.config.settings import Settings
from greenintellect.database.connection import build_conninfo, close_pool, init_pool

T = TypeVar("T")

SCHEMA_PATH = (
    Path(__file__).resolve().parents[2] / "greenintellect" / "database" / "schema.sql"
)


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "greenintellect_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def prepared_db(test_settings: Settings) -> Generator[None, None, None]:
    try:
        conn = psycopg.connect(build_conninfo(test_settings), connect_timeout=3)
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run.")
    with conn:
        conn.execute(SCHEMA_PATH.read_text(encoding="utf-8"))
        conn.commit()
    yield


@pytest.fixture
def run_db(
    prepared_db: None, test_settings: Settings
) -> Callable[[Callable[[], Awaitable[T]]], T]:
    """Run an async test body with the connection pool open."""

    def _run(body: Callable[[], Awaitable[T]]) -> T:
        async def _go() -> T:
            await init_pool(test_settings)
            try:
                return await body()
            finally:
                await close_pool()

        return asyncio.run(_go())

    return _run


@pytest.fixture
def integration_cleanup(
    prepared_db: None, test_settings: Settings
) -> Generator[list[str], None, None]:
    created: list[str] = []
    yield created
    if not created:
        return
    with psycopg.connect(build_conninfo(test_settings)) as conn:
        conn.execute("DELETE FROM pdf_uploads WHERE id = ANY(%s::uuid[])", (created,))
        conn.commit()


@pytest.fixture
def seed_profile(prepared_db: None, test_settings: Settings) -> Callable[[str, str], None]:
    def _seed(user_id: str, full_name: str) -> None:
        with psycopg.connect(build_conninfo(test_settings)) as conn:
            conn.execute(
                """
                INSERT INTO profiles (id, full_name) VALUES (%s, %s)
                ON CONFLICT (id) DO UPDATE SET full_name = EXCLUDED.full_name
                """,
                (user_id, full_name),
            )
            conn.commit()

    return _seed
