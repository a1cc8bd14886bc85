"""Unit tests for the schema initialization script."""

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import create_async_engine

from asthmacare.init_db import init_db


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'init.db'}")
    yield engine
    await engine.dispose()


async def table_names(engine):
    async with engine.connect() as conn:
        return await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())


class TestInitDb:
    """Test cases for init_db."""

    @pytest.mark.asyncio
    async def test_creates_all_tables(self, engine):
        tables = await init_db(engine)

        assert tables == ["appointments", "auth_sessions", "chat_messages", "reports", "users"]
        assert sorted(await table_names(engine)) == tables

    @pytest.mark.asyncio
    async def test_existing_rows_kept_unless_reset(self, engine):
        await init_db(engine)
        async with engine.begin() as conn:
            await conn.execute(
                text(
                    "INSERT INTO chat_messages (id, user_id, message, response, created_at) "
                    "VALUES ('m1', 'u1', 'hello', 'hi', '2024-01-01 00:00:00')"
                )
            )

        await init_db(engine)
        async with engine.connect() as conn:
            count = (await conn.execute(text("SELECT COUNT(*) FROM chat_messages"))).scalar()
        assert count == 1

        await init_db(engine, reset=True)
        async with engine.connect() as conn:
            count = (await conn.execute(text("SELECT COUNT(*) FROM chat_messages"))).scalar()
        assert count == 0
