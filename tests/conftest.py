"""全局 pytest 配置 -- 临时 SQLite 数据库 + Store 实例组 + 固定时钟"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio

from policyhub.core.models import RecipientContact
from policyhub.core.store import StoreGroup, create_store_group

# 固定的"当前时间"：2026-03-02 09:00 UTC
FIXED_NOW = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "sqlite" / "test.db"


@pytest_asyncio.fixture
async def db_conn(tmp_db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """提供已初始化的临时 SQLite 数据库连接"""
    from policyhub.core.store.sqlite_init import init_db

    tmp_db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = await aiosqlite.connect(str(tmp_db_path))
    await init_db(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """提供共享连接的 Store 实例组"""
    group = await create_store_group(str(tmp_db_path))
    yield group
    await group.conn.close()


@pytest_asyncio.fixture
async def contacts(store_group: StoreGroup) -> dict[str, RecipientContact]:
    """预置通讯录：员工 alice、上级 bob"""
    people = {
        "alice": RecipientContact(
            recipient_id="alice", email="alice@example.com", display_name="Alice Chen"
        ),
        "bob": RecipientContact(
            recipient_id="bob", email="bob@example.com", display_name="Bob Li"
        ),
    }
    for contact in people.values():
        await store_group.directory.save_contact(contact)
    return people


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW
