"""gateway 测试配置 -- 手动装配 app.state（绕过 lifespan）+ httpx AsyncClient"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from policyhub.core.models import RecipientContact
from policyhub.core.store import create_store_group
from policyhub.notify import NotifyConfig
from policyhub.scheduler import SchedulerConfig, build_escalation_stack


@pytest_asyncio.fixture
async def test_app(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """测试 app，调度栈使用日志通道"""
    monkeypatch.setenv("POLICYHUB_DB_PATH", str(tmp_path / "gateway.db"))

    from policyhub.gateway.main import create_app

    app = create_app()

    store_group = await create_store_group(str(tmp_path / "gateway.db"))
    await store_group.directory.save_contact(
        RecipientContact(recipient_id="alice", email="alice@example.com", display_name="Alice")
    )
    app.state.store_group = store_group
    app.state.escalation = build_escalation_stack(
        store_group,
        SchedulerConfig(),
        NotifyConfig(),
        site_url="http://portal",
    )

    yield app

    app.state.escalation.driver.stop()
    await app.state.escalation.driver.wait_idle()
    await store_group.conn.close()


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac
