"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 调度栈装配 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from policyhub.core.config import get_db_path, get_site_url
from policyhub.core.log_config import setup_logging
from policyhub.core.store import create_store_group
from policyhub.notify import load_notify_config
from policyhub.scheduler import build_escalation_stack, load_scheduler_config

from .middleware.logging_mw import LoggingMiddleware
from .routes import escalation, health

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时装配调度栈，关闭时停止驱动并清理连接"""
    store_group = await create_store_group(get_db_path())
    app.state.store_group = store_group

    scheduler_config = load_scheduler_config()
    stack = build_escalation_stack(
        store_group,
        scheduler_config,
        load_notify_config(),
        site_url=get_site_url(),
    )
    app.state.escalation = stack
    log.info(
        "escalation_stack_initialized",
        interval_minutes=scheduler_config.interval_minutes,
        auto_start=scheduler_config.auto_start,
    )

    if scheduler_config.auto_start:
        stack.driver.start()

    yield

    # 关闭：停止计时，等待进行中的运行结束后再关闭连接
    stack.driver.stop()
    await stack.driver.wait_idle()
    await store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="PolicyHub Escalation Gateway",
        version="0.1.0",
        description="截止日期提醒与升级调度 API",
        lifespan=lifespan,
    )

    app.add_middleware(LoggingMiddleware)

    setup_logging()

    app.include_router(escalation.router, tags=["escalation"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
