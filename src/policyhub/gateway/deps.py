"""依赖注入模块 -- 通过 FastAPI Depends 注入调度组件

组件通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Request

from policyhub.core.store import StoreGroup
from policyhub.scheduler import EscalationRunCoordinator, PeriodicDriver


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_coordinator(request: Request) -> EscalationRunCoordinator:
    return request.app.state.escalation.coordinator


def get_driver(request: Request) -> PeriodicDriver:
    return request.app.state.escalation.driver
