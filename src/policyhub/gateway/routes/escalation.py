"""升级调度路由

POST /api/escalation/run: 立即执行一次运行；已有运行进行中返回 409
POST /api/escalation/start: 启动周期驱动（可选 interval_minutes）
POST /api/escalation/stop: 停止周期驱动（不中断进行中的运行）
GET  /api/escalation/status: 驱动状态 + 最近一次运行结果
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from policyhub.scheduler import ALREADY_RUNNING_ERROR

from ..deps import get_coordinator, get_driver

router = APIRouter()


class StartRequest(BaseModel):
    """启动周期驱动请求体"""

    interval_minutes: float | None = Field(
        default=None,
        gt=0,
        description="周期间隔（分钟），缺省使用配置值",
    )


class StartResponse(BaseModel):
    started: bool
    active: bool
    interval_minutes: float | None


class StopResponse(BaseModel):
    stopped: bool
    active: bool


@router.post("/api/escalation/run")
async def run_escalation(coordinator=Depends(get_coordinator)):
    """执行一次运行

    - 被接受的运行返回 200 + 结果（success 可能为 false）
    - 已有运行进行中返回 409 + 被拒绝的结果
    """
    result = await coordinator.run_once()
    rejected = not result.success and result.errors == [ALREADY_RUNNING_ERROR]
    return JSONResponse(
        status_code=409 if rejected else 200,
        content=result.model_dump(mode="json"),
    )


@router.post("/api/escalation/start", response_model=StartResponse)
async def start_driver(
    body: StartRequest | None = None,
    driver=Depends(get_driver),
):
    """启动周期驱动；已在运行时不做任何改变"""
    started = driver.start(body.interval_minutes if body else None)
    status = driver.status()
    return StartResponse(
        started=started,
        active=status.active,
        interval_minutes=status.interval_minutes,
    )


@router.post("/api/escalation/stop", response_model=StopResponse)
async def stop_driver(driver=Depends(get_driver)):
    stopped = driver.stop()
    return StopResponse(stopped=stopped, active=driver.active)


@router.get("/api/escalation/status")
async def escalation_status(driver=Depends(get_driver)):
    return driver.status().model_dump(mode="json")
