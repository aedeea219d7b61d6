"""PeriodicDriver -- 周期触发协调器运行

ticker 任务负责计时，每次到点另起一个任务执行 run_once：
- stop() 只取消 ticker，进行中的运行会完成并记录结果
- 是否真正执行由协调器的 Idle/Running 保护决定，ticker 不做判断
"""

import asyncio

import structlog
from pydantic import BaseModel, Field

from policyhub.core.models import EscalationRunResult

from .config import SchedulerConfig
from .coordinator import EscalationRunCoordinator

log = structlog.get_logger()


class DriverStatus(BaseModel):
    """周期驱动状态快照"""

    active: bool = Field(description="ticker 是否运行中")
    is_processing: bool = Field(description="协调器是否正在运行")
    interval_minutes: float | None = Field(default=None, description="当前周期（分钟）")
    last_run_result: EscalationRunResult | None = Field(default=None)


class PeriodicDriver:
    """周期驱动器"""

    def __init__(
        self,
        coordinator: EscalationRunCoordinator,
        config: SchedulerConfig | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._config = config or coordinator.config
        self._ticker: asyncio.Task | None = None
        self._interval_minutes: float | None = None
        self._runs: set[asyncio.Task] = set()

    @property
    def active(self) -> bool:
        return self._ticker is not None and not self._ticker.done()

    def start(self, interval_minutes: float | None = None) -> bool:
        """启动周期驱动：立即运行一次，然后每 interval_minutes 运行一次

        Returns:
            True 表示已启动；已在运行时返回 False（no-op）
        """
        if self.active:
            log.warning("periodic_driver_already_active", interval_minutes=self._interval_minutes)
            return False

        interval = (
            interval_minutes if interval_minutes is not None else self._config.interval_minutes
        )
        if interval <= 0:
            raise ValueError(f"interval_minutes 必须大于 0: {interval}")

        self._interval_minutes = interval
        self._ticker = asyncio.create_task(self._tick_loop(interval * 60))
        log.info("periodic_driver_started", interval_minutes=interval)
        return True

    def stop(self) -> bool:
        """停止周期驱动（不中断进行中的运行）

        Returns:
            True 表示已停止；未运行时返回 False
        """
        if not self.active:
            return False

        if self._ticker is not None:
            self._ticker.cancel()
        self._ticker = None
        log.info("periodic_driver_stopped", in_flight=len(self._runs))
        return True

    def status(self) -> DriverStatus:
        return DriverStatus(
            active=self.active,
            is_processing=self._coordinator.is_processing(),
            interval_minutes=self._interval_minutes if self.active else None,
            last_run_result=self._coordinator.get_last_run_result(),
        )

    async def wait_idle(self) -> None:
        """等待所有已派生的运行结束"""
        while self._runs:
            await asyncio.gather(*list(self._runs), return_exceptions=True)

    async def _tick_loop(self, interval_s: float) -> None:
        while True:
            self._spawn_run()
            await asyncio.sleep(interval_s)

    def _spawn_run(self) -> None:
        task = asyncio.create_task(self._coordinator.run_once(self._config))
        self._runs.add(task)
        task.add_done_callback(self._runs.discard)
