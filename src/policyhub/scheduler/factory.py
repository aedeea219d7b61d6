"""装配工厂 -- 由 StoreGroup + 配置构建完整的升级调度栈"""

from collections.abc import Callable
from datetime import datetime

from policyhub.core.clock import utc_now
from policyhub.core.models import SubjectType
from policyhub.core.store import StoreGroup
from policyhub.notify import NotificationDispatcher, NotifyConfig, build_channels

from .config import SchedulerConfig
from .coordinator import CATEGORY_TAGS, EscalationRunCoordinator
from .driver import PeriodicDriver
from .obligation_service import ObligationService
from .sweep import ReminderSweepEngine


class EscalationStack:
    """升级调度栈 -- 共享同一个 StoreGroup 的组件集合"""

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        sweeps: dict[SubjectType, ReminderSweepEngine],
        coordinator: EscalationRunCoordinator,
        driver: PeriodicDriver,
        obligation_service: ObligationService,
    ) -> None:
        self.dispatcher = dispatcher
        self.sweeps = sweeps
        self.coordinator = coordinator
        self.driver = driver
        self.obligation_service = obligation_service


def build_escalation_stack(
    store_group: StoreGroup,
    scheduler_config: SchedulerConfig,
    notify_config: NotifyConfig,
    site_url: str | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> EscalationStack:
    """构建升级调度栈

    Args:
        store_group: 共享连接的 Store 实例组
        scheduler_config: 调度配置
        notify_config: 通知通道配置
        site_url: 链接根地址，None 时从环境变量读取
        clock: 时间源

    Returns:
        EscalationStack
    """
    primary, secondary = build_channels(notify_config)
    dispatcher = NotificationDispatcher(
        primary=primary,
        secondary=secondary,
        directory=store_group.directory,
        audit_store=store_group.audit_store,
        clock=clock,
    )

    sweeps = {
        subject_type: ReminderSweepEngine(
            subject_type=subject_type,
            schedule_store=store_group.schedule_store,
            obligation_store=store_group.obligation_store,
            dispatcher=dispatcher,
            directory=store_group.directory,
            site_url=site_url,
            clock=clock,
        )
        for subject_type in CATEGORY_TAGS
    }

    coordinator = EscalationRunCoordinator(
        sweeps=sweeps,
        config=scheduler_config,
        audit_store=store_group.audit_store,
        clock=clock,
    )

    return EscalationStack(
        dispatcher=dispatcher,
        sweeps=sweeps,
        coordinator=coordinator,
        driver=PeriodicDriver(coordinator, scheduler_config),
        obligation_service=ObligationService(
            store_group.obligation_store,
            store_group.schedule_store,
        ),
    )
