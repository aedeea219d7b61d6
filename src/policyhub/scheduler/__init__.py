"""PolicyHub Scheduler -- 截止日期提醒与升级调度

packages scheduler 的公开接口导出。
"""

from .config import SchedulerConfig, load_scheduler_config
from .coordinator import ALREADY_RUNNING_ERROR, CATEGORY_TAGS, EscalationRunCoordinator
from .driver import DriverStatus, PeriodicDriver
from .factory import EscalationStack, build_escalation_stack
from .obligation_service import ObligationService
from .sweep import CATEGORY_RULES, ReminderSweepEngine

__all__ = [
    # 配置
    "SchedulerConfig",
    "load_scheduler_config",
    # 扫描
    "ReminderSweepEngine",
    "CATEGORY_RULES",
    # 协调
    "EscalationRunCoordinator",
    "ALREADY_RUNNING_ERROR",
    "CATEGORY_TAGS",
    # 驱动
    "PeriodicDriver",
    "DriverStatus",
    # 义务
    "ObligationService",
    # 装配
    "EscalationStack",
    "build_escalation_stack",
]
