"""PolicyHub Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .audit import AuditRecord
from .enums import (
    PRE_DUE_STAGES,
    RESOLVED_STATES,
    STAGE_FLAG_COLUMNS,
    VALID_RUN_TRANSITIONS,
    AuditRecordType,
    NotificationCategory,
    NotificationPriority,
    NotificationType,
    ObligationStatus,
    ReminderStage,
    RunState,
    SubjectType,
    validate_run_transition,
)
from .notification import NotificationIntent, RecipientContact
from .obligation import Obligation
from .run import EscalationRunResult, SweepResult
from .schedule import ReminderSchedule

__all__ = [
    # 枚举
    "SubjectType",
    "ReminderStage",
    "ObligationStatus",
    "NotificationType",
    "NotificationPriority",
    "NotificationCategory",
    "AuditRecordType",
    "RunState",
    "PRE_DUE_STAGES",
    "STAGE_FLAG_COLUMNS",
    "RESOLVED_STATES",
    # 状态机
    "VALID_RUN_TRANSITIONS",
    "validate_run_transition",
    # 排期
    "ReminderSchedule",
    # 义务
    "Obligation",
    # 通知
    "NotificationIntent",
    "RecipientContact",
    # 运行结果
    "SweepResult",
    "EscalationRunResult",
    # 审计
    "AuditRecord",
]
