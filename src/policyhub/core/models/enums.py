"""枚举定义

包含 SubjectType、ReminderStage、ObligationStatus、NotificationType 等枚举，
以及协调器运行状态机 VALID_RUN_TRANSITIONS 合法流转映射。
"""

from enum import StrEnum


class SubjectType(StrEnum):
    """义务（obligation）类别"""

    POLICY_ACKNOWLEDGEMENT = "PolicyAcknowledgement"
    TASK_ASSIGNMENT = "TaskAssignment"
    APPROVAL = "Approval"


class ReminderStage(StrEnum):
    """提醒阶段 -- 相对截止日期的阈值穿越"""

    NONE = "none"
    THREE_DAY = "threeDay"
    ONE_DAY = "oneDay"
    OVERDUE = "overdue"


# 截止前阶段（非逾期）
PRE_DUE_STAGES: frozenset[ReminderStage] = frozenset(
    {ReminderStage.THREE_DAY, ReminderStage.ONE_DAY}
)

# 每个阶段对应 reminder_schedules 表中的"已发送"列
STAGE_FLAG_COLUMNS: dict[ReminderStage, str] = {
    ReminderStage.THREE_DAY: "reminder_3day_sent",
    ReminderStage.ONE_DAY: "reminder_1day_sent",
    ReminderStage.OVERDUE: "overdue_sent",
}


class ObligationStatus(StrEnum):
    """义务状态"""

    # 未完成状态
    PENDING = "Pending"
    IN_PROGRESS = "InProgress"

    # 已解决状态
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    ACKNOWLEDGED = "Acknowledged"
    APPROVED = "Approved"
    REJECTED = "Rejected"


RESOLVED_STATES: set[ObligationStatus] = {
    ObligationStatus.COMPLETED,
    ObligationStatus.CANCELLED,
    ObligationStatus.ACKNOWLEDGED,
    ObligationStatus.APPROVED,
    ObligationStatus.REJECTED,
}


class NotificationType(StrEnum):
    """通知类型（封闭模板集合）"""

    POLICY_REMINDER_3_DAY = "Reminder3Day"
    POLICY_REMINDER_1_DAY = "Reminder1Day"
    POLICY_OVERDUE = "Overdue"
    TASK_REMINDER = "TaskReminder"
    TASK_ESCALATION = "TaskEscalation"
    APPROVAL_REMINDER = "ApprovalReminder"
    APPROVAL_OVERDUE = "ApprovalOverdue"
    MANAGER_OVERDUE_ALERT = "ManagerOverdueAlert"


class NotificationPriority(StrEnum):
    """通知优先级"""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class NotificationCategory(StrEnum):
    """通知分类"""

    INFO = "Info"
    COMPLIANCE = "Compliance"
    TASK = "Task"
    APPROVAL = "Approval"


class AuditRecordType(StrEnum):
    """审计记录类型"""

    NOTIFICATION_SENT = "NotificationSent"
    ESCALATION_RUN = "EscalationRun"


class RunState(StrEnum):
    """协调器运行状态"""

    IDLE = "Idle"
    RUNNING = "Running"


# 协调器合法状态流转
VALID_RUN_TRANSITIONS: dict[RunState, set[RunState]] = {
    RunState.IDLE: {RunState.RUNNING},
    RunState.RUNNING: {RunState.IDLE},
}


def validate_run_transition(from_state: RunState, to_state: RunState) -> bool:
    """验证协调器状态流转是否合法

    Args:
        from_state: 当前状态
        to_state: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_RUN_TRANSITIONS.get(from_state, set())
    return to_state in allowed
