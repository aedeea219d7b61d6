"""运行结果模型 -- SweepResult + EscalationRunResult

EscalationRunResult 每次协调器调用生成一份，仅最近一份保留在内存中。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import ReminderStage, SubjectType


class SweepResult(BaseModel):
    """单个类别一次扫描的汇总"""

    subject_type: SubjectType = Field(description="扫描类别")
    checked: int = Field(default=0, ge=0, description="检查的候选数")
    sent: int = Field(default=0, ge=0, description="成功发送的提醒数")
    sent_by_stage: dict[ReminderStage, int] = Field(
        default_factory=dict,
        description="按阶段统计的发送数",
    )
    manager_alerts_sent: int = Field(default=0, ge=0, description="上级逾期告警发送数")
    removed: int = Field(default=0, ge=0, description="因义务已解决而删除的排期数")
    errors: list[str] = Field(default_factory=list, description="逐项失败记录")

    def count_sent(self, stage: ReminderStage) -> None:
        """记录一次成功发送"""
        self.sent += 1
        self.sent_by_stage[stage] = self.sent_by_stage.get(stage, 0) + 1

    def sent_for(self, *stages: ReminderStage) -> int:
        """指定阶段的发送总数"""
        return sum(self.sent_by_stage.get(stage, 0) for stage in stages)


class EscalationRunResult(BaseModel):
    """协调器单次运行结果"""

    run_id: str = Field(description="运行 ID（ULID：时间 + 随机）")
    start_time: datetime = Field(description="开始时间")
    end_time: datetime = Field(description="结束时间")
    duration_ms: int = Field(default=0, ge=0, description="耗时（毫秒）")

    # 任务类别
    tasks_processed: int = Field(default=0, ge=0)
    task_notifications_sent: int = Field(default=0, ge=0, description="任务逾期升级通知数")
    task_due_date_reminders_sent: int = Field(default=0, ge=0, description="任务到期提醒数")

    # 审批类别
    approvals_processed: int = Field(default=0, ge=0)
    approval_notifications_sent: int = Field(default=0, ge=0)

    # 策略确认类别
    policy_acknowledgements_processed: int = Field(default=0, ge=0)
    policy_reminders_sent: int = Field(default=0, ge=0)

    errors: list[str] = Field(default_factory=list, description="按类别标记的错误")
    success: bool = Field(description="errors 为空时为 True")
