"""ReminderSchedule 数据模型

每个 (subject_type, subject_id) 对应一条记录。
已发送标记在同一截止日期周期内单调：仅重新排期（新截止日期）时清零。
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from .enums import ReminderStage, SubjectType


class ReminderSchedule(BaseModel):
    """提醒排期记录"""

    schedule_id: str = Field(description="唯一标识，ULID 格式")
    subject_type: SubjectType = Field(description="义务类别")
    subject_id: str = Field(description="义务 ID")
    due_date: datetime | None = Field(default=None, description="截止时间（无截止时间不参与扫描）")
    reminder_3day_sent: bool = Field(default=False, description="3 天提醒是否已发送")
    reminder_1day_sent: bool = Field(default=False, description="1 天提醒是否已发送")
    overdue_sent: bool = Field(default=False, description="逾期提醒是否已发送")
    last_reminder_date: date | None = Field(
        default=None,
        description="最近一次实际发送提醒的日历日期（用于同日去重）",
    )
    last_attempt_date: date | None = Field(
        default=None,
        description="最近一次发送失败的日历日期（同日内排到候选列表末尾）",
    )
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")

    def is_sent(self, stage: ReminderStage) -> bool:
        """指定阶段是否已发送；NONE 阶段视为无需发送"""
        if stage == ReminderStage.THREE_DAY:
            return self.reminder_3day_sent
        if stage == ReminderStage.ONE_DAY:
            return self.reminder_1day_sent
        if stage == ReminderStage.OVERDUE:
            return self.overdue_sent
        return True

    @property
    def has_pending(self) -> bool:
        """是否至少还有一个阶段未发送"""
        return not (self.reminder_3day_sent and self.reminder_1day_sent and self.overdue_sent)
