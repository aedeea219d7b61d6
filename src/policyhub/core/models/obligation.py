"""Obligation 领域模型 -- 外部记录存储中的待办义务

策略确认、任务分配、审批统一抽象为 Obligation。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import RESOLVED_STATES, ObligationStatus, SubjectType


class Obligation(BaseModel):
    """需要按截止日期提醒的义务"""

    subject_type: SubjectType = Field(description="义务类别")
    subject_id: str = Field(description="义务 ID")
    title: str = Field(description="标题（策略名 / 任务名 / 审批流程名）")
    assignee_id: str = Field(description="负责人 ID")
    manager_id: str | None = Field(default=None, description="负责人上级 ID（逾期告警）")
    due_date: datetime | None = Field(default=None, description="截止时间")
    status: ObligationStatus = Field(default=ObligationStatus.PENDING, description="当前状态")
    reference: str = Field(default="", description="业务编号（如策略编号）")

    @property
    def is_open(self) -> bool:
        """是否仍未解决"""
        return self.status not in RESOLVED_STATES
