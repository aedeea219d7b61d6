"""ThresholdEvaluator -- (now, due_date) -> 提醒阶段

纯函数，无副作用。days_to_due = ceil((due_date - now) / 1 天)。

阶段判定（按优先级，首个命中即返回）：
- overdue:  days_to_due < 0
- oneDay:   days_to_due == 1
- threeDay: 1 < days_to_due <= 3
- none:     其他（含 days_to_due == 0：截止当天不是独立阶段，不补发）
"""

import math
from datetime import datetime

from pydantic import BaseModel, Field

from .clock import to_utc
from .config import THREE_DAY_THRESHOLD_DAYS
from .models.enums import ReminderStage

_SECONDS_PER_DAY = 24 * 60 * 60


class ThresholdEvaluation(BaseModel):
    """阈值评估结果"""

    stage: ReminderStage = Field(description="提醒阶段")
    days_to_due: int = Field(description="距截止天数（向上取整，逾期为负）")
    hours_to_due: float = Field(description="距截止小时数（逾期为负）")

    @property
    def days_overdue(self) -> int:
        """逾期天数（未逾期为 0）"""
        return max(0, -self.days_to_due)


def evaluate(now: datetime, due_date: datetime) -> ThresholdEvaluation:
    """评估提醒阶段

    Args:
        now: 当前时间
        due_date: 截止时间

    Returns:
        ThresholdEvaluation
    """
    delta_seconds = (to_utc(due_date) - to_utc(now)).total_seconds()
    days_to_due = math.ceil(delta_seconds / _SECONDS_PER_DAY)

    if days_to_due < 0:
        stage = ReminderStage.OVERDUE
    elif days_to_due == 1:
        stage = ReminderStage.ONE_DAY
    elif 1 < days_to_due <= THREE_DAY_THRESHOLD_DAYS:
        stage = ReminderStage.THREE_DAY
    else:
        stage = ReminderStage.NONE

    return ThresholdEvaluation(
        stage=stage,
        days_to_due=days_to_due,
        hours_to_due=delta_seconds / 3600,
    )
