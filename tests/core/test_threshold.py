"""阈值评估单元测试

测试内容：
1. 典型 (now, due_date) 组合的阶段判定
2. 截止当天（days_to_due == 0）不是独立阶段
3. days_overdue / hours_to_due 计算
4. naive datetime 视为 UTC
"""

from datetime import UTC, datetime, timedelta

import pytest

from policyhub.core.models import ReminderStage
from policyhub.core.threshold import evaluate

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


class TestThresholdTable:
    """阶段判定表"""

    @pytest.mark.parametrize(
        "offset,expected",
        [
            (timedelta(days=2), ReminderStage.THREE_DAY),
            (timedelta(days=3), ReminderStage.THREE_DAY),
            (timedelta(days=1, hours=12), ReminderStage.THREE_DAY),
            (timedelta(days=1), ReminderStage.ONE_DAY),
            (timedelta(hours=20), ReminderStage.ONE_DAY),
            (timedelta(minutes=1), ReminderStage.ONE_DAY),
            (timedelta(0), ReminderStage.NONE),
            (timedelta(days=3, minutes=1), ReminderStage.NONE),
            (timedelta(days=10), ReminderStage.NONE),
            (-timedelta(days=1), ReminderStage.OVERDUE),
            (-timedelta(days=1, hours=1), ReminderStage.OVERDUE),
        ],
    )
    def test_stage(self, offset: timedelta, expected: ReminderStage):
        """每个组合恰好返回一个阶段"""
        assert evaluate(NOW, NOW + offset).stage == expected

    def test_due_today_is_not_a_stage(self):
        """刚过截止（不足一天）向上取整为 0，不触发任何阶段"""
        result = evaluate(NOW, NOW - timedelta(hours=5))
        assert result.days_to_due == 0
        assert result.stage == ReminderStage.NONE


class TestThresholdDerivedValues:
    """派生数值"""

    def test_days_overdue(self):
        result = evaluate(NOW, NOW - timedelta(days=3))
        assert result.days_to_due == -3
        assert result.days_overdue == 3

    def test_days_overdue_zero_when_not_due(self):
        assert evaluate(NOW, NOW + timedelta(days=2)).days_overdue == 0

    def test_hours_to_due(self):
        result = evaluate(NOW, NOW + timedelta(hours=20))
        assert result.hours_to_due == pytest.approx(20.0)

    def test_naive_due_date_treated_as_utc(self):
        """naive 截止时间按 UTC 处理"""
        naive_due = datetime(2026, 3, 3, 9, 0)
        assert evaluate(NOW, naive_due).stage == ReminderStage.ONE_DAY
