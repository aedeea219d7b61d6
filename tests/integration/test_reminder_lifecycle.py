"""端到端场景 -- 义务分配 -> 提醒 -> 逾期升级 -> 重新排期 -> 解决

使用真实 SQLite Store + 日志通道 + 可推进的时钟。
"""

from datetime import UTC, date, datetime, timedelta

import pytest

from policyhub.core.models import (
    AuditRecordType,
    NotificationType,
    Obligation,
    ObligationStatus,
    SubjectType,
)
from policyhub.core.store import StoreGroup
from policyhub.notify import NotifyConfig
from policyhub.scheduler import EscalationStack, SchedulerConfig, build_escalation_stack

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


class MovableClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock() -> MovableClock:
    return MovableClock(T0)


@pytest.fixture
def stack(store_group: StoreGroup, contacts, clock: MovableClock) -> EscalationStack:
    return build_escalation_stack(
        store_group,
        SchedulerConfig(),
        NotifyConfig(),
        site_url="http://portal",
        clock=clock,
    )


def _delivered(stack: EscalationStack) -> list:
    return stack.dispatcher._primary.delivered


class TestReminderLifecycle:
    """完整生命周期"""

    async def test_policy_acknowledgement_lifecycle(
        self, stack: EscalationStack, store_group: StoreGroup, clock: MovableClock
    ):
        await stack.obligation_service.assign(
            Obligation(
                subject_type=SubjectType.POLICY_ACKNOWLEDGEMENT,
                subject_id="pol-7",
                title="Data Protection Policy",
                assignee_id="alice",
                manager_id="bob",
                due_date=T0 + timedelta(hours=20),
                reference="POL-007",
            )
        )

        # 距截止 20 小时：1 天提醒
        first = await stack.coordinator.run_once()
        assert first.success is True
        assert first.policy_reminders_sent == 1
        schedule = await store_group.schedule_store.find(
            SubjectType.POLICY_ACKNOWLEDGEMENT, "pol-7"
        )
        assert schedule.reminder_1day_sent
        assert schedule.last_reminder_date == date(2026, 3, 2)

        # 同日再次运行：不重复发送
        clock.advance(timedelta(hours=2))
        second = await stack.coordinator.run_once()
        assert second.policy_reminders_sent == 0

        # 两天后已逾期：逾期提醒 + 上级告警
        clock.advance(timedelta(days=2))
        third = await stack.coordinator.run_once()
        assert third.policy_reminders_sent == 1
        types = [p.notification_type for p in _delivered(stack)]
        assert types == [
            NotificationType.POLICY_REMINDER_1_DAY,
            NotificationType.POLICY_OVERDUE,
            NotificationType.MANAGER_OVERDUE_ALERT,
        ]

        # 次日：全部阶段已处理，不再发送
        clock.advance(timedelta(days=1))
        fourth = await stack.coordinator.run_once()
        assert fourth.policy_reminders_sent == 0

        # 重新排期：级联重置，新的截止日期再次触发提醒
        await stack.obligation_service.reschedule(
            SubjectType.POLICY_ACKNOWLEDGEMENT, "pol-7", clock.now + timedelta(days=2)
        )
        fifth = await stack.coordinator.run_once()
        assert fifth.policy_reminders_sent == 1
        assert _delivered(stack)[-1].notification_type == NotificationType.POLICY_REMINDER_3_DAY

        # 解决后：排期删除，不再检查
        await stack.obligation_service.resolve(
            SubjectType.POLICY_ACKNOWLEDGEMENT, "pol-7", ObligationStatus.ACKNOWLEDGED
        )
        clock.advance(timedelta(days=1))
        sixth = await stack.coordinator.run_once()
        assert sixth.policy_acknowledgements_processed == 0

        runs = await store_group.audit_store.list_audit_records(
            record_type=AuditRecordType.ESCALATION_RUN
        )
        assert len(runs) == 6
        notifications = await store_group.audit_store.list_audit_records(
            record_type=AuditRecordType.NOTIFICATION_SENT
        )
        assert len(notifications) == 4

    async def test_categories_processed_in_one_run(
        self, stack: EscalationStack, clock: MovableClock
    ):
        """三个类别在同一次运行中分别计数"""
        due_soon = T0 + timedelta(hours=20)
        overdue = T0 - timedelta(days=2)
        for subject_type, subject_id, due in [
            (SubjectType.TASK_ASSIGNMENT, "task-1", overdue),
            (SubjectType.TASK_ASSIGNMENT, "task-2", due_soon),
            (SubjectType.APPROVAL, "apr-1", overdue),
            (SubjectType.POLICY_ACKNOWLEDGEMENT, "pol-1", due_soon),
        ]:
            await stack.obligation_service.assign(
                Obligation(
                    subject_type=subject_type,
                    subject_id=subject_id,
                    title=subject_id,
                    assignee_id="alice",
                    due_date=due,
                )
            )

        result = await stack.coordinator.run_once()

        assert result.success is True
        assert result.tasks_processed == 2
        assert result.task_notifications_sent == 1
        assert result.task_due_date_reminders_sent == 1
        assert result.approvals_processed == 1
        assert result.approval_notifications_sent == 1
        assert result.policy_acknowledgements_processed == 1
        assert result.policy_reminders_sent == 1
