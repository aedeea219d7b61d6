"""EscalationRunCoordinator 单元测试

测试内容：
1. 计数汇总与 success 判定
2. 重入保护：进行中再次调用立即被拒绝，不影响进行中的运行
3. 类别隔离：单类别系统性失败只产生一条带标签错误
4. 崩溃后状态恢复 Idle
5. 审计失败不影响 success
6. 类别开关
"""

import asyncio
from unittest.mock import AsyncMock

from policyhub.core.models import (
    AuditRecordType,
    ReminderStage,
    RunState,
    SubjectType,
    SweepResult,
)
from policyhub.core.store import StoreGroup
from policyhub.scheduler import (
    ALREADY_RUNNING_ERROR,
    EscalationRunCoordinator,
    SchedulerConfig,
)


class FakeSweep:
    """可编排的扫描引擎替身"""

    def __init__(
        self,
        subject_type: SubjectType,
        result: SweepResult | None = None,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.subject_type = subject_type
        self.result = result or SweepResult(subject_type=subject_type)
        self.error = error
        self.gate = gate
        self.started = asyncio.Event()
        self.calls = 0

    def is_enabled(self, config: SchedulerConfig) -> bool:
        if self.subject_type == SubjectType.APPROVAL:
            return config.process_approval_reminders
        if self.subject_type == SubjectType.POLICY_ACKNOWLEDGEMENT:
            return config.process_policy_reminders
        return config.process_task_escalations or config.process_task_due_date_reminders

    async def sweep(self, config: SchedulerConfig, now=None) -> SweepResult:
        self.calls += 1
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result


def _task_result() -> SweepResult:
    result = SweepResult(subject_type=SubjectType.TASK_ASSIGNMENT, checked=4)
    result.count_sent(ReminderStage.OVERDUE)
    result.count_sent(ReminderStage.ONE_DAY)
    result.count_sent(ReminderStage.THREE_DAY)
    return result


def _sweeps(**overrides) -> dict[SubjectType, FakeSweep]:
    sweeps = {
        SubjectType.TASK_ASSIGNMENT: FakeSweep(SubjectType.TASK_ASSIGNMENT, _task_result()),
        SubjectType.APPROVAL: FakeSweep(
            SubjectType.APPROVAL,
            SweepResult(subject_type=SubjectType.APPROVAL, checked=2, sent=1),
        ),
        SubjectType.POLICY_ACKNOWLEDGEMENT: FakeSweep(
            SubjectType.POLICY_ACKNOWLEDGEMENT,
            SweepResult(subject_type=SubjectType.POLICY_ACKNOWLEDGEMENT, checked=5, sent=3),
        ),
    }
    sweeps.update(overrides)
    return sweeps


class TestRunOnceCounts:
    """结果汇总"""

    async def test_counts_mapped_per_category(self):
        coordinator = EscalationRunCoordinator(_sweeps())

        result = await coordinator.run_once()

        assert result.success is True
        assert result.errors == []
        assert result.tasks_processed == 4
        assert result.task_notifications_sent == 1
        assert result.task_due_date_reminders_sent == 2
        assert result.approvals_processed == 2
        assert result.approval_notifications_sent == 1
        assert result.policy_acknowledgements_processed == 5
        assert result.policy_reminders_sent == 3
        assert result.end_time >= result.start_time
        assert coordinator.get_last_run_result() == result
        assert coordinator.state == RunState.IDLE

    async def test_per_item_errors_tagged(self):
        approvals = SweepResult(
            subject_type=SubjectType.APPROVAL, checked=2, errors=["apr-9: relay down"]
        )
        coordinator = EscalationRunCoordinator(
            _sweeps(**{SubjectType.APPROVAL: FakeSweep(SubjectType.APPROVAL, approvals)})
        )

        result = await coordinator.run_once()

        assert result.success is False
        assert result.errors == ["approvals: apr-9: relay down"]

    async def test_run_ids_unique(self):
        coordinator = EscalationRunCoordinator(_sweeps())
        first = await coordinator.run_once()
        second = await coordinator.run_once()
        assert first.run_id != second.run_id

    async def test_disabled_category_not_invoked(self):
        sweeps = _sweeps()
        coordinator = EscalationRunCoordinator(sweeps)

        result = await coordinator.run_once(SchedulerConfig(process_approval_reminders=False))

        assert sweeps[SubjectType.APPROVAL].calls == 0
        assert result.approvals_processed == 0
        assert result.tasks_processed == 4


class TestReentrancy:
    """重入保护"""

    async def test_concurrent_call_rejected(self):
        gate = asyncio.Event()
        slow = FakeSweep(SubjectType.TASK_ASSIGNMENT, _task_result(), gate=gate)
        coordinator = EscalationRunCoordinator(_sweeps(**{SubjectType.TASK_ASSIGNMENT: slow}))

        in_flight = asyncio.create_task(coordinator.run_once())
        await slow.started.wait()
        assert coordinator.is_processing()

        rejected = await coordinator.run_once()

        assert rejected.success is False
        assert rejected.errors == [ALREADY_RUNNING_ERROR]
        assert rejected.tasks_processed == 0
        # 被拒绝的运行不记录为最近结果
        assert coordinator.get_last_run_result() is None

        gate.set()
        completed = await in_flight

        assert completed.success is True
        assert completed.tasks_processed == 4
        assert coordinator.get_last_run_result() == completed
        assert not coordinator.is_processing()
        assert slow.calls == 1


class TestCategoryIsolation:
    """类别隔离"""

    async def test_systemic_failure_isolated(self):
        broken = FakeSweep(SubjectType.APPROVAL, error=RuntimeError("store unreachable"))
        coordinator = EscalationRunCoordinator(_sweeps(**{SubjectType.APPROVAL: broken}))

        result = await coordinator.run_once()

        assert result.success is False
        assert result.errors == ["approvals: store unreachable"]
        assert result.tasks_processed == 4
        assert result.task_notifications_sent == 1
        assert result.task_due_date_reminders_sent == 2
        assert result.policy_reminders_sent == 3

    async def test_state_reset_after_failures(self):
        """所有类别失败后仍恢复 Idle，下一次运行可以进行"""
        sweeps = {
            subject_type: FakeSweep(subject_type, error=RuntimeError("boom"))
            for subject_type in SubjectType
        }
        coordinator = EscalationRunCoordinator(sweeps)

        result = await coordinator.run_once()

        assert len(result.errors) == 3
        assert coordinator.state == RunState.IDLE
        again = await coordinator.run_once()
        assert ALREADY_RUNNING_ERROR not in again.errors


class TestRunAudit:
    """运行审计"""

    async def test_audit_record_written(self, store_group: StoreGroup):
        coordinator = EscalationRunCoordinator(
            _sweeps(), audit_store=store_group.audit_store
        )

        result = await coordinator.run_once()

        records = await store_group.audit_store.list_audit_records(
            record_type=AuditRecordType.ESCALATION_RUN
        )
        assert len(records) == 1
        assert records[0].details["run_id"] == result.run_id
        assert records[0].details["policy_reminders_sent"] == 3

    async def test_audit_failure_does_not_affect_success(self):
        audit_store = AsyncMock()
        audit_store.append_audit_record.side_effect = RuntimeError("disk full")
        coordinator = EscalationRunCoordinator(_sweeps(), audit_store=audit_store)

        result = await coordinator.run_once()

        assert result.success is True
        assert result.errors == []
        audit_store.append_audit_record.assert_awaited_once()
