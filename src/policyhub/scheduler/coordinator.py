"""EscalationRunCoordinator -- 单次升级/提醒运行协调

状态机 Idle -> Running -> Idle：
- 仅在 Idle 时接受运行；否则立即返回失败结果（拒绝而非排队）
- 检查与置位之间没有 await，单线程事件循环下即为原子操作
- 三个类别顺序执行，单类别系统性失败不影响其他类别
- finally 中恢复 Idle，运行中崩溃不会永久锁死
- 运行审计尽力而为，失败不影响 success
- run_once 永不抛出异常
"""

import time
from collections.abc import Callable, Mapping
from datetime import datetime

import structlog
from ulid import ULID

from policyhub.core.clock import utc_now
from policyhub.core.models import (
    AuditRecord,
    AuditRecordType,
    EscalationRunResult,
    ReminderStage,
    RunState,
    SubjectType,
    SweepResult,
    validate_run_transition,
)
from policyhub.core.store.protocols import AuditStore
from policyhub.notify import best_effort

from .config import SchedulerConfig
from .sweep import ReminderSweepEngine

log = structlog.get_logger()

ALREADY_RUNNING_ERROR = "Escalation processing already in progress"

# 类别执行顺序与错误标签
CATEGORY_TAGS: dict[SubjectType, str] = {
    SubjectType.TASK_ASSIGNMENT: "tasks",
    SubjectType.APPROVAL: "approvals",
    SubjectType.POLICY_ACKNOWLEDGEMENT: "policy_acknowledgements",
}


class EscalationRunCoordinator:
    """升级运行协调器"""

    def __init__(
        self,
        sweeps: Mapping[SubjectType, ReminderSweepEngine],
        config: SchedulerConfig | None = None,
        audit_store: AuditStore | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """初始化协调器

        Args:
            sweeps: 类别 -> 扫描引擎
            config: 默认调度配置，None 时使用默认值
            audit_store: 运行审计存储，None 表示不写审计
            clock: 时间源
        """
        self._sweeps = dict(sweeps)
        self._config = config or SchedulerConfig()
        self._audit_store = audit_store
        self._clock = clock
        self._state = RunState.IDLE
        self._last_run_result: EscalationRunResult | None = None

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def config(self) -> SchedulerConfig:
        return self._config

    def is_processing(self) -> bool:
        return self._state == RunState.RUNNING

    def get_last_run_result(self) -> EscalationRunResult | None:
        """最近一次被接受的运行结果（被拒绝的运行不记录）"""
        return self._last_run_result

    def _transition(self, to_state: RunState) -> None:
        if not validate_run_transition(self._state, to_state):
            raise ValueError(f"非法状态流转: {self._state} -> {to_state}")
        self._state = to_state

    async def run_once(self, config: SchedulerConfig | None = None) -> EscalationRunResult:
        """执行一次完整运行

        Args:
            config: 本次运行配置，None 时使用构造时的配置

        Returns:
            EscalationRunResult（被拒绝时 success=False 且仅含一条错误）
        """
        config = config or self._config
        start_time = self._clock()
        run_id = str(ULID())

        # 重入保护：检查与置位之间不得出现 await
        if self._state != RunState.IDLE:
            log.warning("escalation_run_rejected", run_id=run_id, state=self._state.value)
            return EscalationRunResult(
                run_id=run_id,
                start_time=start_time,
                end_time=start_time,
                errors=[ALREADY_RUNNING_ERROR],
                success=False,
            )
        self._transition(RunState.RUNNING)

        started = time.monotonic()
        results: dict[SubjectType, SweepResult] = {}
        errors: list[str] = []

        try:
            with structlog.contextvars.bound_contextvars(run_id=run_id):
                log.info("escalation_run_started")
                for subject_type, tag in CATEGORY_TAGS.items():
                    sweep = self._sweeps.get(subject_type)
                    if sweep is None or not sweep.is_enabled(config):
                        continue
                    try:
                        result = await sweep.sweep(config)
                    except Exception as e:
                        errors.append(f"{tag}: {e}")
                        log.error(
                            "sweep_failed",
                            category=tag,
                            error=str(e),
                            error_type=type(e).__name__,
                        )
                        continue
                    results[subject_type] = result
                    errors.extend(f"{tag}: {error}" for error in result.errors)
        finally:
            self._transition(RunState.IDLE)

        run_result = self._build_result(
            run_id=run_id,
            start_time=start_time,
            end_time=self._clock(),
            duration_ms=int((time.monotonic() - started) * 1000),
            results=results,
            errors=errors,
        )

        await self._audit(run_result)
        self._last_run_result = run_result

        log.info(
            "escalation_run_completed",
            run_id=run_id,
            success=run_result.success,
            duration_ms=run_result.duration_ms,
            error_count=len(errors),
        )
        return run_result

    @staticmethod
    def _build_result(
        run_id: str,
        start_time: datetime,
        end_time: datetime,
        duration_ms: int,
        results: dict[SubjectType, SweepResult],
        errors: list[str],
    ) -> EscalationRunResult:
        """汇总各类别扫描结果"""
        empty = SweepResult(subject_type=SubjectType.TASK_ASSIGNMENT)
        tasks = results.get(SubjectType.TASK_ASSIGNMENT, empty)
        approvals = results.get(SubjectType.APPROVAL, empty)
        policies = results.get(SubjectType.POLICY_ACKNOWLEDGEMENT, empty)

        return EscalationRunResult(
            run_id=run_id,
            start_time=start_time,
            end_time=end_time,
            duration_ms=duration_ms,
            tasks_processed=tasks.checked,
            task_notifications_sent=tasks.sent_for(ReminderStage.OVERDUE),
            task_due_date_reminders_sent=tasks.sent_for(
                ReminderStage.THREE_DAY, ReminderStage.ONE_DAY
            ),
            approvals_processed=approvals.checked,
            approval_notifications_sent=approvals.sent,
            policy_acknowledgements_processed=policies.checked,
            policy_reminders_sent=policies.sent,
            errors=errors,
            success=not errors,
        )

    async def _audit(self, run_result: EscalationRunResult) -> None:
        """写入运行审计（尽力而为）"""
        if self._audit_store is None:
            return

        audit_store = self._audit_store
        record = AuditRecord(
            record_id=str(ULID()),
            ts=run_result.end_time,
            record_type=AuditRecordType.ESCALATION_RUN,
            title="Escalation run completed",
            level="Info" if run_result.success else "Warning",
            message=(
                f"Tasks: {run_result.tasks_processed}, "
                f"Approvals: {run_result.approvals_processed}, "
                f"Policy acknowledgements: {run_result.policy_acknowledgements_processed}, "
                f"Errors: {len(run_result.errors)}"
            ),
            details=run_result.model_dump(mode="json"),
        )
        await best_effort(
            "escalation_run_audit",
            lambda: audit_store.append_audit_record(record),
            run_id=run_result.run_id,
        )
