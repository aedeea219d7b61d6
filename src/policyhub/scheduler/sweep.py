"""ReminderSweepEngine -- 单类别提醒扫描

每个类别（任务分配 / 审批 / 策略确认）一个实例，每次调用执行一轮：
1. list_pending 按已启用阶段在 SQL 中过滤，拉取最多 max_items 个候选
2. 逐个评估阈值阶段，跳过 none / 已发送 / 今日已提醒
3. 发送前复查义务仍未解决，已解决则删除排期
4. 分发通知；失败记录错误但不标记（记下尝试日期），下一轮重试
5. 成功后 mark_sent(stage, today)；标记失败记为 reminder_mark_failed

逐项失败从不中断批次；只有拉取候选列表失败会向协调器传播。
"""

from collections.abc import Callable
from datetime import date, datetime, timedelta

import structlog
from pydantic import BaseModel

from policyhub.core.clock import calendar_date, utc_now
from policyhub.core.config import THREE_DAY_THRESHOLD_DAYS, get_site_url
from policyhub.core.models import (
    PRE_DUE_STAGES,
    NotificationIntent,
    NotificationType,
    Obligation,
    ReminderSchedule,
    ReminderStage,
    SubjectType,
    SweepResult,
)
from policyhub.core.store.protocols import (
    ObligationStore,
    RecipientDirectory,
    ReminderScheduleStore,
)
from policyhub.core.threshold import ThresholdEvaluation, evaluate
from policyhub.notify import NotificationDispatcher, TemplateContext, best_effort, render

from .config import SchedulerConfig

log = structlog.get_logger()


class CategoryRule(BaseModel):
    """类别静态规则：阶段 -> 通知类型 + 链接路径"""

    notification_types: dict[ReminderStage, NotificationType]
    link_path: str


CATEGORY_RULES: dict[SubjectType, CategoryRule] = {
    SubjectType.POLICY_ACKNOWLEDGEMENT: CategoryRule(
        notification_types={
            ReminderStage.THREE_DAY: NotificationType.POLICY_REMINDER_3_DAY,
            ReminderStage.ONE_DAY: NotificationType.POLICY_REMINDER_1_DAY,
            ReminderStage.OVERDUE: NotificationType.POLICY_OVERDUE,
        },
        link_path="policies",
    ),
    SubjectType.TASK_ASSIGNMENT: CategoryRule(
        notification_types={
            ReminderStage.THREE_DAY: NotificationType.TASK_REMINDER,
            ReminderStage.ONE_DAY: NotificationType.TASK_REMINDER,
            ReminderStage.OVERDUE: NotificationType.TASK_ESCALATION,
        },
        link_path="tasks",
    ),
    SubjectType.APPROVAL: CategoryRule(
        notification_types={
            ReminderStage.THREE_DAY: NotificationType.APPROVAL_REMINDER,
            ReminderStage.ONE_DAY: NotificationType.APPROVAL_REMINDER,
            ReminderStage.OVERDUE: NotificationType.APPROVAL_OVERDUE,
        },
        link_path="approvals",
    ),
}

_ALL_STAGES = frozenset(
    {ReminderStage.THREE_DAY, ReminderStage.ONE_DAY, ReminderStage.OVERDUE}
)


class ReminderSweepEngine:
    """单类别提醒扫描引擎"""

    def __init__(
        self,
        subject_type: SubjectType,
        schedule_store: ReminderScheduleStore,
        obligation_store: ObligationStore,
        dispatcher: NotificationDispatcher,
        directory: RecipientDirectory | None = None,
        site_url: str | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """初始化扫描引擎

        Args:
            subject_type: 负责的义务类别
            schedule_store: 提醒排期存储
            obligation_store: 义务存储（发送前复查状态）
            dispatcher: 通知分发器
            directory: 通讯录（上级告警中显示负责人姓名），可选
            site_url: 门户根 URL，None 时从环境变量读取
            clock: 时间源
        """
        self.subject_type = subject_type
        self._rule = CATEGORY_RULES[subject_type]
        self._schedule_store = schedule_store
        self._obligation_store = obligation_store
        self._dispatcher = dispatcher
        self._directory = directory
        self._site_url = (site_url or get_site_url()).rstrip("/")
        self._clock = clock

    def enabled_stages(self, config: SchedulerConfig) -> frozenset[ReminderStage]:
        """按配置开关得到本类别需要处理的阶段"""
        if self.subject_type == SubjectType.TASK_ASSIGNMENT:
            stages: set[ReminderStage] = set()
            if config.process_task_escalations:
                stages.add(ReminderStage.OVERDUE)
            if config.process_task_due_date_reminders:
                stages |= PRE_DUE_STAGES
            return frozenset(stages)
        if self.subject_type == SubjectType.APPROVAL:
            return _ALL_STAGES if config.process_approval_reminders else frozenset()
        return _ALL_STAGES if config.process_policy_reminders else frozenset()

    def is_enabled(self, config: SchedulerConfig) -> bool:
        return bool(self.enabled_stages(config))

    def max_items(self, config: SchedulerConfig) -> int:
        if self.subject_type == SubjectType.TASK_ASSIGNMENT:
            return config.max_tasks_per_run
        if self.subject_type == SubjectType.APPROVAL:
            return config.max_approvals_per_run
        return config.max_policy_acknowledgements_per_run

    def _horizon(self, config: SchedulerConfig) -> timedelta:
        """候选截止时间上界（相对 now）；任务到期提醒另受 due_date_reminder_hours 限制"""
        horizon = timedelta(days=THREE_DAY_THRESHOLD_DAYS)
        if self.subject_type == SubjectType.TASK_ASSIGNMENT:
            horizon = min(horizon, timedelta(hours=config.due_date_reminder_hours))
        return horizon

    async def sweep(
        self,
        config: SchedulerConfig,
        now: datetime | None = None,
    ) -> SweepResult:
        """执行一轮扫描

        Args:
            config: 调度配置
            now: 评估时刻，None 时取时间源

        Returns:
            SweepResult（逐项失败记录在 errors 中）

        Raises:
            Exception: 仅当拉取候选列表失败（系统性失败）
        """
        now = now or self._clock()
        today = calendar_date(now, config.reminder_timezone)
        stages = self.enabled_stages(config)
        result = SweepResult(subject_type=self.subject_type)

        if not stages:
            return result

        candidates = await self._schedule_store.list_pending(
            self.subject_type,
            limit=self.max_items(config),
            due_before=now + self._horizon(config),
            stages=stages,
            now=now,
            today=today,
        )

        for schedule in candidates:
            result.checked += 1
            try:
                await self._process(schedule, now, today, stages, config, result)
            except Exception as e:
                result.errors.append(f"{schedule.subject_id}: {e}")
                log.warning(
                    "sweep_item_failed",
                    subject_type=self.subject_type.value,
                    subject_id=schedule.subject_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        log.info(
            "sweep_completed",
            subject_type=self.subject_type.value,
            checked=result.checked,
            sent=result.sent,
            removed=result.removed,
            error_count=len(result.errors),
        )
        return result

    async def _process(
        self,
        schedule: ReminderSchedule,
        now: datetime,
        today: date,
        stages: frozenset[ReminderStage],
        config: SchedulerConfig,
        result: SweepResult,
    ) -> None:
        """处理单个候选"""
        if schedule.due_date is None:
            return

        evaluation = evaluate(now, schedule.due_date)
        stage = evaluation.stage
        if stage == ReminderStage.NONE or stage not in stages:
            return

        # 任务到期提醒只在 due_date_reminder_hours 窗口内发送
        if (
            self.subject_type == SubjectType.TASK_ASSIGNMENT
            and stage in PRE_DUE_STAGES
            and evaluation.hours_to_due > config.due_date_reminder_hours
        ):
            return

        if schedule.is_sent(stage):
            return

        if schedule.last_reminder_date == today:
            log.debug(
                "already_reminded_today",
                subject_type=self.subject_type.value,
                subject_id=schedule.subject_id,
            )
            return

        # 复查：列出后可能已被解决
        obligation = await self._obligation_store.get_obligation(
            self.subject_type, schedule.subject_id
        )
        if obligation is None or not obligation.is_open:
            await self._schedule_store.delete(schedule.schedule_id)
            result.removed += 1
            log.info(
                "schedule_removed_resolved",
                subject_type=self.subject_type.value,
                subject_id=schedule.subject_id,
            )
            return

        intent = self._build_intent(obligation, evaluation, config)
        try:
            await self._dispatcher.send(intent)
        except Exception as e:
            # 不标记，下一轮重试；当天后续扫描把它排到候选末尾
            result.errors.append(f"{schedule.subject_id}: {e}")
            log.warning(
                "reminder_dispatch_failed",
                subject_type=self.subject_type.value,
                subject_id=schedule.subject_id,
                stage=stage.value,
                error=str(e),
            )
            await best_effort(
                "mark_attempted",
                lambda: self._schedule_store.mark_attempted(schedule.schedule_id, today),
                subject_id=schedule.subject_id,
            )
            return

        try:
            await self._schedule_store.mark_sent(schedule.schedule_id, stage, today)
        except Exception as e:
            # 通知已送达但标记未保存：下一次扫描会再次发送
            result.count_sent(stage)
            result.errors.append(f"{schedule.subject_id}: reminder sent but not recorded: {e}")
            log.error(
                "reminder_mark_failed",
                subject_type=self.subject_type.value,
                subject_id=schedule.subject_id,
                stage=stage.value,
                error=str(e),
            )
            return

        result.count_sent(stage)

        if stage == ReminderStage.OVERDUE and obligation.manager_id:
            alert = await best_effort(
                "manager_overdue_alert",
                lambda: self._send_manager_alert(obligation, evaluation, config),
                subject_id=obligation.subject_id,
                manager_id=obligation.manager_id,
            )
            if alert.ok:
                result.manager_alerts_sent += 1

    def _build_intent(
        self,
        obligation: Obligation,
        evaluation: ThresholdEvaluation,
        config: SchedulerConfig,
    ) -> NotificationIntent:
        """构建负责人的提醒通知"""
        notification_type = self._rule.notification_types[evaluation.stage]
        context = self._template_context(obligation, evaluation, config)
        subject, body = render(notification_type, context)
        return NotificationIntent(
            recipient_id=obligation.assignee_id,
            notification_type=notification_type,
            subject=subject,
            body=body,
            related_subject_id=obligation.subject_id,
            send_primary=True,
            send_secondary=True,
            link_url=context.link_url,
        )

    async def _send_manager_alert(
        self,
        obligation: Obligation,
        evaluation: ThresholdEvaluation,
        config: SchedulerConfig,
    ) -> None:
        """向负责人上级发送逾期告警"""
        assignee_name = obligation.assignee_id
        if self._directory is not None:
            contact = await self._directory.get_contact(obligation.assignee_id)
            if contact is not None and contact.display_name:
                assignee_name = contact.display_name

        context = self._template_context(obligation, evaluation, config).model_copy(
            update={"assignee_name": assignee_name}
        )
        subject, body = render(NotificationType.MANAGER_OVERDUE_ALERT, context)
        await self._dispatcher.send(
            NotificationIntent(
                recipient_id=obligation.manager_id or "",
                notification_type=NotificationType.MANAGER_OVERDUE_ALERT,
                subject=subject,
                body=body,
                related_subject_id=obligation.subject_id,
                send_primary=True,
                send_secondary=True,
                link_url=context.link_url,
            )
        )

    def _template_context(
        self,
        obligation: Obligation,
        evaluation: ThresholdEvaluation,
        config: SchedulerConfig,
    ) -> TemplateContext:
        due_date_text = ""
        if obligation.due_date is not None:
            due_date_text = calendar_date(obligation.due_date, config.reminder_timezone).isoformat()
        return TemplateContext(
            title=obligation.title,
            reference=obligation.reference,
            due_date_text=due_date_text,
            hours_to_due=max(0, round(evaluation.hours_to_due)),
            days_overdue=evaluation.days_overdue,
            link_url=f"{self._site_url}/{self._rule.link_path}/{obligation.subject_id}",
        )
