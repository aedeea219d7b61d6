"""ObligationService -- 义务生命周期与提醒排期同步

- assign: 记录义务；有截止日期时创建/重置排期
- resolve: 记录解决状态并删除排期
- reschedule: 修改截止日期，排期全部阶段标记清零
"""

from datetime import datetime

import structlog

from policyhub.core.models import (
    RESOLVED_STATES,
    Obligation,
    ObligationStatus,
    ReminderSchedule,
    SubjectType,
)
from policyhub.core.store.protocols import ObligationStore, ReminderScheduleStore

log = structlog.get_logger()


class ObligationService:
    """义务业务服务"""

    def __init__(
        self,
        obligation_store: ObligationStore,
        schedule_store: ReminderScheduleStore,
    ) -> None:
        self._obligations = obligation_store
        self._schedules = schedule_store

    async def assign(self, obligation: Obligation) -> ReminderSchedule | None:
        """记录新义务（或覆盖已有义务）

        Returns:
            有截止日期时返回排期，否则 None
        """
        await self._obligations.save_obligation(obligation)

        if obligation.due_date is None or not obligation.is_open:
            return None

        schedule = await self._schedules.upsert(
            obligation.subject_type,
            obligation.subject_id,
            obligation.due_date,
        )
        log.info(
            "obligation_assigned",
            subject_type=obligation.subject_type.value,
            subject_id=obligation.subject_id,
            schedule_id=schedule.schedule_id,
        )
        return schedule

    async def resolve(
        self,
        subject_type: SubjectType,
        subject_id: str,
        status: ObligationStatus,
    ) -> bool:
        """记录义务解决并删除排期

        Returns:
            True 表示删除了排期

        Raises:
            ValueError: status 不是终态
        """
        if status not in RESOLVED_STATES:
            raise ValueError(f"不是终态: {status}")

        await self._obligations.update_status(subject_type, subject_id, status)

        schedule = await self._schedules.find(subject_type, subject_id)
        if schedule is None:
            return False

        await self._schedules.delete(schedule.schedule_id)
        log.info(
            "obligation_resolved",
            subject_type=subject_type.value,
            subject_id=subject_id,
            status=status.value,
        )
        return True

    async def reschedule(
        self,
        subject_type: SubjectType,
        subject_id: str,
        due_date: datetime,
    ) -> ReminderSchedule:
        """修改截止日期并重置提醒级联

        Raises:
            LookupError: 义务不存在
        """
        obligation = await self._obligations.get_obligation(subject_type, subject_id)
        if obligation is None:
            raise LookupError(f"义务不存在: {subject_type}/{subject_id}")

        await self._obligations.save_obligation(
            obligation.model_copy(update={"due_date": due_date})
        )
        schedule = await self._schedules.upsert(subject_type, subject_id, due_date)
        log.info(
            "obligation_rescheduled",
            subject_type=subject_type.value,
            subject_id=subject_id,
            due_date=due_date.isoformat(),
        )
        return schedule
