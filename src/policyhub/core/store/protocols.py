"""Store Protocol 接口定义

定义 ReminderScheduleStore 以及外部协作方（义务存储、通讯录、审计日志）的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from collections.abc import Collection
from datetime import date, datetime
from typing import Protocol

from ..models.audit import AuditRecord
from ..models.enums import AuditRecordType, ObligationStatus, ReminderStage, SubjectType
from ..models.notification import RecipientContact
from ..models.obligation import Obligation
from ..models.schedule import ReminderSchedule


class ReminderScheduleStore(Protocol):
    """提醒排期存储接口 -- 纯数据访问，不含策略"""

    async def upsert(
        self,
        subject_type: SubjectType,
        subject_id: str,
        due_date: datetime,
    ) -> ReminderSchedule:
        """不存在则创建；存在则替换截止日期并清零全部已发送标记"""
        ...

    async def find(
        self,
        subject_type: SubjectType,
        subject_id: str,
    ) -> ReminderSchedule | None:
        """按 (subject_type, subject_id) 查询"""
        ...

    async def list_pending(
        self,
        subject_type: SubjectType | None = None,
        limit: int = 500,
        due_before: datetime | None = None,
        stages: Collection[ReminderStage] | None = None,
        now: datetime | None = None,
        today: date | None = None,
    ) -> list[ReminderSchedule]:
        """查询有截止日期且仍有未发送阶段的排期

        传入 stages 时只返回 now 时刻可能命中其中某个阶段的记录；
        today 当天发送失败过的记录排在最后。
        """
        ...

    async def mark_sent(
        self,
        schedule_id: str,
        stage: ReminderStage,
        sent_on: date,
    ) -> None:
        """仅设置一个阶段标记并更新 last_reminder_date（部分更新）"""
        ...

    async def mark_attempted(self, schedule_id: str, attempted_on: date) -> None:
        """记录一次失败的发送尝试"""
        ...

    async def delete(self, schedule_id: str) -> None:
        """删除排期"""
        ...


class ObligationStore(Protocol):
    """义务存储接口（外部记录存储）"""

    async def get_obligation(
        self,
        subject_type: SubjectType,
        subject_id: str,
    ) -> Obligation | None:
        """查询义务当前状态"""
        ...

    async def save_obligation(self, obligation: Obligation) -> None:
        """写入或覆盖义务"""
        ...

    async def update_status(
        self,
        subject_type: SubjectType,
        subject_id: str,
        status: ObligationStatus,
    ) -> None:
        """更新义务状态"""
        ...


class RecipientDirectory(Protocol):
    """收件人通讯录接口"""

    async def get_contact(self, recipient_id: str) -> RecipientContact | None:
        """查询联系方式"""
        ...


class AuditStore(Protocol):
    """审计日志接口 -- append-only，失败对调用方非致命"""

    async def append_audit_record(self, record: AuditRecord) -> None:
        """追加审计记录"""
        ...

    async def list_audit_records(
        self,
        record_type: AuditRecordType | None = None,
        limit: int = 100,
    ) -> list[AuditRecord]:
        """按时间倒序查询审计记录"""
        ...
