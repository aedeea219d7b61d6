"""ReminderScheduleStore SQLite 实现

每个 (subject_type, subject_id) 一条记录。
mark_sent 为单列部分更新：并发处理同一记录不同阶段时不会互相覆盖标记。
每个写操作独立提交。
"""

from collections.abc import Collection
from datetime import date, datetime, timedelta

import aiosqlite
from ulid import ULID

from ..clock import to_iso, utc_now
from ..models.enums import STAGE_FLAG_COLUMNS, ReminderStage, SubjectType
from ..models.schedule import ReminderSchedule

_COLUMNS = (
    "schedule_id, subject_type, subject_id, due_date, reminder_3day_sent, "
    "reminder_1day_sent, overdue_sent, last_reminder_date, last_attempt_date, "
    "created_at, updated_at"
)


class SqliteReminderScheduleStore:
    """ReminderScheduleStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def upsert(
        self,
        subject_type: SubjectType,
        subject_id: str,
        due_date: datetime,
    ) -> ReminderSchedule:
        """创建排期；已存在时替换截止日期并重置提醒级联"""
        now = to_iso(utc_now())
        try:
            await self._conn.execute(
                """
                INSERT INTO reminder_schedules (schedule_id, subject_type, subject_id,
                                                due_date, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(subject_type, subject_id) DO UPDATE SET
                    due_date = excluded.due_date,
                    reminder_3day_sent = 0,
                    reminder_1day_sent = 0,
                    overdue_sent = 0,
                    last_attempt_date = NULL,
                    updated_at = excluded.updated_at
                """,
                (
                    str(ULID()),
                    subject_type.value,
                    subject_id,
                    to_iso(due_date),
                    now,
                    now,
                ),
            )
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise

        schedule = await self.find(subject_type, subject_id)
        if schedule is None:
            raise RuntimeError(f"upsert 后未找到排期: {subject_type}/{subject_id}")
        return schedule

    async def find(
        self,
        subject_type: SubjectType,
        subject_id: str,
    ) -> ReminderSchedule | None:
        """按 (subject_type, subject_id) 查询"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM reminder_schedules "
            "WHERE subject_type = ? AND subject_id = ?",
            (subject_type.value, subject_id),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_schedule(row)

    async def get(self, schedule_id: str) -> ReminderSchedule | None:
        """按 schedule_id 查询"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM reminder_schedules WHERE schedule_id = ?",
            (schedule_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_schedule(row)

    async def list_pending(
        self,
        subject_type: SubjectType | None = None,
        limit: int = 500,
        due_before: datetime | None = None,
        stages: Collection[ReminderStage] | None = None,
        now: datetime | None = None,
        today: date | None = None,
    ) -> list[ReminderSchedule]:
        """查询仍有未发送阶段的排期

        无截止日期的记录永不返回。

        传入 stages 时只返回当前可能命中已启用阶段的记录（按 now 划分）：
        - OVERDUE：截止已过至少一天且逾期提醒未发送
        - THREE_DAY / ONE_DAY：尚未截止且对应标记未发送
        截止不足一天的记录（阶段 none）不返回。

        排序：today 当天发送失败过的排最后；启用 OVERDUE 时未发送逾期提醒的优先；
        其余按截止日期升序。
        """
        clauses = ["due_date IS NOT NULL"]
        params: list = []
        if subject_type is not None:
            clauses.append("subject_type = ?")
            params.append(subject_type.value)
        if due_before is not None:
            clauses.append("due_date <= ?")
            params.append(to_iso(due_before))

        if stages is None:
            clauses.append(
                "(reminder_3day_sent = 0 OR reminder_1day_sent = 0 OR overdue_sent = 0)"
            )
        else:
            at = now or utc_now()
            branches: list[str] = []
            if ReminderStage.OVERDUE in stages:
                branches.append("(due_date <= ? AND overdue_sent = 0)")
                params.append(to_iso(at - timedelta(days=1)))
            pre_due = [
                f"{STAGE_FLAG_COLUMNS[stage]} = 0"
                for stage in (ReminderStage.THREE_DAY, ReminderStage.ONE_DAY)
                if stage in stages
            ]
            if pre_due:
                branches.append(f"(due_date > ? AND ({' OR '.join(pre_due)}))")
                params.append(to_iso(at))
            if not branches:
                return []
            clauses.append(f"({' OR '.join(branches)})")

        order: list[str] = []
        if today is not None:
            order.append("COALESCE(last_attempt_date, '') = ? ASC")
            params.append(today.isoformat())
        if stages is None or ReminderStage.OVERDUE in stages:
            order.append("overdue_sent ASC")
        order.append("due_date ASC")
        params.append(limit)

        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM reminder_schedules "
            f"WHERE {' AND '.join(clauses)} "
            f"ORDER BY {', '.join(order)} LIMIT ?",
            tuple(params),
        )
        rows = await cursor.fetchall()
        return [self._row_to_schedule(row) for row in rows]

    async def mark_sent(
        self,
        schedule_id: str,
        stage: ReminderStage,
        sent_on: date,
    ) -> None:
        """设置单个阶段标记 + last_reminder_date

        Raises:
            ValueError: stage 为 NONE
        """
        column = STAGE_FLAG_COLUMNS.get(stage)
        if column is None:
            raise ValueError(f"Stage {stage} has no sent flag")

        try:
            await self._conn.execute(
                f"""
                UPDATE reminder_schedules
                SET {column} = 1, last_reminder_date = ?, updated_at = ?
                WHERE schedule_id = ?
                """,
                (sent_on.isoformat(), to_iso(utc_now()), schedule_id),
            )
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise

    async def mark_attempted(self, schedule_id: str, attempted_on: date) -> None:
        """记录一次失败的发送尝试（不改动已发送标记与 last_reminder_date）"""
        try:
            await self._conn.execute(
                """
                UPDATE reminder_schedules
                SET last_attempt_date = ?, updated_at = ?
                WHERE schedule_id = ?
                """,
                (attempted_on.isoformat(), to_iso(utc_now()), schedule_id),
            )
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise

    async def delete(self, schedule_id: str) -> None:
        """删除排期"""
        try:
            await self._conn.execute(
                "DELETE FROM reminder_schedules WHERE schedule_id = ?",
                (schedule_id,),
            )
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise

    @staticmethod
    def _row_to_schedule(row: aiosqlite.Row) -> ReminderSchedule:
        """将数据库行转换为 ReminderSchedule 模型"""
        return ReminderSchedule(
            schedule_id=row[0],
            subject_type=SubjectType(row[1]),
            subject_id=row[2],
            due_date=datetime.fromisoformat(row[3]) if row[3] else None,
            reminder_3day_sent=bool(row[4]),
            reminder_1day_sent=bool(row[5]),
            overdue_sent=bool(row[6]),
            last_reminder_date=date.fromisoformat(row[7]) if row[7] else None,
            last_attempt_date=date.fromisoformat(row[8]) if row[8] else None,
            created_at=datetime.fromisoformat(row[9]),
            updated_at=datetime.fromisoformat(row[10]),
        )
