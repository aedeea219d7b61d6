"""ObligationStore SQLite 实现 -- 外部记录存储的参考实现

宿主可替换为自己的记录存储，只需满足 protocols.ObligationStore。
"""

from datetime import datetime

import aiosqlite

from ..clock import to_iso
from ..models.enums import ObligationStatus, SubjectType
from ..models.obligation import Obligation


class SqliteObligationStore:
    """ObligationStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def save_obligation(self, obligation: Obligation) -> None:
        """写入或覆盖义务记录"""
        try:
            await self._conn.execute(
                """
                INSERT OR REPLACE INTO obligations (subject_type, subject_id, title,
                                                    assignee_id, manager_id, due_date,
                                                    status, reference)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    obligation.subject_type.value,
                    obligation.subject_id,
                    obligation.title,
                    obligation.assignee_id,
                    obligation.manager_id,
                    to_iso(obligation.due_date) if obligation.due_date else None,
                    obligation.status.value,
                    obligation.reference,
                ),
            )
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise

    async def get_obligation(
        self,
        subject_type: SubjectType,
        subject_id: str,
    ) -> Obligation | None:
        """查询义务"""
        cursor = await self._conn.execute(
            """
            SELECT subject_type, subject_id, title, assignee_id, manager_id,
                   due_date, status, reference
            FROM obligations WHERE subject_type = ? AND subject_id = ?
            """,
            (subject_type.value, subject_id),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return Obligation(
            subject_type=SubjectType(row[0]),
            subject_id=row[1],
            title=row[2],
            assignee_id=row[3],
            manager_id=row[4],
            due_date=datetime.fromisoformat(row[5]) if row[5] else None,
            status=ObligationStatus(row[6]),
            reference=row[7],
        )

    async def update_status(
        self,
        subject_type: SubjectType,
        subject_id: str,
        status: ObligationStatus,
    ) -> None:
        """更新义务状态"""
        try:
            await self._conn.execute(
                "UPDATE obligations SET status = ? WHERE subject_type = ? AND subject_id = ?",
                (status.value, subject_type.value, subject_id),
            )
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise
