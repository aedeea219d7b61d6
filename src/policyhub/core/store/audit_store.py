"""AuditStore SQLite 实现

审计表 append-only：只允许插入，不允许更新或删除。
"""

import json
from datetime import datetime

import aiosqlite

from ..clock import to_iso
from ..config import AUDIT_QUERY_DEFAULT_LIMIT
from ..models.audit import AuditRecord
from ..models.enums import AuditRecordType


class SqliteAuditStore:
    """AuditStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def append_audit_record(self, record: AuditRecord) -> None:
        """追加审计记录（append-only）"""
        try:
            await self._conn.execute(
                """
                INSERT INTO audit_log (record_id, ts, record_type, title, level,
                                       message, details)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.record_id,
                    to_iso(record.ts),
                    record.record_type.value,
                    record.title,
                    record.level,
                    record.message,
                    json.dumps(record.details, ensure_ascii=False, default=str),
                ),
            )
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise

    async def list_audit_records(
        self,
        record_type: AuditRecordType | None = None,
        limit: int = AUDIT_QUERY_DEFAULT_LIMIT,
    ) -> list[AuditRecord]:
        """按时间倒序查询审计记录，支持按类型筛选"""
        if record_type:
            cursor = await self._conn.execute(
                "SELECT * FROM audit_log WHERE record_type = ? ORDER BY ts DESC LIMIT ?",
                (record_type.value, limit),
            )
        else:
            cursor = await self._conn.execute(
                "SELECT * FROM audit_log ORDER BY ts DESC LIMIT ?",
                (limit,),
            )
        rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    @staticmethod
    def _row_to_record(row: aiosqlite.Row) -> AuditRecord:
        """将数据库行转换为 AuditRecord 模型"""
        details = json.loads(row[6]) if row[6] else {}
        return AuditRecord(
            record_id=row[0],
            ts=datetime.fromisoformat(row[1]),
            record_type=AuditRecordType(row[2]),
            title=row[3],
            level=row[4],
            message=row[5],
            details=details,
        )
