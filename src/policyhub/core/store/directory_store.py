"""RecipientDirectory SQLite 实现"""

import aiosqlite

from ..models.notification import RecipientContact


class SqliteRecipientDirectory:
    """收件人通讯录"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def save_contact(self, contact: RecipientContact) -> None:
        """写入或覆盖联系方式"""
        await self._conn.execute(
            "INSERT OR REPLACE INTO recipients (recipient_id, email, display_name) VALUES (?, ?, ?)",
            (contact.recipient_id, contact.email, contact.display_name),
        )
        await self._conn.commit()

    async def get_contact(self, recipient_id: str) -> RecipientContact | None:
        cursor = await self._conn.execute(
            "SELECT recipient_id, email, display_name FROM recipients WHERE recipient_id = ?",
            (recipient_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return RecipientContact(recipient_id=row[0], email=row[1], display_name=row[2])
