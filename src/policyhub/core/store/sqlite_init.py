"""SQLite 数据库初始化

PRAGMA 配置 + 四张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# reminder_schedules 表 DDL
_SCHEDULES_DDL = """
CREATE TABLE IF NOT EXISTS reminder_schedules (
    schedule_id         TEXT PRIMARY KEY,
    subject_type        TEXT NOT NULL,
    subject_id          TEXT NOT NULL,
    due_date            TEXT,
    reminder_3day_sent  INTEGER NOT NULL DEFAULT 0,
    reminder_1day_sent  INTEGER NOT NULL DEFAULT 0,
    overdue_sent        INTEGER NOT NULL DEFAULT 0,
    last_reminder_date  TEXT,
    last_attempt_date   TEXT,
    created_at          TEXT NOT NULL,
    updated_at          TEXT NOT NULL
);
"""

_SCHEDULES_INDEXES = [
    # 每个义务最多一条排期
    (
        "CREATE UNIQUE INDEX IF NOT EXISTS idx_schedules_subject "
        "ON reminder_schedules(subject_type, subject_id);"
    ),
    "CREATE INDEX IF NOT EXISTS idx_schedules_due_date ON reminder_schedules(due_date);",
]

# obligations 表 DDL（外部记录存储的参考实现）
_OBLIGATIONS_DDL = """
CREATE TABLE IF NOT EXISTS obligations (
    subject_type  TEXT NOT NULL,
    subject_id    TEXT NOT NULL,
    title         TEXT NOT NULL DEFAULT '',
    assignee_id   TEXT NOT NULL,
    manager_id    TEXT,
    due_date      TEXT,
    status        TEXT NOT NULL DEFAULT 'Pending',
    reference     TEXT NOT NULL DEFAULT '',

    PRIMARY KEY (subject_type, subject_id)
);
"""

_OBLIGATIONS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_obligations_status ON obligations(subject_type, status);",
]

# recipients 表 DDL
_RECIPIENTS_DDL = """
CREATE TABLE IF NOT EXISTS recipients (
    recipient_id  TEXT PRIMARY KEY,
    email         TEXT NOT NULL,
    display_name  TEXT NOT NULL DEFAULT ''
);
"""

# audit_log 表 DDL（append-only）
_AUDIT_DDL = """
CREATE TABLE IF NOT EXISTS audit_log (
    record_id    TEXT PRIMARY KEY,
    ts           TEXT NOT NULL,
    record_type  TEXT NOT NULL,
    title        TEXT NOT NULL DEFAULT '',
    level        TEXT NOT NULL DEFAULT 'Info',
    message      TEXT NOT NULL DEFAULT '',
    details      TEXT NOT NULL DEFAULT '{}'
);
"""

_AUDIT_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_audit_type_ts ON audit_log(record_type, ts DESC);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_SCHEDULES_DDL)
    await conn.execute(_OBLIGATIONS_DDL)
    await conn.execute(_RECIPIENTS_DDL)
    await conn.execute(_AUDIT_DDL)
    await _ensure_column(conn, "reminder_schedules", "last_attempt_date", "TEXT")

    # 创建索引
    for idx_sql in _SCHEDULES_INDEXES + _OBLIGATIONS_INDEXES + _AUDIT_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def _ensure_column(
    conn: aiosqlite.Connection, table: str, column: str, decl: str
) -> None:
    """旧库缺少新增列时补齐（CREATE TABLE IF NOT EXISTS 不会改动已有表）"""
    cursor = await conn.execute(f"PRAGMA table_info({table});")
    existing = {row[1] for row in await cursor.fetchall()}
    if column not in existing:
        await conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {decl};")


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
