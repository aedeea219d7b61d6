"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、站点 URL、提醒阈值等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("POLICYHUB_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "POLICYHUB_DB_PATH",
        str(_get_base_dir() / "sqlite" / "policyhub.db"),
    )


def get_site_url() -> str:
    """获取门户站点根 URL（用于构造通知中的跳转链接）"""
    return os.environ.get("POLICYHUB_SITE_URL", "http://localhost:8000").rstrip("/")


# 3 天提醒阈值（天）
THREE_DAY_THRESHOLD_DAYS: int = 3

# 二级通道正文截断长度
SECONDARY_BODY_MAX_CHARS: int = 500

# 审计日志查询默认条数
AUDIT_QUERY_DEFAULT_LIMIT: int = 100
