"""时间工具 -- 统一 UTC 存储与按时区取日历日期"""

from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """当前 UTC 时间"""
    return datetime.now(UTC)


def to_utc(value: datetime) -> datetime:
    """转换为 UTC；naive datetime 视为 UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_iso(value: datetime) -> str:
    """UTC ISO 字符串（固定微秒精度，保证字典序与时间序一致）"""
    return to_utc(value).isoformat(timespec="microseconds")


def calendar_date(value: datetime, tz_name: str = "UTC") -> date:
    """指定时区下的日历日期"""
    return to_utc(value).astimezone(ZoneInfo(tz_name)).date()
