"""AuditRecord 模型 -- 审计日志（append-only）"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .enums import AuditRecordType


class AuditRecord(BaseModel):
    """审计日志记录"""

    record_id: str = Field(description="唯一标识，ULID 格式")
    ts: datetime = Field(description="记录时间")
    record_type: AuditRecordType = Field(description="记录类型")
    title: str = Field(description="标题")
    level: str = Field(default="Info", description="级别：Info / Warning")
    message: str = Field(default="", description="摘要")
    details: dict[str, Any] = Field(default_factory=dict, description="结构化详情")
