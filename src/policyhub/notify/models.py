"""数据模型 -- ChannelPayload + DispatchOutcome + BestEffortResult"""

from pydantic import BaseModel, Field

from policyhub.core.models import (
    NotificationCategory,
    NotificationPriority,
    NotificationType,
)


class ChannelPayload(BaseModel):
    """通道无关的投递负载，由 Dispatcher 按通知类型构建"""

    notification_type: NotificationType = Field(description="通知类型")
    recipient_id: str = Field(description="收件人 ID")
    recipient_email: str = Field(description="收件人邮箱")
    recipient_name: str = Field(default="", description="收件人显示名")
    subject: str = Field(description="主题")
    body: str = Field(description="正文")
    priority: NotificationPriority = Field(description="优先级")
    category: NotificationCategory = Field(description="分类")
    hub_notification_type: str = Field(description="跨系统通知类型")
    related_subject_id: str = Field(default="", description="关联义务 ID")
    link_url: str = Field(default="", description="跳转链接")


class BestEffortResult(BaseModel):
    """尽力而为操作的结果 -- 永不使调用方失败"""

    ok: bool = Field(description="操作是否成功")
    error: str = Field(default="", description="失败原因")


class DispatchOutcome(BaseModel):
    """一次 send() 的结果

    主通道失败时 send() 直接抛出异常，因此能拿到 DispatchOutcome 即意味着主通道已成功
    （或未请求主通道）。二级通道与审计结果仅供观察。
    """

    notification_type: NotificationType
    recipient_id: str
    recipient_email: str
    primary_sent: bool = Field(default=False)
    secondary: BestEffortResult | None = Field(default=None, description="None 表示未请求")
    audit: BestEffortResult | None = Field(default=None, description="None 表示未配置审计")
