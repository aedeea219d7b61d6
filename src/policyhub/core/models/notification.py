"""通知相关模型 -- NotificationIntent + RecipientContact

NotificationIntent 为临时对象，不单独持久化，仅写入审计日志。
"""

from pydantic import BaseModel, Field

from .enums import NotificationType


class RecipientContact(BaseModel):
    """收件人联系方式"""

    recipient_id: str = Field(description="收件人 ID")
    email: str = Field(description="邮箱地址")
    display_name: str = Field(default="", description="显示名")


class NotificationIntent(BaseModel):
    """一次待发送的通知"""

    recipient_id: str = Field(description="收件人 ID")
    notification_type: NotificationType = Field(description="通知类型")
    subject: str = Field(description="主题")
    body: str = Field(description="正文")
    related_subject_id: str = Field(default="", description="关联义务 ID")
    send_primary: bool = Field(default=True, description="是否经主通道发送")
    send_secondary: bool = Field(default=False, description="是否镜像到二级通道")
    link_url: str = Field(default="", description="跳转链接")

    # 可预先附带，未附带时由 Dispatcher 解析
    recipient_email: str | None = Field(default=None, description="收件人邮箱")
    recipient_name: str | None = Field(default=None, description="收件人显示名")
