"""Notify 异常体系"""


class NotificationError(Exception):
    """Notify 包基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可在下一次扫描中重试恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class ChannelDeliveryError(NotificationError):
    """通道拒绝或不可达（连接失败、超时、非 2xx 响应等）

    主通道抛出此异常时整个发送失败；二级通道的此异常被吞掉并记录。
    """

    def __init__(self, channel: str, original_error: Exception | str) -> None:
        """
        Args:
            channel: 通道名称
            original_error: 原始异常或错误描述
        """
        super().__init__(f"通道 {channel} 投递失败 -- {original_error}", recoverable=True)
        self.channel = channel
        self.original_error = original_error


class RecipientNotFoundError(NotificationError):
    """无法解析收件人联系方式"""

    def __init__(self, recipient_id: str) -> None:
        super().__init__(f"未找到收件人联系方式: {recipient_id}", recoverable=True)
        self.recipient_id = recipient_id
