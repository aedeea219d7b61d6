"""PolicyHub Notify -- 通知分发层

packages notify 的公开接口导出。
"""

from .best_effort import best_effort

# 通道
from .channels import LogChannel, NotificationChannel, WebhookChannel

# 配置
from .config import NotifyConfig, build_channels, load_notify_config
from .dispatcher import NotificationDispatcher

# 异常
from .exceptions import ChannelDeliveryError, NotificationError, RecipientNotFoundError

# 数据模型
from .models import BestEffortResult, ChannelPayload, DispatchOutcome
from .templates import TemplateContext, render

__all__ = [
    "BestEffortResult",
    "ChannelPayload",
    "DispatchOutcome",
    "NotificationChannel",
    "LogChannel",
    "WebhookChannel",
    "NotificationDispatcher",
    "NotifyConfig",
    "load_notify_config",
    "build_channels",
    "TemplateContext",
    "render",
    "best_effort",
    "NotificationError",
    "ChannelDeliveryError",
    "RecipientNotFoundError",
]
