"""通知通道 -- NotificationChannel 协议 + LogChannel + WebhookChannel

主通道（邮件中继）与二级通道（跨系统通知中心镜像）使用同一接口，
由 NotificationDispatcher 决定失败语义。
"""

from typing import Protocol

import httpx
import structlog

from .exceptions import ChannelDeliveryError
from .models import ChannelPayload

log = structlog.get_logger()

# 连接类异常类型集合
_CONNECTION_ERROR_TYPES = (
    ConnectionError,
    OSError,
    TimeoutError,
    httpx.TransportError,
)


class NotificationChannel(Protocol):
    """通知通道接口"""

    name: str

    async def send(self, payload: ChannelPayload) -> None:
        """投递负载；失败抛出 ChannelDeliveryError"""
        ...


class LogChannel:
    """日志通道 -- 开发模式下的默认主通道

    不做真实投递，仅记录日志并在内存中保存已投递负载。
    """

    def __init__(self, name: str = "log") -> None:
        self.name = name
        self.delivered: list[ChannelPayload] = []

    async def send(self, payload: ChannelPayload) -> None:
        self.delivered.append(payload)
        log.info(
            "notification_delivered",
            channel=self.name,
            notification_type=payload.notification_type.value,
            to=payload.recipient_email,
            subject=payload.subject,
        )


class WebhookChannel:
    """Webhook 通道 -- 将负载以 JSON POST 到中继地址

    非 2xx 响应与传输错误统一包装为 ChannelDeliveryError。
    """

    def __init__(
        self,
        url: str,
        name: str = "webhook",
        api_key: str = "",
        timeout_s: float = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """初始化 Webhook 通道

        Args:
            url: 中继地址
            name: 通道名称（日志与错误中使用）
            api_key: Bearer 令牌，空字符串表示不带认证头
            timeout_s: 请求超时（秒）
            transport: 自定义 httpx transport（测试注入）
        """
        self.name = name
        self._url = url
        self._api_key = api_key
        self._timeout_s = timeout_s
        self._transport = transport

    async def send(self, payload: ChannelPayload) -> None:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_s,
                transport=self._transport,
            ) as client:
                resp = await client.post(
                    self._url,
                    content=payload.model_dump_json(),
                    headers=headers,
                )
        except _CONNECTION_ERROR_TYPES as e:
            log.error(
                "webhook_unreachable",
                channel=self.name,
                url=self._url,
                error_type=type(e).__name__,
            )
            raise ChannelDeliveryError(self.name, e) from e

        if resp.status_code >= 300:
            log.error(
                "webhook_rejected",
                channel=self.name,
                url=self._url,
                status_code=resp.status_code,
            )
            raise ChannelDeliveryError(self.name, f"HTTP {resp.status_code}")

        log.debug(
            "webhook_delivered",
            channel=self.name,
            notification_type=payload.notification_type.value,
        )
