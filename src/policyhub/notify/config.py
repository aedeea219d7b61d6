"""NotifyConfig -- 通知通道配置加载

从环境变量加载配置，不硬编码中继地址。
"""

import os
from typing import Literal

import structlog
from pydantic import BaseModel, Field, SecretStr

from .channels import LogChannel, NotificationChannel, WebhookChannel

log = structlog.get_logger()


class NotifyConfig(BaseModel):
    """Notify 包配置 -- 从环境变量加载

    环境变量:
        POLICYHUB_NOTIFY_PRIMARY_MODE: 主通道模式（log/webhook）
        POLICYHUB_NOTIFY_PRIMARY_URL: 主通道（邮件中继）地址
        POLICYHUB_NOTIFY_SECONDARY_URL: 二级通道（通知中心）地址，未设置表示不镜像
        POLICYHUB_NOTIFY_API_KEY: Webhook 访问令牌
        POLICYHUB_NOTIFY_TIMEOUT_S: Webhook 超时（秒，默认 10）
    """

    primary_mode: Literal["log", "webhook"] = Field(
        default="log",
        description="主通道模式：log / webhook",
    )
    primary_webhook_url: str = Field(
        default="http://localhost:7071/api/notifications/email",
        description="主通道中继地址（webhook 模式）",
    )
    secondary_webhook_url: str | None = Field(
        default=None,
        description="二级通道地址，None 表示不镜像",
    )
    webhook_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Webhook Bearer 令牌",
    )
    webhook_timeout_s: int = Field(
        default=10,
        ge=1,
        description="Webhook 超时（秒）",
    )


def load_notify_config() -> NotifyConfig:
    """从环境变量加载 Notify 配置

    Returns:
        NotifyConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("POLICYHUB_NOTIFY_PRIMARY_MODE"):
        kwargs["primary_mode"] = val

    if val := os.environ.get("POLICYHUB_NOTIFY_PRIMARY_URL"):
        kwargs["primary_webhook_url"] = val

    if val := os.environ.get("POLICYHUB_NOTIFY_SECONDARY_URL"):
        kwargs["secondary_webhook_url"] = val

    if val := os.environ.get("POLICYHUB_NOTIFY_API_KEY"):
        kwargs["webhook_api_key"] = SecretStr(val)

    if val := os.environ.get("POLICYHUB_NOTIFY_TIMEOUT_S"):
        try:
            kwargs["webhook_timeout_s"] = int(val)
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="POLICYHUB_NOTIFY_TIMEOUT_S",
                value=val,
                fallback=10,
            )

    return NotifyConfig(**kwargs)


def build_channels(
    config: NotifyConfig,
) -> tuple[NotificationChannel, NotificationChannel | None]:
    """按配置构建 (primary, secondary) 通道"""
    api_key = config.webhook_api_key.get_secret_value()

    primary: NotificationChannel
    if config.primary_mode == "webhook":
        primary = WebhookChannel(
            url=config.primary_webhook_url,
            name="email",
            api_key=api_key,
            timeout_s=config.webhook_timeout_s,
        )
    else:
        primary = LogChannel(name="log")

    secondary: NotificationChannel | None = None
    if config.secondary_webhook_url:
        secondary = WebhookChannel(
            url=config.secondary_webhook_url,
            name="hub",
            api_key=api_key,
            timeout_s=config.webhook_timeout_s,
        )

    log.info(
        "notify_channels_initialized",
        primary=primary.name,
        secondary=secondary.name if secondary else None,
    )
    return primary, secondary
