"""NotificationDispatcher -- 通知分发

发送语义：
- 主通道失败：整个 send() 失败（异常传播给调用方）
- 二级通道失败：捕获并记录 warning，不改变 send() 结果
- 每次调用追加一条审计记录；审计写入失败仅记录日志
"""

from collections.abc import Callable
from datetime import datetime

import structlog
from ulid import ULID

from policyhub.core.clock import utc_now
from policyhub.core.models import AuditRecord, AuditRecordType, NotificationIntent
from policyhub.core.store.protocols import AuditStore, RecipientDirectory

from .best_effort import best_effort
from .channels import NotificationChannel
from .exceptions import ChannelDeliveryError, RecipientNotFoundError
from .models import BestEffortResult, ChannelPayload, DispatchOutcome
from .templates import category_for, hub_type_for, priority_for, summarize_for_secondary

log = structlog.get_logger()


class NotificationDispatcher:
    """通知分发器

    通道链: primary（必需成功）-> secondary（可选，尽力而为）
    """

    def __init__(
        self,
        primary: NotificationChannel,
        secondary: NotificationChannel | None = None,
        directory: RecipientDirectory | None = None,
        audit_store: AuditStore | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """初始化分发器

        Args:
            primary: 主通道
            secondary: 二级（跨系统镜像）通道，None 表示不镜像
            directory: 收件人通讯录，用于补全未附带的联系方式
            audit_store: 审计日志，None 表示不写审计
            clock: 时间源
        """
        self._primary = primary
        self._secondary = secondary
        self._directory = directory
        self._audit_store = audit_store
        self._clock = clock

    async def send(self, intent: NotificationIntent) -> DispatchOutcome:
        """发送通知

        Returns:
            DispatchOutcome

        Raises:
            RecipientNotFoundError: 无法解析收件人联系方式
            ChannelDeliveryError: 主通道投递失败
        """
        intent = await self._resolve_recipient(intent)
        payload = self._build_payload(intent)

        outcome = DispatchOutcome(
            notification_type=intent.notification_type,
            recipient_id=intent.recipient_id,
            recipient_email=payload.recipient_email,
        )

        if intent.send_primary:
            try:
                await self._primary.send(payload)
            except Exception as e:
                error = e if isinstance(e, ChannelDeliveryError) else ChannelDeliveryError(
                    self._primary.name, e
                )
                log.error(
                    "primary_channel_failed",
                    channel=self._primary.name,
                    notification_type=intent.notification_type.value,
                    recipient_id=intent.recipient_id,
                    error=str(e),
                )
                await self._audit(intent, payload, outcome, error=str(error))
                if error is e:
                    raise
                raise error from e
            outcome.primary_sent = True

        if intent.send_secondary:
            if self._secondary is None:
                log.debug(
                    "secondary_channel_not_configured",
                    notification_type=intent.notification_type.value,
                )
            else:
                secondary = self._secondary
                mirrored = payload.model_copy(
                    update={"body": summarize_for_secondary(payload.body)}
                )
                outcome.secondary = await best_effort(
                    "secondary_channel",
                    lambda: secondary.send(mirrored),
                    channel=secondary.name,
                    recipient_id=intent.recipient_id,
                )

        outcome.audit = await self._audit(intent, payload, outcome)

        log.info(
            "notification_sent",
            notification_type=intent.notification_type.value,
            recipient_id=intent.recipient_id,
            related_subject_id=intent.related_subject_id,
            secondary_ok=outcome.secondary.ok if outcome.secondary else None,
        )
        return outcome

    async def _resolve_recipient(self, intent: NotificationIntent) -> NotificationIntent:
        """补全收件人邮箱与显示名"""
        if intent.recipient_email:
            return intent

        contact = None
        if self._directory is not None:
            contact = await self._directory.get_contact(intent.recipient_id)
        if contact is None or not contact.email:
            log.warning("recipient_not_found", recipient_id=intent.recipient_id)
            raise RecipientNotFoundError(intent.recipient_id)

        return intent.model_copy(
            update={
                "recipient_email": contact.email,
                "recipient_name": intent.recipient_name or contact.display_name,
            }
        )

    @staticmethod
    def _build_payload(intent: NotificationIntent) -> ChannelPayload:
        """按通知类型构建通道负载"""
        return ChannelPayload(
            notification_type=intent.notification_type,
            recipient_id=intent.recipient_id,
            recipient_email=intent.recipient_email or "",
            recipient_name=intent.recipient_name or "",
            subject=intent.subject,
            body=intent.body,
            priority=priority_for(intent.notification_type),
            category=category_for(intent.notification_type),
            hub_notification_type=hub_type_for(intent.notification_type),
            related_subject_id=intent.related_subject_id,
            link_url=intent.link_url,
        )

    async def _audit(
        self,
        intent: NotificationIntent,
        payload: ChannelPayload,
        outcome: DispatchOutcome,
        error: str = "",
    ) -> BestEffortResult | None:
        """追加通知审计记录（尽力而为）"""
        if self._audit_store is None:
            return None

        audit_store = self._audit_store
        record = AuditRecord(
            record_id=str(ULID()),
            ts=self._clock(),
            record_type=AuditRecordType.NOTIFICATION_SENT,
            title=intent.subject,
            level="Warning" if error else "Info",
            message=error or f"{intent.notification_type.value} -> {payload.recipient_email}",
            details={
                "recipient_id": intent.recipient_id,
                "recipient_email": payload.recipient_email,
                "notification_type": intent.notification_type.value,
                "related_subject_id": intent.related_subject_id,
                "primary_sent": outcome.primary_sent,
                "secondary_sent": bool(outcome.secondary and outcome.secondary.ok),
            },
        )
        return await best_effort(
            "notification_audit",
            lambda: audit_store.append_audit_record(record),
            recipient_id=intent.recipient_id,
        )
