"""NotificationDispatcher 单元测试

测试内容：
1. 主通道成功：返回 outcome + 写入审计
2. 主通道失败：异常传播（包装为 ChannelDeliveryError）
3. 二级通道失败：被吞掉，不影响结果
4. 审计写入失败：被吞掉
5. 收件人解析
"""

from unittest.mock import AsyncMock

import pytest

from policyhub.core.models import (
    AuditRecordType,
    NotificationIntent,
    NotificationPriority,
    NotificationType,
)
from policyhub.core.store import StoreGroup
from policyhub.notify import (
    ChannelDeliveryError,
    LogChannel,
    NotificationDispatcher,
    RecipientNotFoundError,
)


def _intent(**overrides) -> NotificationIntent:
    data = {
        "recipient_id": "alice",
        "notification_type": NotificationType.POLICY_REMINDER_1_DAY,
        "subject": "Urgent Reminder",
        "body": "<p>Please acknowledge</p>",
        "related_subject_id": "pol-7",
        "send_secondary": True,
    }
    data.update(overrides)
    return NotificationIntent(**data)


def _mock_channel(name: str) -> AsyncMock:
    channel = AsyncMock()
    channel.name = name
    channel.send = AsyncMock(return_value=None)
    return channel


class TestDispatcherSuccess:
    """主通道成功"""

    async def test_primary_and_secondary(self, store_group: StoreGroup, contacts):
        primary = LogChannel()
        secondary = LogChannel(name="hub")
        dispatcher = NotificationDispatcher(
            primary,
            secondary,
            directory=store_group.directory,
            audit_store=store_group.audit_store,
        )

        outcome = await dispatcher.send(_intent())

        assert outcome.primary_sent is True
        assert outcome.recipient_email == "alice@example.com"
        assert outcome.secondary is not None and outcome.secondary.ok
        assert outcome.audit is not None and outcome.audit.ok

        payload = primary.delivered[0]
        assert payload.recipient_name == "Alice Chen"
        assert payload.priority == NotificationPriority.HIGH
        assert payload.hub_notification_type == "AcknowledgementDue"
        # 二级通道正文去除标记
        assert secondary.delivered[0].body == "Please acknowledge"

        records = await store_group.audit_store.list_audit_records(
            record_type=AuditRecordType.NOTIFICATION_SENT
        )
        assert len(records) == 1
        assert records[0].details["primary_sent"] is True
        assert records[0].details["secondary_sent"] is True

    async def test_secondary_not_configured(self, store_group: StoreGroup, contacts):
        """未配置二级通道时只发主通道"""
        primary = LogChannel()
        dispatcher = NotificationDispatcher(primary, directory=store_group.directory)

        outcome = await dispatcher.send(_intent())

        assert outcome.primary_sent is True
        assert outcome.secondary is None
        assert outcome.audit is None

    async def test_prefilled_email_skips_directory(self):
        """已附带邮箱时不查询通讯录"""
        primary = LogChannel()
        directory = AsyncMock()
        dispatcher = NotificationDispatcher(primary, directory=directory)

        await dispatcher.send(_intent(recipient_email="x@example.com"))

        directory.get_contact.assert_not_called()
        assert primary.delivered[0].recipient_email == "x@example.com"


class TestDispatcherFailures:
    """失败语义"""

    async def test_primary_failure_propagates(self, store_group: StoreGroup, contacts):
        primary = _mock_channel("email")
        primary.send.side_effect = RuntimeError("relay down")
        secondary = _mock_channel("hub")
        dispatcher = NotificationDispatcher(
            primary,
            secondary,
            directory=store_group.directory,
            audit_store=store_group.audit_store,
        )

        with pytest.raises(ChannelDeliveryError) as exc_info:
            await dispatcher.send(_intent())

        assert exc_info.value.channel == "email"
        secondary.send.assert_not_called()

        # 失败同样写入审计
        records = await store_group.audit_store.list_audit_records()
        assert len(records) == 1
        assert records[0].level == "Warning"

    async def test_channel_delivery_error_not_rewrapped(self, store_group, contacts):
        original = ChannelDeliveryError("email", "HTTP 503")
        primary = _mock_channel("email")
        primary.send.side_effect = original
        dispatcher = NotificationDispatcher(primary, directory=store_group.directory)

        with pytest.raises(ChannelDeliveryError) as exc_info:
            await dispatcher.send(_intent())
        assert exc_info.value is original

    async def test_secondary_failure_swallowed(self, store_group: StoreGroup, contacts):
        primary = LogChannel()
        secondary = _mock_channel("hub")
        secondary.send.side_effect = ChannelDeliveryError("hub", "HTTP 500")
        dispatcher = NotificationDispatcher(
            primary, secondary, directory=store_group.directory
        )

        outcome = await dispatcher.send(_intent())

        assert outcome.primary_sent is True
        assert outcome.secondary is not None
        assert outcome.secondary.ok is False
        assert "ChannelDeliveryError" in outcome.secondary.error

    async def test_audit_failure_swallowed(self, store_group: StoreGroup, contacts):
        audit_store = AsyncMock()
        audit_store.append_audit_record.side_effect = RuntimeError("disk full")
        dispatcher = NotificationDispatcher(
            LogChannel(), directory=store_group.directory, audit_store=audit_store
        )

        outcome = await dispatcher.send(_intent())

        assert outcome.primary_sent is True
        assert outcome.audit is not None
        assert outcome.audit.ok is False

    async def test_unknown_recipient(self, store_group: StoreGroup):
        primary = LogChannel()
        dispatcher = NotificationDispatcher(primary, directory=store_group.directory)

        with pytest.raises(RecipientNotFoundError):
            await dispatcher.send(_intent(recipient_id="ghost"))
        assert primary.delivered == []

    async def test_no_directory(self):
        dispatcher = NotificationDispatcher(LogChannel())
        with pytest.raises(RecipientNotFoundError):
            await dispatcher.send(_intent())
