"""通知通道测试 -- LogChannel + WebhookChannel（httpx.MockTransport）"""

import json

import httpx
import pytest

from policyhub.core.models import NotificationCategory, NotificationPriority, NotificationType
from policyhub.notify import ChannelDeliveryError, ChannelPayload, LogChannel, WebhookChannel

PAYLOAD = ChannelPayload(
    notification_type=NotificationType.TASK_ESCALATION,
    recipient_id="alice",
    recipient_email="alice@example.com",
    recipient_name="Alice Chen",
    subject="Task Escalation: Quarterly audit is overdue",
    body="Task is 2 day(s) overdue.",
    priority=NotificationPriority.HIGH,
    category=NotificationCategory.TASK,
    hub_notification_type="TaskOverdue",
    related_subject_id="task-1",
)


class TestLogChannel:
    async def test_records_delivery(self):
        channel = LogChannel()
        await channel.send(PAYLOAD)
        assert channel.delivered == [PAYLOAD]


class TestWebhookChannel:
    """WebhookChannel"""

    async def test_posts_json_with_bearer(self):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(202)

        channel = WebhookChannel(
            "http://relay.test/email",
            name="email",
            api_key="secret",
            transport=httpx.MockTransport(handler),
        )
        await channel.send(PAYLOAD)

        assert len(captured) == 1
        request = captured[0]
        assert request.method == "POST"
        assert request.headers["Authorization"] == "Bearer secret"
        body = json.loads(request.content)
        assert body["recipient_email"] == "alice@example.com"
        assert body["notification_type"] == "TaskEscalation"
        assert body["priority"] == "High"

    async def test_no_auth_header_without_key(self):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200)

        channel = WebhookChannel("http://relay.test/email", transport=httpx.MockTransport(handler))
        await channel.send(PAYLOAD)
        assert "Authorization" not in captured[0].headers

    async def test_non_2xx_raises(self):
        channel = WebhookChannel(
            "http://relay.test/email",
            name="email",
            transport=httpx.MockTransport(lambda request: httpx.Response(503)),
        )
        with pytest.raises(ChannelDeliveryError) as exc_info:
            await channel.send(PAYLOAD)
        assert exc_info.value.channel == "email"
        assert "503" in str(exc_info.value)

    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        channel = WebhookChannel("http://relay.test/hub", name="hub", transport=httpx.MockTransport(handler))
        with pytest.raises(ChannelDeliveryError) as exc_info:
            await channel.send(PAYLOAD)
        assert isinstance(exc_info.value.original_error, httpx.ConnectError)
