"""
Slack Notifier 테스트

httpx를 모킹하여 실제 네트워크 호출 없이 테스트.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from adapters.interfaces import INotifier
from adapters.slack.notifier import LEVEL_COLOR, SlackNotifier

WEBHOOK = "https://hooks.slack.com/test"


def _client(status_code: int = 200) -> AsyncMock:
    response = MagicMock()
    response.status_code = status_code
    response.text = "ok" if status_code == 200 else "invalid_payload"
    client = AsyncMock()
    client.post.return_value = response
    return client


class TestSlackNotifierInit:
    """초기화 테스트"""

    def test_implements_inotifier_protocol(self) -> None:
        assert isinstance(SlackNotifier(webhook_url=WEBHOOK), INotifier)

    def test_defaults(self) -> None:
        notifier = SlackNotifier(webhook_url=WEBHOOK)

        assert notifier.channel is None
        assert notifier.username == "DebitLedger"
        assert notifier.timeout == 10.0

    def test_without_webhook_url_raises(self) -> None:
        with pytest.raises(ValueError, match="webhook_url은 필수입니다"):
            SlackNotifier(webhook_url="")


class TestSlackNotifierSend:
    """send() 테스트"""

    @pytest.fixture
    def notifier(self) -> SlackNotifier:
        return SlackNotifier(webhook_url=WEBHOOK, channel="#ledger-alerts")

    @pytest.mark.asyncio
    async def test_send_success(self, notifier: SlackNotifier) -> None:
        client = _client()

        with patch.object(notifier, "_get_client", return_value=client):
            result = await notifier.send("Reconcile finished", level="INFO", extra={"repaired": 2})

        assert result is True
        client.post.assert_called_once()
        payload = client.post.call_args.kwargs["json"]
        assert client.post.call_args.args[0] == WEBHOOK
        assert payload["username"] == "DebitLedger"
        assert payload["channel"] == "#ledger-alerts"
        attachment = payload["attachments"][0]
        assert "Reconcile finished" in attachment["text"]
        assert attachment["fields"] == [{"title": "repaired", "value": "2", "short": True}]

    @pytest.mark.asyncio
    async def test_send_non_200(self, notifier: SlackNotifier) -> None:
        with patch.object(notifier, "_get_client", return_value=_client(400)):
            assert await notifier.send("message") is False

    @pytest.mark.asyncio
    async def test_send_timeout(self, notifier: SlackNotifier) -> None:
        client = AsyncMock()
        client.post.side_effect = httpx.TimeoutException("timeout")

        with patch.object(notifier, "_get_client", return_value=client):
            assert await notifier.send("message") is False

    @pytest.mark.asyncio
    async def test_send_http_error(self, notifier: SlackNotifier) -> None:
        client = AsyncMock()
        client.post.side_effect = httpx.ConnectError("connection refused")

        with patch.object(notifier, "_get_client", return_value=client):
            assert await notifier.send("message") is False


class TestAuditFailureAlert:
    """send_audit_failure_alert() 테스트"""

    @pytest.mark.asyncio
    async def test_payload(self) -> None:
        notifier = SlackNotifier(webhook_url=WEBHOOK)
        client = _client()

        with patch.object(notifier, "_get_client", return_value=client):
            result = await notifier.send_audit_failure_alert(
                action="transaction_approved",
                target_type="transaction",
                target_id="t-1",
                error="database is locked",
            )

        assert result is True
        payload = client.post.call_args.kwargs["json"]
        assert "channel" not in payload
        attachment = payload["attachments"][0]
        assert attachment["color"] == LEVEL_COLOR["ERROR"]
        assert "Audit entry not recorded" in attachment["title"]
        values = {f["title"]: f["value"] for f in attachment["fields"]}
        assert values == {
            "Action": "transaction_approved",
            "Target": "transaction t-1",
            "Error": "database is locked",
        }


class TestClientLifecycle:
    """HTTP 클라이언트 재사용/종료"""

    @pytest.mark.asyncio
    async def test_reuse_and_close(self) -> None:
        async with SlackNotifier(webhook_url=WEBHOOK) as notifier:
            first = await notifier._get_client()
            second = await notifier._get_client()
            assert first is second

        assert notifier._client is None
        assert first.is_closed
