"""
Slack 알림 서비스

Incoming Webhook으로 운영자 알림 전송 (감사 로그 기록 실패, 잔액 재계산 결과).
전송 실패는 로그만 남기고 False 반환 (알림 장애가 장부 작업을 막지 않도록).
"""

import logging
from typing import Any

import httpx

from core.utils.timezone import now_utc

logger = logging.getLogger(__name__)


# 레벨 → attachment 색상
LEVEL_COLOR = {
    "INFO": "#2EB67D",
    "WARNING": "#ECB22E",
    "ERROR": "#E01E5A",
    "CRITICAL": "#7A0026",
}

# 레벨 → 제목 앞 아이콘
LEVEL_ICON = {
    "INFO": ":information_source:",
    "WARNING": ":warning:",
    "ERROR": ":rotating_light:",
    "CRITICAL": ":fire:",
}


def as_fields(values: dict[str, Any], short: bool = True) -> list[dict[str, Any]]:
    """dict → Slack attachment fields"""
    return [
        {"title": key, "value": "-" if value is None else str(value), "short": short}
        for key, value in values.items()
    ]


class SlackNotifier:
    """Slack Webhook 알림

    INotifier Protocol 구현. HTTP 클라이언트는 첫 전송 시 생성해서 재사용.

    Args:
        webhook_url: Slack Incoming Webhook URL
        channel: 채널 오버라이드 (None이면 Webhook 기본 채널)
        username: 발송자 표시 이름
        timeout: 요청 타임아웃 (초)

    사용 예시:
    ```python
    async with SlackNotifier(settings.audit.alert_webhook_url) as notifier:
        recorder = AuditRecorder(AuditStore(db), notifier=notifier)
    ```
    """

    def __init__(
        self,
        webhook_url: str,
        channel: str | None = None,
        username: str = "DebitLedger",
        timeout: float = 10.0,
    ):
        if not webhook_url:
            raise ValueError("webhook_url은 필수입니다")

        self.webhook_url = webhook_url
        self.channel = channel
        self.username = username
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        if self._client is not None:
            if not self._client.is_closed:
                await self._client.aclose()
            self._client = None

    async def send(
        self,
        message: str,
        level: str = "INFO",
        extra: dict[str, Any] | None = None,
    ) -> bool:
        """일반 알림

        extra는 attachment fields로 표시.
        """
        attachment: dict[str, Any] = {
            "color": LEVEL_COLOR.get(level, "#808080"),
            "text": f"{LEVEL_ICON.get(level, ':bell:')} *[{level}]* {message}",
        }
        if extra:
            attachment["fields"] = as_fields(extra)
        return await self._post(attachment)

    async def send_audit_failure_alert(
        self,
        action: str,
        target_type: str,
        target_id: str | None,
        error: str,
    ) -> bool:
        """감사 로그 기록 실패 알림

        장부 변경은 이미 커밋된 상태이므로 누락된 항목을 운영자가 확인할 수 있게
        동작/대상/사유를 모두 포함.
        """
        fields = as_fields({"Action": action, "Target": f"{target_type} {target_id or '-'}"})
        fields.append({"title": "Error", "value": error, "short": False})

        return await self._post({
            "color": LEVEL_COLOR["ERROR"],
            "title": f"{LEVEL_ICON['ERROR']} Audit entry not recorded",
            "fields": fields,
        })

    async def _post(self, attachment: dict[str, Any]) -> bool:
        """attachment 1개짜리 메시지 전송"""
        attachment["footer"] = f"DebitLedger | {now_utc().strftime('%Y-%m-%d %H:%M:%S UTC')}"
        payload: dict[str, Any] = {"username": self.username, "attachments": [attachment]}
        if self.channel:
            payload["channel"] = self.channel

        try:
            client = await self._get_client()
            response = await client.post(self.webhook_url, json=payload)
        except httpx.TimeoutException:
            logger.error("Slack 알림 타임아웃", extra={"timeout": self.timeout})
            return False
        except httpx.HTTPError as e:
            logger.error("Slack 알림 HTTP 오류", extra={"error": str(e)})
            return False

        if response.status_code != 200:
            logger.warning(
                "Slack 알림 거부됨",
                extra={"status": response.status_code, "body": response.text},
            )
            return False
        return True

    async def __aenter__(self) -> "SlackNotifier":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
