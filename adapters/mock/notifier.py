"""
Mock 알림 서비스

전송 대신 메모리에 기록. 감사 로그 실패 정책 테스트에서 알림 여부 확인용.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from core.utils.timezone import now_utc


@dataclass
class SentAlert:
    """기록된 알림 1건"""

    message: str
    level: str
    extra: dict[str, Any] | None
    sent: bool
    timestamp: datetime = field(default_factory=now_utc)


class MockNotifier:
    """INotifier 테스트 구현

    Args:
        should_fail: True면 기록은 하되 전송 실패(False) 반환
        should_raise: True면 예외 발생 (Notifier 자체 장애 시나리오)

    사용 예시:
    ```python
    notifier = MockNotifier()
    recorder = AuditRecorder(FailingStore(), notifier=notifier)

    await recorder.record(...)
    assert notifier.get_errors()[0].extra["error"] == "database is locked"
    ```
    """

    def __init__(self, should_fail: bool = False, should_raise: bool = False):
        self.should_fail = should_fail
        self.should_raise = should_raise
        self.notifications: list[SentAlert] = []

    async def send(
        self,
        message: str,
        level: str = "INFO",
        extra: dict[str, Any] | None = None,
    ) -> bool:
        if self.should_raise:
            raise RuntimeError("Mock notifier failure")

        self.notifications.append(
            SentAlert(message=message, level=level, extra=extra, sent=not self.should_fail)
        )
        return not self.should_fail

    async def send_audit_failure_alert(
        self,
        action: str,
        target_type: str,
        target_id: str | None,
        error: str,
    ) -> bool:
        return await self.send(
            f"Audit entry not recorded: {action} on {target_type} {target_id or '-'}",
            level="ERROR",
            extra={
                "action": action,
                "target_type": target_type,
                "target_id": target_id,
                "error": error,
            },
        )

    # 검증용

    def clear(self) -> None:
        self.notifications.clear()

    def get_by_level(self, level: str) -> list[SentAlert]:
        return [n for n in self.notifications if n.level == level]

    def get_errors(self) -> list[SentAlert]:
        return self.get_by_level("ERROR")

    @property
    def last_notification(self) -> SentAlert | None:
        return self.notifications[-1] if self.notifications else None

    @property
    def message_count(self) -> int:
        return len(self.notifications)

    @property
    def failed_count(self) -> int:
        """전송 실패로 기록된 건수"""
        return sum(1 for n in self.notifications if not n.sent)
