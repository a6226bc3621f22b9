"""
어댑터 인터페이스

core가 의존하는 외부 서비스 계약. 구현체: SlackNotifier, MockNotifier.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class INotifier(Protocol):
    """운영자 알림

    감사 로그를 남기지 못한 경우처럼 장부 데이터만으로는 드러나지 않는 사건을 전달.
    구현체는 전송 실패를 예외가 아니라 False로 알려야 함.
    """

    async def send(
        self,
        message: str,
        level: str = "INFO",
        extra: dict[str, Any] | None = None,
    ) -> bool:
        """메시지 전송 (level: INFO/WARNING/ERROR/CRITICAL)"""
        ...

    async def send_audit_failure_alert(
        self,
        action: str,
        target_type: str,
        target_id: str | None,
        error: str,
    ) -> bool:
        """감사 로그 기록 실패 알림

        Args:
            action: 기록하지 못한 AuditAction 값
            target_type: 대상 종류 (transaction, customer, user 등)
            target_id: 대상 ID (없으면 None)
            error: 저장소 오류 메시지
        """
        ...
