"""
Audit Recorder

모든 장부 변경 직후(커밋 이후) 감사 로그를 append.

실패 정책:
- 감사 로그 기록 실패는 이미 커밋된 업무 변경을 되돌리거나 막지 않음
- 대신 ERROR 로그 + 실패 카운터 + 운영자 알림(INotifier)으로 드러냄
- 알림 전송 실패도 로그만 남기고 예외를 전파하지 않음
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from adapters.interfaces import INotifier
from core.audit.types import AuditAction, AuditLogType
from core.domain.models import AuditLogEntry
from core.storage.audit_store import AuditStore
from core.utils.timezone import now_utc, to_iso

logger = logging.getLogger(__name__)


@dataclass
class RecorderStats:
    """기록 통계"""

    recorded: int = 0
    failed: int = 0
    last_error: str | None = None
    last_failure_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "recorded": self.recorded,
            "failed": self.failed,
            "last_error": self.last_error,
            "last_failure_at": to_iso(self.last_failure_at) if self.last_failure_at else None,
        }


class AuditRecorder:
    """감사 로그 기록기

    Args:
        store: 감사 로그 저장소
        notifier: 기록 실패 알림 (None이면 로그만)

    사용 예시:
    ```python
    recorder = AuditRecorder(AuditStore(db), notifier=SlackNotifier(url))

    await recorder.record(
        actor_id=actor.id,
        action=AuditAction.TRANSACTION_APPROVED,
        target_type="transaction",
        target_id=txn.id,
        old_values=before.snapshot(),
        new_values=after.snapshot(),
        customer_id=txn.customer_id,
    )

    recorder.get_stats()  # {"recorded": 1, "failed": 0, ...}
    ```
    """

    def __init__(self, store: AuditStore, notifier: INotifier | None = None):
        self.store = store
        self.notifier = notifier
        self._stats = RecorderStats()

    async def record(
        self,
        actor_id: str,
        action: AuditAction,
        target_type: str,
        target_id: str | None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
        description: str | None = None,
        customer_id: str | None = None,
    ) -> AuditLogEntry | None:
        """장부(ledger) 스트림 기록

        Returns:
            저장된 항목, 실패 시 None (예외를 던지지 않음)

        Raises:
            ValueError: ledger 스트림 동작이 아님 (호출 코드 오류)
        """
        return await self._record(
            AuditLogType.LEDGER,
            actor_id=actor_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            old_values=old_values,
            new_values=new_values,
            metadata=metadata,
            description=description,
            customer_id=customer_id,
        )

    async def record_system(
        self,
        actor_id: str,
        action: AuditAction,
        target_type: str,
        target_id: str | None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
        description: str | None = None,
    ) -> AuditLogEntry | None:
        """시스템 스트림 기록 (사용자 관리, 로그인, 주문/재고/지출 등)

        Raises:
            ValueError: system 스트림 동작이 아님 (호출 코드 오류)
        """
        return await self._record(
            AuditLogType.SYSTEM,
            actor_id=actor_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            old_values=old_values,
            new_values=new_values,
            metadata=metadata,
            description=description,
            customer_id=None,
        )

    async def _record(
        self,
        log_type: AuditLogType,
        actor_id: str,
        action: AuditAction,
        target_type: str,
        target_id: str | None,
        old_values: dict[str, Any] | None,
        new_values: dict[str, Any] | None,
        metadata: dict[str, Any] | None,
        description: str | None,
        customer_id: str | None,
    ) -> AuditLogEntry | None:
        if action.log_type != log_type:
            raise ValueError(
                f"Action {action.value} is recorded on the {action.log_type.value} stream"
            )

        try:
            entry = await self.store.append(
                log_type=log_type,
                actor_id=actor_id,
                action=action,
                target_type=target_type,
                target_id=target_id,
                description=description or describe(action, target_id),
                customer_id=customer_id,
                old_values=old_values,
                new_values=new_values,
                metadata=metadata,
            )
        except Exception as e:
            self._stats.failed += 1
            self._stats.last_error = str(e)
            self._stats.last_failure_at = now_utc()
            logger.exception(
                "감사 로그 기록 실패",
                extra={
                    "action": action.value,
                    "target_type": target_type,
                    "target_id": target_id,
                    "actor_id": actor_id,
                    "failed_total": self._stats.failed,
                },
            )
            await self._alert(action, target_type, target_id, str(e))
            return None

        self._stats.recorded += 1
        return entry

    async def _alert(
        self,
        action: AuditAction,
        target_type: str,
        target_id: str | None,
        error: str,
    ) -> None:
        if self.notifier is None:
            return

        try:
            sent = await self.notifier.send_audit_failure_alert(
                action=action.value,
                target_type=target_type,
                target_id=target_id,
                error=error,
            )
        except Exception:
            logger.exception("감사 로그 실패 알림 전송 중 예외")
            return

        if not sent:
            logger.warning("감사 로그 실패 알림 전송 실패", extra={"action": action.value})

    def get_stats(self) -> dict[str, Any]:
        """기록 통계 (health 체크용)"""
        return self._stats.to_dict()

    @property
    def failed_count(self) -> int:
        return self._stats.failed


def describe(action: AuditAction, target_id: str | None) -> str:
    """기본 설명 문구 (예: "Transaction approved: 3f2a...")"""
    text = action.value.replace("_", " ").capitalize()
    return f"{text}: {target_id}" if target_id else text
