"""
감사 로그 (Audit Trail)

장부 변경과 타 도메인 시스템 이벤트를 append-only로 기록하고,
두 스트림을 하나의 시간순 결과로 검색.

서비스는 하위 모듈에서 import (core.domain.models가 이 패키지의 타입을 사용하므로
여기서는 타입만 노출):

```python
from core.audit.recorder import AuditRecorder
from core.audit.query import AuditQueryService

recorder = AuditRecorder(AuditStore(db), notifier)
await recorder.record(actor_id, AuditAction.TRANSACTION_CREATED, "transaction", txn.id)

page = await AuditQueryService(AuditStore(db)).search(AuditFilter(actor_id=actor_id))
```
"""

from core.audit.types import ACTION_LOG_TYPES, AuditAction, AuditFilter, AuditLogType

__all__ = [
    "AuditAction",
    "AuditLogType",
    "AuditFilter",
    "ACTION_LOG_TYPES",
]
