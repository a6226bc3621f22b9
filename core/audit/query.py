"""
Audit Query

감사 로그 검색 + 키셋 페이지네이션.

정렬: (timestamp, seq) 내림차순.
커서: 마지막 항목의 (ts, seq)를 base64 JSON으로 인코딩.
offset 대신 키셋을 쓰므로 페이지를 넘기는 동안 새 항목이 추가돼도
이미 본 항목이 다시 나오거나 누락되지 않음.
"""

import base64
import binascii
import json
import logging

from core.audit.types import AuditFilter
from core.constants import Defaults
from core.domain.models import AuditLogEntry, AuditPage
from core.errors import NotFoundError, ValidationError
from core.storage.audit_store import AuditStore, Position
from core.utils.timezone import ensure_utc, parse_iso, to_iso

logger = logging.getLogger(__name__)


def encode_cursor(entry: AuditLogEntry) -> str:
    """항목 위치 → 커서 문자열"""
    raw = json.dumps({"ts": to_iso(entry.timestamp), "seq": entry.seq})
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str) -> Position:
    """커서 문자열 → (ts, seq)

    Raises:
        ValidationError: 형식 오류
    """
    try:
        data = json.loads(base64.urlsafe_b64decode(cursor.encode("ascii")))
        ts = to_iso(parse_iso(data["ts"]))
        seq = int(data["seq"])
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as e:
        raise ValidationError(f"Invalid cursor: {cursor!r}") from e
    return ts, seq


class AuditQueryService:
    """감사 로그 조회 서비스

    View 사용 여부 등 저장소 세부사항은 AuditStore 내부에서 처리하므로
    호출자는 항상 search() 하나만 사용.

    Args:
        store: 감사 로그 저장소
        page_size: 기본 페이지 크기
        max_page_size: 최대 페이지 크기 (초과 요청은 잘라냄)

    사용 예시:
    ```python
    query = AuditQueryService(AuditStore(db))

    page = await query.search(AuditFilter(free_text="approved"), limit=20)
    while page.has_more:
        page = await query.search(filters, limit=20, cursor=page.next_cursor)
    ```
    """

    def __init__(
        self,
        store: AuditStore,
        page_size: int = Defaults.PAGE_SIZE,
        max_page_size: int = Defaults.MAX_PAGE_SIZE,
    ):
        self.store = store
        self.page_size = page_size
        self.max_page_size = max_page_size

    async def search(
        self,
        filters: AuditFilter | None = None,
        limit: int | None = None,
        cursor: str | None = None,
    ) -> AuditPage:
        """감사 로그 검색

        Args:
            filters: 검색 조건 (None이면 전체)
            limit: 페이지 크기 (None이면 기본값)
            cursor: 이전 페이지의 next_cursor

        Returns:
            AuditPage (다음 페이지가 없으면 next_cursor=None)

        Raises:
            ValidationError: limit < 1, 잘못된 커서, 시작일 > 종료일
        """
        filters = filters or AuditFilter()
        limit = self._clamp_limit(limit)

        # naive 경계는 UTC로 간주
        if filters.start and filters.end and ensure_utc(filters.start) > ensure_utc(filters.end):
            raise ValidationError("Date range start must not be after end")

        after = decode_cursor(cursor) if cursor else None

        # 한 건 더 조회해서 다음 페이지 존재 여부 판정
        rows = await self.store.search(filters, limit + 1, after)
        entries = rows[:limit]
        next_cursor = encode_cursor(entries[-1]) if len(rows) > limit else None

        logger.debug(
            f"Audit search: {len(entries)} entries",
            extra={"has_more": next_cursor is not None},
        )
        return AuditPage(entries=entries, next_cursor=next_cursor)

    async def get_entry(self, entry_id: str) -> AuditLogEntry:
        """단건 조회

        Raises:
            NotFoundError: 존재하지 않는 entry_id
        """
        entry = await self.store.get_by_id(entry_id)
        if entry is None:
            raise NotFoundError(f"Audit entry not found: {entry_id}")
        return entry

    def _clamp_limit(self, limit: int | None) -> int:
        if limit is None:
            return self.page_size
        if limit < 1:
            raise ValidationError("limit must be at least 1")
        return min(limit, self.max_page_size)
