"""
AuditStore - 감사 로그 저장소

append-only. 두 스트림(ledger/system)을 별도 테이블에 저장하되
audit_sequence에서 공유 seq를 발급받아 (ts, seq)로 전체 순서를 결정.

조회는 통합 View(v_audit_log)를 우선 사용하고,
View를 사용할 수 없으면 테이블별로 조회한 뒤 병합.
"""

import heapq
import json
import logging
import uuid
from typing import Any

import aiosqlite

from adapters.db.sqlite_adapter import (
    AUDIT_VIEW,
    LEDGER_AUDIT_SELECT,
    SYSTEM_AUDIT_SELECT,
    SQLiteAdapter,
)
from core.audit.types import AuditAction, AuditFilter, AuditLogType
from core.constants import UNKNOWN_NAME
from core.domain.models import AuditLogEntry
from core.errors import StorageError
from core.utils.sql import like_pattern
from core.utils.timezone import now_utc, parse_iso, to_iso

logger = logging.getLogger(__name__)


AUDIT_COLUMNS = """
    seq, entry_id, log_type, actor_id, action,
    target_type, target_id, customer_id, description,
    old_values_json, new_values_json, metadata_json, ts,
    actor_name, actor_email, actor_role, customer_name
"""

STREAM_TABLES: dict[AuditLogType, str] = {
    AuditLogType.LEDGER: "ledger_audit_log",
    AuditLogType.SYSTEM: "system_audit_log",
}

STREAM_SELECTS: dict[AuditLogType, str] = {
    AuditLogType.LEDGER: LEDGER_AUDIT_SELECT,
    AuditLogType.SYSTEM: SYSTEM_AUDIT_SELECT,
}

# (ts, seq) 키셋 페이지 위치
Position = tuple[str, int]


def _dumps(value: dict[str, Any] | None) -> str | None:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False, default=str)


def _loads(value: str | None) -> dict[str, Any] | None:
    if not value:
        return None
    return json.loads(value)


class AuditStore:
    """감사 로그 저장소

    수정/삭제 메서드는 제공하지 않음 (테이블 트리거로도 차단됨).

    Args:
        db: SQLiteAdapter 인스턴스

    사용 예시:
    ```python
    store = AuditStore(db)

    entry = await store.append(
        log_type=AuditLogType.LEDGER,
        actor_id="u-1",
        action=AuditAction.TRANSACTION_APPROVED,
        target_type="transaction",
        target_id=txn.id,
        description="Transaction approved",
        customer_id=txn.customer_id,
    )

    entries = await store.search(AuditFilter(actor_id="u-1"), limit=50)
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    # -------------------------------------------------------------------------
    # 기록
    # -------------------------------------------------------------------------

    async def append(
        self,
        log_type: AuditLogType,
        actor_id: str,
        action: AuditAction,
        target_type: str,
        target_id: str | None,
        description: str,
        customer_id: str | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLogEntry:
        """감사 로그 1건 추가

        seq와 timestamp는 쓰기 잠금 안에서 발급.

        Returns:
            저장된 AuditLogEntry (seq, id, timestamp 포함)

        Raises:
            ValueError: action이 log_type 스트림에 속하지 않음
            StorageError: 저장 실패
        """
        if action.log_type != log_type:
            raise ValueError(
                f"Action {action.value} belongs to the {action.log_type.value} stream, "
                f"not {log_type.value}"
            )

        table = STREAM_TABLES[log_type]
        entry_id = str(uuid.uuid4())
        metadata = metadata or {}

        async with self.db.transaction() as conn:
            cursor = await conn.execute("INSERT INTO audit_sequence DEFAULT VALUES")
            seq = cursor.lastrowid
            # AUTOINCREMENT가 최대값을 기억하므로 이전 행은 필요 없음
            await conn.execute("DELETE FROM audit_sequence WHERE seq < ?", (seq,))

            timestamp = now_utc()
            columns = [
                "seq", "entry_id", "actor_id", "action", "target_type", "target_id",
                "description", "old_values_json", "new_values_json", "metadata_json", "ts",
            ]
            values: list[Any] = [
                seq,
                entry_id,
                actor_id,
                action.value,
                target_type,
                target_id,
                description,
                _dumps(old_values),
                _dumps(new_values),
                _dumps(metadata),
                to_iso(timestamp),
            ]
            if log_type == AuditLogType.LEDGER:
                columns.append("customer_id")
                values.append(customer_id)

            await conn.execute(
                f"INSERT INTO {table} ({', '.join(columns)}) "
                f"VALUES ({', '.join('?' for _ in columns)})",
                tuple(values),
            )

        logger.debug(
            f"Audit appended: {action.value}",
            extra={"seq": seq, "entry_id": entry_id, "target_id": target_id},
        )

        return AuditLogEntry(
            id=entry_id,
            seq=seq,
            log_type=log_type,
            actor_id=actor_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            description=description,
            timestamp=timestamp,
            customer_id=customer_id if log_type == AuditLogType.LEDGER else None,
            old_values=old_values,
            new_values=new_values,
            metadata=metadata,
        )

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def search(
        self,
        filters: AuditFilter,
        limit: int,
        after: Position | None = None,
    ) -> list[AuditLogEntry]:
        """조건 검색 ((ts, seq) 내림차순)

        Args:
            filters: 검색 조건
            limit: 최대 건수
            after: 이 위치보다 뒤(더 오래된) 항목만 조회

        Returns:
            AuditLogEntry 리스트 (최대 limit건)
        """
        if await self.db.object_exists(AUDIT_VIEW, "view"):
            try:
                return await self._search_source(AUDIT_VIEW, filters, limit, after)
            except StorageError as e:
                logger.warning(
                    "감사 로그 View 조회 실패, 테이블 직접 조회로 전환",
                    extra={"error": str(e)},
                )

        return await self._search_streams(filters, limit, after)

    async def _search_streams(
        self,
        filters: AuditFilter,
        limit: int,
        after: Position | None,
    ) -> list[AuditLogEntry]:
        """스트림별 조회 후 병합"""
        streams = [filters.log_type] if filters.log_type else list(STREAM_SELECTS)

        results: list[list[AuditLogEntry]] = []
        for log_type in streams:
            source = f"({STREAM_SELECTS[log_type]})"
            results.append(await self._search_source(source, filters, limit, after))

        merged = heapq.merge(
            *results,
            key=lambda e: (e.timestamp, e.seq),
            reverse=True,
        )
        return [entry for _, entry in zip(range(limit), merged)]

    async def _search_source(
        self,
        source: str,
        filters: AuditFilter,
        limit: int,
        after: Position | None,
    ) -> list[AuditLogEntry]:
        where, params = self._build_where(filters, after)
        rows = await self.db.fetchall(
            f"""
            SELECT {AUDIT_COLUMNS} FROM {source}
            {where}
            ORDER BY ts DESC, seq DESC
            LIMIT ?
            """,
            (*params, limit),
        )
        return [self._row_to_entry(row) for row in rows]

    def _build_where(
        self,
        filters: AuditFilter,
        after: Position | None,
    ) -> tuple[str, list[Any]]:
        conditions: list[str] = []
        params: list[Any] = []

        if filters.actor_id:
            conditions.append("actor_id = ?")
            params.append(filters.actor_id)
        if filters.action is not None:
            conditions.append("action = ?")
            params.append(filters.action.value)
        if filters.target_type:
            conditions.append("target_type = ?")
            params.append(filters.target_type)
        if filters.target_id:
            conditions.append("target_id = ?")
            params.append(filters.target_id)
        if filters.log_type is not None:
            conditions.append("log_type = ?")
            params.append(filters.log_type.value)
        if filters.start is not None:
            conditions.append("ts >= ?")
            params.append(to_iso(filters.start))
        if filters.end is not None:
            conditions.append("ts <= ?")
            params.append(to_iso(filters.end))
        if filters.free_text and filters.free_text.strip():
            pattern = like_pattern(filters.free_text)
            conditions.append(
                "(lower(action) LIKE ? ESCAPE '\\'"
                " OR lower(description) LIKE ? ESCAPE '\\'"
                " OR lower(target_type) LIKE ? ESCAPE '\\'"
                " OR lower(COALESCE(actor_name, '')) LIKE ? ESCAPE '\\'"
                " OR lower(COALESCE(customer_name, '')) LIKE ? ESCAPE '\\')"
            )
            params.extend([pattern] * 5)
        if after is not None:
            after_ts, after_seq = after
            conditions.append("(ts < ? OR (ts = ? AND seq < ?))")
            params.extend([after_ts, after_ts, after_seq])

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        return where, params

    async def get_by_id(self, entry_id: str) -> AuditLogEntry | None:
        """entry_id로 조회"""
        for select in STREAM_SELECTS.values():
            row = await self.db.fetchone(
                f"SELECT {AUDIT_COLUMNS} FROM ({select}) WHERE entry_id = ?",
                (entry_id,),
            )
            if row:
                return self._row_to_entry(row)
        return None

    async def count(self, log_type: AuditLogType | None = None) -> int:
        """저장된 항목 수"""
        streams = [log_type] if log_type else list(STREAM_TABLES)
        total = 0
        for stream in streams:
            row = await self.db.fetchone(f"SELECT COUNT(*) FROM {STREAM_TABLES[stream]}")
            total += int(row[0]) if row else 0
        return total

    def _row_to_entry(self, row: aiosqlite.Row | tuple[Any, ...]) -> AuditLogEntry:
        """DB row를 AuditLogEntry로 변환

        AUDIT_COLUMNS 순서:
        0: seq, 1: entry_id, 2: log_type, 3: actor_id, 4: action,
        5: target_type, 6: target_id, 7: customer_id, 8: description,
        9: old_values_json, 10: new_values_json, 11: metadata_json, 12: ts,
        13: actor_name, 14: actor_email, 15: actor_role, 16: customer_name
        """
        customer_id = row[7]
        return AuditLogEntry(
            id=row[1],
            seq=row[0],
            log_type=AuditLogType(row[2]),
            actor_id=row[3],
            action=AuditAction(row[4]),
            target_type=row[5],
            target_id=row[6],
            description=row[8],
            timestamp=parse_iso(row[12]),
            customer_id=customer_id,
            old_values=_loads(row[9]),
            new_values=_loads(row[10]),
            metadata=_loads(row[11]) or {},
            actor_name=row[13] or UNKNOWN_NAME,
            actor_email=row[14],
            actor_role=row[15],
            customer_name=(row[16] or UNKNOWN_NAME) if customer_id else None,
        )
