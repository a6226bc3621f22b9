"""
Ledger 저장소

고객/외상 거래 저장 및 조회.
상태 변경은 모두 조건부 UPDATE (WHERE status = 'pending')로 수행하고
rowcount로 성공 여부를 판정.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import aiosqlite

from core.constants import Defaults, UNKNOWN_NAME
from core.domain.models import Customer, CustomerSummary, Transaction
from core.errors import DuplicateCustomerError, ValidationError
from core.ledger.types import TransactionStatus, TransactionType
from core.utils.money import from_db, to_db
from core.utils.sql import like_pattern
from core.utils.timezone import parse_iso, parse_iso_or_none, to_iso

if TYPE_CHECKING:
    from datetime import datetime

    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


CUSTOMER_COLUMNS = """
    c.id, c.name, c.email, c.phone, c.address,
    c.is_active, c.created_by, c.created_at
"""

TRANSACTION_SELECT = """
    SELECT
        t.id, t.customer_id, t.type, t.amount, t.description, t.status,
        t.payment_method, t.notes, t.rejection_reason,
        t.created_by, t.created_at, t.approved_by, t.approved_at, t.updated_at,
        c.name, cu.full_name, au.full_name
    FROM ledger_transaction t
    LEFT JOIN customer c ON c.id = t.customer_id
    LEFT JOIN app_user cu ON cu.id = t.created_by
    LEFT JOIN app_user au ON au.id = t.approved_by
"""


@dataclass
class TransactionFilter:
    """거래 목록 조회 조건"""

    status: TransactionStatus | None = None
    type: TransactionType | None = None
    customer_id: str | None = None
    created_by: str | None = None
    search: str | None = None
    limit: int = Defaults.LIST_LIMIT
    offset: int = 0


async def _fetchone(
    conn: aiosqlite.Connection,
    sql: str,
    params: tuple[Any, ...],
) -> tuple[Any, ...] | None:
    cursor = await conn.execute(sql, params)
    row = await cursor.fetchone()
    await cursor.close()
    return row


class LedgerStore:
    """Ledger 저장소

    쓰기 메서드는 호출자가 연 트랜잭션의 conn을 받음
    (SQLiteAdapter.transaction()). 읽기 메서드는 conn을 생략하면
    어댑터를 통해 단독 실행.

    Args:
        db: SQLite 어댑터

    사용 예시:
    ```python
    store = LedgerStore(db)

    async with db.transaction() as conn:
        await store.insert_customer(conn, customer)
        await store.insert_transaction(conn, txn)

    txn = await store.get_transaction(txn.id)
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    # -------------------------------------------------------------------------
    # 고객
    # -------------------------------------------------------------------------

    async def insert_customer(self, conn: aiosqlite.Connection, customer: Customer) -> None:
        """고객 저장

        활성 고객 이름 유일성은 partial unique index가 보장.

        Raises:
            DuplicateCustomerError: 같은 이름의 활성 고객 존재
        """
        created_at = to_iso(customer.created_at)
        try:
            await conn.execute(
                """
                INSERT INTO customer (
                    id, name, email, phone, address,
                    is_active, created_by, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    customer.id,
                    customer.name,
                    customer.email,
                    customer.phone,
                    customer.address,
                    1 if customer.is_active else 0,
                    customer.created_by,
                    created_at,
                    created_at,
                ),
            )
        except aiosqlite.IntegrityError as e:
            logger.info(
                "중복 고객 이름",
                extra={"customer_name": customer.name, "error": str(e)},
            )
            raise DuplicateCustomerError(
                f"An active customer named '{customer.name}' already exists"
            ) from e

        # 잔액 Projection 초기 행
        await conn.execute(
            """
            INSERT INTO customer_balance (customer_id, balance, approved_count, updated_at)
            VALUES (?, '0.00', 0, ?)
            """,
            (customer.id, created_at),
        )

        logger.debug(f"Customer inserted: {customer.id}")

    async def get_customer(
        self,
        customer_id: str,
        conn: aiosqlite.Connection | None = None,
    ) -> Customer | None:
        """ID로 고객 조회"""
        sql = f"SELECT {CUSTOMER_COLUMNS} FROM customer c WHERE c.id = ?"

        if conn is not None:
            row = await _fetchone(conn, sql, (customer_id,))
        else:
            row = await self.db.fetchone(sql, (customer_id,))
        return self._row_to_customer(row) if row else None

    async def deactivate_customer(
        self,
        conn: aiosqlite.Connection,
        customer_id: str,
        now: datetime,
    ) -> bool:
        """고객 비활성화 (활성 상태일 때만)

        Returns:
            True: 비활성화됨
            False: 존재하지 않거나 이미 비활성
        """
        cursor = await conn.execute(
            """
            UPDATE customer SET is_active = 0, updated_at = ?
            WHERE id = ? AND is_active = 1
            """,
            (to_iso(now), customer_id),
        )
        return cursor.rowcount == 1

    async def list_customer_summaries(
        self,
        search: str | None = None,
        include_inactive: bool = False,
    ) -> list[CustomerSummary]:
        """고객 요약 목록 (이름순)

        Args:
            search: 이름/이메일/전화번호 부분 일치 (대소문자 무시)
            include_inactive: 비활성 고객 포함 여부
        """
        conditions: list[str] = []
        params: list[Any] = []

        if not include_inactive:
            conditions.append("c.is_active = 1")

        if search and search.strip():
            pattern = like_pattern(search)
            conditions.append(
                "(lower(c.name) LIKE ? ESCAPE '\\'"
                " OR lower(COALESCE(c.email, '')) LIKE ? ESCAPE '\\'"
                " OR lower(COALESCE(c.phone, '')) LIKE ? ESCAPE '\\')"
            )
            params.extend([pattern, pattern, pattern])

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        rows = await self.db.fetchall(
            f"{self._summary_select()} {where} ORDER BY c.name COLLATE NOCASE",
            tuple(params),
        )
        return [self._row_to_summary(row) for row in rows]

    async def get_customer_summary(self, customer_id: str) -> CustomerSummary | None:
        row = await self.db.fetchone(
            f"{self._summary_select()} WHERE c.id = ?",
            (customer_id,),
        )
        return self._row_to_summary(row) if row else None

    def _summary_select(self) -> str:
        return f"""
            SELECT
                {CUSTOMER_COLUMNS},
                COALESCE(b.balance, '0.00'),
                (SELECT COUNT(*) FROM ledger_transaction t WHERE t.customer_id = c.id),
                (SELECT COUNT(*) FROM ledger_transaction t
                 WHERE t.customer_id = c.id AND t.status = 'pending'),
                (SELECT MAX(t.created_at) FROM ledger_transaction t WHERE t.customer_id = c.id)
            FROM customer c
            LEFT JOIN customer_balance b ON b.customer_id = c.id
        """

    # -------------------------------------------------------------------------
    # 거래
    # -------------------------------------------------------------------------

    async def insert_transaction(self, conn: aiosqlite.Connection, txn: Transaction) -> None:
        """거래 저장 (PENDING)

        Raises:
            ValidationError: 고객이 존재하지 않거나 비활성
        """
        row = await _fetchone(
            conn,
            "SELECT is_active FROM customer WHERE id = ?",
            (txn.customer_id,),
        )
        if row is None:
            raise ValidationError(f"Unknown customer: {txn.customer_id}")
        if not row[0]:
            raise ValidationError(f"Customer {txn.customer_id} is inactive")

        await conn.execute(
            """
            INSERT INTO ledger_transaction (
                id, customer_id, type, amount, description, status,
                payment_method, notes, rejection_reason,
                created_by, created_at, approved_by, approved_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                txn.id,
                txn.customer_id,
                txn.type.value,
                to_db(txn.amount),
                txn.description,
                txn.status.value,
                txn.payment_method,
                txn.notes,
                txn.rejection_reason,
                txn.created_by,
                to_iso(txn.created_at),
                txn.approved_by,
                to_iso(txn.approved_at) if txn.approved_at else None,
                to_iso(txn.updated_at),
            ),
        )

        logger.debug(
            f"Transaction inserted: {txn.id}",
            extra={"customer_id": txn.customer_id, "type": txn.type.value},
        )

    async def get_transaction(
        self,
        transaction_id: str,
        conn: aiosqlite.Connection | None = None,
    ) -> Transaction | None:
        """ID로 거래 조회 (이름 조인 포함)"""
        sql = f"{TRANSACTION_SELECT} WHERE t.id = ?"

        if conn is not None:
            row = await _fetchone(conn, sql, (transaction_id,))
        else:
            row = await self.db.fetchone(sql, (transaction_id,))
        return self._row_to_transaction(row) if row else None

    async def get_status(
        self,
        conn: aiosqlite.Connection,
        transaction_id: str,
    ) -> TransactionStatus | None:
        """현재 상태만 조회 (조건부 UPDATE 실패 원인 판정용)"""
        row = await _fetchone(
            conn,
            "SELECT status FROM ledger_transaction WHERE id = ?",
            (transaction_id,),
        )
        return TransactionStatus(row[0]) if row else None

    async def list_transactions(self, filters: TransactionFilter | None = None) -> list[Transaction]:
        """거래 목록 (최신순)"""
        filters = filters or TransactionFilter()
        conditions: list[str] = []
        params: list[Any] = []

        if filters.status is not None:
            conditions.append("t.status = ?")
            params.append(filters.status.value)
        if filters.type is not None:
            conditions.append("t.type = ?")
            params.append(filters.type.value)
        if filters.customer_id:
            conditions.append("t.customer_id = ?")
            params.append(filters.customer_id)
        if filters.created_by:
            conditions.append("t.created_by = ?")
            params.append(filters.created_by)
        if filters.search and filters.search.strip():
            pattern = like_pattern(filters.search)
            conditions.append(
                "(lower(t.description) LIKE ? ESCAPE '\\'"
                " OR lower(COALESCE(c.name, '')) LIKE ? ESCAPE '\\')"
            )
            params.extend([pattern, pattern])

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.extend([max(filters.limit, 0), max(filters.offset, 0)])

        rows = await self.db.fetchall(
            f"""
            {TRANSACTION_SELECT}
            {where}
            ORDER BY t.created_at DESC, t.rowid DESC
            LIMIT ? OFFSET ?
            """,
            tuple(params),
        )
        return [self._row_to_transaction(row) for row in rows]

    async def count_pending(self) -> int:
        """승인 대기 거래 수"""
        row = await self.db.fetchone(
            "SELECT COUNT(*) FROM ledger_transaction WHERE status = 'pending'"
        )
        return int(row[0]) if row else 0

    async def update_pending(
        self,
        conn: aiosqlite.Connection,
        transaction_id: str,
        changes: dict[str, Any],
        now: datetime,
    ) -> bool:
        """PENDING 거래 필드 수정

        Args:
            changes: 검증된 변경값 (EDITABLE_FIELDS의 부분집합, 이미 정규화됨)

        Returns:
            True: 수정됨
            False: 존재하지 않거나 PENDING이 아님
        """
        assignments: list[str] = []
        params: list[Any] = []

        # 컬럼 이름은 고정 순서로만 사용 (changes의 키는 EDITABLE_FIELDS로 검증됨)
        for column in ("type", "amount", "description", "payment_method", "notes"):
            if column not in changes:
                continue
            value = changes[column]
            if column == "type":
                value = value.value
            elif column == "amount":
                value = to_db(value)
            assignments.append(f"{column} = ?")
            params.append(value)

        assignments.append("updated_at = ?")
        params.append(to_iso(now))
        params.append(transaction_id)

        cursor = await conn.execute(
            f"""
            UPDATE ledger_transaction SET {', '.join(assignments)}
            WHERE id = ? AND status = 'pending'
            """,
            tuple(params),
        )
        return cursor.rowcount == 1

    async def delete_pending(self, conn: aiosqlite.Connection, transaction_id: str) -> bool:
        """PENDING 거래 삭제

        Returns:
            True: 삭제됨
            False: 존재하지 않거나 PENDING이 아님
        """
        cursor = await conn.execute(
            "DELETE FROM ledger_transaction WHERE id = ? AND status = 'pending'",
            (transaction_id,),
        )
        return cursor.rowcount == 1

    async def transition_status(
        self,
        conn: aiosqlite.Connection,
        transaction_id: str,
        to_status: TransactionStatus,
        actor_id: str,
        now: datetime,
        rejection_reason: str | None = None,
    ) -> bool:
        """PENDING → 종료 상태 조건부 전이 (compare-and-set)

        Returns:
            True: 이 호출이 전이에 성공
            False: 존재하지 않거나 이미 종료 상태
        """
        ts = to_iso(now)
        cursor = await conn.execute(
            """
            UPDATE ledger_transaction
            SET status = ?, rejection_reason = ?,
                approved_by = ?, approved_at = ?, updated_at = ?
            WHERE id = ? AND status = 'pending'
            """,
            (
                to_status.value,
                rejection_reason,
                actor_id,
                ts,
                ts,
                transaction_id,
            ),
        )
        won = cursor.rowcount == 1

        logger.debug(
            f"Transition {transaction_id} → {to_status.value}: {'won' if won else 'lost'}",
            extra={"transaction_id": transaction_id, "actor_id": actor_id},
        )
        return won

    # -------------------------------------------------------------------------
    # 변환
    # -------------------------------------------------------------------------

    def _row_to_customer(self, row: tuple[Any, ...]) -> Customer:
        return Customer(
            id=row[0],
            name=row[1],
            email=row[2],
            phone=row[3],
            address=row[4],
            is_active=bool(row[5]),
            created_by=row[6],
            created_at=parse_iso(row[7]),
        )

    def _row_to_summary(self, row: tuple[Any, ...]) -> CustomerSummary:
        return CustomerSummary(
            customer=self._row_to_customer(row[:8]),
            current_balance=from_db(row[8]),
            total_transactions=int(row[9]),
            pending_transactions=int(row[10]),
            last_transaction_date=parse_iso_or_none(row[11]),
        )

    def _row_to_transaction(self, row: tuple[Any, ...]) -> Transaction:
        approved_by = row[11]
        return Transaction(
            id=row[0],
            customer_id=row[1],
            type=TransactionType(row[2]),
            amount=from_db(row[3]),
            description=row[4],
            status=TransactionStatus(row[5]),
            payment_method=row[6],
            notes=row[7],
            rejection_reason=row[8],
            created_by=row[9],
            created_at=parse_iso(row[10]),
            approved_by=approved_by,
            approved_at=parse_iso_or_none(row[12]),
            updated_at=parse_iso(row[13]),
            customer_name=row[14] or UNKNOWN_NAME,
            created_by_name=row[15] or UNKNOWN_NAME,
            approved_by_name=(row[16] or UNKNOWN_NAME) if approved_by else None,
        )
