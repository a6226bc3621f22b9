"""
Balance Aggregator

고객 잔액 = 승인된 외상 합계 - 승인된 상환 합계.

customer_balance는 Projection (materialized running total):
- 상태 전이와 같은 트랜잭션 안에서 APPROVED 전이 시에만 증감
- 생성/수정/거부/삭제는 잔액에 영향 없음
- reconcile()로 거래 원장에서 전체 재계산 및 drift 복구
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import aiosqlite

from core.constants import Money
from core.domain.models import Transaction
from core.ledger.types import TransactionStatus, TransactionType
from core.utils.money import from_db, to_db
from core.utils.timezone import now_utc, to_iso

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


@dataclass
class BalanceDrift:
    """Projection 잔액과 원장 재계산 값의 불일치"""

    customer_id: str
    stored: Decimal | None  # None: Projection 행 없음
    computed: Decimal

    @property
    def difference(self) -> Decimal:
        return self.computed - (self.stored if self.stored is not None else Money.ZERO)

    def to_dict(self) -> dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "stored": str(self.stored) if self.stored is not None else None,
            "computed": str(self.computed),
            "difference": str(self.difference),
        }


def sum_approved(rows: Iterable[tuple[str, str]]) -> Decimal:
    """(type, amount) 행들의 잔액 기여 합계"""
    total = Money.ZERO
    for type_value, amount in rows:
        total += from_db(amount) * TransactionType(type_value).sign
    return total


class BalanceAggregator:
    """고객 잔액 관리

    Args:
        db: SQLite 어댑터

    사용 예시:
    ```python
    balances = BalanceAggregator(db)

    # 승인 트랜잭션 내부
    async with db.transaction() as conn:
        ...
        await balances.apply_transition(conn, txn, TransactionStatus.APPROVED)

    balance = await balances.get_balance(customer_id)
    drifts = await balances.reconcile()
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    # -------------------------------------------------------------------------
    # 쓰기 (상태 전이 트랜잭션 내부)
    # -------------------------------------------------------------------------

    async def apply_transition(
        self,
        conn: aiosqlite.Connection,
        txn: Transaction,
        to_status: TransactionStatus,
    ) -> Decimal | None:
        """종료 상태 전이를 잔액에 반영

        APPROVED일 때만 signed_amount만큼 증감. REJECTED는 변화 없음.
        호출자는 조건부 UPDATE에 성공한 같은 트랜잭션에서 호출해야 함
        (BEGIN IMMEDIATE로 쓰기 잠금을 잡고 있으므로 읽고-쓰기가 안전).

        Args:
            conn: 트랜잭션 연결
            txn: 전이 직전 거래
            to_status: 전이된 상태

        Returns:
            새 잔액 (APPROVED) 또는 None
        """
        if to_status != TransactionStatus.APPROVED:
            return None

        cursor = await conn.execute(
            "SELECT balance, approved_count FROM customer_balance WHERE customer_id = ?",
            (txn.customer_id,),
        )
        row = await cursor.fetchone()
        await cursor.close()

        if row is None:
            # Projection 행이 없으면 원장에서 재계산 (이번 승인 포함)
            new_balance = await self.recompute(conn, txn.customer_id)
        else:
            new_balance = from_db(row[0]) + txn.signed_amount
            await conn.execute(
                """
                UPDATE customer_balance
                SET balance = ?, approved_count = ?, last_transaction_id = ?, updated_at = ?
                WHERE customer_id = ?
                """,
                (
                    to_db(new_balance),
                    int(row[1]) + 1,
                    txn.id,
                    to_iso(now_utc()),
                    txn.customer_id,
                ),
            )

        logger.info(
            "잔액 반영",
            extra={
                "customer_id": txn.customer_id,
                "transaction_id": txn.id,
                "delta": str(txn.signed_amount),
                "balance": str(new_balance),
            },
        )
        return new_balance

    async def recompute(self, conn: aiosqlite.Connection, customer_id: str) -> Decimal:
        """한 고객의 잔액을 원장에서 재계산하여 저장"""
        cursor = await conn.execute(
            """
            SELECT type, amount FROM ledger_transaction
            WHERE customer_id = ? AND status = 'approved'
            """,
            (customer_id,),
        )
        rows = await cursor.fetchall()
        await cursor.close()

        balance = sum_approved(rows)
        await self._write_balance(conn, customer_id, balance, len(rows))
        return balance

    async def _write_balance(
        self,
        conn: aiosqlite.Connection,
        customer_id: str,
        balance: Decimal,
        approved_count: int,
    ) -> None:
        await conn.execute(
            """
            INSERT INTO customer_balance (customer_id, balance, approved_count, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(customer_id) DO UPDATE SET
                balance = excluded.balance,
                approved_count = excluded.approved_count,
                updated_at = excluded.updated_at
            """,
            (customer_id, to_db(balance), approved_count, to_iso(now_utc())),
        )

    # -------------------------------------------------------------------------
    # 읽기
    # -------------------------------------------------------------------------

    async def get_balance(self, customer_id: str) -> Decimal:
        """고객 잔액 조회

        Projection 행이 없으면 원장에서 계산한 값을 반환.
        """
        row = await self.db.fetchone(
            "SELECT balance FROM customer_balance WHERE customer_id = ?",
            (customer_id,),
        )
        if row is not None:
            return from_db(row[0])
        return await self.compute_balance(customer_id)

    async def compute_balance(self, customer_id: str) -> Decimal:
        """원장에서 직접 계산 (Projection 미사용)"""
        rows = await self.db.fetchall(
            """
            SELECT type, amount FROM ledger_transaction
            WHERE customer_id = ? AND status = 'approved'
            """,
            (customer_id,),
        )
        return sum_approved(rows)

    async def get_outstanding_total(self, customer_ids: Iterable[str] | None = None) -> Decimal:
        """미수금 합계 (양수 잔액만 합산, 선불 크레딧 제외)

        get_balance와 같이 Projection 행이 없는 고객은 원장에서 계산.

        Args:
            customer_ids: 대상 고객 (None이면 전체)
        """
        rows = await self.db.fetchall(
            """
            SELECT c.id, cb.balance FROM customer c
            LEFT JOIN customer_balance cb ON cb.customer_id = c.id
            """
        )

        wanted = set(customer_ids) if customer_ids is not None else None
        total = Money.ZERO
        for customer_id, balance in rows:
            if wanted is not None and customer_id not in wanted:
                continue
            if balance is None:
                value = await self.compute_balance(customer_id)
            else:
                value = from_db(balance)
            if value > 0:
                total += value
        return total

    # -------------------------------------------------------------------------
    # 정합성 복구
    # -------------------------------------------------------------------------

    async def reconcile(self) -> list[BalanceDrift]:
        """전체 고객 잔액 재계산 및 drift 복구

        원장(승인 거래)이 기준. Projection 값이 다르거나 행이 없으면 덮어씀.

        Returns:
            발견된 drift 목록 (복구 완료)
        """
        drifts: list[BalanceDrift] = []

        async with self.db.transaction() as conn:
            cursor = await conn.execute(
                """
                SELECT c.id, b.balance
                FROM customer c
                LEFT JOIN customer_balance b ON b.customer_id = c.id
                """
            )
            stored_rows = await cursor.fetchall()
            await cursor.close()

            cursor = await conn.execute(
                """
                SELECT customer_id, type, amount FROM ledger_transaction
                WHERE status = 'approved'
                """
            )
            approved_rows = await cursor.fetchall()
            await cursor.close()

            by_customer: dict[str, list[tuple[str, str]]] = defaultdict(list)
            for customer_id, type_value, amount in approved_rows:
                by_customer[customer_id].append((type_value, amount))

            for customer_id, stored_value in stored_rows:
                rows = by_customer.get(customer_id, [])
                computed = sum_approved(rows)
                stored = from_db(stored_value) if stored_value is not None else None

                if stored == computed:
                    continue

                drifts.append(
                    BalanceDrift(customer_id=customer_id, stored=stored, computed=computed)
                )
                await self._write_balance(conn, customer_id, computed, len(rows))

        if drifts:
            logger.warning(
                f"Balance drift 복구: {len(drifts)}건",
                extra={"customers": [d.customer_id for d in drifts]},
            )
        else:
            logger.info("Balance reconcile: drift 없음")

        return drifts
