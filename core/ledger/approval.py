"""
Approval

외상 거래 승인/거부.

전이는 단일 조건부 UPDATE (WHERE status = 'pending')로만 수행.
동시에 approve/reject가 들어와도 rowcount == 1인 쪽만 성공하고
나머지는 AlreadyProcessedError를 받음.
잔액 반영은 같은 BEGIN IMMEDIATE 트랜잭션 안에서 수행.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from core.domain.models import Transaction
from core.domain.permissions import Operation, authorize
from core.domain.state_machines import TransactionStateMachine
from core.errors import AlreadyProcessedError, NotFoundError, ValidationError
from core.ledger.types import TransactionStatus
from core.types import Actor
from core.utils.timezone import now_utc

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter
    from core.ledger.balance import BalanceAggregator
    from core.ledger.store import LedgerStore

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    """전이 결과 (감사 로그용 전/후 스냅샷 포함)"""

    before: Transaction
    after: Transaction
    balance: Decimal | None  # APPROVED일 때 새 잔액


class ApprovalService:
    """승인 상태 머신 실행기

    Args:
        db: SQLite 어댑터
        store: Ledger 저장소
        balances: 잔액 Aggregator

    사용 예시:
    ```python
    approval = ApprovalService(db, store, balances)

    try:
        result = await approval.approve(txn_id, manager)
    except AlreadyProcessedError:
        # 다른 승인자가 이미 처리함
        ...
    ```
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        store: LedgerStore,
        balances: BalanceAggregator,
    ):
        self.db = db
        self.store = store
        self.balances = balances

    async def approve(self, transaction_id: str, actor: Actor) -> TransitionResult:
        """승인

        Raises:
            AuthorizationError: manager/admin이 아님
            NotFoundError: 거래 없음
            AlreadyProcessedError: PENDING이 아님 (동시 승인 경합 패배 포함)
        """
        authorize(actor, Operation.APPROVE_TRANSACTION)
        return await self._transition(transaction_id, actor, TransactionStatus.APPROVED)

    async def reject(self, transaction_id: str, actor: Actor, reason: str) -> TransitionResult:
        """거부 (사유 필수)

        Raises:
            AuthorizationError: manager/admin이 아님
            ValidationError: 사유가 비어 있음 (거래는 PENDING 유지)
            NotFoundError: 거래 없음
            AlreadyProcessedError: PENDING이 아님
        """
        authorize(actor, Operation.REJECT_TRANSACTION)

        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Rejection reason is required")

        return await self._transition(
            transaction_id, actor, TransactionStatus.REJECTED, rejection_reason=reason
        )

    async def _transition(
        self,
        transaction_id: str,
        actor: Actor,
        to_status: TransactionStatus,
        rejection_reason: str | None = None,
    ) -> TransitionResult:
        async with self.db.transaction() as conn:
            # 감사 로그용 스냅샷 (전이 가능 여부는 아래 조건부 UPDATE가 결정)
            before = await self.store.get_transaction(transaction_id, conn)

            won = await self.store.transition_status(
                conn,
                transaction_id,
                to_status,
                actor_id=actor.id,
                now=now_utc(),
                rejection_reason=rejection_reason,
            )
            if not won:
                if before is None:
                    raise NotFoundError(f"Transaction not found: {transaction_id}")
                current = await self.store.get_status(conn, transaction_id)
                logger.info(
                    "이미 처리된 거래",
                    extra={
                        "transaction_id": transaction_id,
                        "actor_id": actor.id,
                        "requested": to_status.value,
                        "current": current.value if current else None,
                    },
                )
                raise AlreadyProcessedError(
                    transaction_id, current.value if current else None
                )

            TransactionStateMachine(before.status).transition(to_status)

            after = await self.store.get_transaction(transaction_id, conn)
            assert after is not None
            balance = await self.balances.apply_transition(conn, before, to_status)

        logger.info(
            f"Transaction {to_status.value}",
            extra={
                "transaction_id": transaction_id,
                "customer_id": before.customer_id,
                "actor_id": actor.id,
                "amount": str(before.amount),
            },
        )
        return TransitionResult(before=before, after=after, balance=balance)
