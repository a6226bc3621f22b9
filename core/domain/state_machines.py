"""
State Machines

외상 거래 상태 전이 규칙.
DB 반영은 LedgerStore의 조건부 UPDATE (WHERE status='pending')가 담당하고,
여기서는 규칙 자체를 한 곳에 정의.

전이:
- pending → approved
- pending → rejected
approved / rejected 에서는 어떤 전이도 없음.
"""

import logging

from core.ledger.types import TransactionStatus

logger = logging.getLogger(__name__)


class StateMachineError(Exception):
    """허용되지 않은 상태 전이"""
    pass


TRANSACTION_TRANSITIONS: dict[TransactionStatus, frozenset[TransactionStatus]] = {
    TransactionStatus.PENDING: frozenset({TransactionStatus.APPROVED, TransactionStatus.REJECTED}),
    TransactionStatus.APPROVED: frozenset(),
    TransactionStatus.REJECTED: frozenset(),
}


class TransactionStateMachine:
    """거래 1건의 상태

    Args:
        status: 현재 상태 (기본 PENDING)
    """

    def __init__(self, status: TransactionStatus | str = TransactionStatus.PENDING):
        self.status = TransactionStatus(status)

    def allowed_targets(self) -> frozenset[TransactionStatus]:
        return TRANSACTION_TRANSITIONS[self.status]

    def can_transition(self, target: TransactionStatus | str) -> bool:
        return TransactionStatus(target) in self.allowed_targets()

    def transition(self, target: TransactionStatus | str) -> TransactionStatus:
        """상태 전이

        Raises:
            StateMachineError: 종료 상태에서의 전이, pending → pending
        """
        target = TransactionStatus(target)
        if not self.can_transition(target):
            raise StateMachineError(
                f"Cannot transition transaction from {self.status.value} to {target.value}"
            )

        logger.debug(f"Transaction: {self.status.value} → {target.value}")
        self.status = target
        return target
