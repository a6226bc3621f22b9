"""
Ledger 타입 정의

거래 유형/상태 등 외상 장부에서 사용하는 Enum 정의
"""

from decimal import Decimal
from enum import Enum


class TransactionType(str, Enum):
    """거래 유형

    str을 상속하여 JSON 직렬화 가능.
    """

    DEBIT = "debit"  # 외상 (고객 미수금 증가)
    PAYMENT = "payment"  # 상환 (고객 미수금 감소)

    @property
    def sign(self) -> Decimal:
        """잔액에 반영되는 부호"""
        return _SIGNS[self]


class TransactionStatus(str, Enum):
    """거래 상태

    전이 규칙:
    - PENDING → APPROVED: 승인
    - PENDING → REJECTED: 거부 (사유 필수)
    APPROVED/REJECTED는 종료 상태.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (TransactionStatus.APPROVED, TransactionStatus.REJECTED)


_SIGNS: dict[TransactionType, Decimal] = {
    TransactionType.DEBIT: Decimal("1"),
    TransactionType.PAYMENT: Decimal("-1"),
}


# PENDING 상태에서만 수정 가능한 필드
EDITABLE_FIELDS: frozenset[str] = frozenset({
    "description",
    "notes",
    "payment_method",
    "amount",
    "type",
})
