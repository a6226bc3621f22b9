"""
Ledger 타입 테스트
"""

from decimal import Decimal

from core.ledger.types import EDITABLE_FIELDS, TransactionStatus, TransactionType


class TestTransactionType:
    """TransactionType 테스트"""

    def test_values(self) -> None:
        assert TransactionType.DEBIT.value == "debit"
        assert TransactionType.PAYMENT.value == "payment"

    def test_sign(self) -> None:
        """외상은 잔액 증가, 상환은 감소"""
        assert TransactionType.DEBIT.sign == Decimal("1")
        assert TransactionType.PAYMENT.sign == Decimal("-1")


class TestTransactionStatus:
    """TransactionStatus 테스트"""

    def test_terminal(self) -> None:
        assert TransactionStatus.PENDING.is_terminal is False
        assert TransactionStatus.APPROVED.is_terminal is True
        assert TransactionStatus.REJECTED.is_terminal is True


class TestEditableFields:
    """수정 가능 필드 테스트"""

    def test_fields(self) -> None:
        assert EDITABLE_FIELDS == {"description", "notes", "payment_method", "amount", "type"}

    def test_status_not_editable(self) -> None:
        assert "status" not in EDITABLE_FIELDS
        assert "customer_id" not in EDITABLE_FIELDS
