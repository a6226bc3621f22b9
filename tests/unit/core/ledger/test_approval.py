"""
ApprovalService 테스트

PENDING에서 한 번만 종료 상태로 전이, 잔액은 같은 트랜잭션에서 반영.
"""

import asyncio
from decimal import Decimal

import pytest

from core.errors import AlreadyProcessedError, AuthorizationError, NotFoundError, ValidationError
from core.ledger.service import LedgerService
from core.ledger.types import TransactionStatus
from core.types import Actor


@pytest.fixture
def approval(ledger: LedgerService):
    return ledger.approval


async def _pending(ledger: LedgerService, staff: Actor, amount: str = "100") -> str:
    customer = await ledger.create_customer(staff, "Ada")
    txn = await ledger.create_transaction(staff, customer.id, "debit", amount, "Groceries")
    return txn.id


class TestApprove:
    """승인 테스트"""

    @pytest.mark.asyncio
    async def test_approve(self, ledger: LedgerService, approval, staff: Actor, manager: Actor) -> None:
        txn_id = await _pending(ledger, staff)

        result = await approval.approve(txn_id, manager)

        assert result.before.status == TransactionStatus.PENDING
        assert result.after.status == TransactionStatus.APPROVED
        assert result.after.approved_by == manager.id
        assert result.after.approved_at is not None
        assert result.balance == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_staff_cannot_approve(
        self, ledger: LedgerService, approval, staff: Actor
    ) -> None:
        txn_id = await _pending(ledger, staff)

        with pytest.raises(AuthorizationError):
            await approval.approve(txn_id, staff)

        txn = await ledger.get_transaction(txn_id)
        assert txn.status == TransactionStatus.PENDING

    @pytest.mark.asyncio
    async def test_unknown_transaction(self, approval, manager: Actor) -> None:
        with pytest.raises(NotFoundError):
            await approval.approve("missing", manager)

    @pytest.mark.asyncio
    async def test_second_approval_already_processed(
        self, ledger: LedgerService, approval, staff: Actor, manager: Actor, admin: Actor
    ) -> None:
        txn_id = await _pending(ledger, staff)
        await approval.approve(txn_id, manager)

        with pytest.raises(AlreadyProcessedError) as exc_info:
            await approval.approve(txn_id, admin)

        assert exc_info.value.current_status == "approved"
        # 잔액은 한 번만 반영
        txn = await ledger.get_transaction(txn_id)
        assert await ledger.get_balance(txn.customer_id) == Decimal("100.00")


class TestReject:
    """거부 테스트"""

    @pytest.mark.asyncio
    async def test_reject(self, ledger: LedgerService, approval, staff: Actor, manager: Actor) -> None:
        txn_id = await _pending(ledger, staff)

        result = await approval.reject(txn_id, manager, "  Wrong customer  ")

        assert result.after.status == TransactionStatus.REJECTED
        assert result.after.rejection_reason == "Wrong customer"
        assert result.balance is None

    @pytest.mark.parametrize("reason", ["", "   "])
    @pytest.mark.asyncio
    async def test_reason_required(
        self, ledger: LedgerService, approval, staff: Actor, manager: Actor, reason: str
    ) -> None:
        txn_id = await _pending(ledger, staff)

        with pytest.raises(ValidationError, match="reason"):
            await approval.reject(txn_id, manager, reason)

        txn = await ledger.get_transaction(txn_id)
        assert txn.status == TransactionStatus.PENDING

    @pytest.mark.asyncio
    async def test_reject_after_approve(
        self, ledger: LedgerService, approval, staff: Actor, manager: Actor, admin: Actor
    ) -> None:
        txn_id = await _pending(ledger, staff)
        await approval.approve(txn_id, manager)

        with pytest.raises(AlreadyProcessedError):
            await approval.reject(txn_id, admin, "too late")


class TestConcurrentTransitions:
    """같은 연결에서 동시에 들어온 전이"""

    @pytest.mark.asyncio
    async def test_approve_vs_reject_single_winner(
        self, ledger: LedgerService, approval, staff: Actor, manager: Actor, admin: Actor
    ) -> None:
        txn_id = await _pending(ledger, staff)

        results = await asyncio.gather(
            approval.approve(txn_id, manager),
            approval.reject(txn_id, admin, "duplicate"),
            return_exceptions=True,
        )

        winners = [r for r in results if not isinstance(r, Exception)]
        losers = [r for r in results if isinstance(r, AlreadyProcessedError)]
        assert len(winners) == 1
        assert len(losers) == 1

        txn = await ledger.get_transaction(txn_id)
        assert txn.status == winners[0].after.status
