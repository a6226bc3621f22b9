"""
Ledger Service

외상 장부 진입점.
권한 검사 → 입력 검증 → 저장 (단일 트랜잭션) → 커밋 후 감사 로그 기록.

감사 로그 기록은 커밋 이후에 수행하므로 기록 실패가 업무 변경을
되돌리지 않음 (AuditRecorder가 실패를 로그/카운트/알림으로 처리).
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.audit.types import AuditAction
from core.domain.models import Customer, CustomerSummary, Transaction
from core.domain.permissions import Operation, authorize
from core.errors import (
    AlreadyProcessedError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from core.ledger.approval import ApprovalService
from core.ledger.balance import BalanceAggregator, BalanceDrift
from core.ledger.store import LedgerStore, TransactionFilter
from core.ledger.types import EDITABLE_FIELDS, TransactionStatus, TransactionType
from core.types import Actor, TargetType
from core.utils.money import parse_amount
from core.utils.timezone import now_utc

if TYPE_CHECKING:
    import aiosqlite

    from adapters.db.sqlite_adapter import SQLiteAdapter
    from core.audit.recorder import AuditRecorder

logger = logging.getLogger(__name__)


def _required_text(value: Any, field_name: str) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError(f"{field_name} is required")
    return text


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"Expected text, got {type(value).__name__}")
    return value.strip() or None


def _parse_type(value: TransactionType | str) -> TransactionType:
    if isinstance(value, TransactionType):
        return value
    try:
        return TransactionType(str(value).strip().lower())
    except ValueError as e:
        valid = ", ".join(t.value for t in TransactionType)
        raise ValidationError(f"Invalid transaction type: {value!r} (valid: {valid})") from e


class LedgerService:
    """외상 장부 서비스

    Args:
        db: SQLite 어댑터
        store: Ledger 저장소
        balances: 잔액 Aggregator
        approval: 승인 서비스
        recorder: 감사 로그 기록기

    사용 예시:
    ```python
    ledger = LedgerService.build(db, recorder)

    ada = await ledger.create_customer(staff, "Ada")
    txn = await ledger.create_transaction(staff, ada.id, "debit", "100", "Groceries")
    await ledger.approve_transaction(txn.id, manager)
    await ledger.get_balance(ada.id)  # Decimal("100.00")
    ```
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        store: LedgerStore,
        balances: BalanceAggregator,
        approval: ApprovalService,
        recorder: AuditRecorder,
    ):
        self.db = db
        self.store = store
        self.balances = balances
        self.approval = approval
        self.recorder = recorder

    @classmethod
    def build(cls, db: SQLiteAdapter, recorder: AuditRecorder) -> LedgerService:
        """기본 구성으로 생성"""
        store = LedgerStore(db)
        balances = BalanceAggregator(db)
        approval = ApprovalService(db, store, balances)
        return cls(db, store, balances, approval, recorder)

    # =========================================================================
    # 고객
    # =========================================================================

    async def create_customer(
        self,
        actor: Actor,
        name: str,
        email: str | None = None,
        phone: str | None = None,
        address: str | None = None,
    ) -> Customer:
        """고객 생성

        Raises:
            AuthorizationError: 권한 없음
            ValidationError: 이름이 비어 있음
            DuplicateCustomerError: 같은 이름의 활성 고객 존재
        """
        authorize(actor, Operation.CREATE_CUSTOMER)
        customer = self._new_customer(actor, name, email, phone, address)

        async with self.db.transaction() as conn:
            await self.store.insert_customer(conn, customer)

        logger.info(
            "고객 생성",
            extra={"customer_id": customer.id, "actor_id": actor.id},
        )
        await self._audit_customer_created(actor, customer)
        return customer

    async def get_customer(self, customer_id: str) -> Customer:
        customer = await self.store.get_customer(customer_id)
        if customer is None:
            raise NotFoundError(f"Customer not found: {customer_id}")
        return customer

    async def get_customer_summary(self, customer_id: str) -> CustomerSummary:
        summary = await self.store.get_customer_summary(customer_id)
        if summary is None:
            raise NotFoundError(f"Customer not found: {customer_id}")
        return summary

    async def list_customers(
        self,
        search: str | None = None,
        include_inactive: bool = False,
    ) -> list[CustomerSummary]:
        return await self.store.list_customer_summaries(search, include_inactive)

    async def deactivate_customer(self, customer_id: str, actor: Actor) -> Customer:
        """고객 비활성화

        비활성 고객은 새 거래를 받을 수 없고, 이름은 새 활성 고객이 사용할 수 있음.

        Raises:
            AuthorizationError: manager/admin이 아님
            NotFoundError: 고객 없음
            ConflictError: 이미 비활성
        """
        authorize(actor, Operation.DEACTIVATE_CUSTOMER)

        async with self.db.transaction() as conn:
            before = await self.store.get_customer(customer_id, conn)
            if before is None:
                raise NotFoundError(f"Customer not found: {customer_id}")
            if not await self.store.deactivate_customer(conn, customer_id, now_utc()):
                raise ConflictError(f"Customer {customer_id} is already inactive")
            after = await self.store.get_customer(customer_id, conn)
            assert after is not None

        logger.info("고객 비활성화", extra={"customer_id": customer_id, "actor_id": actor.id})
        await self.recorder.record(
            actor_id=actor.id,
            action=AuditAction.CUSTOMER_DEACTIVATED,
            target_type=TargetType.CUSTOMER.value,
            target_id=customer_id,
            old_values=before.snapshot(),
            new_values=after.snapshot(),
            description="Customer deactivated",
            customer_id=customer_id,
        )
        return after

    # =========================================================================
    # 거래 생성/조회
    # =========================================================================

    async def create_transaction(
        self,
        actor: Actor,
        customer_id: str,
        type: TransactionType | str,
        amount: Decimal | int | float | str,
        description: str,
        payment_method: str | None = None,
        notes: str | None = None,
    ) -> Transaction:
        """거래 생성 (PENDING, 잔액 영향 없음)

        Raises:
            AuthorizationError: 권한 없음
            ValidationError: 금액 <= 0, 설명 없음, 고객 없음/비활성
        """
        authorize(actor, Operation.CREATE_TRANSACTION)
        txn = self._new_transaction(
            actor, customer_id, type, amount, description, payment_method, notes
        )

        async with self.db.transaction() as conn:
            await self.store.insert_transaction(conn, txn)
            created = await self._require_transaction(conn, txn.id)

        logger.info(
            "거래 생성",
            extra={
                "transaction_id": created.id,
                "customer_id": created.customer_id,
                "type": created.type.value,
                "amount": str(created.amount),
                "actor_id": actor.id,
            },
        )
        await self._audit_transaction_created(actor, created)
        return created

    async def create_transaction_for_new_customer(
        self,
        actor: Actor,
        customer_name: str,
        type: TransactionType | str,
        amount: Decimal | int | float | str,
        description: str,
        payment_method: str | None = None,
        notes: str | None = None,
        email: str | None = None,
        phone: str | None = None,
        address: str | None = None,
    ) -> tuple[Customer, Transaction]:
        """새 고객과 첫 거래를 한 번에 생성

        두 저장은 같은 DB 트랜잭션 (거래 저장 실패 시 고객도 생성되지 않음).
        감사 로그는 고객/거래 각각 1건.

        Raises:
            AuthorizationError: 권한 없음
            ValidationError: 입력 오류
            DuplicateCustomerError: 같은 이름의 활성 고객 존재
        """
        authorize(actor, Operation.CREATE_CUSTOMER)
        authorize(actor, Operation.CREATE_TRANSACTION)

        customer = self._new_customer(actor, customer_name, email, phone, address)
        txn = self._new_transaction(
            actor, customer.id, type, amount, description, payment_method, notes
        )

        async with self.db.transaction() as conn:
            await self.store.insert_customer(conn, customer)
            await self.store.insert_transaction(conn, txn)
            created = await self._require_transaction(conn, txn.id)

        logger.info(
            "고객 + 거래 생성",
            extra={"customer_id": customer.id, "transaction_id": created.id, "actor_id": actor.id},
        )
        await self._audit_customer_created(actor, customer)
        await self._audit_transaction_created(actor, created)
        return customer, created

    async def get_transaction(self, transaction_id: str) -> Transaction:
        txn = await self.store.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        return txn

    async def list_transactions(self, filters: TransactionFilter | None = None) -> list[Transaction]:
        return await self.store.list_transactions(filters)

    async def count_pending(self) -> int:
        """승인 대기 건수"""
        return await self.store.count_pending()

    # =========================================================================
    # 수정/삭제 (PENDING만)
    # =========================================================================

    async def edit_transaction(
        self,
        transaction_id: str,
        fields: dict[str, Any],
        actor: Actor,
    ) -> Transaction:
        """PENDING 거래 수정

        Args:
            fields: 변경할 필드 (description, notes, payment_method, amount, type)

        Raises:
            AuthorizationError: 권한 없음
            ValidationError: 알 수 없는 필드, 빈 설명, 금액 <= 0, 변경 없음
            NotFoundError: 거래 없음
            AlreadyProcessedError: PENDING이 아님
        """
        authorize(actor, Operation.EDIT_TRANSACTION)
        changes = self._validate_changes(fields)

        async with self.db.transaction() as conn:
            before = await self.store.get_transaction(transaction_id, conn)
            if not await self.store.update_pending(conn, transaction_id, changes, now_utc()):
                await self._raise_not_pending(conn, transaction_id, before)
            after = await self._require_transaction(conn, transaction_id)

        assert before is not None
        logger.info(
            "거래 수정",
            extra={
                "transaction_id": transaction_id,
                "fields": sorted(changes),
                "actor_id": actor.id,
            },
        )
        await self.recorder.record(
            actor_id=actor.id,
            action=AuditAction.TRANSACTION_UPDATED,
            target_type=TargetType.TRANSACTION.value,
            target_id=transaction_id,
            old_values=before.snapshot(),
            new_values=after.snapshot(),
            metadata={"changed_fields": sorted(changes)},
            description=f"Transaction updated: {', '.join(sorted(changes))}",
            customer_id=after.customer_id,
        )
        return after

    async def delete_transaction(self, transaction_id: str, actor: Actor) -> None:
        """PENDING 거래 삭제 (admin 전용)

        PENDING 거래는 잔액에 반영된 적이 없으므로 잔액 조정 없음.

        Raises:
            AuthorizationError: admin이 아님
            NotFoundError: 거래 없음
            AlreadyProcessedError: PENDING이 아님
        """
        authorize(actor, Operation.DELETE_TRANSACTION)

        async with self.db.transaction() as conn:
            before = await self.store.get_transaction(transaction_id, conn)
            if not await self.store.delete_pending(conn, transaction_id):
                await self._raise_not_pending(conn, transaction_id, before)

        assert before is not None
        logger.info(
            "거래 삭제",
            extra={"transaction_id": transaction_id, "actor_id": actor.id},
        )
        await self.recorder.record(
            actor_id=actor.id,
            action=AuditAction.TRANSACTION_DELETED,
            target_type=TargetType.TRANSACTION.value,
            target_id=transaction_id,
            old_values=before.snapshot(),
            description=f"Pending {before.type.value} of {before.amount} deleted",
            customer_id=before.customer_id,
        )

    # =========================================================================
    # 승인/거부
    # =========================================================================

    async def approve_transaction(self, transaction_id: str, actor: Actor) -> Transaction:
        """승인 (잔액 반영 + 감사 로그)

        Raises:
            AuthorizationError: manager/admin이 아님
            NotFoundError: 거래 없음
            AlreadyProcessedError: 이미 처리됨
        """
        result = await self.approval.approve(transaction_id, actor)
        after = result.after

        await self.recorder.record(
            actor_id=actor.id,
            action=AuditAction.TRANSACTION_APPROVED,
            target_type=TargetType.TRANSACTION.value,
            target_id=transaction_id,
            old_values=result.before.snapshot(),
            new_values=after.snapshot(),
            metadata={"balance_after": str(result.balance)} if result.balance is not None else None,
            description=f"Approved {after.type.value} of {after.amount}",
            customer_id=after.customer_id,
        )
        return after

    async def reject_transaction(
        self,
        transaction_id: str,
        actor: Actor,
        reason: str,
    ) -> Transaction:
        """거부 (잔액 영향 없음)

        Raises:
            AuthorizationError: manager/admin이 아님
            ValidationError: 사유 없음
            NotFoundError: 거래 없음
            AlreadyProcessedError: 이미 처리됨
        """
        result = await self.approval.reject(transaction_id, actor, reason)
        after = result.after

        await self.recorder.record(
            actor_id=actor.id,
            action=AuditAction.TRANSACTION_REJECTED,
            target_type=TargetType.TRANSACTION.value,
            target_id=transaction_id,
            old_values=result.before.snapshot(),
            new_values=after.snapshot(),
            metadata={"reason": after.rejection_reason},
            description=f"Rejected {after.type.value} of {after.amount}",
            customer_id=after.customer_id,
        )
        return after

    # =========================================================================
    # 잔액
    # =========================================================================

    async def get_balance(self, customer_id: str) -> Decimal:
        """고객 잔액 (승인된 거래만)

        Raises:
            NotFoundError: 고객 없음
        """
        await self.get_customer(customer_id)
        return await self.balances.get_balance(customer_id)

    async def get_outstanding_total(self, customer_ids: Iterable[str] | None = None) -> Decimal:
        """미수금 합계 (양수 잔액만)"""
        return await self.balances.get_outstanding_total(customer_ids)

    async def reconcile_balances(self, actor: Actor) -> list[BalanceDrift]:
        """잔액 재계산 및 drift 복구 (admin 전용)"""
        authorize(actor, Operation.RECONCILE_BALANCES)
        drifts = await self.balances.reconcile()

        await self.recorder.record(
            actor_id=actor.id,
            action=AuditAction.BALANCE_RECONCILED,
            target_type=TargetType.SYSTEM.value,
            target_id=None,
            metadata={
                "drift_count": len(drifts),
                "drifts": [d.to_dict() for d in drifts],
            },
            description=f"Balances reconciled ({len(drifts)} repaired)",
        )
        return drifts

    # =========================================================================
    # 내부
    # =========================================================================

    def _new_customer(
        self,
        actor: Actor,
        name: str,
        email: str | None,
        phone: str | None,
        address: str | None,
    ) -> Customer:
        return Customer(
            id=str(uuid.uuid4()),
            name=_required_text(name, "Customer name"),
            email=_optional_text(email),
            phone=_optional_text(phone),
            address=_optional_text(address),
            is_active=True,
            created_by=actor.id,
            created_at=now_utc(),
        )

    def _new_transaction(
        self,
        actor: Actor,
        customer_id: str,
        type: TransactionType | str,
        amount: Decimal | int | float | str,
        description: str,
        payment_method: str | None,
        notes: str | None,
    ) -> Transaction:
        if not customer_id:
            raise ValidationError("customer_id is required")

        now = now_utc()
        return Transaction(
            id=str(uuid.uuid4()),
            customer_id=customer_id,
            type=_parse_type(type),
            amount=parse_amount(amount),
            description=_required_text(description, "Description"),
            status=TransactionStatus.PENDING,
            payment_method=_optional_text(payment_method),
            notes=_optional_text(notes),
            rejection_reason=None,
            created_by=actor.id,
            created_at=now,
            approved_by=None,
            approved_at=None,
            updated_at=now,
        )

    def _validate_changes(self, fields: dict[str, Any]) -> dict[str, Any]:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Fields not editable: {', '.join(sorted(unknown))} "
                f"(editable: {', '.join(sorted(EDITABLE_FIELDS))})"
            )
        if not fields:
            raise ValidationError("No fields to update")

        changes: dict[str, Any] = {}
        for name, value in fields.items():
            if name == "description":
                changes[name] = _required_text(value, "Description")
            elif name == "amount":
                changes[name] = parse_amount(value)
            elif name == "type":
                changes[name] = _parse_type(value)
            else:
                changes[name] = _optional_text(value)
        return changes

    async def _require_transaction(
        self,
        conn: aiosqlite.Connection,
        transaction_id: str,
    ) -> Transaction:
        txn = await self.store.get_transaction(transaction_id, conn)
        if txn is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        return txn

    async def _raise_not_pending(
        self,
        conn: aiosqlite.Connection,
        transaction_id: str,
        before: Transaction | None,
    ) -> None:
        """조건부 UPDATE/DELETE 실패 원인 판정"""
        if before is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        current = await self.store.get_status(conn, transaction_id)
        raise AlreadyProcessedError(transaction_id, current.value if current else None)

    async def _audit_customer_created(self, actor: Actor, customer: Customer) -> None:
        await self.recorder.record(
            actor_id=actor.id,
            action=AuditAction.CUSTOMER_CREATED,
            target_type=TargetType.CUSTOMER.value,
            target_id=customer.id,
            new_values=customer.snapshot(),
            description="Customer created",
            customer_id=customer.id,
        )

    async def _audit_transaction_created(self, actor: Actor, txn: Transaction) -> None:
        await self.recorder.record(
            actor_id=actor.id,
            action=AuditAction.TRANSACTION_CREATED,
            target_type=TargetType.TRANSACTION.value,
            target_id=txn.id,
            new_values=txn.snapshot(),
            description=f"Pending {txn.type.value} of {txn.amount} created",
            customer_id=txn.customer_id,
        )
