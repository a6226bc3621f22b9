"""
외상 장부 도메인 모델

Customer, Transaction, AuditLogEntry 등 저장소가 반환하는 읽기 모델.
UI/HTTP 계층은 이 값을 그대로 직렬화해서 사용.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from core.audit.types import AuditAction, AuditLogType
from core.ledger.types import TransactionStatus, TransactionType
from core.types import Role
from core.utils.timezone import to_iso


@dataclass
class Customer:
    """고객

    삭제되지 않고 비활성화만 됨.
    """

    id: str
    name: str
    email: str | None
    phone: str | None
    address: str | None
    is_active: bool
    created_by: str
    created_at: datetime

    def snapshot(self) -> dict[str, Any]:
        """감사 로그용 스냅샷"""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "is_active": self.is_active,
            "created_by": self.created_by,
            "created_at": to_iso(self.created_at),
        }


@dataclass
class CustomerSummary:
    """고객 요약 (잔액/거래 집계 포함)"""

    customer: Customer
    current_balance: Decimal
    total_transactions: int
    pending_transactions: int
    last_transaction_date: datetime | None

    @property
    def balance_label(self) -> str:
        """Owes / Credit / Settled"""
        if self.current_balance > 0:
            return "Owes"
        if self.current_balance < 0:
            return "Credit"
        return "Settled"


@dataclass
class Transaction:
    """외상/상환 거래

    불변식:
    - amount > 0
    - rejection_reason은 status == REJECTED일 때만 존재
    - approved_by/approved_at은 종료 상태 전이 시 설정 (거부자 포함)
    """

    id: str
    customer_id: str
    type: TransactionType
    amount: Decimal
    description: str
    status: TransactionStatus
    payment_method: str | None
    notes: str | None
    rejection_reason: str | None
    created_by: str
    created_at: datetime
    approved_by: str | None
    approved_at: datetime | None
    updated_at: datetime

    # 조회 시점 조인 결과 (저장되지 않음)
    customer_name: str | None = None
    created_by_name: str | None = None
    approved_by_name: str | None = None

    @property
    def signed_amount(self) -> Decimal:
        """잔액 기여분 (외상 +, 상환 -)"""
        return self.amount * self.type.sign

    def snapshot(self) -> dict[str, Any]:
        """감사 로그용 스냅샷 (JSON 직렬화 가능)"""
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "type": self.type.value,
            "amount": str(self.amount),
            "description": self.description,
            "status": self.status.value,
            "payment_method": self.payment_method,
            "notes": self.notes,
            "rejection_reason": self.rejection_reason,
            "created_by": self.created_by,
            "created_at": to_iso(self.created_at),
            "approved_by": self.approved_by,
            "approved_at": to_iso(self.approved_at) if self.approved_at else None,
            "updated_at": to_iso(self.updated_at),
        }


@dataclass
class AppUser:
    """사용자 디렉토리 항목 (identity provider 읽기 모델)

    감사 로그/거래 조회 시 표시 이름 조인에만 사용.
    """

    id: str
    full_name: str
    email: str | None
    role: Role
    is_active: bool
    updated_at: datetime

    def snapshot(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "full_name": self.full_name,
            "email": self.email,
            "role": self.role.value,
            "is_active": self.is_active,
        }


@dataclass
class AuditLogEntry:
    """감사 로그 항목 (append-only)

    seq는 두 스트림(ledger/system)이 공유하는 단조 증가 번호.
    (timestamp, seq)로 전체 순서가 결정됨.
    """

    id: str
    seq: int
    log_type: AuditLogType
    actor_id: str
    action: AuditAction
    target_type: str
    target_id: str | None
    description: str
    timestamp: datetime
    customer_id: str | None = None
    old_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    # 조회 시점 조인 결과
    actor_name: str | None = None
    actor_email: str | None = None
    actor_role: str | None = None
    customer_name: str | None = None


@dataclass
class AuditPage:
    """감사 로그 페이지"""

    entries: list[AuditLogEntry]
    next_cursor: str | None

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None
