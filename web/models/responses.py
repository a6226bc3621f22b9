"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화.
금액은 정밀도 유지를 위해 문자열로 전달.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from core.domain.models import (
    AppUser,
    AuditLogEntry,
    AuditPage,
    Customer,
    CustomerSummary,
    Transaction,
)
from core.ledger.balance import BalanceDrift


class ErrorResponse(BaseModel):
    """에러 응답"""

    error: str = Field(..., description="에러 코드 (already_processed, validation_error 등)")
    message: str = Field(..., description="사용자 표시용 메시지")


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    mode: str = Field(..., description="실행 모드 (development/production)")
    version: str = Field(..., description="버전")
    timestamp: datetime = Field(..., description="응답 시간 (UTC)")
    audit: dict[str, Any] = Field(..., description="감사 로그 기록 통계 (recorded/failed)")


class CustomerResponse(BaseModel):
    """고객 응답"""

    id: str
    name: str
    email: str | None
    phone: str | None
    address: str | None
    is_active: bool
    created_by: str
    created_at: datetime

    @classmethod
    def from_domain(cls, customer: Customer) -> "CustomerResponse":
        return cls(
            id=customer.id,
            name=customer.name,
            email=customer.email,
            phone=customer.phone,
            address=customer.address,
            is_active=customer.is_active,
            created_by=customer.created_by,
            created_at=customer.created_at,
        )


class CustomerSummaryResponse(CustomerResponse):
    """고객 요약 응답 (잔액/거래 집계 포함)"""

    current_balance: str = Field(..., description="승인된 거래 기준 잔액")
    balance_label: str = Field(..., description="Owes / Credit / Settled")
    total_transactions: int
    pending_transactions: int
    last_transaction_date: datetime | None

    @classmethod
    def from_summary(cls, summary: CustomerSummary) -> "CustomerSummaryResponse":
        base = CustomerResponse.from_domain(summary.customer).model_dump()
        return cls(
            **base,
            current_balance=str(summary.current_balance),
            balance_label=summary.balance_label,
            total_transactions=summary.total_transactions,
            pending_transactions=summary.pending_transactions,
            last_transaction_date=summary.last_transaction_date,
        )


class CustomerListResponse(BaseModel):
    """고객 목록 응답"""

    customers: list[CustomerSummaryResponse]
    total_count: int


class TransactionResponse(BaseModel):
    """거래 응답"""

    id: str
    customer_id: str
    customer_name: str | None
    type: str
    amount: str
    description: str
    status: str
    payment_method: str | None
    notes: str | None
    rejection_reason: str | None
    created_by: str
    created_by_name: str | None
    created_at: datetime
    approved_by: str | None
    approved_by_name: str | None
    approved_at: datetime | None
    updated_at: datetime

    @classmethod
    def from_domain(cls, txn: Transaction) -> "TransactionResponse":
        return cls(
            id=txn.id,
            customer_id=txn.customer_id,
            customer_name=txn.customer_name,
            type=txn.type.value,
            amount=str(txn.amount),
            description=txn.description,
            status=txn.status.value,
            payment_method=txn.payment_method,
            notes=txn.notes,
            rejection_reason=txn.rejection_reason,
            created_by=txn.created_by,
            created_by_name=txn.created_by_name,
            created_at=txn.created_at,
            approved_by=txn.approved_by,
            approved_by_name=txn.approved_by_name,
            approved_at=txn.approved_at,
            updated_at=txn.updated_at,
        )


class TransactionCreatedResponse(BaseModel):
    """거래 생성 응답 (새 고객을 함께 만든 경우 customer 포함)"""

    transaction: TransactionResponse
    customer: CustomerResponse | None = None


class TransactionListResponse(BaseModel):
    """거래 목록 응답"""

    transactions: list[TransactionResponse]
    pending_count: int
    limit: int
    offset: int


class BalanceResponse(BaseModel):
    """고객 잔액 응답"""

    customer_id: str
    balance: str


class OutstandingResponse(BaseModel):
    """미수금 합계 응답"""

    outstanding_total: str = Field(..., description="양수 잔액 합계")
    pending_count: int = Field(..., description="승인 대기 거래 수")


class DriftResponse(BaseModel):
    """잔액 drift 항목"""

    customer_id: str
    stored: str | None
    computed: str
    difference: str

    @classmethod
    def from_drift(cls, drift: BalanceDrift) -> "DriftResponse":
        return cls(**drift.to_dict())


class ReconcileResponse(BaseModel):
    """잔액 재계산 응답"""

    repaired: int
    drifts: list[DriftResponse]


class AuditLogEntryResponse(BaseModel):
    """감사 로그 항목 응답"""

    id: str
    seq: int
    log_type: str
    actor_id: str
    actor_name: str | None
    actor_email: str | None
    actor_role: str | None
    action: str
    target_type: str
    target_id: str | None
    customer_id: str | None
    customer_name: str | None
    description: str
    old_values: dict[str, Any] | None
    new_values: dict[str, Any] | None
    metadata: dict[str, Any]
    timestamp: datetime

    @classmethod
    def from_domain(cls, entry: AuditLogEntry) -> "AuditLogEntryResponse":
        return cls(
            id=entry.id,
            seq=entry.seq,
            log_type=entry.log_type.value,
            actor_id=entry.actor_id,
            actor_name=entry.actor_name,
            actor_email=entry.actor_email,
            actor_role=entry.actor_role,
            action=entry.action.value,
            target_type=entry.target_type,
            target_id=entry.target_id,
            customer_id=entry.customer_id,
            customer_name=entry.customer_name,
            description=entry.description,
            old_values=entry.old_values,
            new_values=entry.new_values,
            metadata=entry.metadata,
            timestamp=entry.timestamp,
        )


class AuditPageResponse(BaseModel):
    """감사 로그 페이지 응답"""

    entries: list[AuditLogEntryResponse]
    next_cursor: str | None
    has_more: bool

    @classmethod
    def from_page(cls, page: AuditPage) -> "AuditPageResponse":
        return cls(
            entries=[AuditLogEntryResponse.from_domain(e) for e in page.entries],
            next_cursor=page.next_cursor,
            has_more=page.has_more,
        )


class UserResponse(BaseModel):
    """사용자 디렉토리 응답"""

    id: str
    full_name: str
    email: str | None
    role: str
    is_active: bool
    updated_at: datetime

    @classmethod
    def from_domain(cls, user: AppUser) -> "UserResponse":
        return cls(
            id=user.id,
            full_name=user.full_name,
            email=user.email,
            role=user.role.value,
            is_active=user.is_active,
            updated_at=user.updated_at,
        )
