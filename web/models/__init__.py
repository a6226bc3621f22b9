"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    CustomerCreateRequest,
    RejectRequest,
    TransactionCreateRequest,
    TransactionUpdateRequest,
    UserUpsertRequest,
)
from web.models.responses import (
    AuditLogEntryResponse,
    AuditPageResponse,
    BalanceResponse,
    CustomerListResponse,
    CustomerResponse,
    CustomerSummaryResponse,
    DriftResponse,
    ErrorResponse,
    HealthResponse,
    OutstandingResponse,
    ReconcileResponse,
    TransactionCreatedResponse,
    TransactionListResponse,
    TransactionResponse,
    UserResponse,
)

__all__ = [
    # Requests
    "CustomerCreateRequest",
    "TransactionCreateRequest",
    "TransactionUpdateRequest",
    "RejectRequest",
    "UserUpsertRequest",
    # Responses
    "ErrorResponse",
    "HealthResponse",
    "CustomerResponse",
    "CustomerSummaryResponse",
    "CustomerListResponse",
    "TransactionResponse",
    "TransactionCreatedResponse",
    "TransactionListResponse",
    "BalanceResponse",
    "OutstandingResponse",
    "DriftResponse",
    "ReconcileResponse",
    "AuditLogEntryResponse",
    "AuditPageResponse",
    "UserResponse",
]
