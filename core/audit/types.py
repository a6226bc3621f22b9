"""
감사 로그 타입 정의

AuditAction은 반드시 하나의 스트림(ledger/system)에 속함.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class AuditLogType(str, Enum):
    """감사 로그 스트림"""

    SYSTEM = "system"  # 사용자 관리, 로그인, 재고, 주문 등 타 도메인
    LEDGER = "ledger"  # 고객 외상 장부


class AuditAction(str, Enum):
    """감사 대상 동작"""

    # 외상 장부
    CUSTOMER_CREATED = "customer_created"
    CUSTOMER_DEACTIVATED = "customer_deactivated"
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_APPROVED = "transaction_approved"
    TRANSACTION_REJECTED = "transaction_rejected"
    TRANSACTION_DELETED = "transaction_deleted"
    BALANCE_RECONCILED = "balance_reconciled"

    # 사용자 관리
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_ROLE_CHANGED = "user_role_changed"
    USER_STATUS_CHANGED = "user_status_changed"

    # 시스템
    LOGIN = "login"
    LOGOUT = "logout"
    SYSTEM_SETTINGS_CHANGED = "system_settings_changed"

    # 주문/재고/지출 (외부 도메인에서 기록)
    ORDER_CREATED = "order_created"
    ORDER_CONFIRMED = "order_confirmed"
    ORDER_CANCELLED = "order_cancelled"
    PRODUCT_ADDED = "product_added"
    PRODUCT_UPDATED = "product_updated"
    PRODUCT_DELETED = "product_deleted"
    STOCK_ADJUSTED = "stock_adjusted"
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"

    @property
    def log_type(self) -> AuditLogType:
        """이 동작이 기록되는 스트림"""
        return ACTION_LOG_TYPES[self]


ACTION_LOG_TYPES: dict[AuditAction, AuditLogType] = {
    AuditAction.CUSTOMER_CREATED: AuditLogType.LEDGER,
    AuditAction.CUSTOMER_DEACTIVATED: AuditLogType.LEDGER,
    AuditAction.TRANSACTION_CREATED: AuditLogType.LEDGER,
    AuditAction.TRANSACTION_UPDATED: AuditLogType.LEDGER,
    AuditAction.TRANSACTION_APPROVED: AuditLogType.LEDGER,
    AuditAction.TRANSACTION_REJECTED: AuditLogType.LEDGER,
    AuditAction.TRANSACTION_DELETED: AuditLogType.LEDGER,
    AuditAction.BALANCE_RECONCILED: AuditLogType.LEDGER,
    AuditAction.USER_CREATED: AuditLogType.SYSTEM,
    AuditAction.USER_UPDATED: AuditLogType.SYSTEM,
    AuditAction.USER_ROLE_CHANGED: AuditLogType.SYSTEM,
    AuditAction.USER_STATUS_CHANGED: AuditLogType.SYSTEM,
    AuditAction.LOGIN: AuditLogType.SYSTEM,
    AuditAction.LOGOUT: AuditLogType.SYSTEM,
    AuditAction.SYSTEM_SETTINGS_CHANGED: AuditLogType.SYSTEM,
    AuditAction.ORDER_CREATED: AuditLogType.SYSTEM,
    AuditAction.ORDER_CONFIRMED: AuditLogType.SYSTEM,
    AuditAction.ORDER_CANCELLED: AuditLogType.SYSTEM,
    AuditAction.PRODUCT_ADDED: AuditLogType.SYSTEM,
    AuditAction.PRODUCT_UPDATED: AuditLogType.SYSTEM,
    AuditAction.PRODUCT_DELETED: AuditLogType.SYSTEM,
    AuditAction.STOCK_ADJUSTED: AuditLogType.SYSTEM,
    AuditAction.EXPENSE_ADDED: AuditLogType.SYSTEM,
    AuditAction.EXPENSE_UPDATED: AuditLogType.SYSTEM,
    AuditAction.EXPENSE_DELETED: AuditLogType.SYSTEM,
}


@dataclass(frozen=True)
class AuditFilter:
    """감사 로그 검색 조건

    모든 조건은 AND로 결합. free_text는 동작/설명/대상 종류/
    행위자 이름/고객 이름에 대해 대소문자 무시 부분 일치.
    """

    actor_id: str | None = None
    action: AuditAction | None = None
    target_type: str | None = None
    target_id: str | None = None
    log_type: AuditLogType | None = None
    start: datetime | None = None
    end: datetime | None = None
    free_text: str | None = None
