"""
Ledger 예외 계층

모든 예외는 LedgerError를 상속하고, 호출자(UI/HTTP)가 종류를
구분할 수 있도록 고정된 code 값을 가짐.
"""


class LedgerError(Exception):
    """Ledger 기본 예외"""

    code: str = "ledger_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """입력값 오류 (저장 전에 검출, 부분 적용 없음)"""

    code = "validation_error"


class ConflictError(LedgerError):
    """상태 전제조건 위반"""

    code = "conflict"


class AlreadyProcessedError(ConflictError):
    """이미 다른 승인자가 처리한 거래

    "다시 시도"가 아니라 "누군가 이미 처리함"으로 표시되어야 함.
    """

    code = "already_processed"

    def __init__(self, transaction_id: str, current_status: str | None):
        self.transaction_id = transaction_id
        self.current_status = current_status
        super().__init__(
            f"Transaction {transaction_id} is no longer pending "
            f"(current status: {current_status})"
        )


class DuplicateCustomerError(ConflictError):
    """같은 이름의 활성 고객이 이미 존재"""

    code = "duplicate_customer"


class AuthorizationError(LedgerError):
    """역할 권한 부족"""

    code = "forbidden"


class NotFoundError(LedgerError):
    """존재하지 않는 ID"""

    code = "not_found"


class StorageError(LedgerError):
    """저장소 사용 불가 (잠김, 연결 끊김 등)"""

    code = "storage_unavailable"
