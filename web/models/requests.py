"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증.
금액/설명 등 업무 규칙 검증은 LedgerService가 담당 (ValidationError → 400).
"""

from pydantic import BaseModel, Field

from core.types import Role


class CustomerCreateRequest(BaseModel):
    """고객 생성 요청"""

    name: str = Field(..., description="고객 이름 (활성 고객 중 유일)")
    email: str | None = Field(default=None, description="이메일")
    phone: str | None = Field(default=None, description="전화번호")
    address: str | None = Field(default=None, description="주소")


class TransactionCreateRequest(BaseModel):
    """거래 생성 요청

    customer_id 또는 customer_name 중 하나만 지정.
    customer_name이면 새 고객을 함께 생성.
    """

    customer_id: str | None = Field(default=None, description="기존 고객 ID")
    customer_name: str | None = Field(default=None, description="새 고객 이름")
    customer_email: str | None = Field(default=None, description="새 고객 이메일")
    customer_phone: str | None = Field(default=None, description="새 고객 전화번호")
    customer_address: str | None = Field(default=None, description="새 고객 주소")

    type: str = Field(..., description="debit 또는 payment")
    amount: str | int | float = Field(..., description="금액 (양수, 소수점 2자리)")
    description: str = Field(..., description="설명")
    payment_method: str | None = Field(default=None, description="결제 수단")
    notes: str | None = Field(default=None, description="메모")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "0b6f6d3e-5c1a-4d8e-9a43-3f1c2b7e9d10",
                    "type": "debit",
                    "amount": "100.00",
                    "description": "Groceries",
                },
                {
                    "customer_name": "Ada",
                    "type": "payment",
                    "amount": "40",
                    "description": "Cash payment",
                    "payment_method": "cash",
                },
            ]
        }
    }


class TransactionUpdateRequest(BaseModel):
    """PENDING 거래 수정 요청 (지정한 필드만 변경)"""

    type: str | None = Field(default=None, description="debit 또는 payment")
    amount: str | int | float | None = Field(default=None, description="금액")
    description: str | None = Field(default=None, description="설명")
    payment_method: str | None = Field(default=None, description="결제 수단")
    notes: str | None = Field(default=None, description="메모")


class RejectRequest(BaseModel):
    """거부 요청"""

    reason: str = Field(default="", description="거부 사유 (필수)")


class UserUpsertRequest(BaseModel):
    """사용자 디렉토리 등록/갱신 요청"""

    full_name: str = Field(..., description="표시 이름")
    email: str | None = Field(default=None, description="이메일")
    role: Role = Field(..., description="admin / manager / staff")
    is_active: bool = Field(default=True, description="활성 여부")
