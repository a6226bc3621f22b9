"""
거래 라우트

POST   /api/transactions               - 거래 생성 (PENDING)
GET    /api/transactions               - 거래 목록
GET    /api/transactions/{id}          - 거래 조회
PATCH  /api/transactions/{id}          - PENDING 거래 수정
DELETE /api/transactions/{id}          - PENDING 거래 삭제 (admin)
POST   /api/transactions/{id}/approve  - 승인 (manager/admin)
POST   /api/transactions/{id}/reject   - 거부 (manager/admin)
"""

from fastapi import APIRouter, Depends, Query, Response

from core.constants import Defaults
from core.errors import ValidationError
from core.ledger.store import TransactionFilter
from core.ledger.types import TransactionStatus, TransactionType
from core.types import Actor
from web.dependencies import AppServices, get_actor, get_services
from web.models.requests import (
    RejectRequest,
    TransactionCreateRequest,
    TransactionUpdateRequest,
)
from web.models.responses import (
    CustomerResponse,
    TransactionCreatedResponse,
    TransactionListResponse,
    TransactionResponse,
)

router = APIRouter(prefix="/api/transactions", tags=["Transactions"])


# =========================================================================
# 생성/조회
# =========================================================================


@router.post("", response_model=TransactionCreatedResponse, status_code=201)
async def create_transaction(
    request: TransactionCreateRequest,
    actor: Actor = Depends(get_actor),
    services: AppServices = Depends(get_services),
) -> TransactionCreatedResponse:
    """거래 생성

    customer_id: 기존 고객에게 기록
    customer_name: 새 고객을 만들고 첫 거래 기록 (한 트랜잭션)
    """
    has_id = bool(request.customer_id)
    has_name = bool(request.customer_name and request.customer_name.strip())
    if has_id == has_name:
        raise ValidationError("Specify exactly one of customer_id or customer_name")

    if has_name:
        customer, txn = await services.ledger.create_transaction_for_new_customer(
            actor,
            request.customer_name,
            request.type,
            request.amount,
            request.description,
            payment_method=request.payment_method,
            notes=request.notes,
            email=request.customer_email,
            phone=request.customer_phone,
            address=request.customer_address,
        )
        return TransactionCreatedResponse(
            transaction=TransactionResponse.from_domain(txn),
            customer=CustomerResponse.from_domain(customer),
        )

    txn = await services.ledger.create_transaction(
        actor,
        request.customer_id,
        request.type,
        request.amount,
        request.description,
        payment_method=request.payment_method,
        notes=request.notes,
    )
    return TransactionCreatedResponse(transaction=TransactionResponse.from_domain(txn))


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    status: TransactionStatus | None = Query(default=None),
    type: TransactionType | None = Query(default=None),
    customer_id: str | None = Query(default=None),
    created_by: str | None = Query(default=None),
    search: str | None = Query(default=None, description="설명/고객 이름 검색"),
    limit: int = Query(default=Defaults.LIST_LIMIT, ge=1, le=Defaults.MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    actor: Actor = Depends(get_actor),
    services: AppServices = Depends(get_services),
) -> TransactionListResponse:
    """거래 목록 (최신순)"""
    filters = TransactionFilter(
        status=status,
        type=type,
        customer_id=customer_id,
        created_by=created_by,
        search=search,
        limit=limit,
        offset=offset,
    )
    transactions = await services.ledger.list_transactions(filters)
    pending_count = await services.ledger.count_pending()

    return TransactionListResponse(
        transactions=[TransactionResponse.from_domain(t) for t in transactions],
        pending_count=pending_count,
        limit=limit,
        offset=offset,
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: str,
    actor: Actor = Depends(get_actor),
    services: AppServices = Depends(get_services),
) -> TransactionResponse:
    """거래 조회"""
    txn = await services.ledger.get_transaction(transaction_id)
    return TransactionResponse.from_domain(txn)


# =========================================================================
# 수정/삭제 (PENDING만)
# =========================================================================


@router.patch("/{transaction_id}", response_model=TransactionResponse)
async def edit_transaction(
    transaction_id: str,
    request: TransactionUpdateRequest,
    actor: Actor = Depends(get_actor),
    services: AppServices = Depends(get_services),
) -> TransactionResponse:
    """PENDING 거래 수정 (요청에 포함된 필드만)"""
    fields = request.model_dump(exclude_unset=True)
    txn = await services.ledger.edit_transaction(transaction_id, fields, actor)
    return TransactionResponse.from_domain(txn)


@router.delete("/{transaction_id}", status_code=204)
async def delete_transaction(
    transaction_id: str,
    actor: Actor = Depends(get_actor),
    services: AppServices = Depends(get_services),
) -> Response:
    """PENDING 거래 삭제 (admin)"""
    await services.ledger.delete_transaction(transaction_id, actor)
    return Response(status_code=204)


# =========================================================================
# 승인/거부
# =========================================================================


@router.post("/{transaction_id}/approve", response_model=TransactionResponse)
async def approve_transaction(
    transaction_id: str,
    actor: Actor = Depends(get_actor),
    services: AppServices = Depends(get_services),
) -> TransactionResponse:
    """승인 (이미 처리된 거래는 409 already_processed)"""
    txn = await services.ledger.approve_transaction(transaction_id, actor)
    return TransactionResponse.from_domain(txn)


@router.post("/{transaction_id}/reject", response_model=TransactionResponse)
async def reject_transaction(
    transaction_id: str,
    request: RejectRequest,
    actor: Actor = Depends(get_actor),
    services: AppServices = Depends(get_services),
) -> TransactionResponse:
    """거부 (사유 필수)"""
    txn = await services.ledger.reject_transaction(transaction_id, actor, request.reason)
    return TransactionResponse.from_domain(txn)
