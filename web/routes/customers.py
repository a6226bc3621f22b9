"""
고객 라우트

POST /api/customers                    - 고객 생성
GET  /api/customers                    - 고객 목록 (잔액/거래 집계 포함)
GET  /api/customers/{id}               - 고객 요약
POST /api/customers/{id}/deactivate    - 고객 비활성화
GET  /api/customers/{id}/balance       - 고객 잔액
"""

from fastapi import APIRouter, Depends, Query

from core.types import Actor
from web.dependencies import AppServices, get_actor, get_services
from web.models.requests import CustomerCreateRequest
from web.models.responses import (
    BalanceResponse,
    CustomerListResponse,
    CustomerResponse,
    CustomerSummaryResponse,
)

router = APIRouter(prefix="/api/customers", tags=["Customers"])


@router.post("", response_model=CustomerResponse, status_code=201)
async def create_customer(
    request: CustomerCreateRequest,
    actor: Actor = Depends(get_actor),
    services: AppServices = Depends(get_services),
) -> CustomerResponse:
    """고객 생성 (같은 이름의 활성 고객이 있으면 409)"""
    customer = await services.ledger.create_customer(
        actor,
        request.name,
        email=request.email,
        phone=request.phone,
        address=request.address,
    )
    return CustomerResponse.from_domain(customer)


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    search: str | None = Query(default=None, description="이름/이메일/전화번호 검색"),
    include_inactive: bool = Query(default=False),
    actor: Actor = Depends(get_actor),
    services: AppServices = Depends(get_services),
) -> CustomerListResponse:
    """고객 목록"""
    summaries = await services.ledger.list_customers(search, include_inactive)
    return CustomerListResponse(
        customers=[CustomerSummaryResponse.from_summary(s) for s in summaries],
        total_count=len(summaries),
    )


@router.get("/{customer_id}", response_model=CustomerSummaryResponse)
async def get_customer(
    customer_id: str,
    actor: Actor = Depends(get_actor),
    services: AppServices = Depends(get_services),
) -> CustomerSummaryResponse:
    """고객 요약"""
    summary = await services.ledger.get_customer_summary(customer_id)
    return CustomerSummaryResponse.from_summary(summary)


@router.post("/{customer_id}/deactivate", response_model=CustomerResponse)
async def deactivate_customer(
    customer_id: str,
    actor: Actor = Depends(get_actor),
    services: AppServices = Depends(get_services),
) -> CustomerResponse:
    """고객 비활성화 (manager/admin)"""
    customer = await services.ledger.deactivate_customer(customer_id, actor)
    return CustomerResponse.from_domain(customer)


@router.get("/{customer_id}/balance", response_model=BalanceResponse)
async def get_customer_balance(
    customer_id: str,
    actor: Actor = Depends(get_actor),
    services: AppServices = Depends(get_services),
) -> BalanceResponse:
    """고객 잔액 (승인된 거래만 반영)"""
    balance = await services.ledger.get_balance(customer_id)
    return BalanceResponse(customer_id=customer_id, balance=str(balance))
