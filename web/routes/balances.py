"""
잔액 라우트

GET  /api/balances/outstanding  - 미수금 합계 + 승인 대기 건수
POST /api/balances/reconcile    - 잔액 재계산 (admin)
"""

from fastapi import APIRouter, Depends, Query

from core.types import Actor
from web.dependencies import AppServices, get_actor, get_services
from web.models.responses import DriftResponse, OutstandingResponse, ReconcileResponse

router = APIRouter(prefix="/api/balances", tags=["Balances"])


@router.get("/outstanding", response_model=OutstandingResponse)
async def get_outstanding(
    customer_id: list[str] | None = Query(default=None, description="대상 고객 (없으면 전체)"),
    actor: Actor = Depends(get_actor),
    services: AppServices = Depends(get_services),
) -> OutstandingResponse:
    """미수금 합계 (양수 잔액만 합산)"""
    total = await services.ledger.get_outstanding_total(customer_id)
    pending = await services.ledger.count_pending()
    return OutstandingResponse(outstanding_total=str(total), pending_count=pending)


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile_balances(
    actor: Actor = Depends(get_actor),
    services: AppServices = Depends(get_services),
) -> ReconcileResponse:
    """저장된 잔액을 승인 거래 합계로 재계산 (admin)"""
    drifts = await services.ledger.reconcile_balances(actor)
    return ReconcileResponse(
        repaired=len(drifts),
        drifts=[DriftResponse.from_drift(d) for d in drifts],
    )
