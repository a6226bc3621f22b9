"""
감사 로그 라우트

GET /api/audit-logs         - 감사 로그 검색 (최신순, 커서 페이지네이션)
GET /api/audit-logs/{id}    - 단건 조회
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from core.audit.types import AuditAction, AuditFilter, AuditLogType
from core.types import Actor
from web.dependencies import AppServices, get_actor, get_services
from web.models.responses import AuditLogEntryResponse, AuditPageResponse

router = APIRouter(prefix="/api/audit-logs", tags=["Audit"])


@router.get("", response_model=AuditPageResponse)
async def search_audit_logs(
    actor_id: str | None = Query(default=None),
    action: AuditAction | None = Query(default=None),
    target_type: str | None = Query(default=None),
    target_id: str | None = Query(default=None),
    log_type: AuditLogType | None = Query(default=None, description="ledger / system"),
    start: datetime | None = Query(default=None, description="시작 시각 (포함)"),
    end: datetime | None = Query(default=None, description="종료 시각 (포함)"),
    q: str | None = Query(default=None, description="자유 검색어"),
    limit: int | None = Query(default=None, ge=1),
    cursor: str | None = Query(default=None, description="이전 응답의 next_cursor"),
    actor: Actor = Depends(get_actor),
    services: AppServices = Depends(get_services),
) -> AuditPageResponse:
    """감사 로그 검색

    두 스트림 (ledger/system)을 합쳐 timestamp 내림차순으로 반환.
    """
    filters = AuditFilter(
        actor_id=actor_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        log_type=log_type,
        start=start,
        end=end,
        free_text=q,
    )
    page = await services.audit_query.search(filters, limit=limit, cursor=cursor)
    return AuditPageResponse.from_page(page)


@router.get("/{entry_id}", response_model=AuditLogEntryResponse)
async def get_audit_log(
    entry_id: str,
    actor: Actor = Depends(get_actor),
    services: AppServices = Depends(get_services),
) -> AuditLogEntryResponse:
    """감사 로그 단건 조회"""
    entry = await services.audit_query.get_entry(entry_id)
    return AuditLogEntryResponse.from_domain(entry)
