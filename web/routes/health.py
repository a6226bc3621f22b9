"""
헬스 체크 엔드포인트

GET /health - 서버 상태 확인
"""

from fastapi import APIRouter, Depends

from core.utils.timezone import now_utc
from web.dependencies import AppServices, get_services
from web.models.responses import HealthResponse

router = APIRouter(tags=["health"])

VERSION = "1.0.0"


@router.get("/health", response_model=HealthResponse)
async def health_check(services: AppServices = Depends(get_services)) -> HealthResponse:
    """서버 상태 확인

    감사 로그 기록 실패가 있으면 status="degraded".

    Returns:
        HealthResponse: status, mode, version, 감사 로그 통계
    """
    stats = services.recorder.get_stats()
    status = "ok" if services.db.is_connected and stats["failed"] == 0 else "degraded"

    return HealthResponse(
        status=status,
        mode=services.mode.value,
        version=VERSION,
        timestamp=now_utc(),
        audit=stats,
    )
