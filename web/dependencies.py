"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
서비스는 앱 시작 시 한 번 생성되어 app.state.services에 보관.
"""

import logging
from dataclasses import dataclass

from fastapi import Header, HTTPException, Request

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.interfaces import INotifier
from core.audit.query import AuditQueryService
from core.audit.recorder import AuditRecorder
from core.constants import Defaults
from core.ledger.service import LedgerService
from core.storage.audit_store import AuditStore
from core.storage.user_store import UserStore
from core.types import Actor, AppMode
from web.services.user_service import UserService

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    """앱 전역 서비스 묶음"""

    db: SQLiteAdapter
    mode: AppMode
    recorder: AuditRecorder
    ledger: LedgerService
    audit_query: AuditQueryService
    users: UserService
    notifier: INotifier | None = None


def build_services(
    db: SQLiteAdapter,
    mode: AppMode = AppMode.DEVELOPMENT,
    notifier: INotifier | None = None,
    page_size: int = Defaults.PAGE_SIZE,
    max_page_size: int = Defaults.MAX_PAGE_SIZE,
) -> AppServices:
    """연결된 DB로 서비스 구성

    Args:
        db: 연결 + 스키마 초기화가 끝난 SQLiteAdapter
        mode: 실행 모드 (health 표시용)
        notifier: 감사 로그 실패 알림
    """
    audit_store = AuditStore(db)
    recorder = AuditRecorder(audit_store, notifier=notifier)

    return AppServices(
        db=db,
        mode=mode,
        recorder=recorder,
        ledger=LedgerService.build(db, recorder),
        audit_query=AuditQueryService(audit_store, page_size, max_page_size),
        users=UserService(UserStore(db), recorder),
        notifier=notifier,
    )


def get_services(request: Request) -> AppServices:
    """앱 서비스 반환"""
    services: AppServices | None = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Services not initialized")
    return services


def get_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
) -> Actor:
    """호출자 (identity provider가 전달한 헤더)

    X-Actor-Id, X-Actor-Role은 인증 계층이 이미 검증한 값으로 간주.

    Raises:
        HTTPException(401): 헤더 누락 또는 알 수 없는 역할
    """
    if not x_actor_id or not x_actor_role:
        raise HTTPException(status_code=401, detail="X-Actor-Id and X-Actor-Role headers are required")

    try:
        return Actor.create(x_actor_id, x_actor_role)
    except ValueError as e:
        logger.warning("잘못된 Actor 헤더", extra={"actor_id": x_actor_id, "role": x_actor_role})
        raise HTTPException(status_code=401, detail=f"Invalid actor: {e}") from e
