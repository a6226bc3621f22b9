"""
FastAPI 애플리케이션

라우터 등록 및 앱 설정.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from adapters.slack.notifier import SlackNotifier
from core.config.loader import get_settings
from core.errors import (
    AlreadyProcessedError,
    AuthorizationError,
    ConflictError,
    LedgerError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from core.logging import setup_logging
from web.dependencies import AppServices, build_services
from web.routes import audit, balances, customers, health, transactions, users
from web.routes.health import VERSION

logger = logging.getLogger(__name__)

# 예외 종류 → HTTP 상태 코드 (먼저 매칭되는 항목 적용)
ERROR_STATUS: list[tuple[type[LedgerError], int]] = [
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (StorageError, 503),
]


def status_for(error: LedgerError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리

    서비스가 이미 주입되어 있으면 (테스트) 그대로 사용.
    """
    if getattr(app.state, "services", None) is not None:
        yield
        return

    settings = get_settings()
    setup_logging("web", console_level=settings.log_level)

    # 시작 시 - DB 연결 + 스키마 초기화
    db = SQLiteAdapter(settings.db_path)
    await db.connect()
    await init_schema(db)

    notifier = None
    if settings.audit.alert_webhook_url:
        notifier = SlackNotifier(webhook_url=settings.audit.alert_webhook_url)
        logger.info("Web: 감사 로그 실패 알림 활성화")

    app.state.services = build_services(
        db,
        mode=settings.mode,
        notifier=notifier,
        page_size=settings.audit.page_size,
        max_page_size=settings.audit.max_page_size,
    )
    logger.info(
        "Web: 시작",
        extra={"mode": settings.mode.value, "db_path": str(settings.db_path)},
    )

    try:
        yield
    finally:
        # 종료 시 - 리소스 정리
        if notifier is not None:
            await notifier.close()
        await db.close()
        app.state.services = None
        logger.info("Web: DB 연결 종료 완료")


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """LedgerError → {"error": code, "message": ...}"""
    status = status_for(exc)
    body: dict[str, object] = {"error": exc.code, "message": exc.message}
    if isinstance(exc, AlreadyProcessedError):
        body["current_status"] = exc.current_status

    if status >= 500:
        logger.error(f"요청 실패: {exc.message}", extra={"path": request.url.path})
    else:
        logger.info(
            f"요청 거부: {exc.code}",
            extra={"path": request.url.path, "status": status},
        )
    return JSONResponse(status_code=status, content=body)


def create_app(services: AppServices | None = None) -> FastAPI:
    """FastAPI 앱 생성

    Args:
        services: 미리 구성된 서비스 (None이면 lifespan에서 설정 파일로 구성)
    """
    app = FastAPI(
        title="DebitLedger API",
        description="고객 외상 장부 (승인 워크플로우 + 감사 로그)",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.services = services

    # CORS 설정 (개발용)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(LedgerError, ledger_error_handler)

    # =========================================================================
    # API 라우터 등록
    # =========================================================================

    app.include_router(health.router)
    app.include_router(customers.router)
    app.include_router(transactions.router)
    app.include_router(balances.router)
    app.include_router(audit.router)
    app.include_router(users.router)

    return app


app = create_app()
