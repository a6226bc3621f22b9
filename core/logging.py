"""
로깅 설정

Web 프로세스와 운영 스크립트 공통.
- 콘솔 + 일 단위 롤링 파일 (logs/<process>/<process>.log, 7일 보관)
- extra={...}로 넘긴 컨텍스트(transaction_id, actor_id 등)를 메시지 뒤에 key=value로 출력

사용법:
    from core.logging import setup_logging
    setup_logging("web", console_level=settings.log_level)
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.constants import Paths

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_RETENTION_DAYS = 7

# 요청/쿼리마다 로그를 남기는 라이브러리
NOISY_LOGGERS = ("aiosqlite", "httpcore", "httpx", "uvicorn.access", "asyncio")

# LogRecord 기본 속성 (나머지는 extra로 들어온 컨텍스트)
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class ContextFormatter(logging.Formatter):
    """extra 컨텍스트를 메시지 뒤에 붙이는 Formatter

    "거래 승인 | transaction_id=t-1 actor_id=u-2"
    """

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{line} | {pairs}"


def get_log_file_path(process_name: str) -> Path:
    """프로세스별 로그 파일 경로"""
    log_dirs = {"web": Paths.WEB_LOGS_DIR, "scripts": Paths.SCRIPTS_LOGS_DIR}
    return log_dirs.get(process_name, Paths.LOGS_DIR) / f"{process_name}.log"


def _file_handler(log_file: Path, level: int | str) -> TimedRotatingFileHandler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        backupCount=LOG_RETENTION_DAYS,
        encoding="utf-8",
    )
    handler.suffix = "%Y-%m-%d"  # web.log.2026-03-01
    handler.setLevel(level)
    return handler


def setup_logging(
    process_name: str,
    console_level: int | str = logging.INFO,
    file_level: int | str = logging.INFO,
    log_file: Path | None = None,
) -> logging.Logger:
    """루트 로거 설정 (프로세스 진입점에서 1회)

    Args:
        process_name: "web" 또는 "scripts"
        console_level: 콘솔 레벨 ("DEBUG" 같은 이름도 허용)
        file_level: 파일 레벨
        log_file: 로그 파일 경로 (None이면 프로세스별 기본 경로)

    Returns:
        설정된 루트 Logger
    """
    log_file = log_file or get_log_file_path(process_name)
    formatter = ContextFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(console_level)
    rotating = _file_handler(log_file, file_level)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    # 재호출 시 핸들러 중복 방지
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in (console, rotating):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(
        f"로깅 초기화 완료: {process_name}",
        extra={"log_file": str(log_file), "retention_days": LOG_RETENTION_DAYS},
    )
    return root
