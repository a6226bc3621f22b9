"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → debitledger/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"

    # 감사 로그 조회 페이지 크기
    PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 200

    # 거래 목록 조회
    LIST_LIMIT: int = 100


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    WEB_LOGS_DIR: Path = LOGS_DIR / "web"
    SCRIPTS_LOGS_DIR: Path = LOGS_DIR / "scripts"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    PROD_DB: Path = DATA_DIR / "debitledger_prod.db"
    DEV_DB: Path = DATA_DIR / "debitledger_dev.db"


class Money:
    """금액 처리 상수"""

    # 소수점 2자리 (센트 단위)
    QUANTUM: Decimal = Decimal("0.01")
    ZERO: Decimal = Decimal("0.00")


# 조회 시점에 이름을 찾을 수 없는 사용자/고객 표시값
UNKNOWN_NAME: str = "Unknown"
