"""
DebitLedger Web 서버

    python -m web

host/port/로그 레벨은 config/settings.yaml 기준.
"""

import uvicorn

from core.config.loader import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "web.app:app",
        host=settings.web.host,
        port=settings.web.port,
        log_level=settings.log_level.lower(),
        # 루트 로거는 lifespan에서 setup_logging으로 구성
        log_config=None,
    )


if __name__ == "__main__":
    main()
