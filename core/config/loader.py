"""
설정 로더

settings.yaml 로드 및 실행 설정 생성
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from adapters.db.sqlite_adapter import get_db_path
from core.constants import Defaults, Paths
from core.types import AppMode


@dataclass(frozen=True)
class WebConfig:
    """Web 서버 설정"""

    host: str = Defaults.WEB_HOST
    port: int = Defaults.WEB_PORT


@dataclass(frozen=True)
class AuditConfig:
    """감사 로그 설정

    alert_webhook_url이 있으면 기록 실패를 Slack으로 알림.
    """

    alert_webhook_url: str | None = None
    page_size: int = Defaults.PAGE_SIZE
    max_page_size: int = Defaults.MAX_PAGE_SIZE


@dataclass(frozen=True)
class AppConfig:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    mode: AppMode
    db_path: Path
    log_level: str
    web: WebConfig
    audit: AuditConfig


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise SettingsLoadError(f"settings.yaml의 '{name}' 섹션 형식이 잘못되었습니다")
    return section


def load_config(path: Path | None = None) -> AppConfig:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        AppConfig 인스턴스

    Raises:
        SettingsLoadError: 파일이 없거나 형식이 잘못된 경우
        ValueError: 유효하지 않은 mode인 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        raise SettingsLoadError(f"settings.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        raise SettingsLoadError("settings.yaml이 비어 있습니다")
    if not isinstance(data, dict):
        raise SettingsLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    # mode 검증
    mode_str = data.get("mode")
    if mode_str is None:
        raise SettingsLoadError("settings.yaml에 'mode' 필드가 없습니다")

    try:
        mode = AppMode(mode_str)
    except ValueError as e:
        valid_modes = [m.value for m in AppMode]
        raise ValueError(
            f"유효하지 않은 mode입니다: '{mode_str}'. "
            f"유효한 값: {valid_modes}"
        ) from e

    # DB 경로 (override 없으면 모드별 기본 경로)
    database = _section(data, "database")
    db_override = database.get("path")
    db_path = Path(db_override) if db_override else get_db_path(mode)

    web = _section(data, "web")
    logging_section = _section(data, "logging")
    audit = _section(data, "audit")

    try:
        web_config = WebConfig(
            host=str(web.get("host", Defaults.WEB_HOST)),
            port=int(web.get("port", Defaults.WEB_PORT)),
        )
        audit_config = AuditConfig(
            alert_webhook_url=audit.get("alert_webhook_url") or None,
            page_size=int(audit.get("page_size", Defaults.PAGE_SIZE)),
            max_page_size=int(audit.get("max_page_size", Defaults.MAX_PAGE_SIZE)),
        )
    except (TypeError, ValueError) as e:
        raise SettingsLoadError(f"settings.yaml 값 형식 오류: {e}") from e

    if audit_config.page_size < 1 or audit_config.max_page_size < audit_config.page_size:
        raise SettingsLoadError(
            "audit.page_size는 1 이상이고 audit.max_page_size 이하여야 합니다"
        )

    log_level = str(logging_section.get("level", Defaults.LOG_LEVEL)).upper()

    return AppConfig(
        mode=mode,
        db_path=db_path,
        log_level=log_level,
        web=web_config,
        audit=audit_config,
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공.
    프로세스 진입점(web, scripts)에서만 사용하고, 서비스에는 값을 주입.
    """

    _instance: "Settings | None" = None
    _config: AppConfig | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._config is None:
            self._config = load_config(settings_path)

    @property
    def config(self) -> AppConfig:
        assert self._config is not None
        return self._config

    @property
    def mode(self) -> AppMode:
        """현재 실행 모드"""
        return self.config.mode

    @property
    def db_path(self) -> Path:
        """현재 모드의 DB 경로"""
        return self.config.db_path

    @property
    def log_level(self) -> str:
        return self.config.log_level

    @property
    def web(self) -> WebConfig:
        return self.config.web

    @property
    def audit(self) -> AuditConfig:
        return self.config.audit

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
