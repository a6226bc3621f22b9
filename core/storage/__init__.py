"""
스토리지 모듈

감사 로그, 사용자 디렉토리 저장소 제공
"""

from core.storage.audit_store import AuditStore
from core.storage.user_store import UserStore

__all__ = [
    "AuditStore",
    "UserStore",
]
