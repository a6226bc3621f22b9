"""
Web 서비스 패키지

비즈니스 로직 처리
"""

from web.services.user_service import UserService

__all__ = [
    "UserService",
]
