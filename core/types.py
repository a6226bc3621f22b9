"""
타입 정의 모듈

Enum, Dataclass 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from dataclasses import dataclass
from enum import Enum


class AppMode(str, Enum):
    """실행 모드 (운영 / 개발)"""

    PRODUCTION = "production"
    DEVELOPMENT = "development"


class Role(str, Enum):
    """사용자 역할

    Identity provider가 전달하는 값. staff는 생성만 가능하고
    상태 전이는 manager/admin만 가능.
    """

    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"


class TargetType(str, Enum):
    """감사 로그 대상 종류"""

    CUSTOMER = "customer"
    TRANSACTION = "transaction"
    USER = "user"
    ORDER = "order"
    PRODUCT = "product"
    EXPENSE = "expense"
    SYSTEM = "system"


@dataclass(frozen=True)
class Actor:
    """행위자 (불변)

    인증이 끝난 호출자. id와 role은 외부 identity provider가 보장.
    """

    id: str
    role: Role

    @classmethod
    def create(cls, actor_id: str, role: str | Role) -> "Actor":
        """Actor 생성 헬퍼

        Enum 또는 문자열 모두 허용

        Raises:
            ValueError: 유효하지 않은 role
        """
        if not actor_id or not actor_id.strip():
            raise ValueError("actor_id는 필수입니다")
        if isinstance(role, str) and not isinstance(role, Role):
            role = Role(role.strip().lower())
        return cls(id=actor_id.strip(), role=role)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
