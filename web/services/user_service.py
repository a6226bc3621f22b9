"""
사용자 디렉토리 서비스

identity provider의 사용자 정보를 로컬 디렉토리에 반영하고
변경 종류에 맞는 시스템 감사 로그를 남김.
"""

from core.audit.recorder import AuditRecorder
from core.audit.types import AuditAction
from core.domain.models import AppUser
from core.domain.permissions import Operation, authorize
from core.errors import NotFoundError, ValidationError
from core.storage.user_store import UserStore
from core.types import Actor, Role, TargetType


class UserService:
    """사용자 디렉토리 서비스

    Args:
        users: 사용자 디렉토리 저장소
        recorder: 감사 로그 기록기
    """

    def __init__(self, users: UserStore, recorder: AuditRecorder):
        self.users = users
        self.recorder = recorder

    async def upsert_user(
        self,
        actor: Actor,
        user_id: str,
        full_name: str,
        email: str | None,
        role: Role,
        is_active: bool = True,
    ) -> AppUser:
        """사용자 등록/갱신 (admin 전용)

        감사 로그:
        - 신규: user_created
        - 역할 변경: user_role_changed
        - 활성 상태 변경: user_status_changed
        - 이름/이메일 변경: user_updated
        변경이 없으면 기록하지 않음.
        """
        authorize(actor, Operation.MANAGE_USERS)

        full_name = (full_name or "").strip()
        if not full_name:
            raise ValidationError("full_name is required")
        if not user_id or not user_id.strip():
            raise ValidationError("user_id is required")

        before, after = await self.users.upsert(
            user_id.strip(), full_name, (email or "").strip() or None, role, is_active
        )

        for action, description in self._changes(before, after):
            await self.recorder.record_system(
                actor_id=actor.id,
                action=action,
                target_type=TargetType.USER.value,
                target_id=after.id,
                old_values=before.snapshot() if before else None,
                new_values=after.snapshot(),
                description=description,
            )
        return after

    async def get_user(self, user_id: str) -> AppUser:
        user = await self.users.get(user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}")
        return user

    def _changes(
        self,
        before: AppUser | None,
        after: AppUser,
    ) -> list[tuple[AuditAction, str]]:
        if before is None:
            return [(AuditAction.USER_CREATED, f"User created with role {after.role.value}")]

        changes: list[tuple[AuditAction, str]] = []
        if before.role != after.role:
            changes.append((
                AuditAction.USER_ROLE_CHANGED,
                f"Role changed from {before.role.value} to {after.role.value}",
            ))
        if before.is_active != after.is_active:
            state = "activated" if after.is_active else "deactivated"
            changes.append((AuditAction.USER_STATUS_CHANGED, f"User {state}"))
        if before.full_name != after.full_name or before.email != after.email:
            changes.append((AuditAction.USER_UPDATED, "User profile updated"))
        return changes
