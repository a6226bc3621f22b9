"""
역할 기반 권한

모든 Operation은 허용 역할이 명시되어 있어야 함 (누락 시 테스트 실패).
"""

import logging
from enum import Enum

from core.errors import AuthorizationError
from core.types import Actor, Role

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    """권한 검사 대상 작업"""

    CREATE_CUSTOMER = "create_customer"
    DEACTIVATE_CUSTOMER = "deactivate_customer"
    CREATE_TRANSACTION = "create_transaction"
    EDIT_TRANSACTION = "edit_transaction"
    APPROVE_TRANSACTION = "approve_transaction"
    REJECT_TRANSACTION = "reject_transaction"
    DELETE_TRANSACTION = "delete_transaction"
    RECONCILE_BALANCES = "reconcile_balances"
    MANAGE_USERS = "manage_users"


ALL_ROLES: frozenset[Role] = frozenset(Role)
APPROVER_ROLES: frozenset[Role] = frozenset({Role.MANAGER, Role.ADMIN})
ADMIN_ONLY: frozenset[Role] = frozenset({Role.ADMIN})


OPERATION_ROLES: dict[Operation, frozenset[Role]] = {
    Operation.CREATE_CUSTOMER: ALL_ROLES,
    Operation.DEACTIVATE_CUSTOMER: APPROVER_ROLES,
    Operation.CREATE_TRANSACTION: ALL_ROLES,
    Operation.EDIT_TRANSACTION: ALL_ROLES,
    Operation.APPROVE_TRANSACTION: APPROVER_ROLES,
    Operation.REJECT_TRANSACTION: APPROVER_ROLES,
    Operation.DELETE_TRANSACTION: ADMIN_ONLY,
    Operation.RECONCILE_BALANCES: ADMIN_ONLY,
    Operation.MANAGE_USERS: ADMIN_ONLY,
}


def is_allowed(actor: Actor, operation: Operation) -> bool:
    return actor.role in OPERATION_ROLES[operation]


def authorize(actor: Actor, operation: Operation) -> None:
    """권한 검사

    Raises:
        AuthorizationError: actor.role이 허용 역할에 없는 경우
    """
    if is_allowed(actor, operation):
        return

    logger.warning(
        "권한 거부",
        extra={"actor_id": actor.id, "role": actor.role.value, "operation": operation.value},
    )
    allowed = sorted(r.value for r in OPERATION_ROLES[operation])
    raise AuthorizationError(
        f"Role '{actor.role.value}' may not {operation.value.replace('_', ' ')} "
        f"(allowed: {', '.join(allowed)})"
    )
