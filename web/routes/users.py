"""
사용자 디렉토리 라우트

PUT /api/users/{id}  - 사용자 등록/갱신 (admin)
GET /api/users/{id}  - 사용자 조회
"""

from fastapi import APIRouter, Depends

from core.types import Actor
from web.dependencies import AppServices, get_actor, get_services
from web.models.requests import UserUpsertRequest
from web.models.responses import UserResponse

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.put("/{user_id}", response_model=UserResponse)
async def upsert_user(
    user_id: str,
    request: UserUpsertRequest,
    actor: Actor = Depends(get_actor),
    services: AppServices = Depends(get_services),
) -> UserResponse:
    """사용자 등록/갱신 (감사 로그 system 스트림에 기록)"""
    user = await services.users.upsert_user(
        actor,
        user_id,
        request.full_name,
        request.email,
        request.role,
        request.is_active,
    )
    return UserResponse.from_domain(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    actor: Actor = Depends(get_actor),
    services: AppServices = Depends(get_services),
) -> UserResponse:
    """사용자 조회"""
    user = await services.users.get_user(user_id)
    return UserResponse.from_domain(user)
