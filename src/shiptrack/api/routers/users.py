"""
shiptrack.api.routers.users

Admin user management endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from shiptrack.api.deps import user_service
from shiptrack.auth.deps import get_principal
from shiptrack.auth.models import Principal
from shiptrack.schemas import UserChanges, UserUpdate, UserView
from shiptrack.services.user_service import UserService

router = APIRouter(prefix="/v1/users", tags=["users"])


@router.get("", response_model=list[UserView])
async def list_users(
    principal: Principal | None = Depends(get_principal),
    svc: UserService = Depends(user_service),
) -> list[UserView]:
    return await svc.list_users(principal)


@router.patch("/{user_id}", response_model=UserView)
async def update_user(
    user_id: int,
    body: UserChanges,
    principal: Principal | None = Depends(get_principal),
    svc: UserService = Depends(user_service),
) -> UserView:
    # Only the fields the client actually sent are forwarded.
    data = UserUpdate(id=user_id, **body.model_dump(exclude_unset=True))
    return await svc.update_user(principal, data)


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    principal: Principal | None = Depends(get_principal),
    svc: UserService = Depends(user_service),
) -> dict[str, bool]:
    return {"success": await svc.delete_user(principal, user_id)}
