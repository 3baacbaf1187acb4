"""
shiptrack.api.routers.auth

Session and self-service endpoints.

Responsibilities:
- Login (username or email) and admin-driven registration.
- Current profile and password change for the authenticated caller.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from shiptrack.api.deps import user_service
from shiptrack.auth.deps import get_principal
from shiptrack.auth.models import Principal
from shiptrack.schemas import (
    AuthPayload,
    ChangePasswordInput,
    LoginInput,
    RegisterInput,
    UserView,
)
from shiptrack.services.user_service import UserService

router = APIRouter(prefix="/v1/auth", tags=["auth"])


@router.post("/login", response_model=AuthPayload)
async def login(
    body: LoginInput,
    svc: UserService = Depends(user_service),
) -> AuthPayload:
    return await svc.login(body)


@router.post("/register", response_model=AuthPayload)
async def register(
    body: RegisterInput,
    principal: Principal | None = Depends(get_principal),
    svc: UserService = Depends(user_service),
) -> AuthPayload:
    return await svc.register(principal, body)


@router.get("/me", response_model=UserView | None)
async def me(
    principal: Principal | None = Depends(get_principal),
    svc: UserService = Depends(user_service),
) -> UserView | None:
    return await svc.me(principal)


@router.post("/change-password")
async def change_password(
    body: ChangePasswordInput,
    principal: Principal | None = Depends(get_principal),
    svc: UserService = Depends(user_service),
) -> dict[str, bool]:
    return {"success": await svc.change_password(principal, body)}
