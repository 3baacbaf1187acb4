"""
shiptrack.services.user_service

Account operations: login, registration, profile, user admin, password change.

Responsibilities:
- Normalize and hash user writes in one visible place (`prepare_user_values`).
- Keep the ADMIN => no scopes invariant on every write path.
- Report collisions, missing rows and bad credentials as distinct errors.
"""

from __future__ import annotations

import asyncio
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shiptrack.auth.guard import Action, authorize
from shiptrack.auth.jwt import JwtConfig, issue_token
from shiptrack.auth.models import Principal
from shiptrack.auth.passwords import (
    hash_password,
    normalize_identifier,
    prepare_password,
    verify_password,
)
from shiptrack.db.models import User, UserRole
from shiptrack.db.repositories.users import UserRepo
from shiptrack.errors import (
    Conflict,
    CredentialIncorrect,
    IdentifierNotFound,
    NotFound,
    ValidationFailed,
)
from shiptrack.observability.logging import get_logger
from shiptrack.schemas import (
    AuthPayload,
    ChangePasswordInput,
    LoginInput,
    RegisterInput,
    UserUpdate,
    UserView,
)
from shiptrack.settings import Settings

log = get_logger(__name__)

MIN_PASSWORD_LENGTH = 6


async def prepare_user_values(values: dict[str, Any], *, rounds: int) -> dict[str, Any]:
    """
    Storage transform applied by every user write path.

    Lowercases/trims username and email, and runs the password through the
    hash idempotence guard (already-hashed values are stored as-is).
    """

    prepared = dict(values)
    for key in ("username", "email"):
        if prepared.get(key) is not None:
            prepared[key] = normalize_identifier(prepared[key])
    password = prepared.pop("password", None)
    if password is not None:
        prepared["password_hash"] = await asyncio.to_thread(
            prepare_password, password, rounds=rounds
        )
    if prepared.get("role") == UserRole.admin:
        prepared["scopes"] = []
    return prepared


def _collision_error(conflicts: list[User], *, username: str | None, email: str | None) -> Conflict:
    # Username wins when both fields collide.
    if username is not None and any(u.username == username for u in conflicts):
        return Conflict("Username already exists")
    if email is not None and any(u.email == email for u in conflicts):
        return Conflict("Email already exists")
    return Conflict("Username or email already exists")


class UserService:
    def __init__(self, *, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._users = UserRepo(session)
        self._jwt = JwtConfig.from_settings(settings)

    def _issue(self, user: User) -> AuthPayload:
        token = issue_token(
            cfg=self._jwt,
            user_id=user.id,
            username=user.username,
            role=user.role.value,
        )
        return AuthPayload(token=token, user=UserView.from_model(user))

    async def login(self, data: LoginInput) -> AuthPayload:
        if not data.password:
            raise ValidationFailed("Password is required")

        email = normalize_identifier(data.email) if data.email else ""
        username = normalize_identifier(data.username) if data.username else ""

        # Email takes precedence when both identifiers are supplied.
        if email:
            user = await self._users.get_by_email(email)
            if user is None:
                log.warning("login_failed", reason="email_not_found")
                raise IdentifierNotFound("Email not found")
        elif username:
            user = await self._users.get_by_username(username)
            if user is None:
                log.warning("login_failed", reason="username_not_found")
                raise IdentifierNotFound("Username not found")
        else:
            raise ValidationFailed("Username or email is required")

        ok = await asyncio.to_thread(verify_password, data.password, user.password_hash)
        if not ok:
            log.warning("login_failed", reason="password_mismatch", user_id=user.id)
            raise CredentialIncorrect("Password is incorrect")

        log.info("login_succeeded", user_id=user.id)
        return self._issue(user)

    async def register(self, principal: Principal | None, data: RegisterInput) -> AuthPayload:
        actor = authorize(principal, Action.create_user)

        username = normalize_identifier(data.username)
        email = normalize_identifier(data.email)
        if not username or not email:
            raise ValidationFailed("Username and email are required")

        conflicts = await self._users.find_conflicts(username=username, email=email)
        if conflicts:
            raise _collision_error(conflicts, username=username, email=email)

        values = await prepare_user_values(
            {
                "username": username,
                "email": email,
                "password": data.password,
                "role": data.role,
                "scopes": list(data.scopes),
            },
            rounds=self._settings.bcrypt_rounds,
        )

        try:
            user = await self._users.create(**values)
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise Conflict("Username or email already exists") from e

        log.info("user_registered", user_id=user.id, role=user.role.value, actor=actor.id)
        return self._issue(user)

    async def me(self, principal: Principal | None) -> UserView | None:
        actor = authorize(principal, Action.read_profile)
        user = await self._users.get(actor.id)
        return UserView.from_model(user) if user is not None else None

    async def list_users(self, principal: Principal | None) -> list[UserView]:
        authorize(principal, Action.list_users)
        return [UserView.from_model(u) for u in await self._users.list_all()]

    async def update_user(self, principal: Principal | None, data: UserUpdate) -> UserView:
        actor = authorize(principal, Action.update_user)

        supplied = data.model_dump(include=data.model_fields_set - {"id"})
        # Nulls and blank strings mean "not supplied"; an empty scopes list is a real value.
        supplied = {
            k: v
            for k, v in supplied.items()
            if v is not None and not (isinstance(v, str) and not v.strip())
        }

        existing = await self._users.get(data.id)
        if existing is None:
            raise NotFound("User not found")

        if "role" in supplied and supplied["role"] == UserRole.admin:
            supplied["scopes"] = []
        elif "scopes" in supplied and "role" not in supplied and existing.role == UserRole.admin:
            # Scopes stay empty on an ADMIN whose role is not being changed.
            supplied["scopes"] = []

        username = normalize_identifier(supplied["username"]) if "username" in supplied else None
        email = normalize_identifier(supplied["email"]) if "email" in supplied else None
        conflicts = await self._users.find_conflicts(
            username=username, email=email, exclude_id=data.id
        )
        if conflicts:
            raise _collision_error(conflicts, username=username, email=email)

        values = await prepare_user_values(supplied, rounds=self._settings.bcrypt_rounds)

        try:
            user = await self._users.update(data.id, values)
            if user is None:
                raise NotFound("User not found")
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise Conflict("Username or email already exists") from e

        log.info("user_updated", user_id=user.id, fields=sorted(supplied), actor=actor.id)
        return UserView.from_model(user)

    async def delete_user(self, principal: Principal | None, user_id: int) -> bool:
        # Self-deletion is rejected before the row is even looked up.
        actor = authorize(principal, Action.delete_user, target_user_id=user_id)

        deleted = await self._users.delete(user_id)
        if not deleted:
            raise NotFound("User not found")
        await self._session.commit()

        log.info("user_deleted", user_id=user_id, actor=actor.id)
        return True

    async def change_password(
        self, principal: Principal | None, data: ChangePasswordInput
    ) -> bool:
        actor = authorize(principal, Action.change_password)

        user = await self._users.get(actor.id)
        if user is None:
            raise NotFound("User not found")

        ok = await asyncio.to_thread(verify_password, data.current_password, user.password_hash)
        if not ok:
            log.warning("password_change_failed", user_id=user.id)
            raise CredentialIncorrect("Current password is incorrect")

        new_password = (data.new_password or "").strip()
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationFailed(
                f"New password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        # Always hash here: this path never receives a trusted pre-hashed value.
        password_hash = await asyncio.to_thread(
            hash_password, new_password, rounds=self._settings.bcrypt_rounds
        )
        await self._users.update(user.id, {"password_hash": password_hash})
        await self._session.commit()

        log.info("password_changed", user_id=user.id)
        return True


# --- Module Notes -----------------------------------------------------------
# Login keeps "Email not found" / "Username not found" / "Password is incorrect"
# as separate messages; unifying them is a product decision, not a refactor.
