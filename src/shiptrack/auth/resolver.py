"""
shiptrack.auth.resolver

Bearer token -> Principal resolution.

Responsibilities:
- Validate the token (signature, expiry, registered claims).
- Re-read the referenced user so deleted accounts lose access immediately.
- Never raise to the caller: any failure resolves to `None`.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from shiptrack.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from shiptrack.auth.models import Principal
from shiptrack.db.repositories.users import UserRepo
from shiptrack.observability.logging import get_logger
from shiptrack.settings import Settings

log = get_logger(__name__)

BEARER_SCHEME = "bearer"


def extract_bearer(value: str | None) -> str | None:
    # Accepts "Bearer <token>" as well as a bare token; a lone scheme word is no token.
    parts = (value or "").split()
    if parts and parts[0].lower() == BEARER_SCHEME:
        parts = parts[1:]
    if len(parts) != 1:
        return None
    return parts[0]


class PrincipalResolver:
    def __init__(self, *, session: AsyncSession, settings: Settings) -> None:
        self._users = UserRepo(session)
        self._cfg = JwtConfig.from_settings(settings)

    async def resolve(self, token: str | None) -> Principal | None:
        if not token:
            return None
        try:
            payload = decode_and_validate(cfg=self._cfg, token=token)
        except JwtValidationError as e:
            log.debug("token_rejected", reason=str(e))
            return None

        try:
            user_id = int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            return None

        user = await self._users.get(user_id)
        if user is None:
            # Still-valid token for an account that has since been deleted.
            log.info("token_user_missing", user_id=user_id)
            return None
        return Principal.from_user(user)


# --- Module Notes -----------------------------------------------------------
# Both transports (HTTP header and WebSocket handshake) go through `resolve`.
