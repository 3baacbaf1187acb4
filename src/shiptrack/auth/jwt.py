"""
shiptrack.auth.jwt

JWT issuing and validation helpers.

Responsibilities:
- Issue session tokens embedding user id/username/role (7 hours by default).
- Decode and validate JWTs with strict claim requirements (iss/aud/exp/iat/sub).

Note:
- HS256 with a shared secret; the secret comes from settings.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from shiptrack.settings import Settings

DEFAULT_TTL = timedelta(hours=7)


@dataclass(frozen=True, slots=True)
class JwtConfig:
    # Algorithm/issuer/audience are enforced during decoding.
    alg: str
    issuer: str
    audience: str
    secret: str
    ttl: timedelta = DEFAULT_TTL

    @classmethod
    def from_settings(cls, settings: Settings) -> JwtConfig:
        return cls(
            alg=settings.jwt_alg,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            secret=settings.jwt_secret,
            ttl=timedelta(hours=settings.jwt_ttl_hours),
        )


class JwtValidationError(Exception):
    pass


def issue_token(
    *,
    cfg: JwtConfig,
    user_id: int,
    username: str,
    role: str,
    ttl: timedelta | None = None,
) -> str:
    now = datetime.now(tz=UTC)
    # `sub` must be a string per RFC 7519; the resolver parses it back into an int id.
    payload: dict[str, Any] = {
        "iss": cfg.issuer,
        "aud": cfg.audience,
        "sub": str(user_id),
        "username": username,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + (ttl or cfg.ttl)).timestamp()),
    }
    return jwt.encode(payload, cfg.secret, algorithm=cfg.alg)


def decode_and_validate(*, cfg: JwtConfig, token: str) -> dict[str, Any]:
    try:
        # jwt.decode enforces signature + registered claims (issuer/audience/exp, etc.).
        return jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            issuer=cfg.issuer,
            audience=cfg.audience,
            options={
                "require": ["exp", "iat", "iss", "aud", "sub"],
            },
        )
    except InvalidTokenError as e:
        raise JwtValidationError(str(e)) from e


# --- Module Notes -----------------------------------------------------------
# Tokens are issued by `UserService.login`/`register`; decoded by `auth.resolver`.
