"""
shiptrack.auth.deps

FastAPI dependency functions for authentication.

Responsibilities:
- Convert an optional bearer token into an optional `Principal`.
- Leave authorization decisions to the service layer (`auth.guard`).
"""

from __future__ import annotations

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from shiptrack.api.deps import db_session, settings_dep
from shiptrack.auth.models import Principal
from shiptrack.auth.resolver import PrincipalResolver
from shiptrack.settings import Settings

_bearer = HTTPBearer(auto_error=False)


async def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> Principal | None:
    # Missing or invalid tokens yield None; operations decide whether that is a 401.
    if creds is None or not creds.credentials:
        return None
    return await PrincipalResolver(session=session, settings=settings).resolve(creds.credentials)


# --- Module Notes -----------------------------------------------------------
# `db_session` is shared with the route handler, so principal lookup and the
# operation itself run on the same request-scoped session.
