"""
shiptrack.db.seed

Default admin bootstrap.

Responsibilities:
- Create the default ADMIN account when the users table is empty.
- Never block startup: failures are logged and swallowed.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shiptrack.db.models import UserRole
from shiptrack.db.repositories.users import UserRepo
from shiptrack.db.session import session_scope
from shiptrack.errors import ServiceError
from shiptrack.observability.logging import get_logger
from shiptrack.services.user_service import prepare_user_values
from shiptrack.settings import Settings

log = get_logger(__name__)


async def ensure_default_admin(
    session_factory: async_sessionmaker[AsyncSession], settings: Settings
) -> bool:
    """
    Returns True when an admin was created.
    """

    try:
        async with session_scope(session_factory) as session:
            users = UserRepo(session)
            existing = await users.count()
            if existing:
                log.info("default_admin_skipped", existing_users=existing)
                return False

            values = await prepare_user_values(
                {
                    "username": settings.default_admin_username,
                    "email": settings.default_admin_email,
                    "password": settings.default_admin_password,
                    "role": UserRole.admin,
                },
                rounds=settings.bcrypt_rounds,
            )
            admin = await users.create(**values)
            await session.commit()
    except (SQLAlchemyError, ServiceError) as e:
        # Best-effort: the service still starts without a default admin.
        log.error("default_admin_failed", error=str(e))
        return False

    log.warning(
        "default_admin_created",
        user_id=admin.id,
        username=admin.username,
        email=admin.email,
        hint="log in and replace this account, then run `shiptrack-admin delete-admin`",
    )
    return True


# --- Module Notes -----------------------------------------------------------
# Two processes starting against an empty DB may race here; the unique constraint
# makes the loser fail (and log) instead of creating a second admin.
